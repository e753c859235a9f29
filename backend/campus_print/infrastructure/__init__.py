"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All external calls wrapped with timeout and error mapping (StorageError, DatabaseError)

Design Decisions:
    - Thin wrappers over raw clients (SQLAlchemy, filesystem, Cloudinary SDK)
"""
