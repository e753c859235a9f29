"""Services Layer — the imperative shell around the pure core.

Invariants:
    - Services orchestrate IO (store, blob store, worker pool) around core/ functions
    - Collaborators are injected through constructors, never looked up globally

Design Decisions:
    - One file per concern: intake, page counting, code issuance, orders, persistence
"""
