"""Campus Print — order intake & fulfillment service for student print jobs.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
