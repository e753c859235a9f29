"""ORM Models — SQLAlchemy declarative models for orders and their files.

Invariants:
    - All models inherit from Base (db/base.py)
    - Order is the aggregate root; OrderFile rows are scoped by order_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from campus_print.models.order import Order  # noqa: F401
from campus_print.models.order_file import OrderFile  # noqa: F401
