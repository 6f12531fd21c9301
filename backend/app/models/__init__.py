"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Order is the aggregate the state machine guards; Book and Invoice are read/derived

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from app.models.book import Book  # noqa: F401
from app.models.order import Order  # noqa: F401
from app.models.invoice import Invoice  # noqa: F401
