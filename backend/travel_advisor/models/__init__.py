"""ORM Models — SQLAlchemy declarative models for persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Models are imported here so Base.metadata is complete before create_all/autogenerate
"""

from travel_advisor.models.advisory import AdvisoryRecord  # noqa: F401
