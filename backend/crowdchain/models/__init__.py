"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Entities reference each other by id only; no relationship() loading

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / alembic
    - No ORM relationships: services re-fetch by id before every mutation, so
      lazy-loaded graphs would only hide stale reads
"""

from crowdchain.models.user import User  # noqa: F401
from crowdchain.models.project import Project  # noqa: F401
from crowdchain.models.transaction import Transaction  # noqa: F401
from crowdchain.models.creator_request import CreatorRequest  # noqa: F401
from crowdchain.models.auth_session import AuthSession  # noqa: F401
from crowdchain.models.wallet_connection import WalletConnection  # noqa: F401
