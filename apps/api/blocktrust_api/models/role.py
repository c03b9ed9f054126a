"""Role grant model."""

import enum

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from blocktrust_api.db.base import Base
from blocktrust_api.utils.clock import utcnow


class Role(str, enum.Enum):
    """Capability labels granted to actors."""

    ADMIN = "admin"
    VOTER = "voter"
    PETITIONER = "petitioner"


class UserRole(Base):
    """(actor, role) grant; an actor may hold several."""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    role = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
