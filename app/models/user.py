"""SQLAlchemy model for application user accounts."""

from __future__ import annotations

from sqlalchemy import Column, Date, Integer, Text

from ..db.session import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    """A court-office user.

    ``village`` is the user's home court station. When it is set, every surety
    the user files is pinned to that station.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(Text, nullable=False)
    dob = Column(Date, nullable=True)
    mobile_no = Column(Text, nullable=True)
    village = Column(Text, nullable=True)
    email_id = Column(Text, nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=True)
    role = Column(Text, nullable=False, default=ROLE_USER)
    created_at = Column(Text, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


__all__ = ["User", "ROLE_USER", "ROLE_ADMIN"]
