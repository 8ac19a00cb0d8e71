"""SQLAlchemy model for bail (surety) filings."""

from __future__ import annotations

from sqlalchemy import Column, Date, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Surety(Base):
    __tablename__ = "sureties"

    id = Column(Integer, primary_key=True, index=True)
    shurity_name = Column(Text, nullable=False)
    address = Column(Text, nullable=True)
    aadhar_no = Column(Text, nullable=True, index=True)
    police_station = Column(Text, nullable=True, index=True)
    case_fir_no = Column(Text, nullable=True)
    act_name = Column(Text, nullable=True)
    section = Column(Text, nullable=True)
    accused_name = Column(Text, nullable=True)
    accused_address = Column(Text, nullable=True)
    shurity_amount = Column(Float, nullable=True)
    date_of_surety = Column(Date, nullable=True, index=True)
    court_city = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    user = relationship("User", lazy="joined")

    @property
    def assigned_to_user(self) -> str | None:
        return self.user.full_name if self.user else None


__all__ = ["Surety"]
