"""Hardware procurement records and the asset line items embedded in them."""

from __future__ import annotations

from sqlalchemy import JSON, Column, Date, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship, validates

from ..db.session import Base


class HardwareRecord(Base):
    """One procurement/delivery event.

    ``employee_allocated`` is a free-text label for whoever received the
    equipment. It is never resolved against the users table.
    """

    __tablename__ = "hardware_records"

    id = Column(Integer, primary_key=True, index=True)
    court_name = Column(Text, nullable=True)
    company_name = Column(Text, nullable=True)
    delivery_date = Column(Date, nullable=True)
    installation_date = Column(Date, nullable=True)
    employee_allocated = Column(Text, nullable=True)
    dead_stock_reg_sr_no = Column(Text, nullable=True)
    dead_stock_book_page_no = Column(Text, nullable=True)
    source = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    extra_fields = Column(JSON, nullable=False, default=dict)
    created_at = Column(Text, nullable=False)

    items = relationship(
        "HardwareItem",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="HardwareItem.id",
        lazy="selectin",
    )

    @validates("employee_allocated")
    def _validate_employee_allocated(self, key: str, value):
        # Older clients sent a user reference here; refuse anything but a label.
        if value is not None and not isinstance(value, str):
            raise TypeError(
                f"employeeAllocated must be a text label, got {type(value).__name__}"
            )
        return value


class HardwareItem(Base):
    """A single physical asset owned by exactly one ``HardwareRecord``."""

    __tablename__ = "hardware_items"

    id = Column(Integer, primary_key=True, index=True)
    record_id = Column(
        Integer,
        ForeignKey("hardware_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_name = Column(Text, nullable=False)
    serial_no = Column(Text, nullable=True)
    company = Column(Text, nullable=True)

    record = relationship("HardwareRecord", back_populates="items")


__all__ = ["HardwareRecord", "HardwareItem"]
