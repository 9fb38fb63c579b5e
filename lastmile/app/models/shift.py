"""
Shift and break database models.

A driver has at most one open shift (end_time IS NULL) at a time.
"""

import enum
from sqlalchemy import Column, Integer, ForeignKey, DateTime, Enum, Index
from lastmile.app.db.session import Base


class BreakType(str, enum.Enum):
    LUNCH = "lunch"
    SHORT = "short"


class Shift(Base):
    """
    Shift model.

    Opened by clock-in, closed by clock-out.
    """
    __tablename__ = "shifts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=False, index=True)

    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)

    # Unique constraint: only one open shift per driver
    __table_args__ = (
        Index('ix_shifts_open_driver', 'driver_id', unique=True,
              postgresql_where=end_time.is_(None),
              sqlite_where=end_time.is_(None)),
    )

    def __repr__(self):
        return f"<Shift(id={self.id}, driver_id={self.driver_id}, open={self.end_time is None})>"


class ShiftBreak(Base):
    """Break taken during a shift."""
    __tablename__ = "shift_breaks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    shift_id = Column(Integer, ForeignKey('shifts.id'), nullable=False, index=True)

    type = Column(Enum(BreakType), nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<ShiftBreak(id={self.id}, shift_id={self.shift_id}, type='{self.type.value}')>"
