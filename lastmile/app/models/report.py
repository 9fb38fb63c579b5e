"""
Driver issue report model.

Reports are created by drivers and only ever mutated by dispatch (status).
"""

import enum
from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from lastmile.app.db.session import Base


class ReportStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_REVIEW = "IN_REVIEW"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"


class Report(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=False, index=True)

    issue_type = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    photo_url = Column(String(500), nullable=True)

    # Where the driver was when reporting
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    accuracy = Column(Float, nullable=True)

    status = Column(Enum(ReportStatus), default=ReportStatus.PENDING, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Report(id={self.id}, driver_id={self.driver_id}, status='{self.status.value}')>"
