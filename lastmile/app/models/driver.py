"""
Driver database model.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
from lastmile.app.db.session import Base
from lastmile.app.models.enums import DriverStatus


class Driver(Base):
    """
    Driver model for authentication and profile data.
    """
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    vehicle_number = Column(String(50), nullable=True)
    photo_url = Column(String(500), nullable=True)
    license_no = Column(String(100), nullable=True)

    status = Column(Enum(DriverStatus), default=DriverStatus.ACTIVE, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Driver(id={self.id}, username='{self.username}', status='{self.status.value}')>"
