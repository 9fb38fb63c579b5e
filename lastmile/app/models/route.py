"""
Route database model.

Routes are created by dispatch and claimed by drivers.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Enum
from sqlalchemy.sql import func
from lastmile.app.db.session import Base
from lastmile.app.models.route_enums import RouteStatus


class Route(Base):
    """
    Route model.

    The identifier is assigned by dispatch (e.g. "DXB-2025-001").
    driver_id stays NULL until a driver claims the route.
    """
    __tablename__ = "routes"

    id = Column(String(50), primary_key=True, index=True)

    date = Column(Date, nullable=False, index=True)
    zone = Column(String(200), nullable=True)
    vehicle_info = Column(String(200), nullable=True)

    # Driver assignment (weak, revocable)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=True, index=True)

    status = Column(Enum(RouteStatus), default=RouteStatus.PENDING, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Route(id='{self.id}', driver_id={self.driver_id}, status='{self.status.value}')>"
