"""
Delivery (stop) database model.
"""

from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from lastmile.app.db.session import Base
from lastmile.app.models.route_enums import DeliveryStatus, DeliveryType, StopType


class Delivery(Base):
    """
    Delivery model.

    One stop on a route. Stops sharing an order_id form a pickup/delivery pair.
    """
    __tablename__ = "deliveries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    route_id = Column(String(50), ForeignKey('routes.id'), nullable=False, index=True)

    # Pairing
    order_id = Column(String(100), nullable=True, index=True)
    stop_type = Column(Enum(StopType), default=StopType.DELIVERY, nullable=False)

    # Customer
    customer_name = Column(String(200), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Package
    package_ref = Column(String(100), nullable=True, index=True)
    weight = Column(String(50), nullable=True)
    dimensions = Column(String(100), nullable=True)

    # Payment
    type = Column(Enum(DeliveryType), default=DeliveryType.PREPAID, nullable=False)
    cod_amount = Column(Float, default=0, nullable=False)
    collected_amount = Column(Float, nullable=True)

    # Outcome
    status = Column(Enum(DeliveryStatus), default=DeliveryStatus.PENDING, nullable=False, index=True)
    proof_photo_url = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    attempted_at = Column(DateTime(timezone=True), nullable=True)
    picked_up_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Delivery(id={self.id}, route_id='{self.route_id}', status='{self.status.value}')>"
