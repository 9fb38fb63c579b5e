"""
Driver Delivery API Endpoints.

Status updates for stops, proof-of-delivery photos and scan-to-pickup.
PUT /stops/{id}/status is the same operation under the stop vocabulary
used by the pickup/delivery screens.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from lastmile.app.db.session import get_db
from lastmile.app.models.route_enums import DeliveryStatus
from lastmile.app.schemas.delivery import (
    DeliveryResponse, DeliveryStatusUpdate, StopStatusUpdate, PickupScanRequest
)
from lastmile.app.core.guards import require_driver, ensure_route_access
from lastmile.app.services.audit import log_actor_event, AuditAction
from lastmile.app.services.deliveries import get_delivery, apply_delivery_status, find_pickup_by_code
from lastmile.app.services.photo_upload import PhotoUploader, get_photo_uploader
from lastmile.app.services.route_state import check_delivery_transition
from lastmile.app.services.routes import get_route

router = APIRouter(prefix="/deliveries", tags=["Driver - Deliveries"])
stops_router = APIRouter(prefix="/stops", tags=["Driver - Deliveries"])

PROOF_FOLDER = "proof-of-delivery"


async def _update_status(
    db: AsyncSession,
    current_user: dict,
    uploader: PhotoUploader,
    delivery_id: int,
    status: DeliveryStatus,
    photo: Optional[str],
    notes: Optional[str],
    collected_amount: Optional[float],
) -> DeliveryResponse:
    delivery = await get_delivery(db, delivery_id)
    route = await get_route(db, delivery.route_id)
    ensure_route_access(route.driver_id, current_user, allow_unassigned=False)

    # Validate before uploading; a replay only uploads if no proof is stored yet
    changes = check_delivery_transition(delivery.status, status, delivery.stop_type, route.status)

    photo_url = None
    if photo and (changes or not delivery.proof_photo_url):
        photo_url = await uploader.upload(photo, PROOF_FOLDER)

    previous = delivery.status
    if await apply_delivery_status(
        db, delivery, route, status,
        photo_url=photo_url, notes=notes, collected_amount=collected_amount,
    ):
        await log_actor_event(
            db, current_user, AuditAction.DELIVERY_STATUS_CHANGED, "delivery", delivery.id,
            metadata={
                "route_id": route.id,
                "from": previous.value,
                "to": status.value,
                "collected_amount": delivery.collected_amount,
            }
        )

    return DeliveryResponse.model_validate(delivery)


@router.get("/{delivery_id}", response_model=DeliveryResponse)
async def get_delivery_detail(
    delivery_id: int = Path(..., description="Delivery ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    delivery = await get_delivery(db, delivery_id)
    route = await get_route(db, delivery.route_id)
    ensure_route_access(route.driver_id, current_user)
    return DeliveryResponse.model_validate(delivery)


@router.put("/{delivery_id}/status", response_model=DeliveryResponse)
async def update_delivery_status(
    body: DeliveryStatusUpdate,
    delivery_id: int = Path(..., description="Delivery ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    uploader: PhotoUploader = Depends(get_photo_uploader)
):
    """
    Update a delivery's status.

    Final statuses cannot change, not even to another final status.
    Re-sending the current status succeeds without side effects so
    replayed offline actions are safe.
    """
    return await _update_status(
        db, current_user, uploader, delivery_id,
        body.status, body.photo_base64, body.notes, body.collected_amount,
    )


@stops_router.put("/{stop_id}/status", response_model=DeliveryResponse)
async def update_stop_status(
    body: StopStatusUpdate,
    stop_id: int = Path(..., description="Stop ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    uploader: PhotoUploader = Depends(get_photo_uploader)
):
    """Update a pickup or delivery stop."""
    return await _update_status(
        db, current_user, uploader, stop_id,
        body.status, body.photo, body.notes, body.collected_amount,
    )


@router.post("/pickup", response_model=DeliveryResponse)
async def scan_pickup(
    body: PickupScanRequest,
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """
    Mark a pickup stop as PICKED_UP by its scanned package reference.

    Scanning the same label twice returns the stop unchanged.
    """
    delivery = await find_pickup_by_code(db, body.code, current_user["user_id"])
    route = await get_route(db, delivery.route_id)

    if await apply_delivery_status(db, delivery, route, DeliveryStatus.PICKED_UP):
        await log_actor_event(
            db, current_user, AuditAction.PACKAGE_PICKED_UP, "delivery", delivery.id,
            metadata={"route_id": route.id, "package_ref": body.code}
        )

    return DeliveryResponse.model_validate(delivery)
