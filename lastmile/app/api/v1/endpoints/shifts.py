"""
Driver Shift API Endpoints.

Server-side record of clock-in/out and breaks. The mobile client tracks
time locally and calls these best-effort.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lastmile.app.db.session import get_db
from lastmile.app.models.shift import Shift
from lastmile.app.schemas.shift import (
    ShiftResponse, ShiftStatusResponse, BreakStartRequest, BreakResponse
)
from lastmile.app.core.guards import require_driver
from lastmile.app.services.audit import log_actor_event, AuditAction
from lastmile.app.services.shifts import (
    get_open_shift, get_shift_breaks, start_shift, end_shift, start_break, end_break
)

router = APIRouter(prefix="/shifts", tags=["Driver - Shifts"])


async def build_shift_response(db: AsyncSession, shift: Shift) -> ShiftResponse:
    response = ShiftResponse.model_validate(shift)
    response.breaks = [BreakResponse.model_validate(b) for b in await get_shift_breaks(db, shift.id)]
    return response


@router.post("/start", response_model=ShiftResponse)
async def start(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """Clock in. Returns the already open shift if there is one."""
    shift, created = await start_shift(db, current_user["user_id"])

    if created:
        await log_actor_event(db, current_user, AuditAction.SHIFT_STARTED, "shift", shift.id)

    return await build_shift_response(db, shift)


@router.post("/end", response_model=ShiftResponse)
async def end(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """Clock out, closing any running break."""
    shift = await end_shift(db, current_user["user_id"])
    await log_actor_event(db, current_user, AuditAction.SHIFT_ENDED, "shift", shift.id)
    return await build_shift_response(db, shift)


@router.get("/status", response_model=ShiftStatusResponse)
async def shift_status(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    shift = await get_open_shift(db, current_user["user_id"])
    if not shift:
        return ShiftStatusResponse(is_on_duty=False)

    response = await build_shift_response(db, shift)
    return ShiftStatusResponse(
        is_on_duty=True,
        is_on_break=any(b.end_time is None for b in response.breaks),
        shift=response,
    )


@router.post("/breaks/start", response_model=BreakResponse)
async def break_start(
    body: BreakStartRequest,
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    shift_break = await start_break(db, current_user["user_id"], body.type)
    return BreakResponse.model_validate(shift_break)


@router.post("/breaks/end", response_model=BreakResponse)
async def break_end(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    shift_break = await end_break(db, current_user["user_id"])
    return BreakResponse.model_validate(shift_break)
