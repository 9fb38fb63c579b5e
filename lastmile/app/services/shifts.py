"""
Shift service.

A driver has at most one open shift; the partial unique index on
shifts(driver_id) WHERE end_time IS NULL backs that up under races.
"""

import logging
from datetime import datetime, date as date_type, timedelta, timezone
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lastmile.app.models.shift import Shift, ShiftBreak, BreakType

logger = logging.getLogger(__name__)


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Drivers differ in whether they return aware datetimes; compare in naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


async def get_open_shift(db: AsyncSession, driver_id: int) -> Optional[Shift]:
    result = await db.execute(
        select(Shift).where(Shift.driver_id == driver_id, Shift.end_time.is_(None))
    )
    return result.scalar_one_or_none()


async def get_open_break(db: AsyncSession, shift_id: int) -> Optional[ShiftBreak]:
    result = await db.execute(
        select(ShiftBreak)
        .where(ShiftBreak.shift_id == shift_id, ShiftBreak.end_time.is_(None))
        .order_by(ShiftBreak.id.desc())
    )
    return result.scalars().first()


async def get_shift_breaks(db: AsyncSession, shift_id: int) -> List[ShiftBreak]:
    result = await db.execute(
        select(ShiftBreak).where(ShiftBreak.shift_id == shift_id).order_by(ShiftBreak.id)
    )
    return list(result.scalars().all())


async def start_shift(db: AsyncSession, driver_id: int) -> tuple[Shift, bool]:
    """
    Open a shift, or return the one already open.

    Returns:
        (shift, created)
    """
    existing = await get_open_shift(db, driver_id)
    if existing:
        return existing, False

    shift = Shift(driver_id=driver_id, start_time=datetime.utcnow())
    db.add(shift)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race against a concurrent clock-in
        await db.rollback()
        existing = await get_open_shift(db, driver_id)
        if existing is None:
            raise
        return existing, False

    await db.refresh(shift)
    logger.info("Shift %s started for driver %s", shift.id, driver_id)
    return shift, True


async def end_shift(db: AsyncSession, driver_id: int) -> Shift:
    """
    Close the open shift and any break still running.

    Raises:
        HTTPException 404 if no shift is open
    """
    shift = await get_open_shift(db, driver_id)
    if not shift:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active shift found"
        )

    now = datetime.utcnow()
    open_break = await get_open_break(db, shift.id)
    if open_break:
        open_break.end_time = now

    shift.end_time = now
    await db.commit()
    await db.refresh(shift)

    logger.info("Shift %s ended for driver %s", shift.id, driver_id)
    return shift


async def start_break(db: AsyncSession, driver_id: int, break_type: BreakType) -> ShiftBreak:
    """
    Raises:
        HTTPException 400 if off duty or already on a break
    """
    shift = await get_open_shift(db, driver_id)
    if not shift:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No active shift"
        )

    if await get_open_break(db, shift.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A break is already in progress"
        )

    shift_break = ShiftBreak(shift_id=shift.id, type=break_type, start_time=datetime.utcnow())
    db.add(shift_break)
    await db.commit()
    await db.refresh(shift_break)
    return shift_break


async def end_break(db: AsyncSession, driver_id: int) -> ShiftBreak:
    """
    Raises:
        HTTPException 404 if there is no break to end
    """
    shift = await get_open_shift(db, driver_id)
    open_break = await get_open_break(db, shift.id) if shift else None

    if not open_break:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active break found"
        )

    open_break.end_time = datetime.utcnow()
    await db.commit()
    await db.refresh(open_break)
    return open_break


async def hours_worked_on(db: AsyncSession, driver_id: int, day: date_type) -> float:
    """Sum of shift durations started on a day; an open shift runs until now."""
    start_of_day = datetime.combine(day, datetime.min.time())
    end_of_day = start_of_day + timedelta(days=1)

    result = await db.execute(
        select(Shift).where(
            Shift.driver_id == driver_id,
            Shift.start_time >= start_of_day,
            Shift.start_time < end_of_day,
        )
    )

    now = datetime.utcnow()
    total_seconds = 0.0
    for shift in result.scalars().all():
        start = as_naive_utc(shift.start_time)
        end = as_naive_utc(shift.end_time) or now
        total_seconds += max((end - start).total_seconds(), 0)

    return round(total_seconds / 3600, 2)
