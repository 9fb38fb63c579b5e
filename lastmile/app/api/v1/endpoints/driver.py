"""
Driver Self-Service API Endpoints.

Profile with today's performance figures, and the COD wallet.
"""

from datetime import datetime, date as date_type
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lastmile.app.db.session import get_db
from lastmile.app.models.driver import Driver
from lastmile.app.schemas.auth import DriverInfo
from lastmile.app.schemas.driver import ProfileResponse, ProfileUpdate, DriverMetrics, WalletResponse
from lastmile.app.core.guards import require_driver
from lastmile.app.core.exceptions import ResourceNotFoundError
from lastmile.app.services.driver_metrics import get_driver_metrics
from lastmile.app.services.wallet import build_wallet

router = APIRouter(prefix="/driver", tags=["Driver - Profile"])


async def _load_driver(db: AsyncSession, driver_id: int) -> Driver:
    result = await db.execute(select(Driver).where(Driver.id == driver_id))
    driver = result.scalar_one_or_none()
    if not driver:
        raise ResourceNotFoundError("Driver", driver_id)
    return driver


async def _profile(db: AsyncSession, driver: Driver) -> ProfileResponse:
    metrics = await get_driver_metrics(db, driver.id, datetime.utcnow().date())
    return ProfileResponse(
        **DriverInfo.model_validate(driver).model_dump(),
        metrics=DriverMetrics(**metrics),
    )


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    driver = await _load_driver(db, current_user["user_id"])
    return await _profile(db, driver)


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdate,
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """Update contact and vehicle details; omitted fields are left alone."""
    driver = await _load_driver(db, current_user["user_id"])

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(driver, field, value)

    await db.commit()
    await db.refresh(driver)

    return await _profile(db, driver)


@router.get("/wallet", response_model=WalletResponse)
async def get_wallet(
    date: Optional[date_type] = Query(None, description="Route date, defaults to today (UTC)"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """Expected vs collected cash across the driver's routes for a day."""
    wallet_date = date or datetime.utcnow().date()
    return await build_wallet(db, current_user["user_id"], wallet_date)
