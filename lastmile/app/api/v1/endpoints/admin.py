"""
Admin API Endpoints.

Dispatch console: driver management, route planning, delivery and report
oversight, all with audit logging.
"""

import secrets
from datetime import datetime, timedelta, date as date_type
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from lastmile.app.db.session import get_db
from lastmile.app.core.config import settings
from lastmile.app.core.jwt import create_access_token
from lastmile.app.core.security import get_password_hash
from lastmile.app.core.guards import require_admin
from lastmile.app.core.exceptions import ResourceNotFoundError
from lastmile.app.core.token_revocation import revoke_all_user_tokens, clear_user_token_revocation
from lastmile.app.models.driver import Driver
from lastmile.app.models.route import Route
from lastmile.app.models.delivery import Delivery
from lastmile.app.models.report import Report, ReportStatus
from lastmile.app.models.shift import Shift
from lastmile.app.models.enums import UserRole, DriverStatus
from lastmile.app.models.route_enums import RouteStatus, DeliveryStatus
from lastmile.app.schemas.auth import LoginRequest, AdminLoginResponse, MessageResponse
from lastmile.app.schemas.admin import (
    DriverCreate, DriverUpdate, DriverAdminResponse, DriverListResponse, AuditLogResponse
)
from lastmile.app.schemas.route import RouteCreate, RouteResponse, RouteSummary, RouteStatusUpdate
from lastmile.app.schemas.delivery import DeliveryResponse
from lastmile.app.schemas.report import ReportResponse, ReportStatusUpdate
from lastmile.app.services.audit import log_event, log_actor_event, AuditAction, get_audit_trail
from lastmile.app.services.routes import get_route, list_routes, change_route_status
from lastmile.app.api.v1.endpoints.routes import build_route_response, build_route_summary

router = APIRouter(prefix="/admin", tags=["Admin"])


# Authentication

@router.post("/login", response_model=AdminLoginResponse)
async def admin_login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login with the configured dispatch credentials."""
    valid = (
        secrets.compare_digest(credentials.username, settings.admin_username)
        and secrets.compare_digest(credentials.password, settings.admin_password)
    )

    if not valid:
        await log_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            actor_username=credentials.username,
            metadata={"reason": "Invalid admin credentials"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = create_access_token(
        data={"sub": settings.admin_username, "user_id": None, "role": UserRole.ADMIN.value},
        expires_delta=timedelta(minutes=settings.admin_token_expire_minutes),
    )

    await log_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        actor_username=settings.admin_username,
        metadata={"role": UserRole.ADMIN.value}
    )

    return AdminLoginResponse(token=token)


# Drivers

async def _get_driver(db: AsyncSession, driver_id: int) -> Driver:
    result = await db.execute(select(Driver).where(Driver.id == driver_id))
    driver = result.scalar_one_or_none()
    if not driver:
        raise ResourceNotFoundError("Driver", driver_id)
    return driver


@router.get("/drivers", response_model=DriverListResponse)
async def list_drivers(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    driver_status: Optional[DriverStatus] = Query(None, alias="status"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List drivers, newest first."""
    count_query = select(func.count(Driver.id))
    query = select(Driver)
    if driver_status is not None:
        count_query = count_query.where(Driver.status == driver_status)
        query = query.where(Driver.status == driver_status)

    total = (await db.execute(count_query)).scalar()

    offset = (page - 1) * page_size
    result = await db.execute(
        query.order_by(Driver.created_at.desc(), Driver.id.desc()).offset(offset).limit(page_size)
    )

    return DriverListResponse(
        drivers=[DriverAdminResponse.model_validate(d) for d in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/drivers/{driver_id}", response_model=DriverAdminResponse)
async def get_driver(
    driver_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return DriverAdminResponse.model_validate(await _get_driver(db, driver_id))


@router.post("/drivers", response_model=DriverAdminResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    body: DriverCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    existing = await db.execute(select(Driver).where(Driver.username == body.username))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already registered"
        )

    data = body.model_dump(exclude={"password"})
    driver = Driver(**data, hashed_password=get_password_hash(body.password))

    db.add(driver)
    await db.commit()
    await db.refresh(driver)

    await log_actor_event(
        db, admin, AuditAction.DRIVER_CREATED, "driver", driver.id,
        metadata={"username": driver.username}
    )

    return DriverAdminResponse.model_validate(driver)


@router.put("/drivers/{driver_id}", response_model=DriverAdminResponse)
async def update_driver(
    body: DriverUpdate,
    driver_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Partially update a driver.

    Moving a driver away from ACTIVE ends all their sessions immediately;
    reactivating lifts that block.
    """
    driver = await _get_driver(db, driver_id)
    previous_status = driver.status

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    password = changes.pop("password", None)
    if password:
        driver.hashed_password = get_password_hash(password)
    for field, value in changes.items():
        setattr(driver, field, value)

    await db.commit()
    await db.refresh(driver)

    if driver.status != previous_status:
        if driver.status == DriverStatus.ACTIVE:
            await clear_user_token_revocation(driver.id)
        else:
            await revoke_all_user_tokens(driver.id)

    await log_actor_event(
        db, admin, AuditAction.DRIVER_UPDATED, "driver", driver.id,
        metadata={
            "fields": sorted(changes.keys()) + (["password"] if password else []),
            "status": driver.status.value,
        }
    )

    return DriverAdminResponse.model_validate(driver)


@router.delete("/drivers/{driver_id}", response_model=MessageResponse)
async def delete_driver(
    driver_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a driver with no operational history."""
    driver = await _get_driver(db, driver_id)

    for model, label in ((Route, "routes"), (Report, "reports"), (Shift, "shifts")):
        count = (await db.execute(
            select(func.count(model.id)).where(model.driver_id == driver_id)
        )).scalar()
        if count:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot delete driver with existing {label}; deactivate instead"
            )

    username = driver.username
    await db.delete(driver)
    await db.commit()

    await revoke_all_user_tokens(driver_id)

    await log_actor_event(
        db, admin, AuditAction.DRIVER_DELETED, "driver", driver_id,
        metadata={"username": username}
    )

    return MessageResponse(message=f"Driver {username} deleted")


# Routes

@router.get("/routes", response_model=List[RouteSummary])
async def admin_list_routes(
    route_status: Optional[RouteStatus] = Query(None, alias="status"),
    route_date: Optional[date_type] = Query(None, alias="date"),
    driver_id: Optional[int] = Query(None),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    routes = await list_routes(db, driver_id=driver_id, status=route_status, route_date=route_date)
    return [await build_route_summary(db, route) for route in routes]


@router.get("/routes/{route_id}", response_model=RouteResponse)
async def admin_get_route(
    route_id: str = Path(..., description="Route ID"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await build_route_response(db, await get_route(db, route_id))


@router.post("/routes", response_model=RouteResponse, status_code=status.HTTP_201_CREATED)
async def admin_create_route(
    body: RouteCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a route together with its stops, in the order given."""
    existing = await db.execute(select(Route).where(Route.id == body.id))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Route {body.id} already exists"
        )

    if body.driver_id is not None:
        await _get_driver(db, body.driver_id)

    route = Route(
        id=body.id,
        date=body.date,
        zone=body.zone,
        vehicle_info=body.vehicle_info,
        driver_id=body.driver_id,
        status=RouteStatus.PENDING,
    )
    db.add(route)
    # Parent row first so stop inserts satisfy the foreign key
    await db.flush()

    for stop in body.deliveries:
        db.add(Delivery(route_id=route.id, **stop.model_dump()))

    await db.commit()
    await db.refresh(route)

    await log_actor_event(
        db, admin, AuditAction.ROUTE_CREATED, "route", route.id,
        metadata={"deliveries": len(body.deliveries), "driver_id": route.driver_id}
    )

    return await build_route_response(db, route)


@router.put("/routes/{route_id}/status", response_model=RouteResponse)
async def admin_update_route_status(
    body: RouteStatusUpdate,
    route_id: str = Path(..., description="Route ID"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Apply the route lifecycle on behalf of dispatch (e.g. cancel a PENDING route)."""
    route = await get_route(db, route_id)

    previous = route.status
    if await change_route_status(db, route, body.status):
        await log_actor_event(
            db, admin, AuditAction.ROUTE_STATUS_CHANGED, "route", route.id,
            metadata={"from": previous.value, "to": body.status.value}
        )

    return await build_route_response(db, route)


# Deliveries

@router.get("/deliveries", response_model=List[DeliveryResponse])
async def admin_list_deliveries(
    delivery_status: Optional[DeliveryStatus] = Query(None, alias="status"),
    route_id: Optional[str] = Query(None),
    route_date: Optional[date_type] = Query(None, alias="date"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    query = select(Delivery).join(Route, Route.id == Delivery.route_id)

    if delivery_status is not None:
        query = query.where(Delivery.status == delivery_status)
    if route_id is not None:
        query = query.where(Delivery.route_id == route_id)
    if route_date is not None:
        query = query.where(Route.date == route_date)

    result = await db.execute(query.order_by(Delivery.route_id, Delivery.id))
    return [DeliveryResponse.model_validate(d) for d in result.scalars().all()]


# Reports

@router.get("/reports", response_model=List[ReportResponse])
async def admin_list_reports(
    report_status: Optional[ReportStatus] = Query(None, alias="status"),
    driver_id: Optional[int] = Query(None),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    query = select(Report)
    if report_status is not None:
        query = query.where(Report.status == report_status)
    if driver_id is not None:
        query = query.where(Report.driver_id == driver_id)

    result = await db.execute(query.order_by(Report.created_at.desc(), Report.id.desc()))
    return [ReportResponse.model_validate(r) for r in result.scalars().all()]


@router.put("/reports/{report_id}/status", response_model=ReportResponse)
async def admin_update_report_status(
    body: ReportStatusUpdate,
    report_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Set a report's status. RESOLVED stamps resolved_at; anything else clears it."""
    result = await db.execute(select(Report).where(Report.id == report_id))
    report = result.scalar_one_or_none()
    if not report:
        raise ResourceNotFoundError("Report", report_id)

    previous = report.status
    report.status = body.status
    report.resolved_at = datetime.utcnow() if body.status == ReportStatus.RESOLVED else None

    await db.commit()
    await db.refresh(report)

    await log_actor_event(
        db, admin, AuditAction.REPORT_STATUS_CHANGED, "report", report.id,
        metadata={"from": previous.value, "to": body.status.value}
    )

    return ReportResponse.model_validate(report)


# Audit

@router.get("/audit-logs", response_model=List[AuditLogResponse])
async def admin_audit_logs(
    target_type: Optional[str] = Query(None),
    target_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Audit trail, most recent first."""
    logs = await get_audit_trail(db, target_type=target_type, target_id=target_id, action=action, limit=limit)
    return [AuditLogResponse.model_validate(entry) for entry in logs]
