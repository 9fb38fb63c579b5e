"""
Driver Report API Endpoints.

Drivers file issue reports (manual or from a failed vehicle inspection)
and follow their status. Only dispatch changes a report afterwards.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lastmile.app.db.session import get_db
from lastmile.app.models.report import Report, ReportStatus
from lastmile.app.schemas.report import ReportCreate, ReportResponse
from lastmile.app.core.guards import require_driver
from lastmile.app.core.exceptions import ResourceNotFoundError
from lastmile.app.services.audit import log_actor_event, AuditAction
from lastmile.app.services.photo_upload import PhotoUploader, get_photo_uploader

router = APIRouter(prefix="/reports", tags=["Driver - Reports"])

REPORT_FOLDER = "reports"


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    body: ReportCreate,
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    uploader: PhotoUploader = Depends(get_photo_uploader)
):
    """File a report; the optional photo is uploaded before saving."""
    photo_url = await uploader.upload(body.photo, REPORT_FOLDER) if body.photo else None

    report = Report(
        driver_id=current_user["user_id"],
        issue_type=body.issue_type,
        description=body.description,
        photo_url=photo_url,
        latitude=body.location.latitude if body.location else None,
        longitude=body.location.longitude if body.location else None,
        accuracy=body.location.accuracy if body.location else None,
        status=ReportStatus.PENDING,
    )

    db.add(report)
    await db.commit()
    await db.refresh(report)

    await log_actor_event(
        db, current_user, AuditAction.REPORT_CREATED, "report", report.id,
        metadata={"issue_type": report.issue_type}
    )

    return ReportResponse.model_validate(report)


@router.get("", response_model=List[ReportResponse])
async def list_my_reports(
    status: Optional[ReportStatus] = Query(None, description="Filter by report status"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    query = select(Report).where(Report.driver_id == current_user["user_id"])
    if status is not None:
        query = query.where(Report.status == status)

    result = await db.execute(query.order_by(Report.created_at.desc(), Report.id.desc()))
    return [ReportResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: int = Path(..., description="Report ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(Report).where(Report.id == report_id))
    report = result.scalar_one_or_none()

    if not report:
        raise ResourceNotFoundError("Report", report_id)

    if report.driver_id != current_user["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This report belongs to another driver"
        )

    return ReportResponse.model_validate(report)
