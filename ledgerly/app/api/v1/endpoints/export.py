"""
Export API Endpoints.

CSV downloads, available on plans with the dataExport feature.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from ledgerly.app.db.session import get_db
from ledgerly.app.core.dependencies import get_current_user
from ledgerly.app.core.guards import require_feature
from ledgerly.app.schemas.export import ExportRequest, ExportAvailability
from ledgerly.app.services.export import ExportService
from ledgerly.app.services.subscriptions import SubscriptionService, minimum_plan_for

router = APIRouter(prefix="/export", tags=["Export"])

EXPORT_FEATURE = "dataExport"


@router.post("")
async def export_data(
    export_request: ExportRequest,
    current_user: dict = Depends(require_feature(EXPORT_FEATURE)),
    db: AsyncSession = Depends(get_db)
):
    """Download a CSV file. 403 on plans without data export, 400 for pdf."""
    filename, content = await ExportService.export(db, current_user["user_id"], export_request)
    return Response(
        # BOM so spreadsheet apps detect UTF-8
        content="\ufeff" + content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("", response_model=ExportAvailability)
async def export_availability(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user_id = current_user["user_id"]
    subscription = await SubscriptionService.get_subscription(db, user_id)
    available = await SubscriptionService.has_feature(db, user_id, EXPORT_FEATURE)
    upgrade = minimum_plan_for(EXPORT_FEATURE)
    return ExportAvailability(
        available=available,
        plan=subscription.plan.value,
        upgrade_required=None if available or upgrade is None else upgrade.value,
    )
