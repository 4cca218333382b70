from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from flowboard.api.deps import get_current_user, require_admin, with_timeout
from flowboard.core.config import settings
from flowboard.core.errors import ValidationError
from flowboard.db.database import get_db
from flowboard.schemas.auth import Principal
from flowboard.schemas.common import Envelope, SuccessResponse
from flowboard.schemas.dashboard import (
    AddToDashboardRequest,
    AddToDashboardResponse,
    UpdateLayoutRequest,
    UserDashboardResponse,
)
from flowboard.services.dashboard_service import DashboardService

router = APIRouter(prefix=settings.API_PREFIX, tags=["Dashboards"])


@router.get("/user-dashboard", response_model=Envelope[UserDashboardResponse])
async def user_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(get_current_user)
):
    """
    The company's active dashboard with its widgets in display order.
    """
    result = await with_timeout(
        DashboardService.resolve_dashboard(db, current_user.company_id, current_user.role)
    )
    return Envelope[UserDashboardResponse](data=result)


@router.post(
    "/add-to-dashboard",
    response_model=Envelope[AddToDashboardResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_to_dashboard(
    request: AddToDashboardRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_admin("add widgets to the dashboard"))
):
    """
    Place an existing widget definition on the company's dashboard.
    """
    layout = await with_timeout(DashboardService.add_to_dashboard(db, current_user, request))
    return Envelope[AddToDashboardResponse](data=AddToDashboardResponse(layout_id=layout.id), message="Widget added to dashboard")


@router.delete("/remove-widget/{layout_id}", response_model=SuccessResponse)
async def remove_widget(
    layout_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_admin("remove widgets"))
):
    """
    Remove a widget placement. The widget definition is kept.
    """
    await with_timeout(DashboardService.remove_layout(db, current_user, layout_id))
    return SuccessResponse()


@router.post("/update-layout", response_model=SuccessResponse)
async def update_layout(
    request: UpdateLayoutRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_admin("update the layout"))
):
    """
    Save new positions/sizes for widgets on the company's dashboard.
    """
    if request.layouts is None:
        raise ValidationError("layouts is required")

    await with_timeout(DashboardService.update_layouts(db, current_user, request.layouts))
    return SuccessResponse()
