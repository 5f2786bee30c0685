from fastapi import APIRouter, Depends

from hookmap.schemas.api_schemas import UsageResponse
from hookmap.dependencies import get_usage_monitor
from hookmap.application.usage_monitor import UsageMonitor

router = APIRouter()


def to_response(monitor: UsageMonitor) -> UsageResponse:
    return UsageResponse(
        used=monitor.usage["used"],
        limit=monitor.usage["limit"],
        over_limit=monitor.over_limit,
    )

@router.get("/usage", response_model=UsageResponse)
async def get_usage(monitor: UsageMonitor = Depends(get_usage_monitor)):
    """
    Last polled usage of the account.
    """
    return to_response(monitor)

@router.post("/usage/refresh", response_model=UsageResponse)
async def refresh_usage(monitor: UsageMonitor = Depends(get_usage_monitor)):
    """
    Poll usage now instead of waiting for the next interval.
    """
    await monitor.refresh()
    return to_response(monitor)
