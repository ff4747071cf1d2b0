"""
Campaign aggregation endpoint.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
import time
from aggregator.api.deps import get_aggregator
from aggregator.config import CACHE_CONTROL
from aggregator.errors import AggregatorError
from aggregator.models.schemas import ErrorResponse, PlatformResult
from aggregator.services.campaign_aggregator import CampaignAggregator
from aggregator.utils import get_logger, log_performance

router = APIRouter()
logger = get_logger(__name__)

STATUS_ALL = "all"

@router.get(
    "",
    response_model=PlatformResult,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="List campaigns of every configured account of one platform"
)
async def list_campaigns(
    request: Request,
    platform: Optional[str] = Query(None, description="meta, snap or newsbreak (aliases accepted)"),
    status_filter: Optional[str] = Query(None, alias="status", description="'all' disables the ACTIVE/PAUSED filter"),
    aggregator: CampaignAggregator = Depends(get_aggregator)
) -> JSONResponse:
    """Aggregate campaigns for one platform.

    Accounts that fail upstream still appear with an ``error`` field and no
    campaigns; the response is 200 as long as the platform itself could be
    served.
    """
    start_time = time.time()
    request_id = getattr(request.state, "request_id", "unknown")

    if not platform or not platform.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required query parameter: platform"
        )

    include_all = (status_filter or "").strip().lower() == STATUS_ALL

    logger.info(
        "Campaign aggregation requested",
        platform=platform,
        include_all=include_all,
        request_id=request_id
    )

    try:
        result = await aggregator.aggregate(platform, include_all=include_all)
    except AggregatorError:
        raise
    except Exception as e:
        logger.error(
            "Campaign aggregation failed",
            platform=platform,
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Failed to fetch campaigns"
        )

    duration_ms = (time.time() - start_time) * 1000
    log_performance(
        operation="list_campaigns",
        duration_ms=duration_ms,
        additional_data={"platform": result.platform, "total_campaigns": result.total_campaigns}
    )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=result.to_payload(),
        headers={"Cache-Control": CACHE_CONTROL}
    )
