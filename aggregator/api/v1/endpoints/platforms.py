"""
Platform listing endpoint.
"""
from typing import List
from fastapi import APIRouter, Depends, Request
from aggregator.api.deps import get_aggregator
from aggregator.models.schemas import PlatformInfo
from aggregator.services.campaign_aggregator import CampaignAggregator
from aggregator.utils import get_logger

router = APIRouter()
logger = get_logger(__name__)

@router.get(
    "",
    response_model=List[PlatformInfo],
    summary="List supported platforms"
)
async def list_platforms(
    request: Request,
    aggregator: CampaignAggregator = Depends(get_aggregator)
) -> List[PlatformInfo]:
    """Supported platforms with their aliases and configured account counts. No upstream calls."""
    registry = aggregator.registry
    result = [
        PlatformInfo(
            platform=name,
            aliases=sorted(registry.adapters[name].aliases),
            credential_type=registry.adapters[name].credential_type,
            accounts_configured=len(aggregator.config.accounts_for(name)),
        )
        for name in registry.supported()
    ]

    logger.info(
        "Platform list completed",
        platforms_returned=len(result),
        request_id=getattr(request.state, "request_id", "unknown")
    )
    return result
