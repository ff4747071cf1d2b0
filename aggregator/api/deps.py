"""
Dependencies shared by API endpoints.
"""
from fastapi import HTTPException, Request, status

from aggregator.services.campaign_aggregator import CampaignAggregator
from aggregator.utils import get_logger

logger = get_logger(__name__)

def get_aggregator(request: Request) -> CampaignAggregator:
    """
    Aggregator created in the application lifespan.

    Raises:
        HTTPException: 503 if startup did not complete
    """
    aggregator = getattr(request.app.state, "aggregator", None)
    if aggregator is None:
        logger.error("Aggregator requested before startup completed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Campaign aggregator is not initialized"
        )
    return aggregator
