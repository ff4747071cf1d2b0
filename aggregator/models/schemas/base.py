"""
Base schemas used across the API.
"""
from pydantic import BaseModel, ConfigDict

class ErrorResponse(BaseModel):
    """Error body returned for every non-2xx response."""
    error: str

    model_config = ConfigDict(json_schema_extra={
        "example": {"error": "Unsupported platform: tiktok. Supported platforms: meta, newsbreak, snap"}
    })
