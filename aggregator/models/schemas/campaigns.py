"""
Pydantic schemas for normalized campaigns and aggregation results.
Wire field names are snake_case to stay compatible with existing dashboard consumers.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict

class Campaign(BaseModel):
    """A campaign record normalized from any upstream platform."""
    id: Optional[str] = None
    name: Optional[str] = None
    status: str = Field(description="Upper-cased upstream status (ACTIVE, PAUSED or raw other value)")
    objective: Optional[str] = None
    daily_budget: Optional[int] = Field(None, description="Daily budget in whole major currency units")
    created_time: Optional[str] = None
    updated_time: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "5f2c7c4e-0000-4a7b-9d1e-0c3a4f1e2b11",
            "name": "Spring Sale - Prospecting",
            "status": "ACTIVE",
            "objective": "WEB_CONVERSION",
            "daily_budget": 50,
            "created_time": "2025-03-01T10:00:00.000Z",
            "updated_time": "2025-03-04T08:12:45.000Z"
        }
    })

class AccountResult(BaseModel):
    account_name: str
    campaigns: List[Campaign] = Field(default_factory=list)
    label: Optional[str] = None
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "account_name": self.account_name,
            "campaigns": [c.model_dump() for c in self.campaigns],
        }
        if self.label:
            payload["label"] = self.label
        if self.error is not None:
            payload["error"] = self.error
        return payload

class PlatformResult(BaseModel):
    """Response body of one aggregation call."""
    platform: str
    accounts: Dict[str, AccountResult] = Field(default_factory=dict)
    total_campaigns: int = Field(ge=0)
    fetched_at: str
    # Meta only: accounts grouped by business manager label
    business_managers: Optional[Dict[str, Dict[str, Dict[str, AccountResult]]]] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "platform": self.platform,
            "accounts": {acct_id: res.to_payload() for acct_id, res in self.accounts.items()},
            "total_campaigns": self.total_campaigns,
            "fetched_at": self.fetched_at,
        }
        if self.business_managers is not None:
            payload["business_managers"] = {
                bm: {"accounts": {acct_id: res.to_payload() for acct_id, res in group.get("accounts", {}).items()}}
                for bm, group in self.business_managers.items()
            }
        return payload

class PlatformInfo(BaseModel):
    platform: str
    aliases: List[str] = Field(default_factory=list)
    credential_type: str
    accounts_configured: int = Field(ge=0)
