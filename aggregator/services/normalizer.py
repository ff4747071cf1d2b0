"""Record normalization: status filter, budget conversion and field aliasing.

Platform adapters describe their field names with ``FieldAliases``; this module
turns any upstream record into the common ``Campaign`` shape.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from aggregator.models.schemas.campaigns import Campaign
from aggregator.utils.money import minor_to_major

RETAINED_STATUSES = frozenset({"ACTIVE", "PAUSED"})


@dataclass(frozen=True)
class FieldAliases:
    """Upstream field names per canonical field, first present wins."""

    id: Sequence[str] = ("id", "campaignId")
    name: Sequence[str] = ("name", "campaignName")
    status: Sequence[str] = ("status",)
    objective: Sequence[str] = ("objective",)
    budget: Sequence[str] = ("daily_budget",)
    created: Sequence[str] = ("created_at", "created_time", "createTime")
    updated: Sequence[str] = ("updated_at", "updated_time", "updateTime")


def pick(raw: Mapping[str, Any], names: Sequence[str]) -> Any:
    for name in names:
        value = raw.get(name)
        if value not in (None, ""):
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def normalize_status(value: Any) -> str:
    return str(value or "").strip().upper()


def is_active_or_paused(status: Any) -> bool:
    if not status:
        return False
    return normalize_status(status) in RETAINED_STATUSES


def normalize_record(raw: Mapping[str, Any], aliases: FieldAliases, minor_unit_factor: int) -> Campaign:
    return Campaign(
        id=_as_text(pick(raw, aliases.id)),
        name=_as_text(pick(raw, aliases.name)),
        status=normalize_status(pick(raw, aliases.status)),
        objective=_as_text(pick(raw, aliases.objective)),
        daily_budget=minor_to_major(pick(raw, aliases.budget), minor_unit_factor),
        created_time=_as_text(pick(raw, aliases.created)),
        updated_time=_as_text(pick(raw, aliases.updated)),
    )


def filter_and_normalize(
    records: Iterable[Dict[str, Any]],
    aliases: FieldAliases,
    minor_unit_factor: int,
    *,
    include_all: bool = False,
) -> List[Campaign]:
    """Normalize ``records`` keeping ACTIVE/PAUSED only unless ``include_all``."""
    campaigns: List[Campaign] = []
    for raw in records:
        if not isinstance(raw, dict):
            continue
        if not include_all and not is_active_or_paused(pick(raw, aliases.status)):
            continue
        campaigns.append(normalize_record(raw, aliases, minor_unit_factor))
    return campaigns


__all__ = [
    "RETAINED_STATUSES",
    "FieldAliases",
    "pick",
    "normalize_status",
    "is_active_or_paused",
    "normalize_record",
    "filter_and_normalize",
]
