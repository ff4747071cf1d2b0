from aggregator.integrations import MetaIntegration, NewsBreakIntegration, SnapIntegration
from aggregator.services.normalizer import FieldAliases, filter_and_normalize, is_active_or_paused


def _records(*statuses):
    return [{"id": str(i), "name": f"c{i}", "status": s} for i, s in enumerate(statuses)]


def test_default_filter_keeps_active_and_paused_case_insensitively():
    records = _records("ACTIVE", "PAUSED", "ARCHIVED", "DELETED", "active", "Paused")
    campaigns = filter_and_normalize(records, FieldAliases(), 100)
    assert [c.status for c in campaigns] == ["ACTIVE", "PAUSED", "ACTIVE", "PAUSED"]


def test_include_all_keeps_every_status():
    records = _records("ACTIVE", "PAUSED", "ARCHIVED", "deleted")
    campaigns = filter_and_normalize(records, FieldAliases(), 100, include_all=True)
    assert [c.status for c in campaigns] == ["ACTIVE", "PAUSED", "ARCHIVED", "DELETED"]


def test_missing_status_is_dropped_by_default():
    assert not is_active_or_paused(None)
    assert not is_active_or_paused("")
    assert filter_and_normalize([{"id": "1"}], FieldAliases(), 100) == []


def test_snap_record_unwrapped_and_micros_converted(fake_http):
    adapter = SnapIntegration(fake_http)
    campaign = adapter.normalize_record({
        "sub_request_status": "SUCCESS",
        "campaign": {
            "id": "abc",
            "name": "Snap Campaign",
            "status": "ACTIVE",
            "objective": "WEB_CONVERSION",
            "daily_budget_micro": 1_000_000,
            "created_at": "2025-01-01T00:00:00.000Z",
            "updated_at": "2025-01-03T00:00:00.000Z",
        },
    })
    assert campaign.id == "abc"
    assert campaign.daily_budget == 1
    assert campaign.objective == "WEB_CONVERSION"
    assert campaign.created_time == "2025-01-01T00:00:00.000Z"
    assert campaign.updated_time == "2025-01-03T00:00:00.000Z"


def test_meta_cents_and_time_aliases(fake_http):
    adapter = MetaIntegration(fake_http)
    campaign = adapter.normalize_record({
        "id": "238",
        "name": "Meta",
        "status": "PAUSED",
        "daily_budget": "250",
        "created_time": "2025-02-01T10:00:00+0000",
    })
    assert campaign.daily_budget == 3
    assert campaign.created_time == "2025-02-01T10:00:00+0000"
    assert campaign.updated_time is None
    assert campaign.objective is None


def test_newsbreak_camel_case_fields(fake_http):
    adapter = NewsBreakIntegration(fake_http)
    campaign = adapter.normalize_record({
        "campaignId": 77,
        "campaignName": "NB",
        "status": "active",
        "budget": None,
        "createTime": "2025-03-01 00:00:00",
        "updateTime": "2025-03-02 00:00:00",
    })
    assert campaign.id == "77"
    assert campaign.name == "NB"
    assert campaign.status == "ACTIVE"
    assert campaign.daily_budget is None
    assert campaign.created_time == "2025-03-01 00:00:00"
    assert campaign.updated_time == "2025-03-02 00:00:00"


def test_non_numeric_budget_normalizes_to_none(fake_http):
    adapter = MetaIntegration(fake_http)
    campaign = adapter.normalize_record({"id": "1", "status": "ACTIVE", "daily_budget": "n/a"})
    assert campaign.daily_budget is None
