from __future__ import annotations

from pricing_runner.models.outcome import ProviderOutcome
from pricing_runner.models.row import CanonicalRow, ValidationFailure
from pricing_runner.services.aggregator import aggregate


def _outcome(tier: str) -> ProviderOutcome:
    return ProviderOutcome(price=f"${tier}", url=f"u-{tier}", machine_type="db-custom-4", specs="4/16")


def test_validation_failure_yields_error_only_record():
    record = aggregate(2, ValidationFailure(sl=2, missing_fields=("OS with version",)))
    assert record.to_dict() == {"Sl": 2, "Error": "Missing required fields: OS with version"}
    assert record.is_error
    assert record.timestamp is None


def test_partial_failure_nulls_only_failed_tier():
    row = CanonicalRow(sl=1, values={"Sl": 1})
    record = aggregate(
        1, row, {"ondemand": _outcome("ondemand"), "1year": None, "3year": _outcome("3year")}
    )
    data = record.to_dict()
    assert data["ondemand_price"] == "$ondemand"
    assert data["3year_price"] == "$3year"
    assert data["3year_machineType"] == "db-custom-4"
    for field in ("price", "url", "machineType", "specs"):
        assert data[f"1year_{field}"] is None
    assert data["timestamp"].endswith("Z")


def test_missing_outcomes_count_as_failed():
    record = aggregate(3, CanonicalRow(sl=3, values={"Sl": 3}), None, timestamp="2024-01-01T00:00:00Z")
    data = record.to_dict()
    assert data["timestamp"] == "2024-01-01T00:00:00Z"
    assert data["ondemand_price"] is None
    assert data["1year_url"] is None
    assert data["3year_specs"] is None
    assert set(data) == {"Sl", "timestamp"} | {
        f"{t}_{f}" for t in ("ondemand", "1year", "3year") for f in ("price", "url", "machineType", "specs")
    }
