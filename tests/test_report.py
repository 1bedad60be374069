"""Tests for shape-agnostic report access."""

from __future__ import annotations

from custom_components.dyson_local.state.report import ReportShape, StateReport


def test_snapshot_returns_scalar_values() -> None:
    """Snapshot fields are their own current value."""

    report = StateReport.snapshot({"fpwr": "ON", "fnsp": "0004"})

    assert report["fpwr"] == "ON"
    assert report.has_all("fpwr", "fnsp")
    assert not report.has_all("fpwr", "auto")
    assert report.second("fpwr") is None
    assert report.changes() == {"fpwr": "ON", "fnsp": "0004"}


def test_delta_returns_second_element() -> None:
    """Delta fields carry ``[previous, current]`` and expose the current one."""

    report = StateReport.delta({"oson": ["OFF", "ON"], "nmod": ["OFF", "OFF"]})

    assert report["oson"] == "ON"
    assert report.second("oson") == "ON"
    assert report.changes() == {"oson": ["OFF", "ON"]}
    assert dict(report) == {"oson": "ON", "nmod": "OFF"}


def test_delta_extract_tolerates_scalars() -> None:
    """A malformed delta value yields no current value."""

    assert ReportShape.DELTA.extract("ON") is None
    assert ReportShape.DELTA.extract(("OFF", "ON")) == "ON"
    assert ReportShape.SNAPSHOT.extract("ON") == "ON"


def test_snapshot_lists_and_nulls_are_not_current_values() -> None:
    """Only scalar snapshot fields count as present; the raw value stays reachable."""

    report = StateReport.snapshot(
        {"fpwr": "ON", "tilt": ["OK", "TILT"], "ercd": None}
    )

    assert "fpwr" in report
    assert "tilt" not in report
    assert "ercd" not in report
    assert len(report) == 1
    assert dict(report) == {"fpwr": "ON"}
    assert report.raw("tilt") == ["OK", "TILT"]
    assert report.second("tilt") == "TILT"
    assert report.raw("ercd") is None
    assert ReportShape.SNAPSHOT.extract(["OK", "TILT"]) is None
