from datetime import datetime, timezone
from pathlib import Path

import pytest

from obralink import models
from obralink.core.enums import ReportStatus
from obralink.core.report_status import StageState, ValidationState, derive_status

T0 = datetime(2026, 5, 4, 18, 0, tzinfo=timezone.utc)


def _state(supervisor: bool, subcontractor: bool, general_contractor: bool) -> ValidationState:
    return ValidationState(
        supervisor=StageState(supervisor, T0 if supervisor else None),
        subcontractor=StageState(subcontractor, T0 if subcontractor else None),
        general_contractor=StageState(general_contractor, T0 if general_contractor else None),
    )


@pytest.mark.parametrize(
    "flags, expected",
    [
        ((False, False, False), ReportStatus.DRAFT),
        ((True, False, False), ReportStatus.SUBMITTED),
        ((True, True, False), ReportStatus.VALIDATED_BY_SUBCONTRACTOR),
        ((True, True, True), ReportStatus.FULLY_VALIDATED),
    ],
)
def test_derive_status_follows_highest_validated_stage(flags, expected):
    assert derive_status(_state(*flags)) == expected


def test_general_contractor_validation_wins_over_lower_stages():
    # Not reachable through the lifecycle, but the derivation must not depend on it.
    assert derive_status(_state(False, False, True)) == ReportStatus.FULLY_VALIDATED


def test_status_labels_are_human_readable():
    assert ReportStatus.SUBMITTED.label == "submitted"
    assert ReportStatus.VALIDATED_BY_SUBCONTRACTOR.label == "validated by subcontractor"
    assert ReportStatus.FULLY_VALIDATED.label == "fully validated"


def test_models_depend_on_core_not_services():
    for path in Path(models.__file__).parent.glob("*.py"):
        assert "obralink.services" not in path.read_text(), path.name
