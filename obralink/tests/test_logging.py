import json
import logging

from obralink.core.logging import JsonFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "obralink.services.daily_report_service",
        logging.WARNING,
        __file__,
        10,
        "daily report %s rejected",
        ("amend",),
        None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_emits_message_and_extra_fields():
    line = JsonFormatter().format(_record(report_id="P1-20260504-ab12cd34", error_kind="Conflict"))

    payload = json.loads(line)
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "obralink.services.daily_report_service"
    assert payload["message"] == "daily report amend rejected"
    assert payload["extra"] == {"report_id": "P1-20260504-ab12cd34", "error_kind": "Conflict"}
    assert payload["timestamp"].endswith("+00:00")


def test_json_formatter_omits_extra_when_none_given():
    payload = json.loads(JsonFormatter().format(_record()))

    assert "extra" not in payload
