"""
Tests for batch file loading and JSON export of results.
"""

import json

from adapters.batch_loader import load_identifiers, parse_identifier_lines
from adapters.json_exporter import dump_results, export_results_json
from core.domain.models import TireResult

from conftest import MICHELIN_SGTIN


class TestBatchLoader:
    def test_skips_comments_blanks_and_foreign_lines(self):
        text = "\n".join(
            [
                "# lector RFID, turno de mañana",
                "",
                f"  {MICHELIN_SGTIN}  ",
                "EPC;TID;RSSI",
                "urn:epc:id:sgtin:8019227.012345.1",
            ]
        )

        assert parse_identifier_lines(text) == [MICHELIN_SGTIN, "urn:epc:id:sgtin:8019227.012345.1"]

    def test_keeps_duplicates_and_order(self):
        text = f"{MICHELIN_SGTIN}\n{MICHELIN_SGTIN}\n"
        assert parse_identifier_lines(text) == [MICHELIN_SGTIN, MICHELIN_SGTIN]

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "uiis.txt"
        path.write_text(f"{MICHELIN_SGTIN}\r\n", encoding="utf-8")

        assert load_identifiers(path) == [MICHELIN_SGTIN]


class TestJsonExport:
    def test_dump_keeps_data_and_errors(self):
        results = [
            TireResult(sgtin=MICHELIN_SGTIN, manufacturer="Michelin", gtin13="0866997625752", data={"a": 1}),
            TireResult(sgtin="bad", manufacturer="Unknown", error={"code": "SGTIN_PARSE_ERROR"}),
        ]

        payload = json.loads(dump_results(results))

        assert payload[0]["data"] == {"a": 1}
        assert payload[0]["error"] is None
        assert payload[1]["error"]["code"] == "SGTIN_PARSE_ERROR"
        assert payload[1]["data"] is None

    def test_export_creates_parent_directories(self, tmp_path):
        output = tmp_path / "out" / "results.json"
        result = TireResult(sgtin=MICHELIN_SGTIN, manufacturer="Michelin")

        path = export_results_json(results=[result], output_path=output)

        assert path == output
        assert json.loads(output.read_text(encoding="utf-8"))[0]["sgtin"] == MICHELIN_SGTIN
