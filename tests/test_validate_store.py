#!/usr/bin/env python3
"""Tests for collection file validation."""

import json

from fleet.loader import load_schema
from validate_store import main, validate_collection_file

VEHICLE = {
    "id": "1",
    "plateNumber": "123-45-678",
    "model": "Toyota Corolla",
    "vin": "JT2BF28K0X0123456",
    "barcode": "BAR001",
    "maintenanceStatus": "ok",
    "addedDate": "2024-01-15",
}


def write(path, data):
    path.write_text(json.dumps(data))
    return path


class TestValidateCollectionFile:
    """Tests for validate_collection_file."""

    def test_valid_file(self, tmp_path):
        path = write(tmp_path / "vehicles.json", [VEHICLE])
        assert validate_collection_file(path, load_schema()["vehicles"]) == []

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "vehicles.json"
        path.write_text("[{")
        errors = validate_collection_file(path, load_schema()["vehicles"])
        assert errors[0].startswith("JSON parse error")

    def test_schema_error_with_path(self, tmp_path):
        bad = dict(VEHICLE, maintenanceStatus="broken")
        path = write(tmp_path / "vehicles.json", [bad])
        errors = validate_collection_file(path, load_schema()["vehicles"])
        assert errors[0].startswith("Schema validation error")
        assert errors[1] == "  at path: 0.maintenanceStatus"

    def test_duplicate_ids(self, tmp_path):
        path = write(tmp_path / "vehicles.json", [VEHICLE, VEHICLE])
        errors = validate_collection_file(path, load_schema()["vehicles"])
        assert errors == ["Duplicate ids: 1"]

    def test_legacy_report_accepted(self, tmp_path):
        legacy = {"id": "5", "barcode": "BAR001", "mileage": "1200", "image": "a.jpg"}
        path = write(tmp_path / "publicReports.json", [legacy])
        assert validate_collection_file(path, load_schema()["publicReports"]) == []


class TestMain:
    """Tests for the validator entry point."""

    def test_missing_directory(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope")]) == 1
        assert "not found" in capsys.readouterr().out

    def test_no_files_is_warning(self, tmp_path, capsys):
        assert main([str(tmp_path)]) == 0
        assert "Warning" in capsys.readouterr().out

    def test_reports_each_file(self, tmp_path, capsys):
        write(tmp_path / "vehicles.json", [VEHICLE])
        (tmp_path / "publicReports.json").write_text("not json")
        assert main([str(tmp_path)]) == 1
        out = capsys.readouterr().out
        assert "OK: vehicles.json" in out
        assert "FAIL: publicReports.json" in out
