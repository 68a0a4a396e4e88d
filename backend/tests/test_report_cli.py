"""Tests for the report command-line tool."""

import json

import pytest

import report_cli


@pytest.fixture
def record_file(tmp_path, complete_record_data: dict):
    path = tmp_path / "client.json"
    path.write_text(json.dumps(complete_record_data), encoding="utf-8")
    return path


class TestReportCli:
    """Test report_cli.main."""

    def test_json_report(self, record_file, capsys):
        """Test the default output is a JSON report."""
        assert report_cli.main(["--record", str(record_file)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["client_id"] == "c-001"
        assert data["executive_summary"]["cvd"]["band"]["label"] == "High"

    def test_labs_file_merged(self, tmp_path, capsys):
        """Test a delimited lab file is merged into the record."""
        record = tmp_path / "client.json"
        record.write_text(json.dumps({"demographics": {"age": 60, "sex": "female"}}), encoding="utf-8")
        labs = tmp_path / "labs.csv"
        labs.write_text("Creatinine,0.8,mg/dL\nACR,20,mg/g\n", encoding="utf-8")

        assert report_cli.main(["--record", str(record), "--labs", str(labs)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["creatinine_umol_l"] == pytest.approx(70.72)
        assert data["kdigo_category"] == "G2-A1"

    def test_summary_output(self, record_file, capsys):
        """Test the text summary lists each disease category."""
        assert report_cli.main(["--record", str(record_file), "--summary"]) == 0

        out = capsys.readouterr().out
        assert "Executive Summary" in out
        assert "CVD" in out
        assert "KDIGO" in out

    def test_missing_file(self, tmp_path, capsys):
        """Test a missing input file exits with an error."""
        assert report_cli.main(["--record", str(tmp_path / "nope.json")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_invalid_record(self, tmp_path, capsys):
        """Test an invalid record exits with an error."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"demographics": {"age": -1}}), encoding="utf-8")
        assert report_cli.main(["--record", str(path)]) == 1
        assert "Invalid client record" in capsys.readouterr().err
