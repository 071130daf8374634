"""Validation report persistence tests."""

import json
import threading

import pytest

from ccforge.exceptions import ReportError
from ccforge.models.validation import ValidationReport, ValidationResult
from ccforge.services.report_generator import (
    LATEST_REPORT,
    REPORTS_DIR,
    generate_validation_summary,
    load_latest_report,
    load_report,
    save_report,
)


@pytest.fixture
def report():
    return ValidationReport.build("shop", "2025-01-01T12:00:00", [
        ValidationResult("syntax", "ruff check .", True, 120, output="All checks passed!"),
        ValidationResult("tests", "pytest", False, 3400, error="1 failed, 20 passed"),
        ValidationResult.skipped_level("build", "python -m compileall app"),
    ])


class TestReportPersistence:

    def test_save_and_load_round_trip(self, project_dir, report):
        path = save_report(report, project_dir)

        assert path.parent == project_dir / REPORTS_DIR
        assert path.name.startswith("validation-") and path.suffix == ".json"
        assert load_report(path) == report

    def test_latest_report_refreshed(self, project_dir, report):
        save_report(report, project_dir)
        second = ValidationReport.build("shop", "2025-01-02T08:00:00", [
            ValidationResult("syntax", "ruff check .", True, 90),
        ])
        save_report(second, project_dir)

        assert load_latest_report(project_dir) == second

    def test_saved_json_layout(self, project_dir, report):
        save_report(report, project_dir)
        data = json.loads((project_dir / REPORTS_DIR / LATEST_REPORT).read_text())

        assert data["projectName"] == "shop"
        assert data["overallSuccess"] is False
        assert data["results"][0]["durationMs"] == 120
        assert "project_name" not in data
        assert data["summary"] == {"total": 3, "passed": 1, "failed": 1, "skipped": 1}
        assert data["results"][2]["skipped"] is True

    def test_snake_case_report_still_loads(self, tmp_path):
        path = tmp_path / "legacy.json"
        path.write_text(json.dumps({
            "project_name": "shop",
            "timestamp": "2025-01-01T12:00:00Z",
            "overall_success": True,
            "results": [{"level": "syntax", "command": "true", "success": True, "duration_ms": 7}],
            "summary": {"total": 1, "passed": 1, "failed": 0, "skipped": 0},
        }))

        loaded = load_report(path)
        assert loaded.project_name == "shop"
        assert loaded.overall_success is True
        assert loaded.results[0].duration_ms == 7

    def test_concurrent_saves_leave_valid_latest(self, project_dir, report):
        threads = [threading.Thread(target=save_report, args=(report, project_dir)) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        reports_dir = project_dir / REPORTS_DIR
        assert load_latest_report(project_dir) == report
        assert not list(reports_dir.glob(".*.tmp"))

    def test_missing_report(self, project_dir):
        with pytest.raises(ReportError):
            load_latest_report(project_dir)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ReportError):
            load_report(path)

    def test_missing_fields(self, tmp_path):
        path = tmp_path / "partial.json"
        path.write_text(json.dumps({"project_name": "shop"}))
        with pytest.raises(ReportError) as exc_info:
            load_report(path)
        assert "Malformed" in exc_info.value.message


class TestSummary:

    def test_summary_lists_every_result(self, report):
        text = generate_validation_summary(report)

        assert text.startswith("Validation FAILED for shop")
        assert "Total: 3  Passed: 1  Failed: 1  Skipped: 1" in text
        assert "[PASS] syntax: ruff check ." in text
        assert "[FAIL] tests: pytest" in text
        assert "[SKIP] build" in text
        assert "- tests (pytest): 1 failed, 20 passed" in text

    def test_passing_summary(self):
        passing = ValidationReport.build("shop", "2025-01-01T12:00:00", [
            ValidationResult("syntax", "ruff check .", True, 10),
        ])
        text = generate_validation_summary(passing)
        assert text.startswith("Validation PASSED")
        assert "Failures" not in text
