"""Validation report persistence and text summaries.

Reports live in ``<project>/.validation-reports/``: one
``validation-<epoch-ms>.json`` per run plus ``latest.json``, which is
overwritten by every save. Writes go through a temporary file and an atomic
rename; concurrent saves are last-writer-wins.
"""

import time
from pathlib import Path
from typing import Union

from ..exceptions import ReportError
from ..models.validation import ValidationReport
from ..utils.file_operations import FileOperationError, read_json_file, write_json_file
from ..utils.logging import get_logger

REPORTS_DIR = ".validation-reports"
LATEST_REPORT = "latest.json"


def get_reports_dir(project_path: Union[str, Path]) -> Path:
    return Path(project_path) / REPORTS_DIR


def save_report(report: ValidationReport, project_path: Union[str, Path]) -> Path:
    """Write the report and refresh ``latest.json``.

    Returns:
        Path of the timestamped report file

    Raises:
        ReportError: If the report cannot be written
    """
    reports_dir = get_reports_dir(project_path)
    report_path = reports_dir / f"validation-{int(time.time() * 1000)}.json"
    data = report.to_dict()
    try:
        write_json_file(report_path, data)
        write_json_file(reports_dir / LATEST_REPORT, data)
    except FileOperationError as e:
        raise ReportError(f"Cannot save validation report: {e.message}",
                          report_path=report_path, original_error=e) from e

    get_logger().info(f"Validation report saved: {report_path}", report_path=str(report_path))
    return report_path


def load_report(report_path: Union[str, Path]) -> ValidationReport:
    """Read a saved report.

    Raises:
        ReportError: If the file is missing, unreadable or not a report
    """
    try:
        data = read_json_file(report_path)
    except FileOperationError as e:
        raise ReportError(f"Cannot read validation report: {e.message}",
                          report_path=report_path, original_error=e) from e
    try:
        return ValidationReport.from_dict(data)
    except (KeyError, TypeError) as e:
        raise ReportError(f"Malformed validation report: missing or invalid field {e}",
                          report_path=report_path, original_error=e) from e


def load_latest_report(project_path: Union[str, Path]) -> ValidationReport:
    return load_report(get_reports_dir(project_path) / LATEST_REPORT)


def generate_validation_summary(report: ValidationReport) -> str:
    """Plain-text summary of a run."""
    summary = report.summary
    status = "PASSED" if report.overall_success else "FAILED"
    lines = [
        f"Validation {status} for {report.project_name} ({report.timestamp})",
        f"Total: {summary.total}  Passed: {summary.passed}  "
        f"Failed: {summary.failed}  Skipped: {summary.skipped}",
        "",
    ]
    for result in report.results:
        if result.skipped:
            mark = "SKIP"
        elif result.success:
            mark = "PASS"
        else:
            mark = "FAIL"
        lines.append(f"[{mark}] {result.level}: {result.command or '-'} ({result.duration_ms}ms)")

    failed = report.failed_results
    if failed:
        lines.append("")
        lines.append("Failures:")
        for result in failed:
            detail = (result.error or "").strip().splitlines()
            lines.append(f"- {result.level} ({result.command}): {detail[-1] if detail else 'failed'}")
    return "\n".join(lines)


__all__ = [
    "LATEST_REPORT",
    "REPORTS_DIR",
    "generate_validation_summary",
    "get_reports_dir",
    "load_latest_report",
    "load_report",
    "save_report",
]
