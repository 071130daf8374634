"""ccforge CLI 输出格式化器。

支持两种输出格式：
- JSONFormatter：结构化JSON输出，供脚本和CI使用
- TableFormatter：人类可读的表格输出

JSON输出遵循统一结构：
{
    "success": boolean,
    "message": string,
    "data": object,
    "warnings": array,
    "errors": array
}
"""

import json
import os
import shutil
import sys
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TextIO

from ..models import RecoveryReport, ValidationReport


class BaseFormatter(ABC):
    """输出格式化器的抽象基类。"""

    def __init__(self, file: Optional[TextIO] = None):
        self.file = file if file is not None else sys.stdout

    @abstractmethod
    def format_command_result(
        self,
        success: bool,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        warnings: Optional[List[str]] = None,
        errors: Optional[List[str]] = None
    ) -> str:
        """格式化CLI命令结果。"""

    @abstractmethod
    def format_hook_list(self, hooks: List[Dict[str, Any]]) -> str:
        """格式化钩子状态列表（registry.get_hook_status() 的输出）。"""

    @abstractmethod
    def format_validation_report(self, report: ValidationReport,
                                 report_path: Optional[str] = None) -> str:
        """格式化一次验证运行的报告。"""

    @abstractmethod
    def format_recovery_report(self, report: RecoveryReport, dry_run: bool = False) -> str:
        """格式化恢复结果：错误类别、已尝试的修复及其结果、手动步骤。"""

    def emit(self, text: str) -> None:
        """写出格式化结果。"""
        if text:
            print(text, file=self.file)


class JSONFormatter(BaseFormatter):
    """JSON格式输出器。"""

    def __init__(self, file: Optional[TextIO] = None, pretty: bool = True):
        super().__init__(file)
        self.pretty = pretty

    def format_command_result(
        self,
        success: bool,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        warnings: Optional[List[str]] = None,
        errors: Optional[List[str]] = None
    ) -> str:
        result = {
            "success": success,
            "message": message,
            "data": data or {},
            "warnings": warnings or [],
            "errors": errors or []
        }
        return self._format_json(result)

    def format_hook_list(self, hooks: List[Dict[str, Any]]) -> str:
        enabled = sum(1 for hook in hooks if hook.get("enabled"))
        return self.format_command_result(
            True,
            f"Found {len(hooks)} hooks ({enabled} enabled)",
            data={"hooks": hooks, "total_count": len(hooks), "enabled_count": enabled},
        )

    def format_validation_report(self, report: ValidationReport,
                                 report_path: Optional[str] = None) -> str:
        data = report.to_dict()
        if report_path:
            data["report_path"] = report_path
        summary = report.summary
        return self.format_command_result(
            report.overall_success,
            f"Validation {'passed' if report.overall_success else 'failed'}: "
            f"{summary.passed} passed, {summary.failed} failed, {summary.skipped} skipped",
            data=data,
            errors=[f"{r.level}: {r.command}" for r in report.failed_results],
        )

    def format_recovery_report(self, report: RecoveryReport, dry_run: bool = False) -> str:
        data = report.to_dict()
        data["dry_run"] = dry_run
        if dry_run:
            data["planned_actions"] = [action.to_dict() for action in report.actions]
        return self.format_command_result(
            dry_run or report.fully_recovered,
            _recovery_headline(report, dry_run),
            data=data,
            errors=[outcome.message for _, outcome in report.outcomes if not outcome.success],
        )

    def _format_json(self, obj: Any) -> str:
        if self.pretty:
            return json.dumps(obj, ensure_ascii=False, indent=2, sort_keys=True, default=str)
        return json.dumps(obj, ensure_ascii=False, separators=(',', ':'), default=str)


class TableFormatter(BaseFormatter):
    """表格格式输出器，支持自动列宽和终端颜色。"""

    def __init__(self, file: Optional[TextIO] = None, max_width: Optional[int] = None):
        super().__init__(file)
        self.max_width = max_width or self._get_terminal_width()
        self._supports_color = self._check_color_support()

    def format_command_result(
        self,
        success: bool,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        warnings: Optional[List[str]] = None,
        errors: Optional[List[str]] = None
    ) -> str:
        lines = []

        status_symbol = "✓" if success else "✗"
        status_color = self._green if success else self._red
        lines.append(f"{status_color}{status_symbol} {message}{self._reset}")

        if data:
            lines.append("")
            lines.append(self._format_data_table(data))

        if warnings:
            lines.append("")
            lines.append(f"{self._yellow}Warnings:{self._reset}")
            for warning in warnings:
                lines.append(f"  ⚠ {warning}")

        if errors:
            lines.append("")
            lines.append(f"{self._red}Errors:{self._reset}")
            for error in errors:
                lines.append(f"  ✗ {error}")

        return "\n".join(lines)

    def format_hook_list(self, hooks: List[Dict[str, Any]]) -> str:
        if not hooks:
            return f"{self._yellow}No hooks found{self._reset}"

        lines = [f"{self._bold}Hooks ({len(hooks)}){self._reset}", ""]
        rows = [
            [
                hook.get("name", "N/A"),
                hook.get("type", "N/A"),
                hook.get("state", "N/A"),
                self._truncate(str(hook.get("path", "N/A")), 50),
            ]
            for hook in hooks
        ]
        lines.append(self._create_table(["Name", "Runtime", "State", "Path"], rows))
        return "\n".join(lines)

    def format_validation_report(self, report: ValidationReport,
                                 report_path: Optional[str] = None) -> str:
        lines = []
        if report.overall_success:
            lines.append(f"{self._green}✓ Validation passed: {report.project_name}{self._reset}")
        else:
            lines.append(f"{self._red}✗ Validation failed: {report.project_name}{self._reset}")
        lines.append("")

        rows = []
        for result in report.results:
            if result.skipped:
                status = "skipped"
            elif result.success:
                status = "passed"
            else:
                status = "failed"
            rows.append([
                result.level,
                status,
                self._truncate(result.command or "-", 50),
                f"{result.duration_ms}ms",
            ])
        if rows:
            lines.append(self._create_table(["Level", "Status", "Command", "Duration"], rows))
            lines.append("")

        summary = report.summary
        lines.append(
            f"{self._bold}Summary:{self._reset} {summary.total} total, {summary.passed} passed, "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )

        for result in report.failed_results:
            if result.error:
                lines.append("")
                lines.append(f"{self._red}{result.level} ({result.command}):{self._reset}")
                lines.append(f"  {self._truncate(result.error.strip(), 500)}")

        if report_path:
            lines.append("")
            lines.append(f"Report saved to {report_path}")
        return "\n".join(lines)

    def format_recovery_report(self, report: RecoveryReport, dry_run: bool = False) -> str:
        analysis = report.analysis
        lines = [
            f"{self._bold}Error category:{self._reset} {analysis.category.value} "
            f"(severity: {analysis.severity.value}, auto-fixable: "
            f"{'yes' if analysis.auto_fixable else 'no'})",
        ]
        if analysis.context.location:
            lines.append(f"{self._bold}Location:{self._reset} {analysis.context.location}")
        lines.append("")

        if dry_run:
            lines.append(f"{self._bold}Planned actions:{self._reset}")
            for action in report.actions:
                marker = "auto" if action.automated else "manual"
                lines.append(f"  [{action.priority.value}] ({marker}) {action.title}")
        elif report.outcomes:
            lines.append(f"{self._bold}Attempted fixes ({report.successful}/{report.attempted} "
                         f"succeeded):{self._reset}")
            for action, outcome in report.outcomes:
                if outcome.success:
                    lines.append(f"  {self._green}✓{self._reset} {action.title}: {outcome.message}")
                else:
                    lines.append(f"  {self._red}✗{self._reset} {action.title}: {outcome.message}")
        else:
            lines.append(f"{self._yellow}No automated fixes available{self._reset}")

        if report.manual_actions and not dry_run:
            lines.append("")
            lines.append(f"{self._bold}Manual steps:{self._reset}")
            for action in report.manual_actions:
                lines.append(f"  - {action.title}: {action.description}")

        return "\n".join(lines)

    def _create_table(self, headers: List[str], rows: List[List[str]]) -> str:
        """创建格式化的表格。"""
        if not rows:
            return ""

        col_widths = [len(header) for header in headers]
        for row in rows:
            for i, cell in enumerate(row):
                if i < len(col_widths):
                    col_widths[i] = max(col_widths[i], len(str(cell)))

        # 按比例缩减列宽以适应终端宽度
        total_width = sum(col_widths) + len(headers) * 3 - 1
        if total_width > self.max_width:
            scale = (self.max_width - len(headers) * 3 + 1) / sum(col_widths)
            col_widths = [max(8, int(w * scale)) for w in col_widths]

        lines = []
        header_line = " │ ".join(
            header.ljust(col_widths[i]) for i, header in enumerate(headers)
        )
        lines.append(f"{self._bold}{header_line}{self._reset}")
        lines.append("─┼─".join("─" * w for w in col_widths))

        for row in rows:
            lines.append(" │ ".join(
                str(cell).ljust(col_widths[i]) for i, cell in enumerate(row)
            ))

        return "\n".join(lines)

    def _format_data_table(self, data: Dict[str, Any]) -> str:
        lines = []
        for key, value in data.items():
            if isinstance(value, dict):
                lines.append(f"{self._bold}{key}:{self._reset}")
                for sub_key, sub_value in value.items():
                    lines.append(f"  {sub_key}: {sub_value}")
            elif isinstance(value, list):
                lines.append(f"{self._bold}{key}:{self._reset}")
                for item in value:
                    lines.append(f"  - {item}")
            else:
                lines.append(f"{self._bold}{key}:{self._reset} {value}")
        return "\n".join(lines)

    def _truncate(self, text: str, max_length: int) -> str:
        if len(text) <= max_length:
            return text
        return text[:max_length - 3] + "..."

    def _get_terminal_width(self) -> int:
        try:
            return shutil.get_terminal_size().columns
        except (AttributeError, OSError):
            return 80

    def _check_color_support(self) -> bool:
        return (
            hasattr(self.file, 'isatty') and self.file.isatty() and
            os.environ.get('TERM', '').lower() != 'dumb' and
            os.environ.get('NO_COLOR') is None
        )

    # 颜色代码
    @property
    def _reset(self) -> str:
        return "\033[0m" if self._supports_color else ""

    @property
    def _bold(self) -> str:
        return "\033[1m" if self._supports_color else ""

    @property
    def _green(self) -> str:
        return "\033[32m" if self._supports_color else ""

    @property
    def _red(self) -> str:
        return "\033[31m" if self._supports_color else ""

    @property
    def _yellow(self) -> str:
        return "\033[33m" if self._supports_color else ""


def _recovery_headline(report: RecoveryReport, dry_run: bool) -> str:
    category = report.analysis.category.value
    if dry_run:
        return f"{category} error: {len(report.actions)} recovery actions planned"
    return (f"{category} error: {report.successful}/{report.attempted} automated fixes "
            f"succeeded, {len(report.manual_actions)} manual steps")


def create_formatter(format_type: str, file: Optional[TextIO] = None) -> BaseFormatter:
    """根据格式类型创建格式化器。

    Raises:
        ValueError: 不支持的格式类型
    """
    format_type = (format_type or "table").lower()
    if format_type == "json":
        return JSONFormatter(file)
    if format_type == "table":
        return TableFormatter(file)
    raise ValueError(f"不支持的输出格式: {format_type}")


__all__ = [
    "BaseFormatter",
    "JSONFormatter",
    "TableFormatter",
    "create_formatter",
]
