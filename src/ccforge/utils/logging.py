"""结构化日志系统，为ccforge提供统一的日志记录。

四个日志通道：
- general: 一般运行信息（钩子发现、验证进度）
- error: 错误与异常
- audit: 已执行的恢复动作及其结果
- performance: 钩子执行与验证命令的耗时

支持人类友好格式和JSON格式，文件输出使用RotatingFileHandler。
"""

import json
import logging
import logging.handlers
import os
import sys
import threading
import time
import traceback
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from ..exceptions import CCForgeError

LOG_DIR_ENV = "CCFORGE_LOG_DIR"


class LogLevel(Enum):
    """日志级别枚举。"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_logging_level(self) -> int:
        return getattr(logging, self.name)

    @classmethod
    def from_env(cls, value: Optional[str], default: "LogLevel") -> "LogLevel":
        if not value:
            return default
        try:
            return cls(value.strip().lower())
        except ValueError:
            return default


class LogFormat(Enum):
    """日志格式枚举。"""
    JSON = "json"           # JSON格式，机器可读
    HUMAN = "human"         # 人类友好格式


class LoggerType(Enum):
    """日志器类型枚举。"""
    GENERAL = "general"
    ERROR = "error"
    AUDIT = "audit"
    PERFORMANCE = "performance"


def default_log_dir() -> Path:
    """日志目录：CCFORGE_LOG_DIR 或 ~/.ccforge/logs。"""
    env_dir = os.getenv(LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".ccforge" / "logs"


class StructuredLogger:
    """结构化日志记录器。

    每条记录附带一个 ``structured`` 字典，JSON格式化器会将其展开输出。
    """

    def __init__(self, name: str = "ccforge",
                 log_dir: Optional[Path] = None,
                 log_format: LogFormat = LogFormat.HUMAN,
                 log_level: LogLevel = LogLevel.INFO,
                 enable_console: bool = True,
                 enable_file: bool = True,
                 max_file_size: int = 10 * 1024 * 1024,  # 10MB
                 backup_count: int = 5):
        """初始化结构化日志记录器。

        Args:
            name: 日志记录器名称前缀
            log_dir: 日志目录路径
            log_format: 文件日志格式
            log_level: 日志级别
            enable_console: 是否输出到stderr（仅general/error通道）
            enable_file: 是否写入日志文件
            max_file_size: 单个日志文件最大字节数
            backup_count: 轮转备份数量
        """
        self.name = name
        self.log_format = log_format
        self.log_level = log_level
        self.enable_console = enable_console
        self.log_dir = Path(log_dir) if log_dir else default_log_dir()
        self.enable_file = enable_file and self._prepare_log_dir()

        self.loggers: Dict[LoggerType, logging.Logger] = {}
        self._setup_loggers(max_file_size, backup_count)

        self._lock = threading.Lock()
        self._active_operations = 0

    def _prepare_log_dir(self) -> bool:
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            # 目录不可写时退化为仅控制台输出
            print(f"ccforge: file logging disabled ({e})", file=sys.stderr)
            return False

    def _setup_loggers(self, max_file_size: int, backup_count: int) -> None:
        """设置各种类型的日志记录器。"""
        for logger_type in LoggerType:
            logger = logging.getLogger(f"{self.name}.{logger_type.value}")
            logger.setLevel(self.log_level.to_logging_level())
            logger.propagate = False
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()

            if self.enable_file:
                log_file = self.log_dir / f"{logger_type.value}.log"
                file_handler = logging.handlers.RotatingFileHandler(
                    log_file, maxBytes=max_file_size, backupCount=backup_count,
                    encoding='utf-8'
                )
                file_handler.setFormatter(self._get_formatter(self.log_format))
                logger.addHandler(file_handler)

            if self.enable_console and logger_type in (LoggerType.GENERAL, LoggerType.ERROR):
                console_handler = logging.StreamHandler(sys.stderr)
                console_handler.setFormatter(HumanFormatter())
                logger.addHandler(console_handler)

            if not logger.handlers:
                logger.addHandler(logging.NullHandler())

            self.loggers[logger_type] = logger

    def _get_formatter(self, format_type: LogFormat) -> logging.Formatter:
        if format_type == LogFormat.JSON:
            return JsonFormatter()
        return HumanFormatter()

    def debug(self, message: str, **kwargs) -> None:
        self._log(LogLevel.DEBUG, LoggerType.GENERAL, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(LogLevel.INFO, LoggerType.GENERAL, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(LogLevel.WARNING, LoggerType.GENERAL, message, **kwargs)

    def error(self, message: str, error: Optional[BaseException] = None, **kwargs) -> None:
        """记录错误信息。"""
        extra_data = kwargs.copy()
        if error is not None:
            extra_data.update({
                "error_type": type(error).__name__,
                "error_message": str(error),
                "traceback": "".join(traceback.format_exception(
                    type(error), error, error.__traceback__)),
            })
            if isinstance(error, CCForgeError):
                extra_data.update({
                    "error_id": error.error_id,
                    "error_code": error.error_code,
                    "error_timestamp": error.timestamp.isoformat(),
                    "context": error.context,
                })

        self._log(LogLevel.ERROR, LoggerType.ERROR, message, **extra_data)

    def audit(self, action: str, resource: Optional[str] = None,
              result: str = "success", **kwargs) -> None:
        """记录审计信息。"""
        audit_data = {
            "action": action,
            "resource": resource,
            "result": result,
            **kwargs
        }
        self._log(LogLevel.INFO, LoggerType.AUDIT, f"Audit: {action}", **audit_data)

    def performance(self, operation: str, duration_ms: float,
                    status: str = "completed", **kwargs) -> None:
        """记录性能信息。"""
        perf_data = {
            "operation": operation,
            "duration_ms": duration_ms,
            "status": status,
            **kwargs
        }
        self._log(LogLevel.INFO, LoggerType.PERFORMANCE,
                  f"Performance: {operation} ({duration_ms:.2f}ms)", **perf_data)

    @contextmanager
    def operation_timer(self, operation_name: str, **kwargs) -> Iterator[None]:
        """操作计时上下文管理器。异常会被记录后继续抛出。"""
        start_time = time.perf_counter()
        with self._lock:
            self._active_operations += 1
            active = self._active_operations

        try:
            self.debug(f"开始操作: {operation_name}", operation=operation_name, active_operations=active, **kwargs)
            yield
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.performance(operation_name, duration_ms, "completed", **kwargs)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.performance(operation_name, duration_ms, "failed",
                             error_type=type(e).__name__, **kwargs)
            self.error(f"操作失败: {operation_name}", error=e, **kwargs)
            raise
        finally:
            with self._lock:
                self._active_operations -= 1

    def _log(self, level: LogLevel, logger_type: LoggerType, message: str, **kwargs) -> None:
        logger = self.loggers.get(logger_type)
        if logger is None:
            return

        structured = {
            "logger_type": logger_type.value,
            "thread_id": threading.get_ident(),
            **kwargs
        }
        logger.log(level.to_logging_level(), message, extra={"structured": structured})


class JsonFormatter(logging.Formatter):
    """JSON格式化器。"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(getattr(record, "structured", {}))
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False, default=str, separators=(',', ':'))


class HumanFormatter(logging.Formatter):
    """人类友好格式化器。"""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


# 全局日志记录器实例
_global_logger: Optional[StructuredLogger] = None
_global_lock = threading.Lock()


def get_logger() -> StructuredLogger:
    """获取全局日志记录器。"""
    global _global_logger
    with _global_lock:
        if _global_logger is None:
            _global_logger = StructuredLogger(
                log_level=LogLevel.from_env(os.getenv("CCFORGE_LOG_LEVEL"), LogLevel.INFO),
                enable_console=False,
            )
        return _global_logger


def configure_logging(log_dir: Optional[Path] = None,
                      log_format: LogFormat = LogFormat.HUMAN,
                      log_level: LogLevel = LogLevel.INFO,
                      enable_console: bool = True,
                      enable_file: bool = True,
                      max_file_size: int = 10 * 1024 * 1024,
                      backup_count: int = 5) -> StructuredLogger:
    """配置全局日志设置。"""
    global _global_logger
    with _global_lock:
        _global_logger = StructuredLogger(
            log_dir=log_dir,
            log_format=log_format,
            log_level=log_level,
            enable_console=enable_console,
            enable_file=enable_file,
            max_file_size=max_file_size,
            backup_count=backup_count
        )
        return _global_logger


def log_operation(operation_name: str, **kwargs):
    """便捷的操作计时上下文管理器。"""
    return get_logger().operation_timer(operation_name, **kwargs)


__all__ = [
    "LogLevel",
    "LogFormat",
    "LoggerType",
    "StructuredLogger",
    "JsonFormatter",
    "HumanFormatter",
    "default_log_dir",
    "get_logger",
    "configure_logging",
    "log_operation",
]
