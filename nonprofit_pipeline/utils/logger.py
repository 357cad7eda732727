"""
Logging for the discovery pipeline.

``PipelineLogger`` wraps a stdlib logger so call sites can attach key=value
fields (``logger.info("Fetched", status=200)``). Warnings and errors are kept
for the end-of-run summary, and the resolver's lookup hits and misses are
counted.
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are noisy at INFO
QUIET_LIBRARIES = ("trafilatura", "httpx", "httpcore", "pymysql", "LiteLLM")


def _formatter(phase: Optional[str]) -> logging.Formatter:
    label = f" | {phase}" if phase else ""
    return logging.Formatter(
        f"%(asctime)s,%(msecs)03d | %(levelname)-8s{label} | %(filename)s:%(lineno)d | %(message)s",
        datefmt=DATE_FORMAT,
    )


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def _with_fields(message: str, fields: Dict[str, Any]) -> str:
    if not fields:
        return message
    return f"{message} [{' '.join(f'{key}={value}' for key, value in fields.items())}]"


class PipelineLogger:
    """Structured logger with run tracking."""

    def __init__(
        self,
        name: str = "nonprofit_pipeline",
        log_level: str = "INFO",
        log_file: Optional[str] = None,
        log_dir: Optional[Path] = None,
        phase: Optional[str] = None,
    ):
        """
        Args:
            name: Logger name
            log_level: DEBUG, INFO, WARNING or ERROR
            log_file: Also write to this file (always at DEBUG)
            log_dir: Directory for ``log_file`` (defaults to ./logs)
            phase: Label shown in every line, e.g. "Discover"
        """
        self.phase = phase
        self.logger = logging.getLogger(name)
        self.logger.setLevel(_level(log_level))
        self.logger.propagate = False
        self.logger.handlers.clear()

        formatter = _formatter(phase)

        console = logging.StreamHandler(sys.stdout)
        console.setLevel(_level(log_level))
        console.setFormatter(formatter)
        self.logger.addHandler(console)

        self.errors: List[Dict[str, Any]] = []
        self.warnings: List[Dict[str, Any]] = []
        self.lookup_hits = 0
        self.lookup_misses = 0

        if log_file:
            log_dir = log_dir or Path.cwd() / "logs"
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_dir / log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)
            self.info(f"Logging to file: {log_dir / log_file}")

    def _track(self, bucket: List[Dict[str, Any]], message: str, fields: Dict[str, Any], **extra):
        bucket.append({"message": message, "timestamp": datetime.now().isoformat(), "data": fields, **extra})

    def debug(self, message: str, **fields):
        self.logger.debug(_with_fields(message, fields), stacklevel=2)

    def info(self, message: str, **fields):
        self.logger.info(_with_fields(message, fields), stacklevel=2)

    def warning(self, message: str, **fields):
        """Log and keep for the run summary."""
        message = _with_fields(message, fields)
        self.logger.warning(message, stacklevel=2)
        self._track(self.warnings, message, fields)

    def error(self, message: str, exception: Optional[Exception] = None, **fields):
        """Log (with traceback when ``exception`` is given) and keep for the run summary."""
        if exception is not None:
            message = f"{message} | Exception: {exception}"
        message = _with_fields(message, fields)
        self.logger.error(message, exc_info=exception, stacklevel=2)
        self._track(self.errors, message, fields, exception=str(exception) if exception is not None else None)

    def log_lookup_hit(self, ein: str):
        self.lookup_hits += 1
        self.info("Lookup HIT", ein=ein)

    def log_lookup_miss(self, ein: str):
        self.lookup_misses += 1
        self.debug("Lookup MISS", ein=ein)

    def log_llm_call(self, purpose: str, model: str, tokens_used: int, cost_usd: float):
        self.debug(f"LLM call for {purpose}", model=model, tokens=tokens_used, cost_usd=round(cost_usd, 6))

    @contextmanager
    def time_operation(self, operation: str, **context):
        """
        Log how long the block took, or that it failed.

        Usage:
            with logger.time_operation("resolve", ein="12-3456789"):
                ...
        """
        started = time.monotonic()
        self.debug(f"Starting {operation}", **context)
        try:
            yield
        except Exception as e:
            elapsed = round(time.monotonic() - started, 2)
            self.error(f"Failed {operation}", exception=e, duration_seconds=elapsed, **context)
            raise
        self.info(f"Completed {operation}", duration_seconds=round(time.monotonic() - started, 2), **context)

    def generate_summary(self) -> Dict[str, Any]:
        total = self.lookup_hits + self.lookup_misses
        return {
            "lookups": {
                "total": total,
                "hits": self.lookup_hits,
                "misses": self.lookup_misses,
                "hit_rate_percent": round(self.lookup_hits / total * 100, 1) if total else 0.0,
            },
            "errors": {"total": len(self.errors), "details": self.errors},
            "warnings": {"total": len(self.warnings), "details": self.warnings},
            "timestamp": datetime.now().isoformat(),
        }

    def clear_tracking(self):
        self.errors = []
        self.warnings = []
        self.lookup_hits = 0
        self.lookup_misses = 0


_default_logger: Optional[PipelineLogger] = None


def get_logger(
    name: str = "nonprofit_pipeline",
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    phase: Optional[str] = None,
) -> PipelineLogger:
    """Process-wide logger, created on first call."""
    global _default_logger
    if _default_logger is None:
        _default_logger = PipelineLogger(name=name, log_level=log_level, log_file=log_file, phase=phase)
    return _default_logger


def configure_global_logging(log_level: str = "INFO", phase: Optional[str] = None):
    """Send root and library loggers through the pipeline format. Call once at startup."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(_level(log_level))
    handler.setFormatter(_formatter(phase))

    root = logging.getLogger()
    root.setLevel(_level(log_level))
    root.handlers.clear()
    root.addHandler(handler)

    for lib_name in QUIET_LIBRARIES:
        lib_logger = logging.getLogger(lib_name)
        lib_logger.handlers.clear()
        lib_logger.propagate = True
        lib_logger.setLevel(logging.WARNING)
