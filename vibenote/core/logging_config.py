"""
Logging setup for VibeNote.

setup_logging() is called once by the app factory. Modules log through
logging.getLogger(__name__) and pick up the handlers configured here:
a colored console stream, a rotating main log and a rotating error log.
"""
import logging
import logging.handlers
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from contextvars import ContextVar

# Request correlation id, set by RequestLoggingMiddleware
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

# Structured fields copied from `extra=` into JSON log lines
_EXTRA_FIELDS = (
    "method", "path", "status_code", "duration_ms", "client_ip",
    "request_size", "response_size", "user_id", "chat_id",
)

_PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_NOISY_LOGGERS = (
    "uvicorn.access", "httpcore", "httpx", "pymongo", "motor",
    "groq", "PIL", "asyncio", "watchfiles", "multipart",
)


def get_request_id() -> str:
    """Request id of the current context ("-" outside a request)."""
    return request_id_var.get("-")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": get_request_id(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """
    Human-readable console lines:
    [HH:MM:SS] LEVEL    module: message  [req:id]
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        time_str = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        name = record.name.rsplit(".", 1)[-1]

        req_id = get_request_id()
        req_tag = f" {self.DIM}[req:{req_id[:8]}]{self.RESET}" if req_id != "-" else ""

        line = (
            f"{self.DIM}[{time_str}]{self.RESET} "
            f"{color}{record.levelname:<8}{self.RESET} "
            f"{name}: {record.getMessage()}{req_tag}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _rotating_handler(path: Path, level: int, log_json: bool, backups: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=str(path),
        maxBytes=10 * 1024 * 1024,
        backupCount=backups,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_json else logging.Formatter(_PLAIN_FORMAT))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path = Path("./logs"),
    log_json: bool = True,
) -> None:
    """
    Configure the root logger.

    Args:
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR).
        log_dir: Directory for vibenote.log and vibenote.error.log.
        log_json: Write JSON lines to the files instead of plain text.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ColoredFormatter())
    root.addHandler(console)

    root.addHandler(_rotating_handler(log_dir / "vibenote.log", level, log_json, backups=5))
    root.addHandler(_rotating_handler(log_dir / "vibenote.error.log", logging.ERROR, log_json, backups=3))

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)

    logging.getLogger("vibenote").info(
        f"Logging configured: level={log_level}, dir={log_dir}, json={log_json}"
    )
