# =============================================================================
# Structured Logging Setup (JSONL format)
# =============================================================================

import json
import os
import sys
import traceback
from contextvars import ContextVar
from pathlib import Path

import platformdirs
from loguru import logger

APP_NAME = "kitty-workspace-menu"
LOG_LEVEL_ENV = "KITTY_WORKSPACE_MENU_LOG_LEVEL"

# Correlation ID for a menu session
trace_id_var: ContextVar[str] = ContextVar('trace_id', default=None)


# Keys lifted out of `extra` into their own fields of the log entry
_ENTRY_FIELDS = ("operation", "status", "trace_id", "metrics", "error_type")


def _error_payload(exception) -> dict | None:
    """Exception details for a record logged with logger.exception / opt(exception=...)."""
    if not exception:
        return None
    exc_type, exc_value, exc_tb = exception
    return {
        "type": exc_type.__name__ if exc_type else "Unknown",
        "message": str(exc_value) if exc_value else "Unknown error",
        "traceback_lines": traceback.format_tb(exc_tb) if exc_tb else [],
    }


def build_log_entry(record: dict) -> dict:
    """
    Flatten a loguru record into one JSONL entry.

    Menu errors carry an `error_type` (see errors.ErrorType), which is
    promoted to a top-level field.
    """
    extra = record["extra"]
    return {
        "timestamp": record["time"].strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
        "app": APP_NAME,
        "level": record["level"].name.lower(),
        "component": f"{record['name']}.{record['function']}",
        "operation": extra.get("operation", "unknown"),
        "operation_status": extra.get("status"),
        "trace_id": extra.get("trace_id") or trace_id_var.get(),
        "error_type": extra.get("error_type"),
        "message": record["message"],
        "context": {k: v for k, v in extra.items() if k not in _ENTRY_FIELDS},
        "metrics": extra.get("metrics", {}),
        "error": _error_payload(record["exception"]),
    }


def json_sink(message):
    """Console sink: one JSON object per line on stderr, below the gum prompts."""
    # Paths, enums and exceptions in context are rendered with str()
    sys.stderr.write(json.dumps(build_log_entry(message.record), default=str) + "\n")


def setup_logger():
    """
    Configure Loguru for machine-readable JSONL output.

    The console sink stays at WARNING by default because it shares the
    terminal with the interactive gum prompts. Set
    KITTY_WORKSPACE_MENU_LOG_LEVEL=DEBUG to see everything on stderr.
    """
    logger.remove()

    logger.add(
        json_sink,
        level=os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    )

    # macOS: ~/Library/Logs/kitty-workspace-menu/
    # Linux: ~/.local/state/kitty-workspace-menu/log/
    log_dir = Path(platformdirs.user_log_dir(
        appname=APP_NAME,
        ensure_exists=True
    ))

    logger.add(
        str(log_dir / "menu.jsonl"),
        format="{message}",
        serialize=True,
        rotation="10 MB",
        retention="7 days",
        compression="gz",
        level="DEBUG"
    )

    return logger
