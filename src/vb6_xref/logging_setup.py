# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structured logging setup for vb6-xref."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_LOG_DIR_NAME = ".vb6_xref_logs"

# Record attributes set through `extra=` that locate a message in VB6 source
SOURCE_LOCATION_FIELDS = ("vb_module", "vb_line")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    Records logged with `extra={"vb_module": ..., "vb_line": ...}` carry the
    VB6 module and physical line they concern, so parse and rewrite warnings
    can be filtered per source file.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field_name in SOURCE_LOCATION_FIELDS:
            value = getattr(record, field_name, None)
            if value is not None:
                log_data[field_name] = value
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def log_file_name(now: Optional[datetime] = None) -> str:
    """Daily log file name, vb6_xref_YYYYMMDD.log (UTC date)."""
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d")
    return f"vb6_xref_{stamp}.log"


def parse_log_level(name: str) -> int:
    """Map a level name such as "debug" to its logging constant.

    Raises:
        ValueError: If the name is not a standard level.
    """
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def setup_logging(
    log_dir: Optional[Path] = None,
    log_level: int = logging.INFO,
    console_output: bool = True,
) -> Path:
    """Route all records to a daily JSON log file and optionally stdout.

    Args:
        log_dir: Directory for log files. If None, uses ./.vb6_xref_logs/
        log_level: Logging level (default: INFO)
        console_output: Whether to also output to console (default: True)

    Returns:
        Path of the JSON log file.
    """
    if log_dir is None:
        log_dir = Path.cwd() / DEFAULT_LOG_DIR_NAME

    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Close handlers left by an earlier setup
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    log_file = log_dir / log_file_name()
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    logging.info(f"vb6-xref logging to {log_file}")
    return log_file
