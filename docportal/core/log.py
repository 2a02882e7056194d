#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Logging setup
=============
- ``configure_logging()`` installs a console handler on the root logger
- ``security_event()`` writes one JSON line per security-relevant event to
  the ``docportal.security`` logger, which also feeds a rotating file when
  ``security_log_path`` is set
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from .config import get_settings


SECURITY_LOGGER = "docportal.security"

_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

security_log = logging.getLogger(SECURITY_LOGGER)


# -----------------------------------------------------------------------------

def configure_logging(level: str | None = None) -> None:
    settings = get_settings()
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)
    _configure_security_log(settings.security_log_path,
                            settings.security_log_max_bytes,
                            settings.security_log_backups)


# -----------------------------------------------------------------------------

def _configure_security_log(path: str, max_bytes: int, backups: int) -> None:
    security_log.setLevel(logging.INFO)
    for h in list(security_log.handlers):
        if isinstance(h, RotatingFileHandler):
            security_log.removeHandler(h)
            h.close()
    if not path:
        return
    log_file = Path(path)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=max_bytes,
                                  backupCount=backups, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    security_log.addHandler(handler)


# -----------------------------------------------------------------------------

def security_event(event: str, level: int = logging.WARNING, **fields: Any) -> None:
    """Log a security event as a single JSON object."""
    record = {
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
        "event": event,
        **fields,
    }
    security_log.log(level, json.dumps(record, default=str))


# -----------------------------------------------------------------------------
