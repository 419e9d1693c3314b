# Copyright 2026 Dell Inc. or its subsidiaries. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Logging setup and secure logging helpers.

Messages that may carry credentials (clone URLs, registry auth, tokens) are
redacted before they are emitted. When ``ECHO_CICD_LOG_DIR`` is set, entries
tagged with a project key are also appended to
``<ECHO_CICD_LOG_DIR>/<project_key>.log``.
"""

import logging
import os
import re
import traceback
from pathlib import Path
from typing import Dict, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DIR_ENV = "ECHO_CICD_LOG_DIR"
LOG_LEVEL_ENV = "LOG_LEVEL"

_LOG_FORMATTER = logging.Formatter(LOG_FORMAT)

_project_loggers: Dict[str, logging.Logger] = {}

_SENSITIVE_PATTERNS = [
    # user:password@ in URLs (clone URLs with embedded credentials)
    (re.compile(r"(?i)\b([a-z][a-z0-9+.-]*://)[^/\s:@]+(?::[^/\s@]*)?@"), r"\1<REDACTED>@"),
    # IPv4 addresses
    (re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"), "<REDACTED_IP>"),
    # JWT / Bearer tokens
    (re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"), "<REDACTED_TOKEN>"),
    (re.compile(r"(?i)(bearer\s+)[A-Za-z0-9_\-\.]+"), r"\1<REDACTED_TOKEN>"),
    # password=, token=, auth= ... values
    (re.compile(
        r"(?i)((?:password|passwd|secret|api_key|apikey|token|auth|registry_auth|push_auth)"
        r"\s*[=:]\s*)[^\s,;\"']+"
    ), r"\1<REDACTED>"),
]


def sanitize_message(message: str) -> str:
    """Redact sensitive data from a log message."""
    for pattern, replacement in _SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


def configure_logging(debug: bool = False, force: bool = False) -> None:
    """Configure root logging from ``LOG_LEVEL`` (``DEBUG`` when ``debug``).

    Without ``force`` an already configured root logger is left alone.
    """
    level_name = "DEBUG" if debug else os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        force=force,
    )


def _get_or_create_project_logger(project_key: str) -> Optional[logging.Logger]:
    """Return a cached per-project file logger, or ``None`` if disabled."""
    if project_key in _project_loggers:
        return _project_loggers[project_key]

    log_dir = os.getenv(LOG_DIR_ENV)
    if not log_dir:
        return None

    try:
        base = Path(log_dir)
        base.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(str(base / f"{project_key}.log"), mode="a")
    except OSError:
        logging.getLogger(__name__).warning(
            "Failed to create log file for project: %s", project_key
        )
        return None

    handler.setLevel(logging.DEBUG)
    handler.setFormatter(_LOG_FORMATTER)
    project_logger = logging.getLogger(f"echo_cicd.project.{project_key}")
    project_logger.setLevel(logging.DEBUG)
    project_logger.propagate = False
    project_logger.addHandler(handler)
    _project_loggers[project_key] = project_logger
    return project_logger


def remove_project_logger(project_key: str) -> None:
    """Flush, close, and forget the cached logger for *project_key*."""
    project_logger = _project_loggers.pop(project_key, None)
    if project_logger is None:
        return
    for handler in list(project_logger.handlers):
        handler.flush()
        handler.close()
        project_logger.removeHandler(handler)


def log_secure_info(
    level: str,
    message: str,
    project_key: Optional[str] = None,
    exc_info: bool = False,
) -> None:
    """Log a message after redacting sensitive data.

    Args:
        level: ``'info'``, ``'warning'``, ``'error'``, ``'debug'``, or ``'critical'``.
        message: Human-readable log message.
        project_key: Also write the entry to this project's log file.
        exc_info: Append the current exception traceback.
    """
    logger = logging.getLogger(__name__)

    log_message = message
    if exc_info:
        log_message = f"{log_message}\n{traceback.format_exc().rstrip()}"
    log_message = sanitize_message(log_message)

    getattr(logger, level, logger.info)(log_message)

    if project_key:
        project_logger = _get_or_create_project_logger(project_key)
        if project_logger:
            getattr(project_logger, level, project_logger.info)(log_message)
