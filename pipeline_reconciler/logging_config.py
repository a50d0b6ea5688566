# /*
# Copyright 2026 The Pipeline Reconciler Authors.
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
# */

"""Log output setup: plain text lines or one JSON object per record."""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.typing import Processor

from pipeline_reconciler.constants import (
    DEFAULT_LOG_LEVEL,
    LOG_DATE_FORMAT,
    LOG_FORMAT,
    LOG_FORMAT_JSON,
    LOG_FORMAT_TEXT,
)

LOG_FORMATS = (LOG_FORMAT_TEXT, LOG_FORMAT_JSON)


def resolve_log_level(raw_level: str | None) -> int:
    normalized = (raw_level or DEFAULT_LOG_LEVEL).strip().upper()
    if normalized == "WARN":
        normalized = "WARNING"
    resolved = getattr(logging, normalized, None)
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def configure_logging(level: int, log_format: str = LOG_FORMAT_TEXT) -> None:
    """Route the package logger to stderr in the requested format.

    Text output goes through the root logger configured by ``basicConfig``.
    JSON output gets a dedicated handler on the package logger, which then
    stops propagating so records are not printed twice.

    Args:
        level: Minimum level to emit.
        log_format: ``text`` or ``json``.
    """
    package_logger = logging.getLogger("pipeline_reconciler")
    _reset_handlers(package_logger)

    if log_format != LOG_FORMAT_JSON:
        package_logger.setLevel(logging.NOTSET)
        package_logger.propagate = True
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        return

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(_build_json_formatter())
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _build_json_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_pre_chain(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
    )


def _shared_pre_chain() -> list[Processor]:
    return [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
    ]
