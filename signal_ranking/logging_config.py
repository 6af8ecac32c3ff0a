"""
Logging setup for the signal ranking engine.

Library modules only ever call logging.getLogger(__name__); the host
application decides handlers and format by calling setup_logging().

Records logged by the orchestrator and batch processor carry
candidate_id and provider attributes (via ``extra``). The formatter
below surfaces them so one candidate's evaluation can be followed
through a ranking run.
"""

import json
import logging
import sys
from typing import Any, Optional


RECORD_FIELDS = ("candidate_id", "provider")

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(run_id)s | %(message)s%(signal_tags)s"


class SignalLogFormatter(logging.Formatter):
    """Text or JSON lines tagged with the run id and per-record signal fields."""

    def __init__(self, json_output: bool = False, correlation_id: Optional[str] = None) -> None:
        super().__init__(TEXT_FORMAT)
        self.json_output = json_output
        self.correlation_id = correlation_id

    @staticmethod
    def signal_fields(record: logging.LogRecord) -> dict[str, Any]:
        return {
            name: getattr(record, name)
            for name in RECORD_FIELDS
            if getattr(record, name, None)
        }

    def format(self, record: logging.LogRecord) -> str:
        fields = self.signal_fields(record)

        if self.json_output:
            payload = {
                "timestamp": self.formatTime(record),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
                "correlation_id": self.correlation_id or "",
                **fields,
            }
            if record.exc_info:
                payload["exception"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        record.run_id = self.correlation_id or "-"
        record.signal_tags = (
            " [" + " ".join(f"{k}={v}" for k, v in fields.items()) + "]" if fields else ""
        )
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    correlation_id: Optional[str] = None,
) -> logging.Logger:
    """
    Install one stdout handler on the root logger.

    Args:
        level: Log level name; unknown names mean INFO
        log_format: "json" for one JSON object per line, anything else for text
        correlation_id: Identifier of the ranking run, stamped on every line

    Returns:
        The package logger
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(SignalLogFormatter(
        json_output=log_format == "json",
        correlation_id=correlation_id,
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = [handler]

    return logging.getLogger("signal_ranking")
