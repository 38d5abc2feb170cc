"""Structured JSON logging for Cloud Logging compatibility."""

from __future__ import annotations

import logging
import sys

from pythonjsonlogger import jsonlogger


def configure_logging(service_name: str, env: str, level: int = logging.INFO) -> None:
    """Configure structured JSON logging for the given service."""
    handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "severity"},
        json_ensure_ascii=False,
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request line at INFO; provider URLs are enough at WARNING
    logging.getLogger("httpx").setLevel(logging.WARNING)

    old_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):  # type: ignore[no-untyped-def]
        record = old_factory(*args, **kwargs)
        record.service = service_name  # type: ignore[attr-defined]
        record.environment = env  # type: ignore[attr-defined]
        return record

    logging.setLogRecordFactory(record_factory)
