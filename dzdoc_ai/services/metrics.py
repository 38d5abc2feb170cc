"""Cloud Monitoring custom metrics for AI skill usage."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

logger = logging.getLogger(__name__)

# Lazy import to avoid hard dependency in test/local dev
_client = None
_disabled = False
_project_path: str = ""


def _build_client() -> Any:
    from google.cloud import monitoring_v3

    return monitoring_v3.MetricServiceClient()


def _get_client() -> Any:
    global _client, _disabled  # noqa: PLW0603
    if _client is None and not _disabled:
        try:
            _client = _build_client()
        except Exception:
            # Credential lookup is slow; do not retry it on every request.
            _disabled = True
            logger.debug("Cloud Monitoring client not available; metrics disabled")
    return _client


def init_metrics(project_id: str) -> None:
    """Initialize the metrics subsystem with the GCP project ID."""
    global _project_path  # noqa: PLW0603
    _project_path = f"projects/{project_id}" if project_id else ""


def record_skill_usage(
    provider: str,
    model: str,
    skill: str,
    input_tokens: int,
    output_tokens: int,
) -> None:
    """Record estimated token counts and one request for a generation.

    Fire-and-forget: logs and swallows errors so callers are never blocked.
    """
    if not _project_path:
        return
    client = _get_client()
    if client is None:
        return

    try:
        from google.api import metric_pb2, monitored_resource_pb2
        from google.cloud.monitoring_v3 import (
            CreateTimeSeriesRequest,
            Point,
            TimeInterval,
            TimeSeries,
            TypedValue,
        )

        now = time.time()
        seconds = int(now)
        nanos = int((now - seconds) * 1e9)
        interval = TimeInterval(end_time={"seconds": seconds, "nanos": nanos})

        resource = monitored_resource_pb2.MonitoredResource(
            type="global",
            labels={"project_id": _project_path.split("/")[-1]},
        )
        labels = {"provider": provider, "model": model, "skill": skill}

        series: list[TimeSeries] = []
        for token_type, count in [("input", input_tokens), ("output", output_tokens)]:
            series.append(
                TimeSeries(
                    metric=metric_pb2.Metric(
                        type="custom.googleapis.com/dzdoc/ai/token_count",
                        labels={**labels, "token_type": token_type},
                    ),
                    resource=resource,
                    points=[Point(interval=interval, value=TypedValue(int64_value=count))],
                )
            )

        series.append(
            TimeSeries(
                metric=metric_pb2.Metric(
                    type="custom.googleapis.com/dzdoc/ai/request_count",
                    labels=labels,
                ),
                resource=resource,
                points=[Point(interval=interval, value=TypedValue(int64_value=1))],
            )
        )

        client.create_time_series(
            request=CreateTimeSeriesRequest(name=_project_path, time_series=series)
        )
    except Exception:
        logger.debug("Failed to write AI usage metrics", exc_info=True)


async def record_skill_usage_async(
    provider: str,
    model: str,
    skill: str,
    input_tokens: int,
    output_tokens: int,
) -> None:
    """record_skill_usage on a worker thread; the gRPC write is blocking."""
    if not _project_path or _disabled:
        return
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(
        None, record_skill_usage, provider, model, skill, input_tokens, output_tokens
    )
