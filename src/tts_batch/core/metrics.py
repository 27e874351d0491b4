"""
Prometheus Metrics for tts-batch.

Metrics Exposed:
    tts_batch_chunks_total{status}          - Chunk synthesis calls by outcome
    tts_batch_batches_total{status}         - Document batches by outcome
    tts_batch_batch_duration_seconds        - Histogram of batch latency
    tts_batch_audio_bytes_total             - Counter of audio bytes produced
    tts_batch_inflight_calls                - Gauge of synthesis calls in flight

Status labels:
    chunks:  success, error, cancelled
    batches: success, error, cancelled, empty

Usage:
    from tts_batch.core.metrics import metrics

    metrics.record_chunk("success", audio_bytes=51200)
    metrics.record_batch("success", duration=4.2)

    # Prometheus format response for the /metrics endpoint
    content, content_type = metrics.get_metrics_response()

Prometheus Scrape Config Example:
    scrape_configs:
      - job_name: 'tts-batch'
        static_configs:
          - targets: ['localhost:8000']
        metrics_path: '/metrics'
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class BatchMetrics:
    """
    Metrics collection for chunked synthesis.

    Metrics live on a private CollectorRegistry so several instances (one
    per test, for example) never collide with each other or with the
    process-wide default registry.

    Example:
        >>> from tts_batch.core.metrics import metrics
        >>> metrics.record_batch("success", duration=0.5)
        >>> content, _ = metrics.get_metrics_response()
    """

    def __init__(self):
        self._registry = CollectorRegistry()

        self._chunks_total = Counter(
            "tts_batch_chunks_total",
            "Chunk synthesis calls by outcome",
            ["status"],
            registry=self._registry,
        )

        self._batches_total = Counter(
            "tts_batch_batches_total",
            "Document synthesis batches by outcome",
            ["status"],
            registry=self._registry,
        )

        # Long documents fan out to dozens of calls; buckets reach minutes.
        self._batch_duration = Histogram(
            "tts_batch_batch_duration_seconds",
            "Document synthesis duration in seconds",
            buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
            registry=self._registry,
        )

        self._audio_bytes_total = Counter(
            "tts_batch_audio_bytes_total",
            "Total audio bytes produced",
            registry=self._registry,
        )

        self._inflight_calls = Gauge(
            "tts_batch_inflight_calls",
            "Synthesis calls currently in flight",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_chunk(self, status: str, audio_bytes: int = 0) -> None:
        """
        Record one finished chunk call.

        Args:
            status: "success", "error" or "cancelled".
            audio_bytes: Size of the chunk's audio in bytes.
        """
        self._chunks_total.labels(status=status).inc()
        if audio_bytes > 0:
            self._audio_bytes_total.inc(audio_bytes)

    def record_batch(self, status: str, duration: float = -1.0) -> None:
        """
        Record one finished document batch.

        Args:
            status: "success", "error", "cancelled" or "empty".
            duration: Batch duration in seconds (negative = not observed).
        """
        self._batches_total.labels(status=status).inc()
        if duration >= 0:
            self._batch_duration.observe(duration)

    def call_started(self) -> None:
        self._inflight_calls.inc()

    def call_finished(self) -> None:
        self._inflight_calls.dec()

    def get_metrics_response(self) -> tuple[bytes, str]:
        """
        Get metrics in Prometheus format.

        Returns:
            Tuple of (content_bytes, content_type)
        """
        return (generate_latest(self._registry), CONTENT_TYPE_LATEST)


# Global singleton metrics instance
metrics = BatchMetrics()
