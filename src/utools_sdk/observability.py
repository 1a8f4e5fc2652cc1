"""Side-channel hooks for request, retry and rate-limit events.

The client never logs or counts anything directly; it reports to an observer
injected at construction. ``LoggingObserver`` is the default.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from prometheus_client import CollectorRegistry, Counter, Histogram, REGISTRY

# Upstream x-rate-limit-reset values below this suggest refreshing the robot token.
RATE_LIMIT_RESET_THRESHOLD = 9


class ClientObserver:
    def request_completed(self, method: str, path: str, status_code: int, elapsed: float) -> None:
        return None

    def retry_scheduled(
        self,
        method: str,
        path: str,
        attempt: int,
        max_retries: int,
        delay: float,
        error: BaseException,
    ) -> None:
        return None

    def rate_limit_reset(self, method: str, path: str, reset: int) -> None:
        """Called when the upstream reports a low rate-limit reset value.

        Purely advisory. Implementations may schedule ``UToolsClient.token_sync``
        but the client never does so on its own.
        """
        return None


class LoggingObserver(ClientObserver):
    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("utools_sdk")

    def request_completed(self, method: str, path: str, status_code: int, elapsed: float) -> None:
        self._logger.debug("%s %s -> %s in %.3fs", method, path, status_code, elapsed)

    def retry_scheduled(
        self,
        method: str,
        path: str,
        attempt: int,
        max_retries: int,
        delay: float,
        error: BaseException,
    ) -> None:
        self._logger.info(
            "retry %d/%d for %s %s (backoff %.1fs): %s", attempt, max_retries, method, path, delay, error
        )

    def rate_limit_reset(self, method: str, path: str, reset: int) -> None:
        self._logger.warning("x-rate-limit-reset=%d on %s %s, consider calling token_sync", reset, method, path)


@dataclass(frozen=True)
class ClientMetrics:
    requests: Counter
    retries: Counter
    latency: Histogram
    reset_warnings: Counter


# One metric set per (registry, namespace); registries reject duplicate names.
_METRICS: Dict[Tuple[CollectorRegistry, str], ClientMetrics] = {}
_METRICS_LOCK = threading.Lock()


def client_metrics(registry: CollectorRegistry = REGISTRY, namespace: str = "utools") -> ClientMetrics:
    with _METRICS_LOCK:
        metrics = _METRICS.get((registry, namespace))
        if metrics is None:
            metrics = ClientMetrics(
                requests=Counter(
                    "client_requests_total",
                    "Upstream responses received",
                    ["method", "path", "status"],
                    namespace=namespace,
                    registry=registry,
                ),
                retries=Counter(
                    "client_retries_total",
                    "Retries scheduled after a retryable failure",
                    ["method", "path", "error"],
                    namespace=namespace,
                    registry=registry,
                ),
                latency=Histogram(
                    "client_request_latency_seconds",
                    "Upstream request latency",
                    ["path"],
                    namespace=namespace,
                    registry=registry,
                ),
                reset_warnings=Counter(
                    "client_rate_limit_reset_warnings_total",
                    "Responses whose x-rate-limit-reset fell below the refresh threshold",
                    ["path"],
                    namespace=namespace,
                    registry=registry,
                ),
            )
            _METRICS[(registry, namespace)] = metrics
        return metrics


class PrometheusObserver(ClientObserver):
    """Counts requests, retries and reset advisories.

    Observers built on the same registry and namespace share one set of
    metrics, so any number of clients may use this in one process.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY, namespace: str = "utools") -> None:
        metrics = client_metrics(registry, namespace)
        self.requests = metrics.requests
        self.retries = metrics.retries
        self.latency = metrics.latency
        self.reset_warnings = metrics.reset_warnings

    def request_completed(self, method: str, path: str, status_code: int, elapsed: float) -> None:
        self.requests.labels(method=method, path=path, status=str(status_code)).inc()
        self.latency.labels(path=path).observe(elapsed)

    def retry_scheduled(
        self,
        method: str,
        path: str,
        attempt: int,
        max_retries: int,
        delay: float,
        error: BaseException,
    ) -> None:
        self.retries.labels(method=method, path=path, error=type(error).__name__).inc()

    def rate_limit_reset(self, method: str, path: str, reset: int) -> None:
        self.reset_warnings.labels(path=path).inc()


class CompositeObserver(ClientObserver):
    def __init__(self, observers: Iterable[ClientObserver]) -> None:
        self._observers = list(observers)

    def request_completed(self, method: str, path: str, status_code: int, elapsed: float) -> None:
        for observer in self._observers:
            observer.request_completed(method, path, status_code, elapsed)

    def retry_scheduled(
        self,
        method: str,
        path: str,
        attempt: int,
        max_retries: int,
        delay: float,
        error: BaseException,
    ) -> None:
        for observer in self._observers:
            observer.retry_scheduled(method, path, attempt, max_retries, delay, error)

    def rate_limit_reset(self, method: str, path: str, reset: int) -> None:
        for observer in self._observers:
            observer.rate_limit_reset(method, path, reset)


__all__ = [
    "ClientMetrics",
    "ClientObserver",
    "CompositeObserver",
    "LoggingObserver",
    "PrometheusObserver",
    "RATE_LIMIT_RESET_THRESHOLD",
    "client_metrics",
]
