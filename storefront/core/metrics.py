from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Optional


@dataclass
class Counter:
    """Running request count, latency sum and 4xx/5xx count for one key."""

    requests: int = 0
    errors: int = 0
    latency_ms: float = 0.0

    def add(self, status_code: int, duration_ms: float) -> None:
        self.requests += 1
        self.latency_ms += duration_ms
        if status_code >= 400:
            self.errors += 1

    def summary(self) -> dict:
        average = self.latency_ms / self.requests if self.requests else 0.0
        return {
            "total_requests": self.requests,
            "error_count": self.errors,
            "total_duration_ms": round(self.latency_ms, 2),
            "avg_duration_ms": round(average, 2),
        }


class InMemoryRequestMetrics:
    """Process-local request counters, keyed by route template and by tenant."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._by_route: dict[str, Counter] = {}
        self._by_tenant: dict[str, Counter] = {}

    def observe(
        self,
        endpoint: str,
        method: str,
        status_code: int,
        duration_ms: float,
        tenant_id: Optional[str] = None,
    ) -> None:
        key = f"{method.upper()} {endpoint}"
        with self._lock:
            self._by_route.setdefault(key, Counter()).add(status_code, duration_ms)
            if tenant_id is not None:
                self._by_tenant.setdefault(str(tenant_id), Counter()).add(status_code, duration_ms)

    def snapshot(self) -> dict[str, dict]:
        with self._lock:
            return {key: counter.summary() for key, counter in sorted(self._by_route.items())}

    def snapshot_per_tenant(self) -> dict[str, dict]:
        with self._lock:
            return {key: counter.summary() for key, counter in sorted(self._by_tenant.items())}

    def reset(self) -> None:
        with self._lock:
            self._by_route.clear()
            self._by_tenant.clear()


request_metrics = InMemoryRequestMetrics()
