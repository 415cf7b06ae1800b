"""
Request performance monitor

Keeps the most recent request metrics in memory and derives simple
statistics and alerts from them. PerformanceMiddleware feeds it.
"""
import logging
import threading
import time
import uuid
from collections import defaultdict, deque
from dataclasses import dataclass, field, asdict
from datetime import timedelta
from typing import Dict, List, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from markettech.core.config import settings
from markettech.core.database import utcnow

logger = logging.getLogger(__name__)

MAX_METRICS = 1000


@dataclass
class PerformanceMetric:
    endpoint: str
    method: str
    duration_ms: float
    status_code: int
    user_agent: Optional[str] = None
    ip: Optional[str] = None
    id: str = field(default_factory=lambda: f"perf-{uuid.uuid4().hex[:12]}")
    timestamp: object = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


class PerformanceMonitor:
    def __init__(self, max_metrics: int = MAX_METRICS):
        self._metrics = deque(maxlen=max_metrics)
        self._lock = threading.Lock()

    def record_metric(self, metric: PerformanceMetric) -> None:
        with self._lock:
            self._metrics.append(metric)

        if metric.duration_ms > settings.SLOW_REQUEST_MS:
            logger.warning(f"Slow request: {metric.method} {metric.endpoint} took {metric.duration_ms:.0f}ms")
        if metric.status_code >= 500:
            logger.warning(f"Request error: {metric.method} {metric.endpoint} -> {metric.status_code}")

    def _recent(self, window_minutes: Optional[float]) -> List[PerformanceMetric]:
        with self._lock:
            metrics = list(self._metrics)
        if window_minutes is None:
            return metrics
        cutoff = utcnow() - timedelta(minutes=window_minutes)
        return [m for m in metrics if m.timestamp >= cutoff]

    def get_performance_stats(self, window_minutes: Optional[float] = 60) -> Dict:
        metrics = self._recent(window_minutes)
        if not metrics:
            return {
                "totalRequests": 0,
                "averageResponseTime": 0,
                "errorRate": 0,
                "slowestEndpoints": [],
                "topEndpoints": [],
            }

        total = len(metrics)
        errors = sum(1 for m in metrics if m.status_code >= 400)

        by_endpoint: Dict[str, List[float]] = defaultdict(list)
        for m in metrics:
            by_endpoint[m.endpoint].append(m.duration_ms)

        endpoint_stats = [
            {
                "endpoint": endpoint,
                "averageDuration": round(sum(durations) / len(durations), 2),
                "requestCount": len(durations),
            }
            for endpoint, durations in by_endpoint.items()
        ]

        return {
            "totalRequests": total,
            "averageResponseTime": round(sum(m.duration_ms for m in metrics) / total, 2),
            "errorRate": round(errors / total * 100, 2),
            "slowestEndpoints": sorted(endpoint_stats, key=lambda e: e["averageDuration"], reverse=True)[:5],
            "topEndpoints": sorted(endpoint_stats, key=lambda e: e["requestCount"], reverse=True)[:5],
        }

    def get_performance_alerts(self) -> List[Dict]:
        stats = self.get_performance_stats()
        alerts = []

        if stats["averageResponseTime"] > 1000:
            alerts.append({
                "type": "HIGH_RESPONSE_TIME",
                "message": f"Tiempo de respuesta promedio alto: {stats['averageResponseTime']:.0f}ms",
                "severity": "warning",
            })

        if stats["errorRate"] > 5:
            alerts.append({
                "type": "HIGH_ERROR_RATE",
                "message": f"Tasa de errores alta: {stats['errorRate']:.2f}%",
                "severity": "error",
            })

        for endpoint in stats["slowestEndpoints"]:
            if endpoint["averageDuration"] > 3000:
                alerts.append({
                    "type": "SLOW_ENDPOINT",
                    "message": f"Endpoint lento: {endpoint['endpoint']} ({endpoint['averageDuration']:.0f}ms)",
                    "severity": "warning",
                })

        return alerts

    def get_detailed_metrics(self, limit: int = 100) -> List[Dict]:
        metrics = self._recent(None)
        return [m.to_dict() for m in reversed(metrics[-limit:])] if limit > 0 else []

    def cleanup_old_metrics(self, max_age_hours: float = 24) -> int:
        cutoff = utcnow() - timedelta(hours=max_age_hours)
        with self._lock:
            kept = [m for m in self._metrics if m.timestamp >= cutoff]
            removed = len(self._metrics) - len(kept)
            self._metrics.clear()
            self._metrics.extend(kept)
        return removed

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()


performance_monitor = PerformanceMonitor()


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Records duration and status of every request"""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            forwarded_for = request.headers.get("X-Forwarded-For")
            performance_monitor.record_metric(PerformanceMetric(
                endpoint=request.url.path,
                method=request.method,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                status_code=status_code,
                user_agent=request.headers.get("user-agent"),
                ip=forwarded_for.split(",")[0].strip() if forwarded_for else (request.client.host if request.client else None),
            ))
