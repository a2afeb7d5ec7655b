"""
Monitoring - error and performance logging for the API, the reminder job
and the client-side sync layer.

A Monitor is constructed explicitly and handed to whatever needs it, so tests
can pass their own instance and inspect what was recorded.
"""

import inspect
import functools
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    API = "API_ERROR"
    AUTH = "AUTH_ERROR"
    NETWORK = "NETWORK_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    STORAGE = "STORAGE_ERROR"
    UNKNOWN = "UNKNOWN_ERROR"


@dataclass
class ErrorLog:
    type: ErrorType
    message: str
    timestamp: str
    user_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class PerformanceMetric:
    name: str
    duration_ms: float
    timestamp: str
    user_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class Monitor:
    error_logs: List[ErrorLog] = field(default_factory=list)
    performance_metrics: List[PerformanceMetric] = field(default_factory=list)
    log: logging.Logger = field(default=logger)
    # Called with ("Errors" | "Performance", entry dict) for every record
    sink: Optional[Callable[[str, Dict[str, Any]], None]] = None

    def _forward(self, log_type: str, entry):
        if self.sink is None:
            return
        try:
            self.sink(log_type, asdict(entry))
        except Exception as e:
            self.log.error(f"Failed to forward {log_type} record: {e}")

    def log_error(self, error_type: ErrorType, message: str,
                  metadata: Optional[Dict[str, Any]] = None, user_id: Optional[str] = None) -> ErrorLog:
        entry = ErrorLog(
            type=error_type,
            message=message,
            timestamp=datetime.now(timezone.utc).isoformat(),
            user_id=user_id,
            metadata=metadata,
        )
        self.error_logs.append(entry)
        self.log.error(f"[{error_type.value}] {message} metadata={metadata} user={user_id}")
        self._forward("Errors", entry)
        return entry

    def log_performance(self, name: str, duration_ms: float,
                        metadata: Optional[Dict[str, Any]] = None,
                        user_id: Optional[str] = None) -> PerformanceMetric:
        metric = PerformanceMetric(
            name=name,
            duration_ms=duration_ms,
            timestamp=datetime.now(timezone.utc).isoformat(),
            user_id=user_id,
            metadata=metadata,
        )
        self.performance_metrics.append(metric)
        self.log.info(f"Performance metric logged: {name} took {duration_ms:.1f}ms")
        self._forward("Performance", metric)
        return metric

    def clear_logs(self):
        self.error_logs.clear()
        self.performance_metrics.clear()


def http_sink(endpoint: str, client: Optional[httpx.Client] = None) -> Callable[[str, Dict[str, Any]], None]:
    """Builds a Monitor sink that POSTs each record to <endpoint>/monitoring."""
    client = client or httpx.Client(timeout=5.0)
    url = f"{endpoint.rstrip('/')}/monitoring"

    def send(log_type: str, data: Dict[str, Any]):
        response = client.post(url, json={"logType": log_type, "data": data})
        response.raise_for_status()

    return send


def _describe_args(args) -> List[Any]:
    return [repr(arg) if isinstance(arg, (dict, list, tuple)) else arg for arg in args]


def measure_performance(monitor: Monitor, func: Callable, name: Optional[str] = None) -> Callable:
    """Wraps a sync or async callable so every call records its duration, failed or not."""
    metric_name = name or func.__name__

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                monitor.log_performance(metric_name, (time.perf_counter() - start) * 1000,
                                        {"error": str(e), "args": _describe_args(args)})
                raise
            monitor.log_performance(metric_name, (time.perf_counter() - start) * 1000,
                                    {"args": _describe_args(args)})
            return result

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            monitor.log_performance(metric_name, (time.perf_counter() - start) * 1000,
                                    {"error": str(e), "args": _describe_args(args)})
            raise
        monitor.log_performance(metric_name, (time.perf_counter() - start) * 1000,
                                {"args": _describe_args(args)})
        return result

    return wrapper


def handle_error(monitor: Monitor, func: Callable, error_type: ErrorType = ErrorType.UNKNOWN) -> Callable:
    """Wraps a sync or async callable so failures are logged to the monitor and re-raised."""
    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                monitor.log_error(error_type, str(e), {"method": func.__name__, "args": _describe_args(args)})
                raise

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            monitor.log_error(error_type, str(e), {"method": func.__name__, "args": _describe_args(args)})
            raise

    return wrapper


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Records one performance metric per HTTP request."""

    def __init__(self, app, monitor: Monitor):
        super().__init__(app)
        self.monitor = monitor

    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        self.monitor.log_performance(
            f"{request.method} {request.url.path}",
            (time.perf_counter() - start) * 1000,
            {"status_code": response.status_code},
        )
        return response
