"""
Observability Infrastructure

Provides structured logging, tracing, and metrics collection for the
converter. Integrates with OpenTelemetry for metrics and spans.
"""

import contextlib
import functools
import json
import logging
import sys
import time
import traceback
from enum import Enum
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from loguru import logger
from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider

F = TypeVar("F", bound=Callable[..., Any])


class LogLevel(str, Enum):
    """Log level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ObservabilityConfig:
    """Configuration for observability."""

    def __init__(
        self,
        service_name: str = "bpmn-converter",
        log_level: Union[str, LogLevel] = LogLevel.INFO,
        json_logs: bool = False,
        enable_tracing: bool = True,
        enable_metrics: bool = True,
        sink: Any = None,
    ):
        """Initialize observability configuration."""
        self.service_name = service_name
        self.log_level = LogLevel(log_level).value
        self.json_logs = json_logs
        self.enable_tracing = enable_tracing
        self.enable_metrics = enable_metrics
        self.sink = sink if sink is not None else sys.stderr


class JSONFormatter:
    """Custom JSON formatter for loguru."""

    def __call__(self, record: Dict[str, Any]) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name,
            "logger": record["name"],
            "function": record["function"],
            "line": record["line"],
            "message": record["message"],
        }

        if record["extra"]:
            log_data["extra"] = record["extra"]

        if record["exception"]:
            log_data["exception"] = {
                "type": record["exception"].type.__name__,
                "value": str(record["exception"].value),
                "traceback": "".join(
                    traceback.format_exception(
                        record["exception"].type,
                        record["exception"].value,
                        record["exception"].tb,
                    )
                ),
            }

        # loguru treats the returned string as a format template
        record["extra"]["serialized"] = json.dumps(log_data, default=str)
        return "{extra[serialized]}\n"


class InterceptHandler(logging.Handler):
    """Routes stdlib ``logging`` records from the stage modules into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Union[str, int] = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


class ObservabilityManager:
    """Centralized observability management."""

    _instance: Optional["ObservabilityManager"] = None

    def __init__(self, config: ObservabilityConfig):
        """Initialize observability manager."""
        self.config = config
        self._setup_logging()

        if config.enable_tracing:
            self._setup_tracing()

        if config.enable_metrics:
            self._setup_metrics()

        logger.info(
            f"Observability initialized: service={config.service_name}, "
            f"log_level={config.log_level}"
        )

    def _setup_logging(self) -> None:
        """Set up structured logging with loguru."""
        logger.remove()

        log_format = (
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        )

        if self.config.json_logs:
            logger.add(
                self.config.sink,
                format=JSONFormatter(),
                level=self.config.log_level,
                colorize=False,
            )
        else:
            logger.add(
                self.config.sink,
                format=log_format,
                level=self.config.log_level,
                colorize=False,
                backtrace=True,
                diagnose=False,
            )

        root = logging.getLogger("bpmn_converter")
        root.handlers = [InterceptHandler()]
        root.setLevel(self.config.log_level)
        root.propagate = False

    def _setup_tracing(self) -> None:
        """Set up OpenTelemetry tracing."""
        resource = Resource(attributes={SERVICE_NAME: self.config.service_name})
        tracer_provider = TracerProvider(resource=resource)
        trace.set_tracer_provider(tracer_provider)
        self.tracer = trace.get_tracer(__name__)
        logger.debug("OpenTelemetry tracing initialized")

    def _setup_metrics(self) -> None:
        """Set up OpenTelemetry metrics."""
        self.metric_reader = InMemoryMetricReader()

        resource = Resource(attributes={SERVICE_NAME: self.config.service_name})
        meter_provider = MeterProvider(resource=resource, metric_readers=[self.metric_reader])
        metrics.set_meter_provider(meter_provider)
        self.meter = metrics.get_meter(__name__)

        self.counter = self.meter.create_counter(
            "converter_events_total",
            description="Total number of counted converter events",
            unit="1",
        )
        self.histogram = self.meter.create_histogram(
            "converter_duration_ms",
            description="Converter stage duration in milliseconds",
            unit="ms",
        )

        logger.debug("OpenTelemetry metrics initialized")

    @classmethod
    def initialize(cls, config: Optional[ObservabilityConfig] = None) -> "ObservabilityManager":
        """Initialize or get singleton instance."""
        if cls._instance is None:
            if config is None:
                config = ObservabilityConfig()
            cls._instance = cls(config)
        return cls._instance

    @classmethod
    def get_instance(cls) -> Optional["ObservabilityManager"]:
        """Get singleton instance, if initialized."""
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (used by the CLI and tests)."""
        cls._instance = None


@contextlib.contextmanager
def span(name: str, attributes: Optional[Dict[str, Any]] = None):
    """Context manager for creating spans."""
    manager = ObservabilityManager.get_instance()

    if manager is not None and hasattr(manager, "tracer"):
        with manager.tracer.start_as_current_span(name) as span_obj:
            if attributes:
                for key, value in attributes.items():
                    span_obj.set_attribute(key, value)
            yield span_obj
    else:
        yield None


def log_execution(
    level: Union[str, LogLevel] = LogLevel.DEBUG,
    include_duration: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for logging function execution.

    Args:
        level: Logging level
        include_duration: Whether to log execution duration
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            log_level = LogLevel(level).value
            func_name = f"{func.__module__}.{func.__qualname__}"
            start_time = time.time()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(f"Function failed: {func_name}: {e}")
                raise

            if include_duration:
                duration_ms = (time.time() - start_time) * 1000
                record_metric(f"{func.__name__}_duration", duration_ms)
                logger.log(log_level, f"Function executed: {func_name} ({duration_ms:.1f}ms)")
            else:
                logger.log(log_level, f"Function executed: {func_name}")
            return result

        return wrapper  # type: ignore

    return decorator


def record_metric(
    metric_name: str,
    value: Union[int, float],
    attributes: Optional[Dict[str, str]] = None,
) -> None:
    """
    Record a metric value with OpenTelemetry.

    Args:
        metric_name: Name of the metric
        value: Metric value
        attributes: Optional attributes for the metric
    """
    manager = ObservabilityManager.get_instance()
    attrs = dict(attributes or {})
    attrs.setdefault("metric", metric_name)

    if manager is not None and hasattr(manager, "counter") and hasattr(manager, "histogram"):
        if metric_name.endswith("_total") or isinstance(value, int):
            manager.counter.add(value, attributes=attrs)
        else:
            manager.histogram.record(value, attributes=attrs)

    logger.debug(f"Metric recorded: {metric_name}={value}")


class Timer:
    """Context manager for timing operations."""

    def __init__(self, name: str, log: bool = True):
        """Initialize timer."""
        self.name = name
        self.log = log
        self.start_time: float = 0
        self.elapsed: float = 0

    def __enter__(self) -> "Timer":
        """Enter context."""
        self.start_time = time.time()
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context."""
        self.elapsed = time.time() - self.start_time
        if self.log:
            logger.debug(f"Timer '{self.name}': {self.elapsed:.3f}s")
            record_metric(f"{self.name}_duration", self.elapsed * 1000)


__all__ = [
    "LogLevel",
    "ObservabilityConfig",
    "ObservabilityManager",
    "span",
    "log_execution",
    "record_metric",
    "Timer",
]
