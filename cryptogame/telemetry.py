"""OpenTelemetry metrics and logs for the crypto trading game."""

import logging
import os
from decimal import Decimal

from opentelemetry import metrics
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from cryptogame._version import VERSION

logger = logging.getLogger(__name__)

# Module-level state
_initialized = False
_meter = None
_log_handler = None

# Counters (cumulative)
_trades_total = None
_trade_value_total = None
_trades_rejected_total = None
_quotes_total = None
_upstream_failures_total = None
_leaderboard_rebuilds_total = None
_standing_persist_failures_total = None

# Gauges (current state) - using ObservableGauge with callbacks
_gauge_callbacks = {}


def setup_telemetry() -> bool:
    """Initialize OpenTelemetry metrics and log export.

    Returns True if telemetry was initialized, False if disabled.
    """
    global _initialized, _meter, _log_handler
    global _trades_total, _trade_value_total, _trades_rejected_total
    global _quotes_total, _upstream_failures_total
    global _leaderboard_rebuilds_total, _standing_persist_failures_total

    if _initialized:
        return True

    # Check if telemetry is enabled
    if os.getenv("OTLP_ENABLED", "true").lower() == "false":
        return False

    # Get configuration from environment
    otlp_endpoint = os.getenv("OTLP_ENDPOINT", "http://localhost:4318/v1/metrics")
    export_interval = int(os.getenv("OTLP_EXPORT_INTERVAL", "5000"))

    resource = Resource.create({
        "service.name": "cryptogame",
        "service.version": VERSION,
    })

    exporter = OTLPMetricExporter(endpoint=otlp_endpoint)
    reader = PeriodicExportingMetricReader(
        exporter,
        export_interval_millis=export_interval,
    )
    provider = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(provider)

    _meter = metrics.get_meter("cryptogame", VERSION)

    _trades_total = _meter.create_counter(
        "game_trades_total",
        description="Total number of trades executed",
        unit="1",
    )

    _trade_value_total = _meter.create_counter(
        "game_trade_value_total",
        description="Total cash value of trades",
        unit="currency",
    )

    _trades_rejected_total = _meter.create_counter(
        "game_trades_rejected_total",
        description="Trades rejected by the ledger, by reason",
        unit="1",
    )

    _quotes_total = _meter.create_counter(
        "pricing_quotes_total",
        description="Quotes served, by fallback tier",
        unit="1",
    )

    _upstream_failures_total = _meter.create_counter(
        "pricing_upstream_failures_total",
        description="Failed calls to the upstream price provider",
        unit="1",
    )

    _leaderboard_rebuilds_total = _meter.create_counter(
        "leaderboard_rebuilds_total",
        description="Full leaderboard recomputations",
        unit="1",
    )

    _standing_persist_failures_total = _meter.create_counter(
        "leaderboard_persist_failures_total",
        description="Per-user standings that could not be saved",
        unit="1",
    )

    # === LOGS ===
    logs_endpoint = otlp_endpoint.replace("/v1/metrics", "/v1/logs")
    log_exporter = OTLPLogExporter(endpoint=logs_endpoint)
    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(log_exporter))
    set_logger_provider(logger_provider)

    _log_handler = LoggingHandler(
        level=logging.INFO,
        logger_provider=logger_provider,
    )

    _initialized = True
    return True


def get_log_handler() -> LoggingHandler | None:
    """Get the OTLP logging handler to attach to Python loggers."""
    return _log_handler


# --- Counter update functions ---

def record_trade(asset_id: str, side: str, total: Decimal) -> None:
    """Record a trade execution."""
    if not _initialized:
        return

    attributes = {"asset_id": asset_id, "side": side}
    _trades_total.add(1, attributes)
    _trade_value_total.add(float(total), attributes)


def record_trade_rejected(reason: str) -> None:
    if not _initialized:
        return

    _trades_rejected_total.add(1, {"reason": reason})


def record_quote(asset_id: str, source: str) -> None:
    """Record a quote served by the resolver."""
    if not _initialized:
        return

    _quotes_total.add(1, {"asset_id": asset_id, "source": source})


def record_upstream_failure(kind: str) -> None:
    if not _initialized:
        return

    _upstream_failures_total.add(1, {"kind": kind})


def record_leaderboard_rebuild(user_count: int, asset_count: int, failures: int) -> None:
    """Record a completed leaderboard recomputation."""
    if not _initialized:
        return

    _leaderboard_rebuilds_total.add(1, {})
    if failures:
        _standing_persist_failures_total.add(failures, {})
    logger.debug(
        "Leaderboard rebuild recorded",
        extra={"users": user_count, "assets": asset_count, "failures": failures},
    )


# --- Gauge registration for observable metrics ---

def register_gauge_callback(name: str, callback, description: str, unit: str = "1") -> None:
    """Register a callback for an observable gauge.

    The callback should return an iterable of (value, attributes) tuples.
    """
    if not _initialized or _meter is None:
        return

    if name in _gauge_callbacks:
        return  # Already registered

    def wrapped_callback(options):
        try:
            for value, attrs in callback():
                yield metrics.Observation(value, attrs)
        except Exception:
            logger.debug("Gauge callback %s failed", name, exc_info=True)

    _meter.create_observable_gauge(
        name,
        callbacks=[wrapped_callback],
        description=description,
        unit=unit,
    )
    _gauge_callbacks[name] = callback


# --- Leaderboard metrics storage ---
# These store the latest values and are exported as observable gauges
_total_values: dict[str, float] = {}  # user_id -> total_value
_ranks: dict[str, int] = {}  # user_id -> rank


def _total_value_callback():
    for user_id, value in _total_values.items():
        yield (value, {"user_id": user_id})


def _rank_callback():
    for user_id, rank in _ranks.items():
        yield (rank, {"user_id": user_id})


def setup_leaderboard_metrics() -> None:
    """Register leaderboard observable gauges.

    Call this after setup_telemetry().
    """
    if not _initialized or _meter is None:
        return

    register_gauge_callback(
        "player_total_value",
        _total_value_callback,
        "Total portfolio value (cash + positions)",
        "currency",
    )

    register_gauge_callback(
        "player_rank",
        _rank_callback,
        "Leaderboard rank",
        "1",
    )


def record_standing(user_id: str, total_value: Decimal, rank: int) -> None:
    """Record the latest leaderboard standing of a user."""
    if not _initialized:
        return

    _total_values[user_id] = float(total_value)
    _ranks[user_id] = rank
