"""Server-side telemetry for provider selection and stream draws."""
import logging
from dataclasses import asdict, dataclass
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    """Protocol for telemetry sinks."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Emit a telemetry event."""
        ...


class LoggingTelemetrySink:
    """Default sink that logs telemetry events."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Log telemetry event."""
        logger.info("TELEMETRY %s: %s", event_name, data)


@dataclass
class ProviderSelectedEvent:
    """provider_selected: which provider the process ended up with."""

    kind: str  # "bytes" | "words" | "alea"
    is_secure: bool
    requested_mode: str
    fallback_reason: str | None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return asdict(self)


@dataclass
class StreamCreatedEvent:
    """stream_created: a reproducible stream was seeded."""

    client_id: str
    stream_id: str
    seed_count: int
    time_seeded: bool
    config_hash: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return asdict(self)


@dataclass
class DrawServedEvent:
    """draw_served: a stream draw was computed (not replayed)."""

    client_id: str
    stream_id: str
    client_request_id: str
    op: str
    count: int
    position: int  # fractions drawn from the stream after this request
    lock_acquire_ms: float
    config_hash: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return asdict(self)


@dataclass
class DrawRejectedEvent:
    """draw_rejected: a stream draw was refused."""

    client_id: str
    stream_id: str
    client_request_id: str | None
    reason: str  # "STREAM_BUSY" | "STREAM_NOT_FOUND" | ...
    lock_acquire_ms: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return asdict(self)


class TelemetryService:
    """Service for emitting server telemetry events."""

    def __init__(self, sink: TelemetrySink | None = None):
        self._sink = sink or LoggingTelemetrySink()
        self._sink_errors = 0  # Counter for sink failures

    def set_sink(self, sink: TelemetrySink) -> None:
        """Set the telemetry sink (useful for testing)."""
        self._sink = sink

    def _safe_emit(self, event_name: str, data: dict[str, Any]) -> None:
        """
        Emit event with exception safety.

        Sink failures MUST NOT break requests or provider selection.
        """
        try:
            self._sink.emit(event_name, data)
        except Exception as e:
            self._sink_errors += 1
            logger.warning(
                "Telemetry sink error (count=%d): %s - %s",
                self._sink_errors,
                event_name,
                str(e),
            )

    def emit_provider_selected(self, event: ProviderSelectedEvent) -> None:
        """Emit provider_selected event."""
        self._safe_emit("provider_selected", event.to_dict())

    def emit_stream_created(self, event: StreamCreatedEvent) -> None:
        """Emit stream_created event."""
        self._safe_emit("stream_created", event.to_dict())

    def emit_draw_served(self, event: DrawServedEvent) -> None:
        """Emit draw_served event."""
        self._safe_emit("draw_served", event.to_dict())

    def emit_draw_rejected(self, event: DrawRejectedEvent) -> None:
        """Emit draw_rejected event."""
        self._safe_emit("draw_rejected", event.to_dict())


# Global instance
telemetry_service = TelemetryService()
