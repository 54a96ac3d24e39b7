"""
Audit Logger

DESIGN DECISION: Every significant ledger event is logged.
This provides:
1. Traceability of what happened to the ledger and when
2. Debugging capability when a load or a write goes wrong
3. The reporting channel for persistence failures

The audit logger:
- Always logs locally through structlog
- Optionally appends events to an EventSinkInterface
- Gracefully handles sink failures (never breaks a transform)
"""

from typing import Optional

import structlog

from homebudget.models.events import LedgerEvent, LedgerEventSeverity
from homebudget.services.storage import EventSinkInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central ledger event logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An optional event sink (for inspection by the host application)
    """

    def __init__(
        self,
        sink: Optional[EventSinkInterface] = None,
    ):
        """
        Args:
            sink: Event sink for persistence.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger("homebudget.audit")

    @property
    def sink(self) -> Optional[EventSinkInterface]:
        return self._sink

    def log(self, event: LedgerEvent) -> bool:
        """
        Log a ledger event.

        Always logs locally. Appends to the sink if one is configured.

        Returns True if the sink write succeeded (or no sink configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == LedgerEventSeverity.ERROR:
            self._logger.error("ledger_event", **log_dict)
        elif event.severity == LedgerEventSeverity.WARNING:
            self._logger.warning("ledger_event", **log_dict)
        elif event.severity == LedgerEventSeverity.DEBUG:
            self._logger.debug("ledger_event", **log_dict)
        else:
            self._logger.info("ledger_event", **log_dict)

        if self._sink:
            try:
                return self._sink.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "event_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True
