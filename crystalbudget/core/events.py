"""Engine diagnostics events.

Aggregation functions stay pure: instead of global debug flags they accept an
optional ``Diagnostics`` sink and record what they noticed into it.
"""
from typing import Dict, List, Callable, Any, Optional
from datetime import datetime, timezone
from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)


class EngineEvent(ABC):
    """Base diagnostics event class."""

    def __init__(self):
        self.timestamp = datetime.now(timezone.utc)

    @property
    @abstractmethod
    def event_type(self) -> str:
        """Event type identifier."""

    def to_dict(self) -> Dict:
        """Convert event to dictionary."""
        return {
            'event_type': self.event_type,
            'timestamp': self.timestamp.isoformat(),
            'data': self._get_data()
        }

    @abstractmethod
    def _get_data(self) -> Dict:
        """Get event-specific data."""


class RoundingMismatch(EngineEvent):
    """Distributed shares do not add up to the requested total."""

    def __init__(self, total, distributed, tolerance):
        super().__init__()
        self.total = total
        self.distributed = distributed
        self.tolerance = tolerance

    @property
    def event_type(self) -> str:
        return 'rounding.mismatch'

    def _get_data(self) -> Dict:
        return {
            'total': str(self.total),
            'distributed': str(self.distributed),
            'diff': str(self.distributed - self.total),
            'tolerance': str(self.tolerance)
        }


class OrphanedReference(EngineEvent):
    """Allocation points at an income source that is not in the lookup."""

    def __init__(self, category_id, source_id, currency: str):
        super().__init__()
        self.category_id = category_id
        self.source_id = source_id
        self.currency = currency

    @property
    def event_type(self) -> str:
        return 'reference.orphaned'

    def _get_data(self) -> Dict:
        return {
            'category_id': self.category_id,
            'source_id': self.source_id,
            'currency': self.currency
        }


class InvalidAmount(EngineEvent):
    """Transaction amount failed numeric validation and was ignored."""

    def __init__(self, kind: str, transaction_id, value: Any):
        super().__init__()
        self.kind = kind
        self.transaction_id = transaction_id
        self.value = value

    @property
    def event_type(self) -> str:
        return 'amount.invalid'

    def _get_data(self) -> Dict:
        return {
            'kind': self.kind,
            'transaction_id': self.transaction_id,
            'value': repr(self.value)
        }


class Diagnostics:
    """Collects engine events and forwards them to subscribed handlers."""

    def __init__(self):
        self.events: List[EngineEvent] = []
        self._handlers: Dict[str, List[Callable[[EngineEvent], None]]] = {}

    def subscribe(self, event_type: str, handler: Callable[[EngineEvent], None]) -> None:
        """Subscribe handler to event type ('*' for every event)."""
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler {getattr(handler, '__name__', handler)} to {event_type}")

    def record(self, event: EngineEvent) -> None:
        """Store event and notify handlers."""
        self.events.append(event)
        handlers = self._handlers.get(event.event_type, []) + self._handlers.get('*', [])
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in diagnostics handler for {event.event_type}: {e}")

    def of_type(self, event_type: str) -> List[EngineEvent]:
        """Recorded events of a given type."""
        return [event for event in self.events if event.event_type == event_type]

    def to_list(self) -> List[Dict]:
        return [event.to_dict() for event in self.events]

    def clear(self) -> None:
        self.events.clear()


def record(diagnostics: Optional[Diagnostics], event: EngineEvent) -> None:
    """Record event if a sink was supplied."""
    if diagnostics is not None:
        diagnostics.record(event)
