"""Domain events for decoupled side effects and telemetry."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for all domain events."""
    event_id: str
    timestamp: Optional[datetime]
    aggregate_id: str

    def __post_init__(self):
        if not self.event_id:
            object.__setattr__(self, 'event_id', str(uuid4()))
        if not self.timestamp:
            object.__setattr__(self, 'timestamp', datetime.now(timezone.utc))


@dataclass
class GraphCreated(DomainEvent):
    """Raised when a new graph is created."""
    name: str


@dataclass
class GraphDeleted(DomainEvent):
    """Raised when a graph is deleted."""
    name: str


@dataclass
class GraphSaved(DomainEvent):
    """Raised after an explicit save succeeded."""
    version: Optional[int]


@dataclass
class GraphAutosaved(DomainEvent):
    """Raised after a positional autosave succeeded."""
    version: Optional[int]


@dataclass
class AutosaveDropped(DomainEvent):
    """Raised when a positional autosave attempt was discarded."""
    reason: str


@dataclass
class GraphDeployed(DomainEvent):
    """Raised when the graph was compiled and is now active."""
    fingerprint: Optional[str]


@dataclass
class DeployFailed(DomainEvent):
    """Raised when a deploy request failed."""
    reason: str


@dataclass
class DeploymentCleanupRequested(DomainEvent):
    """Raised when a save removed the deployed trigger and a cleanup compile is issued."""
    previous_fingerprint: str


@dataclass
class DeploymentCleanupFailed(DomainEvent):
    """Raised when the cleanup compile after a trigger removal failed."""
    reason: str


@dataclass
class DeployStateFetchFailed(DomainEvent):
    """Raised when the deploy-state prefetch on graph load failed."""
    reason: str


@dataclass
class GraphStatusChanged(DomainEvent):
    """Raised when a graph was paused or resumed."""
    status: str


class DomainEventPublisher:
    """Singleton publisher for domain events."""

    _instance: DomainEventPublisher | None = None
    _subscribers: Dict[type, List[Callable[[DomainEvent], None]]]

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._subscribers = {}
        return cls._instance

    def subscribe(self, event_type: type[DomainEvent], handler: Callable[[DomainEvent], None]) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers."""
        event_type = type(event)
        if event_type in self._subscribers:
            for handler in self._subscribers[event_type]:
                try:
                    handler(event)
                except Exception:
                    # Log error but don't fail the main operation
                    logger.exception(f"Event handler error for {event_type.__name__}")

    def clear_subscribers(self) -> None:
        """Clear all subscribers (useful for testing)."""
        self._subscribers = {}


# Singleton instance
event_publisher = DomainEventPublisher()
