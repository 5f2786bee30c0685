"""Event handlers for domain events."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hookmap.domain.events import (
        GraphCreated,
        GraphDeleted,
        GraphSaved,
        GraphDeployed,
        GraphStatusChanged,
        AutosaveDropped,
        DeployFailed,
        DeploymentCleanupRequested,
        DeploymentCleanupFailed,
        DeployStateFetchFailed,
    )

logger = logging.getLogger(__name__)


class AuditLogHandler:
    """Logs user-visible graph lifecycle events for audit trail."""

    def handle_graph_created(self, event: GraphCreated) -> None:
        logger.info(f"[AUDIT] Graph created: {event.aggregate_id} - {event.name}")

    def handle_graph_deleted(self, event: GraphDeleted) -> None:
        logger.info(f"[AUDIT] Graph deleted: {event.aggregate_id} - {event.name}")

    def handle_graph_saved(self, event: GraphSaved) -> None:
        logger.info(f"[AUDIT] Graph saved: {event.aggregate_id} (version {event.version})")

    def handle_graph_deployed(self, event: GraphDeployed) -> None:
        logger.info(f"[AUDIT] Graph deployed: {event.aggregate_id} - {event.fingerprint}")

    def handle_status_changed(self, event: GraphStatusChanged) -> None:
        logger.info(f"[AUDIT] Graph {event.aggregate_id} is now {event.status}")

    def handle_cleanup_requested(self, event: DeploymentCleanupRequested) -> None:
        logger.info(
            f"[AUDIT] Trigger removed from {event.aggregate_id}, "
            f"deprovisioning {event.previous_fingerprint}"
        )


class BestEffortFailureHandler:
    """Makes silently dropped background failures visible to operators."""

    def handle_autosave_dropped(self, event: AutosaveDropped) -> None:
        logger.warning(f"[TELEMETRY] Autosave dropped for {event.aggregate_id}: {event.reason}")

    def handle_cleanup_failed(self, event: DeploymentCleanupFailed) -> None:
        logger.warning(f"[TELEMETRY] Deployment cleanup failed for {event.aggregate_id}: {event.reason}")

    def handle_deploy_state_failed(self, event: DeployStateFetchFailed) -> None:
        logger.warning(f"[TELEMETRY] Deploy state unavailable for {event.aggregate_id}: {event.reason}")

    def handle_deploy_failed(self, event: DeployFailed) -> None:
        logger.warning(f"[TELEMETRY] Deploy failed for {event.aggregate_id}: {event.reason}")


def register_event_handlers():
    """Register all event handlers with the publisher."""
    from hookmap.domain.events import (
        event_publisher,
        GraphCreated,
        GraphDeleted,
        GraphSaved,
        GraphDeployed,
        GraphStatusChanged,
        AutosaveDropped,
        DeployFailed,
        DeploymentCleanupRequested,
        DeploymentCleanupFailed,
        DeployStateFetchFailed,
    )

    audit = AuditLogHandler()
    failures = BestEffortFailureHandler()

    # Audit handlers
    event_publisher.subscribe(GraphCreated, audit.handle_graph_created)
    event_publisher.subscribe(GraphDeleted, audit.handle_graph_deleted)
    event_publisher.subscribe(GraphSaved, audit.handle_graph_saved)
    event_publisher.subscribe(GraphDeployed, audit.handle_graph_deployed)
    event_publisher.subscribe(GraphStatusChanged, audit.handle_status_changed)
    event_publisher.subscribe(DeploymentCleanupRequested, audit.handle_cleanup_requested)

    # Best-effort failures
    event_publisher.subscribe(AutosaveDropped, failures.handle_autosave_dropped)
    event_publisher.subscribe(DeploymentCleanupFailed, failures.handle_cleanup_failed)
    event_publisher.subscribe(DeployStateFetchFailed, failures.handle_deploy_state_failed)
    event_publisher.subscribe(DeployFailed, failures.handle_deploy_failed)
