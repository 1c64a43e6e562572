"""
Main Orchestrator for Bookd

Builds and wires the application components:
1. Mileage service (Google Maps client + distance cache + heuristic fallback)
2. Daily backup service (when a record source is available)
3. Audit logger shared by both

DESIGN DECISION: Components are constructed explicitly here instead of
living as module-level singletons. Nothing starts a timer at import time;
the caller starts and stops the mileage service.
"""

from typing import Optional

import structlog

from bookd.audit import AuditLogger
from bookd.config import get_settings
from bookd.services.backup import DailyBackupService
from bookd.services.mileage import (
    DistanceCache,
    GoogleMapsDistanceClient,
    HeuristicDistanceEstimator,
    MileageService,
)
from bookd.services.storage import AuditStorageInterface, RecordSourceInterface


logger = structlog.get_logger(__name__)


def create_mileage_service(
    audit_logger: Optional[AuditLogger] = None,
) -> MileageService:
    """Mileage service configured from the environment."""
    settings = get_settings()
    maps_settings = settings.google_maps
    mileage_settings = settings.mileage

    if not maps_settings.is_configured:
        logger.warning(
            "google_maps_not_configured",
            detail="Distances will be heuristic estimates",
        )

    return MileageService(
        maps_client=GoogleMapsDistanceClient(maps_settings),
        cache=DistanceCache(
            ttl_seconds=mileage_settings.cache_ttl_seconds,
            max_entries=mileage_settings.cache_max_entries,
            sweep_interval_seconds=mileage_settings.cache_sweep_interval_seconds,
            on_sweep=(
                audit_logger.log_cache_swept if audit_logger else None
            ),
        ),
        estimator=HeuristicDistanceEstimator(),
        audit_logger=audit_logger,
        settings=mileage_settings,
    )


def create_app_components(
    record_source: Optional[RecordSourceInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> tuple[MileageService, Optional[DailyBackupService], AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        record_source: Source of stored tables for backups.
                       Without one, no backup service is created.
        audit_storage: Where audit events are persisted.
                       Without one, audit events only go to the local log.

    Returns:
        (mileage_service, backup_service, audit_logger)
    """
    audit_logger = AuditLogger(audit_storage)
    mileage_service = create_mileage_service(audit_logger)

    backup_service = None
    if record_source is not None:
        backup_service = DailyBackupService(
            source=record_source,
            settings=get_settings().backup,
            audit_logger=audit_logger,
        )

    return mileage_service, backup_service, audit_logger
