"""
Service Factory for dependency injection.

This module provides a factory for creating properly configured service
instances over one shared storage port and clock.
"""
from typing import Optional

from ..utils import Clock, resolve_clock
from .match_summary_service import MatchSummaryExporter, MatchSummaryService
from .plan_progress_service import PlanProgressService
from .recovery_service import CrashRecoveryService
from .storage import InMemoryStorage, StoragePort


class ServiceFactory:
    """
    Factory for creating service instances with proper dependency injection.

    Args:
        storage: Storage port shared by every service (in-memory by default)
        clock: Clock shared by every service (wall clock by default)
    """

    def __init__(self, storage: Optional[StoragePort] = None, clock: Optional[Clock] = None):
        self.storage: StoragePort = storage if storage is not None else InMemoryStorage()
        self.clock: Clock = resolve_clock(clock)
        self._export_service: Optional[MatchSummaryExporter] = None
        self._plan_progress_service: Optional[PlanProgressService] = None

    def create_summary_service(self) -> MatchSummaryService:
        return MatchSummaryService(clock=self.clock, export_service=self._get_export_service())

    def create_recovery_service(self) -> CrashRecoveryService:
        return CrashRecoveryService(self.storage, clock=self.clock)

    def get_plan_progress_service(self) -> PlanProgressService:
        """Get singleton plan progress service; it remembers the last sync context."""
        if self._plan_progress_service is None:
            self._plan_progress_service = PlanProgressService(self.storage)
        return self._plan_progress_service

    def create_complete_service_suite(self) -> dict:
        """
        Create a complete suite of services with proper dependencies.

        Returns:
            Dictionary containing all configured services
        """
        return {
            'summary': self.create_summary_service(),
            'recovery': self.create_recovery_service(),
            'plan_progress': self.get_plan_progress_service(),
        }

    def _get_export_service(self) -> MatchSummaryExporter:
        """Get singleton export service."""
        if self._export_service is None:
            self._export_service = MatchSummaryExporter()
        return self._export_service

    def configure_custom_export_service(self, exporter: MatchSummaryExporter) -> None:
        """Configure custom export service - supports OCP."""
        self._export_service = exporter
