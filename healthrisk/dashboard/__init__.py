"""HealthRisk dashboard services"""

from .service import DashboardService

__all__ = ["DashboardService"]
