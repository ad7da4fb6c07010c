"""Projects stored in organizations."""

from .dto import ProjectOut
from .service import ProjectService
from .stats import compute_stats

__all__ = ["ProjectOut", "ProjectService", "compute_stats"]
