# ABOUTME: Groups the heuristic validator and the privacy-jitter measurement standardizer.
# ABOUTME: Everything persisted or displayed passes through MeasurementStandardizer first.

from .standardizer import MeasurementStandardizer, approximate
from .validator import HeuristicValidator

__all__ = ["MeasurementStandardizer", "HeuristicValidator", "approximate"]
