from .performance_tracker import PerformanceTracker, RunningMetric, update_moving_average

__all__ = ["PerformanceTracker", "RunningMetric", "update_moving_average"]
