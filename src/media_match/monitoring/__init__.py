"""
Monitoring subsystem for Media Match.
"""

from media_match.monitoring.performance import PerformanceMonitor

__all__ = ["PerformanceMonitor"]
