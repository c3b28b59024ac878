"""
Performance Monitoring System

Collects and logs ingestion metrics using pipeline hooks.
"""

import json
import logging
import statistics
import time
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


class PerformanceMonitor:
    """
    Records one metric per analyze stage and one per match stage.

    Features:
    - Stage durations
    - Failure and match counters
    - JSON-lines log files (one per day)
    - In-memory recent metrics for the stats endpoint
    """

    def __init__(self, log_dir: str = "logs", max_recent: int = 100):
        """
        Initialize performance monitor.

        Args:
            log_dir: Directory for log files
            max_recent: Max number of recent metrics to keep in memory
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.recent_metrics: deque = deque(maxlen=max_recent)

        self.stats = {
            "items_analyzed": 0,
            "items_failed": 0,
            "matcher_runs": 0,
            "comparisons": 0,
            "comparison_failures": 0,
            "matches_recorded": 0,
        }

        self._setup_logger()

    def _setup_logger(self):
        """Setup JSON logger for metrics."""
        self.logger = logging.getLogger(f"media_match.metrics.{id(self)}")
        self.logger.setLevel(logging.INFO)

        log_file = self.log_dir / f"metrics_{datetime.now().strftime('%Y%m%d')}.jsonl"
        handler = logging.FileHandler(log_file)
        handler.setLevel(logging.INFO)
        # Messages are already JSON
        handler.setFormatter(logging.Formatter('%(message)s'))

        self.logger.handlers.clear()
        self.logger.addHandler(handler)
        self.logger.propagate = False

    def close(self) -> None:
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    def register(self, hooks) -> None:
        """Attach this monitor to a PipelineHookManager."""
        hooks.register_after("analyze", self.record_analysis)
        hooks.register_after("match", self.record_match_run)

    async def record_analysis(self, context: Dict[str, Any]):
        """Record the outcome of one analysis stage."""
        failed = context.get("state") == "failed"
        metric = {
            "timestamp": datetime.now().isoformat(),
            "type": "analysis",
            "item_id": str(context.get("item_id")),
            "state": context.get("state"),
            "duration": self._duration(context),
            "payload_bytes": context.get("payload_bytes", 0),
        }
        if failed:
            metric["error"] = context.get("error")
            self.stats["items_failed"] += 1
        else:
            self.stats["items_analyzed"] += 1

        self._emit(metric)

    async def record_match_run(self, context: Dict[str, Any]):
        """Record the outcome of one matcher run."""
        metric = {
            "timestamp": datetime.now().isoformat(),
            "type": "match_run",
            "item_id": str(context.get("item_id")),
            "duration": self._duration(context),
            "candidates": context.get("candidate_count", 0),
            "comparison_failures": context.get("comparison_failures", 0),
            "matches": context.get("match_count", 0),
            "stored": context.get("stored", False),
        }
        self.stats["matcher_runs"] += 1
        self.stats["comparisons"] += metric["candidates"]
        self.stats["comparison_failures"] += metric["comparison_failures"]
        self.stats["matches_recorded"] += metric["matches"] if metric["stored"] else 0

        self._emit(metric)

    def get_recent_metrics(self, limit: Optional[int] = None) -> List[Dict]:
        """Get recent metrics from memory."""
        metrics = list(self.recent_metrics)
        if limit:
            metrics = metrics[-limit:]
        return metrics

    def get_summary(self) -> Dict[str, Any]:
        """Get aggregated performance summary."""
        recent = list(self.recent_metrics)
        analysis = [m["duration"] for m in recent if m["type"] == "analysis"]
        matching = [m["duration"] for m in recent if m["type"] == "match_run"]

        return {
            **self.stats,
            "recent_count": len(recent),
            "avg_analysis_duration": round(statistics.mean(analysis), 3) if analysis else 0,
            "avg_match_duration": round(statistics.mean(matching), 3) if matching else 0,
        }

    def _emit(self, metric: Dict[str, Any]) -> None:
        self.recent_metrics.append(metric)
        self.logger.info(json.dumps(metric))

    @staticmethod
    def _duration(context: Dict[str, Any]) -> float:
        return round(time.time() - context.get("start_time", time.time()), 3)
