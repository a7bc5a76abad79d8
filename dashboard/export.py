from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Optional

from .dataset import BoardSnapshot
from .models import MetricsBundle, serialize

EXPORT_VERSION = 1


def build_export(bundle: MetricsBundle, snapshot: Optional[BoardSnapshot] = None) -> Dict[str, Any]:
    """
    Plain document of already computed metrics, as offered by the dashboard
    export button.
    """
    scope = bundle.scope
    board_title = "All boards"
    if scope.board_id != "all":
        board = snapshot.board(scope.board_id) if snapshot else None
        board_title = board.title if board else scope.board_id

    summary = bundle.summary
    return {
        "metadata": {
            "version": EXPORT_VERSION,
            "generatedAt": bundle.generated_at.isoformat(),
            "board": board_title,
            "scope": serialize(scope),
        },
        "summary": {
            "totalTasks": summary.total,
            "completedTasks": summary.completed,
            "activeTasks": summary.active,
            "completionRate": summary.completion_rate,
            "overdueTasks": summary.overdue,
            "avgCycleTimeDays": bundle.avg_cycle_time_days,
        },
        "velocity": {
            "thisWeek": bundle.velocity.this_week,
            "lastWeek": bundle.velocity.last_week,
            "trendPercent": bundle.velocity.trend_percent,
            "dailyThroughput": bundle.throughput.daily,
            "weeklyThroughput": bundle.throughput.weekly,
        },
        "insights": {
            "staleCards": len(bundle.stale_cards),
            "staleCardIds": [card.card_id for card in bundle.stale_cards],
            "bottlenecks": [row.title for row in bundle.bottlenecks if row.flagged],
            "atRiskCards": len(bundle.at_risk),
            "atRiskCardIds": [card.card_id for card in bundle.at_risk],
            "wipWarnings": [entry.title for entry in bundle.wip_warnings],
            "forecastCompletionDate": bundle.forecast.estimated_completion_date.isoformat(),
        },
        "utilization": [
            {
                "assignee": row.assignee,
                "active": row.active,
                "completed": row.completed,
                "capacity": row.capacity,
                "utilization": row.utilization,
            }
            for row in bundle.workload
        ],
        "recommendations": [item.message for item in bundle.recommendations],
    }


def export_json(bundle: MetricsBundle, snapshot: Optional[BoardSnapshot] = None, indent: int = 2) -> str:
    return json.dumps(build_export(bundle, snapshot), indent=indent)


def export_filename(now: datetime) -> str:
    return f"dashboard-export-{now.strftime('%Y-%m-%d')}.json"
