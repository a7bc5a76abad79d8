from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class DashboardScope:
    """
    Narrowing applied before metrics are computed.

    ``board_id`` is a board id or ``"all"``. ``assignee`` keeps cards carrying
    that assignee; ``"unassigned"`` keeps cards nobody is assigned to.
    ``date_range`` (today/week/month/all) only drives the "in range" counts of
    the summary; trend metrics use their own fixed windows.
    """

    board_id: str = "all"
    assignee: Optional[str] = None
    date_range: str = "week"


@dataclass(frozen=True)
class Summary:
    total: int
    completed: int
    active: int
    completion_rate: int
    overdue: int
    due_today: int
    due_this_week: int
    unassigned: int
    created_in_range: int
    completed_in_range: int


@dataclass(frozen=True)
class PriorityCount:
    priority: str
    count: int


@dataclass(frozen=True)
class Velocity:
    this_week: int
    last_week: int
    trend_percent: int


@dataclass(frozen=True)
class Throughput:
    completed_last_30_days: int
    daily: float
    weekly: int


@dataclass(frozen=True)
class WipEntry:
    bucket_id: str
    title: str
    count: int
    warning: bool


@dataclass(frozen=True)
class BurndownPoint:
    day: date
    remaining: int
    ideal: float


@dataclass(frozen=True)
class AssigneeWorkload:
    assignee: str
    active: int
    completed: int
    capacity: int
    utilization: int


@dataclass(frozen=True)
class AssigneeVelocity:
    assignee: str
    current_week: int
    previous_week: int


@dataclass(frozen=True)
class Collaboration:
    multi_assignee_cards: int
    avg_assignees_per_card: float
    top_pair: Optional[Tuple[str, str]] = None
    top_pair_count: int = 0


@dataclass(frozen=True)
class StaleCard:
    card_id: str
    title: str
    bucket_id: str
    last_activity: datetime
    days_inactive: int


@dataclass(frozen=True)
class Bottleneck:
    bucket_id: str
    title: str
    active_count: int
    avg_age_days: float
    stuck_count: int
    flagged: bool


@dataclass(frozen=True)
class AtRiskCard:
    card_id: str
    title: str
    due_date: datetime
    days_remaining: float


@dataclass(frozen=True)
class Forecast:
    active_count: int
    daily_rate: float
    days_to_complete: int
    estimated_completion_date: date


@dataclass(frozen=True)
class AgeBucket:
    label: str
    count: int


@dataclass(frozen=True)
class ChecklistStats:
    cards_with_checklist: int
    total_items: int
    completed_items: int
    completion_rate: int


@dataclass(frozen=True)
class Recommendation:
    priority: str
    kind: str
    message: str


@dataclass(frozen=True)
class TargetProgress:
    user_id: str
    completed_today: int
    daily_target: int
    daily_progress: int
    completed_this_week: int
    weekly_target: int
    weekly_progress: int


@dataclass(frozen=True)
class MetricsBundle:
    generated_at: datetime
    scope: DashboardScope
    summary: Summary
    priority_distribution: Sequence[PriorityCount]
    velocity: Velocity
    avg_cycle_time_days: float
    wip: Sequence[WipEntry]
    throughput: Throughput
    burndown: Sequence[BurndownPoint]
    workload: Sequence[AssigneeWorkload]
    team_velocity: Sequence[AssigneeVelocity]
    collaboration: Collaboration
    stale_cards: Sequence[StaleCard]
    bottlenecks: Sequence[Bottleneck]
    at_risk: Sequence[AtRiskCard]
    forecast: Forecast
    age_distribution: Sequence[AgeBucket]
    checklist: ChecklistStats
    recommendations: Sequence[Recommendation] = field(default_factory=list)
    targets: Optional[TargetProgress] = None

    @property
    def wip_warnings(self) -> List[WipEntry]:
        return [entry for entry in self.wip if entry.warning]

    def as_dict(self) -> Dict[str, Any]:
        """
        Convert the nested dataclasses into a JSON-serialisable structure.

        Keys are camelCased for the frontend; datetimes become ISO strings.
        """
        return serialize(self)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def serialize(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return {_camel(f.name): serialize(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {key: serialize(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [serialize(item) for item in obj]
    return obj
