"""
Aggregation engine behind the analytics dashboard.

Every metric is a pure function of the scoped cards and a single ``now``
captured once per computation, so metrics of one render never disagree
about the current time.
"""

from __future__ import annotations

import math
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from itertools import combinations
from statistics import mean
from typing import Dict, Iterable, List, Optional, Sequence

from helpers.dates import DAY, days_between, end_of_day, ensure_aware, start_of_day
from models.boards import Bucket, Card, Priority

from .dataset import BoardSnapshot
from .models import (
    AgeBucket,
    AssigneeVelocity,
    AssigneeWorkload,
    AtRiskCard,
    Bottleneck,
    BurndownPoint,
    ChecklistStats,
    Collaboration,
    DashboardScope,
    Forecast,
    MetricsBundle,
    PriorityCount,
    Recommendation,
    StaleCard,
    Summary,
    TargetProgress,
    Throughput,
    Velocity,
    WipEntry,
)
from .preferences import UserContext

WIP_LIMIT = 10
ASSIGNEE_CAPACITY = 8
STALE_AFTER_DAYS = 14
STUCK_AFTER_DAYS = 7
BOTTLENECK_AGE_DAYS = 10
BOTTLENECK_STUCK_COUNT = 3
BURNDOWN_DAYS = 30
THROUGHPUT_DAYS = 30
FORECAST_MIN_DAILY_RATE = 0.5
TEAM_VELOCITY_LIMIT = 10
MAX_RECOMMENDATIONS = 4
PRIORITY_ORDER = ("high", "medium", "low", "none")
AGE_BUCKETS = (("<3d", 3), ("3-7d", 7), ("1-2wk", 14), ("2-4wk", 28), (">4wk", None))
DATE_RANGE_DAYS = {"week": 7, "month": 30}


def round_half_up(value: float, digits: int = 0):
    """Round like ``Math.round`` (halves go up); integers for ``digits=0``."""
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def _percent(part: float, whole: float) -> int:
    if whole == 0:
        return 0
    return round_half_up(part / whole * 100)


def _active(cards: Iterable[Card]) -> List[Card]:
    return [card for card in cards if not card.completed]


def _last_activity(card: Card) -> datetime:
    return ensure_aware(card.updated_at or card.created_at)


def _completed_between(cards: Iterable[Card], start: datetime, end: datetime, include_end: bool = True) -> List[Card]:
    result = []
    for card in cards:
        if not card.completed or card.updated_at is None:
            continue
        updated = ensure_aware(card.updated_at)
        if start <= updated and (updated <= end if include_end else updated < end):
            result.append(card)
    return result


# -------------------- counts & rates --------------------

def completion_rate(cards: Sequence[Card]) -> int:
    return _percent(sum(1 for card in cards if card.completed), len(cards))


def priority_distribution(cards: Iterable[Card]) -> List[PriorityCount]:
    counts = Counter(
        Priority(card.priority).value if card.priority else "none"
        for card in _active(cards)
    )
    return [PriorityCount(priority=name, count=counts[name]) for name in PRIORITY_ORDER if counts[name] > 0]


def is_overdue(card: Card, now: datetime) -> bool:
    due = ensure_aware(card.due_date)
    return not card.completed and due is not None and due < start_of_day(now)


def is_due_today(card: Card, now: datetime) -> bool:
    due = ensure_aware(card.due_date)
    return not card.completed and due is not None and start_of_day(now) <= due <= end_of_day(now)


def is_due_this_week(card: Card, now: datetime) -> bool:
    due = ensure_aware(card.due_date)
    return not card.completed and due is not None and now < due < now + timedelta(days=7)


def summarize(cards: Sequence[Card], now: datetime, date_range: str = "week") -> Summary:
    completed = sum(1 for card in cards if card.completed)
    range_start = _range_start(date_range, now)
    if range_start is None:
        created_in_range = len(cards)
        completed_in_range = completed
    else:
        created_in_range = sum(1 for card in cards if ensure_aware(card.created_at) >= range_start)
        completed_in_range = len(_completed_between(cards, range_start, now))
    return Summary(
        total=len(cards),
        completed=completed,
        active=len(cards) - completed,
        completion_rate=completion_rate(cards),
        overdue=sum(1 for card in cards if is_overdue(card, now)),
        due_today=sum(1 for card in cards if is_due_today(card, now)),
        due_this_week=sum(1 for card in cards if is_due_this_week(card, now)),
        unassigned=sum(1 for card in _active(cards) if not card.assignees),
        created_in_range=created_in_range,
        completed_in_range=completed_in_range,
    )


def _range_start(date_range: str, now: datetime) -> Optional[datetime]:
    if date_range == "today":
        return start_of_day(now)
    if date_range in DATE_RANGE_DAYS:
        return now - timedelta(days=DATE_RANGE_DAYS[date_range])
    return None


# -------------------- flow --------------------

def velocity(cards: Sequence[Card], now: datetime) -> Velocity:
    week_ago = now - timedelta(days=7)
    this_week = len(_completed_between(cards, week_ago, now))
    last_week = len(_completed_between(cards, now - timedelta(days=14), week_ago, include_end=False))
    return Velocity(this_week=this_week, last_week=last_week, trend_percent=trend_percent(this_week, last_week))


def trend_percent(current: int, previous: int) -> int:
    if previous == 0:
        return 0
    return round_half_up((current - previous) / previous * 100)


def avg_cycle_time(cards: Iterable[Card]) -> float:
    durations = [
        days_between(card.created_at, card.updated_at)
        for card in cards
        if card.completed and card.created_at and card.updated_at
    ]
    if not durations:
        return 0
    return round_half_up(mean(durations), 1)


def work_in_progress(cards: Iterable[Card], buckets: Sequence[Bucket]) -> List[WipEntry]:
    counts = Counter(card.bucket_id for card in _active(cards))
    return [
        WipEntry(bucket_id=bucket.id, title=bucket.title, count=counts[bucket.id], warning=counts[bucket.id] > WIP_LIMIT)
        for bucket in buckets
    ]


def throughput(cards: Sequence[Card], now: datetime) -> Throughput:
    completed = len(_completed_between(cards, now - timedelta(days=THROUGHPUT_DAYS), now))
    daily = round_half_up(completed / THROUGHPUT_DAYS, 1)
    return Throughput(completed_last_30_days=completed, daily=daily, weekly=round_half_up(daily * 7))


def burndown(cards: Sequence[Card], now: datetime, days: int = BURNDOWN_DAYS) -> List[BurndownPoint]:
    """Remaining open cards at the end of each of the last ``days`` days plus today."""
    today = start_of_day(now)
    remaining_series = []
    for offset in range(days, -1, -1):
        day = today - offset * DAY
        cutoff = end_of_day(day)
        remaining = 0
        for card in cards:
            if ensure_aware(card.created_at) > cutoff:
                continue
            if card.completed and ensure_aware(card.updated_at) <= cutoff:
                continue
            remaining += 1
        remaining_series.append((day, remaining))

    start_total = remaining_series[0][1]
    return [
        BurndownPoint(
            day=day.date(),
            remaining=remaining,
            ideal=round_half_up(start_total * (days - index) / days, 2),
        )
        for index, (day, remaining) in enumerate(remaining_series)
    ]


# -------------------- people --------------------

def workload(cards: Iterable[Card]) -> List[AssigneeWorkload]:
    active: Dict[str, int] = defaultdict(int)
    completed: Dict[str, int] = defaultdict(int)
    for card in cards:
        for assignee in card.assignees:
            if card.completed:
                completed[assignee] += 1
                active.setdefault(assignee, 0)
            else:
                active[assignee] += 1
    rows = [
        AssigneeWorkload(
            assignee=assignee,
            active=count,
            completed=completed[assignee],
            capacity=ASSIGNEE_CAPACITY,
            utilization=_percent(count, ASSIGNEE_CAPACITY),
        )
        for assignee, count in active.items()
    ]
    return sorted(rows, key=lambda row: -row.active)


def team_velocity(cards: Sequence[Card], now: datetime) -> List[AssigneeVelocity]:
    week_ago = now - timedelta(days=7)
    current = Counter(a for card in _completed_between(cards, week_ago, now) for a in card.assignees)
    previous = Counter(
        a for card in _completed_between(cards, now - timedelta(days=14), week_ago, include_end=False)
        for a in card.assignees
    )
    assignees = list(dict.fromkeys(a for card in cards for a in card.assignees))
    rows = [
        AssigneeVelocity(assignee=a, current_week=current[a], previous_week=previous[a])
        for a in assignees
    ]
    return sorted(rows, key=lambda row: -row.current_week)[:TEAM_VELOCITY_LIMIT]


def collaboration(cards: Iterable[Card]) -> Collaboration:
    assigned = [card for card in cards if card.assignees]
    shared = [card for card in assigned if len(card.assignees) > 1]
    pairs = Counter(
        pair
        for card in shared
        for pair in combinations(sorted(set(card.assignees)), 2)
    )
    top = pairs.most_common(1)
    return Collaboration(
        multi_assignee_cards=len(shared),
        avg_assignees_per_card=round_half_up(mean(len(card.assignees) for card in assigned), 1) if assigned else 0,
        top_pair=top[0][0] if top else None,
        top_pair_count=top[0][1] if top else 0,
    )


# -------------------- health --------------------

def stale_cards(cards: Iterable[Card], now: datetime) -> List[StaleCard]:
    cutoff = now - timedelta(days=STALE_AFTER_DAYS)
    stale = [card for card in _active(cards) if _last_activity(card) < cutoff]
    stale.sort(key=_last_activity)
    return [
        StaleCard(
            card_id=card.id,
            title=card.title,
            bucket_id=card.bucket_id,
            last_activity=_last_activity(card),
            days_inactive=math.floor(days_between(_last_activity(card), now)),
        )
        for card in stale
    ]


def bottlenecks(cards: Iterable[Card], buckets: Sequence[Bucket], now: datetime) -> List[Bottleneck]:
    stuck_cutoff = now - timedelta(days=STUCK_AFTER_DAYS)
    by_bucket: Dict[str, List[Card]] = defaultdict(list)
    for card in _active(cards):
        by_bucket[card.bucket_id].append(card)

    rows = []
    for bucket in buckets:
        active = by_bucket.get(bucket.id)
        if not active:
            continue
        avg_age = mean(days_between(card.created_at, now) for card in active)
        stuck = sum(1 for card in active if _last_activity(card) < stuck_cutoff)
        rows.append(Bottleneck(
            bucket_id=bucket.id,
            title=bucket.title,
            active_count=len(active),
            avg_age_days=round_half_up(avg_age, 1),
            stuck_count=stuck,
            flagged=avg_age > BOTTLENECK_AGE_DAYS or stuck > BOTTLENECK_STUCK_COUNT,
        ))
    return sorted(rows, key=lambda row: -row.stuck_count)


def at_risk(cards: Iterable[Card], now: datetime, weekly_velocity: Velocity) -> List[AtRiskCard]:
    """Open cards due within a week while fewer than one card a day gets done."""
    if weekly_velocity.this_week / 7 >= 1:
        return []
    rows = []
    for card in _active(cards):
        if card.due_date is None:
            continue
        remaining = days_between(now, card.due_date)
        if 0 < remaining < 7:
            rows.append(AtRiskCard(
                card_id=card.id,
                title=card.title,
                due_date=ensure_aware(card.due_date),
                days_remaining=round_half_up(remaining, 1),
            ))
    return rows


def completion_forecast(cards: Iterable[Card], now: datetime, rate: Throughput) -> Forecast:
    active_count = len(_active(cards))
    daily_rate = max(rate.daily, FORECAST_MIN_DAILY_RATE)
    days = math.ceil(active_count / daily_rate)
    return Forecast(
        active_count=active_count,
        daily_rate=daily_rate,
        days_to_complete=days,
        estimated_completion_date=(start_of_day(now) + days * DAY).date(),
    )


def age_distribution(cards: Iterable[Card], now: datetime) -> List[AgeBucket]:
    counts = Counter()
    for card in _active(cards):
        age = days_between(card.created_at, now)
        for label, upper in AGE_BUCKETS:
            if upper is None or age < upper:
                counts[label] += 1
                break
    return [AgeBucket(label=label, count=counts[label]) for label, _ in AGE_BUCKETS]


def checklist_stats(cards: Iterable[Card]) -> ChecklistStats:
    with_checklist = [card for card in cards if card.checklist]
    total = sum(len(card.checklist) for card in with_checklist)
    done = sum(1 for card in with_checklist for item in card.checklist if item.get("completed"))
    return ChecklistStats(
        cards_with_checklist=len(with_checklist),
        total_items=total,
        completed_items=done,
        completion_rate=_percent(done, total),
    )


def recommendations(
    stale: Sequence[StaleCard],
    overdue: int,
    wip: Sequence[WipEntry],
    weekly_velocity: Velocity,
    checklist: ChecklistStats,
) -> List[Recommendation]:
    rules = []
    if len(stale) > 5:
        rules.append(Recommendation(
            priority="high",
            kind="stale",
            message=f"{len(stale)} cards have had no activity for over {STALE_AFTER_DAYS} days. Review or close them.",
        ))
    if overdue > 0:
        rules.append(Recommendation(
            priority="high",
            kind="overdue",
            message=f"{overdue} overdue card{'s' if overdue != 1 else ''} need attention.",
        ))
    overloaded = [entry.title for entry in wip if entry.warning]
    if overloaded:
        rules.append(Recommendation(
            priority="medium",
            kind="wip",
            message=f"Too much work in progress in: {', '.join(overloaded)}. Finish cards before starting new ones.",
        ))
    if weekly_velocity.trend_percent < -20:
        rules.append(Recommendation(
            priority="medium",
            kind="velocity",
            message=f"Velocity dropped {abs(weekly_velocity.trend_percent)}% compared to last week.",
        ))
    if checklist.completion_rate < 50 and checklist.cards_with_checklist > 5:
        rules.append(Recommendation(
            priority="low",
            kind="checklist",
            message=f"Only {checklist.completion_rate}% of checklist items are done. Break work into smaller steps.",
        ))
    return rules[:MAX_RECOMMENDATIONS]


def target_progress(cards: Sequence[Card], now: datetime, user: UserContext) -> TargetProgress:
    mine = [card for card in cards if user.active_user_id in card.assignees]
    today = len(_completed_between(mine, start_of_day(now), now))
    this_week = len(_completed_between(mine, now - timedelta(days=7), now))
    targets = user.preferences.personal_targets
    return TargetProgress(
        user_id=user.active_user_id,
        completed_today=today,
        daily_target=targets.daily_tasks,
        daily_progress=_percent(today, targets.daily_tasks),
        completed_this_week=this_week,
        weekly_target=targets.weekly_tasks,
        weekly_progress=_percent(this_week, targets.weekly_tasks),
    )


class DashboardService:
    """
    High level orchestrator producing the full metrics bundle.

    Build once per snapshot; ``build`` may be called repeatedly with
    different scopes since nothing is cached between calls.
    """

    def __init__(self, snapshot: BoardSnapshot):
        self.snapshot = snapshot

    def build(self, scope: DashboardScope, now: datetime, user: Optional[UserContext] = None) -> MetricsBundle:
        now = ensure_aware(now)
        cards = self.snapshot.cards_in_scope(scope)
        buckets = self.snapshot.buckets_in_scope(scope)

        summary = summarize(cards, now, scope.date_range)
        weekly = velocity(cards, now)
        rate = throughput(cards, now)
        wip = work_in_progress(cards, buckets)
        stale = stale_cards(cards, now)
        checklist = checklist_stats(cards)

        return MetricsBundle(
            generated_at=now,
            scope=scope,
            summary=summary,
            priority_distribution=priority_distribution(cards),
            velocity=weekly,
            avg_cycle_time_days=avg_cycle_time(cards),
            wip=wip,
            throughput=rate,
            burndown=burndown(cards, now),
            workload=workload(cards),
            team_velocity=team_velocity(cards, now),
            collaboration=collaboration(cards),
            stale_cards=stale,
            bottlenecks=bottlenecks(cards, buckets, now),
            at_risk=at_risk(cards, now, weekly),
            forecast=completion_forecast(cards, now, rate),
            age_distribution=age_distribution(cards, now),
            checklist=checklist,
            recommendations=recommendations(stale, summary.overdue, wip, weekly, checklist),
            targets=target_progress(cards, now, user) if user and user.active_user_id else None,
        )


def compute_dashboard_metrics(
    snapshot: BoardSnapshot,
    scope: DashboardScope,
    now: datetime,
    user: Optional[UserContext] = None,
) -> MetricsBundle:
    return DashboardService(snapshot).build(scope, now, user)
