"""
Feature: Dashboard metrics
  As a team lead
  I want completion, flow and health metrics computed from the boards
  So that I can see how work is progressing

Scenario: Completion rate
  Given 0, 2 or 3 cards with some completed
  Then the rate is a whole percentage rounded half up, 0 when there are no cards

Scenario: Velocity trend
  Given 10 cards completed this week and 5 last week
  Then the trend is +100%
  And with nothing completed last week the trend is 0

Scenario: Flat burndown
  Given 10 open cards created long ago and nothing completed
  Then the burndown has 31 points at 10 and an ideal line from 10 to 0

Scenario: Work in progress
  Given 11 active cards in one list and 10 in another
  Then only the first list carries a warning

Scenario: Stale cards
  Given an active card untouched for 15 days
  Then it is reported as stale with 15 days of inactivity
"""

from datetime import datetime, timedelta, timezone
from dashboard.dataset import UNASSIGNED, BoardSnapshot
from dashboard.models import DashboardScope
from dashboard.preferences import DashboardPreferences, PersonalTargets, UserContext
from dashboard.service import (
    DashboardService,
    burndown,
    completion_rate,
    compute_dashboard_metrics,
    round_half_up,
    summarize,
    throughput,
    velocity,
    work_in_progress,
)
from models.boards import Board, Bucket, Card, Priority

NOW = datetime(2025, 3, 12, 15, 0, tzinfo=timezone.utc)
TODAY = datetime(2025, 3, 12, tzinfo=timezone.utc)

BOARD = Board(id="board_1", title="Product", created_at=NOW, updated_at=NOW)
OTHER_BOARD = Board(id="board_2", title="Ops", created_at=NOW, updated_at=NOW)
TODO = Bucket(id="bucket_todo", board_id="board_1", title="To Do", position=0.0)
DOING = Bucket(id="bucket_doing", board_id="board_1", title="Doing", position=1.0)
OPS = Bucket(id="bucket_ops", board_id="board_2", title="Ops", position=0.0)

_counter = iter(range(10000))


def make_card(**fields):
    values = dict(
        id=f"card_{next(_counter)}",
        bucket_id=TODO.id,
        title="Task",
        position=0.0,
        completed=False,
        labels=[],
        checklist=[],
        assignees=[],
        created_at=NOW - timedelta(days=1),
        updated_at=NOW - timedelta(days=1),
    )
    values.update(fields)
    return Card(**values)


def completed_card(days_ago, **fields):
    values = dict(
        completed=True,
        created_at=NOW - timedelta(days=days_ago + 2),
        updated_at=NOW - timedelta(days=days_ago),
    )
    values.update(fields)
    return make_card(**values)


def snapshot(cards):
    return BoardSnapshot(boards=[BOARD, OTHER_BOARD], buckets=[TODO, DOING, OPS], cards=cards)


def test_round_half_up_matches_math_round():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(66.666) == 67
    assert round_half_up(0.25, 1) == 0.3


def test_completion_rate_boundaries():
    assert completion_rate([]) == 0
    assert completion_rate([make_card(), completed_card(1)]) == 50
    assert completion_rate([make_card(), completed_card(1), completed_card(2)]) == 67
    assert completion_rate([make_card(), make_card(), completed_card(2)]) == 33


def test_velocity_trend():
    # Given 10 cards completed this week and 5 last week
    cards = [completed_card(1) for _ in range(10)] + [completed_card(8) for _ in range(5)]

    # Then the trend is +100%
    result = velocity(cards, NOW)
    assert (result.this_week, result.last_week, result.trend_percent) == (10, 5, 100)

    # And nothing last week gives a flat trend
    assert velocity([completed_card(1) for _ in range(3)], NOW).trend_percent == 0


def test_throughput_rounds_half_up():
    # 15 completions over 30 days is 0.5 a day, 3.5 a week
    cards = [completed_card(days_ago) for days_ago in range(1, 16)]

    result = throughput(cards, NOW)

    assert result.completed_last_30_days == 15
    assert result.daily == 0.5
    assert result.weekly == 4


def test_flat_burndown():
    # Given 10 open cards created long ago
    cards = [make_card(created_at=NOW - timedelta(days=40), updated_at=NOW - timedelta(days=40)) for _ in range(10)]

    # Then every point stays at 10
    points = burndown(cards, NOW)
    assert len(points) == 31
    assert all(point.remaining == 10 for point in points)
    assert points[0].ideal == 10
    assert points[-1].ideal == 0
    assert points[-1].day == TODAY.date()
    assert points[0].day == (TODAY - timedelta(days=30)).date()


def test_burndown_counts_completion_on_its_day():
    done = completed_card(5, created_at=NOW - timedelta(days=40))
    points = burndown([done, make_card(created_at=NOW - timedelta(days=40))], NOW)
    assert points[0].remaining == 2
    assert points[-1].remaining == 1


def test_wip_threshold():
    # Given 11 active cards in one list and 10 in another
    cards = [make_card(bucket_id=TODO.id) for _ in range(11)] + [make_card(bucket_id=DOING.id) for _ in range(10)]
    cards.append(completed_card(1, bucket_id=DOING.id))

    # Then only the first list warns
    entries = {entry.title: entry for entry in work_in_progress(cards, [TODO, DOING])}
    assert entries["To Do"].count == 11 and entries["To Do"].warning
    assert entries["Doing"].count == 10 and not entries["Doing"].warning


def test_summary_overdue_boundary():
    cards = [
        make_card(due_date=TODAY - timedelta(seconds=1)),
        make_card(due_date=TODAY),
        make_card(due_date=NOW + timedelta(days=3)),
        completed_card(1, due_date=TODAY - timedelta(days=2)),
    ]

    summary = summarize(cards, NOW)

    assert summary.overdue == 1
    assert summary.due_today == 1
    assert summary.due_this_week == 1
    assert summary.total == 4
    assert summary.active == 3
    assert summary.unassigned == 3


def test_full_bundle():
    # Given a mix of cards on two boards
    stale = make_card(title="Forgotten", created_at=NOW - timedelta(days=20), updated_at=NOW - timedelta(days=15))
    risky = make_card(title="Ship it", due_date=NOW + timedelta(days=3), priority=Priority.HIGH, assignees=["alice", "bob"])
    shared = make_card(title="Pairing", assignees=["alice", "bob"], checklist=[
        {"id": "i1", "text": "a", "completed": True},
        {"id": "i2", "text": "b", "completed": False},
    ])
    done = completed_card(2, assignees=["alice"])
    elsewhere = make_card(bucket_id=OPS.id, title="Other board")

    # When the metrics are computed for the first board
    bundle = compute_dashboard_metrics(
        snapshot([stale, risky, shared, done, elsewhere]),
        DashboardScope(board_id=BOARD.id),
        NOW,
    )

    # Then only its cards count
    assert bundle.summary.total == 4
    assert bundle.summary.completion_rate == 25
    assert [card.card_id for card in bundle.stale_cards] == [stale.id]
    assert bundle.stale_cards[0].days_inactive == 15
    assert [card.card_id for card in bundle.at_risk] == [risky.id]
    assert bundle.at_risk[0].days_remaining == 3.0
    assert bundle.collaboration.multi_assignee_cards == 2
    assert bundle.collaboration.top_pair == ("alice", "bob")
    assert bundle.checklist.completion_rate == 50
    assert [row.priority for row in bundle.priority_distribution] == ["high", "none"]
    assert bundle.workload[0].assignee in ("alice", "bob")
    assert bundle.workload[0].active == 2
    assert bundle.wip_warnings == []
    assert bundle.targets is None

    # And the forecast falls back to the minimum daily rate
    assert bundle.forecast.daily_rate == 0.5
    assert bundle.forecast.days_to_complete == 6


def test_scope_by_assignee():
    mine = make_card(assignees=["alice"])
    nobody = make_card()
    service = DashboardService(snapshot([mine, nobody]))

    assert service.build(DashboardScope(assignee="alice"), NOW).summary.total == 1
    assert service.build(DashboardScope(assignee=UNASSIGNED), NOW).summary.total == 1
    assert service.build(DashboardScope(), NOW).summary.total == 2


def test_personal_targets_use_user_context():
    cards = [completed_card(0, assignees=["alice"]), completed_card(3, assignees=["alice"]), completed_card(0, assignees=["bob"])]
    user = UserContext(
        active_user_id="alice",
        preferences=DashboardPreferences(personal_targets=PersonalTargets(daily_tasks=2, weekly_tasks=4)),
    )

    bundle = compute_dashboard_metrics(snapshot(cards), DashboardScope(), NOW, user)

    assert bundle.targets.completed_today == 1
    assert bundle.targets.daily_progress == 50
    assert bundle.targets.completed_this_week == 2
    assert bundle.targets.weekly_progress == 50


def test_empty_board_has_defaults():
    bundle = compute_dashboard_metrics(snapshot([]), DashboardScope(board_id=BOARD.id), NOW)

    assert bundle.summary.completion_rate == 0
    assert bundle.avg_cycle_time_days == 0
    assert bundle.velocity.trend_percent == 0
    assert bundle.collaboration.avg_assignees_per_card == 0
    assert bundle.forecast.days_to_complete == 0
    assert bundle.recommendations == []


def test_as_dict_uses_camel_case():
    data = compute_dashboard_metrics(snapshot([make_card()]), DashboardScope(), NOW).as_dict()

    assert data["generatedAt"] == NOW.isoformat()
    assert data["summary"]["completionRate"] == 0
    assert data["scope"] == {"boardId": "all", "assignee": None, "dateRange": "week"}
    assert len(data["burndown"]) == 31
