"""
"My Tasks" and "Unassigned" views of the dashboard, plus the card actions
those views trigger (claim, bulk complete, bulk reschedule).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from helpers.dates import DAY, ensure_aware, start_of_day
from models.boards import Card, Priority
from settings import logger
from store.board_store import BoardStore
from store.events import ChangeFeed
from store.repository import BoardRepository

from .dataset import UNASSIGNED, BoardSnapshot

RECENTLY_ADDED_LIMIT = 5
RECENTLY_COMPLETED_LIMIT = 10
RECENTLY_COMPLETED_DAYS = 7


@dataclass(frozen=True)
class TaskItem:
    """A card enriched with the titles of the board and list holding it."""

    card: Card
    board_id: str
    board_title: str
    list_title: str

    @property
    def due_date(self) -> Optional[datetime]:
        return ensure_aware(self.card.due_date)


@dataclass
class MyTasks:
    user_id: str
    tasks: List[TaskItem]
    overdue: List[TaskItem] = field(default_factory=list)
    due_today: List[TaskItem] = field(default_factory=list)
    upcoming: List[TaskItem] = field(default_factory=list)
    no_date: List[TaskItem] = field(default_factory=list)
    due_this_week: List[TaskItem] = field(default_factory=list)
    high_priority: List[TaskItem] = field(default_factory=list)
    by_priority: Dict[str, List[TaskItem]] = field(default_factory=dict)
    by_board: Dict[str, List[TaskItem]] = field(default_factory=dict)
    recently_added: List[TaskItem] = field(default_factory=list)
    recently_completed: List[TaskItem] = field(default_factory=list)


def _enrich(snapshot: BoardSnapshot, cards: Iterable[Card]) -> List[TaskItem]:
    items = []
    for card in cards:
        bucket = snapshot.bucket_for(card)
        board = snapshot.board_for(card)
        items.append(TaskItem(
            card=card,
            board_id=board.id if board else "",
            board_title=board.title if board else "Unknown Board",
            list_title=bucket.title if bucket else "Unknown List",
        ))
    return items


def _belongs_to(card: Card, user_id: str) -> bool:
    if user_id == UNASSIGNED:
        return not card.assignees
    return user_id in card.assignees


def _search(cards: Iterable[Card], query: str, include_labels: bool = True) -> List[Card]:
    if not query:
        return list(cards)
    needle = query.lower()
    result = []
    for card in cards:
        haystack = [card.title, card.description or ""]
        if include_labels:
            haystack.extend(str(label.get("name", "")) for label in card.labels)
        if any(needle in text.lower() for text in haystack):
            result.append(card)
    return result


def _week_bounds(now: datetime):
    # Calendar week starting on Sunday.
    start = start_of_day(now) - timedelta(days=(now.weekday() + 1) % 7)
    return start, start + timedelta(days=7)


def build_my_tasks(snapshot: BoardSnapshot, user_id: str, now: datetime, search_query: str = "") -> MyTasks:
    """Group the active cards of ``user_id`` the way the My Tasks tab shows them."""
    now = ensure_aware(now)
    today = start_of_day(now)
    tomorrow = today + DAY
    week_start, week_end = _week_bounds(now)

    active = [card for card in snapshot.cards if not card.completed and _belongs_to(card, user_id)]
    tasks = _enrich(snapshot, _search(active, search_query))

    view = MyTasks(user_id=user_id, tasks=tasks)
    for item in tasks:
        due = item.due_date
        if due is None:
            view.no_date.append(item)
        elif due < today:
            view.overdue.append(item)
        elif due < tomorrow:
            view.due_today.append(item)
        if due is not None and due > today:
            view.upcoming.append(item)
        if due is not None and week_start <= due < week_end:
            view.due_this_week.append(item)
        if item.card.priority == Priority.HIGH:
            view.high_priority.append(item)

    view.by_priority = {
        name: [item for item in tasks if (Priority(item.card.priority).value if item.card.priority else "none") == name]
        for name in ("high", "medium", "low", "none")
    }
    for board in snapshot.boards:
        view.by_board[board.id] = [item for item in tasks if item.board_id == board.id]
    view.recently_added = list(reversed(tasks[-RECENTLY_ADDED_LIMIT:]))

    cutoff = now - timedelta(days=RECENTLY_COMPLETED_DAYS)
    completed = [
        card for card in snapshot.cards
        if card.completed and _belongs_to(card, user_id) and ensure_aware(card.updated_at) >= cutoff
    ]
    completed.sort(key=lambda card: ensure_aware(card.updated_at), reverse=True)
    view.recently_completed = _enrich(snapshot, completed[:RECENTLY_COMPLETED_LIMIT])
    return view


def quick_filter(tasks: Sequence[TaskItem], name: str, now: datetime) -> List[TaskItem]:
    """Apply one of the preference quick filters to already enriched tasks."""
    today = start_of_day(ensure_aware(now))
    if name == "overdue":
        return [item for item in tasks if item.due_date is not None and item.due_date < today and not item.card.completed]
    if name == "high-priority":
        return [item for item in tasks if item.card.priority == Priority.HIGH]
    if name == "no-due-date":
        return [item for item in tasks if item.due_date is None]
    if name == "completed":
        return [item for item in tasks if item.card.completed]
    return list(tasks)


def list_unassigned(
    snapshot: BoardSnapshot,
    now: datetime,
    search_query: str = "",
    board_id: str = "all",
    priority: str = "all",
    label_ids: Sequence[str] = (),
    due_filter: str = "all",
) -> List[TaskItem]:
    """Active cards nobody is assigned to, narrowed by the column's own filters.

    Due dates are compared by calendar day here: ``this-week`` covers today
    through seven days ahead inclusive.
    """
    today = start_of_day(ensure_aware(now))
    cards = [card for card in snapshot.cards if not card.assignees and not card.completed]
    cards = _search(cards, search_query, include_labels=False)

    if board_id != "all":
        cards = [card for card in cards if (snapshot.bucket_for(card) and snapshot.bucket_for(card).board_id == board_id)]
    if priority != "all":
        cards = [card for card in cards if card.priority is not None and Priority(card.priority).value == priority]
    if label_ids:
        wanted = set(label_ids)
        cards = [card for card in cards if any(label.get("id") in wanted for label in card.labels)]
    if due_filter != "all":
        cards = [card for card in cards if _due_day_matches(card, due_filter, today)]
    return _enrich(snapshot, cards)


def _due_day_matches(card: Card, due_filter: str, today: datetime) -> bool:
    if card.due_date is None:
        return due_filter == "no-date"
    due_day = start_of_day(ensure_aware(card.due_date))
    if due_filter == "overdue":
        return due_day < today
    if due_filter == "today":
        return due_day == today
    if due_filter == "this-week":
        return today <= due_day <= today + timedelta(days=7)
    return due_filter != "no-date"


async def claim_card(repository: BoardRepository, card_id: str, user_id: str, feed: Optional[ChangeFeed] = None) -> Optional[Card]:
    store = await BoardStore.open_for_card(repository, card_id, feed=feed)
    if store is None:
        return None
    card = await store.claim_card(card_id, user_id)
    logger.info("Card claimed", extra={"card_id": card_id, "user_id": user_id})
    return card


async def bulk_complete(repository: BoardRepository, card_ids: Sequence[str], feed: Optional[ChangeFeed] = None) -> List[str]:
    """Mark cards completed one by one; returns the ids that were found."""
    done = []
    for card_id in card_ids:
        store = await BoardStore.open_for_card(repository, card_id, feed=feed)
        if store is not None and await store.complete_card(card_id) is not None:
            done.append(card_id)
    return done


async def bulk_shift_due_dates(
    repository: BoardRepository,
    card_ids: Sequence[str],
    days: int,
    feed: Optional[ChangeFeed] = None,
) -> List[str]:
    """Set the due date of each card ``days`` from now."""
    shifted = []
    for card_id in card_ids:
        store = await BoardStore.open_for_card(repository, card_id, feed=feed)
        if store is not None and await store.shift_due_date(card_id, days) is not None:
            shifted.append(card_id)
    return shifted
