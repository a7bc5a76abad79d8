"""
Multi-criterion card filtering shared by the board view and the dashboard.

Criteria are AND-combined; list criteria match when ANY of their values
matches, and an empty list disables the criterion.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Literal, Optional

from pydantic import BaseModel, Field

from helpers.dates import DAY, ensure_aware, start_of_day, utc_now
from models.boards import Card, Priority

DueDateFilter = Literal["all", "overdue", "today", "week", "has-date"]


class CardFilters(BaseModel):
    """Filter configuration of the board view."""
    search_query: str = Field(default="", description="Case-insensitive text search")
    selected_labels: List[str] = Field(default_factory=list, description="Label ids, any-of")
    selected_priorities: List[Priority] = Field(default_factory=list, description="Priorities, any-of")
    selected_buckets: List[str] = Field(default_factory=list, description="Bucket ids, any-of")
    selected_assignees: List[str] = Field(default_factory=list, description="Assignee ids, any-of")
    show_completed: bool = Field(default=True, description="Include completed cards")
    due_date_filter: DueDateFilter = Field(default="all", description="Due date window")

    def is_active(self) -> bool:
        return self != CardFilters()


def matches_search(card: Card, query: str) -> bool:
    """True when the query occurs in the title, description, a label name or a checklist item."""
    needle = query.lower()
    if needle in card.title.lower():
        return True
    if card.description and needle in card.description.lower():
        return True
    if any(needle in str(label.get("name", "")).lower() for label in card.labels or []):
        return True
    return any(needle in str(item.get("text", "")).lower() for item in card.checklist or [])


def matches_due_date(card: Card, due_filter: str, today: datetime) -> bool:
    if due_filter == "all":
        return True
    due = ensure_aware(card.due_date)
    if due is None:
        return False
    if due_filter == "overdue":
        return due < today and not card.completed
    if due_filter == "today":
        return today <= due < today + DAY
    if due_filter == "week":
        return today <= due < today + timedelta(days=7)
    # "has-date"
    return True


def card_matches(card: Card, filters: CardFilters, today: datetime) -> bool:
    if filters.search_query and not matches_search(card, filters.search_query):
        return False

    if filters.selected_labels:
        label_ids = {label.get("id") for label in card.labels or []}
        if not label_ids.intersection(filters.selected_labels):
            return False

    if filters.selected_priorities:
        if card.priority is None or Priority(card.priority) not in filters.selected_priorities:
            return False

    if filters.selected_buckets and card.bucket_id not in filters.selected_buckets:
        return False

    if filters.selected_assignees:
        if not set(card.assignees or []).intersection(filters.selected_assignees):
            return False

    if not filters.show_completed and card.completed:
        return False

    return matches_due_date(card, filters.due_date_filter, today)


def get_filtered_cards(
    cards: Iterable[Card],
    filters: CardFilters,
    now: Optional[datetime] = None,
) -> List[Card]:
    """Return the cards matching ``filters`` in their input order."""
    today = start_of_day(ensure_aware(now) or utc_now())
    return [card for card in cards if card_matches(card, filters, today)]
