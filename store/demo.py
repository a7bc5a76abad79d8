"""
Demo content for an empty board (used by ``manage.py seed_demo``).
"""

import random
from datetime import timedelta
from typing import Any, Dict, List, Optional

from models.helper import id_generator
from settings import logger
from .board_store import BoardStore

DEFAULT_LABELS = [
    ("Bug", "#ef4444"),
    ("Feature", "#3b82f6"),
    ("Enhancement", "#10b981"),
    ("Documentation", "#f59e0b"),
    ("Testing", "#8b5cf6"),
    ("Urgent", "#dc2626"),
    ("Help Wanted", "#7c3aed"),
]

DATA_SETS: List[Dict[str, Any]] = [
    {
        "buckets": ["Backlog", "Sprint", "In Progress", "Testing", "Done"],
        "cards": [
            (0, "Refactor user service", "medium", "Clean up legacy code"),
            (0, "Add dark mode support", "low", None),
            (1, "Fix payment gateway bug", "high", "Critical issue with Stripe integration"),
            (1, "Update email templates", "medium", None),
            (2, "Implement search functionality", "high", None),
            (3, "Test mobile responsiveness", "medium", None),
            (4, "Release v2.0", "high", "Major release completed"),
        ],
    },
    {
        "buckets": ["Ideas", "Research", "Design", "Development", "Launch"],
        "cards": [
            (0, "AI-powered recommendations", "low", None),
            (0, "Voice command integration", "medium", None),
            (1, "Competitor analysis", "high", "Study top 5 competitors"),
            (2, "Create mockups for new feature", "medium", None),
            (3, "Build MVP", "high", None),
            (4, "Marketing campaign", "high", None),
        ],
    },
    {
        "buckets": ["Emergency", "This Week", "Next Week", "This Month", "Someday"],
        "cards": [
            (0, "Server outage investigation", "high", "Production down!"),
            (1, "Team standup prep", "medium", None),
            (1, "Client presentation", "high", None),
            (2, "Performance review", "medium", None),
            (3, "Quarterly planning", "medium", None),
            (4, "Learn Rust", "low", None),
        ],
    },
]

CHECKLIST_TEMPLATES = [
    [("Research requirements", True), ("Create design document", True), ("Get approval", False), ("Start implementation", False)],
    [("Write unit tests", False), ("Code implementation", False), ("Peer review", False)],
    [("Initial draft", True), ("Review and feedback", False), ("Final version", False), ("Publish", False)],
    [("Define scope", True), ("Allocate resources", True), ("Execute", False), ("Monitor progress", False), ("Deliver", False)],
]

_checklist_id = id_generator("item", 10)


async def seed_demo_board(store: BoardStore, rng: Optional[random.Random] = None) -> int:
    """Fill the loaded board with lists, labels and cards; returns the card count.

    The data set is picked by how many lists the board already has, so
    seeding twice adds a different set. Lists with the same title are reused.
    """
    if store.board is None:
        return 0
    rng = rng or random.Random()
    board_id = store.board.id

    if not store.labels:
        for name, color in DEFAULT_LABELS:
            await store.create_label(board_id, name, color)

    data_set = DATA_SETS[len(store.buckets) % len(DATA_SETS)]
    bucket_ids = []
    for title in data_set["buckets"]:
        existing = next((bucket for bucket in store.buckets if bucket.title == title), None)
        bucket = existing or await store.create_list(board_id, title)
        bucket_ids.append(bucket.id)

    created = 0
    for bucket_index, title, priority, description in data_set["cards"]:
        card = await store.create_card(bucket_ids[bucket_index], title)
        created += 1
        updates: Dict[str, Any] = {"priority": priority}
        if description:
            updates["description"] = description
        if rng.random() > 0.5:
            template = rng.choice(CHECKLIST_TEMPLATES)
            updates["checklist"] = [
                {"id": _checklist_id(), "text": text, "completed": completed}
                for text, completed in template
            ]
        if rng.random() > 0.6:
            updates["due_date"] = store.clock() + timedelta(days=rng.randint(-5, 24))
        if rng.random() > 0.7 and store.labels:
            updates["labels"] = [rng.choice(store.labels).snapshot()]
        await store.update_card(card.id, **updates)

    logger.info("Demo data seeded", extra={"board_id": board_id, "card_count": created})
    return created
