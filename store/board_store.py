"""
Board store: the loaded board context and every mutation on it.

Mutations are applied to the in-memory collections first and persisted
afterwards, one repository call per changed entity. Ids that are not part
of the loaded board are ignored (the UI may act on stale snapshots during
fast drag sequences), which is why most operations return ``None`` or
``False`` instead of raising.
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from helpers.dates import ensure_aware, utc_now
from models.boards import Board, Bucket, Card, Label, Priority, ViewMode
from settings import logger
from .errors import PersistenceError
from .events import ChangeEvent, ChangeFeed
from .filters import CardFilters, get_filtered_cards
from .positions import (
    drop_position,
    find_index,
    gap_collapsed,
    next_position,
    renormalize,
    sort_by_position,
)
from .repository import BoardRepository

CARD_FIELDS = {"title", "description", "completed", "due_date", "priority", "labels", "checklist", "assignees"}
LIST_FIELDS = ("labels", "checklist", "assignees")


def sanitize_card(card: Card) -> Card:
    """Guarantee list fields are lists and datetimes are timezone aware."""
    for field_name in LIST_FIELDS:
        if getattr(card, field_name) is None:
            setattr(card, field_name, [])
    card.created_at = ensure_aware(card.created_at)
    card.updated_at = ensure_aware(card.updated_at)
    card.due_date = ensure_aware(card.due_date)
    return card


class BoardStore:
    """Ordering engine over one loaded board."""

    def __init__(
        self,
        repository: BoardRepository,
        feed: Optional[ChangeFeed] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.feed = feed
        self.clock = clock or utc_now
        self.board: Optional[Board] = None
        self.buckets: List[Bucket] = []
        self.cards: List[Card] = []
        self.labels: List[Label] = []

    # -------------------- loading --------------------

    async def load_board(self, board_id: str) -> Optional[Board]:
        board = await self.repository.get_board(board_id)
        if board is None:
            logger.warning("Board not found", extra={"board_id": board_id})
            self.board, self.buckets, self.cards, self.labels = None, [], [], []
            return None

        self.board = board
        self.buckets = sort_by_position(await self.repository.list_buckets(board_id))
        self.labels = await self.repository.list_labels(board_id)
        cards = await self.repository.list_cards([bucket.id for bucket in self.buckets])
        self.cards = [sanitize_card(card) for card in cards]
        logger.debug("Board loaded", extra={
            "board_id": board_id,
            "bucket_count": len(self.buckets),
            "card_count": len(self.cards)
        })
        return board

    @classmethod
    async def open_for_card(cls, repository: BoardRepository, card_id: str, **kwargs) -> Optional["BoardStore"]:
        """Build a store with the board owning ``card_id`` loaded."""
        board_id = await repository.find_card_board_id(card_id)
        if board_id is None:
            return None
        store = cls(repository, **kwargs)
        if await store.load_board(board_id) is None:
            return None
        return store

    # -------------------- lookups --------------------

    def get_bucket(self, bucket_id: str) -> Optional[Bucket]:
        return next((bucket for bucket in self.buckets if bucket.id == bucket_id), None)

    def get_card(self, card_id: str) -> Optional[Card]:
        return next((card for card in self.cards if card.id == card_id), None)

    def get_label(self, label_id: str) -> Optional[Label]:
        return next((label for label in self.labels if label.id == label_id), None)

    def ordered_buckets(self) -> List[Bucket]:
        return sort_by_position(self.buckets)

    def ordered_cards(self, bucket_id: str) -> List[Card]:
        return sort_by_position(card for card in self.cards if card.bucket_id == bucket_id)

    def drop_position(self, bucket_id: str, index: int, exclude_card_id: Optional[str] = None) -> float:
        """Midpoint position for dropping a card at ``index`` of a bucket."""
        positions = [
            card.position for card in self.ordered_cards(bucket_id)
            if card.id != exclude_card_id
        ]
        return drop_position(positions, index)

    def get_filtered_cards(self, filters: CardFilters) -> List[Card]:
        return get_filtered_cards(self.cards, filters, now=self.clock())

    def _is_loaded(self, board_id: str) -> bool:
        return self.board is not None and self.board.id == board_id

    # -------------------- boards --------------------

    async def create_board(self, title: str) -> Board:
        now = self.clock()
        board = Board(title=title, view_mode=ViewMode.CARDS, created_at=now, updated_at=now)
        await self._persist(self.repository.add(board), "create_board", board.id)
        await self._publish("created", "board", board.id, board.id)
        return board

    async def update_board(
        self,
        board_id: str,
        title: Optional[str] = None,
        view_mode: Optional[ViewMode] = None,
    ) -> Optional[Board]:
        if not self._is_loaded(board_id):
            logger.debug("Ignoring update for board outside context", extra={"board_id": board_id})
            return None

        changes: Dict[str, Any] = {"updated_at": self.clock()}
        if title is not None:
            changes["title"] = title
        if view_mode is not None:
            changes["view_mode"] = ViewMode(view_mode)
        for field_name, value in changes.items():
            setattr(self.board, field_name, value)

        await self._persist(self.repository.update(Board, board_id, changes), "update_board", board_id)
        await self._publish("updated", "board", board_id, board_id)
        return self.board

    async def delete_board(self, board_id: str) -> bool:
        if not self._is_loaded(board_id):
            return False

        cards, buckets, labels = self.cards, self.buckets, self.labels
        self.board, self.buckets, self.cards, self.labels = None, [], [], []

        for card in cards:
            await self._persist(self.repository.delete(Card, card.id), "delete_board", card.id)
        for bucket in buckets:
            await self._persist(self.repository.delete(Bucket, bucket.id), "delete_board", bucket.id)
        for label in labels:
            await self._persist(self.repository.delete(Label, label.id), "delete_board", label.id)
        await self._persist(self.repository.delete(Board, board_id), "delete_board", board_id)

        logger.info("Board deleted", extra={
            "board_id": board_id,
            "bucket_count": len(buckets),
            "card_count": len(cards)
        })
        await self._publish("deleted", "board", board_id, board_id)
        return True

    # -------------------- lists --------------------

    async def create_list(self, board_id: str, title: str) -> Optional[Bucket]:
        if not self._is_loaded(board_id):
            logger.debug("Ignoring list creation outside context", extra={"board_id": board_id})
            return None

        now = self.clock()
        bucket = Bucket(
            board_id=board_id,
            title=title,
            position=next_position(b.position for b in self.buckets),
            created_at=now,
            updated_at=now,
        )
        self.buckets.append(bucket)
        await self._persist(self.repository.add(bucket), "create_list", bucket.id)
        await self._publish("created", "bucket", bucket.id)
        return bucket

    async def move_list(self, bucket_id: str, new_position: float) -> bool:
        """Move a list and shift the lists between its old and new slot by one."""
        bucket = self.get_bucket(bucket_id)
        if bucket is None:
            logger.debug("Ignoring move for unknown list", extra={"bucket_id": bucket_id})
            return False

        old_position = bucket.position
        for other in self.buckets:
            if other.id == bucket_id:
                other.position = new_position
            elif old_position < new_position and old_position < other.position <= new_position:
                other.position -= 1
            elif old_position > new_position and new_position <= other.position < old_position:
                other.position += 1
        self.buckets = sort_by_position(self.buckets)
        index = find_index(self.buckets, bucket_id)
        if gap_collapsed([b.position for b in self.buckets], index):
            renormalize(self.buckets)
            logger.info("Renormalized list positions", extra={"board_id": bucket.board_id})

        for other in self.buckets:
            await self._persist(
                self.repository.update(Bucket, other.id, {"position": other.position}),
                "move_list", other.id
            )
        await self._publish("moved", "bucket", bucket_id)
        return True

    async def delete_list(self, bucket_id: str) -> bool:
        """Delete a list together with its cards; siblings keep their positions."""
        bucket = self.get_bucket(bucket_id)
        if bucket is None:
            return False

        doomed = [card for card in self.cards if card.bucket_id == bucket_id]
        self.cards = [card for card in self.cards if card.bucket_id != bucket_id]
        self.buckets = [b for b in self.buckets if b.id != bucket_id]

        for card in doomed:
            await self._persist(self.repository.delete(Card, card.id), "delete_list", card.id)
        await self._persist(self.repository.delete(Bucket, bucket_id), "delete_list", bucket_id)
        await self._publish("deleted", "bucket", bucket_id)
        return True

    # -------------------- cards --------------------

    async def create_card(self, bucket_id: str, title: str) -> Optional[Card]:
        if self.get_bucket(bucket_id) is None:
            logger.debug("Ignoring card creation for unknown list", extra={"bucket_id": bucket_id})
            return None

        now = self.clock()
        card = Card(
            bucket_id=bucket_id,
            title=title,
            position=next_position(c.position for c in self.cards if c.bucket_id == bucket_id),
            labels=[],
            checklist=[],
            assignees=[],
            created_at=now,
            updated_at=now,
        )
        self.cards.append(card)
        await self._persist(self.repository.add(card), "create_card", card.id)
        await self._publish("created", "card", card.id)
        return card

    async def update_card(self, card_id: str, **changes: Any) -> Optional[Card]:
        """Merge ``changes`` into a card.

        List fields left out (or passed as ``None``) keep their previous value.
        """
        unknown = set(changes) - CARD_FIELDS
        if unknown:
            raise ValueError(f"Unknown card fields: {', '.join(sorted(unknown))}")

        card = self.get_card(card_id)
        if card is None:
            logger.debug("Ignoring update for unknown card", extra={"card_id": card_id})
            return None

        updates = dict(changes)
        for field_name in LIST_FIELDS:
            if updates.get(field_name) is None:
                updates[field_name] = list(getattr(card, field_name) or [])
            else:
                updates[field_name] = list(updates[field_name])
        if "priority" in updates and updates["priority"] is not None:
            updates["priority"] = Priority(updates["priority"])
        if "due_date" in updates:
            updates["due_date"] = ensure_aware(updates["due_date"])
        updates["updated_at"] = self.clock()

        for field_name, value in updates.items():
            setattr(card, field_name, value)

        await self._persist(self.repository.update(Card, card_id, updates), "update_card", card_id)
        await self._publish("updated", "card", card_id)
        return card

    async def move_card(self, card_id: str, to_bucket_id: str, target_position: Optional[float] = None) -> bool:
        """Move a card into a bucket at ``target_position``.

        The caller computes the position with the midpoint strategy
        (see ``drop_position``); ``None`` appends at the tail.
        """
        card = self.get_card(card_id)
        if card is None or self.get_bucket(to_bucket_id) is None:
            logger.debug("Ignoring move for unknown card or list", extra={
                "card_id": card_id,
                "bucket_id": to_bucket_id
            })
            return False

        if target_position is None:
            target_position = next_position(
                c.position for c in self.cards if c.bucket_id == to_bucket_id and c.id != card_id
            )

        changes = {"bucket_id": to_bucket_id, "position": target_position, "updated_at": self.clock()}
        for field_name, value in changes.items():
            setattr(card, field_name, value)

        await self._persist(self.repository.update(Card, card_id, changes), "move_card", card_id)
        await self._renormalize_if_collapsed(to_bucket_id, card_id)
        await self._publish("moved", "card", card_id)
        return True

    async def _renormalize_if_collapsed(self, bucket_id: str, card_id: str) -> None:
        siblings = self.ordered_cards(bucket_id)
        index = find_index(siblings, card_id)
        if index is None or not gap_collapsed([c.position for c in siblings], index):
            return

        changed = renormalize(siblings)
        logger.info("Renormalized card positions", extra={
            "bucket_id": bucket_id,
            "card_count": len(siblings),
            "changed": len(changed)
        })
        for card in changed:
            await self._persist(
                self.repository.update(Card, card.id, {"position": card.position}),
                "renormalize", card.id
            )

    async def delete_card(self, card_id: str) -> bool:
        if self.get_card(card_id) is None:
            return False
        self.cards = [card for card in self.cards if card.id != card_id]
        await self._persist(self.repository.delete(Card, card_id), "delete_card", card_id)
        await self._publish("deleted", "card", card_id)
        return True

    async def complete_card(self, card_id: str, completed: bool = True) -> Optional[Card]:
        return await self.update_card(card_id, completed=completed)

    async def claim_card(self, card_id: str, user_id: str) -> Optional[Card]:
        """Assign a card to ``user_id`` as its only assignee."""
        return await self.update_card(card_id, assignees=[user_id])

    async def shift_due_date(self, card_id: str, days: int) -> Optional[Card]:
        """Set the due date ``days`` from now."""
        return await self.update_card(card_id, due_date=self.clock() + timedelta(days=days))

    # -------------------- labels --------------------

    async def create_label(self, board_id: str, name: str, color: str) -> Optional[Label]:
        if not self._is_loaded(board_id):
            logger.debug("Ignoring label creation outside context", extra={"board_id": board_id})
            return None

        now = self.clock()
        label = Label(board_id=board_id, name=name, color=color, created_at=now, updated_at=now)
        self.labels.append(label)
        await self._persist(self.repository.add(label), "create_label", label.id)
        await self._publish("created", "label", label.id)
        return label

    async def update_label(
        self,
        label_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Optional[Label]:
        """Edit a label and rewrite the copy embedded on every card carrying it."""
        label = self.get_label(label_id)
        if label is None:
            return None

        changes: Dict[str, Any] = {"updated_at": self.clock()}
        if name is not None:
            changes["name"] = name
        if color is not None:
            changes["color"] = color
        for field_name, value in changes.items():
            setattr(label, field_name, value)

        await self._persist(self.repository.update(Label, label_id, changes), "update_label", label_id)
        snapshot = label.snapshot()
        await self._sweep_label(label_id, lambda labels: [
            dict(snapshot) if embedded.get("id") == label_id else embedded for embedded in labels
        ])
        await self._publish("updated", "label", label_id)
        return label

    async def delete_label(self, label_id: str) -> bool:
        """Delete a label and remove it from every card."""
        if self.get_label(label_id) is None:
            return False

        self.labels = [label for label in self.labels if label.id != label_id]
        await self._sweep_label(label_id, lambda labels: [
            embedded for embedded in labels if embedded.get("id") != label_id
        ])
        await self._persist(self.repository.delete(Label, label_id), "delete_label", label_id)
        await self._publish("deleted", "label", label_id)
        return True

    async def set_card_labels(self, card_id: str, label_ids: Iterable[str]) -> Optional[Card]:
        """Attach value copies of board labels; unknown ids are skipped."""
        snapshots = []
        for label_id in label_ids:
            label = self.get_label(label_id)
            if label is not None:
                snapshots.append(label.snapshot())
        return await self.update_card(card_id, labels=snapshots)

    async def _sweep_label(self, label_id: str, rewrite: Callable[[List[Dict[str, Any]]], List[Dict[str, Any]]]) -> None:
        # Sweeps rewrite embedded copies only; they do not count as card edits,
        # so updated_at is left alone.
        for card in self.cards:
            if not any(embedded.get("id") == label_id for embedded in card.labels):
                continue
            card.labels = rewrite(card.labels)
            await self._persist(
                self.repository.update(Card, card.id, {"labels": card.labels}),
                "sweep_label", card.id
            )

    # -------------------- plumbing --------------------

    async def _persist(self, operation, action: str, entity_id: str) -> None:
        try:
            await operation
        except PersistenceError as e:
            logger.error("Board change not persisted; in-memory state is ahead of storage", extra={
                "action": action,
                "entity_id": entity_id,
                "board_id": self.board.id if self.board else None,
                "error": str(e)
            })
            raise

    async def _publish(self, action: str, entity: str, entity_id: str, board_id: Optional[str] = None) -> None:
        if self.feed is None:
            return
        board_id = board_id or (self.board.id if self.board else None)
        await self.feed.publish(ChangeEvent(action=action, entity=entity, entity_id=entity_id, board_id=board_id))
