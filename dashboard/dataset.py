from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from models.boards import Board, Bucket, Card
from store.board_store import sanitize_card
from store.positions import sort_by_position
from store.repository import BoardRepository

from .models import DashboardScope

UNASSIGNED = "unassigned"


@dataclass
class BoardSnapshot:
    """
    Every board, bucket and card at one point in time.

    Cards are sanitized on construction (list fields never ``None``, aware
    datetimes) so every derivation downstream is a total function.
    """

    boards: Sequence[Board]
    buckets: Sequence[Bucket]
    cards: Sequence[Card]
    _boards_by_id: Dict[str, Board] = field(init=False, repr=False)
    _buckets_by_id: Dict[str, Bucket] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.boards = tuple(self.boards)
        self.buckets = tuple(sort_by_position(self.buckets))
        self.cards = tuple(sanitize_card(card) for card in self.cards)
        self._boards_by_id = {board.id: board for board in self.boards}
        self._buckets_by_id = {bucket.id: bucket for bucket in self.buckets}

    @classmethod
    async def load(cls, repository: BoardRepository) -> "BoardSnapshot":
        boards, buckets, cards = await repository.load_snapshot()
        return cls(boards=boards, buckets=buckets, cards=cards)

    def bucket_for(self, card: Card) -> Optional[Bucket]:
        return self._buckets_by_id.get(card.bucket_id)

    def board_for(self, card: Card) -> Optional[Board]:
        bucket = self.bucket_for(card)
        return self._boards_by_id.get(bucket.board_id) if bucket else None

    def board(self, board_id: str) -> Optional[Board]:
        return self._boards_by_id.get(board_id)

    def buckets_in_scope(self, scope: DashboardScope) -> List[Bucket]:
        if scope.board_id == "all":
            return list(self.buckets)
        return [bucket for bucket in self.buckets if bucket.board_id == scope.board_id]

    def cards_in_scope(self, scope: DashboardScope) -> List[Card]:
        """Cards of the scoped board(s), narrowed to the scoped assignee."""
        bucket_ids = {bucket.id for bucket in self.buckets_in_scope(scope)}
        cards = [card for card in self.cards if card.bucket_id in bucket_ids]
        if scope.assignee == UNASSIGNED:
            return [card for card in cards if not card.assignees]
        if scope.assignee:
            return [card for card in cards if scope.assignee in card.assignees]
        return cards
