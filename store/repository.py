import copy
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from models.boards import Board, Bucket, Card, Label
from models.preferences import UserPreferences
from helpers.dates import utc_now
from settings import logger
from .errors import PersistenceError


def detach(row: SQLModel) -> SQLModel:
    """Copy a table row into a fresh instance unbound from any session."""
    return type(row).model_validate(row.model_dump())


class BoardRepository:
    """
    Storage collaborator of the board store.

    Every call is independently awaited; no transaction spans several calls.
    Reads return detached copies, so callers may mutate them freely.
    """

    async def get_board(self, board_id: str) -> Optional[Board]:
        raise NotImplementedError

    async def list_boards(self) -> List[Board]:
        raise NotImplementedError

    async def list_buckets(self, board_id: str) -> List[Bucket]:
        raise NotImplementedError

    async def list_cards(self, bucket_ids: Sequence[str]) -> List[Card]:
        raise NotImplementedError

    async def list_labels(self, board_id: str) -> List[Label]:
        raise NotImplementedError

    async def find_card_board_id(self, card_id: str) -> Optional[str]:
        raise NotImplementedError

    async def add(self, entity: SQLModel) -> None:
        raise NotImplementedError

    async def update(self, model: Type[SQLModel], entity_id: str, changes: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def delete(self, model: Type[SQLModel], entity_id: str) -> None:
        raise NotImplementedError

    async def load_snapshot(self) -> Tuple[List[Board], List[Bucket], List[Card]]:
        raise NotImplementedError

    async def get_preferences(self, user_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def save_preferences(self, user_id: str, preferences: Dict[str, Any]) -> None:
        raise NotImplementedError


class SQLModelBoardRepository(BoardRepository):
    """Repository backed by the SQLModel tables in ``models.boards``."""

    def __init__(self, session: Session):
        self.session = session

    async def get_board(self, board_id: str) -> Optional[Board]:
        board = self.session.get(Board, board_id)
        return detach(board) if board else None

    async def list_boards(self) -> List[Board]:
        boards = self.session.exec(select(Board).order_by(Board.created_at)).all()
        return [detach(board) for board in boards]

    async def list_buckets(self, board_id: str) -> List[Bucket]:
        statement = select(Bucket).where(Bucket.board_id == board_id).order_by(Bucket.position)
        return [detach(bucket) for bucket in self.session.exec(statement).all()]

    async def list_cards(self, bucket_ids: Sequence[str]) -> List[Card]:
        if not bucket_ids:
            return []
        statement = select(Card).where(Card.bucket_id.in_(list(bucket_ids)))
        return [detach(card) for card in self.session.exec(statement).all()]

    async def list_labels(self, board_id: str) -> List[Label]:
        statement = select(Label).where(Label.board_id == board_id).order_by(Label.created_at)
        return [detach(label) for label in self.session.exec(statement).all()]

    async def find_card_board_id(self, card_id: str) -> Optional[str]:
        statement = select(Bucket.board_id).join(Card, Card.bucket_id == Bucket.id).where(Card.id == card_id)
        return self.session.exec(statement).first()

    async def add(self, entity: SQLModel) -> None:
        self._commit(
            lambda: self.session.add(detach(entity)),
            action="add", entity=type(entity).__name__, entity_id=getattr(entity, "id", "")
        )

    async def update(self, model: Type[SQLModel], entity_id: str, changes: Dict[str, Any]) -> None:
        def _apply():
            row = self.session.get(model, entity_id)
            if row is None:
                raise PersistenceError(
                    f"{model.__name__} {entity_id} not found in storage",
                    entity=model.__name__, entity_id=entity_id
                )
            for field_name, value in changes.items():
                setattr(row, field_name, copy.deepcopy(value))
            self.session.add(row)

        self._commit(_apply, action="update", entity=model.__name__, entity_id=entity_id)

    async def delete(self, model: Type[SQLModel], entity_id: str) -> None:
        def _apply():
            row = self.session.get(model, entity_id)
            if row is not None:
                self.session.delete(row)

        self._commit(_apply, action="delete", entity=model.__name__, entity_id=entity_id)

    async def load_snapshot(self) -> Tuple[List[Board], List[Bucket], List[Card]]:
        boards = await self.list_boards()
        buckets = [detach(bucket) for bucket in self.session.exec(select(Bucket)).all()]
        cards = [detach(card) for card in self.session.exec(select(Card)).all()]
        return boards, buckets, cards

    async def get_preferences(self, user_id: str) -> Optional[Dict[str, Any]]:
        row = self.session.get(UserPreferences, user_id)
        return copy.deepcopy(row.preferences) if row else None

    async def save_preferences(self, user_id: str, preferences: Dict[str, Any]) -> None:
        def _apply():
            row = self.session.get(UserPreferences, user_id)
            if row is None:
                row = UserPreferences(user_id=user_id)
            row.preferences = copy.deepcopy(preferences)
            row.updated_at = utc_now()
            self.session.add(row)

        self._commit(_apply, action="save", entity="UserPreferences", entity_id=user_id)

    def _commit(self, apply, action: str, entity: str, entity_id: str) -> None:
        try:
            apply()
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Storage write failed", extra={
                "action": action,
                "entity": entity,
                "entity_id": entity_id,
                "error": str(e)
            })
            raise PersistenceError(f"Failed to {action} {entity} {entity_id}", entity=entity, entity_id=entity_id) from e
        except PersistenceError:
            self.session.rollback()
            raise
