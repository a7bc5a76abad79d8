"""
Feature: Delete lists, cards and boards
  As a board user
  I want deletes to take dependent records with them
  So that no card is left without a list

Scenario: Delete a list
  Given a list with two cards and a sibling list
  When the list is deleted
  Then its cards are deleted too
  And the sibling list keeps its position

Scenario: Delete a board
  Given a board with lists, cards and labels
  When the board is deleted
  Then nothing of it remains in storage
"""

import pytest
import pytest_asyncio
from datetime import datetime, timezone
from sqlmodel import create_engine, Session, SQLModel, select
from models.boards import Board, Bucket, Card, Label
from store.board_store import BoardStore
from store.repository import SQLModelBoardRepository

NOW = datetime(2025, 3, 12, 15, 0, tzinfo=timezone.utc)


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest_asyncio.fixture(name="store")
async def store_fixture(session):
    store = BoardStore(SQLModelBoardRepository(session), clock=lambda: NOW)
    board = await store.create_board("Board")
    await store.load_board(board.id)
    return store


@pytest.mark.asyncio
async def test_delete_list_with_cards(store, session):
    # Given a list with two cards and a sibling list
    doomed = await store.create_list(store.board.id, "Doomed")
    sibling = await store.create_list(store.board.id, "Sibling")
    await store.create_card(doomed.id, "one")
    await store.create_card(doomed.id, "two")
    survivor = await store.create_card(sibling.id, "survivor")

    # When the list is deleted
    assert await store.delete_list(doomed.id) is True

    # Then its cards are gone and the sibling is untouched
    assert session.get(Bucket, doomed.id) is None
    assert [card.id for card in session.exec(select(Card)).all()] == [survivor.id]
    assert session.get(Bucket, sibling.id).position == 1
    assert [card.id for card in store.cards] == [survivor.id]


@pytest.mark.asyncio
async def test_delete_card(store, session):
    bucket = await store.create_list(store.board.id, "List")
    card = await store.create_card(bucket.id, "one")

    assert await store.delete_card(card.id) is True
    assert await store.delete_card(card.id) is False
    assert session.get(Card, card.id) is None


@pytest.mark.asyncio
async def test_delete_board_cascades(store, session):
    # Given a board with content
    board_id = store.board.id
    bucket = await store.create_list(board_id, "List")
    await store.create_card(bucket.id, "card")
    await store.create_label(board_id, "Bug", "#ef4444")

    # When the board is deleted
    assert await store.delete_board(board_id) is True

    # Then storage is empty and the store is unloaded
    assert session.get(Board, board_id) is None
    assert session.exec(select(Bucket)).all() == []
    assert session.exec(select(Card)).all() == []
    assert session.exec(select(Label)).all() == []
    assert store.board is None


@pytest.mark.asyncio
async def test_delete_unknown_list(store):
    assert await store.delete_list("bucket_missing") is False
