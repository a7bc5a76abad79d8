"""
Feature: Change notifications
  As an open board view
  I want to be told about every mutation
  So that I can refresh without polling

Scenario: Store mutations are published
  Given a listener subscribed to the change feed
  When lists and cards are created, moved and deleted
  Then one event per mutation is received with the board id

Scenario: A failing listener
  Given a listener that raises
  When an event is published
  Then the other listeners still receive it
"""

import pytest
from sqlmodel import create_engine, Session, SQLModel
from store.board_store import BoardStore
from store.events import ChangeEvent, ChangeFeed
from store.repository import SQLModelBoardRepository


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.mark.asyncio
async def test_store_publishes_mutations(session):
    # Given a subscribed listener
    feed = ChangeFeed()
    received = []
    unsubscribe = feed.subscribe(received.append)
    store = BoardStore(SQLModelBoardRepository(session), feed=feed)

    # When the board is changed
    board = await store.create_board("Board")
    await store.load_board(board.id)
    bucket = await store.create_list(board.id, "To Do")
    card = await store.create_card(bucket.id, "Task")
    await store.move_card(card.id, bucket.id, 5.0)
    await store.delete_card(card.id)

    # Then every mutation is reported
    assert [(event.action, event.entity) for event in received] == [
        ("created", "board"),
        ("created", "bucket"),
        ("created", "card"),
        ("moved", "card"),
        ("deleted", "card"),
    ]
    assert all(event.board_id == board.id for event in received)

    # And ignored operations publish nothing
    unsubscribe()
    await store.delete_card("card_missing")
    assert len(received) == 5
    assert feed.listener_count() == 0


@pytest.mark.asyncio
async def test_failing_listener_does_not_block_others():
    feed = ChangeFeed()
    received = []

    def broken(event):
        raise RuntimeError("listener crashed")

    async def collecting(event):
        received.append(event)

    feed.subscribe(broken)
    feed.subscribe(collecting)

    event = ChangeEvent(action="updated", entity="card", entity_id="card_1", board_id="board_1")
    await feed.publish(event)

    assert received == [event]
    assert event.as_dict() == {
        "type": "board_changed",
        "action": "updated",
        "entity": "card",
        "entity_id": "card_1",
        "board_id": "board_1",
    }
