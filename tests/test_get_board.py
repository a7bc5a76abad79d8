"""
Feature: Board endpoints
  As the frontend
  I want to fetch a board with its lists, cards and labels in order
  So that I can render it without sorting client side

Scenario: Successfully get an existing board
  Given a board with two lists and cards in each
  When GET /boards/{board_id} is called
  Then lists come by position and cards by list then position
  And labels are included

Scenario: Get a non-existent board
  When details for an unknown board are requested
  Then the system returns 404 Not Found
"""

import pytest
from fastapi import HTTPException
from sqlmodel import create_engine, Session, SQLModel
from apis.boards import create_board, delete_board, get_board, list_boards, update_board
from apis.buckets import create_bucket, delete_bucket, move_bucket
from apis.cards import create_card, delete_card, move_card, search_cards, set_card_labels, update_card
from apis.labels import create_label, update_label
from apis.schemas.boards import CreateBoardRequest, CreateBucketRequest, MoveBucketRequest, UpdateBoardRequest
from apis.schemas.cards import CardLabelsRequest, CreateCardRequest, MoveCardRequest, UpdateCardRequest
from apis.schemas.labels import CreateLabelRequest, UpdateLabelRequest
from models.boards import ViewMode
from store.filters import CardFilters


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


async def seed_board(session):
    board = await create_board(board_data=CreateBoardRequest(title="Launch"), db_session=session)
    todo = await create_bucket(board_id=board.id, bucket_data=CreateBucketRequest(title="To Do"), db_session=session)
    done = await create_bucket(board_id=board.id, bucket_data=CreateBucketRequest(title="Done"), db_session=session)
    cards = []
    for bucket, title in ((todo, "Write copy"), (todo, "Design banner"), (done, "Pick date")):
        cards.append(await create_card(
            board_id=board.id,
            card_data=CreateCardRequest(bucket_id=bucket.id, title=title),
            db_session=session
        ))
    return board, todo, done, cards


@pytest.mark.asyncio
async def test_get_board_success(session):
    # Given a board with lists and cards
    board, todo, done, cards = await seed_board(session)
    await create_label(board_id=board.id, label_data=CreateLabelRequest(name="Bug", color="#ef4444"), db_session=session)
    await move_bucket(board_id=board.id, bucket_id=done.id, move_data=MoveBucketRequest(position=0), db_session=session)

    # When the board is requested
    result = await get_board(board_id=board.id, db_session=session)

    # Then lists and cards come in order
    assert result.id == board.id
    assert result.title == "Launch"
    assert result.view_mode == ViewMode.CARDS
    assert [bucket.title for bucket in result.buckets] == ["Done", "To Do"]
    assert [card.title for card in result.cards] == ["Pick date", "Write copy", "Design banner"]
    assert [label.name for label in result.labels] == ["Bug"]

    boards = await list_boards(db_session=session)
    assert [item.id for item in boards] == [board.id]


@pytest.mark.asyncio
async def test_get_board_not_found(session):
    with pytest.raises(HTTPException) as error:
        await get_board(board_id="board_nonexistent", db_session=session)

    assert error.value.status_code == 404


@pytest.mark.asyncio
async def test_update_and_delete_board(session):
    board, _, _, _ = await seed_board(session)

    updated = await update_board(
        board_id=board.id,
        board_data=UpdateBoardRequest(title="Relaunch", view_mode=ViewMode.LIST),
        db_session=session
    )
    assert updated.title == "Relaunch"
    assert updated.view_mode == ViewMode.LIST

    result = await delete_board(board_id=board.id, db_session=session)
    assert result.message == "Board deleted successfully"
    with pytest.raises(HTTPException):
        await get_board(board_id=board.id, db_session=session)


@pytest.mark.asyncio
async def test_card_endpoints(session):
    # Given a seeded board
    board, todo, done, cards = await seed_board(session)
    label = await create_label(board_id=board.id, label_data=CreateLabelRequest(name="Copy", color="#10b981"), db_session=session)

    # When a card is updated with labels and a priority
    card = await update_card(
        board_id=board.id,
        card_id=cards[0].id,
        card_data=UpdateCardRequest(description="Homepage text", priority="high", label_ids=[label.id]),
        db_session=session
    )

    # Then the response reflects every change
    assert card.description == "Homepage text"
    assert card.priority == "high"
    assert [embedded.name for embedded in card.labels] == ["Copy"]
    assert card.title == "Write copy"

    # When the label is renamed, the card follows
    await update_label(board_id=board.id, label_id=label.id, label_data=UpdateLabelRequest(name="Content"), db_session=session)
    found = await search_cards(board_id=board.id, filters=CardFilters(search_query="content"), db_session=session)
    assert [item.id for item in found] == [cards[0].id]

    # When the card is dropped at the head of Done
    moved = await move_card(
        board_id=board.id,
        card_id=cards[0].id,
        move_data=MoveCardRequest(bucket_id=done.id, index=0),
        db_session=session
    )
    assert moved.bucket_id == done.id
    assert moved.position == -1.0

    detail = await get_board(board_id=board.id, db_session=session)
    assert [item.title for item in detail.cards] == ["Design banner", "Write copy", "Pick date"]

    # When labels are cleared and the card deleted
    cleared = await set_card_labels(board_id=board.id, card_id=cards[0].id, labels_data=CardLabelsRequest(label_ids=[]), db_session=session)
    assert cleared.labels == []
    await delete_card(board_id=board.id, card_id=cards[0].id, db_session=session)
    with pytest.raises(HTTPException) as error:
        await delete_card(board_id=board.id, card_id=cards[0].id, db_session=session)
    assert error.value.status_code == 404


@pytest.mark.asyncio
async def test_unknown_ids_return_404(session):
    board, todo, _, cards = await seed_board(session)

    with pytest.raises(HTTPException) as error:
        await create_card(board_id=board.id, card_data=CreateCardRequest(bucket_id="bucket_missing", title="x"), db_session=session)
    assert error.value.status_code == 404

    with pytest.raises(HTTPException) as error:
        await move_card(board_id=board.id, card_id=cards[0].id, move_data=MoveCardRequest(bucket_id="bucket_missing"), db_session=session)
    assert error.value.status_code == 404

    with pytest.raises(HTTPException) as error:
        await update_card(board_id=board.id, card_id="card_missing", card_data=UpdateCardRequest(title="x"), db_session=session)
    assert error.value.status_code == 404

    with pytest.raises(HTTPException) as error:
        await delete_bucket(board_id=board.id, bucket_id="bucket_missing", db_session=session)
    assert error.value.status_code == 404

    result = await delete_bucket(board_id=board.id, bucket_id=todo.id, db_session=session)
    assert result.message == "List deleted successfully"
