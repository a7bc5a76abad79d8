from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlmodel import Session
from database import get_session
from dashboard.dataset import BoardSnapshot
from dashboard.export import export_filename, export_json
from dashboard.models import DashboardScope
from dashboard.my_tasks import (
    bulk_complete,
    bulk_shift_due_dates,
    build_my_tasks,
    claim_card,
    list_unassigned,
    quick_filter,
)
from dashboard.preferences import load_user_context
from dashboard.service import compute_dashboard_metrics
from helpers.dates import utc_now
from helpers.stores import board_repository, persistence_errors
from store.events import change_feed
from .schemas.cards import CardResponse
from .schemas.dashboard import (
    BulkCompleteRequest,
    BulkDueDateRequest,
    BulkResultResponse,
    ClaimCardRequest,
    MyTasksResponse,
    TaskItemResponse,
)
from typing import Any, Dict, List, Literal, Optional

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

DateRange = Literal["today", "week", "month", "all"]


async def _metrics(db_session: Session, board_id: str, assignee: Optional[str], date_range: str, user_id: Optional[str]):
    repository = board_repository(db_session)
    snapshot = await BoardSnapshot.load(repository)
    if board_id != "all" and snapshot.board(board_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Board not found"
        )
    user = await load_user_context(repository, user_id)
    scope = DashboardScope(board_id=board_id, assignee=assignee or None, date_range=date_range)
    return snapshot, compute_dashboard_metrics(snapshot, scope, utc_now(), user)


@router.get("/metrics")
async def get_metrics(
    board_id: str = Query(default="all", description="Board ID or 'all'"),
    assignee: Optional[str] = Query(default=None, description="Assignee ID or 'unassigned'"),
    date_range: DateRange = Query(default="week", description="Window of the summary 'in range' counts"),
    user_id: Optional[str] = Query(default=None, description="Active user, enables personal targets"),
    db_session: Session = Depends(get_session)
) -> Dict[str, Any]:
    """Compute every dashboard metric for the requested scope."""
    _, bundle = await _metrics(db_session, board_id, assignee, date_range, user_id)
    return bundle.as_dict()


@router.get("/export")
async def export_metrics(
    board_id: str = Query(default="all", description="Board ID or 'all'"),
    assignee: Optional[str] = Query(default=None, description="Assignee ID or 'unassigned'"),
    date_range: DateRange = Query(default="week"),
    db_session: Session = Depends(get_session)
) -> Response:
    """Download the metrics as a JSON document."""
    snapshot, bundle = await _metrics(db_session, board_id, assignee, date_range, None)
    return Response(
        content=export_json(bundle, snapshot),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(bundle.generated_at)}"'}
    )


@router.get("/my-tasks")
async def get_my_tasks(
    user_id: str = Query(..., description="User ID or 'unassigned'"),
    search: str = Query(default="", description="Text search over title, description and labels"),
    quick: str = Query(default="all", description="Quick filter applied to the 'filtered' group"),
    db_session: Session = Depends(get_session)
) -> MyTasksResponse:
    """Active cards of a user across every board."""
    snapshot = await BoardSnapshot.load(board_repository(db_session))
    now = utc_now()
    view = build_my_tasks(snapshot, user_id, now, search_query=search)

    source = view.recently_completed if quick == "completed" else view.tasks
    response = MyTasksResponse.model_validate(view)
    response.filtered = [TaskItemResponse.model_validate(item) for item in quick_filter(source, quick, now)]
    return response


@router.get("/unassigned")
async def get_unassigned(
    search: str = Query(default=""),
    board_id: str = Query(default="all"),
    priority: Literal["all", "low", "medium", "high"] = Query(default="all"),
    label_ids: List[str] = Query(default=[]),
    due: Literal["all", "overdue", "today", "this-week", "no-date"] = Query(default="all"),
    db_session: Session = Depends(get_session)
) -> List[TaskItemResponse]:
    """Active cards nobody is assigned to."""
    snapshot = await BoardSnapshot.load(board_repository(db_session))
    items = list_unassigned(
        snapshot, utc_now(),
        search_query=search,
        board_id=board_id,
        priority=priority,
        label_ids=label_ids,
        due_filter=due,
    )
    return [TaskItemResponse.model_validate(item) for item in items]


@router.post("/claim")
async def claim(
    claim_data: ClaimCardRequest,
    db_session: Session = Depends(get_session)
) -> CardResponse:
    """Make a user the only assignee of a card."""
    with persistence_errors():
        card = await claim_card(board_repository(db_session), claim_data.card_id, claim_data.user_id, feed=change_feed)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Card not found"
        )
    return CardResponse.model_validate(card)


@router.post("/bulk-complete")
async def complete_many(
    bulk_data: BulkCompleteRequest,
    db_session: Session = Depends(get_session)
) -> BulkResultResponse:
    with persistence_errors():
        updated = await bulk_complete(board_repository(db_session), bulk_data.card_ids, feed=change_feed)
    return BulkResultResponse(
        updated=updated,
        missing=[card_id for card_id in bulk_data.card_ids if card_id not in updated]
    )


@router.post("/bulk-due-date")
async def reschedule_many(
    bulk_data: BulkDueDateRequest,
    db_session: Session = Depends(get_session)
) -> BulkResultResponse:
    """Set the due date of several cards to N days from now."""
    with persistence_errors():
        updated = await bulk_shift_due_dates(board_repository(db_session), bulk_data.card_ids, bulk_data.days, feed=change_feed)
    return BulkResultResponse(
        updated=updated,
        missing=[card_id for card_id in bulk_data.card_ids if card_id not in updated]
    )
