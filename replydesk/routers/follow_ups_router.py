"""Follow-up queue API: enqueue nudges and run a scheduler batch on demand."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.orm import Session

from replydesk.commands.follow_ups.process_follow_ups_command import (
    ProcessFollowUpsCommand,
)
from replydesk.db import get_db
from replydesk.routers.utils.dependencies import get_business_or_404
from replydesk.schemas.follow_up import (
    FollowUpCreate,
    FollowUpRead,
    FollowUpRunResult,
    FollowUpStatus,
)
from replydesk.services.follow_up_service import FollowUpService

router = APIRouter(
    prefix="/follow-ups",
    tags=["follow-ups"],
    responses={404: {"description": "Not found"}},
)


@router.post("", response_model=FollowUpRead, status_code=201)
def create_follow_up(
    data: FollowUpCreate,
    db: Session = Depends(get_db),
) -> FollowUpRead:
    """Enqueue a pending follow-up for a conversation."""
    get_business_or_404(data.business_id, db)
    item = FollowUpService(db).enqueue(data)
    return FollowUpRead.model_validate(item)


@router.get("", response_model=Page[FollowUpRead])
def list_follow_ups(
    business_id: str = Query(...),
    status: Optional[FollowUpStatus] = Query(None),
    params: Params = Depends(),
    db: Session = Depends(get_db),
) -> Page[FollowUpRead]:
    """List a business's follow-ups, optionally filtered by status."""
    query = FollowUpService(db).get_follow_ups_query(
        business_id, status.value if status else None
    )
    return paginate(db, query, params=params)


@router.post("/process", response_model=FollowUpRunResult)
def process_follow_ups(
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
) -> FollowUpRunResult:
    """Process one batch of due follow-ups now."""
    return ProcessFollowUpsCommand(db).execute(limit=limit)
