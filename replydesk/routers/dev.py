"""Dev-only routes; every route answers 404 in production."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from replydesk.commands.simulate_chatbot_command import SimulateChatbotCommand
from replydesk.core.errors import InvalidPayload
from replydesk.db import get_db
from replydesk.routers.utils.dependencies import require_non_production
from replydesk.schemas.pipeline import SimulateRequest, SimulateResponse

router = APIRouter(
    prefix="/dev",
    tags=["dev"],
    dependencies=[Depends(require_non_production)],
)


@router.post("/chatbot-simulate", response_model=SimulateResponse)
def simulate_chatbot(
    data: SimulateRequest,
    db: Session = Depends(get_db),
) -> SimulateResponse:
    """Run the full pipeline in dry-run for a synthetic message and return every step."""
    try:
        return SimulateChatbotCommand(db).execute(data)
    except InvalidPayload as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
