from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from replydesk.config import get_settings
from replydesk.db import get_db
from replydesk.models.business import Business
from replydesk.services.business_context_service import BusinessContextService


def get_business_or_404(business_id: str, db: Session) -> Business:
    business = BusinessContextService(db).get_business(business_id)
    if business is None:
        raise HTTPException(status_code=404, detail="Business not found")
    return business


def get_business_by_id(
    business_id: str,
    db: Session = Depends(get_db),
) -> Business:
    """FastAPI dependency to get a business by ID."""
    return get_business_or_404(business_id, db)


def require_non_production() -> None:
    """Hide dev-only routes in production."""
    if get_settings().is_production:
        raise HTTPException(status_code=404, detail="Not found")
