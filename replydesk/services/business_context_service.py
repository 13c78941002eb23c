"""Read side of the business-settings collaborator."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from replydesk.models.business import Business, BusinessIntegration, Service
from replydesk.schemas.auto_reply import AutoReplyRules
from replydesk.schemas.business import BusinessContext, IntegrationConfig, ServiceItem

SUPPORTED_LANGUAGES = ("en", "es")


class BusinessContextService:
    """
    Loads business configuration for the pipeline.

    Nothing is cached: every call reads the current row, so credential or rule
    changes apply to the next message.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_business(self, business_id: str) -> Optional[Business]:
        return self.db.query(Business).filter(Business.id == business_id).first()

    def load(self, business_id: str) -> Optional[BusinessContext]:
        business = self.get_business(business_id)
        if business is None:
            return None

        services = (
            self.db.query(Service)
            .filter(Service.business_id == business_id, Service.is_active.is_(True))
            .order_by(Service.name)
            .all()
        )
        language = (business.language_preference or "").lower()
        return BusinessContext(
            business_id=business.id,
            name=business.name,
            language_preference=language if language in SUPPORTED_LANGUAGES else None,
            office_hours=business.office_hours,
            greeting_message=business.greeting_message,
            auto_reply_rules=AutoReplyRules.from_raw(business.auto_reply_rules),
            ai_reply_enabled=bool(business.ai_reply_enabled),
            services=[ServiceItem.model_validate(service) for service in services],
        )

    def load_integration_config(self, business_id: str) -> IntegrationConfig:
        """Channel credentials for one business; empty config when none are stored."""
        integration = (
            self.db.query(BusinessIntegration)
            .filter(BusinessIntegration.business_id == business_id)
            .first()
        )
        if integration is None:
            return IntegrationConfig()
        return IntegrationConfig(
            whatsapp_access_token=integration.whatsapp_access_token,
            whatsapp_phone_number_id=integration.whatsapp_phone_number_id,
            instagram_access_token=integration.instagram_access_token,
            instagram_business_id=integration.instagram_business_id,
            webhook_verify_token=integration.webhook_verify_token,
        )
