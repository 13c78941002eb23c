from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from replydesk.config import get_settings

router = APIRouter(
    prefix="/system",
    tags=["system"],
    responses={404: {"description": "Not found"}},
)


class HealthRead(BaseModel):
    status: str = "ok"
    environment: str


class SettingsRead(BaseModel):
    """Non-sensitive configuration, for troubleshooting."""

    name: str
    environment: str
    log_level: str
    database_driver: Optional[str] = None
    database_host: Optional[str] = None
    meta_graph_api_version: str
    outbound_dry_run: bool
    follow_up_batch_size: int
    follow_up_interval_seconds: int


@router.get("/health", response_model=HealthRead)
def health() -> HealthRead:
    return HealthRead(environment=get_settings().environment)


@router.get("/settings", response_model=SettingsRead)
def get_system_settings() -> SettingsRead:
    """Return non-sensitive settings (no credentials, no tokens)."""
    s = get_settings()
    url_obj = s.database_url_obj
    return SettingsRead(
        name=s.app_name,
        environment=s.environment,
        log_level=s.log_level,
        database_driver=url_obj.get_backend_name(),
        database_host=url_obj.host,
        meta_graph_api_version=s.meta_graph_api_version,
        outbound_dry_run=s.outbound_dry_run,
        follow_up_batch_size=s.follow_up_batch_size,
        follow_up_interval_seconds=s.follow_up_interval_seconds,
    )
