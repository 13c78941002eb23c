"""Knowledge base API: ingest, clear, list sources, debug retrieval."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.orm import Session

from replydesk.adapters.page_fetcher import PageFetcher
from replydesk.config import get_settings
from replydesk.core.errors import EmptyContent
from replydesk.db import get_db
from replydesk.infra.logging_config import get_logger
from replydesk.models.business import Business
from replydesk.routers.utils.dependencies import get_business_by_id, get_business_or_404
from replydesk.schemas.knowledge import (
    ClearResult,
    IngestMode,
    IngestResult,
    KnowledgeClearRequest,
    KnowledgeIngestRequest,
    KnowledgeRetrieveRequest,
    KnowledgeSourceRead,
    RetrievedChunk,
    SourceType,
)
from replydesk.services.knowledge_service import KnowledgeService

logger = get_logger("knowledge")

router = APIRouter(
    prefix="/knowledge",
    tags=["knowledge"],
    responses={404: {"description": "Not found"}},
)


@router.post("/ingest", response_model=IngestResult, status_code=201)
def ingest_knowledge(
    data: KnowledgeIngestRequest,
    db: Session = Depends(get_db),
) -> IngestResult:
    """Ingest pasted text, or fetch and ingest a URL. mode=replace clears first."""
    get_business_or_404(data.business_id, db)

    raw_text = data.content or ""
    title = data.title
    if not raw_text and data.source_type == SourceType.URL:
        fetched = PageFetcher(get_settings().url_fetch_timeout_seconds).fetch(
            data.source_uri
        )
        if fetched.error:
            raise HTTPException(status_code=400, detail=fetched.error)
        raw_text = fetched.text
        title = title or fetched.title

    service = KnowledgeService(db)
    ingest = service.replace if data.mode == IngestMode.REPLACE else service.ingest
    try:
        result = ingest(
            data.business_id,
            data.source_type.value,
            raw_text,
            title=title,
            source_uri=data.source_uri,
        )
    except EmptyContent as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    logger.info(
        "Ingested %s chunks for business %s (mode=%s)",
        result.chunk_count,
        data.business_id,
        data.mode.value,
    )
    return result


@router.post("/clear", response_model=ClearResult)
def clear_knowledge(
    data: KnowledgeClearRequest,
    db: Session = Depends(get_db),
) -> ClearResult:
    """Delete all knowledge sources and chunks of a business."""
    get_business_or_404(data.business_id, db)
    return KnowledgeService(db).clear(data.business_id)


@router.post("/retrieve", response_model=List[RetrievedChunk])
def retrieve_knowledge(
    data: KnowledgeRetrieveRequest,
    db: Session = Depends(get_db),
) -> List[RetrievedChunk]:
    """Run retrieval as the pipeline would (for debugging ranking)."""
    get_business_or_404(data.business_id, db)
    return KnowledgeService(db).retrieve(data.business_id, data.query, data.limit)


@router.get("/{business_id}/sources", response_model=Page[KnowledgeSourceRead])
def list_knowledge_sources(
    params: Params = Depends(),
    business: Business = Depends(get_business_by_id),
    db: Session = Depends(get_db),
) -> Page[KnowledgeSourceRead]:
    """List a business's knowledge sources with pagination."""
    query = KnowledgeService(db).get_sources_query(business.id)
    return paginate(db, query, params=params)
