"""Knowledge sources: chunked ingestion and keyword-ranked retrieval."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import case, or_, select
from sqlalchemy.orm import Session

from replydesk.core.errors import EmptyContent
from replydesk.core.keywords import (
    chunk_text,
    extract_keywords,
    normalize_whitespace,
    query_terms,
)
from replydesk.models.knowledge import KnowledgeChunk, KnowledgeSource
from replydesk.schemas.knowledge import ClearResult, IngestResult, RetrievedChunk

DEFAULT_RETRIEVE_LIMIT = 4
MIN_CANDIDATE_LIMIT = 12


def candidate_limit(limit: int) -> int:
    return max(limit * 3, MIN_CANDIDATE_LIMIT)


def overlap_score(terms: List[str], chunk: KnowledgeChunk) -> float:
    """Share of query terms present in the chunk (keyword bag or verbatim)."""
    if not terms:
        return 0.0
    bag = set(chunk.keywords or [])
    content = (chunk.content or "").lower()
    matched = sum(1 for term in terms if term in bag or term in content)
    return matched / len(terms)


class KnowledgeService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def ingest(
        self,
        business_id: str,
        source_type: str,
        raw_text: str,
        title: Optional[str] = None,
        source_uri: Optional[str] = None,
    ) -> IngestResult:
        """
        Persist one source and its overlapping word-window chunks.

        Raises:
            EmptyContent: when nothing but whitespace was supplied.
        """
        cleaned = normalize_whitespace(raw_text)
        if not cleaned:
            raise EmptyContent("No content to ingest.")

        source = KnowledgeSource(
            business_id=business_id,
            source_type=source_type,
            source_uri=source_uri,
            title=title,
            raw_text=cleaned,
        )
        self.db.add(source)
        self.db.flush()

        pieces = chunk_text(cleaned)
        for index, content in enumerate(pieces):
            self.db.add(
                KnowledgeChunk(
                    source_id=source.id,
                    business_id=business_id,
                    chunk_index=index,
                    content=content,
                    keywords=extract_keywords(content),
                )
            )
        self.db.commit()
        self.db.refresh(source)
        return IngestResult(source_id=source.id, chunk_count=len(pieces))

    def replace(
        self,
        business_id: str,
        source_type: str,
        raw_text: str,
        title: Optional[str] = None,
        source_uri: Optional[str] = None,
    ) -> IngestResult:
        """Clear then ingest. Not atomic: the knowledge base is briefly empty."""
        if not normalize_whitespace(raw_text):
            raise EmptyContent("No content to ingest.")
        self.clear(business_id)
        return self.ingest(business_id, source_type, raw_text, title, source_uri)

    def retrieve(
        self, business_id: str, query: str, limit: int = DEFAULT_RETRIEVE_LIMIT
    ) -> List[RetrievedChunk]:
        terms = query_terms(query)
        if not terms or limit <= 0:
            return []

        max_candidates = candidate_limit(limit)
        matches = [
            KnowledgeChunk.content.icontains(term, autoescape=True) for term in terms
        ]
        matched_terms = case((matches[0], 1), else_=0)
        for match in matches[1:]:
            matched_terms = matched_terms + case((match, 1), else_=0)
        candidates = (
            self.db.query(KnowledgeChunk)
            .filter(KnowledgeChunk.business_id == business_id)
            .filter(or_(*matches))
            .order_by(
                matched_terms.desc(),
                KnowledgeChunk.created_at.desc(),
                KnowledgeChunk.chunk_index,
            )
            .limit(max_candidates)
            .all()
        )
        if not candidates:
            candidates = self._recent_chunks(business_id, max_candidates)

        scored = [
            RetrievedChunk(
                id=chunk.id,
                source_id=chunk.source_id,
                chunk_index=chunk.chunk_index,
                content=chunk.content,
                score=overlap_score(terms, chunk),
            )
            for chunk in candidates
        ]
        scored.sort(key=lambda item: item.score, reverse=True)
        return scored[:limit]

    def _recent_chunks(self, business_id: str, limit: int) -> List[KnowledgeChunk]:
        return (
            self.db.query(KnowledgeChunk)
            .filter(KnowledgeChunk.business_id == business_id)
            .order_by(KnowledgeChunk.created_at.desc(), KnowledgeChunk.chunk_index)
            .limit(limit)
            .all()
        )

    def has_content(self, business_id: str) -> bool:
        return (
            self.db.query(KnowledgeSource.id)
            .filter(KnowledgeSource.business_id == business_id)
            .first()
            is not None
        )

    def clear(self, business_id: str) -> ClearResult:
        """Delete every chunk, then every source, of a business."""
        chunk_count = (
            self.db.query(KnowledgeChunk)
            .filter(KnowledgeChunk.business_id == business_id)
            .delete(synchronize_session=False)
        )
        source_count = (
            self.db.query(KnowledgeSource)
            .filter(KnowledgeSource.business_id == business_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return ClearResult(source_count=source_count, chunk_count=chunk_count)

    def get_sources_query(self, business_id: str):
        """Select statement for a business's sources, newest first (for pagination)."""
        return (
            select(KnowledgeSource)
            .where(KnowledgeSource.business_id == business_id)
            .order_by(KnowledgeSource.created_at.desc())
        )
