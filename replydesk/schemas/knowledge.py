"""Pydantic schemas for knowledge ingestion and retrieval."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SourceType(str, Enum):
    URL = "url"
    TEXT = "text"
    DOCUMENT = "document"


class IngestMode(str, Enum):
    APPEND = "append"
    REPLACE = "replace"


class KnowledgeIngestRequest(BaseModel):
    """Request schema for ingesting one knowledge source."""

    business_id: str = Field(..., min_length=1)
    source_type: SourceType = SourceType.TEXT
    source_uri: Optional[str] = Field(None, max_length=2048)
    title: Optional[str] = Field(None, max_length=512)
    content: Optional[str] = None
    mode: IngestMode = IngestMode.APPEND

    @model_validator(mode="after")
    def require_content_or_url(self) -> "KnowledgeIngestRequest":
        if self.content:
            return self
        if self.source_type == SourceType.URL and self.source_uri:
            if not self.source_uri.startswith(("http://", "https://")):
                raise ValueError("source_uri must be http:// or https://")
            return self
        raise ValueError("content is required unless source_type is url with source_uri")


class IngestResult(BaseModel):
    source_id: UUID
    chunk_count: int


class KnowledgeClearRequest(BaseModel):
    business_id: str = Field(..., min_length=1)


class ClearResult(BaseModel):
    source_count: int
    chunk_count: int


class KnowledgeRetrieveRequest(BaseModel):
    business_id: str = Field(..., min_length=1)
    query: str
    limit: int = Field(4, ge=1, le=20)


class RetrievedChunk(BaseModel):
    """A chunk returned by retrieval with its keyword-overlap score (0..1)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    source_id: UUID
    chunk_index: int
    content: str
    score: float = 0.0


class KnowledgeSourceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    business_id: str
    source_type: str
    source_uri: Optional[str] = None
    title: Optional[str] = None
    created_at: datetime
