"""Knowledge sources and their chunks."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from replydesk.db import Base, JSONType
from replydesk.models.mixins import TimestampMixin


class KnowledgeSource(Base, TimestampMixin):
    """One ingested unit (url, pasted text or document)."""

    __tablename__ = "knowledge_sources"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(String(64), nullable=False, index=True)
    source_type = Column(String(16), nullable=False)
    source_uri = Column(String(2048), nullable=True)
    title = Column(String(512), nullable=True)
    raw_text = Column(Text, nullable=False)

    chunks = relationship(
        "KnowledgeChunk",
        back_populates="source",
        cascade="all, delete-orphan",
        order_by="KnowledgeChunk.chunk_index",
    )


class KnowledgeChunk(Base):
    """Immutable retrieval unit; deleted with its source."""

    __tablename__ = "knowledge_chunks"

    __table_args__ = (
        Index("ix_knowledge_chunks_business_created", "business_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    source_id = Column(
        Uuid,
        ForeignKey("knowledge_sources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    business_id = Column(String(64), nullable=False)
    chunk_index = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    keywords = Column(JSONType, nullable=False, default=list)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    source = relationship("KnowledgeSource", back_populates="chunks")
