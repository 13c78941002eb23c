"""Tests for KnowledgeService."""

import pytest

from replydesk.core.errors import EmptyContent
from replydesk.models.knowledge import KnowledgeChunk, KnowledgeSource
from replydesk.services.knowledge_service import (
    KnowledgeService,
    candidate_limit,
)


def test_ingest_creates_source_and_chunks(db, setup_business, setup_knowledge):
    assert setup_knowledge.chunk_count == 1
    source = db.query(KnowledgeSource).filter(KnowledgeSource.id == setup_knowledge.source_id).one()
    assert source.title == "About us"
    chunk = db.query(KnowledgeChunk).filter(KnowledgeChunk.source_id == source.id).one()
    assert chunk.chunk_index == 0
    assert chunk.business_id == setup_business.id
    assert "ceramic" in chunk.keywords
    assert "the" not in chunk.keywords


def test_ingest_long_text_overlaps(db, setup_business):
    text = " ".join(f"word{i}" for i in range(1000))
    result = KnowledgeService(db).ingest(setup_business.id, "text", text)
    assert result.chunk_count == 2
    chunks = (
        db.query(KnowledgeChunk)
        .filter(KnowledgeChunk.source_id == result.source_id)
        .order_by(KnowledgeChunk.chunk_index)
        .all()
    )
    assert chunks[0].content.split(" ")[-120:] == chunks[1].content.split(" ")[:120]


def test_ingest_rejects_whitespace(db, setup_business):
    service = KnowledgeService(db)
    with pytest.raises(EmptyContent):
        service.ingest(setup_business.id, "text", "  \n\t ")
    with pytest.raises(EmptyContent):
        service.replace(setup_business.id, "text", "")
    assert service.has_content(setup_business.id) is False


def test_retrieve_ranks_by_overlap(db, setup_business, setup_knowledge):
    results = KnowledgeService(db).retrieve(setup_business.id, "ceramic coating warranty")
    assert len(results) == 1
    assert results[0].score == 1.0
    assert "five year warranty" in results[0].content


def test_verbatim_match_outranks_partial(db, setup_business):
    service = KnowledgeService(db)
    service.ingest(setup_business.id, "text", "We polish cars every day.")
    service.ingest(setup_business.id, "text", "Ceramic coating protects paint. We also polish.")
    results = service.retrieve(setup_business.id, "ceramic polish")
    assert [r.score for r in results] == [1.0, 0.5]
    assert results[0].content.startswith("Ceramic coating")


def test_full_match_survives_many_newer_partial_matches(db, setup_business):
    service = KnowledgeService(db)
    service.ingest(setup_business.id, "text", "Ceramic coating costs 500 dollars per vehicle.")
    for i in range(13):
        service.ingest(setup_business.id, "text", f"Wash package {i} has a great price.")
    results = service.retrieve(setup_business.id, "ceramic coating price")
    assert len(results) == 4
    assert results[0].content.startswith("Ceramic coating")
    assert results[0].score > results[1].score


def test_retrieve_falls_back_to_recent_chunks(db, setup_business, setup_knowledge):
    results = KnowledgeService(db).retrieve(setup_business.id, "zebra giraffe")
    assert len(results) == 1
    assert results[0].score == 0.0


def test_retrieve_respects_limit(db, setup_business, setup_knowledge_bulk):
    results = KnowledgeService(db).retrieve(setup_business.id, "wax", limit=3)
    assert len(results) == 3
    assert all(r.score == 1.0 for r in results)
    assert candidate_limit(3) == 12
    assert candidate_limit(10) == 30


def test_retrieve_is_scoped_to_business(db, setup_business, setup_knowledge):
    assert KnowledgeService(db).retrieve("other-business", "ceramic") == []


def test_retrieve_empty_query(db, setup_business, setup_knowledge):
    assert KnowledgeService(db).retrieve(setup_business.id, "   ") == []


def test_clear_removes_everything(db, setup_business, setup_knowledge_bulk):
    service = KnowledgeService(db)
    result = service.clear(setup_business.id)
    assert result.source_count == 3
    assert result.chunk_count == 40
    assert service.retrieve(setup_business.id, "wax") == []
    assert service.has_content(setup_business.id) is False


def test_replace_swaps_sources(db, setup_business, setup_knowledge):
    service = KnowledgeService(db)
    result = service.replace(setup_business.id, "text", "Mobile detailing only on weekends.")
    sources = db.query(KnowledgeSource).filter(KnowledgeSource.business_id == setup_business.id).all()
    assert [s.id for s in sources] == [result.source_id]
    assert service.retrieve(setup_business.id, "ceramic")[0].score == 0.0


def test_get_sources_query(db, setup_business, setup_knowledge):
    rows = db.execute(KnowledgeService(db).get_sources_query(setup_business.id)).scalars().all()
    assert len(rows) == 1
    assert rows[0].id == setup_knowledge.source_id
