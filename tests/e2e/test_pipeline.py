"""
End-to-end tests: ingest a resource, then query it, against both stores.
"""

from resource_rag.knowledge_base import KnowledgeBase

from conftest import SKY_TEXT


def test_ingest_and_retrieve(generator, any_store):
    kb = KnowledgeBase(generator, any_store)

    result = kb.add_resource(SKY_TEXT)
    assert result.chunk_count == 3
    assert any_store.count() == 3

    results = kb.find_relevant_content("What color is the sky?")
    assert results
    assert results[0].content == "The sky is blue"
    assert results[0].similarity > 0.5
    assert all(-1.0 <= r.similarity <= 1.0 for r in results)
    assert len(results) <= 4


def test_unrelated_query_returns_nothing(generator, any_store):
    kb = KnowledgeBase(generator, any_store)
    kb.add_resource(SKY_TEXT)

    assert kb.find_relevant_content("stock market trends") == []


def test_deleted_resource_is_no_longer_retrieved(generator, any_store):
    kb = KnowledgeBase(generator, any_store)
    sky = kb.add_resource(SKY_TEXT)
    kb.add_resource("Water boils at 100 degrees")

    kb.delete_resource(sky.resource_id)

    assert kb.find_relevant_content("What color is the sky?") == []
    water = kb.find_relevant_content("water boils degrees")
    assert [r.content for r in water] == ["Water boils at 100 degrees"]
