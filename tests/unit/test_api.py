"""
Unit tests for the FastAPI backend.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from apps.backend.main import app, get_knowledge_base
from resource_rag.errors import ServiceError, StorageError

from conftest import SKY_TEXT


@pytest.fixture
def client(knowledge_base):
    app.dependency_overrides[get_knowledge_base] = lambda: knowledge_base
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_query_delete(client):
    created = client.post("/resources", json={"content": SKY_TEXT, "resource_id": "sky"})
    assert created.status_code == 201
    assert created.json() == {"resource_id": "sky", "chunk_count": 3}

    found = client.post("/query", json={"question": "What color is the sky?"})
    assert found.status_code == 200
    body = found.json()
    assert body[0]["content"] == "The sky is blue"
    assert body[0]["similarity"] > 0.5

    deleted = client.delete("/resources/sky")
    assert deleted.json() == {"deleted": 3}
    assert client.post("/query", json={"question": "What color is the sky?"}).json() == []


def test_empty_resource_is_bad_request(client):
    response = client.post("/resources", json={"content": "  "})
    assert response.status_code == 400


def test_empty_question_rejected(client):
    response = client.post("/query", json={"question": ""})
    assert response.status_code == 422


@pytest.mark.parametrize("error, status", [(ServiceError("down"), 502), (StorageError("down"), 503)])
def test_collaborator_errors_map_to_status(error, status):
    kb = MagicMock()
    kb.find_relevant_content.side_effect = error
    app.dependency_overrides[get_knowledge_base] = lambda: kb
    try:
        response = TestClient(app).post("/query", json={"question": "sky"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == status
