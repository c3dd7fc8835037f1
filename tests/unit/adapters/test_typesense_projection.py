"""Unit tests – Typesense search projection over a mocked HTTP API."""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest
import respx

from overflow.adapters.typesense import TypesenseSearchProjection
from overflow.application.projection import ProjectionDocument
from overflow.kernel.errors import ExternalServiceError, ProjectionUnavailableError

BASE = "http://search:8108"
DOCS = f"{BASE}/collections/questions/documents"

DOC = ProjectionDocument(
    id="q-1",
    title="How?",
    content="Body",
    tags=("python",),
    created_at=1767268800,
    answer_count=2,
    has_accepted_answer=True,
)


def run(call):
    """Run ``call(projection)`` against a fresh projection."""

    async def _run():
        async with TypesenseSearchProjection(BASE, "secret") as projection:
            return await call(projection)

    return asyncio.run(_run())


# ---------------------------------------------------------------------------
# Collection lifecycle
# ---------------------------------------------------------------------------


class TestCollection:
    @respx.mock
    def test_ensure_creates_missing_collection(self) -> None:
        respx.get(f"{BASE}/collections/questions").mock(return_value=httpx.Response(404))
        create = respx.post(f"{BASE}/collections").mock(return_value=httpx.Response(201, json={}))

        assert run(lambda p: p.ensure_collection()) is True
        body = json.loads(create.calls.last.request.content)
        assert body["name"] == "questions"
        assert body["default_sorting_field"] == "createdAt"
        assert {f["name"] for f in body["fields"]} >= {"tag", "answerCount", "hasAcceptedAnswer"}

    @respx.mock
    def test_ensure_keeps_existing_collection(self) -> None:
        respx.get(f"{BASE}/collections/questions").mock(return_value=httpx.Response(200, json={}))
        create = respx.post(f"{BASE}/collections")

        assert run(lambda p: p.ensure_collection()) is False
        assert not create.called

    @respx.mock
    def test_concurrent_create_is_tolerated(self) -> None:
        respx.post(f"{BASE}/collections").mock(return_value=httpx.Response(409))
        run(lambda p: p.create_collection())

    @respx.mock
    def test_api_key_header_is_sent(self) -> None:
        route = respx.get(f"{BASE}/collections/questions").mock(return_value=httpx.Response(200))
        run(lambda p: p.collection_exists())
        assert route.calls.last.request.headers["x-typesense-api-key"] == "secret"


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class TestDocuments:
    @respx.mock
    def test_upsert_sends_schema_field_names(self) -> None:
        route = respx.post(DOCS, params={"action": "upsert"}).mock(
            return_value=httpx.Response(200, json={})
        )
        run(lambda p: p.upsert(DOC))
        assert json.loads(route.calls.last.request.content) == {
            "id": "q-1",
            "title": "How?",
            "content": "Body",
            "tag": ["python"],
            "createdAt": 1767268800,
            "answerCount": 2,
            "hasAcceptedAnswer": True,
        }

    @respx.mock
    def test_get_round_trips_the_document(self) -> None:
        respx.get(f"{DOCS}/q-1").mock(return_value=httpx.Response(200, json=DOC.to_search()))
        respx.get(f"{DOCS}/q-2").mock(return_value=httpx.Response(404))
        assert run(lambda p: p.get("q-1")) == DOC
        assert run(lambda p: p.get("q-2")) is None

    @respx.mock
    def test_delete_missing_document_is_not_an_error(self) -> None:
        route = respx.delete(f"{DOCS}/q-1").mock(return_value=httpx.Response(404))
        run(lambda p: p.delete("q-1"))
        assert route.called

    @respx.mock
    def test_list_ids_parses_jsonl_export(self) -> None:
        respx.get(f"{DOCS}/export", params={"include_fields": "id"}).mock(
            return_value=httpx.Response(200, text='{"id":"q-1"}\n{"id":"q-2"}\n')
        )
        assert run(lambda p: p.list_ids()) == ["q-1", "q-2"]

    @respx.mock
    def test_empty_export(self) -> None:
        respx.get(f"{DOCS}/export", params={"include_fields": "id"}).mock(return_value=httpx.Response(200, text=""))
        assert run(lambda p: p.list_ids()) == []


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrors:
    @pytest.mark.parametrize("status", [429, 500, 503])
    @respx.mock
    def test_transient_statuses(self, status: int) -> None:
        respx.post(DOCS, params={"action": "upsert"}).mock(return_value=httpx.Response(status))
        with pytest.raises(ProjectionUnavailableError):
            run(lambda p: p.upsert(DOC))

    @respx.mock
    def test_timeout_is_transient(self) -> None:
        respx.post(DOCS, params={"action": "upsert"}).mock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(ProjectionUnavailableError):
            run(lambda p: p.upsert(DOC))

    @respx.mock
    def test_connection_error_is_transient(self) -> None:
        respx.delete(f"{DOCS}/q-1").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(ProjectionUnavailableError):
            run(lambda p: p.delete("q-1"))

    @respx.mock
    def test_bad_request_is_not_retried(self) -> None:
        respx.post(DOCS, params={"action": "upsert"}).mock(return_value=httpx.Response(400, text="bad field"))
        with pytest.raises(ExternalServiceError) as exc_info:
            run(lambda p: p.upsert(DOC))
        assert exc_info.value.status_code == 400
        assert not isinstance(exc_info.value, ProjectionUnavailableError)


class TestClientOwnership:
    def test_injected_client_is_not_closed(self) -> None:
        async def _run():
            client = httpx.AsyncClient()
            projection = TypesenseSearchProjection(BASE, "k", client=client)
            await projection.aclose()
            closed = client.is_closed
            await client.aclose()
            return closed

        assert asyncio.run(_run()) is False
