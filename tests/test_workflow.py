from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from conftest import fixed_clock
from svgforge.application import PipelineCoordinator, configure_pipeline_coordinator, get_pipeline_coordinator
from svgforge.core.errors import RemoteServiceError
from svgforge.domain import JobStatus
from svgforge.infrastructure import EndpointKind, GalleryStore, InMemoryKeyValueStore, JsonFileKeyValueStore


@pytest.fixture()
def coordinator(submitter):
    return PipelineCoordinator(GalleryStore(InMemoryKeyValueStore()), submitter=submitter, clock=fixed_clock)


@pytest.fixture()
def client(coordinator, monkeypatch):
    monkeypatch.delenv("FAL_KEY", raising=False)
    monkeypatch.delenv("GALLERY_ROOT", raising=False)
    from svgforge.app import create_app

    app = create_app(coordinator)
    with TestClient(app) as test_client:
        yield test_client


def test_end_to_end_workflow(client, submitter):
    # 1. set the prompt
    response = client.put("/api/pipeline/prompt", json={"prompt": "a cat sleeping"})
    assert response.status_code == 200
    assert response.json()["prompt"] == "a cat sleeping"

    # 2. generate
    response = client.post("/api/pipeline/generate")
    assert response.status_code == 200
    body = response.json()
    assert body["accepted"] is True
    generation = body["pipeline"]["generation"]
    assert generation["status"] == "completed"
    assert generation["result"] == {
        "url": "https://v3.fal.media/files/cat/sleeping.jpeg",
        "width": 1024,
        "height": 576,
        "content_type": "image/jpeg",
    }
    assert generation["logs"][-1].endswith("Processing completed successfully")

    # 3. convert
    response = client.post("/api/pipeline/convert")
    body = response.json()
    assert body["accepted"] is True
    assert body["pipeline"]["conversion"]["result"]["url"].endswith(".svg")

    # 4. gallery lists both outputs, newest first
    response = client.get("/api/gallery")
    data = response.json()
    assert data["capacity"] == 50
    assert [item["type"] for item in data["items"]] == ["vector", "image"]
    assert all(item["prompt"] == "a cat sleeping" for item in data["items"])

    item_id = data["items"][0]["id"]
    assert client.get(f"/api/gallery/{item_id}").json()["id"] == item_id

    # 5. remove one, then clear
    assert client.delete(f"/api/gallery/{item_id}").json() == {"removed": item_id}
    assert len(client.get("/api/gallery").json()["items"]) == 1
    assert client.get(f"/api/gallery/{item_id}").status_code == 404

    client.delete("/api/gallery")
    assert client.get("/api/gallery").json()["items"] == []

    assert [call[0] for call in submitter.calls] == [EndpointKind.GENERATE, EndpointKind.VECTORIZE]


def test_generate_without_prompt_is_not_accepted(client, submitter):
    response = client.post("/api/pipeline/generate")

    assert response.status_code == 200
    assert response.json()["accepted"] is False
    assert response.json()["pipeline"]["generation"]["status"] == "idle"
    assert submitter.calls == []


def test_convert_before_generate_is_not_accepted(client):
    response = client.post("/api/pipeline/convert")

    assert response.json()["accepted"] is False
    assert response.json()["pipeline"]["conversion"]["status"] == "idle"


def test_failed_generation_reports_classified_error(client, submitter):
    submitter.script(EndpointKind.GENERATE, [], RemoteServiceError("network error: connection reset"))
    client.put("/api/pipeline/prompt", json={"prompt": "a cat sleeping"})

    body = client.post("/api/pipeline/generate").json()

    error = body["pipeline"]["generation"]["error"]
    assert body["pipeline"]["generation"]["status"] == "failed"
    assert error["kind"] == "network"
    assert error["retryable"] is True
    assert client.get("/api/gallery").json()["items"] == []

    cleared = client.post("/api/pipeline/errors/clear").json()
    assert cleared["generation"]["status"] == "idle"
    assert cleared["generation"]["error"] is None


def test_prompt_must_be_a_string(client):
    response = client.put("/api/pipeline/prompt", json={"prompt": 12})

    assert response.status_code == 400


def test_unknown_gallery_item(client):
    assert client.delete("/api/gallery/missing").status_code == 404


def test_root_landing(client):
    assert client.get("/").json()["health"] == "/api/pipeline"


def test_default_app_uses_gallery_root(tmp_path, monkeypatch):
    monkeypatch.delenv("FAL_KEY", raising=False)
    monkeypatch.setenv("GALLERY_ROOT", str(tmp_path))
    from svgforge.app import create_app

    create_app()
    gallery = get_pipeline_coordinator().gallery
    gallery.save("image", "https://cdn/a.jpeg", "a")

    reopened = GalleryStore(JsonFileKeyValueStore(tmp_path))
    assert [item.url for item in reopened.list()] == ["https://cdn/a.jpeg"]


def test_cancelled_request_leaves_job_running(held_submitter):
    from svgforge.routes.pipeline import start_generation

    async def scenario():
        coordinator = PipelineCoordinator(
            GalleryStore(InMemoryKeyValueStore()), submitter=held_submitter, clock=fixed_clock
        )
        configure_pipeline_coordinator(coordinator)
        coordinator.set_prompt("a cat sleeping")

        request = asyncio.ensure_future(start_generation(wait=True))
        await held_submitter.delivered()
        request.cancel()
        with pytest.raises(asyncio.CancelledError):
            await request
        assert coordinator.generation.status is JobStatus.PROCESSING

        held_submitter.release()
        while coordinator.is_generating:
            await asyncio.sleep(0)

        retry = await start_generation(wait=True)
        return coordinator, retry

    coordinator, retry = asyncio.run(scenario())

    assert coordinator.generation.status is JobStatus.COMPLETED
    assert retry["accepted"] is True
    assert len(held_submitter.calls) == 2
    assert [item.type for item in coordinator.gallery.list()] == ["image", "image"]
