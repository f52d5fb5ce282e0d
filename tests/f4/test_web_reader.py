"""Tests for reader session endpoints (F4)."""

import time

import pytest
from fastapi.testclient import TestClient

from bookreader.core.clock import ManualScheduler
from bookreader.web.api import create_app
from bookreader.web.sessions import ReaderSessionManager, reset_session_manager


@pytest.fixture
def source(source_factory):
    return source_factory(page_count=48)


@pytest.fixture
def client(fake_books, source):
    """Test client with fake services and a frozen flip clock.

    Used as a context manager so that one event loop serves every request
    and background renders keep running between them.
    """
    reset_session_manager(
        ReaderSessionManager(books=fake_books, pdf_source=source, scheduler=ManualScheduler())
    )
    with TestClient(create_app()) as test_client:
        yield test_client
    reset_session_manager()


def _open(client, book_id="book-1"):
    response = client.post("/api/reader/sessions", json={"book_id": book_id})
    assert response.status_code == 201
    return response.json()


def _wait_for_page(client, session_id, page, attempts=100):
    for _ in range(attempts):
        response = client.get(f"/api/reader/sessions/{session_id}/pages/{page}.png")
        if response.status_code == 200:
            return response
        time.sleep(0.01)
    return response


class TestOpenReader:
    """Tests for POST /api/reader/sessions."""

    def test_open_returns_cover_view(self, client):
        data = _open(client)
        assert data["book_id"] == "book-1"
        assert "session_id" in data
        view = data["view"]
        assert view["status"] == "ready"
        assert view["spread_index"] == 0
        assert view["is_cover"] is True
        assert view["total_spreads"] == 25
        assert view["page_label"] == "Capa (Página 1) de 48"
        assert view["scale"] == 1.0

    def test_open_book_without_pdf(self, client, source):
        view = _open(client, "no-pdf")["view"]
        assert view["status"] == "pdf_unavailable"
        assert source.load_calls == []

    def test_open_unknown_book(self, client):
        view = _open(client, "missing")["view"]
        assert view["status"] == "error"
        assert view["error"] == "Erro ao carregar o livro"

    def test_open_requires_book_id(self, client):
        response = client.post("/api/reader/sessions", json={"book_id": ""})
        assert response.status_code == 422

    def test_unique_session_ids(self, client):
        assert _open(client)["session_id"] != _open(client)["session_id"]


class TestGetAndClose:
    """Tests for GET / DELETE."""

    def test_get_session(self, client):
        session_id = _open(client)["session_id"]
        response = client.get(f"/api/reader/sessions/{session_id}")
        assert response.status_code == 200
        assert response.json()["session_id"] == session_id

    def test_get_unknown_session(self, client):
        response = client.get("/api/reader/sessions/nope")
        assert response.status_code == 404
        assert "not found" in response.json()["detail"].lower()

    def test_close_session(self, client):
        session_id = _open(client)["session_id"]
        assert client.delete(f"/api/reader/sessions/{session_id}").status_code == 204
        assert client.get(f"/api/reader/sessions/{session_id}").status_code == 404

    def test_close_unknown_session(self, client):
        assert client.delete("/api/reader/sessions/nope").status_code == 404


class TestKeys:
    """Tests for POST /keys."""

    def test_arrow_right_starts_flip(self, client):
        session_id = _open(client)["session_id"]
        response = client.post(
            f"/api/reader/sessions/{session_id}/keys", json={"key": "ArrowRight"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["prevented"] is True
        assert data["view"]["flip_phase"] == "leaving"
        assert data["view"]["flip_direction"] == "forward"

    def test_end_jumps_to_last_spread(self, client):
        session_id = _open(client)["session_id"]
        data = client.post(
            f"/api/reader/sessions/{session_id}/keys", json={"key": "End"}
        ).json()
        assert data["view"]["spread_index"] == 24
        assert data["view"]["page_label"] == "Página 48 de 48"

    def test_ctrl_s_prevented(self, client):
        session_id = _open(client)["session_id"]
        data = client.post(
            f"/api/reader/sessions/{session_id}/keys", json={"key": "s", "ctrl": True}
        ).json()
        assert data["prevented"] is True
        assert data["view"]["spread_index"] == 0

    def test_unbound_key_not_prevented(self, client):
        session_id = _open(client)["session_id"]
        data = client.post(
            f"/api/reader/sessions/{session_id}/keys", json={"key": "x"}
        ).json()
        assert data["prevented"] is False

    def test_keys_unknown_session(self, client):
        response = client.post("/api/reader/sessions/nope/keys", json={"key": "End"})
        assert response.status_code == 404


class TestZoomAndFullscreen:
    """Tests for POST /zoom and /fullscreen."""

    def test_zoom_in_and_reset(self, client):
        session_id = _open(client)["session_id"]
        view = client.post(
            f"/api/reader/sessions/{session_id}/zoom", json={"action": "in"}
        ).json()
        assert view["scale"] == 1.25

        view = client.post(
            f"/api/reader/sessions/{session_id}/zoom", json={"action": "reset"}
        ).json()
        assert view["scale"] == 1.0

    def test_zoom_out_clamped(self, client):
        session_id = _open(client)["session_id"]
        for _ in range(5):
            view = client.post(
                f"/api/reader/sessions/{session_id}/zoom", json={"action": "out"}
            ).json()
        assert view["scale"] == 0.5
        assert view["can_zoom_out"] is False

    def test_invalid_zoom_action(self, client):
        session_id = _open(client)["session_id"]
        response = client.post(
            f"/api/reader/sessions/{session_id}/zoom", json={"action": "sideways"}
        )
        assert response.status_code == 422

    def test_fullscreen_toggle_and_sync(self, client):
        session_id = _open(client)["session_id"]
        view = client.post(f"/api/reader/sessions/{session_id}/fullscreen", json={}).json()
        assert view["fullscreen"] is True
        assert "fullscreen" in view["css_classes"]

        view = client.post(
            f"/api/reader/sessions/{session_id}/fullscreen", json={"active": False}
        ).json()
        assert view["fullscreen"] is False


class TestPageImages:
    """Tests for GET /pages/{n}.png."""

    def test_rendered_page_served(self, client):
        session_id = _open(client)["session_id"]
        response = _wait_for_page(client, session_id, 1)
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content == b"png-1-1.0"

    def test_page_not_preloaded(self, client):
        session_id = _open(client)["session_id"]
        response = client.get(f"/api/reader/sessions/{session_id}/pages/40.png")
        assert response.status_code == 404

    def test_page_of_unavailable_pdf(self, client):
        session_id = _open(client, "no-pdf")["session_id"]
        response = client.get(f"/api/reader/sessions/{session_id}/pages/1.png")
        assert response.status_code == 404
