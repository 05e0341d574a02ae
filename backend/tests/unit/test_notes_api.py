import pytest
from fastapi.testclient import TestClient

from backend.src.services.notes import NoteService, SearchQuery, escape_html, highlight_html
from backend.src.services.users import UserService


def _auth(key: str) -> dict:
    return {"Authorization": f"Bearer {key}"}


def _create(client: TestClient, key: str, book: str, content: str, public: bool = False) -> dict:
    response = client.post(
        "/api/v3/notes",
        json={"book_name": book, "content": content, "public": public},
        headers=_auth(key),
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def alice(signup) -> str:
    return signup("alice@example.com")


@pytest.fixture
def populated(client: TestClient, alice: str) -> dict:
    return {
        "merge": _create(client, alice, "algorithms", "Merge sort splits the list in halves"),
        "heap": _create(client, alice, "algorithms", "Building a heap takes linear time"),
        "redis": _create(client, alice, "redis", "RPOPLPUSH moves an item between lists"),
        "old": _create(client, alice, "old", "Merge conflicts in the old repo"),
    }


def _archive(db, label: str) -> None:
    conn = db.connect()
    try:
        with conn:
            conn.execute("UPDATE books SET archive = 1 WHERE label = ?", (label,))
    finally:
        conn.close()


def test_html_renderers_escape_literal_text() -> None:
    assert highlight_html("<b>") == "<mark>&lt;b&gt;</mark>"
    assert escape_html("a < b & c") == "a &lt; b &amp; c"


class TestCreate:
    def test_create_returns_note(self, client: TestClient, alice: str) -> None:
        note = _create(client, alice, "linux", "find - recursively walk the directory")

        assert note["book_label"] == "linux"
        assert note["body"] == "find - recursively walk the directory"
        assert note["public"] is False
        assert note["uuid"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"book_name": "trash", "content": "x"},
            {"book_name": "123", "content": "x"},
            {"book_name": "two words", "content": "x"},
            {"book_name": "linux", "content": "   "},
            {"content": "x"},
        ],
    )
    def test_invalid_payloads_are_rejected(self, client: TestClient, alice: str, payload) -> None:
        response = client.post("/api/v3/notes", json=payload, headers=_auth(alice))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_local_dev_token_acts_as_local_user(self, client: TestClient) -> None:
        note = _create(client, "local-test-token", "scratch", "hello from local mode")

        listing = client.get("/api/v3/notes", headers=_auth("local-test-token")).json()

        assert [n["uuid"] for n in listing["notes"]] == [note["uuid"]]


class TestList:
    def test_lists_newest_first(self, client: TestClient, alice: str, populated: dict) -> None:
        response = client.get("/api/v3/notes", headers=_auth(alice))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 4
        assert body["notes"][0]["uuid"] == populated["old"]["uuid"]

    def test_archived_books_are_hidden_unless_all(
        self, client: TestClient, alice: str, populated: dict, db
    ) -> None:
        _archive(db, "old")

        active = client.get("/api/v3/notes", headers=_auth(alice)).json()
        everything = client.get("/api/v3/notes?all=true", headers=_auth(alice)).json()

        assert populated["old"]["uuid"] not in [n["uuid"] for n in active["notes"]]
        assert everything["total"] == 4

    def test_book_filter(self, client: TestClient, alice: str, populated: dict) -> None:
        body = client.get("/api/v3/notes?book=redis", headers=_auth(alice)).json()

        assert [n["uuid"] for n in body["notes"]] == [populated["redis"]["uuid"]]

    def test_unknown_book_is_not_found(self, client: TestClient, alice: str, populated: dict) -> None:
        response = client.get("/api/v3/notes?book=missing", headers=_auth(alice))

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_users_only_see_their_own_notes(
        self, client: TestClient, signup, populated: dict
    ) -> None:
        bob = signup("bob@example.com")

        body = client.get("/api/v3/notes", headers=_auth(bob)).json()

        assert body == {"notes": [], "total": 0}


class TestSearch:
    def test_search_highlights_matches(self, client: TestClient, alice: str, populated: dict) -> None:
        response = client.get("/api/v3/notes", params={"q": "merge sort"}, headers=_auth(alice))

        assert response.status_code == 200
        body = response.json()
        assert body["query"] == "merge sort"
        assert body["total"] == 1
        result = body["results"][0]
        assert result["uuid"] == populated["merge"]["uuid"]
        assert result["book_label"] == "algorithms"
        assert result["snippet"] == "<mark>Merge sort</mark> splits the list in halves"

    def test_search_skips_archived_unless_all(
        self, client: TestClient, alice: str, populated: dict, db
    ) -> None:
        _archive(db, "old")

        active = client.get("/api/v3/notes", params={"q": "merge"}, headers=_auth(alice)).json()
        everything = client.get(
            "/api/v3/notes", params={"q": "merge", "all": "true"}, headers=_auth(alice)
        ).json()

        assert [r["book_label"] for r in active["results"]] == ["algorithms"]
        assert sorted(r["book_label"] for r in everything["results"]) == ["algorithms", "old"]
        assert {r["book_label"]: r["archived"] for r in everything["results"]}["old"] is True

    def test_search_book_pattern_includes_archived(
        self, client: TestClient, alice: str, populated: dict, db
    ) -> None:
        _archive(db, "old")

        body = client.get(
            "/api/v3/notes", params={"q": "merge", "book": "ol%"}, headers=_auth(alice)
        ).json()

        assert [r["book_label"] for r in body["results"]] == ["old"]

    def test_search_escapes_note_html(self, client: TestClient, alice: str) -> None:
        _create(client, alice, "web", "Use <script>alert(1)</script> carefully")

        body = client.get("/api/v3/notes", params={"q": "alert"}, headers=_auth(alice)).json()

        snippet = body["results"][0]["snippet"]
        assert "<script>" not in snippet
        assert "&lt;script&gt;<mark>alert</mark>(1)&lt;/script&gt;" in snippet

    def test_operators_are_searched_literally(self, client: TestClient, alice: str, populated: dict) -> None:
        response = client.get("/api/v3/notes", params={"q": "heap OR NEAR"}, headers=_auth(alice))

        assert response.status_code == 200
        assert response.json()["total"] == 0

    def test_unbalanced_quote_is_a_bad_query(self, client: TestClient, alice: str, populated: dict) -> None:
        response = client.get("/api/v3/notes", params={"q": 'say"hi'}, headers=_auth(alice))

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_query"

    def test_deleted_notes_leave_the_index(self, client: TestClient, alice: str, populated: dict) -> None:
        client.delete(f"/api/v3/notes/{populated['redis']['uuid']}", headers=_auth(alice))

        body = client.get("/api/v3/notes", params={"q": "rpoplpush"}, headers=_auth(alice)).json()

        assert body["total"] == 0


class TestGetAndDelete:
    def test_owner_can_read_private_note(self, client: TestClient, alice: str, populated: dict) -> None:
        uuid = populated["heap"]["uuid"]

        response = client.get(f"/api/v3/notes/{uuid}", headers=_auth(alice))

        assert response.status_code == 200
        assert response.json()["body"] == "Building a heap takes linear time"

    def test_private_note_is_hidden_from_others(
        self, client: TestClient, signup, populated: dict
    ) -> None:
        bob = signup("bob@example.com")
        uuid = populated["heap"]["uuid"]

        assert client.get(f"/api/v3/notes/{uuid}", headers=_auth(bob)).status_code == 404
        assert client.get(f"/api/v3/notes/{uuid}").status_code == 404

    def test_public_note_is_visible_to_guests(self, client: TestClient, alice: str) -> None:
        note = _create(client, alice, "shared", "Anyone can read this", public=True)

        response = client.get(f"/api/v3/notes/{note['uuid']}")

        assert response.status_code == 200
        assert response.json()["public"] is True

    def test_delete(self, client: TestClient, alice: str, populated: dict) -> None:
        uuid = populated["heap"]["uuid"]

        response = client.delete(f"/api/v3/notes/{uuid}", headers=_auth(alice))

        assert response.status_code == 204
        assert client.get(f"/api/v3/notes/{uuid}", headers=_auth(alice)).status_code == 404
        assert client.delete(f"/api/v3/notes/{uuid}", headers=_auth(alice)).status_code == 404

    def test_others_cannot_delete(self, client: TestClient, signup, populated: dict) -> None:
        bob = signup("bob@example.com")

        response = client.delete(f"/api/v3/notes/{populated['heap']['uuid']}", headers=_auth(bob))

        assert response.status_code == 404


class TestWebPages:
    """Server-rendered pages backed by the session cookie."""

    @pytest.fixture
    def signed_in(self, client: TestClient, alice: str) -> TestClient:
        client.post(
            "/login",
            data={"email": "alice@example.com", "password": "correct-horse"},
            follow_redirects=False,
        )
        return client

    def test_index_lists_notes(self, signed_in: TestClient, populated: dict) -> None:
        response = signed_in.get("/")

        assert response.status_code == 200
        assert "Building a heap takes linear time" in response.text

    def test_index_search_renders_marks(self, signed_in: TestClient, populated: dict) -> None:
        response = signed_in.get("/", params={"q": "heap"})

        assert response.status_code == 200
        assert "<mark>heap</mark>" in response.text
        assert "1 result for" in response.text

    def test_create_note_from_form(self, signed_in: TestClient) -> None:
        response = signed_in.post(
            "/notes",
            data={"book_name": "linux", "content": "grep -r pattern ."},
            follow_redirects=False,
        )

        assert response.status_code == 303
        page = signed_in.get(response.headers["location"])
        assert page.status_code == 200
        assert "grep -r pattern ." in page.text
        assert "Delete" in page.text

    def test_invalid_form_rerenders_index(self, signed_in: TestClient) -> None:
        response = signed_in.post("/notes", data={"book_name": "trash", "content": "x"})

        assert response.status_code == 400
        assert "reserved book name" in response.text

    def test_guest_form_post_redirects_to_login(self, client: TestClient) -> None:
        response = client.post(
            "/notes", data={"book_name": "linux", "content": "x"}, follow_redirects=False
        )

        assert response.status_code == 303
        assert response.headers["location"].startswith("/login")

    def test_missing_note_page_is_html_404(self, signed_in: TestClient) -> None:
        response = signed_in.get("/notes/does-not-exist")

        assert response.status_code == 404
        assert "text/html" in response.headers["content-type"]

    def test_delete_from_page(self, signed_in: TestClient, populated: dict) -> None:
        uuid = populated["heap"]["uuid"]

        assert signed_in.delete(f"/notes/{uuid}").status_code == 204
        assert signed_in.get(f"/notes/{uuid}").status_code == 404


def test_service_snippet_context_is_configurable(db, client: TestClient, alice: str) -> None:
    body = "x" * 50 + " needle " + "y" * 50
    _create(client, alice, "hay", body)
    user = UserService(db).get_by_email("alice@example.com")

    results = NoteService(db, snippet_context=5).search_notes(user.id, SearchQuery(phrase="needle"))

    assert results[0].snippet == "xxxx <mark>needle</mark> yyyy<mark>...</mark>"
