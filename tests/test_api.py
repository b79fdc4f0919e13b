import pytest
from fastapi.testclient import TestClient

from pdf_merger.main import app
from pdf_merger.storage.registry import get_session


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def session_id(client):
    response = client.post("/pdf/merge/sessions")
    assert response.status_code == 200
    return response.json()["session"]["session_id"]


def _upload(client, session_id, *files, append=False):
    payload = [("files", (name, data, content_type)) for name, data, content_type in files]
    return client.post(
        f"/pdf/merge/sessions/{session_id}/files",
        files=payload,
        params={"append": str(append).lower()},
    )


def _names(response):
    return [card["filename"] for card in response.json()["session"]["files"]]


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_new_session_defaults(client, session_id):
    state = client.get(f"/pdf/merge/sessions/{session_id}").json()["session"]
    assert state["output_filename"] == "merged.pdf"
    assert state["files"] == []
    assert state["busy"] is False


def test_unknown_session_is_404(client):
    assert client.get("/pdf/merge/sessions/nope").status_code == 404


def test_select_reorder_and_commit(client, session_id, doc_a, doc_b, page_widths):
    response = _upload(
        client,
        session_id,
        ("a.pdf", doc_a, "application/pdf"),
        ("b.pdf", doc_b, "application/pdf"),
    )
    assert response.status_code == 200
    cards = response.json()["session"]["files"]
    assert [card["page_count"] for card in cards] == [3, 2]
    assert cards[0]["preview"].startswith("data:image/png;base64,")

    moved = client.post(f"/pdf/merge/sessions/{session_id}/files/1/up")
    assert _names(moved) == ["b.pdf", "a.pdf"]

    client.put(f"/pdf/merge/sessions/{session_id}/output-name", json={"output_filename": "combined.pdf"})

    committed = client.post(f"/pdf/merge/sessions/{session_id}/commit")
    assert committed.status_code == 200
    result = committed.json()["result"]
    assert result["page_count"] == 5
    assert result["source_count"] == 2
    assert result["filename"].startswith("combined")

    downloaded = client.get(result["download_url"])
    assert downloaded.status_code == 200
    assert page_widths(downloaded.content) == [201, 202, 101, 102, 103]

    listing = client.get(f"/pdf/merge/sessions/{session_id}/results").json()["results"]
    assert [item["download_url"] for item in listing] == [result["download_url"]]

    state = client.get(f"/pdf/merge/sessions/{session_id}").json()["session"]
    assert state["busy"] is False


def test_download_returns_attachment(client, session_id, doc_a, doc_b, page_widths):
    _upload(client, session_id, ("a.pdf", doc_a, "application/pdf"), ("b.pdf", doc_b, "application/pdf"))

    response = client.post(f"/pdf/merge/sessions/{session_id}/download")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "attachment" in response.headers["content-disposition"]
    assert "merged.pdf" in response.headers["content-disposition"]
    assert page_widths(response.content) == [101, 102, 103, 201, 202]


def test_select_replaces_unless_append(client, session_id, doc_a, doc_b):
    _upload(client, session_id, ("a.pdf", doc_a, "application/pdf"))
    replaced = _upload(client, session_id, ("b.pdf", doc_b, "application/pdf"))
    assert _names(replaced) == ["b.pdf"]

    appended = _upload(client, session_id, ("a.pdf", doc_a, "application/pdf"), append=True)
    assert _names(appended) == ["b.pdf", "a.pdf"]


def test_remove_and_bad_index(client, session_id, doc_a, doc_b):
    _upload(client, session_id, ("a.pdf", doc_a, "application/pdf"), ("b.pdf", doc_b, "application/pdf"))

    removed = client.delete(f"/pdf/merge/sessions/{session_id}/files/0")
    assert _names(removed) == ["b.pdf"]

    assert client.post(f"/pdf/merge/sessions/{session_id}/files/5/down").status_code == 404
    assert client.delete(f"/pdf/merge/sessions/{session_id}/files/1").status_code == 404


def test_non_pdf_upload_rejected(client, session_id):
    response = _upload(client, session_id, ("notes.txt", b"hello", "text/plain"))
    assert response.status_code == 400


def test_selection_cap_rejects_whole_batch(client, session_id, doc_a):
    get_session(session_id).max_files = 2
    response = _upload(
        client,
        session_id,
        ("a.pdf", doc_a, "application/pdf"),
        ("b.pdf", doc_a, "application/pdf"),
        ("c.pdf", doc_a, "application/pdf"),
    )
    assert response.status_code == 400
    assert client.get(f"/pdf/merge/sessions/{session_id}").json()["session"]["files"] == []


def test_empty_selection_commit(client, session_id):
    response = client.post(f"/pdf/merge/sessions/{session_id}/commit")
    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "empty_selection"


def test_corrupted_file_blocks_merge(client, session_id, doc_a):
    _upload(
        client,
        session_id,
        ("a.pdf", doc_a, "application/pdf"),
        ("broken.pdf", b"not really a pdf", "application/pdf"),
    )
    client.put(f"/pdf/merge/sessions/{session_id}/output-name", json={"output_filename": "never-written.pdf"})

    response = client.post(f"/pdf/merge/sessions/{session_id}/commit")

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["kind"] == "parse_failure"
    assert detail["filename"] == "broken.pdf"
    assert client.get(f"/pdf/merge/sessions/{session_id}/results").json()["results"] == []
    assert get_session(session_id).results == []
    assert get_session(session_id).busy is False


def test_commit_while_busy_is_rejected(client, session_id, doc_a):
    _upload(client, session_id, ("a.pdf", doc_a, "application/pdf"))
    session = get_session(session_id)
    session.busy = True
    try:
        assert client.post(f"/pdf/merge/sessions/{session_id}/commit").status_code == 409
        assert client.post(f"/pdf/merge/sessions/{session_id}/files/0/up").status_code == 409
    finally:
        session.busy = False

    assert client.post(f"/pdf/merge/sessions/{session_id}/commit").status_code == 200


def test_output_name_cannot_escape_downloads(client, session_id, doc_a):
    _upload(client, session_id, ("a.pdf", doc_a, "application/pdf"))
    client.put(f"/pdf/merge/sessions/{session_id}/output-name", json={"output_filename": "../../escape.pdf"})

    result = client.post(f"/pdf/merge/sessions/{session_id}/commit").json()["result"]

    assert result["filename"] == "escape.pdf"
    assert result["download_url"] == f"/downloads/{session_id}/escape.pdf"
    assert get_session(session_id).results[0].parent.name == session_id


def test_close_session(client, session_id, doc_a):
    _upload(client, session_id, ("a.pdf", doc_a, "application/pdf"))
    paths = [entry.path for entry in get_session(session_id).files]

    assert client.delete(f"/pdf/merge/sessions/{session_id}").status_code == 200
    assert client.get(f"/pdf/merge/sessions/{session_id}").status_code == 404
    assert not any(path.exists() for path in paths)


def test_output_name_without_extension_is_served_as_pdf(client, session_id, doc_a, page_widths):
    _upload(client, session_id, ("a.pdf", doc_a, "application/pdf"))
    client.put(f"/pdf/merge/sessions/{session_id}/output-name", json={"output_filename": "quarterly-report"})

    result = client.post(f"/pdf/merge/sessions/{session_id}/commit").json()["result"]
    assert result["filename"] == "quarterly-report"
    assert result["download_url"].endswith("/quarterly-report.pdf")

    downloaded = client.get(result["download_url"])
    assert downloaded.status_code == 200
    assert downloaded.headers["content-type"] == "application/pdf"
    assert page_widths(downloaded.content) == [101, 102, 103]

    attachment = client.post(f"/pdf/merge/sessions/{session_id}/download")
    assert attachment.headers["content-type"] == "application/pdf"
    assert "quarterly-report" in attachment.headers["content-disposition"]


def test_closing_session_removes_published_results(client, session_id, doc_a):
    _upload(client, session_id, ("a.pdf", doc_a, "application/pdf"))
    result = client.post(f"/pdf/merge/sessions/{session_id}/commit").json()["result"]
    published = get_session(session_id).results[0]
    assert published.exists()

    assert client.delete(f"/pdf/merge/sessions/{session_id}").status_code == 200

    assert not published.exists()
    assert not published.parent.exists()
    assert client.get(result["download_url"]).status_code == 404


def test_results_are_scoped_to_their_session(client, doc_a):
    first = client.post("/pdf/merge/sessions").json()["session"]["session_id"]
    second = client.post("/pdf/merge/sessions").json()["session"]["session_id"]
    _upload(client, first, ("a.pdf", doc_a, "application/pdf"))
    client.post(f"/pdf/merge/sessions/{first}/commit")

    assert len(client.get(f"/pdf/merge/sessions/{first}/results").json()["results"]) == 1
    assert client.get(f"/pdf/merge/sessions/{second}/results").json()["results"] == []
    assert client.get("/files/").status_code == 404
