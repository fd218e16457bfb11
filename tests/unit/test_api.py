import asyncio

import pytest
from fastapi.testclient import TestClient

from resumeanalyzer.api.main import _run_submission, app, get_board, get_pipeline
from resumeanalyzer.api.status_board import StatusBoard
from resumeanalyzer.core.contracts import ConversionResult

PDF = ("resume.pdf", b"%PDF-1.4 test resume", "application/pdf")
FORM = {"company_name": "Acme", "job_title": "Engineer", "job_description": "Build things"}


@pytest.fixture
def board() -> StatusBoard:
    return StatusBoard()


@pytest.fixture
def client(collab, board):
    pipeline = collab.pipeline()
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_board] = lambda: board
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_upload_runs_pipeline_and_exposes_record(client, collab) -> None:
    r = client.post("/resume/upload", data=FORM, files={"file": PDF})
    assert r.status_code == 200
    ticket = r.json()["ticket"]
    assert r.json()["status"] == "started"

    status = client.get(f"/resume/upload/{ticket}/status").json()
    assert status["processing"] is False
    assert status["ok"] is True
    assert status["stage"] == "succeeded"
    assert status["message"] == "Analysis complete..."
    assert status["history"][0] == "Uploading the file..."

    record = client.get(f"/resume/{status['record_id']}").json()
    assert record["feedback"] == {"score": 80}
    assert record["companyName"] == "Acme"

    listing = client.get("/resume").json()["resumes"]
    assert [x["id"] for x in listing] == [status["record_id"]]


def test_failed_submission_reports_last_message(client, collab) -> None:
    collab.converter.result = ConversionResult(error="corrupt file")
    ticket = client.post("/resume/upload", data=FORM, files={"file": PDF}).json()["ticket"]

    status = client.get(f"/resume/upload/{ticket}/status").json()
    assert status["ok"] is False
    assert status["processing"] is False
    assert status["message"] == "corrupt file"
    assert client.get("/resume").json() == {"resumes": []}


def test_rejects_empty_and_non_pdf_uploads(client, collab) -> None:
    r = client.post("/resume/upload", data=FORM, files={"file": ("resume.pdf", b"", "application/pdf")})
    assert r.status_code == 400
    r = client.post("/resume/upload", data=FORM, files={"file": ("resume.txt", b"hello", "text/plain")})
    assert r.status_code == 400
    assert collab.object_store.uploads == []


def test_rejects_resubmission_while_processing(client, board) -> None:
    board.open("busy")
    r = client.post("/resume/upload", data=FORM, files={"file": PDF})
    assert r.status_code == 409


def test_unknown_ticket_and_record_return_404(client) -> None:
    assert client.get("/resume/upload/nope/status").status_code == 404
    assert client.get("/resume/does-not-exist").status_code == 404


def test_rejected_uploads_do_not_block_the_next_one(client, board) -> None:
    r = client.post("/resume/upload", data=FORM, files={"file": ("resume.pdf", b"", "application/pdf")})
    assert r.status_code == 400
    r = client.post("/resume/upload", data=FORM, files={"file": ("resume.txt", b"hello", "text/plain")})
    assert r.status_code == 400
    assert board.any_processing() is False

    r = client.post("/resume/upload", data=FORM, files={"file": PDF})
    assert r.status_code == 200
    assert client.get(f"/resume/upload/{r.json()['ticket']}/status").json()["ok"] is True


class _CancelledPipeline:
    is_processing = False

    async def submit(self, *args, **kwargs):
        raise asyncio.CancelledError()


def test_cancelled_submission_still_closes_its_ticket(board) -> None:
    board.open("t1")
    with pytest.raises(asyncio.CancelledError):
        asyncio.run(_run_submission(_CancelledPipeline(), board, "t1", "Acme", "Engineer", "", None))

    st = board.get("t1")
    assert st.processing is False
    assert st.ok is False
    assert st.message == "Unexpected error occurred"
    assert board.try_open("t2") is not None
