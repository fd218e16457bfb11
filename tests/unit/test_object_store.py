import asyncio

from resumeanalyzer.core.contracts import Document
from resumeanalyzer.services.object_store import LocalObjectStore


def test_upload_writes_blob_under_root(tmp_path) -> None:
    store = LocalObjectStore(tmp_path / "uploads")
    doc = Document(filename="My Resume (final).pdf", content=b"%PDF-1.4 data")

    stored = asyncio.run(store.upload(doc))

    assert stored is not None
    assert stored.size == len(doc.content)
    assert stored.path.endswith("/My_Resume_final_.pdf")
    assert (tmp_path / "uploads" / stored.path).read_bytes() == doc.content
    assert asyncio.run(store.read(stored.path)) == doc.content


def test_uploads_of_same_name_do_not_collide(tmp_path) -> None:
    store = LocalObjectStore(tmp_path)
    a = asyncio.run(store.upload(Document(filename="resume.pdf", content=b"a")))
    b = asyncio.run(store.upload(Document(filename="resume.pdf", content=b"b")))
    assert a.path != b.path


def test_read_rejects_paths_outside_root(tmp_path) -> None:
    (tmp_path / "secret.txt").write_text("nope", encoding="utf-8")
    store = LocalObjectStore(tmp_path / "uploads")
    assert asyncio.run(store.read("../secret.txt")) is None
    assert asyncio.run(store.read("missing/file.pdf")) is None


def test_write_error_returns_none(tmp_path, monkeypatch) -> None:
    store = LocalObjectStore(tmp_path)

    def _fail(_document):
        raise OSError("read-only file system")

    monkeypatch.setattr(store, "_write", _fail)
    assert asyncio.run(store.upload(Document(filename="resume.pdf", content=b"x"))) is None
