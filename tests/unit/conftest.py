from __future__ import annotations

from typing import Dict, List, Optional, Set, Tuple

import pytest

from resumeanalyzer.core.contracts import (
    AnalysisMessage,
    AnalysisResponse,
    ConversionResult,
    Document,
    StoredObject,
)
from resumeanalyzer.core.errors import RecordStoreError
from resumeanalyzer.core.events import StatusEvent
from resumeanalyzer.pipeline.submission import SubmissionPipeline


class FakeObjectStore:
    def __init__(self) -> None:
        self.uploads: List[Document] = []
        self.blobs: Dict[str, bytes] = {}
        self.fail_on: Set[int] = set()  # 1-based upload call numbers that fail

    async def upload(self, document: Document) -> Optional[StoredObject]:
        self.uploads.append(document)
        if len(self.uploads) in self.fail_on:
            return None
        path = f"fs/{len(self.uploads)}/{document.filename}"
        self.blobs[path] = document.content
        return StoredObject(path=path, size=document.size)

    async def read(self, path: str) -> Optional[bytes]:
        return self.blobs.get(path)


class FakeConverter:
    def __init__(self) -> None:
        self.calls: List[Document] = []
        self.result = ConversionResult(
            image=Document(filename="resume.png", content=b"\x89PNG fake", content_type="image/png")
        )
        self.exc: Optional[Exception] = None

    async def convert(self, document: Document) -> ConversionResult:
        self.calls.append(document)
        if self.exc is not None:
            raise self.exc
        return self.result


class FakeRecordStore:
    def __init__(self) -> None:
        self.writes: List[Tuple[str, str]] = []
        self.data: Dict[str, str] = {}
        self.fail_on: Set[int] = set()  # 1-based write numbers that fail

    async def set(self, key: str, value: str) -> None:
        if len(self.writes) + 1 in self.fail_on:
            raise RecordStoreError(key, "disk full")
        self.writes.append((key, value))
        self.data[key] = value

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def list(self, prefix: str) -> List[str]:
        return [v for k, v in self.data.items() if k.startswith(prefix)]


class FakeAnalysis:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []
        self.response: Optional[AnalysisResponse] = AnalysisResponse(
            message=AnalysisMessage(content='{"score": 80}')
        )
        self.on_call = None

    async def feedback(self, document_ref: str, instructions: str) -> Optional[AnalysisResponse]:
        self.calls.append((document_ref, instructions))
        if self.on_call is not None:
            self.on_call()
        return self.response


class Collaborators:
    def __init__(self) -> None:
        self.object_store = FakeObjectStore()
        self.converter = FakeConverter()
        self.record_store = FakeRecordStore()
        self.analysis = FakeAnalysis()
        self.events: List[StatusEvent] = []

    def pipeline(self, **kwargs) -> SubmissionPipeline:
        return SubmissionPipeline(
            object_store=self.object_store,
            converter=self.converter,
            record_store=self.record_store,
            analysis=self.analysis,
            sink=self.events.append,
            **kwargs,
        )

    @property
    def messages(self) -> List[str]:
        return [e.message for e in self.events]


@pytest.fixture
def collab() -> Collaborators:
    return Collaborators()


@pytest.fixture
def resume_pdf() -> Document:
    return Document(filename="resume.pdf", content=b"%PDF-1.4 test resume", content_type="application/pdf")
