from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Union

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class Document:
    """An uploaded or rendered file held in memory."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


class StoredObject(BaseModel):
    """
    Description: Object store receipt for an uploaded blob.
    Layer: L8
    Input: upload call
    Output: path usable as a document reference
    """

    path: str
    size: int = 0


class ConversionResult(BaseModel):
    """
    Description: Outcome of rendering a document to a preview image.
    Layer: L2
    Input: converter call
    Output: image document, or an error message
    """

    image: Optional[Document] = None
    error: Optional[str] = None


class ContentBlock(BaseModel):
    type: str = "text"
    text: str = ""


class AnalysisMessage(BaseModel):
    """
    Description: Model reply body. `content` is either plain text or a list of blocks.
    Layer: L3
    Input: analysis backend response
    Output: single text via text()
    """

    content: Union[str, List[ContentBlock]] = ""

    def text(self) -> Optional[str]:
        """Resolve the content to one string; None when there is nothing to read."""
        if isinstance(self.content, str):
            return self.content
        if not self.content:
            return None
        return self.content[0].text


class AnalysisResponse(BaseModel):
    message: AnalysisMessage = Field(default_factory=AnalysisMessage)


class ObjectStore(Protocol):
    async def upload(self, document: Document) -> Optional[StoredObject]: ...

    async def read(self, path: str) -> Optional[bytes]: ...


class DocumentConverter(Protocol):
    async def convert(self, document: Document) -> ConversionResult: ...


class RecordStore(Protocol):
    async def set(self, key: str, value: str) -> None: ...

    async def get(self, key: str) -> Optional[str]: ...

    async def list(self, prefix: str) -> List[str]: ...


class AnalysisService(Protocol):
    async def feedback(self, document_ref: str, instructions: str) -> Optional[AnalysisResponse]: ...
