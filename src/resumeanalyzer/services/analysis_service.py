from __future__ import annotations

import base64
import logging
import mimetypes
from typing import Any, Dict, List, Optional

import httpx

from resumeanalyzer.config import Settings
from resumeanalyzer.core.contracts import AnalysisMessage, AnalysisResponse, ContentBlock, ObjectStore

log = logging.getLogger("analysis")


class GeminiAnalysisService:
    """Description: Gemini REST client that reviews a stored resume (no SDK dependency).
    Layer: L3
    Input: object store path of the resume + instructions
    Output: AnalysisResponse with the model's content blocks, or None on failure
    """

    def __init__(
        self,
        settings: Settings,
        store: ObjectStore,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.s = settings
        self.store = store
        self.model = settings.GEMINI_MODEL
        self._transport = transport

    def _url(self) -> str:
        base = self.s.GEMINI_BASE_URL.rstrip("/")
        return f"{base}/models/{self.model}:generateContent"

    def _payload(self, document_ref: str, data: bytes, instructions: str) -> Dict[str, Any]:
        mime = mimetypes.guess_type(document_ref)[0] or "application/pdf"
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"inline_data": {"mime_type": mime, "data": base64.b64encode(data).decode("ascii")}},
                        {"text": instructions},
                    ],
                }
            ],
            "generationConfig": {"temperature": 0.2, "responseMimeType": "application/json"},
        }

    async def feedback(self, document_ref: str, instructions: str) -> Optional[AnalysisResponse]:
        if not self.s.GEMINI_API_KEY:
            log.warning("GEMINI_API_KEY is not set; skipping analysis")
            return None

        data = await self.store.read(document_ref)
        if not data:
            log.warning("document %s not found in object store", document_ref)
            return None

        payload = self._payload(document_ref, data, instructions)
        try:
            async with httpx.AsyncClient(timeout=self.s.MAX_HTTP_SECONDS, transport=self._transport) as client:
                r = await client.post(self._url(), params={"key": self.s.GEMINI_API_KEY}, json=payload)
        except httpx.HTTPError as e:
            log.warning("gemini request failed: %s", e)
            return None
        if r.status_code >= 400:
            log.warning("gemini returned %s: %s", r.status_code, r.text[:200])
            return None

        try:
            j = r.json()
        except ValueError:
            log.warning("gemini returned a non-JSON body")
            return None
        blocks = [ContentBlock(text=t) for t in _candidate_texts(j)]
        if not blocks:
            log.warning("gemini returned no text parts")
            return None
        return AnalysisResponse(message=AnalysisMessage(content=blocks))


def _candidate_texts(body: Any) -> List[str]:
    """Text parts of the first candidate; anything off-shape yields []."""
    if not isinstance(body, dict):
        return []
    candidates = body.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return []
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return []
    parts = content.get("parts")
    if not isinstance(parts, list):
        return []
    return [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str) and p["text"]]
