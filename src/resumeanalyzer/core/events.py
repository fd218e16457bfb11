from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field

from resumeanalyzer.core.records import SubmissionRecord


def utc_now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


class Stage(str, Enum):
    IDLE = "idle"
    UPLOADING_DOCUMENT = "uploading_document"
    CONVERTING_DOCUMENT = "converting_document"
    UPLOADING_IMAGE = "uploading_image"
    PERSISTING_DRAFT = "persisting_draft"
    ANALYZING = "analyzing"
    PERSISTING_FINAL = "persisting_final"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (Stage.SUCCEEDED, Stage.FAILED)


# Text shown to the user when a stage starts.
STAGE_MESSAGES = {
    Stage.UPLOADING_DOCUMENT: "Uploading the file...",
    Stage.CONVERTING_DOCUMENT: "Converting to image...",
    Stage.UPLOADING_IMAGE: "Uploading the image...",
    Stage.PERSISTING_DRAFT: "Preparing data...",
    Stage.ANALYZING: "Analyzing resume...",
    Stage.SUCCEEDED: "Analysis complete...",
}

# Text shown when a stage fails.
UPLOAD_FAILED = "Error: Failed to upload file"
CONVERSION_FAILED = "Failed to convert PDF to image"
IMAGE_UPLOAD_FAILED = "Error: Failed to upload image"
DRAFT_PERSIST_FAILED = "Error: Failed to save resume data"
ANALYSIS_FAILED = "Error: Failed to analyze resume"
FEEDBACK_FAILED = "Error: Failed to process feedback"
UNEXPECTED_ERROR = "Unexpected error occurred"


class StatusEvent(BaseModel):
    """
    Description: Progress notification emitted by the submission pipeline.
    Layer: L1
    Input: stage transition
    Output: event for the UI status observer
    """

    stage: Stage
    message: str
    processing: bool = True
    record_id: Optional[str] = None
    ts_utc: str = Field(default_factory=utc_now_iso)


StatusSink = Callable[[StatusEvent], None]


class SubmissionOutcome(BaseModel):
    """
    Description: Terminal result of one submit() call.
    Layer: L8
    Input: pipeline run
    Output: Success(record) or Failure(reason, failed_stage)
    """

    ok: bool
    reason: Optional[str] = None
    failed_stage: Optional[Stage] = None
    record: Optional[SubmissionRecord] = None

    @classmethod
    def success(cls, record: SubmissionRecord) -> "SubmissionOutcome":
        return cls(ok=True, record=record)

    @classmethod
    def failure(
        cls, reason: str, *, stage: Stage, record: Optional[SubmissionRecord] = None
    ) -> "SubmissionOutcome":
        return cls(ok=False, reason=reason, failed_stage=stage, record=record)

    @property
    def message(self) -> str:
        if self.ok:
            return STAGE_MESSAGES[Stage.SUCCEEDED]
        return self.reason or UNEXPECTED_ERROR
