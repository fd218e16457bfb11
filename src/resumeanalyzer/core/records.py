from __future__ import annotations

import json
import re
import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from resumeanalyzer.core.errors import FeedbackParseError


DEFAULT_NAMESPACE = "resume"

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?|\n?```\s*$")


def is_empty_feedback(value: Any) -> bool:
    """True for the draft placeholder and for JSON values that carry nothing."""
    return value is None or (isinstance(value, (str, dict, list)) and not value)


def new_id() -> str:
    """Return a fresh record identifier (uuid4)."""
    return str(uuid.uuid4())


def record_key(record_id: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Record store key for a submission: `<namespace>:<id>`."""
    return f"{namespace}:{record_id}"


class SubmissionRecord(BaseModel):
    """
    Description: Persisted state of one resume submission.
    Layer: L8
    Input: uploaded paths + job context, later the parsed feedback
    Output: JSON document stored under `resume:<id>` (camelCase keys)
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    resume_path: str
    image_path: str
    company_name: str = ""
    job_title: str = ""
    job_description: str = ""
    feedback: Any = ""

    @property
    def has_feedback(self) -> bool:
        return not is_empty_feedback(self.feedback)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "SubmissionRecord":
        return cls.model_validate_json(raw)


def build_draft_record(
    *,
    record_id: str,
    resume_path: str,
    image_path: str,
    company_name: str,
    job_title: str,
    job_description: str,
) -> SubmissionRecord:
    """Pre-analysis snapshot: every field captured, feedback still empty."""
    return SubmissionRecord(
        id=record_id,
        resume_path=resume_path,
        image_path=image_path,
        company_name=company_name,
        job_title=job_title,
        job_description=job_description,
        feedback="",
    )


def strip_code_fences(text: str) -> str:
    # Models like to wrap JSON in ```json ... ```
    return _FENCE_RE.sub("", (text or "").strip()).strip()


def parse_feedback_text(text: str) -> Any:
    """
    Description: Parse the raw analysis text into structured feedback.
    Layer: L8
    Input: model response text (JSON, optionally fenced)
    Output: decoded JSON value
    Raises: FeedbackParseError when the text is empty, not JSON, or decodes to an empty value
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise FeedbackParseError("analysis returned empty feedback text")
    try:
        value = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise FeedbackParseError(f"feedback is not valid JSON: {e}") from e
    if is_empty_feedback(value):
        raise FeedbackParseError(f"feedback decodes to an empty value: {cleaned}")
    return value


def build_final_record(draft: SubmissionRecord, feedback_text: str) -> SubmissionRecord:
    """Post-analysis snapshot: the draft plus parsed feedback."""
    return draft.model_copy(update={"feedback": parse_feedback_text(feedback_text)})
