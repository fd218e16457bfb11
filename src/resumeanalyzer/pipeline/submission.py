from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from resumeanalyzer.core.contracts import (
    AnalysisService,
    Document,
    DocumentConverter,
    ObjectStore,
    RecordStore,
)
from resumeanalyzer.core.errors import FeedbackParseError, RecordStoreError
from resumeanalyzer.core.events import (
    ANALYSIS_FAILED,
    CONVERSION_FAILED,
    DRAFT_PERSIST_FAILED,
    FEEDBACK_FAILED,
    IMAGE_UPLOAD_FAILED,
    STAGE_MESSAGES,
    UNEXPECTED_ERROR,
    UPLOAD_FAILED,
    Stage,
    StatusEvent,
    StatusSink,
    SubmissionOutcome,
)
from resumeanalyzer.core.instructions import prepare_instructions
from resumeanalyzer.core.records import (
    DEFAULT_NAMESPACE,
    SubmissionRecord,
    build_draft_record,
    build_final_record,
    new_id,
    record_key,
)

log = logging.getLogger("pipeline")


@dataclass
class _Attempt:
    """Mutable progress of a single submit() call."""

    sink: Optional[StatusSink]
    stage: Stage = Stage.IDLE
    record_id: Optional[str] = None
    draft: Optional[SubmissionRecord] = None

    def fail(self, reason: str) -> SubmissionOutcome:
        log.warning("submission failed at %s: %s", self.stage.value, reason)
        return SubmissionOutcome.failure(reason, stage=self.stage, record=self.draft)


class SubmissionPipeline:
    """
    Description: Upload -> convert -> upload -> draft record -> analyze -> final record.
    Layer: L2-L8
    Input: job context strings + resume Document
    Output: StatusEvents to the sink, SubmissionOutcome as return value

    Every stage waits on the previous one. A failed stage ends the attempt; there
    is no retry and no resume, a new submit() starts over with a new id.
    """

    def __init__(
        self,
        *,
        object_store: ObjectStore,
        converter: DocumentConverter,
        record_store: RecordStore,
        analysis: AnalysisService,
        sink: Optional[StatusSink] = None,
        namespace: str = DEFAULT_NAMESPACE,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self.object_store = object_store
        self.converter = converter
        self.record_store = record_store
        self.analysis = analysis
        self.namespace = namespace
        self._sink = sink
        self._new_id = id_factory
        self._in_flight = 0

    @property
    def is_processing(self) -> bool:
        return self._in_flight > 0

    @contextmanager
    def _processing(self) -> Iterator[None]:
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1

    def _emit(self, sink: Optional[StatusSink], event: StatusEvent) -> None:
        if sink is None:
            return
        try:
            sink(event)
        except Exception:
            log.exception("status sink rejected event %s", event.stage.value)

    def _enter(self, attempt: _Attempt, stage: Stage) -> None:
        attempt.stage = stage
        message = STAGE_MESSAGES.get(stage)
        log.info("stage=%s record_id=%s", stage.value, attempt.record_id or "-")
        if message:
            self._emit(attempt.sink, StatusEvent(stage=stage, message=message, record_id=attempt.record_id))

    async def submit(
        self,
        company_name: str,
        job_title: str,
        job_description: str,
        file: Optional[Document],
        *,
        sink: Optional[StatusSink] = None,
    ) -> Optional[SubmissionOutcome]:
        """Run one submission. Returns None (and does nothing) when no file is given."""
        if file is None:
            return None

        attempt = _Attempt(sink=sink or self._sink, record_id=self._new_id())
        with self._processing():
            try:
                outcome = await self._run(attempt, company_name, job_title, job_description, file)
            except Exception:
                log.exception("unexpected failure at stage %s", attempt.stage.value)
                outcome = SubmissionOutcome.failure(UNEXPECTED_ERROR, stage=attempt.stage, record=attempt.draft)

        final_stage = Stage.SUCCEEDED if outcome.ok else Stage.FAILED
        self._emit(
            attempt.sink,
            StatusEvent(stage=final_stage, message=outcome.message, processing=False, record_id=attempt.record_id),
        )
        return outcome

    async def _run(
        self,
        attempt: _Attempt,
        company_name: str,
        job_title: str,
        job_description: str,
        file: Document,
    ) -> SubmissionOutcome:
        self._enter(attempt, Stage.UPLOADING_DOCUMENT)
        uploaded_file = await self.object_store.upload(file)
        if not uploaded_file:
            return attempt.fail(UPLOAD_FAILED)

        self._enter(attempt, Stage.CONVERTING_DOCUMENT)
        converted = await self.converter.convert(file)
        if converted.image is None:
            return attempt.fail(converted.error or CONVERSION_FAILED)

        self._enter(attempt, Stage.UPLOADING_IMAGE)
        uploaded_image = await self.object_store.upload(converted.image)
        if not uploaded_image:
            return attempt.fail(IMAGE_UPLOAD_FAILED)

        self._enter(attempt, Stage.PERSISTING_DRAFT)
        key = record_key(attempt.record_id, self.namespace)
        draft = build_draft_record(
            record_id=attempt.record_id,
            resume_path=uploaded_file.path,
            image_path=uploaded_image.path,
            company_name=company_name,
            job_title=job_title,
            job_description=job_description,
        )
        try:
            await self.record_store.set(key, draft.to_json())
        except RecordStoreError as e:
            log.warning("draft write failed: %s", e)
            return attempt.fail(DRAFT_PERSIST_FAILED)
        attempt.draft = draft

        self._enter(attempt, Stage.ANALYZING)
        response = await self.analysis.feedback(
            uploaded_file.path,
            prepare_instructions(job_title=job_title, job_description=job_description),
        )
        feedback_text = response.message.text() if response is not None else None
        if feedback_text is None:
            return attempt.fail(ANALYSIS_FAILED)

        self._enter(attempt, Stage.PERSISTING_FINAL)
        try:
            final = build_final_record(draft, feedback_text)
            await self.record_store.set(key, final.to_json())
        except (FeedbackParseError, RecordStoreError) as e:
            log.warning("final write failed: %s", e)
            return attempt.fail(FEEDBACK_FAILED)

        log.info("submission %s complete", final.id)
        return SubmissionOutcome.success(final)
