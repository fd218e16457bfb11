"""Resume feedback service.

Upload a resume with job context, render a preview, store the submission and
attach AI feedback once the analysis backend answers.
"""

from __future__ import annotations

from resumeanalyzer.pipeline.submission import SubmissionPipeline

__all__ = ["SubmissionPipeline"]
