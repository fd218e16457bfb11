"""Compatibility entrypoint for users running `uvicorn api_main:app`.

Forwards to the canonical FastAPI app at `resumeanalyzer.api.main`.
"""

from __future__ import annotations

import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parent
_SRC = _REPO_ROOT / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from resumeanalyzer.api.main import app  # noqa: E402,F401
