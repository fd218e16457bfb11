from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


def main() -> int:
    """
    Description: Launch the FastAPI backend locally.
    Layer: L0
    Input: None
    Output: exit code
    """
    root = Path(__file__).resolve().parent

    env = os.environ.copy()
    env["PYTHONPATH"] = str(root / "src") + (os.pathsep + env.get("PYTHONPATH", "") if env.get("PYTHONPATH") else "")

    api_cmd = [
        sys.executable, "-m", "uvicorn",
        "resumeanalyzer.api.main:app",
        "--host", "127.0.0.1",
        "--port", "8000",
        "--reload",
    ]

    print("\n== Resume Analyzer Local Launcher ==")
    print("API: http://127.0.0.1:8000/health  | docs: http://127.0.0.1:8000/docs\n")

    print("Starting FastAPI:", " ".join(api_cmd))
    api = subprocess.Popen(api_cmd, cwd=str(root), env=env)
    try:
        return api.wait()
    except KeyboardInterrupt:
        print("Stopping…")
        api.terminate()
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
