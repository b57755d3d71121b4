"""
App assembly entry point.

Re-exports the FastAPI `app` from `mindfold.api.main` for `uvicorn app:app`.
"""

from mindfold.api.main import app  # noqa: F401
