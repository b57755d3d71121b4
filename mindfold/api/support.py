"""
Service metadata endpoints.
"""
from __future__ import annotations

import os
import logging

from fastapi import APIRouter

logger = logging.getLogger(__name__)

SERVICE_NAME = "mindfold-service"

router = APIRouter(tags=["support"])


@router.get("/build-info")
def get_build_info():
    """Return build and deployment information for the running service."""
    build_sha = os.getenv("BUILD_SHA")
    build_timestamp = os.getenv("BUILD_TIMESTAMP")
    image_tag = os.getenv("IMAGE_TAG")
    version = os.getenv("VERSION", "unknown")

    return {
        "build_sha": build_sha if build_sha else None,
        "build_timestamp": build_timestamp if build_timestamp else None,
        "image_tag": image_tag if image_tag else None,
        "service_name": SERVICE_NAME,
        "version": version,
    }


@router.get("/health")
def health_check():
    return {"status": "ok"}
