"""Dodo Payments REST client for hosted checkout sessions."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = (3, 30)

TEST_API_URL = "https://test.dodopayments.com"
LIVE_API_URL = "https://live.dodopayments.com"
DEFAULT_RETURN_URL = "http://localhost:3000/dashboard"


class CheckoutError(RuntimeError):
    """Raised when the payment provider refuses or cannot be reached."""


@dataclass
class DodoConfig:
    api_key: Optional[str]
    base_url: str
    return_url: str

    @classmethod
    def from_env(cls) -> "DodoConfig":
        environment = (os.getenv("DODO_PAYMENTS_ENVIRONMENT") or "").strip().lower()
        return cls(
            api_key=os.getenv("DODO_PAYMENTS_API_KEY"),
            base_url=TEST_API_URL if environment == "test_mode" else LIVE_API_URL,
            return_url=(os.getenv("DODO_PAYMENTS_RETURN_URL") or DEFAULT_RETURN_URL).rstrip("/"),
        )


def create_checkout_session(
    *,
    product_id: str,
    email: str,
    name: str,
    metadata: Dict[str, Any],
    config: Optional[DodoConfig] = None,
) -> Dict[str, Any]:
    """Create a hosted checkout for one product; returns the provider payload."""
    config = config or DodoConfig.from_env()
    payload = {
        "product_cart": [{"product_id": product_id, "quantity": 1}],
        "customer": {"email": email, "name": name},
        "return_url": f"{config.return_url}/billing?session=success",
        "metadata": metadata,
    }
    headers = {
        "Authorization": f"Bearer {config.api_key or ''}",
        "Content-Type": "application/json",
    }
    try:
        response = requests.post(
            f"{config.base_url}/checkouts",
            json=payload,
            headers=headers,
            timeout=_DEFAULT_TIMEOUT,
        )
        response.raise_for_status()
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else None
        body = exc.response.text if exc.response is not None else ""
        logger.error("Dodo checkout failed with %s: %s", status, body[:500])
        raise CheckoutError("Failed to create checkout session") from exc
    except requests.RequestException as exc:
        logger.error("Dodo checkout request error: %s", exc)
        raise CheckoutError("Failed to create checkout session") from exc

    try:
        return response.json()
    except ValueError as exc:
        raise CheckoutError("Unexpected checkout response") from exc
