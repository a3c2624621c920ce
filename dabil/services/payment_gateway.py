"""
Paystack client.

Only two calls are used: initialize a transaction (returns the hosted
checkout URL) and verify it by reference. Amounts cross the wire in kobo.
"""
from decimal import Decimal
from typing import Any, Dict, Optional
import hashlib
import hmac
import logging

import requests

from dabil.config import settings
from dabil.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


def to_kobo(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).to_integral_value())


def from_kobo(amount: int) -> Decimal:
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


class PaystackClient:
    def __init__(self, secret_key: str, base_url: str = "https://api.paystack.co", timeout: int = 20):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(method, url, json=payload, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Paystack request to {path} failed: {e}")
            raise ExternalServiceError("Payment gateway unreachable") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400 or not body.get("status"):
            message = body.get("message") or f"HTTP {response.status_code}"
            logger.warning(f"Paystack {path} rejected: {message}")
            raise ExternalServiceError("Payment gateway request failed", details=message)

        return body.get("data") or {}

    def initialize_transaction(
        self,
        email: str,
        amount: Decimal,
        reference: str,
        callback_url: str,
        metadata: Optional[dict] = None,
    ) -> Dict[str, Any]:
        """Returns {authorization_url, access_code, reference}"""
        return self._request("POST", "/transaction/initialize", {
            "email": email,
            "amount": to_kobo(amount),
            "reference": reference,
            "callback_url": callback_url,
            "metadata": metadata or {},
        })

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        """Returns the transaction; data["status"] is "success" once paid, data["amount"] is kobo"""
        return self._request("GET", f"/transaction/verify/{reference}")

    def is_valid_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        """Webhook bodies are signed with HMAC-SHA512 of the secret key"""
        if not signature or not self.secret_key:
            return False
        expected = hmac.new(self.secret_key.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()
        return hmac.compare_digest(expected, signature)


def get_payment_gateway() -> PaystackClient:
    """Dependency; tests override it with a fake gateway"""
    return PaystackClient(
        secret_key=settings.PAYSTACK_SECRET_KEY,
        base_url=settings.PAYSTACK_BASE_URL,
        timeout=settings.PAYSTACK_TIMEOUT,
    )
