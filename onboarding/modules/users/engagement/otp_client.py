"""
OTP Service Client
HTTP client for the remote one-time-password service
"""
import logging
import os
from typing import Any, Dict, Optional

import httpx
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger("onboarding.engagement.otp")

OTP_SERVICE_URL = os.getenv("OTP_SERVICE_URL", "http://engagement-service:8080")
OTP_SERVICE_TIMEOUT = float(os.getenv("OTP_SERVICE_TIMEOUT", "10"))


class OTPServiceError(Exception):
    """Raised when the OTP service cannot be reached or answers with an error"""
    pass


class OTPClient:
    """HTTP client for OTP generation and verification"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = base_url or OTP_SERVICE_URL
        self.timeout = httpx.Timeout(timeout or OTP_SERVICE_TIMEOUT)

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                response = await client.post(path, json=payload)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"[OTPClient._post] HTTP error on {path}: {e.response.status_code}")
            raise OTPServiceError(f"OTP service returned HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"[OTPClient._post] Request error on {path}: {e}")
            raise OTPServiceError(f"Failed to connect to OTP service: {e}") from e

    async def generate_and_send(self, phone: str, app_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Generate an OTP and deliver it to `phone`.

        Returns:
            The service's OTP handle, e.g. {"otp": "...", "expires_at": "..."}
        """
        payload = {"msisdn": phone}
        if app_id:
            payload["app_id"] = app_id
        result = await self._post("/otp/send", payload)
        logger.info(f"[OTPClient.generate_and_send] OTP dispatched to {phone}")
        return result

    async def verify(self, phone: str, code: str) -> bool:
        """True when `code` is the live OTP for `phone`."""
        result = await self._post("/otp/verify", {"msisdn": phone, "verification_code": code})
        return bool(result.get("is_verified", False))
