"""XummGateway: SigningGatewayProtocol over the XUMM platform REST API.

POST {XUMM_API_URL}/platform/payload         create a signing request
GET  {XUMM_API_URL}/platform/payload/{uuid}  current request state

XUMM's ``expire`` option is in minutes; callers pass seconds, which are
rounded up to whole minutes (minimum 1).
"""

import logging
import math
from typing import Any

import httpx

from config.settings import Settings
from src.rw_common.errors import GatewayUnavailable, NotFoundError, ValidationError
from src.rw_signing.domain.models import SigningRequest, SigningStatus, TransactionIntent
from src.rw_signing.infrastructure.decoding import decode_created, decode_status

logger = logging.getLogger(__name__)


def expiry_minutes(expiry_seconds: int) -> int:
    return max(1, math.ceil(expiry_seconds / 60))


class XummGateway:
    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._base_url = settings.XUMM_API_URL.rstrip("/")
        self._client = client
        self._owns_client = client is None

    def is_available(self) -> bool:
        return self._settings.signing_configured

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.XUMM_TIMEOUT_SECONDS)
        return self._client

    def _headers(self) -> dict[str, str]:
        return {
            "X-API-Key": self._settings.XUMM_API_KEY or "",
            "X-API-Secret": self._settings.XUMM_API_SECRET or "",
            "Content-Type": "application/json",
        }

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, body: dict[str, Any] | None = None) -> httpx.Response:
        if not self.is_available():
            raise GatewayUnavailable("Signing gateway credentials not configured")
        try:
            resp = await self._http().request(
                method, f"{self._base_url}{path}", headers=self._headers(), json=body
            )
        except httpx.HTTPError as exc:
            logger.warning("Signing gateway %s %s failed: %s", method, path, exc)
            raise GatewayUnavailable(f"Signing gateway unreachable: {exc}") from exc
        if resp.status_code >= 500 or resp.status_code == 429:
            logger.warning("Signing gateway %s %s -> %s", method, path, resp.status_code)
            raise GatewayUnavailable(f"Signing gateway returned {resp.status_code}")
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise ValidationError("Signing gateway returned a non-JSON body") from exc

    async def create(
        self,
        intent: TransactionIntent,
        expiry_seconds: int,
        push_target: str | None = None,
    ) -> SigningRequest:
        body: dict[str, Any] = {
            "txjson": intent.tx_json,
            "options": {
                "submit": True,
                "expire": expiry_minutes(expiry_seconds),
                "return_url": {"web": self._settings.FRONTEND_URL},
            },
        }
        if intent.instruction:
            body["custom_meta"] = {"instruction": intent.instruction}
        if push_target:
            body["user_token"] = push_target

        resp = await self._request("POST", "/platform/payload", body)
        if resp.status_code >= 400:
            raise ValidationError(
                f"Signing gateway rejected request ({resp.status_code}): {resp.text[:200]}"
            )
        request = decode_created(self._json(resp))
        logger.info(
            "Signing request %s created for %s (pushed=%s)",
            request.id, intent.tx_json.get("TransactionType"), request.pushed,
        )
        return request

    async def get_status(self, request_id: str) -> SigningStatus:
        resp = await self._request("GET", f"/platform/payload/{request_id}")
        if resp.status_code == 404:
            raise NotFoundError(f"Signing request not found: {request_id}")
        if resp.status_code >= 400:
            raise GatewayUnavailable(f"Signing gateway returned {resp.status_code}")
        return decode_status(self._json(resp))
