"""XummGateway against an httpx.MockTransport."""

import json

import httpx
import pytest

from config.settings import Settings
from src.rw_common.errors import GatewayUnavailable, NotFoundError, ValidationError
from src.rw_signing.domain import intents
from src.rw_signing.infrastructure.xumm_client import XummGateway, expiry_minutes


def _gateway(settings: Settings, handler) -> XummGateway:
    return XummGateway(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.parametrize(
    ("seconds", "minutes"), [(1, 1), (59, 1), (60, 1), (61, 2), (600, 10), (0, 1)]
)
def test_expiry_is_whole_minutes(seconds: int, minutes: int) -> None:
    assert expiry_minutes(seconds) == minutes


async def test_create_posts_payload(settings: Settings) -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200, json={"uuid": "req-1", "next": {"always": "https://xumm.app/sign/req-1"}, "pushed": True}
        )

    gateway = _gateway(settings, handler)
    request = await gateway.create(intents.sign_in(), 600, push_target="user-token")

    assert request.id == "req-1"
    assert request.pushed is True
    assert seen["url"].endswith("/platform/payload")
    assert seen["headers"]["X-API-Key"] == "key"
    body = seen["body"]
    assert body["txjson"] == {"TransactionType": "SignIn"}
    assert body["options"]["expire"] == 10
    assert body["options"]["submit"] is True
    assert body["user_token"] == "user-token"
    assert body["custom_meta"]["instruction"]


async def test_create_rejected_is_validation_error(settings: Settings) -> None:
    gateway = _gateway(settings, lambda r: httpx.Response(400, json={"error": "bad tx"}))
    with pytest.raises(ValidationError):
        await gateway.create(intents.sign_in(), 60)


async def test_server_error_is_unavailable(settings: Settings) -> None:
    gateway = _gateway(settings, lambda r: httpx.Response(502))
    with pytest.raises(GatewayUnavailable):
        await gateway.get_status("req-1")


async def test_transport_error_is_unavailable(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(GatewayUnavailable):
        await _gateway(settings, handler).get_status("req-1")


async def test_unknown_request_is_not_found(settings: Settings) -> None:
    gateway = _gateway(settings, lambda r: httpx.Response(404, json={}))
    with pytest.raises(NotFoundError):
        await gateway.get_status("missing")


async def test_status_decoded(settings: Settings) -> None:
    payload = {
        "meta": {"uuid": "req-1", "signed": True, "cancelled": False, "expired": False, "resolved": True},
        "response": {"txid": "HASH", "account": "rSigner"},
    }
    gateway = _gateway(settings, lambda r: httpx.Response(200, json=payload))
    status = await gateway.get_status("req-1")
    assert status.settled
    assert status.counterparty_address == "rSigner"


async def test_unconfigured_gateway_is_unavailable(settings: Settings) -> None:
    bare = settings.model_copy(update={"XUMM_API_KEY": None})
    gateway = _gateway(bare, lambda r: httpx.Response(200))
    assert gateway.is_available() is False
    with pytest.raises(GatewayUnavailable):
        await gateway.get_status("req-1")
