"""Integration tests for the offer lifecycle (requires running PG + Redis).

Run: pytest -m integration tests/integration/test_offer_flow.py -v
Pre-condition: PostgreSQL + Redis running, alembic upgrade head
"""

import pytest
from helpers import ScriptedGateway, ScriptedLedger, new_address
from httpx import AsyncClient

pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]


async def _create_sell(client: AsyncClient, seller: str) -> dict:
    resp = await client.post(
        "/api/v1/offers",
        json={"assetUnitId": f"NFT-{seller}", "kind": "sell", "initiator": seller, "amount": 0},
    )
    assert resp.status_code == 201
    return resp.json()["data"]


class TestOfferLifecycle:
    async def test_webhook_completes_offer(
        self, client: AsyncClient, gateway: ScriptedGateway
    ) -> None:
        seller = new_address("S")
        created = await _create_sell(client, seller)
        request_id = created["signingRequestId"]

        body = {"id": request_id, "signed": True, "cancelled": False, "expired": False,
                "settlementTxId": "A" * 64}
        first = await client.post("/api/v1/webhooks/signing", json=body)
        assert first.status_code == 200
        assert first.json()["data"]["resultingStatus"] == "completed"
        assert first.json()["data"]["updated"] is True

        duplicate = await client.post("/api/v1/webhooks/signing", json=body)
        assert duplicate.json()["data"]["updated"] is False

        detail = await client.get(f"/api/v1/offers/{created['offerId']}")
        assert detail.json()["data"]["status"] == "completed"

    async def test_status_check_pulls_from_gateway(
        self, client: AsyncClient, gateway: ScriptedGateway
    ) -> None:
        seller = new_address("S")
        created = await _create_sell(client, seller)
        gateway.cancel(created["signingRequestId"])

        resp = await client.post(
            "/api/v1/offers/status", json={"offerId": created["offerId"]}
        )
        data = resp.json()["data"]
        assert data["status"] == "rejected"
        assert data["updated"] is True

    async def test_buy_offer_records_owner(
        self, client: AsyncClient, gateway: ScriptedGateway, ledger: ScriptedLedger
    ) -> None:
        owner, buyer = new_address("O"), new_address("B")
        ledger.owners["NFT-OWNED"] = owner
        resp = await client.post(
            "/api/v1/offers",
            json={"assetUnitId": "NFT-OWNED", "kind": "buy", "initiator": buyer,
                  "amount": 1_500_000},
        )
        assert resp.status_code == 201
        request_id = resp.json()["data"]["signingRequestId"]
        assert gateway.intents[request_id].tx_json["Owner"] == owner

        listed = await client.get("/api/v1/offers", params={"initiator": buyer})
        [offer] = listed.json()["data"]["items"]
        assert offer["ownerAddress"] == owner
        assert offer["kind"] == "buy"


class TestOfferReads:
    async def test_list_pages_by_initiator(self, client: AsyncClient) -> None:
        seller = new_address("S")
        for _ in range(3):
            await _create_sell(client, seller)

        first = await client.get("/api/v1/offers", params={"initiator": seller, "limit": 2})
        page = first.json()["data"]
        assert len(page["items"]) == 2
        assert page["hasMore"] is True

        second = await client.get(
            "/api/v1/offers",
            params={"initiator": seller, "limit": 2, "cursor": page["nextCursor"]},
        )
        rest = second.json()["data"]
        assert len(rest["items"]) == 1
        assert rest["hasMore"] is False

    async def test_stats_has_every_status(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/offers/stats")
        stats = resp.json()["data"]
        for key in ("pending", "completed", "rejected", "expired", "failed", "total"):
            assert key in stats
