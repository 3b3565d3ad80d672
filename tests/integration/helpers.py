"""Scripted stand-ins for the signing gateway and ledger, plus wallet helpers."""

import uuid
from typing import Any

from config.settings import get_settings
from src.rw_common.datetime_utils import utc_now
from src.rw_gateway.auth.jwt_handler import create_access_token
from src.rw_ledger.domain.models import LedgerSubmitResult
from src.rw_signing.domain.models import SigningRequest, SigningStatus, TransactionIntent


class ScriptedGateway:
    """Signing gateway whose request outcomes are set by the test."""

    def __init__(self) -> None:
        self.statuses: dict[str, SigningStatus] = {}
        self.intents: dict[str, TransactionIntent] = {}

    def is_available(self) -> bool:
        return True

    async def create(
        self, intent: TransactionIntent, expiry_seconds: int, push_target: str | None = None
    ) -> SigningRequest:
        request_id = str(uuid.uuid4())
        self.intents[request_id] = intent
        self.statuses[request_id] = SigningStatus(
            signed=False, resolved=False, cancelled=False, expired=False
        )
        return SigningRequest(
            id=request_id,
            link=f"https://xumm.app/sign/{request_id}",
            pushed=push_target is not None,
        )

    async def get_status(self, request_id: str) -> SigningStatus:
        return self.statuses[request_id]

    def settle(self, request_id: str, tx_hash: str, account: str | None = None) -> None:
        self.statuses[request_id] = SigningStatus(
            signed=True, resolved=True, cancelled=False, expired=False,
            settlement_tx_id=tx_hash, counterparty_address=account,
            tx_type=self.intents[request_id].tx_json["TransactionType"],
            resolved_at=utc_now(),
        )

    def cancel(self, request_id: str) -> None:
        self.statuses[request_id] = SigningStatus(
            signed=False, resolved=False, cancelled=True, expired=False
        )


class ScriptedLedger:
    def __init__(self) -> None:
        self.owners: dict[str, str] = {}
        self.submitted: list[dict[str, Any]] = []
        self.trustlines: set[tuple[str, str]] = set()

    async def submit_and_wait(self, tx_json: dict[str, Any]) -> LedgerSubmitResult:
        self.submitted.append(tx_json)
        return LedgerSubmitResult(success=True, result_code="tesSUCCESS", tx_hash=uuid.uuid4().hex)

    async def get_nft_owner(self, nft_id: str) -> str | None:
        return self.owners.get(nft_id)

    async def has_trustline(self, account: str, currency: str, issuer: str) -> bool:
        return (account, currency) in self.trustlines


def wallet_headers(address: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(address, get_settings())}"}


def new_address(prefix: str) -> str:
    return f"r{prefix}{uuid.uuid4().hex[:20]}"
