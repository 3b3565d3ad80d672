"""LedgerClient Protocol: custodian submit-and-wait plus custody lookups."""

from typing import Any, Protocol

from src.rw_ledger.domain.models import LedgerSubmitResult


class LedgerClientProtocol(Protocol):
    async def submit_and_wait(self, tx_json: dict[str, Any]) -> LedgerSubmitResult: ...

    async def get_nft_owner(self, nft_id: str) -> str | None: ...

    async def has_trustline(self, account: str, currency: str, issuer: str) -> bool: ...
