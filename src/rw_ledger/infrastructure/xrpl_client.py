"""XrplLedgerClient: LedgerClientProtocol over xrpl-py.

Custodian transactions are autofilled and signed locally with the custodian
wallet, then submitted and awaited until validated (or until their
LastLedgerSequence passes). The seed never leaves this process.

Token lookups (nft_info on Clio, account_lines on the RPC node) go through
the same JSON-RPC client type.
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from xrpl.asyncio.clients import AsyncJsonRpcClient, XRPLRequestFailureException
from xrpl.asyncio.transaction import XRPLReliableSubmissionException, submit_and_wait
from xrpl.constants import XRPLException
from xrpl.models.exceptions import XRPLModelException
from xrpl.models.requests import AccountLines, NFTInfo
from xrpl.models.transactions.transaction import Transaction
from xrpl.wallet import Wallet

from config.settings import Settings
from src.rw_common.errors import (
    GatewayUnavailable,
    InternalError,
    LedgerSubmissionFailed,
    ValidationError,
)
from src.rw_ledger.domain.models import SUCCESS_RESULT, LedgerSubmitResult

logger = logging.getLogger(__name__)

_RESULT_CODE = re.compile(r"\bte[cfmlrs][A-Z_]+\b")


def _result_code(exc: Exception) -> str:
    match = _RESULT_CODE.search(str(exc))
    return match.group(0) if match else "unknown"


def _currency_matches(line_currency: str, currency: str) -> bool:
    """Ledger reports codes longer than three characters as 40-digit hex."""
    if line_currency.upper() == currency.upper():
        return True
    return line_currency.upper() == currency.encode("utf-8").hex().upper().ljust(40, "0")


class XrplLedgerClient:
    def __init__(
        self,
        settings: Settings,
        client: AsyncJsonRpcClient | None = None,
        clio: AsyncJsonRpcClient | None = None,
        wallet: Wallet | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or AsyncJsonRpcClient(settings.ledger_rpc_url)
        self._clio = clio or AsyncJsonRpcClient(settings.ledger_clio_url)
        self._wallet = wallet

    def _custodian_wallet(self) -> Wallet:
        if self._wallet is None:
            if not self._settings.CUSTODIAN_SEED:
                raise GatewayUnavailable("Custodian secret not configured")
            try:
                self._wallet = Wallet.from_seed(self._settings.CUSTODIAN_SEED)
            except (XRPLException, ValueError) as exc:
                raise InternalError("Custodian secret is not a valid seed") from exc
        return self._wallet

    async def submit_and_wait(self, tx_json: dict[str, Any]) -> LedgerSubmitResult:
        wallet = self._custodian_wallet()
        try:
            transaction = Transaction.from_xrpl(tx_json)
        except XRPLModelException as exc:
            raise ValidationError(f"Malformed ledger transaction: {exc}") from exc

        try:
            response = await submit_and_wait(transaction, self._client, wallet)
        except XRPLReliableSubmissionException as exc:
            # Rejected, failed in a validated ledger, or expired unvalidated
            code = _result_code(exc)
            logger.info("Ledger submission did not succeed: %s", exc)
            return LedgerSubmitResult(success=False, result_code=code)
        except XRPLRequestFailureException as exc:
            logger.warning("Ledger request failed: %s", exc)
            raise LedgerSubmissionFailed(str(exc.error), str(exc)) from exc
        except (httpx.HTTPError, XRPLException) as exc:
            logger.warning("Ledger node unreachable during submission: %s", exc)
            raise GatewayUnavailable(f"Ledger node unreachable: {exc}") from exc

        result = response.result
        code = str((result.get("meta") or {}).get("TransactionResult", SUCCESS_RESULT))
        tx_hash = result.get("hash")
        logger.info("Ledger validated %s: %s", tx_hash, code)
        return LedgerSubmitResult(success=code == SUCCESS_RESULT, result_code=code, tx_hash=tx_hash)

    async def _request(self, client: AsyncJsonRpcClient, request: Any) -> dict[str, Any]:
        try:
            response = await client.request(request)
        except (httpx.HTTPError, XRPLException) as exc:
            logger.warning("Ledger %s failed: %s", request.method, exc)
            raise GatewayUnavailable(f"Ledger node unreachable: {exc}") from exc
        return response.result

    async def get_nft_owner(self, nft_id: str) -> str | None:
        result = await self._request(self._clio, NFTInfo(nft_id=nft_id))
        if result.get("error") == "objectNotFound":
            return None
        if result.get("error"):
            raise GatewayUnavailable(f"nft_info failed: {result.get('error')}")
        return result.get("owner")

    async def has_trustline(self, account: str, currency: str, issuer: str) -> bool:
        """Whether ``account`` can receive one more unit of ``currency`` from ``issuer``."""
        result = await self._request(
            self._client, AccountLines(account=account, peer=issuer, ledger_index="validated")
        )
        if result.get("error") == "actNotFound":
            return False
        if result.get("error"):
            raise GatewayUnavailable(f"account_lines failed: {result.get('error')}")
        for line in result.get("lines") or []:
            if line.get("account") != issuer or not _currency_matches(str(line.get("currency", "")), currency):
                continue
            try:
                room = Decimal(str(line.get("limit", "0"))) - Decimal(str(line.get("balance", "0")))
            except InvalidOperation:
                continue
            if room >= 1:
                return True
        return False
