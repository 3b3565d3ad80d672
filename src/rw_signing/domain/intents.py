"""Transaction intent builders.

Each builder returns the ledger transaction JSON a wallet is asked to sign.
Memo type and data are upper-case hex of their UTF-8 text. Issued-token
amounts are always one unit: an asset token represents one physical item.
"""

from typing import Any

from src.rw_common.enums import OfferKind
from src.rw_signing.domain.models import TransactionIntent

MEMO_ESCROW = "rwa_escrow"
MEMO_PURCHASE = "rwa_purchase"
MEMO_PURCHASE_COMPLETE = "rwa_purchase_complete"
MEMO_RETURN_ESCROW = "rwa_return_escrow"
MEMO_TRUSTLINE = "rwa_trustline"
MEMO_TOKEN_MINT = "rwa_token_mint"

SIGN_IN_TX_TYPE = "SignIn"

# Trust line limit: room for several units of the same asset token
TRUSTLINE_LIMIT = "10"

# NFTokenCreateOffer flag marking a sell offer
TF_SELL_NFTOKEN = 1


def hex_encode(value: str) -> str:
    return value.encode("utf-8").hex().upper()


def build_memo(memo_type: str, memo_data: str) -> dict[str, Any]:
    return {"Memo": {"MemoType": hex_encode(memo_type), "MemoData": hex_encode(memo_data)}}


def _one_unit(currency: str, issuer: str) -> dict[str, str]:
    return {"currency": currency, "issuer": issuer, "value": "1"}


def nft_create_offer(
    kind: OfferKind,
    account: str,
    nft_id: str,
    amount_drops: int,
    destination: str,
    owner: str | None = None,
) -> TransactionIntent:
    """NFTokenCreateOffer for a sell or buy offer on one token.

    Sell offers are flagged and restricted to ``destination`` (the custodian).
    Buy offers name the token's current ``owner``.
    """
    tx: dict[str, Any] = {
        "TransactionType": "NFTokenCreateOffer",
        "Account": account,
        "NFTokenID": nft_id,
        "Amount": str(amount_drops),
        "Destination": destination,
    }
    if kind is OfferKind.SELL:
        tx["Flags"] = TF_SELL_NFTOKEN
    elif owner:
        tx["Owner"] = owner
    return TransactionIntent(
        tx_json=tx,
        instruction=f"Create {kind.value} offer for token {nft_id}",
    )


def escrow_transfer(
    asset_id: str,
    asset_name: str,
    seller: str,
    custodian: str,
    currency: str,
    issuer: str,
) -> TransactionIntent:
    return TransactionIntent(
        tx_json={
            "TransactionType": "Payment",
            "Account": seller,
            "Destination": custodian,
            "Amount": _one_unit(currency, issuer),
            "Memos": [build_memo(MEMO_ESCROW, f"Escrow for sale: {asset_name} | ID: {asset_id}")],
        },
        instruction=f"Transfer {asset_name} into custody to list it for sale",
    )


def purchase_payment(
    asset_id: str,
    asset_name: str,
    buyer: str,
    seller: str,
    price_drops: int,
) -> TransactionIntent:
    return TransactionIntent(
        tx_json={
            "TransactionType": "Payment",
            "Account": buyer,
            "Destination": seller,
            "Amount": str(price_drops),
            "Memos": [build_memo(MEMO_PURCHASE, f"Purchase: {asset_name} | ID: {asset_id}")],
        },
        instruction=f"Pay for {asset_name}",
    )


def settlement_transfer(
    asset_id: str,
    asset_name: str,
    custodian: str,
    buyer: str,
    currency: str,
    issuer: str,
) -> TransactionIntent:
    """Custodian releases the escrowed token to the buyer after payment."""
    return TransactionIntent(
        tx_json={
            "TransactionType": "Payment",
            "Account": custodian,
            "Destination": buyer,
            "Amount": _one_unit(currency, issuer),
            "Memos": [
                build_memo(MEMO_PURCHASE_COMPLETE, f"Transfer to buyer: {asset_name} | ID: {asset_id}")
            ],
        },
        instruction=f"Release {asset_name} to buyer {buyer}",
    )


def return_from_escrow(
    asset_id: str,
    asset_name: str,
    custodian: str,
    seller: str,
    currency: str,
    issuer: str,
) -> dict[str, Any]:
    """Raw transaction for the custodian to submit directly (no signing request)."""
    return {
        "TransactionType": "Payment",
        "Account": custodian,
        "Destination": seller,
        "Amount": _one_unit(currency, issuer),
        "Memos": [build_memo(MEMO_RETURN_ESCROW, f"Return from escrow: {asset_name} | ID: {asset_id}")],
    }


def sign_in() -> TransactionIntent:
    return TransactionIntent(
        tx_json={"TransactionType": SIGN_IN_TX_TYPE},
        instruction="Sign in to the RWA marketplace",
    )


def trust_set(
    asset_id: str,
    asset_name: str,
    holder: str,
    currency: str,
    issuer: str,
) -> TransactionIntent:
    """TrustSet letting ``holder`` receive the asset token."""
    return TransactionIntent(
        tx_json={
            "TransactionType": "TrustSet",
            "Account": holder,
            "LimitAmount": {"currency": currency, "issuer": issuer, "value": TRUSTLINE_LIMIT},
            "Memos": [build_memo(MEMO_TRUSTLINE, f"Trust: {asset_name} ({currency}) | ID: {asset_id}")],
        },
        instruction=f"Trust {currency} to receive {asset_name}",
    )


def issue_to_holder(
    asset_id: str,
    asset_name: str,
    issuer: str,
    holder: str,
    currency: str,
) -> dict[str, Any]:
    """Raw issuance of one token unit, submitted by the issuing custodian."""
    return {
        "TransactionType": "Payment",
        "Account": issuer,
        "Destination": holder,
        "Amount": _one_unit(currency, issuer),
        "Memos": [build_memo(MEMO_TOKEN_MINT, f"Mint: {asset_name} | ID: {asset_id}")],
    }
