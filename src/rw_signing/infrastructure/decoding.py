"""Boundary decoding for signing-gateway payloads.

Everything that arrives from the gateway (REST responses and pushed webhook
bodies) is parsed into explicit pydantic models here. Unexpected shapes fail
closed with ValidationError; nothing downstream inspects raw dicts.

Webhook bodies come in two variants, selected by the presence of ``meta``:
  flat    {id, signed, cancelled, expired, settlementTxId?}
  native  {meta: {uuid, signed, cancelled, expired, resolved?, ...},
           payloadResponse: {txid, account, ...} | null}
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from src.rw_common.errors import ValidationError
from src.rw_signing.domain.models import SigningEvent, SigningRequest, SigningStatus

# ---------------------------------------------------------------------------
# Gateway-native models (extra keys ignored: the gateway adds fields freely)
# ---------------------------------------------------------------------------


class _PayloadMeta(BaseModel):
    uuid: StrictStr = Field(min_length=1)
    signed: StrictBool
    cancelled: StrictBool
    expired: StrictBool
    resolved: StrictBool | None = None


class _PayloadResponse(BaseModel):
    txid: StrictStr | None = None
    account: StrictStr | None = None
    resolved_at: datetime | None = None

    @field_validator("resolved_at", mode="before")
    @classmethod
    def _blank_time(cls, value: Any) -> Any:
        return value or None


class _PayloadInfo(BaseModel):
    tx_type: StrictStr | None = None


class _PayloadStatusBody(BaseModel):
    meta: _PayloadMeta
    payload: _PayloadInfo | None = None
    response: _PayloadResponse | None = None


class _NativeWebhookBody(BaseModel):
    meta: _PayloadMeta
    payloadResponse: _PayloadResponse | None = None  # noqa: N815


class _CreatedNext(BaseModel):
    always: StrictStr


class _CreatedBody(BaseModel):
    uuid: StrictStr = Field(min_length=1)
    next: _CreatedNext
    pushed: StrictBool = False


# ---------------------------------------------------------------------------
# Flat webhook (our own contract: extra keys rejected)
# ---------------------------------------------------------------------------


class _FlatWebhookBody(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: StrictStr = Field(min_length=1)
    signed: StrictBool
    cancelled: StrictBool
    expired: StrictBool
    settlement_tx_id: StrictStr | None = Field(default=None, alias="settlementTxId")


def _fail(what: str, exc: PydanticValidationError) -> ValidationError:
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return ValidationError(f"Malformed {what}: {loc or 'body'} {first.get('msg', '')}".strip())


def _blank_to_none(value: str | None) -> str | None:
    return value or None


# ---------------------------------------------------------------------------
# Public decoders
# ---------------------------------------------------------------------------


def decode_created(body: Any) -> SigningRequest:
    try:
        parsed = _CreatedBody.model_validate(body)
    except PydanticValidationError as exc:
        raise _fail("signing request response", exc) from exc
    return SigningRequest(id=parsed.uuid, link=parsed.next.always, pushed=parsed.pushed)


def decode_status(body: Any) -> SigningStatus:
    try:
        parsed = _PayloadStatusBody.model_validate(body)
    except PydanticValidationError as exc:
        raise _fail("signing status response", exc) from exc
    response = parsed.response or _PayloadResponse()
    txid = _blank_to_none(response.txid)
    return SigningStatus(
        signed=parsed.meta.signed,
        resolved=bool(parsed.meta.resolved),
        cancelled=parsed.meta.cancelled,
        expired=parsed.meta.expired,
        settlement_tx_id=txid,
        counterparty_address=_blank_to_none(response.account),
        tx_type=parsed.payload.tx_type if parsed.payload else None,
        resolved_at=response.resolved_at,
    )


def decode_webhook(body: Any) -> SigningEvent:
    """Decode a pushed notification into a SigningEvent, failing closed."""
    if not isinstance(body, dict):
        raise ValidationError("Malformed webhook: body must be a JSON object")

    if "meta" in body:
        try:
            native = _NativeWebhookBody.model_validate(body)
        except PydanticValidationError as exc:
            raise _fail("webhook", exc) from exc
        response = native.payloadResponse
        # Absent resolved flag: a payload response means the gateway dispatched it
        resolved = (
            native.meta.resolved
            if native.meta.resolved is not None
            else response is not None
        )
        status = SigningStatus(
            signed=native.meta.signed,
            resolved=resolved,
            cancelled=native.meta.cancelled,
            expired=native.meta.expired,
            settlement_tx_id=_blank_to_none(response.txid) if response else None,
            counterparty_address=_blank_to_none(response.account) if response else None,
        )
        return SigningEvent(request_id=native.meta.uuid, status=status, raw=body)

    try:
        flat = _FlatWebhookBody.model_validate(body)
    except PydanticValidationError as exc:
        raise _fail("webhook", exc) from exc
    txid = _blank_to_none(flat.settlement_tx_id)
    status = SigningStatus(
        signed=flat.signed,
        resolved=txid is not None,
        cancelled=flat.cancelled,
        expired=flat.expired,
        settlement_tx_id=txid,
    )
    return SigningEvent(request_id=flat.id, status=status, raw=body)
