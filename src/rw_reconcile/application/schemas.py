"""Result shapes for the reconciliation drivers."""

from pydantic import Field

from src.rw_common.response import CamelModel


class WebhookResult(CamelModel):
    accepted: bool = True
    resulting_status: str
    entity: str  # "offer" | "asset"
    entity_id: str
    updated: bool
    purchase_stage: str | None = None


class ItemResult(CamelModel):
    entity: str  # "offer" | "asset"
    key: str  # signing request id, asset id, or the sweep phase that failed to list
    ok: bool
    transitioned: bool = False
    status: str | None = None
    error: str | None = None


class SweepReport(CamelModel):
    scanned: int = 0
    transitioned: int = 0
    expired: int = 0
    per_item_result: list[ItemResult] = Field(default_factory=list)


class SigningRequestStatusOut(CamelModel):
    """Gateway view of one signing request plus the record it drives, if any."""

    request_id: str
    signed: bool
    cancelled: bool
    expired: bool
    resolved: bool
    account: str | None = None
    tx_id: str | None = None
    tx_type: str | None = None
    resolved_at: str | None = None
    entity: str | None = None  # "offer" | "asset"
    entity_id: str | None = None
    entity_status: str | None = None
    flow: str | None = None
