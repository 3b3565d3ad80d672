"""Boundary decoding of gateway responses and webhook bodies."""

from datetime import UTC, datetime

import pytest

from src.rw_common.errors import ValidationError
from src.rw_signing.infrastructure.decoding import decode_created, decode_status, decode_webhook


def _meta(**overrides: object) -> dict:
    meta = {"uuid": "req-1", "signed": False, "cancelled": False, "expired": False}
    meta.update(overrides)
    return meta


class TestDecodeCreated:
    def test_created(self) -> None:
        request = decode_created(
            {"uuid": "req-1", "next": {"always": "https://xumm.app/sign/req-1"}, "pushed": True}
        )
        assert request.id == "req-1"
        assert request.link == "https://xumm.app/sign/req-1"
        assert request.pushed is True

    def test_missing_link_fails_closed(self) -> None:
        with pytest.raises(ValidationError):
            decode_created({"uuid": "req-1"})


class TestDecodeStatus:
    def test_settled(self) -> None:
        status = decode_status(
            {
                "meta": _meta(signed=True, resolved=True),
                "response": {"txid": "HASH", "account": "rSigner"},
            }
        )
        assert status.settled
        assert status.settlement_tx_id == "HASH"
        assert status.counterparty_address == "rSigner"

    def test_open_with_null_response(self) -> None:
        status = decode_status({"meta": _meta(), "response": None})
        assert not (status.signed or status.cancelled or status.expired)
        assert status.resolved is False

    def test_empty_txid_is_none(self) -> None:
        status = decode_status(
            {"meta": _meta(signed=True, resolved=True), "response": {"txid": ""}}
        )
        assert status.settlement_tx_id is None
        assert not status.settled

    def test_transaction_type_and_resolution_time(self) -> None:
        status = decode_status(
            {
                "meta": _meta(signed=True, resolved=True),
                "payload": {"tx_type": "SignIn", "request_json": {"TransactionType": "SignIn"}},
                "response": {"account": "rSigner", "resolved_at": "2026-05-01T10:00:00.000Z"},
            }
        )
        assert status.tx_type == "SignIn"
        assert status.resolved_at == datetime(2026, 5, 1, 10, 0, tzinfo=UTC)

    def test_blank_resolution_time_is_none(self) -> None:
        status = decode_status({"meta": _meta(), "response": {"resolved_at": ""}})
        assert status.resolved_at is None
        assert status.tx_type is None

    def test_string_flag_fails_closed(self) -> None:
        with pytest.raises(ValidationError):
            decode_status({"meta": _meta(signed="true")})


class TestDecodeWebhook:
    def test_flat_settled(self) -> None:
        event = decode_webhook(
            {"id": "req-7", "signed": True, "cancelled": False, "expired": False,
             "settlementTxId": "HASH"}
        )
        assert event.request_id == "req-7"
        assert event.status.settled

    def test_flat_signed_without_txid_is_unresolved(self) -> None:
        event = decode_webhook({"id": "req-7", "signed": True, "cancelled": False, "expired": False})
        assert event.status.signed
        assert not event.status.resolved

    def test_flat_rejects_unknown_keys(self) -> None:
        with pytest.raises(ValidationError):
            decode_webhook(
                {"id": "req-7", "signed": True, "cancelled": False, "expired": False, "x": 1}
            )

    def test_flat_missing_flag_fails_closed(self) -> None:
        with pytest.raises(ValidationError):
            decode_webhook({"id": "req-7", "signed": True, "cancelled": False})

    def test_native_variant_selected_by_meta(self) -> None:
        event = decode_webhook(
            {
                "meta": _meta(uuid="req-8", signed=True),
                "payloadResponse": {"txid": "HASH", "account": "rSigner"},
                "custom_meta": {"instruction": "ignored"},
            }
        )
        assert event.request_id == "req-8"
        assert event.status.settled
        assert event.status.counterparty_address == "rSigner"

    def test_native_explicit_resolved_flag_wins(self) -> None:
        event = decode_webhook(
            {
                "meta": _meta(signed=True, resolved=False),
                "payloadResponse": {"txid": "HASH"},
            }
        )
        assert not event.status.settled

    def test_native_cancelled(self) -> None:
        event = decode_webhook({"meta": _meta(cancelled=True), "payloadResponse": None})
        assert event.status.cancelled

    def test_native_with_bad_meta_fails_closed(self) -> None:
        with pytest.raises(ValidationError):
            decode_webhook({"meta": {"uuid": "req-1"}})

    @pytest.mark.parametrize("body", [None, [], "req-1", 42])
    def test_non_object_body(self, body: object) -> None:
        with pytest.raises(ValidationError):
            decode_webhook(body)
