"""AssetLifecycleOrchestrator: escrow and purchase sagas end to end on doubles."""

import pytest
from doubles import (
    BUYER,
    CUSTODIAN,
    SELLER,
    FakeAssetRepo,
    FakeGateway,
    FakeLedger,
    FakeSession,
    cancelled_status,
    expired_status,
    make_asset,
    settled_status,
    unresolved_status,
)
from sqlalchemy.exc import OperationalError

from config.settings import Settings
from src.rw_asset.application.orchestrator import AssetLifecycleOrchestrator
from src.rw_asset.domain.models import Asset
from src.rw_common.enums import AssetFlow, AssetStatus, EscrowStatus, PurchaseStage
from src.rw_common.errors import (
    AssetStateError,
    ForbiddenError,
    GatewayUnavailable,
    LedgerSubmissionFailed,
    NotFoundError,
    PersistenceError,
    TrustlineRequiredError,
    ValidationError,
)
from src.rw_ledger.domain.models import LedgerSubmitResult
from src.rw_signing.domain.models import SIGNED_NOT_RESOLVED, SigningEvent


@pytest.fixture
def orchestrator(
    settings: Settings, gateway: FakeGateway, ledger: FakeLedger, asset_repo: FakeAssetRepo
) -> AssetLifecycleOrchestrator:
    return AssetLifecycleOrchestrator(settings, gateway, ledger=ledger, repo=asset_repo)


def _assert_buyer_invariant(asset: Asset) -> None:
    assert (asset.pending_buyer is not None) == (asset.status is AssetStatus.PENDING_PURCHASE)
    assert (asset.purchase_stage is not None) == (asset.status is AssetStatus.PENDING_PURCHASE)


async def _listed(
    orchestrator: AssetLifecycleOrchestrator,
    asset_repo: FakeAssetRepo,
    gateway: FakeGateway,
    db: FakeSession,
) -> Asset:
    asset_repo.put(make_asset())
    _, request = await orchestrator.request_escrow(db, "A1", SELLER)
    gateway.statuses[request.id] = settled_status("ESCROWTX")
    await orchestrator.check_escrow(db, await orchestrator.get(db, "A1"))
    return await orchestrator.get(db, "A1")


class TestEscrow:
    async def test_request_escrow(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        asset, request = await orchestrator.request_escrow(db, "A1", SELLER, push_target="tok")
        assert asset.status is AssetStatus.PENDING_ESCROW
        assert asset.escrow_request_id == request.id
        intent, expiry, push = gateway.created[0]
        assert intent.tx_json["Destination"] == CUSTODIAN
        assert expiry == 900
        assert push == "tok"

    async def test_only_owner_can_escrow(
        self, orchestrator: AssetLifecycleOrchestrator, asset_repo: FakeAssetRepo, db: FakeSession
    ) -> None:
        asset_repo.put(make_asset())
        with pytest.raises(ForbiddenError):
            await orchestrator.request_escrow(db, "A1", BUYER)

    async def test_escrow_needs_active_asset(
        self, orchestrator: AssetLifecycleOrchestrator, asset_repo: FakeAssetRepo, db: FakeSession
    ) -> None:
        asset_repo.put(make_asset(status=AssetStatus.PENDING_ESCROW, escrow_request_id="r"))
        with pytest.raises(AssetStateError):
            await orchestrator.request_escrow(db, "A1", SELLER)

    async def test_gateway_failure_leaves_asset_untouched(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        gateway.create_error = GatewayUnavailable()
        with pytest.raises(GatewayUnavailable):
            await orchestrator.request_escrow(db, "A1", SELLER)
        assert (await orchestrator.get(db, "A1")).status is AssetStatus.ACTIVE

    async def test_confirmed_escrow_lists_asset(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        listed = await _listed(orchestrator, asset_repo, gateway, db)
        assert listed.status is AssetStatus.FOR_SALE
        assert listed.escrow_status is EscrowStatus.ESCROWED
        assert listed.escrow_tx_hash == "ESCROWTX"
        assert listed.listed_at is not None

    @pytest.mark.parametrize("status", [expired_status(), cancelled_status()])
    async def test_aborted_escrow_clears_link(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
        status,
    ) -> None:
        asset_repo.put(make_asset())
        asset, request = await orchestrator.request_escrow(db, "A1", SELLER)
        gateway.statuses[request.id] = status
        assert await orchestrator.check_escrow(db, asset)
        reverted = await orchestrator.get(db, "A1")
        assert reverted.status is AssetStatus.ACTIVE
        assert reverted.escrow_request_id is None
        assert reverted.error_message is None

    async def test_unresolved_escrow_reverts_with_error(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        asset, request = await orchestrator.request_escrow(db, "A1", SELLER)
        gateway.statuses[request.id] = unresolved_status()
        await orchestrator.check_escrow(db, asset)
        reverted = await orchestrator.get(db, "A1")
        assert reverted.status is AssetStatus.ACTIVE
        assert reverted.error_message == SIGNED_NOT_RESOLVED

    async def test_open_escrow_waits(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        asset, _ = await orchestrator.request_escrow(db, "A1", SELLER)
        assert not await orchestrator.check_escrow(db, asset)
        assert (await orchestrator.get(db, "A1")).status is AssetStatus.PENDING_ESCROW


class TestPurchase:
    async def test_full_saga(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)

        asset, payment = await orchestrator.request_purchase(db, "A1", BUYER)
        assert asset.purchase_stage is PurchaseStage.AWAITING_PAYMENT
        assert asset.pending_buyer == BUYER
        assert gateway.created[-1][0].tx_json["Destination"] == SELLER
        _assert_buyer_invariant(asset)

        gateway.statuses[payment.id] = settled_status("PAYTX")
        assert await orchestrator.check_purchase(db, asset)
        issued = await orchestrator.get(db, "A1")
        assert issued.purchase_stage is PurchaseStage.SETTLEMENT_ISSUED
        assert issued.payment_tx_hash == "PAYTX"
        settlement_intent = gateway.created[-1][0]
        assert settlement_intent.tx_json["Account"] == CUSTODIAN
        assert settlement_intent.tx_json["Destination"] == BUYER
        _assert_buyer_invariant(issued)

        gateway.statuses[issued.settlement_request_id] = settled_status("SETTLETX")
        assert await orchestrator.check_purchase(db, issued)
        sold = await orchestrator.get(db, "A1")
        assert sold.status is AssetStatus.ACTIVE
        assert sold.owner_address == BUYER
        assert sold.escrow_status is None
        _assert_buyer_invariant(sold)

        [record] = asset_repo.transactions
        assert record.buyer_address == BUYER
        assert record.seller_address == SELLER
        assert record.payment_tx_hash == "PAYTX"
        assert record.settlement_tx_hash == "SETTLETX"

    async def test_cannot_buy_own_asset(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        with pytest.raises(ValidationError):
            await orchestrator.request_purchase(db, "A1", SELLER)

    async def test_unlisted_asset_cannot_be_bought(
        self, orchestrator: AssetLifecycleOrchestrator, asset_repo: FakeAssetRepo, db: FakeSession
    ) -> None:
        asset_repo.put(make_asset())
        with pytest.raises(AssetStateError):
            await orchestrator.request_purchase(db, "A1", BUYER)

    async def test_abandoned_payment_relists(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        asset, payment = await orchestrator.request_purchase(db, "A1", BUYER)
        gateway.statuses[payment.id] = expired_status()
        await orchestrator.check_purchase(db, asset)
        relisted = await orchestrator.get(db, "A1")
        assert relisted.status is AssetStatus.FOR_SALE
        assert relisted.pending_buyer is None
        assert relisted.purchase_request_id is None
        _assert_buyer_invariant(relisted)

    async def test_settlement_resumes_after_interruption(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        asset, payment = await orchestrator.request_purchase(db, "A1", BUYER)
        gateway.statuses[payment.id] = settled_status("PAYTX")
        gateway.create_error = GatewayUnavailable()
        assert await orchestrator.check_purchase(db, asset)

        stalled = await orchestrator.get(db, "A1")
        assert stalled.purchase_stage is PurchaseStage.PAYMENT_CONFIRMED
        assert stalled.settlement_request_id is None

        gateway.create_error = None
        assert await orchestrator.check_purchase(db, stalled)
        resumed = await orchestrator.get(db, "A1")
        assert resumed.purchase_stage is PurchaseStage.SETTLEMENT_ISSUED
        # exactly one settlement request was issued
        settlements = [c for c in gateway.created if c[0].tx_json["Account"] == CUSTODIAN]
        assert len(settlements) == 1

    async def test_aborted_settlement_is_reissued(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        asset, payment = await orchestrator.request_purchase(db, "A1", BUYER)
        gateway.statuses[payment.id] = settled_status("PAYTX")
        await orchestrator.check_purchase(db, asset)
        issued = await orchestrator.get(db, "A1")
        first_settlement = issued.settlement_request_id

        gateway.statuses[first_settlement] = expired_status()
        assert await orchestrator.check_purchase(db, issued)
        reissued = await orchestrator.get(db, "A1")
        assert reissued.purchase_stage is PurchaseStage.SETTLEMENT_ISSUED
        assert reissued.settlement_request_id != first_settlement

        # The fresh request is open, so checking again changes nothing
        assert not await orchestrator.check_purchase(db, reissued)
        assert (await orchestrator.get(db, "A1")).settlement_request_id == reissued.settlement_request_id

    async def test_failed_reissue_waits_for_next_sweep(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        asset, payment = await orchestrator.request_purchase(db, "A1", BUYER)
        gateway.statuses[payment.id] = settled_status("PAYTX")
        await orchestrator.check_purchase(db, asset)
        issued = await orchestrator.get(db, "A1")

        gateway.statuses[issued.settlement_request_id] = cancelled_status()
        gateway.create_error = GatewayUnavailable()
        assert await orchestrator.check_purchase(db, issued)
        stalled = await orchestrator.get(db, "A1")
        assert stalled.purchase_stage is PurchaseStage.PAYMENT_CONFIRMED
        assert stalled.settlement_request_id is None

        gateway.create_error = None
        assert await orchestrator.check_purchase(db, stalled)
        assert (await orchestrator.get(db, "A1")).purchase_stage is PurchaseStage.SETTLEMENT_ISSUED

    async def test_unresolved_settlement_needs_operator(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        asset, payment = await orchestrator.request_purchase(db, "A1", BUYER)
        gateway.statuses[payment.id] = settled_status("PAYTX")
        await orchestrator.check_purchase(db, asset)
        issued = await orchestrator.get(db, "A1")
        gateway.statuses[issued.settlement_request_id] = unresolved_status()
        await orchestrator.check_purchase(db, issued)

        failed = await orchestrator.get(db, "A1")
        assert failed.purchase_stage is PurchaseStage.SETTLEMENT_FAILED
        assert failed.pending_buyer == BUYER
        # sweeps leave it alone
        assert not await orchestrator.check_purchase(db, failed)

        retried = await orchestrator.retry_settlement(db, "A1")
        assert retried.purchase_stage is PurchaseStage.SETTLEMENT_ISSUED
        assert retried.settlement_request_id != issued.settlement_request_id

    async def test_retry_requires_failed_settlement(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        with pytest.raises(AssetStateError):
            await orchestrator.retry_settlement(db, "A1")


class TestExternalEvents:
    async def test_escrow_webhook_and_duplicate(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        _, request = await orchestrator.request_escrow(db, "A1", SELLER)
        event = SigningEvent(request_id=request.id, status=settled_status("ESCROWTX"))

        first = await orchestrator.apply_external_event(db, event)
        assert first.updated
        assert first.flow is AssetFlow.ESCROW
        assert first.asset.status is AssetStatus.FOR_SALE

        second = await orchestrator.apply_external_event(db, event)
        assert not second.updated
        assert second.asset.status is AssetStatus.FOR_SALE

    async def test_payment_webhook_drives_settlement(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        _, payment = await orchestrator.request_purchase(db, "A1", BUYER)
        result = await orchestrator.apply_external_event(
            db, SigningEvent(request_id=payment.id, status=settled_status("PAYTX"))
        )
        assert result.flow is AssetFlow.PURCHASE
        assert result.asset.purchase_stage is PurchaseStage.SETTLEMENT_ISSUED

        settle = SigningEvent(result.asset.settlement_request_id, settled_status("SETTLETX"))
        done = await orchestrator.apply_external_event(db, settle)
        assert done.asset.owner_address == BUYER
        repeat = await orchestrator.apply_external_event(db, settle)
        assert not repeat.updated
        assert len(asset_repo.transactions) == 1

    async def test_any_settlement_error_after_payment_is_deferred(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        _, payment = await orchestrator.request_purchase(db, "A1", BUYER)
        gateway.create_error = ValidationError("Gateway refused the transaction")

        result = await orchestrator.apply_external_event(
            db, SigningEvent(request_id=payment.id, status=settled_status("PAYTX"))
        )
        assert result.updated
        assert result.asset.purchase_stage is PurchaseStage.PAYMENT_CONFIRMED
        assert result.asset.payment_tx_hash == "PAYTX"

    async def test_store_read_failure_is_persistence_error(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        db: FakeSession,
    ) -> None:
        async def broken(*_args: object) -> None:
            raise OperationalError("SELECT", {}, Exception("connection reset"))

        asset_repo.get_by_request_id = broken
        with pytest.raises(PersistenceError):
            await orchestrator.apply_external_event(
                db, SigningEvent(request_id="req-1", status=settled_status())
            )
        assert db.rollbacks == 1

    async def test_unknown_request(
        self, orchestrator: AssetLifecycleOrchestrator, db: FakeSession
    ) -> None:
        with pytest.raises(NotFoundError):
            await orchestrator.apply_external_event(
                db, SigningEvent(request_id="nope", status=settled_status())
            )


class TestRemoveFromSale:
    async def test_returns_token_and_delists(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        ledger: FakeLedger,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        asset = await orchestrator.remove_from_sale(db, "A1", SELLER)
        assert asset.status is AssetStatus.ACTIVE
        assert asset.escrow_status is None
        assert asset.owner_address == SELLER
        assert ledger.submitted[0]["Destination"] == SELLER

    async def test_ledger_failure_keeps_listing(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        ledger: FakeLedger,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        ledger.result = LedgerSubmitResult(success=False, result_code="tecNO_LINE")
        with pytest.raises(LedgerSubmissionFailed):
            await orchestrator.remove_from_sale(db, "A1", SELLER)
        asset = await orchestrator.get(db, "A1")
        assert asset.status is AssetStatus.FOR_SALE
        assert "tecNO_LINE" in asset.error_message

    async def test_only_seller(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        with pytest.raises(ForbiddenError):
            await orchestrator.remove_from_sale(db, "A1", BUYER)


class TestTrustlines:
    async def test_purchase_refused_without_trust_line(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        ledger: FakeLedger,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        ledger.trustlines = set()
        requests_before = len(gateway.created)

        with pytest.raises(TrustlineRequiredError):
            await orchestrator.request_purchase(db, "A1", BUYER)
        assert ledger.trust_checks == [(BUYER, "RWA", CUSTODIAN)]
        assert len(gateway.created) == requests_before
        assert (await orchestrator.get(db, "A1")).status is AssetStatus.FOR_SALE

        ledger.trustlines.add((BUYER, "RWA"))
        asset, _ = await orchestrator.request_purchase(db, "A1", BUYER)
        assert asset.pending_buyer == BUYER

    async def test_purchase_without_ledger_client(
        self,
        settings: Settings,
        gateway: FakeGateway,
        asset_repo: FakeAssetRepo,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset(status=AssetStatus.FOR_SALE, escrow_status=EscrowStatus.ESCROWED))
        bare = AssetLifecycleOrchestrator(settings, gateway, repo=asset_repo)
        with pytest.raises(GatewayUnavailable):
            await bare.request_purchase(db, "A1", BUYER)

    async def test_trust_line_request(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        asset, request = await orchestrator.request_trustline(db, "A1", BUYER, push_target="tok")
        assert asset.status is AssetStatus.ACTIVE
        intent, _, push = gateway.created[-1]
        assert gateway.last_request_id == request.id
        assert intent.tx_json["TransactionType"] == "TrustSet"
        assert intent.tx_json["Account"] == BUYER
        assert intent.tx_json["LimitAmount"] == {"currency": "RWA", "issuer": CUSTODIAN, "value": "10"}
        assert push == "tok"

    async def test_issuer_needs_no_trust_line(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        with pytest.raises(ValidationError):
            await orchestrator.request_trustline(db, "A1", CUSTODIAN)
        assert gateway.created == []


class TestIssueToken:
    async def test_issues_one_unit_to_owner(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        ledger: FakeLedger,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        asset = await orchestrator.issue_token(db, "A1", SELLER)
        assert asset.issuance_tx_hash == "RETURNTX"
        [tx] = ledger.submitted
        assert tx["Account"] == CUSTODIAN
        assert tx["Destination"] == SELLER
        assert tx["Amount"]["currency"] == "RWA"
        assert tx["Amount"]["issuer"] == CUSTODIAN

    async def test_second_request_does_not_reissue(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        ledger: FakeLedger,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        await orchestrator.issue_token(db, "A1", SELLER)
        again = await orchestrator.issue_token(db, "A1", SELLER)
        assert again.issuance_tx_hash == "RETURNTX"
        assert len(ledger.submitted) == 1

    async def test_only_owner(
        self, orchestrator: AssetLifecycleOrchestrator, asset_repo: FakeAssetRepo, db: FakeSession
    ) -> None:
        asset_repo.put(make_asset())
        with pytest.raises(ForbiddenError):
            await orchestrator.issue_token(db, "A1", BUYER)

    async def test_foreign_issuer_is_refused(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        ledger: FakeLedger,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset(token_issuer="rSomeIssuer"))
        with pytest.raises(ValidationError):
            await orchestrator.issue_token(db, "A1", SELLER)
        assert ledger.submitted == []

    async def test_listed_asset_is_refused(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        gateway: FakeGateway,
        db: FakeSession,
    ) -> None:
        await _listed(orchestrator, asset_repo, gateway, db)
        with pytest.raises(AssetStateError):
            await orchestrator.issue_token(db, "A1", SELLER)

    async def test_needs_trust_line(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        ledger: FakeLedger,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        ledger.trustlines = set()
        with pytest.raises(TrustlineRequiredError):
            await orchestrator.issue_token(db, "A1", SELLER)
        assert ledger.submitted == []

    async def test_ledger_failure_is_recorded(
        self,
        orchestrator: AssetLifecycleOrchestrator,
        asset_repo: FakeAssetRepo,
        ledger: FakeLedger,
        db: FakeSession,
    ) -> None:
        asset_repo.put(make_asset())
        ledger.result = LedgerSubmitResult(success=False, result_code="tecPATH_DRY")
        with pytest.raises(LedgerSubmissionFailed):
            await orchestrator.issue_token(db, "A1", SELLER)
        asset = await orchestrator.get(db, "A1")
        assert asset.issuance_tx_hash is None
        assert "tecPATH_DRY" in asset.error_message
