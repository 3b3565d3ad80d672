"""Unit-test fixtures: settings plus in-memory doubles from doubles.py."""

import pytest
from doubles import (
    CUSTODIAN,
    FakeAssetRepo,
    FakeGateway,
    FakeLedger,
    FakeOfferRepo,
    FakeSession,
)

from config.settings import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        JWT_SECRET="unit-test-secret",
        XUMM_API_KEY="key",
        XUMM_API_SECRET="secret",
        CUSTODIAN_ADDRESS=CUSTODIAN,
        CUSTODIAN_SEED="sEdTestSeed",
        POLL_ITEM_DELAY_SECONDS=0,
    )


@pytest.fixture
def db() -> FakeSession:
    return FakeSession()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def offer_repo() -> FakeOfferRepo:
    return FakeOfferRepo()


@pytest.fixture
def asset_repo() -> FakeAssetRepo:
    return FakeAssetRepo()
