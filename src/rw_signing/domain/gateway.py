# src/rw_signing/domain/gateway.py
"""SigningGateway Protocol: the only capabilities reconciliation needs.

Unit tests inject an AsyncMock or in-memory fake conforming to this Protocol.
Infrastructure layer provides the XUMM implementation.
"""

from typing import Protocol

from src.rw_signing.domain.models import SigningRequest, SigningStatus, TransactionIntent


class SigningGatewayProtocol(Protocol):
    def is_available(self) -> bool: ...

    async def create(
        self,
        intent: TransactionIntent,
        expiry_seconds: int,
        push_target: str | None = None,
    ) -> SigningRequest: ...

    async def get_status(self, request_id: str) -> SigningStatus: ...
