"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Wallet
  2xxx: Offer
  3xxx: Asset
  4xxx: Signing gateway / Ledger
  9xxx: System (validation, not-found, persistence)

Every failure that crosses a public service boundary is one of these kinds.
Validation and not-found errors are surfaced to the caller; gateway and
persistence errors are transient and resolved by the next reconciliation pass.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/Wallet ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class SignInPendingError(AppError):
    def __init__(self, request_id: str) -> None:
        super().__init__(1002, f"Sign-in request {request_id} has not been signed", 409)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(1003, detail, 403)


class SignInRejectedError(AppError):
    """A signed request that may not be exchanged for an access token."""

    def __init__(self, detail: str) -> None:
        super().__init__(1004, detail, 403)


# --- 9xxx: System (generic kinds, specialised below) ---

class ValidationError(AppError):
    """Bad input shape or invariant violation. Never retried."""

    def __init__(self, detail: str, code: int = 9101) -> None:
        super().__init__(code, detail, 422)


class NotFoundError(AppError):
    def __init__(self, detail: str, code: int = 9104) -> None:
        super().__init__(code, detail, 404)


class PersistenceError(AppError):
    def __init__(self, detail: str = "Store operation failed", code: int = 9003) -> None:
        super().__init__(code, detail, 500)


class PersistenceConflict(PersistenceError):
    """A concurrent writer won the conditional update (or holds the entity lock)."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail, code=9004)
        self.http_status = 409


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


# --- 2xxx: Offer ---

class OfferNotFoundError(NotFoundError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Offer not found: {key}", code=2001)


class InvalidOfferError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid offer: {detail}", code=2002)


# --- 3xxx: Asset ---

class AssetNotFoundError(NotFoundError):
    def __init__(self, asset_id: str) -> None:
        super().__init__(f"Asset not found: {asset_id}", code=3001)


class AssetStateError(AppError):
    def __init__(self, asset_id: str, status: str, action: str) -> None:
        super().__init__(
            3002, f"Asset {asset_id} in status {status} cannot {action}", 409
        )


class TrustlineRequiredError(AppError):
    def __init__(self, wallet: str, currency: str) -> None:
        super().__init__(
            3003, f"Wallet {wallet} has no trust line for {currency}; create one first", 409
        )


# --- 4xxx: Signing gateway / Ledger ---

class GatewayUnavailable(AppError):
    """Transient: the signing gateway or ledger node could not be reached."""

    def __init__(self, detail: str = "Signing gateway unavailable") -> None:
        super().__init__(4001, detail, 503)


class LedgerSubmissionFailed(AppError):
    """Definitive non-success reported for a ledger submission."""

    def __init__(self, result_code: str, detail: str | None = None) -> None:
        self.result_code = result_code
        super().__init__(
            4002, detail or f"Ledger submission failed: {result_code}", 502
        )
