"""Domain models for rw_ledger."""

from dataclasses import dataclass

SUCCESS_RESULT = "tesSUCCESS"


@dataclass(frozen=True)
class LedgerSubmitResult:
    """Definitive outcome of a submitted transaction."""

    success: bool
    result_code: str
    tx_hash: str | None = None
