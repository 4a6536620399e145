"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Storage (ledger)
  2xxx: Query / user input
  3xxx: External balance source
  9xxx: System

Storage errors other than StorageConnectionError never reach API callers:
BalanceLedger turns them into log records plus a safe default result.
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


# --- 1xxx: Storage ---

class StorageConnectionError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1001, f"Cannot connect to balance store: {detail}", 503)


class LedgerTransactionError(AppError):
    def __init__(self, identity: str, detail: str) -> None:
        super().__init__(1002, f"Failed to record balance for {identity}: {detail}", 500)


class LedgerQueryError(AppError):
    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(1003, f"Ledger query {operation} failed: {detail}", 500)


# --- 2xxx: Query ---

class IdentityNotFoundError(AppError):
    def __init__(self, name: str) -> None:
        super().__init__(2001, f"Player not found: {name}", 404)


class InvalidLeaderboardSizeError(AppError):
    def __init__(self, raw: str) -> None:
        super().__init__(
            2002,
            f"Invalid leaderboard size: {raw!r} (expected a whole number between 1 and 100)",
            422,
        )


# --- 3xxx: Balance source ---

class BalanceSourceError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3001, f"Economy engine request failed: {detail}", 502)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
