"""Error type raised for rule violations in the ledger."""


class HyperchainError(Exception):
    """An error carrying a human readable message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"Error: {self.message}"