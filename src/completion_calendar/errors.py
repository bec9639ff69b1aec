from __future__ import annotations


# PUBLIC_INTERFACE
class StoreError(Exception):
    """
    Raised when the underlying persistence fails (container initialization,
    insert, update or delete). The failed operation leaves no partial effect.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
