class StorageError(Exception):
    """Base class for record store errors."""


class RecordNotFound(StorageError):
    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record '{record_id}' not found")


class StorageFailure(StorageError):
    """The database rejected a read or write."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"Storage failure during {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidPayload(StorageError, ValueError):
    def __init__(self, record_id: str, payload_type: type):
        self.record_id = record_id
        super().__init__(
            f"Payload for record '{record_id}' must be a mapping, got {payload_type.__name__}"
        )
