"""
Domain errors for the semaforo core.

Raised by the services and the fleet store, mapped to HTTP responses
by the exception handlers registered in server.py.
"""


class SemaforoError(Exception):
    """Base class for every error raised by the semaforo core"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(SemaforoError):
    """Referenced aircraft or component does not exist"""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class UsageValidationError(SemaforoError):
    """Malformed usage input, rejected before any mutation"""


class ConfigError(SemaforoError):
    """Malformed threshold configuration, rejected at write time"""


class StorageError(SemaforoError):
    """Persistence failure on a single record"""


class ConcurrentUpdateError(StorageError):
    """Record changed under us since it was read (stale version)"""
