"""
Diagnostic Persistence Layer

Public exports for the Redis connection and the sample replay stores.
"""

from .connection import get_redis_client
from .store import (
    DiagnosticStore,
    InMemoryDiagnosticStore,
    RedisDiagnosticStore,
    get_diagnostic_store,
)

__all__ = [
    "get_redis_client",
    "DiagnosticStore",
    "InMemoryDiagnosticStore",
    "RedisDiagnosticStore",
    "get_diagnostic_store",
]
