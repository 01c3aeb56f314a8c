"""
thingcmd Schemas
================

Bounded Context: Data Structures

Immutable, typed data structures for command executions and the responses
published for them.

Public API
----------
Execution Types:
    ExecutorStatus: Enum (IDLE, IN_PROGRESS, SUCCEEDED, FAILED, REJECTED)
    Execution: The tracked in-flight command
    ExecutorSnapshot: Read-only executor view

Response Types:
    StatusReason: reasonCode / reasonDescription pair
    ProgressMessage: IN_PROGRESS update
    ResultMessage: Terminal update
"""

from .execution import (
    ExecutorStatus,
    TERMINAL_STATUSES,
    Execution,
    ExecutorSnapshot,
)
from .response import (
    REASON_OK,
    REASON_BAD_REQUEST,
    REASON_ERROR,
    StatusReason,
    ProgressMessage,
    ResultMessage,
)

__all__ = [
    # Execution types
    'ExecutorStatus',
    'TERMINAL_STATUSES',
    'Execution',
    'ExecutorSnapshot',
    # Response types
    'REASON_OK',
    'REASON_BAD_REQUEST',
    'REASON_ERROR',
    'StatusReason',
    'ProgressMessage',
    'ResultMessage',
]
