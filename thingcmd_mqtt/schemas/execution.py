"""
Execution Schema
================

Bounded Context: Command Execution Data Structures

Design:
- ExecutorStatus: Five-state status flag of the device
- Execution: The single in-flight command instance
- ExecutorSnapshot: Read-only view used for display
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ExecutorStatus(str, Enum):
    """Device-side status of the tracked command execution."""
    IDLE = "IDLE"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES = frozenset({
    ExecutorStatus.SUCCEEDED,
    ExecutorStatus.FAILED,
    ExecutorStatus.REJECTED,
})


@dataclass(frozen=True)
class Execution:
    """
    One in-flight remote command.

    Attributes:
        execution_id: Identifier taken from the request topic
        payload: Decoded JSON request body (not validated)
        response_topic: Where every status update for this execution goes

    Example:
        >>> Execution(
        ...     execution_id="abc123",
        ...     payload={"action": "reboot"},
        ...     response_topic="commands/things/dev1/executions/abc123/response/json"
        ... )
    """
    execution_id: str
    payload: Any
    response_topic: str

    def __post_init__(self):
        """Validate invariants."""
        if not self.execution_id:
            raise ValueError("execution_id cannot be empty")
        if not self.response_topic:
            raise ValueError("response_topic cannot be empty")


@dataclass(frozen=True)
class ExecutorSnapshot:
    """
    Point-in-time view of the executor.

    ``execution`` is None when nothing is tracked; ``execution_id`` and
    ``payload`` are then None as well.
    """
    status: ExecutorStatus = ExecutorStatus.IDLE
    execution: Optional[Execution] = field(default=None)

    @property
    def has_execution(self) -> bool:
        return self.execution is not None

    @property
    def execution_id(self) -> Optional[str]:
        return self.execution.execution_id if self.execution else None

    @property
    def payload(self) -> Any:
        return self.execution.payload if self.execution else None
