"""
Execution Response Schema
=========================

Bounded Context: Outbound Command Responses

Messages the device publishes on an execution's response topic.

Wire format (progress):
    {
        "status": "IN_PROGRESS",
        "statusReason": {"reasonCode": "200", "reasonDescription": "Processing..."},
        "timestamp": 1760889045
    }

Wire format (terminal):
    {
        "status": "SUCCEEDED",
        "result": {"message": "completed"},
        "statusReason": {"reasonCode": "200", "reasonDescription": "completed"},
        "timestamp": 1760889045
    }
"""

from dataclasses import dataclass
from typing import Any, Dict

from .execution import ExecutorStatus, TERMINAL_STATUSES


REASON_OK = "200"
REASON_BAD_REQUEST = "400"
REASON_ERROR = "500"


@dataclass(frozen=True)
class StatusReason:
    """Reason code/description pair mirrored in every response."""
    reason_code: str
    reason_description: str

    def to_dict(self) -> Dict[str, str]:
        return {
            'reasonCode': self.reason_code,
            'reasonDescription': self.reason_description,
        }


@dataclass(frozen=True)
class ProgressMessage:
    """IN_PROGRESS update; can be sent any number of times."""
    status_reason: StatusReason
    timestamp: int

    @property
    def status(self) -> ExecutorStatus:
        return ExecutorStatus.IN_PROGRESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'statusReason': self.status_reason.to_dict(),
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class ResultMessage:
    """
    Terminal update (SUCCEEDED, FAILED or REJECTED).

    Attributes:
        status: Terminal status
        result: Status-specific object, e.g. {"error": "timeout"}
        status_reason: Reason code and description
        timestamp: Unix seconds

    Invariants:
        - status is terminal
    """
    status: ExecutorStatus
    result: Dict[str, Any]
    status_reason: StatusReason
    timestamp: int

    def __post_init__(self):
        if self.status not in TERMINAL_STATUSES:
            raise ValueError(
                f"ResultMessage status must be terminal, got {self.status.value}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'result': dict(self.result),
            'statusReason': self.status_reason.to_dict(),
            'timestamp': self.timestamp,
        }
