"""
Structured Logging for thingcmd
===============================

Bounded Context: Observability

JSON-structured logging for the command device.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from thingcmd_mqtt.logging import StructuredLogger, LogEvent
    >>> logger = StructuredLogger(component="executor")
    >>> logger.warning(
    ...     event=LogEvent.COMMAND_NO_ACTIVE_EXECUTION,
    ...     message="No active command",
    ...     metadata={'operation': 'progress'}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
