"""
thingcmd MQTT Communication Package
===================================

Bounded Context: AWS IoT Commands wire protocol

Device-side MQTT plumbing for AWS IoT "Commands": topic conventions, the
response message shapes, and the paho-mqtt transport.

Architecture:
- topics.py: Topic filters, response topics and the inbound topic parser
- schemas/: Immutable execution and response structures
- transport.py: paho-mqtt connection (subscribe, decode, publish)
- logging/: Structured JSON logging for observability

Public API
----------
Topics:
    CommandTopics, ParsedTopic, TopicKind, TopicParseError

Schemas:
    ExecutorStatus, Execution, ExecutorSnapshot
    StatusReason, ProgressMessage, ResultMessage

Transport:
    CommandTransport, PublishError

Logging:
    LogEvent, StructuredLogger, create_logger

Example:
    >>> from thingcmd_mqtt import CommandTopics
    >>> topics = CommandTopics("e8adb565", prefix="$aws")
    >>> topics.subscriptions[0]
    '$aws/commands/things/e8adb565/executions/+/request/json'
"""

from .topics import CommandTopics, ParsedTopic, TopicKind, TopicParseError
from .schemas import (
    ExecutorStatus,
    Execution,
    ExecutorSnapshot,
    StatusReason,
    ProgressMessage,
    ResultMessage,
)
from .transport import CommandTransport, PublishError
from .logging import LogEvent, StructuredLogger, create_logger

__all__ = [
    # Topics
    'CommandTopics',
    'ParsedTopic',
    'TopicKind',
    'TopicParseError',
    # Schemas
    'ExecutorStatus',
    'Execution',
    'ExecutorSnapshot',
    'StatusReason',
    'ProgressMessage',
    'ResultMessage',
    # Transport
    'CommandTransport',
    'PublishError',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]

__version__ = "1.0.0"
