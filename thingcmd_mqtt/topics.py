"""
Command Topics
==============

Bounded Context: AWS IoT Commands topic convention

Builds the subscription filters and response topics for one thing, and parses
inbound topics into typed results.

Topic layout (D = thing name, E = execution id):
    {prefix}/commands/things/D/executions/+/request/json
    {prefix}/commands/things/D/executions/+/response/accepted/json
    {prefix}/commands/things/D/executions/+/response/rejected/json
    {prefix}/events/commandExecution/+/+
    {prefix}/commands/things/D/executions/E/response/json   (publish)

AWS IoT Core reserves the ``$aws`` prefix for these topics; the prefix is
empty by default and set from configuration.

Example:
    >>> topics = CommandTopics("dev1", prefix="$aws")
    >>> topics.response_topic("abc123")
    '$aws/commands/things/dev1/executions/abc123/response/json'
    >>> topics.parse("$aws/commands/things/dev1/executions/abc123/request/json").kind
    <TopicKind.REQUEST: 'request'>
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


MQTT_WILDCARDS = {"+", "#"}


class TopicParseError(ValueError):
    """Raised when a topic is not one of this thing's command topics."""
    pass


class TopicKind(str, Enum):
    """Kinds of inbound command topics."""
    REQUEST = "request"
    RESPONSE_ACCEPTED = "response_accepted"
    RESPONSE_REJECTED = "response_rejected"
    EXECUTION_EVENT = "execution_event"


# Trailing segments after .../executions/{E}/
_EXECUTION_SUFFIXES = {
    ("request", "json"): TopicKind.REQUEST,
    ("response", "accepted", "json"): TopicKind.RESPONSE_ACCEPTED,
    ("response", "rejected", "json"): TopicKind.RESPONSE_REJECTED,
}


@dataclass(frozen=True)
class ParsedTopic:
    """
    Typed result of parsing an inbound topic.

    Attributes:
        kind: Which command topic this is
        topic: The original topic string
        thing_name: Thing the topic is addressed to (None for events)
        execution_id: Execution id (execution topics only)
        command_id: Command id (event topics only)
        event_type: Event name (event topics only)
    """
    kind: TopicKind
    topic: str
    thing_name: Optional[str] = None
    execution_id: Optional[str] = None
    command_id: Optional[str] = None
    event_type: Optional[str] = None

    @property
    def is_request(self) -> bool:
        return self.kind == TopicKind.REQUEST


class CommandTopics:
    """
    Topic templates for a single thing.

    Attributes:
        thing_name: Device identifier used in every topic
        prefix: Leading topic level(s), e.g. "$aws" (may be empty)
    """

    def __init__(self, thing_name: str, prefix: str = ""):
        if not thing_name:
            raise ValueError("thing_name cannot be empty")
        if any(ch in thing_name for ch in ("/", "+", "#")):
            raise ValueError(
                f"thing_name must not contain '/', '+' or '#', got {thing_name!r}"
            )

        self.thing_name = thing_name
        self.prefix = prefix.strip("/")
        self._prefix_parts: Tuple[str, ...] = (
            tuple(self.prefix.split("/")) if self.prefix else ()
        )

    def _join(self, *levels: str) -> str:
        return "/".join(self._prefix_parts + levels)

    @property
    def executions_base(self) -> str:
        return self._join("commands", "things", self.thing_name, "executions")

    @property
    def request_filter(self) -> str:
        return f"{self.executions_base}/+/request/json"

    @property
    def accepted_filter(self) -> str:
        return f"{self.executions_base}/+/response/accepted/json"

    @property
    def rejected_filter(self) -> str:
        return f"{self.executions_base}/+/response/rejected/json"

    @property
    def event_filter(self) -> str:
        return self._join("events", "commandExecution", "+", "+")

    @property
    def subscriptions(self) -> List[str]:
        """All topic filters the device listens on."""
        return [
            self.request_filter,
            self.accepted_filter,
            self.rejected_filter,
            self.event_filter,
        ]

    def response_topic(self, execution_id: str) -> str:
        """Publish destination for status updates of one execution."""
        _check_level(execution_id, "execution_id")
        return f"{self.executions_base}/{execution_id}/response/json"

    def parse(self, topic: str) -> ParsedTopic:
        """
        Parse an inbound topic.

        Args:
            topic: Concrete topic a message arrived on

        Returns:
            ParsedTopic

        Raises:
            TopicParseError: If the topic is not one of this thing's command
                topics (wrong prefix, other thing, unknown suffix, empty level)
        """
        parts = topic.split("/")
        n = len(self._prefix_parts)
        if tuple(parts[:n]) != self._prefix_parts:
            raise TopicParseError(f"Unexpected topic prefix: {topic}")
        levels = parts[n:]

        if levels[:2] == ["events", "commandExecution"]:
            if len(levels) != 4:
                raise TopicParseError(f"Malformed command event topic: {topic}")
            command_id, event_type = levels[2], levels[3]
            _check_level(command_id, "command_id", topic)
            _check_level(event_type, "event_type", topic)
            return ParsedTopic(
                kind=TopicKind.EXECUTION_EVENT,
                topic=topic,
                command_id=command_id,
                event_type=event_type,
            )

        if levels[:2] != ["commands", "things"] or len(levels) < 6 \
                or levels[3] != "executions":
            raise TopicParseError(f"Not a command execution topic: {topic}")

        thing_name, execution_id = levels[2], levels[4]
        if thing_name != self.thing_name:
            raise TopicParseError(
                f"Topic addressed to thing {thing_name!r}, expected "
                f"{self.thing_name!r}: {topic}"
            )
        _check_level(execution_id, "execution_id", topic)

        kind = _EXECUTION_SUFFIXES.get(tuple(levels[5:]))
        if kind is None:
            raise TopicParseError(f"Unknown execution topic suffix: {topic}")

        return ParsedTopic(
            kind=kind,
            topic=topic,
            thing_name=thing_name,
            execution_id=execution_id,
        )


def _check_level(value: str, name: str, topic: Optional[str] = None) -> None:
    if not value or value in MQTT_WILDCARDS or "/" in value:
        where = f" in {topic}" if topic else ""
        raise TopicParseError(f"Invalid {name} {value!r}{where}")
