"""
Test CommandTopics and response schemas.

Usage:
    pytest test_command_topics.py
"""

import pytest

from thingcmd_mqtt import (
    CommandTopics,
    ExecutorStatus,
    ResultMessage,
    StatusReason,
    TopicKind,
    TopicParseError,
)
from thingcmd_mqtt.schemas import TERMINAL_STATUSES, Execution, ExecutorSnapshot


def test_subscriptions_without_prefix():
    topics = CommandTopics("e8adb565")

    assert topics.subscriptions == [
        "commands/things/e8adb565/executions/+/request/json",
        "commands/things/e8adb565/executions/+/response/accepted/json",
        "commands/things/e8adb565/executions/+/response/rejected/json",
        "events/commandExecution/+/+",
    ]
    assert topics.response_topic("abc123") == \
        "commands/things/e8adb565/executions/abc123/response/json"


def test_subscriptions_with_aws_prefix():
    topics = CommandTopics("e8adb565", prefix="$aws/")

    assert topics.request_filter == "$aws/commands/things/e8adb565/executions/+/request/json"
    assert topics.event_filter == "$aws/events/commandExecution/+/+"


@pytest.mark.parametrize("suffix, kind", [
    ("request/json", TopicKind.REQUEST),
    ("response/accepted/json", TopicKind.RESPONSE_ACCEPTED),
    ("response/rejected/json", TopicKind.RESPONSE_REJECTED),
])
def test_parse_execution_topics(suffix, kind):
    topics = CommandTopics("dev1", prefix="$aws")
    topic = f"$aws/commands/things/dev1/executions/abc123/{suffix}"

    parsed = topics.parse(topic)

    assert parsed.kind == kind
    assert parsed.thing_name == "dev1"
    assert parsed.execution_id == "abc123"
    assert parsed.topic == topic
    assert parsed.is_request == (kind == TopicKind.REQUEST)


def test_parse_event_topic():
    parsed = CommandTopics("dev1").parse("events/commandExecution/cmd-42/SUCCEEDED")

    assert parsed.kind == TopicKind.EXECUTION_EVENT
    assert parsed.command_id == "cmd-42"
    assert parsed.event_type == "SUCCEEDED"
    assert parsed.execution_id is None


@pytest.mark.parametrize("topic", [
    "commands/things/other/executions/abc123/request/json",
    "commands/things/dev1/executions/abc123/request/cbor",
    "commands/things/dev1/executions//request/json",
    "commands/things/dev1/executions/+/request/json",
    "commands/things/dev1/executions/abc123/response/json",
    "commands/things/dev1/jobs/abc123/request/json",
    "events/commandExecution/cmd-42",
    "$aws/commands/things/dev1/executions/abc123/request/json",
    "",
])
def test_parse_rejects_foreign_topics(topic):
    with pytest.raises(TopicParseError):
        CommandTopics("dev1").parse(topic)


def test_parse_requires_prefix():
    with pytest.raises(TopicParseError):
        CommandTopics("dev1", prefix="$aws").parse(
            "commands/things/dev1/executions/abc123/request/json"
        )


@pytest.mark.parametrize("thing_name", ["", "a/b", "dev+", "#"])
def test_invalid_thing_name(thing_name):
    with pytest.raises(ValueError):
        CommandTopics(thing_name)


def test_response_topic_rejects_wildcards():
    with pytest.raises(TopicParseError):
        CommandTopics("dev1").response_topic("+")


def test_result_message_requires_terminal_status():
    with pytest.raises(ValueError):
        ResultMessage(
            status=ExecutorStatus.IN_PROGRESS,
            result={},
            status_reason=StatusReason("200", "x"),
            timestamp=0,
        )


@pytest.mark.parametrize("status", sorted(TERMINAL_STATUSES))
def test_result_message_accepts_terminal_statuses(status):
    message = ResultMessage(
        status=status,
        result={"message": "ok"},
        status_reason=StatusReason("200", "ok"),
        timestamp=7,
    ).to_dict()

    assert message["status"] == status.value
    assert message["statusReason"] == {"reasonCode": "200", "reasonDescription": "ok"}


def test_snapshot_properties():
    execution = Execution("abc123", {"a": 1}, "t/response/json")

    idle = ExecutorSnapshot()
    assert not idle.has_execution
    assert idle.execution_id is None
    assert idle.payload is None

    busy = ExecutorSnapshot(ExecutorStatus.IN_PROGRESS, execution)
    assert busy.has_execution
    assert busy.execution_id == "abc123"
    assert busy.payload == {"a": 1}


def test_execution_requires_id():
    with pytest.raises(ValueError):
        Execution("", {}, "t")
