"""
Test CommandExecutor (Without Real Broker)
==========================================

Drives the single-execution response protocol with a recording publish
function and a fixed clock.

Usage:
    pytest test_command_executor.py
"""

import threading
from unittest.mock import MagicMock

import pytest

from thingcmd_control import CommandExecutor, NO_ACTIVE_EXECUTION, NoActiveExecution
from thingcmd_mqtt import CommandTopics, ExecutorStatus, TopicParseError, create_logger

NOW = 1760889045.75
THING = "dev1"
REQUEST_ABC = "commands/things/dev1/executions/abc123/request/json"
REQUEST_XYZ = "commands/things/dev1/executions/xyz789/request/json"
RESPONSE_ABC = "commands/things/dev1/executions/abc123/response/json"
RESPONSE_XYZ = "commands/things/dev1/executions/xyz789/response/json"


class RecordingPublisher:
    """Stands in for CommandTransport.publish."""

    def __init__(self, fail: bool = False):
        self.published = []
        self.fail = fail

    def __call__(self, topic, message):
        if self.fail:
            raise RuntimeError("broker went away")
        self.published.append((topic, message))


def make_executor(publish) -> CommandExecutor:
    return CommandExecutor(
        topics=CommandTopics(THING),
        publish=publish,
        clock=lambda: NOW,
        logger=create_logger("test_executor", level="ERROR"),
    )


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def executor(publisher):
    return make_executor(publisher)


def test_initial_state(executor):
    snapshot = executor.snapshot()
    assert executor.status == ExecutorStatus.IDLE
    assert executor.current is None
    assert executor.execution_id is None
    assert not snapshot.has_execution
    assert snapshot.payload is None


def test_reports_without_execution_publish_nothing(executor, publisher):
    """Every report method signals NO_ACTIVE_EXECUTION and stays IDLE."""
    assert executor.progress() is NO_ACTIVE_EXECUTION
    assert executor.complete() is NO_ACTIVE_EXECUTION
    assert executor.fail() is NO_ACTIVE_EXECUTION
    assert executor.reject() is NO_ACTIVE_EXECUTION

    assert publisher.published == []
    assert executor.status == ExecutorStatus.IDLE
    print("✓ No-op reports signalled NO_ACTIVE_EXECUTION")


def test_no_active_execution_warning_names_the_operation(executor):
    executor.logger.warning = MagicMock()

    executor.progress()
    executor.complete()
    executor.fail()
    executor.reject()

    operations = [
        call.kwargs["metadata"]["operation"]
        for call in executor.logger.warning.call_args_list
    ]
    assert operations == ["progress", "complete", "fail", "reject"]


def test_no_active_execution_is_falsy_singleton():
    assert not NO_ACTIVE_EXECUTION
    assert NoActiveExecution() is NO_ACTIVE_EXECUTION
    assert repr(NO_ACTIVE_EXECUTION) == "NO_ACTIVE_EXECUTION"


def test_on_request_tracks_execution(executor):
    execution = executor.on_request(REQUEST_ABC, {"action": "reboot"})

    assert execution.execution_id == "abc123"
    assert execution.payload == {"action": "reboot"}
    assert execution.response_topic == RESPONSE_ABC

    snapshot = executor.snapshot()
    assert snapshot.execution_id == "abc123"
    assert snapshot.payload == {"action": "reboot"}
    assert snapshot.status == ExecutorStatus.IDLE


def test_progress_publishes_and_keeps_execution(executor, publisher):
    executor.on_request(REQUEST_ABC, {})

    message = executor.progress()
    executor.progress("50% done")

    assert executor.status == ExecutorStatus.IN_PROGRESS
    assert executor.execution_id == "abc123"
    assert len(publisher.published) == 2

    topic, first = publisher.published[0]
    assert topic == RESPONSE_ABC
    assert first == message
    assert first == {
        "status": "IN_PROGRESS",
        "statusReason": {"reasonCode": "200", "reasonDescription": "Processing..."},
        "timestamp": 1760889045,
    }
    assert publisher.published[1][1]["statusReason"]["reasonDescription"] == "50% done"


def test_complete_publishes_once_and_clears(executor, publisher):
    executor.on_request(REQUEST_ABC, {"action": "reboot"})
    executor.progress()

    message = executor.complete("done")

    assert publisher.published[-1] == (RESPONSE_ABC, message)
    assert message == {
        "status": "SUCCEEDED",
        "result": {"message": "done"},
        "statusReason": {"reasonCode": "200", "reasonDescription": "done"},
        "timestamp": 1760889045,
    }
    assert executor.status == ExecutorStatus.IDLE
    assert executor.current is None

    before = len(publisher.published)
    assert executor.progress() is NO_ACTIVE_EXECUTION
    assert len(publisher.published) == before


def test_complete_default_result(executor, publisher):
    executor.on_request(REQUEST_ABC, {})
    executor.complete()

    _, message = publisher.published[0]
    assert message["result"] == {"message": "completed"}
    assert message["statusReason"]["reasonDescription"] == "completed"


def test_fail(executor, publisher):
    executor.on_request(REQUEST_ABC, {})

    executor.fail("timeout")

    topic, message = publisher.published[0]
    assert topic == RESPONSE_ABC
    assert message["status"] == "FAILED"
    assert message["result"] == {"error": "timeout"}
    assert message["statusReason"] == {"reasonCode": "500", "reasonDescription": "timeout"}
    assert executor.status == ExecutorStatus.IDLE
    assert executor.current is None


def test_reject_default_reason(executor, publisher):
    executor.on_request(REQUEST_ABC, {})

    executor.reject()

    _, message = publisher.published[0]
    assert message["status"] == "REJECTED"
    assert message["result"] == {"rejected_reason": "Invalid or incompatible request"}
    assert message["statusReason"]["reasonCode"] == "400"
    assert executor.current is None


def test_terminal_without_progress(executor, publisher):
    """A request can be finished straight away."""
    executor.on_request(REQUEST_ABC, {})
    executor.fail()

    assert [m["status"] for _, m in publisher.published] == ["FAILED"]
    assert publisher.published[0][1]["result"] == {"error": "Command failed"}


def test_second_request_replaces_first(executor, publisher):
    """The unfinished execution is dropped without any response."""
    executor.on_request(REQUEST_ABC, {"n": 1})
    executor.progress()
    executor.on_request(REQUEST_XYZ, {"n": 2})

    assert executor.execution_id == "xyz789"
    assert executor.snapshot().payload == {"n": 2}
    assert executor.status == ExecutorStatus.IDLE

    executor.complete()
    executor.progress()

    topics = [topic for topic, _ in publisher.published]
    assert topics == [RESPONSE_ABC, RESPONSE_XYZ]
    assert [m["status"] for _, m in publisher.published] == ["IN_PROGRESS", "SUCCEEDED"]


def test_on_request_rejects_non_request_topics(executor):
    with pytest.raises(TopicParseError):
        executor.on_request(
            "commands/things/dev1/executions/abc123/response/accepted/json", {}
        )
    with pytest.raises(TopicParseError):
        executor.on_request("commands/things/other/executions/abc123/request/json", {})

    assert executor.current is None


def test_prefixed_topics():
    publisher = RecordingPublisher()
    executor = CommandExecutor(
        topics=CommandTopics(THING, prefix="$aws"),
        publish=publisher,
        clock=lambda: NOW,
        logger=create_logger("test_executor", level="ERROR"),
    )

    executor.on_request("$aws/commands/things/dev1/executions/abc123/request/json", {})
    executor.complete()

    assert publisher.published[0][0] == "$aws/commands/things/dev1/executions/abc123/response/json"


def test_publish_failure_propagates_and_keeps_execution(executor, publisher):
    executor.on_request(REQUEST_ABC, {})
    publisher.fail = True

    with pytest.raises(RuntimeError):
        executor.complete()

    assert executor.execution_id == "abc123"

    publisher.fail = False
    executor.complete()
    assert executor.current is None


def test_request_during_terminal_publish_waits(publisher):
    """A request arriving mid-publish is applied after the reset, not lost."""
    entered = threading.Event()
    release = threading.Event()

    def blocking_publish(topic, message):
        entered.set()
        assert release.wait(timeout=5)
        publisher(topic, message)

    executor = make_executor(blocking_publish)
    executor.on_request(REQUEST_ABC, {})

    finisher = threading.Thread(target=executor.complete)
    finisher.start()
    assert entered.wait(timeout=5)

    listener = threading.Thread(
        target=executor.on_request,
        args=("commands/things/dev1/executions/b/request/json", {}),
    )
    listener.start()
    listener.join(timeout=0.2)
    assert listener.is_alive()

    release.set()
    finisher.join(timeout=5)
    listener.join(timeout=5)

    assert [topic for topic, _ in publisher.published] == [RESPONSE_ABC]
    assert executor.execution_id == "b"
    assert executor.status == ExecutorStatus.IDLE


def test_concurrent_requests_and_reports_stay_consistent(publisher):
    """Listener and foreground threads never leave a half-finished state."""
    mismatches = []

    def checking_publish(topic, message):
        # Runs with the executor lock held by the reporting thread.
        current = executor.current
        if current is None or current.response_topic != topic:
            mismatches.append(topic)
        publisher(topic, message)

    executor = make_executor(checking_publish)
    stop = threading.Event()

    def listener():
        i = 0
        while not stop.is_set():
            executor.on_request(
                f"commands/things/dev1/executions/e{i}/request/json", {"i": i}
            )
            i += 1

    thread = threading.Thread(target=listener)
    thread.start()
    try:
        for _ in range(200):
            executor.progress()
            executor.complete()
    finally:
        stop.set()
        thread.join()

    assert mismatches == []
    for topic, message in publisher.published:
        assert topic.endswith("/response/json")
        assert message["status"] in {"IN_PROGRESS", "SUCCEEDED"}

    snapshot = executor.snapshot()
    if not snapshot.has_execution:
        assert snapshot.status == ExecutorStatus.IDLE
