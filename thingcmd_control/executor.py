"""
CommandExecutor - Single-execution response protocol

Bounded Context: Device side of an AWS IoT command execution
Responsibilities:
  - Track at most one in-flight execution (latest request wins)
  - Publish IN_PROGRESS updates and one terminal result per execution
  - Signal NO_ACTIVE_EXECUTION instead of raising when nothing is tracked

Lifecycle:
  IDLE --progress()--> IN_PROGRESS --complete/fail/reject--> IDLE
  A new request replaces the tracked execution and resets status to IDLE.
  Nothing is ever published for a replaced execution.

Threading:
  on_request() runs in the MQTT network thread, report methods run in the
  REPL thread. Both hold the same lock for the whole
  read -> publish -> reset sequence.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional, Union

from thingcmd_mqtt import CommandTopics, TopicParseError
from thingcmd_mqtt.logging import StructuredLogger, LogEvent, create_logger
from thingcmd_mqtt.schemas import (
    REASON_OK,
    REASON_BAD_REQUEST,
    REASON_ERROR,
    Execution,
    ExecutorSnapshot,
    ExecutorStatus,
    ProgressMessage,
    ResultMessage,
    StatusReason,
)

PublishFn = Callable[[str, Dict[str, Any]], None]


class NoActiveExecution:
    """
    Signal returned by report methods when no execution is tracked.

    Falsy, so callers can write ``if not executor.progress(): ...``.
    Use the ``NO_ACTIVE_EXECUTION`` singleton.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_ACTIVE_EXECUTION"


NO_ACTIVE_EXECUTION = NoActiveExecution()

ReportResult = Union[Dict[str, Any], NoActiveExecution]


class CommandExecutor:
    """
    Tracks one command execution and emits its status transitions.

    Example:
        executor = CommandExecutor(
            topics=CommandTopics("dev1"),
            publish=transport.publish,
        )

        # MQTT thread
        executor.on_request(
            "commands/things/dev1/executions/abc123/request/json",
            {"action": "reboot"}
        )

        # REPL thread
        executor.progress("50% done")
        executor.complete("done")
    """

    def __init__(
        self,
        topics: CommandTopics,
        publish: PublishFn,
        clock: Callable[[], float] = time.time,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            topics: Topic templates of the device
            publish: Called as publish(topic, message_dict); errors propagate
            clock: Wall-clock source in unix seconds
            logger: Structured logger (default: "executor" component)
        """
        self.topics = topics
        self._publish = publish
        self._clock = clock
        self.logger = logger or create_logger("executor")

        self._lock = threading.RLock()
        self._status = ExecutorStatus.IDLE
        self._current: Optional[Execution] = None

    # ===== Read side =====

    @property
    def status(self) -> ExecutorStatus:
        with self._lock:
            return self._status

    @property
    def current(self) -> Optional[Execution]:
        with self._lock:
            return self._current

    @property
    def execution_id(self) -> Optional[str]:
        current = self.current
        return current.execution_id if current else None

    def snapshot(self) -> ExecutorSnapshot:
        """Status and tracked execution (None when idle), read atomically."""
        with self._lock:
            return ExecutorSnapshot(status=self._status, execution=self._current)

    # ===== Inbound =====

    def on_request(self, topic: str, payload: Any) -> Execution:
        """
        Start tracking the execution announced on a request topic.

        Any execution already tracked is dropped without a response.

        Args:
            topic: Concrete request topic
            payload: Decoded JSON request body

        Returns:
            The new Execution

        Raises:
            TopicParseError: If topic is not a request topic for this thing
        """
        parsed = self.topics.parse(topic)
        if not parsed.is_request:
            raise TopicParseError(f"Not a request topic: {topic}")

        execution = Execution(
            execution_id=parsed.execution_id,
            payload=payload,
            response_topic=self.topics.response_topic(parsed.execution_id),
        )

        with self._lock:
            self._current = execution
            self._status = ExecutorStatus.IDLE

        self.logger.info(
            event=LogEvent.COMMAND_REQUEST_RECEIVED,
            message="Execution request received",
            metadata={
                'execution_id': execution.execution_id,
                'response_topic': execution.response_topic,
            }
        )
        return execution

    # ===== Report methods =====

    def progress(self, message: str = "Processing...") -> ReportResult:
        """
        Publish an IN_PROGRESS update. Repeatable; keeps the execution.

        Returns:
            The published message, or NO_ACTIVE_EXECUTION
        """
        with self._lock:
            if self._current is None:
                return self._no_active_execution("progress")

            self._status = ExecutorStatus.IN_PROGRESS
            update = ProgressMessage(
                status_reason=StatusReason(REASON_OK, message),
                timestamp=self._now(),
            ).to_dict()
            self._publish(self._current.response_topic, update)

            self.logger.info(
                event=LogEvent.COMMAND_PROGRESS_REPORTED,
                message="Progress reported",
                metadata={
                    'execution_id': self._current.execution_id,
                    'reason_description': message,
                }
            )
            return update

    def complete(self, result: str = "completed") -> ReportResult:
        """Finish the execution as SUCCEEDED."""
        return self._finish(
            "complete", ExecutorStatus.SUCCEEDED, REASON_OK, result,
            {'message': result}
        )

    def fail(self, error_message: str = "Command failed") -> ReportResult:
        """Finish the execution as FAILED."""
        return self._finish(
            "fail", ExecutorStatus.FAILED, REASON_ERROR, error_message,
            {'error': error_message}
        )

    def reject(self, error_message: str = "Invalid or incompatible request") -> ReportResult:
        """Finish the execution as REJECTED."""
        return self._finish(
            "reject", ExecutorStatus.REJECTED, REASON_BAD_REQUEST, error_message,
            {'rejected_reason': error_message}
        )

    def _finish(
        self,
        operation: str,
        status: ExecutorStatus,
        reason_code: str,
        reason_description: str,
        result: Dict[str, Any],
    ) -> ReportResult:
        with self._lock:
            if self._current is None:
                return self._no_active_execution(operation)

            execution = self._current
            message = ResultMessage(
                status=status,
                result=result,
                status_reason=StatusReason(reason_code, reason_description),
                timestamp=self._now(),
            ).to_dict()
            # Execution stays tracked if the publish raises.
            self._publish(execution.response_topic, message)

            # Terminal status is carried by the published message; locally the
            # executor goes straight back to IDLE.
            self._current = None
            self._status = ExecutorStatus.IDLE

            self.logger.info(
                event=LogEvent.COMMAND_EXECUTION_FINISHED,
                message=f"Execution finished with {status.value}",
                metadata={
                    'execution_id': execution.execution_id,
                    'status': status.value,
                    'reason_code': reason_code,
                }
            )
            return message

    # ===== Helpers =====

    def _now(self) -> int:
        return int(self._clock())

    def _no_active_execution(self, operation: str) -> NoActiveExecution:
        self.logger.warning(
            event=LogEvent.COMMAND_NO_ACTIVE_EXECUTION,
            message="No active command",
            metadata={'operation': operation}
        )
        return NO_ACTIVE_EXECUTION
