"""
CommandDevice - Interactive AWS IoT Commands device

Bounded Context: REPL surface for manually answering command executions
Responsibilities:
  - Wire CommandTransport (MQTT) to CommandExecutor (protocol)
  - Print every inbound message and every outbound response
  - Route request topics to the executor; everything else is display-only
  - Friendly one-line feedback for each report call

Usage (python -i or thingcmd):
    >>> from thingcmd_control import start_device
    >>> device = start_device("config/device.yaml")
    Device ready! Try: device.help()
    >>> device.progress("50% done")
    >>> device.complete()
"""

import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from thingcmd_mqtt import CommandTopics, CommandTransport, PublishError, TopicParseError
from thingcmd_mqtt.logging import LogEvent, create_logger
from thingcmd_mqtt.schemas import Execution, ExecutorSnapshot, ExecutorStatus

from .config import DeviceConfig
from .display import ConsoleDisplay
from .executor import CommandExecutor, ReportResult

HELP_TEXT = """
Basic methods:
  device.progress()                  # Report progress (default: 'Processing...')
  device.progress('50% done')        # Report progress with custom message
  device.complete()                  # Complete successfully (default: 'completed')
  device.complete('success')         # Complete with custom message
  device.fail()                      # Report failure (default: 'Command failed')
  device.fail('custom error')        # Report failure with custom message
  device.reject()                    # Reject invalid request (default message)
  device.reject('invalid format')    # Reject with custom message

Utility methods:
  device.info()                      # Show current status
  device.help()                      # Show this help
  device.disconnect()                # Close the MQTT connection"""


class CommandDevice:
    """
    One thing answering AWS IoT command executions from a REPL.

    Attributes:
        config: Device configuration
        topics: Topic templates for the thing
        transport: MQTT connection
        executor: Single-execution response protocol
        display: Console sink
    """

    def __init__(
        self,
        config: DeviceConfig,
        display: Optional[ConsoleDisplay] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.display = display or ConsoleDisplay()
        self.logger = create_logger("device", level=config.log_level)

        self.topics = CommandTopics(config.thing_name, prefix=config.topic_prefix)

        mqtt_config = config.mqtt
        self.transport = CommandTransport(
            endpoint=mqtt_config.endpoint,
            port=mqtt_config.port,
            subscriptions=self.topics.subscriptions,
            on_message=self._handle_message,
            logger=create_logger("transport", level=config.log_level),
            client_id=config.client_id,
            use_tls=mqtt_config.use_tls,
            ca_file=_as_str(mqtt_config.ca_file),
            cert_file=_as_str(mqtt_config.cert_file),
            key_file=_as_str(mqtt_config.key_file),
            qos=mqtt_config.qos,
            keepalive=mqtt_config.keepalive,
        )

        self.executor = CommandExecutor(
            topics=self.topics,
            publish=self._publish,
            clock=clock,
            logger=create_logger("executor", level=config.log_level),
        )

    def __repr__(self) -> str:
        return (
            f"<CommandDevice thing={self.config.thing_name!r} "
            f"status={self.status.value} execution_id={self.execution_id!r}>"
        )

    # ===== Connection =====

    def connect(self, timeout: float = 10.0) -> None:
        """
        Connect and subscribe to the command topics.

        Raises:
            ConnectionError: If the broker cannot be reached in time
        """
        if not self.transport.connect(timeout=timeout):
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {self.transport.broker}"
            )

    def disconnect(self) -> None:
        self.transport.disconnect()

    # ===== MQTT plumbing =====

    def _handle_message(self, topic: str, data: Any) -> None:
        """Inbound handler, runs in the MQTT network thread."""
        self.display.show_inbound(topic, data)

        try:
            parsed = self.topics.parse(topic)
        except TopicParseError as e:
            self.logger.warning(
                event=LogEvent.TOPIC_PARSE_ERROR,
                message=str(e),
                metadata={'topic': topic}
            )
            return

        if parsed.is_request:
            self.executor.on_request(topic, data)

    def _publish(self, topic: str, message: Dict[str, Any]) -> None:
        self.display.show_outbound(topic, message)
        try:
            self.transport.publish(topic, message)
        except PublishError as e:
            self.logger.error(
                event=LogEvent.MQTT_PUBLISH_ERROR,
                message="Failed to publish response",
                exc_info=e,
                metadata={'topic': topic, 'status': message.get('status')}
            )
            raise

    # ===== Report methods =====

    def progress(self, message_text: str = "Processing...") -> ReportResult:
        outcome = self.executor.progress(message_text)
        self._feedback(outcome, f"Progress: {message_text}")
        return outcome

    def complete(self, result: str = "completed") -> ReportResult:
        outcome = self.executor.complete(result)
        self._feedback(outcome, "Command completed successfully")
        return outcome

    def fail(self, error_message: str = "Command failed") -> ReportResult:
        outcome = self.executor.fail(error_message)
        self._feedback(outcome, f"Command failed: {error_message}")
        return outcome

    def reject(self, error_message: str = "Invalid or incompatible request") -> ReportResult:
        outcome = self.executor.reject(error_message)
        self._feedback(outcome, f"Command rejected: {error_message}")
        return outcome

    def _feedback(self, outcome: ReportResult, success_text: str) -> None:
        self.display.notice(success_text if outcome else "No active command")

    # ===== Introspection =====

    @property
    def status(self) -> ExecutorStatus:
        return self.executor.status

    @property
    def execution_id(self) -> Optional[str]:
        return self.executor.execution_id

    @property
    def current_command(self) -> Optional[Execution]:
        return self.executor.current

    def snapshot(self) -> ExecutorSnapshot:
        return self.executor.snapshot()

    def info(self) -> None:
        """Print status and the tracked execution."""
        snapshot = self.executor.snapshot()
        self.display.notice(f"\nStatus: {snapshot.status.value}")
        if snapshot.has_execution:
            self.display.notice(f"ID: {snapshot.execution_id}")
            self.display.notice(f"Payload: {snapshot.payload}")
        else:
            self.display.notice("No active command")

    def help(self) -> None:
        self.display.notice(HELP_TEXT)


def _as_str(path: Optional[Path]) -> Optional[str]:
    return str(path) if path is not None else None


def start_device(
    config: Union[DeviceConfig, str, Path],
    timeout: float = 10.0,
    display: Optional[ConsoleDisplay] = None,
) -> CommandDevice:
    """
    Build, connect and announce a device.

    Args:
        config: DeviceConfig or path to a YAML config file
        timeout: Connection timeout in seconds
        display: Console sink (default: stdout)

    Returns:
        Connected CommandDevice

    Raises:
        ConnectionError: If the broker cannot be reached
    """
    if not isinstance(config, DeviceConfig):
        config = DeviceConfig.from_yaml(Path(config))

    device = CommandDevice(config, display=display)
    device.connect(timeout=timeout)
    device.display.notice("\nDevice ready! Try: device.help()")
    return device
