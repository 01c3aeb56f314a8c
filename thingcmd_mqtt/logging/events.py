"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for the command device's structured logs.

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, command, error

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, metadata.execution_id
    | filter event = "command.execution.finished"
    | stats count() by metadata.status
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: MQTT broker interactions
    - command.*: Command execution lifecycle
    - error.*: Error conditions
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost or closed."""

    MQTT_SUBSCRIBED = "mqtt.subscribed"
    """Command topics subscribed."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully handed to the broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication refused by the client."""

    # ========== Command Events ==========
    COMMAND_REQUEST_RECEIVED = "command.request.received"
    """Execution request received on the request topic."""

    COMMAND_PROGRESS_REPORTED = "command.progress.reported"
    """IN_PROGRESS status published for the active execution."""

    COMMAND_EXECUTION_FINISHED = "command.execution.finished"
    """Terminal status published and execution cleared."""

    COMMAND_NO_ACTIVE_EXECUTION = "command.no_active_execution"
    """Report method called while no execution is tracked."""

    # ========== Error Events ==========
    DESERIALIZATION_ERROR = "error.deserialization"
    """Failed to decode an inbound JSON payload."""

    MESSAGE_HANDLER_ERROR = "error.message_handler"
    """Inbound message decoded but its handler raised."""

    TOPIC_PARSE_ERROR = "error.topic_parse"
    """Inbound topic does not match any command topic."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Response publish raised; the error is passed on to the caller."""
