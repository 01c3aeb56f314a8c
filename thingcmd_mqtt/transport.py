"""
Command Transport
=================

Bounded Context: MQTT Infrastructure

paho-mqtt client for the device side of AWS IoT Commands: one connection that
subscribes to the command topics and publishes execution responses.

Design:
- Connection management (connect, disconnect) with TLS client certificates
- Subscriptions made in on_connect, so paho's automatic reconnect resubscribes
- JSON decoding of inbound payloads, handed to a single callback
- Publish failures raise PublishError (no retry, no queueing)
- Structured logging integration

Message Flow:
    AWS IoT Core → CommandTransport._on_message → on_message(topic, data)
    caller → CommandTransport.publish(topic, message) → AWS IoT Core

Threading:
    paho's network loop runs in its own thread (loop_start). on_message is
    invoked in that thread; publish() is called from the REPL thread.

Example:
    >>> transport = CommandTransport(
    ...     endpoint="xxxxxxxx-ats.iot.ap-northeast-1.amazonaws.com",
    ...     subscriptions=topics.subscriptions,
    ...     on_message=handle,
    ...     logger=create_logger("transport"),
    ...     client_id="dev1",
    ...     ca_file="certs/AmazonRootCA1.pem",
    ...     cert_file="certs/device.pem.crt",
    ...     key_file="certs/private.pem.key",
    ... )
    >>> transport.connect()
"""

import json
import threading
from typing import Any, Callable, Dict, List, Optional

import paho.mqtt.client as mqtt

from .logging import StructuredLogger, LogEvent


class PublishError(RuntimeError):
    """Raised when the MQTT client refuses a publish."""
    pass


class CommandTransport:
    """
    MQTT connection used by the command device.

    Attributes:
        endpoint: Broker hostname (AWS IoT data endpoint)
        port: Broker port (8883 for MQTT over TLS)
        subscriptions: Topic filters subscribed on every connect
        client_id: MQTT client identifier
        qos: Quality of Service for subscriptions and publishes
        logger: Structured logger instance

    Thread Safety:
        Thread-safe via paho-mqtt's loop_start() and threading.Event
    """

    def __init__(
        self,
        endpoint: str,
        subscriptions: List[str],
        on_message: Callable[[str, Any], None],
        logger: StructuredLogger,
        client_id: str,
        port: int = 8883,
        use_tls: bool = True,
        ca_file: Optional[str] = None,
        cert_file: Optional[str] = None,
        key_file: Optional[str] = None,
        qos: int = 1,
        keepalive: int = 60,
    ):
        """
        Initialize transport.

        Args:
            endpoint: Broker hostname
            subscriptions: Topic filters to subscribe to
            on_message: Callback receiving (topic, decoded JSON data)
            logger: Structured logger for observability
            client_id: Unique client identifier
            port: Broker port (default: 8883)
            use_tls: Configure TLS client certificates on connect
            ca_file: Root CA bundle path
            cert_file: Device certificate path
            key_file: Device private key path
            qos: Quality of Service (default: 1)
            keepalive: MQTT keepalive in seconds

        Design Note:
            Certificates are loaded in connect(), not here, so a transport can
            be built and exercised without touching the filesystem.
        """
        self.endpoint = endpoint
        self.port = port
        self.subscriptions = list(subscriptions)
        self.on_message = on_message
        self.logger = logger
        self.client_id = client_id
        self.use_tls = use_tls
        self.ca_file = ca_file
        self.cert_file = cert_file
        self.key_file = key_file
        self.qos = qos
        self.keepalive = keepalive

        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        # State
        self._connected = threading.Event()
        self._tls_configured = False
        self._stats_lock = threading.Lock()
        self._message_count = {'received': 0, 'published': 0}

    @property
    def broker(self) -> str:
        return f"{self.endpoint}:{self.port}"

    # ===== MQTT Callbacks (run in MQTT thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        """
        Callback when connection established.

        Subscribes to every command topic filter.
        """
        if reason_code == 0:
            for topic_filter in self.subscriptions:
                client.subscribe(topic_filter, qos=self.qos)

            self._connected.set()
            self.logger.info(
                event=LogEvent.MQTT_SUBSCRIBED,
                message="Connected to MQTT broker and subscribed to command topics",
                metadata={
                    'broker': self.broker,
                    'client_id': self.client_id,
                    'subscriptions': self.subscriptions,
                }
            )
        else:
            self._connected.clear()
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Failed to connect to broker (rc={reason_code})",
                metadata={'broker': self.broker}
            )

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None) -> None:
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from MQTT broker",
            metadata={'broker': self.broker, 'reason_code': str(reason_code)}
        )

    def _on_message(self, client, userdata, msg: mqtt.MQTTMessage) -> None:
        """
        Callback when message received.

        Decodes JSON and hands (topic, data) to the on_message callback.
        """
        try:
            data = json.loads(msg.payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self.logger.error(
                event=LogEvent.DESERIALIZATION_ERROR,
                message="Failed to decode JSON message",
                exc_info=e,
                metadata={'topic': msg.topic}
            )
            return

        with self._stats_lock:
            self._message_count['received'] += 1

        try:
            self.on_message(msg.topic, data)
        except Exception as e:
            self.logger.error(
                event=LogEvent.MESSAGE_HANDLER_ERROR,
                message="Message handler raised",
                exc_info=e,
                metadata={'topic': msg.topic}
            )

    # ===== Lifecycle =====

    def _configure_tls(self) -> None:
        if self.use_tls and not self._tls_configured:
            self.client.tls_set(
                ca_certs=self.ca_file,
                certfile=self.cert_file,
                keyfile=self.key_file,
            )
            self._tls_configured = True

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Connect to MQTT broker and start the network loop.

        Args:
            timeout: Connection timeout in seconds

        Returns:
            True if connected (and subscribed) successfully, False otherwise
        """
        try:
            self._configure_tls()
            self.client.connect(self.endpoint, self.port, keepalive=self.keepalive)
            self.client.loop_start()
        except Exception as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Failed to connect to broker",
                exc_info=e,
                metadata={'broker': self.broker}
            )
            return False

        if self._connected.wait(timeout=timeout):
            self.logger.info(
                event=LogEvent.MQTT_CONNECTED,
                message="Transport connected",
                metadata={'broker': self.broker, 'client_id': self.client_id}
            )
            return True

        self.client.loop_stop()
        self.logger.error(
            event=LogEvent.MQTT_CONNECTION_ERROR,
            message="Connection timeout",
            metadata={'broker': self.broker, 'timeout': timeout}
        )
        return False

    def disconnect(self) -> None:
        """Stop the network loop and disconnect."""
        self.client.loop_stop()
        self.client.disconnect()
        self._connected.clear()
        self.logger.info(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Transport disconnected",
            metadata=self.get_stats()
        )

    def is_connected(self) -> bool:
        """Check if currently connected to broker."""
        return self._connected.is_set()

    # ===== Publishing =====

    def publish(self, topic: str, message: Dict[str, Any]) -> None:
        """
        Publish a JSON message.

        Args:
            topic: Destination topic
            message: JSON-serializable dictionary

        Raises:
            PublishError: If the client refuses the publish (e.g. not connected)
            TypeError: If message is not JSON-serializable
        """
        payload = json.dumps(message)
        result = self.client.publish(topic, payload, qos=self.qos)

        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message=f"Publish failed (rc={result.rc})",
                metadata={'topic': topic}
            )
            raise PublishError(
                f"Failed to publish to {topic}: {mqtt.error_string(result.rc)}"
            )

        with self._stats_lock:
            self._message_count['published'] += 1

        self.logger.info(
            event=LogEvent.MQTT_PUBLISH_SUCCESS,
            message="Published message",
            metadata={'topic': topic, 'qos': self.qos}
        )

    def get_stats(self) -> Dict[str, Any]:
        """Message counts and connection status."""
        with self._stats_lock:
            return {
                'messages_received': self._message_count['received'],
                'messages_published': self._message_count['published'],
                'connected': self._connected.is_set(),
                'broker': self.broker,
            }
