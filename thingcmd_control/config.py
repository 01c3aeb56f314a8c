"""
Configuration schema for the command device.

Defines the thing identity, topic prefix and MQTT/TLS connection settings,
loaded from YAML and validated at construction.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional
import logging

import yaml


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker and TLS client certificate configuration."""

    endpoint: str = "localhost"
    port: int = 8883
    client_id: Optional[str] = None  # defaults to thing_name
    use_tls: bool = True
    cert_file: Optional[Path] = None
    key_file: Optional[Path] = None
    ca_file: Optional[Path] = None
    qos: int = 1
    keepalive: int = 60

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not self.endpoint:
            raise ValueError("endpoint cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

        if self.keepalive <= 0:
            raise ValueError(
                f"keepalive must be > 0, got {self.keepalive}"
            )

        if self.use_tls:
            for name in ("cert_file", "key_file", "ca_file"):
                path = getattr(self, name)
                if path is None:
                    raise ValueError(f"{name} is required when use_tls is enabled")
                if not Path(path).is_file():
                    raise FileNotFoundError(
                        f"{name} not found: {path}\n"
                        f"Download the device certificates or update '{name}' in config"
                    )


@dataclass(frozen=True)
class DeviceConfig:
    """
    Main configuration for a command device.

    Immutable after construction (frozen dataclass).
    """

    thing_name: str
    mqtt: MQTTConfig
    topic_prefix: str = ""  # "$aws" for AWS IoT Core
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate device configuration."""
        if not self.thing_name:
            raise ValueError("thing_name cannot be empty")

        if any(ch in self.thing_name for ch in ("/", "+", "#")):
            raise ValueError(
                f"thing_name must not contain '/', '+' or '#', got {self.thing_name!r}"
            )

        if not isinstance(self.log_level, str):
            raise ValueError(
                f"log_level must be a level name, got {self.log_level!r}"
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Invalid log_level: {self.log_level}")

    @property
    def client_id(self) -> str:
        return self.mqtt.client_id or self.thing_name

    def with_overrides(
        self,
        thing_name: Optional[str] = None,
        endpoint: Optional[str] = None,
        log_level: Optional[str] = None,
    ) -> "DeviceConfig":
        """Copy with command-line overrides applied (None leaves a field as is)."""
        mqtt_config = self.mqtt
        if endpoint:
            mqtt_config = replace(mqtt_config, endpoint=endpoint)
        return replace(
            self,
            thing_name=thing_name or self.thing_name,
            mqtt=mqtt_config,
            log_level=log_level or self.log_level,
        )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "DeviceConfig":
        """
        Load configuration from YAML file.

        Relative certificate paths are resolved against the YAML file's
        directory.

        Example YAML:
            thing_name: "e8adb565"
            topic_prefix: "$aws"
            log_level: "WARNING"

            mqtt:
              endpoint: "xxxxxxxxxxxxxx-ats.iot.ap-northeast-1.amazonaws.com"
              port: 8883
              cert_file: "certs/device.pem.crt"
              key_file: "certs/private.pem.key"
              ca_file: "certs/AmazonRootCA1.pem"
        """
        yaml_path = Path(yaml_path)
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        if "thing_name" not in data:
            raise ValueError(f"thing_name missing in {yaml_path}")

        mqtt_data = dict(data.get("mqtt") or {})
        for key in ("cert_file", "key_file", "ca_file"):
            if mqtt_data.get(key) is not None:
                path = Path(mqtt_data[key]).expanduser()
                if not path.is_absolute():
                    path = yaml_path.parent / path
                mqtt_data[key] = path

        return cls(
            thing_name=str(data["thing_name"]),
            mqtt=MQTTConfig(**mqtt_data),
            topic_prefix=data.get("topic_prefix") or "",
            log_level=str(data.get("log_level") or "INFO"),
        )
