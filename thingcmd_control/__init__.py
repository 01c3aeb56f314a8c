"""
thingcmd_control - Command side of the device

Bounded Context: Answering AWS IoT command executions
Responsibilities:
  - Track the single in-flight execution (CommandExecutor)
  - Publish progress and terminal responses
  - Interactive REPL wrapper (CommandDevice, start_device)
  - YAML configuration (DeviceConfig, MQTTConfig)

Design Philosophy:
  - One execution at a time; the latest request wins
  - Absence is a value (NO_ACTIVE_EXECUTION), not an exception
  - Thread-safe (executor serializes listener and REPL under one lock)
"""

from .config import DeviceConfig, MQTTConfig
from .executor import CommandExecutor, NoActiveExecution, NO_ACTIVE_EXECUTION
from .display import ConsoleDisplay
from .device import CommandDevice, start_device

__all__ = [
    "DeviceConfig",
    "MQTTConfig",
    "CommandExecutor",
    "NoActiveExecution",
    "NO_ACTIVE_EXECUTION",
    "ConsoleDisplay",
    "CommandDevice",
    "start_device",
]
