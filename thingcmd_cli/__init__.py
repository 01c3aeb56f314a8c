"""
thingcmd CLI - Interactive shell for answering AWS IoT command executions.

Usage:
    thingcmd --config config/device.yaml
    thingcmd --config config/device.yaml --thing-name sensor-02 --log-level INFO
"""

__version__ = "1.0.0"
