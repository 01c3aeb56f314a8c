"""
Console output for the interactive device.

Everything a human reads in the REPL goes through ConsoleDisplay, so tests can
capture it by passing another stream.
"""

import json
import sys
from typing import Any, Optional, TextIO


class ConsoleDisplay:
    """Pretty-prints inbound and outbound MQTT traffic plus short notices."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so pytest's capsys and REPL redirection both work
        return self._stream or sys.stdout

    def _write(self, text: str) -> None:
        print(text, file=self.stream, flush=True)

    def show_inbound(self, topic: str, data: Any) -> None:
        self._write(f"\n{topic}")
        self._write(_pretty(data))

    def show_outbound(self, topic: str, message: Any) -> None:
        self._write(f"\n→ {topic}")
        self._write(_pretty(message))

    def notice(self, text: str) -> None:
        self._write(text)


def _pretty(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)
