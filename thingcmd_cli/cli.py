"""
thingcmd CLI - Main entry point.

Starts a command device from a YAML config and opens an interactive Python
shell with ``device`` bound, so executions can be answered by hand.
"""

import argparse
import code
import sys
from pathlib import Path
from typing import Optional, Sequence

from thingcmd_control import DeviceConfig, start_device

BANNER = "thingcmd interactive shell - `device` is connected. Ctrl-D to exit."


def load_config(args: argparse.Namespace) -> DeviceConfig:
    """
    Load the YAML config and apply command-line overrides.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If the config is invalid
    """
    path = Path(args.config)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {args.config}")

    config = DeviceConfig.from_yaml(path)
    return config.with_overrides(
        thing_name=args.thing_name,
        endpoint=args.endpoint,
        log_level=args.log_level,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thingcmd",
        description="thingcmd - Answer AWS IoT command executions interactively",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start the device described in config/device.yaml
  thingcmd --config config/device.yaml

  # Same certificates, different thing
  thingcmd --config config/device.yaml --thing-name sensor-02

  # Show transport and executor logs
  thingcmd --config config/device.yaml --log-level INFO

Inside the shell:
  >>> device.help()
  >>> device.progress('50% done')
  >>> device.complete()
"""
    )

    parser.add_argument(
        "--config",
        default="config/device.yaml",
        help="Path to device config YAML (default: config/device.yaml)"
    )
    parser.add_argument(
        "--thing-name",
        default=None,
        help="Override thing_name from the config"
    )
    parser.add_argument(
        "--endpoint",
        default=None,
        help="Override the MQTT endpoint from the config"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Structured log level (default: from config)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Connection timeout in seconds (default: 10)"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
        device = start_device(config, timeout=args.timeout)
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        code.interact(banner=BANNER, local={"device": device}, exitmsg="")
    finally:
        device.disconnect()


if __name__ == '__main__':
    main()
