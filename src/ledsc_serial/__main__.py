"""
LEDSC Serial Protocol - Command Line Interface

Usage:
    python -m ledsc_serial list-ports
    python -m ledsc_serial detect
    python -m ledsc_serial --port /dev/ttyACM0 effect comet
    python -m ledsc_serial color ff8000
    python -m ledsc_serial brightness 0x5C
    python -m ledsc_serial encode brightness 92
    python -m ledsc_serial decode "[CSB:0]F1F5"
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml
from rich.console import Console
from rich.table import Table

from ledsc_serial.color import Color24
from ledsc_serial.config import LOG_LEVELS, LedscConfig, config_from_args, load_config
from ledsc_serial.device import LedscDevice
from ledsc_serial.exceptions import LedscError
from ledsc_serial.protocol import decode, encode
from ledsc_serial.transport import discover, list_ports
from ledsc_serial.types import (
    Command,
    Effect,
    ErrorCode,
    FailedLocal,
    FireColorPallet,
    ResponsePacket,
    Success,
)
from ledsc_serial.versions import BASELINE_POLICY, policy_for_version_string

console = Console()

COMMAND_NAMES = (
    "none",
    "version",
    "status",
    "reset",
    "bootloader",
    "debug",
    "effect",
    "color",
    "brightness",
    "pallet",
)


def parse_int(text: str) -> int:
    """Parse a decimal or 0x-prefixed integer."""
    return int(text, 0)


def parse_on_off(text: str) -> bool:
    value = text.lower()
    if value in ("on", "1", "true", "yes"):
        return True
    if value in ("off", "0", "false", "no"):
        return False
    raise ValueError(f"Expected on/off, got {text!r}")


def build_command(name: str, value: Optional[str] = None) -> Command:
    """Build a command from its CLI name and optional textual value."""
    simple = {
        "none": Command.none,
        "version": Command.print_version,
        "status": Command.get_status,
        "reset": Command.full_reset,
        "bootloader": Command.enter_bootloader,
    }
    if name in simple:
        return simple[name]()

    if value is None:
        raise ValueError(f"Command '{name}' requires a value")

    if name == "debug":
        return Command.set_debugging(parse_on_off(value))
    if name == "effect":
        return Command.set_effect(Effect(value.lower()))
    if name == "color":
        return Command.set_color(Color24.from_hex(value))
    if name == "brightness":
        return Command.set_brightness(parse_int(value))
    if name == "pallet":
        return Command.set_fire_color_pallet(FireColorPallet(value.lower()))

    raise ValueError(f"Unknown command: {name}")


def packet_table(packet: ResponsePacket, title: str = "Response") -> Table:
    """Render a response packet as a table."""
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Command", packet.command or "-")
    table.add_row("Status", f"{packet.status} ({ErrorCode.describe(packet.status)})")
    for i, param in enumerate(packet.parameters[1:], start=1):
        table.add_row(f"Param {i}", param)
    table.add_row("CRC in", f"0x{packet.crc16_in:04X}")
    table.add_row("CRC calc", f"0x{packet.crc16_calc:04X}")
    table.add_row("Checksum", "ok" if packet.checksum_ok else "MISMATCH")
    return table


# =========================================================================
# Offline commands
# =========================================================================

def cmd_list_ports(config: LedscConfig, args: argparse.Namespace):
    """List serial ports."""
    ports = list_ports()
    if not ports:
        print("No serial ports found")
        return

    table = Table(title="Serial Ports")
    table.add_column("Device", style="cyan")
    table.add_column("Description")
    table.add_column("HWID")
    for port in ports:
        table.add_row(port.device, port.description, port.hwid)
    console.print(table)


def cmd_detect(config: LedscConfig, args: argparse.Namespace):
    """Find the port hosting a controller."""
    port = discover(config.timeout, config.poll_interval)
    print(f"Found controller on {port.device}")


def cmd_encode(config: LedscConfig, args: argparse.Namespace):
    """Print the frame for a command without sending it."""
    command = build_command(args.name, args.value)
    policy = policy_for_version_string(args.firmware)
    print(repr(encode(command, policy)))


def cmd_decode(config: LedscConfig, args: argparse.Namespace) -> int:
    """Parse a response frame."""
    option = decode(args.response)
    if isinstance(option, FailedLocal):
        print(f"Parse failed: {option.error_code.name} ({int(option.error_code)})")
        return 1

    title = "Success" if isinstance(option, Success) else f"Failed: {option.error_name}"
    console.print(packet_table(option.packet, title=title))
    return 0 if option.ok else 1


# =========================================================================
# Device commands
# =========================================================================

def cmd_version(device: LedscDevice, args: argparse.Namespace):
    """Show firmware version."""
    version = device.version
    print(f"Port: {device.port}")
    print(f"Firmware: {version}")
    print(f"Classification: {version.kind.value}")
    print(f"Policy: {device.policy.version_code}")


def cmd_status(device: LedscDevice, args: argparse.Namespace):
    """Show controller status."""
    console.print(packet_table(device.get_status(), title="Status"))


def cmd_effect(device: LedscDevice, args: argparse.Namespace):
    """Select an effect."""
    device.set_effect(Effect(args.effect))
    print(f"Effect set to {args.effect}")


def cmd_color(device: LedscDevice, args: argparse.Namespace):
    """Set the solid color."""
    color = Color24.from_hex(args.color)
    device.set_color(color)
    print(f"Color set to {color}")


def cmd_brightness(device: LedscDevice, args: argparse.Namespace):
    """Set brightness."""
    if args.percent:
        device.set_brightness_percent(float(args.value))
    else:
        device.set_brightness(parse_int(args.value))
    print(f"Brightness set to {args.value}{'%' if args.percent else ''}")


def cmd_pallet(device: LedscDevice, args: argparse.Namespace):
    """Select the fire color pallet."""
    device.set_fire_color_pallet(FireColorPallet(args.pallet))
    print(f"Fire pallet set to {args.pallet}")


def cmd_debug(device: LedscDevice, args: argparse.Namespace):
    """Toggle firmware debug output."""
    enabled = parse_on_off(args.state)
    device.set_debugging(enabled)
    print(f"Debugging {'enabled' if enabled else 'disabled'}")


def cmd_reset(device: LedscDevice, args: argparse.Namespace):
    """Reset the controller."""
    device.full_reset()
    print("Reset sent")


def cmd_bootloader(device: LedscDevice, args: argparse.Namespace):
    """Reboot the controller into its bootloader."""
    device.enter_bootloader()
    print("Bootloader requested")


def _support_note(command: Command) -> str:
    if BASELINE_POLICY.is_command_supported(command):
        return ""
    return f" (rejected by {BASELINE_POLICY.version_code} firmware)"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledsc",
        description="LEDSC serial LED controller CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", "-c", type=Path, help="Path to YAML configuration file")
    parser.add_argument("--port", "-p", help="Serial port (default: auto-detect)")
    parser.add_argument("--timeout", "-t", type=float, help="Response timeout (seconds)")
    parser.add_argument(
        "--strict-checksum",
        action="store_true",
        help="Reject responses whose checksum does not match",
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="Logging level")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Command")

    subparsers.add_parser("list-ports", help="List serial ports")
    subparsers.add_parser("detect", help="Find the controller port")
    subparsers.add_parser("version", help="Show firmware version")
    subparsers.add_parser("status", help="Show controller status")

    p = subparsers.add_parser("effect", help="Select an effect")
    p.add_argument("effect", choices=[e.value for e in Effect], help="Effect name")

    p = subparsers.add_parser("color", help="Set the solid color")
    p.add_argument("color", help="Color as RRGGBB hex (e.g. ff8000, #ff8000)")

    p = subparsers.add_parser("brightness", help="Set brightness")
    p.add_argument("value", help="Brightness (0-255, decimal or 0x hex)")
    p.add_argument("--percent", action="store_true", help="Treat value as 0-100 percent")

    p = subparsers.add_parser("pallet", help="Select the fire color pallet")
    p.add_argument("pallet", choices=[c.value for c in FireColorPallet], help="Pallet name")

    p = subparsers.add_parser("debug", help="Toggle firmware debugging")
    p.add_argument("state", choices=["on", "off"], help="Debugging state")

    subparsers.add_parser(
        "reset", help="Reset the controller" + _support_note(Command.full_reset())
    )
    subparsers.add_parser(
        "bootloader", help="Enter the bootloader" + _support_note(Command.enter_bootloader())
    )

    p = subparsers.add_parser("encode", help="Print a command frame without sending it")
    p.add_argument("name", choices=COMMAND_NAMES, help="Command name")
    p.add_argument("value", nargs="?", help="Command value")
    p.add_argument("--firmware", help="Firmware version string to encode for")

    p = subparsers.add_parser("decode", help="Parse a response frame")
    p.add_argument("response", help="Response text, e.g. '[CSB:0]F1F5'")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Load configuration
    if args.config and not args.config.exists():
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return 1
    try:
        base = load_config(args.config) if args.config else None
        config = config_from_args(args, base)
    except (ValueError, yaml.YAMLError) as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 1

    # Set up logging
    logging.basicConfig(
        level=config.logging_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Map commands to handlers
    offline_handlers = {
        "list-ports": cmd_list_ports,
        "detect": cmd_detect,
        "encode": cmd_encode,
        "decode": cmd_decode,
    }
    device_handlers = {
        "version": cmd_version,
        "status": cmd_status,
        "effect": cmd_effect,
        "color": cmd_color,
        "brightness": cmd_brightness,
        "pallet": cmd_pallet,
        "debug": cmd_debug,
        "reset": cmd_reset,
        "bootloader": cmd_bootloader,
    }

    try:
        if args.command in offline_handlers:
            return offline_handlers[args.command](config, args) or 0

        device = LedscDevice(
            config.port_or_none,
            timeout=config.timeout,
            poll_interval=config.poll_interval,
            strict_checksum=config.strict_checksum,
        )
        with device:
            device_handlers[args.command](device, args)
    except LedscError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 0

    return 0


if __name__ == "__main__":
    sys.exit(main())
