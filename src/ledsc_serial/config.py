"""Configuration for the LEDSC command-line tool."""

import argparse
import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from ledsc_serial.protocol import POLL_INTERVAL, RECEIVE_TIMEOUT

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class LedscConfig(BaseModel):
    """Configuration for talking to an LEDSC controller."""

    # Serial
    port: str = ""  # empty = auto-detect
    timeout: float = Field(default=RECEIVE_TIMEOUT, gt=0)
    poll_interval: float = Field(default=POLL_INTERVAL, gt=0)

    # Protocol
    strict_checksum: bool = False

    # Logging
    log_level: str = "info"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper())

    @property
    def port_or_none(self) -> Optional[str]:
        return self.port or None


def _section(data: dict, name: str) -> dict:
    """Return a config section, which must be a mapping when present."""
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping, got {type(section).__name__}")
    return section


def load_config(path: Path) -> LedscConfig:
    """Load configuration from YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping, got {type(data).__name__}")

    # Map nested config to flat
    config_dict: dict[str, Any] = {}

    serial_section = _section(data, "serial")
    for key in ("port", "timeout", "poll_interval"):
        if key in serial_section:
            config_dict[key] = serial_section[key]

    protocol = _section(data, "protocol")
    if "strict_checksum" in protocol:
        config_dict["strict_checksum"] = protocol["strict_checksum"]

    logging_section = _section(data, "logging")
    if "level" in logging_section:
        config_dict["log_level"] = logging_section["level"]

    return LedscConfig(**config_dict)


def config_from_args(
    args: argparse.Namespace, base: Optional[LedscConfig] = None
) -> LedscConfig:
    """
    Create configuration from command line arguments.

    Options left unset on the command line keep the value from ``base``
    (a loaded config file), or the defaults when there is none.
    """
    overrides: dict[str, Any] = {}

    if getattr(args, "port", None):
        overrides["port"] = args.port
    if getattr(args, "timeout", None) is not None:
        overrides["timeout"] = args.timeout
    if getattr(args, "strict_checksum", False):
        overrides["strict_checksum"] = True
    if getattr(args, "verbose", False):
        overrides["log_level"] = "debug"
    elif getattr(args, "log_level", None):
        overrides["log_level"] = args.log_level

    data = base.model_dump() if base is not None else {}
    data.update(overrides)
    return LedscConfig(**data)
