"""
Configuration for the analyzer.

Settings come from an optional YAML file; everything has a default so
the tool runs without one.
"""

from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "WEBUSB_ANALYZER_CONFIG"


class AnalyzerConfig(BaseModel):
    """Transport and presentation settings."""

    timeout_ms: int = Field(default=5000, gt=0, description="Control transfer timeout")
    buffer_size: int = Field(default=512, ge=5, le=0xFFFF, description="wLength of each descriptor request")
    ms_os_20_vendor_code: int = Field(
        default=0x02, ge=0, le=0xFF,
        description="bRequest for the MS OS 2.0 set when the BOS does not advertise one")
    interface: int = Field(default=0, ge=0, description="Interface whose kernel driver may be detached")
    detach_kernel_driver: bool = Field(default=True)
    color: bool = Field(default=True, description="ANSI colours in the report")
    hex_dump: bool = Field(default=True, description="Include raw hex dumps in the report")


def load_config(path: Optional[Path] = None) -> AnalyzerConfig:
    """Load configuration from ``path``, ``$WEBUSB_ANALYZER_CONFIG``, or defaults."""
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return AnalyzerConfig()
        path = Path(env_path)

    if not path.exists():
        logger.info(f"No config file found at {path}, using defaults")
        return AnalyzerConfig()

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        config = AnalyzerConfig(**data)
        logger.info(f"Loaded configuration from {path}")
        return config
    except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
        logger.exception(f"Error loading config from {path}: {e}")
        return AnalyzerConfig()
