"""Configuration for messaging sinks."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StdoutSinkConfig:
    """Configuration for stdout notifications."""
    format: str = "pretty"  # json, pretty
    include_timestamp: bool = True


@dataclass(frozen=True)
class FileSinkConfig:
    """Configuration for JSON-lines notification files."""
    output_path: str
    append_mode: bool = True
    max_file_size_mb: Optional[int] = None
    rotation_enabled: bool = False
    create_dirs: bool = True
