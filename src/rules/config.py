from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = "callscan.toml"

OutputFormat = Literal["csv", "jsonl"]


class FilterConfig(BaseModel):
    """Inclusion predicates applied to every resolved call site.

    Both predicates are conjunctive; the defaults impose no restriction.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    only_std: bool = Field(
        default=False,
        description="Accept only qualified names starting with 'std::'",
    )
    name_prefix: str = Field(
        default="",
        description="Literal qualified-name prefix (empty = no restriction)",
    )


class ScanConfig(BaseModel):
    """Configuration for a callscan run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    only_std: bool = Field(
        default=False,
        description="Restrict output to the standard namespace",
    )
    name_prefix: str = Field(
        default="",
        description="Restrict output to this literal qualified-name prefix",
    )
    csv_header: bool = Field(
        default=False,
        description="Print the column header row before any data row",
    )
    include_system_headers: bool = Field(
        default=False,
        description="Report call sites expanded inside system headers",
    )
    flatten_snippets: bool = Field(
        default=False,
        description="Collapse whitespace runs (newlines included) in snippets",
    )
    output_format: OutputFormat = Field(
        default="csv",
        description="Output encoding",
    )
    build_path: str | None = Field(
        default=None,
        description="Directory containing compile_commands.json",
    )
    extra_args: list[str] = Field(
        default_factory=list,
        description="Compiler flags appended to every compile command",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns excluded when expanding source directories",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )

    @field_validator("name_prefix", mode="before")
    @classmethod
    def validate_name_prefix(cls, v: Any) -> Any:
        """Treat an explicit null prefix as no restriction."""
        if v is None:
            return ""
        return v

    def filter_config(self) -> FilterConfig:
        return FilterConfig(only_std=self.only_std, name_prefix=self.name_prefix)


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def load_config(root: Path, config_path: Path | None = None) -> ScanConfig:
    """Load configuration from callscan.toml if it exists.

    An explicit ``config_path`` must exist; the default file under ``root``
    is optional.
    """
    if config_path is None:
        config_path = Path(root) / CONFIG_FILENAME
        if not config_path.is_file():
            return ScanConfig()
    elif not config_path.is_file():
        msg = f"Config file not found: {config_path}"
        raise ConfigError(msg)

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return ScanConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "FilterConfig",
    "OutputFormat",
    "ScanConfig",
    "load_config",
]
