"""Pydantic model for the installed ``/etc/stg/config.toml``."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GraphicsOptions(BaseModel):
    enable_animations: bool = True
    fps_limit: int = Field(default=60, ge=1)

    model_config = ConfigDict(extra="forbid")


class TerminalOptions(BaseModel):
    clear_on_exit: bool = True
    preserve_cursor: bool = False

    model_config = ConfigDict(extra="forbid")


class StgConfig(BaseModel):
    version: str = "1.0"
    default_width: int = Field(default=80, ge=1)
    default_height: int = Field(default=24, ge=1)
    color_support: bool = True
    unicode_support: bool = True
    graphics: GraphicsOptions = Field(default_factory=GraphicsOptions)
    terminal: TerminalOptions = Field(default_factory=TerminalOptions)

    model_config = ConfigDict(extra="forbid")

    def to_toml(self) -> str:
        """Render as TOML in the layout the install scripts write."""

        lines = [
            "# STG configuration - Standard Terminal Graphics",
            f'version = "{self.version}"',
            f"default_width = {self.default_width}",
            f"default_height = {self.default_height}",
            f"color_support = {_toml_bool(self.color_support)}",
            f"unicode_support = {_toml_bool(self.unicode_support)}",
            "",
            "[graphics]",
            f"enable_animations = {_toml_bool(self.graphics.enable_animations)}",
            f"fps_limit = {self.graphics.fps_limit}",
            "",
            "[terminal]",
            f"clear_on_exit = {_toml_bool(self.terminal.clear_on_exit)}",
            f"preserve_cursor = {_toml_bool(self.terminal.preserve_cursor)}",
        ]
        return "\n".join(lines) + "\n"


def config_paths(short_name: str) -> dict[str, str]:
    """Install-time locations of the config file, its pristine copy and the removal backup."""

    config_dir = f"/etc/{short_name}"
    config_path = f"{config_dir}/config.toml"
    return {
        "config_dir": config_dir,
        "config_path": config_path,
        "config_default_path": f"{config_path}.default",
        "config_backup_path": f"/tmp/{short_name}-config-backup.toml",
    }


def _toml_bool(value: bool) -> str:
    return "true" if value else "false"
