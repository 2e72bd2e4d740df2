# arch_optimizer/config/models.py

import tomlkit
import typer
from pydantic import BaseModel, Field, conlist, model_validator
from typing import Dict, List, Literal, Optional
from pathlib import Path

from arch_optimizer.registry import ActionId

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.toml"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# --- 1. Sub-Models ---

# Chaotic-AUR repository
class ChaoticRepo(BaseModel):
    """Signing key, bootstrap packages and pacman.conf section of the Chaotic-AUR."""
    key_id: str
    keyserver: str = "keyserver.ubuntu.com"
    keyring_package: str = "chaotic-keyring"
    bootstrap_urls: conlist(str, min_length=1)
    section: str = "[chaotic-aur]"
    include: str = "Include = /etc/pacman.d/chaotic-mirrorlist"

# pacman
class Pacman(BaseModel):
    conf: Path = Path("/etc/pacman.conf")

# Driver selection
class Drivers(BaseModel):
    """Hardware auto-detection preferences."""
    nvidia_open_source: bool = False

# Performance tweaks
class Performance(BaseModel):
    """zram, CPU governor and periodic SSD trim."""
    zram_package: str = "zramswap"
    zram_service: str = "zramswap.service"
    cpupower_package: str = "cpupower"
    cpupower_config: Path = Path("/etc/default/cpupower")
    cpupower_service: str = "cpupower.service"
    governor: str = "performance"
    timers: List[str] = Field(default_factory=lambda: ["fstrim.timer"])

# A single KDE configuration key
class KdeSetting(BaseModel):
    file: str
    group: str
    key: str
    value: str

# Plasma tweaks
class Plasma(BaseModel):
    """KDE settings written with kwriteconfig (first available tool wins)."""
    tools: conlist(str, min_length=1) = Field(default_factory=lambda: ["kwriteconfig6", "kwriteconfig5"])
    settings: List[KdeSetting] = Field(default_factory=list)

# Confirmation policy
class Confirm(BaseModel):
    non_interactive: Literal["decline", "accept", "abort"] = "decline"

# Executor settings
class ExecutorSettings(BaseModel):
    timeout: Optional[float] = Field(None, gt=0)

# Logging
class Logging(BaseModel):
    directory: str = "logs"
    file_name: str = "arch-optimizer.log"
    file_level: LogLevel = "DEBUG"
    console_level: LogLevel = "INFO"

# Auto-pilot
class AutoPilot(BaseModel):
    sequence: conlist(ActionId, min_length=1)

# --- 2. Top-Level Root Model ---

# Action ids that run a selector instead of installing a package list
SELECTOR_ACTIONS = {ActionId.DRIVERS_AUTO}
# Action ids whose operation is not a plain package install
CUSTOM_ACTIONS = {ActionId.SYSTEM_UPDATE, ActionId.CHAOTIC_AUR, ActionId.PERFORMANCE, ActionId.PLASMA_TWEAKS}


class OptimizerConfig(BaseModel):
    """The top-level configuration model representing the entire TOML file."""

    packages: Dict[ActionId, List[str]]
    groups: Dict[str, Dict[ActionId, conlist(str, min_length=1)]] = Field(default_factory=dict)
    chaotic: ChaoticRepo
    pacman: Pacman = Field(default_factory=Pacman)
    drivers: Drivers = Field(default_factory=Drivers)
    performance: Performance = Field(default_factory=Performance)
    plasma: Plasma = Field(default_factory=Plasma)
    confirm: Confirm = Field(default_factory=Confirm)
    executor: ExecutorSettings = Field(default_factory=ExecutorSettings)
    logging: Logging = Field(default_factory=Logging)
    autopilot: AutoPilot

    @model_validator(mode="after")
    def _check_references(self) -> "OptimizerConfig":
        for action_id in ActionId:
            if action_id in SELECTOR_ACTIONS or action_id in CUSTOM_ACTIONS:
                continue
            if not self.packages.get(action_id):
                raise ValueError(f"packages.{action_id.value} must list at least one package")

        seen = {}
        for group, members in self.groups.items():
            for member in members:
                if member in SELECTOR_ACTIONS:
                    raise ValueError(f"groups.{group}: '{member.value}' cannot join an exclusive group")
                if member in seen:
                    raise ValueError(f"'{member.value}' is a member of both '{seen[member]}' and '{group}'")
                seen[member] = group
        return self

    def group_of(self, action_id: ActionId) -> Optional[str]:
        for group, members in self.groups.items():
            if action_id in members:
                return group
        return None

    def markers_of(self, action_id: ActionId) -> List[str]:
        group = self.group_of(action_id)
        return list(self.groups[group][action_id]) if group else []

    @classmethod
    def load_config_from_file(cls, path: Path) -> 'OptimizerConfig':
        """Loads and validates a TOML file against the Pydantic schema."""
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ValueError(f"Error reading configuration file: {e}")

        try:
            data = tomlkit.parse(content).unwrap()
        except Exception as e:
            raise ValueError(f"Invalid TOML format in file: {e}")

        # The cls(**data) call instantiates the model and runs validation
        return cls(**data)

    @classmethod
    def load_default(cls) -> 'OptimizerConfig':
        return cls.load_config_from_file(DEFAULT_CONFIG_PATH)

    def display_summary(self) -> str:
        """Generates a human readable overview of the configuration."""
        s = typer.style("\nPACKAGE SETS", fg=typer.colors.BLUE, bold=True) + "\n"
        s += "----------------------------------------\n"
        for action_id, packages in self.packages.items():
            s += f"  {action_id.value:<18} {', '.join(packages)}\n"

        s += typer.style("\nEXCLUSIVE GROUPS", fg=typer.colors.BLUE, bold=True) + "\n"
        s += "----------------------------------------\n"
        for group, members in self.groups.items():
            s += f"  {typer.style(group, fg=typer.colors.CYAN)}\n"
            for member, markers in members.items():
                s += f"    - {member.value:<18} markers: {', '.join(markers)}\n"

        s += typer.style("\nHOST SETTINGS", fg=typer.colors.BLUE, bold=True) + "\n"
        s += "----------------------------------------\n"
        s += f"  pacman.conf:        {self.pacman.conf}\n"
        s += f"  CPU governor:       {self.performance.governor}\n"
        s += f"  NVIDIA driver:      {'nouveau' if self.drivers.nvidia_open_source else 'proprietary'}\n"
        s += f"  KDE settings:       {len(self.plasma.settings)}\n"
        s += f"  Non-interactive:    {self.confirm.non_interactive}\n"

        s += typer.style("\nAUTO-PILOT SEQUENCE", fg=typer.colors.BLUE, bold=True) + "\n"
        s += "----------------------------------------\n"
        for i, step in enumerate(self.autopilot.sequence):
            s += f"  {i+1}: {step.value}\n"

        return s
