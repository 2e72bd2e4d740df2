# arch_optimizer/actions.py
"""
Built-in actions and the menu tree that exposes them.

Package lists, exclusive groups and host paths all come from the
configuration; the functions here only describe the order of operations.
"""
import shutil
from typing import Callable, List, Optional, Tuple

from arch_optimizer.config.models import OptimizerConfig
from arch_optimizer.detect import GpuVendor
from arch_optimizer.dispatcher import EntryKind, Menu, MenuEntry
from arch_optimizer.executors.files import LineStatus
from arch_optimizer.executors.pacman import RepoStatus
from arch_optimizer.registry import ActionId, ActionRegistry, Operation
from arch_optimizer.utils.exceptions import ShellCommandError

LABELS = {
    ActionId.SYSTEM_UPDATE: "Full System Update",
    ActionId.BUILD_TOOLS: "Install Build Tools + yay",
    ActionId.CHAOTIC_AUR: "Enable Chaotic-AUR",
    ActionId.KDE_PLASMA: "Install KDE Plasma Desktop",
    ActionId.DRIVERS_NVIDIA: "NVIDIA (proprietary)",
    ActionId.DRIVERS_NOUVEAU: "NVIDIA (open source - nouveau)",
    ActionId.DRIVERS_AMD: "AMD GPU",
    ActionId.DRIVERS_INTEL: "Intel iGPU",
    ActionId.DRIVERS_WIFI: "Common WiFi drivers",
    ActionId.DRIVERS_AUTO: "Auto-detect GPU drivers",
    ActionId.FIREDRAGON: "Install Firedragon Browser",
    ActionId.GAMING_STACK: "Install Gaming Stack",
    ActionId.AUDIO_PIPEWIRE: "PipeWire",
    ActionId.AUDIO_PULSEAUDIO: "PulseAudio",
    ActionId.PERFORMANCE: "Performance Optimizations (zram, CPU, SSD)",
    ActionId.PLASMA_TWEAKS: "KDE Plasma UI Tweaks",
}


# --- Operations ---

def install_package_set(action_id: ActionId) -> Operation:
    """Operation installing the configured package list of `action_id`."""
    def operation(session) -> Tuple[int, str]:
        packages = session.config.packages[action_id]
        exit_code, _, _ = session.pacman.install(packages, description=f"Installing {LABELS[action_id]}")
        return exit_code, f"Installed {len(packages)} package(s)."
    return operation


def system_update(session) -> Tuple[int, str]:
    exit_code, _, _ = session.pacman.upgrade()
    return exit_code, "System is up to date."


def enable_chaotic_aur(session) -> Tuple[int, str]:
    repo = session.config.chaotic

    if session.pacman.is_installed(repo.keyring_package):
        session.logger.info(f"{repo.keyring_package} already installed, skipping key import.")
    else:
        session.pacman.receive_key(repo.key_id, repo.keyserver)
        session.pacman.sign_key(repo.key_id)
        session.pacman.install_urls(repo.bootstrap_urls, description="Installing Chaotic-AUR keyring and mirrorlist")

    status = session.files.ensure_line_present(session.config.pacman.conf, repo.section, [repo.include])
    if status is LineStatus.ALREADY_PRESENT:
        return 0, f"{repo.section} already configured in {session.config.pacman.conf}."

    exit_code, _, _ = session.pacman.upgrade()
    return exit_code, f"{repo.section} added to {session.config.pacman.conf}."


def install_firedragon(session) -> Tuple[int, str]:
    packages = session.config.packages[ActionId.FIREDRAGON]
    unavailable = [pkg for pkg in packages if session.pacman.query_repo(pkg) is RepoStatus.NOT_FOUND]
    if unavailable:
        return 1, (f"{', '.join(unavailable)} not found in the enabled repositories; "
                   f"enable Chaotic-AUR first.")
    exit_code, _, _ = session.pacman.install(packages, needed=False)
    return exit_code, "Firedragon installed."


def _soft_steps(session, steps: List[Tuple[str, Callable[[], object]]]) -> Tuple[int, str]:
    """Runs sub-steps fail-soft and reports which of them failed."""
    failed = []
    for name, step in steps:
        try:
            step()
        except ShellCommandError as e:
            session.logger.warning(f"{name} failed: {e.message}")
            failed.append(name)
        except OSError as e:
            session.logger.warning(f"{name} failed: {e}")
            failed.append(name)
    if failed:
        return 1, f"{len(failed)} of {len(steps)} step(s) failed: {', '.join(failed)}."
    return 0, f"{len(steps)} step(s) applied."


def performance_tweaks(session) -> Tuple[int, str]:
    perf = session.config.performance

    def zram():
        session.pacman.install([perf.zram_package])
        session.services.enable(perf.zram_service)

    def governor():
        session.pacman.install([perf.cpupower_package])
        session.files.set_assignment(perf.cpupower_config, "governor", perf.governor)
        session.services.enable(perf.cpupower_service)

    steps = [("ZRAM", zram), (f"CPU governor '{perf.governor}'", governor)]
    for timer in perf.timers:
        steps.append((timer, lambda unit=timer: session.services.enable(unit)))
    return _soft_steps(session, steps)


def find_kwriteconfig(tools) -> Optional[str]:
    for tool in tools:
        if shutil.which(tool):
            return tool
    return None


def plasma_tweaks(session) -> Tuple[int, str]:
    plasma = session.config.plasma
    tool = find_kwriteconfig(plasma.tools)
    if tool is None:
        return 1, f"None of {', '.join(plasma.tools)} is installed; install KDE Plasma first."

    steps = []
    for setting in plasma.settings:
        command = [tool, "--file", setting.file, "--group", setting.group, "--key", setting.key, setting.value]
        name = f"{setting.file}/{setting.group}/{setting.key}={setting.value}"
        steps.append((name, lambda cmd=command, n=name: session.executor.run(f"Setting {n}", cmd, privileged=False)))

    exit_code, message = _soft_steps(session, steps)
    if exit_code == 0:
        message += " Log out and back in for the changes to take effect."
    return exit_code, message


def select_gpu_driver(session) -> Optional[ActionId]:
    capability = session.detector.detect()
    if not capability.detected:
        return None
    session.logger.info(f"Detected GPU: {capability.evidence}")
    if capability.category is GpuVendor.NVIDIA:
        return ActionId.DRIVERS_NOUVEAU if session.config.drivers.nvidia_open_source else ActionId.DRIVERS_NVIDIA
    return {
        GpuVendor.AMD: ActionId.DRIVERS_AMD,
        GpuVendor.INTEL: ActionId.DRIVERS_INTEL,
    }.get(capability.category)


CUSTOM_OPERATIONS = {
    ActionId.SYSTEM_UPDATE: system_update,
    ActionId.CHAOTIC_AUR: enable_chaotic_aur,
    ActionId.FIREDRAGON: install_firedragon,
    ActionId.PERFORMANCE: performance_tweaks,
    ActionId.PLASMA_TWEAKS: plasma_tweaks,
}


def build_registry(config: OptimizerConfig) -> ActionRegistry:
    """Registers every built-in action with the groups and markers from `config`."""
    registry = ActionRegistry()
    for action_id in ActionId:
        label = LABELS[action_id]
        if action_id is ActionId.DRIVERS_AUTO:
            registry.register(action_id, label, select=select_gpu_driver)
            continue
        operation = CUSTOM_OPERATIONS.get(action_id) or install_package_set(action_id)
        registry.register(
            action_id,
            label,
            operation,
            group=config.group_of(action_id),
            markers=tuple(config.markers_of(action_id)),
        )
    return registry


# --- Menus ---

def _action(key: str, action_id: ActionId, label: Optional[str] = None) -> MenuEntry:
    return MenuEntry(key, label or LABELS[action_id], EntryKind.ACTION, action_id)


def build_main_menu(config: OptimizerConfig) -> Menu:
    drivers = Menu("Driver Installation", [
        _action("1", ActionId.DRIVERS_NVIDIA),
        _action("2", ActionId.DRIVERS_NOUVEAU),
        _action("3", ActionId.DRIVERS_AMD),
        _action("4", ActionId.DRIVERS_INTEL),
        _action("5", ActionId.DRIVERS_WIFI),
        _action("6", ActionId.DRIVERS_AUTO),
        MenuEntry("7", "Return", EntryKind.BACK),
    ])
    audio = Menu("Audio Server", [
        _action("1", ActionId.AUDIO_PIPEWIRE),
        _action("2", ActionId.AUDIO_PULSEAUDIO),
        MenuEntry("3", "Return", EntryKind.BACK),
    ])
    return Menu("Arch KDE Optimizer", [
        _action("1", ActionId.SYSTEM_UPDATE),
        _action("2", ActionId.BUILD_TOOLS),
        _action("3", ActionId.CHAOTIC_AUR),
        _action("4", ActionId.KDE_PLASMA),
        MenuEntry("5", "Install Drivers", EntryKind.SUBMENU, drivers),
        _action("6", ActionId.FIREDRAGON),
        _action("7", ActionId.GAMING_STACK),
        MenuEntry("8", "Audio Server", EntryKind.SUBMENU, audio),
        _action("9", ActionId.PERFORMANCE),
        _action("10", ActionId.PLASMA_TWEAKS),
        MenuEntry("11", "Auto-Pilot (run everything)", EntryKind.SEQUENCE, tuple(config.autopilot.sequence)),
        MenuEntry("12", "Exit", EntryKind.EXIT),
    ])
