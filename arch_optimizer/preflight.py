# arch_optimizer/preflight.py
import shutil
from typing import Dict

from arch_optimizer.executors.pacman import PackageManager
from arch_optimizer.utils.exceptions import SetupFailure, ShellCommandError
from arch_optimizer.utils.executor import Executor

# Host tools that must exist; nothing can install them for us.
REQUIRED_COMMANDS = ("pacman", "pacman-key", "systemctl")

# Host tools the optimizer can install itself: command -> package
INSTALLABLE_COMMANDS: Dict[str, str] = {
    "lspci": "pciutils",
}


def ensure_prerequisites(executor: Executor, pacman: PackageManager):
    """
    Fail-fast setup phase. Raises SetupFailure when a required tool is missing
    or an installable one cannot be installed.
    """
    logger = executor.logger
    logger.section("Checking prerequisites")

    for command in REQUIRED_COMMANDS:
        if shutil.which(command) is None:
            raise SetupFailure(command, "not found in PATH; this tool requires an Arch-based system.")

    if executor.uses_sudo and shutil.which("sudo") is None:
        raise SetupFailure("sudo", "not running as root and sudo is not installed.")

    for command, package in INSTALLABLE_COMMANDS.items():
        if shutil.which(command) is not None:
            continue
        logger.warning(f"'{command}' is missing, installing '{package}'.")
        try:
            pacman.install([package])
        except ShellCommandError as e:
            raise SetupFailure(package, e.message) from e

    logger.info("All prerequisites are available.")
