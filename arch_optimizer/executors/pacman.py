# arch_optimizer/executors/pacman.py
from enum import Enum
from typing import Sequence, Tuple

from arch_optimizer.utils.executor import Executor


class RepoStatus(str, Enum):
    EXISTS = "exists"
    NOT_FOUND = "not_found"


class PackageManager:
    """
    Package query and mutation operations backed by pacman and pacman-key.
    All mutations are privileged and delegated to the provided Executor.
    """

    def __init__(self, executor: Executor):
        """
        Args:
            executor (Executor): An instance of the Executor class for command execution.
        """
        self.executor = executor

    # --- QUERIES (unprivileged, never raise on a non-zero exit code) ---

    def is_installed(self, package: str) -> bool:
        """
        Checks the local package database with 'pacman -Q'.

        Args:
            package (str): The package name (e.g., 'pulseaudio').

        Returns:
            bool: True if the package is installed.
        """
        exit_code, _, _ = self.executor.query(["pacman", "-Q", package])
        return exit_code == 0

    def query_repo(self, package: str) -> RepoStatus:
        """
        Checks the sync databases of the enabled repositories with 'pacman -Si'.

        Args:
            package (str): The package name (e.g., 'firedragon').

        Returns:
            RepoStatus: EXISTS if a repository provides the package.
        """
        exit_code, _, _ = self.executor.query(["pacman", "-Si", package])
        return RepoStatus.EXISTS if exit_code == 0 else RepoStatus.NOT_FOUND

    # --- MUTATIONS ---

    def install(self, packages: Sequence[str], needed: bool = True, description: str = "") -> Tuple[int, str, str]:
        """
        Installs packages from the sync repositories.

        Args:
            packages (Sequence[str]): Package names.
            needed (bool): Skip packages that are already up to date ('--needed').
            description (str): Optional description shown in the TUI.

        Returns:
            Tuple[int, str, str]: (exit_code, stdout, stderr).
        """
        if not packages:
            raise ValueError("No packages given to install.")
        command = ["pacman", "-S", "--noconfirm"]
        if needed:
            command.append("--needed")
        return self.executor.run(
            description=description or f"Installing {', '.join(packages)}",
            command=command + list(packages),
        )

    def remove(self, packages: Sequence[str]) -> Tuple[int, str, str]:
        """
        Removes packages together with their unneeded dependencies ('-Rns').

        Args:
            packages (Sequence[str]): Package names.

        Returns:
            Tuple[int, str, str]: (exit_code, stdout, stderr).
        """
        if not packages:
            raise ValueError("No packages given to remove.")
        return self.executor.run(
            description=f"Removing {', '.join(packages)}",
            command=["pacman", "-Rns", "--noconfirm"] + list(packages),
        )

    def upgrade(self) -> Tuple[int, str, str]:
        """Synchronizes the databases and upgrades the whole system."""
        return self.executor.run(
            description="Full system upgrade",
            command=["pacman", "-Syu", "--noconfirm"],
        )

    def install_urls(self, urls: Sequence[str], description: str = "") -> Tuple[int, str, str]:
        """Installs package files straight from URLs with 'pacman -U'."""
        return self.executor.run(
            description=description or f"Installing {len(urls)} package file(s)",
            command=["pacman", "-U", "--noconfirm"] + list(urls),
        )

    def receive_key(self, key_id: str, keyserver: str) -> Tuple[int, str, str]:
        return self.executor.run(
            description=f"Receiving signing key {key_id}",
            command=["pacman-key", "--recv-key", key_id, "--keyserver", keyserver],
        )

    def sign_key(self, key_id: str) -> Tuple[int, str, str]:
        return self.executor.run(
            description=f"Locally signing key {key_id}",
            command=["pacman-key", "--lsign-key", key_id],
        )
