from unittest.mock import MagicMock, patch

import pytest

from arch_optimizer.preflight import ensure_prerequisites
from arch_optimizer.utils.exceptions import SetupFailure, ShellCommandError


@pytest.fixture
def executor(mock_rich_logger):
    executor = MagicMock()
    executor.logger = mock_rich_logger
    executor.uses_sudo = True
    return executor


def which_except(*missing):
    return lambda cmd: None if cmd in missing else f"/usr/bin/{cmd}"


@patch("arch_optimizer.preflight.shutil.which", side_effect=which_except())
def test_all_tools_present(mock_which, executor):
    pacman = MagicMock()
    ensure_prerequisites(executor, pacman)
    pacman.install.assert_not_called()


@patch("arch_optimizer.preflight.shutil.which", side_effect=which_except("pacman"))
def test_missing_pacman_is_fatal(mock_which, executor):
    with pytest.raises(SetupFailure, match="pacman"):
        ensure_prerequisites(executor, MagicMock())


@patch("arch_optimizer.preflight.shutil.which", side_effect=which_except("sudo"))
def test_missing_sudo_is_fatal_for_regular_user(mock_which, executor):
    with pytest.raises(SetupFailure, match="sudo"):
        ensure_prerequisites(executor, MagicMock())


@patch("arch_optimizer.preflight.shutil.which", side_effect=which_except("sudo"))
def test_missing_sudo_is_fine_for_root(mock_which, executor):
    executor.uses_sudo = False
    ensure_prerequisites(executor, MagicMock())


@patch("arch_optimizer.preflight.shutil.which", side_effect=which_except("lspci"))
def test_missing_lspci_is_installed(mock_which, executor):
    pacman = MagicMock()
    ensure_prerequisites(executor, pacman)
    pacman.install.assert_called_once_with(["pciutils"])


@patch("arch_optimizer.preflight.shutil.which", side_effect=which_except("lspci"))
def test_failed_install_is_fatal(mock_which, executor):
    pacman = MagicMock()
    pacman.install.side_effect = ShellCommandError("pacman -S pciutils", exit_code=1, message="failed")

    with pytest.raises(SetupFailure, match="pciutils"):
        ensure_prerequisites(executor, pacman)
