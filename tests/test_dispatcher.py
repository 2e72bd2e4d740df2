from unittest.mock import MagicMock

import pytest

from arch_optimizer.actions import build_main_menu
from arch_optimizer.dispatcher import DispatcherState, EntryKind, Menu, MenuDispatcher, MenuEntry
from arch_optimizer.registry import ActionId
from arch_optimizer.results import RunSummary
from arch_optimizer.utils.exceptions import CancellationSignal


@pytest.fixture
def registry():
    return MagicMock()


@pytest.fixture
def prompter():
    return MagicMock()


@pytest.fixture
def dispatcher(registry, session, prompter, config):
    return MenuDispatcher(registry, session, prompter, build_main_menu(config))


def test_exit_returns_zero_without_invoking(dispatcher, registry, prompter):
    prompter.choose.side_effect = ["12"]

    assert dispatcher.run() == 0

    registry.invoke.assert_not_called()
    assert dispatcher.state is DispatcherState.EXITED


def test_invalid_option_redisplays_menu(dispatcher, registry, prompter, session):
    prompter.choose.side_effect = ["99", "abc", "12"]

    assert dispatcher.run() == 0

    assert prompter.choose.call_count == 3
    registry.invoke.assert_not_called()
    session.logger.warning.assert_any_call("Invalid option: '99'")


def test_action_entry_is_dispatched_then_menu_returns(dispatcher, registry, prompter, session):
    prompter.choose.side_effect = ["1", "12"]

    dispatcher.run()

    registry.invoke.assert_called_once_with(ActionId.SYSTEM_UPDATE, session)
    assert prompter.choose.call_count == 2


def test_submenu_and_return(dispatcher, registry, prompter, session):
    prompter.choose.side_effect = ["5", "3", "7", "12"]

    dispatcher.run()

    registry.invoke.assert_called_once_with(ActionId.DRIVERS_AMD, session)
    titles = [c.args[0] for c in prompter.choose.call_args_list]
    assert titles == ["Arch KDE Optimizer", "Driver Installation", "Driver Installation", "Arch KDE Optimizer"]
    assert session.menu_path == ["Arch KDE Optimizer"]


def test_cancelled_prompt_exits_gracefully(dispatcher, prompter):
    prompter.choose.side_effect = CancellationSignal("Menu selection cancelled.")

    assert dispatcher.run() == 0
    assert dispatcher.state is DispatcherState.EXITED


def test_cancelled_action_exits(dispatcher, registry, prompter):
    prompter.choose.side_effect = ["2", "12"]
    registry.invoke.side_effect = CancellationSignal()

    assert dispatcher.run() == 0
    assert prompter.choose.call_count == 1


def test_sequence_entry_runs_sequencer(registry, session, prompter, config):
    sequencer = MagicMock()
    sequencer.last_summary = RunSummary(total=10, succeeded=10, failed=0, declined=0)
    prompter.choose.side_effect = ["11", "12"]

    MenuDispatcher(registry, session, prompter, build_main_menu(config), sequencer=sequencer).run()

    sequencer.run.assert_called_once_with(list(config.autopilot.sequence))


def test_cancelled_sequence_exits(registry, session, prompter, config):
    sequencer = MagicMock()
    sequencer.last_summary = RunSummary(total=2, succeeded=2, failed=0, declined=0, cancelled=True)
    prompter.choose.side_effect = ["11", "12"]

    MenuDispatcher(registry, session, prompter, build_main_menu(config), sequencer=sequencer).run()

    assert prompter.choose.call_count == 1


def test_back_on_top_level_stays(registry, session, prompter):
    menu = Menu("Top", [MenuEntry("1", "Back", EntryKind.BACK), MenuEntry("2", "Exit", EntryKind.EXIT)])
    prompter.choose.side_effect = ["1", "2"]

    assert MenuDispatcher(registry, session, prompter, menu).run() == 0
    assert prompter.choose.call_count == 2
