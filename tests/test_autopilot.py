from unittest.mock import MagicMock

import pytest

from arch_optimizer.autopilot import AutoPilotSequencer
from arch_optimizer.registry import ActionId, ActionRegistry
from arch_optimizer.utils.exceptions import CancellationSignal, ShellCommandError

SEQUENCE = [
    ActionId.SYSTEM_UPDATE,
    ActionId.BUILD_TOOLS,
    ActionId.CHAOTIC_AUR,
    ActionId.KDE_PLASMA,
    ActionId.GAMING_STACK,
]


@pytest.fixture
def operations():
    return {action_id: MagicMock(return_value=(0, "ok")) for action_id in SEQUENCE}


@pytest.fixture
def registry(operations):
    registry = ActionRegistry()
    for action_id, operation in operations.items():
        registry.register(action_id, action_id.value, operation)
    return registry


def test_every_step_runs_after_a_failure(registry, operations, session):
    operations[ActionId.CHAOTIC_AUR].side_effect = ShellCommandError("pacman-key --recv-key", exit_code=2)
    sequencer = AutoPilotSequencer(registry, session)

    results = sequencer.run(SEQUENCE)

    assert len(results) == 5
    assert all(op.call_count == 1 for op in operations.values())
    assert [r.action_id for r in results if r.failed] == ["chaotic_aur"]
    assert sequencer.last_summary.total == 5
    assert sequencer.last_summary.failed == 1
    assert sequencer.last_summary.succeeded == 4
    session.logger.summary.assert_called_once_with(sequencer.last_summary)


def test_cancellation_stops_the_sequence(registry, operations, session):
    operations[ActionId.BUILD_TOOLS].side_effect = CancellationSignal()
    sequencer = AutoPilotSequencer(registry, session)

    results = sequencer.run(SEQUENCE)

    assert len(results) == 1
    operations[ActionId.CHAOTIC_AUR].assert_not_called()
    assert sequencer.last_summary.cancelled
    assert not sequencer.last_summary.ok


def test_all_steps_succeed(registry, session):
    sequencer = AutoPilotSequencer(registry, session)
    sequencer.run(SEQUENCE)
    assert sequencer.last_summary.ok
