from unittest.mock import MagicMock

import pytest

from arch_optimizer.registry import ActionId, ActionRegistry
from arch_optimizer.results import MutationResult, ResultStatus
from arch_optimizer.utils.exceptions import CancellationSignal, ShellCommandError


@pytest.fixture
def registry():
    return ActionRegistry()


# --- register() ---

def test_register_rejects_duplicate_id(registry):
    registry.register(ActionId.BUILD_TOOLS, "Build tools", lambda s: (0, ""))
    with pytest.raises(ValueError, match="already registered"):
        registry.register(ActionId.BUILD_TOOLS, "Again", lambda s: (0, ""))


def test_register_requires_exactly_one_behaviour(registry):
    with pytest.raises(ValueError):
        registry.register(ActionId.BUILD_TOOLS, "Nothing")
    with pytest.raises(ValueError):
        registry.register(ActionId.BUILD_TOOLS, "Both", lambda s: (0, ""), select=lambda s: None)


def test_register_group_requires_markers(registry):
    with pytest.raises(ValueError, match="no markers"):
        registry.register(ActionId.AUDIO_PIPEWIRE, "PipeWire", lambda s: (0, ""), group="audio-server")


def test_members_in_registration_order(registry):
    registry.register(ActionId.AUDIO_PULSEAUDIO, "PulseAudio", lambda s: (0, ""), "audio-server", ("pulseaudio",))
    registry.register(ActionId.BUILD_TOOLS, "Build tools", lambda s: (0, ""))
    registry.register(ActionId.AUDIO_PIPEWIRE, "PipeWire", lambda s: (0, ""), "audio-server", ("pipewire-pulse",))

    assert [a.id for a in registry.members("audio-server")] == [ActionId.AUDIO_PULSEAUDIO, ActionId.AUDIO_PIPEWIRE]
    assert len(registry) == 3
    assert ActionId.BUILD_TOOLS in registry

# --- invoke() ---

def test_invoke_success(registry, session):
    registry.register(ActionId.BUILD_TOOLS, "Build tools", lambda s: (0, "Installed 12 package(s)."))

    result = registry.invoke(ActionId.BUILD_TOOLS, session)

    assert result == MutationResult("build_tools", ResultStatus.SUCCESS, "Installed 12 package(s).")
    assert session.results == [result]
    session.logger.section.assert_called_once_with("Build tools")
    session.logger.outcome.assert_called_once_with(result)


def test_invoke_non_zero_exit_is_failure(registry, session):
    registry.register(ActionId.FIREDRAGON, "Firedragon", lambda s: (1, "firedragon not found"))

    result = registry.invoke(ActionId.FIREDRAGON, session)

    assert result.status is ResultStatus.FAILURE
    assert result.message == "firedragon not found"


def test_invoke_contains_command_failure(registry, session):
    def operation(s):
        raise ShellCommandError("sudo pacman -S yay", exit_code=1,
                                stderr="resolving dependencies...\nerror: target not found: yay\n")

    registry.register(ActionId.BUILD_TOOLS, "Build tools", operation)

    result = registry.invoke(ActionId.BUILD_TOOLS, session)

    assert result.failed
    assert result.message == "'sudo pacman -S yay' failed: error: target not found: yay"


def test_invoke_contains_unexpected_error(registry, session):
    registry.register(ActionId.BUILD_TOOLS, "Build tools", MagicMock(side_effect=KeyError("oops")))

    result = registry.invoke(ActionId.BUILD_TOOLS, session)

    assert result.failed
    assert "Unexpected error" in result.message
    session.logger.logger.exception.assert_called_once()


def test_invoke_propagates_cancellation(registry, session):
    registry.register(ActionId.BUILD_TOOLS, "Build tools", MagicMock(side_effect=CancellationSignal()))

    with pytest.raises(CancellationSignal):
        registry.invoke(ActionId.BUILD_TOOLS, session)
    assert session.results == []


def test_invoke_unknown_action_is_failure(registry, session):
    result = registry.invoke(ActionId.GAMING_STACK, session)

    assert result.failed
    assert result.action_id == "gaming_stack"


def test_invoke_grouped_action_declined_skips_operation(registry, session):
    operation = MagicMock(return_value=(0, ""))
    registry.register(ActionId.AUDIO_PIPEWIRE, "PipeWire", operation, "audio-server", ("pipewire-pulse",))
    declined = MutationResult("audio_pipewire", ResultStatus.CONFLICT_DECLINED, "Skipped")
    session.resolver.resolve.return_value = declined

    result = registry.invoke(ActionId.AUDIO_PIPEWIRE, session)

    assert result is declined
    operation.assert_not_called()
    session.resolver.resolve.assert_called_once_with(registry.get(ActionId.AUDIO_PIPEWIRE), session.gate)


def test_invoke_ungrouped_action_skips_resolver(registry, session):
    registry.register(ActionId.BUILD_TOOLS, "Build tools", lambda s: (0, ""))
    registry.invoke(ActionId.BUILD_TOOLS, session)
    session.resolver.resolve.assert_not_called()

# --- selector actions ---

def test_selector_delegates_to_target(registry, session):
    registry.register(ActionId.DRIVERS_AMD, "AMD", lambda s: (0, "amd done"))
    registry.register(ActionId.DRIVERS_AUTO, "Auto", select=lambda s: ActionId.DRIVERS_AMD)

    result = registry.invoke(ActionId.DRIVERS_AUTO, session)

    assert result.action_id == "drivers_amd"
    assert result.succeeded


def test_selector_without_target_is_a_no_op(registry, session):
    registry.register(ActionId.DRIVERS_AUTO, "Auto", select=lambda s: None)

    result = registry.invoke(ActionId.DRIVERS_AUTO, session)

    assert result.succeeded
    assert result.message == "Nothing to do on this host."


def test_selector_selecting_itself_fails(registry, session):
    registry.register(ActionId.DRIVERS_AUTO, "Auto", select=lambda s: ActionId.DRIVERS_AUTO)
    assert registry.invoke(ActionId.DRIVERS_AUTO, session).failed
