# arch_optimizer/registry.py
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from arch_optimizer.results import MutationResult, ResultStatus
from arch_optimizer.utils.exceptions import CancellationSignal, ShellCommandError

if TYPE_CHECKING:
    from arch_optimizer.session import Session


class ActionId(str, Enum):
    """Identifiers of every built-in action."""
    SYSTEM_UPDATE = "system_update"
    BUILD_TOOLS = "build_tools"
    CHAOTIC_AUR = "chaotic_aur"
    KDE_PLASMA = "kde_plasma"
    DRIVERS_NVIDIA = "drivers_nvidia"
    DRIVERS_NOUVEAU = "drivers_nouveau"
    DRIVERS_AMD = "drivers_amd"
    DRIVERS_INTEL = "drivers_intel"
    DRIVERS_WIFI = "drivers_wifi"
    DRIVERS_AUTO = "drivers_auto"
    FIREDRAGON = "firedragon"
    GAMING_STACK = "gaming_stack"
    AUDIO_PIPEWIRE = "audio_pipewire"
    AUDIO_PULSEAUDIO = "audio_pulseaudio"
    PERFORMANCE = "performance"
    PLASMA_TWEAKS = "plasma_tweaks"


# An operation mutates the host and reports (exit_code, message).
Operation = Callable[["Session"], Tuple[int, str]]
# A selector picks the concrete action to run at invocation time.
Selector = Callable[["Session"], Optional[ActionId]]


@dataclass(frozen=True)
class Action:
    id: ActionId
    label: str
    operation: Optional[Operation] = None
    group: Optional[str] = None
    markers: Tuple[str, ...] = ()
    select: Optional[Selector] = None


class ActionRegistry:
    """
    Holds every registered Action and invokes them with the failure
    containment contract: a failing operation becomes a FAILURE result
    and never terminates the process.
    """

    def __init__(self):
        self._actions: Dict[ActionId, Action] = {}

    def register(self,
                 action_id: ActionId,
                 label: str,
                 operation: Optional[Operation] = None,
                 group: Optional[str] = None,
                 markers: Tuple[str, ...] = (),
                 select: Optional[Selector] = None) -> Action:
        if action_id in self._actions:
            raise ValueError(f"Action '{action_id.value}' is already registered.")
        if (operation is None) == (select is None):
            raise ValueError(f"Action '{action_id.value}' needs exactly one of operation or select.")
        if group and not markers:
            raise ValueError(f"Action '{action_id.value}' belongs to group '{group}' but has no markers.")

        action = Action(id=action_id, label=label, operation=operation,
                        group=group, markers=tuple(markers), select=select)
        self._actions[action_id] = action
        return action

    def get(self, action_id: ActionId) -> Optional[Action]:
        return self._actions.get(action_id)

    def __contains__(self, action_id) -> bool:
        return action_id in self._actions

    def __iter__(self):
        return iter(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)

    def members(self, group: str) -> List[Action]:
        """All actions sharing a mutually-exclusive group, in registration order."""
        return [a for a in self._actions.values() if a.group == group]

    def invoke(self, action_id: ActionId, session: "Session") -> MutationResult:
        """
        Runs an action and returns its MutationResult.

        CancellationSignal is the only exception that propagates; the caller
        decides how to wind down.
        """
        action = self.get(action_id)
        if action is None:
            name = getattr(action_id, "value", str(action_id))
            result = MutationResult(name, ResultStatus.FAILURE, "Action is not registered.")
            return self._finish(session, result)

        if action.select is not None:
            return self._delegate(action, session)

        session.logger.section(action.label)
        try:
            if action.group:
                declined = session.resolver.resolve(action, session.gate)
                if declined is not None:
                    return self._finish(session, declined)

            exit_code, message = action.operation(session)
            if exit_code == 0:
                result = MutationResult(action.id.value, ResultStatus.SUCCESS, message or "Completed.")
            else:
                result = MutationResult(action.id.value, ResultStatus.FAILURE,
                                        message or f"Exited with code {exit_code}.")

        except CancellationSignal:
            raise
        except ShellCommandError as e:
            detail = e.stderr.strip().splitlines()[-1] if e.stderr.strip() else e.message
            result = MutationResult(action.id.value, ResultStatus.FAILURE, f"'{e.command}' failed: {detail}")
        except Exception as e:
            session.logger.logger.exception(f"Unexpected error in action '{action.id.value}'")
            result = MutationResult(action.id.value, ResultStatus.FAILURE, f"Unexpected error: {e}")

        return self._finish(session, result)

    def _delegate(self, action: Action, session: "Session") -> MutationResult:
        try:
            target = action.select(session)
        except CancellationSignal:
            raise
        except Exception as e:
            session.logger.logger.exception(f"Selector of '{action.id.value}' failed")
            return self._finish(session, MutationResult(action.id.value, ResultStatus.FAILURE,
                                                        f"Could not select an action: {e}"))

        if target is None:
            session.logger.warning(f"{action.label}: nothing suitable detected, no changes made.")
            return self._finish(session, MutationResult(action.id.value, ResultStatus.SUCCESS,
                                                        "Nothing to do on this host."))
        if target == action.id:
            return self._finish(session, MutationResult(action.id.value, ResultStatus.FAILURE,
                                                        "Action selected itself."))

        session.logger.info(f"{action.label}: selected '{target.value}'.")
        return self.invoke(target, session)

    @staticmethod
    def _finish(session: "Session", result: MutationResult) -> MutationResult:
        session.record(result)
        session.logger.outcome(result)
        return result
