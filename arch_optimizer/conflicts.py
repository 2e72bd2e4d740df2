# arch_optimizer/conflicts.py
from typing import TYPE_CHECKING, List, Optional

from arch_optimizer.registry import Action, ActionId, ActionRegistry
from arch_optimizer.results import MutationResult, ResultStatus
from arch_optimizer.utils.logger import RichAppLogger

if TYPE_CHECKING:
    from arch_optimizer.executors.pacman import PackageManager
    from arch_optimizer.prompts import ConfirmationGate


class ConflictResolver:
    """
    Enforces that at most one member of a mutually-exclusive group is
    installed. Host state is read through the package manager; the
    registry provides group membership and marker packages.
    """

    def __init__(self, registry: ActionRegistry, pacman: "PackageManager", logger: RichAppLogger):
        self.registry = registry
        self.pacman = pacman
        self.logger = logger

    def installed_markers(self, action: Action) -> List[str]:
        return [pkg for pkg in action.markers if self.pacman.is_installed(pkg)]

    def active_members(self, group: str, target_id: Optional[ActionId] = None) -> List[Action]:
        """Every installed member of `group` other than `target_id`, in registration order."""
        active = []
        for member in self.registry.members(group):
            if member.id == target_id:
                continue
            if self.installed_markers(member):
                self.logger.debug(f"Group '{group}': '{member.id.value}' is active.")
                active.append(member)
        return active

    def check(self, group: str, target_id: Optional[ActionId] = None) -> Optional[Action]:
        """Returns the first installed member of `group` other than `target_id`, if any."""
        active = self.active_members(group, target_id)
        return active[0] if active else None

    def resolve(self, action: Action, gate: "ConfirmationGate") -> Optional[MutationResult]:
        """
        Clears the way for `action`.

        Every other active member of the group is covered by a single
        confirmation. Returns None when the action may proceed (no conflict, or
        all conflicting members were removed after confirmation) and a
        CONFLICT_DECLINED result when the operator refused the removal.
        Removal failures raise ShellCommandError.
        """
        if not action.group:
            return None

        conflicting = self.active_members(action.group, action.id)
        if not conflicting:
            return None

        packages: List[str] = []
        for member in conflicting:
            packages.extend(pkg for pkg in self.installed_markers(member) if pkg not in packages)

        labels = ", ".join(f"'{member.label}'" for member in conflicting)
        question = (f"{labels} {'is' if len(conflicting) == 1 else 'are'} installed ({', '.join(packages)}) "
                    f"and conflict{'s' if len(conflicting) == 1 else ''} with '{action.label}'. "
                    f"Remove and continue?")
        if not gate.ask(question):
            self.logger.warning(f"Skipping '{action.label}': conflicting {labels} kept.")
            return MutationResult(
                action.id.value,
                ResultStatus.CONFLICT_DECLINED,
                f"Skipped due to conflict with {', '.join(repr(m.id.value) for m in conflicting)}.",
            )

        self.pacman.remove(packages)
        self.logger.info(f"Removed conflicting {labels}.")
        return None
