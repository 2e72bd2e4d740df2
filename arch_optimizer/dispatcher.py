# arch_optimizer/dispatcher.py
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from arch_optimizer.registry import ActionRegistry
from arch_optimizer.utils.exceptions import CancellationSignal

if TYPE_CHECKING:
    from arch_optimizer.autopilot import AutoPilotSequencer
    from arch_optimizer.prompts import ConsolePrompter
    from arch_optimizer.session import Session


class EntryKind(str, Enum):
    ACTION = "action"
    SUBMENU = "submenu"
    SEQUENCE = "sequence"
    BACK = "back"
    EXIT = "exit"


@dataclass(frozen=True)
class MenuEntry:
    key: str
    label: str
    kind: EntryKind
    # ActionId for ACTION, Menu for SUBMENU, tuple of ActionId for SEQUENCE
    target: Any = None


@dataclass(frozen=True)
class Menu:
    title: str
    entries: List[MenuEntry] = field(default_factory=list)

    def options(self) -> List[Tuple[str, str]]:
        return [(entry.key, entry.label) for entry in self.entries]

    def lookup(self, key: str) -> Optional[MenuEntry]:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None


class DispatcherState(str, Enum):
    IDLE = "idle"
    DISPLAYING = "displaying"
    DISPATCHING = "dispatching"
    EXITED = "exited"


class MenuDispatcher:
    """
    Interactive menu loop: display, accept one selection, dispatch it to the
    registry, and display again until Exit or cancellation.
    """

    def __init__(self,
                 registry: ActionRegistry,
                 session: "Session",
                 prompter: "ConsolePrompter",
                 menu: Menu,
                 sequencer: Optional["AutoPilotSequencer"] = None):
        self.registry = registry
        self.session = session
        self.prompter = prompter
        self.menu = menu
        self.sequencer = sequencer
        self.state = DispatcherState.IDLE
        self._stack: List[Menu] = []

    @property
    def current_menu(self) -> Menu:
        return self._stack[-1]

    def run(self) -> int:
        """Runs until exit; returns the process exit code."""
        self._stack = [self.menu]
        self.session.menu_path[:] = [self.menu.title]
        self.state = DispatcherState.DISPLAYING

        while self.state is not DispatcherState.EXITED:
            menu = self.current_menu
            try:
                choice = self.prompter.choose(menu.title, menu.options())
            except CancellationSignal as e:
                self.session.logger.info(f"{e.message} Exiting.")
                self.state = DispatcherState.EXITED
                break

            entry = menu.lookup(choice)
            if entry is None:
                self.session.logger.warning(f"Invalid option: {choice!r}")
                continue

            self._select(entry)

        self.session.logger.info("Done!")
        return 0

    def _select(self, entry: MenuEntry):
        if entry.kind is EntryKind.EXIT:
            self.state = DispatcherState.EXITED
        elif entry.kind is EntryKind.BACK:
            if len(self._stack) > 1:
                self._stack.pop()
                self.session.menu_path.pop()
        elif entry.kind is EntryKind.SUBMENU:
            self._stack.append(entry.target)
            self.session.menu_path.append(entry.target.title)
        else:
            self._dispatch(entry)

    def _dispatch(self, entry: MenuEntry):
        self.state = DispatcherState.DISPATCHING
        try:
            if entry.kind is EntryKind.SEQUENCE:
                if self.sequencer is None:
                    self.session.logger.warning(f"'{entry.label}' is not available.")
                else:
                    self.sequencer.run(list(entry.target))
                    if self.sequencer.last_summary.cancelled:
                        raise CancellationSignal("Auto-Pilot cancelled.")
            else:
                self.registry.invoke(entry.target, self.session)
        except CancellationSignal as e:
            self.session.logger.info(f"{e.message} Exiting.")
            self.state = DispatcherState.EXITED
            return
        self.state = DispatcherState.DISPLAYING