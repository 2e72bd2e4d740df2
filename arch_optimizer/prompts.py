# arch_optimizer/prompts.py
import sys
from enum import Enum
from typing import Optional, Sequence, Tuple

from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from arch_optimizer.utils.exceptions import CancellationSignal
from arch_optimizer.utils.logger import RichAppLogger


class NonInteractivePolicy(str, Enum):
    """What the Confirmation Gate answers when nobody can be asked."""
    DECLINE = "decline"
    ACCEPT = "accept"
    ABORT = "abort"


class ConsolePrompter:
    """
    Interactive prompt collaborator rendered with Rich.

    Both prompts translate Ctrl-C and end-of-input into CancellationSignal.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    @property
    def interactive(self) -> bool:
        return sys.stdin.isatty()

    def choose(self, title: str, options: Sequence[Tuple[str, str]]) -> str:
        """
        Renders (key, label) pairs and returns the raw key typed by the operator.
        Validation is left to the caller.
        """
        table = Table(title=title, show_header=False, title_style="bold cyan")
        table.add_column("Key", style="bold", justify="right")
        table.add_column("Action")
        for key, label in options:
            table.add_row(key, label)

        self.console.print(table)
        try:
            return Prompt.ask("Select an option", console=self.console).strip()
        except (KeyboardInterrupt, EOFError):
            raise CancellationSignal("Menu selection cancelled.")

    def confirm(self, message: str) -> bool:
        try:
            # No default: the operator has to answer explicitly.
            return Confirm.ask(message, console=self.console)
        except (KeyboardInterrupt, EOFError):
            raise CancellationSignal("Confirmation cancelled.")


class ConfirmationGate:
    """
    Synchronous yes/no decision point in front of every destructive step.

    An explicit `assume` answer (from --yes/--no) wins; otherwise the operator
    is asked on a terminal, and the non-interactive policy applies when stdin
    is not a terminal.
    """

    def __init__(self,
                 prompter: ConsolePrompter,
                 logger: RichAppLogger,
                 policy: NonInteractivePolicy = NonInteractivePolicy.DECLINE,
                 assume: Optional[bool] = None):
        self.prompter = prompter
        self.logger = logger
        self.policy = NonInteractivePolicy(policy)
        self.assume = assume

    def ask(self, message: str) -> bool:
        if self.assume is not None:
            self.logger.info(f"{message} -> {'yes' if self.assume else 'no'} (assumed from command line)")
            return self.assume

        if not self.prompter.interactive:
            if self.policy is NonInteractivePolicy.ABORT:
                self.logger.warning(f"{message} -> no terminal available, aborting.")
                raise CancellationSignal("Confirmation required but no terminal is available.")
            answer = self.policy is NonInteractivePolicy.ACCEPT
            self.logger.warning(f"{message} -> {'yes' if answer else 'no'} (non-interactive policy '{self.policy.value}')")
            return answer

        answer = self.prompter.confirm(message)
        self.logger.debug(f"Confirmation '{message}' answered {'yes' if answer else 'no'}")
        return answer
