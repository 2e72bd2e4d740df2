# arch_optimizer/executors/services.py
from typing import Tuple

from arch_optimizer.utils.executor import Executor


class ServiceManager:
    """systemd unit management through systemctl."""

    def __init__(self, executor: Executor):
        self.executor = executor

    def enable(self, unit: str, now: bool = True) -> Tuple[int, str, str]:
        """
        Enables a systemd unit, and starts it immediately when `now` is set.

        Args:
            unit (str): The unit name (e.g., 'fstrim.timer').
            now (bool): Pass '--now' to start the unit as well.

        Returns:
            Tuple[int, str, str]: (exit_code, stdout, stderr).
        """
        command = ["systemctl", "enable"]
        if now:
            command.append("--now")
        return self.executor.run(
            description=f"Enabling {unit}",
            command=command + [unit],
        )