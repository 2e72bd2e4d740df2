# arch_optimizer/executors/files.py
import os
import re
from enum import Enum
from pathlib import Path
from typing import Sequence

from arch_optimizer.utils.executor import Executor


class LineStatus(str, Enum):
    ALREADY_PRESENT = "already_present"
    APPENDED = "appended"


class ConfigFileManager:
    """
    Idempotent edits of host configuration files.

    Files the current user may write are edited directly; root-owned files
    are written through 'sudo tee' via the Executor.
    """

    def __init__(self, executor: Executor):
        self.executor = executor

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""

    def _writable(self, path: Path) -> bool:
        if path.exists():
            return os.access(path, os.W_OK)
        return os.access(path.parent, os.W_OK)

    def _append(self, path: Path, text: str, description: str):
        if self.executor.dry_run:
            self.executor.logger.info(f"DRY RUN: Execution skipped for: '{description}'")
            return
        if self._writable(path):
            with open(path, "a", encoding="utf-8") as handle:
                handle.write(text)
            self.executor.logger.info(description)
            return
        self.executor.run(description, ["tee", "-a", str(path)], input_text=text)

    def _replace(self, path: Path, text: str, description: str):
        if self.executor.dry_run:
            self.executor.logger.info(f"DRY RUN: Execution skipped for: '{description}'")
            return
        if self._writable(path):
            path.write_text(text, encoding="utf-8")
            self.executor.logger.info(description)
            return
        self.executor.run(description, ["tee", str(path)], input_text=text)

    def is_line_present(self, path: Path, line: str) -> bool:
        wanted = line.strip()
        return any(existing.strip() == wanted for existing in self._read(Path(path)).splitlines())

    def ensure_line_present(self, path: Path, line: str, block: Sequence[str] = ()) -> LineStatus:
        """
        Appends `line` (followed by any `block` lines) unless `line` already
        exists in the file, compared with surrounding whitespace stripped.

        Args:
            path (Path): The configuration file (e.g., '/etc/pacman.conf').
            line (str): The line that marks the entry as present (e.g., '[chaotic-aur]').
            block (Sequence[str]): Lines written after `line` when appending.

        Returns:
            LineStatus: ALREADY_PRESENT or APPENDED.
        """
        path = Path(path)
        if self.is_line_present(path, line):
            self.executor.logger.debug(f"'{line.strip()}' already present in {path}")
            return LineStatus.ALREADY_PRESENT

        current = self._read(path)
        text = "" if not current or current.endswith("\n") else "\n"
        if current:
            text += "\n"
        text += "\n".join([line.strip()] + [entry.strip() for entry in block]) + "\n"

        self._append(path, text, f"Appending '{line.strip()}' to {path}")
        return LineStatus.APPENDED

    def set_assignment(self, path: Path, key: str, value: str) -> LineStatus:
        """
        Sets a shell-style `KEY='value'` assignment, replacing an existing
        (possibly commented-out) assignment of the same key or appending one.

        Returns:
            LineStatus: ALREADY_PRESENT if the file already had this exact value.
        """
        path = Path(path)
        assignment = f"{key}='{value}'"
        pattern = re.compile(rf"^\s*#?\s*{re.escape(key)}\s*=.*$")

        lines = self._read(path).splitlines()
        if any(line.strip() == assignment for line in lines):
            return LineStatus.ALREADY_PRESENT

        replaced = False
        updated = []
        for line in lines:
            if not replaced and pattern.match(line):
                updated.append(assignment)
                replaced = True
            else:
                updated.append(line)
        if not replaced:
            updated.append(assignment)

        self._replace(path, "\n".join(updated) + "\n", f"Setting {assignment} in {path}")
        return LineStatus.APPENDED
