# arch_optimizer/utils/executor.py

import os
import subprocess
import shlex
from typing import Tuple, Optional, Union, List

from arch_optimizer.utils.logger import RichAppLogger
from arch_optimizer.utils.exceptions import (
    ShellCommandError,
    CommandNotFoundError,
    CommandTimeoutError,
    InvalidCommandError,
    PermissionDeniedError,
)

CommandResult = Tuple[int, str, str]


class Executor:
    """
    Executes shell commands with Dependency Injection for logging, `sudo`
    elevation for privileged commands and centralized exception handling
    via the RichAppLogger.
    """

    def __init__(self,
                 logger_instance: RichAppLogger,
                 default_timeout: Optional[float] = None,
                 use_sudo: Optional[bool] = None,
                 dry_run: bool = False):
        """
        Initializes the Executor.

        `use_sudo` defaults to True unless the process already runs as root.
        With `dry_run`, privileged mutations are logged instead of executed;
        read-only queries still run.
        """
        self.logger = logger_instance

        if default_timeout is not None and default_timeout <= 0:
            self.logger.error("Default timeout must be a positive number or None.")
            raise ValueError("Default timeout must be a positive number or None.")

        self._default_timeout = default_timeout
        self._use_sudo = (os.geteuid() != 0) if use_sudo is None else use_sudo
        self.dry_run = dry_run
        self.logger.debug(f"Executor initialized with default_timeout: {self._default_timeout}, "
                          f"use_sudo: {self._use_sudo}, dry_run: {self.dry_run}")

    @property
    def uses_sudo(self) -> bool:
        return self._use_sudo

    def _prepare_command(self, command: Union[str, list], privileged: bool) -> List[str]:
        """
        Prepares the command for execution by shlex.split if it's a string,
        and prepends sudo if the command is privileged.
        """
        if not command:
            self.logger.error("Attempted to prepare an empty command.")
            raise InvalidCommandError(str(command), "Command cannot be empty.")

        if isinstance(command, str):
            try:
                parsed_command = shlex.split(command)
            except ValueError as e:
                self.logger.error(f"Failed to parse command string '{command}': {e}")
                raise InvalidCommandError(command, f"Failed to parse command string: {e}")
        elif isinstance(command, list):
            if not all(isinstance(arg, str) for arg in command):
                raise InvalidCommandError(str(command), "All elements in command list must be strings.")
            parsed_command = command
        else:
            self.logger.error(f"Invalid command type: {type(command)}. Expected str or list.")
            raise InvalidCommandError(str(command), "Command must be a string or a list of strings.")

        if privileged and self._use_sudo:
            return ["sudo"] + parsed_command
        return parsed_command

    def execute_command(self,
                        command: Union[str, list],
                        capture_output: bool = True,
                        timeout: Optional[float] = None,
                        check: bool = True,
                        input_text: Optional[str] = None,
                        cwd: Optional[str] = None
                        ) -> CommandResult:
        """
        Executes a command using subprocess.run. This is the low-level execution method.
        """
        actual_timeout = timeout if timeout is not None else self._default_timeout
        cmd_string_for_log = shlex.join(command) if isinstance(command, list) else command

        self.logger.debug(f"Attempting low-level execution: '{cmd_string_for_log}' "
                          f"timeout={actual_timeout}s, capture_output={capture_output}, check={check}")

        command_to_execute = self._prepare_command(command, privileged=False)

        try:
            process = subprocess.run(
                command_to_execute,
                capture_output=capture_output,
                text=True,
                input=input_text,
                timeout=actual_timeout,
                check=False,
                cwd=cwd
            )
        except FileNotFoundError:
            self.logger.error(f"Command '{cmd_string_for_log}' not found. Ensure it's in the system's PATH.")
            raise CommandNotFoundError(command=cmd_string_for_log, stdout="", stderr="Command not found. Check PATH.")
        except PermissionError:
            self.logger.error(f"Command '{cmd_string_for_log}' is not executable.")
            raise PermissionDeniedError(command=cmd_string_for_log, stderr="Permission denied.")
        except subprocess.TimeoutExpired as e:
            self.logger.warning(f"Command '{cmd_string_for_log}' timed out after {actual_timeout} seconds.")
            stdout = e.stdout.decode() if isinstance(e.stdout, bytes) else (e.stdout or "")
            stderr = e.stderr.decode() if isinstance(e.stderr, bytes) else (e.stderr or "")
            raise CommandTimeoutError(command=cmd_string_for_log, timeout=actual_timeout, stdout=stdout, stderr=stderr)
        except (TypeError, ValueError) as e:
            self.logger.error(f"Argument error during low-level command execution '{cmd_string_for_log}': {e}")
            raise InvalidCommandError(cmd_string_for_log, f"Argument error in command execution: {e}")

        stdout = process.stdout if capture_output and process.stdout else ""
        stderr = process.stderr if capture_output and process.stderr else ""
        exit_code = process.returncode

        if check and exit_code != 0:
            self.logger.error(f"Command: '{cmd_string_for_log}', Exit Code: {exit_code}, Stderr: {stderr.strip()}")

            if "command not found" in stderr.lower() or exit_code == 127:
                raise CommandNotFoundError(command=cmd_string_for_log, stdout=stdout, stderr=stderr)
            elif "permission denied" in stderr.lower() or exit_code == 126:
                raise PermissionDeniedError(command=cmd_string_for_log, stdout=stdout, stderr=stderr)
            raise ShellCommandError(
                command=cmd_string_for_log,
                exit_code=exit_code,
                stdout=stdout,
                stderr=stderr,
                message=f"Command failed with exit code {exit_code}"
            )

        self.logger.debug(f"Low-level execution of '{cmd_string_for_log}' completed with exit code {exit_code}")
        return exit_code, stdout, stderr

    def query(self, command: Union[str, list], timeout: Optional[float] = None) -> CommandResult:
        """
        Runs a read-only, unprivileged command without raising on a non-zero exit code.
        Queries are executed even in dry-run mode.
        """
        return self.execute_command(command, capture_output=True, timeout=timeout, check=False)

    def run(self,
            description: str,
            command: Union[str, list],
            privileged: bool = True,
            capture_output: bool = True,
            timeout: Optional[float] = None,
            check: bool = True,
            input_text: Optional[str] = None,
            cwd: Optional[str] = None
            ) -> CommandResult:
        """
        Executes a host-mutating command inside the RichAppLogger's execution_step
        context manager for TUI feedback, logging and centralized exception handling.
        """
        prepared_command_list = self._prepare_command(command, privileged=privileged)

        if self.dry_run:
            self.logger.info(f"DRY RUN: Execution skipped for: '{description}'")
            self.logger.debug(f"DRY RUN COMMAND (Prepared): {shlex.join(prepared_command_list)}")
            return 0, "DRY_RUN_STDOUT", "DRY_RUN_STDERR"

        # The context manager prints [RUNNING], then [COMPLETED] or [FAILED],
        # and re-raises any exception from execute_command.
        with self.logger.execution_step(description):

            exit_code, stdout, stderr = self.execute_command(
                command=prepared_command_list,
                capture_output=capture_output,
                timeout=timeout,
                check=check,
                input_text=input_text,
                cwd=cwd
            )

            self.logger.debug(f"Command '{description}' completed. Output details:")
            if stdout:
                self.logger.debug(f"  Stdout:\n{stdout.strip()}")
            if stderr:
                self.logger.debug(f"  Stderr:\n{stderr.strip()}")

            return exit_code, stdout, stderr
