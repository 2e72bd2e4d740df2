# arch_optimizer/cli.py
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.table import Table

from arch_optimizer.actions import build_main_menu, build_registry
from arch_optimizer.autopilot import AutoPilotSequencer
from arch_optimizer.config.models import DEFAULT_CONFIG_PATH, OptimizerConfig
from arch_optimizer.detect import audio_detector, gpu_detector
from arch_optimizer.dispatcher import MenuDispatcher
from arch_optimizer.preflight import ensure_prerequisites
from arch_optimizer.prompts import ConfirmationGate, ConsolePrompter
from arch_optimizer.registry import ActionId, ActionRegistry
from arch_optimizer.session import Session, create_session
from arch_optimizer.utils.exceptions import CancellationSignal, SetupFailure
from arch_optimizer.utils.executor import Executor
from arch_optimizer.utils.logger import RichAppLogger, initialize_app_logger

APP_NAME = "arch_optimizer"

app = typer.Typer(
    help="Interactive optimizer for Arch-based KDE desktops.",
    add_completion=False,
)


@dataclass
class AppState:
    config: OptimizerConfig
    logger: RichAppLogger
    registry: ActionRegistry
    session: Session
    prompter: ConsolePrompter
    strict: bool = False


def load_config(path: Optional[Path]) -> OptimizerConfig:
    """Loads `path`, or the packaged defaults. Exits with code 1 on invalid configuration."""
    source = path or DEFAULT_CONFIG_PATH
    try:
        return OptimizerConfig.load_config_from_file(source)
    except (ValueError, ValidationError) as e:
        typer.secho(f"Invalid configuration '{source}':\n{e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _preflight(state: AppState):
    try:
        ensure_prerequisites(state.session.executor, state.session.pacman)
    except SetupFailure as e:
        state.logger.critical(f"Setup terminated: {e}")
        raise typer.Exit(code=1)


def _exit_code(state: AppState, failed: int) -> int:
    return 1 if state.strict and failed else 0


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML configuration replacing the defaults.",
                                          exists=True, dir_okay=False, readable=True),
    dry_run: bool = typer.Option(False, "--dry-run", help="Log privileged commands instead of running them."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to every confirmation."),
    no: bool = typer.Option(False, "--no", "-n", help="Answer no to every confirmation."),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory for the log file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output on the console."),
    strict: bool = typer.Option(False, "--strict", help="Exit with code 1 when any action fails."),
):
    """
    Without a command, shows the interactive menu.
    """
    if yes and no:
        raise typer.BadParameter("--yes and --no are mutually exclusive.")

    cfg = load_config(config)

    logger = initialize_app_logger(
        app_name=APP_NAME,
        log_directory=str(log_dir or cfg.logging.directory),
        log_file_name=cfg.logging.file_name,
        file_log_level=logging.getLevelName(cfg.logging.file_level),
        console_log_level=logging.DEBUG if verbose else logging.getLevelName(cfg.logging.console_level),
    )

    executor = Executor(logger_instance=logger, default_timeout=cfg.executor.timeout, dry_run=dry_run)
    if dry_run:
        logger.warning("Running in DRY-RUN mode. No changes will be made to this system.")

    registry = build_registry(cfg)
    prompter = ConsolePrompter(logger.console)
    gate = ConfirmationGate(prompter, logger, cfg.confirm.non_interactive, assume=True if yes else (False if no else None))
    session = create_session(cfg, logger, executor, registry, gate)

    state = AppState(cfg, logger, registry, session, prompter, strict)
    ctx.obj = state

    if ctx.invoked_subcommand is None:
        _preflight(state)
        dispatcher = MenuDispatcher(
            registry, session, prompter, build_main_menu(cfg),
            sequencer=AutoPilotSequencer(registry, session),
        )
        code = dispatcher.run()
        raise typer.Exit(code=code or _exit_code(state, session.summary().failed))


@app.command()
def autopilot(ctx: typer.Context):
    """Run the configured sequence of actions end to end."""
    state: AppState = ctx.obj
    sequence = list(state.config.autopilot.sequence)

    try:
        proceed = state.session.gate.ask(f"Run {len(sequence)} action(s): {', '.join(s.value for s in sequence)}?")
    except CancellationSignal:
        proceed = False
    if not proceed:
        state.logger.info("Auto-Pilot not started.")
        raise typer.Exit(code=0)

    _preflight(state)
    sequencer = AutoPilotSequencer(state.registry, state.session)
    sequencer.run(sequence)
    raise typer.Exit(code=_exit_code(state, sequencer.last_summary.failed))


@app.command()
def run(ctx: typer.Context, action: ActionId = typer.Argument(..., help="Identifier of the action to invoke.")):
    """Invoke a single action."""
    state: AppState = ctx.obj
    _preflight(state)
    try:
        result = state.registry.invoke(action, state.session)
    except CancellationSignal as e:
        state.logger.info(e.message)
        raise typer.Exit(code=0)
    raise typer.Exit(code=_exit_code(state, int(result.failed)))


@app.command()
def detect(ctx: typer.Context):
    """Print the detected host capabilities."""
    state: AppState = ctx.obj
    executor = state.session.executor

    table = Table(title="Host capabilities")
    table.add_column("Axis", style="bold")
    table.add_column("Category")
    table.add_column("Confidence")
    table.add_column("Evidence")
    for axis, detector in (("GPU", gpu_detector(executor)), ("Audio server", audio_detector(executor))):
        capability = detector.detect()
        table.add_row(axis, capability.category.value, capability.confidence.value, capability.evidence or "-")
    state.logger.console.print(table)


@app.command()
def actions(ctx: typer.Context):
    """List the registered actions."""
    state: AppState = ctx.obj

    table = Table(title="Actions")
    table.add_column("Id", style="bold")
    table.add_column("Label")
    table.add_column("Group")
    table.add_column("Markers")
    for action in state.registry:
        table.add_row(action.id.value, action.label, action.group or "-", ", ".join(action.markers) or "-")
    state.logger.console.print(table)


@app.command("config")
def show_config(ctx: typer.Context):
    """Print a summary of the active configuration."""
    state: AppState = ctx.obj
    typer.echo(state.config.display_summary())
