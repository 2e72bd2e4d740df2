# arch_optimizer/session.py
from dataclasses import dataclass, field
from typing import List

from arch_optimizer.config.models import OptimizerConfig
from arch_optimizer.conflicts import ConflictResolver
from arch_optimizer.detect import CapabilityDetector, gpu_detector
from arch_optimizer.executors.files import ConfigFileManager
from arch_optimizer.executors.pacman import PackageManager
from arch_optimizer.executors.services import ServiceManager
from arch_optimizer.prompts import ConfirmationGate
from arch_optimizer.registry import ActionRegistry
from arch_optimizer.results import MutationResult, RunSummary, summarize
from arch_optimizer.utils.executor import Executor
from arch_optimizer.utils.logger import RichAppLogger


@dataclass
class Session:
    """
    Process-wide state from start to exit: the collaborators every action
    uses, the current menu position and the log of results so far.

    Known limitation: nothing prevents a second instance from mutating the
    same package database concurrently; pacman's own lock is the only guard.
    """
    config: OptimizerConfig
    logger: RichAppLogger
    executor: Executor
    pacman: PackageManager
    files: ConfigFileManager
    services: ServiceManager
    detector: CapabilityDetector
    resolver: ConflictResolver
    gate: ConfirmationGate
    results: List[MutationResult] = field(default_factory=list)
    menu_path: List[str] = field(default_factory=list)

    def record(self, result: MutationResult):
        self.results.append(result)

    def summary(self) -> RunSummary:
        return summarize(self.results)


def create_session(config: OptimizerConfig,
                   logger: RichAppLogger,
                   executor: Executor,
                   registry: ActionRegistry,
                   gate: ConfirmationGate) -> Session:
    """Wires the host collaborators around an executor."""
    pacman = PackageManager(executor)
    return Session(
        config=config,
        logger=logger,
        executor=executor,
        pacman=pacman,
        files=ConfigFileManager(executor),
        services=ServiceManager(executor),
        detector=gpu_detector(executor),
        resolver=ConflictResolver(registry, pacman, logger),
        gate=gate,
    )
