# arch_optimizer/autopilot.py
from typing import List, Optional, Sequence

from arch_optimizer.registry import ActionId, ActionRegistry
from arch_optimizer.results import MutationResult, RunSummary, summarize
from arch_optimizer.session import Session
from arch_optimizer.utils.exceptions import CancellationSignal


class AutoPilotSequencer:
    """
    Runs a fixed, ordered list of actions end to end.

    Failures are fail-soft: every remaining step still runs. Only a
    CancellationSignal raised at a Confirmation Gate stops the sequence.
    """

    def __init__(self, registry: ActionRegistry, session: Session):
        self.registry = registry
        self.session = session
        self.last_summary: Optional[RunSummary] = None

    def run(self, sequence: Sequence[ActionId]) -> List[MutationResult]:
        logger = self.session.logger
        results: List[MutationResult] = []
        cancelled = False

        logger.section(f"Auto-Pilot: {len(sequence)} step(s)")
        for index, action_id in enumerate(sequence, start=1):
            logger.info(f"Step {index}/{len(sequence)}: {getattr(action_id, 'value', action_id)}")
            try:
                results.append(self.registry.invoke(action_id, self.session))
            except CancellationSignal as e:
                logger.warning(f"Auto-Pilot cancelled at step {index}: {e.message}")
                cancelled = True
                break

        self.last_summary = summarize(results, cancelled=cancelled)
        logger.summary(self.last_summary)
        return results
