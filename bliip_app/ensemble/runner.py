"""
Concurrent Monte Carlo execution.

Draws run on a thread pool and share only the immutable inputs. Results
land in a per-index slot so the aggregate does not depend on completion
order. The coordinator waits for all draws (barrier), the overall
ensemble deadline, a single stuck draw, or cancellation, whichever comes
first.
"""

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Optional, Protocol

from ..config.defaults import EnsemblePolicy
from ..errors import (
    ConfigurationError,
    DrawFailure,
    EnsembleCancelledError,
    EnsembleTimeoutError,
    PartialEnsembleError,
)
from ..logging.config import get_ensemble_logger
from ..models.inputs import UserInputs
from ..models.results import EnsembleOutcome, OutcomeStatus
from ..models.trajectory import SimulationDraw
from .aggregator import EnsembleAggregator
from .perturbation import DrawSpec, PerturbationPlan


class TrajectoryIntegrator(Protocol):
    """Flight physics engine supplied by the caller."""

    def simulate(self, inputs: UserInputs, seed: int) -> SimulationDraw:
        ...


class CancellationToken:
    """Cooperative cancellation shared between a caller and running draws."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class EnsembleRunner:
    """Runs a perturbation plan and aggregates its draws."""

    def __init__(self, integrator: TrajectoryIntegrator,
                 policy: Optional[EnsemblePolicy] = None,
                 aggregator: Optional[EnsembleAggregator] = None) -> None:
        self.integrator = integrator
        self.policy = policy or EnsemblePolicy()
        self.aggregator = aggregator or EnsembleAggregator(self.policy)
        self.logger = get_ensemble_logger(__name__)

    def run_nominal(self, inputs: UserInputs, base_seed: Optional[int] = None) -> SimulationDraw:
        """Single unperturbed draw used for the displayed trajectory."""
        plan = PerturbationPlan(inputs, base_seed=base_seed)
        return self.integrator.simulate(plan.nominal_inputs(), plan.nominal_seed())

    def _execute(self, spec: DrawSpec, cancel_token: CancellationToken,
                 started: dict[int, float]) -> Optional[SimulationDraw]:
        if cancel_token.cancelled:
            return None
        started[spec.index] = time.monotonic()

        try:
            return self.integrator.simulate(spec.inputs, spec.seed).tagged(spec.source, spec.index)
        except DrawFailure as e:
            self.logger.warning(
                "Draw did not converge",
                draw_index=spec.index,
                seed=spec.seed,
                source=spec.source.value,
                error=str(e),
            )
            return SimulationDraw.failed(spec.seed, spec.inputs, str(e), source=spec.source, index=spec.index)
        except Exception as e:
            self.logger.error(
                "Draw raised unexpectedly",
                draw_index=spec.index,
                seed=spec.seed,
                source=spec.source.value,
                error=str(e),
                exc_info=True,
            )
            return SimulationDraw.failed(spec.seed, spec.inputs, str(e), source=spec.source, index=spec.index)

    def run(self, inputs: UserInputs, cancel_token: Optional[CancellationToken] = None,
            base_seed: Optional[int] = None) -> EnsembleOutcome:
        """
        Run the ensemble for validated inputs.

        Args:
            inputs: Validated mission parameters
            cancel_token: Optional cooperative cancellation token
            base_seed: Override for the input-derived seed

        Returns:
            EnsembleOutcome; ensemble failures are reported as outcome
            variants rather than raised
        """
        cancel_token = cancel_token or CancellationToken()
        plan = PerturbationPlan(inputs, base_seed=base_seed)
        planned = len(plan)
        slots: list[Optional[SimulationDraw]] = [None] * planned
        started: dict[int, float] = {}
        timeout_error: Optional[EnsembleTimeoutError] = None

        self.logger.info("Ensemble started", planned=planned, base_seed=plan.base_seed)

        executor = ThreadPoolExecutor(max_workers=min(self.policy.max_workers, max(1, planned)))
        try:
            futures: dict[Future, int] = {
                executor.submit(self._execute, spec, cancel_token, started): spec.index
                for spec in plan
            }
            pending = set(futures)
            deadline = time.monotonic() + self.policy.ensemble_timeout_seconds

            while pending and not cancel_token.cancelled:
                done, pending = wait(pending, timeout=self.policy.poll_interval_seconds,
                                     return_when=FIRST_COMPLETED)
                for future in done:
                    if not future.cancelled():
                        slots[futures[future]] = future.result()

                now = time.monotonic()
                if pending and now >= deadline:
                    timeout_error = EnsembleTimeoutError(
                        f"Ensemble exceeded {self.policy.ensemble_timeout_seconds}s",
                        timeout_seconds=self.policy.ensemble_timeout_seconds,
                        succeeded=_count_succeeded(slots),
                        total=planned,
                    )
                    break

                stuck = [
                    futures[f] for f in pending
                    if futures[f] in started and now - started[futures[f]] >= self.policy.draw_timeout_seconds
                ]
                if stuck:
                    timeout_error = EnsembleTimeoutError(
                        f"Draw {min(stuck)} exceeded {self.policy.draw_timeout_seconds}s",
                        timeout_seconds=self.policy.draw_timeout_seconds,
                        scope="draw",
                        succeeded=_count_succeeded(slots),
                        total=planned,
                    )
                    break

            # Draws that finished after the last poll still count
            for future in pending:
                if future.done() and not future.cancelled():
                    slots[futures[future]] = future.result()
        finally:
            # Unblocks the coordinator on timeout/cancel; running draws finish in the background
            executor.shutdown(wait=False, cancel_futures=True)

        completed = [draw for draw in slots if draw is not None]

        if timeout_error is not None:
            self.logger.warning("Ensemble timed out", completed=len(completed), planned=planned,
                                scope=timeout_error.scope)
            return EnsembleOutcome(OutcomeStatus.TIMEOUT, planned, len(completed), error=timeout_error)

        if cancel_token.cancelled and len(completed) < planned:
            return self._cancelled(completed, planned, inputs)

        return self._aggregate(completed, planned, inputs, reduced_confidence=False,
                               status=OutcomeStatus.OK)

    def _cancelled(self, completed: list[SimulationDraw], planned: int,
                   inputs: UserInputs) -> EnsembleOutcome:
        error = EnsembleCancelledError(
            f"Ensemble cancelled after {len(completed)} of {planned} draws",
            completed=len(completed),
            total=planned,
        )
        self.logger.warning("Ensemble cancelled", completed=len(completed), planned=planned)

        if not self.policy.salvage_on_cancel or not any(draw.succeeded for draw in completed):
            return EnsembleOutcome(OutcomeStatus.CANCELLED, planned, len(completed), error=error)

        outcome = self._aggregate(completed, planned, inputs, reduced_confidence=True,
                                  status=OutcomeStatus.CANCELLED)
        return EnsembleOutcome(OutcomeStatus.CANCELLED, planned, len(completed),
                               aggregate=outcome.aggregate, error=error)

    def _aggregate(self, completed: list[SimulationDraw], planned: int, inputs: UserInputs,
                   reduced_confidence: bool, status: OutcomeStatus) -> EnsembleOutcome:
        try:
            aggregate = self.aggregator.aggregate(
                completed,
                launch_time=inputs.launch_location.launch_time,
                reduced_confidence=reduced_confidence,
            )
        except PartialEnsembleError as e:
            self.logger.warning("Ensemble below success threshold",
                                succeeded=e.succeeded, required=e.required, total=e.total)
            return EnsembleOutcome(OutcomeStatus.PARTIAL, planned, len(completed), error=e)
        except ConfigurationError as e:
            self.logger.error("Ensemble configuration error", error=str(e), parameter=e.parameter)
            return EnsembleOutcome(OutcomeStatus.CONFIGURATION_ERROR, planned, len(completed), error=e)

        self.logger.info(
            "Ensemble completed",
            planned=planned,
            completed=len(completed),
            successful=aggregate.sample_size,
            reduced_confidence=reduced_confidence,
        )
        return EnsembleOutcome(status, planned, len(completed), aggregate=aggregate)


def _count_succeeded(slots: list[Optional[SimulationDraw]]) -> int:
    return sum(1 for draw in slots if draw is not None and draw.succeeded)
