"""
Batch processing of candidate actions.

Final states are prepared independently, each action with its own random
stream spawned from the caller's generator, so preparation may run in worker
threads without changing the result. Commits happen one at a time in order
of execution time; an action whose incoming particles were consumed by an
earlier commit is dropped.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

import numpy as np

from .action import Action
from .collection import Particles
from .errors import InvalidResonanceFormation
from .pauli import PauliBlocker

logger = logging.getLogger(__name__)


def spawn_streams(rng: np.random.Generator, n: int) -> List[np.random.Generator]:
    """n independent generators, determined by the state of ``rng``."""
    seed_seq = np.random.SeedSequence(rng.integers(0, 2**63 - 1, size=4))
    return [np.random.default_rng(child) for child in seed_seq.spawn(n)]


def _prepare(action: Action, rng: np.random.Generator) -> Optional[InvalidResonanceFormation]:
    try:
        action.generate_final_state(rng)
    except InvalidResonanceFormation as e:
        return e
    return None


def perform_actions(
    actions: Sequence[Action],
    particles: Particles,
    rng: np.random.Generator,
    pauli_blocker: Optional[PauliBlocker] = None,
    first_process_id: int = 1,
    max_workers: Optional[int] = None,
    verbose: bool = False,
) -> Dict:
    """
    Prepare and commit a batch of actions.

    Args:
        actions: Candidate actions, all built from records of ``particles``
        particles: Shared collection; only modified by committed actions
        rng: Generator seeding the per-action streams (and the Pauli veto)
        pauli_blocker: Optional phase-space-density estimator for the veto
        first_process_id: Process id of the first committed action (non-zero)
        max_workers: Threads for preparation; None or 1 prepares inline
        verbose: Log a summary at INFO level

    Returns:
        Dict with keys: performed, invalid, no_reaction, failed, blocked,
        total, process_ids
    """
    ordered = sorted(actions, key=lambda a: a.time_of_execution)
    streams = spawn_streams(rng, len(ordered))

    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            failures = list(executor.map(_prepare, ordered, streams))
    else:
        failures = [_prepare(a, s) for a, s in zip(ordered, streams)]

    stats = {
        "performed": 0,
        "invalid": 0,
        "no_reaction": 0,
        "failed": 0,
        "blocked": 0,
        "total": len(ordered),
        "process_ids": [],
    }
    id_process = first_process_id

    for action, failure in zip(ordered, failures):
        if not action.is_valid(particles):
            logger.debug(f"Dropping {action}: incoming particles are gone")
            stats["invalid"] += 1
            continue
        if failure is not None:
            logger.warning(f"Skipping {action}: {failure}")
            stats["failed"] += 1
            continue
        if not action.outgoing_particles:
            stats["no_reaction"] += 1
            continue
        if pauli_blocker is not None and action.is_pauli_blocked(particles, pauli_blocker, rng):
            stats["blocked"] += 1
            continue
        action.perform(particles, id_process)
        stats["process_ids"].append(id_process)
        stats["performed"] += 1
        id_process += 1

    if verbose:
        logger.info(
            f"Batch complete: {stats['performed']}/{stats['total']} performed, "
            f"{stats['invalid']} invalid, {stats['blocked']} blocked, "
            f"{stats['failed']} failed, {stats['no_reaction']} without reaction"
        )
    return stats
