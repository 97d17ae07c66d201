import logging
from typing import Iterable, Iterator, List, Optional, Sequence

import numpy as np

from .particles import ParticleData, ParticleType
from .process import ProcessType

logger = logging.getLogger(__name__)


class CollisionBranch:
    """One candidate outgoing channel: species list, weight and reaction type."""

    def __init__(self, particle_types: Sequence[ParticleType], weight: float,
                 process_type: ProcessType):
        self.particle_types = list(particle_types)
        self.weight = float(weight)
        self.process_type = process_type

    def particle_list(self) -> List[ParticleData]:
        """Fresh outgoing records, without momenta or positions yet."""
        return [ParticleData(t) for t in self.particle_types]

    def __repr__(self) -> str:
        names = " ".join(t.name for t in self.particle_types)
        return f"CollisionBranch({names}, w={self.weight:.4g}, {self.process_type.name})"


class BranchList:
    """
    Append-only list of branches with a running total weight.

    Branches with zero weight are not stored; negative weights are rejected.
    """

    def __init__(self):
        self._branches: List[CollisionBranch] = []
        self._total_weight = 0.0

    def add(self, branch: CollisionBranch) -> None:
        if branch.weight < 0.0:
            raise ValueError(f"Negative branch weight: {branch}")
        if branch.weight == 0.0:
            logger.debug(f"Skipping zero-weight branch {branch}")
            return
        self._branches.append(branch)
        self._total_weight += branch.weight

    def extend(self, branches: Iterable[CollisionBranch]) -> None:
        for branch in branches:
            self.add(branch)

    @property
    def total_weight(self) -> float:
        return self._total_weight

    def choose(self, rng: np.random.Generator) -> Optional[CollisionBranch]:
        """
        Pick a branch with probability weight / total.

        Returns None if the total weight is not positive: no reaction is
        possible, which is not an error.
        """
        if not self._total_weight > 0.0:
            return None
        r = rng.random() * self._total_weight
        cumulative = 0.0
        for branch in self._branches:
            cumulative += branch.weight
            if cumulative > r:
                return branch
        # rounding put r at the very top of the interval
        return self._branches[-1]

    def __len__(self) -> int:
        return len(self._branches)

    def __iter__(self) -> Iterator[CollisionBranch]:
        return iter(self._branches)
