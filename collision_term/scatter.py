import logging
from typing import Iterable, Optional

import numpy as np

from .action import Action
from .branches import BranchList, CollisionBranch
from .errors import ActionError, InvalidScatterAction
from .particles import ParticleData
from .potentials import PotentialLattice
from .process import ProcessType

logger = logging.getLogger(__name__)


class ScatterAction(Action):
    """
    Collision of two particles.

    Channels come from upstream cross sections as weighted branches. The
    final state is sampled in the CM frame, boosted to the computational
    frame and placed at the interaction point.
    """

    def __init__(self, in_part_a: ParticleData, in_part_b: ParticleData, time: float,
                 ub_lattice: Optional[PotentialLattice] = None,
                 ui3_lattice: Optional[PotentialLattice] = None):
        super().__init__([in_part_a, in_part_b], time, ub_lattice, ui3_lattice)
        self._collision_channels = BranchList()

    def add_collision(self, branch: CollisionBranch) -> None:
        self._collision_channels.add(branch)

    def add_collisions(self, branches: Iterable[CollisionBranch]) -> None:
        self._collision_channels.extend(branches)

    def add_elastic(self, weight: float) -> None:
        types = [p.type for p in self.incoming_particles]
        self.add_collision(CollisionBranch(types, weight, ProcessType.ELASTIC))

    def get_total_weight(self) -> float:
        return self._collision_channels.total_weight

    def generate_final_state(self, rng: np.random.Generator) -> None:
        branch = self._collision_channels.choose(rng)
        if branch is None:
            logger.debug(f"{self}: no channel with positive weight")
            return
        self.process_type = branch.process_type
        self.partial_weight = branch.weight
        logger.debug(f"Chosen channel: {branch}")

        try:
            if self.process_type == ProcessType.ELASTIC:
                self._elastic_scattering(rng)
            elif self.process_type == ProcessType.TWO_TO_TWO:
                self.outgoing_particles = branch.particle_list()
                self.sample_2body_phasespace(rng)
            elif self.process_type == ProcessType.TWO_TO_ONE:
                self.outgoing_particles = branch.particle_list()
                self._resonance_formation()
            else:
                raise InvalidScatterAction(
                    f"ScatterAction: unsupported process type {self.process_type.name} was requested"
                )
        except ActionError:
            self._discard_final_state()
            raise

        beta_cm = self.total_momentum().beta()
        middle_point = self.get_interaction_point()
        for p in self.outgoing_particles:
            p.boost_momentum(beta_cm)
            p.set_4position(middle_point)

    def _elastic_scattering(self, rng: np.random.Generator) -> None:
        # Same particles, new directions; effective masses are kept.
        self.outgoing_particles = [p.copy() for p in self.incoming_particles]
        masses = (self.incoming_particles[0].effective_mass, self.incoming_particles[1].effective_mass)
        self.sample_angles(masses, rng)

    def _resonance_formation(self) -> None:
        if len(self.outgoing_particles) != 1:
            raise InvalidScatterAction(
                f"Resonance formation needs 1 outgoing particle, got {len(self.outgoing_particles)}"
            )
        self.outgoing_particles[0].set_4momentum(self.kinetic_energy_cms(), (0.0, 0.0, 0.0))

    def _describe(self) -> str:
        return "Scatter of"
