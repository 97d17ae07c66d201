"""
Multi-particle (n -> 1) reactions.

Only the processes listed in ``ScatterActionMulti.generate_final_state`` are
implemented; any other process tag is a configuration error.
"""

from __future__ import annotations
import logging
import math
from typing import Iterable, Optional, Sequence

import numpy as np

from .action import Action
from .branches import BranchList, CollisionBranch
from .errors import ActionError, InvalidScatterActionMulti
from .kinematics import HBARC
from .particles import ParticleData, ParticleType, ParticleTypeRegistry
from .potentials import PotentialLattice
from .process import ProcessType

logger = logging.getLogger(__name__)

OMEGA_PDG = 223
# Three-body phase-space integral, approximated by its value at the omega pole.
I_3_PI = 0.07514


def three_different_pions(data_a: ParticleData, data_b: ParticleData, data_c: ParticleData) -> bool:
    """One each of pi+, pi- and pi0."""
    pdg_a, pdg_b, pdg_c = data_a.pdgcode, data_b.pdgcode, data_c.pdgcode
    return (data_a.type.is_pion and data_b.type.is_pion and data_c.type.is_pion) and (
        pdg_a != pdg_b and pdg_b != pdg_c and pdg_c != pdg_a
    )


class ScatterActionMulti(Action):

    def __init__(self, in_plist: Sequence[ParticleData], time: float,
                 ub_lattice: Optional[PotentialLattice] = None,
                 ui3_lattice: Optional[PotentialLattice] = None):
        super().__init__(in_plist, time, ub_lattice, ui3_lattice)
        self._reaction_channels = BranchList()

    def add_reaction(self, branch: CollisionBranch) -> None:
        self._reaction_channels.add(branch)

    def add_reactions(self, branches: Iterable[CollisionBranch]) -> None:
        self._reaction_channels.extend(branches)

    def get_total_weight(self) -> float:
        return self._reaction_channels.total_weight

    def add_possible_reactions(self, dt: float, gcell_vol: float, registry: ParticleTypeRegistry,
                               three_to_one: bool = True) -> None:
        """Add every implemented n -> 1 channel the incoming particles qualify for.

        Parameters
        ----------
        dt : float
            Time step (fm).
        gcell_vol : float
            Volume of the interaction cell (fm^3).
        """
        incoming = self.incoming_particles
        if three_to_one and len(incoming) == 3 and three_different_pions(*incoming):
            type_omega = registry.try_find(OMEGA_PDG)
            if type_omega is not None:
                self.add_reaction(CollisionBranch(
                    [type_omega],
                    self.probability_three_pi_to_one(type_omega, dt, gcell_vol),
                    ProcessType.MULTI_PARTICLE_THREE_PIONS_TO_OMEGA,
                ))

    def probability_three_pi_to_one(self, type_out: ParticleType, dt: float, gcell_vol: float) -> float:
        """Probability for the three pions to fuse into ``type_out`` within dt."""
        e1, e2, e3 = (p.momentum.x0 for p in self.incoming_particles)
        sqrts = self.sqrt_s()
        gamma_decay = type_out.get_partial_width(sqrts, [p.type for p in self.incoming_particles])
        spin_deg = type_out.spin_degeneracy
        ph_sp_3 = 1.0 / (8 * math.pi ** 3) * 1.0 / (16 * sqrts * sqrts) * I_3_PI
        spec_f_val = type_out.spectral_function(sqrts)

        return (dt / (gcell_vol * gcell_vol) * math.pi / (4.0 * e1 * e2 * e3)
                * gamma_decay / ph_sp_3 * spec_f_val * HBARC ** 5 * spin_deg)

    def generate_final_state(self, rng: np.random.Generator) -> None:
        logger.debug(f"Incoming particles: {self.incoming_particles}")

        branch = self._reaction_channels.choose(rng)
        if branch is None:
            logger.debug(f"{self}: no reaction with positive probability")
            return
        self.process_type = branch.process_type
        self.outgoing_particles = branch.particle_list()
        self.partial_weight = branch.weight
        logger.debug(f"Chosen channel: {self.process_type.name} {self.outgoing_particles}")

        try:
            if self.process_type == ProcessType.MULTI_PARTICLE_THREE_PIONS_TO_OMEGA:
                self._annihilation()
            else:
                raise InvalidScatterActionMulti(
                    f"ScatterActionMulti.generate_final_state: Invalid process type "
                    f"{self.process_type.name} was requested."
                )
        except ActionError:
            self._discard_final_state()
            raise

        middle_point = self.get_interaction_point()
        beta = self.total_momentum().beta()
        for new_particle in self.outgoing_particles:
            new_particle.boost_momentum(beta)
            new_particle.set_4position(middle_point)

    def _annihilation(self) -> None:
        """n -> 1: the new particle sits at rest with the invariant mass of the incoming set."""
        if len(self.outgoing_particles) != 1:
            raise InvalidScatterActionMulti(
                f"Annihilation: Incorrect number of particles in final state: "
                f"{len(self.outgoing_particles)}."
            )
        self.outgoing_particles[0].set_4momentum(self.total_momentum().mass, (0.0, 0.0, 0.0))
        logger.debug(f"Momentum of the new particle: {self.outgoing_particles[0].momentum}")

    def _describe(self) -> str:
        return "MultiParticleScatter of"
