"""
Base class for all actions: a candidate transition of a fixed set of
incoming particles into an outgoing set.

Lifecycle: construct -> ``is_valid`` -> ``generate_final_state`` ->
``perform`` (commit) or discard. Everything before ``perform`` only reads the
shared particle collection; an action is not reused after ``perform``.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .collection import Particles
from .conservation import check_conservation
from .errors import PreconditionViolation
from .kinematics import FourVector, sum_four_vectors
from .particles import ParticleData, ParticleType
from .pauli import PauliBlocker
from .potentials import PotentialLattice
from .process import ProcessType
from .sampling import sample_angles, sample_masses

logger = logging.getLogger(__name__)


class Action(ABC):
    """
    Parameters
    ----------
    in_part : list of ParticleData
        Incoming particles; copies are stored.
    time : float
        Time of the action relative to the first incoming particle's clock.
    ub_lattice, ui3_lattice : PotentialLattice, optional
        Baryon-density and isospin mean-field potentials. Not owned.
    """

    def __init__(self, in_part: Sequence[ParticleData], time: float,
                 ub_lattice: Optional[PotentialLattice] = None,
                 ui3_lattice: Optional[PotentialLattice] = None):
        if not in_part:
            raise ValueError("An action needs at least one incoming particle")
        self.incoming_particles: List[ParticleData] = [p.copy() for p in in_part]
        self.time_of_execution = time + self.incoming_particles[0].position.x0
        self.process_type = ProcessType.NONE
        self.outgoing_particles: List[ParticleData] = []
        self.ub_lattice = ub_lattice
        self.ui3_lattice = ui3_lattice
        self.partial_weight = 0.0
        self._performed = False

    # -------------------- Weights --------------------

    @abstractmethod
    def get_total_weight(self) -> float:
        """Aggregate probability or cross section over all channels."""

    def get_partial_weight(self) -> float:
        """Weight of the channel that was chosen."""
        return self.partial_weight

    @abstractmethod
    def generate_final_state(self, rng: np.random.Generator) -> None:
        """Choose a channel and fill ``outgoing_particles`` completely."""

    def _discard_final_state(self) -> None:
        """Forget a partially built final state; the outgoing list is either empty or complete."""
        self.process_type = ProcessType.NONE
        self.outgoing_particles = []
        self.partial_weight = 0.0

    # -------------------- Validity / veto --------------------

    def is_valid(self, particles: Particles) -> bool:
        return all(particles.is_valid(p) for p in self.incoming_particles)

    def update_incoming(self, particles: Particles) -> None:
        self.incoming_particles = [particles.lookup(p) for p in self.incoming_particles]

    def is_pauli_blocked(self, particles: Particles, blocker: PauliBlocker,
                         rng: np.random.Generator) -> bool:
        # Blocking a wall crossing would leave the particle outside the box.
        if self.process_type == ProcessType.WALL:
            return False
        for p in self.outgoing_particles:
            if not p.is_baryon:
                continue
            f = blocker.phasespace_dens(p.position.threevec, p.momentum.threevec,
                                        particles, p.pdgcode, self.incoming_particles)
            if f > rng.random():
                logger.debug(f"{self} is pauli-blocked with f = {f:.4f}")
                return True
        return False

    # -------------------- Kinematics --------------------

    def total_momentum(self) -> FourVector:
        return sum_four_vectors([p.momentum for p in self.incoming_particles])

    def total_momentum_of_outgoing_particles(self) -> FourVector:
        return sum_four_vectors([p.momentum for p in self.outgoing_particles])

    def sqrt_s(self) -> float:
        return self.total_momentum().mass

    def get_interaction_point(self) -> FourVector:
        """Mean incoming four-position; production point of the outgoing particles."""
        return sum_four_vectors([p.position for p in self.incoming_particles]) / len(self.incoming_particles)

    def get_potential_at_interaction_point(self) -> Tuple[float, float]:
        r = self.get_interaction_point().threevec
        ub = self.ub_lattice.value_at(r) if self.ub_lattice is not None else None
        ui3 = self.ui3_lattice.value_at(r) if self.ui3_lattice is not None else None
        return (ub if ub is not None else 0.0, ui3 if ui3 is not None else 0.0)

    def kinetic_energy_cms(self, potentials: Optional[Tuple[float, float]] = None,
                           out_types: Optional[Sequence[ParticleType]] = None) -> float:
        """
        CM energy corrected by the change of mean-field potential energy.

        By default uses the potentials at the interaction point and the
        species of ``outgoing_particles``; pass ``out_types`` to evaluate a
        candidate channel before any outgoing particles exist.
        """
        if out_types is None:
            out_types = [p.type for p in self.outgoing_particles]
        if potentials is None:
            potentials = self.get_potential_at_interaction_point()
        scale_b = 0.0
        scale_i3 = 0.0
        for ptype in (p.type for p in self.incoming_particles):
            skyrme, symmetry = ptype.force_scale
            scale_b += skyrme
            scale_i3 += symmetry * ptype.isospin3_rel
        for ptype in out_types:
            skyrme, symmetry = ptype.force_scale
            scale_b -= skyrme
            scale_i3 -= symmetry * ptype.isospin3_rel
        return self.sqrt_s() + potentials[0] * scale_b + potentials[1] * scale_i3

    def _reaction_label(self) -> str:
        return (" ".join(p.type.name for p in self.incoming_particles) + " → "
                + " ".join(p.type.name for p in self.outgoing_particles))

    def sample_masses(self, rng: np.random.Generator) -> Tuple[float, float]:
        return sample_masses(self.outgoing_particles[0].type, self.outgoing_particles[1].type,
                             self.kinetic_energy_cms(), rng, self._reaction_label())

    def sample_angles(self, masses: Tuple[float, float], rng: np.random.Generator) -> None:
        """Set back-to-back CM momenta of the two outgoing particles."""
        p_a, p_b = sample_angles(masses, self.kinetic_energy_cms(), rng)
        self.outgoing_particles[0].momentum = p_a
        self.outgoing_particles[1].momentum = p_b
        logger.debug(f"p_a: {self.outgoing_particles[0]}\np_b: {self.outgoing_particles[1]}")

    def sample_2body_phasespace(self, rng: np.random.Generator) -> None:
        if len(self.outgoing_particles) != 2:
            raise PreconditionViolation(
                f"Two-body phase space needs 2 outgoing particles, got {len(self.outgoing_particles)}"
            )
        masses = self.sample_masses(rng)
        self.sample_angles(masses, rng)

    # -------------------- Commit --------------------

    def perform(self, particles: Particles, id_process: int) -> None:
        """Commit the outgoing particles into the collection."""
        if id_process == 0:
            raise PreconditionViolation("perform requires a non-zero process id")
        if self._performed:
            raise PreconditionViolation(f"{self} was already performed")
        if not self.outgoing_particles:
            raise PreconditionViolation(f"{self} has no final state to perform")

        if self.process_type != ProcessType.WALL:
            for p in self.outgoing_particles:
                p.set_history(p.history.collisions_per_particle + 1, id_process,
                              self.process_type, self.time_of_execution, self.incoming_particles)

        self.outgoing_particles = particles.update(
            self.incoming_particles, self.outgoing_particles,
            not self.process_type.keeps_identity,
        )
        self._performed = True
        logger.debug(f"Particle map now has {particles.size()} elements.")

        # With mean fields attached, potential energy is exchanged with the
        # field and the four-momentum totals need not match.
        if self.ub_lattice is None and self.ui3_lattice is None:
            self.check_conservation(id_process)

    def check_conservation(self, id_process: int) -> bool:
        return check_conservation(self.incoming_particles, self.outgoing_particles,
                                  self.process_type, id_process)

    # -------------------- Output --------------------

    def _describe(self) -> str:
        return f"{type(self).__name__} of"

    def __str__(self) -> str:
        incoming = " ".join(p.type.name for p in self.incoming_particles)
        if not self.outgoing_particles:
            return f"{self._describe()} {incoming} (not performed)"
        outgoing = " ".join(p.type.name for p in self.outgoing_particles)
        return f"{self._describe()} {incoming} to {outgoing}"


def format_action_list(actions: Sequence[Action]) -> str:
    return "ActionList {\n" + "".join(f"- {a}\n" for a in actions) + "}"
