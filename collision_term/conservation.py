# conservation.py
# Quantum-number snapshots of particle lists and the before/after check run
# when an action is performed.
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Sequence

from .errors import ConservationViolation, PhotonConservationViolation
from .kinematics import FourVector, almost_equal_physics, sum_four_vectors
from .process import ID_PROCESS_PHOTON, ProcessType

logger = logging.getLogger(__name__)


def check_energy_momentum(initial_vectors: Sequence[FourVector],
                          final_vectors: Sequence[FourVector]) -> Dict[str, float]:
    """Return diagnostic dict for full 4-momentum conservation.

    Returns dict with deltas for energy and momentum components and a
    boolean 'conserved' key summarizing result within the physics tolerance.
    """
    total_i = sum_four_vectors(initial_vectors)
    total_f = sum_four_vectors(final_vectors)
    conserved = total_i.is_close(total_f)
    return {
        'conserved': conserved,
        'deltaE': total_i.x0 - total_f.x0,
        'deltaPx': total_i.x1 - total_f.x1,
        'deltaPy': total_i.x2 - total_f.x2,
        'deltaPz': total_i.x3 - total_f.x3,
        'E_initial': total_i.x0,
        'E_final': total_f.x0,
    }


@dataclass(frozen=True, eq=False)
class QuantumNumbers:
    """
    Conserved totals of a particle list.

    Equality uses a tolerant comparison for the four-momentum and exact
    comparison for the charges.
    """
    momentum: FourVector
    charge: int
    isospin3: float
    strangeness: int
    baryon_number: int

    @classmethod
    def from_particles(cls, particles) -> "QuantumNumbers":
        return cls(
            momentum=sum_four_vectors([p.momentum for p in particles]),
            charge=sum(p.type.charge for p in particles),
            isospin3=sum(p.type.isospin3 for p in particles),
            strangeness=sum(p.type.strangeness for p in particles),
            baryon_number=sum(p.type.baryon_number for p in particles),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, QuantumNumbers):
            return NotImplemented
        return (
            self.momentum.is_close(other.momentum)
            and self.charge == other.charge
            and almost_equal_physics(self.isospin3, other.isospin3)
            and self.strangeness == other.strangeness
            and self.baryon_number == other.baryon_number
        )

    def __ne__(self, other) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def report_deviations(self, other: "QuantumNumbers") -> str:
        """Itemised differences between this snapshot (before) and ``other`` (after)."""
        if self == other:
            return ""
        lines = ["Conservation law violations:"]
        labels = ("P_0", "P_x", "P_y", "P_z")
        for label, before, after in zip(labels, self.momentum.to_tuple(), other.momentum.to_tuple()):
            if not almost_equal_physics(before, after):
                lines.append(f"Deviation in Four-Momentum {label}: {before:+.6g} vs. {after:+.6g}; Δ = {before - after:+.6g}")
        for label, before, after in (
            ("Charge", self.charge, other.charge),
            ("Isospin3", self.isospin3, other.isospin3),
            ("Strangeness", self.strangeness, other.strangeness),
            ("Baryon Number", self.baryon_number, other.baryon_number),
        ):
            if not almost_equal_physics(before, after):
                lines.append(f"Deviation in {label}: {before:+g} vs. {after:+g}; Δ = {before - after:+g}")
        return "\n".join(lines)


def check_conservation(incoming, outgoing, process_type: ProcessType, id_process: int) -> bool:
    """
    Compare the quantum numbers of incoming and outgoing particles.

    String processes are allowed to deviate (logged only). Returns True when
    conserved, False for a tolerated string-process deviation.

    Raises
    ------
    PhotonConservationViolation
        For a violation in the photon process id.
    ConservationViolation
        For a violation in any other process.
    """
    before = QuantumNumbers.from_particles(incoming)
    after = QuantumNumbers.from_particles(outgoing)
    if before == after:
        return True

    names = " ".join(p.type.name for p in incoming) + " vs. " + " ".join(p.type.name for p in outgoing)
    logger.error(f"{names}\n{before.report_deviations(after)}")
    # String fragmentation does not conserve energy-momentum exactly.
    if process_type.is_string:
        return False
    if id_process == ID_PROCESS_PHOTON:
        raise PhotonConservationViolation("Conservation laws violated in photon process")
    raise ConservationViolation(f"Conservation laws violated in process {id_process}")
