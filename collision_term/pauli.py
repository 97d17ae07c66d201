"""
Phase-space density estimate used for the Pauli-blocking veto.

The density at (r, p) counts particles of the same species whose momentum
lies within a sphere of radius ``rp`` around p, each weighted by a spatial
Gaussian of width ``sigma`` cut at ``rr_cutoff``. The count is normalised by
the number of states in that phase-space cell, (g V_r V_p) / (2 pi hbar c)^3,
and by the number of test particles.
"""

from __future__ import annotations
import math
from typing import Iterable, Sequence

import numpy as np

from .kinematics import HBARC


class PauliBlocker:

    def __init__(self, sigma: float = 1.0, rr_cutoff: float = 2.2, rp: float = 0.08,
                 ntest: int = 1, degeneracy: int = 2):
        if sigma <= 0.0 or rr_cutoff <= 0.0 or rp <= 0.0:
            raise ValueError("Pauli blocker radii must be positive")
        if ntest < 1:
            raise ValueError("ntest must be at least 1")
        self.sigma = sigma
        self.rr_cutoff = rr_cutoff
        self.rp = rp
        self.ntest = ntest
        self.degeneracy = degeneracy
        self._norm = self._gaussian_norm() * self._momentum_volume() * degeneracy * ntest \
            / (2.0 * math.pi * HBARC) ** 3

    def _gaussian_norm(self) -> float:
        """Integral of exp(-r^2 / 2 sigma^2) over the sphere r < rr_cutoff."""
        x = self.rr_cutoff / self.sigma
        return (2.0 * math.pi * self.sigma ** 2) ** 1.5 * (
            math.erf(x / math.sqrt(2.0)) - math.sqrt(2.0 / math.pi) * x * math.exp(-0.5 * x * x)
        )

    def _momentum_volume(self) -> float:
        return 4.0 / 3.0 * math.pi * self.rp ** 3

    def phasespace_dens(self, r, p, particles: Iterable, pdg: int,
                        disregard: Sequence = ()) -> float:
        """Occupation of the phase-space cell at (r, p) by species ``pdg``."""
        skip = {q.id for q in disregard}
        same = [q for q in particles if q.pdgcode == pdg and q.id not in skip]
        if not same:
            return 0.0
        positions = np.array([q.position.threevec for q in same])
        momenta = np.array([q.momentum.threevec for q in same])
        dr2 = np.sum((positions - np.asarray(r, dtype=float)) ** 2, axis=1)
        dp2 = np.sum((momenta - np.asarray(p, dtype=float)) ** 2, axis=1)
        inside = (dp2 <= self.rp ** 2) & (dr2 <= self.rr_cutoff ** 2)
        total = float(np.sum(np.exp(-0.5 * dr2[inside] / self.sigma ** 2)))
        return total / self._norm
