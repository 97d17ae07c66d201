"""
Kinematics helpers for the collision term.

Units: GeV for energies and momenta, fm for positions and times (c = 1).
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import numpy as np

HBARC = 0.197327053  # GeV fm
REALLY_SMALL = 1.0e-6
SMALL_NUMBER = 1.0e-4


def almost_equal(x: float, y: float, delta: float = REALLY_SMALL) -> bool:
    """Relative/absolute approximate equality of two floats."""
    diff = abs(x - y)
    return diff <= delta or diff <= 0.5 * delta * (abs(x) + abs(y))


def almost_equal_physics(x: float, y: float) -> bool:
    """Looser comparison for physical checks like energy-momentum conservation."""
    return almost_equal(x, y, SMALL_NUMBER)


# -----------------------------
# FourVector
# -----------------------------
@dataclass
class FourVector:
    """Minkowski four-vector (x0, x1, x2, x3), metric (+,-,-,-).

    Used both for momenta (E, px, py, pz) and positions (t, x, y, z).
    Treated as a value: operations return new vectors.
    """
    x0: float
    x1: float
    x2: float
    x3: float

    @classmethod
    def zero(cls) -> "FourVector":
        return cls(0.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_mass_and_momentum(cls, mass: float, p3) -> "FourVector":
        px, py, pz = (float(c) for c in p3)
        return cls(math.sqrt(mass * mass + px * px + py * py + pz * pz), px, py, pz)

    @property
    def threevec(self) -> np.ndarray:
        return np.array([self.x1, self.x2, self.x3], dtype=float)

    @property
    def magnitude(self) -> float:
        return float(np.linalg.norm(self.threevec))

    def sqr(self) -> float:
        return self.x0 * self.x0 - (self.x1 * self.x1 + self.x2 * self.x2 + self.x3 * self.x3)

    @property
    def mass(self) -> float:
        return math.sqrt(max(self.sqr(), 0.0))

    def beta(self) -> np.ndarray:
        if self.x0 == 0.0:
            return np.zeros(3, dtype=float)
        return self.threevec / self.x0

    def boost(self, beta: np.ndarray) -> "FourVector":
        p4 = np.array([self.x0, self.x1, self.x2, self.x3], dtype=float)
        boosted = lorentz_boost_array(p4, np.asarray(beta, dtype=float))
        return FourVector(float(boosted[0]), float(boosted[1]), float(boosted[2]), float(boosted[3]))

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x0, self.x1, self.x2, self.x3)

    def is_close(self, other: "FourVector") -> bool:
        return all(almost_equal_physics(a, b) for a, b in zip(self.to_tuple(), other.to_tuple()))

    def __add__(self, other: "FourVector") -> "FourVector":
        return FourVector(self.x0 + other.x0, self.x1 + other.x1, self.x2 + other.x2, self.x3 + other.x3)

    def __sub__(self, other: "FourVector") -> "FourVector":
        return FourVector(self.x0 - other.x0, self.x1 - other.x1, self.x2 - other.x2, self.x3 - other.x3)

    def __neg__(self) -> "FourVector":
        return FourVector(-self.x0, -self.x1, -self.x2, -self.x3)

    def __mul__(self, factor: float) -> "FourVector":
        return FourVector(self.x0 * factor, self.x1 * factor, self.x2 * factor, self.x3 * factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> "FourVector":
        return self * (1.0 / divisor)

    def __repr__(self) -> str:
        return f"FourVector({self.x0:.6f}, {self.x1:.6f}, {self.x2:.6f}, {self.x3:.6f})"


def sum_four_vectors(vectors: Sequence[FourVector]) -> FourVector:
    return sum(vectors, FourVector.zero())


# -----------------------------
# Lorentz boost
# -----------------------------
def lorentz_boost_array(p4: np.ndarray, beta: np.ndarray) -> np.ndarray:
    """Active boost: a vector at rest ends up moving with velocity +beta."""
    beta = np.asarray(beta, dtype=float)
    p4 = np.asarray(p4, dtype=float)
    beta2 = float(np.dot(beta, beta))
    if beta2 >= 1.0:
        raise ValueError("beta^2 < 1 required.")
    if beta2 <= 1e-18:
        return p4.copy()
    gamma = 1.0 / math.sqrt(1.0 - beta2)
    bp = float(np.dot(beta, p4[1:]))
    Eprime = gamma * (p4[0] + bp)
    factor = ((gamma - 1.0) * bp / beta2) + gamma * p4[0]
    pprime = p4[1:] + factor * beta
    return np.array([Eprime, pprime[0], pprime[1], pprime[2]], dtype=float)


# -----------------------------
# Isotropic direction
# -----------------------------
def isotropic_direction(rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Unit vector with cos(theta) uniform in [-1, 1] and phi uniform in [0, 2pi)."""
    rng = rng or np.random.default_rng()
    u = rng.uniform(-1.0, 1.0)
    phi = rng.uniform(0.0, 2.0 * math.pi)
    sint = math.sqrt(max(0.0, 1.0 - u * u))
    return np.array([sint * math.cos(phi), sint * math.sin(phi), u], dtype=float)


# -----------------------------
# Two-body CM momentum
# -----------------------------
def pcm_sqr(srts, mass_a, mass_b):
    """Squared CM momentum of a two-body state. Works on scalars and arrays."""
    s = srts * srts
    return (s - (mass_a + mass_b) ** 2) * (s - (mass_a - mass_b) ** 2) / (4.0 * s)


def pcm(srts: float, mass_a: float, mass_b: float) -> float:
    """CM momentum for total energy srts; 0 below threshold."""
    if srts <= 0.0:
        return 0.0
    p2 = pcm_sqr(srts, mass_a, mass_b)
    return math.sqrt(p2) if p2 > 0.0 else 0.0
