"""
Two-body final-state sampling: resonance masses and isotropic angles.

All functions take an explicit ``numpy.random.Generator`` so callers control
the random stream. Species arguments only need the attributes ``mass``,
``min_mass_kinematic``, ``is_stable``, ``spectral_function`` and ``name``.
"""

from __future__ import annotations
import logging
import math
from typing import Callable, Sequence, Tuple
import numpy as np

from .errors import InvalidResonanceFormation, PreconditionViolation
from .kinematics import FourVector, isotropic_direction, pcm, pcm_sqr

logger = logging.getLogger(__name__)

MASS_GRID_POINTS = 1000
MAX_MASS_SAMPLING_TRIES = 100


def breit_wigner(m, pole: float, width: float):
    """Relativistic Breit-Wigner spectral function, normalised to ~1 over m."""
    m2 = m * m
    return 2.0 / math.pi * m2 * width / ((m2 - pole * pole) ** 2 + m2 * width * width)


def sample_from_density(density: Callable, m_min: float, m_max: float,
                        rng: np.random.Generator, n_points: int = MASS_GRID_POINTS) -> float:
    """Draw one value in [m_min, m_max] from an unnormalised density by grid inversion."""
    if m_max <= m_min:
        return m_min
    grid = np.linspace(m_min, m_max, n_points)
    weights = np.clip(np.asarray(density(grid), dtype=float), 0.0, None)
    cdf = np.concatenate(([0.0], np.cumsum(0.5 * (weights[1:] + weights[:-1]) * np.diff(grid))))
    if not cdf[-1] > 0.0:
        return m_min
    return float(np.interp(rng.random() * cdf[-1], cdf, grid))


def sample_resonance_mass(resonance, mass_stable: float, cms_energy: float,
                          rng: np.random.Generator) -> float:
    """Resonance mass from its spectral function times the two-body phase space."""
    m_min = resonance.min_mass_kinematic
    m_max = cms_energy - mass_stable

    def density(m):
        return resonance.spectral_function(m) * np.sqrt(np.clip(pcm_sqr(cms_energy, m, mass_stable), 0.0, None))

    return sample_from_density(density, m_min, m_max, rng)


def sample_resonance_masses(type_a, type_b, cms_energy: float,
                            rng: np.random.Generator) -> Tuple[float, float]:
    """Joint masses of two resonances, accepted by their two-body phase space."""
    min_a = type_a.min_mass_kinematic
    min_b = type_b.min_mass_kinematic
    pcm_max = pcm(cms_energy, min_a, min_b)
    if pcm_max <= 0.0:
        return min_a, min_b
    mass_a, mass_b = min_a, min_b
    for _ in range(MAX_MASS_SAMPLING_TRIES):
        mass_a = sample_from_density(type_a.spectral_function, min_a, cms_energy - min_b, rng)
        mass_b = sample_from_density(type_b.spectral_function, min_b, cms_energy - mass_a, rng)
        if rng.random() * pcm_max < pcm(cms_energy, mass_a, mass_b):
            return mass_a, mass_b
    logger.warning(
        f"Mass sampling for {type_a.name} {type_b.name} at {cms_energy:.4f} GeV "
        f"not accepted after {MAX_MASS_SAMPLING_TRIES} tries, using last draw"
    )
    return mass_a, mass_b


def sample_masses(type_a, type_b, cms_energy: float, rng: np.random.Generator,
                  reaction: str = "") -> Tuple[float, float]:
    """
    Masses of a two-body final state.

    Stable particles keep their pole masses; one resonance is sampled against
    the fixed partner, two resonances are sampled jointly.

    Raises
    ------
    InvalidResonanceFormation
        If cms_energy is below the sum of the kinematic mass thresholds.
    """
    masses = (type_a.mass, type_b.mass)
    threshold = type_a.min_mass_kinematic + type_b.min_mass_kinematic
    if cms_energy < threshold:
        reaction = reaction or f"{type_a.name} {type_b.name}"
        raise InvalidResonanceFormation(
            f"{reaction}: not enough energy, {cms_energy:.6f} < "
            f"{type_a.min_mass_kinematic:.6f} + {type_b.min_mass_kinematic:.6f}"
        )

    if not type_a.is_stable and type_b.is_stable:
        masses = (sample_resonance_mass(type_a, type_b.mass, cms_energy, rng), type_b.mass)
    elif type_a.is_stable and not type_b.is_stable:
        masses = (type_a.mass, sample_resonance_mass(type_b, type_a.mass, cms_energy, rng))
    elif not type_a.is_stable and not type_b.is_stable:
        masses = sample_resonance_masses(type_a, type_b, cms_energy, rng)
    return masses


def sample_angles(masses: Tuple[float, float], cms_energy: float,
                  rng: np.random.Generator) -> Tuple[FourVector, FourVector]:
    """Back-to-back CM momenta along an isotropic direction."""
    mass_a, mass_b = masses
    p_mag = pcm(cms_energy, mass_a, mass_b)
    if not p_mag > 0.0:
        logger.warning(
            f"Non-positive CM momentum {p_mag} for Ektot={cms_energy} "
            f"m_a={mass_a} m_b={mass_b}"
        )
    p_vec = p_mag * isotropic_direction(rng)
    return (
        FourVector.from_mass_and_momentum(mass_a, p_vec),
        FourVector.from_mass_and_momentum(mass_b, -p_vec),
    )


def sample_2body_phasespace(types: Sequence, cms_energy: float, rng: np.random.Generator,
                            reaction: str = "") -> Tuple[FourVector, FourVector]:
    if len(types) != 2:
        raise PreconditionViolation(f"Two-body phase space needs 2 particles, got {len(types)}")
    masses = sample_masses(types[0], types[1], cms_energy, rng, reaction)
    return sample_angles(masses, cms_energy, rng)
