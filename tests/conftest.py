import numpy as np
import pytest

from collision_term.kinematics import FourVector
from collision_term.particles import ParticleData, ParticleTypeRegistry


@pytest.fixture(scope="session")
def registry():
    return ParticleTypeRegistry.default()


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def make_particle(registry):
    """Factory for particle records with a given species, three-momentum and position."""
    def _make(symbol, p3=(0.0, 0.0, 0.0), position=(0.0, 0.0, 0.0, 0.0), mass=None):
        ptype = registry.lookup(symbol)
        p = ParticleData(ptype)
        p.set_4momentum(ptype.mass if mass is None else mass, p3)
        p.set_4position(FourVector(*position))
        return p
    return _make


class ConstantBlocker:
    """Pauli blocker stand-in returning a fixed phase-space density."""

    def __init__(self, density):
        self.density = density
        self.calls = 0

    def phasespace_dens(self, r, p, particles, pdg, disregard=()):
        self.calls += 1
        return self.density


@pytest.fixture
def constant_blocker():
    return ConstantBlocker
