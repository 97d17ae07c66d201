"""Two-body final-state sampling: masses, angles and isotropy."""

import logging
import math

import numpy as np
import pytest

from collision_term.errors import ErrorKind, InvalidResonanceFormation, PreconditionViolation
from collision_term.sampling import (
    breit_wigner,
    sample_2body_phasespace,
    sample_angles,
    sample_masses,
    sample_resonance_mass,
)


def _assert_close(a, b, tol=1e-9, msg=""):
    assert abs(a - b) < tol, msg or f"Values differ: {a} vs {b} (tol={tol})"


# ------------------------------ Phase space --------------------------------
@pytest.mark.parametrize("symbols, cms", [
    (("p", "π+"), 1.5),
    (("π+", "π-"), 0.5),
    (("p", "ρ+"), 2.0),
    (("Δ++", "π-"), 2.0),
    (("ρ+", "ρ-"), 2.0),
])
def test_two_body_momenta_back_to_back(registry, rng, symbols, cms):
    types = [registry.lookup(s) for s in symbols]
    for _ in range(200):
        p_a, p_b = sample_2body_phasespace(types, cms, rng)
        total = p_a + p_b
        _assert_close(total.x1, 0.0)
        _assert_close(total.x2, 0.0)
        _assert_close(total.x3, 0.0)
        _assert_close(total.x0, cms, tol=1e-8)


def test_stable_particles_keep_pole_mass(registry, rng):
    masses = sample_masses(registry.lookup("p"), registry.lookup("π+"), 1.5, rng)
    assert masses == (registry.lookup("p").mass, registry.lookup("π+").mass)


def test_resonance_mass_within_kinematic_bounds(registry, rng):
    delta = registry.lookup("Δ++")
    m_pi = registry.lookup("π-").mass
    cms = 1.5
    for _ in range(200):
        m = sample_resonance_mass(delta, m_pi, cms, rng)
        assert delta.min_mass_kinematic <= m <= cms - m_pi


def test_insufficient_energy_raises(registry, rng):
    proton, rho = registry.lookup("p"), registry.lookup("ρ+")
    with pytest.raises(InvalidResonanceFormation) as excinfo:
        sample_masses(proton, rho, 1.1, rng, "p π+ → p ρ+")
    assert excinfo.value.kind == ErrorKind.INSUFFICIENT_ENERGY
    assert "p π+ → p ρ+" in str(excinfo.value)


def test_phasespace_needs_two_particles(registry, rng):
    with pytest.raises(PreconditionViolation):
        sample_2body_phasespace([registry.lookup("ω")], 1.0, rng)


def test_zero_momentum_at_threshold_warns(rng, caplog):
    with caplog.at_level(logging.WARNING, logger="collision_term.sampling"):
        p_a, p_b = sample_angles((0.5, 0.5), 1.0, rng)
    assert "Non-positive CM momentum" in caplog.text
    _assert_close(p_a.magnitude, 0.0)
    _assert_close(p_a.x0 + p_b.x0, 1.0)


# ------------------------------- Isotropy ----------------------------------
def test_angles_are_isotropic(rng):
    """Chi-square of cos(theta) and phi histograms against flat distributions."""
    n, bins = 20000, 20
    cos_theta = np.empty(n)
    phi = np.empty(n)
    for i in range(n):
        p_a, _ = sample_angles((0.938, 0.138), 1.5, rng)
        direction = p_a.threevec / p_a.magnitude
        cos_theta[i] = direction[2]
        phi[i] = math.atan2(direction[1], direction[0]) % (2 * math.pi)

    expected = n / bins
    for values, lo, hi in ((cos_theta, -1.0, 1.0), (phi, 0.0, 2 * math.pi)):
        counts, _ = np.histogram(values, bins=bins, range=(lo, hi))
        chi2 = float(np.sum((counts - expected) ** 2 / expected))
        # 19 degrees of freedom; 50 is far in the tail
        assert chi2 < 50.0, f"chi2 = {chi2:.1f}"


# --------------------------- Spectral function -----------------------------
def test_breit_wigner_normalisation():
    grid = np.linspace(0.0, 3.0, 300001)
    values = breit_wigner(grid, 0.783, 0.0085)
    integral = float(np.sum(0.5 * (values[1:] + values[:-1]) * np.diff(grid)))
    _assert_close(integral, 1.0, tol=0.02)


def test_breit_wigner_peaks_at_pole():
    grid = np.linspace(0.6, 1.0, 4001)
    values = breit_wigner(grid, 0.783, 0.0085)
    _assert_close(grid[np.argmax(values)], 0.783, tol=1e-3)
