"""Conservation and kinematics test suite.

Covers:
  - Quantum-number snapshots and the before/after conservation check
  - String-process tolerance and the separate photon failure
  - Four-momentum diagnostics
  - CM momentum, boosts and tolerant float comparison
"""

import math
import numpy as np
import pytest
from .kinematics import FourVector, almost_equal, lorentz_boost_array, pcm
from .conservation import QuantumNumbers, check_conservation, check_energy_momentum
from .errors import ConservationViolation, ErrorKind, PhotonConservationViolation
from .particles import ParticleData, ParticleTypeRegistry
from .process import ID_PROCESS_PHOTON, ProcessType

REGISTRY = ParticleTypeRegistry.default()


# ----------------------------- Utility ------------------------------------
def _assert_close(a, b, tol=1e-9, msg=""):
    assert abs(a - b) < tol, msg or f"Values differ: {a} vs {b} (tol={tol})"


def _particle(symbol, E, px, py, pz):
    p = ParticleData(REGISTRY.lookup(symbol))
    p.momentum = FourVector(E, px, py, pz)
    return p


def _rho_formation():
    incoming = [_particle("π+", 0.5, 0.3, 0.0, 0.1), _particle("π-", 0.6, -0.1, 0.2, 0.0)]
    outgoing = [_particle("ρ0", 1.1, 0.2, 0.2, 0.1)]
    return incoming, outgoing


# ------------------------- Four-momentum diagnostics ----------------------
def test_check_energy_momentum_dict_structure():
    p_in = [FourVector(10, 0, 0, 0)]
    p_out = [FourVector(4, 1, 0, 0), FourVector(6, -1, 0, 0)]
    diag = check_energy_momentum(p_in, p_out)
    assert diag['conserved'] is True
    for key in ['deltaE', 'deltaPx', 'deltaPy', 'deltaPz', 'E_initial', 'E_final']:
        assert key in diag
    _assert_close(diag['deltaE'], 0.0)
    _assert_close(diag['deltaPx'], 0.0)


def test_check_energy_momentum_detects_energy_mismatch():
    diag = check_energy_momentum([FourVector(10.1, 0, 0, 0)], [FourVector(10, 0, 0, 0)])
    assert diag['conserved'] is False
    _assert_close(diag['deltaE'], 0.1)


# -------------------------- Quantum numbers -------------------------------
def test_quantum_numbers_totals():
    incoming, _ = _rho_formation()
    qn = QuantumNumbers.from_particles(incoming)
    assert qn.charge == 0
    assert qn.baryon_number == 0
    assert qn.strangeness == 0
    _assert_close(qn.momentum.x0, 1.1)
    _assert_close(qn.momentum.x1, 0.2)


def test_conserved_reaction_passes():
    incoming, outgoing = _rho_formation()
    assert QuantumNumbers.from_particles(incoming) == QuantumNumbers.from_particles(outgoing)
    assert check_conservation(incoming, outgoing, ProcessType.TWO_TO_ONE, 1) is True


def test_deviation_within_tolerance_passes():
    incoming, outgoing = _rho_formation()
    outgoing[0].momentum = outgoing[0].momentum + FourVector(1e-7, -1e-7, 0.0, 1e-7)
    assert check_conservation(incoming, outgoing, ProcessType.TWO_TO_ONE, 1)


@pytest.mark.parametrize("component", [0, 1, 2, 3])
def test_perturbed_momentum_component_raises(component):
    incoming, outgoing = _rho_formation()
    shift = [0.0, 0.0, 0.0, 0.0]
    shift[component] = 1e-2
    outgoing[0].momentum = outgoing[0].momentum + FourVector(*shift)
    with pytest.raises(ConservationViolation) as excinfo:
        check_conservation(incoming, outgoing, ProcessType.TWO_TO_ONE, 17)
    assert "17" in str(excinfo.value)
    assert excinfo.value.kind == ErrorKind.CONSERVATION_VIOLATION


def test_charge_violation_raises():
    incoming = [_particle("π+", 0.5, 0.0, 0.0, 0.48), _particle("π0", 0.5, 0.0, 0.0, -0.48)]
    outgoing = [_particle("π0", 0.5, 0.0, 0.0, 0.48), _particle("π0", 0.5, 0.0, 0.0, -0.48)]
    with pytest.raises(ConservationViolation):
        check_conservation(incoming, outgoing, ProcessType.ELASTIC, 3)


@pytest.mark.parametrize("process_type", [ProcessType.STRING_SOFT, ProcessType.STRING_HARD])
def test_string_processes_only_log(process_type, caplog):
    incoming, outgoing = _rho_formation()
    outgoing[0].momentum = outgoing[0].momentum + FourVector(0.5, 0.0, 0.0, 0.0)
    assert check_conservation(incoming, outgoing, process_type, 5) is False
    assert "vs." in caplog.text


def test_photon_violation_is_separate_kind():
    incoming, outgoing = _rho_formation()
    outgoing[0].momentum = outgoing[0].momentum + FourVector(0.5, 0.0, 0.0, 0.0)
    with pytest.raises(PhotonConservationViolation) as excinfo:
        check_conservation(incoming, outgoing, ProcessType.TWO_TO_ONE, ID_PROCESS_PHOTON)
    assert not isinstance(excinfo.value, ConservationViolation)
    assert excinfo.value.kind == ErrorKind.PHOTON_CONSERVATION_VIOLATION


def test_report_deviations_lists_offending_quantities():
    incoming = [_particle("π+", 0.5, 0.0, 0.0, 0.48)]
    outgoing = [_particle("π0", 0.7, 0.0, 0.0, 0.48)]
    report = QuantumNumbers.from_particles(incoming).report_deviations(QuantumNumbers.from_particles(outgoing))
    assert "P_0" in report
    assert "Charge" in report
    assert "P_z" not in report


# ------------------------------ Kinematics --------------------------------
def test_pcm_formula_match():
    M, m1, m2 = 1.0, 0.2, 0.3
    p_expected = math.sqrt(max((M**2 - (m1+m2)**2)*(M**2 - (m1-m2)**2), 0.0)) / (2*M)
    _assert_close(pcm(M, m1, m2), p_expected)


def test_pcm_below_threshold_is_zero():
    assert pcm(0.4, 0.3, 0.3) == 0.0
    assert pcm(0.0, 0.1, 0.1) == 0.0


def test_boost_of_rest_vector():
    beta = np.array([0.0, 0.3, 0.6])
    moving = FourVector(0.938, 0.0, 0.0, 0.0).boost(beta)
    _assert_close(moving.mass, 0.938)
    np.testing.assert_allclose(moving.beta(), beta, atol=1e-12)


def test_boost_round_trip():
    p = FourVector(2.0, 0.3, -0.4, 1.1)
    beta = np.array([0.2, 0.1, -0.5])
    back = p.boost(beta).boost(-beta)
    assert back.is_close(p)


def test_boost_superluminal_raises():
    with pytest.raises(ValueError):
        lorentz_boost_array(np.array([1.0, 0.0, 0.0, 0.0]), np.array([1.0, 0.0, 0.0]))


def test_almost_equal_relative_and_absolute():
    assert almost_equal(1e6, 1e6 + 0.5)
    assert almost_equal(0.0, 5e-7)
    assert not almost_equal(1.0, 1.01)
