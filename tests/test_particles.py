import csv
import sqlite3

import pytest

from collision_term.collection import Particles
from collision_term.particles import DECAYS_CSV, PARTICLES_CSV, ParticleData, ParticleTypeRegistry
from collision_term.kinematics import FourVector


def _assert_close(a, b, tol=1e-9, msg=""):
    assert abs(a - b) < tol, msg or f"Values differ: {a} vs {b} (tol={tol})"


# ------------------------------- Registry ----------------------------------
def test_lookup_by_name_and_symbol(registry):
    assert registry.lookup("Pion+") is registry.lookup("π+")
    assert registry.lookup("proton") is registry.find(2212)
    assert registry.try_find(999999) is None


def test_unknown_species_raise(registry):
    with pytest.raises(ValueError):
        registry.lookup("Nonexistent")
    with pytest.raises(ValueError):
        registry.find(999999)


def test_species_properties(registry):
    omega = registry.lookup("ω")
    assert omega.spin_degeneracy == 3
    assert not omega.is_stable
    assert registry.lookup("π0").is_pion
    assert registry.lookup("Δ++").is_baryon
    assert registry.lookup("p").force_scale == (1.0, 1.0)
    skyrme, symmetry = registry.lookup("Λ").force_scale
    _assert_close(skyrme, 2.0 / 3.0)
    assert symmetry == 1.0
    assert registry.lookup("K+").force_scale == (0.0, 0.0)


def test_kinematic_mass_thresholds(registry):
    _assert_close(registry.lookup("ρ0").min_mass_kinematic, 0.276)
    _assert_close(registry.lookup("Δ++").min_mass_kinematic, 1.076)
    # the radiative pi0 gamma mode has the lowest threshold
    _assert_close(registry.lookup("ω").min_mass_kinematic, 0.138)
    assert registry.lookup("p").min_mass_kinematic == registry.lookup("p").mass


def test_branching_ratios_normalised(registry):
    for ptype in registry:
        if ptype.decay_modes:
            _assert_close(sum(m.branching_ratio for m in ptype.decay_modes), 1.0)


def test_partial_width(registry):
    omega = registry.lookup("ω")
    three_pi = [registry.lookup(s) for s in ("π0", "π+", "π-")]
    width = omega.get_partial_width(0.783, three_pi)
    assert 0.8 * omega.width < width < omega.width
    assert omega.get_partial_width(0.4, three_pi) == 0.0
    assert omega.get_partial_width(0.783, [registry.lookup("p")]) == 0.0


def test_spectral_function_of_stable_species_is_zero(registry):
    assert registry.lookup("p").spectral_function(0.938) == 0.0
    assert registry.lookup("ω").spectral_function(0.783) > 0.0


def test_registry_from_db(tmp_path, registry):
    db_path = tmp_path / "particles.db"
    conn = sqlite3.connect(db_path)
    with open(PARTICLES_CSV, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    columns = list(rows[0].keys())
    conn.execute(f"CREATE TABLE particles ({', '.join(f'[{c}]' for c in columns)})")
    conn.executemany(f"INSERT INTO particles VALUES ({', '.join('?' for _ in columns)})",
                     [tuple(r[c] for c in columns) for r in rows])
    with open(DECAYS_CSV, newline="", encoding="utf-8") as f:
        decays = list(csv.DictReader(f))
    conn.execute("CREATE TABLE decays (pdg_id, decay_mode, branching_fraction)")
    conn.executemany("INSERT INTO decays VALUES (?, ?, ?)",
                     [(d["pdg_id"], d["decay_mode"], d["branching_fraction"]) for d in decays])
    conn.commit()
    conn.close()

    loaded = ParticleTypeRegistry.from_db(db_path)
    assert len(loaded) == len(registry)
    omega = loaded.find(223)
    _assert_close(omega.mass, 0.783)
    assert len(omega.decay_modes) == 3


def test_registry_from_db_without_decays(tmp_path):
    db_path = tmp_path / "stable.db"
    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE particles ([Name], [Symbol], [PDG ID], [Mass (GeV)])")
    conn.execute("INSERT INTO particles VALUES ('Proton', 'p', 2212, 0.938)")
    conn.commit()
    conn.close()

    loaded = ParticleTypeRegistry.from_db(db_path)
    assert loaded.lookup("p").is_stable
    assert loaded.lookup("p").decay_modes == []


# ---------------------------- Particle records -----------------------------
def test_set_4momentum_and_copy(registry):
    p = ParticleData(registry.lookup("p"))
    p.set_4momentum(0.938, (0.3, 0.0, 0.4))
    _assert_close(p.momentum.x0, (0.938**2 + 0.25) ** 0.5)
    _assert_close(p.effective_mass, 0.938)

    q = p.copy()
    q.momentum.x1 = 1.0
    q.history.collisions_per_particle = 4
    assert p.momentum.x1 == 0.3
    assert p.history.collisions_per_particle == 0


# ------------------------------- Collection --------------------------------
def test_insert_assigns_fresh_ids(registry):
    particles = Particles()
    a = particles.insert(ParticleData(registry.lookup("p")))
    b = particles.insert(ParticleData(registry.lookup("n")))
    assert a.id != b.id
    assert a in particles and b in particles
    assert len(particles) == 2


def test_lookup_missing_particle_raises(registry):
    particles = Particles()
    ghost = ParticleData(registry.lookup("p"), id=42)
    assert not particles.is_valid(ghost)
    with pytest.raises(KeyError):
        particles.lookup(ghost)


def test_update_in_place_keeps_ids(registry):
    particles = Particles()
    a = particles.insert(ParticleData(registry.lookup("p")))
    moved = a.copy()
    moved.set_4position(FourVector(0.0, 1.0, 2.0, 3.0))
    committed = particles.update([a], [moved], remove_and_reinsert=False)
    assert committed[0].id == a.id
    assert particles.lookup(a).position.x3 == 3.0


def test_update_in_place_needs_matching_lists(registry):
    particles = Particles()
    a = particles.insert(ParticleData(registry.lookup("p")))
    with pytest.raises(ValueError):
        particles.update([a], [a.copy(), a.copy()], remove_and_reinsert=False)


def test_update_with_reinsert_replaces_ids(registry):
    particles = Particles()
    a = particles.insert(ParticleData(registry.lookup("π+")))
    b = particles.insert(ParticleData(registry.lookup("π-")))
    committed = particles.update([a, b], [ParticleData(registry.lookup("ρ0"))], remove_and_reinsert=True)
    assert len(particles) == 1
    assert committed[0].id not in (a.id, b.id)
    assert a not in particles
