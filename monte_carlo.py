#!/usr/bin/env python3
"""
Monte Carlo driver for the collision term

Examples:
    python monte_carlo.py --process three-pion --events 1000
    python monte_carlo.py --process inelastic --events 200 --seed 42 --output final.csv
"""

import argparse
import csv
import logging

import numpy as np

from collision_term.branches import CollisionBranch
from collision_term.collection import Particles
from collision_term.collision import perform_actions
from collision_term.config import CollisionTermConfig
from collision_term.kinematics import FourVector, isotropic_direction
from collision_term.particles import ParticleData, ParticleTypeRegistry
from collision_term.pauli import PauliBlocker
from collision_term.process import ProcessType
from collision_term.scatter import ScatterAction
from collision_term.scatter_multi import ScatterActionMulti

logger = logging.getLogger("monte_carlo")


def _thermal_particle(ptype, rng, box_length, p_scale=0.3):
    """Particle with an isotropic momentum of exponential magnitude at a random position."""
    p = ParticleData(ptype)
    p.set_4momentum(ptype.mass, rng.exponential(p_scale) * isotropic_direction(rng))
    x, y, z = rng.uniform(0.0, box_length, size=3)
    p.set_4position(FourVector(0.0, x, y, z))
    return p


def build_actions(process, registry, particles, config, n_events, rng, box_length=5.0):
    """Insert the incoming particles for each event and build its candidate action."""
    actions = []
    for _ in range(n_events):
        if process == "three-pion":
            pions = [particles.insert(_thermal_particle(registry.lookup(s), rng, box_length))
                     for s in ("π+", "π-", "π0")]
            action = ScatterActionMulti(pions, rng.uniform(0.0, config.time_step))
            action.add_possible_reactions(config.time_step, config.gcell_vol, registry, config.three_to_one)
            # stands in for the collision finder's probability test
            if rng.random() >= action.get_total_weight():
                continue
        else:
            a = particles.insert(_thermal_particle(registry.lookup("p"), rng, box_length, p_scale=1.0))
            b = particles.insert(_thermal_particle(registry.lookup("π+"), rng, box_length, p_scale=1.0))
            action = ScatterAction(a, b, rng.uniform(0.0, config.time_step))
            if process == "elastic":
                action.add_elastic(1.0)
            else:
                action.add_collision(CollisionBranch([registry.lookup("Δ++")], 0.5, ProcessType.TWO_TO_ONE))
                action.add_collision(CollisionBranch([registry.lookup("p"), registry.lookup("ρ+")],
                                                     0.3, ProcessType.TWO_TO_TWO))
                action.add_elastic(0.2)
        actions.append(action)
    return actions


def export_particles_to_csv(particles, filename):
    """Export the particle collection to CSV."""
    with open(filename, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["id", "particle", "E", "px", "py", "pz", "t", "x", "y", "z",
                         "collisions", "id_process", "process_type"])
        for p in particles:
            writer.writerow([p.id, p.type.name, *p.momentum.to_tuple(), *p.position.to_tuple(),
                             p.history.collisions_per_particle, p.history.id_process,
                             p.history.process_type.name])
    print(f"📄 Exported {len(particles)} particles to {filename}")


def build_parser():
    return argparse.ArgumentParser(
        description="Collision term Monte Carlo driver",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  python monte_carlo.py --process three-pion --events 1000
  python monte_carlo.py --process elastic --events 500 --seed 42
  python monte_carlo.py --process inelastic --events 100 --pauli --output final.csv"""
    )


def main(argv=None):
    parser = build_parser()
    parser.add_argument("--process", choices=("three-pion", "elastic", "inelastic"), default="three-pion")
    parser.add_argument("--events", type=int, default=10, help="Number of candidate actions (default 10)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (optional)")
    parser.add_argument("--workers", type=int, default=None, help="Threads for final-state preparation")
    parser.add_argument("--time-step", type=float, default=None, help="Time step in fm")
    parser.add_argument("--gcell-vol", type=float, default=None, help="Interaction cell volume in fm^3")
    parser.add_argument("--pauli", action="store_true", help="Enable the Pauli-blocking veto")
    parser.add_argument("--db", type=str, default=None, help="SQLite particle database (default: bundled CSV)")
    parser.add_argument("--verbose", action="store_true", help="Show debug output")
    parser.add_argument("--output", type=str, help="Export the final particles to a CSV file")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = CollisionTermConfig.from_env(
        seed=args.seed,
        time_step=args.time_step,
        gcell_vol=args.gcell_vol,
        particle_db=args.db,
        pauli_blocking=args.pauli or None,
    )
    registry = (ParticleTypeRegistry.from_db(config.particle_db) if config.particle_db
                else ParticleTypeRegistry.default())
    rng = np.random.default_rng(config.seed)
    blocker = None
    if config.pauli_blocking:
        blocker = PauliBlocker(config.pauli_sigma, config.pauli_rr_cutoff, config.pauli_rp, config.ntest)

    print("\n" + "=" * 60)
    print("🔥 Collision Term Monte Carlo")
    print("=" * 60)
    print(f"Process          : {args.process}")
    print(f"Number of Events : {args.events}")
    print(f"Random Seed      : {config.seed if config.seed is not None else 'None'}")
    print(f"Time Step        : {config.time_step} fm")
    print(f"Pauli Blocking   : {'on' if blocker else 'off'}")
    print("=" * 60 + "\n")

    particles = Particles()
    actions = build_actions(args.process, registry, particles, config, args.events, rng)
    weights = [a.get_total_weight() for a in actions]
    results = perform_actions(actions, particles, rng, pauli_blocker=blocker,
                              max_workers=args.workers, verbose=args.verbose)

    print("\n" + "=" * 60)
    print("✅ Processing Complete")
    print("=" * 60)
    print(f"Performed actions : {results['performed']}/{results['total']}")
    print(f"No reaction       : {results['no_reaction']}")
    print(f"Pauli-blocked     : {results['blocked']}")
    print(f"Failed / invalid  : {results['failed']} / {results['invalid']}")
    print(f"Mean total weight : {np.mean(weights) if weights else 0.0:.4e}")
    print(f"Particles now     : {particles.size()}")
    print("=" * 60 + "\n")

    if args.output:
        export_particles_to_csv(particles, args.output)
    return results


if __name__ == "__main__":
    main()
