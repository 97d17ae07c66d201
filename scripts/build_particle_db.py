import argparse
import sqlite3
from pathlib import Path

import pandas as pd

DATA_DIR = Path(__file__).resolve().parents[1] / "collision_term" / "data"


def build_particle_db(db_path, particles_csv=DATA_DIR / "particles.csv", decays_csv=DATA_DIR / "decays.csv"):
    """Write the particle and decay tables into a SQLite database (replacing them)."""
    particles_df = pd.read_csv(particles_csv)
    decays_df = pd.read_csv(decays_csv)

    # Keep only the decay columns the registry reads
    decays_df = decays_df.loc[:, ["pdg_id", "decay_mode", "branching_fraction"]]

    conn = sqlite3.connect(db_path)
    try:
        particles_df.to_sql("particles", conn, if_exists="replace", index=False)
        decays_df.to_sql("decays", conn, if_exists="replace", index=False)
        conn.commit()
    finally:
        conn.close()
    return len(particles_df), len(decays_df)


def main():
    parser = argparse.ArgumentParser(description="Build the SQLite particle database from the bundled CSV files")
    parser.add_argument("db_path", nargs="?", default="particles.db")
    args = parser.parse_args()
    n_particles, n_decays = build_particle_db(args.db_path)
    print(f"Migration complete: {args.db_path} has {n_particles} particles and {n_decays} decay modes.")


if __name__ == "__main__":
    main()
