import math

import numpy as np
import matplotlib.pyplot as plt

from collision_term.sampling import sample_angles

SQRT_S = 1.5  # GeV
MASSES = (0.938, 0.138)  # p pi
N = 200_000


def main():
    rng = np.random.default_rng(42)

    cos_theta = np.empty(N)
    phi = np.empty(N)
    for i in range(N):
        p_a, _ = sample_angles(MASSES, SQRT_S, rng)
        direction = p_a.threevec / p_a.magnitude
        cos_theta[i] = direction[2]
        phi[i] = math.atan2(direction[1], direction[0]) % (2 * math.pi)

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(11, 4.5))
    ax1.hist(cos_theta, bins=50, range=(-1, 1), density=True, alpha=0.8, label="sampled")
    ax1.axhline(0.5, color="k", linestyle="--", label="isotropic")
    ax1.set_xlabel(r"$\cos\theta$")
    ax1.set_ylabel("Normalized counts")
    ax1.legend()
    ax1.grid(alpha=0.3)

    ax2.hist(phi, bins=50, range=(0, 2 * math.pi), density=True, alpha=0.8, label="sampled")
    ax2.axhline(1 / (2 * math.pi), color="k", linestyle="--", label="isotropic")
    ax2.set_xlabel(r"$\phi$")
    ax2.legend()
    ax2.grid(alpha=0.3)

    fig.suptitle(f"Two-body CM angles at $\\sqrt{{s}}$ = {SQRT_S} GeV")
    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
