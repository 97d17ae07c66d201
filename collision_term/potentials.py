import math
from typing import Optional, Sequence

import numpy as np


class PotentialLattice:
    """
    Scalar mean-field potential (GeV) on a regular 3-D grid.

    ``value_at`` returns the value of the cell containing the point, or None
    when the point is outside the lattice.
    """

    def __init__(self, values, origin: Sequence[float] = (0.0, 0.0, 0.0),
                 cell_sizes: Sequence[float] = (1.0, 1.0, 1.0)):
        self.values = np.asarray(values, dtype=float)
        if self.values.ndim != 3:
            raise ValueError(f"Lattice values must be 3-dimensional, got shape {self.values.shape}")
        self.origin = np.asarray(origin, dtype=float)
        self.cell_sizes = np.asarray(cell_sizes, dtype=float)
        if np.any(self.cell_sizes <= 0.0):
            raise ValueError("Lattice cell sizes must be positive")

    @classmethod
    def uniform(cls, value: float, shape=(1, 1, 1), origin=(0.0, 0.0, 0.0),
                cell_sizes=(1.0, 1.0, 1.0)) -> "PotentialLattice":
        return cls(np.full(shape, value, dtype=float), origin, cell_sizes)

    def value_at(self, r) -> Optional[float]:
        index = np.floor((np.asarray(r, dtype=float) - self.origin) / self.cell_sizes)
        if np.any(index < 0) or np.any(index >= self.values.shape):
            return None
        i, j, k = (int(x) for x in index)
        value = float(self.values[i, j, k])
        return None if math.isnan(value) else value
