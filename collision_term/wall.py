import numpy as np

from .action import Action
from .particles import ParticleData
from .process import ProcessType


class WallcrossingAction(Action):
    """A particle leaving a periodic box and re-entering on the opposite side.

    The outgoing record (same particle, wrapped position) is computed by the
    caller; this action only commits it. It is never Pauli-blocked and does
    not touch the particle's collision history.
    """

    def __init__(self, in_part: ParticleData, out_part: ParticleData, time: float = 0.0):
        super().__init__([in_part], time)
        self.outgoing_particles = [out_part.copy()]
        self.process_type = ProcessType.WALL

    def get_total_weight(self) -> float:
        return 0.0

    def generate_final_state(self, rng: np.random.Generator) -> None:
        pass

    def _describe(self) -> str:
        return "Wall crossing of"
