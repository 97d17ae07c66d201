from enum import IntEnum

# Process id reserved for photon processes; conservation failures there are
# reported separately.
ID_PROCESS_PHOTON = 2**32 - 1


class ProcessType(IntEnum):
    """Reaction-type tag carried by branches, actions and particle history."""

    NONE = 0
    ELASTIC = 1
    TWO_TO_ONE = 2
    TWO_TO_TWO = 3
    WALL = 4
    STRING_SOFT = 5
    STRING_HARD = 6
    MULTI_PARTICLE_THREE_PIONS_TO_OMEGA = 7

    @property
    def is_string(self) -> bool:
        return self in (ProcessType.STRING_SOFT, ProcessType.STRING_HARD)

    @property
    def keeps_identity(self) -> bool:
        """Elastic and wall-crossing processes update particles in place."""
        return self in (ProcessType.ELASTIC, ProcessType.WALL)
