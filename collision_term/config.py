import os
from dataclasses import dataclass, fields
from typing import Optional

ENV_PREFIX = "COLLISION_TERM_"


@dataclass
class CollisionTermConfig:
    """
    Settings for building and processing actions.

    Values come from the defaults below, then ``COLLISION_TERM_<FIELD>``
    environment variables (e.g. ``COLLISION_TERM_TIME_STEP=0.05``), then
    explicit overrides.
    """
    time_step: float = 0.1          # fm
    gcell_vol: float = 1.0          # fm^3
    three_to_one: bool = True
    pauli_blocking: bool = False
    pauli_sigma: float = 1.0        # fm
    pauli_rr_cutoff: float = 2.2    # fm
    pauli_rp: float = 0.08          # GeV
    ntest: int = 1
    particle_db: Optional[str] = None
    seed: Optional[int] = None

    def __post_init__(self):
        if self.time_step <= 0.0:
            raise ValueError(f"time_step must be positive, got {self.time_step}")
        if self.gcell_vol <= 0.0:
            raise ValueError(f"gcell_vol must be positive, got {self.gcell_vol}")
        if self.ntest < 1:
            raise ValueError(f"ntest must be at least 1, got {self.ntest}")

    @classmethod
    def from_env(cls, environ=None, **overrides) -> "CollisionTermConfig":
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is not None:
                values[f.name] = _parse(f.name, raw, f.default)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _parse(name: str, raw: str, default):
    raw = raw.strip()
    if isinstance(default, bool):
        if raw.lower() in ("1", "true", "yes", "on"):
            return True
        if raw.lower() in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"{ENV_PREFIX}{name.upper()}: expected a boolean, got {raw!r}")
    if isinstance(default, float):
        return float(raw)
    if isinstance(default, int) or name == "seed":
        return int(raw)
    return raw
