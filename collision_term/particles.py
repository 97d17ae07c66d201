import csv
import logging
import sqlite3
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .kinematics import FourVector
from .process import ProcessType
from .sampling import breit_wigner

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
PARTICLES_CSV = DATA_DIR / "particles.csv"
DECAYS_CSV = DATA_DIR / "decays.csv"

PION_CODES = (211, -211, 111)


@dataclass
class DecayMode:
    daughters: List["ParticleType"]
    branching_ratio: float

    @property
    def threshold(self) -> float:
        return sum(d.min_mass_kinematic for d in self.daughters)

    def matches(self, types: Sequence["ParticleType"]) -> bool:
        return sorted(d.pdg for d in self.daughters) == sorted(t.pdg for t in types)


@dataclass(eq=False)
class ParticleType:
    """
    Species properties. Instances are shared; compare them by identity.
    """
    name: str
    symbol: str
    pdg: int
    mass: float
    width: float = 0.0
    charge: int = 0
    spin: float = 0.0
    isospin: float = 0.0
    isospin3: float = 0.0
    baryon_number: int = 0
    strangeness: int = 0
    decay_modes: List[DecayMode] = field(default_factory=list)

    @property
    def is_stable(self) -> bool:
        return self.width <= 0.0

    @property
    def is_baryon(self) -> bool:
        return self.baryon_number != 0

    @property
    def is_pion(self) -> bool:
        return self.pdg in PION_CODES

    @property
    def spin_degeneracy(self) -> int:
        return int(round(2 * self.spin)) + 1

    @property
    def isospin3_rel(self) -> float:
        return self.isospin3 / self.isospin if self.isospin else 0.0

    @property
    def force_scale(self) -> Tuple[float, float]:
        """Couplings to the baryon-density and isospin mean fields."""
        return (self.baryon_number * (1.0 - abs(self.strangeness) / 3.0), float(self.baryon_number))

    @property
    def min_mass_kinematic(self) -> float:
        if self.is_stable or not self.decay_modes:
            return self.mass
        return min(mode.threshold for mode in self.decay_modes)

    def spectral_function(self, m):
        if self.is_stable:
            return 0.0
        return breit_wigner(m, self.mass, self.width)

    def get_partial_width(self, m: float, daughters: Sequence["ParticleType"]) -> float:
        """Width into the given channel at mass m (constant above threshold)."""
        for mode in self.decay_modes:
            if mode.matches(daughters):
                if m <= mode.threshold:
                    return 0.0
                return self.width * mode.branching_ratio
        return 0.0

    def __repr__(self) -> str:
        return f"ParticleType({self.name}, pdg={self.pdg}, mass={self.mass:.3f} GeV)"


class ParticleTypeRegistry:
    """
    Species table loaded from CSV files or from a SQLite database with the
    same ``particles`` / ``decays`` columns.
    """

    def __init__(self, types: Sequence[ParticleType] = ()):
        self._by_pdg: Dict[int, ParticleType] = {}
        self._by_key: Dict[str, ParticleType] = {}
        for ptype in types:
            self.add(ptype)

    def add(self, ptype: ParticleType) -> None:
        if ptype.pdg in self._by_pdg:
            raise ValueError(f"Duplicate PDG code {ptype.pdg} ({ptype.name})")
        self._by_pdg[ptype.pdg] = ptype
        self._by_key[ptype.name.lower()] = ptype
        if ptype.symbol:
            self._by_key[ptype.symbol.lower()] = ptype

    # -------------------- Lookup --------------------

    def find(self, pdg: int) -> ParticleType:
        try:
            return self._by_pdg[pdg]
        except KeyError:
            raise ValueError(f"Particle with PDG code {pdg} not found") from None

    def try_find(self, pdg: int) -> Optional[ParticleType]:
        return self._by_pdg.get(pdg)

    def lookup(self, name_or_symbol: str) -> ParticleType:
        """Find a species by name or symbol, case-insensitive."""
        ptype = self._by_key.get(name_or_symbol.strip().lower())
        if ptype is None:
            raise ValueError(f"Particle '{name_or_symbol}' not found")
        return ptype

    def __iter__(self):
        return iter(self._by_pdg.values())

    def __len__(self) -> int:
        return len(self._by_pdg)

    def __contains__(self, pdg: int) -> bool:
        return pdg in self._by_pdg

    # -------------------- Loading --------------------

    @classmethod
    def default(cls) -> "ParticleTypeRegistry":
        return cls.from_csv(PARTICLES_CSV, DECAYS_CSV)

    @classmethod
    def from_csv(cls, particles_path, decays_path=None) -> "ParticleTypeRegistry":
        with open(particles_path, newline="", encoding="utf-8") as f:
            registry = cls(_type_from_row(row) for row in csv.DictReader(f))
        if decays_path is not None:
            with open(decays_path, newline="", encoding="utf-8") as f:
                registry._add_decay_rows(csv.DictReader(f))
        logger.debug(f"Loaded {len(registry)} particle types from {particles_path}")
        return registry

    @classmethod
    def from_db(cls, db_path) -> "ParticleTypeRegistry":
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM particles")
            registry = cls(_type_from_row(dict(row)) for row in cur.fetchall())
            cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='decays'")
            if cur.fetchone():
                cur.execute("SELECT pdg_id, decay_mode, branching_fraction FROM decays")
                registry._add_decay_rows(dict(row) for row in cur.fetchall())
        finally:
            conn.close()
        logger.debug(f"Loaded {len(registry)} particle types from {db_path}")
        return registry

    def _add_decay_rows(self, rows) -> None:
        modes: Dict[int, List[DecayMode]] = {}
        for row in rows:
            parent = self.find(int(row["pdg_id"]))
            daughters = [self.lookup(token) for token in str(row["decay_mode"]).split()]
            br = float(row["branching_fraction"])
            if br <= 0.0:
                continue
            modes.setdefault(parent.pdg, []).append(DecayMode(daughters, br))
        for pdg, parent_modes in modes.items():
            total = sum(mode.branching_ratio for mode in parent_modes)
            for mode in parent_modes:
                mode.branching_ratio /= total
            self._by_pdg[pdg].decay_modes = parent_modes


def _type_from_row(row: dict) -> ParticleType:
    return ParticleType(
        name=row["Name"],
        symbol=row.get("Symbol") or "",
        pdg=int(row["PDG ID"]),
        mass=float(row["Mass (GeV)"]),
        width=float(row.get("Width (GeV)") or 0.0),
        charge=int(float(row.get("Charge (e)") or 0)),
        spin=float(row.get("Spin") or 0.0),
        isospin=float(row.get("Isospin") or 0.0),
        isospin3=float(row.get("Isospin3") or 0.0),
        baryon_number=int(float(row.get("Baryon Number") or 0)),
        strangeness=int(float(row.get("Strangeness") or 0)),
    )


# -------------------- Particle records --------------------

@dataclass
class HistoryData:
    collisions_per_particle: int = 0
    id_process: int = 0
    process_type: ProcessType = ProcessType.NONE
    time_last_collision: float = 0.0
    parent_pdgs: Tuple[int, ...] = ()
    parent_ids: Tuple[int, ...] = ()


@dataclass
class ParticleData:
    """
    One particle: species, four-momentum, four-position and interaction history.

    Actions work on copies; the canonical records live in ``Particles``.
    """
    type: ParticleType
    id: int = -1
    momentum: FourVector = field(default_factory=FourVector.zero)
    position: FourVector = field(default_factory=FourVector.zero)
    history: HistoryData = field(default_factory=HistoryData)

    @property
    def pdgcode(self) -> int:
        return self.type.pdg

    @property
    def is_baryon(self) -> bool:
        return self.type.is_baryon

    @property
    def effective_mass(self) -> float:
        return self.momentum.mass

    def set_4momentum(self, mass: float, p3) -> None:
        self.momentum = FourVector.from_mass_and_momentum(mass, p3)

    def set_4position(self, position: FourVector) -> None:
        self.position = position

    def boost_momentum(self, beta) -> None:
        self.momentum = self.momentum.boost(beta)

    def set_history(self, ncoll: int, id_process: int, process_type: ProcessType,
                    time: float, parents: Sequence["ParticleData"]) -> None:
        self.history = HistoryData(
            collisions_per_particle=ncoll,
            id_process=id_process,
            process_type=process_type,
            time_last_collision=time,
            parent_pdgs=tuple(p.pdgcode for p in parents),
            parent_ids=tuple(p.id for p in parents),
        )

    def copy(self) -> "ParticleData":
        return replace(self, momentum=replace(self.momentum), position=replace(self.position),
                       history=replace(self.history))

    def __repr__(self) -> str:
        return f"ParticleData({self.type.name}#{self.id}, p={self.momentum}, x={self.position})"
