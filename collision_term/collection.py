from typing import Dict, Iterator, List, Sequence

from .particles import ParticleData


class Particles:
    """
    The shared particle collection, keyed by particle id.

    Callers get copies; the stored records only change through ``insert`` and
    ``update``.
    """

    def __init__(self):
        self._data: Dict[int, ParticleData] = {}
        self._next_id = 0

    def insert(self, particle: ParticleData) -> ParticleData:
        """Store a copy under a fresh id and return a copy carrying that id."""
        stored = particle.copy()
        stored.id = self._next_id
        self._next_id += 1
        self._data[stored.id] = stored
        return stored.copy()

    def is_valid(self, particle: ParticleData) -> bool:
        """True if the particle still exists and is unchanged since it was copied.

        Wall crossings keep the history, so position and momentum are compared too.
        """
        stored = self._data.get(particle.id)
        return (
            stored is not None
            and stored.history.id_process == particle.history.id_process
            and stored.position.is_close(particle.position)
            and stored.momentum.is_close(particle.momentum)
        )

    def lookup(self, particle: ParticleData) -> ParticleData:
        try:
            return self._data[particle.id].copy()
        except KeyError:
            raise KeyError(f"Particle #{particle.id} ({particle.type.name}) is not in the collection") from None

    def update(self, old: Sequence[ParticleData], new: Sequence[ParticleData],
               remove_and_reinsert: bool) -> List[ParticleData]:
        """
        Replace ``old`` by ``new`` and return the committed copies of ``new``.

        With ``remove_and_reinsert`` the old ids disappear and the new records
        get fresh ids; otherwise old and new are paired up in order and the
        stored records are overwritten under their existing ids.
        """
        for p in old:
            if p.id not in self._data:
                raise KeyError(f"Particle #{p.id} ({p.type.name}) is not in the collection")
        if remove_and_reinsert:
            for p in old:
                del self._data[p.id]
            return [self.insert(p) for p in new]

        if len(old) != len(new):
            raise ValueError(f"In-place update needs matching lists, got {len(old)} and {len(new)}")
        committed = []
        for p_old, p_new in zip(old, new):
            stored = p_new.copy()
            stored.id = p_old.id
            self._data[stored.id] = stored
            committed.append(stored.copy())
        return committed

    def size(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[ParticleData]:
        return iter(list(self._data.values()))

    def __contains__(self, particle: ParticleData) -> bool:
        return particle.id in self._data
