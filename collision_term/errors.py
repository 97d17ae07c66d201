"""
Error kinds raised while turning a candidate action into a final state.

Every error rejects one candidate action; none of them leaves the shared
particle collection half-modified, because the collection is only touched in
``Action.perform``.
"""
from enum import Enum


class ErrorKind(Enum):
    INSUFFICIENT_ENERGY = "insufficient_energy"
    CONSERVATION_VIOLATION = "conservation_violation"
    PHOTON_CONSERVATION_VIOLATION = "photon_conservation_violation"
    MALFORMED_OUTCOME = "malformed_outcome"
    PRECONDITION_VIOLATION = "precondition_violation"


class ActionError(RuntimeError):
    kind: ErrorKind = None


class InvalidResonanceFormation(ActionError):
    """Not enough CM energy to form the chosen pair; try another branch or drop."""
    kind = ErrorKind.INSUFFICIENT_ENERGY


class ConservationViolation(ActionError):
    kind = ErrorKind.CONSERVATION_VIOLATION


class PhotonConservationViolation(ActionError):
    """Kept apart from ConservationViolation so photon runs cannot swallow it."""
    kind = ErrorKind.PHOTON_CONSERVATION_VIOLATION


class InvalidScatterAction(ActionError):
    kind = ErrorKind.MALFORMED_OUTCOME


class InvalidScatterActionMulti(ActionError):
    kind = ErrorKind.MALFORMED_OUTCOME


class PreconditionViolation(ActionError, ValueError):
    kind = ErrorKind.PRECONDITION_VIOLATION
