"""Exceptions raised while building a coarse-grained structure.

Every failure aborts the whole run; none of these are caught inside the
library.
"""


class BeadAggError(Exception):
    """Base class for all errors raised by beadagg."""


class MappingParseError(BeadAggError):
    """The mapping table could not be opened or is malformed."""


class StructureParseError(BeadAggError):
    """The input structure could not be read or parsed."""


class MissingAtomError(BeadAggError):
    """A bead references an atom which is absent from a residue."""

    def __init__(self, residue_number: int, residue_name: str, bead: str, atom: str):
        self.residue_number = residue_number
        self.residue_name = residue_name
        self.bead = bead
        self.atom = atom
        super().__init__(
            "Atom {!r} of bead {!r} is missing from residue {}{}".format(
                atom, bead, residue_number, residue_name
            )
        )


class ZeroMassError(BeadAggError):
    """The masses of a bead sum to zero (or to a non-finite value), so its
    centroid is undefined."""

    def __init__(self, bead: str, total: float = 0.0):
        self.bead = bead
        self.total = total
        super().__init__("Total mass of bead {!r} is {}".format(bead, total))
