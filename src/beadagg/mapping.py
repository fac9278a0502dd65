"""Reads the table defining which atoms make up each coarse-grained bead.

A mapping table is a delimited file with a header row and (at least) three
columns: the fine-grained atom name, the coarse-grained bead name and the
mass weight of the atom, e.g.

    aa,cg,mass
    N,BB,14.007
    CA,BB,12.011
    CB,SC,12.011

Rows are grouped by bead name into a MappingTable.
"""

from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, List, NamedTuple, Sequence, Tuple
import logging
import numpy as np
import pandas as pd  # type: ignore [import-untyped]
from .errors import MappingParseError
from .map import LinearMap

logger = logging.getLogger(__name__)

AtomWeight = Tuple[str, float]


class BeadDefinition(NamedTuple):
    """One row of a mapping table."""

    atom_name: str
    coarse_name: str
    mass: float


class MappingTable(Mapping):
    r"""Read-only grouping of bead name -> ((atom name, mass), ...).

    Beads iterate in the order they first appear in the source; atoms of a
    bead keep their row order.
    """

    def __init__(self, groups: Mapping):
        self._groups: Dict[str, Tuple[AtomWeight, ...]] = {
            bead: tuple((atom, float(mass)) for atom, mass in atoms)
            for bead, atoms in groups.items()
        }

    @classmethod
    def from_records(cls, records: Iterable[BeadDefinition]) -> "MappingTable":
        """Groups mapping rows by bead name.

        Names are stripped of surrounding whitespace. Masses are taken as
        given; they are not checked for sign.
        """

        groups: Dict[str, List[AtomWeight]] = {}
        for rec in records:
            atom = rec.atom_name.strip()
            bead = rec.coarse_name.strip()
            if not atom or not bead:
                raise MappingParseError("Empty atom or bead name in row {}".format(rec))
            groups.setdefault(bead, []).append((atom, rec.mass))
        return cls(groups)

    def __getitem__(self, bead: str) -> Tuple[AtomWeight, ...]:
        return self._groups[bead]

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __repr__(self) -> str:
        return "{}({!r})".format(type(self).__name__, self._groups)

    @property
    def beads(self) -> Tuple[str, ...]:
        """Bead names in output order."""

        return tuple(self._groups)

    @property
    def atom_names(self) -> Tuple[str, ...]:
        """Every atom name referenced by some bead, without repeats."""

        return tuple(dict.fromkeys(a for atoms in self._groups.values() for a, _ in atoms))

    def bead_masses(self) -> Dict[str, float]:
        """Total mass of each bead."""

        return {bead: sum(m for _, m in atoms) for bead, atoms in self._groups.items()}

    def linear_map(self, atom_names: Sequence[str]) -> LinearMap:
        r"""Creates the center of mass map for a given ordering of atoms.

        Arguments
        ---------
        atom_names (sequence of strings):
            Names of the fine-grained sites, in the order their coordinates
            will be given to the map.

        Returns
        -------
        LinearMap of shape (len(self),len(atom_names)).

        Raises KeyError if a bead references a name not in atom_names and
        ValueError if the masses of a bead sum to zero.
        """

        index = {name: i for i, name in enumerate(atom_names)}
        groups = []
        weights = []
        for atoms in self._groups.values():
            groups.append([index[a] for a, _ in atoms])
            weights.append([m for _, m in atoms])
        if not groups:
            return LinearMap(np.zeros((0, len(index))))
        return LinearMap.from_weights(groups, weights, n_fg_sites=len(index))


def read_mapping(
    path,
    atom_column: str = "aa",
    bead_column: str = "cg",
    mass_column: str = "mass",
    sep: str = ",",
) -> MappingTable:
    r"""Load a mapping table from a delimited file.

    Arguments
    ---------
    path (path-like or file-like):
        Source of the table; must contain a header row.
    atom_column, bead_column, mass_column (strings):
        Header names of the atom name, bead name and mass columns. Header
        cells are stripped of whitespace before matching.
    sep (string):
        Field delimiter.

    Returns
    -------
    MappingTable grouping the rows by bead.

    Raises MappingParseError if the file cannot be read, a column is missing,
    a row has a different number of fields than the header, a name is empty
    or a mass is not a finite number. Nothing is returned on error.
    """

    try:
        # without a header, pandas rejects rows longer than the first line
        raw = pd.read_csv(path, sep=sep, header=None, dtype=str, keep_default_na=False)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise MappingParseError("Cannot read mapping table {}: {}".format(path, e)) from e

    frame = raw.iloc[1:].reset_index(drop=True)
    frame.columns = [str(c).strip() for c in raw.iloc[0]]
    missing = [c for c in (atom_column, bead_column, mass_column) if c not in frame.columns]
    if missing:
        raise MappingParseError(
            "Mapping table {} lacks column(s) {}; found {}".format(
                path, ", ".join(missing), ", ".join(frame.columns)
            )
        )
    incomplete = frame.isna().any(axis=1).to_numpy()
    if incomplete.any():
        row = int(np.flatnonzero(incomplete)[0])
        raise MappingParseError("Incomplete row in {} at data row {}".format(path, row + 1))

    try:
        masses = pd.to_numeric(frame[mass_column].str.strip(), errors="raise")
    except (ValueError, TypeError) as e:
        raise MappingParseError("Non-numeric mass in {}: {}".format(path, e)) from e
    if masses.isna().any():
        row = int(np.flatnonzero(masses.isna().to_numpy())[0])
        raise MappingParseError("Missing mass in {} at data row {}".format(path, row + 1))
    infinite = ~np.isfinite(masses.to_numpy(dtype=np.float64))
    if infinite.any():
        row = int(np.flatnonzero(infinite)[0])
        raise MappingParseError("Infinite mass in {} at data row {}".format(path, row + 1))

    records = (
        BeadDefinition(atom, bead, float(mass))
        for atom, bead, mass in zip(frame[atom_column], frame[bead_column], masses)
    )
    table = MappingTable.from_records(records)
    logger.debug("Read %d rows defining %d beads from %s", len(frame), len(table), path)
    return table
