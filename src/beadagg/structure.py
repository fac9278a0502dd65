r"""Plain records describing a single-frame molecular structure.

A structure is a flat sequence of atoms; residues are formed by grouping
consecutive atoms sharing a residue number and name, as in a .gro file.
Positions are in nm and velocities in nm/ps, stored as float64 arrays of
shape (3,).
"""

from abc import ABC, abstractmethod
from typing import Dict, List, NamedTuple, Sequence, Tuple
import numpy as np
from .errors import StructureParseError

Box = Tuple[float, ...]


class AtomState(NamedTuple):
    """Position and velocity of one atom."""

    position: np.ndarray
    velocity: np.ndarray


class Atom(NamedTuple):
    """One atom (or coarse-grained bead) of a structure."""

    res_number: int
    res_name: str
    atom_name: str
    atom_number: int
    position: np.ndarray
    velocity: np.ndarray

    @property
    def state(self) -> AtomState:
        return AtomState(self.position, self.velocity)


# beads produced by aggregation are ordinary atoms of the output structure
PseudoAtom = Atom


class Residue(NamedTuple):
    """Chemical subunit; atoms maps atom name -> AtomState in file order."""

    number: int
    name: str
    atoms: Dict[str, AtomState]


def vec3(values) -> np.ndarray:
    """Converts a 3-sequence to a float64 array of shape (3,)."""

    arr = np.asarray(values, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError("Expected 3 components, got shape {}".format(arr.shape))
    return arr


class StructureSource(ABC):
    r"""What the aggregator needs from an input structure.

    Subclasses may read from any source; they only need to provide the title,
    the residues and the box.
    """

    @property
    @abstractmethod
    def title(self) -> str:
        r"""Free-text title of the structure."""

    @property
    @abstractmethod
    def box_size(self) -> Box:
        r"""Box vectors, passed through to derived structures unchanged."""

    @abstractmethod
    def residues(self) -> List[Residue]:
        r"""Residues in structure order."""


class Structure(StructureSource):
    r"""In-memory structure built from a flat sequence of atoms."""

    def __init__(self, title: str, atoms: Sequence[Atom], box_size: Box):
        self._title = title
        self._atoms = tuple(atoms)
        self._box_size = box_size

    @classmethod
    def from_residues(cls, title: str, residues: Sequence[Residue], box_size: Box) -> "Structure":
        """Creates a structure from residues, numbering atoms from 1."""

        atoms = []
        for residue in residues:
            for name, state in residue.atoms.items():
                atoms.append(
                    Atom(
                        residue.number,
                        residue.name,
                        name,
                        len(atoms) + 1,
                        vec3(state.position),
                        vec3(state.velocity),
                    )
                )
        return cls(title, atoms, box_size)

    @property
    def title(self) -> str:
        return self._title

    @property
    def box_size(self) -> Box:
        return self._box_size

    @property
    def atoms(self) -> Tuple[Atom, ...]:
        return self._atoms

    @property
    def n_atoms(self) -> int:
        return len(self._atoms)

    def residues(self) -> List[Residue]:
        r"""Groups consecutive atoms with the same residue number and name.

        Raises StructureParseError if an atom name repeats within a residue.
        """

        residues: List[Residue] = []
        for atom in self._atoms:
            if not residues or (residues[-1].number, residues[-1].name) != (
                atom.res_number,
                atom.res_name,
            ):
                residues.append(Residue(atom.res_number, atom.res_name, {}))
            current = residues[-1].atoms
            if atom.atom_name in current:
                raise StructureParseError(
                    "Atom name {!r} repeats in residue {}{}".format(
                        atom.atom_name, atom.res_number, atom.res_name
                    )
                )
            current[atom.atom_name] = atom.state
        return residues

    def positions(self) -> np.ndarray:
        """Positions as an array of shape (n_atoms,3)."""

        return np.array([a.position for a in self._atoms], dtype=np.float64).reshape(-1, 3)

    def velocities(self) -> np.ndarray:
        """Velocities as an array of shape (n_atoms,3)."""

        return np.array([a.velocity for a in self._atoms], dtype=np.float64).reshape(-1, 3)

    def __len__(self) -> int:
        return len(self._atoms)

    def __repr__(self) -> str:
        return "{}(title={!r}, n_atoms={}, box_size={!r})".format(
            type(self).__name__, self._title, len(self._atoms), self._box_size
        )
