r"""Aggregates atomistic structures into coarse-grained beads.

Problem setting: a fine-grained structure is split into residues, each of
which holds named atoms with positions and velocities. A MappingTable says
which atom names make up each bead and with which mass. For every residue and
every bead, the bead is placed at the mass-weighted centroid of its atoms

    R_I = \sum_{i \in I} m_i r_i / \sum_{i \in I} m_i

and its velocity is the corresponding mass-weighted average. Beads become the
atoms of a new structure that keeps the title and box of the input.

coarse_grain is the primary entry point.
"""

from typing import Dict, List, Tuple, Union
import logging
import math
import numpy as np
from .errors import MissingAtomError, ZeroMassError
from .map import LinearMap
from .mapping import MappingTable
from .structure import PseudoAtom, Residue, Structure, StructureSource

logger = logging.getLogger(__name__)


def residue_map(residue: Residue, mapping: MappingTable) -> LinearMap:
    r"""Creates the center of mass map of one residue.

    Arguments
    ---------
    residue (Residue):
        Residue whose atoms (in iteration order) form the fine-grained sites.
    mapping (MappingTable):
        Bead definitions; the beads form the coarse-grained sites in mapping
        order.

    Returns
    -------
    LinearMap of shape (len(mapping),len(residue.atoms)).

    Raises MissingAtomError if a bead uses an atom the residue lacks and
    ZeroMassError if the masses of a bead sum to zero or are not finite.
    """

    for bead, atoms in mapping.items():
        for atom, _ in atoms:
            if atom not in residue.atoms:
                raise MissingAtomError(residue.number, residue.name, bead, atom)
        total = sum(m for _, m in atoms)
        if total == 0 or not math.isfinite(total):
            raise ZeroMassError(bead, total)
    return mapping.linear_map(list(residue.atoms))


def map_residue(
    residue: Residue,
    mapping: MappingTable,
    first_atom_number: int = 1,
    cgmap: Union[None, LinearMap] = None,
) -> List[PseudoAtom]:
    r"""Replaces the atoms of a residue by its beads.

    Arguments
    ---------
    residue (Residue):
        Residue to coarse-grain.
    mapping (MappingTable):
        Bead definitions.
    first_atom_number (integer):
        Atom number given to the first bead; the others follow sequentially.
    cgmap (LinearMap or None):
        Precomputed result of residue_map for this residue's atom layout. If
        None, it is created.

    Returns
    -------
    List of pseudo atoms, one per bead, in mapping order.
    """

    if cgmap is None:
        cgmap = residue_map(residue, mapping)
    states = list(residue.atoms.values())
    positions = np.array([s.position for s in states], dtype=np.float64).reshape(-1, 3)
    velocities = np.array([s.velocity for s in states], dtype=np.float64).reshape(-1, 3)
    cg_positions = cgmap(positions)
    cg_velocities = cgmap(velocities)
    return [
        PseudoAtom(
            res_number=residue.number,
            res_name=residue.name,
            atom_name=bead,
            atom_number=first_atom_number + i,
            position=cg_positions[i],
            velocity=cg_velocities[i],
        )
        for i, bead in enumerate(mapping)
    ]


def coarse_grain(structure: StructureSource, mapping: MappingTable) -> Structure:
    r"""Produces the coarse-grained version of a structure.

    Every residue is replaced by one pseudo atom per bead of the mapping.
    Pseudo atoms are numbered from 1 across the whole output, residues
    forming the outer and beads the inner loop.

    Arguments
    ---------
    structure (StructureSource):
        Fine-grained input; only read.
    mapping (MappingTable):
        Bead definitions.

    Returns
    -------
    New Structure with the title and box_size objects of the input.

    Any missing atom or zero-mass bead aborts the whole call; no partial
    structure is returned.
    """

    maps: Dict[Tuple[str, ...], LinearMap] = {}
    atoms: List[PseudoAtom] = []
    residues = structure.residues()
    for residue in residues:
        # residues with the same atom names in the same order share a map
        layout = tuple(residue.atoms)
        if layout not in maps:
            maps[layout] = residue_map(residue, mapping)
        atoms.extend(map_residue(residue, mapping, len(atoms) + 1, cgmap=maps[layout]))
    logger.info(
        "Mapped %d residues onto %d beads (%d distinct residue layouts)",
        len(residues),
        len(atoms),
        len(maps),
    )
    return Structure(structure.title, atoms, structure.box_size)
