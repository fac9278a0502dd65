r"""Reads and writes structures.

GROMACS .gro files are handled directly so that velocities survive; every
other format mdtraj understands is loaded through mdtraj (without
velocities).

A .gro file is laid out in fixed columns:

    title
    n_atoms
    resnr(5) resname(5) atomname(5) atomnr(5) x y z (8.3f) [vx vy vz (8.4f)]
    ...
    box (3 or 9 floats)
"""

from pathlib import Path
from typing import List, Union
import logging
import numpy as np
import mdtraj as md  # type: ignore [import-untyped]
from .errors import StructureParseError
from .structure import Atom, Structure

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# residue and atom numbers wrap around in the 5-character fields
_WRAP = 100000


def _parse_atom_line(line: str, lineno: int) -> Atom:
    try:
        res_number = int(line[0:5])
        res_name = line[5:10].strip()
        atom_name = line[10:15].strip()
        atom_number = int(line[15:20])
        # the decimal point positions give the field width, usually 8
        first = line.index(".", 20)
        second = line.index(".", first + 1)
        width = second - first
        fields = line[20:].rstrip()
        n_fields = len(fields) // width
        values = [float(fields[i * width : (i + 1) * width]) for i in range(n_fields)]
    except ValueError as e:
        raise StructureParseError("Malformed atom record on line {}: {!r}".format(lineno, line)) from e
    if len(values) not in (3, 6):
        raise StructureParseError(
            "Expected 3 or 6 coordinates on line {}, found {}".format(lineno, len(values))
        )
    position = np.array(values[:3], dtype=np.float64)
    velocity = np.array(values[3:] or [0.0, 0.0, 0.0], dtype=np.float64)
    return Atom(res_number, res_name, atom_name, atom_number, position, velocity)


def parse_gro(text: str) -> Structure:
    r"""Parses the contents of a .gro file.

    Arguments
    ---------
    text (string):
        Full file contents. Only the first frame is read.

    Returns
    -------
    Structure holding the atoms in file order. Atoms without velocities get
    zero velocities.

    Raises StructureParseError on truncated or malformed input.
    """

    lines = text.splitlines()
    if len(lines) < 3:
        raise StructureParseError("A .gro file needs at least a title, atom count and box line")
    title = lines[0]
    try:
        n_atoms = int(lines[1])
    except ValueError as e:
        raise StructureParseError("Invalid atom count {!r}".format(lines[1])) from e
    if len(lines) < n_atoms + 3:
        raise StructureParseError(
            "Expected {} atom lines and a box line, file has {} lines".format(n_atoms, len(lines))
        )

    atoms = [_parse_atom_line(lines[i], i + 1) for i in range(2, n_atoms + 2)]

    try:
        box = tuple(float(v) for v in lines[n_atoms + 2].split())
    except ValueError as e:
        raise StructureParseError("Invalid box line {!r}".format(lines[n_atoms + 2])) from e
    if len(box) not in (3, 9):
        raise StructureParseError("Box line must have 3 or 9 values, found {}".format(len(box)))
    return Structure(title, atoms, box)


def read_gro(path: PathLike) -> Structure:
    """Reads a .gro file from disk."""

    try:
        text = Path(path).read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise StructureParseError("Cannot read {}: {}".format(path, e)) from e
    structure = parse_gro(text)
    logger.debug("Read %d atoms from %s", structure.n_atoms, path)
    return structure


def format_gro(structure: Structure) -> str:
    r"""Serializes a structure in .gro format, velocities included.

    Returns
    -------
    The file contents, ending with a newline.
    """

    lines: List[str] = [structure.title, "{:5d}".format(structure.n_atoms)]
    for atom in structure.atoms:
        x, y, z = atom.position
        vx, vy, vz = atom.velocity
        lines.append(
            "{:5d}{:<5s}{:>5s}{:5d}{:8.3f}{:8.3f}{:8.3f}{:8.4f}{:8.4f}{:8.4f}".format(
                atom.res_number % _WRAP,
                atom.res_name[:5],
                atom.atom_name[:5],
                atom.atom_number % _WRAP,
                x,
                y,
                z,
                vx,
                vy,
                vz,
            )
        )
    lines.append("".join("{:10.5f}".format(v) for v in structure.box_size))
    return "\n".join(lines) + "\n"


def write_gro(structure: Structure, path: PathLike) -> None:
    """Writes a structure to a .gro file."""

    Path(path).write_text(format_gro(structure))
    logger.debug("Wrote %d atoms to %s", structure.n_atoms, path)


def from_mdtraj(traj: md.Trajectory, frame: int = 0, title: str = "") -> Structure:
    r"""Creates a structure from one frame of an mdtraj trajectory.

    Arguments
    ---------
    traj (mdtraj.Trajectory):
        Source of topology and coordinates (nm).
    frame (integer):
        Index of the frame to use.
    title (string):
        Title of the structure.

    Returns
    -------
    Structure with zero velocities. The box holds the unit cell lengths, or
    zeros if the trajectory has no unit cell.
    """

    xyz = np.asarray(traj.xyz[frame], dtype=np.float64)
    atoms = []
    for atom in traj.topology.atoms:
        residue = atom.residue
        atoms.append(
            Atom(
                residue.resSeq,
                residue.name,
                atom.name,
                atom.index + 1,
                xyz[atom.index].copy(),
                np.zeros(3),
            )
        )
    if traj.unitcell_lengths is not None:
        box = tuple(float(v) for v in traj.unitcell_lengths[frame])
    else:
        box = (0.0, 0.0, 0.0)
    return Structure(title, atoms, box)


def load_structure(path: PathLike) -> Structure:
    r"""Loads a structure, choosing the reader from the file extension.

    .gro files are parsed directly and keep their velocities; anything else
    is loaded with mdtraj.load and gets zero velocities.
    """

    path = Path(path)
    if path.suffix.lower() == ".gro":
        return read_gro(path)
    try:
        traj = md.load(str(path))
    except (OSError, ValueError, IndexError, KeyError) as e:
        raise StructureParseError("Cannot load {}: {}".format(path, e)) from e
    if traj.n_frames > 1:
        logger.warning("%s holds %d frames; only the first is used", path, traj.n_frames)
    return from_mdtraj(traj, title=path.stem)
