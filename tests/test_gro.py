"""Test reading and writing structures."""
from pathlib import Path
import numpy as np
import mdtraj as md  # type: ignore [import-untyped]
import pytest
from beadagg import gro
from beadagg.errors import StructureParseError
from beadagg.structure import Atom, Structure

location = Path(__file__).parent


def test_read_dialanine() -> None:
    """Fixed columns, residue grouping, velocities and box are read."""
    structure = gro.read_gro(location / "data/dialanine.gro")

    assert structure.title == "Two alanines"
    assert structure.n_atoms == 10
    assert structure.box_size == (3.0, 3.0, 3.0)
    residues = structure.residues()
    assert [(r.number, r.name) for r in residues] == [(1, "ALA"), (2, "ALA")]
    assert list(residues[0].atoms) == ["N", "CA", "CB", "C", "O"]
    cb = residues[1].atoms["CB"]
    assert np.allclose(cb.position, [1.2, 0.2, 0.1])
    assert np.allclose(cb.velocity, [0.0, 0.0, 0.3])


def test_positions_without_velocities() -> None:
    """Velocities default to zero; 9-value boxes are kept."""
    text = (
        "water\n"
        "    3\n"
        "    1SOL     OW    1   0.126   1.624   1.679\n"
        "    1SOL    HW1    2   0.190   1.661   1.747\n"
        "    1SOL    HW2    3   0.177   1.568   1.613\n"
        "   1.86206   1.86206   1.86206   0.00000   0.00000   0.00000   0.00000   0.00000   0.00000\n"
    )
    structure = gro.parse_gro(text)
    assert len(structure.box_size) == 9
    assert np.allclose(structure.velocities(), 0.0)
    assert np.allclose(structure.positions()[1], [0.19, 1.661, 1.747])


def test_high_precision_columns() -> None:
    """Field width is taken from the decimal point spacing."""
    text = (
        "precise\n"
        "1\n"
        "    1MOL      C    1    0.12345    1.00000   -2.50000\n"
        "1.0 1.0 1.0\n"
    )
    (atom,) = gro.parse_gro(text).atoms
    assert np.allclose(atom.position, [0.12345, 1.0, -2.5])


def test_format_layout() -> None:
    """Written lines follow the .gro column widths."""
    atom = Atom(7, "LYS", "SC2", 12, np.array([1.0, -0.25, 10.5]), np.array([0.1, 0.0, -1.2345]))
    text = gro.format_gro(Structure("cg", [atom], (4.0, 5.0, 6.0)))
    lines = text.splitlines()

    assert lines[0] == "cg"
    assert lines[1] == "    1"
    assert lines[2] == "    7LYS    SC2   12   1.000  -0.250  10.500  0.1000  0.0000 -1.2345"
    assert lines[3] == "   4.00000   5.00000   6.00000"
    assert text.endswith("\n")


def test_numbers_wrap() -> None:
    """Residue and atom numbers above 99999 wrap around."""
    atom = Atom(100001, "SOL", "OW", 100002, np.zeros(3), np.zeros(3))
    line = gro.format_gro(Structure("", [atom], (1.0, 1.0, 1.0))).splitlines()[2]
    assert line[0:5] == "    1"
    assert line[15:20] == "    2"


def test_write_read(tmp_path: Path) -> None:
    """A written file reads back with the same records."""
    original = gro.read_gro(location / "data/dialanine.gro")
    out = tmp_path / "copy.gro"
    gro.write_gro(original, out)
    copy = gro.read_gro(out)

    assert copy.title == original.title
    assert copy.box_size == original.box_size
    assert [(a.res_number, a.res_name, a.atom_name, a.atom_number) for a in copy.atoms] == [
        (a.res_number, a.res_name, a.atom_name, a.atom_number) for a in original.atoms
    ]
    assert np.allclose(copy.positions(), original.positions())
    assert np.allclose(copy.velocities(), original.velocities())


@pytest.mark.parametrize(
    "text",
    [
        "",
        "title\nthree\n1 1 1\n",
        "title\n    2\n    1SOL     OW    1   0.126   1.624   1.679\n   1.0   1.0   1.0\n",
        "title\n    1\n    1SOL     OW    1   0.126   1.624\n   1.0   1.0   1.0\n",
        "title\n    1\n    xSOL     OW    1   0.126   1.624   1.679\n   1.0   1.0   1.0\n",
        "title\n    1\n    1SOL     OW    1   0.126   1.624   1.679\n   1.0   1.0\n",
        "title\n    1\n    1SOL     OW    1   0.126   1.624   1.679\n   1.0   1.0  box\n",
    ],
)
def test_malformed(text: str) -> None:
    """Truncated or garbled files raise StructureParseError."""
    with pytest.raises(StructureParseError):
        gro.parse_gro(text)


def test_missing_file(tmp_path: Path) -> None:
    """Unreadable files raise StructureParseError."""
    with pytest.raises(StructureParseError):
        gro.read_gro(tmp_path / "absent.gro")
    with pytest.raises(StructureParseError):
        gro.load_structure(tmp_path / "absent.pdb")


def test_duplicate_atom_names() -> None:
    """Residues cannot hold two atoms of the same name."""
    atoms = [
        Atom(1, "SOL", "HW", 1, np.zeros(3), np.zeros(3)),
        Atom(1, "SOL", "HW", 2, np.ones(3), np.zeros(3)),
    ]
    with pytest.raises(StructureParseError):
        Structure("", atoms, (1.0, 1.0, 1.0)).residues()


def make_trajectory(unitcell: bool) -> md.Trajectory:
    """Create a two residue, three atom mdtraj trajectory."""
    top = md.Topology()
    chain = top.add_chain()
    gly = top.add_residue("GLY", chain, resSeq=5)
    top.add_atom("N", md.element.nitrogen, gly)
    top.add_atom("CA", md.element.carbon, gly)
    ala = top.add_residue("ALA", chain, resSeq=6)
    top.add_atom("CA", md.element.carbon, ala)
    xyz = np.array([[[0.1, 0.2, 0.3], [0.4, 0.5, 0.6], [0.7, 0.8, 0.9]]], dtype=np.float32)
    if unitcell:
        return md.Trajectory(
            xyz, top, unitcell_lengths=np.array([[2.0, 3.0, 4.0]]), unitcell_angles=np.array([[90.0, 90.0, 90.0]])
        )
    return md.Trajectory(xyz, top)


def test_from_mdtraj() -> None:
    """Topology and coordinates carry over; velocities are zero."""
    structure = gro.from_mdtraj(make_trajectory(unitcell=True), title="peptide")

    assert structure.title == "peptide"
    assert np.allclose(structure.box_size, (2.0, 3.0, 4.0))
    residues = structure.residues()
    assert [(r.number, r.name, list(r.atoms)) for r in residues] == [
        (5, "GLY", ["N", "CA"]),
        (6, "ALA", ["CA"]),
    ]
    assert [a.atom_number for a in structure.atoms] == [1, 2, 3]
    assert np.allclose(residues[1].atoms["CA"].position, [0.7, 0.8, 0.9])
    assert np.allclose(structure.velocities(), 0.0)


def test_load_pdb(tmp_path: Path) -> None:
    """Non-.gro files are loaded through mdtraj."""
    pdb = tmp_path / "peptide.pdb"
    make_trajectory(unitcell=False).save_pdb(str(pdb))

    structure = gro.load_structure(pdb)

    assert structure.title == "peptide"
    assert structure.box_size == (0.0, 0.0, 0.0)
    assert [a.atom_name for a in structure.atoms] == ["N", "CA", "CA"]
    assert np.allclose(structure.positions()[2], [0.7, 0.8, 0.9], atol=1e-3)
