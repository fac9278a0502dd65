"""Command line interface: coarse-grain a structure file with a mapping table."""

import logging
import click
from .agg import coarse_grain
from .errors import BeadAggError
from .gro import format_gro, load_structure, write_gro
from .mapping import read_mapping

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.command(context_settings=CONTEXT_SETTINGS)
@click.argument("mapping", type=click.Path(dir_okay=False))
@click.option("-i", "--input", "input_file", required=True, type=click.Path(dir_okay=False), metavar="FILE", help="Input structure (.gro, or any format mdtraj reads).")
@click.option("-o", "--output", default=None, type=click.Path(dir_okay=False, writable=True), metavar="FILE", help="Output .gro file. Printed to stdout if not given.")
@click.option("--atom-column", default="aa", show_default=True, help="Mapping table column holding atom names.")
@click.option("--bead-column", default="cg", show_default=True, help="Mapping table column holding bead names.")
@click.option("--mass-column", default="mass", show_default=True, help="Mapping table column holding masses.")
@click.option("--sep", default=",", show_default=True, help="Mapping table field delimiter.")
@click.option("-v", "--verbose", count=True, help="Log more; repeat for debug output.")
def main(mapping, input_file, output, atom_column, bead_column, mass_column, sep, verbose):
    """Coarse-grain INPUT using the bead definitions in the MAPPING table.

    Each bead is placed at the mass-weighted centroid of its atoms, per
    residue. The result is written in .gro format.
    """
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    try:
        table = read_mapping(
            mapping,
            atom_column=atom_column,
            bead_column=bead_column,
            mass_column=mass_column,
            sep=sep,
        )
        logger.info("Mapping defines %d beads from %d atom names", len(table), len(table.atom_names))
        for bead, mass in table.bead_masses().items():
            logger.debug("Bead %s: total mass %g", bead, mass)
        structure = load_structure(input_file)
        cg_structure = coarse_grain(structure, table)
    except BeadAggError as e:
        raise click.ClickException(str(e)) from e

    if output is None:
        click.echo(format_gro(cg_structure), nl=False)
    else:
        try:
            write_gro(cg_structure, output)
        except OSError as e:
            raise click.ClickException("Cannot write {}: {}".format(output, e)) from e
        logger.info("Wrote %d beads to %s", cg_structure.n_atoms, output)


if __name__ == "__main__":
    main()
