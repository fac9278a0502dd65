"""Maps atomistic structures onto coarse-grained beads.

A mapping table assigns atom names to bead names with mass weights; every
residue of a structure is then replaced by one pseudo atom per bead, placed at
the mass-weighted centroid of its atoms (positions and velocities).

The primary entry point is agg.coarse_grain; mapping.read_mapping and
gro.load_structure read the inputs.

See agg.py and the README for more information. Tests are also available.
"""
