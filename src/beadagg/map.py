r"""Provides linear maps transforming fine-grained sites to coarse-grained
sites. Sites may be positions or velocities.
"""

from typing import List, Sequence
import numpy as np


class LinearMap:
    r"""Linear map from a fine-grained (fg) to a coarse-grained (cg) system.

    The map is stored as its "standard_matrix": a (num. of cg particles) x
    (num. of fg particles) array where each element describes how a fg
    particle linearly contributes to a cg particle. For a center of mass map
    each row holds the masses of the contributing atoms divided by their sum,
    and zero elsewhere.

    Calling instances maps arrays of shape (n_sites,n_dims) or
    (n_steps,n_sites,n_dims).
    """

    def __init__(self, matrix: np.ndarray):
        r"""Initializes a LinearMap from its standard matrix.

        Arguments
        ---------
        matrix (2-d numpy.ndarray):
            Array of shape (n_cg_sites,n_fg_sites); each element is the
            coefficient with which a fg site contributes to a cg site.
        """

        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.ndim != 2:
            raise ValueError("Mapping matrix must be 2-dimensional.")
        self._standard_matrix = matrix

    @classmethod
    def from_weights(
        cls, groups: Sequence[Sequence[int]], weights: Sequence[Sequence[float]], n_fg_sites: int
    ) -> "LinearMap":
        r"""Creates a normalized map from groups of site indices and weights.

        Arguments
        ---------
        groups (list of lists of integers):
            The outer list iterates over cg sites; each inner list gives the
            fg indices contributing to that site.
        weights (list of lists of floats):
            Same layout as groups; the (unnormalized) weight of each index.
            Each row is divided by its sum.
        n_fg_sites (integer):
            Total number of fg sites.

        Example:
            groups [[0,2],[1]] with weights [[12.0,4.0],[1.0]] and
            n_fg_sites=3 give
                [ 0.75 0    0.25 ]
                [ 0    1    0    ]
        """

        matrix = np.zeros((len(groups), n_fg_sites))
        for site, (inds, wts) in enumerate(zip(groups, weights)):
            wts = np.asarray(wts, dtype=np.float64)
            total = wts.sum()
            if total == 0 or not np.isfinite(total):
                raise ValueError("Weights of cg site {} sum to {}.".format(site, total))
            # repeated indices accumulate
            np.add.at(matrix[site], list(inds), wts / total)
        return cls(matrix)

    @property
    def standard_matrix(self) -> np.ndarray:
        r"""The mapping in standard matrix format."""

        return self._standard_matrix

    @property
    def n_cg_sites(self) -> int:
        r"""The number of coarse-grained sites described by the output of the
        map.
        """

        return self._standard_matrix.shape[0]

    @property
    def n_fg_sites(self) -> int:
        r"""The number of fine-grained sites described by the input of the
        map.
        """

        return self._standard_matrix.shape[1]

    @property
    def participating_fg(self) -> List[List[int]]:
        r"""A table of which atoms are included in the definition of each cg
        site, as a list indexed by cg site of lists of fg indices.
        """

        table: List[List[int]] = [[] for _ in range(self.n_cg_sites)]
        for cg_ind, fg_ind in zip(*np.nonzero(self._standard_matrix)):
            table[cg_ind].append(int(fg_ind))
        return table

    def __call__(self, points: np.ndarray) -> np.ndarray:
        r"""Applies map to a 2- or 3-dim array.

        Arguments
        ---------
        points (np.ndarray):
            Of shape (n_sites,n_dims) or (n_steps,n_sites,n_dims).

        Returns
        -------
        Points combined along the n_sites dimension according to the map,
        with the same number of dimensions as the input.
        """

        points = np.asarray(points, dtype=np.float64)
        if points.ndim == 2:
            return trjdot(points[None], self._standard_matrix)[0]
        return trjdot(points, self._standard_matrix)


def trjdot(points: np.ndarray, factor: np.ndarray) -> np.ndarray:
    """Performs a specific matrix product when dealing with mdtraj-style arrays
    and a matrix.

    Molecular positions (and velocities) are represented as arrays of shape
    (n_steps,n_sites,n_dims). The relationship between the fg (n_sites) and
    cg (n_cg_sites) resolution is a matrix of shape (n_cg_sites,n_sites)
    that is broadcast across the other dimensions.

    Arguments
    ---------
    points (numpy.ndarray)
        3-dim ndarray of shape (n_steps,n_sites,n_dims). To be mapped using
        factor.
    factor (numpy.ndarray)
        2-dim ndarray of shape (n_cg_sites,n_sites).

    Returns
    -------
    ndarray of shape (n_steps,n_cg_sites,n_dims) containing points mapped
    with factor.
    """

    if len(factor.shape) != 2:
        raise ValueError("Factor matrix is an incompatible shape.")
    if points.shape[-2] != factor.shape[1]:
        raise ValueError(
            "Points have {} sites but the map expects {}.".format(
                points.shape[-2], factor.shape[1]
            )
        )
    return np.einsum("tfd,cf->tcd", points, factor)
