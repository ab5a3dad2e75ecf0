"""
Fixed sparsity pattern of the model Jacobian.

The pattern is built once from the structural nonzeros reported by the
transport operators. Analytic entries are summed into it, and AD column
products are read back into it, so both paths fill the same CSR layout.
"""

import numpy as np
import scipy.sparse as sp
from typing import List, Tuple


class JacobianPattern:
    """
    CSR sparsity pattern over the DOF space.

    Entries are kept sorted by (row, col), i.e. in CSR order, so a data
    array of length nnz fully describes a matrix on this pattern.
    """

    def __init__(self, n_dofs: int, entries: List[Tuple[np.ndarray, np.ndarray]]):
        """
        Args:
            n_dofs: Matrix dimension
            entries: (rows, cols) arrays of structural nonzeros, may overlap
        """
        self.n_dofs = n_dofs
        rows = np.concatenate([np.asarray(r, dtype=np.int64).ravel() for r, _ in entries])
        cols = np.concatenate([np.asarray(c, dtype=np.int64).ravel() for _, c in entries])
        if rows.size and (rows.min() < 0 or rows.max() >= n_dofs or cols.min() < 0 or cols.max() >= n_dofs):
            raise IndexError("Jacobian pattern entry outside the DOF range")

        self._keys = np.unique(rows * n_dofs + cols)
        self.rows, self.cols = np.divmod(self._keys, n_dofs)
        self.indptr = np.concatenate([[0], np.cumsum(np.bincount(self.rows, minlength=n_dofs))])

        self.colors = self._color_columns()
        self.n_colors = int(self.colors.max()) + 1 if self.colors.size else 0

    @property
    def nnz(self) -> int:
        return len(self._keys)

    def positions(self, rows: np.ndarray, cols: np.ndarray) -> np.ndarray:
        """Index into the data array of each (row, col) pair."""
        keys = np.asarray(rows, dtype=np.int64).ravel() * self.n_dofs + np.asarray(cols, dtype=np.int64).ravel()
        pos = np.searchsorted(self._keys, keys)
        if np.any(pos >= self.nnz) or np.any(self._keys[np.minimum(pos, self.nnz - 1)] != keys):
            raise IndexError("Jacobian entry outside the sparsity pattern")
        return pos

    def assemble(self, rows: np.ndarray, cols: np.ndarray, vals: np.ndarray) -> np.ndarray:
        """Sum (row, col, value) triplets into a data array on this pattern."""
        return np.bincount(self.positions(rows, cols), weights=np.asarray(vals, dtype=float).ravel(),
                           minlength=self.nnz)

    def matrix(self, data: np.ndarray) -> sp.csr_matrix:
        return sp.csr_matrix((data, self.cols.copy(), self.indptr.copy()), shape=(self.n_dofs, self.n_dofs))

    def _color_columns(self) -> np.ndarray:
        """
        Greedy distance-2 coloring: columns sharing a row get different colors.

        Columns of one color can then be recovered from a single Jacobian
        vector product.
        """
        n = self.n_dofs
        by_col = sp.csc_matrix((np.ones(self.nnz), (self.rows, self.cols)), shape=(n, n))
        by_row = by_col.tocsr()

        colors = np.full(n, -1, dtype=np.int64)
        for j in range(n):
            col_rows = by_col.indices[by_col.indptr[j]:by_col.indptr[j + 1]]
            neighbours = np.concatenate(
                [by_row.indices[by_row.indptr[r]:by_row.indptr[r + 1]] for r in col_rows]) \
                if col_rows.size else np.empty(0, dtype=np.int64)
            used = colors[neighbours]
            used = set(used[used >= 0].tolist())
            color = 0
            while color in used:
                color += 1
            colors[j] = color
        return colors

    def seed_matrix(self) -> np.ndarray:
        """Seed vectors (n_colors, n_dofs), one per column color."""
        seeds = np.zeros((self.n_colors, self.n_dofs))
        seeds[self.colors, np.arange(self.n_dofs)] = 1.0
        return seeds

    def extract(self, products: np.ndarray) -> np.ndarray:
        """
        Read pattern values from compressed Jacobian products.

        Args:
            products: J @ seed for every seed of seed_matrix(), (n_colors, n_dofs)
        """
        return products[self.colors[self.cols], self.rows]


def mass_matrix(n_dofs: int, n_algebraic: int) -> sp.csr_matrix:
    """dF/dy': identity on the differential (bulk) DOFs, zero on the leading algebraic ones."""
    diag = np.ones(n_dofs)
    diag[:n_algebraic] = 0.0
    return sp.diags(diag, format='csr')
