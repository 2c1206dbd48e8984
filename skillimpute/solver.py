# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from collections import namedtuple

import numpy as np

from .common import effective_rank
from .errors import InsufficientDataError


class LowRankFit(namedtuple(
        "LowRankFit",
        ["U", "singular_values", "V", "n_iters", "converged"])):
    """
    Low-rank factorization U * diag(singular_values) * V of a completed
    matrix. U has orthonormal columns, V has orthonormal rows and the
    singular values have already been shrunk.
    """
    __slots__ = ()

    @property
    def rank(self):
        return effective_rank(self.singular_values)

    @property
    def shape(self):
        return (self.U.shape[0], self.V.shape[1])

    def reconstruction(self):
        return np.dot(self.U * self.singular_values, self.V)

    @classmethod
    def empty(cls, shape, n_iters=0, converged=True):
        n_rows, n_cols = shape
        return cls(
            U=np.zeros((n_rows, 0)),
            singular_values=np.zeros(0),
            V=np.zeros((0, n_cols)),
            n_iters=n_iters,
            converged=converged)


class Solver(object):
    def __init__(self, fill_method="zero"):
        self.fill_method = fill_method

    def __repr__(self):
        return str(self)

    def __str__(self):
        field_list = []
        for (k, v) in sorted(self.__dict__.items()):
            if v is None or isinstance(v, (float, int)):
                field_list.append("%s=%s" % (k, v))
            elif isinstance(v, str):
                field_list.append("%s='%s'" % (k, v))
        return "%s(%s)" % (
            self.__class__.__name__,
            ", ".join(field_list))

    def _check_input(self, X):
        if len(X.shape) != 2:
            raise ValueError("Expected 2d matrix, got %s array" % (X.shape,))

    def _check_observed_mask(self, X, observed_mask):
        if observed_mask.shape != X.shape:
            raise ValueError(
                "Expected observed mask of shape %s, got %s" % (
                    X.shape, observed_mask.shape))
        if not observed_mask.any():
            raise InsufficientDataError(
                "Input matrix must have some observed values")

    def fill(
            self,
            X,
            observed_mask,
            fill_method=None,
            inplace=False):
        """
        Parameters
        ----------
        X : np.array
            Data array, values outside of observed_mask are ignored

        observed_mask : np.array
            Boolean array which is True for entries to keep

        fill_method : str
            "zero": fill unobserved entries with zeros
            "mean": fill with the mean of each column's observed entries

        inplace : bool
            Modify matrix or fill a copy
        """
        if not inplace:
            X = X.copy()

        if not fill_method:
            fill_method = self.fill_method

        missing_mask = ~observed_mask
        if fill_method not in ("zero", "mean"):
            raise ValueError("Invalid fill method: '%s'" % (fill_method))
        elif fill_method == "zero":
            X[missing_mask] = 0
        elif fill_method == "mean":
            for col_idx in range(X.shape[1]):
                missing_col = missing_mask[:, col_idx]
                if not missing_col.any():
                    continue
                observed_col = observed_mask[:, col_idx]
                if observed_col.any():
                    fill_value = X[observed_col, col_idx].mean()
                else:
                    fill_value = 0
                X[missing_col, col_idx] = fill_value
        return X

    def prepare_input_data(self, X, observed_mask=None):
        """
        Check to make sure that the input matrix and its mask of observed
        values are valid. When no mask is given it's derived from the NaN
        entries of X, this is the only place where NaN means missing.

        Returns X and observed mask.
        """
        X = np.asarray(X)
        if X.dtype != "f" and X.dtype != "d":
            X = X.astype(float)
        self._check_input(X)
        if observed_mask is None:
            observed_mask = ~np.isnan(X)
        else:
            observed_mask = np.asarray(observed_mask, dtype=bool)
        self._check_observed_mask(X, observed_mask)
        return X, observed_mask

    def project_result(self, X, observed_mask, fit):
        """
        Reconstruct the matrix from a low-rank fit and put back the
        observed entries.
        """
        X_result = fit.reconstruction()
        X_result[observed_mask] = X[observed_mask]
        return X_result

    def solve(self, X, observed_mask):
        """
        Given a data matrix X and a mask of which of its entries are
        observed, return a LowRankFit of the completed matrix.
        """
        raise ValueError("%s.solve not yet implemented!" % (
            self.__class__.__name__,))

    def complete(self, X, observed_mask=None):
        """
        Expects 2d float matrix and either a boolean mask of observed
        entries or NaN entries signifying missing values.

        Returns completed matrix without any NaNs.
        """
        X, observed_mask = self.prepare_input_data(X, observed_mask)
        fit = self.solve(X, observed_mask)
        return self.project_result(X, observed_mask, fit)
