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

import numpy as np

from .errors import DegenerateColumnError


def _observed_column_moments(X, observed_mask):
    """
    Mean and sample standard deviation (ddof=1) of each column computed
    only over its observed entries.
    """
    n_rows, n_cols = X.shape
    column_means = np.full(n_cols, np.nan)
    column_stds = np.full(n_cols, np.nan)
    n_observed = observed_mask.sum(axis=0)
    for j in range(n_cols):
        values = X[observed_mask[:, j], j]
        if len(values) == 0:
            continue
        column_means[j] = values.mean()
        if len(values) > 1 and values.min() == values.max():
            # rounding in the mean can leave a tiny non-zero spread
            column_stds[j] = 0.0
        elif len(values) > 1:
            column_stds[j] = values.std(ddof=1)
    return column_means, column_stds, n_observed


def standardize(X, observed_mask):
    """
    Center and scale every column to mean 0 and variance 1 over its
    observed entries.

    Parameters
    ----------
    X : np.array
        Raw observations, entries outside observed_mask are ignored

    observed_mask : np.array
        Boolean array which is True where X is observed

    Returns the standardized matrix (NaN wherever observed_mask is False),
    the column means and the column standard deviations.
    """
    X = np.asarray(X, dtype=float)
    observed_mask = np.asarray(observed_mask, dtype=bool)
    if len(X.shape) != 2:
        raise ValueError("Expected 2d matrix, got %s array" % (X.shape,))
    if observed_mask.shape != X.shape:
        raise ValueError("Expected observed mask of shape %s, got %s" % (
            X.shape, observed_mask.shape))

    column_means, column_stds, n_observed = _observed_column_moments(
        X, observed_mask)

    empty = np.where(n_observed == 0)[0]
    if len(empty) > 0:
        raise DegenerateColumnError(
            "%d columns have no observed values: %s" % (
                len(empty), list(empty)),
            columns=empty)
    degenerate = np.where(
        ~np.isfinite(column_means) |
        ~np.isfinite(column_stds) |
        (column_stds == 0))[0]
    if len(degenerate) > 0:
        raise DegenerateColumnError(
            "%d columns have zero or undefined variance: %s" % (
                len(degenerate), list(degenerate)),
            columns=degenerate)

    X_standardized = _scale_observed(
        X, observed_mask, column_means, column_stds)
    return X_standardized, column_means, column_stds


def _scale_observed(X, observed_mask, column_means, column_scales):
    rows, cols = np.nonzero(observed_mask)
    X_scaled = np.full(X.shape, np.nan)
    X_scaled[rows, cols] = (
        (X[rows, cols] - column_means[cols]) / column_scales[cols])
    return X_scaled


class ColumnScaler(object):
    """
    Per-column standardization of a partially observed matrix which keeps
    around the means and standard deviations to undo it later.

    Columns flagged in lower_is_better get their z-scores negated so that
    a larger standardized value always means a better performance.
    """

    def __init__(self, lower_is_better=None, verbose=False):
        self.lower_is_better = lower_is_better
        self.verbose = verbose

    def _column_signs(self, n_cols):
        if self.lower_is_better is None:
            return np.ones(n_cols)
        flags = np.asarray(self.lower_is_better, dtype=bool)
        if flags.shape != (n_cols,):
            raise ValueError("Expected %d lower_is_better flags but got %s" % (
                n_cols, flags.shape))
        return np.where(flags, -1.0, 1.0)

    def fit(self, X, observed_mask):
        X = np.asarray(X, dtype=float)
        _, column_means, column_stds = standardize(X, observed_mask)
        self.column_means = column_means
        self.column_stds = column_stds
        self.column_signs = self._column_signs(X.shape[1])
        if self.verbose:
            print("[ColumnScaler] Fit %d columns, std range = [%f, %f]" % (
                X.shape[1],
                column_stds.min(),
                column_stds.max()))
        return self

    def _column_scales(self):
        return self.column_stds * self.column_signs

    def transform(self, X, observed_mask):
        X = np.asarray(X, dtype=float)
        observed_mask = np.asarray(observed_mask, dtype=bool)
        return _scale_observed(
            X, observed_mask, self.column_means, self._column_scales())

    def inverse_transform(self, X):
        """
        Map a fully observed standardized matrix back to original units.
        """
        X = np.asarray(X, dtype=float)
        n_cols = X.shape[1]
        if n_cols != len(self.column_means):
            raise ValueError("Expected %d columns but got %d" % (
                len(self.column_means), n_cols))
        return (
            X * self._column_scales().reshape((1, n_cols)) +
            self.column_means.reshape((1, n_cols)))

    def fit_transform(self, X, observed_mask):
        self.fit(X, observed_mask)
        return self.transform(X, observed_mask)
