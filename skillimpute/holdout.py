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

import logging
from collections import namedtuple

import numpy as np
from sklearn.utils import check_random_state

from .common import empty_rows_and_columns
from .errors import InsufficientDataError

HeldOutEntries = namedtuple("HeldOutEntries", ["rows", "columns", "values"])


def split_observed(
        X,
        observed_mask,
        holdout_fraction=0.2,
        random_state=None,
        strict=False):
    """
    Hide a uniformly random subset of the observed entries of X so they
    can be used to score a fit.

    Parameters
    ----------
    X : np.array
        Data matrix, the held-out values are read from it

    observed_mask : np.array
        Boolean array which is True where X is observed

    holdout_fraction : float
        Fraction of observed entries to hide, the number hidden is
        round(holdout_fraction * n_observed)

    random_state : int or np.random.RandomState
        Seed or generator used to draw the held-out entries. This is the
        only source of randomness in the pipeline.

    strict : bool
        Raise instead of logging a warning when hiding the entries leaves
        a row or column without any training data

    Returns the training mask and a HeldOutEntries of coordinates and values.
    """
    X = np.asarray(X)
    observed_mask = np.asarray(observed_mask, dtype=bool)
    if observed_mask.shape != X.shape:
        raise ValueError("Expected observed mask of shape %s, got %s" % (
            X.shape, observed_mask.shape))
    if not 0 <= holdout_fraction < 1:
        raise ValueError(
            "Holdout fraction must be in [0, 1), got %s" % (holdout_fraction,))

    rows, columns = np.nonzero(observed_mask)
    n_observed = len(rows)
    n_holdout = int(round(holdout_fraction * n_observed))
    if n_holdout == 0:
        raise InsufficientDataError(
            "Can't hold out %s of %d observed entries" % (
                holdout_fraction, n_observed))

    random_state = check_random_state(random_state)
    chosen = np.sort(
        random_state.choice(n_observed, size=n_holdout, replace=False))
    held_out_rows = rows[chosen]
    held_out_columns = columns[chosen]

    train_mask = observed_mask.copy()
    train_mask[held_out_rows, held_out_columns] = False

    empty_rows, empty_columns = empty_rows_and_columns(train_mask)
    if len(empty_rows) > 0 or len(empty_columns) > 0:
        message = (
            "Holding out %d entries leaves %d rows and %d columns "
            "without training data (rows=%s, columns=%s)" % (
                n_holdout,
                len(empty_rows),
                len(empty_columns),
                list(empty_rows),
                list(empty_columns)))
        if strict:
            raise InsufficientDataError(message)
        logging.warning(message)

    held_out = HeldOutEntries(
        rows=held_out_rows,
        columns=held_out_columns,
        values=X[held_out_rows, held_out_columns].copy())
    return train_mask, held_out
