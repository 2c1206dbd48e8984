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

import warnings
from collections import namedtuple

import numpy as np
from joblib import Parallel, delayed

from .common import RANK_EPSILON, effective_rank
from .errors import InsufficientDataError, NonConvergenceWarning
from .soft_impute import SoftImpute

PathPoint = namedtuple(
    "PathPoint",
    ["shrinkage_value", "rmse", "rank", "n_iters", "converged"])

PathSelection = namedtuple(
    "PathSelection",
    ["best_lambda", "best_rank", "best_rmse", "curve"])


def max_shrinkage_value(X, train_mask, max_rank=None):
    """
    Smallest shrinkage value which sets every singular value of the
    zero-filled training matrix to zero. It's the largest singular value
    returned by a single unshrunk SoftImpute iteration.
    """
    solver = SoftImpute(
        shrinkage_value=0.0,
        max_iters=1,
        max_rank=max_rank,
        verbose=False)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", NonConvergenceWarning)
        fit = solver.solve(X, train_mask)
    if len(fit.singular_values) == 0:
        return 0.0
    return float(fit.singular_values[0])


def lambda_grid(lambda_max, n_lambdas=12, lambda_min=1e-2):
    """
    Descending geometric sequence of shrinkage values from lambda_max
    down to lambda_min.
    """
    if n_lambdas < 1:
        raise ValueError("Expected at least one lambda, got %d" % n_lambdas)
    if lambda_min <= 0:
        raise ValueError("lambda_min must be positive, got %s" % lambda_min)
    if lambda_max <= lambda_min:
        raise ValueError(
            "lambda_max=%s must be larger than lambda_min=%s" % (
                lambda_max, lambda_min))
    if n_lambdas == 1:
        return np.array([float(lambda_max)])
    return np.geomspace(lambda_max, lambda_min, num=n_lambdas)


def evaluate_shrinkage_value(
        X,
        train_mask,
        held_out,
        shrinkage_value,
        max_iters=1000,
        convergence_threshold=1e-5,
        max_rank=None,
        rank_epsilon=RANK_EPSILON,
        verbose=False):
    """
    Fit SoftImpute on the training entries with one shrinkage value and
    score its reconstruction on the held-out entries.
    """
    solver = SoftImpute(
        shrinkage_value=shrinkage_value,
        convergence_threshold=convergence_threshold,
        max_iters=max_iters,
        max_rank=max_rank,
        verbose=verbose)
    fit = solver.solve(X, train_mask)
    X_reconstruction = fit.reconstruction()
    predicted = X_reconstruction[held_out.rows, held_out.columns]
    rmse = np.sqrt(np.mean((held_out.values - predicted) ** 2))
    return PathPoint(
        shrinkage_value=float(shrinkage_value),
        rmse=float(rmse),
        rank=effective_rank(fit.singular_values, rank_epsilon),
        n_iters=fit.n_iters,
        converged=fit.converged)


def best_path_point(curve):
    """
    Point with the smallest held-out RMSE, ties go to the larger shrinkage
    value since it gives the simpler model.
    """
    if len(curve) == 0:
        raise ValueError("Regularization path is empty")
    return min(curve, key=lambda p: (p.rmse, -p.shrinkage_value))


def select_rank(
        X,
        train_mask,
        held_out,
        lambdas,
        max_iters=1000,
        convergence_threshold=1e-5,
        max_rank=None,
        rank_epsilon=RANK_EPSILON,
        n_jobs=1,
        verbose=False):
    """
    Sweep SoftImpute over a grid of shrinkage values and pick the one
    with the lowest error on the held-out entries.

    Parameters
    ----------
    X : np.array
        Standardized data matrix

    train_mask : np.array
        Boolean array of entries the solver may fit, the held-out entries
        must be False here

    held_out : HeldOutEntries
        Coordinates and true values used to score each fit

    lambdas : sequence of float
        Shrinkage values to try, usually from lambda_grid

    n_jobs : int
        Number of joblib workers, trials share nothing but read-only inputs

    Returns a PathSelection with the best lambda, its effective rank and
    held-out RMSE, plus the whole curve in the order of lambdas.
    """
    train_mask = np.asarray(train_mask, dtype=bool)
    if len(held_out.values) == 0:
        raise InsufficientDataError("No held-out entries to score against")
    if train_mask[held_out.rows, held_out.columns].any():
        raise ValueError("Held-out entries overlap the training mask")

    curve = Parallel(n_jobs=n_jobs)(
        delayed(evaluate_shrinkage_value)(
            X,
            train_mask,
            held_out,
            shrinkage_value,
            max_iters=max_iters,
            convergence_threshold=convergence_threshold,
            max_rank=max_rank,
            rank_epsilon=rank_epsilon,
            verbose=verbose)
        for shrinkage_value in lambdas)

    if verbose:
        for point in curve:
            print("[RegularizationPath] lambda=%f rmse=%0.6f rank=%d%s" % (
                point.shrinkage_value,
                point.rmse,
                point.rank,
                "" if point.converged else " (not converged)"))

    best = best_path_point(curve)
    return PathSelection(
        best_lambda=best.shrinkage_value,
        best_rank=best.rank,
        best_rmse=best.rmse,
        curve=list(curve))
