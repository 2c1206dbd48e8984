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
import pandas as pd

from .common import RANK_EPSILON, empty_rows_and_columns
from .completion import finalize
from .errors import InsufficientDataError
from .holdout import split_observed
from .regularization_path import lambda_grid, max_shrinkage_value, select_rank
from .scaler import ColumnScaler
from .skill_matrix import SkillMatrix, from_wide_frame, pivot_observations

OUTPUT_UNITS = ("standardized", "original")


class CompletionReport(namedtuple(
        "CompletionReport",
        [
            "best_lambda",
            "best_rank",
            "best_rmse",
            "lambda_max",
            "path",
            "n_unconverged",
            "final_converged",
            "output_units",
            "column_means",
            "column_stds",
            "column_signs",
            "n_observed",
            "n_held_out",
        ])):
    """
    Diagnostics of a completion: the chosen shrinkage value, the effective
    rank it produced, its held-out RMSE and the full regularization path.

    A standardized value z maps back to original units as
    z * column_stds * column_signs + column_means.
    """
    __slots__ = ()

    def path_frame(self):
        return pd.DataFrame(
            [point._asdict() for point in self.path],
            columns=["shrinkage_value", "rmse", "rank", "n_iters", "converged"])


CompletionResult = namedtuple("CompletionResult", ["completed", "report"])


class SkillCompleter(object):
    """
    Standardize a partially observed entity x variable matrix, choose a
    rank by cross-validating SoftImpute over a regularization path and
    complete the matrix with a rank-capped refit.
    """

    def __init__(
            self,
            holdout_fraction=0.2,
            n_lambdas=12,
            lambda_min=1e-2,
            max_iters=1000,
            final_max_iters=500,
            convergence_threshold=1e-5,
            max_rank=None,
            rank_epsilon=RANK_EPSILON,
            output_units="standardized",
            lower_is_better=None,
            strict_holdout=False,
            entity_column="entity_id",
            random_state=12345,
            n_jobs=1,
            verbose=False):
        """
        Parameters
        ----------
        holdout_fraction : float
            Fraction of observed entries hidden to score each shrinkage value

        n_lambdas : int
            Number of shrinkage values on the regularization path

        lambda_min : float
            Smallest shrinkage value on the path

        max_iters : int
            SoftImpute iterations for each point of the path

        final_max_iters : int
            SoftImpute iterations for the rank-capped refit

        convergence_threshold : float
            Relative change between iterations below which SoftImpute stops

        max_rank : int, optional
            Truncate the SVD of every path fit to this many components

        rank_epsilon : float
            Singular values at or below this don't count toward the rank

        output_units : str
            "standardized" to return z-scores, "original" to map the
            completed matrix back to the units of the input

        lower_is_better : sequence of bool or of variable ids, optional
            Either one flag per variable or the ids of the variables where
            a smaller result is better. Their z-scores are negated so that
            larger is always better

        strict_holdout : bool
            Fail instead of warning when the holdout empties a row or column

        entity_column : str
            Name of the id column of the completed table

        random_state : int or np.random.RandomState
            Seed of the holdout draw

        n_jobs : int
            Number of joblib workers for the regularization path

        verbose : bool
            Print debugging info
        """
        self.holdout_fraction = holdout_fraction
        self.n_lambdas = n_lambdas
        self.lambda_min = lambda_min
        self.max_iters = max_iters
        self.final_max_iters = final_max_iters
        self.convergence_threshold = convergence_threshold
        self.max_rank = max_rank
        self.rank_epsilon = rank_epsilon
        self.output_units = output_units
        self.lower_is_better = lower_is_better
        self.strict_holdout = strict_holdout
        self.entity_column = entity_column
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.verbose = verbose

    def _check_parameters(self):
        if self.output_units not in OUTPUT_UNITS:
            raise ValueError("Invalid output units: '%s'" % (
                self.output_units,))
        if not 0 <= self.holdout_fraction < 1:
            raise ValueError("Holdout fraction must be in [0, 1), got %s" % (
                self.holdout_fraction,))

    def _skill_matrix(
            self,
            data,
            entity_column=None,
            variable_column=None,
            value_column=None):
        if isinstance(data, SkillMatrix):
            return data
        if isinstance(data, pd.DataFrame):
            if value_column is not None:
                return pivot_observations(
                    data,
                    entity_column=entity_column,
                    variable_column=variable_column,
                    value_column=value_column)
            return from_wide_frame(data)
        raise TypeError(
            "Expected SkillMatrix or DataFrame but got %s" % (type(data),))

    def _lower_is_better_flags(self, variable_ids):
        flags = self.lower_is_better
        if flags is None:
            return None
        if isinstance(flags, np.ndarray) and flags.dtype == bool:
            return flags
        flags = list(flags)
        if all(isinstance(f, (bool, np.bool_)) for f in flags):
            return flags
        # anything else is a collection of variable ids
        unknown = [v for v in flags if v not in variable_ids]
        if unknown:
            raise ValueError("Unknown variables in lower_is_better: %s" % (
                unknown,))
        return [v in flags for v in variable_ids]

    def fit_complete(
            self,
            data,
            entity_column=None,
            variable_column=None,
            value_column=None):
        """
        Parameters
        ----------
        data : SkillMatrix or pd.DataFrame
            Either a SkillMatrix, a long table of records (pass the names
            of its entity, variable and value columns) or a wide entity x
            variable table with NaN for missing entries

        Returns a CompletionResult holding the completed table and a
        CompletionReport.
        """
        self._check_parameters()
        matrix = self._skill_matrix(
            data,
            entity_column=entity_column,
            variable_column=variable_column,
            value_column=value_column)
        observed_mask = matrix.observed_mask
        empty_rows, _ = empty_rows_and_columns(observed_mask)
        if len(empty_rows) > 0:
            raise InsufficientDataError(
                "%d entities have no observed values: %s" % (
                    len(empty_rows),
                    [matrix.entity_ids[i] for i in empty_rows]))

        scaler = ColumnScaler(
            lower_is_better=self._lower_is_better_flags(matrix.variable_ids),
            verbose=self.verbose)
        X = scaler.fit_transform(matrix.values, observed_mask)

        train_mask, held_out = split_observed(
            X,
            observed_mask,
            holdout_fraction=self.holdout_fraction,
            random_state=self.random_state,
            strict=self.strict_holdout)

        lambda_max = max_shrinkage_value(
            X, train_mask, max_rank=self.max_rank)
        lambdas = lambda_grid(
            lambda_max,
            n_lambdas=self.n_lambdas,
            lambda_min=self.lambda_min)
        selection = select_rank(
            X,
            train_mask,
            held_out,
            lambdas,
            max_iters=self.max_iters,
            convergence_threshold=self.convergence_threshold,
            max_rank=self.max_rank,
            rank_epsilon=self.rank_epsilon,
            n_jobs=self.n_jobs,
            verbose=self.verbose)
        if self.verbose:
            print("[SkillCompleter] Selected lambda=%f rank=%d rmse=%0.6f" % (
                selection.best_lambda,
                selection.best_rank,
                selection.best_rmse))

        X_completed, fit = finalize(
            X,
            observed_mask,
            selection.best_rank,
            max_iters=self.final_max_iters,
            convergence_threshold=self.convergence_threshold,
            verbose=self.verbose,
            return_fit=True)

        if self.output_units == "original":
            X_completed = scaler.inverse_transform(X_completed)
            X_completed[observed_mask] = matrix.values[observed_mask]

        report = CompletionReport(
            best_lambda=selection.best_lambda,
            best_rank=selection.best_rank,
            best_rmse=selection.best_rmse,
            lambda_max=lambda_max,
            path=selection.curve,
            n_unconverged=sum(1 for p in selection.curve if not p.converged),
            final_converged=fit.converged,
            output_units=self.output_units,
            column_means=scaler.column_means,
            column_stds=scaler.column_stds,
            column_signs=scaler.column_signs,
            n_observed=int(observed_mask.sum()),
            n_held_out=len(held_out.values))
        completed = matrix.to_frame(
            X_completed, entity_column=self.entity_column)
        return CompletionResult(completed=completed, report=report)
