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

import numpy as np
from sklearn.utils.extmath import randomized_svd

from .common import masked_mae
from .errors import NonConvergenceWarning, NumericalInstabilityError
from .solver import LowRankFit, Solver


class SoftImpute(Solver):
    """
    Implementation of the SoftImpute algorithm from:
    "Spectral Regularization Algorithms for Learning Large Incomplete Matrices"
    by Mazumder, Hastie, and Tibshirani.

    Observed entries are never replaced by the model's reconstruction, only
    the unobserved ones are re-imputed on each iteration.
    """
    def __init__(
            self,
            shrinkage_value=None,
            convergence_threshold=0.001,
            max_iters=100,
            max_rank=None,
            n_power_iterations=5,
            n_oversamples=10,
            init_fill_method="zero",
            random_state=0,
            verbose=True):
        """
        Parameters
        ----------
        shrinkage_value : float
            Value by which we shrink singular values on each iteration. If
            omitted then the default value will be the maximum singular
            value of the initialized matrix (zeros for missing values) divided
            by 50.

        convergence_threshold : float
            Minimum ratio difference between iterations (as a fraction of
            the Frobenius norm of the previous solution) before stopping.

        max_iters : int
            Maximum number of SVD iterations

        max_rank : int, optional
            Perform a truncated SVD on each iteration with this value as its
            rank.

        n_power_iterations : int
            Number of power iterations to perform with randomized SVD

        n_oversamples : int
            Extra components sketched by the randomized SVD beyond max_rank

        init_fill_method : str
            How to initialize missing values of data matrix, default is
            to fill them with zeros.

        random_state : int
            Seed of the randomized SVD sketch, fixed so that repeated solves
            of the same problem agree.

        verbose : bool
            Print debugging info
        """
        Solver.__init__(self, fill_method=init_fill_method)
        self.shrinkage_value = shrinkage_value
        self.convergence_threshold = convergence_threshold
        self.max_iters = max_iters
        self.max_rank = max_rank
        self.n_power_iterations = n_power_iterations
        self.n_oversamples = n_oversamples
        self.random_state = random_state
        self.verbose = verbose

    def _converged(self, X_old, X_new, missing_mask):
        # observed entries are identical in both, so only the
        # imputed entries contribute to the difference
        difference = X_old[missing_mask] - X_new[missing_mask]
        ssd = np.sum(difference ** 2)
        if ssd == 0:
            return True
        old_norm = np.sqrt((X_old ** 2).sum())
        if old_norm == 0:
            return False
        return (np.sqrt(ssd) / old_norm) < self.convergence_threshold

    def _svd(self, X, max_rank=None):
        if not np.isfinite(X).all():
            raise NumericalInstabilityError(
                "Matrix passed to SVD contains NaN or Inf values")
        try:
            if max_rank is not None and max_rank < min(X.shape):
                # if we have a max rank then perform the faster randomized SVD
                (U, s, V) = randomized_svd(
                    X,
                    max_rank,
                    n_oversamples=self.n_oversamples,
                    n_iter=self.n_power_iterations,
                    random_state=self.random_state)
            else:
                (U, s, V) = np.linalg.svd(
                    X,
                    full_matrices=False,
                    compute_uv=True)
        except np.linalg.LinAlgError as e:
            raise NumericalInstabilityError("SVD did not converge: %s" % (e,))
        if max_rank is not None:
            U, s, V = U[:, :max_rank], s[:max_rank], V[:max_rank, :]
        return U, s, V

    def _svd_step(self, X, shrinkage_value, max_rank=None):
        """
        Returns the soft-thresholded low-rank factors of X, keeping only
        the components which survive the shrinkage.
        """
        if max_rank == 0:
            return LowRankFit.empty(X.shape)
        (U, s, V) = self._svd(X, max_rank=max_rank)
        s_thresh = np.maximum(s - shrinkage_value, 0)
        rank = (s_thresh > 0).sum()
        fit = LowRankFit(
            U=U[:, :rank],
            singular_values=s_thresh[:rank],
            V=V[:rank, :],
            n_iters=0,
            converged=False)
        return fit

    def _max_singular_value(self, X_filled):
        if self.max_rank == 0:
            return 0.0
        _, s, _ = self._svd(X_filled, max_rank=self.max_rank)
        return s[0] if len(s) else 0.0

    def solve(self, X, observed_mask):
        X, observed_mask = self.prepare_input_data(X, observed_mask)
        if not np.isfinite(X[observed_mask]).all():
            raise NumericalInstabilityError(
                "Observed entries of input matrix contain NaN or Inf values")
        missing_mask = ~observed_mask
        X_filled = self.fill(X, observed_mask, inplace=False)

        if self.shrinkage_value is not None:
            shrinkage_value = self.shrinkage_value
        else:
            # keep only components with at least 1/50th the max singular value
            max_singular_value = self._max_singular_value(X_filled)
            if self.verbose:
                print("[SoftImpute] Max Singular Value of X_init = %f" % (
                    max_singular_value))
            shrinkage_value = max_singular_value / 50.0
        if shrinkage_value < 0:
            raise ValueError(
                "Shrinkage value must be non-negative, got %f" % (
                    shrinkage_value,))

        fit = LowRankFit.empty(X.shape)
        converged = False
        n_iters = 0
        for i in range(self.max_iters):
            n_iters = i + 1
            fit = self._svd_step(
                X_filled,
                shrinkage_value,
                max_rank=self.max_rank)
            X_reconstruction = fit.reconstruction()
            if not np.isfinite(X_reconstruction).all():
                raise NumericalInstabilityError(
                    "Reconstruction at iteration %d contains NaN or Inf "
                    "values" % (n_iters,))

            # print error on observed data
            if self.verbose:
                mae = masked_mae(
                    X_true=X_filled,
                    X_pred=X_reconstruction,
                    mask=observed_mask)
                print(
                    "[SoftImpute] Iter %d: observed MAE=%0.6f rank=%d" % (
                        n_iters,
                        mae,
                        fit.rank))

            converged = self._converged(
                X_old=X_filled,
                X_new=X_reconstruction,
                missing_mask=missing_mask)
            X_filled[missing_mask] = X_reconstruction[missing_mask]
            if converged:
                break
        if self.verbose:
            print("[SoftImpute] Stopped after iteration %d for lambda=%f" % (
                n_iters,
                shrinkage_value))
        if not converged:
            warnings.warn(
                "SoftImpute did not converge after %d iterations "
                "for lambda=%f" % (n_iters, shrinkage_value),
                NonConvergenceWarning)
        return fit._replace(n_iters=n_iters, converged=converged)
