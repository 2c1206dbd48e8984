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

from .soft_impute import SoftImpute


def finalize(
        X,
        observed_mask,
        rank,
        max_iters=500,
        convergence_threshold=1e-5,
        shrinkage_value=0.0,
        verbose=False,
        return_fit=False):
    """
    Refit SoftImpute on every observed entry with the number of components
    capped at rank. Shrinkage is negligible here, the rank cap is what
    keeps the fit low-rank.

    Observed entries of the completed matrix are exactly those of X.
    """
    if rank < 0:
        raise ValueError("Expected non-negative rank, got %d" % rank)
    solver = SoftImpute(
        shrinkage_value=shrinkage_value,
        convergence_threshold=convergence_threshold,
        max_iters=max_iters,
        max_rank=int(rank),
        verbose=verbose)
    X, observed_mask = solver.prepare_input_data(X, observed_mask)
    fit = solver.solve(X, observed_mask)
    X_completed = solver.project_result(X, observed_mask, fit)
    if return_fit:
        return X_completed, fit
    return X_completed
