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

# singular values at or below this are treated as shrunk to zero
RANK_EPSILON = 1e-7


def masked_mae(X_true, X_pred, mask):
    masked_diff = X_true[mask] - X_pred[mask]
    return np.mean(np.abs(masked_diff))


def effective_rank(singular_values, epsilon=RANK_EPSILON):
    """
    Number of singular values strictly greater than epsilon.
    """
    singular_values = np.asarray(singular_values)
    return int((singular_values > epsilon).sum())


def empty_rows_and_columns(observed_mask):
    """
    Returns the indices of rows and of columns which don't have
    a single observed entry.
    """
    observed_mask = np.asarray(observed_mask, dtype=bool)
    empty_rows = np.where(~observed_mask.any(axis=1))[0]
    empty_columns = np.where(~observed_mask.any(axis=0))[0]
    return empty_rows, empty_columns
