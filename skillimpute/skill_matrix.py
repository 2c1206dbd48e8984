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


class SkillMatrix(namedtuple(
        "SkillMatrix",
        ["values", "observed_mask", "entity_ids", "variable_ids"])):
    """
    Entity x variable matrix of observations along with the boolean mask
    of which entries were observed and the identifiers of its rows and
    columns.
    """
    __slots__ = ()

    @property
    def shape(self):
        return self.values.shape

    def to_frame(self, values=None, entity_column="entity_id"):
        """
        Table with one row per entity, its id in the first column followed
        by one column per variable.
        """
        if values is None:
            values = self.values
        values = np.asarray(values)
        if values.shape != self.shape:
            raise ValueError("Expected values of shape %s, got %s" % (
                self.shape, values.shape))
        frame = pd.DataFrame(
            values,
            index=pd.Index(self.entity_ids, name=entity_column),
            columns=pd.Index(self.variable_ids))
        return frame.reset_index()


def from_wide_frame(frame):
    """
    Build a SkillMatrix from an entity x variable DataFrame where missing
    observations are NaN.
    """
    values = frame.to_numpy(dtype=float, na_value=np.nan)
    return SkillMatrix(
        values=values,
        observed_mask=~np.isnan(values),
        entity_ids=list(frame.index),
        variable_ids=list(frame.columns))


def pivot_observations(
        records,
        entity_column,
        variable_column,
        value_column,
        aggfunc="mean"):
    """
    Turn a long table of (entity, variable, value) records into a
    SkillMatrix. Repeated records for the same entity and variable are
    combined with aggfunc.
    """
    missing_columns = [
        c for c in (entity_column, variable_column, value_column)
        if c not in records.columns]
    if missing_columns:
        raise KeyError("Missing columns in records: %s" % (missing_columns,))
    if not pd.api.types.is_numeric_dtype(records[value_column]):
        raise ValueError("Expected numeric values in column '%s', got %s" % (
            value_column, records[value_column].dtype))

    records = records.dropna(subset=[entity_column, variable_column, value_column])
    wide = records.pivot_table(
        index=entity_column,
        columns=variable_column,
        values=value_column,
        aggfunc=aggfunc)
    wide.columns.name = None
    return from_wide_frame(wide)


def variable_correlations(matrix, min_periods=2):
    """
    Pearson correlation between every pair of variables, each computed
    over the entities which observed both of them. Pairs with fewer than
    min_periods shared entities are NaN.
    """
    frame = pd.DataFrame(
        np.where(matrix.observed_mask, matrix.values, np.nan),
        columns=pd.Index(matrix.variable_ids))
    return frame.corr(method="pearson", min_periods=min_periods)


def event_strength(matrix, min_periods=2, variable_column="variable_id"):
    """
    Mean absolute correlation of each variable with all variables (itself
    included), strongest first. Undefined correlations are skipped.
    """
    correlations = variable_correlations(matrix, min_periods=min_periods)
    strength = correlations.abs().mean(axis=1, skipna=True)
    table = pd.DataFrame({
        variable_column: list(strength.index),
        "strength": strength.to_numpy(),
    })
    return table.sort_values(
        "strength",
        ascending=False,
        kind="mergesort").reset_index(drop=True)
