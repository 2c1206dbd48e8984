import numpy as np
import pandas as pd
import pytest

from low_rank_data import create_rank_k_dataset
from skillimpute import (
    DegenerateColumnError,
    InsufficientDataError,
    NonConvergenceWarning,
    SkillCompleter,
    SkillMatrix,
    event_strength,
    from_wide_frame,
    pivot_observations,
    standardize,
    variable_correlations,
)

EVENTS = ["222", "333", "333oh", "444", "555", "pyram"]


def make_records(n_entities=40, fraction_missing=0.3, random_seed=0):
    scores, _, missing_mask = create_rank_k_dataset(
        n_rows=n_entities,
        n_cols=len(EVENTS),
        k=2,
        fraction_missing=fraction_missing,
        noise_std=0.1,
        random_seed=random_seed)
    # keep at least one observation per entity
    missing_mask[:, 1] = False
    records = [
        {"person": "p%03d" % i, "event": EVENTS[j], "result": 50 + 5 * scores[i, j]}
        for i in range(n_entities)
        for j in range(len(EVENTS))
        if not missing_mask[i, j]
    ]
    return pd.DataFrame(records)


def test_pivot_observations_averages_repeated_records():
    records = pd.DataFrame({
        "person": ["a", "a", "a", "b", "c"],
        "event": ["333", "333", "444", "333", "444"],
        "result": [10.0, 12.0, 30.0, 8.0, 40.0],
    })
    matrix = pivot_observations(records, "person", "event", "result")
    assert matrix.entity_ids == ["a", "b", "c"]
    assert matrix.variable_ids == ["333", "444"]
    assert matrix.values[0, 0] == 11.0
    assert np.array_equal(
        matrix.observed_mask,
        np.array([[True, True], [True, False], [False, True]]))


def test_pivot_observations_checks_columns():
    records = pd.DataFrame({"person": ["a"], "event": ["333"], "time": [1.0]})
    with pytest.raises(KeyError):
        pivot_observations(records, "person", "event", "result")
    records["time"] = ["fast"]
    with pytest.raises(ValueError):
        pivot_observations(records, "person", "event", "time")


def test_skill_matrix_to_frame():
    frame = pd.DataFrame(
        {"333": [1.0, np.nan], "444": [2.0, 3.0]},
        index=["a", "b"])
    matrix = from_wide_frame(frame)
    assert isinstance(matrix, SkillMatrix)
    table = matrix.to_frame(np.zeros((2, 2)), entity_column="person")
    assert list(table.columns) == ["person", "333", "444"]
    assert list(table["person"]) == ["a", "b"]


def test_fit_complete_from_records():
    records = make_records()
    result = SkillCompleter().fit_complete(
        records,
        entity_column="person",
        variable_column="event",
        value_column="result")
    completed = result.completed
    report = result.report
    assert completed.shape == (40, len(EVENTS) + 1)
    assert completed.columns[0] == "entity_id"
    assert list(completed.columns[1:]) == sorted(EVENTS)
    assert not completed.isnull().any().any()

    assert report.output_units == "standardized"
    assert len(report.path) == 12
    assert report.path[0].rank == 0
    assert report.best_rank >= 1
    assert report.best_lambda in [p.shrinkage_value for p in report.path]
    assert report.n_observed == len(records)
    assert report.n_held_out == int(round(0.2 * len(records)))
    assert report.path_frame().shape == (12, 5)

    # observed entries are the standardized observations
    matrix = pivot_observations(records, "person", "event", "result")
    X, _, _ = standardize(matrix.values, matrix.observed_mask)
    values = completed[matrix.variable_ids].to_numpy()
    assert np.array_equal(
        values[matrix.observed_mask], X[matrix.observed_mask])


def test_fit_complete_is_reproducible():
    records = make_records()
    kwargs = dict(
        entity_column="person", variable_column="event", value_column="result")
    first = SkillCompleter(random_state=7).fit_complete(records, **kwargs)
    second = SkillCompleter(random_state=7).fit_complete(records, **kwargs)
    assert first.report.best_lambda == second.report.best_lambda
    assert first.report.best_rmse == second.report.best_rmse
    pd.testing.assert_frame_equal(first.completed, second.completed)


def test_fit_complete_in_original_units():
    records = make_records()
    matrix = pivot_observations(records, "person", "event", "result")
    result = SkillCompleter(output_units="original").fit_complete(matrix)
    values = result.completed[matrix.variable_ids].to_numpy()
    assert np.array_equal(
        values[matrix.observed_mask],
        matrix.values[matrix.observed_mask])
    # imputed raw results should be on the scale of the observed ones
    missing = ~matrix.observed_mask
    assert values[missing].min() > 0
    assert result.report.output_units == "original"


def test_lower_is_better_flips_standardized_output():
    records = make_records()
    matrix = pivot_observations(records, "person", "event", "result")
    plain = SkillCompleter().fit_complete(matrix)
    flipped = SkillCompleter(lower_is_better={"333"}).fit_complete(matrix)
    observed = matrix.observed_mask[:, matrix.variable_ids.index("333")]
    assert np.allclose(
        flipped.completed["333"].to_numpy()[observed],
        -plain.completed["333"].to_numpy()[observed])


def test_degenerate_column_raises():
    frame = pd.DataFrame({
        "333": [10.0, 11.0, 12.0, 13.0],
        "444": [5.0, 5.0, np.nan, 5.0],
    })
    with pytest.raises(DegenerateColumnError):
        SkillCompleter().fit_complete(frame)


def test_entity_without_observations_raises():
    frame = pd.DataFrame({
        "333": [10.0, 11.0, np.nan, 13.0],
        "444": [5.0, 6.0, np.nan, 8.0],
    })
    with pytest.raises(InsufficientDataError):
        SkillCompleter().fit_complete(frame)


def test_zero_holdout_fraction_raises():
    frame = pd.DataFrame({
        "222": [1.0, 2.0, np.nan, 4.0],
        "333": [2.0, np.nan, 5.0, 3.0],
        "444": [7.0, 1.0, 2.0, 6.0],
    })
    with pytest.raises(InsufficientDataError):
        SkillCompleter(holdout_fraction=0.0).fit_complete(frame)


def test_invalid_output_units():
    with pytest.raises(ValueError):
        SkillCompleter(output_units="seconds").fit_complete(
            pd.DataFrame({"333": [1.0, 2.0]}))


def test_event_strength_ranks_correlated_events_first():
    frame = pd.DataFrame({
        "333": [1.0, 2.0, 3.0, 4.0, 5.0],
        "444": [2.0, 4.0, np.nan, 8.0, 10.0],
        "clock": [1.0, -1.0, 1.0, -1.0, 1.0],
    })
    matrix = from_wide_frame(frame)
    correlations = variable_correlations(matrix)
    assert np.isclose(correlations.loc["333", "444"], 1.0)
    assert np.isclose(correlations.loc["444", "clock"], 0.0)

    strength = event_strength(matrix)
    assert list(strength.columns) == ["variable_id", "strength"]
    assert set(strength["variable_id"][:2]) == {"333", "444"}
    assert strength["variable_id"].iloc[2] == "clock"
    assert np.allclose(strength["strength"], [2.0 / 3, 2.0 / 3, 1.0 / 3])


def test_correlations_need_enough_shared_entities():
    frame = pd.DataFrame({
        "333": [1.0, 2.0, 3.0, np.nan],
        "444": [np.nan, np.nan, 5.0, 6.0],
    })
    correlations = variable_correlations(from_wide_frame(frame))
    assert np.isnan(correlations.loc["333", "444"])
    assert np.isclose(correlations.loc["333", "333"], 1.0)


def test_report_counts_unconverged_fits():
    matrix = pivot_observations(make_records(), "person", "event", "result")
    with pytest.warns(NonConvergenceWarning):
        report = SkillCompleter(
            max_iters=2,
            final_max_iters=1,
            convergence_threshold=1e-12).fit_complete(matrix).report
    assert report.best_rank >= 1
    assert report.n_unconverged > 0
    assert report.n_unconverged == sum(
        1 for p in report.path if not p.converged)
    assert not report.final_converged


def test_report_column_statistics_undo_standardization():
    matrix = pivot_observations(make_records(), "person", "event", "result")
    result = SkillCompleter(lower_is_better=["333"]).fit_complete(matrix)
    report = result.report
    assert report.column_signs[matrix.variable_ids.index("333")] == -1
    assert (np.delete(
        report.column_signs, matrix.variable_ids.index("333")) == 1).all()
    z = result.completed[matrix.variable_ids].to_numpy()
    raw = z * report.column_stds * report.column_signs + report.column_means
    assert np.allclose(
        raw[matrix.observed_mask], matrix.values[matrix.observed_mask])


def test_lower_is_better_accepts_lists_of_event_ids():
    matrix = pivot_observations(make_records(), "person", "event", "result")
    by_set = SkillCompleter(lower_is_better={"333", "444"}).fit_complete(matrix)
    by_list = SkillCompleter(lower_is_better=["333", "444"]).fit_complete(matrix)
    flags = [v in ("333", "444") for v in matrix.variable_ids]
    by_flags = SkillCompleter(lower_is_better=flags).fit_complete(matrix)
    pd.testing.assert_frame_equal(by_set.completed, by_list.completed)
    pd.testing.assert_frame_equal(by_set.completed, by_flags.completed)


def test_lower_is_better_rejects_unknown_events():
    matrix = pivot_observations(make_records(), "person", "event", "result")
    with pytest.raises(ValueError):
        SkillCompleter(lower_is_better=["333", "666"]).fit_complete(matrix)
