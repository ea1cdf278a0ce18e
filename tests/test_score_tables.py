import warnings

import numpy as np
import pandas as pd
import pytest

from treeclimb.errors import ConfigurationError, InvalidNode
from treeclimb.hierarchy_analysis.score_tables import (
    ColumnRoles,
    ScoreData,
    build_score_data,
    row_lookup,
    validate_score_data,
)


def test_single_and_multiple_share_one_shape(tiny_scores):
    single = build_score_data(tiny_scores, "single")
    assert single.kind == "single"
    assert len(single) == 1
    assert single.feature_ids == [None]

    multiple = build_score_data({"g1": tiny_scores, "g2": tiny_scores}, "multiple")
    assert multiple.kind == "multiple"
    assert multiple.feature_ids == ["g1", "g2"]
    assert all(t is tiny_scores for t in multiple.tables)


def test_build_score_data_checks_shape(tiny_scores):
    with pytest.raises(ConfigurationError):
        build_score_data({"g1": tiny_scores}, "single")
    with pytest.raises(ConfigurationError):
        build_score_data(tiny_scores, "multiple")
    with pytest.raises(ConfigurationError):
        build_score_data({"g1": [1, 2]}, "multiple")
    with pytest.raises(ConfigurationError, match="kind"):
        build_score_data(tiny_scores, "DA")


def test_missing_role_column_is_reported(tiny_tree, tiny_scores):
    roles = ColumnRoles(sign="logFC")
    with pytest.raises(ConfigurationError, match="logFC"):
        validate_score_data(ScoreData.single(tiny_scores), roles, tiny_tree)


def test_p_values_must_be_probabilities(tiny_tree, tiny_scores):
    scores = tiny_scores.copy()
    scores.loc[0, "pvalue"] = 1.5
    with pytest.raises(ConfigurationError, match=r"\[0, 1\]"):
        validate_score_data(ScoreData.single(scores), ColumnRoles(), tiny_tree)

    scores.loc[0, "pvalue"] = np.nan
    validate_score_data(ScoreData.single(scores), ColumnRoles(), tiny_tree)


def test_non_numeric_p_value_is_not_read_as_untested(tiny_tree, tiny_scores):
    scores = tiny_scores.copy()
    scores["pvalue"] = scores["pvalue"].astype(object)
    scores.loc[scores["node"] == 13, "pvalue"] = "n/a"
    with pytest.raises(ConfigurationError, match="Non-numeric p-values.*n/a"):
        validate_score_data(ScoreData.single(scores), ColumnRoles(), tiny_tree)

    scores.loc[scores["node"] == 13, "pvalue"] = None
    validate_score_data(ScoreData.single(scores), ColumnRoles(), tiny_tree)


def test_tested_rows_need_a_sign(tiny_tree, tiny_scores):
    scores = tiny_scores.copy()
    scores["sign"] = scores["sign"].astype(float)
    scores.loc[scores["node"] == 18, "sign"] = np.nan
    with pytest.raises(ConfigurationError, match=r"\[18\].*'sign'"):
        validate_score_data(ScoreData.single(scores), ColumnRoles(), tiny_tree)

    # an untested row may leave the sign empty
    scores.loc[scores["node"] == 18, "pvalue"] = np.nan
    validate_score_data(ScoreData.single(scores), ColumnRoles(), tiny_tree)


def test_non_numeric_sign_is_rejected(tiny_tree, tiny_scores):
    scores = tiny_scores.copy()
    scores["sign"] = scores["sign"].astype(object)
    scores.loc[scores["node"] == 4, "sign"] = "down"
    with pytest.raises(ConfigurationError, match="Non-numeric signs"):
        validate_score_data(ScoreData.single(scores), ColumnRoles(), tiny_tree)


def test_unknown_node_in_scores(tiny_tree, tiny_scores):
    scores = pd.concat(
        [tiny_scores, pd.DataFrame({"node": [42], "pvalue": [0.1], "sign": [1]})],
        ignore_index=True,
    )
    with pytest.raises(InvalidNode):
        validate_score_data(ScoreData.single(scores), ColumnRoles(), tiny_tree)


def test_multiple_without_feature_column_warns(tiny_tree, tiny_scores):
    data = ScoreData.multiple({"g1": tiny_scores})
    with pytest.warns(UserWarning, match="feature_column"):
        validate_score_data(data, ColumnRoles(), tiny_tree)

    with_feature = {"g1": tiny_scores.assign(gene="g1")}
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        validate_score_data(
            ScoreData.multiple(with_feature), ColumnRoles(feature="gene"), tiny_tree
        )


def test_row_lookup_keeps_first_row():
    table = pd.DataFrame({"node": [5, 3, 5]})
    assert row_lookup(table, "node") == {5: 0, 3: 1}


def test_column_roles_as_dict():
    roles = ColumnRoles(node="id", p_value="p", sign="fc", feature="gene")
    assert roles.as_dict() == {
        "node_column": "id",
        "p_column": "p",
        "sign_column": "fc",
        "feature_column": "gene",
    }
    assert roles.required() == ["id", "p", "fc", "gene"]
