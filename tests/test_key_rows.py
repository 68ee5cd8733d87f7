import pytest

from leaderboard_core import (
    ContestConfig,
    EmptyInput,
    MalformedInput,
    key_object_path,
    parse_csv,
    parse_submission,
    parse_task_key,
    task_id_from_key_path,
    validate_rows,
)


def test_header_row_is_stripped_case_insensitively():
    rows = parse_csv("Category_ID,content,overall_band_score\n1,essay,6.5")
    assert validate_rows(rows) == [["1", "essay", "6.5"]]


def test_first_row_kept_when_not_header():
    rows = parse_csv("1,essay,6.5\n2,other,7")
    assert validate_rows(rows) == [["1", "essay", "6.5"], ["2", "other", "7"]]


def test_short_row_after_header_is_malformed():
    with pytest.raises(MalformedInput) as exc:
        parse_task_key("category_id,content,overall_band_score\n1,essay")
    assert exc.value.min_columns == 3
    assert exc.value.row_index == 0
    assert "3" in str(exc.value)


def test_header_only_is_empty():
    with pytest.raises(EmptyInput):
        parse_task_key("category_id,content,overall_band_score")


def test_empty_file_is_empty():
    with pytest.raises(EmptyInput):
        parse_submission("")
    with pytest.raises(EmptyInput):
        validate_rows([])


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        parse_submission("a,b")


def test_submission_and_key_use_same_rules():
    text = 'category_id,content,overall_band_score\n1,"a, b",5\n2,c,6,extra'
    expected = [["1", "a, b", "5"], ["2", "c", "6", "extra"]]
    assert parse_submission(text) == expected
    assert parse_task_key(text) == expected


def test_custom_column_minimum_from_config():
    config = ContestConfig(min_columns=2, header_token="id")
    assert parse_submission("ID,score\n1,4", config) == [["1", "4"]]


def test_validate_rows_does_not_mutate_input():
    rows = [["category_id", "c", "s"], ["1", "x", "2"]]
    validate_rows(rows)
    assert rows[0][0] == "category_id"
    assert len(rows) == 2


def test_key_object_paths():
    assert key_object_path("T3") == "T3.csv"
    assert task_id_from_key_path("T3.csv") == "T3"
    assert task_id_from_key_path("keys/T4.csv") == "T4"
    assert task_id_from_key_path(".emptyFolderPlaceholder") is None
    assert task_id_from_key_path("") is None
    assert task_id_from_key_path(None) is None
