import pytest
from pydantic import ValidationError

from leaderboard_core import ContestConfig, default_tasks, validate_scoreboard, validate_session_user
from leaderboard_core.validation import (
    RecordSanitizer,
    ValidatedChangeEvent,
    ValidatedSubmission,
    ValidatedTask,
    validate_uploaded_key_ids,
)


def _record(**overrides):
    record = {
        "id": "u1",
        "teamName": "NLP Wizards",
        "solved": 1,
        "totalScore": 95.5,
        "rank": 4,
        "submissions": [
            {
                "taskId": "T1",
                "score": 95.5,
                "attempts": 2,
                "isBestScore": True,
                "history": [
                    {"score": 80.0, "timestamp": 1000},
                    {"score": 95.5, "timestamp": 2000},
                ],
            },
            {"taskId": "T2", "score": None, "attempts": 0, "history": []},
        ],
        "lastSolveTimestamp": 2000,
    }
    record.update(overrides)
    return record


def test_validate_scoreboard_maps_store_fields():
    [team] = validate_scoreboard([_record()])
    assert team.id == "u1"
    assert team.name == "NLP Wizards"
    assert team.total_score == 95.5
    assert team.rank == 0
    assert team.last_solve_timestamp == 2000
    sub = team.submission_for("T1")
    assert sub is not None
    assert sub.attempts == 2
    assert sub.is_best_score is False
    assert [a.score for a in sub.history] == [80.0, 95.5]
    assert team.submission_for("T9") is None


def test_numeric_team_id_is_coerced_to_string():
    [team] = validate_scoreboard([_record(id=7)])
    assert team.id == "7"


def test_scored_submission_requires_an_attempt():
    with pytest.raises(ValidationError):
        ValidatedSubmission(taskId="T1", score=10.0, attempts=0)


def test_negative_attempts_rejected():
    with pytest.raises(ValidationError):
        ValidatedSubmission(taskId="T1", score=None, attempts=-1)


def test_history_out_of_order_rejected():
    with pytest.raises(ValidationError):
        ValidatedSubmission(
            taskId="T1",
            score=5.0,
            attempts=2,
            history=[{"score": 5.0, "timestamp": 20}, {"score": 4.0, "timestamp": 10}],
        )


def test_duplicate_task_in_team_rejected():
    record = _record(
        submissions=[
            {"taskId": "T1", "score": None, "attempts": 0},
            {"taskId": "T1", "score": None, "attempts": 0},
        ]
    )
    with pytest.raises(ValueError):
        validate_scoreboard([record])


def test_duplicate_team_ids_rejected():
    with pytest.raises(ValueError):
        validate_scoreboard([_record(), _record()])


def test_snapshot_must_be_a_list():
    with pytest.raises(ValueError):
        validate_scoreboard({"teams": []})


def test_non_finite_total_rejected():
    with pytest.raises(ValueError):
        validate_scoreboard([_record(totalScore=float("nan"))])


def test_uploaded_key_ids():
    assert validate_uploaded_key_ids([{"task_id": "T1"}, {"task_id": "T3"}]) == {"T1", "T3"}
    assert validate_uploaded_key_ids([]) == set()
    with pytest.raises(ValueError):
        validate_uploaded_key_ids([{"id": 1}])


def test_change_event_normalizes_kind_and_picks_record():
    ev = ValidatedChangeEvent(table="task_keys", eventType="delete", old={"task_id": "T2"})
    assert ev.eventType == "DELETE"
    assert ev.record == {"task_id": "T2"}
    ev = ValidatedChangeEvent(table="task_keys", eventType="INSERT", new={"task_id": "T2"})
    assert ev.record == {"task_id": "T2"}
    with pytest.raises(ValidationError):
        ValidatedChangeEvent(table="submissions", eventType="TRUNCATE")


def test_session_user():
    user = validate_session_user(
        {"id": "u1", "username": "alice", "role": "contestant", "teamName": " Wizards "}
    )
    assert user.role == "contestant"
    assert user.team_name == "Wizards"
    with pytest.raises(ValueError):
        validate_session_user({"id": "u1", "username": "bob", "role": "judge"})


def test_task_name_sanitized_and_required():
    task = ValidatedTask(id="T9", name="  Essay\0 scoring ").to_task()
    assert task.name == "Essay scoring"
    assert task.key_visibility == "private"
    assert task.key_uploaded is False
    with pytest.raises(ValidationError):
        ValidatedTask(id="T9", name="   ")


def test_clean_name_strips_nuls_and_caps_length():
    assert RecordSanitizer.sanitize_team_name("x" * 300) == "x" * 255
    assert RecordSanitizer.sanitize_task_name("y" * 300) == "y" * 100
    assert RecordSanitizer.clean_name(" \0Wizards\0 ", 255) == "Wizards"
    assert RecordSanitizer.clean_name(42, 10) == "42"


def test_config_defaults_and_constraints():
    config = ContestConfig()
    assert config.delimiter == ","
    assert config.header_token == "category_id"
    assert config.min_columns == 3
    with pytest.raises(ValidationError):
        ContestConfig(delimiter=";;")
    with pytest.raises(ValidationError):
        ContestConfig(delimiter='"')
    with pytest.raises(ValidationError):
        ContestConfig(quote="\n")
    with pytest.raises(ValidationError):
        ContestConfig(initial_status="Paused")
    with pytest.raises(ValidationError):
        ContestConfig(min_columns=0)


def test_default_tasks():
    tasks = default_tasks()
    assert [t.id for t in tasks] == [f"T{i}" for i in range(1, 9)]
    assert tasks[0].name == "Task A"
    assert tasks[7].name == "Task H"
    assert all(t.key_visibility == "private" and not t.key_uploaded for t in tasks)
    assert len(default_tasks(ContestConfig(default_task_count=3))) == 3
