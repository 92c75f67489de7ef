from fastapi.testclient import TestClient

from schedule_grid.core.exceptions import (
    AppError,
    DuplicateIdentityError,
    GridInvariantError,
    MergedLessonEditError,
    PolicyViolation,
    RemoteOperationError,
    ResourceNotFoundError,
)


def test_error_hierarchy_and_status_codes():
    merged = MergedLessonEditError(schedule_id=4, parent_group=1)
    assert isinstance(merged, PolicyViolation)
    assert merged.status_code == 409
    assert merged.details == {"schedule_id": 4, "parent_group": 1}

    duplicate = DuplicateIdentityError(("group", 7))
    assert isinstance(duplicate, GridInvariantError)
    assert duplicate.details == {"identity": ["group", 7]}

    remote = RemoteOperationError("set_lock", "Lesson not found", status_code=404)
    assert isinstance(remote, AppError)
    assert remote.operation == "set_lock"
    assert str(remote) == "Lesson not found"

    missing = ResourceNotFoundError("Faculty", 3)
    assert missing.status_code == 404
    assert missing.details == {}


def test_app_error_handler_renders_message_and_details(session_factory):
    from schedule_grid.main import app

    with TestClient(app) as client:
        response = client.post("/api/schedules/lock", json={"schedule_id": 1, "blocked": True})

    assert response.status_code == 404
    assert response.json() == {"message": "Schedule with id 1 not found", "details": {}}
