"""HTTP tests for the progress endpoints."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from edustore.core.errors import WriteConflictError
from edustore.progress.schemas import ConsumptionResponse


@pytest.fixture
def progress_service(app):
    service = AsyncMock()
    app.state.progress_service = service
    return service


def test_record_consumption(client, progress_service, auth_headers) -> None:
    user_id, course_id, leaf_id = uuid4(), uuid4(), uuid4()
    progress_service.record_consumption.return_value = ConsumptionResponse(
        course_id=course_id,
        leaf_id=leaf_id,
        recorded=True,
        progress=50,
        completed_count=5,
        total_leaves=10,
    )

    response = client.post(
        f"/v1/progress/{course_id}/consume",
        json={"leaf_id": str(leaf_id)},
        headers=auth_headers(user_id=user_id),
    )

    assert response.status_code == 200
    assert response.json()["progress"] == 50
    progress_service.record_consumption.assert_awaited_once_with(user_id, course_id, leaf_id)


def test_consumption_requires_authentication(client, progress_service) -> None:
    response = client.post(f"/v1/progress/{uuid4()}/consume", json={"leaf_id": str(uuid4())})

    assert response.status_code == 401


def test_write_conflict(client, progress_service, auth_headers) -> None:
    progress_service.record_consumption.side_effect = WriteConflictError()

    response = client.post(
        f"/v1/progress/{uuid4()}/consume",
        json={"leaf_id": str(uuid4())},
        headers=auth_headers(),
    )

    assert response.status_code == 409
    assert response.json()["kind"] == "write_conflict"


def test_list_my_progress(client, progress_service, auth_headers) -> None:
    progress_service.list_user_progress.return_value = []

    response = client.get("/v1/progress/my", headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"items": [], "total": 0}
