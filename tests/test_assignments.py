import io
import uuid

import pytest
from fastapi import UploadFile
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from classroom_api.api.v1.assignments import service as assignment_service
from conftest import TEST_MAX_UPLOAD_BYTES, upload

FUTURE = "2999-01-01T00:00:00Z"
PAST = "2000-01-01T00:00:00Z"


async def _create(client: AsyncClient, headers, class_id: str, files=None, **fields):
    data = {"title": "Homework", "description": "Do it"}
    data.update(fields)
    return await client.post(f"/v1/classes/{class_id}/assignments", data=data, files=files, headers=headers)


@pytest.fixture()
async def assignment(client: AsyncClient, teacher, classroom):
    response = await _create(client, teacher, classroom["class_id"], files=upload("task.pdf"), due_date=FUTURE)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_create_with_document(assignment, storage) -> None:
    assert assignment["title"] == "Homework"
    assert assignment["file_url"].startswith("/storage/assignments/")
    assert assignment["file_url"].endswith("_task.pdf")
    assert storage.path_for(assignment["file_url"]).read_bytes() == b"%PDF-1.4 test"


async def test_create_without_document(client: AsyncClient, teacher, classroom) -> None:
    response = await _create(client, teacher, classroom["class_id"])
    assert response.status_code == 201
    assert response.json()["data"]["file_url"] is None
    assert response.json()["data"]["due_date"] is None


async def test_rejects_disallowed_extension(client: AsyncClient, teacher, classroom) -> None:
    response = await _create(client, teacher, classroom["class_id"], files=upload("virus.exe", b"MZ", "application/octet-stream"))
    assert response.status_code == 422
    body = response.json()
    assert body["message"] == "Validation error"
    assert "file" in body["errors"]


async def test_rejects_oversized_file(client: AsyncClient, teacher, classroom, storage) -> None:
    response = await _create(
        client,
        teacher,
        classroom["class_id"],
        files=upload("big.pdf", b"x" * (TEST_MAX_UPLOAD_BYTES + 1)),
    )
    assert response.status_code == 422
    assert "file" in response.json()["errors"]
    assert not (storage.root / "assignments").exists() or not any((storage.root / "assignments").iterdir())


async def test_missing_title(client: AsyncClient, teacher, classroom) -> None:
    response = await client.post(
        f"/v1/classes/{classroom['class_id']}/assignments",
        data={"description": "No title"},
        headers=teacher,
    )
    assert response.status_code == 422
    assert "title" in response.json()["errors"]


async def test_non_owner_cannot_create(client: AsyncClient, other_teacher, classroom) -> None:
    response = await _create(client, other_teacher, classroom["class_id"])
    assert response.status_code == 403


async def test_show_assignment(
    client: AsyncClient,
    assignment,
    enrolled_student,
    other_student,
    other_teacher,
) -> None:
    path = f"/v1/assignments/{assignment['assignment_id']}"
    response = await client.get(path, headers=enrolled_student)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["class_name"] == "Algebra I"
    assert data["submission"] is None

    response = await client.get(path, headers=other_teacher)
    assert response.status_code == 403

    response = await client.get(path, headers=other_student)
    assert response.status_code == 403
    assert response.json()["message"] == "You must be the class teacher or enrolled in this class"


async def test_show_includes_own_submission(client: AsyncClient, assignment, enrolled_student) -> None:
    await client.post(
        f"/v1/assignments/{assignment['assignment_id']}/submit",
        files=upload("answer.pdf"),
        headers=enrolled_student,
    )
    response = await client.get(f"/v1/assignments/{assignment['assignment_id']}", headers=enrolled_student)
    submission = response.json()["data"]["submission"]
    assert submission["status"] == "pending"
    assert submission["score"] is None


async def test_owner_list_has_submission_stats(client: AsyncClient, teacher, classroom, assignment, enrolled_student) -> None:
    await _create(client, teacher, classroom["class_id"], title="Second")
    await client.post(
        f"/v1/assignments/{assignment['assignment_id']}/submit",
        files=upload("answer.pdf"),
        headers=enrolled_student,
    )
    response = await client.get(f"/v1/classes/{classroom['class_id']}/assignments", headers=teacher)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["class_name"] == "Algebra I"
    stats = {a["title"]: a["submission_stats"] for a in data["assignments"]}
    assert stats["Homework"] == {"total_submissions": 1, "graded_submissions": 0}
    assert stats["Second"] == {"total_submissions": 0, "graded_submissions": 0}


async def test_student_list_ordered_by_due_date(client: AsyncClient, teacher, classroom, enrolled_student) -> None:
    class_id = classroom["class_id"]
    await _create(client, teacher, class_id, title="Later", due_date="2999-02-01T00:00:00Z")
    await _create(client, teacher, class_id, title="Undated")
    await _create(client, teacher, class_id, title="Sooner", due_date=FUTURE)
    await _create(client, teacher, class_id, title="Missed", due_date=PAST)

    response = await client.get(f"/v1/classes/{class_id}/assignments", headers=enrolled_student)
    assert response.status_code == 200
    items = response.json()["data"]["assignments"]
    assert [a["title"] for a in items] == ["Missed", "Sooner", "Later", "Undated"]
    missed = items[0]
    assert missed["is_due"] is True
    assert missed["is_overdue"] is True
    assert missed["submission_stats"] is None
    assert items[1]["is_due"] is False
    assert items[1]["is_overdue"] is False


async def test_class_list_forbidden_for_outsiders(client: AsyncClient, classroom, student, other_teacher) -> None:
    for headers in (student, other_teacher):
        response = await client.get(f"/v1/classes/{classroom['class_id']}/assignments", headers=headers)
        assert response.status_code == 403


async def test_update_replaces_document(client: AsyncClient, teacher, assignment, storage) -> None:
    old_path = storage.path_for(assignment["file_url"])
    response = await client.put(
        f"/v1/assignments/{assignment['assignment_id']}",
        data={"title": "Homework v2"},
        files=upload("task-v2.docx", b"docx", "application/octet-stream"),
        headers=teacher,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Homework v2"
    assert data["description"] == "Do it"
    assert data["file_url"].endswith("_task-v2.docx")
    assert not old_path.exists()
    assert storage.path_for(data["file_url"]).exists()


async def test_update_without_file_keeps_document(client: AsyncClient, teacher, assignment) -> None:
    response = await client.put(
        f"/v1/assignments/{assignment['assignment_id']}",
        data={"description": "Updated"},
        headers=teacher,
    )
    assert response.status_code == 200
    assert response.json()["data"]["file_url"] == assignment["file_url"]
    assert response.json()["data"]["due_date"].startswith("2999-01-01")


async def test_delete_blocked_by_submissions(client: AsyncClient, teacher, assignment, enrolled_student) -> None:
    await client.post(
        f"/v1/assignments/{assignment['assignment_id']}/submit",
        files=upload("answer.pdf"),
        headers=enrolled_student,
    )
    response = await client.delete(f"/v1/assignments/{assignment['assignment_id']}", headers=teacher)
    assert response.status_code == 400
    assert response.json()["message"] == "Cannot delete assignment with existing submissions"


async def test_delete_removes_document(client: AsyncClient, teacher, assignment, storage) -> None:
    path = storage.path_for(assignment["file_url"])
    response = await client.delete(f"/v1/assignments/{assignment['assignment_id']}", headers=teacher)
    assert response.status_code == 200
    assert not path.exists()
    response = await client.get(f"/v1/assignments/{assignment['assignment_id']}", headers=teacher)
    assert response.status_code == 404


async def test_missing_assignment(client: AsyncClient, teacher) -> None:
    response = await client.get(f"/v1/assignments/{uuid.uuid4()}", headers=teacher)
    assert response.status_code == 404


class _FailingSession:
    def __init__(self) -> None:
        self.rolled_back = False

    async def commit(self) -> None:
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    async def rollback(self) -> None:
        self.rolled_back = True


async def test_failed_write_discards_uploaded_file(storage) -> None:
    url = await storage.save(UploadFile(file=io.BytesIO(b"data"), filename="notes.txt"), "assignments")
    assert storage.path_for(url).exists()

    session = _FailingSession()
    with pytest.raises(OperationalError):
        await assignment_service._commit_or_discard(session, storage, url)
    assert session.rolled_back
    assert not storage.path_for(url).exists()


async def test_update_rejects_blank_title(client: AsyncClient, teacher, assignment) -> None:
    response = await client.put(
        f"/v1/assignments/{assignment['assignment_id']}",
        data={"title": "   "},
        headers=teacher,
    )
    assert response.status_code == 422
    assert "title" in response.json()["errors"]


async def test_empty_due_date_clears_deadline(client: AsyncClient, teacher, classroom, enrolled_student) -> None:
    created = await _create(client, teacher, classroom["class_id"], due_date=PAST)
    assignment_id = created.json()["data"]["assignment_id"]
    submit_path = f"/v1/assignments/{assignment_id}/submit"

    response = await client.post(submit_path, files=upload(), headers=enrolled_student)
    assert response.status_code == 400

    response = await client.put(f"/v1/assignments/{assignment_id}", data={"due_date": ""}, headers=teacher)
    assert response.status_code == 200
    assert response.json()["data"]["due_date"] is None

    response = await client.post(submit_path, files=upload(), headers=enrolled_student)
    assert response.status_code == 201


async def test_due_date_can_be_moved(client: AsyncClient, teacher, classroom, enrolled_student) -> None:
    created = await _create(client, teacher, classroom["class_id"], due_date=PAST)
    assignment_id = created.json()["data"]["assignment_id"]

    response = await client.put(f"/v1/assignments/{assignment_id}", data={"due_date": FUTURE}, headers=teacher)
    assert response.status_code == 200
    assert response.json()["data"]["due_date"].startswith("2999-01-01")

    response = await client.post(f"/v1/assignments/{assignment_id}/submit", files=upload(), headers=enrolled_student)
    assert response.status_code == 201
