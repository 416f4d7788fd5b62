import uuid

import pytest
from httpx import AsyncClient


@pytest.fixture()
async def material(client: AsyncClient, teacher, classroom):
    response = await client.post(
        f"/v1/classes/{classroom['class_id']}/materials",
        json={"title": "Chapter 1", "description": "Intro", "content": "Full text"},
        headers=teacher,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_create_material(material, classroom) -> None:
    assert material["title"] == "Chapter 1"
    assert material["class_id"] == classroom["class_id"]
    assert material["class_name"] == "Algebra I"


async def test_create_material_validation(client: AsyncClient, teacher, classroom) -> None:
    response = await client.post(
        f"/v1/classes/{classroom['class_id']}/materials",
        json={"title": "x" * 256, "description": "d"},
        headers=teacher,
    )
    assert response.status_code == 422
    errors = response.json()["errors"]
    assert "title" in errors
    assert "content" in errors


async def test_non_owner_cannot_create(client: AsyncClient, other_teacher, classroom) -> None:
    response = await client.post(
        f"/v1/classes/{classroom['class_id']}/materials",
        json={"title": "t", "description": "d", "content": "c"},
        headers=other_teacher,
    )
    assert response.status_code == 403


async def test_class_materials_newest_first(client: AsyncClient, teacher, classroom, material, enrolled_student) -> None:
    await client.post(
        f"/v1/classes/{classroom['class_id']}/materials",
        json={"title": "Chapter 2", "description": "More", "content": "Text"},
        headers=teacher,
    )
    response = await client.get(f"/v1/classes/{classroom['class_id']}/class-material", headers=enrolled_student)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["class_name"] == "Algebra I"
    assert [m["title"] for m in data["materials"]] == ["Chapter 2", "Chapter 1"]
    assert "content" not in data["materials"][0]


async def test_material_reads_need_access(client: AsyncClient, material, classroom, student, other_teacher) -> None:
    for headers in (student, other_teacher):
        response = await client.get(f"/v1/materials/{material['material_id']}", headers=headers)
        assert response.status_code == 403
        response = await client.get(f"/v1/classes/{classroom['class_id']}/class-material", headers=headers)
        assert response.status_code == 403


async def test_show_material(client: AsyncClient, material, enrolled_student) -> None:
    response = await client.get(f"/v1/materials/{material['material_id']}", headers=enrolled_student)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["content"] == "Full text"
    assert data["class_name"] == "Algebra I"


async def test_update_material_partial(client: AsyncClient, teacher, material) -> None:
    response = await client.put(
        f"/v1/materials/{material['material_id']}",
        json={"content": "Revised"},
        headers=teacher,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["content"] == "Revised"
    assert data["title"] == "Chapter 1"


async def test_student_cannot_update(client: AsyncClient, material, enrolled_student) -> None:
    response = await client.put(
        f"/v1/materials/{material['material_id']}",
        json={"title": "Hacked"},
        headers=enrolled_student,
    )
    assert response.status_code == 403


async def test_delete_material(client: AsyncClient, teacher, material) -> None:
    path = f"/v1/materials/{material['material_id']}"
    response = await client.delete(path, headers=teacher)
    assert response.status_code == 200
    response = await client.get(path, headers=teacher)
    assert response.status_code == 404


async def test_missing_material(client: AsyncClient, teacher) -> None:
    response = await client.get(f"/v1/materials/{uuid.uuid4()}", headers=teacher)
    assert response.status_code == 404
    assert response.json()["message"] == "Material not found"


async def test_blank_material_fields_are_rejected(client: AsyncClient, teacher, classroom) -> None:
    response = await client.post(
        f"/v1/classes/{classroom['class_id']}/materials",
        json={"title": "  ", "description": " ", "content": "Text"},
        headers=teacher,
    )
    assert response.status_code == 422
    errors = response.json()["errors"]
    assert "title" in errors
    assert "description" in errors


async def test_blank_material_update_is_rejected(client: AsyncClient, teacher, material) -> None:
    response = await client.put(
        f"/v1/materials/{material['material_id']}",
        json={"title": "   "},
        headers=teacher,
    )
    assert response.status_code == 422
    assert "title" in response.json()["errors"]


async def test_material_title_is_trimmed(client: AsyncClient, teacher, classroom) -> None:
    response = await client.post(
        f"/v1/classes/{classroom['class_id']}/materials",
        json={"title": "  Chapter 3  ", "description": "d", "content": "c"},
        headers=teacher,
    )
    assert response.status_code == 201
    assert response.json()["data"]["title"] == "Chapter 3"
