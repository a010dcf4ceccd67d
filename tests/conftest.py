"""Shared fixtures: the API on an in-memory SQLite database."""

import os

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, engine
from app.main import app

API = "/api/v1"


@pytest.fixture
def client():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def school(client):
    response = client.post(
        f"{API}/schools",
        json={"name": "Lycée Moderne de Cocody", "slug": "lycee-cocody", "academic_year": "2024-2025"},
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def headers(school):
    return {"X-School-Id": str(school["id"])}


@pytest.fixture
def classroom(client, headers):
    response = client.post(
        f"{API}/classes",
        json={"name": "6ème", "section": "A", "academic_year": "2024-2025"},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def subjects(client, headers, classroom):
    created = {}
    for name, coefficient, max_score in [("Mathématiques", 2, 20), ("Français", 1, 20), ("EPS", 1, 10)]:
        response = client.post(
            f"{API}/subjects",
            json={
                "class_id": classroom["id"],
                "name": name,
                "coefficient": coefficient,
                "max_score": max_score,
            },
            headers=headers,
        )
        assert response.status_code == 200, response.text
        created[name] = response.json()
    return created


@pytest.fixture
def students(client, headers, classroom):
    """Three students; roster order is by last name (BAMBA, COULIBALY, DIALLO)."""
    created = []
    for first_name, last_name in [("Awa", "DIALLO"), ("Moussa", "BAMBA"), ("Fatou", "COULIBALY")]:
        response = client.post(
            f"{API}/students",
            json={"class_id": classroom["id"], "first_name": first_name, "last_name": last_name},
            headers=headers,
        )
        assert response.status_code == 200, response.text
        created.append(response.json())
    return created


@pytest.fixture
def add_grade(client, headers):
    def _add(student, subject, value, **extra):
        payload = {
            "student_id": student["id"],
            "subject_id": subject["id"],
            "grade_value": value,
            **extra,
        }
        response = client.post(f"{API}/grades", json=payload, headers=headers)
        assert response.status_code == 200, response.text
        return response.json()

    return _add
