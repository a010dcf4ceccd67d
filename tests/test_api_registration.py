"""API tests for schools, classes, students and the school context header."""

API = "/api/v1"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestSchoolContext:
    def test_missing_header_is_rejected(self, client, school):
        response = client.get(f"{API}/classes")
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_unknown_school(self, client, school):
        for value in ("999", "abc"):
            response = client.get(f"{API}/classes", headers={"X-School-Id": value})
            assert response.status_code == 404
            assert response.json() == {
                "success": False,
                "error": {"code": "NOT_FOUND", "message": "School not found", "details": {"identifier": value}},
            }

    def test_classes_are_isolated_per_school(self, client, classroom):
        other = client.post(f"{API}/schools", json={"name": "Collège Voisin", "slug": "college-voisin"}).json()
        response = client.get(f"{API}/classes/{classroom['id']}", headers={"X-School-Id": str(other["id"])})
        assert response.status_code == 404

    def test_update_current_school_settings(self, client, headers):
        response = client.patch(
            f"{API}/schools/current",
            json={"period_system": "trimestre", "student_matricule_prefix": "LMC"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["period_system"] == "trimestre"

        current = client.get(f"{API}/schools/current", headers=headers).json()
        assert current["student_matricule_prefix"] == "LMC"

    def test_duplicate_slug(self, client, school):
        response = client.post(f"{API}/schools", json={"name": "Autre", "slug": school["slug"]})
        assert response.status_code == 422


class TestClasses:
    def test_display_name_and_student_count(self, client, headers, classroom, students):
        response = client.get(f"{API}/classes/{classroom['id']}", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["display_name"] == "6ème A"
        assert body["student_count"] == 3

    def test_delete_class_removes_students(self, client, headers, classroom, students):
        response = client.delete(f"{API}/classes/{classroom['id']}", headers=headers)
        assert response.status_code == 200
        response = client.get(f"{API}/students/{students[0]['id']}", headers=headers)
        assert response.status_code == 404


class TestMatricules:
    def test_generated_in_registration_order(self, client, headers, students):
        assert [s["matricule"] for s in students] == ["ELEVE001", "ELEVE002", "ELEVE003"]

        response = client.get(f"{API}/students/next-matricule", headers=headers)
        assert response.json() == {"matricule": "ELEVE004"}

    def test_generation_skips_taken_matricules(self, client, headers, classroom):
        payload = {"class_id": classroom["id"], "first_name": "Ibrahim", "last_name": "KONE"}
        first = client.post(f"{API}/students", json={**payload, "matricule": "ELEVE002"}, headers=headers)
        assert first.status_code == 200

        second = client.post(f"{API}/students", json={**payload, "first_name": "Mariam"}, headers=headers)
        assert second.json()["matricule"] == "ELEVE003"

    def test_duplicate_matricule_is_rejected(self, client, headers, classroom, students):
        response = client.post(
            f"{API}/students",
            json={
                "class_id": classroom["id"],
                "first_name": "Ibrahim",
                "last_name": "KONE",
                "matricule": students[0]["matricule"],
            },
            headers=headers,
        )
        assert response.status_code == 422

    def test_school_prefix_is_used(self, client, headers, classroom):
        client.patch(f"{API}/schools/current", json={"student_matricule_prefix": "LMC"}, headers=headers)
        response = client.post(
            f"{API}/students",
            json={"class_id": classroom["id"], "first_name": "Ibrahim", "last_name": "KONE"},
            headers=headers,
        )
        assert response.json()["matricule"] == "LMC001"

    def test_matricule_required_when_generation_is_off(self, client, headers, classroom):
        client.patch(f"{API}/schools/current", json={"auto_generate_matricule": False}, headers=headers)
        response = client.post(
            f"{API}/students",
            json={"class_id": classroom["id"], "first_name": "Ibrahim", "last_name": "KONE"},
            headers=headers,
        )
        assert response.status_code == 422


def test_search_students(client, headers, students):
    response = client.get(f"{API}/students", params={"search": "bamba"}, headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["full_name"] == "BAMBA Moussa"
