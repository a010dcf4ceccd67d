"""API tests for class results, bulletins and exports."""

from decimal import Decimal
from io import BytesIO

import pytest
from openpyxl import load_workbook

API = "/api/v1"


@pytest.fixture
def graded(client, headers, classroom, students, subjects, add_grade):
    """First-semester devoirs: BAMBA 14.00, DIALLO 13.33, COULIBALY ungraded."""
    awa, moussa, _ = students
    maths, francais = subjects["Mathématiques"], subjects["Français"]
    add_grade(awa, maths, 14, semester="S1")
    add_grade(awa, francais, 12, semester="S1")
    add_grade(moussa, maths, 16, semester="S1")
    add_grade(moussa, francais, 10, semester="S1")
    return classroom


@pytest.fixture
def composition(client, headers, classroom, students, subjects, add_grade):
    """Unpublished composition exam; BAMBA scored 8 in Mathématiques."""
    exam = client.post(
        f"{API}/exams",
        json={
            "class_id": classroom["id"],
            "title": "Composition 1",
            "exam_type": "composition",
            "semester": "S1",
            "exam_date": "2024-12-12",
        },
        headers=headers,
    ).json()
    add_grade(students[1], subjects["Mathématiques"], 8, exam_id=exam["id"], exam_type="composition")
    return exam


def results_url(class_id, suffix=""):
    return f"{API}/results/classes/{class_id}{suffix}"


class TestClassResults:
    def test_semester_ranking(self, client, headers, graded):
        response = client.get(results_url(graded["id"]), params={"semester": "S1"}, headers=headers)
        assert response.status_code == 200, response.text
        body = response.json()

        assert body["semester"] == "1er_semestre"
        assert body["scope_label"] == "PREMIER SEMESTRE"
        assert body["composition_mode"] is True
        assert body["total_students"] == 2

        rows = [(r["student_name"], r["rank"], Decimal(r["overall_average"])) for r in body["results"]]
        assert rows == [
            ("BAMBA Moussa", 1, Decimal("14.00")),
            ("DIALLO Awa", 2, Decimal("13.33")),
            ("COULIBALY Fatou", None, Decimal("0")),
        ]
        assert body["results"][2]["appreciation"] == "N/A"
        assert body["results"][2]["subjects"] == []

        stats = body["statistics"]
        assert stats["graded_students"] == 2
        assert Decimal(stats["class_average"]) == Decimal("13.67")
        assert stats["pass_count"] == 2
        averages = {s["subject_name"]: Decimal(s["average"]) for s in stats["subject_averages"]}
        assert averages == {"Mathématiques": Decimal("15.00"), "Français": Decimal("11.00")}

    def test_switching_to_trimesters_retags_grades(self, client, headers, graded, students, subjects, add_grade):
        add_grade(students[2], subjects["EPS"], 6, semester="S2")
        response = client.patch(f"{API}/schools/current", json={"period_system": "trimestre"}, headers=headers)
        assert response.status_code == 200

        body = client.get(results_url(graded["id"]), params={"semester": "T1"}, headers=headers).json()
        assert body["semester"] == "1er_trimestre"
        rows = [(r["student_name"], r["rank"]) for r in body["results"]]
        assert rows == [("BAMBA Moussa", 1), ("DIALLO Awa", 2), ("COULIBALY Fatou", None)]

        listing = client.get(f"{API}/grades", params={"student_id": students[2]["id"]}, headers=headers).json()
        assert [g["semester"] for g in listing["items"]] == ["2eme_trimestre"]

    def test_subject_lines(self, client, headers, graded, students):
        response = client.get(
            results_url(graded["id"], f"/students/{students[0]['id']}"),
            params={"semester": "1er semestre"},
            headers=headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["rank"] == 2
        assert body["total_students"] == 2
        maths = next(s for s in body["subjects"] if s["subject_name"] == "Mathématiques")
        assert Decimal(maths["devoir_avg"]) == Decimal("14.00")
        assert maths["composition_avg"] is None
        assert Decimal(maths["weighted_points"]) == Decimal("28.00")
        assert Decimal(body["total_coefficients"]) == Decimal("3")

    def test_subject_scale_is_applied(self, client, headers, graded, students, subjects, add_grade):
        add_grade(students[2], subjects["EPS"], 7, semester="S1")
        body = client.get(results_url(graded["id"]), params={"semester": "S1"}, headers=headers).json()
        fatou = next(r for r in body["results"] if r["student_name"] == "COULIBALY Fatou")
        assert Decimal(fatou["overall_average"]) == Decimal("14.00")
        assert fatou["rank"] == 1

    def test_second_semester_is_empty(self, client, headers, graded):
        body = client.get(results_url(graded["id"]), params={"semester": "S2"}, headers=headers).json()
        assert body["total_students"] == 0
        assert all(r["rank"] is None for r in body["results"])
        assert body["statistics"]["class_average"] is None

    @pytest.mark.parametrize(
        "params",
        [{}, {"semester": "S1", "exam_id": 1}, {"semester": "S5"}, {"semester": "T1"}, {"semester": "hiver"}],
    )
    def test_scope_must_be_exactly_one_known_target(self, client, headers, graded, params):
        response = client.get(results_url(graded["id"]), params=params, headers=headers)
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_unknown_class_and_student(self, client, headers, graded):
        response = client.get(results_url(9999), params={"semester": "S1"}, headers=headers)
        assert response.status_code == 404
        response = client.get(results_url(graded["id"], "/students/9999"), params={"semester": "S1"}, headers=headers)
        assert response.status_code == 404

    def test_trimester_school(self, client, headers, graded, students, subjects, add_grade):
        client.patch(f"{API}/schools/current", json={"period_system": "trimestre"}, headers=headers)
        add_grade(students[2], subjects["Français"], 11, semester="T3")

        body = client.get(results_url(graded["id"]), params={"semester": "3"}, headers=headers).json()
        assert body["semester"] == "3eme_trimestre"
        assert body["scope_label"] == "TROISIEME TRIMESTRE"
        assert body["results"][0]["student_name"] == "COULIBALY Fatou"


class TestExamResults:
    def test_unpublished_exam_is_hidden(self, client, headers, graded, composition):
        response = client.get(
            results_url(graded["id"]),
            params={"exam_id": composition["id"], "published_only": True},
            headers=headers,
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "RESULTS_NOT_PUBLISHED"

        client.post(f"{API}/exams/{composition['id']}/publish", headers=headers)
        response = client.get(
            results_url(graded["id"]),
            params={"exam_id": composition["id"], "published_only": True},
            headers=headers,
        )
        assert response.status_code == 200

    def test_exam_scope(self, client, headers, graded, composition):
        body = client.get(
            results_url(graded["id"]), params={"exam_id": composition["id"]}, headers=headers
        ).json()
        assert body["exam_id"] == composition["id"]
        assert body["composition_mode"] is True
        assert body["total_students"] == 1
        assert body["results"][0]["student_name"] == "BAMBA Moussa"
        assert Decimal(body["results"][0]["overall_average"]) == Decimal("8.00")

    def test_semester_includes_composition_unless_published_only(self, client, headers, graded, composition):
        body = client.get(results_url(graded["id"]), params={"semester": "S1"}, headers=headers).json()
        # BAMBA: Mathématiques (16 + 8) / 2 = 12, overall (24 + 10) / 3
        assert [r["student_name"] for r in body["results"][:2]] == ["DIALLO Awa", "BAMBA Moussa"]
        assert Decimal(body["results"][1]["overall_average"]) == Decimal("11.33")

        body = client.get(
            results_url(graded["id"]),
            params={"semester": "S1", "published_only": True},
            headers=headers,
        ).json()
        assert body["results"][0]["student_name"] == "BAMBA Moussa"
        assert Decimal(body["results"][0]["overall_average"]) == Decimal("14.00")


def test_annual_results(client, headers, graded, students, subjects, add_grade):
    add_grade(students[0], subjects["Mathématiques"], 18, semester="S2")

    response = client.get(results_url(graded["id"], "/annual"), headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["period_system"] == "semestre"

    # DIALLO: S1 13.33, S2 18.00 -> 15.67; BAMBA: S1 only -> 14.00
    first, second, last = body["results"]
    assert (first["student_name"], first["rank"]) == ("DIALLO Awa", 1)
    assert Decimal(first["annual_average"]) == Decimal("15.67")
    assert [p["rank"] for p in first["periods"]] == [2, 1]
    assert (second["student_name"], second["rank"]) == ("BAMBA Moussa", 2)
    assert second["periods"][1]["average"] is None
    assert last["rank"] is None
    assert last["has_grades"] is False


class TestDocuments:
    def test_student_bulletin_pdf(self, client, headers, graded, students):
        response = client.get(
            results_url(graded["id"], f"/students/{students[0]['id']}/bulletin.pdf"),
            params={"semester": "S1"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert "bulletin_ELEVE001_periode_1.pdf" in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    def test_bulletin_filename_outside_latin1(self, client, headers, graded, subjects, add_grade):
        student = client.post(
            f"{API}/students",
            json={"class_id": graded["id"], "first_name": "Œdipe", "last_name": "KONE", "matricule": "ŒUV001"},
            headers=headers,
        ).json()
        add_grade(student, subjects["Mathématiques"], 11, semester="S1")

        response = client.get(
            results_url(graded["id"], f"/students/{student['id']}/bulletin.pdf"),
            params={"semester": "S1"},
            headers=headers,
        )
        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert disposition == "inline; filename*=utf-8''bulletin_%C5%92UV001_periode_1.pdf"
        assert response.content.startswith(b"%PDF")

    def test_ungraded_student_bulletin_pdf(self, client, headers, graded, students):
        response = client.get(
            results_url(graded["id"], f"/students/{students[2]['id']}/bulletin.pdf"),
            params={"semester": "S1"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_class_bulletins_pdf(self, client, headers, graded, composition):
        response = client.get(
            results_url(graded["id"], "/bulletin.pdf"), params={"exam_id": composition["id"]}, headers=headers
        )
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_annual_bulletin_pdf(self, client, headers, graded, students):
        response = client.get(
            results_url(graded["id"], f"/students/{students[1]['id']}/annual.pdf"), headers=headers
        )
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_pdf_requires_a_scope(self, client, headers, graded):
        response = client.get(results_url(graded["id"], "/bulletin.pdf"), headers=headers)
        assert response.status_code == 422

    def test_ranking_export(self, client, headers, graded):
        response = client.get(
            results_url(graded["id"], "/ranking.xlsx"), params={"semester": "S1"}, headers=headers
        )
        assert response.status_code == 200
        ws = load_workbook(BytesIO(response.content)).active

        headers_row = [cell.value for cell in ws[2]]
        assert headers_row[:3] == ["Rang", "Matricule", "Nom et prénoms"]
        assert "Mathématiques (coef 2)" in headers_row
        assert headers_row[-2:] == ["Moyenne", "Appréciation"]
        assert [ws.cell(row=r, column=3).value for r in range(3, 6)] == [
            "BAMBA Moussa",
            "DIALLO Awa",
            "COULIBALY Fatou",
        ]
        assert ws.cell(row=3, column=1).value == 1
        assert ws.cell(row=5, column=1).value == "-"
