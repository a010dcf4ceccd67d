"""API tests for grade entry, bulk entry and Excel grade sheets."""

from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook, load_workbook

from app.core.config import settings

API = "/api/v1"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class TestGradeEntry:
    def test_same_key_is_updated_in_place(self, client, headers, students, subjects, add_grade):
        awa, maths = students[0], subjects["Mathématiques"]
        first = add_grade(awa, maths, 14, semester="S1")
        second = add_grade(awa, maths, 15, semester="1er semestre")

        assert second["id"] == first["id"]
        assert Decimal(second["grade_value"]) == Decimal("15")
        assert second["semester"] == "1er_semestre"

        listing = client.get(f"{API}/grades", params={"student_id": awa["id"]}, headers=headers).json()
        assert listing["total"] == 1

    def test_different_exam_type_is_a_new_record(self, client, headers, students, subjects, add_grade):
        awa, maths = students[0], subjects["Mathématiques"]
        devoir = add_grade(awa, maths, 14, semester="S1")
        composition = add_grade(awa, maths, 9, semester="S1", exam_type=" Composition ")

        assert composition["id"] != devoir["id"]
        assert composition["exam_type"] == "composition"

    def test_defaults_come_from_subject(self, students, subjects, add_grade):
        grade = add_grade(students[0], subjects["EPS"], 7)
        assert Decimal(grade["max_grade"]) == Decimal("10")
        assert Decimal(grade["coefficient"]) == Decimal("1")
        assert grade["subject_name"] == "EPS"
        assert grade["student_name"] == "DIALLO Awa"

    def test_value_above_subject_scale_is_rejected(self, client, headers, students, subjects):
        response = client.post(
            f"{API}/grades",
            json={"student_id": students[0]["id"], "subject_id": subjects["EPS"]["id"], "grade_value": 12},
            headers=headers,
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_max_grade_must_match_subject_scale(self, client, headers, students, subjects, add_grade):
        response = client.post(
            f"{API}/grades",
            json={
                "student_id": students[0]["id"],
                "subject_id": subjects["Mathématiques"]["id"],
                "grade_value": 35,
                "max_grade": 40,
            },
            headers=headers,
        )
        assert response.status_code == 422
        assert response.json()["error"]["details"]["subject_id"] == subjects["Mathématiques"]["id"]

        grade = add_grade(students[0], subjects["Mathématiques"], 18, max_grade=20)
        response = client.patch(f"{API}/grades/{grade['id']}", json={"max_grade": 40}, headers=headers)
        assert response.status_code == 422

    def test_record_scale_when_configured(
        self, client, headers, classroom, students, subjects, add_grade, monkeypatch
    ):
        monkeypatch.setattr(settings, "GRADE_SCALE_SOURCE", "record")
        grade = add_grade(students[0], subjects["Mathématiques"], 35, max_grade=40, semester="S1")
        assert Decimal(grade["max_grade"]) == Decimal("40")

        body = client.get(
            f"{API}/results/classes/{classroom['id']}", params={"semester": "S1"}, headers=headers
        ).json()
        assert Decimal(body["results"][0]["overall_average"]) == Decimal("17.50")

    def test_negative_value_is_rejected(self, client, headers, students, subjects):
        response = client.post(
            f"{API}/grades",
            json={"student_id": students[0]["id"], "subject_id": subjects["EPS"]["id"], "grade_value": -1},
            headers=headers,
        )
        assert response.status_code == 422

    def test_subject_of_another_class_is_rejected(self, client, headers, students):
        other_class = client.post(f"{API}/classes", json={"name": "5ème"}, headers=headers).json()
        other_subject = client.post(
            f"{API}/subjects",
            json={"class_id": other_class["id"], "name": "Anglais"},
            headers=headers,
        ).json()
        response = client.post(
            f"{API}/grades",
            json={"student_id": students[0]["id"], "subject_id": other_subject["id"], "grade_value": 10},
            headers=headers,
        )
        assert response.status_code == 422

    def test_update_checks_scale(self, client, headers, students, subjects, add_grade):
        grade = add_grade(students[0], subjects["EPS"], 7)
        response = client.patch(f"{API}/grades/{grade['id']}", json={"grade_value": 11}, headers=headers)
        assert response.status_code == 422

        response = client.patch(f"{API}/grades/{grade['id']}", json={"grade_value": 9.5}, headers=headers)
        assert response.status_code == 200
        assert Decimal(response.json()["grade_value"]) == Decimal("9.5")

    def test_delete_grade(self, client, headers, students, subjects, add_grade):
        grade = add_grade(students[0], subjects["Français"], 12)
        assert client.delete(f"{API}/grades/{grade['id']}", headers=headers).status_code == 200
        assert client.get(f"{API}/grades/{grade['id']}", headers=headers).status_code == 404

    def test_exam_semester_is_inherited(self, client, headers, classroom, students, subjects, add_grade):
        exam = client.post(
            f"{API}/exams",
            json={
                "class_id": classroom["id"],
                "title": "Composition du premier semestre",
                "exam_type": "Composition",
                "semester": "S1",
                "exam_date": "2024-12-12",
            },
            headers=headers,
        ).json()
        assert exam["semester"] == "1er_semestre"
        assert exam["is_composition"] is True
        assert exam["is_published"] is False

        grade = add_grade(students[0], subjects["Mathématiques"], 13, exam_id=exam["id"], exam_type="composition")
        assert grade["semester"] == "1er_semestre"


def test_bulk_entry_reports_rejected_rows(client, headers, classroom, students, subjects):
    response = client.post(
        f"{API}/grades/bulk",
        json={
            "class_id": classroom["id"],
            "subject_id": subjects["EPS"]["id"],
            "semester": "S1",
            "records": [
                {"student_id": students[0]["id"], "grade_value": 7},
                {"student_id": students[1]["id"], "grade_value": 12},
                {"student_id": 9999, "grade_value": 5},
            ],
        },
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total_records"] == 3
    assert body["successful"] == 1
    assert body["failed"] == 2
    assert {error["student_id"] for error in body["errors"]} == {students[1]["id"], 9999}


class TestExcelGradeSheet:
    def _download(self, client, headers, classroom, subject):
        response = client.get(
            f"{API}/grades/template",
            params={"class_id": classroom["id"], "subject_id": subject["id"]},
            headers=headers,
        )
        assert response.status_code == 200
        return load_workbook(BytesIO(response.content))

    def test_template_lists_roster(self, client, headers, classroom, students, subjects):
        ws = self._download(client, headers, classroom, subjects["Mathématiques"]).active
        assert [cell.value for cell in ws[2]] == ["Matricule", "Nom", "Prénom", "Note"]
        assert [ws.cell(row=r, column=1).value for r in range(3, 6)] == ["ELEVE002", "ELEVE003", "ELEVE001"]

    def test_filled_template_is_imported(self, client, headers, classroom, students, subjects):
        maths = subjects["Mathématiques"]
        wb = self._download(client, headers, classroom, maths)
        ws = wb.active
        ws.cell(row=3, column=4, value=15)
        ws.cell(row=4, column=4, value="abc")
        # row 5 left empty
        ws.cell(row=6, column=1, value="INCONNU")
        ws.cell(row=6, column=4, value=10)
        output = BytesIO()
        wb.save(output)

        response = client.post(
            f"{API}/grades/upload",
            data={"class_id": classroom["id"], "subject_id": maths["id"], "semester": "S1"},
            files={"file": ("notes.xlsx", output.getvalue(), XLSX)},
            headers=headers,
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["successful_rows"] == 1
        assert body["failed_rows"] == 2
        assert body["skipped_rows"] == 1
        assert {error["row"] for error in body["errors"]} == {4, 6}

        grades = client.get(f"{API}/grades", params={"subject_id": maths["id"]}, headers=headers).json()
        assert grades["total"] == 1
        assert grades["items"][0]["student_name"] == "BAMBA Moussa"
        assert grades["items"][0]["semester"] == "1er_semestre"

    def test_exam_of_another_class_is_rejected(self, client, headers, classroom, students, subjects):
        other_class = client.post(f"{API}/classes", json={"name": "5ème"}, headers=headers).json()
        other_exam = client.post(
            f"{API}/exams",
            json={"class_id": other_class["id"], "title": "Devoir 1", "semester": "S1", "exam_date": "2024-11-05"},
            headers=headers,
        ).json()
        maths = subjects["Mathématiques"]
        wb = self._download(client, headers, classroom, maths)
        wb.active.cell(row=3, column=4, value=15)
        output = BytesIO()
        wb.save(output)

        response = client.post(
            f"{API}/grades/upload",
            data={"class_id": classroom["id"], "subject_id": maths["id"], "exam_id": other_exam["id"]},
            files={"file": ("notes.xlsx", output.getvalue(), XLSX)},
            headers=headers,
        )
        assert response.status_code == 422
        grades = client.get(f"{API}/grades", params={"subject_id": maths["id"]}, headers=headers).json()
        assert grades["total"] == 0

    def test_sheet_without_grade_column(self, client, headers, classroom, students, subjects):
        wb = Workbook()
        wb.active.append(["Matricule", "Nom"])
        wb.active.append(["ELEVE001", "DIALLO"])
        output = BytesIO()
        wb.save(output)

        response = client.post(
            f"{API}/grades/upload",
            data={"class_id": classroom["id"], "subject_id": subjects["Français"]["id"]},
            files={"file": ("notes.xlsx", output.getvalue(), XLSX)},
            headers=headers,
        )
        assert response.status_code == 422

    def test_only_xlsx_files_are_accepted(self, client, headers, classroom, subjects):
        response = client.post(
            f"{API}/grades/upload",
            data={"class_id": classroom["id"], "subject_id": subjects["Français"]["id"]},
            files={"file": ("notes.csv", b"Matricule,Note\n", "text/csv")},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UPLOAD_FAILED"
