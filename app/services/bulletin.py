"""PDF bulletins rendered with reportlab.

Every figure printed here comes from the grading engine output; nothing is
recomputed while drawing.
"""

import logging
from datetime import datetime
from decimal import Decimal
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.grading import AnnualStudentResult, ClassResults, StudentResult, appreciation_legend
from app.models.school import School
from app.services.results import ClassSnapshot, ResultsService

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 2 * cm


def _fmt(value: Decimal | None) -> str:
    return "-" if value is None else f"{value:.2f}"


def _rank_text(rank: int | None, total: int) -> str:
    if rank is None:
        return "-"
    suffix = "er" if rank == 1 else "e"
    return f"{rank}{suffix} / {total}"


class BulletinRenderer:
    """Draws bulletins on one reportlab canvas."""

    def __init__(self, school: School, snapshot: ClassSnapshot):
        self.school = school
        self.snapshot = snapshot
        self.buffer = BytesIO()
        self.c = canvas.Canvas(self.buffer, pagesize=A4)
        self.scale = f"{snapshot.config.reference_scale.normalize():f}"

    def finish(self) -> bytes:
        self.c.save()
        return self.buffer.getvalue()

    # ==========================================
    # Building blocks
    # ==========================================

    def _separator(self, y: float, color=colors.grey) -> float:
        self.c.setFillColor(color)
        self.c.rect(MARGIN, y - 2, PAGE_WIDTH - 2 * MARGIN, 1, fill=1, stroke=0)
        self.c.setFillColor(colors.black)
        return y - 16

    def _header(self, title: str) -> float:
        """School header and bulletin title; returns the next y."""
        c = self.c
        y = PAGE_HEIGHT - MARGIN
        center_x = PAGE_WIDTH / 2

        c.setFont("Helvetica-Bold", 18)
        c.drawCentredString(center_x, y, (self.school.name or "ÉCOLE").upper())
        y -= 14
        c.setFont("Helvetica", 10)
        contacts = []
        if self.school.address:
            contacts.append(f"Adresse: {self.school.address}")
        if self.school.phone:
            contacts.append(f"Tél: {self.school.phone}")
        if contacts:
            c.drawCentredString(center_x, y, "  |  ".join(contacts))
            y -= 12
        year = self.snapshot.school_class.academic_year or self.school.academic_year
        if year:
            c.drawCentredString(center_x, y, f"Année scolaire {year}")
            y -= 12

        y -= 18
        c.setFont("Helvetica-Bold", 14)
        c.drawCentredString(center_x, y, title)
        y -= 28
        return y

    def _table(self, y: float, headers: list[str], widths: list[float], rows: list[list[str]]) -> float:
        c = self.c
        c.setFont("Helvetica-Bold", 10)
        x = MARGIN
        for header, width in zip(headers, widths):
            c.drawString(x, y, header)
            x += width
        y -= 6
        y = self._separator(y, colors.lightgrey) + 6

        c.setFont("Helvetica", 10)
        for row in rows:
            if y < MARGIN + 80:
                c.showPage()
                y = PAGE_HEIGHT - MARGIN
                c.setFont("Helvetica", 10)
            x = MARGIN
            for text, width in zip(row, widths):
                c.drawString(x, y, text)
                x += width
            y -= 14
        return y

    def _footer(self) -> None:
        c = self.c
        c.setFont("Helvetica", 11)
        sig_y = MARGIN + 50
        c.drawString(MARGIN, sig_y, "Prof. principal:")
        c.line(MARGIN + 120, sig_y - 2, MARGIN + 250, sig_y - 2)
        c.drawString(MARGIN + 280, sig_y, "Chef d'établ.:")
        c.line(MARGIN + 380, sig_y - 2, MARGIN + 510, sig_y - 2)

        c.setFont("Helvetica-Oblique", 9)
        c.setFillColor(colors.darkgrey)
        c.drawString(MARGIN, MARGIN / 2, f"Généré le {datetime.now().strftime('%d/%m/%Y %H:%M')}")
        c.setFillColor(colors.black)

    def _student_identity(self, y: float, name: str, matricule: str | None) -> float:
        c = self.c
        c.setFont("Helvetica", 12)
        c.drawString(MARGIN, y, f"Élève: {name}  (Matricule: {matricule or '-'})")
        y -= 16
        c.drawString(MARGIN, y, f"Classe: {self.snapshot.school_class.display_name}")
        y -= 12
        return self._separator(y)

    # ==========================================
    # Pages
    # ==========================================

    def student_page(self, results: ClassResults, result: StudentResult) -> None:
        """One bulletin page. Composition bulletins show both components."""
        scope = results.scope
        y = self._header(f"BULLETIN DE NOTES - {scope.label.upper()}")
        y = self._student_identity(y, result.student_name, result.matricule)

        class_averages = results.statistics.subject_averages
        if scope.composition:
            headers = ["Matière", "Coef.", "Devoir", "Compo.", f"Moy. /{self.scale}", "Points", "Moy. cl.", "Appréciation"]
            widths = [4.2 * cm, 1.3 * cm, 1.6 * cm, 1.6 * cm, 2 * cm, 1.7 * cm, 1.8 * cm, 2.8 * cm]
        else:
            headers = ["Matière", "Coef.", f"Note /{self.scale}", "Points", "Moy. cl.", "Appréciation"]
            widths = [5.5 * cm, 1.5 * cm, 2.2 * cm, 2 * cm, 2.2 * cm, 3.6 * cm]

        rows = []
        for subject in self.snapshot.subjects:
            entry = result.subject(subject.id)
            class_avg = _fmt(class_averages.get(subject.id))
            if entry is None:
                row = [subject.name, "-"] + ["-"] * (len(headers) - 4) + [class_avg, "-"]
            elif scope.composition:
                row = [
                    entry.subject_name,
                    f"{entry.coefficient.normalize():f}",
                    _fmt(entry.devoir_avg),
                    _fmt(entry.composition_avg),
                    _fmt(entry.combined_avg),
                    _fmt(entry.weighted_points),
                    class_avg,
                    entry.appreciation,
                ]
            else:
                row = [
                    entry.subject_name,
                    f"{entry.coefficient.normalize():f}",
                    _fmt(entry.combined_avg),
                    _fmt(entry.weighted_points),
                    class_avg,
                    entry.appreciation,
                ]
            rows.append(row)

        y = self._table(y, headers, widths, rows)
        y = self._separator(y - 6)

        c = self.c
        c.setFont("Helvetica", 11)
        c.drawString(MARGIN, y, f"Total coefficients: {result.total_coefficients.normalize():f}    Total points: {_fmt(result.total_points)}")
        y -= 18
        c.setFont("Helvetica-Bold", 13)
        average = _fmt(result.overall_average) if result.has_grades else "-"
        c.drawString(MARGIN, y, f"Moyenne générale: {average} / {self.scale}")
        y -= 16
        c.setFont("Helvetica", 12)
        c.drawString(MARGIN, y, f"Rang: {_rank_text(result.rank, result.total_students)}")
        y -= 14
        c.drawString(MARGIN, y, f"Appréciation: {result.appreciation}")
        y -= 14
        c.drawString(MARGIN, y, f"Moyenne de la classe: {_fmt(results.statistics.class_average)}")

        self._footer()
        self.c.showPage()

    def ranking_page(self, results: ClassResults) -> None:
        """Class ranking followed by the appreciation legend."""
        y = self._header(f"RÉSULTATS DE LA CLASSE - {results.scope.label.upper()}")
        c = self.c
        c.setFont("Helvetica", 12)
        c.drawString(MARGIN, y, f"Classe: {self.snapshot.school_class.display_name}")
        y = self._separator(y - 12)

        rows = [
            [
                _rank_text(r.rank, r.total_students),
                r.matricule or "-",
                r.student_name,
                _fmt(r.overall_average) if r.has_grades else "-",
                r.appreciation,
            ]
            for r in results.results
        ]
        y = self._table(
            y,
            ["Rang", "Matricule", "Nom et prénoms", f"Moy. /{self.scale}", "Appréciation"],
            [2.2 * cm, 3 * cm, 6 * cm, 2.4 * cm, 3.4 * cm],
            rows,
        )

        stats = results.statistics
        y = self._separator(y - 6)
        c.setFont("Helvetica", 11)
        c.drawString(MARGIN, y, f"Moyenne de la classe: {_fmt(stats.class_average)}    "
                                f"Plus forte: {_fmt(stats.highest_average)}    Plus faible: {_fmt(stats.lowest_average)}")
        y -= 14
        c.drawString(MARGIN, y, f"Admis (>= {_fmt(self.snapshot.config.pass_mark)}): {stats.pass_count} / {stats.graded_students}")
        y -= 24

        c.setFont("Helvetica-Bold", 11)
        c.drawString(MARGIN, y, "Légende des appréciations")
        y -= 14
        c.setFont("Helvetica", 10)
        for label, bound in appreciation_legend(self.snapshot.config.reference_scale):
            c.drawString(MARGIN + 10, y, f"{label}: {bound}")
            y -= 12

        self._footer()
        c.showPage()

    def annual_page(self, result: AnnualStudentResult) -> None:
        y = self._header("BULLETIN ANNUEL")
        y = self._student_identity(y, result.student_name, result.matricule)

        rows = [
            [period.label.title(), _fmt(period.average), _rank_text(period.rank, period.total_students)]
            for period in result.periods
        ]
        y = self._table(y, ["Période", f"Moyenne /{self.scale}", "Rang"], [7 * cm, 4 * cm, 4 * cm], rows)
        y = self._separator(y - 6)

        c = self.c
        c.setFont("Helvetica-Bold", 13)
        average = _fmt(result.annual_average) if result.has_grades else "-"
        c.drawString(MARGIN, y, f"Moyenne annuelle: {average} / {self.scale}")
        y -= 16
        c.setFont("Helvetica", 12)
        c.drawString(MARGIN, y, f"Rang annuel: {_rank_text(result.rank, result.total_students)}")
        y -= 14
        c.drawString(MARGIN, y, f"Appréciation: {result.appreciation}")

        self._footer()
        c.showPage()


class BulletinService:
    """Bulletin PDF generation service."""

    def __init__(self, db: Session):
        self.db = db
        self.results = ResultsService(db)

    def student_bulletin(
        self,
        school: School,
        class_id: int,
        student_id: int,
        exam_id: int | None = None,
        semester: str | None = None,
        published_only: bool = False,
    ) -> tuple[bytes, str]:
        """Single-student bulletin; returns (pdf bytes, file name)."""
        snapshot, results, result = self.results.student_result(
            school, class_id, student_id, exam_id, semester, published_only
        )
        renderer = BulletinRenderer(school, snapshot)
        renderer.student_page(results, result)
        filename = f"bulletin_{result.matricule or student_id}_{self._scope_slug(results)}.pdf"
        logger.info(f"Bulletin rendered: student_id={student_id}, scope={results.scope.label!r}")
        return renderer.finish(), filename

    def class_bulletins(
        self,
        school: School,
        class_id: int,
        exam_id: int | None = None,
        semester: str | None = None,
        published_only: bool = False,
    ) -> tuple[bytes, str]:
        """Ranking page plus one bulletin page per student, in ranking order."""
        snapshot, results = self.results.compute(school, class_id, exam_id, semester, published_only)
        renderer = BulletinRenderer(school, snapshot)
        renderer.ranking_page(results)
        for result in results.results:
            renderer.student_page(results, result)
        filename = f"bulletins_classe_{class_id}_{self._scope_slug(results)}.pdf"
        logger.info(f"Class bulletins rendered: class_id={class_id}, students={len(results.results)}")
        return renderer.finish(), filename

    def annual_bulletin(
        self,
        school: School,
        class_id: int,
        student_id: int,
        published_only: bool = False,
    ) -> tuple[bytes, str]:
        """Annual bulletin of one student."""
        snapshot, annual = self.results.compute_annual(school, class_id, published_only)
        result = annual.get(student_id)
        if result is None:
            raise NotFoundError("Student", str(student_id))
        renderer = BulletinRenderer(school, snapshot)
        renderer.annual_page(result)
        return renderer.finish(), f"bulletin_annuel_{result.matricule or student_id}.pdf"

    def _scope_slug(self, results: ClassResults) -> str:
        scope = results.scope
        if scope.is_exam:
            return f"examen_{scope.exam_id}"
        return f"periode_{scope.period}"
