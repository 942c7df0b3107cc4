# schoolhub/services/report_pdf.py - Report card layout with reportlab
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from typing import Dict, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer


@dataclass
class SubjectLine:
    subject: str
    scores: Dict[str, float]  # exam type name -> score
    comment: Optional[str] = None

    @property
    def average(self) -> Optional[float]:
        if not self.scores:
            return None
        return round(sum(self.scores.values()) / len(self.scores), 1)


@dataclass
class ReportCardContext:
    school_name: str
    student_name: str
    student_number: str
    grade_name: str
    section: str
    curriculum: str
    academic_year: int
    term: int
    exam_types: List[str]
    lines: List[SubjectLine] = field(default_factory=list)
    overall_average: Optional[float] = None
    class_size: int = 0
    position: Optional[int] = None


def _fmt(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.1f}"


def render_report_card(ctx: ReportCardContext) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Report card {ctx.student_number}")
    styles = getSampleStyleSheet()
    elements = []

    elements.append(Paragraph(f"<b>{escape(ctx.school_name)}</b>", styles["Title"]))
    elements.append(Paragraph("STUDENT REPORT CARD", styles["Heading2"]))
    elements.append(Spacer(1, 12))

    info_html = f"""
    <b>Name:</b> {escape(ctx.student_name)}<br/>
    <b>Student No:</b> {escape(ctx.student_number)}<br/>
    <b>Grade:</b> {escape(ctx.grade_name)} ({ctx.section}, {ctx.curriculum})<br/>
    <b>Academic Year:</b> {ctx.academic_year} &nbsp; <b>Term:</b> {ctx.term}<br/>
    """
    elements.append(Paragraph(info_html, styles["Normal"]))
    elements.append(Spacer(1, 16))

    header = ["Subject"] + list(ctx.exam_types) + ["Average"]
    data = [header]
    for line in ctx.lines:
        row = [line.subject]
        row += [_fmt(line.scores.get(name)) for name in ctx.exam_types]
        row.append(_fmt(line.average))
        data.append(row)
    if len(data) == 1:
        data.append(["No scores recorded"] + [""] * (len(header) - 1))

    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
        ("ALIGN", (1, 0), (-1, -1), "CENTER"),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
        ("BACKGROUND", (0, 1), (-1, -1), colors.beige),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
    ]))
    elements.append(table)
    elements.append(Spacer(1, 16))

    position = f"{ctx.position} of {ctx.class_size}" if ctx.position else "Not ranked"
    summary_html = f"""
    <b>Overall Average:</b> {_fmt(ctx.overall_average)}<br/>
    <b>Class Size:</b> {ctx.class_size}<br/>
    <b>Position in Class:</b> {position}<br/>
    """
    elements.append(Paragraph(summary_html, styles["Normal"]))

    comments = [f"<b>{escape(line.subject)}:</b> {escape(line.comment)}" for line in ctx.lines if line.comment]
    if comments:
        elements.append(Spacer(1, 12))
        elements.append(Paragraph("<b>Teacher Comments</b>", styles["Heading4"]))
        elements.append(Paragraph("<br/>".join(comments), styles["Normal"]))

    elements.append(Spacer(1, 20))
    elements.append(Paragraph(
        f"Generated {datetime.utcnow():%Y-%m-%d %H:%M} UTC", styles["Italic"]
    ))

    doc.build(elements)
    return buffer.getvalue()
