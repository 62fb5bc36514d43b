"""Report composition and single-report exports."""
from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .config import AppConfig
from .export import EXPORT_FORMATS, safe_filename, share_url, write_pdf, write_text, write_xlsx
from .locales import PROGRESS_TAGS, Locale
from .models import Criterion, Report, Teacher, ValidationError, new_id
from .scoring import calculate_total_percentage, rating_percentage
from .store import StoreSnapshot

logger = logging.getLogger("teacheval.report")


def today(config: AppConfig) -> date:
    return datetime.now(tz=config.timezone).date()


def parse_report_date(value: str) -> str:
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError as exc:
        raise ValidationError(f"Invalid date '{value}'; expected YYYY-MM-DD") from exc


def new_report(teacher: Teacher, snapshot: StoreSnapshot, report_date: date) -> Report:
    """Blank report pre-filled with the teacher's most recent school info."""

    school_info = snapshot.latest_school_info(teacher.id) or teacher.default_school_info
    return Report(id=new_id(), teacher_id=teacher.id, date=report_date.isoformat(), school_info=school_info)


def option_label(option: str, locale: Locale) -> str:
    return locale.progress_label(option) if option in PROGRESS_TAGS else option


def answer_display(criterion: Criterion, value: object, locale: Locale) -> str:
    if criterion.type == "rating":
        percentage = rating_percentage(value)
        return f"{percentage:.0f}%" if percentage is not None else locale.label("not_rated")
    if criterion.type == "select":
        if isinstance(value, str) and value:
            return option_label(value, locale)
        return locale.label("not_selected")
    return str(value or "")


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"


def report_text(
    report: Report,
    teacher: Teacher,
    criteria: Sequence[Criterion],
    locale: Locale,
    for_share: bool = False,
) -> str:
    """Plain text rendering; the share variant leaves out school info and notes."""

    label = locale.label
    lines = [
        f"{label('teacher_performance_report')}: {teacher.name}",
        f"{label('report_date')}: {report.date}",
    ]
    if not for_share:
        lines.append(f"{label('school')}: {report.school_info.school or label('not_set')}")
        lines.append(f"{label('subject')}: {report.school_info.subject or label('not_set')}")
        lines.append("")
    lines.append(f"--- {label('evaluation_criteria')} ---")
    for criterion in criteria:
        lines.append(f"{criterion.label}: {answer_display(criterion, report.ratings.get(criterion.id), locale)}")
    lines.append("")
    total = calculate_total_percentage(criteria, report.ratings)
    lines.append(f"{label('total_percentage')}: {format_percentage(total)}")
    if not for_share:
        lines.append("")
        lines.append(f"--- {label('additional_notes')} ---")
        lines.append(f"{label('strategies')}: {report.strategies or label('none')}")
        lines.append(f"{label('aids')}: {report.aids or label('none')}")
        lines.append(f"{label('programs')}: {report.programs or label('none')}")
    return "\n".join(lines) + "\n"


def report_rows(report: Report, teacher: Teacher, criteria: Sequence[Criterion], locale: Locale) -> List[List[object]]:
    label = locale.label
    rows: List[List[object]] = [
        [label("teacher"), teacher.name],
        [label("report_date"), report.date],
        [label("school"), report.school_info.school],
        [label("subject"), report.school_info.subject],
        [label("grade"), report.school_info.grade],
        [label("branch"), locale.branch_label(report.school_info.branch)],
        [],
        [label("criterion"), label("rating")],
    ]
    for criterion in criteria:
        rows.append([criterion.label, answer_display(criterion, report.ratings.get(criterion.id), locale)])
    rows.append([])
    rows.append([label("total_percentage"), format_percentage(calculate_total_percentage(criteria, report.ratings))])
    rows.append([])
    rows.append([label("strategies"), report.strategies])
    rows.append([label("aids"), report.aids])
    rows.append([label("programs"), report.programs])
    return rows


def report_filename(report: Report, teacher: Teacher, fmt: str) -> str:
    return safe_filename(f"report-{teacher.name}-{report.date}") + f".{fmt}"


def export_report(
    report: Report,
    snapshot: StoreSnapshot,
    config: AppConfig,
    locale: Locale,
    fmt: str = "txt",
    output_path: Optional[str | Path] = None,
) -> Path:
    """Write one report in ``fmt`` to the report directory and return the file path."""

    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'")
    teacher = snapshot.get_teacher(report.teacher_id)
    criteria = snapshot.criteria
    report_dir = Path(output_path) if output_path else config.report_path
    target = report_dir / report_filename(report, teacher, fmt)

    if fmt == "txt":
        return write_text(report_text(report, teacher, criteria, locale), target)
    if fmt == "xlsx":
        return write_xlsx(report_rows(report, teacher, criteria, locale), target, sheet_name="Report")
    return write_pdf(
        f"{locale.label('teacher_performance_report')}: {teacher.name}",
        report_rows(report, teacher, criteria, locale)[1:],
        target,
        font_path=config.pdf_font_path,
        rtl=locale.direction == "rtl",
    )


def report_share_url(report: Report, snapshot: StoreSnapshot, config: AppConfig, locale: Locale) -> str:
    teacher = snapshot.get_teacher(report.teacher_id)
    return share_url(report_text(report, teacher, snapshot.criteria, locale, for_share=True), config.share_base_url)


__all__ = [
    "answer_display",
    "export_report",
    "format_percentage",
    "new_report",
    "option_label",
    "parse_report_date",
    "report_filename",
    "report_rows",
    "report_share_url",
    "report_text",
    "today",
]
