"""Aggregated view over stored reports."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .config import AppConfig
from .export import EXPORT_FORMATS, share_url, write_pdf, write_text, write_xlsx
from .locales import Locale
from .models import Criterion, Report, ValidationError
from .report import format_percentage, option_label
from .scoring import average_percentage, criterion_average, criterion_percentage
from .store import StoreSnapshot

FILTER_TYPES: Sequence[str] = ("all", "teacher", "criterion")

logger = logging.getLogger("teacheval.dashboard")


@dataclass(frozen=True)
class DashboardRow:
    report_id: str
    teacher_name: str
    date: str
    value: str


@dataclass(frozen=True)
class Dashboard:
    filter_type: str
    selected_id: Optional[str]
    value_header: str
    rows: Tuple[DashboardRow, ...]
    average: float

    @property
    def average_text(self) -> str:
        return format_percentage(self.average)


def criterion_display(criterion: Criterion, value: object, locale: Locale) -> str:
    if criterion.type == "text":
        return str(value) if isinstance(value, str) and value else locale.label("not_rated")
    percentage = criterion_percentage(criterion, value)
    if percentage is None:
        return locale.label("not_rated")
    if criterion.type == "select":
        return f"{percentage:.0f}% ({option_label(str(value), locale)})"
    return f"{percentage:.0f}%"


def build_dashboard(
    snapshot: StoreSnapshot,
    locale: Locale,
    filter_type: str = "all",
    selected_id: Optional[str] = None,
) -> Dashboard:
    """Filter reports and compute the summary average.

    ``teacher`` narrows the rows to one teacher; ``criterion`` keeps every
    report but shows and averages only the selected criterion.
    """

    if filter_type not in FILTER_TYPES:
        raise ValueError(f"filter_type must be one of {', '.join(FILTER_TYPES)}")
    selected_id = selected_id or None

    reports: List[Report] = sorted(snapshot.reports, key=lambda report: report.date, reverse=True)
    criterion: Optional[Criterion] = None
    if filter_type == "teacher" and selected_id:
        snapshot.get_teacher(selected_id)
        reports = [report for report in reports if report.teacher_id == selected_id]
    elif filter_type == "criterion" and selected_id:
        criterion = snapshot.get_criterion(selected_id)
        if criterion.type == "text":
            raise ValidationError(f"Criterion '{criterion.label}' is free text and has no score")

    def teacher_name(report: Report) -> str:
        teacher = snapshot.find_teacher(report.teacher_id)
        return teacher.name if teacher else locale.label("unknown_teacher")

    if criterion is not None:
        rows = tuple(
            DashboardRow(report.id, teacher_name(report), report.date,
                         criterion_display(criterion, report.ratings.get(criterion.id), locale))
            for report in reports
        )
        average = criterion_average(criterion, reports)
        header = criterion.label
    else:
        rows = tuple(
            DashboardRow(report.id, teacher_name(report), report.date, format_percentage(report.total_percentage))
            for report in reports
        )
        average = average_percentage(reports)
        header = locale.label("total_percentage")

    return Dashboard(filter_type=filter_type, selected_id=selected_id, value_header=header, rows=rows, average=average)


def dashboard_text(dashboard: Dashboard, locale: Locale, export_date: date, for_share: bool = False) -> str:
    label = locale.label
    lines = [label("dashboard_title")]
    if not for_share:
        lines.append(f"{label('export_date')}: {export_date.isoformat()}")
        lines.append("")
    separator = "-" * 40
    for row in dashboard.rows:
        lines.append(separator)
        lines.append(f"{label('teacher')}: {row.teacher_name}")
        lines.append(f"{label('date')}: {row.date}")
        lines.append(f"{label('rating')}: {row.value}")
    lines.append("")
    lines.append(separator)
    lines.append(f"{label('average_total')}: {dashboard.average_text}")
    return "\n".join(lines) + "\n"


def export_dashboard(
    dashboard: Dashboard,
    config: AppConfig,
    locale: Locale,
    export_date: date,
    fmt: str = "txt",
    output_path: Optional[str | Path] = None,
) -> Path:
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'")
    report_dir = Path(output_path) if output_path else config.report_path
    target = report_dir / f"aggregated-reports-{export_date.isoformat()}.{fmt}"

    if fmt == "txt":
        return write_text(dashboard_text(dashboard, locale, export_date), target)

    header = [locale.label("teacher"), locale.label("date"), dashboard.value_header]
    rows: List[List[object]] = [[row.teacher_name, row.date, row.value] for row in dashboard.rows]
    if fmt == "xlsx":
        rows.append([])
        rows.append([locale.label("average_total"), "", dashboard.average_text])
        return write_xlsx(rows, target, sheet_name="Aggregated Reports", header=header)
    rows.append([locale.label("average_total"), "", dashboard.average_text])
    return write_pdf(
        locale.label("dashboard_title"),
        rows,
        target,
        header=header,
        subtitle=f"{locale.label('export_date')}: {export_date.isoformat()}",
        font_path=config.pdf_font_path,
        rtl=locale.direction == "rtl",
    )


def dashboard_share_url(dashboard: Dashboard, config: AppConfig, locale: Locale, export_date: date) -> str:
    return share_url(dashboard_text(dashboard, locale, export_date, for_share=True), config.share_base_url)


__all__ = [
    "Dashboard",
    "DashboardRow",
    "FILTER_TYPES",
    "build_dashboard",
    "criterion_display",
    "dashboard_share_url",
    "dashboard_text",
    "export_dashboard",
]
