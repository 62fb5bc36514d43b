"""Tests for the aggregated dashboard."""

from datetime import date

import pandas as pd
import pytest

from teacheval.dashboard import build_dashboard, dashboard_text, export_dashboard
from teacheval.models import RecordNotFound, Report, Teacher, ValidationError


@pytest.fixture
def snapshot(store):
    store.upsert_teacher(Teacher(id="t1", name="Jane"))
    store.upsert_teacher(Teacher(id="t2", name="Omar"))
    store.upsert_report(Report(id="r1", teacher_id="t1", date="2024-01-01", ratings={"c1": 4}))
    store.upsert_report(Report(id="r2", teacher_id="t1", date="2024-02-01", ratings={"c1": 2, "c2": "delayed"}))
    return store.upsert_report(Report(id="r3", teacher_id="t2", date="2024-03-01", ratings={"c2": "advanced"}))


def test_all_reports_mean_of_totals(snapshot, locale):
    dashboard = build_dashboard(snapshot, locale)
    # totals: 100, 37.5, 100
    assert [row.report_id for row in dashboard.rows] == ["r3", "r2", "r1"]
    assert dashboard.average == pytest.approx(237.5 / 3)
    assert dashboard.rows[1].value == "37.5%"
    assert dashboard.value_header == "Total Percentage"


def test_teacher_filter(snapshot, locale):
    dashboard = build_dashboard(snapshot, locale, "teacher", "t1")
    assert {row.teacher_name for row in dashboard.rows} == {"Jane"}
    assert dashboard.average == pytest.approx(68.75)
    assert dashboard.average_text == "68.8%"


def test_criterion_filter(snapshot, locale):
    dashboard = build_dashboard(snapshot, locale, "criterion", "c2")
    values = {row.report_id: row.value for row in dashboard.rows}
    assert values == {"r1": "Not rated", "r2": "25% (Delayed)", "r3": "100% (Advanced)"}
    assert dashboard.average == 62.5
    assert dashboard.value_header == "Curriculum progress"


def test_empty_selection_means_all(snapshot, locale):
    assert len(build_dashboard(snapshot, locale, "teacher", "").rows) == 3


def test_unknown_teacher_name(store, locale):
    store.upsert_teacher(Teacher(id="t1", name="Jane"))
    snapshot = store.upsert_report(Report(id="r1", teacher_id="t1", date="2024-01-01"))
    snapshot = snapshot.__class__(teachers=(), reports=snapshot.reports, criteria=snapshot.criteria)
    assert build_dashboard(snapshot, locale).rows[0].teacher_name == "Unknown teacher"


def test_invalid_filters(snapshot, locale):
    with pytest.raises(ValueError):
        build_dashboard(snapshot, locale, "school")
    with pytest.raises(RecordNotFound):
        build_dashboard(snapshot, locale, "teacher", "ghost")
    with pytest.raises(ValidationError):
        build_dashboard(snapshot, locale, "criterion", "c3")


def test_dashboard_text(snapshot, locale):
    dashboard = build_dashboard(snapshot, locale, "teacher", "t2")
    text = dashboard_text(dashboard, locale, date(2024, 4, 1))
    assert "Export Date: 2024-04-01" in text
    assert "Teacher: Omar" in text
    assert text.rstrip().endswith("Average Percentage: 100.0%")
    assert "Export Date" not in dashboard_text(dashboard, locale, date(2024, 4, 1), for_share=True)


def test_export_xlsx_and_pdf(snapshot, config, locale):
    dashboard = build_dashboard(snapshot, locale)
    xlsx = export_dashboard(dashboard, config, locale, date(2024, 4, 1), fmt="xlsx")
    assert xlsx.name == "aggregated-reports-2024-04-01.xlsx"
    frame = pd.read_excel(xlsx)
    assert list(frame.columns) == ["Teacher", "Date", "Total Percentage"]
    assert frame.iloc[-1].tolist()[0] == "Average Percentage"

    pdf = export_dashboard(dashboard, config, locale, date(2024, 4, 1), fmt="pdf")
    assert pdf.read_bytes().startswith(b"%PDF")
