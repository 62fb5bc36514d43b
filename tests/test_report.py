"""Tests for report composition and exports."""

from datetime import date
from urllib.parse import unquote

import pandas as pd
import pytest

from teacheval.models import Report, SchoolInfo, Teacher, ValidationError
from teacheval.report import (
    answer_display,
    export_report,
    new_report,
    parse_report_date,
    report_share_url,
    report_text,
)


@pytest.fixture
def saved(store):
    teacher = Teacher(id="t1", name="Jane Doe", school="North", subject="Math", grade="5")
    store.upsert_teacher(teacher)
    report = Report(
        id="r1",
        teacher_id=teacher.id,
        date="2024-05-01",
        school_info=teacher.default_school_info,
        ratings={"c1": 2, "c2": "on_track", "c3": "Fractions"},
        strategies="Group work",
    )
    snapshot = store.upsert_report(report)
    return snapshot, snapshot.get_report("r1"), teacher


class TestNewReport:
    def test_prefills_from_teacher_defaults(self, store):
        teacher = Teacher(id="t1", name="Jane", school="North", branch="girls")
        store.upsert_teacher(teacher)
        report = new_report(teacher, store.snapshot(), date(2024, 6, 1))
        assert report.date == "2024-06-01"
        assert report.school_info == SchoolInfo(school="North", branch="girls")
        assert report.ratings == {}

    def test_prefers_latest_report_school_info(self, saved, store):
        snapshot, report, teacher = saved
        store.upsert_report(
            Report(id="r2", teacher_id=teacher.id, date="2024-09-01", school_info=SchoolInfo(school="South"))
        )
        created = new_report(teacher, store.snapshot(), date(2024, 10, 1))
        assert created.school_info.school == "South"


def test_parse_report_date():
    assert parse_report_date(" 2024-02-03 ") == "2024-02-03"
    with pytest.raises(ValidationError):
        parse_report_date("03/02/2024")


def test_answer_display(locale, rating_criterion, select_criterion):
    assert answer_display(rating_criterion, 3, locale) == "75%"
    assert answer_display(rating_criterion, None, locale) == "Not rated"
    assert answer_display(select_criterion, "", locale) == "Not selected"


class TestReportText:
    def test_full_layout(self, saved, locale):
        snapshot, report, teacher = saved
        text = report_text(report, teacher, snapshot.criteria, locale)
        assert text.startswith("Teacher Performance Report: Jane Doe\nReport Date: 2024-05-01\n")
        assert "School Name: North" in text
        assert "Attending the development meeting: 50%" in text
        assert "Curriculum progress: On Track" in text
        assert "Title of the last lesson: Fractions" in text
        assert "Student testing: Not rated" in text
        assert "Total Percentage: 62.5%" in text
        assert "Implemented Strategies: Group work" in text
        assert "Teaching Aids Used: None" in text

    def test_share_variant_is_short(self, saved, locale):
        snapshot, report, teacher = saved
        text = report_text(report, teacher, snapshot.criteria, locale, for_share=True)
        assert "School Name" not in text
        assert "Additional Notes" not in text
        assert "Total Percentage: 62.5%" in text

    def test_share_url(self, saved, config, locale):
        snapshot, report, _ = saved
        url = report_share_url(report, snapshot, config, locale)
        assert url.startswith("https://wa.me/?text=")
        assert "Total Percentage: 62.5%" in unquote(url.split("text=", 1)[1])


class TestExportReport:
    def test_txt(self, saved, config, locale):
        snapshot, report, _ = saved
        path = export_report(report, snapshot, config, locale, fmt="txt")
        assert path == config.report_path / "report-Jane Doe-2024-05-01.txt"
        assert "62.5%" in path.read_text(encoding="utf-8")

    def test_xlsx(self, saved, config, locale):
        snapshot, report, _ = saved
        path = export_report(report, snapshot, config, locale, fmt="xlsx")
        frame = pd.read_excel(path, header=None)
        values = frame.fillna("").astype(str).values.tolist()
        assert ["Teacher", "Jane Doe"] in values
        assert ["Total Percentage", "62.5%"] in values

    def test_pdf(self, saved, config, locale, tmp_path):
        snapshot, report, _ = saved
        path = export_report(report, snapshot, config, locale, fmt="pdf", output_path=tmp_path / "out")
        assert path.parent == tmp_path / "out"
        assert path.read_bytes().startswith(b"%PDF")

    def test_unknown_format(self, saved, config, locale):
        snapshot, report, _ = saved
        with pytest.raises(ValueError):
            export_report(report, snapshot, config, locale, fmt="docx")
