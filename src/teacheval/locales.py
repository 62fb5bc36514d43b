"""Display strings for the supported languages.

All user-facing text goes through :func:`get_locale`. Progress answers are
stored as stable tags (see :data:`PROGRESS_TAGS`); only their labels live here.
"""
from __future__ import annotations

from typing import Dict, Mapping, Sequence

PROGRESS_TAGS: Sequence[str] = ("advanced", "on_track", "delayed")
BRANCHES: Sequence[str] = ("main", "boys", "girls")

TRANSLATIONS: Dict[str, Dict[str, object]] = {
    "ar": {
        "title": "رفيقك في كتابة التقارير",
        "progress": {"advanced": "متقدم", "on_track": "مطابق", "delayed": "متأخر"},
        "branches": {"main": "الرئيسي", "boys": "بنين", "girls": "بنات"},
        "criteria": {
            "c1": "حضور اللقاء التطويري",
            "c2": "السير في المنهج",
            "c3": "عنوان آخر درس",
            "c4": "تسليم الأسئلة الأسبوعية",
            "c5": "اختبار الطلاب",
            "c6": "تنفيذ البرامج الخاصة بالمادة",
            "c7": "تنفيذ الاستراتيجيات",
            "c8": "استخدام وسائل تعليمية",
        },
        "labels": {
            "teacher_performance_report": "تقرير أداء المعلم",
            "report_date": "تاريخ التقرير",
            "export_date": "تاريخ التصدير",
            "school": "اسم المدرسة",
            "subject": "المادة",
            "grade": "الصف",
            "branch": "الفرع",
            "evaluation_criteria": "معايير التقييم",
            "additional_notes": "ملاحظات إضافية",
            "strategies": "الاستراتيجيات المنفذة",
            "aids": "الوسائل التعليمية المستخدمة",
            "programs": "البرامج المنفذة",
            "total_percentage": "النسبة الإجمالية",
            "not_set": "غير محدد",
            "not_rated": "لم يقيم",
            "not_selected": "لم يحدد",
            "none": "لا يوجد",
            "teacher": "المعلم",
            "date": "التاريخ",
            "criterion": "المعيار",
            "rating": "التقييم",
            "dashboard_title": "لوحة التقارير المجمعة",
            "average_total": "متوسط النسبة",
            "unknown_teacher": "معلم غير معروف",
            "no_reports": "لا توجد تقارير",
            "teachers": "إدارة المعلمين والتقارير",
        },
    },
    "en": {
        "title": "Your Report Writing Companion",
        "progress": {"advanced": "Advanced", "on_track": "On Track", "delayed": "Delayed"},
        "branches": {"main": "Main", "boys": "Boys", "girls": "Girls"},
        "criteria": {
            "c1": "Attending the development meeting",
            "c2": "Curriculum progress",
            "c3": "Title of the last lesson",
            "c4": "Submitting weekly questions",
            "c5": "Student testing",
            "c6": "Implementing subject programs",
            "c7": "Implementing strategies",
            "c8": "Using teaching aids",
        },
        "labels": {
            "teacher_performance_report": "Teacher Performance Report",
            "report_date": "Report Date",
            "export_date": "Export Date",
            "school": "School Name",
            "subject": "Subject",
            "grade": "Grade",
            "branch": "Branch",
            "evaluation_criteria": "Evaluation Criteria",
            "additional_notes": "Additional Notes",
            "strategies": "Implemented Strategies",
            "aids": "Teaching Aids Used",
            "programs": "Implemented Programs",
            "total_percentage": "Total Percentage",
            "not_set": "Not set",
            "not_rated": "Not rated",
            "not_selected": "Not selected",
            "none": "None",
            "teacher": "Teacher",
            "date": "Date",
            "criterion": "Criterion",
            "rating": "Rating",
            "dashboard_title": "Aggregated Reports Dashboard",
            "average_total": "Average Percentage",
            "unknown_teacher": "Unknown teacher",
            "no_reports": "No reports",
            "teachers": "Teachers & Reports",
        },
    },
}


class Locale:
    """Lookup helper bound to one language."""

    def __init__(self, language: str) -> None:
        if language not in TRANSLATIONS:
            raise ValueError(f"Unsupported language '{language}'")
        self.language = language
        self._table = TRANSLATIONS[language]

    @property
    def direction(self) -> str:
        return "rtl" if self.language == "ar" else "ltr"

    @property
    def title(self) -> str:
        return str(self._table["title"])

    def label(self, key: str) -> str:
        labels: Mapping[str, str] = self._table["labels"]  # type: ignore[assignment]
        return labels.get(key, key)

    def progress_label(self, tag: str) -> str:
        progress: Mapping[str, str] = self._table["progress"]  # type: ignore[assignment]
        return progress.get(tag, tag)

    def branch_label(self, branch: str) -> str:
        branches: Mapping[str, str] = self._table["branches"]  # type: ignore[assignment]
        return branches.get(branch, branch)

    def default_criterion_label(self, criterion_id: str) -> str:
        criteria: Mapping[str, str] = self._table["criteria"]  # type: ignore[assignment]
        return criteria[criterion_id]


def get_locale(language: str) -> Locale:
    return Locale(language)


def progress_tag_for_label(label: str) -> str | None:
    """Return the progress tag whose display label (in any language) is ``label``."""

    text = label.strip()
    for table in TRANSLATIONS.values():
        progress: Mapping[str, str] = table["progress"]  # type: ignore[assignment]
        for tag, display in progress.items():
            if display == text:
                return tag
    return None


__all__ = [
    "BRANCHES",
    "Locale",
    "PROGRESS_TAGS",
    "TRANSLATIONS",
    "get_locale",
    "progress_tag_for_label",
]
