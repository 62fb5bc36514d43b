"""JSON-file repository for teachers, reports and criteria."""
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Tuple

from filelock import FileLock, Timeout

from .config import AppConfig
from .locales import get_locale
from .models import (
    Criterion,
    RecordNotFound,
    Report,
    SchoolInfo,
    Teacher,
    ValidationError,
    default_criteria,
    new_id,
)
from .scoring import calculate_total_percentage, validate_ratings

TEACHERS_KEY = "teachers"
REPORTS_KEY = "reports"
CRITERIA_KEY = "criteria"

logger = logging.getLogger("teacheval.store")


@dataclass(frozen=True)
class StoreSnapshot:
    """Immutable view of all three collections."""

    teachers: Tuple[Teacher, ...]
    reports: Tuple[Report, ...]
    criteria: Tuple[Criterion, ...]

    def get_teacher(self, teacher_id: str) -> Teacher:
        for teacher in self.teachers:
            if teacher.id == teacher_id:
                return teacher
        raise RecordNotFound(f"Teacher not found: {teacher_id}")

    def get_report(self, report_id: str) -> Report:
        for report in self.reports:
            if report.id == report_id:
                return report
        raise RecordNotFound(f"Report not found: {report_id}")

    def get_criterion(self, criterion_id: str) -> Criterion:
        for criterion in self.criteria:
            if criterion.id == criterion_id:
                return criterion
        raise RecordNotFound(f"Criterion not found: {criterion_id}")

    def find_teacher(self, teacher_id: str) -> Optional[Teacher]:
        return next((t for t in self.teachers if t.id == teacher_id), None)

    def reports_for(self, teacher_id: str) -> list[Report]:
        """Reports of one teacher, newest first."""
        own = [report for report in self.reports if report.teacher_id == teacher_id]
        return sorted(own, key=lambda report: report.date, reverse=True)

    def latest_school_info(self, teacher_id: str) -> Optional[SchoolInfo]:
        own = self.reports_for(teacher_id)
        return own[0].school_info if own else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            TEACHERS_KEY: [teacher.to_dict() for teacher in self.teachers],
            REPORTS_KEY: [report.to_dict() for report in self.reports],
            CRITERIA_KEY: [criterion.to_dict() for criterion in self.criteria],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoreSnapshot":
        return cls(
            teachers=tuple(Teacher.from_dict(item) for item in data.get(TEACHERS_KEY) or ()),
            reports=tuple(Report.from_dict(item) for item in data.get(REPORTS_KEY) or ()),
            criteria=tuple(Criterion.from_dict(item) for item in data.get(CRITERIA_KEY) or ()),
        )


def _replace_or_append(items: Sequence[Any], item: Any) -> Tuple[Any, ...]:
    updated = list(items)
    for index, existing in enumerate(updated):
        if existing.id == item.id:
            updated[index] = item
            return tuple(updated)
    updated.append(item)
    return tuple(updated)


class EvaluationStore:
    """Persists the collections to one JSON document guarded by a file lock.

    Every mutating call reads the current file, applies the change and writes
    it back while holding ``<path>.lock``; the updated snapshot is returned.
    """

    def __init__(
        self,
        path: str | Path,
        lock_timeout: float = 30.0,
        language: str = "ar",
        initial_teachers: Sequence[str] = (),
        purge_deleted_criteria: bool = True,
    ) -> None:
        self.path = Path(path)
        self.lock_timeout = lock_timeout
        self.language = language
        self.initial_teachers = tuple(initial_teachers)
        self.purge_deleted_criteria = purge_deleted_criteria

    @classmethod
    def from_config(cls, config: AppConfig) -> "EvaluationStore":
        return cls(
            config.data_path,
            lock_timeout=config.lock_timeout,
            language=config.language,
            initial_teachers=config.initial_teachers,
            purge_deleted_criteria=config.purge_deleted_criteria,
        )

    @contextmanager
    def _locked(self) -> Iterator[None]:
        lock = FileLock(str(self.path) + ".lock", timeout=self.lock_timeout)
        try:
            with lock:
                yield
        except Timeout as exc:
            raise TimeoutError(
                f"Unable to acquire lock for data file {self.path} within {self.lock_timeout} seconds"
            ) from exc

    def _seed(self) -> StoreSnapshot:
        teachers = tuple(Teacher(id=new_id(), name=name) for name in self.initial_teachers)
        criteria = tuple(default_criteria(get_locale(self.language)))
        logger.info("Seeding new data file %s with %d teachers", self.path, len(teachers))
        return StoreSnapshot(teachers=teachers, reports=(), criteria=criteria)

    def _read(self) -> StoreSnapshot:
        if not self.path.exists():
            snapshot = self._seed()
            self._write(snapshot)
            return snapshot
        text = self.path.read_text(encoding="utf-8")
        try:
            data = json.loads(text or "{}")
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Data file {self.path} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise ValidationError("Data file root must be a mapping")
        return StoreSnapshot.from_dict(data)

    def _write(self, snapshot: StoreSnapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(snapshot.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    def _mutate(self, change: Callable[[StoreSnapshot], StoreSnapshot]) -> StoreSnapshot:
        with self._locked():
            updated = change(self._read())
            self._write(updated)
        return updated

    def snapshot(self) -> StoreSnapshot:
        with self._locked():
            return self._read()

    # teachers

    def upsert_teacher(self, teacher: Teacher) -> StoreSnapshot:
        def change(current: StoreSnapshot) -> StoreSnapshot:
            return replace(current, teachers=_replace_or_append(current.teachers, teacher))

        snapshot = self._mutate(change)
        logger.info("Teacher saved: %s (%s)", teacher.name, teacher.id)
        return snapshot

    def delete_teacher(self, teacher_id: str) -> StoreSnapshot:
        removed: list[Report] = []

        def change(current: StoreSnapshot) -> StoreSnapshot:
            current.get_teacher(teacher_id)
            removed.extend(r for r in current.reports if r.teacher_id == teacher_id)
            return replace(
                current,
                teachers=tuple(t for t in current.teachers if t.id != teacher_id),
                reports=tuple(r for r in current.reports if r.teacher_id != teacher_id),
            )

        snapshot = self._mutate(change)
        logger.info("Teacher %s deleted together with %d reports", teacher_id, len(removed))
        return snapshot

    # criteria

    def upsert_criterion(self, criterion: Criterion) -> StoreSnapshot:
        def change(current: StoreSnapshot) -> StoreSnapshot:
            return replace(current, criteria=_replace_or_append(current.criteria, criterion))

        snapshot = self._mutate(change)
        logger.info("Criterion saved: %s (%s)", criterion.label, criterion.id)
        return snapshot

    def delete_criterion(self, criterion_id: str) -> StoreSnapshot:
        purge = self.purge_deleted_criteria

        def change(current: StoreSnapshot) -> StoreSnapshot:
            current.get_criterion(criterion_id)
            reports = current.reports
            if purge:
                # stored totals stay as they were at save time
                reports = tuple(
                    report.with_ratings({k: v for k, v in report.ratings.items() if k != criterion_id})
                    if criterion_id in report.ratings
                    else report
                    for report in reports
                )
            return replace(
                current,
                criteria=tuple(c for c in current.criteria if c.id != criterion_id),
                reports=reports,
            )

        snapshot = self._mutate(change)
        logger.info("Criterion %s deleted (ratings purged: %s)", criterion_id, purge)
        return snapshot

    # reports

    def upsert_report(self, report: Report) -> StoreSnapshot:
        """Validate ``report``, stamp its total against the current criteria and store it.

        Only answers that are new or differ from the stored report are validated,
        so answers left over from deleted criteria or renamed options do not
        block later edits.
        """

        saved: list[Report] = []

        def change(current: StoreSnapshot) -> StoreSnapshot:
            current.get_teacher(report.teacher_id)
            stored = next((r.ratings for r in current.reports if r.id == report.id), {})
            changed = {k: v for k, v in report.ratings.items() if k not in stored or stored[k] != v}
            validate_ratings(current.criteria, changed)
            stamped = replace(
                report,
                ratings=dict(report.ratings),
                total_percentage=calculate_total_percentage(current.criteria, report.ratings),
            )
            saved.append(stamped)
            return replace(current, reports=_replace_or_append(current.reports, stamped))

        snapshot = self._mutate(change)
        logger.info(
            "Report %s saved for teacher %s: %.1f%%",
            saved[0].id,
            saved[0].teacher_id,
            saved[0].total_percentage,
        )
        return snapshot

    def delete_report(self, report_id: str) -> StoreSnapshot:
        def change(current: StoreSnapshot) -> StoreSnapshot:
            current.get_report(report_id)
            return replace(current, reports=tuple(r for r in current.reports if r.id != report_id))

        snapshot = self._mutate(change)
        logger.info("Report %s deleted", report_id)
        return snapshot


__all__ = ["CRITERIA_KEY", "EvaluationStore", "REPORTS_KEY", "StoreSnapshot", "TEACHERS_KEY"]
