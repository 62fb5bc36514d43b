"""Record types for teachers, reports and evaluation criteria."""
from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from .locales import BRANCHES, PROGRESS_TAGS, Locale

CRITERION_TYPES: Sequence[str] = ("rating", "select", "text")

Answer = Union[int, str]


class ValidationError(Exception):
    """Raised when a record fails validation rules."""


class RecordNotFound(KeyError):
    """Raised when an id does not match any stored record."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "record not found"


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Criterion:
    id: str
    label: str
    type: str
    options: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.type not in CRITERION_TYPES:
            raise ValidationError(
                f"Invalid criterion type '{self.type}'; expected one of {', '.join(CRITERION_TYPES)}"
            )
        if not self.label.strip():
            raise ValidationError("Criterion label must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "label": self.label, "type": self.type}
        if self.type == "select":
            data["options"] = list(self.options)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Criterion":
        try:
            return cls(
                id=str(data["id"]),
                label=str(data["label"]),
                type=str(data["type"]),
                options=tuple(str(opt) for opt in data.get("options") or ()),
            )
        except KeyError as exc:
            raise ValidationError(f"Criterion record missing field {exc}") from exc


@dataclass(frozen=True)
class SchoolInfo:
    subject: str = ""
    grade: str = ""
    school: str = ""
    branch: str = "main"

    def __post_init__(self) -> None:
        if self.branch not in BRANCHES:
            raise ValidationError(f"Invalid branch '{self.branch}'")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SchoolInfo":
        data = data or {}
        return cls(
            subject=str(data.get("subject") or ""),
            grade=str(data.get("grade") or ""),
            school=str(data.get("school") or ""),
            branch=str(data.get("branch") or "main"),
        )


@dataclass(frozen=True)
class Teacher:
    id: str
    name: str
    subject: str = ""
    grade: str = ""
    school: str = ""
    branch: str = "main"

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValidationError("Teacher name must not be empty")
        if self.branch not in BRANCHES:
            raise ValidationError(f"Invalid branch '{self.branch}'")

    @property
    def default_school_info(self) -> SchoolInfo:
        return SchoolInfo(subject=self.subject, grade=self.grade, school=self.school, branch=self.branch)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Teacher":
        try:
            return cls(
                id=str(data["id"]),
                name=str(data["name"]),
                subject=str(data.get("subject") or ""),
                grade=str(data.get("grade") or ""),
                school=str(data.get("school") or ""),
                branch=str(data.get("branch") or "main"),
            )
        except KeyError as exc:
            raise ValidationError(f"Teacher record missing field {exc}") from exc


@dataclass(frozen=True)
class Report:
    id: str
    teacher_id: str
    date: str
    school_info: SchoolInfo = field(default_factory=SchoolInfo)
    ratings: Mapping[str, Answer] = field(default_factory=dict)
    strategies: str = ""
    aids: str = ""
    programs: str = ""
    total_percentage: float = 0.0

    def with_ratings(self, ratings: Mapping[str, Answer]) -> "Report":
        return replace(self, ratings=dict(ratings))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "teacherId": self.teacher_id,
            "date": self.date,
            "schoolInfo": asdict(self.school_info),
            "ratings": dict(self.ratings),
            "strategies": self.strategies,
            "aids": self.aids,
            "programs": self.programs,
            "totalPercentage": self.total_percentage,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Report":
        try:
            return cls(
                id=str(data["id"]),
                teacher_id=str(data["teacherId"]),
                date=str(data["date"]),
                school_info=SchoolInfo.from_dict(data.get("schoolInfo")),
                ratings=dict(data.get("ratings") or {}),
                strategies=str(data.get("strategies") or ""),
                aids=str(data.get("aids") or ""),
                programs=str(data.get("programs") or ""),
                total_percentage=float(data.get("totalPercentage") or 0.0),
            )
        except KeyError as exc:
            raise ValidationError(f"Report record missing field {exc}") from exc


def make_criterion(label: str, type: str, options: Union[str, Sequence[str], None] = None) -> Criterion:
    """Create a criterion with a fresh id.

    ``options`` may be a comma separated string as typed into a form.
    """

    if isinstance(options, str):
        parsed = [opt.strip() for opt in options.split(",")]
    else:
        parsed = [str(opt).strip() for opt in options or ()]
    parsed = [opt for opt in parsed if opt]
    if type == "select" and not parsed:
        parsed = list(PROGRESS_TAGS)
    return Criterion(id=new_id(), label=label.strip(), type=type, options=tuple(parsed) if type == "select" else ())


def default_criteria(locale: Locale) -> list[Criterion]:
    """Criteria a fresh store starts with."""

    types = {"c2": "select", "c3": "text"}
    return [
        Criterion(
            id=cid,
            label=locale.default_criterion_label(cid),
            type=types.get(cid, "rating"),
            options=tuple(PROGRESS_TAGS) if types.get(cid) == "select" else (),
        )
        for cid in ("c1", "c2", "c3", "c4", "c5", "c6", "c7", "c8")
    ]


__all__ = [
    "Answer",
    "CRITERION_TYPES",
    "Criterion",
    "RecordNotFound",
    "Report",
    "SchoolInfo",
    "Teacher",
    "ValidationError",
    "default_criteria",
    "make_criterion",
    "new_id",
]
