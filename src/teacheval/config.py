"""Configuration loading utilities for teacheval."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Mapping, MutableMapping, Optional, Sequence

import yaml

LANGUAGES: Sequence[str] = ("ar", "en")

DEFAULT_CONFIG = {
    "data_path": "data/teacheval.json",
    "report_path": "reports",
    "log_path": "logs/teacheval.log",
    "log_level": "INFO",
    "language": "ar",
    "timezone": "Asia/Aden",
    "lock_timeout": 30,
    "purge_deleted_criteria": True,
    "initial_teachers": [],
    "pdf_font_path": None,
    "share_base_url": "https://wa.me/",
}


@dataclass(frozen=True)
class AppConfig:
    """Typed configuration container with default fallbacks."""

    data_path: Path
    report_path: Path
    log_path: Path
    log_level: str
    language: str
    timezone: tzinfo
    lock_timeout: float = 30.0
    purge_deleted_criteria: bool = True
    initial_teachers: Sequence[str] = ()
    pdf_font_path: Optional[Path] = None
    share_base_url: str = "https://wa.me/"

    extra: Mapping[str, object] = field(default_factory=dict)


def _parse_timezone(name: str) -> tzinfo:
    try:
        from zoneinfo import ZoneInfo

        return ZoneInfo(name)
    except Exception as exc:  # pragma: no cover - ZoneInfo may be missing
        raise ValueError(f"Unknown timezone '{name}'") from exc


def _load_file(path: Path) -> MutableMapping[str, object]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or {}
    elif path.suffix.lower() == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config format: {path.suffix}")
    if not isinstance(data, MutableMapping):
        raise ValueError("Config root must be a mapping")
    return data


def load_config(path: Optional[str | Path] = None, overrides: Optional[Mapping[str, object]] = None) -> AppConfig:
    """Load application configuration merging defaults and overrides."""

    merged: MutableMapping[str, object] = dict(DEFAULT_CONFIG)
    if path:
        merged.update(_load_file(Path(path)))
    if overrides:
        merged.update({k: v for k, v in overrides.items() if v is not None})

    tz = _parse_timezone(str(merged.get("timezone", DEFAULT_CONFIG["timezone"])))

    data_path = Path(str(merged.get("data_path", DEFAULT_CONFIG["data_path"]))).expanduser()
    report_path = Path(str(merged.get("report_path", DEFAULT_CONFIG["report_path"]))).expanduser()
    log_path = Path(str(merged.get("log_path", DEFAULT_CONFIG["log_path"]))).expanduser()
    log_level = str(merged.get("log_level", DEFAULT_CONFIG["log_level"])).upper()

    language = str(merged.get("language", DEFAULT_CONFIG["language"])).lower()
    if language not in LANGUAGES:
        raise ValueError(f"language must be one of {', '.join(LANGUAGES)}; got '{language}'")

    lock_timeout_value = merged.get("lock_timeout", DEFAULT_CONFIG["lock_timeout"])
    try:
        lock_timeout = float(lock_timeout_value)
    except (TypeError, ValueError) as exc:
        raise ValueError("lock_timeout must be numeric") from exc

    teachers_value = merged.get("initial_teachers") or []
    if isinstance(teachers_value, str) or not isinstance(teachers_value, (list, tuple)):
        raise ValueError("initial_teachers must be a list of names")
    initial_teachers = tuple(str(name).strip() for name in teachers_value if str(name).strip())

    font_value = merged.get("pdf_font_path")
    pdf_font_path = Path(str(font_value)).expanduser() if font_value else None

    return AppConfig(
        data_path=data_path,
        report_path=report_path,
        log_path=log_path,
        log_level=log_level,
        language=language,
        timezone=tz,
        lock_timeout=lock_timeout,
        purge_deleted_criteria=bool(merged.get("purge_deleted_criteria", True)),
        initial_teachers=initial_teachers,
        pdf_font_path=pdf_font_path,
        share_base_url=str(merged.get("share_base_url") or DEFAULT_CONFIG["share_base_url"]),
        extra={k: v for k, v in merged.items() if k not in DEFAULT_CONFIG},
    )


__all__ = ["AppConfig", "DEFAULT_CONFIG", "LANGUAGES", "load_config"]
