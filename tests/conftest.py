"""Shared pytest fixtures for teacheval tests."""

from pathlib import Path

import pytest

from teacheval.config import AppConfig, load_config
from teacheval.locales import Locale, get_locale
from teacheval.models import Criterion
from teacheval.store import EvaluationStore


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    """Return a config that keeps every file under tmp_path."""
    return load_config(
        overrides={
            "data_path": str(tmp_path / "data" / "teacheval.json"),
            "report_path": str(tmp_path / "reports"),
            "log_path": str(tmp_path / "logs" / "teacheval.log"),
            "language": "en",
            "timezone": "UTC",
            "lock_timeout": 5,
        }
    )


@pytest.fixture
def store(config: AppConfig) -> EvaluationStore:
    return EvaluationStore.from_config(config)


@pytest.fixture
def locale() -> Locale:
    return get_locale("en")


@pytest.fixture
def rating_criterion() -> Criterion:
    return Criterion(id="c1", label="Attendance", type="rating")


@pytest.fixture
def select_criterion() -> Criterion:
    return Criterion(id="c2", label="Progress", type="select", options=("A", "B", "C"))


@pytest.fixture
def text_criterion() -> Criterion:
    return Criterion(id="c3", label="Last lesson", type="text")
