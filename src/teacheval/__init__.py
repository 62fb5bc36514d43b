"""teacheval package for teacher performance evaluation reports."""

from .config import load_config
from .dashboard import build_dashboard, export_dashboard
from .logging_utils import setup_logging
from .models import Criterion, Report, Teacher, ValidationError
from .report import export_report, new_report
from .scoring import average_percentage, calculate_total_percentage
from .store import EvaluationStore

__all__ = [
    "Criterion",
    "EvaluationStore",
    "Report",
    "Teacher",
    "ValidationError",
    "average_percentage",
    "build_dashboard",
    "calculate_total_percentage",
    "export_dashboard",
    "export_report",
    "load_config",
    "new_report",
    "setup_logging",
]
