"""Flask HTML interface for teachers, reports, criteria and the dashboard."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional

from flask import Flask, abort, redirect, render_template_string, request, send_file, url_for
from markupsafe import Markup

from .config import LANGUAGES, AppConfig
from .dashboard import FILTER_TYPES, build_dashboard, dashboard_share_url, export_dashboard
from .export import EXPORT_FORMATS
from .locales import BRANCHES, Locale, get_locale
from .logging_utils import setup_logging
from .models import (
    CRITERION_TYPES,
    Answer,
    Criterion,
    RecordNotFound,
    Report,
    SchoolInfo,
    Teacher,
    ValidationError,
    make_criterion,
    new_id,
)
from .report import (
    answer_display,
    export_report,
    new_report,
    option_label,
    parse_report_date,
    report_share_url,
    today,
)
from .scoring import calculate_total_percentage
from .store import EvaluationStore

logger = logging.getLogger("teacheval.web")

LAYOUT_TEMPLATE = """<!doctype html>
<html lang=\"{{ locale.language }}\" dir=\"{{ locale.direction }}\">
<head>
  <meta charset=\"utf-8\" />
  <title>{{ locale.title }}</title>
  <style>
    body { font-family: 'Segoe UI', Tahoma, Arial, sans-serif; margin: 0; padding: 24px; background-color: #f8fafc; color: #1e293b; }
    header { margin-bottom: 24px; }
    h1 { margin: 0 0 8px 0; font-size: 28px; }
    nav a { margin-inline-end: 12px; }
    section { background: #ffffff; padding: 16px 20px; margin-bottom: 20px; border-radius: 12px;
              box-shadow: 0 1px 3px rgba(0, 0, 0, 0.08); }
    button, .button { background-color: #0d9488; color: #fff; border: none; border-radius: 6px; padding: 6px 14px;
                      cursor: pointer; text-decoration: none; display: inline-block; }
    button.danger { background-color: #dc2626; }
    .alert { padding: 12px 16px; border-radius: 8px; margin-bottom: 16px; }
    .alert-error { background: #fee2e2; color: #991b1b; }
    .alert-success { background: #dcfce7; color: #166534; }
    .empty { color: #64748b; font-style: italic; }
    table.table { width: 100%; border-collapse: collapse; }
    table.table th, table.table td { padding: 8px 10px; border-bottom: 1px solid #e2e8f0; text-align: start; }
    form.inline { display: inline; }
    form.grid, div.grid { display: grid; gap: 12px; grid-template-columns: repeat(auto-fit, minmax(220px, 1fr)); }
    form.grid label, div.grid label { display: flex; flex-direction: column; font-weight: 600; font-size: 14px; }
    input, select, textarea { padding: 6px 10px; border: 1px solid #cbd5e1; border-radius: 6px; font-size: 14px; }
    .total { font-size: 22px; font-weight: 700; color: #0f766e; }
  </style>
</head>
<body>
  <header>
    <h1>{{ locale.title }}</h1>
    <nav>
      <a href=\"{{ url_for('index', lang=locale.language) }}\">{{ locale.label('teachers') }}</a>
      <a href=\"{{ url_for('dashboard', lang=locale.language) }}\">{{ locale.label('dashboard_title') }}</a>
      {% for code in languages %}
      <a href=\"{{ url_for(request.endpoint, lang=code, **(request.view_args or {})) }}\">{{ code|upper }}</a>
      {% endfor %}
    </nav>
  </header>
  {% if error %}<div class=\"alert alert-error\">{{ error }}</div>{% endif %}
  {% if message %}<div class=\"alert alert-success\">{{ message }}</div>{% endif %}
  {{ content }}
</body>
</html>
"""

INDEX_TEMPLATE = """
<section>
  <form method=\"post\" class=\"grid\">
    <input type=\"hidden\" name=\"form_id\" value=\"teacher_add\" />
    <label>{{ locale.label('teacher') }}<input name=\"name\" required /></label>
    <div><button type=\"submit\">+</button></div>
  </form>
</section>
{% for item in teachers %}
<section>
  <h2>{{ item.teacher.name }}</h2>
  <form method=\"post\" class=\"inline\">
    <input type=\"hidden\" name=\"form_id\" value=\"teacher_rename\" />
    <input type=\"hidden\" name=\"teacher_id\" value=\"{{ item.teacher.id }}\" />
    <input name=\"name\" value=\"{{ item.teacher.name }}\" required />
    <button type=\"submit\">&#10003;</button>
  </form>
  <a class=\"button\" href=\"{{ url_for('create_report', teacher_id=item.teacher.id, lang=locale.language) }}\">+ {{ locale.label('teacher_performance_report') }}</a>
  <form method=\"post\" class=\"inline\">
    <input type=\"hidden\" name=\"form_id\" value=\"teacher_delete\" />
    <input type=\"hidden\" name=\"teacher_id\" value=\"{{ item.teacher.id }}\" />
    <button type=\"submit\" class=\"danger\">&#10005;</button>
  </form>
  {% if item.reports %}
  <table class=\"table\">
    {% for report in item.reports %}
    <tr>
      <td>{{ report.date }}</td>
      <td>{{ '%.1f'|format(report.total_percentage) }}%</td>
      <td>
        <a href=\"{{ url_for('edit_report', report_id=report.id, lang=locale.language) }}\">&#9998;</a>
        <form method=\"post\" class=\"inline\">
          <input type=\"hidden\" name=\"form_id\" value=\"report_delete\" />
          <input type=\"hidden\" name=\"report_id\" value=\"{{ report.id }}\" />
          <button type=\"submit\" class=\"danger\">&#10005;</button>
        </form>
      </td>
    </tr>
    {% endfor %}
  </table>
  {% else %}
  <p class=\"empty\">{{ locale.label('no_reports') }}</p>
  {% endif %}
</section>
{% endfor %}
"""

REPORT_TEMPLATE = """
<form method=\"post\">
<section>
  <h2>{{ locale.label('teacher_performance_report') }}: {{ teacher.name }}</h2>
  <div class=\"grid\">
    <label>{{ locale.label('report_date') }}<input type=\"date\" name=\"date\" value=\"{{ report.date }}\" /></label>
    <label>{{ locale.label('school') }}<input name=\"school\" value=\"{{ report.school_info.school }}\" /></label>
    <label>{{ locale.label('subject') }}<input name=\"subject\" value=\"{{ report.school_info.subject }}\" /></label>
    <label>{{ locale.label('grade') }}<input name=\"grade\" value=\"{{ report.school_info.grade }}\" /></label>
    <label>{{ locale.label('branch') }}
      <select name=\"branch\">
        {% for branch in branches %}
        <option value=\"{{ branch }}\" {% if branch == report.school_info.branch %}selected{% endif %}>{{ locale.branch_label(branch) }}</option>
        {% endfor %}
      </select>
    </label>
    {% for criterion in criteria %}
    <label>{{ criterion.label }}
      {% set value = report.ratings.get(criterion.id, '') %}
      {% if criterion.type == 'rating' %}
      <select name=\"rating-{{ criterion.id }}\">
        <option value=\"\"></option>
        {% for val in [1, 2, 3, 4] %}
        <option value=\"{{ val }}\" {% if value == val %}selected{% endif %}>{{ val }}</option>
        {% endfor %}
      </select>
      {% elif criterion.type == 'select' %}
      <select name=\"rating-{{ criterion.id }}\">
        <option value=\"\"></option>
        {% for opt in criterion.options %}
        <option value=\"{{ opt }}\" {% if value == opt %}selected{% endif %}>{{ option_label(opt, locale) }}</option>
        {% endfor %}
      </select>
      {% else %}
      <input name=\"rating-{{ criterion.id }}\" value=\"{{ value }}\" />
      {% endif %}
    </label>
    {% endfor %}
    <label>{{ locale.label('strategies') }}<textarea name=\"strategies\" rows=\"2\">{{ report.strategies }}</textarea></label>
    <label>{{ locale.label('aids') }}<textarea name=\"aids\" rows=\"2\">{{ report.aids }}</textarea></label>
    <label>{{ locale.label('programs') }}<textarea name=\"programs\" rows=\"2\">{{ report.programs }}</textarea></label>
    <div>
      <p class=\"total\">{{ locale.label('total_percentage') }}: {{ '%.1f'|format(total) }}%</p>
      <button type=\"submit\" name=\"form_id\" value=\"report_save\">&#10003;</button>
      <a class=\"button\" href=\"{{ url_for('index', lang=locale.language) }}\">&#8617;</a>
    </div>
  </div>
  {% if saved %}
  <p>
    {% for fmt in formats %}
    <a class=\"button\" href=\"{{ url_for('download_report', report_id=report.id, fmt=fmt, lang=locale.language) }}\">{{ fmt|upper }}</a>
    {% endfor %}
    <a class=\"button\" href=\"{{ share_link }}\" target=\"_blank\" rel=\"noopener\">WhatsApp</a>
  </p>
  {% endif %}
</section>
<section>
  <h2>{{ locale.label('evaluation_criteria') }}</h2>
  <table class=\"table\">
    {% for criterion in criteria %}
    <tr>
      <td>{{ criterion.label }}</td>
      <td>{{ criterion.type }}</td>
      <td>{{ answer_display(criterion, report.ratings.get(criterion.id), locale) }}</td>
      <td><button type=\"submit\" name=\"criterion_delete\" value=\"{{ criterion.id }}\" class=\"danger\">&#10005;</button></td>
    </tr>
    {% endfor %}
  </table>
  <div class=\"grid\">
    <label>{{ locale.label('criterion') }}<input name=\"criterion_label\" /></label>
    <label>type
      <select name=\"criterion_type\">
        {% for kind in criterion_types %}<option value=\"{{ kind }}\">{{ kind }}</option>{% endfor %}
      </select>
    </label>
    <label>options<input name=\"criterion_options\" placeholder=\"a, b, c\" /></label>
    <div><button type=\"submit\" name=\"form_id\" value=\"criterion_add\">+</button></div>
  </div>
</section>
</form>
"""

DASHBOARD_TEMPLATE = """
<section>
  <form method=\"get\" class=\"grid\">
    <input type=\"hidden\" name=\"lang\" value=\"{{ locale.language }}\" />
    <label>filter
      <select name=\"filter\">
        {% for kind in filter_types %}
        <option value=\"{{ kind }}\" {% if kind == dashboard.filter_type %}selected{% endif %}>{{ kind }}</option>
        {% endfor %}
      </select>
    </label>
    <label>{{ locale.label('teacher') }} / {{ locale.label('criterion') }}
      <select name=\"selected\">
        <option value=\"\"></option>
        {% if dashboard.filter_type == 'teacher' %}
        {% for teacher in teachers %}
        <option value=\"{{ teacher.id }}\" {% if teacher.id == dashboard.selected_id %}selected{% endif %}>{{ teacher.name }}</option>
        {% endfor %}
        {% elif dashboard.filter_type == 'criterion' %}
        {% for criterion in scored_criteria %}
        <option value=\"{{ criterion.id }}\" {% if criterion.id == dashboard.selected_id %}selected{% endif %}>{{ criterion.label }}</option>
        {% endfor %}
        {% endif %}
      </select>
    </label>
    <div><button type=\"submit\">&#8635;</button></div>
  </form>
  <p>
    {% for fmt in formats %}
    <a class=\"button\" href=\"{{ url_for('download_dashboard', fmt=fmt, filter=dashboard.filter_type, selected=dashboard.selected_id or '', lang=locale.language) }}\">{{ fmt|upper }}</a>
    {% endfor %}
    <a class=\"button\" href=\"{{ share_link }}\" target=\"_blank\" rel=\"noopener\">WhatsApp</a>
  </p>
</section>
<section>
  <h2>{{ locale.label('dashboard_title') }}</h2>
  <table class=\"table\">
    <thead><tr><th>{{ locale.label('teacher') }}</th><th>{{ locale.label('date') }}</th><th>{{ dashboard.value_header }}</th></tr></thead>
    <tbody>
    {% for row in dashboard.rows %}
    <tr><td>{{ row.teacher_name }}</td><td>{{ row.date }}</td><td>{{ row.value }}</td></tr>
    {% else %}
    <tr><td colspan=\"3\" class=\"empty\">{{ locale.label('no_reports') }}</td></tr>
    {% endfor %}
    </tbody>
    <tfoot><tr><th colspan=\"2\">{{ locale.label('average_total') }}</th><th>{{ dashboard.average_text }}</th></tr></tfoot>
  </table>
</section>
"""


def form_answers(form, criteria: List[Criterion]) -> Dict[str, Answer]:
    """Collect ``rating-<id>`` fields; empty fields are left out."""

    answers: Dict[str, Answer] = {}
    for criterion in criteria:
        raw = (form.get(f"rating-{criterion.id}") or "").strip()
        if not raw:
            continue
        if criterion.type == "rating":
            try:
                answers[criterion.id] = int(raw)
            except ValueError as exc:
                raise ValidationError(f"Rating for '{criterion.label}' must be an integer") from exc
        else:
            answers[criterion.id] = raw
    return answers


def draft_report(report: Report, form, criteria: List[Criterion]) -> Report:
    """Posted form values applied to ``report`` without validating them."""

    ratings: Dict[str, Answer] = {}
    for criterion in criteria:
        raw = (form.get(f"rating-{criterion.id}") or "").strip()
        if raw:
            ratings[criterion.id] = int(raw) if criterion.type == "rating" and raw.isdigit() else raw
    branch = form.get("branch", report.school_info.branch)
    return replace(
        report,
        date=form.get("date", report.date).strip(),
        school_info=SchoolInfo(
            subject=form.get("subject", "").strip(),
            grade=form.get("grade", "").strip(),
            school=form.get("school", "").strip(),
            branch=branch if branch in BRANCHES else report.school_info.branch,
        ),
        strategies=form.get("strategies", "").strip(),
        aids=form.get("aids", "").strip(),
        programs=form.get("programs", "").strip(),
        ratings=ratings,
    )


def create_web_app(config: AppConfig, store: Optional[EvaluationStore] = None) -> Flask:
    setup_logging(config)
    store = store or EvaluationStore.from_config(config)
    app = Flask(__name__)
    logger.debug("Web interface using data file %s", store.path)

    def current_locale() -> Locale:
        language = request.values.get("lang") or config.language
        return get_locale(language if language in LANGUAGES else config.language)

    def render_page(template: str, error: Optional[str] = None, **context) -> str:
        locale = current_locale()
        content = render_template_string(template, locale=locale, **context)
        return render_template_string(
            LAYOUT_TEMPLATE,
            locale=locale,
            languages=LANGUAGES,
            content=Markup(content),
            error=error,
            message=request.args.get("message"),
        )

    @app.route("/", methods=["GET", "POST"])
    def index() -> str:
        locale = current_locale()
        error: Optional[str] = None
        if request.method == "POST":
            form_id = request.form.get("form_id")
            try:
                if form_id == "teacher_add":
                    store.upsert_teacher(Teacher(id=new_id(), name=request.form.get("name", "").strip()))
                elif form_id == "teacher_rename":
                    current = store.snapshot().get_teacher(request.form.get("teacher_id", ""))
                    store.upsert_teacher(replace(current, name=request.form.get("name", "").strip()))
                elif form_id == "teacher_delete":
                    store.delete_teacher(request.form.get("teacher_id", ""))
                elif form_id == "report_delete":
                    store.delete_report(request.form.get("report_id", ""))
                else:
                    abort(400)
            except (ValidationError, RecordNotFound, TimeoutError) as exc:
                logger.warning("%s failed: %s", form_id, exc)
                error = str(exc)
            else:
                return redirect(url_for("index", lang=locale.language))

        snapshot = store.snapshot()
        teachers = [{"teacher": t, "reports": snapshot.reports_for(t.id)} for t in snapshot.teachers]
        return render_page(INDEX_TEMPLATE, error=error, teachers=teachers)

    def report_page(report: Report, teacher: Teacher, saved: bool) -> str:
        locale = current_locale()
        error: Optional[str] = None
        if request.method == "POST":
            form_id = request.form.get("form_id")
            deleted_id = request.form.get("criterion_delete")
            criteria = list(store.snapshot().criteria)
            try:
                if deleted_id or form_id == "criterion_add":
                    # criterion changes re-render the form with what was typed so far
                    report = draft_report(report, request.form, criteria)
                    if deleted_id:
                        store.delete_criterion(deleted_id)
                        report = report.with_ratings({k: v for k, v in report.ratings.items() if k != deleted_id})
                    else:
                        store.upsert_criterion(
                            make_criterion(
                                request.form.get("criterion_label", ""),
                                request.form.get("criterion_type", "rating"),
                                request.form.get("criterion_options"),
                            )
                        )
                elif form_id == "report_save":
                    report = replace(
                        draft_report(report, request.form, criteria),
                        date=parse_report_date(request.form.get("date", "")),
                        ratings=form_answers(request.form, criteria),
                    )
                    store.upsert_report(report)
                    return redirect(url_for("edit_report", report_id=report.id, lang=locale.language, message="OK"))
                else:
                    abort(400)
            except (ValidationError, RecordNotFound, TimeoutError) as exc:
                logger.warning("Report %s: %s failed: %s", report.id, form_id or "criterion_delete", exc)
                error = str(exc)

        snapshot = store.snapshot()
        criteria = list(snapshot.criteria)
        share_link = report_share_url(report, snapshot, config, locale) if saved else ""
        return render_page(
            REPORT_TEMPLATE,
            error=error,
            teacher=teacher,
            report=report,
            criteria=criteria,
            total=calculate_total_percentage(criteria, report.ratings),
            branches=BRANCHES,
            criterion_types=CRITERION_TYPES,
            formats=EXPORT_FORMATS,
            saved=saved,
            share_link=share_link,
            option_label=option_label,
            answer_display=answer_display,
        )

    @app.route("/teachers/<teacher_id>/reports/new", methods=["GET", "POST"])
    def create_report(teacher_id: str) -> str:
        snapshot = store.snapshot()
        try:
            teacher = snapshot.get_teacher(teacher_id)
        except RecordNotFound:
            abort(404)
        return report_page(new_report(teacher, snapshot, today(config)), teacher, saved=False)

    @app.route("/reports/<report_id>", methods=["GET", "POST"])
    def edit_report(report_id: str) -> str:
        snapshot = store.snapshot()
        try:
            report = snapshot.get_report(report_id)
            teacher = snapshot.get_teacher(report.teacher_id)
        except RecordNotFound:
            abort(404)
        return report_page(report, teacher, saved=True)

    @app.route("/reports/<report_id>/download/<fmt>")
    def download_report(report_id: str, fmt: str):
        if fmt not in EXPORT_FORMATS:
            abort(404)
        snapshot = store.snapshot()
        try:
            report = snapshot.get_report(report_id)
        except RecordNotFound:
            abort(404)
        path = export_report(report, snapshot, config, current_locale(), fmt=fmt)
        return send_file(path, as_attachment=True, download_name=path.name, max_age=0)

    def requested_dashboard():
        filter_type = request.args.get("filter") or "all"
        if filter_type not in FILTER_TYPES:
            abort(400)
        return build_dashboard(store.snapshot(), current_locale(), filter_type, request.args.get("selected"))

    @app.route("/dashboard")
    def dashboard() -> str:
        locale = current_locale()
        error: Optional[str] = None
        snapshot = store.snapshot()
        try:
            summary = requested_dashboard()
        except (ValidationError, RecordNotFound) as exc:
            logger.warning("Dashboard %s: %s", request.query_string.decode(), exc)
            error = str(exc)
            summary = build_dashboard(snapshot, locale)
        return render_page(
            DASHBOARD_TEMPLATE,
            error=error,
            dashboard=summary,
            teachers=snapshot.teachers,
            scored_criteria=[c for c in snapshot.criteria if c.type != "text"],
            filter_types=FILTER_TYPES,
            formats=EXPORT_FORMATS,
            share_link=dashboard_share_url(summary, config, locale, today(config)),
        )

    @app.route("/dashboard/download/<fmt>")
    def download_dashboard(fmt: str):
        if fmt not in EXPORT_FORMATS:
            abort(404)
        try:
            summary = requested_dashboard()
        except (ValidationError, RecordNotFound) as exc:
            logger.warning("Dashboard download %s: %s", fmt, exc)
            return str(exc), 400
        path = export_dashboard(summary, config, current_locale(), today(config), fmt=fmt)
        return send_file(path, as_attachment=True, download_name=path.name, max_age=0)

    return app


__all__ = ["create_web_app", "draft_report", "form_answers"]
