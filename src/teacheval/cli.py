"""Command line interface for the teacheval toolkit."""
from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .config import AppConfig, LANGUAGES, load_config
from .dashboard import FILTER_TYPES, build_dashboard, dashboard_share_url, export_dashboard
from .export import EXPORT_FORMATS
from .locales import BRANCHES, Locale, get_locale
from .logging_utils import setup_logging
from .models import CRITERION_TYPES, Answer, Criterion, RecordNotFound, Teacher, ValidationError, make_criterion, new_id
from .report import (
    export_report,
    new_report,
    parse_report_date,
    report_share_url,
    report_text,
    today,
)
from .store import EvaluationStore, StoreSnapshot


def _add_school_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--subject")
    parser.add_argument("--grade")
    parser.add_argument("--school")
    parser.add_argument("--branch", choices=BRANCHES)


def _add_report_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--date", help="Report date (YYYY-MM-DD). Defaults to today.")
    parser.add_argument(
        "--rating",
        dest="ratings",
        action="append",
        default=[],
        metavar="CRITERION=VALUE",
        help="Answer for one criterion; repeat for several",
    )
    parser.add_argument("--strategies")
    parser.add_argument("--aids")
    parser.add_argument("--programs")
    _add_school_arguments(parser)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Teacher evaluation report toolkit")
    parser.add_argument("--config", dest="config_path", help="Path to config file (YAML or JSON)")
    parser.add_argument("--data", dest="data_path", help="Path to the JSON data file (defaults to config data_path)")
    parser.add_argument("--lang", dest="language", choices=LANGUAGES, help="Display language")

    subparsers = parser.add_subparsers(dest="command", required=True)

    teacher = subparsers.add_parser("teacher", help="Manage teachers").add_subparsers(dest="action", required=True)
    teacher.add_parser("list", help="List teachers")
    add = teacher.add_parser("add", help="Add a teacher")
    add.add_argument("name")
    _add_school_arguments(add)
    update = teacher.add_parser("update", help="Rename a teacher or change defaults")
    update.add_argument("teacher_id")
    update.add_argument("--name")
    _add_school_arguments(update)
    delete = teacher.add_parser("delete", help="Delete a teacher and all of their reports")
    delete.add_argument("teacher_id")

    criterion = subparsers.add_parser("criterion", help="Manage evaluation criteria").add_subparsers(
        dest="action", required=True
    )
    criterion.add_parser("list", help="List criteria")
    add = criterion.add_parser("add", help="Add a criterion")
    add.add_argument("label")
    add.add_argument("--type", dest="criterion_type", choices=CRITERION_TYPES, default="rating")
    add.add_argument("--options", help="Comma separated options for select criteria")
    update = criterion.add_parser("update", help="Change a criterion label or options")
    update.add_argument("criterion_id")
    update.add_argument("--label")
    update.add_argument("--options")
    delete = criterion.add_parser("delete", help="Delete a criterion")
    delete.add_argument("criterion_id")

    report = subparsers.add_parser("report", help="Manage reports").add_subparsers(dest="action", required=True)
    listing = report.add_parser("list", help="List reports")
    listing.add_argument("--teacher", dest="teacher_id")
    create = report.add_parser("create", help="Create a report for a teacher")
    create.add_argument("teacher_id")
    _add_report_arguments(create)
    edit = report.add_parser("edit", help="Edit an existing report")
    edit.add_argument("report_id")
    _add_report_arguments(edit)
    for name, help_text in (("show", "Print a report"), ("delete", "Delete a report"), ("share", "Print a share link")):
        sub = report.add_parser(name, help=help_text)
        sub.add_argument("report_id")
    export = report.add_parser("export", help="Export a report to a file")
    export.add_argument("report_id")
    export.add_argument("--format", dest="fmt", choices=EXPORT_FORMATS, default="txt")
    export.add_argument("--output", dest="output_path", help="Directory for the export. Defaults to config report_path.")

    dashboard = subparsers.add_parser("dashboard", help="Show aggregated reports")
    group = dashboard.add_mutually_exclusive_group()
    group.add_argument("--teacher", dest="teacher_id")
    group.add_argument("--criterion", dest="criterion_id")
    dashboard.add_argument("--export", dest="fmt", choices=EXPORT_FORMATS)
    dashboard.add_argument("--output", dest="output_path")
    dashboard.add_argument("--share", action="store_true", help="Print a share link instead of the table")

    web = subparsers.add_parser("web", help="Start the HTML interface")
    web.add_argument("--host", default="127.0.0.1", help="Host/IP for the web server")
    web.add_argument("--port", type=int, default=5000, help="Port for the web server")
    web.add_argument("--debug", action="store_true", help="Enable Flask debug mode")

    return parser


def parse_answers(pairs: Sequence[str], criteria: Sequence[Criterion]) -> Dict[str, Answer]:
    """Turn ``CRITERION=VALUE`` pairs into a rating map typed by criterion."""

    lookup = {criterion.id: criterion for criterion in criteria}
    answers: Dict[str, Answer] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValidationError(f"Expected CRITERION=VALUE, got '{pair}'")
        criterion = lookup.get(key)
        if criterion is None:
            raise RecordNotFound(f"Criterion not found: {key}")
        if criterion.type == "rating":
            try:
                answers[key] = int(value)
            except ValueError as exc:
                raise ValidationError(f"Rating for '{criterion.label}' must be an integer") from exc
        else:
            answers[key] = value.strip()
    return answers


def _school_changes(args: argparse.Namespace) -> Dict[str, str]:
    return {
        field: getattr(args, field)
        for field in ("subject", "grade", "school", "branch")
        if getattr(args, field) is not None
    }


def _run_teacher(args: argparse.Namespace, store: EvaluationStore) -> int:
    if args.action == "list":
        snapshot = store.snapshot()
        frame = pd.DataFrame(
            [
                {
                    "id": t.id,
                    "name": t.name,
                    "school": t.school,
                    "subject": t.subject,
                    "reports": len(snapshot.reports_for(t.id)),
                }
                for t in snapshot.teachers
            ]
        )
        print(frame.to_string(index=False) if not frame.empty else "No teachers")
    elif args.action == "add":
        teacher = Teacher(id=new_id(), name=args.name.strip(), **_school_changes(args))
        store.upsert_teacher(teacher)
        print(teacher.id)
    elif args.action == "update":
        current = store.snapshot().get_teacher(args.teacher_id)
        changes = _school_changes(args)
        if args.name:
            changes["name"] = args.name.strip()
        store.upsert_teacher(replace(current, **changes))
    else:
        store.delete_teacher(args.teacher_id)
    return 0


def _run_criterion(args: argparse.Namespace, store: EvaluationStore) -> int:
    if args.action == "list":
        frame = pd.DataFrame(
            [
                {
                    "id": c.id,
                    "label": c.label,
                    "type": c.type,
                    "options": ", ".join(c.options),
                }
                for c in store.snapshot().criteria
            ]
        )
        print(frame.to_string(index=False) if not frame.empty else "No criteria")
    elif args.action == "add":
        criterion = make_criterion(args.label, args.criterion_type, args.options)
        store.upsert_criterion(criterion)
        print(criterion.id)
    elif args.action == "update":
        current = store.snapshot().get_criterion(args.criterion_id)
        updated = current
        if args.label:
            updated = replace(updated, label=args.label.strip())
        if args.options is not None and current.type == "select":
            updated = replace(updated, options=make_criterion(current.label, "select", args.options).options)
        store.upsert_criterion(updated)
    else:
        store.delete_criterion(args.criterion_id)
    return 0


def _apply_report_arguments(report, args: argparse.Namespace, snapshot: StoreSnapshot):
    ratings = dict(report.ratings)
    ratings.update(parse_answers(args.ratings, snapshot.criteria))
    changes: Dict[str, object] = {"ratings": ratings}
    if args.date:
        changes["date"] = parse_report_date(args.date)
    for field in ("strategies", "aids", "programs"):
        if getattr(args, field) is not None:
            changes[field] = getattr(args, field)
    school = _school_changes(args)
    if school:
        changes["school_info"] = replace(report.school_info, **school)
    return replace(report, **changes)


def _run_report(args: argparse.Namespace, store: EvaluationStore, config: AppConfig, locale: Locale) -> int:
    snapshot = store.snapshot()
    if args.action == "list":
        reports = snapshot.reports_for(args.teacher_id) if args.teacher_id else list(snapshot.reports)
        frame = pd.DataFrame(
            [
                {
                    "id": r.id,
                    "teacher": snapshot.find_teacher(r.teacher_id).name
                    if snapshot.find_teacher(r.teacher_id)
                    else locale.label("unknown_teacher"),
                    "date": r.date,
                    "total": f"{r.total_percentage:.1f}%",
                }
                for r in reports
            ]
        )
        print(frame.to_string(index=False) if not frame.empty else locale.label("no_reports"))
        return 0
    if args.action == "create":
        teacher = snapshot.get_teacher(args.teacher_id)
        report = _apply_report_arguments(new_report(teacher, snapshot, today(config)), args, snapshot)
        saved = store.upsert_report(report).get_report(report.id)
        print(f"{saved.id} {saved.total_percentage:.1f}%")
        return 0
    if args.action == "edit":
        report = _apply_report_arguments(snapshot.get_report(args.report_id), args, snapshot)
        saved = store.upsert_report(report).get_report(report.id)
        print(f"{saved.id} {saved.total_percentage:.1f}%")
        return 0

    report = snapshot.get_report(args.report_id)
    if args.action == "show":
        print(report_text(report, snapshot.get_teacher(report.teacher_id), snapshot.criteria, locale), end="")
    elif args.action == "share":
        print(report_share_url(report, snapshot, config, locale))
    elif args.action == "export":
        path = export_report(report, snapshot, config, locale, fmt=args.fmt, output_path=args.output_path)
        print(path)
    else:
        store.delete_report(report.id)
    return 0


def _run_dashboard(args: argparse.Namespace, store: EvaluationStore, config: AppConfig, locale: Locale) -> int:
    filter_type, selected_id = FILTER_TYPES[0], None
    if args.teacher_id:
        filter_type, selected_id = "teacher", args.teacher_id
    elif args.criterion_id:
        filter_type, selected_id = "criterion", args.criterion_id
    dashboard = build_dashboard(store.snapshot(), locale, filter_type, selected_id)

    if args.share:
        print(dashboard_share_url(dashboard, config, locale, today(config)))
        return 0
    if args.fmt:
        print(export_dashboard(dashboard, config, locale, today(config), fmt=args.fmt, output_path=args.output_path))
        return 0

    frame = pd.DataFrame(
        [[row.teacher_name, row.date, row.value] for row in dashboard.rows],
        columns=[locale.label("teacher"), locale.label("date"), dashboard.value_header],
    )
    print(frame.to_string(index=False) if not frame.empty else locale.label("no_reports"))
    print(f"{locale.label('average_total')}: {dashboard.average_text}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides = {"data_path": args.data_path, "language": args.language}
    config = load_config(args.config_path, overrides=overrides)
    logger = setup_logging(config)
    store = EvaluationStore.from_config(config)
    locale = get_locale(config.language)

    if args.command == "web":
        from .web import create_web_app

        app = create_web_app(config, store)
        logger.info("Starting HTML interface on http://%s:%s", args.host, args.port)
        app.run(host=args.host, port=args.port, debug=args.debug)
        return 0

    try:
        if args.command == "teacher":
            return _run_teacher(args, store)
        if args.command == "criterion":
            return _run_criterion(args, store)
        if args.command == "report":
            return _run_report(args, store, config, locale)
        return _run_dashboard(args, store, config, locale)
    except (ValidationError, RecordNotFound, TimeoutError, ValueError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
