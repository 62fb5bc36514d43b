"""Spreadsheet, PDF and share-link writers shared by reports and the dashboard."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Sequence
from urllib.parse import quote
from xml.sax.saxutils import escape

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

EXPORT_FORMATS: Sequence[str] = ("txt", "xlsx", "pdf")
PDF_FONT_NAME = "TeachevalFont"

logger = logging.getLogger("teacheval.export")

Row = Sequence[object]


def safe_filename(text: str) -> str:
    """Strip characters that are not allowed in file names."""
    cleaned = re.sub(r'[\\/:*?"<>|]+', "_", text).strip()
    return cleaned or "report"


def share_url(text: str, base_url: str = "https://wa.me/") -> str:
    return f"{base_url}?text={quote(text, safe='')}"


def write_text(content: str, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info("Text export written to %s", path)
    return path


def write_xlsx(rows: Sequence[Row], path: Path, sheet_name: str, header: Optional[Row] = None) -> Path:
    """Write ``rows`` to a single-sheet workbook; empty rows become blank lines."""

    path.parent.mkdir(parents=True, exist_ok=True)
    width = max([len(header or ())] + [len(row) for row in rows]) if rows or header else 1
    padded = [list(row) + [None] * (width - len(row)) for row in rows]
    frame = pd.DataFrame(padded, columns=list(header) if header else None)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False, header=header is not None)
    logger.info("Excel export written to %s", path)
    return path


def _register_font(font_path: Optional[Path]) -> Optional[str]:
    if font_path is None:
        return None
    if PDF_FONT_NAME not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(PDF_FONT_NAME, str(font_path)))
    return PDF_FONT_NAME


def write_pdf(
    title: str,
    rows: Sequence[Row],
    path: Path,
    header: Optional[Row] = None,
    subtitle: Optional[str] = None,
    font_path: Optional[Path] = None,
    rtl: bool = False,
) -> Path:
    """Render a titled table to an A4 PDF."""

    path.parent.mkdir(parents=True, exist_ok=True)
    font_name = _register_font(font_path)

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("ExportTitle", parent=styles["Heading1"], alignment=TA_CENTER)
    cell_style = ParagraphStyle(
        "ExportCell",
        parent=styles["BodyText"],
        alignment=TA_RIGHT if rtl else TA_LEFT,
    )
    if font_name:
        title_style.fontName = font_name
        cell_style.fontName = font_name

    doc = SimpleDocTemplate(
        str(path),
        pagesize=A4,
        rightMargin=36,
        leftMargin=36,
        topMargin=36,
        bottomMargin=36,
    )
    story = [Paragraph(escape(title), title_style)]
    if subtitle:
        story.append(Paragraph(f"<i>{escape(subtitle)}</i>", cell_style))
    story.append(Spacer(1, 12))

    table_rows = [list(header)] if header else []
    table_rows.extend(list(row) for row in rows if row)
    if table_rows:
        width = max(len(row) for row in table_rows)
        data = [
            [Paragraph(escape("" if cell is None else str(cell)), cell_style) for cell in row]
            + [""] * (width - len(row))
            for row in table_rows
        ]
        if rtl:
            data = [list(reversed(row)) for row in data]
        table = Table(data, hAlign="CENTER")
        style = [
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]
        if header:
            style.append(("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#ccfbf1")))
        table.setStyle(TableStyle(style))
        story.append(table)

    doc.build(story)
    logger.info("PDF export written to %s", path)
    return path


__all__ = [
    "EXPORT_FORMATS",
    "safe_filename",
    "share_url",
    "write_pdf",
    "write_text",
    "write_xlsx",
]
