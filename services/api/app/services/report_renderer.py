from __future__ import annotations

import io
import json
import textwrap
from typing import Any

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from app.schemas.history import HistoryRecord, RecordKind

_LINE_HEIGHT = 14
_WRAP_WIDTH = 95


class _PageWriter:
    def __init__(self, c: canvas.Canvas) -> None:
        self.c = c
        self.width, self.height = letter
        self.y = self.height - 50

    def advance(self, amount: int = _LINE_HEIGHT) -> None:
        self.y -= amount
        if self.y < 80:
            self.c.showPage()
            self.c.setFont("Helvetica", 10)
            self.y = self.height - 50

    def heading(self, text: str, size: int = 13) -> None:
        self.advance(6)
        self.c.setFont("Helvetica-Bold", size)
        self.c.drawString(40, self.y, text)
        self.c.setFont("Helvetica", 10)
        self.advance(18)

    def line(self, text: str, indent: int = 0) -> None:
        for chunk in textwrap.wrap(text, _WRAP_WIDTH - indent // 5) or [""]:
            self.c.drawString(40 + indent, self.y, chunk)
            self.advance()


def _analysis_sections(writer: _PageWriter, report: dict[str, Any]) -> None:
    writer.heading("Summary")
    writer.line(f"Overall score: {report.get('overall_score')} / 100")
    writer.line(f"Risk level: {report.get('risk_level')}")
    writer.line(f"Confidence: {report.get('confidence')}%")

    writer.heading("Analyzer scores")
    weighted = report.get("weighted_scores", {})
    for name, result in report.get("analyzers", {}).items():
        writer.line(f"- {name}: {result.get('risk_score')} (weighted {weighted.get(name, 0)})", indent=20)

    for title, key in (("Evidence", "evidence_highlights"), ("Recommendations", "recommendations")):
        items = report.get(key) or []
        if items:
            writer.heading(title)
            for item in items:
                writer.line(f"- {item}", indent=20)


def _humanization_sections(writer: _PageWriter, report: dict[str, Any]) -> None:
    writer.heading("Summary")
    writer.line(f"Score: {report.get('initial_score')} -> {report.get('final_score')}")
    writer.line(f"Confidence: {report.get('confidence')}  Mode: {report.get('mode')}")
    writer.line(f"Iterations: {report.get('iterations')}  Meaning similarity: {report.get('meaning_similarity')}")

    writer.heading("Changes applied")
    for item in report.get("changes_applied", []):
        writer.line(f"- {item}", indent=20)

    writer.heading("Rewritten text")
    for paragraph in str(report.get("final_text", "")).split("\n\n"):
        writer.line(paragraph)
        writer.line("")


def render_pdf(record: HistoryRecord) -> bytes:
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=letter)
    c.setTitle(f"Veritext report {record.id}")
    writer = _PageWriter(c)

    c.setFont("Helvetica-Bold", 16)
    title = "AI Detection Report" if record.kind is RecordKind.ANALYSIS else "Humanization Report"
    c.drawString(40, writer.y, title)
    c.setFont("Helvetica", 10)
    writer.advance(24)
    writer.line(f"Record: {record.id}")
    writer.line(f"Generated from: {record.source.value}{f' ({record.file_name})' if record.file_name else ''}")
    writer.line(f"Created: {record.created_at.isoformat()}  Duration: {record.duration_ms} ms")

    if record.kind is RecordKind.ANALYSIS:
        _analysis_sections(writer, record.report)
    else:
        _humanization_sections(writer, record.report)

    writer.heading("Source preview")
    writer.line(record.text_preview)

    c.save()
    return buffer.getvalue()


def render_json(record: HistoryRecord) -> bytes:
    payload = record.model_dump(mode="json")
    return json.dumps(payload, ensure_ascii=True, indent=2).encode("utf-8")
