"""
PDF soil health report.

Page 1: summary statistics, the latest reading, a trend chart and a table of the
most recent readings. Page 2: analysis of the latest reading against its plant's
profile, crops suited to the current soil and, with enough history, the
nitrogen trend. Every page carries a "Page i of n" footer.
"""

import io
import logging
from datetime import datetime
from xml.sax.saxutils import escape

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns
from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    Image,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from soil_monitor.config import PARAMETER_UNITS, REPORT_TABLE_ROWS
from soil_monitor.exceptions import ValidationError
from soil_monitor.models import Reading
from soil_monitor.soil_health import evaluate_reading, suggest_crops

log = logging.getLogger(__name__)

REPORT_TITLE = "Smart Soil Health Report"
FOOTER_TEXT  = "Smart Soil Health Monitoring System"
TREND_MIN_READINGS = 4     # trend analysis needs more than 3 readings
TREND_SAMPLE       = 5     # readings averaged at each end of the history

BRAND_GREEN = HexColor("#2e7d32")
LIGHT_BG    = HexColor("#f1f8e9")
TEXT_COLOR  = HexColor("#263238")
GRID_COLOR  = HexColor("#c5d6c0")


def report_filename(today: datetime | None = None) -> str:
    return f"soil-health-report-{(today or datetime.now()).strftime('%Y-%m-%d')}.pdf"


def _fmt(value: float | None, unit: str = "") -> str:
    if value is None:
        return "-"
    return f"{value:.2f}{unit}"


def _mean(values: list[float]) -> float:
    return float(np.mean(values)) if values else 0.0


def nitrogen_trend(readings: list[Reading]) -> str | None:
    """
    'upward' / 'downward' / 'stable' comparing the mean nitrogen of the newest
    TREND_SAMPLE readings with the oldest TREND_SAMPLE (readings newest first).
    None when there are fewer than TREND_MIN_READINGS readings.
    """
    if len(readings) < TREND_MIN_READINGS:
        return None
    recent = _mean([r.nitrogen for r in readings[:TREND_SAMPLE]])
    older = _mean([r.nitrogen for r in readings[-TREND_SAMPLE:]])
    if recent > older:
        return "upward"
    if recent < older:
        return "downward"
    return "stable"


class NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so the footer can show the total page count."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        width, _ = self._pagesize
        self.saveState()
        self.setFont("Helvetica", 8)
        self.setFillColor(TEXT_COLOR)
        self.drawCentredString(
            width / 2, 0.45 * inch,
            f"{FOOTER_TEXT} - Page {self._pageNumber} of {total}",
        )
        self.restoreState()


def _setup_style():
    """Consistent chart style for report figures."""
    try:
        plt.style.use("seaborn-v0_8-whitegrid")
    except OSError:
        pass
    plt.rcParams["figure.dpi"] = 100
    plt.rcParams["savefig.dpi"] = 150
    plt.rcParams["font.size"] = 9


def trend_chart_png(readings: list[Reading]) -> io.BytesIO | None:
    """
    Line chart of nitrogen, pH and moisture over time as PNG bytes.
    None when there are fewer than two readings to draw a line through.
    """
    if len(readings) < 2:
        return None
    _setup_style()
    ordered = sorted(readings, key=lambda r: r.reading_date)
    dates = [r.reading_date for r in ordered]

    fig, axes = plt.subplots(3, 1, figsize=(7, 5.5), sharex=True)
    palette = sns.color_palette("Set2", 3)
    for ax, field, colour in zip(axes, ("nitrogen", "ph", "moisture"), palette):
        values = [getattr(r, field) for r in ordered]
        sns.lineplot(x=dates, y=values, ax=ax, color=colour, marker="o", linewidth=1.5)
        unit = PARAMETER_UNITS.get(field, "")
        ax.set_ylabel(f"{'pH' if field == 'ph' else field.capitalize()}" + (f" ({unit})" if unit else ""))
        ax.axhline(np.mean(values), color=colour, linestyle="--", alpha=0.5)
    axes[0].set_title("Soil parameter history", fontsize=11)
    axes[-1].tick_params(axis="x", labelrotation=30)
    plt.tight_layout()

    buf = io.BytesIO()
    fig.savefig(buf, format="png", bbox_inches="tight")
    plt.close(fig)
    buf.seek(0)
    return buf


def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "ReportTitle", parent=base["Title"], fontSize=18,
            textColor=BRAND_GREEN, alignment=TA_CENTER, spaceAfter=10,
        ),
        "heading": ParagraphStyle(
            "ReportHeading", parent=base["Heading2"], fontSize=13,
            textColor=BRAND_GREEN, spaceBefore=10, spaceAfter=4,
        ),
        "body": ParagraphStyle(
            "ReportBody", parent=base["Normal"], fontSize=10,
            textColor=TEXT_COLOR, spaceAfter=3,
        ),
        "bullet": ParagraphStyle(
            "ReportBullet", parent=base["Normal"], fontSize=10,
            textColor=TEXT_COLOR, leftIndent=14, spaceAfter=2,
        ),
    }


def _readings_table(readings: list[Reading]) -> Table:
    data = [["Date", "Location", "Nitrogen", "pH", "Moisture", "Plant/Crop"]]
    for r in readings[:REPORT_TABLE_ROWS]:
        data.append([
            r.reading_date.strftime("%Y-%m-%d"),
            r.location_name or "-",
            _fmt(r.nitrogen),
            _fmt(r.ph),
            _fmt(r.moisture, "%"),
            r.plant_type or "-",
        ])
    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), BRAND_GREEN),
        ("TEXTCOLOR", (0, 0), (-1, 0), HexColor("#ffffff")),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [HexColor("#ffffff"), LIGHT_BG]),
        ("GRID", (0, 0), (-1, -1), 0.5, GRID_COLOR),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("PADDING", (0, 0), (-1, -1), 4),
    ]))
    return table


def build_report(readings: list[Reading], generated_at: datetime | None = None,
                 include_chart: bool = True) -> bytes:
    """
    Render the soil health report for `readings` (newest first) and return the PDF bytes.
    Raises ValidationError when there is nothing to report.
    """
    if not readings:
        raise ValidationError("No soil data available to generate a report.")
    generated_at = generated_at or datetime.now()
    s = _styles()
    n_unit = PARAMETER_UNITS["nitrogen"]
    latest = readings[0]

    story = [
        Paragraph(REPORT_TITLE, s["title"]),
        Paragraph(f"Generated on: {generated_at.strftime('%Y-%m-%d')}", s["body"]),
        Paragraph(f"Total Readings: {len(readings)}", s["body"]),
        Paragraph("Summary Statistics", s["heading"]),
        Paragraph(f"Average Nitrogen Level: {_mean([r.nitrogen for r in readings]):.2f} {n_unit}", s["body"]),
        Paragraph(f"Average pH Level: {_mean([r.ph for r in readings]):.2f}", s["body"]),
        Paragraph(f"Average Moisture Content: {_mean([r.moisture for r in readings]):.2f}%", s["body"]),
        Paragraph("Latest Reading", s["heading"]),
        Paragraph(f"Date: {latest.reading_date.strftime('%Y-%m-%d %H:%M')}", s["body"]),
        Paragraph(f"Location: {escape(latest.location_name or '-')}", s["body"]),
        Paragraph(f"Nitrogen: {latest.nitrogen:g} {n_unit}", s["body"]),
        Paragraph(f"pH Level: {latest.ph:g}", s["body"]),
        Paragraph(f"Moisture: {latest.moisture:g}%", s["body"]),
        Paragraph(f"Plant/Crop: {escape(latest.plant_type or '-')}", s["body"]),
    ]

    chart = trend_chart_png(readings) if include_chart else None
    if chart is not None:
        story += [Spacer(1, 8), Image(chart, width=6 * inch, height=4.7 * inch)]

    story += [
        Paragraph(f"Recent Readings (latest {min(len(readings), REPORT_TABLE_ROWS)})", s["heading"]),
        _readings_table(readings),
        PageBreak(),
        Paragraph("Soil Health Analysis", s["title"]),
    ]

    evaluation = evaluate_reading(latest.nitrogen, latest.ph, latest.moisture, latest.plant_type)
    story.append(Paragraph("Health Status Assessment", s["heading"]))
    for alert in evaluation["alerts"]:
        story.append(Paragraph(f"<b>[!]</b> {escape(alert)}", s["body"]))
    for positive in evaluation["positives"]:
        story.append(Paragraph(f"[OK] {escape(positive)}", s["body"]))

    if evaluation["recommendations"]:
        story.append(Paragraph("Recommendations", s["heading"]))
        for rec in evaluation["recommendations"]:
            story.append(Paragraph(
                f"&bull; <b>{escape(rec['title'])}</b> ({rec['priority']} priority): "
                f"{escape(rec['description'])}",
                s["bullet"],
            ))

    for heading, items in (("Suggested Fertilizers", evaluation["fertilizers"]),
                           ("Suggested Pest and Disease Control", evaluation["pesticides"])):
        if items:
            story.append(Paragraph(heading, s["heading"]))
            story += [Paragraph(f"&bull; {escape(i)}", s["bullet"]) for i in items]

    story.append(Paragraph("Recommended Crops", s["heading"]))
    crops = suggest_crops(latest.nitrogen, latest.ph, latest.moisture)
    if crops:
        story += [Paragraph(f"&bull; {escape(c)}", s["bullet"]) for c in crops]
    else:
        story.append(Paragraph("No specific crop suggestions for the current conditions.", s["body"]))

    trend = nitrogen_trend(readings)
    if trend is not None:
        story.append(Paragraph("Trend Analysis", s["heading"]))
        story.append(Paragraph(f"Nitrogen levels are {'stable' if trend == 'stable' else 'trending ' + trend}",
                               s["body"]))

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=REPORT_TITLE,
        rightMargin=0.7 * inch,
        leftMargin=0.7 * inch,
        topMargin=0.7 * inch,
        bottomMargin=0.8 * inch,
    )
    doc.build(story, canvasmaker=NumberedCanvas)
    log.info("Built soil health report: %d reading(s)", len(readings))
    return buffer.getvalue()
