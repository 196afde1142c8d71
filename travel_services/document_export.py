"""
Document Export (``travel_services.document_export``).

Responsibility
--------------
Renders a calculated claim as a printable A4 PDF ("Reisekostenabrechnung"):
trip metadata, transport costs, other receipts, the per-day allowance
table, the summary block and two signature lines.

Architecture position
---------------------
**Services layer** -- consumes an ``ExpenseCalculation`` plus the trip
inputs it was computed from.  Performs no arithmetic of its own beyond
formatting; every amount shown comes from the calculation.

Invariants enforced
-------------------
* Summary lines satisfy ``Fahrtkosten + Sonstige Ausgaben + Netto
  == Gesamtbetrag`` (the day-summed net is displayed).
* The file name is ``<document_name>.pdf``.

Failure modes
-------------
* Malformed logo bytes -> logged as ``logo_skipped`` and the document is
  rendered without it.
* File cannot be written -> ``DocumentExportError``.
"""

from __future__ import annotations

import io
from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from pathlib import Path
from xml.sax.saxutils import escape

from PIL import Image as PILImage
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    Image,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from travel_kernel.domain.values import ZERO, coerce_amount, round_money
from travel_kernel.exceptions import DocumentExportError
from travel_kernel.logging_config import get_logger
from travel_modules.expense.models import (
    DayCalculation,
    ExpenseCalculation,
    OtherExpense,
    TransportInfo,
    TransportMode,
    TravelInfo,
)

logger = get_logger("services.document_export")

TITLE = "Reisekostenabrechnung"
FOOTER = "Erstellt gemäß deutschen Reisekostenrichtlinien (Reisekostengesetz)"

LOGO_MAX_WIDTH = 40 * mm
LOGO_MAX_HEIGHT = 20 * mm
PAGE_WIDTH = 180 * mm  # A4 minus 15mm margins

_HEADER_GREY = colors.HexColor("#424242")

_MODE_LABELS = {
    TransportMode.CAR: "PKW",
    TransportMode.PUBLIC: "Öffentliche Verkehrsmittel",
    TransportMode.PLANE: "Flug",
    TransportMode.OTHER: "Sonstiges",
}


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_amount(amount: Decimal, currency_symbol: str = "€") -> str:
    """German money format: ``1.234,56 €``."""
    text = f"{round_money(amount):,.2f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{text} {currency_symbol}"


def format_date(value: date) -> str:
    return value.strftime("%d.%m.%Y")


def format_decimal(value: Decimal) -> str:
    """Plain number with a decimal comma and no trailing zeros."""
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(Decimal("1")))
    return str(normalized).replace(".", ",")


def day_type_label(day: DayCalculation) -> str:
    if day.is_first_day and day.is_last_day:
        return "Eintägig"
    if day.is_first_day:
        return "Anreisetag"
    if day.is_last_day:
        return "Abreisetag"
    return "Volltag (24h)"


# ---------------------------------------------------------------------------
# Table rows
# ---------------------------------------------------------------------------


def build_travel_info_rows(
    calculation: ExpenseCalculation,
    travel_info: TravelInfo,
) -> list[list[str]]:
    rows = [
        ["Reisender", travel_info.traveler_name],
        ["Reisezweck", travel_info.purpose],
        ["Reiseziel", f"{travel_info.destination}, {calculation.rate.label}"],
    ]
    if travel_info.departure_date is not None:
        rows.append([
            "Abfahrt",
            f"{format_date(travel_info.departure_date)} um {travel_info.departure_time} Uhr",
        ])
    if travel_info.arrival_date is not None:
        rows.append([
            "Ankunft",
            f"{format_date(travel_info.arrival_date)} um {travel_info.arrival_time} Uhr",
        ])
    if travel_info.is_expat:
        rows.append(["Expatriate", "ja (Kürzung an Werktagen)"])
    return rows


def build_transport_rows(
    calculation: ExpenseCalculation,
    transport_info: TransportInfo | None,
    mileage_rate_per_km: Decimal = Decimal("0.30"),
) -> list[list[str]]:
    """Art / Berechnung / Betrag rows for the transport section."""
    if transport_info is None or calculation.transport_cost == ZERO:
        return [["Keine Fahrtkosten", "", format_amount(ZERO)]]

    rows: list[list[str]] = []
    kilometers = coerce_amount(transport_info.kilometers)
    if transport_info.mode == TransportMode.CAR and kilometers > ZERO:
        label = "PKW-Fahrten"
        if transport_info.route:
            label = f"PKW-Fahrten ({transport_info.route})"
        rows.append([
            label,
            f"{format_decimal(kilometers)} km × "
            f"{format_amount(mileage_rate_per_km)}/km",
            format_amount(kilometers * mileage_rate_per_km),
        ])
    other_costs = coerce_amount(transport_info.other_costs)
    if other_costs > ZERO:
        rows.append([
            "Sonstige Fahrtkosten",
            transport_info.route or _MODE_LABELS.get(transport_info.mode, ""),
            format_amount(other_costs),
        ])
    return rows


def build_other_expense_rows(other_expenses: Sequence[OtherExpense]) -> list[list[str]]:
    rows = []
    for number, expense in enumerate(other_expenses, start=1):
        rows.append([
            str(number),
            expense.description,
            expense.receipt_file_name or "-",
            format_amount(coerce_amount(expense.amount)),
        ])
    return rows


def build_day_rows(calculation: ExpenseCalculation) -> list[list[str]]:
    return [
        [
            format_date(day.day),
            day_type_label(day),
            f"{day.hours}h",
            format_amount(day.base_per_diem),
            f"- {format_amount(day.meal_deduction)}",
            format_amount(day.net_per_diem),
        ]
        for day in calculation.day_breakdown
    ]


def build_summary_rows(calculation: ExpenseCalculation) -> list[list[str]]:
    return [
        ["Fahrtkosten", format_amount(calculation.transport_cost)],
        ["Sonstige Ausgaben", format_amount(calculation.other_expenses_total)],
        ["Verpflegungsmehraufwand (brutto)", format_amount(calculation.total_per_diem)],
        ["Kürzungen (Mahlzeiten/Expatriate)", f"- {format_amount(calculation.total_meal_deduction)}"],
        ["Verpflegungsmehraufwand (netto)", format_amount(calculation.net_per_diem_by_day)],
        ["Gesamtbetrag", format_amount(calculation.total_amount)],
    ]


# ---------------------------------------------------------------------------
# Flowables
# ---------------------------------------------------------------------------


def load_logo(logo: bytes | None) -> Image | None:
    """Scaled logo flowable, or None when absent or unreadable."""
    if not logo:
        return None
    try:
        with PILImage.open(io.BytesIO(logo)) as image:
            image.verify()
        with PILImage.open(io.BytesIO(logo)) as image:
            width, height = image.size
    except (OSError, ValueError, SyntaxError):
        logger.warning("logo_skipped", exc_info=True, extra={"logo_bytes": len(logo)})
        return None
    if width <= 0 or height <= 0:
        logger.warning("logo_skipped", extra={"logo_bytes": len(logo), "reason": "empty"})
        return None

    scale = min(LOGO_MAX_WIDTH / width, LOGO_MAX_HEIGHT / height)
    image = Image(io.BytesIO(logo), width=width * scale, height=height * scale)
    image.hAlign = "RIGHT"
    return image


def _data_table(
    rows: list[list[str]],
    col_widths: list[float],
    header: list[str] | None = None,
) -> Table:
    data = ([header] if header else []) + rows
    table = Table(data, colWidths=col_widths, repeatRows=1 if header else 0)
    style = [
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ALIGN", (-1, 0), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]
    if header:
        style += [
            ("BACKGROUND", (0, 0), (-1, 0), _HEADER_GREY),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ]
    table.setStyle(TableStyle(style))
    return table


def _signature_block() -> Table:
    table = Table(
        [["", "", ""], ["Unterschrift Reisender", "", "Unterschrift Genehmigung"]],
        colWidths=[75 * mm, 30 * mm, 75 * mm],
        rowHeights=[15 * mm, None],
    )
    table.setStyle(TableStyle([
        ("LINEABOVE", (0, 1), (0, 1), 0.75, colors.black),
        ("LINEABOVE", (2, 1), (2, 1), 0.75, colors.black),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
    ]))
    return table


def _draw_footer(canvas, doc) -> None:
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    canvas.drawCentredString(A4[0] / 2, 10 * mm, FOOTER)
    canvas.drawRightString(A4[0] - 15 * mm, 10 * mm, f"Seite {doc.page}")
    canvas.restoreState()


def build_story(
    calculation: ExpenseCalculation,
    travel_info: TravelInfo,
    transport_info: TransportInfo | None,
    other_expenses: Sequence[OtherExpense],
    logo: bytes | None = None,
    created_on: date | None = None,
    mileage_rate_per_km: Decimal = Decimal("0.30"),
) -> list:
    """Assemble the platypus flowables for the whole document."""
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "ClaimTitle", parent=styles["Heading1"], fontSize=18, spaceAfter=6
    )
    small = ParagraphStyle("Small", parent=styles["Normal"], fontSize=9)

    elements: list = []
    logo_image = load_logo(logo)
    if logo_image is not None:
        elements.append(logo_image)

    elements.append(Paragraph(TITLE, title_style))
    elements.append(Paragraph(f"Dokument: {escape(calculation.document_name)}", small))
    elements.append(
        Paragraph(f"Erstellt am: {format_date(created_on or date.today())}", small)
    )
    elements.append(Spacer(1, 6 * mm))

    elements.append(Paragraph("Reiseinformationen", styles["Heading2"]))
    info_table = Table(
        build_travel_info_rows(calculation, travel_info),
        colWidths=[40 * mm, PAGE_WIDTH - 40 * mm],
    )
    info_table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 5 * mm))

    elements.append(Paragraph("Fahrtkosten", styles["Heading2"]))
    elements.append(_data_table(
        build_transport_rows(calculation, transport_info, mileage_rate_per_km),
        [60 * mm, 85 * mm, 35 * mm],
        header=["Art", "Berechnung", "Betrag"],
    ))
    elements.append(Spacer(1, 5 * mm))

    if other_expenses:
        elements.append(Paragraph("Sonstige Ausgaben", styles["Heading2"]))
        elements.append(_data_table(
            build_other_expense_rows(other_expenses),
            [12 * mm, 95 * mm, 43 * mm, 30 * mm],
            header=["Nr.", "Beschreibung", "Beleg", "Betrag"],
        ))
        elements.append(Spacer(1, 5 * mm))

    rate = calculation.rate
    elements.append(Paragraph(
        escape(
            f"Verpflegungsmehraufwand ({rate.label}: "
            f"{format_amount(rate.full_day_rate)} / {format_amount(rate.partial_day_rate)})"
        ),
        styles["Heading2"],
    ))
    elements.append(_data_table(
        build_day_rows(calculation),
        [26 * mm, 34 * mm, 20 * mm, 33 * mm, 35 * mm, 32 * mm],
        header=["Datum", "Tag", "Stunden", "Tagessatz", "Kürzung", "Netto"],
    ))
    elements.append(Spacer(1, 5 * mm))

    elements.append(Paragraph("Zusammenfassung", styles["Heading2"]))
    summary = Table(build_summary_rows(calculation), colWidths=[120 * mm, 60 * mm])
    summary.setStyle(TableStyle([
        ("FONTSIZE", (0, 0), (-1, -2), 10),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("LINEABOVE", (0, -1), (-1, -1), 1, colors.black),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, -1), (-1, -1), 13),
    ]))
    elements.append(summary)
    elements.append(Spacer(1, 15 * mm))
    elements.append(_signature_block())
    return elements


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def render_expense_pdf(
    calculation: ExpenseCalculation,
    travel_info: TravelInfo,
    transport_info: TransportInfo | None,
    other_expenses: Sequence[OtherExpense] = (),
    logo: bytes | None = None,
    *,
    created_on: date | None = None,
    mileage_rate_per_km: Decimal = Decimal("0.30"),
) -> bytes:
    """Render the claim and return the PDF bytes."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=20 * mm,
        title=f"{TITLE} {calculation.document_name}",
        author=travel_info.traveler_name,
    )
    doc.build(
        build_story(
            calculation,
            travel_info,
            transport_info,
            other_expenses,
            logo=logo,
            created_on=created_on,
            mileage_rate_per_km=mileage_rate_per_km,
        ),
        onFirstPage=_draw_footer,
        onLaterPages=_draw_footer,
    )
    return buf.getvalue()


def document_file_name(calculation: ExpenseCalculation) -> str:
    return f"{calculation.document_name}.pdf"


def export_expense_pdf(
    calculation: ExpenseCalculation,
    travel_info: TravelInfo,
    transport_info: TransportInfo | None,
    other_expenses: Sequence[OtherExpense] = (),
    logo: bytes | None = None,
    *,
    output_dir: Path | str = ".",
    created_on: date | None = None,
    mileage_rate_per_km: Decimal = Decimal("0.30"),
) -> Path:
    """Render the claim and write ``<document_name>.pdf`` into ``output_dir``."""
    content = render_expense_pdf(
        calculation,
        travel_info,
        transport_info,
        other_expenses,
        logo,
        created_on=created_on,
        mileage_rate_per_km=mileage_rate_per_km,
    )
    path = Path(output_dir) / document_file_name(calculation)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    except OSError as exc:
        logger.error(
            "document_export_failed",
            exc_info=True,
            extra={"path": str(path)},
        )
        raise DocumentExportError(calculation.document_name, str(path), str(exc)) from exc

    logger.info(
        "document_exported",
        extra={
            "path": str(path),
            "size_bytes": len(content),
            "day_count": calculation.total_days,
            "total_amount": str(calculation.total_amount),
        },
    )
    return path
