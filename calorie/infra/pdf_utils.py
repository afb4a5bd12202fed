import io
from reportlab.lib.pagesizes import A4, landscape
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def generate_pdf_for_week(overview, bank_status=None):
    """Render the week overview as a PDF table: Day / Target / Eaten / Burned / Remaining."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf, pagesize=landscape(A4),
        rightMargin=20, leftMargin=20, topMargin=20, bottomMargin=20
    )

    styles = getSampleStyleSheet()
    start = overview.week_start_date
    elements = [
        Paragraph(f"Calorie Budget - Week of {start.strftime('%d.%m.%Y')}", styles["Title"]),
        Paragraph(f"Allowance this week: {overview.current_week_allowance} kcal", styles["Normal"]),
        Spacer(1, 16),
    ]

    data = [["Day", "Target", "Eaten", "Burned", "Remaining", "Banking", "Locked"]]
    for day in overview.days:
        label = f"{DAY_NAMES[day.date.weekday()]} ({day.date.strftime('%d.%m')})"
        if day.is_today:
            label += " *"
        data.append([
            label,
            day.target,
            day.consumed,
            day.burned,
            day.remaining,
            f"{day.banking_adjustment:+d}" if day.banking_adjustment else "-",
            "yes" if day.locked else "",
        ])
    data.append([
        "Total",
        sum(d.target for d in overview.days),
        sum(d.consumed for d in overview.days),
        sum(d.burned for d in overview.days),
        "", "", "",
    ])

    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#4CAF50")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 12),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 10),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    elements.append(table)

    if bank_status is not None:
        elements.extend([
            Spacer(1, 16),
            Paragraph(
                f"Remaining this week: {bank_status.remaining} kcal over {bank_status.days_left} days "
                f"(about {bank_status.daily_average} kcal/day).",
                styles["Normal"],
            ),
        ])

    doc.build(elements)
    return buf.getvalue()
