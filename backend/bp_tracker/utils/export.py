"""
Export utilities for CSV and PDF generation.
"""
import csv
import io
import logging
from xml.sax.saxutils import escape
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from bp_tracker.utils.classification import classify_bp
from bp_tracker.utils.dates import utcnow

logger = logging.getLogger(__name__)

CSV_FIELDS = ['Date', 'Time', 'Systolic', 'Diastolic', 'Pulse', 'Category', 'Notes', 'Tags']

TREND_LABELS = {
    'decreasing': 'Improving',
    'increasing': 'Rising',
    'stable': 'Stable',
}


def _safe_notes(reading):
    try:
        return reading.notes or ''
    except Exception as e:
        logger.error(f"Error decrypting notes for reading {reading.id}: {e}")
        return ''


def generate_readings_csv(readings):
    """Generate CSV export of blood pressure readings.

    Args:
        readings: List of BloodPressureReading objects, most recent first

    Returns:
        StringIO object containing CSV data
    """
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_FIELDS)
    writer.writeheader()

    for reading in readings:
        recorded = reading.recorded_at
        writer.writerow({
            'Date': recorded.strftime('%Y-%m-%d') if recorded else '',
            'Time': recorded.strftime('%H:%M') if recorded else '',
            'Systolic': reading.systolic,
            'Diastolic': reading.diastolic,
            'Pulse': reading.pulse if reading.pulse is not None else '',
            'Category': classify_bp(reading.systolic, reading.diastolic).value,
            'Notes': _safe_notes(reading),
            'Tags': ';'.join(reading.tags or []),
        })

    output.seek(0)
    return output


def _summary_table(rows):
    table = Table(rows, colWidths=[2*inch, 4*inch])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
    ]))
    return table


def generate_readings_pdf(owner, readings, snapshot, max_rows=20):
    """Generate a PDF summary report for one owner.

    Args:
        owner: User object
        readings: Readings, most recent first
        snapshot: StatsSnapshot computed over the same readings
        max_rows: Number of recent readings listed in the table

    Returns:
        BytesIO object containing PDF data
    """
    output = io.BytesIO()
    doc = SimpleDocTemplate(output, pagesize=letter, topMargin=0.5*inch, bottomMargin=0.5*inch)

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle('ReportTitle', parent=styles['Heading1'], fontSize=18, spaceAfter=20)
    heading_style = ParagraphStyle('ReportHeading', parent=styles['Heading2'], fontSize=14,
                                   spaceBefore=15, spaceAfter=10)

    elements = [
        Paragraph(f"Blood Pressure Report: {escape(owner.username)}", title_style),
        Paragraph(f"Generated: {utcnow().strftime('%B %d, %Y at %H:%M UTC')}", styles['Normal']),
        Spacer(1, 20),
        Paragraph("Summary", heading_style),
    ]

    summary = [['Total Readings:', str(snapshot.total_readings)]]
    if snapshot.total_readings:
        summary.append(['Average:', f"{snapshot.average_systolic}/{snapshot.average_diastolic} mmHg"])
    week = snapshot.last_week_average
    if week:
        summary.append(['7-Day Average:', f"{week['systolic']}/{week['diastolic']} mmHg"])
    else:
        summary.append(['7-Day Average:', 'Insufficient data'])
    summary.append(['Trend:', TREND_LABELS.get(snapshot.trend, 'N/A')])
    if readings:
        latest = readings[0]
        category = classify_bp(latest.systolic, latest.diastolic).value
        summary.append(['Latest Reading:', f"{latest.systolic}/{latest.diastolic} mmHg ({category})"])
    elements.append(_summary_table(summary))
    elements.append(Spacer(1, 15))

    if readings:
        elements.append(Paragraph(f"Recent Readings (Last {min(max_rows, len(readings))})", heading_style))
        rows = [['Date', 'Systolic', 'Diastolic', 'Pulse', 'Category']]
        for r in readings[:max_rows]:
            rows.append([
                r.recorded_at.strftime('%m/%d/%Y %H:%M') if r.recorded_at else 'N/A',
                str(r.systolic),
                str(r.diastolic),
                str(r.pulse) if r.pulse else 'N/A',
                classify_bp(r.systolic, r.diastolic).value,
            ])
        reading_table = Table(rows, colWidths=[1.5*inch, 1*inch, 1*inch, 1*inch, 1*inch])
        reading_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
            ('TOPPADDING', (0, 0), (-1, -1), 5),
        ]))
        elements.append(reading_table)

    doc.build(elements)
    output.seek(0)
    return output
