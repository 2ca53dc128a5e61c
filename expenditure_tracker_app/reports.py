from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph
import xlsxwriter
from xlsxwriter.exceptions import XlsxWriterException
import calendar
import csv
import logging
import os

from expenditure_tracker_app.aggregation import GroupBy, group_expenditures
from expenditure_tracker_app.table_helpers import format_total_row

logger = logging.getLogger(__name__)

HEADERS = ["group", "date", "category", "payment_mode", "spent_by", "amount", "comment"]


class ReportService:
    """Exports a month of grouped expenditures to CSV, Excel, and PDF."""

    def __init__(self, data_manager=None):
        self.data_manager = data_manager

    def build_month_rows(self, year, month, mode=GroupBy.CATEGORY):
        """
        Flatten the grouped view of one month into rows: the records of each
        group followed by its subtotal, then a grand total.
        """
        records = self.data_manager.list_for_month(year, month)
        # Exports cover the whole month in every mode
        buckets = group_expenditures(records, mode, page=1, page_size=max(len(records), 1))

        rows = []
        grand_total = 0.0
        for bucket in buckets:
            for record in bucket.items:
                rows.append(
                    {
                        "group": bucket.title,
                        "date": record.get("date", ""),
                        "category": record.get("category", ""),
                        "payment_mode": record.get("payment_mode", ""),
                        "spent_by": record.get("spent_by", ""),
                        "amount": record.get("amount", 0.0),
                        "comment": record.get("comment") or "",
                    }
                )
            rows.append(format_total_row(bucket.title, bucket.total_amount))
            grand_total += bucket.total_amount
        rows.append(format_total_row(None, grand_total, is_grand=True))
        return rows

    def export_month(self, year, month, filename, mode=GroupBy.CATEGORY):
        """Export one month; the file extension selects the format."""
        extension = os.path.splitext(filename)[1].lower()
        if extension not in (".csv", ".xlsx", ".pdf"):
            raise ValueError(f"Unsupported export format: {extension or filename}")

        rows = self.build_month_rows(year, month, mode)
        title = f"Expenditure Report - {calendar.month_name[month]} {year}"
        if extension == ".csv":
            return self.export_to_csv(rows, filename)
        if extension == ".xlsx":
            return self.export_to_excel(rows, filename)
        return self.export_to_pdf(rows, filename, title=title)

    @staticmethod
    def export_to_csv(rows, filename):
        logger.info("Starting CSV export -> %s", filename)

        try:
            with open(filename, mode="w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(HEADERS)
                for r in rows:
                    writer.writerow([r.get(h, "") for h in HEADERS])
            logger.info("CSV export successful: %s", filename)
            return filename
        except OSError as e:
            logger.exception("CSV export failed: %s", e)
            return None

    @staticmethod
    def export_to_excel(rows, filename):
        logger.info("Starting Excel export -> %s", filename)

        try:
            workbook = xlsxwriter.Workbook(filename)
            ws = workbook.add_worksheet("Expenditures")

            header_fmt = workbook.add_format({"bold": True, "bg_color": "#dce6f1"})
            total_fmt = workbook.add_format({"bold": True})
            for c, h in enumerate(HEADERS):
                ws.write(0, c, h, header_fmt)

            for row, r in enumerate(rows, start=1):
                fmt = total_fmt if r.get("is_total") else None
                for c, h in enumerate(HEADERS):
                    ws.write(row, c, r.get(h, ""), fmt)

            ws.set_column("A:A", 20)
            ws.set_column("B:B", 12)
            ws.set_column("C:E", 15)
            ws.set_column("F:F", 12)
            ws.set_column("G:G", 30)
            workbook.close()

            logger.info("Excel export successful: %s", filename)
            return filename
        except (OSError, XlsxWriterException) as e:
            logger.exception("Excel export failed: %s", e)
            return None

    @staticmethod
    def export_to_pdf(rows, filename, title="Expenditure Report"):
        logger.info("Starting PDF export -> %s", filename)

        try:
            doc = SimpleDocTemplate(filename, pagesize=A4)
            styles = getSampleStyleSheet()
            elements = [Paragraph(title, styles["Title"])]

            data = [HEADERS]
            total_rows = []
            for r in rows:
                if r.get("is_total"):
                    total_rows.append(len(data))
                data.append(
                    [
                        str(r.get("group") or ""),
                        str(r.get("date", "")),
                        str(r.get("category", "")),
                        str(r.get("payment_mode", "")),
                        str(r.get("spent_by", "")),
                        f"{r.get('amount', 0):.2f}",
                        str(r.get("comment", "")),
                    ]
                )

            style = [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightblue),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("ALIGN", (5, 1), (5, -1), "RIGHT"),
            ]
            for index in total_rows:
                style.append(("FONTNAME", (0, index), (-1, index), "Helvetica-Bold"))

            table = Table(data, repeatRows=1)
            table.setStyle(TableStyle(style))

            elements.append(table)
            doc.build(elements)

            logger.info("PDF export successful: %s", filename)
            return filename
        except OSError as e:
            logger.exception("PDF export failed: %s", e)
            return None
