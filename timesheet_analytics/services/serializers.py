"""Format-specific writers for the generic export ``Table``."""

from __future__ import annotations

import abc
import csv
import io
import logging
from dataclasses import dataclass
from io import BytesIO

from openpyxl import Workbook
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import cm
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from timesheet_analytics.core.errors import UnsupportedExportFormat
from timesheet_analytics.services.export_service import Table

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExportFilePayload:
    media_type: str
    filename: str
    content: bytes


class TableSerializer(abc.ABC):
    """Turns a ``Table`` into file bytes of one format."""

    format_name: str = ""
    media_type: str = "application/octet-stream"
    extension: str = ""

    @abc.abstractmethod
    def render(self, table: Table) -> bytes:
        """Encode the whole table, headers first."""

    def serialize(self, table: Table, *, base_filename: str) -> ExportFilePayload:
        content = self.render(table)
        logger.info(
            "Rendered %s export %s (%d rows, %d bytes)",
            self.format_name,
            base_filename,
            len(table.rows),
            len(content),
        )
        return ExportFilePayload(
            media_type=self.media_type,
            filename=f"{base_filename}.{self.extension}",
            content=content,
        )


class CsvSerializer(TableSerializer):
    format_name = "csv"
    media_type = "text/csv; charset=utf-8"
    extension = "csv"

    def render(self, table: Table) -> bytes:
        if not table.headers:
            return b""
        sio = io.StringIO()
        writer = csv.writer(sio)
        writer.writerow(table.headers)
        writer.writerows(table.rows)
        return sio.getvalue().encode("utf-8")


class SpreadsheetSerializer(TableSerializer):
    format_name = "xlsx"
    media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    extension = "xlsx"

    def render(self, table: Table) -> bytes:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "report"

        if table.headers:
            sheet.append(table.headers)
            for row in table.rows:
                sheet.append(row)

        if table.metadata:
            meta_sheet = workbook.create_sheet("Metadata")
            meta_sheet.append(["Field", "Value"])
            for name, value in table.metadata:
                meta_sheet.append([name, value])

        output = BytesIO()
        workbook.save(output)
        return output.getvalue()


class PdfSerializer(TableSerializer):
    format_name = "pdf"
    media_type = "application/pdf"
    extension = "pdf"

    font = "Helvetica"
    font_size = 8
    row_height = 0.5 * cm
    margin = 1.5 * cm

    def _fit(self, text: str, width: float) -> str:
        if stringWidth(text, self.font, self.font_size) <= width:
            return text
        while text and stringWidth(text + "...", self.font, self.font_size) > width:
            text = text[:-1]
        return text + "..."

    def render(self, table: Table) -> bytes:
        output = BytesIO()
        page_size = landscape(A4)
        width, height = page_size
        pdf = canvas.Canvas(output, pagesize=page_size)
        title = table.title or "Report"
        pdf.setTitle(title)

        y = height - self.margin
        pdf.setFont("Helvetica-Bold", 16)
        pdf.drawString(self.margin, y, title)
        y -= 0.9 * cm

        pdf.setFont(self.font, 10)
        for name, value in table.metadata:
            pdf.drawString(self.margin, y, f"{name}: {value}")
            y -= 0.6 * cm

        if table.headers:
            column_width = (width - 2 * self.margin) / len(table.headers)
            y -= 0.3 * cm

            def draw_headers(top: float) -> None:
                pdf.setFont(f"{self.font}-Bold", self.font_size)
                for index, header in enumerate(table.headers):
                    pdf.drawString(self.margin + index * column_width, top, self._fit(header, column_width - 4))
                pdf.setFont(self.font, self.font_size)

            draw_headers(y)
            y -= self.row_height
            for row in table.rows:
                if y < self.margin:
                    pdf.showPage()
                    y = height - self.margin
                    draw_headers(y)
                    y -= self.row_height
                for index, cell in enumerate(row):
                    pdf.drawString(self.margin + index * column_width, y, self._fit(cell, column_width - 4))
                y -= self.row_height

        pdf.save()
        return output.getvalue()


SERIALIZERS: dict[str, TableSerializer] = {
    serializer.format_name: serializer
    for serializer in (CsvSerializer(), SpreadsheetSerializer(), PdfSerializer())
}


def get_serializer(format_name: str) -> TableSerializer:
    serializer = SERIALIZERS.get(format_name.strip().lower())
    if serializer is None:
        raise UnsupportedExportFormat(f"format must be one of: {', '.join(sorted(SERIALIZERS))}.")
    return serializer
