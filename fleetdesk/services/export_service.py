"""
Service d'export CSV/Excel / CSV/Excel export service.
Genere des fichiers CSV et XLSX a partir de lignes d'affichage.
"""

import csv
import io
from typing import Any

from openpyxl import Workbook

from fleetdesk.models.fuel import StationType
from fleetdesk.services.import_service import FUEL_TEMPLATE_COLUMNS
from fleetdesk.services.snapshot_service import LookupContext
from fleetdesk.utils.dates import format_display_date

FUEL_EXPORT_HEADER = [
    "Date", "Plate", "Station / Tank", "Station type", "Amount", "Unit price", "Total",
]


def format_amount(value: float | None) -> str:
    """Nombre a 2 decimales / Number fixed to 2 decimals."""
    return f"{(value or 0.0):.2f}"


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


class ExportService:
    """Export de donnees vers CSV/XLSX / Data export to CSV/XLSX."""

    @staticmethod
    def export_fuel_records(records: list, context: LookupContext) -> list[list[str]]:
        """Registre carburant -> lignes d'affichage / Fuel ledger to display rows."""
        plates = context.plates_by_id
        tank_names = context.tank_names_by_id
        rows = []
        for record in records:
            station_type = _enum_value(record.station_type)
            if station_type == StationType.INTERNAL.value:
                place = tank_names.get(record.tank_id, "-")
            else:
                place = context.station_label(record.station) or "-"
            rows.append([
                format_display_date(record.date),
                plates.get(record.vehicle_id, "-"),
                place,
                station_type,
                format_amount(record.amount),
                format_amount(record.unit_price),
                format_amount(record.total),
            ])
        return rows

    @staticmethod
    def to_csv(header: list[str], rows: list[list[Any]]) -> bytes:
        """Generer un CSV UTF-8 BOM avec separateur ';' / Generate UTF-8 BOM CSV with ';' separator."""
        output = io.StringIO()
        writer = csv.writer(output, delimiter=";")
        writer.writerow(header)
        writer.writerows(rows)
        return ("\ufeff" + output.getvalue()).encode("utf-8")

    @staticmethod
    def to_xlsx(header: list[str], rows: list[list[Any]], sheet_name: str = "Data") -> bytes:
        """Generer un fichier Excel / Generate an Excel file."""
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_name

        # En-tetes / Headers
        for col_idx, title in enumerate(header, 1):
            cell = ws.cell(row=1, column=col_idx, value=title)
            cell.font = cell.font.copy(bold=True)

        # Donnees / Data rows
        for row_idx, row in enumerate(rows, 2):
            for col_idx, value in enumerate(row, 1):
                ws.cell(row=row_idx, column=col_idx, value=value)

        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()

    @staticmethod
    def fuel_import_template() -> bytes:
        """Modele d'import carburant (instruction + en-tetes) / Fuel import template (instruction + headers)."""
        wb = Workbook()
        ws = wb.active
        ws.title = "Fuel records"
        ws.append(["Dates as dd.MM.yyyy; station type internal or external; tank name for internal rows"])
        ws.append(FUEL_TEMPLATE_COLUMNS)
        for cell in ws[2]:
            cell.font = cell.font.copy(bold=True)
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()
