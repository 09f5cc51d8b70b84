"""
Service d'import CSV/Excel / CSV/Excel import service.
Transforme une grille de cellules en lignes de registre.
Maps a grid of cells to ledger rows; bad rows are collected with their reason.
"""

import csv
import io
import logging
import math
from typing import Any

from openpyxl import load_workbook
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleetdesk.config import settings
from fleetdesk.models.fuel import CounterType, FuelRecord, StationType
from fleetdesk.models.tire import TireStock
from fleetdesk.schemas.imports import ImportFailure, ImportResult
from fleetdesk.services.errors import ImportRowError, ValidationError
from fleetdesk.services.inventory_service import compute_total
from fleetdesk.services.snapshot_service import LookupContext, SnapshotService
from fleetdesk.utils.dates import parse_import_date

logger = logging.getLogger(__name__)

POLICY_COLLECT = "collect"
POLICY_FAIL_FAST = "fail_fast"
IMPORT_POLICIES = (POLICY_COLLECT, POLICY_FAIL_FAST)

# Lignes d'en-tete du modele (instruction + titres) / Template leading rows (instruction + headers)
FUEL_TEMPLATE_HEADER_ROWS = 2

FUEL_TEMPLATE_COLUMNS = [
    "Date", "Plate", "Station / Tank", "Station type", "Counter type",
    "Fuel type", "Amount", "Unit price", "Total",
]

# Alias d'en-tetes du stock pneus (turc / anglais) / Tire stock header aliases (Turkish / English)
_TIRE_HEADER_ALIASES = {
    "marka": "brand", "brand": "brand",
    "tip": "type", "type": "type",
    "desen": "pattern", "pattern": "pattern",
    "ebat": "size", "size": "size",
    "durum": "condition", "condition": "condition",
    "seri no": "serial_number", "serial number": "serial_number", "serial_number": "serial_number",
    "dot no": "dot_number", "dot": "dot_number", "dot_number": "dot_number",
    "lastik ömrü": "estimated_lifetime", "lifetime": "estimated_lifetime",
    "estimated_lifetime": "estimated_lifetime",
    "satın alma tarihi": "purchase_date", "purchase date": "purchase_date", "purchase_date": "purchase_date",
    "fiyat": "price", "price": "price",
    "tedarikçi": "supplier", "supplier": "supplier",
    "miktar": "quantity", "quantity": "quantity",
}

_NA_VALUES = {"", "nan", "none", "null", "n/a"}


class RowRejected(Exception):
    """Ligne rejetee par le mappeur / Row rejected by the mapper."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


# ─── Cellules / Cells ───

def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip().lower() in _NA_VALUES


def _text(value: Any) -> str | None:
    if _is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def parse_number(value: Any) -> float | None:
    """Cellule -> float, virgule decimale acceptee / Cell to float, comma decimal accepted.

    Retourne None si la cellule n'est pas un nombre fini.
    Returns None when the cell is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(" ", "")
        if not text:
            return None
        if "," in text and "." in text:
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", ".")
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def _required_number(value: Any, label: str) -> float:
    number = parse_number(value)
    if number is None:
        raise RowRejected(f"invalid {label}")
    return number


class ImportService:
    """Import de donnees depuis fichiers / Data import from files."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # ─── Lecture de fichiers / File reading ───

    @staticmethod
    def read_sheet(content: bytes) -> list[list[Any]]:
        """Premiere feuille Excel -> grille / First Excel sheet as a cell grid."""
        wb = load_workbook(filename=io.BytesIO(content), read_only=True, data_only=True)
        try:
            ws = wb.worksheets[0] if wb.worksheets else None
            if ws is None:
                return []
            return [list(row) for row in ws.iter_rows(values_only=True)]
        finally:
            wb.close()

    @staticmethod
    def parse_csv(content: bytes) -> list[list[Any]]:
        """Parser un fichier CSV en grille / Parse a CSV file as a cell grid."""
        text = content.decode("utf-8-sig")  # BOM-safe
        rows = list(csv.reader(io.StringIO(text), delimiter=";"))
        # Essayer aussi avec la virgule / Try comma delimiter too
        if rows and max(len(r) for r in rows) <= 1:
            rows = list(csv.reader(io.StringIO(text), delimiter=","))
        return [[cell if cell != "" else None for cell in row] for row in rows]

    @classmethod
    def read_grid(cls, filename: str | None, content: bytes) -> list[list[Any]]:
        if filename and filename.lower().endswith(".csv"):
            return cls.parse_csv(content)
        return cls.read_sheet(content)

    @staticmethod
    def resolve_policy(policy: str | None) -> str:
        policy = policy or settings.IMPORT_POLICY
        if policy not in IMPORT_POLICIES:
            raise ValidationError(f"Unknown import policy '{policy}'. Allowed: {list(IMPORT_POLICIES)}")
        return policy

    # ─── Carburant / Fuel ───

    @staticmethod
    def map_fuel_row(row: list[Any], context: LookupContext) -> dict[str, Any]:
        """Une ligne du modele -> champs FuelRecord / One template row to FuelRecord fields."""
        cells = list(row) + [None] * (len(FUEL_TEMPLATE_COLUMNS) - len(row))

        plate = _text(cells[1])
        if plate is None:
            raise RowRejected("missing plate")
        vehicle_id = context.vehicles_by_plate.get(plate)
        if vehicle_id is None:
            raise RowRejected("unknown plate")

        station_type = StationType.INTERNAL if (_text(cells[3]) or "").lower() == "internal" else StationType.EXTERNAL
        place = _text(cells[2])
        tank_id = None
        station = None
        counter_type = None
        if station_type == StationType.INTERNAL:
            if place is None:
                raise RowRejected("missing tank")
            tanks = {name.lower(): tid for name, tid in context.tanks_by_name.items()}
            tank_id = tanks.get(place.lower())
            if tank_id is None:
                raise RowRejected("unknown tank")
            counter_raw = _text(cells[4])
            try:
                counter_type = CounterType(counter_raw) if counter_raw else CounterType.WITH_COUNTER
            except ValueError:
                raise RowRejected("invalid counter type")
        elif place is not None:
            stations = {name.strip().lower(): sid for name, sid in context.stations_by_name.items()}
            station_id = stations.get(place.lower())
            station = str(station_id) if station_id is not None else place

        record_date = parse_import_date(cells[0])
        if record_date is None:
            raise RowRejected("invalid date")

        amount = _required_number(cells[6], "amount")
        if amount <= 0:
            raise RowRejected("amount must be greater than 0")
        unit_price = _required_number(cells[7], "unit price")
        if unit_price < 0:
            raise RowRejected("unit price must not be negative")

        return {
            "vehicle_id": vehicle_id,
            "date": record_date,
            "station_type": station_type,
            "tank_id": tank_id,
            "station": station,
            "counter_type": counter_type,
            "fuel_type": _text(cells[5]),
            "amount": amount,
            "unit_price": unit_price,
            "total": compute_total(amount, unit_price),
        }

    @classmethod
    def map_fuel_rows(
        cls, rows: list[list[Any]], context: LookupContext, policy: str = POLICY_COLLECT,
    ) -> tuple[list[dict[str, Any]], list[ImportFailure]]:
        """Mapper toute la grille / Map the whole grid.

        Les deux premieres lignes du modele sont ignorees ; ``row`` vaut le
        numero de ligne de donnees (base 1).
        The two template rows are skipped; ``row`` is the 1-based data row number.
        """
        valid: list[dict[str, Any]] = []
        failed: list[ImportFailure] = []
        for index, row in enumerate(rows[FUEL_TEMPLATE_HEADER_ROWS:], start=1):
            if row is None or all(_is_blank(cell) for cell in row):
                continue
            try:
                valid.append(cls.map_fuel_row(row, context))
            except RowRejected as exc:
                if policy == POLICY_FAIL_FAST:
                    raise ImportRowError(index, exc.reason) from exc
                logger.warning("Fuel import row %s rejected: %s", index, exc.reason)
                failed.append(ImportFailure(row=index, reason=exc.reason))
        return valid, failed

    async def import_fuel_records(
        self,
        owner_id: int,
        rows: list[list[Any]],
        context: LookupContext | None = None,
        policy: str | None = None,
    ) -> ImportResult:
        """Importer l'historique carburant / Import fuel history.

        Les lignes valides sont inserees en un seul lot ; cuves et compteurs
        ne sont pas modifies.
        Valid rows are inserted in one batch; tanks and odometers are left alone.
        """
        policy = self.resolve_policy(policy)
        if context is None:
            context = await SnapshotService(self._session_factory).lookup_context(owner_id)
        valid, failed = self.map_fuel_rows(rows, context, policy)

        if valid:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add_all([FuelRecord(owner_id=owner_id, **fields) for fields in valid])
        logger.info("Fuel import: %d inserted, %d failed (owner=%s)", len(valid), len(failed), owner_id)
        return ImportResult(inserted=len(valid), failed=failed)

    # ─── Stock pneus / Tire stock ───

    @staticmethod
    def map_tire_row(record: dict[str, Any]) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for header, value in record.items():
            key = _TIRE_HEADER_ALIASES.get(str(header).strip().lower()) if header is not None else None
            if key:
                fields[key] = value

        for key in ("brand", "type", "pattern", "size", "condition", "serial_number", "dot_number", "supplier"):
            fields[key] = _text(fields.get(key))
        if fields["size"] is None:
            raise RowRejected("missing size")

        quantity = parse_number(fields.get("quantity"))
        if quantity is None or quantity < 0 or not quantity.is_integer():
            raise RowRejected("invalid quantity")
        fields["quantity"] = int(quantity)

        price = fields.get("price")
        if _is_blank(price):
            fields["price"] = None
        else:
            fields["price"] = _required_number(price, "price")
            if fields["price"] < 0:
                raise RowRejected("price must not be negative")

        lifetime = fields.get("estimated_lifetime")
        if _is_blank(lifetime):
            fields["estimated_lifetime"] = None
        else:
            fields["estimated_lifetime"] = int(_required_number(lifetime, "lifetime"))

        purchase = fields.get("purchase_date")
        if _is_blank(purchase):
            fields["purchase_date"] = None
        else:
            fields["purchase_date"] = parse_import_date(purchase)
            if fields["purchase_date"] is None:
                raise RowRejected("invalid date")
        return fields

    async def import_tire_stock(
        self, owner_id: int, rows: list[list[Any]], policy: str | None = None,
    ) -> ImportResult:
        """Importer le stock pneus (ligne 1 = en-tetes) / Import tire stock (row 1 holds headers)."""
        policy = self.resolve_policy(policy)
        if not rows:
            return ImportResult(inserted=0)
        headers = rows[0]
        valid: list[dict[str, Any]] = []
        failed: list[ImportFailure] = []
        for index, row in enumerate(rows[1:], start=1):
            if row is None or all(_is_blank(cell) for cell in row):
                continue
            try:
                valid.append(self.map_tire_row(dict(zip(headers, row))))
            except RowRejected as exc:
                if policy == POLICY_FAIL_FAST:
                    raise ImportRowError(index, exc.reason) from exc
                logger.warning("Tire stock import row %s rejected: %s", index, exc.reason)
                failed.append(ImportFailure(row=index, reason=exc.reason))

        if valid:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add_all([TireStock(owner_id=owner_id, **fields) for fields in valid])
        logger.info("Tire stock import: %d inserted, %d failed (owner=%s)", len(valid), len(failed), owner_id)
        return ImportResult(inserted=len(valid), failed=failed)
