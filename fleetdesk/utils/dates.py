"""
Dates d'import/export / Import and export date helpers.

Formats acceptes a l'import, par priorite / Accepted import formats, by priority:
``dd.MM.yyyy``, ``yyyy-MM-dd``, puis numero de serie Excel / then Excel serial.
"""

from datetime import date, datetime, timedelta, timezone

DISPLAY_DATE_FORMAT = "%d.%m.%Y"
ISO_DATE_FORMAT = "%Y-%m-%d"
_TEXT_FORMATS = (DISPLAY_DATE_FORMAT, ISO_DATE_FORMAT)

# Jours entre l'epoque Excel (1899-12-30) et l'epoque Unix / Days between Excel and Unix epochs
EXCEL_EPOCH_OFFSET_DAYS = 25569
_MS_PER_DAY = 86400 * 1000


def excel_serial_to_date(serial: float) -> date:
    """Serie Excel -> date / Excel serial number to date (UTC calendar day)."""
    millis = (serial - EXCEL_EPOCH_OFFSET_DAYS) * _MS_PER_DAY
    moment = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=millis)
    return moment.date()


def parse_import_date(value) -> date | None:
    """Interpreter une cellule date / Parse a date cell. Returns None when nothing matches."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _serial_or_none(float(value))

    text = str(value).strip()
    if not text:
        return None
    for fmt in _TEXT_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        serial = float(text.replace(",", "."))
    except ValueError:
        return None
    return _serial_or_none(serial)


def _serial_or_none(serial: float) -> date | None:
    if serial != serial or serial in (float("inf"), float("-inf")):
        return None
    try:
        return excel_serial_to_date(serial)
    except OverflowError:
        return None


def format_display_date(value: date | datetime | None) -> str:
    """Date -> ``dd.MM.yyyy`` ou ``""`` / Format as ``dd.MM.yyyy`` or ``""``."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.strftime(DISPLAY_DATE_FORMAT)
    return ""


__all__ = [
    "DISPLAY_DATE_FORMAT",
    "ISO_DATE_FORMAT",
    "excel_serial_to_date",
    "format_display_date",
    "parse_import_date",
]
