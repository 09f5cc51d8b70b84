"""
Service de calcul des indicateurs / Derived metrics service.
Fonctions pures sur un instantane des lignes, sans I/O.
Pure functions over a snapshot of ledger rows, no I/O.
"""

from collections.abc import Iterable
from datetime import date, datetime


def _value(row, name: str, default=None):
    """Lire un champ d'une ligne ORM, d'un schema ou d'un dict / Read a field from an ORM row, schema or dict."""
    if isinstance(row, dict):
        return row.get(name, default)
    return getattr(row, name, default)


def _as_date(value) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    return None


def _argmax_sum(rows: Iterable, key: str, weight: str):
    """Cle de plus grande somme, premiere rencontree en cas d'egalite / Key with the largest sum, first seen wins ties."""
    totals: dict = {}
    for row in rows:
        k = _value(row, key)
        if k is None:
            continue
        totals[k] = totals.get(k, 0) + (_value(row, weight) or 0)
    best_key, best_total = None, None
    for k, total in totals.items():
        if best_total is None or total > best_total:
            best_key, best_total = k, total
    return best_key


class MetricsService:
    """Indicateurs derives / Derived metrics."""

    @staticmethod
    def fill_rate(current_amount: float, capacity: float) -> float:
        """Taux de remplissage de cuve / Tank fill rate (%), clamped to [0, 100]."""
        if not capacity or capacity <= 0:
            return 0.0
        rate = current_amount / capacity * 100
        return round(min(max(rate, 0.0), 100.0), 1)

    @staticmethod
    def average_price(entries: Iterable) -> float:
        """Prix moyen pondere / Weighted average unit price, 0 when nothing was bought."""
        total_amount = 0.0
        total_cost = 0.0
        for entry in entries:
            total_amount += _value(entry, "amount") or 0
            total_cost += _value(entry, "total") or 0
        if total_amount == 0:
            return 0.0
        return total_cost / total_amount

    @staticmethod
    def months_between(start: date, end: date) -> int:
        """Mois pleins entre deux dates / Whole calendar months between two dates."""
        if end < start:
            start, end = end, start
        months = (end.year - start.year) * 12 + (end.month - start.month)
        if end.day < start.day:
            months -= 1
        return months

    @staticmethod
    def monthly_average_consumption(records: Iterable) -> float:
        """Consommation mensuelle moyenne / Average monthly consumption.

        Le denominateur est au moins 1 : une seule journee compte pour un mois.
        The denominator floors to 1, so a single day counts as a whole month.
        """
        total = 0.0
        dates: list[date] = []
        for record in records:
            total += _value(record, "amount") or 0
            d = _as_date(_value(record, "date"))
            if d is not None:
                dates.append(d)
        if not dates:
            return 0.0
        months = MetricsService.months_between(min(dates), max(dates))
        return total / max(1, months)

    @staticmethod
    def days_until(target, today: date | None = None) -> int | None:
        """Jours calendaires restants, negatif si depasse / Calendar days left, negative when overdue."""
        target_date = _as_date(target)
        if target_date is None:
            return None
        return (target_date - (today or date.today())).days

    @staticmethod
    def progress_percent(days_left: int | None, horizon_days: int = 365) -> float:
        """Barre de progression bornee (affichage uniquement) / Bounded progress bar (display only)."""
        if days_left is None or horizon_days <= 0:
            return 0.0
        return round(min(max(days_left / horizon_days * 100, 0.0), 100.0), 1)

    @staticmethod
    def most_used_vehicle(records: Iterable) -> int | None:
        """Vehicule ayant consomme le plus / Vehicle with the largest fuel amount."""
        return _argmax_sum(records, "vehicle_id", "amount")

    @staticmethod
    def most_common_size(inventory: Iterable) -> str | None:
        """Dimension la plus stockee / Tire size with the largest quantity on hand."""
        return _argmax_sum(inventory, "size", "quantity")

    @staticmethod
    def most_common_fuel_type(tanks: Iterable) -> str | None:
        """Carburant le plus frequent parmi les cuves / Most frequent tank fuel type."""
        counts: dict[str, int] = {}
        for tank in tanks:
            fuel_type = _value(tank, "fuel_type")
            if fuel_type:
                counts[fuel_type] = counts.get(fuel_type, 0) + 1
        best, best_count = None, 0
        for fuel_type, count in counts.items():
            if count > best_count:
                best, best_count = fuel_type, count
        return best

    @staticmethod
    def low_stock_count(inventory: Iterable, threshold: int = 5) -> int:
        return sum(1 for item in inventory if (_value(item, "quantity") or 0) < threshold)

    @staticmethod
    def fuel_summary(records: list) -> dict:
        """Cartes du registre carburant / Fuel ledger summary cards."""
        total_amount = sum(_value(r, "amount") or 0 for r in records)
        total_cost = sum(_value(r, "total") or 0 for r in records)
        return {
            "record_count": len(records),
            "total_amount": total_amount,
            "total_cost": total_cost,
            "average_unit_price": total_cost / total_amount if total_amount > 0 else 0.0,
            "monthly_average_consumption": MetricsService.monthly_average_consumption(records),
            "most_used_vehicle_id": MetricsService.most_used_vehicle(records),
        }

    @staticmethod
    def tank_summary(tanks: list) -> dict:
        return {
            "tank_count": len(tanks),
            "total_capacity": sum(_value(t, "capacity") or 0 for t in tanks),
            "total_current_amount": sum(_value(t, "current_amount") or 0 for t in tanks),
            "most_common_fuel_type": MetricsService.most_common_fuel_type(tanks),
        }

    @staticmethod
    def tank_metrics(tank, entries: list, exits: list) -> dict:
        """Fiche cuve / Tank detail metrics."""
        entry_dates = [d for d in (_as_date(_value(e, "date")) for e in entries) if d]
        exit_dates = [d for d in (_as_date(_value(r, "date")) for r in exits) if d]
        return {
            "tank_id": _value(tank, "id"),
            "fill_rate": MetricsService.fill_rate(_value(tank, "current_amount") or 0, _value(tank, "capacity") or 0),
            "average_price": MetricsService.average_price(entries),
            "monthly_average_consumption": MetricsService.monthly_average_consumption(exits),
            "total_in": sum(_value(e, "amount") or 0 for e in entries),
            "total_out": sum(_value(r, "amount") or 0 for r in exits),
            "last_entry_date": max(entry_dates) if entry_dates else None,
            "last_exit_date": max(exit_dates) if exit_dates else None,
        }

    @staticmethod
    def tire_stock_metrics(inventory: list, low_stock_threshold: int = 5) -> dict:
        return {
            "total_tires": sum(_value(i, "quantity") or 0 for i in inventory),
            "total_value": sum((_value(i, "quantity") or 0) * (_value(i, "price") or 0) for i in inventory),
            "most_common_size": MetricsService.most_common_size(inventory),
            "low_stock_items": MetricsService.low_stock_count(inventory, low_stock_threshold),
        }

    # ─── Echeances / Due dates ───

    @staticmethod
    def remaining_km(next_mileage: int | None, current_km: int | None) -> int | None:
        """Km restants avant entretien, negatif si depasse / Km left before service, negative when overdue."""
        if next_mileage is None or current_km is None:
            return None
        return next_mileage - current_km

    @staticmethod
    def expiry_summary(records: Iterable, today: date | None = None, window_days: int = 30) -> dict:
        """Cartes visites / Visa and inspection cards.

        Seule la derniere echeance par vehicule et type compte : un
        renouvellement efface l'expiration precedente.
        Only the latest expiry per vehicle and type counts, so a renewal
        clears the previous expiry.
        """
        today = today or date.today()
        latest: dict = {}
        total_cost = 0.0
        for record in records:
            total_cost += _value(record, "cost") or 0
            expires = _as_date(_value(record, "expiration_date"))
            if expires is None:
                continue
            key = (_value(record, "vehicle_id"), _value(record, "type"))
            if key not in latest or expires > latest[key]:
                latest[key] = expires

        expired = upcoming = 0
        next_expiration = None
        for expires in latest.values():
            days = (expires - today).days
            if days < 0:
                expired += 1
                continue
            if days <= window_days:
                upcoming += 1
            if next_expiration is None or expires < next_expiration:
                next_expiration = expires
        return {
            "tracked": len(latest),
            "expired": expired,
            "upcoming": upcoming,
            "next_expiration": next_expiration,
            "total_cost": total_cost,
        }

    @staticmethod
    def service_summary(records: list) -> dict:
        """Cartes entretien / Service and maintenance cards."""
        next_dates = [d for d in (_as_date(_value(r, "next_service_date")) for r in records) if d]
        counts = ({"vehicle_id": _value(r, "vehicle_id"), "visits": 1} for r in records)
        return {
            "service_count": len(records),
            "total_cost": sum(_value(r, "cost") or 0 for r in records),
            "next_service_date": min(next_dates) if next_dates else None,
            "most_serviced_vehicle_id": _argmax_sum(counts, "vehicle_id", "visits"),
        }
