"""Tests des indicateurs / Metrics tests."""

from datetime import date

from fleetdesk.services.metrics_service import MetricsService


def test_fill_rate():
    assert MetricsService.fill_rate(700, 1000) == 70.0
    assert MetricsService.fill_rate(1200, 1000) == 100.0
    assert MetricsService.fill_rate(-50, 1000) == 0.0
    assert MetricsService.fill_rate(10, 0) == 0.0


def test_average_price():
    entries = [{"amount": 100, "total": 3000}, {"amount": 300, "total": 9600}]
    assert MetricsService.average_price(entries) == 31.5
    assert MetricsService.average_price([]) == 0


def test_months_between_is_day_aware():
    assert MetricsService.months_between(date(2024, 1, 31), date(2024, 2, 29)) == 0
    assert MetricsService.months_between(date(2024, 1, 15), date(2024, 3, 15)) == 2
    assert MetricsService.months_between(date(2024, 3, 15), date(2024, 1, 15)) == 2


def test_monthly_average_consumption():
    records = [
        {"amount": 100, "date": date(2024, 1, 1)},
        {"amount": 200, "date": date(2024, 2, 1)},
        {"amount": 300, "date": date(2024, 4, 1)},
    ]
    assert MetricsService.monthly_average_consumption(records) == 200
    # Une seule journee compte pour un mois / A single day counts as one month
    assert MetricsService.monthly_average_consumption([{"amount": 80, "date": date(2024, 1, 1)}]) == 80
    assert MetricsService.monthly_average_consumption([]) == 0


def test_days_until_keeps_sign():
    today = date(2024, 6, 1)
    assert MetricsService.days_until(date(2024, 6, 11), today) == 10
    assert MetricsService.days_until(date(2024, 5, 30), today) == -2
    assert MetricsService.days_until("2024-06-01", today) == 0
    assert MetricsService.days_until(None, today) is None


def test_progress_percent_is_bounded():
    assert MetricsService.progress_percent(-10) == 0.0
    assert MetricsService.progress_percent(730) == 100.0
    assert MetricsService.progress_percent(None) == 0.0


def test_most_used_vehicle():
    records = [
        {"vehicle_id": 1, "amount": 50},
        {"vehicle_id": 2, "amount": 70},
        {"vehicle_id": 1, "amount": 30},
    ]
    assert MetricsService.most_used_vehicle(records) == 1
    assert MetricsService.most_used_vehicle([]) is None


def test_argmax_ties_go_to_first_seen():
    records = [{"vehicle_id": 7, "amount": 40}, {"vehicle_id": 3, "amount": 40}]
    assert MetricsService.most_used_vehicle(records) == 7
    inventory = [{"size": "205/55R16", "quantity": 4}, {"size": "315/80R22.5", "quantity": 4}]
    assert MetricsService.most_common_size(inventory) == "205/55R16"


def test_most_common_size_weights_quantity():
    inventory = [
        {"size": "205/55R16", "quantity": 1},
        {"size": "205/55R16", "quantity": 1},
        {"size": "315/80R22.5", "quantity": 6},
    ]
    assert MetricsService.most_common_size(inventory) == "315/80R22.5"
    assert MetricsService.most_common_size([]) is None


def test_tire_stock_metrics():
    inventory = [
        {"size": "205/55R16", "quantity": 2, "price": 100.0},
        {"size": "315/80R22.5", "quantity": 8, "price": 250.0},
    ]
    metrics = MetricsService.tire_stock_metrics(inventory, low_stock_threshold=5)
    assert metrics["total_tires"] == 10
    assert metrics["total_value"] == 2200.0
    assert metrics["most_common_size"] == "315/80R22.5"
    assert metrics["low_stock_items"] == 1


def test_tank_metrics_and_summaries():
    tank = {"id": 1, "capacity": 1000, "current_amount": 550, "fuel_type": "Diesel"}
    entries = [{"amount": 200, "total": 6000, "date": date(2024, 1, 10)}]
    exits = [{"amount": 150, "total": 4650, "date": date(2024, 1, 12), "vehicle_id": 4}]

    metrics = MetricsService.tank_metrics(tank, entries, exits)
    assert metrics["fill_rate"] == 55.0
    assert metrics["average_price"] == 30.0
    assert metrics["total_out"] == 150
    assert metrics["last_entry_date"] == date(2024, 1, 10)

    summary = MetricsService.fuel_summary(exits)
    assert summary["average_unit_price"] == 31.0
    assert summary["most_used_vehicle_id"] == 4

    tanks = MetricsService.tank_summary([tank, {"capacity": 500, "current_amount": 100, "fuel_type": "Diesel"}])
    assert tanks["total_capacity"] == 1500
    assert tanks["most_common_fuel_type"] == "Diesel"


def test_remaining_km():
    assert MetricsService.remaining_km(20000, 18500) == 1500
    assert MetricsService.remaining_km(20000, 21000) == -1000
    assert MetricsService.remaining_km(None, 18500) is None


def test_expiry_summary_counts_latest_per_vehicle_and_type():
    today = date(2024, 6, 1)
    records = [
        # Visa renouvelee : l'ancienne expiration ne compte plus / Renewed visa: old expiry no longer counts
        {"vehicle_id": 1, "type": "visa", "expiration_date": date(2024, 5, 1), "cost": 100},
        {"vehicle_id": 1, "type": "visa", "expiration_date": date(2025, 5, 1), "cost": 120},
        {"vehicle_id": 1, "type": "inspection", "expiration_date": date(2024, 6, 20), "cost": 50},
        {"vehicle_id": 2, "type": "visa", "expiration_date": date(2024, 5, 30), "cost": 90},
    ]
    summary = MetricsService.expiry_summary(records, today, window_days=30)
    assert summary == {
        "tracked": 3,
        "expired": 1,
        "upcoming": 1,
        "next_expiration": date(2024, 6, 20),
        "total_cost": 360,
    }
    assert MetricsService.expiry_summary([], today)["next_expiration"] is None


def test_service_summary():
    records = [
        {"vehicle_id": 3, "cost": 400, "next_service_date": date(2024, 9, 1)},
        {"vehicle_id": 4, "cost": 250, "next_service_date": None},
        {"vehicle_id": 4, "cost": 150, "next_service_date": date(2024, 8, 1)},
    ]
    summary = MetricsService.service_summary(records)
    assert summary["service_count"] == 3
    assert summary["total_cost"] == 800
    assert summary["next_service_date"] == date(2024, 8, 1)
    assert summary["most_serviced_vehicle_id"] == 4
