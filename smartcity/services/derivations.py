"""
Pure numeric derivations used to build a city snapshot

Nothing in this module performs I/O or keeps state: the same inputs always
produce the same outputs.
"""
import math
from datetime import datetime, timedelta
from typing import Optional, Tuple

from smartcity.models.schemas import AQIStatus

# 1 GWh/year = 1,000,000 kWh over 8,760 h = 114.16 kW = 0.11416 MW average load
GWH_PER_YEAR_TO_MW = 0.11416
PEAK_LOAD_FACTOR = 1.2
WEEKEND_WASTE_MULTIPLIER = 1.15
UNKNOWN_CONGESTION_PCT = 50

# (upper bound inclusive, status)
AQI_BREAKPOINTS = (
    (50, AQIStatus.GOOD),
    (100, AQIStatus.MODERATE),
    (150, AQIStatus.UNHEALTHY_SENSITIVE),
    (200, AQIStatus.UNHEALTHY),
    (300, AQIStatus.VERY_UNHEALTHY),
)

# (start hour, progress start, progress end, fill start, fill end, status)
COLLECTION_BANDS = (
    (0, 0.95, 1.00, 20.0, 35.0, "Night collection completed"),
    (6, 0.25, 0.50, 35.0, 65.0, "Morning collection in progress"),
    (12, 0.50, 0.75, 65.0, 85.0, "Afternoon collection active"),
    (18, 0.75, 0.95, 85.0, 95.0, "Peak waste generation time"),
)
BAND_HOURS = 6


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero"""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def aqi_status(aqi: float) -> AQIStatus:
    """Classify a US AQI value using the EPA breakpoints"""
    for upper, status in AQI_BREAKPOINTS:
        if aqi <= upper:
            return status
    return AQIStatus.HAZARDOUS


def congestion_pct(current_speed: float, free_flow_speed: float) -> int:
    """
    Congestion as the percentage of free-flow speed that is lost

    A non-positive free-flow speed (or a missing current speed) cannot be
    interpreted and yields the "unknown" sentinel of 50.
    """
    if not free_flow_speed or free_flow_speed <= 0 or not current_speed or current_speed <= 0:
        return UNKNOWN_CONGESTION_PCT
    ratio = current_speed / free_flow_speed
    return round_half_up(clamp((1 - ratio) * 100, 0, 100))


def congestion_label(current_speed: float, free_flow_speed: float) -> str:
    """Human label from the share of free-flow speed currently achieved"""
    if not free_flow_speed or free_flow_speed <= 0:
        return "Unknown"
    percentage = round_half_up((current_speed / free_flow_speed) * 100)
    if percentage >= 80:
        return "Light"
    if percentage >= 50:
        return "Moderate"
    if percentage >= 30:
        return "Heavy"
    return "Severe"


def traffic_delay_minutes(current_travel_time: Optional[float], free_flow_travel_time: Optional[float]) -> int:
    """Extra minutes over free-flow travel time; 0 when either time is missing"""
    if not current_travel_time or not free_flow_travel_time:
        return 0
    return round_half_up((current_travel_time - free_flow_travel_time) / 60)


def city_consumption_gwh(per_capita_kwh: float, population_thousands: float) -> float:
    """kWh/person/year x thousands of people / 1000 = GWh/year"""
    return (per_capita_kwh * population_thousands) / 1000


def gwh_per_year_to_mw(gwh_per_year: float) -> float:
    """Average instantaneous load for an annual consumption"""
    return gwh_per_year * GWH_PER_YEAR_TO_MW


def peak_load_mw(usage_mw: float) -> int:
    return round_half_up(usage_mw * PEAK_LOAD_FACTOR)


def collection_curve(hour: int) -> Tuple[float, float, str]:
    """
    Waste collection state for an hour of the day

    Returns:
        (progress fraction 0-1, bin fill level percent, status label)
    """
    hour = int(hour) % 24
    for start, p_start, p_end, f_start, f_end, status in reversed(COLLECTION_BANDS):
        if hour >= start:
            position = (hour - start) / BAND_HOURS
            progress = p_start + position * (p_end - p_start)
            fill = f_start + position * (f_end - f_start)
            return progress, fill, status
    raise AssertionError("unreachable: band 0 covers every hour")


def weekend_multiplier(moment: datetime) -> float:
    """More waste is generated on Saturdays and Sundays"""
    return WEEKEND_WASTE_MULTIPLIER if moment.weekday() >= 5 else 1.0


def next_collection(moment: datetime) -> datetime:
    """Collections run at 06:00 and 18:00"""
    if moment.hour >= 18:
        next_day = moment + timedelta(days=1)
        return next_day.replace(hour=6, minute=0, second=0, microsecond=0)
    if moment.hour < 6:
        return moment.replace(hour=6, minute=0, second=0, microsecond=0)
    return moment.replace(hour=18, minute=0, second=0, microsecond=0)


def format_collection_label(moment: datetime) -> str:
    """e.g. 'Sat 6:00 AM'"""
    hour12 = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{moment:%a} {hour12}:{moment:%M} {meridiem}"
