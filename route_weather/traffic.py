# ABOUTME: Coarse traffic classification from a route's average driving speed.
# ABOUTME: Pure function with no I/O so it can be used and tested in isolation.

from route_weather.models import TrafficLevel

LIGHT_TRAFFIC_KMH = 80
MODERATE_TRAFFIC_KMH = 40


def average_speed_kmh(distance_km: float, duration_hours: float) -> float:
    """Average speed, or 0.0 when either input is non-positive."""
    if distance_km <= 0 or duration_hours <= 0:
        return 0.0
    return distance_km / duration_hours


def estimate_traffic(distance_km: float, duration_hours: float) -> TrafficLevel:
    speed = average_speed_kmh(distance_km, duration_hours)
    if speed > LIGHT_TRAFFIC_KMH:
        return TrafficLevel.LIGHT
    if speed > MODERATE_TRAFFIC_KMH:
        return TrafficLevel.MODERATE
    return TrafficLevel.HEAVY
