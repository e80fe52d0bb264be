import math

from relief.config import DEFAULT_AFFECTED_COUNT
from relief.optimizer.schemas import Demand, Incident


# Severity scales every estimate; unrecognized severity falls back to 0.5
SEVERITY_FACTORS = {
    "high": 1.0,
    "medium": 0.6,
    "low": 0.3,
}
DEFAULT_SEVERITY_FACTOR = 0.5

# Per type: people per transport unit, people per rescue team, share needing shelter
DEMAND_PROFILES = {
    "flood":      {"transport_divisor": 5000,  "rescue_divisor": 2000,  "shelter_multiplier": 0.7},
    "fire":       {"transport_divisor": 2000,  "rescue_divisor": 3000,  "shelter_multiplier": 0.5},
    "earthquake": {"transport_divisor": 1000,  "rescue_divisor": 1500,  "shelter_multiplier": 0.9},
    "cyclone":    {"transport_divisor": 3000,  "rescue_divisor": 2000,  "shelter_multiplier": 0.8},
    "drought":    {"transport_divisor": 10000, "rescue_divisor": 20000, "shelter_multiplier": 0.2},
    "heatwave":   {"transport_divisor": 8000,  "rescue_divisor": 15000, "shelter_multiplier": 0.3},
    "other":      {"transport_divisor": 5000,  "rescue_divisor": 5000,  "shelter_multiplier": 0.5},
}

# Decimal places kept before rounding up, so float noise such as
# 420.00000000000006 does not add a whole unit
_CEIL_PRECISION = 9


def ceil_count(value: float) -> int:
    """Round a demand estimate up to the next non-negative integer."""
    return max(0, math.ceil(round(value, _CEIL_PRECISION)))


def severity_factor(severity: str | None) -> float:
    return SEVERITY_FACTORS.get(severity, DEFAULT_SEVERITY_FACTOR)


def effective_population(incident: Incident) -> int:
    """Affected count used for demand; the incident itself is not modified."""
    if incident.affected_count and incident.affected_count > 0:
        return incident.affected_count
    return DEFAULT_AFFECTED_COUNT


def estimate_demand(incident: Incident) -> Demand:
    """Estimate transport, rescue team and shelter capacity needs.

    transport      = ceil(population / transport_divisor * severity_factor)
    rescue teams   = ceil(population / rescue_divisor * severity_factor)
    shelter places = ceil(population * shelter_multiplier * severity_factor)
    """
    profile = DEMAND_PROFILES.get(incident.type, DEMAND_PROFILES["other"])
    factor = severity_factor(incident.severity)
    population = effective_population(incident)

    return Demand(
        needed_transport=ceil_count(population / profile["transport_divisor"] * factor),
        needed_rescue_teams=ceil_count(population / profile["rescue_divisor"] * factor),
        needed_shelter_capacity=ceil_count(population * profile["shelter_multiplier"] * factor),
    )
