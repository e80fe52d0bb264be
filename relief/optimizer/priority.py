import math

from relief.optimizer.schemas import Incident


SEVERITY_VALUES = {
    "high": 3,
    "medium": 2,
    "low": 1,
}


def priority_score(incident: Incident) -> float:
    """severity tier * 10, plus log10 of the affected count when known."""
    score = SEVERITY_VALUES.get(incident.severity, 1) * 10
    if incident.affected_count and incident.affected_count > 0:
        score += math.log10(incident.affected_count)
    return score


def rank_incidents(incidents: list[Incident]) -> list[Incident]:
    """Active, structurally valid incidents ordered by descending score.

    sorted() is stable, so equal scores keep their input order.
    """
    candidates = [i for i in incidents if i.is_valid and i.is_active]
    return sorted(candidates, key=priority_score, reverse=True)


def rank(incidents: list[Incident]) -> list[str]:
    return [i.id for i in rank_incidents(incidents)]


def priority_label(incident: Incident) -> str:
    score = priority_score(incident)
    if score >= 30:
        return "HIGH"
    elif score >= 20:
        return "MEDIUM"
    return "LOW"
