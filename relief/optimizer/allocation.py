import logging
from collections import deque
from dataclasses import dataclass, field

from relief.optimizer.demand import estimate_demand
from relief.optimizer.priority import rank_incidents
from relief.optimizer.schemas import (
    Demand, Incident, Recommendation, ResourceCatalog, ShelterAllocation,
)

logger = logging.getLogger(__name__)


@dataclass
class AllocationRun:
    """Outcome of one full pass: recommendations plus the leftover pools."""
    recommendations: dict[str, Recommendation]
    catalog: ResourceCatalog
    ranked_ids: list[str] = field(default_factory=list)
    demands: dict[str, Demand] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Pool helpers
# ---------------------------------------------------------------------------

def _take_units(pool: deque, needed: int) -> list[str]:
    """Pop up to `needed` units from the front of the pool."""
    take = min(needed, len(pool))
    return [pool.popleft().unit_id for _ in range(take)]


def _fill_shelters(shelters, needed: int) -> list[ShelterAllocation]:
    """Spread `needed` capacity over shelters in order, decrementing them in place."""
    allocations = []
    remaining = needed
    for shelter in shelters:
        if remaining <= 0:
            break
        if shelter.available_capacity <= 0:
            continue
        amount = min(remaining, shelter.available_capacity)
        shelter.available_capacity -= amount
        remaining -= amount
        allocations.append(ShelterAllocation(shelter_id=shelter.shelter_id, capacity=amount))
    return allocations


# ---------------------------------------------------------------------------
# Greedy allocation
# ---------------------------------------------------------------------------

def allocate(ranked_ids: list[str], demands: dict[str, Demand],
             catalog: ResourceCatalog) -> dict[str, Recommendation]:
    """Greedily assign resources to incidents in ranked order.

    Transport units and rescue teams are handed out first-available-first,
    shelter capacity is filled shelter by shelter. The catalog passed in is
    consumed: assigned units are removed and shelter capacity decremented,
    so callers should hand over a working copy.

    Args:
        ranked_ids: incident ids, highest priority first
        demands: incident id -> Demand; ids without a demand are skipped
        catalog: working copy of the resource pools

    Returns:
        incident id -> Recommendation (possibly with all lists empty)
    """
    transport = deque(catalog.transport)
    rescue_teams = deque(catalog.rescue_teams)
    results: dict[str, Recommendation] = {}

    for incident_id in ranked_ids:
        demand = demands.get(incident_id)
        if demand is None:
            continue

        assigned_transport = _take_units(transport, demand.needed_transport)
        assigned_rescue = _take_units(rescue_teams, demand.needed_rescue_teams)
        assigned_shelters = _fill_shelters(catalog.shelters, demand.needed_shelter_capacity)

        recommendation = Recommendation(
            incident_id=incident_id,
            transport=assigned_transport,
            rescue_teams=assigned_rescue,
            shelters=assigned_shelters,
            demand=demand,
        )
        recommendation.allocation_gap = {
            "transport": demand.needed_transport - len(assigned_transport),
            "rescue_teams": demand.needed_rescue_teams - len(assigned_rescue),
            "shelter_capacity": demand.needed_shelter_capacity - recommendation.shelter_capacity,
        }
        if any(recommendation.allocation_gap.values()):
            logger.debug("Incident %s short of resources: %s",
                         incident_id, recommendation.allocation_gap)
        results[incident_id] = recommendation

    catalog.transport = list(transport)
    catalog.rescue_teams = list(rescue_teams)
    return results


def run_allocation(incidents: list[Incident], catalog: ResourceCatalog) -> AllocationRun:
    """One full run: rank active incidents, estimate demand, allocate.

    The caller's catalog is left untouched; the leftover pools are returned
    on the AllocationRun.
    """
    working = catalog.model_copy(deep=True)
    ranked = rank_incidents(incidents)
    ranked_ids = [i.id for i in ranked]
    demands = {i.id: estimate_demand(i) for i in ranked}

    recommendations = allocate(ranked_ids, demands, working)

    logger.info(
        "Allocation run: %d active incidents, %d transport, %d rescue teams, "
        "%d shelter places assigned",
        len(ranked_ids),
        sum(len(r.transport) for r in recommendations.values()),
        sum(len(r.rescue_teams) for r in recommendations.values()),
        sum(r.shelter_capacity for r in recommendations.values()),
    )
    return AllocationRun(
        recommendations=recommendations,
        catalog=working,
        ranked_ids=ranked_ids,
        demands=demands,
    )
