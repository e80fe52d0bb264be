from relief.optimizer.schemas import Incident, ResourceCatalog, ResourceUnit, Shelter


def make_incident(id, type="flood", severity="high", affected_count=1000,
                  status="active", lat=19.0, lng=72.8, **extra) -> Incident:
    return Incident(
        id=id, lat=lat, lng=lng, type=type, severity=severity,
        affected_count=affected_count, status=status, **extra,
    )


def make_catalog(transport=0, rescue_teams=0, shelters=()) -> ResourceCatalog:
    """shelters: iterable of (shelter_id, available_capacity)."""
    return ResourceCatalog(
        transport=[ResourceUnit(unit_id=f"T{n}") for n in range(1, transport + 1)],
        rescue_teams=[ResourceUnit(unit_id=f"R{n}") for n in range(1, rescue_teams + 1)],
        shelters=[
            Shelter(shelter_id=sid, total_capacity=cap, available_capacity=cap)
            for sid, cap in shelters
        ],
    )
