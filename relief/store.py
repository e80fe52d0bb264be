import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from relief import config
from relief.optimizer.allocation import run_allocation
from relief.optimizer.schemas import (
    INCIDENT_TYPES, SEVERITIES, STATUSES, Incident, Recommendation, ResourceCatalog,
    normalize_choice,
)
from relief.optimizer.validation import normalize_incidents
from relief.services.provider import ProviderError, fetch_catalog, fetch_incidents

logger = logging.getLogger(__name__)


class CatalogUnavailableError(RuntimeError):
    """Allocation precondition not met: incidents or catalog not loaded."""


class RecommendationCache:
    """Latest allocation plan per incident id.

    Every run replaces the whole mapping; there is no incremental merge.
    """

    def __init__(self):
        self._recommendations: dict[str, Recommendation] = {}
        self.last_run_at: Optional[str] = None

    def get(self, incident_id: str) -> Optional[Recommendation]:
        return self._recommendations.get(incident_id)

    def replace_all(self, recommendations: dict[str, Recommendation]):
        self._recommendations = dict(recommendations)
        self.last_run_at = datetime.now(timezone.utc).isoformat()

    def all(self) -> dict[str, Recommendation]:
        return dict(self._recommendations)

    def clear(self):
        self._recommendations = {}
        self.last_run_at = None

    def __contains__(self, incident_id) -> bool:
        return incident_id in self._recommendations

    def __len__(self) -> int:
        return len(self._recommendations)


class DataStore:
    """In-memory store for incidents, the resource catalog and recommendations.

    Initialized from the seed JSON files or the configured provider URLs at
    startup. The catalog held here is the source of truth; allocation runs
    work on copies and only the apply step consumes units from it.
    """

    def __init__(self):
        self.incidents: Optional[dict[str, Incident]] = None
        self.rejected: list[dict] = []
        self.catalog: Optional[ResourceCatalog] = None
        self.cache = RecommendationCache()

    # ---- Loading ----

    def load_incidents(self, raw_incidents: list):
        valid, rejected = normalize_incidents(raw_incidents)
        self.incidents = {i.id: i for i in valid}
        self.rejected = rejected

    def load_catalog(self, raw_catalog):
        try:
            self.catalog = ResourceCatalog.model_validate(raw_catalog)
        except ValidationError as e:
            self.catalog = None
            raise CatalogUnavailableError(f"Invalid resource catalog: {e}") from e

    def load_from_json(self):
        """Load initial data from JSON files in data/."""
        self.load_incidents(_read_seed(config.load_incidents))
        self.load_catalog(_read_seed(config.load_catalog))

    def load(self):
        """Load from provider URLs when configured, else from the seed files.

        Incidents and catalog load independently, so one failing source
        does not keep the other out. The first failure is re-raised.
        """
        errors = []
        for step in (self.refresh_incidents, self.refresh_catalog):
            try:
                step()
            except CatalogUnavailableError as e:
                errors.append(e)
        if errors:
            raise errors[0]

    def refresh_incidents(self):
        """Reload the incident list. Failures keep the current list (None before first load)."""
        if config.INCIDENTS_URL:
            try:
                raw = fetch_incidents(config.INCIDENTS_URL)
            except ProviderError as e:
                raise CatalogUnavailableError(str(e)) from e
        else:
            raw = _read_seed(config.load_incidents)
        self.load_incidents(raw)

    def refresh_catalog(self):
        """Replace the catalog snapshot. Failures leave the store without one."""
        if config.CATALOG_URL:
            try:
                raw = fetch_catalog(config.CATALOG_URL)
            except ProviderError as e:
                self.catalog = None
                raise CatalogUnavailableError(str(e)) from e
        else:
            try:
                raw = _read_seed(config.load_catalog)
            except CatalogUnavailableError:
                self.catalog = None
                raise
        self.load_catalog(raw)

    def _require_loaded(self):
        if self.incidents is None:
            raise CatalogUnavailableError("Incident list has not been loaded")
        if self.catalog is None:
            raise CatalogUnavailableError("Resource catalog has not been loaded")

    # ---- Incidents ----

    def get_all_incidents(self) -> list[Incident]:
        return list((self.incidents or {}).values())

    def get_incident(self, incident_id: str) -> Optional[Incident]:
        return (self.incidents or {}).get(incident_id)

    def report_incident(self, type: str, severity: str, location: str,
                        lat: float, lng: float, description: str,
                        affected_count: Optional[int] = None) -> Incident:
        """Register a newly reported incident (status "reported")."""
        if self.incidents is None:
            self.incidents = {}
        if not all(str(v).strip() for v in (type, severity, location, description)):
            raise ValueError("type, severity, location and description are required")

        seq = len(self.incidents) + 1
        incident_id = f"D{seq:03d}"
        while incident_id in self.incidents:
            seq += 1
            incident_id = f"D{seq:03d}"

        incident = Incident(
            id=incident_id,
            lat=lat,
            lng=lng,
            type=type,
            severity=severity,
            title=f"{type.strip().capitalize()} in {location.strip()}",
            description=description,
            location=location,
            reported=datetime.now(timezone.utc).isoformat(),
            affected_count=affected_count if affected_count is not None else 0,
            status="reported",
        )
        self.incidents[incident_id] = incident
        logger.info("Incident %s reported: %s", incident_id, incident.title)
        return incident

    def update_status(self, incident_id: str, status: str) -> Incident:
        incident = self.get_incident(incident_id)
        if incident is None:
            raise KeyError(incident_id)
        status = (status or "").strip().lower()
        if status not in STATUSES:
            raise ValueError(f"Unknown status {status!r}, expected one of {', '.join(STATUSES)}")
        incident.status = status
        return incident

    def filter_incidents(self, q: str = "", type: str = "all", severity: str = "all",
                         state: str = "all", status: str = "all",
                         date_from: Optional[datetime] = None,
                         date_to: Optional[datetime] = None) -> list[Incident]:
        q = (q or "").lower()
        type = normalize_choice(type) or "all"
        severity = normalize_choice(severity) or "all"
        status = normalize_choice(status) or "all"
        state_term = state.replace("-", " ").lower() if state and state != "all" else ""
        date_from = _as_utc(date_from)
        date_to = _as_utc(date_to)

        results = []
        for i in self.get_all_incidents():
            if q and not any(q in field.lower() for field in (i.title, i.description, i.location)):
                continue
            if type not in ("", "all") and i.type != type:
                continue
            if severity not in ("", "all") and i.severity != severity:
                continue
            if status not in ("", "all") and i.status != status:
                continue
            if state_term and state_term not in i.location.lower():
                continue
            if date_from or date_to:
                reported = _parse_reported(i.reported)
                if reported is None:
                    continue
                if date_from and reported < date_from:
                    continue
                if date_to and reported > date_to:
                    continue
            results.append(i)
        return results

    def incident_stats(self) -> dict:
        incidents = self.get_all_incidents()
        by_type = {t: 0 for t in INCIDENT_TYPES}
        by_severity = {s: 0 for s in SEVERITIES}
        by_status = {s: 0 for s in STATUSES}
        for i in incidents:
            by_type[i.type] += 1
            by_severity[i.severity] += 1
            by_status[i.status] += 1
        return {
            "total": len(incidents),
            "rejected": len(self.rejected),
            "by_type": by_type,
            "by_severity": by_severity,
            "by_status": by_status,
        }

    # ---- Resources ----

    def get_catalog(self) -> ResourceCatalog:
        if self.catalog is None:
            raise CatalogUnavailableError("Resource catalog has not been loaded")
        return self.catalog

    def resource_summary(self) -> dict:
        catalog = self.get_catalog()
        return {
            "transport_available": len(catalog.transport),
            "rescue_teams_available": len(catalog.rescue_teams),
            "shelters": len(catalog.shelters),
            "shelter_capacity_available": sum(s.available_capacity for s in catalog.shelters),
            "shelter_capacity_total": sum(s.total_capacity for s in catalog.shelters),
        }

    # ---- Recommendations ----

    def run_allocation(self) -> dict[str, Recommendation]:
        """Run a full pass over all active incidents and replace the cache."""
        self._require_loaded()
        run = run_allocation(self.get_all_incidents(), self.catalog)
        self.cache.replace_all(run.recommendations)
        return run.recommendations

    def get_recommendation(self, incident_id: str) -> Optional[Recommendation]:
        """Cached recommendation for one incident, running a full pass on a miss.

        Returns None when the incident is not active or had nothing to
        allocate. Raises KeyError for an unknown incident id.
        """
        if self.get_incident(incident_id) is None:
            raise KeyError(incident_id)
        recommendation = self.cache.get(incident_id)
        if recommendation is None:
            self.run_allocation()
            recommendation = self.cache.get(incident_id)
        return recommendation

    def apply_recommendation(self, incident_id: str) -> Recommendation:
        """Consume a cached recommendation's units from the catalog.

        All-or-nothing: raises ValueError if the recommendation was already
        applied or any unit or shelter capacity is no longer available,
        leaving the catalog unchanged.
        """
        catalog = self.get_catalog()
        recommendation = self.cache.get(incident_id)
        if recommendation is None:
            raise KeyError(incident_id)
        if recommendation.applied_at is not None:
            raise ValueError(
                f"Recommendation for {incident_id} already applied at {recommendation.applied_at}"
            )

        transport_ids = {u.unit_id for u in catalog.transport}
        rescue_ids = {u.unit_id for u in catalog.rescue_teams}
        shelters = {s.shelter_id: s for s in catalog.shelters}

        missing = [u for u in recommendation.transport if u not in transport_ids]
        missing += [u for u in recommendation.rescue_teams if u not in rescue_ids]
        if missing:
            raise ValueError(f"Units no longer available: {', '.join(missing)}")
        for alloc in recommendation.shelters:
            shelter = shelters.get(alloc.shelter_id)
            available = shelter.available_capacity if shelter else 0
            if alloc.capacity > available:
                raise ValueError(
                    f"{alloc.shelter_id} has {available} places, cannot allocate {alloc.capacity}"
                )

        used_transport = set(recommendation.transport)
        used_rescue = set(recommendation.rescue_teams)
        catalog.transport = [u for u in catalog.transport if u.unit_id not in used_transport]
        catalog.rescue_teams = [u for u in catalog.rescue_teams if u.unit_id not in used_rescue]
        for alloc in recommendation.shelters:
            shelters[alloc.shelter_id].available_capacity -= alloc.capacity
        recommendation.applied_at = datetime.now(timezone.utc).isoformat()

        logger.info("Applied recommendation for %s", incident_id)
        return recommendation


def _read_seed(loader):
    # Missing file, bad JSON or a missing top-level key
    try:
        return loader()
    except (OSError, ValueError, KeyError) as e:
        raise CatalogUnavailableError(f"Cannot read seed data: {e!r}") from e


def _parse_reported(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive timestamps are taken as UTC so naive and aware values compare
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Singleton instance
data_store = DataStore()
