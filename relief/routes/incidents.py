from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException

from relief.optimizer.priority import priority_label, priority_score
from relief.optimizer.schemas import IncidentReport, StatusUpdate
from relief.store import CatalogUnavailableError, data_store

router = APIRouter(prefix="/incidents", tags=["incidents"])


def _with_priority(incident) -> dict:
    data = incident.model_dump()
    data["priority_score"] = round(priority_score(incident), 2)
    data["priority"] = priority_label(incident)
    return data


@router.get("")
def list_incidents(
    q: str = "",
    type: str = "all",
    severity: str = "all",
    state: str = "all",
    status: str = "all",
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
):
    incidents = data_store.filter_incidents(
        q=q, type=type, severity=severity, state=state, status=status,
        date_from=date_from, date_to=date_to,
    )
    return [_with_priority(i) for i in incidents]


@router.get("/stats")
def incident_stats():
    return data_store.incident_stats()


@router.post("/refresh")
def refresh_incidents():
    """Reload the incident list from the provider or seed file."""
    try:
        data_store.refresh_incidents()
    except CatalogUnavailableError as e:
        raise HTTPException(503, str(e))
    return data_store.incident_stats()


@router.get("/{incident_id}")
def get_incident(incident_id: str):
    incident = data_store.get_incident(incident_id)
    if not incident:
        raise HTTPException(404, f"Incident {incident_id} not found")
    return _with_priority(incident)


@router.post("", status_code=201)
def report_incident(req: IncidentReport):
    try:
        incident = data_store.report_incident(**req.model_dump())
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _with_priority(incident)


@router.put("/{incident_id}/status")
def update_status(incident_id: str, req: StatusUpdate):
    try:
        incident = data_store.update_status(incident_id, req.status)
    except KeyError:
        raise HTTPException(404, f"Incident {incident_id} not found")
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _with_priority(incident)
