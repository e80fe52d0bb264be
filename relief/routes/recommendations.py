from fastapi import APIRouter, HTTPException

from relief.store import CatalogUnavailableError, data_store

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.get("")
def list_recommendations():
    """All recommendations from the most recent run."""
    return {
        "last_run_at": data_store.cache.last_run_at,
        "recommendations": data_store.cache.all(),
    }


@router.post("/run")
def run_allocation():
    """Force a full allocation pass over every active incident."""
    try:
        recommendations = data_store.run_allocation()
    except CatalogUnavailableError as e:
        raise HTTPException(503, str(e))
    return {
        "last_run_at": data_store.cache.last_run_at,
        "recommendations": recommendations,
    }


@router.get("/{incident_id}")
def get_recommendation(incident_id: str):
    """Recommendation for one incident. A cache miss triggers a full run.

    status is "ok" with the recommendation, or "nothing_to_allocate" when the
    incident is inactive or has no demand.
    """
    try:
        recommendation = data_store.get_recommendation(incident_id)
    except KeyError:
        raise HTTPException(404, f"Incident {incident_id} not found")
    except CatalogUnavailableError as e:
        raise HTTPException(503, str(e))

    if recommendation is None:
        return {"incident_id": incident_id, "status": "nothing_to_allocate", "recommendation": None}
    return {"incident_id": incident_id, "status": "ok", "recommendation": recommendation}


@router.post("/{incident_id}/apply")
def apply_recommendation(incident_id: str):
    try:
        recommendation = data_store.apply_recommendation(incident_id)
    except KeyError:
        raise HTTPException(404, f"No recommendation computed for {incident_id}")
    except CatalogUnavailableError as e:
        raise HTTPException(503, str(e))
    except ValueError as e:
        raise HTTPException(409, str(e))
    return {
        "incident_id": incident_id,
        "status": "applied",
        "recommendation": recommendation,
        "resources": data_store.resource_summary(),
    }
