from fastapi import APIRouter, HTTPException

from relief.store import CatalogUnavailableError, data_store

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("")
def get_catalog():
    try:
        return data_store.get_catalog()
    except CatalogUnavailableError as e:
        raise HTTPException(503, str(e))


@router.get("/summary")
def resource_summary():
    try:
        return data_store.resource_summary()
    except CatalogUnavailableError as e:
        raise HTTPException(503, str(e))


@router.post("/refresh")
def refresh_catalog():
    """Reload the catalog snapshot from the provider or seed file."""
    try:
        data_store.refresh_catalog()
    except CatalogUnavailableError as e:
        raise HTTPException(503, str(e))
    return data_store.resource_summary()
