import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relief.config import CORS_ORIGINS, configure_logging
from relief.routes.incidents import router as incidents_router
from relief.routes.recommendations import router as recommendations_router
from relief.routes.resources import router as resources_router
from relief.store import CatalogUnavailableError, data_store

configure_logging()
logger = logging.getLogger(__name__)

# Initialize data store; a failed load leaves it unloaded and allocation
# requests answer 503 until /incidents/refresh and /resources/refresh succeed
try:
    data_store.load()
except CatalogUnavailableError as e:
    logger.error("Initial data load failed: %s", e)

app = FastAPI(title="Relief Resource Allocation Engine")
app.include_router(incidents_router)
app.include_router(resources_router)
app.include_router(recommendations_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {
        "ok": True,
        "incidents_loaded": data_store.incidents is not None,
        "catalog_loaded": data_store.catalog is not None,
        "last_run_at": data_store.cache.last_run_at,
    }
