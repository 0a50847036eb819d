"""API version 1 routes."""

from fastapi import APIRouter

from lifedash.api.v1 import budget, connections, health_data, ingest, sync, transactions

router = APIRouter(prefix="/api/v1")

# Include routers
router.include_router(ingest.router)
router.include_router(transactions.router)
router.include_router(budget.router)
router.include_router(health_data.router)
router.include_router(connections.router)
router.include_router(sync.router)
