"""Main API router aggregating all v1 routes."""

from fastapi import APIRouter

from contractseal.api.routes import contracts, health

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(contracts.router)
