"""API routes."""

from fastapi import APIRouter

from foodbank.api.routes import inventory, movements, requests

api_router = APIRouter()

api_router.include_router(requests.router, prefix="/requests", tags=["requests"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
api_router.include_router(movements.router, prefix="/movements", tags=["movements"])
