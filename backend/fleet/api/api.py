"""API router aggregation (no authentication)"""
from fastapi import APIRouter

from fleet.api.endpoints import deliveries, drivers, trucks

api_router = APIRouter()

api_router.include_router(trucks.router, prefix="/trucks", tags=["Trucks"])
api_router.include_router(drivers.router, prefix="/drivers", tags=["Drivers"])
api_router.include_router(deliveries.router, prefix="/deliveries", tags=["Deliveries"])
