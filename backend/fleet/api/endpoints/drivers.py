"""
Driver API
"""
from typing import Any
from fastapi import APIRouter, Depends, Response

from fleet.core.deps import get_driver_service, page_params
from fleet.schemas.common import PageParams
from fleet.schemas.driver import DriverCreate, DriverListResponse, DriverResponse, DriverUpdate
from fleet.services.fleet_service import DriverService

router = APIRouter()


@router.post("/", response_model=DriverResponse)
async def create_driver(
    *,
    service: DriverService = Depends(get_driver_service),
    driver_in: DriverCreate) -> Any:
    """Create a driver"""
    return await service.create(driver_in)


@router.get("/", response_model=DriverListResponse)
async def list_drivers(
    *,
    service: DriverService = Depends(get_driver_service),
    params: PageParams = Depends(page_params("id"))) -> Any:
    """Paged list of drivers"""
    return await service.list(params)


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    *,
    service: DriverService = Depends(get_driver_service),
    driver_id: int) -> Any:
    return await service.get(driver_id)


@router.put("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    *,
    service: DriverService = Depends(get_driver_service),
    driver_id: int,
    driver_in: DriverUpdate) -> Any:
    """Replace a driver's fields"""
    return await service.update(driver_id, driver_in)


@router.delete("/{driver_id}", status_code=204)
async def delete_driver(
    *,
    service: DriverService = Depends(get_driver_service),
    driver_id: int) -> Response:
    """Delete a driver and their deliveries; owned trucks are kept without an owner"""
    await service.delete(driver_id)
    return Response(status_code=204)
