"""
Truck API
"""
from typing import Any
from fastapi import APIRouter, Depends, Response

from fleet.core.deps import get_truck_service, page_params
from fleet.schemas.common import PageParams
from fleet.schemas.truck import TruckCreate, TruckListResponse, TruckResponse, TruckUpdate
from fleet.services.fleet_service import TruckService

router = APIRouter()


@router.post("/", response_model=TruckResponse)
async def create_truck(
    *,
    service: TruckService = Depends(get_truck_service),
    truck_in: TruckCreate) -> Any:
    """Create a truck"""
    return await service.create(truck_in)


@router.get("/", response_model=TruckListResponse)
async def list_trucks(
    *,
    service: TruckService = Depends(get_truck_service),
    params: PageParams = Depends(page_params("id"))) -> Any:
    """Paged list of trucks"""
    return await service.list(params)


@router.get("/{truck_id}", response_model=TruckResponse)
async def get_truck(
    *,
    service: TruckService = Depends(get_truck_service),
    truck_id: int) -> Any:
    return await service.get(truck_id)


@router.put("/{truck_id}", response_model=TruckResponse)
async def update_truck(
    *,
    service: TruckService = Depends(get_truck_service),
    truck_id: int,
    truck_in: TruckUpdate) -> Any:
    """Replace a truck's fields"""
    return await service.update(truck_id, truck_in)


@router.delete("/{truck_id}", status_code=204)
async def delete_truck(
    *,
    service: TruckService = Depends(get_truck_service),
    truck_id: int) -> Response:
    """Delete a truck together with its deliveries"""
    await service.delete(truck_id)
    return Response(status_code=204)
