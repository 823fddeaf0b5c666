"""
Delivery API
"""
from datetime import datetime
from typing import Any
from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from fleet.core.deps import get_delivery_service, page_params
from fleet.core.exceptions import AdmissionError
from fleet.core.logging_config import get_logger
from fleet.schemas.common import PageParams
from fleet.schemas.delivery import DeliveryCreate, DeliveryListResponse, DeliveryResponse
from fleet.services.delivery_service import DeliveryService

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=DeliveryResponse, responses={400: {"description": "Rejected, reason as plain text"}})
async def create_delivery(
    *,
    service: DeliveryService = Depends(get_delivery_service),
    delivery_in: DeliveryCreate) -> Any:
    """Create a delivery, applying every business rule"""
    try:
        return await service.create(delivery_in)
    except AdmissionError as e:
        return PlainTextResponse(e.message, status_code=400)


@router.get("/", response_model=DeliveryListResponse)
async def list_deliveries(
    *,
    service: DeliveryService = Depends(get_delivery_service),
    params: PageParams = Depends(page_params("id"))) -> Any:
    """Paged list of deliveries"""
    return await service.list(params)


@router.get("/today/total", response_class=PlainTextResponse)
async def get_total_value_for_today(
    *,
    service: DeliveryService = Depends(get_delivery_service)) -> Any:
    """Total value of the deliveries scheduled today"""
    total = await service.today_total()
    return PlainTextResponse(str(total))


@router.get("/period", response_model=DeliveryListResponse)
async def list_deliveries_by_period(
    *,
    service: DeliveryService = Depends(get_delivery_service),
    start_date: datetime = Query(..., description="Period start (inclusive)"),
    end_date: datetime = Query(..., description="Period end (inclusive)"),
    params: PageParams = Depends(page_params("delivery_datetime"))) -> Any:
    """Deliveries scheduled between two date/times"""
    return await service.list_by_period(start_date, end_date, params)


@router.get("/{delivery_id}", response_model=DeliveryResponse)
async def get_delivery(
    *,
    service: DeliveryService = Depends(get_delivery_service),
    delivery_id: int) -> Any:
    """Single delivery by id"""
    return await service.get(delivery_id)
