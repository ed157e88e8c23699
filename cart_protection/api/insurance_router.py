import asyncio
import functools
import logging
from typing import Any, Awaitable, Optional, TypeVar

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from cart_protection.api.dependencies import get_insurance_service
from cart_protection.errors import InvalidArgument
from cart_protection.integrations.policy.insurance_service import InsuranceService

logger = logging.getLogger(__name__)

router = APIRouter()

T = TypeVar("T")


def _log_orphaned_failure(description: str, task: "asyncio.Task") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Insurance change failed after the client disconnected (%s): %s", description, exc)


async def run_shielded(operation: Awaitable[T], description: str) -> T:
    """
    Await an operation that must run to completion even if the request is cancelled.

    When the caller goes away the operation keeps running and any failure
    is logged with ``description``.
    """
    task = asyncio.ensure_future(operation)
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        task.add_done_callback(functools.partial(_log_orphaned_failure, description))
        raise


class SetInsuranceRequest(BaseModel):
    """Toggle shipping protection. protection: 1/0 or "enabled"/"disabled"."""

    model_config = ConfigDict(populate_by_name=True)

    cart_id: Optional[str] = Field(default=None, alias="cartId")
    protection: Any = Field(default=None, description="1/0, true/false or enabled/disabled")
    subtotal: Any = Field(default=None, description="Physical-goods subtotal; derived from the cart when omitted")


class RecalculateInsuranceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cart_id: Optional[str] = Field(default=None, alias="cartId")
    subtotal: Any = None


@router.post("/add")
async def set_insurance(
    body: SetInsuranceRequest,
    service: InsuranceService = Depends(get_insurance_service),
):
    """
    Add or remove the shipping protection item.

    Runs shielded so a client disconnect does not abandon a half-applied
    remove/add sequence.
    """
    result = await run_shielded(
        service.set_insurance(body.cart_id, body.protection, body.subtotal),
        f"cart={body.cart_id} protection={body.protection!r} subtotal={body.subtotal!r}",
    )
    return result.to_dict()


@router.post("/update")
async def recalculate_insurance(
    body: RecalculateInsuranceRequest,
    service: InsuranceService = Depends(get_insurance_service),
):
    """Re-price the protection item against the current cart; no-op when absent."""
    result = await run_shielded(
        service.recalculate_insurance(body.cart_id, body.subtotal),
        f"cart={body.cart_id} recalculate subtotal={body.subtotal!r}",
    )
    return result.to_dict()


@router.get("/calculate")
async def preview_insurance_amount(
    cart_total: Optional[str] = Query(default=None, alias="cartTotal"),
    subtotal: Optional[str] = Query(default=None),
    service: InsuranceService = Depends(get_insurance_service),
):
    value = cart_total if cart_total is not None else subtotal
    if value is None:
        raise InvalidArgument("Valid cartTotal is required")
    return service.preview_insurance_amount(value).to_dict()
