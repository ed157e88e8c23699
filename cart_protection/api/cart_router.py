from fastapi import APIRouter, Depends

from cart_protection.api.dependencies import get_insurance_service
from cart_protection.integrations.policy.insurance_service import InsuranceService

router = APIRouter()


@router.get("/{cart_id}")
async def get_cart_snapshot(cart_id: str, service: InsuranceService = Depends(get_insurance_service)):
    """Normalized view of the cart, whichever BigCommerce API answered."""
    snapshot = await service.get_cart_snapshot(cart_id)
    return {"success": True, "cart": snapshot.to_dict()}
