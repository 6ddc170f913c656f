from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront.dependencies import get_coupon_validator
from storefront.utils.rate_limit import optional_rate_limit
from .models import CouponRequest, CouponValidation
from .service import CouponValidator

router = APIRouter(prefix="/api/v1/coupons", tags=["Coupons API"])


@router.post(
    "/validate",
    response_model=CouponValidation,
    response_model_exclude_none=True,
    dependencies=[Depends(optional_rate_limit(times=20, seconds=60))],
)
def validate_coupon(body: CouponRequest, validator: CouponValidator = Depends(get_coupon_validator)):
    """
    Valide un code promo pour un total panier.
    - 400 si le code est vide, 200 sinon (valid true/false porté dans le corps)
    """
    result = validator.validate(body.code, body.cart_total)
    if not (body.code or "").strip():
        return JSONResponse(status_code=400, content=result.model_dump(mode="json", by_alias=True, exclude_none=True))
    return result
