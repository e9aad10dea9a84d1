from typing import List

from fastapi import APIRouter, Depends, Header, Response
from starlette import status

from shop.core.deps import Identity, get_current_identity, get_purchase_service
from shop.schemas.purchase import PurchaseCreate, PurchaseRead
from shop.services.purchase_service import PurchaseService

router = APIRouter(
    prefix="/purchases",
    tags=["purchases"],
)


@router.post("", response_model=PurchaseRead, status_code=status.HTTP_201_CREATED)
async def create_purchase(
    body: PurchaseCreate,
    response: Response,
    idempotency_key: str | None = Header(None, alias="Idempotency-Key", max_length=255),
    identity: Identity = Depends(get_current_identity),
    service: PurchaseService = Depends(get_purchase_service),
):
    """
    Buy one or more items. Stock is checked and decremented atomically;
    repeating a request with the same Idempotency-Key returns the original
    purchase with 200 instead of buying again.
    """
    purchase, created = await service.create_purchase(
        user_id=identity.user_id,
        items=body.items,
        idempotency_key=idempotency_key,
    )

    if not created:
        response.status_code = status.HTTP_200_OK

    return purchase


# PURCHASE HISTORY
@router.get("", response_model=List[PurchaseRead])
async def list_purchases(
    identity: Identity = Depends(get_current_identity),
    service: PurchaseService = Depends(get_purchase_service),
):
    """
    The caller's purchases, newest first.
    """
    return await service.get_purchase_history(identity.user_id)
