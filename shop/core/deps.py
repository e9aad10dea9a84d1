import logging
import uuid
from dataclasses import dataclass
from typing import Type, TypeVar

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from shop.clients.base import ItemDirectory
from shop.core.exceptions import AuthenticationFailed
from shop.core.security import decode_access_token
from shop.crud.purchase import PurchaseCRUD
from shop.db.sessions import get_async_session
from shop.services.purchase_service import PurchaseService


# Initialize logger for security events
logger = logging.getLogger(__name__)

# HTTPBearer is used for "Authorization: Bearer <token>" headers
bearer_scheme = HTTPBearer(auto_error=False)

T = TypeVar("T")


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as stated by a verified token."""
    user_id: uuid.UUID
    name: str
    email: str


async def get_current_identity(
    token: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """
    Dependency that authenticates requests using a JWT.

    Services other than the user service do not own the users table, so the
    identity comes from the token's claims alone.
    """
    if not token or token.scheme.lower() != "bearer":
        raise AuthenticationFailed("Missing or malformed JWT")

    payload = decode_access_token(token.credentials)

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise AuthenticationFailed("Invalid or expired JWT")

    try:
        user_id = uuid.UUID(user_id_str)
    except (ValueError, AttributeError, TypeError):
        logger.warning("Auth Failure: token subject is not a UUID")
        raise AuthenticationFailed("Invalid user ID in token")

    return Identity(
        user_id=user_id,
        name=payload.get("name", ""),
        email=payload.get("email", ""),
    )


# SERVICE DEPENDENCIES

def get_item_directory(request: Request) -> ItemDirectory:
    return request.app.state.item_directory


def get_service(service_cls: Type[T]):
    def _get(db: AsyncSession = Depends(get_async_session)) -> T:
        return service_cls(db)

    return _get


def get_purchase_service(
    db: AsyncSession = Depends(get_async_session),
    item_directory: ItemDirectory = Depends(get_item_directory),
) -> PurchaseService:
    return PurchaseService(PurchaseCRUD(db), item_directory)
