from fastapi import APIRouter

from shop.api.v1.endpoints import items, purchases, users

SERVICE_ROUTERS = {
    "user": [users.router],
    "item": [items.router],
    "purchase": [purchases.router],
}


def build_router(service: str = "all") -> APIRouter:
    """Routes of one deployable service, or of all three when service is "all"."""
    router = APIRouter()

    selected = SERVICE_ROUTERS.keys() if service == "all" else [service]

    for name in selected:
        for service_router in SERVICE_ROUTERS[name]:
            router.include_router(service_router)

    return router
