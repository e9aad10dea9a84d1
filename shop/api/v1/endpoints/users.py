import logging

from fastapi import APIRouter, Depends, Request
from starlette import status

from shop.core.deps import Identity, get_current_identity, get_service
from shop.core.limiter import limiter
from shop.schemas.user import LoginRequest, LoginResponse, RegisterRequest, UserRead
from shop.services.auth_service import AuthService

# Initialize logger for security and audit events
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/hour")  # Strict limit to prevent bot-spamming account creation
async def register(
    request: Request,
    user_data: RegisterRequest,
    auth_service: AuthService = Depends(get_service(AuthService)),
):
    """
    Registration Endpoint.
    Security: Limited to 5 attempts per hour to mitigate mass-account creation bots.
    """
    return await auth_service.register(user_data.model_dump())


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")  # Protect against brute-force attacks
async def login(
    request: Request,
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_service(AuthService)),
):
    """
    Authenticate user and return a bearer token.
    """
    return await auth_service.login(
        email=login_data.email,
        password=login_data.password,
    )


@router.get("/me", response_model=UserRead)
async def read_me(
    identity: Identity = Depends(get_current_identity),
    auth_service: AuthService = Depends(get_service(AuthService)),
):
    return await auth_service.get_profile(identity.user_id)
