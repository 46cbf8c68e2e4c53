from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from laneboard.db.database import get_async_session
from laneboard.schemas.auth import UserCreate, UserResponse, TokenResponse
from laneboard.services.security_service import SecurityService
from laneboard.api.dependencies.auth import get_current_user
from laneboard.models.user import User
from laneboard.logs import debug_logger

# Create router
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_async_session)
):
    """
    Register a new user
    """
    # Check if email already exists
    existing_user = await SecurityService.get_user_by_email(db, user_data.email)
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    # Check if username already exists
    existing_user = await SecurityService.get_user_by_username(db, user_data.username)
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already taken"
        )

    user = User(
        email=SecurityService.normalize_email(user_data.email),
        username=user_data.username,
        hashed_password=SecurityService.create_password_hash(user_data.password)
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)
    debug_logger.info(f"Зарегистрирован пользователь {user.id}")

    return user


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Login for access token

    This endpoint is compatible with OAuth2 password flow
    """
    user = await SecurityService.authenticate_user(
        db, form_data.username, form_data.password
    )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username/email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return SecurityService.create_tokens(user.id)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Get current user information
    """
    return current_user
