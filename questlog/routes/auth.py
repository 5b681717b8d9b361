"""Authentication and profile routes."""
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from datetime import timedelta

from questlog.domain.entities import User
from questlog.core.security import create_access_token, get_current_user
from questlog.core.config import settings
from questlog.routes.deps import get_user_service
from questlog.services.user_service import UserService


router = APIRouter(prefix="/auth", tags=["Authentication"])


# Request/Response schemas
class RegisterRequest(BaseModel):
    name: str
    password: str


class LoginRequest(BaseModel):
    name: str
    password: str


class UpdateProfileRequest(BaseModel):
    name: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    name: str


class UserResponse(BaseModel):
    id: str
    name: str
    experience: int
    level: int

    class Config:
        from_attributes = True


def _token_for(user: User) -> TokenResponse:
    access_token = create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return TokenResponse(access_token=access_token, user_id=str(user.id), name=user.name)


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        name=user.name,
        experience=user.experience,
        level=user.level,
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, users: UserService = Depends(get_user_service)):
    """
    Register a new user.

    - Creates the account with a hashed password and the Habit/Other categories
    - Returns JWT access token
    """
    user = users.register(request.name, request.password)
    return _token_for(user)


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, users: UserService = Depends(get_user_service)):
    """Login with name and password."""
    user = users.authenticate(request.name, request.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect name or password"
        )
    return _token_for(user)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """
    Get current authenticated user with experience and level.

    Protected endpoint - requires valid JWT token.
    """
    return _user_response(current_user)


@router.put("/me", response_model=UserResponse)
def update_me(
    request: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Rename the current user."""
    return _user_response(users.update_profile(current_user.id, request.name))
