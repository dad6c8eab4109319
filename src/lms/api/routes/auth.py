"""
Authentication routes
Handles registration, login and current-user lookup
"""
from fastapi import APIRouter

from lms.api.auth import get_password_hash, login_for_access_token
from lms.api.dependencies import CurrentUser, DBSession
from lms.models.schemas import LoginRequest, RegisterRequest, Token, UserResponse
from lms.services.accounts import register_account, user_to_dict

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(register_data: RegisterRequest, db: DBSession):
    """
    Register a teacher or student

    - **teacher_email**: optional for students; must belong to an existing teacher
    """
    user = register_account(db, register_data, get_password_hash(register_data.password))
    return UserResponse(**user_to_dict(user))


@router.post("/login", response_model=Token)
async def login(login_data: LoginRequest, db: DBSession):
    """Login endpoint"""
    return login_for_access_token(db, login_data)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: CurrentUser):
    """Get current user information"""
    return UserResponse(**user_to_dict(current_user))
