import logging
import secrets
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import APIKeyHeader, OAuth2PasswordRequestForm
from coding_jojo_app.core import config
from coding_jojo_app.core.exceptions import Unauthenticated, Forbidden
from coding_jojo_app.users.models.user_models import UserModel
from coding_jojo_app.users.schemas.user_schemas import (
    UserCreate, UserResponse, TokenResponse, RefreshRequest, AccessTokenResponse
)
from coding_jojo_app.users.utils.get_current_user import get_current_user, decode_token
from coding_jojo_app.users.utils.password import hash_password, verify_password
from coding_jojo_app.users.utils.token_generate import (
    REFRESH_TOKEN, create_access_token, create_token_pair
)
from coding_jojo_app.users.utils.user_role import UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

admin_signup_key_header = APIKeyHeader(name="X-Admin-Signup-Key", auto_error=False)


async def _create_user(data: UserCreate, role: UserRole) -> UserModel:
    db_user = await UserModel.find_one(UserModel.email == data.email)
    if db_user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    new_user = UserModel(
        name=data.name,
        email=data.email,
        password=hash_password(data.password),
        role=role,
    )
    await new_user.insert()
    logger.info(f"Created {role.value} account {new_user.email}")
    return new_user


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(user: UserCreate):
    if user.role == UserRole.ADMIN:
        raise Forbidden("Admin accounts cannot be created through public sign-up")
    return UserResponse.model_validate(await _create_user(user, user.role))


@router.post("/signup/admin", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_admin(user: UserCreate, signup_key: str | None = Depends(admin_signup_key_header)):
    if not config.ADMIN_SIGNUP_KEY:
        raise Forbidden("Admin sign-up is disabled")
    if not signup_key or not secrets.compare_digest(signup_key, config.ADMIN_SIGNUP_KEY):
        raise Forbidden("Invalid admin sign-up key")
    return UserResponse.model_validate(await _create_user(user, UserRole.ADMIN))


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
async def login(form_data: OAuth2PasswordRequestForm = Depends()):
    db_user = await UserModel.find_one(UserModel.email == form_data.username)

    if not db_user or not verify_password(form_data.password, db_user.password):
        raise Unauthenticated("Invalid credentials")

    return create_token_pair(db_user)


@router.post("/refresh", response_model=AccessTokenResponse, status_code=status.HTTP_200_OK)
async def refresh_access_token(request: RefreshRequest):
    user_id = decode_token(request.refresh_token, REFRESH_TOKEN)
    db_user = await UserModel.get(user_id)
    if db_user is None:
        raise Unauthenticated()

    # role may have changed since the refresh token was issued
    token = create_access_token(data={
        "sub": str(db_user.id),
        "email": db_user.email,
        "role": db_user.role.value,
    })
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
async def read_me(current_user: UserModel = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)
