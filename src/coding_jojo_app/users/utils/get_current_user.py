import logging
from uuid import UUID
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from coding_jojo_app.core import config
from coding_jojo_app.core.exceptions import Unauthenticated, Forbidden
from coding_jojo_app.users.models.user_models import UserModel
from coding_jojo_app.users.utils.token_generate import ACCESS_TOKEN
from coding_jojo_app.users.utils.user_role import UserRole

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def decode_token(token: str, expected_type: str) -> UUID:
    """Returns the user id carried by a valid token of the expected type."""
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected token: {e}")
        raise Unauthenticated()

    if payload.get("type") != expected_type:
        raise Unauthenticated(f"Expected an {expected_type} token")

    try:
        return UUID(payload.get("sub") or "")
    except ValueError:
        raise Unauthenticated()


async def get_current_user(token: str | None = Depends(oauth2_scheme)) -> UserModel:
    if not token:
        raise Unauthenticated("Not authenticated")
    return await verify_token(token)


async def verify_token(token: str) -> UserModel:
    user_id = decode_token(token, ACCESS_TOKEN)
    user = await UserModel.get(user_id)
    if user is None:
        logger.info(f"Token subject {user_id} no longer exists")
        raise Unauthenticated()
    return user


async def get_current_admin(current_user: UserModel = Depends(get_current_user)) -> UserModel:
    if current_user.role != UserRole.ADMIN:
        raise Forbidden("Admin access required")
    return current_user
