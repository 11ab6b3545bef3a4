from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError, ExpiredSignatureError
from pydantic import ValidationError
from wellness.models.mod_auth import AuthUser, UserRole, TokenData
from wellness.configuration.config import Config

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

def _credentials_exception(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

def verify_token(token: str) -> TokenData:
    """
    Verify the JWT token and extract its claims.
    Raises HTTPException if token is invalid.
    """
    if not Config.JWT_SECRET_KEY:
        raise _credentials_exception("Token verification is not configured")
    try:
        payload = jwt.decode(
            token,
            Config.JWT_SECRET_KEY,
            algorithms=[Config.JWT_ALGORITHM],
            audience=Config.JWT_AUDIENCE
        )
        # The platform role lives in app_metadata; "role" is the database role
        app_metadata = payload.get("app_metadata") or {}
        role = app_metadata.get("role")
        if role not in [r.value for r in UserRole]:
            role = UserRole.CLIENT
        return TokenData(
            id=payload.get("sub"),
            email=payload.get("email"),
            name=(payload.get("user_metadata") or {}).get("full_name"),
            role=role,
            exp=payload.get("exp")
        )
    except ExpiredSignatureError:
        raise _credentials_exception("Token has expired")
    except (JWTError, ValidationError):
        raise _credentials_exception("Could not validate credentials")

def get_current_user(token: str = Depends(oauth2_scheme)) -> AuthUser:
    """
    Get the current authenticated user from the token.
    This is the main dependency to be used in protected endpoints.
    """
    token_data = verify_token(token)
    return AuthUser(
        id=token_data.id,
        email=token_data.email,
        name=token_data.name,
        role=token_data.role
    )

def get_current_team_member(current_user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Dependency for endpoints that require a team role (instructor, team member or admin)"""
    if current_user.role not in [UserRole.INSTRUCTOR, UserRole.TEAM_MEMBER, UserRole.ADMIN]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to perform this action"
        )
    return current_user
