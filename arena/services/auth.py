from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Annotated, Optional
import firebase_admin
from firebase_admin import auth, credentials

from ..config import (
    SECRET_KEY,
    ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
    FIREBASE_CREDENTIALS_JSON,
)
from ..logging_config import bind_user_context, get_logger
from ..models.profile import Profile, UserType
from .database import get_session

logger = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/google")

SELECT_TYPE_PATH = "/app/select-type"
DASHBOARD_PATHS = {
    UserType.PARTICIPANT: "/app",
    UserType.COMPANY: "/app/company",
}

# Function to create JWT token
def create_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

def create_tokens(user_id: int):
    access_token = create_token(
        data={"sub": str(user_id), "type": "access"},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    refresh_token = create_token(
        data={"sub": str(user_id), "type": "refresh"},
        expires_delta=timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
    )
    return {"access_token": access_token, "refresh_token": refresh_token}

# Function to verify JWT token
def verify_token(token: str = Depends(oauth2_scheme)):
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

# Function to get current user_id from token
async def get_current_user_id(payload: Annotated[dict, Depends(verify_token)]) -> int:
    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )
    user_id = int(payload.get("sub"))
    bind_user_context(user_id)
    return user_id


def verify_firebase_token(id_token: str) -> dict:
    """Verify a Firebase ID token issued by the Google sign-in flow."""
    # Initialize Firebase Admin SDK if not already initialized
    try:
        firebase_admin.get_app()
    except ValueError:
        firebase_admin.initialize_app(credentials.Certificate(FIREBASE_CREDENTIALS_JSON))
    return auth.verify_id_token(id_token)


def load_profile(session: Session, user_id: int) -> Optional[Profile]:
    """Fetch a profile, treating lookup errors as a missing profile."""
    try:
        return session.get(Profile, user_id)
    except SQLAlchemyError as e:
        logger.error("profile_lookup_failed", user_id=user_id, error=str(e))
        session.rollback()
        return None


def redirect_path(profile: Optional[Profile]) -> str:
    if profile is None or profile.user_type is None:
        return SELECT_TYPE_PATH
    return DASHBOARD_PATHS[profile.user_type]


def get_current_profile(
    session: Session = Depends(get_session),
    current_user_id: int = Depends(get_current_user_id)
) -> Profile:
    profile = session.get(Profile, current_user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


def require_user_type(user_type: UserType):
    def dependency(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.user_type is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Select a user type before continuing",
                headers={"Location": SELECT_TYPE_PATH},
            )
        if profile.user_type != user_type:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This action is only available to {user_type.value} accounts",
                headers={"Location": DASHBOARD_PATHS[profile.user_type]},
            )
        return profile
    return dependency


require_participant = require_user_type(UserType.PARTICIPANT)
require_company = require_user_type(UserType.COMPANY)
