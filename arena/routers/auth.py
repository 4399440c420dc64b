from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError
from pydantic import BaseModel
from firebase_admin import auth

from ..logging_config import get_logger
from ..services.auth import create_tokens, verify_token, verify_firebase_token
from ..services.database import get_session
from ..models.profile import Profile, ProfileMe

logger = get_logger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)

EMAIL_IN_USE = "An account with this email already exists"


class GoogleAuthRequest(BaseModel):
    id_token: str

class GoogleAuthResponse(BaseModel):
    profile: ProfileMe
    access_token: str
    refresh_token: str
    needs_user_type: bool

@router.post("/google", response_model=GoogleAuthResponse)
def google_auth(request: GoogleAuthRequest, db: Session = Depends(get_session)):
    try:
        decoded_token = verify_firebase_token(request.id_token)
    except (auth.InvalidIdTokenError, auth.ExpiredIdTokenError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Firebase token"
        )

    uid = decoded_token['uid']
    email = decoded_token.get('email')

    # Check if profile exists by Firebase UID
    profile = db.exec(
        select(Profile).where(Profile.firebase_uid == uid)
    ).first()

    # First sign-in creates the profile; the user type is chosen afterwards
    if not profile:
        if email and db.exec(select(Profile).where(Profile.email == email)).first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_IN_USE)

        profile = Profile(
            firebase_uid=uid,
            full_name=decoded_token.get('name') or (email.split('@')[0] if email else None),
            email=email,
            avatar_url=decoded_token.get('picture'),
        )
        db.add(profile)
        try:
            db.commit()
        except IntegrityError:
            # Another sign-in claimed this email or uid first
            db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_IN_USE)
        db.refresh(profile)
        logger.info("profile_created", user_id=profile.user_id)

    tokens = create_tokens(profile.user_id)
    return {
        "profile": ProfileMe.model_validate(profile),
        "needs_user_type": profile.user_type is None,
        **tokens
    }


class RefreshTokenRequest(BaseModel):
    refresh_token: str

class RefreshTokenResponse(BaseModel):
    access_token: str
    refresh_token: str

@router.post("/refresh", response_model=RefreshTokenResponse)
def refresh_token(request: RefreshTokenRequest, db: Session = Depends(get_session)):
    payload = verify_token(request.refresh_token)
    if payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token"
        )

    user_id = int(payload.get("sub"))
    profile = db.get(Profile, user_id)

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    # Generate new tokens
    return create_tokens(profile.user_id)
