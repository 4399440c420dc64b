from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlmodel import Session
from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime, timezone

from ..logging_config import get_logger
from ..services.database import get_session
from ..services.auth import get_current_user_id, get_current_profile, load_profile, redirect_path
from ..services.s3 import upload_image, extract_key_from_url, delete_file
from ..models.profile import Profile, ProfileMe, UserType

logger = get_logger(__name__)

router = APIRouter(
    prefix="/profiles",
    tags=["Profiles"]
)


@router.get("/me", response_model=ProfileMe)
def read_current_profile(profile: Profile = Depends(get_current_profile)):
    return profile


class RedirectResponse(BaseModel):
    user_type: Optional[UserType]
    redirect_to: str

@router.get("/me/redirect", response_model=RedirectResponse)
def resolve_dashboard(
    session: Session = Depends(get_session),
    current_user_id: int = Depends(get_current_user_id)
):
    # Any lookup failure falls back to the user type selection step
    profile = load_profile(session, current_user_id)
    return {
        "user_type": profile.user_type if profile else None,
        "redirect_to": redirect_path(profile),
    }


class SelectUserTypeRequest(BaseModel):
    user_type: UserType
    company_name: Optional[str] = None

    @field_validator("company_name")
    @classmethod
    def strip_company_name(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value else None

@router.put("/me/type", response_model=ProfileMe)
def select_user_type(
    request: SelectUserTypeRequest,
    session: Session = Depends(get_session),
    current_user_id: int = Depends(get_current_user_id)
):
    if request.user_type == UserType.COMPANY and not request.company_name:
        raise HTTPException(status_code=400, detail="Please enter your company name")

    # Upsert: the profile row may not exist yet for this identity
    profile = session.get(Profile, current_user_id)
    if not profile:
        profile = Profile(user_id=current_user_id)

    profile.user_type = request.user_type
    profile.company_name = request.company_name if request.user_type == UserType.COMPANY else None
    profile.updated_at = datetime.now(timezone.utc)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    logger.info("user_type_selected", user_id=current_user_id, user_type=request.user_type.value)
    return profile


class UpdateProfileRequest(BaseModel):
    full_name: str

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name cannot be empty")
        if len(value) > 100:
            raise ValueError("Name must be less than 100 characters")
        return value

@router.put("/me", response_model=ProfileMe)
def update_profile(
    request: UpdateProfileRequest,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile)
):
    profile.full_name = request.full_name
    profile.updated_at = datetime.now(timezone.utc)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@router.put("/me/avatar", response_model=ProfileMe)
async def update_avatar(
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile)
):
    # Validate file type
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")

    # Delete old avatar if it was uploaded by us
    if profile.avatar_url:
        old_key = extract_key_from_url(profile.avatar_url)
        if old_key.startswith("avatars/"):
            delete_file(old_key)

    file_content = await file.read()
    profile.avatar_url = await upload_image(
        file_content=file_content,
        folder="avatars",
        identifier=str(profile.user_id),
        width=400,
        height=400
    )
    profile.updated_at = datetime.now(timezone.utc)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile
