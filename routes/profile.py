from fastapi import APIRouter, Depends
from typing import List, Optional

from database import get_db
from errors import ConstraintViolation
from routes.cities import city_response, joined_cities
from schemas.cities import CityResponse
from schemas.profile import ProfileUpdate, ProfileResponse
from store import Store
from utils.route_helpers import get_current_user_id, get_optional_user_id

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/{profile_id}", response_model=ProfileResponse)
def get_profile(profile_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        return Store(conn, current_user_id).get_or_404("profiles", label="Profile", id=profile_id)


@router.put("/{profile_id}", response_model=ProfileResponse)
def update_profile(
    profile_id: str,
    profile: ProfileUpdate,
    current_user_id: str = Depends(get_current_user_id)
):
    """Update your own profile; only the fields sent are changed"""
    changes = profile.model_dump(exclude_unset=True)
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("profiles", label="Profile", id=profile_id)
        if changes.get("username"):
            taken = store.get("profiles", username=changes["username"])
            if taken and taken["id"] != profile_id:
                raise ConstraintViolation("Username is already taken")
        if changes.get("city_id"):
            store.get_or_404("cities", label="City", id=changes["city_id"])
        for field in ("username", "role", "interests"):
            if field in changes and changes[field] is None:
                del changes[field]
        row = store.update("profiles", {"id": profile_id}, changes)
        conn.commit()
        return row


@router.get("/{profile_id}/cities", response_model=List[CityResponse])
def list_profile_cities(profile_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    """Cities the profile has joined, in join order"""
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("profiles", label="Profile", id=profile_id)
        return [city_response(store, c) for c in joined_cities(store, profile_id)]
