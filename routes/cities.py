import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query

from database import get_db
from errors import ConstraintViolation, ExternalServiceError
from places import nearby_places
from schemas.cities import CityCreate, CityResponse, CityMemberResponse, PlacesResponse, Place
from store import Store
from utils.route_helpers import get_current_user_id, get_optional_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cities", tags=["cities"])


def city_response(store: Store, city: dict) -> CityResponse:
    members = store.select("city_members", where={"city_id": city["id"]})
    return CityResponse(
        **city,
        member_count=len(members),
        is_member=any(m["profile_id"] == store.actor_id for m in members),
    )


@router.get("/", response_model=List[CityResponse])
def list_cities(
    q: Optional[str] = Query(None, description="Case-insensitive name filter"),
    current_user_id: Optional[str] = Depends(get_optional_user_id)
):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        cities = store.select("cities", order_by="name")
        if q:
            cities = [c for c in cities if q.lower() in c["name"].lower()]
        return [city_response(store, c) for c in cities]


@router.post("/", status_code=201, response_model=CityResponse)
def create_city(city: CityCreate, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        if store.get("cities", name=city.name, country=city.country):
            raise ConstraintViolation("City already exists")
        row = store.insert("cities", city.model_dump())
        conn.commit()
        return city_response(store, row)


@router.get("/{city_id}", response_model=CityResponse)
def get_city(city_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        return city_response(store, store.get_or_404("cities", label="City", id=city_id))


@router.delete("/{city_id}", status_code=204)
def delete_city(city_id: str, current_user_id: str = Depends(get_current_user_id)):
    """Remove a city together with everything attached to it (admin only)"""
    with get_db() as conn:
        Store(conn, current_user_id).delete("cities", id=city_id)
        conn.commit()
    logger.info("City %s deleted by %s", city_id, current_user_id)


@router.post("/{city_id}/join", response_model=CityResponse)
def join_city(city_id: str, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        city = store.get_or_404("cities", label="City", id=city_id)
        if not store.get("city_members", profile_id=current_user_id, city_id=city_id):
            store.insert("city_members", {"profile_id": current_user_id, "city_id": city_id})
            conn.commit()
        return city_response(store, city)


@router.post("/{city_id}/leave", response_model=CityResponse)
def leave_city(city_id: str, current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        city = store.get_or_404("cities", label="City", id=city_id)
        store.delete("city_members", missing_ok=True, profile_id=current_user_id, city_id=city_id)
        conn.commit()
        return city_response(store, city)


@router.get("/{city_id}/members", response_model=List[CityMemberResponse])
def list_members(city_id: str, current_user_id: Optional[str] = Depends(get_optional_user_id)):
    with get_db() as conn:
        store = Store(conn, current_user_id)
        store.get_or_404("cities", label="City", id=city_id)
        members = store.select("city_members", where={"city_id": city_id}, order_by="joined_at")
        profiles = {
            p["id"]: p for p in store.select("profiles", where={"id": [m["profile_id"] for m in members]})
        }
        return [
            CityMemberResponse(
                profile_id=m["profile_id"],
                username=profiles[m["profile_id"]]["username"],
                role=profiles[m["profile_id"]]["role"],
                joined_at=m["joined_at"],
            )
            for m in members
        ]


@router.get("/{city_id}/places", response_model=PlacesResponse)
def list_places(
    city_id: str,
    kind: Literal["accommodations", "attractions"] = "attractions",
    limit: int = Query(50, ge=1, le=200),
    current_user_id: Optional[str] = Depends(get_optional_user_id)
):
    """Nearby accommodations or attractions. Lookup failures come back as ``error``."""
    with get_db() as conn:
        city = Store(conn, current_user_id).get_or_404("cities", label="City", id=city_id)
    try:
        places = nearby_places(city["name"], kind, limit=limit)
    except ExternalServiceError as e:
        return PlacesResponse(city_id=city_id, kind=kind, places=[], error=e.detail)
    return PlacesResponse(city_id=city_id, kind=kind, places=[Place(**p) for p in places])


def joined_cities(store: Store, profile_id: str) -> List[dict]:
    memberships = store.select("city_members", where={"profile_id": profile_id}, order_by="joined_at")
    by_id = {c["id"]: c for c in store.select("cities", where={"id": [m["city_id"] for m in memberships]})}
    return [by_id[m["city_id"]] for m in memberships if m["city_id"] in by_id]
