import os
from typing import Literal

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse

from errors import UploadError
from file_utils import BUCKETS, delete_object, object_path, save_upload
from utils.route_helpers import get_current_user_id

router = APIRouter(tags=["cdn"])


@router.get("/cdn/{bucket}/{owner_id}/{filename}")
def serve_object(bucket: str, owner_id: str, filename: str):
    """Serve a stored object; objects are publicly readable"""
    if bucket not in BUCKETS:
        raise HTTPException(status_code=404, detail="File not found")
    try:
        file_path = object_path(BUCKETS[bucket], f"{owner_id}/{filename}")
    except UploadError:
        raise HTTPException(status_code=404, detail="File not found")
    if not os.path.exists(file_path):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(file_path)


@router.post("/uploads/{bucket}", status_code=201)
def upload_object(
    bucket: Literal["images", "videos"],
    file: UploadFile = File(...),
    current_user_id: str = Depends(get_current_user_id)
):
    """Store a file under the caller's prefix and return its URL"""
    return {"url": save_upload(BUCKETS[bucket], current_user_id, file)}


@router.delete("/uploads/{bucket}/{owner_id}/{filename}", status_code=204)
def delete_upload(
    bucket: Literal["images", "videos"],
    owner_id: str,
    filename: str,
    current_user_id: str = Depends(get_current_user_id)
):
    """Remove one of the caller's own objects"""
    if not delete_object(BUCKETS[bucket], current_user_id, f"{owner_id}/{filename}"):
        raise HTTPException(status_code=404, detail="File not found")
