# jobportal/api/storage_routes.py
import mimetypes
from pathlib import Path

from fastapi import APIRouter, Body, Depends, File, Header, UploadFile
from fastapi.responses import Response

from jobportal.api.deps import get_current_identity, get_storage_root
from jobportal.backend.service import BucketStore

router = APIRouter(prefix="/storage/v1", tags=["storage"])


@router.post("/object/{bucket}/{path:path}", dependencies=[Depends(get_current_identity)])
async def upload_object(
    bucket: str,
    path: str,
    file: UploadFile = File(...),
    x_upsert: str = Header("true"),
    root: Path = Depends(get_storage_root),
):
    data = await file.read()
    stored = BucketStore(root, bucket).upload(path, data, upsert=x_upsert.lower() == "true")
    return {"bucket": bucket, "path": stored, "size": len(data)}


@router.get("/object/public/{bucket}/{path:path}")
def get_object(bucket: str, path: str, root: Path = Depends(get_storage_root)):
    data = BucketStore(root, bucket).download(path)
    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)


@router.delete("/object/{bucket}", dependencies=[Depends(get_current_identity)])
def remove_objects(
    bucket: str,
    prefixes: list[str] = Body(..., embed=True),
    root: Path = Depends(get_storage_root),
):
    return {"removed": BucketStore(root, bucket).remove(prefixes)}
