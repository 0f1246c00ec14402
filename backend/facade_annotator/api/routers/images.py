import logging
import time
from urllib.parse import quote
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from starlette.requests import Request

from facade_annotator.deps import get_photo_store, get_reference_table
from facade_annotator.errors import FacadeError, NotFound, to_http
from facade_annotator.schemas.commons import Message
from facade_annotator.schemas.photo import ImageOut, PhotoMetadataOut, ReferenceOut, UploadOut
from facade_annotator.services.exif.reader import read_photo_metadata
from facade_annotator.services.projection.camera import meters_per_pixel
from facade_annotator.services.reference.table import ReferenceTable
from facade_annotator.services.storage.files import FileStore, sanitize_component

logger = logging.getLogger(__name__)

router = APIRouter()


def _image_url(store: FileStore, building_id: str, name: str) -> str:
    # 静的配信は保存先ディレクトリ名（サニタイズ後）で行う
    folder = store.path_for(building_id, name).parent.name
    return f"/uploaded/{quote(folder)}/{quote(name)}"


@router.post("/upload/{building_id}")
async def upload_images(
    request: Request,
    building_id: str,
    images: List[UploadFile] = File(...),
    store: FileStore = Depends(get_photo_store),
) -> UploadOut:
    client = request.client.host if request.client else "unknown"
    saved: list[ImageOut] = []
    for upload in images:
        try:
            # multer と同じく "<ms>_<元ファイル名>" で保存
            name = f"{int(time.time() * 1000)}_{sanitize_component(upload.filename or 'image')}"
            data = await upload.read()
            store.save_bytes(building_id, name, data)
        except FacadeError as exc:
            raise to_http(exc) from exc
        finally:
            await upload.close()
        saved.append(ImageOut(name=name, url=_image_url(store, building_id, name)))
    logger.info("upload from %s | building=%s | files=%d", client, building_id, len(saved))
    return UploadOut(message="Uploaded successfully", files=saved)


@router.get("/images/{building_id}")
def list_images(building_id: str, store: FileStore = Depends(get_photo_store)) -> List[ImageOut]:
    try:
        names = store.list(building_id)
    except NotFound:
        return []
    except FacadeError as exc:
        raise to_http(exc) from exc
    return [ImageOut(name=n, url=_image_url(store, building_id, n)) for n in names]


@router.delete("/images/{building_id}/{filename}")
def delete_image(building_id: str, filename: str, store: FileStore = Depends(get_photo_store)) -> Message:
    try:
        store.delete(building_id, filename)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail="File not found") from exc
    except FacadeError as exc:
        raise HTTPException(status_code=500, detail="Error deleting file") from exc
    return Message(message="File deleted")


@router.get("/images/{building_id}/{filename}/metadata")
def image_metadata(
    building_id: str,
    filename: str,
    store: FileStore = Depends(get_photo_store),
    reference: ReferenceTable = Depends(get_reference_table),
) -> PhotoMetadataOut:
    try:
        path = store.path_for(building_id, filename)
        if not path.is_file():
            raise NotFound("File not found")
        meta = read_photo_metadata(path)
    except FacadeError as exc:
        raise to_http(exc) from exc

    ref = reference.lookup(filename)
    d = meta.to_dict()
    return PhotoMetadataOut(
        name=filename,
        meterPerPixel=meters_per_pixel(meta.exif_width or meta.width, meta.focal_length_mm),
        reference=ReferenceOut(omega=ref.omega, phi=ref.phi, kappa=ref.kappa) if ref else None,
        **d,
    )
