from fastapi import APIRouter, Body, Depends, HTTPException

from facade_annotator.deps import get_annotation_store
from facade_annotator.errors import FacadeError, NotFound, to_http
from facade_annotator.schemas.commons import Message
from facade_annotator.services.storage.files import FileStore

router = APIRouter()


@router.post("/annotations/{building_id}/{image_name}")
def save_annotation(
    building_id: str,
    image_name: str,
    payload: dict = Body(...),
    store: FileStore = Depends(get_annotation_store),
) -> Message:
    try:
        store.save(building_id, image_name, payload)
    except FacadeError as exc:
        raise to_http(exc) from exc
    return Message(message="Annotation saved.")


@router.get("/annotations/{building_id}")
def list_annotations(building_id: str, store: FileStore = Depends(get_annotation_store)) -> list[str]:
    try:
        return store.list(building_id, suffix=".geojson")
    except NotFound as exc:
        raise HTTPException(status_code=404, detail="Folder not found") from exc
    except FacadeError as exc:
        raise to_http(exc) from exc


@router.get("/annotations/{building_id}/{filename}")
def read_annotation(building_id: str, filename: str, store: FileStore = Depends(get_annotation_store)):
    try:
        return store.read(building_id, filename)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail="Annotation not found.") from exc
    except FacadeError as exc:
        raise to_http(exc) from exc


@router.delete("/annotations/{building_id}/{filename}")
def delete_annotation(building_id: str, filename: str, store: FileStore = Depends(get_annotation_store)) -> Message:
    try:
        store.delete(building_id, filename)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail="Annotation not found.") from exc
    except FacadeError as exc:
        raise HTTPException(status_code=500, detail="Failed to delete annotation.") from exc
    return Message(message="Annotation deleted successfully.")
