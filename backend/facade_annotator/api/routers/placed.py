from pathlib import PurePath

from fastapi import APIRouter, Body, Depends, HTTPException

from facade_annotator.deps import get_placed_store
from facade_annotator.errors import FacadeError, NotFound, to_http
from facade_annotator.schemas.annotation import PlaceResult
from facade_annotator.schemas.commons import FeatureCollectionIn
from facade_annotator.schemas.placement import ClassificationIn
from facade_annotator.services.storage.files import FileStore

router = APIRouter()


def placed_key(image_name: str) -> str:
    # "1712_IMG_0001.jpg" → "1712_IMG_0001.geojson"
    return f"{PurePath(image_name).stem}.geojson"


@router.post("/placeAnnotationOnBuilding")
def place_annotation(payload: FeatureCollectionIn, store: FileStore = Depends(get_placed_store)) -> PlaceResult:
    first = payload.features[0] if payload.features else None
    props = first.properties if first else {}
    image_name = props.get("imageName")
    building_id = props.get("buildingId")
    if not image_name or not building_id:
        raise HTTPException(status_code=400, detail="Missing imageName or buildingId in properties.")

    geojson = payload.model_dump()
    # 全 feature に建物・画像を刻印
    for feat in geojson["features"]:
        feat["properties"] = feat.get("properties") or {}
        feat["properties"]["imageName"] = image_name
        feat["properties"]["buildingId"] = building_id

    key = placed_key(image_name)
    try:
        path = store.save(building_id, key, geojson)
    except FacadeError as exc:
        raise HTTPException(status_code=500, detail="Failed to save annotation.") from exc
    return PlaceResult(
        message=f"Annotation saved to {path}",
        filePath=f"placed/{path.parent.name}/{path.name}",
    )


@router.get("/placed_windows/{building_id}")
def list_placed(building_id: str, store: FileStore = Depends(get_placed_store)) -> list[str]:
    try:
        return store.list(building_id, suffix=".geojson")
    except NotFound:
        return []
    except FacadeError as exc:
        raise HTTPException(status_code=500, detail="Failed to read placed windows folder.") from exc


@router.get("/placed_windows/{building_id}/{filename}")
def read_placed(building_id: str, filename: str, store: FileStore = Depends(get_placed_store)):
    try:
        return store.read(building_id, filename)
    except FacadeError as exc:
        raise to_http(exc) from exc


@router.put("/placed_windows/{building_id}/{filename}")
def overwrite_placed(
    building_id: str,
    filename: str,
    payload: dict = Body(...),
    store: FileStore = Depends(get_placed_store),
):
    try:
        store.save(building_id, filename, payload)
    except FacadeError as exc:
        raise to_http(exc) from exc
    return {"status": "success", "message": f"Saved {filename}"}


@router.put("/placed_windows/{building_id}/{filename}/classification")
def classify_placed(
    building_id: str,
    filename: str,
    payload: ClassificationIn,
    store: FileStore = Depends(get_placed_store),
):
    try:
        geojson = store.read(building_id, filename)
        for feat in geojson.get("features") or []:
            if not feat.get("properties"):
                feat["properties"] = {}
            feat["properties"]["jenisJendela"] = payload.jenisJendela
        store.save(building_id, filename, geojson)
    except FacadeError as exc:
        raise to_http(exc) from exc
    return geojson


@router.delete("/placed/{building_id}/{filename}")
def delete_placed(building_id: str, filename: str, store: FileStore = Depends(get_placed_store)):
    if not filename.endswith(".geojson"):
        raise HTTPException(status_code=400, detail="Invalid file type.")
    try:
        store.delete(building_id, filename)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail="File not found.") from exc
    except FacadeError as exc:
        raise HTTPException(status_code=500, detail="Failed to delete file.") from exc
    return {"status": "success", "message": f"Deleted {filename}"}
