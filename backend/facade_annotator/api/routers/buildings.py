from fastapi import APIRouter, Depends

from facade_annotator.api.routers.geometry import placed_features
from facade_annotator.deps import get_annotation_store, get_photo_store, get_placed_store
from facade_annotator.errors import NotFound
from facade_annotator.schemas.photo import BuildingSummary
from facade_annotator.services.storage.files import FileStore

router = APIRouter()


def _count(store: FileStore, building_id: str, suffix: str | None = None) -> int:
    try:
        return len(store.list(building_id, suffix=suffix))
    except NotFound:
        return 0


@router.get("/{building_id}/summary")
def building_summary(
    building_id: str,
    photos: FileStore = Depends(get_photo_store),
    annotations: FileStore = Depends(get_annotation_store),
    placed: FileStore = Depends(get_placed_store),
) -> BuildingSummary:
    return BuildingSummary(
        buildingId=building_id,
        images=_count(photos, building_id),
        annotations=_count(annotations, building_id, ".geojson"),
        placedWindows=_count(placed, building_id, ".geojson"),
        windowFeatures=len(placed_features(placed, building_id)),
    )
