import logging

from fastapi import APIRouter, Depends

from facade_annotator.deps import (
    get_annotation_store,
    get_footprints,
    get_photo_store,
    get_placed_store,
    get_reference_table,
)
from facade_annotator.errors import FacadeError, NotFound, to_http
from facade_annotator.models.photo import PhotoMetadata
from facade_annotator.schemas.annotation import PixelPoint, ProjectRequest, ReprojectOut
from facade_annotator.schemas.placement import LayoutOut, PlacementOut
from facade_annotator.services.exif.reader import read_photo_metadata
from facade_annotator.services.footprint.walls import wall_segments, walls_feature_collection
from facade_annotator.services.layout.facade import layout_building
from facade_annotator.services.projection.camera import (
    CameraCenter,
    DEFAULT_METER_PER_PIXEL,
    feature_meter_per_pixel,
    project_photo,
    reproject_features,
)
from facade_annotator.services.reference.table import ReferenceTable
from facade_annotator.services.storage.files import FileStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _photo_metadata(store: FileStore, building_id: str, image_name: str) -> PhotoMetadata:
    path = store.path_for(building_id, image_name)
    if not path.is_file():
        raise NotFound(f"image {image_name} not found")
    return read_photo_metadata(path)


@router.post("/project/{building_id}/{image_name}")
def project_annotation(
    building_id: str,
    image_name: str,
    payload: ProjectRequest,
    photos: FileStore = Depends(get_photo_store),
    annotations: FileStore = Depends(get_annotation_store),
):
    """
    写真上の矩形を経緯度ポリゴンへ変換し、annotations/{building}/{image}.geojson に保存。
    GPS が無い写真は 422（保存しない）。
    """
    try:
        meta = _photo_metadata(photos, building_id, image_name)
        geojson = project_photo(payload.rectangles, meta, image_name, building_id)
        annotations.save(building_id, f"{image_name}.geojson", geojson)
    except FacadeError as exc:
        raise to_http(exc) from exc
    return geojson


@router.get("/reproject/{building_id}/{image_name}")
def reproject_annotation(
    building_id: str,
    image_name: str,
    photos: FileStore = Depends(get_photo_store),
    annotations: FileStore = Depends(get_annotation_store),
) -> ReprojectOut:
    try:
        geojson = annotations.read(building_id, f"{image_name}.geojson")
        meta = _photo_metadata(photos, building_id, image_name)
        camera = CameraCenter.from_metadata(meta)
    except FacadeError as exc:
        raise to_http(exc) from exc

    if not isinstance(geojson, dict):
        geojson = {}
    features = geojson.get("features") or []
    first = features[0] if features and isinstance(features[0], dict) else None
    mpp = feature_meter_per_pixel(first.get("properties")) if first else DEFAULT_METER_PER_PIXEL
    polygons = [[PixelPoint(x=x, y=y) for x, y in ring] for ring in reproject_features(geojson, camera)]
    return ReprojectOut(
        imageName=image_name,
        buildingId=building_id,
        meterPerPixel=mpp,
        width=meta.width,
        height=meta.height,
        polygons=polygons,
    )


@router.get("/walls/{building_id}")
def building_walls(building_id: str, footprints: dict = Depends(get_footprints)):
    return walls_feature_collection(wall_segments(building_id, footprints))


def placed_features(store: FileStore, building_id: str) -> list[dict]:
    try:
        names = store.list(building_id, suffix=".geojson")
    except NotFound:
        return []
    feats: list[dict] = []
    for name in names:
        try:
            geojson = store.read(building_id, name)
        except FacadeError as exc:
            # 1 ファイルの破損で全体を止めない
            logger.warning("skip placed window %s/%s: %s", building_id, name, exc)
            continue
        features = geojson.get("features") if isinstance(geojson, dict) else None
        if isinstance(features, list):
            feats.extend(f for f in features if isinstance(f, dict))
    return feats


@router.get("/layout/{building_id}")
def building_layout(
    building_id: str,
    placed: FileStore = Depends(get_placed_store),
    footprints: dict = Depends(get_footprints),
    reference: ReferenceTable = Depends(get_reference_table),
) -> LayoutOut:
    walls = wall_segments(building_id, footprints)
    placements = layout_building(placed_features(placed, building_id), walls, reference)
    return LayoutOut(
        buildingId=building_id,
        walls=len(walls),
        placements=[PlacementOut(**p.to_dict()) for p in placements],
    )
