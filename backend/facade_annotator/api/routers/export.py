# backend/facade_annotator/api/routers/export.py
from fastapi import APIRouter, Depends, HTTPException, Response
from pathlib import Path
from pyproj.exceptions import CRSError
import tempfile

from facade_annotator.api.routers.geometry import placed_features
from facade_annotator.deps import get_placed_store
from facade_annotator.services.export.shapefile import export_placed_windows
from facade_annotator.services.storage.files import FileStore, sanitize_component

router = APIRouter()


@router.post("/shapefile")
def make_shp(
    building_id: str,
    target_epsg: int = 4326,
    encoding: str = "UTF-8",
    store: FileStore = Depends(get_placed_store),
):
    feats = [
        f for f in placed_features(store, building_id)
        if isinstance(f.get("geometry"), dict) and f["geometry"].get("type") == "Polygon"
    ]
    if not feats:
        raise HTTPException(status_code=404, detail="no placed windows")

    name = f"placed_windows_{sanitize_component(building_id)}"
    # 一時ディレクトリにZIPを作成し、メモリに読み込んで返す（サーバ上に残さない）
    with tempfile.TemporaryDirectory() as tmpdir:
        out = Path(tmpdir) / f"{name}.zip"
        try:
            export_placed_windows(feats, out, target_epsg, encoding=encoding)
        except CRSError as exc:
            raise HTTPException(status_code=400, detail=f"invalid target_epsg: {target_epsg}") from exc
        data = out.read_bytes()
    headers = {
        "Content-Disposition": f"attachment; filename=\"{name}.zip\"",
        "Content-Type": "application/zip",
    }
    return Response(content=data, media_type="application/zip", headers=headers)
