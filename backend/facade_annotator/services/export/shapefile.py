# backend/facade_annotator/services/export/shapefile.py
import logging
import shutil
from pathlib import Path
from typing import Iterable, Tuple

import shapefile  # pyshp
from pyproj import CRS, Transformer
from shapely.geometry import shape

logger = logging.getLogger(__name__)

# target_epsg: 例 32748 (WGS 84 / UTM zone 48S)

# DBF 制約に配慮して短名
WINDOW_FIELDS: Tuple[Tuple[str, str, int, int], ...] = (
    ("image", "C", 80, 0),
    ("building", "C", 50, 0),
    ("jenis", "C", 50, 0),
    ("width_m", "N", 18, 6),
    ("height_m", "N", 18, 6),
)


def _num(value) -> float:
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


def export_placed_windows(
    features: Iterable[dict],
    out_zip: Path,
    target_epsg: int,
    layer_name: str = "placed_windows",
    encoding: str = "UTF-8",
) -> int:
    """
    Placed window Polygons -> <layer_name>.shp (target_epsg) zipped to out_zip.
    Exterior ring only; features without Polygon geometry are skipped.
    Returns the number of shapes written.
    """
    out_dir = out_zip.parent / out_zip.stem
    out_dir.mkdir(parents=True, exist_ok=True)

    src_crs = CRS.from_epsg(4326)
    dst_crs = CRS.from_epsg(target_epsg)
    tf = Transformer.from_crs(src_crs, dst_crs, always_xy=True)

    path_base = out_dir / layer_name
    w = shapefile.Writer(str(path_base), shapeType=shapefile.POLYGON)
    w.encoding = encoding
    for f in WINDOW_FIELDS:
        w.field(*f)

    written = 0
    for i, feat in enumerate(features):
        geom = feat.get("geometry") or {}
        if not isinstance(geom, dict) or geom.get("type") != "Polygon" or not geom.get("coordinates"):
            continue
        try:
            poly = shape({"type": "Polygon", "coordinates": [[c[:2] for c in geom["coordinates"][0]]]})
            coords_tf = [tf.transform(x, y) for x, y in poly.exterior.coords]
        except (TypeError, ValueError, IndexError) as exc:
            logger.warning("skip feature #%d: %s", i, exc)
            continue
        props = feat.get("properties")
        if not isinstance(props, dict):
            props = {}
        w.poly([coords_tf])
        w.record(
            str(props.get("imageName") or "")[:80],
            str(props.get("buildingId") or "")[:50],
            str(props.get("jenisJendela") or "")[:50],
            _num(props.get("widthInMeters")),
            _num(props.get("heightInMeters")),
        )
        written += 1
    w.close()
    (path_base.with_suffix(".prj")).write_text(dst_crs.to_wkt())

    # zip化
    shutil.make_archive(str(out_dir), "zip", root_dir=out_dir)
    Path(str(out_dir) + ".zip").replace(out_zip)
    logger.info("exported %d windows to EPSG:%d", written, target_epsg)
    return written
