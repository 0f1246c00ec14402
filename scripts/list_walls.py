# scripts/list_walls.py
import sys

from facade_annotator.config import get_settings
from facade_annotator.services.footprint.walls import load_footprints, wall_segments

path = sys.argv[1] if len(sys.argv) > 1 else get_settings().footprints_path
data = load_footprints(path)
uids = sorted({(f.get("properties") or {}).get("uid") for f in data.get("features") or []} - {None})
for uid in uids:
    walls = wall_segments(uid, data)
    print(uid, len(walls), " ".join(f"{w.side}:{w.centroid[0]:.6f},{w.centroid[1]:.6f}" for w in walls))
