"""HTTP surface: photo upload, annotation store, placement and layout."""

import pytest

from conftest import write_jpeg
from facade_annotator.services.projection.camera import meters_per_pixel


def _upload(client, tmp_path, building="B1", name="IMG_0001.jpg", **exif):
    path = write_jpeg(tmp_path / "src" / name, **exif)
    res = client.post(
        f"/api/upload/{building}",
        files=[("images", (name, path.read_bytes(), "image/jpeg"))],
    )
    assert res.status_code == 200, res.text
    return res.json()["files"][0]["name"]


def _collection(image_name="IMG_0001.jpg", building="B1"):
    ring = [[106.8, -6.2, 0], [106.80001, -6.2, 0], [106.80001, -6.20001, 0], [106.8, -6.20001, 0], [106.8, -6.2, 0]]
    return {
        "type": "FeatureCollection",
        "features": [{
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [ring]},
            "properties": {"imageName": image_name, "buildingId": building, "widthInMeters": 0.001, "heightInMeters": 0.001},
        }],
    }


def test_health_and_config(client):
    assert client.get("/health").json()["ok"] is True
    assert client.get("/api/config").json() == {"ionAccessToken": "test-token"}


class TestImages:
    def test_upload_list_delete(self, client, tmp_path):
        name = _upload(client, tmp_path)
        assert name.endswith("_IMG_0001.jpg")
        assert name.split("_", 1)[0].isdigit()

        listed = client.get("/api/images/B1").json()
        assert listed == [{"name": name, "url": f"/uploaded/B1/{name}"}]
        assert client.get(f"/uploaded/B1/{name}").status_code == 200

        assert client.delete(f"/api/images/B1/{name}").status_code == 200
        assert client.get("/api/images/B1").json() == []
        assert client.delete(f"/api/images/B1/{name}").status_code == 404

    def test_list_unknown_building(self, client):
        assert client.get("/api/images/none").json() == []

    def test_urls_follow_the_stored_folder(self, client, tmp_path):
        name = _upload(client, tmp_path, building="BLDG:42")
        (listed,) = client.get("/api/images/BLDG:42").json()
        assert listed["url"] == f"/uploaded/BLDG_42/{name}"
        assert client.get(listed["url"]).status_code == 200

    def test_metadata_with_reference(self, client, tmp_path):
        name = _upload(client, tmp_path, lat=-6.2, lon=106.8, focal_mm=6.0)
        body = client.get(f"/api/images/B1/{name}/metadata").json()
        assert body["latitude"] == pytest.approx(-6.2, abs=1e-7)
        assert body["meterPerPixel"] == pytest.approx(meters_per_pixel(1000, 6.0))
        assert body["reference"] == {"omega": 10.0, "phi": 20.0, "kappa": 90.0}

    def test_metadata_missing_image(self, client):
        assert client.get("/api/images/B1/nope.jpg/metadata").status_code == 404


class TestAnnotations:
    def test_crud(self, client):
        res = client.post("/api/annotations/B1/IMG_0001.jpg.geojson", json=_collection())
        assert res.json() == {"message": "Annotation saved."}
        assert client.get("/api/annotations/B1").json() == ["IMG_0001.jpg.geojson"]
        assert client.get("/api/annotations/B1/IMG_0001.jpg.geojson").json() == _collection()
        assert client.get("/annotations/B1/IMG_0001.jpg.geojson").status_code == 200

        assert client.delete("/api/annotations/B1/IMG_0001.jpg.geojson").status_code == 200
        assert client.get("/api/annotations/B1").json() == []
        assert client.delete("/api/annotations/B1/IMG_0001.jpg.geojson").status_code == 404

    def test_list_unknown_building_is_404(self, client):
        res = client.get("/api/annotations/none")
        assert res.status_code == 404
        assert res.json()["detail"] == "Folder not found"


class TestProjection:
    def test_project_and_reproject(self, client, tmp_path):
        name = _upload(client, tmp_path, lat=-6.2, lon=106.8, alt=10.0, focal_mm=6.0)
        rect = {"x": 450, "y": 450, "width": 100, "height": 100}
        res = client.post(f"/api/project/B1/{name}", json={"rectangles": [rect]})
        assert res.status_code == 200, res.text
        (feat,) = res.json()["features"]
        mpp = meters_per_pixel(1000, 6.0)
        assert feat["properties"]["widthInMeters"] == pytest.approx(100 * mpp)
        assert feat["properties"]["altitude"] == pytest.approx(10.0)
        assert client.get("/api/annotations/B1").json() == [f"{name}.geojson"]

        body = client.get(f"/api/reproject/B1/{name}").json()
        assert body["meterPerPixel"] == pytest.approx(mpp)
        (poly,) = body["polygons"]
        assert poly[0]["x"] == pytest.approx(450, abs=1e-2)
        assert poly[2]["y"] == pytest.approx(550, abs=1e-2)

    def test_missing_gps_is_rejected_and_not_saved(self, client, tmp_path):
        name = _upload(client, tmp_path)
        res = client.post(f"/api/project/B1/{name}", json={"rectangles": [{"x": 0, "y": 0, "width": 10, "height": 10}]})
        assert res.status_code == 422
        assert res.json()["detail"] == "missing GPS metadata"
        assert client.get("/api/annotations/B1").status_code == 404

    def test_project_unknown_image(self, client):
        res = client.post("/api/project/B1/nope.jpg", json={"rectangles": []})
        assert res.status_code == 404


class TestPlaced:
    def test_place_classify_delete(self, client):
        fc = _collection("1716_IMG_0001.jpg")
        fc["features"].append({"type": "Feature", "geometry": fc["features"][0]["geometry"], "properties": {}})
        res = client.post("/api/placeAnnotationOnBuilding", json=fc)
        assert res.status_code == 200
        assert res.json()["filePath"] == "placed/B1/1716_IMG_0001.geojson"

        assert client.get("/api/placed_windows/B1").json() == ["1716_IMG_0001.geojson"]
        stored = client.get("/api/placed_windows/B1/1716_IMG_0001.geojson").json()
        assert all(f["properties"]["buildingId"] == "B1" for f in stored["features"])
        assert all(f["properties"]["imageName"] == "1716_IMG_0001.jpg" for f in stored["features"])

        res = client.put("/api/placed_windows/B1/1716_IMG_0001.geojson/classification", json={"jenisJendela": "nako"})
        assert res.status_code == 200
        stored = client.get("/api/placed_windows/B1/1716_IMG_0001.geojson").json()
        assert {f["properties"]["jenisJendela"] for f in stored["features"]} == {"nako"}

        stored["features"] = stored["features"][:1]
        assert client.put("/api/placed_windows/B1/1716_IMG_0001.geojson", json=stored).status_code == 200
        assert len(client.get("/api/placed_windows/B1/1716_IMG_0001.geojson").json()["features"]) == 1

        assert client.delete("/api/placed/B1/1716_IMG_0001.geojson").status_code == 200
        assert client.get("/api/placed_windows/B1").json() == []

    def test_place_requires_ids(self, client):
        fc = _collection()
        fc["features"][0]["properties"].pop("buildingId")
        assert client.post("/api/placeAnnotationOnBuilding", json=fc).status_code == 400
        assert client.post("/api/placeAnnotationOnBuilding", json={"type": "FeatureCollection", "features": []}).status_code == 400

    def test_delete_rejects_other_types(self, client):
        assert client.delete("/api/placed/B1/evil.txt").status_code == 400
        assert client.delete("/api/placed/B1/missing.geojson").status_code == 404

    def test_classification_of_missing_file(self, client):
        res = client.put("/api/placed_windows/B1/missing.geojson/classification", json={"jenisJendela": "x"})
        assert res.status_code == 404

    def test_list_unknown_building_is_empty(self, client):
        assert client.get("/api/placed_windows/none").json() == []


class TestLayout:
    def test_walls(self, client):
        fc = client.get("/api/walls/B1").json()
        assert [f["properties"]["side"] for f in fc["features"]] == ["Side 1", "Side 2"]
        assert client.get("/api/walls/none").json()["features"] == []

    def test_layout_on_walls(self, client):
        client.post("/api/placeAnnotationOnBuilding", json=_collection())
        body = client.get("/api/layout/B1").json()
        assert body["walls"] == 2
        (p,) = body["placements"]
        assert p["orientation_source"] == "wall"
        assert p["side"] == 1

    def test_layout_without_footprint_uses_reference(self, client):
        client.post("/api/placeAnnotationOnBuilding", json=_collection(building="B9"))
        body = client.get("/api/layout/B9").json()
        assert body["walls"] == 0
        (p,) = body["placements"]
        assert p["orientation_source"] == "reference"

    def test_layout_without_anything_is_identity(self, client):
        client.post("/api/placeAnnotationOnBuilding", json=_collection("other.jpg", building="B9"))
        (p,) = client.get("/api/layout/B9").json()["placements"]
        assert p["orientation_source"] == "identity"
        assert p["orientation"] == {"heading": 0.0, "pitch": 0.0, "roll": 0.0}

    def test_malformed_placed_file_is_skipped(self, client):
        client.post("/api/placeAnnotationOnBuilding", json=_collection())
        broken = {"type": "FeatureCollection", "features": [
            {"type": "Feature", "geometry": {"type": "Point", "coordinates": [106.8, -6.2]}, "properties": {}},
            {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [[1, 2]]}, "properties": {}},
            "not a feature",
        ]}
        assert client.put("/api/placed_windows/B1/broken.geojson", json=broken).status_code == 200
        res = client.get("/api/layout/B1")
        assert res.status_code == 200
        assert [p["image_name"] for p in res.json()["placements"]] == ["IMG_0001.jpg"]

    def test_layout_empty_building(self, client):
        assert client.get("/api/layout/none").json()["placements"] == []

    def test_summary(self, client, tmp_path):
        _upload(client, tmp_path)
        client.post("/api/annotations/B1/IMG_0001.jpg.geojson", json=_collection())
        client.post("/api/placeAnnotationOnBuilding", json=_collection())
        body = client.get("/api/buildings/B1/summary").json()
        assert body == {"buildingId": "B1", "images": 1, "annotations": 1, "placedWindows": 1, "windowFeatures": 1}
