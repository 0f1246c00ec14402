from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

# 1) FACADE_DATA_DIR が指定されていれば優先
# 2) コンテナでは /app/data、ローカル開発では repo 直下の data
_container_data = Path("/app/data")


def _default_data_dir() -> Path:
    if _container_data.exists():
        return _container_data
    # backend/facade_annotator/config.py → ../../.. = <repo root>
    repo_root = Path(__file__).resolve().parents[2]
    return repo_root / "data"


def _split_origins(raw: str) -> tuple[str, ...]:
    return tuple(o.strip() for o in raw.split(",") if o.strip())


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    footprints_path: Path
    reference_table_path: Path
    cors_origins: tuple[str, ...] = ("*",)
    # 3D viewer access token; handed to the client through /api/config
    ion_access_token: str = ""
    log_level: str = "INFO"

    @property
    def uploaded_dir(self) -> Path:
        return self.data_dir / "uploaded"

    @property
    def annotations_dir(self) -> Path:
        return self.data_dir / "annotations"

    @property
    def placed_dir(self) -> Path:
        return self.data_dir / "placed_windows"

    def ensure_dirs(self) -> None:
        for d in (self.uploaded_dir, self.annotations_dir, self.placed_dir):
            d.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    data_env = os.getenv("FACADE_DATA_DIR")
    data_dir = Path(data_env).resolve() if data_env else _default_data_dir()
    footprints = os.getenv("FOOTPRINTS_PATH")
    reference = os.getenv("REFERENCE_TABLE_PATH")
    return Settings(
        data_dir=data_dir,
        footprints_path=Path(footprints) if footprints else data_dir / "building_with_parts.geojson",
        reference_table_path=Path(reference) if reference else data_dir / "reference_lab.txt",
        cors_origins=_split_origins(os.getenv("CORS_ALLOWED_ORIGINS", "*")) or ("*",),
        ion_access_token=os.getenv("CESIUM_ION_TOKEN", ""),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
