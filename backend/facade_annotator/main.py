import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from facade_annotator.api.routers import annotations, buildings, export, geometry, images, placed
from facade_annotator.config import Settings, get_settings


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Facade Annotator API", version="0.1.0")
    # テストなどで差し替えた設定を依存性にも反映
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"ok": True, "data_dir": str(settings.data_dir)}

    @app.get("/api/config")
    def viewer_config():
        # 3D ビューアのトークンはグローバルに埋め込まず設定値として渡す
        return {"ionAccessToken": settings.ion_access_token}

    @app.on_event("startup")
    def on_startup():
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        logging.getLogger(__name__).info("data dir: %s", settings.data_dir)

    app.include_router(images.router,      prefix="/api",           tags=["images"])
    app.include_router(annotations.router, prefix="/api",           tags=["annotations"])
    app.include_router(placed.router,      prefix="/api",           tags=["placed"])
    app.include_router(geometry.router,    prefix="/api",           tags=["geometry"])
    app.include_router(buildings.router,   prefix="/api/buildings", tags=["buildings"])
    app.include_router(export.router,      prefix="/api/export",    tags=["export"])

    # 保存ファイルを静的配信（クライアントが直接 GET する）
    settings.ensure_dirs()
    app.mount("/uploaded", StaticFiles(directory=str(settings.uploaded_dir)), name="uploaded")
    app.mount("/annotations", StaticFiles(directory=str(settings.annotations_dir)), name="annotations")
    app.mount("/placed", StaticFiles(directory=str(settings.placed_dir)), name="placed")
    return app


app = create_app()
