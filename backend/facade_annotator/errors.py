# backend/facade_annotator/errors.py
from fastapi import HTTPException


class FacadeError(Exception):
    """Base class for domain errors raised below the HTTP layer."""


class MissingGeoreference(FacadeError):
    """Photo has no GPS latitude/longitude; projection cannot proceed."""


class NotFound(FacadeError):
    pass


class StorageFailure(FacadeError):
    pass


class PhotoMetadataError(FacadeError):
    pass


def to_http(exc: FacadeError) -> HTTPException:
    # ルータ側で raise to_http(exc) from exc として使う
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=str(exc) or "not found")
    if isinstance(exc, MissingGeoreference):
        return HTTPException(status_code=422, detail=str(exc) or "missing GPS metadata")
    if isinstance(exc, PhotoMetadataError):
        return HTTPException(status_code=400, detail=str(exc) or "failed to read image metadata")
    return HTTPException(status_code=500, detail=str(exc) or "storage failure")
