from fastapi import Depends

from facade_annotator.config import Settings, get_settings
from facade_annotator.services.footprint.walls import load_footprints
from facade_annotator.services.reference.table import ReferenceTable, load_reference_table
from facade_annotator.services.storage.files import FileStore


def get_photo_store(settings: Settings = Depends(get_settings)) -> FileStore:
    return FileStore(settings.uploaded_dir)


def get_annotation_store(settings: Settings = Depends(get_settings)) -> FileStore:
    return FileStore(settings.annotations_dir)


def get_placed_store(settings: Settings = Depends(get_settings)) -> FileStore:
    return FileStore(settings.placed_dir)


def get_footprints(settings: Settings = Depends(get_settings)) -> dict:
    return load_footprints(settings.footprints_path)


def get_reference_table(settings: Settings = Depends(get_settings)) -> ReferenceTable:
    return load_reference_table(settings.reference_table_path)
