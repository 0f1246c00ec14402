# backend/facade_annotator/schemas/commons.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional


class GeoJSONFeature(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["Feature"] = "Feature"
    geometry: Optional[dict] = None
    properties: dict = Field(default_factory=dict)


class FeatureCollectionIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: List[GeoJSONFeature] = Field(default_factory=list)


class Message(BaseModel):
    message: str
