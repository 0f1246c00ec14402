# backend/facade_annotator/models/reference.py
from dataclasses import dataclass


@dataclass(frozen=True)
class ReferenceOrientation:
    filename: str
    lon: float
    lat: float
    alt: float
    omega: float  # degrees
    phi: float
    kappa: float
