from .cube import BAND_INDEX_UNIT, SCHEMA_VERSION, UNKNOWN, Datacube, default_metadata
from .provenance import ProvenanceLog, ProvenanceRecord
from .validators import validate_cube

__all__ = [
    "BAND_INDEX_UNIT",
    "Datacube",
    "ProvenanceLog",
    "ProvenanceRecord",
    "SCHEMA_VERSION",
    "UNKNOWN",
    "default_metadata",
    "validate_cube",
]
