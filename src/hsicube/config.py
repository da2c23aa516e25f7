"""Runtime settings for the hsicube file formats.

The settings control file naming conventions and text formatting for the
ENVI header/data pair and the whole-object persistence container. They can be
built directly, from a mapping, or from a YAML file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hsicube.utils.io import StrPath
from hsicube.utils.logging import get_logger

__all__ = ["DEFAULT_SETTINGS", "HsicubeSettings", "load_settings"]


class HsicubeSettings(BaseModel):
    """File naming and formatting options shared by the readers and writers."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    header_suffix: str = Field(".hdr", description="Suffix of ENVI header files")
    data_suffix: str = Field(".dat", description="Suffix of ENVI binary data files")
    persistence_suffix: str = Field(
        ".cb",
        description="Suffix appended to whole-object save files without one",
    )
    wavelength_decimals: int = Field(
        6,
        ge=6,
        le=17,
        description="Digits after the decimal point for wavelength/fwhm lists",
    )
    log_level: str = Field("INFO", description="Level used by hsicube.utils.get_logger")

    @field_validator("header_suffix", "data_suffix", "persistence_suffix")
    @classmethod
    def _dotted(cls, value: str) -> str:
        value = value.strip()
        if not value or value == ".":
            raise ValueError("File suffixes must not be empty")
        return value if value.startswith(".") else f".{value}"

    @field_validator("log_level")
    @classmethod
    def _upper(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    @model_validator(mode="after")
    def _distinct_suffixes(self) -> HsicubeSettings:
        if self.header_suffix.lower() == self.data_suffix.lower():
            raise ValueError(
                f"Header and data suffixes must differ, both are {self.header_suffix!r}"
            )
        return self

    def get_logger(self, name: str = "hsicube") -> logging.Logger:
        """Return a Rich-configured logger at :attr:`log_level`."""

        return get_logger(name, self.log_level)


DEFAULT_SETTINGS = HsicubeSettings()


def load_settings(path_or_mapping: StrPath | Mapping[str, Any] | None) -> HsicubeSettings:
    """Load settings from a mapping or YAML file."""

    if path_or_mapping is None:
        return HsicubeSettings()
    if isinstance(path_or_mapping, Mapping):
        return HsicubeSettings(**path_or_mapping)

    cfg_path = Path(path_or_mapping)
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Expected mapping in {cfg_path}, found {type(data)}")
    return HsicubeSettings(**data)
