"""
Postal-code geocoding and great-circle distance.

Geocoders map 5-digit US postal codes to representative (centroid)
coordinates. PgeocodeGeocoder uses pgeocode's GeoNames data (downloaded and
cached on first use); CentroidTableGeocoder reads an offline table, which
keeps runs reproducible and tests network-free.
"""
import re
from pathlib import Path
from typing import Optional
import logging

import numpy as np
import pandas as pd
import pgeocode

from src import config

logger = logging.getLogger(__name__)

ZIP5_PATTERN = re.compile(r"^(\d{5})(-\d{4})?$")
COORDINATE_COLUMNS = ["latitude", "longitude"]


def normalize_postal_code(value) -> Optional[str]:
    """
    Reduce a raw postal value to a 5-digit string, or None if invalid.

    Accepts '60045', '60045-1234' and spreadsheet numerics such as 2134.0
    (leading zero lost by the spreadsheet, restored by zero-padding).

    Example:
        >>> normalize_postal_code("60045-2399")
        '60045'
        >>> normalize_postal_code(2134.0)
        '02134'
        >>> normalize_postal_code("IL") is None
        True
    """
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return None
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return f"{int(value):05d}" if 0 < value <= 99999 else None
    if isinstance(value, (float, np.floating)):
        if value.is_integer() and 0 < value <= 99999:
            return f"{int(value):05d}"
        return None

    match = ZIP5_PATTERN.match(str(value).strip())
    return match.group(1) if match else None


def haversine_distance(lat1, lon1, lat2, lon2, radius: Optional[float] = None):
    """
    Great-circle distance between coordinate pairs (degrees), vectorized.

    Returns distance in the unit of `radius` (default: miles). NaN
    coordinates propagate to NaN distances.
    """
    if radius is None:
        radius = config.EARTH_RADIUS_MILES

    lat1, lon1, lat2, lon2 = (
        np.radians(np.asarray(x, dtype=float)) for x in (lat1, lon1, lat2, lon2)
    )
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    return 2 * radius * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


class CentroidTableGeocoder:
    """Geocoder backed by a table of postal_code, latitude, longitude."""

    def __init__(self, centroids: pd.DataFrame):
        table = centroids.copy()
        table["postal_code"] = table["postal_code"].map(normalize_postal_code)
        table = table.dropna(subset=["postal_code"]).drop_duplicates("postal_code")
        self._table = table.set_index("postal_code")[COORDINATE_COLUMNS].astype(float)

    @classmethod
    def from_csv(cls, path) -> "CentroidTableGeocoder":
        logger.info(f"Loading postal centroids from: {path}")
        return cls(pd.read_csv(Path(path), dtype={"postal_code": str}))

    def lookup(self, postal_codes: pd.Series) -> pd.DataFrame:
        """Coordinates aligned to `postal_codes`; unknown or missing → NaN."""
        coords = self._table.reindex(postal_codes.to_numpy())
        coords.index = postal_codes.index
        return coords


class PgeocodeGeocoder:
    """Geocoder backed by pgeocode.Nominatim (GeoNames postal data)."""

    def __init__(self, country: Optional[str] = None):
        self.country = country or config.GEOCODER_COUNTRY
        self._nominatim = pgeocode.Nominatim(self.country)

    def lookup(self, postal_codes: pd.Series) -> pd.DataFrame:
        """Coordinates aligned to `postal_codes`; unknown or missing → NaN."""
        coords = pd.DataFrame(
            np.nan, index=postal_codes.index, columns=COORDINATE_COLUMNS
        )
        valid = postal_codes.dropna()
        if valid.empty:
            return coords

        unique_codes = valid.unique().tolist()
        result = self._nominatim.query_postal_code(unique_codes)
        table = pd.DataFrame(
            result[COORDINATE_COLUMNS].to_numpy(dtype=float),
            index=unique_codes,
            columns=COORDINATE_COLUMNS,
        )
        coords.loc[valid.index, COORDINATE_COLUMNS] = table.loc[valid.to_numpy()].to_numpy()
        return coords


def default_geocoder():
    """Offline centroid table when configured, otherwise pgeocode."""
    if config.ZIP_CENTROIDS_PATH:
        return CentroidTableGeocoder.from_csv(config.ZIP_CENTROIDS_PATH)
    return PgeocodeGeocoder()
