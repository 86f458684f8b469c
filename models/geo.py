from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """WGS84 coordinate in decimal degrees."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    @classmethod
    def from_pair(cls, pair) -> "GeoPoint":
        """Build from a [lat, lon] pair (JSONB rows store points this way)."""
        return cls(latitude=float(pair[0]), longitude=float(pair[1]))
