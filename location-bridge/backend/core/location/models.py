"""
Location Models - Pydantic models for geolocation commands
"""

import math
from typing import Optional

from pydantic import BaseModel, Field

# Smallest positive float. Replaces zero/unknown coordinates so strictly-typed
# clients always receive a float value and never an integer 0.
GEO_EPSILON = math.ulp(0.0)


class Location(BaseModel):
    """Device geolocation"""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    altitude: Optional[float] = None
    satellites: Optional[int] = Field(None, ge=1, le=12, description="Emulators only")
    speed: Optional[float] = Field(None, ge=0)
    bearing: Optional[float] = Field(None, description="Real devices only")
    accuracy: Optional[float] = Field(None, description="Real devices only")


def epsilon_location() -> Location:
    """Location returned when the actual coordinates cannot be read"""
    return Location(latitude=GEO_EPSILON, longitude=GEO_EPSILON, altitude=GEO_EPSILON)
