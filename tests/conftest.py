"""Shared course geometry for the tracking, service and API tests.

Hole 1 runs roughly north-east from its tee to its pin (~210 m). Hole 2's
tee sits ~46 m past the hole 1 pin. The boundary is a rectangle around both.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from models import Course, GeoPoint, Hole, LocationFix

HOLE1_TEE = GeoPoint(latitude=55.0210, longitude=-7.2480)
HOLE1_PIN = GeoPoint(latitude=55.0225, longitude=-7.2460)
HOLE2_TEE = GeoPoint(latitude=55.0228, longitude=-7.2455)
HOLE2_PIN = GeoPoint(latitude=55.0245, longitude=-7.2440)

BOUNDARY = [
    GeoPoint(latitude=55.0200, longitude=-7.2500),
    GeoPoint(latitude=55.0200, longitude=-7.2420),
    GeoPoint(latitude=55.0260, longitude=-7.2420),
    GeoPoint(latitude=55.0260, longitude=-7.2500),
]

T0 = datetime(2026, 5, 2, 9, 0, tzinfo=timezone.utc)


def make_course(*, boundary=True, total_holes=18) -> Course:
    return Course(
        id=str(uuid4()),
        name="Ballyliffin Test Links",
        total_holes=total_holes,
        holes=[
            Hole(number=1, par=4, hole_id=str(uuid4()),
                 tee_location=HOLE1_TEE, pin_location=HOLE1_PIN),
            Hole(number=2, par=4, hole_id=str(uuid4()),
                 tee_location=HOLE2_TEE, pin_location=HOLE2_PIN),
        ],
        boundary=BOUNDARY if boundary else [],
    )


def make_fix(lat, lon, seconds=0, *, accuracy=5.0, speed=None,
             user_id="u", round_id="r") -> LocationFix:
    return LocationFix(
        user_id=user_id,
        round_id=round_id,
        latitude=lat,
        longitude=lon,
        accuracy_meters=accuracy,
        speed_mps=speed,
        recorded_at=T0 + timedelta(seconds=seconds),
    )


def walk_fixes(start: GeoPoint, meters_north: float, *, user_id="u", round_id="r",
               start_seconds=0, accuracy=5.0):
    """Stationary x3, walk ``meters_north`` over 30 s (6 fixes), stationary x2."""
    step = meters_north / 6 / 111_194.93
    fixes = [
        make_fix(start.latitude, start.longitude, start_seconds + s,
                 accuracy=accuracy, user_id=user_id, round_id=round_id)
        for s in (0, 5, 10)
    ]
    for i in range(1, 7):
        fixes.append(make_fix(start.latitude + step * i, start.longitude,
                              start_seconds + 10 + 5 * i, accuracy=accuracy,
                              user_id=user_id, round_id=round_id))
    end_lat = start.latitude + step * 6
    fixes += [
        make_fix(end_lat, start.longitude, start_seconds + s,
                 accuracy=accuracy, user_id=user_id, round_id=round_id)
        for s in (45, 50)
    ]
    return fixes


@pytest.fixture
def course() -> Course:
    return make_course()
