from datetime import timedelta

import pytest

from database import DatabaseManager
from models import GeoPoint, LocationFix, PositionOnHole, ShotEvent, ShotSource
from services import (
    Forbidden,
    InvalidCoordinates,
    InvalidRoundState,
    NotFound,
    RoundLifecycleService,
    ValidationError,
)
from tracking import LocationIngestService

from conftest import HOLE1_PIN, HOLE1_TEE, HOLE2_TEE, T0, make_fix, walk_fixes

USER = "user-1"
WALK_START = GeoPoint(latitude=55.0215, longitude=-7.2470)


@pytest.fixture
def db(course):
    manager = DatabaseManager.in_memory()
    manager.courses.add_course(course)
    return manager


@pytest.fixture
def lifecycle(db):
    return RoundLifecycleService(db)


@pytest.fixture
def ingest(db):
    return LocationIngestService(db)


async def _start(lifecycle, course):
    return await lifecycle.start_round(USER, course.id)


async def _feed(ingest, round_id, fixes):
    results = []
    for fix in fixes:
        results.append(await ingest.record_fix(USER, round_id, fix))
    return results


def _sensor_shot(number, meters=200.0):
    return ShotEvent(
        round_id="ignored",
        hole_number=1,
        shot_number=number,
        start_location=HOLE1_TEE,
        end_location=WALK_START,
        distance_meters=meters,
        estimated_club="Driver",
    )


# ================================================================
# Enrichment and validation
# ================================================================

@pytest.mark.asyncio
async def test_fix_at_tee_is_enriched_and_stored(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)

    result = await ingest.record_fix(
        USER, round_.id, make_fix(HOLE1_TEE.latitude, HOLE1_TEE.longitude)
    )

    assert result.fix.hole_number == 1
    assert result.fix.detected_hole == 1
    assert result.fix.position_on_hole == PositionOnHole.TEE
    assert result.fix.distance_to_tee_meters == pytest.approx(0.0)
    assert result.fix.distance_to_pin_meters == pytest.approx(210, abs=2)
    assert result.fix.within_course_boundary is True
    assert result.fix.user_id == USER
    assert result.fix.round_id == round_.id
    assert result.hole_advanced is False
    assert await ingest.list_fixes(USER, round_.id) == [result.fix]


@pytest.mark.asyncio
async def test_low_accuracy_fix_is_flagged_not_dropped(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)
    fix = make_fix(HOLE1_TEE.latitude, HOLE1_TEE.longitude, accuracy=45.0)

    result = await ingest.record_fix(USER, round_.id, fix)

    assert result.fix.low_accuracy is True
    assert len(await ingest.list_fixes(USER, round_.id)) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("lat,lon,accuracy", [
    (200.0, 0.0, 5.0),
    (55.0, -181.0, 5.0),
    (float("nan"), -7.0, 5.0),
    (55.0, -7.0, -1.0),
])
async def test_invalid_coordinates_are_rejected(course, lifecycle, ingest, lat, lon, accuracy):
    round_ = await _start(lifecycle, course)
    with pytest.raises(InvalidCoordinates):
        await ingest.record_fix(USER, round_.id, make_fix(lat, lon, accuracy=accuracy))
    assert await ingest.list_fixes(USER, round_.id) == []


@pytest.mark.asyncio
async def test_paused_round_rejects_fixes(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)
    await lifecycle.pause_round(USER, round_.id)

    with pytest.raises(InvalidRoundState) as exc_info:
        await ingest.record_fix(USER, round_.id, make_fix(55.0215, -7.2470))
    assert exc_info.value.current_status == "paused"


@pytest.mark.asyncio
async def test_completed_round_rejects_fixes(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)
    await lifecycle.complete_round(USER, round_.id)

    with pytest.raises(InvalidRoundState):
        await ingest.record_fix(USER, round_.id, make_fix(55.0215, -7.2470))


@pytest.mark.asyncio
async def test_unknown_round_and_other_users(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)
    fix = make_fix(55.0215, -7.2470)

    with pytest.raises(NotFound):
        await ingest.record_fix(USER, "no-such-round", fix)
    with pytest.raises(Forbidden):
        await ingest.record_fix("someone-else", round_.id, fix)
    with pytest.raises(Forbidden):
        await ingest.list_fixes("someone-else", round_.id)


@pytest.mark.asyncio
async def test_duplicate_timestamp_is_stored_once(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)
    fix = make_fix(55.0215, -7.2470, 5)

    await ingest.record_fix(USER, round_.id, fix)
    again = await ingest.record_fix(USER, round_.id, fix)

    assert again.shots == []
    assert len(await ingest.list_fixes(USER, round_.id)) == 1


@pytest.mark.asyncio
async def test_naive_and_offset_timestamps_share_one_timeline(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)

    def fix_at(recorded_at):
        return LocationFix(user_id=USER, round_id=round_.id, latitude=55.0215,
                           longitude=-7.2470, accuracy_meters=5.0, recorded_at=recorded_at)

    naive = T0.replace(tzinfo=None)
    await ingest.record_fix(USER, round_.id, fix_at(naive + timedelta(seconds=10)))
    await ingest.record_fix(USER, round_.id, fix_at("2026-05-02T09:00:05Z"))
    # Same instant as the first fix, written with an offset.
    await ingest.record_fix(USER, round_.id, fix_at("2026-05-02T10:00:10+01:00"))
    await ingest.record_fix(USER, round_.id, fix_at(naive + timedelta(seconds=15)))

    history = await ingest.list_fixes(USER, round_.id)
    assert [f.recorded_at for f in history] == [
        T0 + timedelta(seconds=s) for s in (5, 10, 15)
    ]


@pytest.mark.asyncio
async def test_history_limit_keeps_most_recent(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)
    fixes = [make_fix(55.0215, -7.2470, s) for s in range(0, 25, 5)]
    await _feed(ingest, round_.id, fixes)

    recent = await ingest.list_fixes(USER, round_.id, limit=2)

    assert [f.recorded_at for f in recent] == [fixes[3].recorded_at, fixes[4].recorded_at]
    with pytest.raises(ValidationError):
        await ingest.list_fixes(USER, round_.id, limit=0)


# ================================================================
# Hole advancement
# ================================================================

@pytest.mark.asyncio
async def test_fix_on_next_tee_advances_one_hole(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)

    result = await ingest.record_fix(
        USER, round_.id, make_fix(HOLE2_TEE.latitude, HOLE2_TEE.longitude)
    )

    assert result.hole_advanced is True
    assert result.fix.hole_number == 2
    assert result.fix.detected_hole == 2
    assert result.fix.position_on_hole == PositionOnHole.TEE
    current = await lifecycle.get_round(USER, round_.id)
    assert current.current_hole == 2


@pytest.mark.asyncio
async def test_walking_down_the_fairway_does_not_advance(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)

    results = await _feed(ingest, round_.id, walk_fixes(WALK_START, 140))

    assert not any(r.hole_advanced for r in results)
    current = await lifecycle.get_round(USER, round_.id)
    assert current.current_hole == 1


def _approach_fixes(meters=100.0):
    """Stationary on the hole 1 centre line, walk to the pin, stationary on the green."""
    hole_length = 210.0
    t = meters / hole_length
    start = (
        HOLE1_PIN.latitude + (HOLE1_TEE.latitude - HOLE1_PIN.latitude) * t,
        HOLE1_PIN.longitude + (HOLE1_TEE.longitude - HOLE1_PIN.longitude) * t,
    )
    fixes = [make_fix(*start, s) for s in (0, 5, 10)]
    for i in range(1, 7):
        fixes.append(make_fix(
            start[0] + (HOLE1_PIN.latitude - start[0]) * i / 6,
            start[1] + (HOLE1_PIN.longitude - start[1]) * i / 6,
            10 + 5 * i,
        ))
    fixes += [make_fix(HOLE1_PIN.latitude, HOLE1_PIN.longitude, s) for s in (45, 50)]
    return fixes


@pytest.mark.asyncio
async def test_fix_on_green_stays_on_current_hole(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)

    result = await ingest.record_fix(
        USER, round_.id, make_fix(HOLE1_PIN.latitude, HOLE1_PIN.longitude)
    )

    assert result.hole_advanced is False
    assert result.fix.hole_number == 1
    assert result.fix.detected_hole == 1
    assert result.fix.position_on_hole == PositionOnHole.GREEN
    assert (await lifecycle.get_round(USER, round_.id)).current_hole == 1

    # Walking on to the next tee afterwards still advances.
    later = await ingest.record_fix(
        USER, round_.id, make_fix(HOLE2_TEE.latitude, HOLE2_TEE.longitude, 120)
    )
    assert later.hole_advanced is True
    assert later.fix.hole_number == 2


@pytest.mark.asyncio
async def test_approach_onto_green_is_detected_on_current_hole(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)

    results = await _feed(ingest, round_.id, _approach_fixes())

    assert not any(r.hole_advanced for r in results)
    assert results[-1].fix.position_on_hole == PositionOnHole.GREEN
    detected = [shot for r in results for shot in r.shots]
    assert len(detected) == 1
    assert detected[0].hole_number == 1
    assert detected[0].lie_condition == PositionOnHole.FAIRWAY
    assert detected[0].shot_type == "approach"
    assert detected[0].distance_meters == pytest.approx(100, abs=3)
    assert (await lifecycle.get_round(USER, round_.id)).current_hole == 1


# ================================================================
# Shot detection
# ================================================================

@pytest.mark.asyncio
async def test_walk_produces_one_gps_shot(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)

    results = await _feed(ingest, round_.id, walk_fixes(WALK_START, 140))

    detected = [shot for r in results for shot in r.shots]
    assert len(detected) == 1
    assert results[-1].shots == detected
    assert detected[0].source == ShotSource.GPS
    assert detected[0].distance_meters == pytest.approx(140, abs=1)

    # More stationary fixes at the ball do not produce another shot.
    end = walk_fixes(WALK_START, 140)[-1]
    later = await _feed(ingest, round_.id, [
        make_fix(end.latitude, end.longitude, s) for s in (55, 60, 65)
    ])
    assert all(r.shots == [] for r in later)
    assert len(await ingest.list_shots(USER, round_.id, hole_number=1)) == 1


@pytest.mark.asyncio
async def test_second_walk_continues_shot_numbering(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)
    first = walk_fixes(WALK_START, 140)
    end = first[-1]
    second = walk_fixes(GeoPoint(latitude=end.latitude, longitude=end.longitude),
                        60, start_seconds=55)

    await _feed(ingest, round_.id, first + second)

    shots = await ingest.list_shots(USER, round_.id)
    assert [s.shot_number for s in shots] == [1, 2]


@pytest.mark.asyncio
async def test_sensor_shots_take_precedence(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)

    stored = await ingest.record_external_shots(
        USER, round_.id, 1, [_sensor_shot(7), _sensor_shot(9, 120.0)]
    )
    assert [(s.shot_number, s.source, s.round_id) for s in stored] == [
        (1, ShotSource.SENSOR, round_.id),
        (2, ShotSource.SENSOR, round_.id),
    ]

    results = await _feed(ingest, round_.id, walk_fixes(WALK_START, 140))
    assert all(r.shots == [] for r in results)

    shots = await ingest.list_shots(USER, round_.id)
    assert [s.source for s in shots] == [ShotSource.SENSOR, ShotSource.SENSOR]


@pytest.mark.asyncio
async def test_sensor_shots_rejected_on_terminal_round_or_bad_hole(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)

    with pytest.raises(ValidationError):
        await ingest.record_external_shots(USER, round_.id, 19, [_sensor_shot(1)])

    await lifecycle.abandon_round(USER, round_.id)
    with pytest.raises(InvalidRoundState):
        await ingest.record_external_shots(USER, round_.id, 1, [_sensor_shot(1)])


@pytest.mark.asyncio
async def test_confirm_shot(course, lifecycle, ingest):
    round_ = await _start(lifecycle, course)
    await _feed(ingest, round_.id, walk_fixes(WALK_START, 140))

    confirmed = await ingest.confirm_shot(USER, round_.id, 1, 1)

    assert confirmed.user_confirmed is True
    shots = await ingest.list_shots(USER, round_.id, hole_number=1)
    assert shots[0].user_confirmed is True
    with pytest.raises(NotFound):
        await ingest.confirm_shot(USER, round_.id, 1, 5)
