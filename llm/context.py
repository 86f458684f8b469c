"""Context blob handed to the advice provider.

Plain JSON-serialisable dicts; distances in meters, rounded for readability.
"""

from typing import Any, Dict, List, Optional

from models import Course, EnrichedLocationFix, HoleScore, Round, ShotEvent


def _rounded(value: Optional[float], digits: int = 1) -> Optional[float]:
    return round(value, digits) if value is not None else None


def build_round_context(
    round_: Round,
    course: Optional[Course],
    scores: List[HoleScore],
    latest_fix: Optional[EnrichedLocationFix] = None,
    shots: Optional[List[ShotEvent]] = None,
) -> Dict[str, Any]:
    """Snapshot of where the golfer is and how the round is going."""
    hole = course.get_hole(round_.current_hole) if course else None
    par_so_far = None
    if course and scores:
        pars = [course.get_hole(s.hole_number) for s in scores]
        if all(h is not None and h.par is not None for h in pars):
            par_so_far = sum(h.par for h in pars)

    context: Dict[str, Any] = {
        "round": {
            "status": round_.status.value,
            "current_hole": round_.current_hole,
            "total_holes": round_.total_holes,
            "holes_scored": len(scores),
            "total_score": round_.total_score,
            "total_putts": round_.total_putts,
            "to_par": (
                round_.total_score - par_so_far
                if par_so_far is not None and round_.total_score is not None
                else None
            ),
        },
        "course": {
            "name": course.name if course else None,
            "par": course.get_par() if course else None,
        },
        "hole": {
            "number": round_.current_hole,
            "par": hole.par if hole else None,
        },
        "position": None,
        "shots_this_hole": [],
    }

    if latest_fix is not None:
        context["position"] = {
            "position_on_hole": latest_fix.position_on_hole.value,
            "distance_to_pin_meters": _rounded(latest_fix.distance_to_pin_meters),
            "distance_to_tee_meters": _rounded(latest_fix.distance_to_tee_meters),
            "within_course_boundary": latest_fix.within_course_boundary,
            "low_accuracy": latest_fix.low_accuracy,
        }

    for shot in shots or []:
        if shot.hole_number != round_.current_hole:
            continue
        context["shots_this_hole"].append({
            "shot_number": shot.shot_number,
            "distance_meters": _rounded(shot.distance_meters),
            "lie": shot.lie_condition.value if shot.lie_condition else None,
            "club": shot.estimated_club,
        })
    return context
