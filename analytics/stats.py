from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel

from models.course import Course
from models.round import Round, RoundStatus

# Typical 18-hole layout: four par 3s, so fourteen driving holes.
FAIRWAYS_PER_18 = 14
DAYS_PER_MONTH = 30.4375
# Rounds on one course before it counts as a favourite.
FAVOURITE_COURSE_ROUNDS = 3

# Slope thresholds in strokes per month, best first.
TREND_LABELS = [
    (-0.5, "rapidly_improving"),
    (-0.2, "improving"),
    (0.2, "stable"),
    (0.5, "declining"),
]
WORST_TREND = "rapidly_declining"


class MonthlyAverage(BaseModel):
    month: str
    rounds: int
    average_score: float


class PerformanceAnalysis(BaseModel):
    total_rounds: int = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    average_score: Optional[float] = None
    best_score: Optional[int] = None
    worst_score: Optional[int] = None
    average_putts: Optional[float] = None
    average_fairways_hit: Optional[float] = None
    fairway_percentage: Optional[float] = None
    average_greens_in_regulation: Optional[float] = None
    gir_percentage: Optional[float] = None
    score_standard_deviation: Optional[float] = None
    consistency_rating: Optional[float] = None
    scoring_trend: Optional[float] = None
    trend_direction: Optional[str] = None
    monthly: List[MonthlyAverage] = []


class CoursePerformance(BaseModel):
    course_id: Optional[str] = None
    course_name: Optional[str] = None
    course_par: Optional[int] = None
    rounds_played: int = 0
    first_played: Optional[date] = None
    last_played: Optional[date] = None
    average_score_to_par: Optional[float] = None
    best_score_to_par: Optional[int] = None
    # Strokes per round, fitted over the rounds in play order.
    improvement_trend: Optional[float] = None
    is_favourite_course: bool = False
    analysis: PerformanceAnalysis = PerformanceAnalysis()


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def _mean(values: Sequence[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation; 0 for an empty sequence."""
    if not values:
        return 0.0
    avg = sum(values) / len(values)
    return math.sqrt(sum((v - avg) ** 2 for v in values) / len(values))


def consistency_rating(std_dev: float, average: float) -> float:
    """100 minus the coefficient of variation as a percentage, floored at 0."""
    if average <= 0:
        return 0.0
    return max(0.0, 100 - (std_dev / average) * 100)


def linear_slope(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Least-squares slope of ys over xs; 0 when xs do not vary."""
    n = len(xs)
    if n < 2:
        return 0.0
    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_xx = sum(x * x for x in xs)
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator


def trend_direction(slope: Optional[float]) -> Optional[str]:
    if slope is None:
        return None
    for limit, label in TREND_LABELS:
        if slope < limit:
            return label
    return WORST_TREND


def scored_rounds(
    rounds: Iterable[Round],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    course_id: Optional[str] = None,
) -> List[Round]:
    """Completed rounds with a total score inside the date range, oldest first.

    With ``course_id`` only rounds played on that course are kept.
    """
    start_date = _as_date(start_date)
    end_date = _as_date(end_date)
    selected: List[Round] = []
    for round_obj in rounds:
        if round_obj.status != RoundStatus.COMPLETED or round_obj.total_score is None:
            continue
        if course_id is not None and round_obj.course_id != course_id:
            continue
        played = _as_date(round_obj.round_date)
        if start_date is not None and (played is None or played < start_date):
            continue
        if end_date is not None and (played is None or played > end_date):
            continue
        selected.append(round_obj)
    return sorted(selected, key=lambda r: (r.round_date is None, r.round_date or 0))


def _fairway_percentage(round_obj: Round) -> Optional[float]:
    if round_obj.fairways_hit is None:
        return None
    opportunities = FAIRWAYS_PER_18 * round_obj.total_holes / 18
    return min(100.0, round_obj.fairways_hit / opportunities * 100)


def _gir_percentage(round_obj: Round) -> Optional[float]:
    if round_obj.greens_in_regulation is None:
        return None
    return round_obj.greens_in_regulation / round_obj.total_holes * 100


def monthly_averages(rounds: Sequence[Round]) -> List[MonthlyAverage]:
    by_month: Dict[str, List[int]] = {}
    for round_obj in rounds:
        if round_obj.round_date is None:
            continue
        key = round_obj.round_date.strftime("%Y-%m")
        by_month.setdefault(key, []).append(round_obj.total_score)
    return [
        MonthlyAverage(month=month, rounds=len(scores), average_score=sum(scores) / len(scores))
        for month, scores in sorted(by_month.items())
    ]


def scoring_trend(rounds: Sequence[Round]) -> Optional[float]:
    """Strokes gained or lost per month, fitted over dated rounds."""
    dated = [r for r in rounds if r.round_date is not None]
    if len(dated) < 2:
        return None
    first = dated[0].round_date
    xs = [(r.round_date - first).total_seconds() / 86400 / DAYS_PER_MONTH for r in dated]
    ys = [float(r.total_score) for r in dated]
    return linear_slope(xs, ys)


def performance_analysis(
    rounds: Iterable[Round],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    course_id: Optional[str] = None,
) -> PerformanceAnalysis:
    """Aggregate statistics over completed rounds. Recomputed on every call."""
    selected = scored_rounds(rounds, start_date, end_date, course_id)
    if not selected:
        return PerformanceAnalysis(
            start_date=_as_date(start_date), end_date=_as_date(end_date)
        )

    scores = [float(r.total_score) for r in selected]
    putts = [float(r.total_putts) for r in selected if r.total_putts is not None]
    fairways = [float(r.fairways_hit) for r in selected if r.fairways_hit is not None]
    greens = [
        float(r.greens_in_regulation) for r in selected
        if r.greens_in_regulation is not None
    ]
    fairway_pcts = [p for p in map(_fairway_percentage, selected) if p is not None]
    gir_pcts = [p for p in map(_gir_percentage, selected) if p is not None]

    dates = [_as_date(r.round_date) for r in selected if r.round_date is not None]
    average = sum(scores) / len(scores)
    std_dev = standard_deviation(scores)
    slope = scoring_trend(selected)

    return PerformanceAnalysis(
        total_rounds=len(selected),
        start_date=_as_date(start_date) or (min(dates) if dates else None),
        end_date=_as_date(end_date) or (max(dates) if dates else None),
        average_score=average,
        best_score=int(min(scores)),
        worst_score=int(max(scores)),
        average_putts=_mean(putts),
        average_fairways_hit=_mean(fairways),
        fairway_percentage=_mean(fairway_pcts),
        average_greens_in_regulation=_mean(greens),
        gir_percentage=_mean(gir_pcts),
        score_standard_deviation=std_dev,
        consistency_rating=consistency_rating(std_dev, average),
        scoring_trend=slope,
        trend_direction=trend_direction(slope),
        monthly=monthly_averages(selected),
    )


def course_performance(
    rounds: Iterable[Round],
    course: Course,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> CoursePerformance:
    """Performance on one course; score-to-par fields need a known course par."""
    selected = scored_rounds(rounds, start_date, end_date, course.id)
    par = course.get_par()
    scores = [r.total_score for r in selected]
    to_par = [s - par for s in scores] if par is not None else []
    dates = [_as_date(r.round_date) for r in selected if r.round_date is not None]

    return CoursePerformance(
        course_id=course.id,
        course_name=course.name,
        course_par=par,
        rounds_played=len(selected),
        first_played=min(dates) if dates else None,
        last_played=max(dates) if dates else None,
        average_score_to_par=_mean(to_par),
        best_score_to_par=min(to_par) if to_par else None,
        improvement_trend=(
            linear_slope(list(range(len(scores))), scores) if len(scores) >= 2 else None
        ),
        is_favourite_course=len(selected) >= FAVOURITE_COURSE_ROUNDS,
        analysis=performance_analysis(selected, start_date, end_date),
    )


# ================================================================
# Per-round series for charts and reports
# ================================================================

def score_trend(rounds: Iterable[Round]) -> List[Dict[str, Any]]:
    """Return total score trend data by round."""
    results: List[Dict[str, Any]] = []
    for index, round_obj in enumerate(scored_rounds(rounds), start=1):
        results.append(
            {
                "round_index": index,
                "round_id": round_obj.id,
                "date": _as_date(round_obj.round_date),
                "total_score": round_obj.total_score,
            }
        )
    return results


def putts_per_round(rounds: Iterable[Round]) -> List[Dict[str, Any]]:
    """Return putt totals by round for plotting/reporting."""
    results: List[Dict[str, Any]] = []
    for index, round_obj in enumerate(scored_rounds(rounds), start=1):
        results.append(
            {
                "round_index": index,
                "round_id": round_obj.id,
                "total_putts": round_obj.total_putts,
                "holes_played": round_obj.total_holes,
            }
        )
    return results


def gir_per_round(rounds: Iterable[Round]) -> List[Dict[str, Any]]:
    """Return GIR totals and percentage by round."""
    results: List[Dict[str, Any]] = []
    for index, round_obj in enumerate(scored_rounds(rounds), start=1):
        results.append(
            {
                "round_index": index,
                "round_id": round_obj.id,
                "total_gir": round_obj.greens_in_regulation,
                "holes_played": round_obj.total_holes,
                "gir_percentage": _gir_percentage(round_obj),
            }
        )
    return results
