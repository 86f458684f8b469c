from .stats import (
    CoursePerformance,
    MonthlyAverage,
    PerformanceAnalysis,
    course_performance,
    gir_per_round,
    performance_analysis,
    putts_per_round,
    score_trend,
)
from .visualizations import (
    plot_gir_per_round,
    plot_monthly_averages,
    plot_putts_per_round,
    plot_score_trend,
)

__all__ = [
    "CoursePerformance",
    "MonthlyAverage",
    "PerformanceAnalysis",
    "course_performance",
    "performance_analysis",
    "score_trend",
    "putts_per_round",
    "gir_per_round",
    "plot_score_trend",
    "plot_putts_per_round",
    "plot_gir_per_round",
    "plot_monthly_averages",
]
