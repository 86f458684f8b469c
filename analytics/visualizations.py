"""Matplotlib charts over completed rounds and a performance analysis.

Every function returns the figure and axes so callers can save or tweak
them; nothing is shown or written to disk here.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from models.round import Round

from .stats import PerformanceAnalysis, gir_per_round, putts_per_round, score_trend

MAX_TICK_LABELS = 12


def _load_plt():
    try:
        import matplotlib.pyplot as plt  # type: ignore
    except ImportError as exc:
        raise RuntimeError(
            "matplotlib is required for charts. Install it with: pip install matplotlib"
        ) from exc
    return plt


def _row_labels(rows: Sequence[Dict[str, Any]]) -> List[str]:
    """Round dates where known, else R1, R2, ..."""
    return [
        row["date"].strftime("%Y-%m-%d") if row.get("date") else f"R{row['round_index']}"
        for row in rows
    ]


def _tick_positions(count: int, max_labels: int = MAX_TICK_LABELS) -> List[int]:
    """Evenly spaced tick indexes, always including the last round."""
    if count <= max_labels:
        return list(range(count))
    step = -(-count // max_labels)
    positions = list(range(0, count, step))
    if positions[-1] != count - 1:
        positions.append(count - 1)
    return positions


def _round_axes(plt, title: str, ylabel: str, labels: Sequence[str], width: float = 10):
    fig, ax = plt.subplots(figsize=(width, 5))
    ax.set_title(title)
    ax.set_xlabel("Round")
    ax.set_ylabel(ylabel)
    positions = _tick_positions(len(labels))
    ax.set_xticks(positions)
    ax.set_xticklabels([labels[i] for i in positions], rotation=45, ha="right")
    ax.grid(axis="y", alpha=0.2)
    return fig, ax


def plot_score_trend(rounds: Sequence[Round], labels: Optional[Sequence[str]] = None):
    """Line chart of total score, oldest round first."""
    plt = _load_plt()
    rows = score_trend(rounds)
    fig, ax = _round_axes(
        plt, "Score Trend", "Total Score", list(labels) if labels is not None else _row_labels(rows)
    )
    ax.plot(range(len(rows)), [row["total_score"] for row in rows], marker="o")
    fig.tight_layout()
    return fig, ax


def plot_putts_per_round(rounds: Sequence[Round], labels: Optional[Sequence[str]] = None):
    plt = _load_plt()
    rows = putts_per_round(rounds)
    fig, ax = _round_axes(
        plt, "Putts Per Round", "Total Putts",
        list(labels) if labels is not None else _row_labels(rows),
    )
    ax.bar(range(len(rows)), [row["total_putts"] or 0 for row in rows])
    fig.tight_layout()
    return fig, ax


def plot_gir_per_round(rounds: Sequence[Round], labels: Optional[Sequence[str]] = None):
    """GIR count as bars with the GIR percentage on a second axis."""
    plt = _load_plt()
    rows = gir_per_round(rounds)
    fig, counts_ax = _round_axes(
        plt, "GIR Per Round", "GIR Count",
        list(labels) if labels is not None else _row_labels(rows), width=11,
    )
    x = list(range(len(rows)))
    counts_ax.bar(x, [row["total_gir"] or 0 for row in rows], alpha=0.8, label="GIR Count")

    pct_ax = counts_ax.twinx()
    pct_ax.plot(
        x, [row["gir_percentage"] or 0 for row in rows],
        color="black", marker="o", linewidth=1.5, label="GIR %",
    )
    pct_ax.set_ylabel("GIR %")
    pct_ax.set_ylim(0, 100)

    handles, names = [], []
    for ax in (counts_ax, pct_ax):
        h, n = ax.get_legend_handles_labels()
        handles += h
        names += n
    counts_ax.legend(handles, names, loc="upper left")

    fig.tight_layout()
    return fig, counts_ax, pct_ax


def plot_monthly_averages(analysis: PerformanceAnalysis):
    """Average score per calendar month, with the overall average as a line."""
    plt = _load_plt()
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.bar([m.month for m in analysis.monthly], [m.average_score for m in analysis.monthly])
    ax.set_title("Average Score By Month")
    ax.set_xlabel("Month")
    ax.set_ylabel("Average Score")
    if analysis.average_score is not None:
        ax.axhline(analysis.average_score, color="black", linewidth=1, alpha=0.6)
    ax.grid(axis="y", alpha=0.2)
    fig.tight_layout()
    return fig, ax
