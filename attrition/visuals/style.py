from __future__ import annotations

import matplotlib.pyplot as plt
from cycler import cycler

PALETTE = {
    "churned": "#B03A2E",
    "retained": "#1F618D",
    "accent": "#7D6608",
    "neutral": "#000000",
    "muted": "#AAB7B8",
}

CATEGORY_COLORS = {
    "Cost-Related": "#E15759",
    "Service-Related": "#F28E2B",
    "Product-Related": "#4E79A7",
    "Other": "#BAB0AC",
}


def churn_color(churned: bool) -> str:
    return PALETTE["churned"] if churned else PALETTE["retained"]


def custom_theme() -> dict:
    return {
        "axes.facecolor": "white",
        "axes.edgecolor": "black",
        "axes.linewidth": 1.0,
        "axes.grid": False,
        "axes.spines.top": False,
        "axes.spines.right": False,
        "axes.titlesize": 15,
        "axes.titleweight": "bold",
        "axes.labelsize": 12,
        "axes.labelweight": "bold",
        "xtick.labelsize": 10,
        "ytick.labelsize": 10,
        "xtick.major.pad": 6,
        "ytick.major.pad": 6,
        "axes.prop_cycle": cycler(
            color=[
                PALETTE["churned"],
                PALETTE["retained"],
                PALETTE["accent"],
                PALETTE["muted"],
            ]
        ),
        "font.size": 11,
        "font.family": "serif",
        "font.serif": ["Cambria", "DejaVu Serif"],
    }


def annotate_bars(ax, fmt: str = "{:.1f}%") -> None:
    for container in ax.containers:
        ax.bar_label(container, fmt=lambda v: fmt.format(v), fontsize=9, padding=2)


def add_headroom(ax, factor: float = 1.15) -> None:
    ymin, ymax = ax.get_ylim()
    if ymax <= 0:
        return
    ax.set_ylim(ymin, ymax * factor)
