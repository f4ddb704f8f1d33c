from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from attrition.models.schema import Context
from attrition.io.writers import ensure_dirs, save_fig
from attrition.visuals.style import custom_theme, annotate_bars, add_headroom, churn_color, PALETTE, CATEGORY_COLORS

logger = logging.getLogger(__name__)

LEVEL_ORDER = ["Low", "Medium", "High"]


def build_figures(ctx: Context) -> list[Path]:
    fig_dir = ctx.settings.fig_dir
    ensure_dirs(fig_dir)
    with plt.style.context(custom_theme()):
        written = _build_figures(ctx, fig_dir)
    logger.info("Wrote %d figure(s) to %s", len(written), fig_dir)
    return written


def _build_figures(ctx: Context, fig_dir: Path) -> list[Path]:
    written: list[Path] = []

    # 1) Engagement level mix, churned vs retained
    df = ctx.results.get("engagement_vs_churn")
    if df is not None and not df.empty:
        pivot = df.pivot(index="Engagement_Level", columns="Churned", values="Percentage_In_Group")
        pivot = pivot.reindex([lvl for lvl in LEVEL_ORDER if lvl in pivot.index]).fillna(0)

        fig, ax = plt.subplots(figsize=(7, 4))
        width = 0.38
        x = np.arange(len(pivot.index))
        for offset, churned in ((-width / 2, False), (width / 2, True)):
            if churned in pivot.columns:
                ax.bar(x + offset, pivot[churned], width, label="Churned" if churned else "Retained", color=churn_color(churned))
        ax.set_xticks(x)
        ax.set_xticklabels(pivot.index)
        ax.set_title("Engagement Level Mix")
        ax.set_xlabel("Engagement Level")
        ax.set_ylabel("Share of Group (%)")
        ax.legend(fontsize=9)
        annotate_bars(ax)
        add_headroom(ax)
        path = fig_dir / "engagement_vs_churn.png"
        save_fig(fig, path)
        written.append(path)

    # 2) Average adoption per quartile
    df = ctx.results.get("adoption_quartiles")
    if df is not None and not df.empty:
        fig, ax = plt.subplots(figsize=(7, 4))
        for churned, group in df.groupby("Churned"):
            ax.plot(
                group["Quartile"],
                group["Average_Product_Adoption"],
                marker="o",
                label="Churned" if churned else "Retained",
                color=churn_color(bool(churned)),
            )
        ax.set_xticks([1, 2, 3, 4])
        ax.set_title("Average Adoption by Quartile")
        ax.set_xlabel("Adoption Quartile")
        ax.set_ylabel("Average Adoption (%)")
        ax.legend(fontsize=9)
        add_headroom(ax)
        path = fig_dir / "adoption_quartiles.png"
        save_fig(fig, path)
        written.append(path)

    # 3) Churn reason categories by industry (stacked shares)
    df = ctx.results.get("churn_reasons_by_industry")
    if df is not None and not df.empty:
        shares = df.groupby(["Industry", "Categorized_Reason"])["Occurrences"].sum().unstack(fill_value=0)
        shares = shares.div(shares.sum(axis=1), axis=0) * 100
        colors = [CATEGORY_COLORS.get(col, PALETTE["muted"]) for col in shares.columns]

        fig, ax = plt.subplots(figsize=(8, 4.5))
        shares.plot(kind="barh", stacked=True, ax=ax, color=colors, width=0.7)
        ax.set_title("Churn Reason Mix by Industry")
        ax.set_xlabel("Share of Industry Churn (%)")
        ax.set_ylabel("")
        ax.set_xlim(0, 100)
        ax.legend(fontsize=8, ncol=2, loc="lower right")
        path = fig_dir / "churn_reasons_by_industry.png"
        save_fig(fig, path)
        written.append(path)

    # 4) Top-10 representatives by churn share
    df = ctx.results.get("churn_by_representative")
    if df is not None and not df.empty:
        top = df.head(10).iloc[::-1]
        fig, ax = plt.subplots(figsize=(7, 4.5))
        ax.barh(top["Owner"].astype(str), top["Churn_Rate_Percentage"], color=PALETTE["churned"])
        ax.set_title("Top-10 Representatives by Churn Share")
        ax.set_xlabel("Share of Churned Entities (%)")
        annotate_bars(ax, fmt="{:.2f}%")
        path = fig_dir / "churn_by_representative.png"
        save_fig(fig, path)
        written.append(path)

    # 5) Churn split by entity type
    df = ctx.results.get("churn_by_type")
    if df is not None and not df.empty:
        fig, ax = plt.subplots(figsize=(5, 4))
        ax.bar(df["Type"].astype(str), df["Churn_Percentage"], color=[PALETTE["churned"], PALETTE["accent"], PALETTE["muted"]][: len(df)])
        ax.set_title("Churn by Entity Type")
        ax.set_ylabel("Share of Churn (%)")
        annotate_bars(ax)
        add_headroom(ax)
        path = fig_dir / "churn_by_type.png"
        save_fig(fig, path)
        written.append(path)

    # 6) Engagement of underperforming verticals against the benchmark
    df = ctx.results.get("underperforming_verticals")
    if df is not None and not df.empty:
        fig, ax = plt.subplots(figsize=(7, 4))
        ax.bar(df["Industry"].astype(str), df["Average_Engagement"], color=PALETTE["churned"], label="Engagement")
        ax.bar(df["Industry"].astype(str), df["Average_Adoption"], color=PALETTE["muted"], alpha=0.6, width=0.4, label="Adoption")
        benchmark = _industry_engagement_benchmark(ctx)
        if benchmark is not None:
            ax.axhline(benchmark, color=PALETTE["neutral"], linestyle="--", linewidth=1)
            ax.text(0, benchmark, f" benchmark {benchmark:.1f}%", va="bottom", fontsize=9)
        ax.set_title("Underperforming Verticals (Churned)")
        ax.set_ylabel("Average (%)")
        ax.legend(fontsize=9)
        plt.setp(ax.get_xticklabels(), rotation=20, ha="right")
        add_headroom(ax)
        path = fig_dir / "underperforming_verticals.png"
        save_fig(fig, path)
        written.append(path)

    return written


def _industry_engagement_benchmark(ctx: Context) -> float | None:
    crm = ctx.data.get("crm")
    if crm is None or crm.empty:
        return None
    churned = crm[crm["churned"]]
    means = churned.groupby("industry")["engagement_pct"].mean()
    if means.empty:
        return None
    return float(means.mean())
