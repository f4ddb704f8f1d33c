from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from attrition.models.schema import Context
from attrition.io.writers import frame_to_md, md_table, fmt_pct, fmt_num, fmt_int, safe_label
from attrition.pipelines.build_tables import REPORTS

logger = logging.getLogger(__name__)

SECTION_NOTES = {
    "churned_segment_profile": "Churned records grouped by industry and loss reason, with account age, engagement and adoption profiles.",
    "churn_reasons_by_industry": "Loss reasons rolled up into cost, service and product categories, shown as a share of each industry's churn.",
    "engagement_vs_churn": "Engagement bands (Low < 30%, Medium 30-70%, High > 70%) for churned and retained entities.",
    "adoption_quartiles": "Adoption quartiles within the churned and retained populations. Median, highest and lowest adoption describe the whole population.",
    "top_retained_by_industry": "The most engaged retained entities in each industry, with engagement and adoption quartiles across all retained entities.",
    "churn_by_representative": "Each representative's share of all owned churned entities.",
    "top_reasons_by_representative": "The most frequent loss reasons for each representative's churned entities.",
    "churn_by_type": "Churn split between accounts and opportunities.",
    "upsell_candidates": "Retained entities with high engagement and adoption.",
    "underperforming_verticals": "Industries whose churned entities engage below the average industry.",
}

FIGURES = {
    "churn_reasons_by_industry": ("Churn Reason Mix by Industry", "churn_reasons_by_industry.png"),
    "engagement_vs_churn": ("Engagement Level Mix", "engagement_vs_churn.png"),
    "adoption_quartiles": ("Average Adoption by Quartile", "adoption_quartiles.png"),
    "churn_by_representative": ("Top-10 Representatives by Churn Share", "churn_by_representative.png"),
    "churn_by_type": ("Churn by Entity Type", "churn_by_type.png"),
    "underperforming_verticals": ("Underperforming Verticals", "underperforming_verticals.png"),
}

MAX_TABLE_ROWS = 25


def _figure_ref(ctx: Context, filename: str) -> str:
    path = ctx.settings.fig_dir / filename
    try:
        return path.relative_to(ctx.settings.base_dir).as_posix()
    except ValueError:
        return path.as_posix()


def _mean(crm: pd.DataFrame, churned: bool, col: str) -> float:
    values = crm.loc[crm["churned"] == churned, col].dropna()
    return float(values.mean()) if not values.empty else np.nan


def build_takeaways(ctx: Context) -> dict[str, list[str]]:
    """Attrition and retention takeaways derived from the report tables."""
    crm = ctx.data["crm"]
    r = ctx.results
    attrition: list[str] = []
    retention: list[str] = []

    churned_eng = _mean(crm, True, "engagement_pct")
    churned_adp = _mean(crm, True, "adoption_pct")
    retained_eng = _mean(crm, False, "engagement_pct")
    retained_adp = _mean(crm, False, "adoption_pct")
    if not pd.isna(churned_eng):
        attrition.append(
            f"Churned entities average {fmt_pct(churned_eng)} engagement and {fmt_pct(churned_adp)} adoption, "
            f"against {fmt_pct(retained_eng)} and {fmt_pct(retained_adp)} for retained entities."
        )

    total_churned = int(crm["churned"].sum())
    if total_churned:
        industry_share = crm[crm["churned"]].groupby("industry")["id"].size() * 100.0 / total_churned
        top_industries = industry_share.sort_values(ascending=False).head(5)
        listed = ", ".join(f"{safe_label(ind, None)} ({fmt_pct(share)})" for ind, share in top_industries.items())
        attrition.append(f"Churn is concentrated in {listed}.")

    reps = r.get("churn_by_representative")
    if reps is not None and not reps.empty:
        listed = ", ".join(
            f"{safe_label(row.Owner, None)} ({row.Churn_Rate_Percentage:.2f}%)" for row in reps.head(3).itertuples(index=False)
        )
        attrition.append(f"Representatives carrying the largest share of churn: {listed}.")

    by_type = r.get("churn_by_type")
    if by_type is not None and not by_type.empty:
        split = " vs. ".join(f"{safe_label(row.Type, None)} {fmt_pct(row.Churn_Percentage)}" for row in by_type.itertuples(index=False))
        attrition.append(f"Churn by entity type: {split}.")

    verticals = r.get("underperforming_verticals")
    if verticals is not None and not verticals.empty:
        names = ", ".join(safe_label(ind, None) for ind in verticals["Industry"])
        attrition.append(f"Verticals below the average industry engagement among churned entities: {names}.")

    upsell = r.get("upsell_candidates")
    if upsell is not None:
        retention.append(
            f"{fmt_int(len(upsell))} retained entities meet the {fmt_num(ctx.settings.upsell_threshold)}% engagement and adoption bar for upsell outreach."
        )

    retained_age = _mean(crm, False, "age_days")
    if not pd.isna(retained_age):
        retention.append(f"Retained entities average {fmt_int(round(retained_age))} days of account age.")

    top_retained = r.get("top_retained_by_industry")
    if top_retained is not None and not top_retained.empty:
        plans = top_retained["Plan"].value_counts()
        if not plans.empty:
            retention.append(
                f"The most common plan among top retained entities is {safe_label(plans.index[0], None)} ({fmt_int(plans.iloc[0])} of {fmt_int(len(top_retained))})."
            )

    return {"attrition": attrition, "retention": retention}


def build_report(ctx: Context) -> Path:
    lines: list[str] = []
    lines.append("# Attrition & Retention Analysis")
    lines.append("")

    crm = ctx.data["crm"]
    total = len(crm)
    churned = int(crm["churned"].sum())
    lines.append("## Overview")
    overview_rows = [
        ["Entities analysed", fmt_int(total)],
        ["Churned entities", fmt_int(churned)],
        ["Overall churn", fmt_pct(churned * 100.0 / total) if total else "n/a"],
        ["Representatives", fmt_int(ctx.data["reps"]["owner"].nunique())],
    ]
    lines.append(md_table(["Metric", "Value"], overview_rows))
    lines.append("")

    takeaways = build_takeaways(ctx)
    lines.append("## Key Takeaways")
    lines.append("### Attrition")
    lines.extend(f"- {item}" for item in takeaways["attrition"])
    lines.append("")
    lines.append("### Retention")
    lines.extend(f"- {item}" for item in takeaways["retention"])
    lines.append("")

    for number, spec in enumerate(REPORTS, start=1):
        lines.append("---PAGEBREAK---")
        lines.append(f"## {number}. {spec.title}")
        lines.append(SECTION_NOTES.get(spec.name, ""))
        lines.append("")

        if spec.name in ctx.failures:
            lines.append(f"This report could not be produced: {ctx.failures[spec.name]}")
            lines.append("")
            continue

        table = ctx.results.get(spec.name)
        if table is None or table.empty:
            lines.append("No rows.")
            lines.append("")
            continue

        figure = FIGURES.get(spec.name)
        if figure is not None and (ctx.settings.fig_dir / figure[1]).exists():
            lines.append(f"![{figure[0]}]({_figure_ref(ctx, figure[1])})")
            lines.append("")

        lines.append(frame_to_md(table, max_rows=MAX_TABLE_ROWS))
        if len(table) > MAX_TABLE_ROWS:
            lines.append("")
            lines.append(f"Showing {MAX_TABLE_ROWS} of {len(table)} rows; the full table is in {spec.name}.csv.")
        lines.append("")

    report_path = ctx.settings.base_dir / "report.md"
    report_path.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Wrote report to %s", report_path)
    return report_path
