from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

import pandas as pd

from attrition.config.settings import Settings
from attrition.io.writers import ensure_dirs, save_table
from attrition.models.schema import Context
from attrition.features.churn import (
    churned_segment_profile,
    churn_reasons_by_industry,
    engagement_vs_churn,
    churn_by_type,
)
from attrition.features.adoption import adoption_quartiles, underperforming_verticals
from attrition.features.retention import top_retained_by_industry, upsell_candidates
from attrition.features.representatives import churn_by_representative, top_reasons_by_representative

logger = logging.getLogger(__name__)

ReportFn = Callable[[pd.DataFrame, pd.DataFrame, Settings], pd.DataFrame]


@dataclass(frozen=True)
class ReportSpec:
    name: str
    title: str
    build: ReportFn


REPORTS: list[ReportSpec] = [
    ReportSpec(
        "churned_segment_profile",
        "Churned Segment Profile",
        lambda crm, reps, s: churned_segment_profile(crm, missing_values=s.missing_values),
    ),
    ReportSpec(
        "churn_reasons_by_industry",
        "Churn Reasons by Industry",
        lambda crm, reps, s: churn_reasons_by_industry(crm),
    ),
    ReportSpec(
        "engagement_vs_churn",
        "Engagement Levels vs. Churn",
        lambda crm, reps, s: engagement_vs_churn(crm, missing_values=s.missing_values),
    ),
    ReportSpec(
        "adoption_quartiles",
        "Product Adoption and Churn",
        lambda crm, reps, s: adoption_quartiles(crm, missing_values=s.missing_values),
    ),
    ReportSpec(
        "top_retained_by_industry",
        "Top Retained Entities per Industry",
        lambda crm, reps, s: top_retained_by_industry(crm, top_n=s.top_retained_per_industry, missing_values=s.missing_values),
    ),
    ReportSpec(
        "churn_by_representative",
        "Churn by Representative",
        lambda crm, reps, s: churn_by_representative(crm, reps),
    ),
    ReportSpec(
        "top_reasons_by_representative",
        "Top Churn Reasons by Representative",
        lambda crm, reps, s: top_reasons_by_representative(crm, reps, top_n=s.top_reasons_per_owner),
    ),
    ReportSpec(
        "churn_by_type",
        "Churn by Entity Type",
        lambda crm, reps, s: churn_by_type(crm),
    ),
    ReportSpec(
        "upsell_candidates",
        "Upsell Candidates",
        lambda crm, reps, s: upsell_candidates(crm, threshold=s.upsell_threshold, missing_values=s.missing_values),
    ),
    ReportSpec(
        "underperforming_verticals",
        "Underperforming Verticals",
        lambda crm, reps, s: underperforming_verticals(crm, missing_values=s.missing_values),
    ),
]


def run_report(spec: ReportSpec, crm: pd.DataFrame, reps: pd.DataFrame, settings: Settings) -> tuple[pd.DataFrame | None, str | None]:
    """Run one report, trapping its failure so the rest of the batch carries on."""
    try:
        return spec.build(crm, reps, settings), None
    except Exception as exc:
        logger.exception("Report %s failed", spec.name)
        return None, f"{type(exc).__name__}: {exc}"


async def build_tables(ctx: Context, reports: list[ReportSpec] | None = None) -> None:
    settings = ctx.settings
    crm = ctx.data["crm"]
    reps = ctx.data["reps"]
    reports = REPORTS if reports is None else reports

    ensure_dirs(settings.table_dir)

    outcomes = await asyncio.gather(
        *(asyncio.to_thread(run_report, spec, crm, reps, settings) for spec in reports)
    )

    for spec, (table, error) in zip(reports, outcomes):
        if error is not None:
            ctx.add_failure(spec.name, error)
            continue
        save_table(table, settings.table_dir / f"{spec.name}.csv")
        ctx.add_result(spec.name, table)
        logger.info("Report %s: %d row(s)", spec.name, len(table))

    if ctx.failures:
        logger.warning("%d of %d reports failed: %s", len(ctx.failures), len(reports), ", ".join(sorted(ctx.failures)))
