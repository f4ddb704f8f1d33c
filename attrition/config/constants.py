from __future__ import annotations

NOT_APPLICABLE = "N/A"

LOSS_REASON_CATEGORIES = {
    "Pricing": "Cost-Related",
    "Cost": "Cost-Related",
    "Support": "Service-Related",
    "Service": "Service-Related",
    "Features": "Product-Related",
    "Product Fit": "Product-Related",
}
OTHER_CATEGORY = "Other"

# Engagement bands: Low < 30 <= Medium <= 70 < High
ENGAGEMENT_LOW_CUTOFF = 30
ENGAGEMENT_HIGH_CUTOFF = 70

YES_WORDS = ["yes", "y", "true", "1"]
NO_WORDS = ["no", "n", "false", "0"]

# Source export headers (lower-cased) -> normalised column names.
CRM_COLUMNS = {
    "id": "id",
    "name": "name",
    "loss_reason": "loss_reason",
    "industry": "industry",
    "age": "age_days",
    "age_days": "age_days",
    "engagement": "engagement_pct",
    "engagement_pct": "engagement_pct",
    "adoption": "adoption_pct",
    "adoption_pct": "adoption_pct",
    "type": "type",
    "plan": "plan",
    "churn": "churned",
    "churned": "churned",
}

REP_COLUMNS = {
    "id": "customer_id",
    "customer_id": "customer_id",
    "owner": "owner",
}

NUMERIC_COLUMNS = ["age_days", "engagement_pct", "adoption_pct"]
