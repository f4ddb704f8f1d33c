from __future__ import annotations

import numbers
from pathlib import Path
import pandas as pd
import matplotlib.pyplot as plt


def ensure_dirs(*dirs: Path) -> None:
    for path in dirs:
        path.mkdir(parents=True, exist_ok=True)


def save_table(df: pd.DataFrame, path: Path) -> None:
    df.to_csv(path, index=False)


def save_fig(fig: plt.Figure, path: Path) -> None:
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)


def md_table(headers: list[str], rows: list[list[str]]) -> str:
    lines = ["| " + " | ".join(headers) + " |", "| " + " | ".join(["---"] * len(headers)) + " |"]
    for row in rows:
        lines.append("| " + " | ".join(row) + " |")
    return "\n".join(lines)


def frame_to_md(df: pd.DataFrame, max_rows: int | None = None) -> str:
    """Render a report frame as a markdown table, formatting each cell for display."""
    if max_rows is not None:
        df = df.head(max_rows)
    rows = [[fmt_cell(value) for value in record] for record in df.itertuples(index=False)]
    return md_table([col.replace("_", " ") for col in df.columns], rows)


def fmt_cell(value: object) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, numbers.Number):
        return fmt_num(value)
    return safe_label(value, None, default="n/a")


# Report percentages are already scaled to 0-100.
def fmt_pct(value: float | int | None) -> str:
    if value is None or pd.isna(value):
        return "n/a"
    return f"{value:.1f}%"


def fmt_num(value: float | int | None) -> str:
    if value is None or pd.isna(value):
        return "n/a"
    if isinstance(value, float) and value.is_integer():
        return f"{int(value)}"
    return f"{value:,.2f}" if isinstance(value, float) else str(value)


def fmt_int(value: float | int | None) -> str:
    if value is None or pd.isna(value):
        return "n/a"
    return f"{int(value)}"


def safe_label(primary: object, fallback: object, default: str = "Unknown") -> str:
    def _clean(val: object) -> str | None:
        if val is None or val is pd.NA:
            return None
        val = str(val).replace("\u00a0", " ").strip()
        val = " ".join(val.split())
        if not val or val.lower() in {"nan", "none", "<na>"}:
            return None
        # Markdown table cells cannot contain a raw pipe.
        return val.replace("|", "/")

    primary_clean = _clean(primary)
    if primary_clean:
        return primary_clean
    fallback_clean = _clean(fallback)
    if fallback_clean:
        return fallback_clean
    return default
