from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os


MISSING_VALUE_POLICIES = ("exclude", "fail")


def _load_env(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip().lstrip("\ufeff")
        value = value.strip().strip("\"").strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class Settings:
    base_dir: Path
    data_dir: Path
    output_dir: Path
    table_dir: Path
    fig_dir: Path
    crm_table: str
    rep_table: str
    missing_values: str
    upsell_threshold: float
    top_retained_per_industry: int
    top_reasons_per_owner: int
    log_level: str
    skip_pdf: bool


def get_settings(base_dir: Path | None = None) -> Settings:
    base_dir = base_dir or Path(os.getenv("ATTRITION_BASE_DIR", str(Path(__file__).resolve().parents[1])))
    _load_env(base_dir / ".env")

    data_dir = Path(os.getenv("ATTRITION_DATA_DIR", str(base_dir / "db")))
    output_dir = Path(os.getenv("ATTRITION_OUTPUT_DIR", str(base_dir / "output")))
    table_dir = output_dir / "tables"
    fig_dir = output_dir / "figures"

    missing_values = os.getenv("ATTRITION_MISSING_VALUES", "exclude").strip().lower()
    if missing_values not in MISSING_VALUE_POLICIES:
        raise ValueError(
            f"ATTRITION_MISSING_VALUES must be one of {MISSING_VALUE_POLICIES}, got {missing_values!r}"
        )

    return Settings(
        base_dir=base_dir,
        data_dir=data_dir,
        output_dir=output_dir,
        table_dir=table_dir,
        fig_dir=fig_dir,
        crm_table=os.getenv("ATTRITION_CRM_TABLE", "crm_data"),
        rep_table=os.getenv("ATTRITION_REP_TABLE", "rep_data"),
        missing_values=missing_values,
        upsell_threshold=float(os.getenv("ATTRITION_UPSELL_THRESHOLD", "70")),
        top_retained_per_industry=int(os.getenv("ATTRITION_TOP_RETAINED", "5")),
        top_reasons_per_owner=int(os.getenv("ATTRITION_TOP_REASONS", "3")),
        log_level=os.getenv("ATTRITION_LOG_LEVEL", "INFO").upper(),
        skip_pdf=_env_flag("ATTRITION_SKIP_PDF"),
    )
