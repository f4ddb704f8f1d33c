from __future__ import annotations

import asyncio
import logging

from attrition.config.settings import Settings, get_settings
from attrition.io.loaders import load_all
from attrition.models.schema import Context
from attrition.pipelines.build_tables import build_tables
from attrition.pipelines.build_figures import build_figures
from attrition.pipelines.build_report import build_report
from attrition.pipelines.export_pdf import export_pdf

logger = logging.getLogger("attrition")


def setup_logging(settings: Settings) -> None:
    settings.output_dir.mkdir(parents=True, exist_ok=True)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return

    fh = logging.FileHandler(settings.output_dir / "analysis.log", encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    ch = logging.StreamHandler()
    ch.setLevel(getattr(logging, settings.log_level, logging.INFO))
    ch.setFormatter(logging.Formatter("%(levelname)s %(message)s"))

    logger.addHandler(fh)
    logger.addHandler(ch)


async def main(settings: Settings | None = None) -> Context:
    settings = settings or get_settings()
    setup_logging(settings)

    data = load_all(settings.data_dir, settings.crm_table, settings.rep_table)
    ctx = Context(settings=settings, data=data)

    await build_tables(ctx)
    build_figures(ctx)
    report_path = build_report(ctx)
    if not settings.skip_pdf:
        export_pdf(
            report_md_path=report_path,
            pdf_path=settings.base_dir / "Attrition and Retention Report.pdf",
            base_dir=settings.base_dir,
        )

    logger.info("Attrition pipeline completed with %d report(s) and %d failure(s).", len(ctx.results), len(ctx.failures))
    return ctx


def run() -> None:
    ctx = asyncio.run(main())
    if ctx.failures:
        raise SystemExit(1)


if __name__ == "__main__":
    run()
