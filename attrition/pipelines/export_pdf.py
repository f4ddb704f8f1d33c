from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import letter, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    Image,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

logger = logging.getLogger(__name__)

IMG_RE = re.compile(r"!\[(?P<alt>.*?)\]\((?P<path>.*?)\)")
MD_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
PAGEBREAK_MARKER = "---PAGEBREAK---"

BODY_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"


@dataclass
class Block:
    kind: str
    data: object


def _inline(text: str) -> str:
    return MD_BOLD_RE.sub(r"<b>\1</b>", html.escape(text, quote=False))


def _parse_markdown(md: str) -> list[Block]:
    lines = md.splitlines()
    blocks: list[Block] = []
    para: list[str] = []

    def flush() -> None:
        text = " ".join(l.strip() for l in para).strip()
        if text:
            blocks.append(Block("paragraph", text))
        para.clear()

    i = 0
    while i < len(lines):
        line = lines[i].rstrip()
        stripped = line.strip()

        if stripped == PAGEBREAK_MARKER:
            flush()
            blocks.append(Block("pagebreak", None))
        elif line.startswith("#"):
            flush()
            level = len(line) - len(line.lstrip("#"))
            blocks.append(Block("heading", (level, line.lstrip("#").strip())))
        elif IMG_RE.search(line):
            flush()
            m = IMG_RE.search(line)
            blocks.append(Block("image", (m.group("alt").strip(), m.group("path").strip())))
        elif stripped.startswith("|"):
            flush()
            rows = []
            while i < len(lines) and lines[i].strip().startswith("|"):
                cells = [c.strip() for c in lines[i].strip().strip("|").split("|")]
                # Skip the | --- | --- | separator row
                if not all(c.replace("-", "") == "" for c in cells):
                    rows.append(cells)
                i += 1
            if rows:
                blocks.append(Block("table", rows))
            continue
        elif stripped.startswith("- "):
            flush()
            blocks.append(Block("bullet", stripped[2:]))
        elif not stripped:
            flush()
        else:
            para.append(line)
        i += 1

    flush()
    return blocks


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    body = ParagraphStyle("Body", parent=base["BodyText"], fontName=BODY_FONT, fontSize=10, leading=13, spaceAfter=6)
    return {
        "title": ParagraphStyle("Title", parent=base["Title"], fontName=BOLD_FONT, fontSize=18, leading=22, alignment=TA_CENTER, spaceAfter=12),
        "h2": ParagraphStyle("H2", parent=base["Heading2"], fontName=BOLD_FONT, fontSize=14, leading=18, spaceBefore=10, spaceAfter=6),
        "h3": ParagraphStyle("H3", parent=base["Heading3"], fontName=BOLD_FONT, fontSize=12, leading=15, spaceBefore=8, spaceAfter=4),
        "body": body,
        "bullet": ParagraphStyle("Bullet", parent=body, leftIndent=14, bulletIndent=4),
        "cell": ParagraphStyle("Cell", fontName=BODY_FONT, fontSize=8, leading=10, alignment=TA_LEFT),
        "caption": ParagraphStyle(
            "Caption", parent=body, fontSize=9, alignment=TA_CENTER, textColor=colors.HexColor("#555555"), spaceAfter=10
        ),
    }


def _table(rows: list[list[str]], width: float, styles: dict[str, ParagraphStyle]) -> Table:
    col_count = max(len(r) for r in rows)
    rows = [r + [""] * (col_count - len(r)) for r in rows]
    data = [[Paragraph(_inline(c), styles["cell"]) for c in row] for row in rows]

    # Column widths follow the longest cell in each column.
    weights = [max(max(len(r[c]) for r in rows), 6) for c in range(col_count)]
    total = float(sum(weights))
    table = Table(data, repeatRows=1, hAlign="LEFT", colWidths=[w / total * width for w in weights])
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1F618D")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("GRID", (0, 0), (-1, -1), 0.4, colors.HexColor("#AAAAAA")),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ]
    style += [("BACKGROUND", (0, r), (-1, r), colors.HexColor("#F4F6F8")) for r in range(2, len(rows), 2)]
    table.setStyle(TableStyle(style))
    return table


def export_pdf(report_md_path: Path, pdf_path: Path, base_dir: Path) -> Path:
    blocks = _parse_markdown(report_md_path.read_text(encoding="utf-8"))
    styles = _styles()

    doc = SimpleDocTemplate(
        str(pdf_path),
        pagesize=landscape(letter),
        leftMargin=0.6 * inch,
        rightMargin=0.6 * inch,
        topMargin=0.6 * inch,
        bottomMargin=0.6 * inch,
        title="Attrition & Retention Analysis",
    )

    story = []
    fig_no = 0
    for block in blocks:
        if block.kind == "heading":
            level, title = block.data  # type: ignore[misc]
            style = styles["title"] if level == 1 else styles["h2"] if level == 2 else styles["h3"]
            story.append(Paragraph(_inline(title), style))
        elif block.kind == "pagebreak":
            story.append(PageBreak())
        elif block.kind == "paragraph":
            story.append(Paragraph(_inline(block.data), styles["body"]))  # type: ignore[arg-type]
        elif block.kind == "bullet":
            story.append(Paragraph(_inline(block.data), styles["bullet"], bulletText="\u2022"))  # type: ignore[arg-type]
        elif block.kind == "table":
            story.append(_table(block.data, doc.width, styles))  # type: ignore[arg-type]
            story.append(Spacer(1, 8))
        elif block.kind == "image":
            alt, rel = block.data  # type: ignore[misc]
            img_path = Path(rel) if Path(rel).is_absolute() else base_dir / rel
            if not img_path.exists():
                logger.warning("Skipping missing figure %s", img_path)
                continue
            img = Image(str(img_path))
            scale = min(doc.width * 0.7 / img.imageWidth, 1.0)
            img.drawWidth = img.imageWidth * scale
            img.drawHeight = img.imageHeight * scale
            fig_no += 1
            story.append(img)
            story.append(Paragraph(f"Figure {fig_no}: {_inline(alt)}", styles["caption"]))

    doc.build(story)
    logger.info("Wrote PDF to %s", pdf_path)
    return pdf_path
