"""PDF report generation.

Tables are laid out in Python on a fixed A4 grid (millimetres) so page
breaks are deterministic, then rendered through a Django template and
WeasyPrint.
"""

import textwrap
from dataclasses import dataclass, field

from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

from ..records import (
    NOT_AVAILABLE,
    assigned_name,
    audit_detail,
    format_datetime,
    location_lines,
    project_name,
)
from .search import count_by

# Average glyph width of the 8pt body font, in characters per millimetre
CHARS_PER_MM = 0.6
LINE_HEIGHT = 3.5
CELL_PADDING = 4


@dataclass(frozen=True)
class Column:
    header: str
    width: float
    max_lines: int = 1


@dataclass
class LaidOutRow:
    cells: list
    y: float
    height: float


@dataclass
class TablePage:
    number: int
    top: float
    rows: list = field(default_factory=list)


ASSET_COLUMNS = [
    Column("Tag ID", 20),
    Column("Asset Type", 20),
    Column("Brand", 20),
    Column("Model", 20),
    Column("Status", 15),
    Column("Priority", 15),
    Column("Assigned To", 22),
    Column("Project", 22),
    Column("Location", 50, max_lines=3),
]

AUDIT_COLUMNS = [
    Column("User", 40, max_lines=2),
    Column("Action", 25),
    Column("Resource", 30),
    Column("Details", 50, max_lines=2),
    Column("Timestamp", 40),
]


def wrap_cell(value, column):
    """Wrap ``value`` to the column's character capacity.

    Explicit newlines start a new line. At most ``column.max_lines``
    lines are kept.
    """
    capacity = max(int(column.width * CHARS_PER_MM), 1)
    text = str(value) if value not in (None, "") else NOT_AVAILABLE
    parts = text.split("\n")
    lines = []
    for part in parts:
        wrapped = textwrap.wrap(part, width=capacity) or [""]
        if column.max_lines == 1 or len(parts) > 1:
            # truncate: explicit lines are not re-wrapped
            wrapped = wrapped[:1]
        lines.extend(wrapped)
    return lines[: column.max_lines]


def layout_table(
    columns,
    rows,
    *,
    start_y=50,
    continuation_y=35,
    header_height=12,
    row_height=15,
    line_height=LINE_HEIGHT,
    bottom_margin=255,
):
    """Paginate ``rows`` into pages of positioned rows.

    The first page's table starts at ``start_y`` (below the title block);
    later pages start at ``continuation_y``. Every page repeats the
    header. A row moves to a new page when its bottom edge would pass
    ``bottom_margin``. A row taller than a whole page still gets a page
    of its own.
    """
    pages = [TablePage(number=1, top=start_y)]
    y = start_y + header_height
    for values in rows:
        cells = [wrap_cell(value, column) for value, column in zip(values, columns)]
        lines = max((len(cell) for cell in cells), default=1)
        height = max(row_height, lines * line_height + CELL_PADDING)
        page = pages[-1]
        if page.rows and y + height > bottom_margin:
            page = TablePage(number=len(pages) + 1, top=continuation_y)
            pages.append(page)
            y = continuation_y + header_height
        page.rows.append(LaidOutRow(cells=cells, y=y, height=height))
        y += height
    return pages


def _write_pdf(html_string):
    from weasyprint import HTML

    return HTML(string=html_string).write_pdf()


def render_report(title, columns, pages, summary_title, summary, total):
    html_string = render_to_string(
        "pdf/report.html",
        {
            "title": title,
            "site_name": settings.SITE_NAME,
            "generated_at": timezone.now(),
            "columns": columns,
            "table_width": sum(column.width for column in columns),
            "pages": pages,
            "summary_title": summary_title,
            "summary": summary,
            "total": total,
        },
    )
    return _write_pdf(html_string)


def asset_pdf_row(asset, address=None):
    lines = location_lines(asset.get("location"), address)
    return [
        asset.get("tagId") or NOT_AVAILABLE,
        asset.get("assetType") or NOT_AVAILABLE,
        asset.get("brand") or NOT_AVAILABLE,
        asset.get("model") or NOT_AVAILABLE,
        asset.get("status") or NOT_AVAILABLE,
        asset.get("priority") or NOT_AVAILABLE,
        assigned_name(asset) or "Unassigned",
        project_name(asset) or NOT_AVAILABLE,
        "\n".join(lines) if lines else NOT_AVAILABLE,
    ]


def generate_assets_pdf(assets, geocoder=None):
    """Generate the assets report.

    Args:
        assets: list of asset records, already filtered and sorted
        geocoder: optional ``geocoder(location) -> str``; must not raise

    Returns:
        bytes: PDF file content
    """
    from .geocode import ADDRESS_NOT_AVAILABLE

    assets = list(assets)
    rows = []
    for asset in assets:
        address = None
        if geocoder is not None and asset.get("location"):
            address = geocoder(asset["location"])
            if address == ADDRESS_NOT_AVAILABLE:
                address = None
        rows.append(asset_pdf_row(asset, address))
    pages = layout_table(ASSET_COLUMNS, rows)
    return render_report(
        "Assets Report",
        ASSET_COLUMNS,
        pages,
        "Assets by Type",
        count_by(assets, "assetType"),
        len(assets),
    )


def audit_pdf_row(log):
    user = log.get("user") or {}
    return [
        user.get("name") or NOT_AVAILABLE,
        log.get("action") or NOT_AVAILABLE,
        log.get("resourceType") or NOT_AVAILABLE,
        audit_detail(log, "tagId"),
        format_datetime(log.get("timestamp")) or NOT_AVAILABLE,
    ]


def generate_audit_logs_pdf(logs):
    """Generate the audit trails report. Returns the PDF bytes."""
    logs = list(logs)
    pages = layout_table(
        AUDIT_COLUMNS,
        [audit_pdf_row(log) for log in logs],
        header_height=10,
        row_height=10,
        bottom_margin=260,
    )
    return render_report(
        "Audit Trails Report",
        AUDIT_COLUMNS,
        pages,
        "Entries by Action",
        count_by(logs, "action"),
        len(logs),
    )
