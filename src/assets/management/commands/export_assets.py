"""Export the asset register to an Excel workbook or PDF report."""

from datetime import date

from django.conf import settings

from assets.management.base import BackendCommand
from assets.services.search import (
    SORT_ASC,
    SORT_DESC,
    WILDCARD,
    filter_assets,
    sort_records,
)
from assets.services.store import AssetStore


class Command(BackendCommand):
    help = "Export assets (optionally filtered) to .xlsx or .pdf"

    def add_arguments(self, parser):
        super().add_arguments(parser)
        parser.add_argument(
            "--format", choices=["xlsx", "pdf"], default="xlsx", dest="fmt"
        )
        parser.add_argument("--output", help="Output file path.")
        parser.add_argument("--search", default="")
        parser.add_argument("--status", default=WILDCARD)
        parser.add_argument("--priority", default=WILDCARD)
        parser.add_argument("--type", default=WILDCARD, dest="asset_type")
        parser.add_argument(
            "--sort",
            default="-updatedAt",
            help="Field to sort by; prefix with '-' for descending.",
        )

    def handle(self, *args, **options):
        store = AssetStore(self.get_client(options))
        assets = store.fetch_assets()
        if assets is None:
            self.fail(store.last_error)

        assets = filter_assets(
            assets,
            search_term=options["search"],
            status=options["status"],
            priority=options["priority"],
            asset_type=options["asset_type"],
        )
        sort = options["sort"]
        direction = SORT_DESC if sort.startswith("-") else SORT_ASC
        assets = sort_records(assets, sort.lstrip("-"), direction)

        geocoder = None
        if settings.GOOGLE_MAPS_API_KEY:
            from assets.services.geocode import location_address

            geocoder = location_address

        fmt = options["fmt"]
        if fmt == "pdf":
            from assets.services.pdf import generate_assets_pdf

            content = generate_assets_pdf(assets, geocoder=geocoder)
        else:
            from assets.services.export import export_assets_xlsx

            content = export_assets_xlsx(assets, geocoder=geocoder).getvalue()

        output = options["output"] or f"assets-report-{date.today().isoformat()}.{fmt}"
        self.write_file(output, content)
        self.stdout.write(f"{len(assets)} asset(s) exported.")
