"""Export audit trail entries to an Excel workbook or PDF report."""

from datetime import date

from assets.management.base import BackendCommand
from assets.services.client import ApiError
from assets.services.search import (
    SORT_DESC,
    WILDCARD,
    filter_audit_logs,
    sort_records,
)


class Command(BackendCommand):
    help = "Export audit trails (optionally filtered) to .xlsx or .pdf"

    def add_arguments(self, parser):
        super().add_arguments(parser)
        parser.add_argument(
            "--format", choices=["xlsx", "pdf"], default="xlsx", dest="fmt"
        )
        parser.add_argument("--output", help="Output file path.")
        parser.add_argument("--search", default="")
        parser.add_argument("--action", default=WILDCARD, dest="log_action")
        parser.add_argument("--resource", default=WILDCARD)

    def handle(self, *args, **options):
        client = self.get_client(options)
        try:
            body = client.get_audit_logs()
        except ApiError as exc:
            self.fail(exc)

        logs = filter_audit_logs(
            body.get("logs") or [],
            search_term=options["search"],
            action=options["log_action"],
            resource_type=options["resource"],
        )
        logs = sort_records(logs, "timestamp", SORT_DESC)

        fmt = options["fmt"]
        if fmt == "pdf":
            from assets.services.pdf import generate_audit_logs_pdf

            content = generate_audit_logs_pdf(logs)
        else:
            from assets.services.export import export_audit_logs_xlsx

            content = export_audit_logs_xlsx(logs).getvalue()

        output = (
            options["output"]
            or f"audit-trails-report-{date.today().isoformat()}.{fmt}"
        )
        self.write_file(output, content)
        self.stdout.write(f"{len(logs)} entr{'y' if len(logs) == 1 else 'ies'} exported.")
