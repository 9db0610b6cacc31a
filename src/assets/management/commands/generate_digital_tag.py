"""Generate a QR code, barcode or NFC payload for an asset."""

from django.core.exceptions import ValidationError
from django.core.management.base import CommandError

from assets.management.base import BackendCommand
from assets.records import DIGITAL_ASSET_LABELS, SUB_ASSET_CATEGORIES
from assets.services.client import ApiError
from assets.services.digital_tags import SUCCESS, TagGenerationFlow
from assets.services.store import AssetStore


def _sub_asset(value):
    """Parse ``category:index`` (index is zero-based)."""
    category, sep, index = value.partition(":")
    if not sep or category not in SUB_ASSET_CATEGORIES or not index.isdigit():
        raise CommandError(
            "--sub-asset must look like 'movable:0' or 'immovable:2'."
        )
    return category, int(index)


class Command(BackendCommand):
    help = "Generate a digital tag for an asset identified by tag ID or ID"

    def add_arguments(self, parser):
        super().add_arguments(parser)
        parser.add_argument("asset", help="Tag ID or backend ID of the asset.")
        parser.add_argument(
            "--kind",
            choices=list(DIGITAL_ASSET_LABELS),
            default="qrCode",
        )
        parser.add_argument(
            "--sub-asset",
            dest="sub_asset",
            help="Target a sub-asset as 'category:index'.",
        )
        parser.add_argument("--size", type=int)
        parser.add_argument("--barcode-format", dest="barcode_format")

    def handle(self, *args, **options):
        kind = options["kind"]
        sub_asset = None
        if options["sub_asset"]:
            if kind == "all":
                raise CommandError("Sub-assets are generated one kind at a time.")
            sub_asset = _sub_asset(options["sub_asset"])

        store = AssetStore(self.get_client(options))
        try:
            asset_id = store.client.resolve_asset_id(options["asset"])
        except ValidationError as exc:
            raise CommandError("; ".join(exc.messages))
        except ApiError as exc:
            self.fail(exc)

        asset = store.fetch_asset(asset_id)
        if asset is None:
            self.fail(store.last_error)

        option_values = {}
        if kind in ("qrCode", "all") and options["size"]:
            option_values["qrSize" if kind == "all" else "size"] = options["size"]
        if kind in ("barcode", "all") and options["barcode_format"]:
            key = "barcodeFormat" if kind == "all" else "format"
            option_values[key] = options["barcode_format"]

        flow = TagGenerationFlow(
            store, asset, kind, sub_asset=sub_asset, options=option_values
        )
        flow.generate()
        if flow.state != SUCCESS:
            raise CommandError(flow.error or "Generation failed.")

        for name, block in flow.result.items():
            self.stdout.write(
                self.style.SUCCESS(f"{DIGITAL_ASSET_LABELS[name]}: {block['url']}")
            )
