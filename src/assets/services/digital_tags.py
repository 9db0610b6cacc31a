"""Digital tag (QR code, barcode, NFC) generation for assets.

A ``TagGenerationFlow`` drives one generation request for one asset or
sub-asset: it posts the request, polls the asset until the backend has
attached the new block, merges the block into the store and notifies
the caller.
"""

import logging
import time
import zipfile
from io import BytesIO

from django.conf import settings
from django.core.exceptions import ValidationError

from ..records import (
    DIGITAL_ASSET_KINDS,
    DIGITAL_ASSET_LABELS,
    digital_asset,
    record_id,
    sub_assets,
)
from .client import DIGITAL_ASSET_RESPONSE_KEYS, ApiError

logger = logging.getLogger(__name__)

IDLE = "idle"
GENERATING = "generating"
SUCCESS = "success"
ERROR = "error"

DEFAULT_OPTIONS = {
    "qrCode": {"size": 300, "includeUrl": True},
    "barcode": {"format": "code128", "height": 10, "scale": 3},
    "nfcData": {},
    "all": {"qrSize": 300, "barcodeFormat": "code128"},
}


def generation_options(kind, options=None):
    """Merge caller options over the defaults for ``kind``."""
    merged = dict(DEFAULT_OPTIONS.get(kind, {}))
    merged.update({k: v for k, v in (options or {}).items() if v not in (None, "")})
    return merged


def _has_url(block):
    return bool(block and str(block.get("url") or "").strip())


def _target(asset, sub_asset):
    if sub_asset is None:
        return asset
    category, index = sub_asset
    items = sub_assets(asset, category)
    if 0 <= index < len(items):
        return items[index]
    return None


def generated_blocks(record, kind):
    """Return ``{kind: block}`` for every generated block on ``record``.

    Returns None until every requested kind carries a URL.
    """
    kinds = DIGITAL_ASSET_KINDS if kind == "all" else (kind,)
    blocks = {}
    for name in kinds:
        block = digital_asset(record, name)
        if not _has_url(block):
            return None
        blocks[name] = block
    return blocks


def _same_block(first, second):
    return (first or {}).get("url") == (second or {}).get("url") and (
        first or {}
    ).get("generatedAt") == (second or {}).get("generatedAt")


def _is_fresh(blocks, previous, expected):
    """True when ``blocks`` are the result of the current generation.

    Every block must either match the generation response or differ
    from what the record held before the request.
    """
    if not blocks:
        return False
    for name, block in blocks.items():
        if expected and (block or {}).get("url") == expected[name].get("url"):
            continue
        if previous and _same_block(block, previous.get(name)):
            return False
    return True


class TagGenerationFlow:
    """Generation state machine: idle -> generating -> success | error."""

    def __init__(
        self,
        store,
        asset,
        kind,
        on_generated=None,
        on_close=None,
        sub_asset=None,
        options=None,
        sleep=time.sleep,
    ):
        if kind not in DIGITAL_ASSET_LABELS:
            raise ValueError(f"Unknown digital asset kind '{kind}'")
        if kind == "all" and sub_asset is not None:
            raise ValueError("Sub-assets are generated one kind at a time")
        self.store = store
        self.asset = asset
        self.kind = kind
        self.on_generated = on_generated
        self.on_close = on_close
        self.sub_asset = sub_asset
        self.options = generation_options(kind, options)
        self.sleep = sleep
        self.state = IDLE
        self.error = None
        self.exception = None
        self.result = None

    @property
    def label(self):
        return DIGITAL_ASSET_LABELS[self.kind]

    @property
    def client(self):
        return self.store.client

    def _request(self, asset_id):
        if self.sub_asset is not None:
            category, index = self.sub_asset
            return self.client.generate_sub_asset_digital_asset(
                self.kind, asset_id, index, category, self.options
            )
        return self.client.generate_digital_asset(
            self.kind, asset_id, self.options
        )

    def _poll(self, asset_id, previous, expected):
        """Re-fetch the asset until a newly generated block is present.

        A polled block counts only when it differs from ``previous`` (the
        blocks held before the request) or matches ``expected`` (the
        blocks in the generation response). Returns ``(asset, blocks)``;
        ``blocks`` is None when polling gave up.
        """
        delay = settings.DIGITAL_TAG_POLL_INITIAL_DELAY
        attempts = settings.DIGITAL_TAG_POLL_MAX_ATTEMPTS
        latest = self.asset
        for attempt in range(1, attempts + 1):
            if delay:
                self.sleep(delay)
            body = self.client.get_asset(asset_id)
            latest = body.get("asset") or latest
            blocks = generated_blocks(_target(latest, self.sub_asset), self.kind)
            if _is_fresh(blocks, previous, expected):
                logger.debug(
                    "%s for %s ready after %s poll(s)",
                    self.label,
                    asset_id,
                    attempt,
                )
                return latest, blocks
            delay *= settings.DIGITAL_TAG_POLL_BACKOFF
        logger.info(
            "%s for %s not attached after %s polls; using generation response",
            self.label,
            asset_id,
            attempts,
        )
        return latest, None

    def _check_sub_asset(self, asset):
        if self.sub_asset is None:
            return
        if _target(asset, self.sub_asset) is None:
            category, index = self.sub_asset
            raise ValidationError(
                f"Sub-asset {category}[{index}] does not exist on this asset."
            )

    def generate(self):
        """Run one generation cycle; returns the updated asset or None."""
        if self.state == GENERATING:
            return None
        self.state = GENERATING
        self.error = None
        self.exception = None
        asset_id = record_id(self.asset)
        try:
            self._check_sub_asset(self.asset)
            previous = generated_blocks(
                _target(self.asset, self.sub_asset), self.kind
            )
            response = self._request(asset_id)
            expected = self._response_blocks(response)
            latest, blocks = self._poll(asset_id, previous, expected)
            if blocks is None:
                if expected is None:
                    raise ApiError("Invalid response format from server")
                blocks = expected
            self._check_sub_asset(latest)
            merge_kind = "all" if self.kind == "all" else self.kind
            block = blocks if self.kind == "all" else blocks[self.kind]
            updated = self.store.merge_digital_asset(
                latest, merge_kind, block, sub_asset=self.sub_asset
            )
        except (ApiError, ValidationError) as exc:
            message = getattr(exc, "message", None) or "; ".join(
                getattr(exc, "messages", [str(exc)])
            )
            logger.warning("%s generation failed for %s: %s", self.label, asset_id, message)
            self.state = ERROR
            self.error = message
            self.exception = exc
            return None
        except Exception as exc:
            logger.exception("%s generation crashed for %s", self.label, asset_id)
            self.state = ERROR
            self.error = f"{self.label} generation failed"
            self.exception = exc
            raise

        self.asset = updated
        self.result = blocks
        self.state = SUCCESS
        logger.info("%s generated for asset %s", self.label, asset_id)
        if self.on_generated is not None:
            self.on_generated(updated)
        return updated

    def _response_blocks(self, response):
        payload = response.get(DIGITAL_ASSET_RESPONSE_KEYS[self.kind]) or {}
        if self.kind != "all":
            payload = {self.kind: payload}
        return generated_blocks({"digitalAssets": payload}, self.kind)

    def close(self):
        """Dismiss the flow. Only a successful generation notifies ``on_close``."""
        if self.state == SUCCESS and self.on_close is not None:
            self.on_close(generated=True)
        return self.state == SUCCESS


def download_tag_image(client, asset, kind):
    """Fetch the server-hosted file of a generated block as bytes."""
    block = digital_asset(asset, kind)
    if not _has_url(block):
        raise ApiError(
            f"{DIGITAL_ASSET_LABELS.get(kind, kind)} has not been generated "
            f"for this asset"
        )
    return client.download(block["url"])


def tag_filename(asset, kind):
    prefix = {"qrCode": "qr", "barcode": "barcode", "nfcData": "nfc"}[kind]
    extension = "json" if kind == "nfcData" else "png"
    return f"{prefix}_{asset.get('tagId') or record_id(asset)}.{extension}"


def download_all_tags(client, asset):
    """Bundle every generated tag file of ``asset`` into one ZIP archive.

    Kinds that were never generated are skipped. Returns the archive
    bytes.
    """
    buffer = BytesIO()
    bundled = 0
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for kind in DIGITAL_ASSET_KINDS:
            block = digital_asset(asset, kind)
            if not _has_url(block):
                continue
            archive.writestr(tag_filename(asset, kind), client.download(block["url"]))
            bundled += 1
    if not bundled:
        raise ApiError("No digital tags have been generated for this asset")
    logger.info("Bundled %s tag file(s) for %s", bundled, record_id(asset))
    return buffer.getvalue()


def bundle_filename(asset):
    return f"digital_tags_{asset.get('tagId') or record_id(asset)}.zip"
