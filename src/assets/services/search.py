"""Filtering and sorting for asset and audit log collections.

All functions are pure: they never mutate their input, and filtering an
already filtered list with the same arguments returns it unchanged.
"""

from ..records import DATE_FIELDS, assigned_name, parse_timestamp, project_name

WILDCARD = "all"

SORT_ASC = "asc"
SORT_DESC = "desc"

DEFAULT_PAGE_SIZE = 25


def _is_wildcard(value):
    return value is None or str(value).strip().lower() in ("", WILDCARD)


def _matches(value, wanted):
    if _is_wildcard(wanted):
        return True
    return str(value or "").strip().lower() == str(wanted).strip().lower()


def _contains(haystack, needle):
    return needle in str(haystack or "").lower()


def filter_assets(
    assets, search_term="", status=WILDCARD, priority=WILDCARD, asset_type=WILDCARD
):
    """Narrow ``assets`` by free text, status, priority and asset type.

    The search term is matched case-insensitively as a substring of the
    tag ID, brand, model, assignee name or project name.
    """
    term = (search_term or "").strip().lower()
    result = []
    for asset in assets:
        if term and not any(
            _contains(value, term)
            for value in (
                asset.get("tagId"),
                asset.get("brand"),
                asset.get("model"),
                assigned_name(asset),
                project_name(asset),
            )
        ):
            continue
        if not _matches(asset.get("status"), status):
            continue
        if not _matches(asset.get("priority"), priority):
            continue
        if not _matches(asset.get("assetType"), asset_type):
            continue
        result.append(asset)
    return result


def filter_audit_logs(
    logs, search_term="", action=WILDCARD, resource_type=WILDCARD
):
    """Narrow audit logs by free text, action and resource type."""
    term = (search_term or "").strip().lower()
    result = []
    for log in logs:
        user = log.get("user") or {}
        details = log.get("details") or {}
        if term and not any(
            _contains(value, term)
            for value in (
                user.get("name"),
                user.get("email"),
                log.get("resourceType"),
                details.get("tagId"),
                details.get("brand"),
            )
        ):
            continue
        if not _matches(log.get("action"), action):
            continue
        if not _matches(log.get("resourceType"), resource_type):
            continue
        result.append(log)
    return result


def resolve_field(record, path):
    """Look up a dotted ``path`` such as ``assignedTo.name``."""
    value = record
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _sort_value(record, path):
    value = resolve_field(record, path)
    if value in (None, ""):
        return None
    if path.rsplit(".", 1)[-1] in DATE_FIELDS:
        parsed = parse_timestamp(value)
        return int(parsed.timestamp() * 1000) if parsed else None
    if isinstance(value, str):
        return value.lower()
    return value


def sort_records(records, field, direction=SORT_ASC):
    """Return ``records`` ordered by ``field``.

    Date fields compare as epoch milliseconds. Records missing the field
    are placed last in either direction.
    """
    if not field:
        return list(records)
    present, missing = [], []
    for record in records:
        value = _sort_value(record, field)
        if value is None:
            missing.append(record)
        else:
            present.append((value, record))
    try:
        present.sort(key=lambda pair: pair[0], reverse=direction == SORT_DESC)
    except TypeError:
        # Mixed value types; fall back to comparing their text
        present.sort(
            key=lambda pair: str(pair[0]), reverse=direction == SORT_DESC
        )
    return [record for _, record in present] + missing


def paginate(records, page=1, page_size=DEFAULT_PAGE_SIZE):
    """Slice ``records`` into one page.

    Returns ``(items, page, num_pages)``; an out-of-range page is clamped.
    """
    records = list(records)
    page_size = max(int(page_size or DEFAULT_PAGE_SIZE), 1)
    num_pages = max((len(records) + page_size - 1) // page_size, 1)
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    page = min(max(page, 1), num_pages)
    start = (page - 1) * page_size
    return records[start : start + page_size], page, num_pages


def count_by(records, key, default="Unknown"):
    """Count records per value of ``key`` (dotted paths allowed)."""
    counts = {}
    for record in records:
        value = resolve_field(record, key)
        label = str(value) if value not in (None, "") else default
        counts[label] = counts.get(label, 0) + 1
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))
