"""Template tags for the assets app."""

from django import template

from assets import records

register = template.Library()

STATUS_BADGES = {
    "active": "badge-green",
    "inactive": "badge-gray",
    "maintenance": "badge-amber",
    "retired": "badge-red",
}

PRIORITY_BADGES = {
    "low": "badge-gray",
    "medium": "badge-blue",
    "high": "badge-amber",
    "critical": "badge-red",
}

ACTION_BADGES = {
    "create": "badge-green",
    "update": "badge-blue",
    "delete": "badge-red",
    "scan": "badge-amber",
}


@register.filter
def record_id(record):
    """``{{ asset|record_id }}``; templates cannot read ``_id`` directly."""
    return records.record_id(record)


@register.filter
def status_badge(status):
    return STATUS_BADGES.get(str(status or "").lower(), "badge-gray")


@register.filter
def priority_badge(priority):
    return PRIORITY_BADGES.get(str(priority or "").lower(), "badge-gray")


@register.filter
def action_badge(action):
    return ACTION_BADGES.get(str(action or "").lower(), "badge-gray")


@register.filter
def project_name(asset):
    return records.project_name(asset)


@register.filter
def assigned_name(asset):
    return records.assigned_name(asset) or "Unassigned"


@register.filter
def location_lines(asset, address=None):
    return records.location_lines(asset.get("location"), address)


@register.filter
def as_datetime(value):
    """Parse an ISO timestamp so the ``date`` filter can format it."""
    return records.parse_timestamp(value)


@register.filter
def digital_tag(record, kind):
    return records.digital_asset(record, kind)


@register.filter(name="zip")
def zip_lists(first, second):
    return list(zip(first, second))
