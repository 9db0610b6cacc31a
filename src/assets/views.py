"""Views for the assets app.

Every view talks to the asset backend through an ``AssetStore`` built
from the session token. Backend failures land in ``store.state.error``
and are shown as messages; an expired token sends the user back to the
login page.
"""

import logging
from datetime import date

from django_ratelimit.decorators import ratelimit

from django.conf import settings
from django.contrib import messages
from django.core.exceptions import ValidationError
from django.http import Http404, HttpResponse, HttpResponseNotAllowed
from django.shortcuts import redirect, render

from accounts.tokens import SESSION_EXPIRED_MESSAGE, login_redirect, token_required

from .forms import AssetForm, AssetTypeForm, DigitalTagForm, PermissionsForm, ScanForm
from .records import (
    DIGITAL_ASSET_KINDS,
    DIGITAL_ASSET_LABELS,
    PRIORITY_CHOICES,
    STATUS_CHOICES,
    SUB_ASSET_CATEGORIES,
    digital_asset,
    has_coordinates,
    record_id,
    sub_assets,
)
from .services.client import ApiClient, ApiError, AuthenticationError
from .services.search import (
    SORT_ASC,
    SORT_DESC,
    count_by,
    filter_assets,
    filter_audit_logs,
    paginate,
    sort_records,
)
from .services.store import AssetStore

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)

ASSET_SORT_FIELDS = {
    "tagId": "tagId",
    "assetType": "assetType",
    "brand": "brand",
    "status": "status",
    "priority": "priority",
    "assignedTo": "assignedTo.name",
    "createdAt": "createdAt",
    "updatedAt": "updatedAt",
}

AUDIT_SORT_FIELDS = {
    "user": "user.name",
    "action": "action",
    "resourceType": "resourceType",
    "timestamp": "timestamp",
}

PAGE_SIZES = (25, 50, 100)


def _export_rate(group, request):
    return settings.EXPORT_RATE_LIMIT


def _store(request):
    return AssetStore(ApiClient.for_request(request))


def _auth_expired(request, store):
    """Return a login redirect when the last call was rejected as unauthenticated."""
    if isinstance(store.last_error, AuthenticationError):
        logger.info("Backend rejected session token; redirecting to login")
        return login_redirect(request, SESSION_EXPIRED_MESSAGE)
    return None


def _not_found(store):
    error = store.last_error
    return isinstance(error, ApiError) and error.status == 404


def _sort_params(request, fields, default):
    sort = request.GET.get("sort", default)
    direction = SORT_DESC if sort.startswith("-") else SORT_ASC
    field = fields.get(sort.lstrip("-"))
    if field is None:
        sort = default
        direction = SORT_DESC if default.startswith("-") else SORT_ASC
        field = fields[default.lstrip("-")]
    return sort, field, direction


def _asset_filters(request):
    return {
        "search_term": request.GET.get("q", "").strip(),
        "status": request.GET.get("status", "all") or "all",
        "priority": request.GET.get("priority", "all") or "all",
        "asset_type": request.GET.get("type", "all") or "all",
    }


def _filtered_assets(request, assets):
    filters = _asset_filters(request)
    sort, field, direction = _sort_params(
        request, ASSET_SORT_FIELDS, "-updatedAt"
    )
    result = sort_records(filter_assets(assets, **filters), field, direction)
    return result, filters, sort


def _audit_filters(request):
    return {
        "search_term": request.GET.get("q", "").strip(),
        "action": request.GET.get("action", "all") or "all",
        "resource_type": request.GET.get("resource", "all") or "all",
    }


def _filtered_logs(request, logs):
    filters = _audit_filters(request)
    sort, field, direction = _sort_params(
        request, AUDIT_SORT_FIELDS, "-timestamp"
    )
    result = sort_records(filter_audit_logs(logs, **filters), field, direction)
    return result, filters, sort


def _show_error(request, store):
    if store.state.error:
        messages.error(request, store.state.error)


def _geocoder():
    """Return a best-effort location geocoder, or None when unconfigured."""
    if not settings.GOOGLE_MAPS_API_KEY:
        return None
    from .services.geocode import location_address

    return location_address


# --- Dashboard ---


@token_required
def dashboard(request):
    """Summary counts and recently updated assets."""
    store = _store(request)
    assets = store.fetch_assets()
    expired = _auth_expired(request, store)
    if expired:
        return expired
    _show_error(request, store)
    assets = assets or []

    status_labels = dict(STATUS_CHOICES)
    status_counts = {label: 0 for label in status_labels.values()}
    for label, count in count_by(assets, "status").items():
        key = status_labels.get(label.lower(), label)
        status_counts[key] = status_counts.get(key, 0) + count

    tagged = sum(
        1
        for asset in assets
        if any(digital_asset(asset, kind) for kind in DIGITAL_ASSET_KINDS)
    )
    recent = sort_records(assets, "updatedAt", SORT_DESC)[:5]

    return render(
        request,
        "assets/dashboard.html",
        {
            "total_assets": len(assets),
            "status_counts": status_counts,
            "type_counts": count_by(assets, "assetType"),
            "priority_counts": count_by(assets, "priority"),
            "tagged_count": tagged,
            "recent_assets": recent,
        },
    )


# --- Assets ---


@token_required
def asset_list(request):
    """List assets with search, filters, sorting and pagination."""
    store = _store(request)
    assets = store.fetch_assets()
    expired = _auth_expired(request, store)
    if expired:
        return expired
    _show_error(request, store)
    store.fetch_asset_types()

    result, filters, sort = _filtered_assets(request, assets or [])

    try:
        page_size = int(request.GET.get("page_size", settings.ASSETS_PAGE_SIZE))
    except (ValueError, TypeError):
        page_size = settings.ASSETS_PAGE_SIZE
    if page_size not in PAGE_SIZES:
        page_size = settings.ASSETS_PAGE_SIZE
    items, page, num_pages = paginate(
        result, request.GET.get("page", 1), page_size
    )

    type_names = sorted(
        {t.get("name") for t in store.state.asset_types if t.get("name")}
        | {a.get("assetType") for a in assets or [] if a.get("assetType")}
    )

    context = {
        "assets": items,
        "total_count": len(result),
        "page": page,
        "num_pages": num_pages,
        "page_size": page_size,
        "q": filters["search_term"],
        "current_status": filters["status"],
        "current_priority": filters["priority"],
        "current_type": filters["asset_type"],
        "current_sort": sort,
        "statuses": STATUS_CHOICES,
        "priorities": PRIORITY_CHOICES,
        "asset_types": type_names,
        "query_string": _query_without_page(request),
    }

    # HTMX: Return partial template for AJAX requests
    template_name = "assets/asset_list.html"
    if request.htmx:
        template_name = "assets/partials/asset_list_results.html"
    return render(request, template_name, context)


def _query_without_page(request):
    params = request.GET.copy()
    params.pop("page", None)
    return params.urlencode()


def _uploaded_files(request):
    return [
        ("photos", (f.name, f, f.content_type))
        for f in request.FILES.getlist("photos")
    ]


def _apply_address(form, payload):
    """Fill coordinates from the typed address when none were entered."""
    address = form.cleaned_data.get("address")
    if not address or has_coordinates(payload.get("location")):
        return
    from .services.geocode import geocode_address

    coordinates = geocode_address(address)
    if coordinates is None:
        logger.warning("Could not geocode address %r", address)
        return
    location = payload.get("location") or form.location()
    location.update(coordinates)
    payload["location"] = location


@token_required
def asset_create(request):
    """Create a new asset."""
    store = _store(request)
    asset_types = store.fetch_asset_types() or []
    expired = _auth_expired(request, store)
    if expired:
        return expired

    if request.method == "POST":
        form = AssetForm(request.POST, asset_types=asset_types)
        if form.is_valid():
            payload = form.to_payload()
            _apply_address(form, payload)
            asset = store.create_asset(payload, files=_uploaded_files(request))
            expired = _auth_expired(request, store)
            if expired:
                return expired
            if asset is not None:
                messages.success(
                    request, f"Asset '{asset.get('tagId')}' created."
                )
                return redirect("assets:asset_detail", pk=record_id(asset))
            _show_error(request, store)
    else:
        user = request.session.get("authUser") or {}
        form = AssetForm(
            asset_types=asset_types,
            initial={
                "project_id": user.get("projectId", ""),
                "project_name": user.get("projectName", ""),
                "assetType": request.GET.get("type", ""),
            },
        )

    return render(request, "assets/asset_form.html", {"form": form})


def _load_asset(request, store, pk):
    """Fetch one asset; returns ``(asset, response)`` where response short-circuits."""
    asset = store.fetch_asset(pk)
    expired = _auth_expired(request, store)
    if expired:
        return None, expired
    if asset is None:
        if _not_found(store):
            raise Http404("Asset not found")
        _show_error(request, store)
        return None, redirect("assets:asset_list")
    return asset, None


@token_required
def asset_detail(request, pk):
    """Display one asset with its digital tags, sub-assets and scans."""
    store = _store(request)
    asset, response = _load_asset(request, store, pk)
    if response is not None:
        return response

    address = None
    geocoder = _geocoder()
    if geocoder is not None and has_coordinates(asset.get("location")):
        address = geocoder(asset["location"])

    tags = [
        {
            "kind": kind,
            "label": DIGITAL_ASSET_LABELS[kind],
            "block": digital_asset(asset, kind),
        }
        for kind in DIGITAL_ASSET_KINDS
    ]
    subs = [
        {
            "category": category,
            "items": list(enumerate(sub_assets(asset, category))),
        }
        for category in SUB_ASSET_CATEGORIES
    ]
    scans = sort_records(asset.get("scanHistory") or [], "timestamp", SORT_DESC)

    return render(
        request,
        "assets/asset_detail.html",
        {
            "asset": asset,
            "address": address,
            "digital_tags": tags,
            "sub_asset_groups": subs,
            "scan_history": scans[:25],
            "scan_form": ScanForm(),
        },
    )


@token_required
def asset_edit(request, pk):
    """Edit an existing asset. The tag ID cannot be changed."""
    store = _store(request)
    asset, response = _load_asset(request, store, pk)
    if response is not None:
        return response
    asset_types = store.fetch_asset_types() or []

    if request.method == "POST":
        form = AssetForm(
            request.POST,
            asset_types=asset_types,
            editing=True,
            initial=AssetForm.initial_from_asset(asset),
        )
        if form.is_valid():
            payload = form.to_payload()
            _apply_address(form, payload)
            updated = store.update_asset(
                pk, payload, files=_uploaded_files(request)
            )
            expired = _auth_expired(request, store)
            if expired:
                return expired
            if updated is not None:
                messages.success(
                    request, f"Asset '{asset.get('tagId')}' updated."
                )
                return redirect("assets:asset_detail", pk=pk)
            _show_error(request, store)
    else:
        form = AssetForm(
            asset_types=asset_types,
            editing=True,
            initial=AssetForm.initial_from_asset(asset),
        )

    return render(
        request, "assets/asset_form.html", {"form": form, "asset": asset}
    )


@token_required
def asset_delete(request, pk):
    """Delete an asset after confirmation."""
    store = _store(request)
    asset, response = _load_asset(request, store, pk)
    if response is not None:
        return response

    if request.method == "POST":
        result = store.delete_asset(pk)
        expired = _auth_expired(request, store)
        if expired:
            return expired
        if result is not None:
            messages.success(
                request, f"Asset '{asset.get('tagId')}' has been deleted."
            )
            return redirect("assets:asset_list")
        _show_error(request, store)
        return redirect("assets:asset_detail", pk=pk)

    return render(
        request, "assets/asset_confirm_delete.html", {"asset": asset}
    )


@token_required
def asset_scan(request, pk):
    """Record a scan event for an asset."""
    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])
    form = ScanForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Invalid scan details.")
        return redirect("assets:asset_detail", pk=pk)
    store = _store(request)
    result = store.scan_asset(pk, form.to_payload())
    expired = _auth_expired(request, store)
    if expired:
        return expired
    if result is not None:
        messages.success(request, "Scan recorded.")
    else:
        _show_error(request, store)
    return redirect("assets:asset_detail", pk=pk)


@token_required
def scan_lookup(request):
    """Find an asset by tag ID or backend ID typed in or read by a scanner."""
    identifier = request.GET.get("code", "").strip()
    if not identifier:
        return render(request, "assets/scan.html", {})
    client = ApiClient.for_request(request)
    try:
        asset_id = client.resolve_asset_id(identifier)
    except AuthenticationError:
        return login_redirect(request, SESSION_EXPIRED_MESSAGE)
    except ValidationError as exc:
        messages.error(request, "; ".join(exc.messages))
        return render(request, "assets/scan.html", {"code": identifier})
    except ApiError as exc:
        messages.error(request, exc.message)
        return render(request, "assets/scan.html", {"code": identifier})
    return redirect("assets:asset_detail", pk=asset_id)


# --- Digital tags ---


def _run_tag_flow(request, store, asset, kind, sub_asset=None):
    from .services.digital_tags import TagGenerationFlow

    form = DigitalTagForm(request.POST, kind=kind)
    if not form.is_valid():
        return form, None
    flow = TagGenerationFlow(
        store, asset, kind, sub_asset=sub_asset, options=form.to_options()
    )
    flow.generate()
    return form, flow


def _tag_response(request, asset, kind, form, flow, sub_asset=None):
    pk = record_id(asset)
    context = {
        "asset": asset,
        "kind": kind,
        "label": DIGITAL_ASSET_LABELS[kind],
        "form": form,
        "flow": flow,
        "sub_asset": sub_asset,
    }
    if request.htmx:
        return render(
            request, "assets/partials/digital_tag_result.html", context
        )
    if flow is not None and flow.state == "success":
        messages.success(request, f"{DIGITAL_ASSET_LABELS[kind]} generated.")
        return redirect("assets:asset_detail", pk=pk)
    if flow is not None and flow.error:
        messages.error(request, flow.error)
    return render(request, "assets/digital_tag_form.html", context)


@token_required
def digital_tag_generate(request, pk, kind):
    """Generate a QR code, barcode, NFC payload (or all three) for an asset."""
    if kind not in DIGITAL_ASSET_LABELS:
        raise Http404("Unknown digital tag kind")
    store = _store(request)
    asset, response = _load_asset(request, store, pk)
    if response is not None:
        return response

    form, flow = DigitalTagForm(kind=kind), None
    if request.method == "POST":
        form, flow = _run_tag_flow(request, store, asset, kind)
        if flow is not None and isinstance(flow.exception, AuthenticationError):
            return login_redirect(request, SESSION_EXPIRED_MESSAGE)
        if flow is not None and flow.state == "success":
            asset = flow.asset
    return _tag_response(request, asset, kind, form, flow)


@token_required
def sub_asset_digital_tag_generate(request, pk, category, index, kind):
    """Generate a digital tag for one sub-asset of an asset."""
    if kind not in DIGITAL_ASSET_KINDS or category not in SUB_ASSET_CATEGORIES:
        raise Http404("Unknown digital tag target")
    store = _store(request)
    asset, response = _load_asset(request, store, pk)
    if response is not None:
        return response
    if index >= len(sub_assets(asset, category)):
        raise Http404("Sub-asset not found")

    sub_asset = (category, index)
    form, flow = DigitalTagForm(kind=kind), None
    if request.method == "POST":
        form, flow = _run_tag_flow(
            request, store, asset, kind, sub_asset=sub_asset
        )
        if flow is not None and isinstance(flow.exception, AuthenticationError):
            return login_redirect(request, SESSION_EXPIRED_MESSAGE)
        if flow is not None and flow.state == "success":
            asset = flow.asset
    return _tag_response(request, asset, kind, form, flow, sub_asset=sub_asset)


@token_required
def digital_tag_download(request, pk, kind):
    """Stream a generated tag file from the backend."""
    if kind not in DIGITAL_ASSET_KINDS:
        raise Http404("Unknown digital tag kind")
    from .services.digital_tags import download_tag_image, tag_filename

    store = _store(request)
    asset, response = _load_asset(request, store, pk)
    if response is not None:
        return response
    try:
        content = download_tag_image(store.client, asset, kind)
    except AuthenticationError:
        return login_redirect(request, SESSION_EXPIRED_MESSAGE)
    except ApiError as exc:
        messages.error(request, exc.message)
        return redirect("assets:asset_detail", pk=pk)
    content_type = "application/json" if kind == "nfcData" else "image/png"
    response = HttpResponse(content, content_type=content_type)
    response["Content-Disposition"] = (
        f'attachment; filename="{tag_filename(asset, kind)}"'
    )
    return response


@token_required
def digital_tag_download_all(request, pk):
    """Download every generated tag file of an asset as one ZIP."""
    from .services.digital_tags import bundle_filename, download_all_tags

    store = _store(request)
    asset, response = _load_asset(request, store, pk)
    if response is not None:
        return response
    try:
        content = download_all_tags(store.client, asset)
    except AuthenticationError:
        return login_redirect(request, SESSION_EXPIRED_MESSAGE)
    except ApiError as exc:
        messages.error(request, exc.message)
        return redirect("assets:asset_detail", pk=pk)
    response = HttpResponse(content, content_type="application/zip")
    response["Content-Disposition"] = (
        f'attachment; filename="{bundle_filename(asset)}"'
    )
    return response


# --- Exports ---


def _export_response(content, content_type, filename):
    response = HttpResponse(content, content_type=content_type)
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


def _export(request, fetch, build, content_type, filename, back):
    records, error = fetch(request)
    if isinstance(error, AuthenticationError):
        return login_redirect(request, SESSION_EXPIRED_MESSAGE)
    if records is None:
        messages.error(request, error.message if error else "Export failed.")
        return redirect(back)
    try:
        content = build(records)
    except Exception:
        logger.exception("Export %s failed", filename)
        messages.error(request, "Export failed. Please try again.")
        return redirect(back)
    logger.info("Exported %s (%d records)", filename, len(records))
    return _export_response(content, content_type, filename)


def _fetch_audit_logs(request):
    """Return ``(logs, error)``; audit trails are read-only and bypass the store."""
    client = ApiClient.for_request(request)
    try:
        body = client.get_audit_logs()
    except ApiError as exc:
        return None, exc
    return body.get("logs") or [], None


def _assets_for_export(request):
    store = _store(request)
    assets = store.fetch_assets()
    if assets is None:
        return None, store.last_error
    return _filtered_assets(request, assets)[0], None


def _logs_for_export(request):
    logs, error = _fetch_audit_logs(request)
    if logs is None:
        return None, error
    return _filtered_logs(request, logs)[0], None


@token_required
@ratelimit(key="ip", rate=_export_rate, method="GET", block=True)
def export_assets_xlsx(request):
    """Export the filtered asset list to Excel."""
    from .services.export import export_assets_xlsx as build

    return _export(
        request,
        _assets_for_export,
        lambda assets: build(assets, geocoder=_geocoder()).getvalue(),
        XLSX_CONTENT_TYPE,
        f"assets-report-{date.today().isoformat()}.xlsx",
        "assets:asset_list",
    )


@token_required
@ratelimit(key="ip", rate=_export_rate, method="GET", block=True)
def export_assets_pdf(request):
    """Export the filtered asset list to PDF."""
    from .services.pdf import generate_assets_pdf

    return _export(
        request,
        _assets_for_export,
        lambda assets: generate_assets_pdf(assets, geocoder=_geocoder()),
        "application/pdf",
        f"assets-report-{date.today().isoformat()}.pdf",
        "assets:asset_list",
    )


# --- Audit trails ---


@token_required
def audit_trail_list(request):
    """List audit trail entries with search and filters."""
    logs, error = _fetch_audit_logs(request)
    if isinstance(error, AuthenticationError):
        return login_redirect(request, SESSION_EXPIRED_MESSAGE)
    if error is not None:
        messages.error(request, error.message)
    logs = logs or []
    actions = sorted({log.get("action") for log in logs if log.get("action")})
    resource_types = sorted(
        {log.get("resourceType") for log in logs if log.get("resourceType")}
    )
    logs, filters, sort = _filtered_logs(request, logs)
    items, page, num_pages = paginate(
        logs, request.GET.get("page", 1), settings.ASSETS_PAGE_SIZE
    )
    return render(
        request,
        "assets/audit_trail_list.html",
        {
            "logs": items,
            "total_count": len(logs),
            "page": page,
            "num_pages": num_pages,
            "q": filters["search_term"],
            "current_action": filters["action"],
            "current_resource": filters["resource_type"],
            "current_sort": sort,
            "actions": actions,
            "resource_types": resource_types,
            "query_string": _query_without_page(request),
        },
    )


@token_required
@ratelimit(key="ip", rate=_export_rate, method="GET", block=True)
def export_audit_trails_xlsx(request):
    from .services.export import export_audit_logs_xlsx

    return _export(
        request,
        _logs_for_export,
        lambda logs: export_audit_logs_xlsx(logs).getvalue(),
        XLSX_CONTENT_TYPE,
        f"audit-trails-report-{date.today().isoformat()}.xlsx",
        "assets:audit_trail_list",
    )


@token_required
@ratelimit(key="ip", rate=_export_rate, method="GET", block=True)
def export_audit_trails_pdf(request):
    from .services.pdf import generate_audit_logs_pdf

    return _export(
        request,
        _logs_for_export,
        generate_audit_logs_pdf,
        "application/pdf",
        f"audit-trails-report-{date.today().isoformat()}.pdf",
        "assets:audit_trail_list",
    )


# --- Asset types ---


@token_required
def asset_type_list(request):
    """List asset types and create new ones."""
    store = _store(request)
    asset_types = store.fetch_asset_types()
    expired = _auth_expired(request, store)
    if expired:
        return expired

    if request.method == "POST":
        form = AssetTypeForm(request.POST)
        if form.is_valid():
            created = store.create_asset_type(form.to_payload())
            expired = _auth_expired(request, store)
            if expired:
                return expired
            if created is not None:
                messages.success(
                    request, f"Asset type '{created.get('name')}' created."
                )
                return redirect("assets:asset_type_list")
    else:
        form = AssetTypeForm()
    _show_error(request, store)

    return render(
        request,
        "assets/asset_type_list.html",
        {
            "asset_types": sort_records(store.state.asset_types, "name")
            if asset_types is not None
            else [],
            "form": form,
        },
    )


def _find_type(asset_types, pk):
    for asset_type in asset_types or []:
        if record_id(asset_type) == pk:
            return asset_type
    raise Http404("Asset type not found")


@token_required
def asset_type_edit(request, pk):
    store = _store(request)
    asset_types = store.fetch_asset_types()
    expired = _auth_expired(request, store)
    if expired:
        return expired
    asset_type = _find_type(asset_types, pk)

    if request.method == "POST":
        form = AssetTypeForm(request.POST)
        if form.is_valid():
            updated = store.update_asset_type(pk, form.to_payload())
            expired = _auth_expired(request, store)
            if expired:
                return expired
            if updated is not None:
                messages.success(
                    request, f"Asset type '{updated.get('name')}' updated."
                )
                return redirect("assets:asset_type_list")
            _show_error(request, store)
    else:
        form = AssetTypeForm(initial=AssetTypeForm.initial_from_type(asset_type))

    return render(
        request,
        "assets/asset_type_form.html",
        {"form": form, "asset_type": asset_type},
    )


@token_required
def asset_type_delete(request, pk):
    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])
    store = _store(request)
    result = store.delete_asset_type(pk)
    expired = _auth_expired(request, store)
    if expired:
        return expired
    if result is not None:
        messages.success(request, "Asset type deleted.")
    else:
        _show_error(request, store)
    return redirect("assets:asset_type_list")


# --- Permissions ---


@token_required
def permissions_view(request):
    """View and save the asset permissions of one role."""
    from .services.permissions import ROLES, normalize_permissions

    roles = dict(ROLES)
    role = request.POST.get("role") or request.GET.get("role", "admin")
    if role not in roles:
        role = "admin"
    store = _store(request)

    if request.method == "POST":
        form = PermissionsForm(request.POST)
        if form.is_valid():
            permissions = form.to_permissions()
            if role == "admin":
                saved = store.update_admin_permissions(permissions)
            else:
                saved = store.set_role_permissions(role, permissions)
            expired = _auth_expired(request, store)
            if expired:
                return expired
            if saved is not None:
                messages.success(
                    request, f"Permissions for {roles[role]} saved."
                )
                return redirect(f"{request.path}?role={role}")
            _show_error(request, store)
    else:
        permissions = store.fetch_admin_permissions(role)
        expired = _auth_expired(request, store)
        if expired:
            return expired
        _show_error(request, store)
        form = PermissionsForm(
            initial={"role": role},
            permissions=normalize_permissions(permissions),
        )

    return render(
        request,
        "assets/permissions.html",
        {"form": form, "role": role, "roles": ROLES},
    )
