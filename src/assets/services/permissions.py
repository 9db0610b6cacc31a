"""Role permission categories and payload shaping.

Permissions are nested maps of boolean flags grouped by category. The
bulk endpoint takes a flattened ``{flag: bool}`` map, with each flag
prefixed by its category.
"""

PERMISSION_CATEGORIES = {
    "assetManagement": (
        "view",
        "create",
        "edit",
        "delete",
        "assign",
        "bulkOperations",
        "import",
        "export",
    ),
    "digitalAssets": ("generate", "scan", "bulkGenerate", "download", "customize"),
    "maintenance": (
        "view",
        "create",
        "edit",
        "delete",
        "approve",
        "schedule",
        "assign",
        "complete",
    ),
    "compliance": ("view", "create", "edit", "approve", "audit", "report"),
    "analytics": ("view", "export", "customize", "share"),
    "userManagement": (
        "view",
        "create",
        "edit",
        "delete",
        "assignRoles",
        "managePermissions",
    ),
}

ROLES = (
    ("admin", "Admin"),
    ("manager", "Manager"),
    ("supervisor", "Supervisor"),
    ("technician", "Technician"),
    ("viewer", "Viewer"),
)

SEPARATOR = "."


def flag_name(category, flag):
    return f"{category}{SEPARATOR}{flag}"


def flatten_permissions(permissions):
    """Flatten ``{category: {flag: bool}}`` into ``{"category.flag": bool}``.

    Keys that are already flat booleans pass through unchanged.
    """
    flat = {}
    for category, flags in (permissions or {}).items():
        if isinstance(flags, dict):
            for flag, allowed in flags.items():
                flat[flag_name(category, flag)] = bool(allowed)
        else:
            flat[category] = bool(flags)
    return flat


def expand_permissions(flat):
    """Inverse of ``flatten_permissions``; unknown flags default to False."""
    nested = {
        category: {flag: False for flag in flags}
        for category, flags in PERMISSION_CATEGORIES.items()
    }
    for key, allowed in (flat or {}).items():
        category, _, flag = key.partition(SEPARATOR)
        if flag:
            nested.setdefault(category, {})[flag] = bool(allowed)
    return nested


def normalize_permissions(permissions):
    """Fill missing categories and flags with False.

    Categories and flags the backend sends beyond the known set are kept.
    """
    normalized = expand_permissions({})
    for category, flags in (permissions or {}).items():
        if isinstance(flags, dict):
            bucket = normalized.setdefault(category, {})
            for flag, allowed in flags.items():
                bucket[flag] = bool(allowed)
    return normalized
