"""Asset state container.

``reduce`` is a pure reducer over ``AssetState``. ``AssetStore`` owns one
state value and exposes command-style actions that call the backend and
dispatch the confirmed result. Nothing is applied optimistically.

Responses are fenced per key: every action takes a ticket before the
call, and its result is applied only if no newer request for the same
key was issued in the meantime.
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Optional

from ..records import record_id, with_digital_asset
from .client import ApiError

logger = logging.getLogger(__name__)

SET_LOADING = "SET_LOADING"
SET_ASSETS = "SET_ASSETS"
SET_ASSET_TYPES = "SET_ASSET_TYPES"
SET_ADMIN_PERMISSIONS = "SET_ADMIN_PERMISSIONS"
SET_ERROR = "SET_ERROR"
SET_SELECTED_ASSET = "SET_SELECTED_ASSET"
ADD_ASSET = "ADD_ASSET"
UPDATE_ASSET = "UPDATE_ASSET"
DELETE_ASSET = "DELETE_ASSET"
CLEAR_ERROR = "CLEAR_ERROR"

ASSETS_KEY = "assets"
ASSET_TYPES_KEY = "asset-types"
PERMISSIONS_KEY = "permissions"


@dataclass(frozen=True)
class AssetState:
    assets: list = field(default_factory=list)
    asset_types: list = field(default_factory=list)
    admin_permissions: Optional[dict] = None
    loading: bool = False
    error: Optional[str] = None
    selected_asset: Optional[dict] = None


@dataclass(frozen=True)
class Action:
    type: str
    payload: object = None


def _replace_asset(assets, updated):
    target = record_id(updated)
    return [updated if record_id(a) == target else a for a in assets]


def reduce(state: AssetState, action: Action) -> AssetState:
    """Return the state that results from applying ``action``."""
    kind, payload = action.type, action.payload

    if kind == SET_LOADING:
        if payload:
            return replace(state, loading=True, error=None)
        return replace(state, loading=False)

    if kind == SET_ASSETS:
        return replace(
            state, assets=list(payload or []), loading=False, error=None
        )

    if kind == SET_ASSET_TYPES:
        return replace(state, asset_types=list(payload or []))

    if kind == SET_ADMIN_PERMISSIONS:
        return replace(state, admin_permissions=payload)

    if kind == SET_ERROR:
        return replace(state, error=payload, loading=False)

    if kind == SET_SELECTED_ASSET:
        return replace(state, selected_asset=payload)

    if kind == ADD_ASSET:
        return replace(state, assets=[*state.assets, payload])

    if kind == UPDATE_ASSET:
        selected = state.selected_asset
        if selected is not None and record_id(selected) == record_id(payload):
            selected = payload
        return replace(
            state,
            assets=_replace_asset(state.assets, payload),
            selected_asset=selected,
        )

    if kind == DELETE_ASSET:
        selected = state.selected_asset
        if selected is not None and record_id(selected) == payload:
            selected = None
        return replace(
            state,
            assets=[a for a in state.assets if record_id(a) != payload],
            selected_asset=selected,
        )

    if kind == CLEAR_ERROR:
        return replace(state, error=None)

    raise ValueError(f"Unknown action type '{kind}'")


class AssetStore:
    """Owns an ``AssetState`` and the actions that change it."""

    def __init__(self, client, state=None):
        self.client = client
        self.state = state or AssetState()
        self.last_error = None
        self._listeners = []
        self._lock = threading.RLock()
        self._tickets = defaultdict(int)

    # --- Dispatch ---

    def dispatch(self, action_type, payload=None):
        with self._lock:
            self.state = reduce(self.state, Action(action_type, payload))
            state = self.state
        for listener in list(self._listeners):
            listener(state)
        return state

    def subscribe(self, listener):
        """Register ``listener(state)``; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Fencing ---

    def _issue(self, key):
        with self._lock:
            self._tickets[key] += 1
            return self._tickets[key]

    def _is_current(self, key, ticket):
        with self._lock:
            return self._tickets[key] == ticket

    def _run(self, key, verb, call, on_success):
        """Run ``call`` through the loading/error cycle.

        Returns the value produced by ``on_success``, or None when the
        call failed or its response was superseded.
        """
        ticket = self._issue(key)
        self.last_error = None
        self.dispatch(SET_LOADING, True)
        try:
            try:
                body = call()
            except ApiError as exc:
                self.last_error = exc
                if self._is_current(key, ticket):
                    self.dispatch(
                        SET_ERROR, exc.message or f"An error occurred while {verb}"
                    )
                else:
                    logger.info("Dropped stale error for %s: %s", key, exc)
                return None
            if not self._is_current(key, ticket):
                logger.info("Dropped stale response for %s (ticket %s)", key, ticket)
                return None
            return on_success(body)
        finally:
            if self.state.loading and self._is_current(key, ticket):
                self.dispatch(SET_LOADING, False)

    # --- Assets ---

    def fetch_assets(self, search=None):
        def apply(body):
            assets = body.get("assets") or []
            self.dispatch(SET_ASSETS, assets)
            return assets

        return self._run(
            ASSETS_KEY,
            "fetching assets",
            lambda: self.client.get_assets(search),
            apply,
        )

    def fetch_asset(self, asset_id):
        def apply(body):
            asset = body.get("asset")
            if asset is None:
                return None
            if any(record_id(a) == record_id(asset) for a in self.state.assets):
                self.dispatch(UPDATE_ASSET, asset)
            self.dispatch(SET_SELECTED_ASSET, asset)
            return asset

        return self._run(
            f"asset:{asset_id}",
            "fetching the asset",
            lambda: self.client.get_asset(asset_id),
            apply,
        )

    def create_asset(self, data, files=None):
        def apply(body):
            asset = body.get("asset")
            if asset is not None:
                self.dispatch(ADD_ASSET, asset)
            return asset

        return self._run(
            f"asset:new:{data.get('tagId', '')}",
            "creating the asset",
            lambda: self.client.create_asset(data, files),
            apply,
        )

    def update_asset(self, asset_id, data, files=None):
        def apply(body):
            asset = body.get("asset")
            if asset is not None:
                self.dispatch(UPDATE_ASSET, asset)
            return asset

        return self._run(
            f"asset:{asset_id}",
            "updating the asset",
            lambda: self.client.update_asset(asset_id, data, files),
            apply,
        )

    def delete_asset(self, asset_id):
        def apply(body):
            self.dispatch(DELETE_ASSET, asset_id)
            return body

        return self._run(
            f"asset:{asset_id}",
            "deleting the asset",
            lambda: self.client.delete_asset(asset_id),
            apply,
        )

    def scan_asset(self, asset_id, scan):
        def apply(body):
            asset = body.get("asset")
            if asset is not None:
                self.dispatch(UPDATE_ASSET, asset)
            return body

        return self._run(
            f"asset:{asset_id}",
            "scanning the asset",
            lambda: self.client.scan_asset(asset_id, scan),
            apply,
        )

    def set_selected_asset(self, asset):
        self.dispatch(SET_SELECTED_ASSET, asset)

    def clear_error(self):
        self.dispatch(CLEAR_ERROR)

    def merge_digital_asset(self, asset, kind, block, sub_asset=None):
        """Merge a generated digital asset block and dispatch the update."""
        updated = with_digital_asset(asset, kind, block, sub_asset=sub_asset)
        self.dispatch(UPDATE_ASSET, updated)
        return updated

    # --- Asset types ---

    def fetch_asset_types(self):
        def apply(body):
            types = body.get("assetTypes") or []
            self.dispatch(SET_ASSET_TYPES, types)
            return types

        return self._run(
            ASSET_TYPES_KEY,
            "fetching asset types",
            self.client.get_asset_types,
            apply,
        )

    def _reload_types(self, body, key="assetType"):
        record = body.get(key)
        types = [t for t in self.state.asset_types]
        if record is not None:
            types = [t for t in types if record_id(t) != record_id(record)]
            types.append(record)
        self.dispatch(SET_ASSET_TYPES, types)
        return record

    def create_asset_type(self, data):
        return self._run(
            ASSET_TYPES_KEY,
            "creating the asset type",
            lambda: self.client.create_asset_type(data),
            self._reload_types,
        )

    def update_asset_type(self, asset_type_id, data):
        return self._run(
            ASSET_TYPES_KEY,
            "updating the asset type",
            lambda: self.client.update_asset_type(asset_type_id, data),
            self._reload_types,
        )

    def delete_asset_type(self, asset_type_id):
        def apply(body):
            self.dispatch(
                SET_ASSET_TYPES,
                [
                    t
                    for t in self.state.asset_types
                    if record_id(t) != asset_type_id
                ],
            )
            return body

        return self._run(
            ASSET_TYPES_KEY,
            "deleting the asset type",
            lambda: self.client.delete_asset_type(asset_type_id),
            apply,
        )

    # --- Permissions ---

    def fetch_admin_permissions(self, role="admin"):
        def apply(body):
            permissions = body.get("permissions")
            self.dispatch(SET_ADMIN_PERMISSIONS, permissions)
            return permissions

        return self._run(
            PERMISSIONS_KEY,
            "fetching permissions",
            lambda: self.client.get_admin_permissions(role),
            apply,
        )

    def update_admin_permissions(self, permissions):
        def apply(body):
            saved = body.get("permissions") or permissions
            self.dispatch(SET_ADMIN_PERMISSIONS, saved)
            return saved

        return self._run(
            PERMISSIONS_KEY,
            "updating permissions",
            lambda: self.client.update_admin_permissions(permissions),
            apply,
        )

    def set_role_permissions(self, role, permissions):
        from .permissions import flatten_permissions

        def apply(body):
            saved = body.get("permissions") or permissions
            self.dispatch(SET_ADMIN_PERMISSIONS, saved)
            return saved

        return self._run(
            PERMISSIONS_KEY,
            "updating permissions",
            lambda: self.client.set_role_permissions(
                role, flatten_permissions(permissions)
            ),
            apply,
        )
