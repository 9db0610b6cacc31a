"""Tests for the asset reducer and store actions."""

from unittest.mock import MagicMock

import pytest

from assets.factories import AssetFactory, AssetTypeFactory
from assets.services.client import ApiError, AuthenticationError
from assets.services.store import (
    ADD_ASSET,
    CLEAR_ERROR,
    DELETE_ASSET,
    SET_ASSETS,
    SET_ERROR,
    SET_LOADING,
    SET_SELECTED_ASSET,
    UPDATE_ASSET,
    Action,
    AssetState,
    AssetStore,
    reduce,
)


class TestReducer:
    def test_set_loading_clears_error(self):
        state = AssetState(error="boom")
        new = reduce(state, Action(SET_LOADING, True))
        assert new.loading is True
        assert new.error is None

    def test_set_loading_false_keeps_error(self):
        state = AssetState(loading=True, error="boom")
        new = reduce(state, Action(SET_LOADING, False))
        assert new.loading is False
        assert new.error == "boom"

    def test_set_assets_clears_loading_and_error(self, assets):
        state = AssetState(loading=True, error="boom")
        new = reduce(state, Action(SET_ASSETS, assets))
        assert new.assets == assets
        assert new.loading is False
        assert new.error is None

    def test_set_error_clears_loading(self):
        new = reduce(AssetState(loading=True), Action(SET_ERROR, "bad"))
        assert new.error == "bad"
        assert new.loading is False

    def test_add_asset_appends(self, assets):
        extra = AssetFactory()
        new = reduce(AssetState(assets=assets), Action(ADD_ASSET, extra))
        assert new.assets[-1] is extra
        assert len(new.assets) == len(assets) + 1

    def test_update_asset_replaces_by_id(self, assets):
        changed = dict(assets[1], brand="Wilo")
        new = reduce(AssetState(assets=assets), Action(UPDATE_ASSET, changed))
        assert new.assets[1]["brand"] == "Wilo"
        assert [a["_id"] for a in new.assets] == [a["_id"] for a in assets]

    def test_update_asset_refreshes_selected(self, assets):
        changed = dict(assets[0], status="retired")
        state = AssetState(assets=assets, selected_asset=assets[0])
        new = reduce(state, Action(UPDATE_ASSET, changed))
        assert new.selected_asset["status"] == "retired"

    def test_update_asset_leaves_other_selection(self, assets):
        changed = dict(assets[0], status="retired")
        state = AssetState(assets=assets, selected_asset=assets[2])
        new = reduce(state, Action(UPDATE_ASSET, changed))
        assert new.selected_asset is assets[2]

    def test_update_unknown_asset_is_noop(self, assets):
        stranger = AssetFactory()
        new = reduce(AssetState(assets=assets), Action(UPDATE_ASSET, stranger))
        assert new.assets == assets

    def test_delete_asset_removes_and_clears_selection(self, assets):
        target = assets[0]["_id"]
        state = AssetState(assets=assets, selected_asset=assets[0])
        new = reduce(state, Action(DELETE_ASSET, target))
        assert target not in [a["_id"] for a in new.assets]
        assert new.selected_asset is None

    def test_clear_error(self):
        assert reduce(AssetState(error="x"), Action(CLEAR_ERROR)).error is None

    def test_set_selected_asset(self, asset):
        new = reduce(AssetState(), Action(SET_SELECTED_ASSET, asset))
        assert new.selected_asset is asset

    def test_reducer_is_pure(self, assets):
        state = AssetState(assets=assets)
        reduce(state, Action(DELETE_ASSET, assets[0]["_id"]))
        assert len(state.assets) == 3

    def test_unknown_action_raises(self):
        with pytest.raises(ValueError, match="Unknown action type"):
            reduce(AssetState(), Action("NOPE"))


class TestAssetStore:
    def _store(self, **responses):
        client = MagicMock()
        for name, value in responses.items():
            if isinstance(value, Exception):
                getattr(client, name).side_effect = value
            else:
                getattr(client, name).return_value = value
        return AssetStore(client)

    def test_fetch_assets_sets_state(self, assets):
        store = self._store(get_assets={"success": True, "assets": assets})
        assert store.fetch_assets() == assets
        assert store.state.assets == assets
        assert store.state.loading is False
        assert store.last_error is None

    def test_fetch_assets_failure_sets_error(self):
        store = self._store(get_assets=ApiError("Backend down", status=500))
        assert store.fetch_assets() is None
        assert store.state.error == "Backend down"
        assert store.state.loading is False
        assert isinstance(store.last_error, ApiError)

    def test_unexpected_failure_clears_loading(self):
        store = self._store(get_assets=RuntimeError("connection reset"))
        with pytest.raises(RuntimeError):
            store.fetch_assets()
        assert store.state.loading is False

    def test_error_without_message_uses_fallback(self):
        store = self._store(get_assets=ApiError(""))
        store.fetch_assets()
        assert store.state.error == "An error occurred while fetching assets"

    def test_authentication_error_is_recorded(self):
        store = self._store(get_assets=AuthenticationError("expired", status=401))
        store.fetch_assets()
        assert isinstance(store.last_error, AuthenticationError)

    def test_create_asset_appends_confirmed_record(self, assets):
        created = AssetFactory(tagId="NEW-1")
        store = self._store(create_asset={"success": True, "asset": created})
        store.dispatch(SET_ASSETS, assets)
        result = store.create_asset({"tagId": "NEW-1"})
        assert result == created
        assert store.state.assets[-1] == created

    def test_create_asset_failure_leaves_list(self, assets):
        store = self._store(create_asset=ApiError("Tag ID already exists"))
        store.dispatch(SET_ASSETS, assets)
        assert store.create_asset({"tagId": "PJ-A001"}) is None
        assert store.state.assets == assets
        assert store.state.error == "Tag ID already exists"

    def test_update_asset_dispatches_update(self, assets):
        changed = dict(assets[0], brand="Daikin")
        store = self._store(update_asset={"success": True, "asset": changed})
        store.dispatch(SET_ASSETS, assets)
        store.update_asset(assets[0]["_id"], {"brand": "Daikin"})
        assert store.state.assets[0]["brand"] == "Daikin"

    def test_delete_asset_removes(self, assets):
        store = self._store(delete_asset={"success": True})
        store.dispatch(SET_ASSETS, assets)
        store.delete_asset(assets[0]["_id"])
        assert len(store.state.assets) == 2

    def test_fetch_asset_updates_list_and_selection(self, assets):
        fresh = dict(assets[1], status="retired")
        store = self._store(get_asset={"success": True, "asset": fresh})
        store.dispatch(SET_ASSETS, assets)
        result = store.fetch_asset(fresh["_id"])
        assert result == fresh
        assert store.state.assets[1]["status"] == "retired"
        assert store.state.selected_asset == fresh

    def test_subscribe_and_unsubscribe(self, assets):
        store = self._store(get_assets={"success": True, "assets": assets})
        seen = []
        unsubscribe = store.subscribe(seen.append)
        store.fetch_assets()
        assert seen[-1].assets == assets
        count = len(seen)
        unsubscribe()
        store.clear_error()
        assert len(seen) == count

    def test_stale_response_is_dropped(self, assets):
        store = self._store()
        newer = [AssetFactory(tagId="NEWER")]

        def slow_fetch(search=None):
            # A second fetch starts and finishes while this one is in flight
            store.client.get_assets = MagicMock(
                return_value={"success": True, "assets": newer}
            )
            store.fetch_assets()
            return {"success": True, "assets": assets}

        store.client.get_assets.side_effect = slow_fetch
        assert store.fetch_assets() is None
        assert store.state.assets == newer

    def test_stale_error_is_dropped(self, assets):
        store = self._store()

        def failing_fetch(search=None):
            store.client.get_assets = MagicMock(
                return_value={"success": True, "assets": assets}
            )
            store.fetch_assets()
            raise ApiError("late failure")

        store.client.get_assets.side_effect = failing_fetch
        store.fetch_assets()
        assert store.state.error is None
        assert store.state.assets == assets

    def test_merge_digital_asset(self, asset):
        store = self._store()
        store.dispatch(SET_ASSETS, [asset])
        block = {"url": "/uploads/qr.png", "generatedAt": "2024-05-01T10:00:00Z"}
        updated = store.merge_digital_asset(asset, "qrCode", block)
        assert updated["digitalAssets"]["qrCode"] == block
        assert store.state.assets[0]["digitalAssets"]["qrCode"] == block
        assert "qrCode" not in asset["digitalAssets"]

    def test_asset_type_crud(self):
        chiller = AssetTypeFactory(name="Chiller")
        pump = AssetTypeFactory(name="Pump")
        store = self._store(
            get_asset_types={"success": True, "assetTypes": [chiller]},
            create_asset_type={"success": True, "assetType": pump},
            delete_asset_type={"success": True},
        )
        store.fetch_asset_types()
        store.create_asset_type({"name": "Pump", "fields": []})
        assert [t["name"] for t in store.state.asset_types] == ["Chiller", "Pump"]
        store.delete_asset_type(chiller["_id"])
        assert [t["name"] for t in store.state.asset_types] == ["Pump"]

    def test_set_role_permissions_flattens(self):
        store = self._store(set_role_permissions={"success": True})
        nested = {"assetManagement": {"view": True, "delete": False}}
        store.set_role_permissions("viewer", nested)
        store.client.set_role_permissions.assert_called_once_with(
            "viewer",
            {"assetManagement.view": True, "assetManagement.delete": False},
        )
        assert store.state.admin_permissions == nested

    def test_fetch_admin_permissions(self):
        permissions = {"analytics": {"view": True}}
        store = self._store(
            get_admin_permissions={"success": True, "permissions": permissions}
        )
        assert store.fetch_admin_permissions("manager") == permissions
        store.client.get_admin_permissions.assert_called_once_with("manager")
