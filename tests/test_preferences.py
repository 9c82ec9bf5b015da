"""Tests for the persisted preference store."""
from config import BIOMETRIC_PREF_KEY
from core import ServiceContainer
from database import db
from services.preferences import PreferenceStore


class TestPreferenceStore:
    async def test_defaults_to_false(self, services: ServiceContainer):
        assert await services.preferences.get_bool(BIOMETRIC_PREF_KEY) is False

    async def test_explicit_default(self, services: ServiceContainer):
        assert await services.preferences.get_bool("never_set", default=True) is True

    async def test_set_and_read_back(self, services: ServiceContainer):
        await services.preferences.set_bool(BIOMETRIC_PREF_KEY, True)
        assert await services.preferences.get_bool(BIOMETRIC_PREF_KEY) is True

    async def test_overwrite(self, services: ServiceContainer):
        await services.preferences.set_bool(BIOMETRIC_PREF_KEY, True)
        await services.preferences.set_bool(BIOMETRIC_PREF_KEY, False)
        assert await services.preferences.get_bool(BIOMETRIC_PREF_KEY) is False

    async def test_visible_to_a_new_store(self, services: ServiceContainer):
        await services.preferences.set_bool(BIOMETRIC_PREF_KEY, True)
        assert await PreferenceStore(db).get_bool(BIOMETRIC_PREF_KEY) is True

    async def test_scopes_are_isolated(self, services: ServiceContainer):
        other = PreferenceStore(db, scope="user_prefs")
        await other.set_bool(BIOMETRIC_PREF_KEY, True)
        assert await services.preferences.get_bool(BIOMETRIC_PREF_KEY) is False

    async def test_stored_under_scoped_key(self, services: ServiceContainer):
        await services.preferences.set_bool(BIOMETRIC_PREF_KEY, True)
        assert await db.get_setting(f"app_prefs.{BIOMETRIC_PREF_KEY}") is True
