import logging
from typing import Any

from config import PREFERENCE_SCOPE

logger = logging.getLogger(__name__)


class PreferenceStore:
    """Credential store for small user preferences.

    Values live in the settings table under ``<scope>.<key>`` so several
    scopes (installation, user) can share one database. All data operations
    are async.
    """

    def __init__(self, database: Any, scope: str = PREFERENCE_SCOPE) -> None:
        self._db = database
        self.scope = scope

    def _scoped(self, key: str) -> str:
        return f"{self.scope}.{key}"

    async def get_bool(self, key: str, default: bool = False) -> bool:
        """Read a boolean preference, returning default when it was never set."""
        value = await self._db.get_setting(self._scoped(key), default)
        return bool(value)

    async def set_bool(self, key: str, value: bool) -> None:
        """Persist a boolean preference, overwriting any previous value.

        Raises:
            DatabaseError: If the value could not be saved
        """
        await self._db.set_setting(self._scoped(key), bool(value))
        logger.info(f"Preference {self._scoped(key)} set to {bool(value)}")
