from __future__ import annotations
from contextlib import closing
from typing import Callable, Optional
import logging

import secretstorage
from secretstorage.exceptions import SecretStorageException

from .config import TokenSchema

_LOGGER = logging.getLogger(__name__)

class SecretStoreError(Exception):
    pass

class TokenStore:
    """Bearer token kept in the freedesktop Secret Service (GNOME keyring).

    Items are matched by the libsecret schema name plus the
    ``token_string = user_token`` attribute, so tokens saved by the panel
    settings dialog are found here too.
    """

    def __init__(self, schema: Optional[TokenSchema] = None, connect: Callable = secretstorage.dbus_init):
        self.schema = schema or TokenSchema()
        self._connect = connect

    def lookup(self) -> Optional[str]:
        try:
            with closing(self._connect()) as conn:
                for item in secretstorage.search_items(conn, self.schema.attributes):
                    if item.is_locked():
                        _LOGGER.warning("Token item under %s is locked, not prompting", self.schema.name)
                        return None
                    return item.get_secret().decode("utf-8")
        except (SecretStorageException, UnicodeDecodeError) as e:
            _LOGGER.warning("Could not read token from secret store: %s", e)
            return None
        _LOGGER.warning("No token stored under %s", self.schema.name)
        return None

    def store(self, token: str, label: str = "Home Assistant token") -> None:
        if not token:
            raise ValueError("token must not be empty")
        try:
            with closing(self._connect()) as conn:
                collection = secretstorage.get_default_collection(conn)
                if collection.is_locked():
                    collection.unlock()
                collection.create_item(label, self.schema.attributes, token.encode("utf-8"), replace=True)
        except SecretStorageException as e:
            raise SecretStoreError(f"Could not store token: {e}") from e
        _LOGGER.info("Token stored under %s", self.schema.name)

    def clear(self) -> int:
        removed = 0
        try:
            with closing(self._connect()) as conn:
                for item in list(secretstorage.search_items(conn, self.schema.attributes)):
                    item.delete()
                    removed += 1
        except SecretStorageException as e:
            raise SecretStoreError(f"Could not clear token: {e}") from e
        return removed
