"""
Client Session Store
====================

Holds the bearer token on the client side and keeps it across restarts in
a small JSON file, under the fixed key ``token``.

The store has exactly three lifecycle transitions:
    load()        - read the durable copy on startup
    login(token)  - remember a freshly issued token
    logout()      - forget it (also used when the API rejects the token)

It is an ordinary object handed to whatever issues HTTP calls; there is no
module-level session.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union


logger = logging.getLogger(__name__)

TOKEN_KEY = "token"


class SessionStore:
    """Durable holder for the current bearer token."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        """
        Whether a token is held.

        This only says the client *has* a token; the API decides whether
        it is still valid.
        """
        return bool(self._token)

    def load(self) -> Optional[str]:
        """Restore the token saved by a previous run, if any."""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            data = {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            data = {}

        token = data.get(TOKEN_KEY) if isinstance(data, dict) else None
        self._token = token if isinstance(token, str) and token else None
        return self._token

    def login(self, token: str) -> None:
        """Remember a token and persist it."""
        self._token = token
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({TOKEN_KEY: token}), encoding="utf-8")
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            logger.debug(f"Could not restrict permissions on {self.path}")

    def logout(self) -> None:
        """Forget the token and remove the durable copy."""
        self._token = None
        self.path.unlink(missing_ok=True)
