"""
Client for the freedesktop Secret Service API.

Every operation is a short, ordered chain of bus calls:

    OpenSession  ->  SearchItems  ->  GetSecret / CreateItem / Delete

Each step raises its own error type (see ``errors.py``) so a failure can be
traced to the call that produced it.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from jeepney import Properties, new_method_call

from . import bus
from . import utils
from .errors import (
    DeleteError,
    ItemDetailError,
    ResponseFormatError,
    RetrieveError,
    SearchError,
    SecretCliError,
    SecretNotFoundError,
    SessionError,
    StoreError,
)

# Attributes stamped on every item this tool creates. Records written by
# earlier tools using the same scheme stay readable.
APPLICATION_TAG = "gosecret"
KEY_ATTRIBUTE = "gosecret-key"

logger = logging.getLogger(__name__)


@dataclass
class SecretItem:
    path: str
    label: str
    attributes: Dict[str, str] = field(default_factory=dict)
    secret: bytes = b""
    created: Optional[datetime] = None
    modified: Optional[datetime] = None


def lookup_attributes(key: Optional[str] = None) -> Dict[str, str]:
    attributes = {"application": APPLICATION_TAG}
    if key is not None:
        attributes[KEY_ATTRIBUTE] = key
    return attributes


def select_item(unlocked: List[str], locked: List[str]) -> Optional[str]:
    """Pick the item a lookup resolves to.

    Unlocked items win over locked ones; among duplicates the daemon's order
    is kept and the first one is used.
    """
    if unlocked:
        return unlocked[0]
    if locked:
        return locked[0]
    return None


def _parse_session(body) -> str:
    if len(body) != 2 or not isinstance(body[1], str):
        raise ResponseFormatError(f"failed to parse session response: {body!r}")
    return body[1]


def _parse_search(body) -> Tuple[List[str], List[str]]:
    if len(body) != 2 or not all(isinstance(paths, list) for paths in body):
        raise ResponseFormatError(f"failed to parse search results: {body!r}")
    unlocked, locked = body
    return list(unlocked), list(locked)


def _parse_secret(body) -> bytes:
    # (oayays): session, parameters, value, content type
    if len(body) != 1 or not isinstance(body[0], tuple):
        raise ResponseFormatError("failed to parse secret response: expected one struct")
    struct = body[0]
    if len(struct) >= 3 and isinstance(struct[2], bytes):
        return struct[2]
    raise ResponseFormatError("unexpected secret format")


class SecretService:
    """One connection to the Secret Service daemon.

    Use as a context manager so the connection is closed on every path::

        with SecretService() as svc:
            svc.set_secret("github-token", b"...")
    """

    def __init__(self, conn=None, collection: str = bus.DEFAULT_COLLECTION):
        self.conn = conn if conn is not None else bus.connect()
        self.collection = collection

    def close(self):
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # --- protocol steps ---

    def open_session(self) -> str:
        msg = new_method_call(bus.service_address(), "OpenSession", "sv",
                              ("plain", ("s", "")))
        session = _parse_session(bus.call(self.conn, msg, SessionError, "open session"))
        logger.debug("opened session %s", session)
        return session

    def find_items(self, attributes: Dict[str, str]) -> Tuple[List[str], List[str]]:
        msg = new_method_call(bus.service_address(), "SearchItems", "a{ss}", (attributes,))
        unlocked, locked = _parse_search(bus.call(self.conn, msg, SearchError, "search items"))
        logger.debug("search %r: %d unlocked, %d locked",
                     attributes, len(unlocked), len(locked))
        return unlocked, locked

    def fetch_secret(self, item_path: str, session: str) -> bytes:
        msg = new_method_call(bus.item_address(item_path), "GetSecret", "o", (session,))
        return _parse_secret(bus.call(self.conn, msg, RetrieveError, "get secret"))

    def _get_property(self, item_path: str, name: str, expected: type):
        msg = Properties(bus.item_address(item_path)).get(name)
        body = bus.call(self.conn, msg, ItemDetailError, f"read {name} of {item_path}")
        try:
            (_signature, value), = body
        except (TypeError, ValueError) as exc:
            raise ItemDetailError(f"malformed {name} property of {item_path}") from exc
        if not isinstance(value, expected):
            raise ItemDetailError(f"unexpected {name} property of {item_path}: {value!r}")
        return value

    def get_item_details(self, item_path: str, session: str) -> SecretItem:
        label = self._get_property(item_path, "Label", str)
        attributes = self._get_property(item_path, "Attributes", dict)
        created = self._get_property(item_path, "Created", int)
        modified = self._get_property(item_path, "Modified", int)

        # A locked item still lists; its payload just stays empty.
        try:
            secret = self.fetch_secret(item_path, session)
        except SecretCliError as exc:
            logger.debug("no payload for %s: %s", item_path, exc)
            secret = b""

        try:
            created_at = datetime.fromtimestamp(created)
            modified_at = datetime.fromtimestamp(modified)
        except (OverflowError, ValueError, OSError) as exc:
            raise ItemDetailError(f"bad timestamp on {item_path}: {exc}") from exc

        return SecretItem(
            path=item_path,
            label=label,
            attributes=dict(attributes),
            secret=secret,
            created=created_at,
            modified=modified_at,
        )

    # --- operations ---

    def set_secret(self, key: str, value: bytes):
        session = self.open_session()
        properties = {
            f"{bus.ITEM_IFACE}.Label": ("s", key),
            f"{bus.ITEM_IFACE}.Attributes": ("a{ss}", lookup_attributes(key)),
        }
        secret = (session, b"", value, bus.CONTENT_TYPE)
        msg = new_method_call(bus.collection_address(self.collection), "CreateItem",
                              "a{sv}(oayays)b", (properties, secret, True))
        body = bus.call(self.conn, msg, StoreError, "store secret")
        logger.debug("stored %r in collection %r: %r", key, self.collection, body)

    def get_secret(self, key: str) -> Optional[bytes]:
        """Return the payload stored under ``key``, or None if nothing matches."""
        unlocked, locked = self.find_items(lookup_attributes(key))
        item_path = select_item(unlocked, locked)
        if item_path is None:
            return None
        session = self.open_session()
        return self.fetch_secret(item_path, session)

    def delete_secret(self, key: str) -> int:
        """Delete every item matching ``key``; return how many were removed."""
        unlocked, locked = self.find_items(lookup_attributes(key))
        items = unlocked + locked
        if not items:
            raise SecretNotFoundError(key)
        for item_path in items:
            msg = new_method_call(bus.item_address(item_path), "Delete")
            bus.call(self.conn, msg, DeleteError, "delete item")
            logger.debug("deleted %s", item_path)
        return len(items)

    def list_secrets(self, pattern: str = "", long: bool = False) -> int:
        """Print this tool's items whose label contains ``pattern``.

        Items whose details cannot be read are left out. Returns the number
        of lines printed.
        """
        unlocked, locked = self.find_items(lookup_attributes())
        items = unlocked + locked
        if not items:
            print("No secrets found.")
            return 0

        session = self.open_session()
        shown = 0
        for item_path in items:
            try:
                item = self.get_item_details(item_path, session)
            except ItemDetailError as exc:
                logger.debug("skipping %s: %s", item_path, exc)
                continue
            if pattern and pattern not in item.label:
                continue
            print(utils.format_item(item, long=long))
            shown += 1
        return shown
