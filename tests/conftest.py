"""In-memory stand-in for the Secret Service daemon."""

import itertools

import pytest
from jeepney.low_level import HeaderFields
from jeepney.wrappers import new_error, new_method_return

from secretcli import bus

ITEM_PREFIX = "/org/freedesktop/secrets/collection/login/"
NO_SUCH_OBJECT = "org.freedesktop.Secret.Error.NoSuchObject"


class FakeSecretDaemon:
    """Answers jeepney method calls the way a Secret Service daemon would.

    Set ``fail[member]`` or ``fail[(member, path)]`` to an error name to make
    that call return a bus error.
    """

    def __init__(self):
        self.items = {}
        self.sessions = []
        self.calls = []
        self.fail = {}
        self.closed = 0
        self._ids = itertools.count(1)
        self._clock = itertools.count(1_700_000_000, 60)

    # --- test helpers ---

    def add_item(self, label, attributes, secret=b"", locked=False, created=None):
        path = f"{ITEM_PREFIX}{next(self._ids)}"
        now = created if created is not None else next(self._clock)
        self.items[path] = {
            "label": label,
            "attributes": dict(attributes),
            "secret": secret,
            "locked": locked,
            "created": now,
            "modified": now,
        }
        return path

    def members(self):
        return [member for _path, member in self.calls]

    # --- connection interface ---

    def close(self):
        self.closed += 1

    def send_and_get_reply(self, msg):
        path = msg.header.fields[HeaderFields.path]
        member = msg.header.fields[HeaderFields.member]
        self.calls.append((path, member))

        error = self.fail.get((member, path)) or self.fail.get(member)
        if error:
            return new_error(msg, error, "s", ("simulated failure",))
        return getattr(self, f"_on_{member}")(msg, path)

    # --- handlers ---

    def _on_OpenSession(self, msg, path):
        algorithm, _input = msg.body
        if algorithm != "plain":
            return new_error(msg, "org.freedesktop.DBus.Error.NotSupported", "s", (algorithm,))
        session = f"/org/freedesktop/secrets/session/{len(self.sessions) + 1}"
        self.sessions.append(session)
        return new_method_return(msg, "vo", (("s", ""), session))

    def _matching(self, attributes):
        return [p for p, item in self.items.items()
                if all(item["attributes"].get(k) == v for k, v in attributes.items())]

    def _on_SearchItems(self, msg, path):
        (attributes,) = msg.body
        matches = self._matching(attributes)
        unlocked = [p for p in matches if not self.items[p]["locked"]]
        locked = [p for p in matches if self.items[p]["locked"]]
        return new_method_return(msg, "aoao", (unlocked, locked))

    def _on_CreateItem(self, msg, path):
        properties, secret, replace = msg.body
        session, _params, value, _content_type = secret
        if session not in self.sessions:
            return new_error(msg, "org.freedesktop.Secret.Error.NoSession", "s", (session,))
        _sig, label = properties["org.freedesktop.Secret.Item.Label"]
        _sig, attributes = properties["org.freedesktop.Secret.Item.Attributes"]

        existing = [p for p in self._matching(attributes)
                    if self.items[p]["attributes"] == attributes]
        if replace and existing:
            item = self.items[existing[0]]
            item.update(label=label, secret=value, modified=next(self._clock))
            item_path = existing[0]
        else:
            item_path = self.add_item(label, attributes, value)
        return new_method_return(msg, "oo", (item_path, "/"))

    def _on_GetSecret(self, msg, path):
        if path not in self.items:
            return new_error(msg, NO_SUCH_OBJECT, "s", (path,))
        (session,) = msg.body
        item = self.items[path]
        if session not in self.sessions:
            return new_error(msg, "org.freedesktop.Secret.Error.NoSession", "s", (session,))
        if item["locked"]:
            return new_error(msg, "org.freedesktop.Secret.Error.IsLocked", "s", (path,))
        return new_method_return(msg, "(oayays)",
                                 ((session, b"", item["secret"], "text/plain"),))

    def _on_Delete(self, msg, path):
        if self.items.pop(path, None) is None:
            return new_error(msg, NO_SUCH_OBJECT, "s", (path,))
        return new_method_return(msg, "o", ("/",))

    def _on_Get(self, msg, path):
        if path not in self.items:
            return new_error(msg, NO_SUCH_OBJECT, "s", (path,))
        _iface, name = msg.body
        item = self.items[path]
        values = {
            "Label": ("s", item["label"]),
            "Attributes": ("a{ss}", dict(item["attributes"])),
            "Created": ("t", item["created"]),
            "Modified": ("t", item["modified"]),
        }
        return new_method_return(msg, "v", (values[name],))


class ScriptedConnection:
    """Replies with canned bodies, for malformed-response tests."""

    def __init__(self, *bodies):
        self.bodies = list(bodies)
        self.closed = 0

    def send_and_get_reply(self, msg):
        return new_method_return(msg, None, self.bodies.pop(0))

    def close(self):
        self.closed += 1


@pytest.fixture
def daemon(monkeypatch):
    fake = FakeSecretDaemon()
    monkeypatch.setattr(bus, "connect", lambda: fake)
    return fake
