import logging

from jeepney import DBusAddress
from jeepney.wrappers import DBusErrorResponse, unwrap_msg
from jeepney.io.blocking import open_dbus_connection

from .errors import BusConnectionError

BUS_NAME = "org.freedesktop.secrets"
SERVICE_PATH = "/org/freedesktop/secrets"
SERVICE_IFACE = "org.freedesktop.Secret.Service"
COLLECTION_IFACE = "org.freedesktop.Secret.Collection"
ITEM_IFACE = "org.freedesktop.Secret.Item"

DEFAULT_COLLECTION = "default"
CONTENT_TYPE = "text/plain"

logger = logging.getLogger(__name__)


def connect():
    try:
        conn = open_dbus_connection(bus="SESSION")
    except (OSError, KeyError, ValueError) as exc:
        # KeyError: DBUS_SESSION_BUS_ADDRESS is not set
        raise BusConnectionError(f"failed to connect to session bus: {exc}") from exc
    logger.debug("connected to session bus as %s", conn.unique_name)
    return conn


def service_address() -> DBusAddress:
    return DBusAddress(SERVICE_PATH, bus_name=BUS_NAME, interface=SERVICE_IFACE)


def collection_address(alias: str = DEFAULT_COLLECTION) -> DBusAddress:
    return DBusAddress(f"{SERVICE_PATH}/aliases/{alias}",
                       bus_name=BUS_NAME, interface=COLLECTION_IFACE)


def item_address(item_path: str) -> DBusAddress:
    return DBusAddress(item_path, bus_name=BUS_NAME, interface=ITEM_IFACE)


def call(conn, msg, error_cls, step: str) -> tuple:
    """Send ``msg`` and return the reply body.

    Bus errors and transport failures are re-raised as ``error_cls`` with
    ``failed to <step>`` in front of the underlying message.
    """
    try:
        reply = conn.send_and_get_reply(msg)
        return unwrap_msg(reply)
    except (DBusErrorResponse, OSError) as exc:
        raise error_cls(f"failed to {step}: {exc}") from exc
