"""secretcli: store and fetch named secrets through the freedesktop Secret Service."""

__version__ = "0.1.0"
