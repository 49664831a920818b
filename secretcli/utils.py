import copy
import logging.config
from datetime import datetime

LABEL_WIDTH = 30
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_CFG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(name)s: %(levelname)s: %(message)s"},
    },
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "secretcli": {"handlers": ["stderr"], "level": "WARNING", "propagate": False},
    },
}


def setup_logging(verbose: bool = False):
    cfg = copy.deepcopy(LOG_CFG)
    cfg["loggers"]["secretcli"]["level"] = "DEBUG" if verbose else "WARNING"
    logging.config.dictConfig(cfg)


def format_timestamp(ts: datetime | None) -> str:
    return ts.strftime(TIMESTAMP_FORMAT) if ts else "-"


def format_item(item, long: bool = False) -> str:
    line = f"{item.label.ljust(LABEL_WIDTH)} {format_timestamp(item.created)}"
    if long:
        line += f"  {format_timestamp(item.modified)}  {item.path}"
    return line
