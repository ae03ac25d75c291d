""" ciwatch logger """
import logging

import requests
from rich.logging import RichHandler


def init_logger(debug=False):
    """Initialize the ciwatch logger.

    Host integrations that already configure logging can skip this;
    every module logs through ``logging.getLogger(__name__)``."""

    logger = logging.getLogger(__name__.split(".")[0])
    for handler in list(logger.handlers):  # pragma: no cover
        logger.removeHandler(handler)

    logger.addHandler(
        RichHandler(
            rich_tracebacks=True,
            show_level=debug,
            show_path=debug,
            tracebacks_show_locals=debug,
        )
    )
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False

    if debug:  # pragma: no cover
        # route urllib3's wire logging through the same handler
        urllib3_logger = logging.getLogger(requests.packages.urllib3.__name__)
        for handler in list(urllib3_logger.handlers):
            urllib3_logger.removeHandler(handler)
        urllib3_logger.addHandler(RichHandler())
        urllib3_logger.setLevel(logging.DEBUG)
    return logger
