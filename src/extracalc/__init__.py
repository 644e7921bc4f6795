"""extracalc - Async client for the EtherCalc room API.

Create, read, overwrite, export and edit EtherCalc rooms. Remote failures
are returned as values, never raised.
"""

__version__ = "0.1.0"

from loguru import logger

from extracalc.client import (
    CSV,
    DEFAULT_SNAPSHOT,
    SOCIALCALC,
    XLSX,
    EtherCalcClient,
)
from extracalc.config import ClientConfig, Settings, get_settings
from extracalc.results import (
    Body,
    Failure,
    FormatError,
    HTTPErrorResult,
    JSONValue,
    Outcome,
    is_failure,
)

# Silent until the application opts in with logger.enable("extracalc")
# or extracalc.logging.setup_logging
logger.disable("extracalc")

__all__ = [
    "CSV",
    "DEFAULT_SNAPSHOT",
    "SOCIALCALC",
    "XLSX",
    "Body",
    "ClientConfig",
    "EtherCalcClient",
    "Failure",
    "FormatError",
    "HTTPErrorResult",
    "JSONValue",
    "Outcome",
    "Settings",
    "__version__",
    "get_settings",
    "is_failure",
]
