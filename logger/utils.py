import logging
import os
from typing import Optional

from matching.criteria import MatchCriteria
from matching.response import ResponseDescriptor

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

log = logging.getLogger("fuzz.match")


def configure_logging(level=logging.INFO, timestamp_prefix: Optional[str] = None, log_dir: str = "logger/logs") -> logging.Logger:
    """
    Send log records to stderr and, when a timestamp prefix is given, to
    {log_dir}/{timestamp_prefix}_fuzz.log for the current run.
    """
    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(getattr(h, "_fuzz_handler", False) for h in root.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        stream._fuzz_handler = True
        root.addHandler(stream)

    if timestamp_prefix:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_dir, f"{timestamp_prefix}_fuzz.log"))
        file_handler.setFormatter(formatter)
        file_handler._fuzz_handler = True
        root.addHandler(file_handler)

    return root


def log_match_decision(criteria: MatchCriteria, response: ResponseDescriptor, matched: bool):
    if matched:
        log.info("Response %s matched:%s", response.code, criteria.describe())
    else:
        log.debug("Response %s did not match:%s", response.code, criteria.describe())
