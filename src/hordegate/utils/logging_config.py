import logging
import os
import sys
from datetime import datetime

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_dir: str = "logs") -> None:
    """
    Configure the root logger once per process.

    Console output always goes to stdout. When ``log_dir`` is non-empty a
    per-run file handler is added under it as well.
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        handlers.append(
            logging.FileHandler(os.path.join(log_dir, f"hordegate_{stamp}.log"), encoding="utf-8")
        )

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO; the poll loop would flood the output
    logging.getLogger("httpx").setLevel(logging.WARNING)
