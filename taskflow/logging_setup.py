import logging
import sys

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """
    One stderr handler on the root logger.

    Third-party loggers are left at WARNING so request noise from the
    HTTP stack and the Google client does not drown application logs.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        if getattr(handler, "_taskflow", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler._taskflow = True
    root.addHandler(handler)

    for noisy in ("httpx", "httpcore", "pymongo", "google", "grpc"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.captureWarnings(True)
