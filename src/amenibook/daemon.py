"""
Booking Daemon

Background service that keeps the scheduler running until SIGINT/SIGTERM,
then lets any in-flight pass finish before exiting.
"""

import logging
import signal
import threading
from typing import Optional

from .app import create_app
from .config import load_config

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def run(config: dict, shutdown: Optional[threading.Event] = None) -> None:
    """Start the scheduler and block until ``shutdown`` is set."""
    shutdown = shutdown or threading.Event()

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        shutdown.set()

    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    app = create_app(config)
    app.scheduler.start()
    logger.info("Booking daemon started. Press Ctrl+C to stop")

    try:
        shutdown.wait()
    finally:
        app.scheduler.stop()
        logger.info("Booking daemon stopped")


def main(config_path: Optional[str] = None) -> None:
    config = load_config(config_path)
    configure_logging(config["log_level"], config.get("log_file"))
    run(config)


if __name__ == "__main__":
    main()
