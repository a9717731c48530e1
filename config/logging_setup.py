from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from config.defaults import DEFAULT_ENVIRONMENT

PROJECT_DIR = Path(__file__).resolve().parents[1]


def setup_logging(*, environment: str = DEFAULT_ENVIRONMENT) -> None:
    """Configure application logging.

    - Development: console logs, DEBUG level.
    - Production: console + rotating file logs, INFO level.

    Safe to call multiple times (won't double-add handlers); Streamlit reruns
    the entry script on every interaction.
    """

    root = logging.getLogger()
    if root.handlers:
        return

    env = (environment or DEFAULT_ENVIRONMENT).lower().strip()
    level = logging.INFO if env == "production" else logging.DEBUG

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    handlers.append(console)

    if env == "production":
        logs_dir = PROJECT_DIR / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            logs_dir / "seating.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers)

    # CBC chatter and Streamlit internals stay quiet.
    logging.getLogger("pulp").setLevel(logging.WARNING)
    logging.getLogger("streamlit").setLevel(logging.WARNING)
