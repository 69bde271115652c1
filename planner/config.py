import logging
import os
from dotenv import load_dotenv

load_dotenv()


def _poll_interval() -> int:
    # The reminder catch window is derived from this, keep it in the 30-60s band.
    raw = int(os.getenv('PLANNER_POLL_INTERVAL', 30))
    return max(30, min(60, raw))


config = {
    'db_path': os.getenv('PLANNER_DB_PATH', 'tasks.db'),
    'storage_key': os.getenv('PLANNER_STORAGE_KEY', 'schedulingTasks'),
    'poll_interval': _poll_interval(),
    'soon_minutes': int(os.getenv('PLANNER_SOON_MINUTES', 5)),
    'log_level': os.getenv('PLANNER_LOG_LEVEL', 'INFO').upper(),
}


def configure_logging(level: str = None) -> None:
    """Configure the root logger for scripts and the demo."""
    logging.basicConfig(
        level=getattr(logging, level or config['log_level'], logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
