"""tsdemo - TimescaleDB hypertable, continuous aggregate, compression and retention demo."""

__version__ = "1.0.0"

# Re-export main components for easy access
from application.demo import DemoReport, DemoRunner
from core.config import Settings, get_settings


__all__ = ["DemoRunner", "DemoReport", "Settings", "get_settings", "__version__"]
