"""Application configuration manager wrapping QSettings."""

import logging
import os
from datetime import timedelta
from pathlib import Path

from PySide6.QtCore import QObject, Slot, QSettings

from promptwatch.utils.cost_model import PricingRates

logger = logging.getLogger(__name__)

# Default values
DEFAULTS = {
    "general/projectsRoot": "~/.claude/projects",
    "general/refreshInterval": 2000,
    "general/showHelpers": False,
    "general/interruptionGapSeconds": 3600,
    "pricing/input": 3.0,
    "pricing/cacheWrite": 3.0,
    "pricing/cacheRead": 0.30,
    "pricing/output": 15.0,
    "view/cardHeight": 4,
    "view/viewportHeight": 15,
    "advanced/debugLogging": False,
}


class ConfigManager(QObject):
    """Centralized application settings backed by QSettings."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._settings = QSettings()

    @Slot(str, result=str)
    def get_string(self, key: str) -> str:
        return str(self._settings.value(key, DEFAULTS.get(key, "")))

    @Slot(str, result=int)
    def get_int(self, key: str) -> int:
        val = self._settings.value(key, DEFAULTS.get(key, 0))
        try:
            return int(val)
        except (ValueError, TypeError):
            return DEFAULTS.get(key, 0)

    @Slot(str, result=float)
    def get_float(self, key: str) -> float:
        val = self._settings.value(key, DEFAULTS.get(key, 0.0))
        try:
            return float(val)
        except (ValueError, TypeError):
            return float(DEFAULTS.get(key, 0.0))

    @Slot(str, result=bool)
    def get_bool(self, key: str) -> bool:
        val = self._settings.value(key, DEFAULTS.get(key, False))
        if isinstance(val, bool):
            return val
        if isinstance(val, str):
            return val.lower() in ("true", "1", "yes")
        return bool(val)

    @Slot(str, bool)
    def set_bool(self, key: str, value: bool):
        self._settings.setValue(key, value)

    # Typed views over groups of settings

    def projects_root(self) -> Path:
        return Path(os.path.expanduser(self.get_string("general/projectsRoot")))

    def interruption_gap(self) -> timedelta:
        seconds = self.get_int("general/interruptionGapSeconds")
        if seconds <= 0:
            logger.warning("Ignoring non-positive interruption gap %d", seconds)
            seconds = DEFAULTS["general/interruptionGapSeconds"]
        return timedelta(seconds=seconds)

    def pricing_rates(self) -> PricingRates:
        return PricingRates(
            input=self.get_float("pricing/input"),
            cache_write=self.get_float("pricing/cacheWrite"),
            cache_read=self.get_float("pricing/cacheRead"),
            output=self.get_float("pricing/output"),
        )
