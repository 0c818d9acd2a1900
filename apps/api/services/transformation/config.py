"""
Configuration Service

Loads transformation business rules from YAML.
Allows changing thresholds and routine defaults without code changes.

Usage:
    threshold = ConfigService.get("streaks.threshold")

    # Reload config without restart
    ConfigService.reload()
"""

import copy
import yaml
import logging
from typing import Any, Optional, Dict
from pathlib import Path
from functools import reduce

logger = logging.getLogger(__name__)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigService:
    """
    Load and cache transformation rules.

    Defaults come from constants.py; `transformation_rules.yaml` is layered
    on top when present.
    """

    _config: Optional[Dict[str, Any]] = None
    _config_dir: Path = Path(__file__).resolve().parent.parent.parent / "config"
    _config_file: str = "transformation_rules.yaml"

    @classmethod
    def get(cls, key: str = None, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Dot-separated key (e.g., "daily_routine.water_liters")
            default: Default value if key not found

        Returns:
            Configuration value or entire config if no key provided
        """
        if cls._config is None:
            cls._load()

        if key is None:
            return cls._config

        try:
            return reduce(lambda d, k: d[k], key.split("."), cls._config)
        except (KeyError, TypeError):
            return default

    @classmethod
    def reload(cls):
        """Reload configuration from files."""
        cls._config = None
        cls._load()
        logger.info("Transformation configuration reloaded")

    @classmethod
    def _load(cls):
        config = cls._defaults()

        filepath = cls._config_dir / cls._config_file
        if filepath.exists():
            try:
                with open(filepath, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
                if data:
                    config = _deep_merge(config, data)
                    logger.debug(f"Loaded config: {filepath.name}")
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Error loading {filepath.name}: {e}")
        else:
            logger.debug(f"Config file not found: {filepath}, using defaults")

        cls._config = config

    @classmethod
    def _defaults(cls) -> Dict[str, Any]:
        """Build default configuration from constants."""
        from .constants import (
            DIFFICULTY_MULTIPLIERS,
            PHASE_NAMES,
            STREAK_SCORE_THRESHOLD,
            DAILY_ROUTINE_DEFAULTS,
            DEFICIENCY_THRESHOLDS,
            HIGH_CHOLESTEROL_MG_DL,
            HIGH_BODY_FAT_PCT,
            TARGET_BMI,
            GRANDMASTER_MIN_EATING_SCORE,
            GRANDMASTER_MIN_EMOTIONAL_SCORE,
        )

        return copy.deepcopy({
            "streaks": {
                "threshold": STREAK_SCORE_THRESHOLD,
            },
            "difficulty_multipliers": {
                k.value: v for k, v in DIFFICULTY_MULTIPLIERS.items()
            },
            "phases": {
                "names": PHASE_NAMES,
            },
            "daily_routine": DAILY_ROUTINE_DEFAULTS,
            "deficiencies": DEFICIENCY_THRESHOLDS,
            "goals": {
                "target_bmi": TARGET_BMI,
                "high_cholesterol_mg_dl": HIGH_CHOLESTEROL_MG_DL,
                "high_body_fat_pct": HIGH_BODY_FAT_PCT,
            },
            "badges": {
                "grandmaster_min_eating_score": GRANDMASTER_MIN_EATING_SCORE,
                "grandmaster_min_emotional_score": GRANDMASTER_MIN_EMOTIONAL_SCORE,
            },
        })

    @classmethod
    def set(cls, key: str, value: Any):
        """
        Set a configuration value (in memory only).
        Useful for testing.
        """
        if cls._config is None:
            cls._load()

        keys = key.split(".")
        d = cls._config
        for k in keys[:-1]:
            if k not in d:
                d[k] = {}
            d = d[k]
        d[keys[-1]] = value

    @classmethod
    def get_streak_threshold(cls) -> float:
        return float(cls.get("streaks.threshold", 95.0))

    @classmethod
    def get_difficulty_multiplier(cls, difficulty: str) -> float:
        return float(cls.get(f"difficulty_multipliers.{difficulty}", 1.0))

    @classmethod
    def get_routine_default(cls, name: str) -> float:
        return float(cls.get(f"daily_routine.{name}", 0.0))

    @classmethod
    def get_deficiency_threshold(cls, marker: str) -> Optional[float]:
        value = cls.get(f"deficiencies.{marker}")
        return float(value) if value is not None else None
