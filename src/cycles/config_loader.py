"""Load, validate, and hot-reload the Cyclewise cycle engine configuration.

The config lives in ``cycle_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_cycle_config()`` to re-read from
disk after a policy update without a restart.  Set
``CYCLEWISE_CYCLE_CONFIG_PATH`` to point the loader at another file.

Usage::

    from src.cycles.config_loader import get_cycle_config

    config = get_cycle_config()
    config.prediction.luteal_phase_days      # 14
    config.confidence.volume_bonus(6)        # 35
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.config import get_settings

logger = logging.getLogger("cyclewise.cycles.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "cycle_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class PredictionConfig:
    """Calendar prediction settings."""

    fallback_cycle_length: int = 28
    fallback_period_length: int = 5
    min_cycle_length: int = 15
    max_cycle_length: int = 45
    min_period_length: int = 1
    max_period_length: int = 10
    luteal_phase_days: int = 14
    fertile_days_before_ovulation: int = 5
    fertile_days_after_ovulation: int = 1
    missed_period_factor: float = 1.5


@dataclass
class Tier:
    """One threshold → bonus step of the confidence heuristic."""

    threshold: float
    bonus: int


@dataclass
class ConfidenceConfig:
    """Confidence scoring policy."""

    base: int = 50
    no_history: int = 30
    floor: int = 10
    ceiling: int = 95
    volume_bonuses: list[Tier] = field(
        default_factory=lambda: [Tier(3, 20), Tier(6, 15), Tier(12, 10)]
    )
    variability_tiers: list[Tier] = field(
        default_factory=lambda: [Tier(2, 15), Tier(4, 10), Tier(6, 5)]
    )
    variability_penalty: int = -10
    recency_window_days: int = 180
    recency_min_cycles: int = 3
    recency_bonus: int = 10

    def volume_bonus(self, n_cycles: int) -> int:
        """Sum every volume bonus whose minimum is reached."""
        return sum(t.bonus for t in self.volume_bonuses if n_cycles >= t.threshold)

    def variability_adjustment(self, variability: float) -> int:
        """Return the bonus of the first tier covering ``variability``."""
        for tier in self.variability_tiers:
            if variability <= tier.threshold:
                return tier.bonus
        return self.variability_penalty

    def clamp(self, score: int) -> int:
        return min(max(score, self.floor), self.ceiling)


@dataclass
class TrendConfig:
    """Trend analysis and anomaly thresholds."""

    min_cycles: int = 5
    normal_min_days: int = 21
    normal_max_days: int = 35
    long_period_days: int = 7
    amenorrhea_gap_days: int = 90
    regular_max_std: float = 2.0
    moderate_max_std: float = 5.0


@dataclass
class ReminderDefaults:
    """Default reminder settings for users who never changed them."""

    enabled: bool = False
    days_before: int = 5
    snooze_duration_hours: int = 24


@dataclass
class CycleConfig:
    """Complete, validated cycle engine configuration.

    This is the single in-memory representation of cycle_config.yaml.
    The predictor, trend analyzer and reminder planner all read from it.
    """

    version: str
    prediction: PredictionConfig
    confidence: ConfidenceConfig
    trends: TrendConfig
    reminders: ReminderDefaults
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when cycle_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    import yaml  # pyyaml

    if not path.exists():
        raise FileNotFoundError(f"Cycle config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> CycleConfig:
    """Validate the raw YAML dict and construct a CycleConfig.

    Missing sections and keys fall back to the dataclass defaults; present
    values must have the right type and sit in a sane range.

    Args:
        raw: Parsed YAML dict.

    Returns:
        Validated CycleConfig instance.

    Raises:
        ConfigValidationError: If any value is invalid.
    """
    errors: list[str] = []

    def _int(d: dict, key: str, section: str, default: int, minimum: int | None = None) -> int:
        val = d.get(key, default)
        try:
            num = int(val)
        except (TypeError, ValueError):
            errors.append(f"{section}.{key} must be an integer, got {val!r}")
            return default
        if minimum is not None and num < minimum:
            errors.append(f"{section}.{key} = {num} is below the minimum of {minimum}")
        return num

    def _float(d: dict, key: str, section: str, default: float) -> float:
        val = d.get(key, default)
        if isinstance(val, bool):
            errors.append(f"{section}.{key} must be a number, got {val!r}")
            return default
        try:
            return float(val)
        except (TypeError, ValueError):
            errors.append(f"{section}.{key} must be a number, got {val!r}")
            return default

    def _bool(d: dict, key: str, section: str, default: bool) -> bool:
        val = d.get(key, default)
        if not isinstance(val, bool):
            errors.append(f"{section}.{key} must be true or false, got {val!r}")
            return default
        return val

    def _range(d: dict, key: str, section: str, default: tuple[int, int]) -> tuple[int, int]:
        val = d.get(key, list(default))
        if not isinstance(val, (list, tuple)) or len(val) != 2:
            errors.append(f"{section}.{key} must be a [low, high] pair, got {val!r}")
            return default
        try:
            low, high = int(val[0]), int(val[1])
        except (TypeError, ValueError):
            errors.append(f"{section}.{key} must contain integers, got {val!r}")
            return default
        if low > high:
            errors.append(f"{section}.{key} lower bound {low} exceeds upper bound {high}")
        return low, high

    def _tiers(items: Any, section: str, threshold_key: str) -> list[Tier] | None:
        if items is None:
            return None
        if not isinstance(items, list):
            errors.append(f"{section} must be a list, got {items!r}")
            return None
        tiers: list[Tier] = []
        for i, item in enumerate(items):
            if not isinstance(item, dict) or threshold_key not in item or "bonus" not in item:
                errors.append(
                    f"{section}[{i}] must be a mapping with '{threshold_key}' and 'bonus'"
                )
                continue
            try:
                tiers.append(Tier(threshold=float(item[threshold_key]), bonus=int(item["bonus"])))
            except (TypeError, ValueError):
                errors.append(f"{section}[{i}] has a non-numeric value: {item!r}")
        thresholds = [t.threshold for t in tiers]
        if thresholds != sorted(thresholds):
            errors.append(f"{section} thresholds must be ascending, got {thresholds}")
        return tiers

    version = str(raw.get("version", "1.0"))

    # ── Prediction ──
    pr_raw = raw.get("prediction") or {}
    fw_raw = pr_raw.get("fertile_window") or {}
    cycle_range = _range(pr_raw, "cycle_length_range", "prediction", (15, 45))
    period_range = _range(pr_raw, "period_length_range", "prediction", (1, 10))
    prediction = PredictionConfig(
        fallback_cycle_length=_int(pr_raw, "fallback_cycle_length", "prediction", 28, 1),
        fallback_period_length=_int(pr_raw, "fallback_period_length", "prediction", 5, 1),
        min_cycle_length=cycle_range[0],
        max_cycle_length=cycle_range[1],
        min_period_length=period_range[0],
        max_period_length=period_range[1],
        luteal_phase_days=_int(pr_raw, "luteal_phase_days", "prediction", 14, 1),
        fertile_days_before_ovulation=_int(
            fw_raw, "days_before_ovulation", "prediction.fertile_window", 5, 0
        ),
        fertile_days_after_ovulation=_int(
            fw_raw, "days_after_ovulation", "prediction.fertile_window", 1, 0
        ),
        missed_period_factor=_float(pr_raw, "missed_period_factor", "prediction", 1.5),
    )

    # ── Confidence ──
    cf_raw = raw.get("confidence") or {}
    rec_raw = cf_raw.get("recency") or {}
    bounds = _range(cf_raw, "bounds", "confidence", (10, 95))
    defaults = ConfidenceConfig()
    volume_bonuses = _tiers(
        cf_raw.get("volume_bonuses"), "confidence.volume_bonuses", "min_cycles"
    )
    variability_tiers = _tiers(
        cf_raw.get("variability_tiers"), "confidence.variability_tiers", "max_days"
    )
    confidence = ConfidenceConfig(
        base=_int(cf_raw, "base", "confidence", 50),
        no_history=_int(cf_raw, "no_history", "confidence", 30),
        floor=bounds[0],
        ceiling=bounds[1],
        volume_bonuses=volume_bonuses if volume_bonuses is not None else defaults.volume_bonuses,
        variability_tiers=(
            variability_tiers if variability_tiers is not None else defaults.variability_tiers
        ),
        variability_penalty=_int(cf_raw, "variability_penalty", "confidence", -10),
        recency_window_days=_int(rec_raw, "window_days", "confidence.recency", 180, 1),
        recency_min_cycles=_int(rec_raw, "min_cycles", "confidence.recency", 3, 1),
        recency_bonus=_int(rec_raw, "bonus", "confidence.recency", 10),
    )
    if not (0 <= confidence.floor and confidence.ceiling <= 100):
        errors.append(
            f"confidence.bounds [{confidence.floor}, {confidence.ceiling}] "
            "must lie within [0, 100]"
        )

    # ── Trends ──
    tr_raw = raw.get("trends") or {}
    normal_range = _range(tr_raw, "normal_cycle_range", "trends", (21, 35))
    trends = TrendConfig(
        min_cycles=_int(tr_raw, "min_cycles", "trends", 5, 2),
        normal_min_days=normal_range[0],
        normal_max_days=normal_range[1],
        long_period_days=_int(tr_raw, "long_period_days", "trends", 7, 1),
        amenorrhea_gap_days=_int(tr_raw, "amenorrhea_gap_days", "trends", 90, 1),
        regular_max_std=_float(tr_raw, "regular_max_std", "trends", 2.0),
        moderate_max_std=_float(tr_raw, "moderate_max_std", "trends", 5.0),
    )
    if trends.moderate_max_std < trends.regular_max_std:
        errors.append(
            f"trends.moderate_max_std ({trends.moderate_max_std:g}) must not be below "
            f"trends.regular_max_std ({trends.regular_max_std:g})"
        )

    # ── Reminders ──
    rm_raw = raw.get("reminders") or {}
    reminders = ReminderDefaults(
        enabled=_bool(rm_raw, "enabled", "reminders", False),
        days_before=_int(rm_raw, "days_before", "reminders", 5, 1),
        snooze_duration_hours=_int(rm_raw, "snooze_duration_hours", "reminders", 24, 1),
    )

    if errors:
        raise ConfigValidationError(
            f"cycle_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return CycleConfig(
        version=version,
        prediction=prediction,
        confidence=confidence,
        trends=trends,
        reminders=reminders,
        _raw=raw,
    )


def _default_path() -> Path:
    override = get_settings().cycle_config_path
    return Path(override) if override else _CONFIG_PATH


def load_cycle_config(path: Path | None = None) -> CycleConfig:
    """Load and validate the cycle config from disk.

    Args:
        path: Override path to YAML. Uses the configured or bundled file by default.

    Returns:
        Validated CycleConfig instance.
    """
    target = path or _default_path()
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded cycle config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: CycleConfig | None = None
_config_lock = threading.Lock()


def get_cycle_config() -> CycleConfig:
    """Return the global CycleConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_cycle_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_cycle_config()
    return _config


def reload_cycle_config(path: Path | None = None) -> CycleConfig:
    """Reload the cycle config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is
    re-raised.

    Args:
        path: Override path to YAML.

    Returns:
        The newly loaded CycleConfig.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_cycle_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded cycle config: %s → %s", old_version, new_config.version)
    return new_config
