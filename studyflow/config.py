"""
Central configuration for the studyflow analytics engine.
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8765
    log_level: str = "info"

    # Storage
    data_dir: Path = field(default_factory=lambda: _ROOT / "data")
    sessions_db: str = "sessions.db"

    # History
    history_default_limit: int = 50
    history_max_limit: int = 100

    # Analysis windows (days)
    insight_window_days: int = 30            # preferred method / trend sub-window
    recommendation_window_days: int = 90     # broader window for advisories
    recent_window_days: int = 7              # recommendation engine look-back
    recent_sample_size: int = 10             # records considered "recent"

    # Recommendation thresholds
    long_session_minutes: int = 90           # recent avg >= this → time tracking
    afternoon_start_hour: int = 13           # inclusive
    afternoon_end_hour: int = 17             # inclusive

    # Insight thresholds
    trend_threshold_percent: float = 10.0
    low_completion_rate: float = 70.0
    high_completion_rate: float = 90.0
    long_average_minutes: int = 120
    min_period_minutes: int = 300            # under 5 h per window → study more
    method_share_high: float = 0.8
    method_share_low: float = 0.2

    # Comparison thresholds
    time_change_threshold_minutes: int = 60
    completion_change_threshold: float = 10.0

    # Grass calendar
    grass_level1_max_minutes: int = 60       # 1..60 min → level 1
    grass_level2_max_minutes: int = 120      # 61..120 min → level 2, above → 3
    grass_default_range_days: int = 365      # look-back when no start date is given
    grass_max_range_days: int = 365          # end − start may not exceed this

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (SF_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"SF_{k.upper()}"
            if env_key in os.environ:
                setattr(cfg, k, type(getattr(cfg, k))(os.environ[env_key]))
        cfg.data_dir = Path(cfg.data_dir)
        return cfg

    @property
    def sessions_db_path(self) -> Path:
        return self.data_dir / self.sessions_db


# Module-level singleton
config = Config.load()
