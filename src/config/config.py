import logging
import os
from dataclasses import dataclass, field, fields
from typing import List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = os.path.join(os.path.dirname(__file__), 'countdown.yaml')


@dataclass
class GameSettings:
    large_numbers: List[int] = field(default_factory=lambda: [25, 50, 75, 100])
    small_numbers: List[int] = field(default_factory=lambda: list(range(1, 11)))
    num_large: int = 2
    num_small: int = 3
    target_min: int = 100
    target_max: int = 999
    round_duration: int = 60
    max_tiles: int = 6
    solution_ttl: int = 86400

    def __post_init__(self):
        if self.num_large < 0 or self.num_small < 0:
            raise ValueError("num_large and num_small must not be negative")
        if self.num_large > len(self.large_numbers):
            raise ValueError(f"num_large ({self.num_large}) exceeds the {len(self.large_numbers)} large numbers")
        if self.num_small > 0 and not self.small_numbers:
            raise ValueError("small_numbers is empty but num_small is not 0")
        if self.num_large + self.num_small > self.max_tiles:
            raise ValueError(f"A deal of {self.num_large + self.num_small} numbers exceeds max_tiles ({self.max_tiles})")
        if any(n < 0 for n in self.large_numbers + self.small_numbers):
            raise ValueError("Game numbers must not be negative")
        if self.target_min > self.target_max:
            raise ValueError(f"target_min ({self.target_min}) is greater than target_max ({self.target_max})")

    @classmethod
    def from_dict(cls, data: dict) -> 'GameSettings':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown game settings: %s", ', '.join(sorted(unknown)))
        return cls(**{k: v for k, v in data.items() if k in known})


class Config:
    def __init__(self, require_discord: bool = True):
        self.discord_token = os.getenv('DISCORD_TOKEN')
        self.redis_host = os.getenv('REDIS_HOST', 'localhost')
        self.redis_port = int(os.getenv('REDIS_PORT', 6379))
        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
        self.settings_path = os.getenv('COUNTDOWN_SETTINGS', DEFAULT_SETTINGS_PATH)
        self.game = self._load_game_settings(self.settings_path)

        if require_discord and not self.discord_token:
            raise ValueError("Missing required environment variable DISCORD_TOKEN")

    def _load_game_settings(self, path: Optional[str]) -> GameSettings:
        if not path or not os.path.exists(path):
            logger.info("No game settings file at %s, using defaults", path)
            return GameSettings()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error("YAML parsing error in %s: %s", path, e)
            raise ValueError(f"Failed to load game settings: {e}")

        if not data:
            logger.info("Empty game settings file %s, using defaults", path)
            return GameSettings()

        return GameSettings.from_dict(data)
