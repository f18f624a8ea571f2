"""
Configuration for the Tic-Tac-Toe frame service.
Values come from the environment (a local .env file is loaded first).
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from game_logic import DEFAULT_DIFFICULTY, DIFFICULTIES

LANDING_IMAGE_URL = "https://bafybeidnv5uh2ne54dlzyummobyv3bmc7uzuyt5htodvy27toqqhijf4xu.ipfs.w3s.link/PodPlay.gif"
HOWTO_IMAGE_URL = "https://bafybeifzk7uojcicnh6yhnqvoldkpzuf32sullm34ela266xthbidca6ny.ipfs.w3s.link/HowToPlay%20(1).png"


def _rate(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be between 0 and 1, got {value}")
    return value


@dataclass
class Config:
    base_url: str = "http://localhost:5000"
    mistake_rate: float = 0.2  # chance the computer plays a random cell
    center_rate: float = 0.7   # chance the computer takes a free center
    default_difficulty: str = DEFAULT_DIFFICULTY
    default_username: str = "Player"
    landing_image_url: str = LANDING_IMAGE_URL
    howto_image_url: str = HOWTO_IMAGE_URL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Config":
        if env is None:
            load_dotenv()
            env = os.environ

        difficulty = env.get("TTT_DEFAULT_DIFFICULTY", DEFAULT_DIFFICULTY)
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"TTT_DEFAULT_DIFFICULTY must be one of {', '.join(DIFFICULTIES)}")

        return cls(
            base_url=env.get("TTT_BASE_URL", cls.base_url).rstrip("/"),
            mistake_rate=_rate(env, "TTT_MISTAKE_RATE", cls.mistake_rate),
            center_rate=_rate(env, "TTT_CENTER_RATE", cls.center_rate),
            default_difficulty=difficulty,
            default_username=env.get("TTT_DEFAULT_USERNAME", cls.default_username),
            landing_image_url=env.get("TTT_LANDING_IMAGE_URL", LANDING_IMAGE_URL),
            howto_image_url=env.get("TTT_HOWTO_IMAGE_URL", HOWTO_IMAGE_URL),
            log_level=env.get("TTT_LOG_LEVEL", cls.log_level).upper(),
        )
