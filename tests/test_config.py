import pytest

from config import HOWTO_IMAGE_URL, LANDING_IMAGE_URL, Config


def test_defaults():
    cfg = Config.from_env({})
    assert cfg.base_url == "http://localhost:5000"
    assert cfg.mistake_rate == 0.2
    assert cfg.center_rate == 0.7
    assert cfg.default_difficulty == "medium"
    assert cfg.default_username == "Player"
    assert cfg.landing_image_url == LANDING_IMAGE_URL
    assert cfg.howto_image_url == HOWTO_IMAGE_URL
    assert cfg.log_level == "INFO"


def test_values_from_environment():
    cfg = Config.from_env({
        "TTT_BASE_URL": "https://ttt.example.com/",
        "TTT_MISTAKE_RATE": "0",
        "TTT_CENTER_RATE": "1",
        "TTT_DEFAULT_DIFFICULTY": "hard",
        "TTT_LOG_LEVEL": "debug",
    })
    assert cfg.base_url == "https://ttt.example.com"
    assert cfg.mistake_rate == 0.0
    assert cfg.center_rate == 1.0
    assert cfg.default_difficulty == "hard"
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize("env", [
    {"TTT_MISTAKE_RATE": "often"},
    {"TTT_CENTER_RATE": "1.2"},
    {"TTT_DEFAULT_DIFFICULTY": "nightmare"},
])
def test_invalid_values_raise(env):
    with pytest.raises(ValueError):
        Config.from_env(env)
