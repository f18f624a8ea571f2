import pytest

from app import create_app
from config import Config
from services import InMemoryStatsStore, StaticProfileLookup


class ScriptedRandom:
    """Random source with queued random() values; choice picks the last item, shuffle keeps order."""

    def __init__(self, values=(), default=0.99):
        self.values = list(values)
        self.default = default
        self.choices = []

    def random(self):
        if self.values:
            return self.values.pop(0)
        return self.default

    def choice(self, seq):
        self.choices.append(list(seq))
        return seq[-1]

    def shuffle(self, seq):
        pass


@pytest.fixture
def rng():
    return ScriptedRandom()


@pytest.fixture
def stats():
    return InMemoryStatsStore()


@pytest.fixture
def app(rng, stats):
    config = Config(base_url="http://frames.test")
    app = create_app(config, stats_store=stats,
                     profiles=StaticProfileLookup(names={"42": "alice"}), rng=rng)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
