import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from config.registry import MODEL_KEYS, NEXT_STEP_KEY, SELECTOR_KEY, TAGS_KEY, bind_model, unbind_model


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture(autouse=True)
def clean_registry():
    for key in MODEL_KEYS:
        unbind_model(key)
    yield
    for key in MODEL_KEYS:
        unbind_model(key)


class Recorder:
    """Callable fake model that records every call and replays a reply."""

    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.reply, Exception):
            raise self.reply
        if callable(self.reply):
            return self.reply(**kwargs)
        return self.reply


@pytest.fixture
def make_recorder():
    return Recorder


@pytest.fixture
def fake_models():
    """Bind well-behaved fakes: the selector echoes the first candidate, the
    next-step model defers to the fallback order, the tagger finds nothing."""

    def _first_candidate(prompt, **_):
        for line in prompt.splitlines():
            if line.startswith("[") and "]" in line:
                return {"questionId": line[1 : line.index("]")], "reasoning": "first candidate"}
        return "{}"

    models = {
        SELECTOR_KEY: Recorder(_first_candidate),
        NEXT_STEP_KEY: Recorder(RuntimeError("decision model offline")),
        TAGS_KEY: Recorder({"tags": []}),
    }
    for key, fn in models.items():
        bind_model(key, fn)
    return models
