import os
import sys
import pytest

# Ensure the backend root (containing the `promptparty` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from promptparty import create_app, db, socketio
from promptparty.services.games.oracle import ScoringOracle, Verdict


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = '*'
    OPENAI_API_KEY = None
    MAX_PLAYERS = 6
    MAX_ROUNDS = 6
    JOIN_CODE_LENGTH = 6
    JOIN_CODE_MAX_ATTEMPTS = 50
    SCENARIO_MAX_REDRAWS = 50


class FakeOracle(ScoringOracle):
    """Scripted judge: prompts containing 'win' pass, listed prompts blow up."""

    def __init__(self):
        self.calls = []
        self.failing_prompts = set()

    def judge(self, scenario, prompt, all_prompts):
        self.calls.append({'scenario': scenario, 'prompt': prompt, 'all_prompts': list(all_prompts)})
        if prompt in self.failing_prompts:
            raise RuntimeError('oracle unreachable')
        return Verdict(outcome=f'Outcome for: {prompt}', is_winner='win' in prompt.lower())


@pytest.fixture()
def oracle():
    return FakeOracle()


@pytest.fixture()
def flask_app(oracle):
    application = create_app(TestConfig, scoring_oracle=oracle)
    with application.app_context():
        # Ensure models are imported so tables are created
        import promptparty.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
