import os
import random
import sys

import pytest

# Ensure project root is on sys.path so 'app', 'config', and 'src' import correctly
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from tests.support.stubs import TEST_SESSION_ID, FakeSpotify, FakeTokenEndpoint


TEST_SETTINGS = {
    "spotify_client_id": "test-client-id",
    "spotify_client_secret": "test-client-secret",
    "public_hostnames": "vinyl.test,other.test",
    "redirect_uri_override": None,
}


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep developer .env values out of the tests."""
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "test-client-secret")
    monkeypatch.setenv("PUBLIC_HOSTNAME", "vinyl.test")
    monkeypatch.delenv("SPOTIFY_REDIRECT_URI", raising=False)
    yield


@pytest.fixture
def app():
    import app as app_module

    application = app_module.create_app(dict(TEST_SETTINGS))
    application.config["TESTING"] = True
    yield application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session_store(app):
    return app.extensions["session_store"]


@pytest.fixture
def fake_spotify(app):
    """Route every proxied Spotify call of the app to a FakeSpotify."""
    from src.domain.playback import PlaybackProxy

    fake = FakeSpotify()
    app.extensions["playback_proxy"] = PlaybackProxy(
        session_store=app.extensions["session_store"],
        client_factory=lambda token: fake,
        rng=random.Random(1234),
    )
    return fake


@pytest.fixture
def token_endpoint(app):
    from src.domain.playback import OAuthGateway

    endpoint = FakeTokenEndpoint()
    app.extensions["oauth_gateway"] = OAuthGateway(
        settings=app.extensions["app_settings"],
        session_store=app.extensions["session_store"],
        http=endpoint,
    )
    return endpoint


@pytest.fixture
def bound_client(client):
    """Test client whose cookie carries a known session id."""
    with client.session_transaction() as sess:
        sess["sid"] = TEST_SESSION_ID
    return client


@pytest.fixture
def authed_client(bound_client, session_store):
    session_store.set_token(TEST_SESSION_ID, "user-token")
    return bound_client
