from urllib.parse import parse_qs, urlparse

import pytest
from spotipy.exceptions import SpotifyException

from tests.support.stubs import TEST_SESSION_ID
from tests.support.stubs import FakeResponse, make_track


@pytest.mark.unit
def test_first_request_creates_session_cookie(client, session_store):
    r = client.get('/api/spotify/session')
    assert r.status_code == 401
    assert r.get_json() == {"authenticated": False}
    with client.session_transaction() as sess:
        sid = sess.get("sid")
    assert sid
    assert session_store.get(sid) is None
    assert 'HttpOnly' in r.headers.get('Set-Cookie', '')


@pytest.mark.unit
def test_anonymous_requests_do_not_grow_store(app, session_store):
    for _ in range(50):
        assert app.test_client().get('/api/spotify/session').status_code == 401
    assert len(session_store) == 0


@pytest.mark.unit
def test_cookie_id_is_stable_until_login(client, token_endpoint, session_store):
    client.get('/api/spotify/session')
    with client.session_transaction() as sess:
        sid = sess["sid"]
    assert client.get('/api/spotify/callback?code=abc').status_code == 200
    with client.session_transaction() as sess:
        assert sess["sid"] == sid
    assert session_store.get_token(sid) == "tok-123"
    assert len(session_store) == 1


@pytest.mark.unit
def test_session_reports_authenticated(authed_client):
    r = authed_client.get('/api/spotify/session')
    assert r.status_code == 200
    assert r.get_json() == {"authenticated": True}


@pytest.mark.unit
def test_login_redirects_to_spotify(client):
    r = client.get('/api/spotify/login')
    assert r.status_code == 302
    location = urlparse(r.headers['Location'])
    assert location.netloc == 'accounts.spotify.com'
    params = parse_qs(location.query)
    assert params['redirect_uri'] == ['https://vinyl.test/api/spotify/callback']


@pytest.mark.unit
def test_login_fails_fast_without_redirect_uri():
    import app as app_module

    application = app_module.create_app({"public_hostnames": "", "redirect_uri_override": None})
    r = application.test_client().get('/api/spotify/login')
    assert r.status_code == 500
    assert r.get_json()["error"] == "configuration_error"


@pytest.mark.unit
def test_callback_missing_code_returns_400(bound_client, token_endpoint, session_store):
    r = bound_client.get('/api/spotify/callback')
    assert r.status_code == 400
    assert r.mimetype == 'text/html'
    assert '"auth-error"' in r.data.decode('utf-8')
    assert token_endpoint.calls == []
    assert session_store.is_authenticated(TEST_SESSION_ID) is False


@pytest.mark.unit
def test_denied_consent_notifies_opener(authed_client, token_endpoint, session_store):
    r = authed_client.get('/api/spotify/callback?error=access_denied')
    assert r.status_code == 400
    body = r.data.decode('utf-8')
    assert 'var message = "auth-error";' in body
    assert 'window.close()' in body
    assert token_endpoint.calls == []
    assert session_store.get_token(TEST_SESSION_ID) == "user-token"


@pytest.mark.unit
def test_callback_success_posts_auth_success(bound_client, token_endpoint, session_store):
    r = bound_client.get('/api/spotify/callback?code=abc')
    assert r.status_code == 200
    body = r.data.decode('utf-8')
    assert '"auth-success"' in body
    assert 'window.opener.postMessage' in body
    assert session_store.get_token(TEST_SESSION_ID) == "tok-123"
    assert bound_client.get('/api/spotify/session').status_code == 200


@pytest.mark.unit
def test_callback_exchange_failure_posts_auth_error(bound_client, token_endpoint, session_store):
    token_endpoint.response = FakeResponse(400, {"error": "invalid_grant"}, reason="Bad Request")
    r = bound_client.get('/api/spotify/callback?code=abc')
    assert r.status_code == 200
    assert '"auth-error"' in r.data.decode('utf-8')
    assert session_store.is_authenticated(TEST_SESSION_ID) is False


@pytest.mark.unit
def test_token_endpoints(authed_client):
    for path in ('/api/spotify/token', '/api/spotify/session-token'):
        r = authed_client.get(path)
        assert r.status_code == 200
        assert r.get_json() == {"token": "user-token"}


@pytest.mark.unit
def test_token_requires_session(client):
    assert client.get('/api/spotify/token').status_code == 401


@pytest.mark.unit
def test_logout_clears_session(authed_client):
    assert authed_client.post('/api/spotify/logout').status_code == 200
    assert authed_client.get('/api/spotify/session').status_code == 401


@pytest.mark.unit
def test_search_requires_authentication(client, fake_spotify):
    r = client.get('/api/spotify/search?q=queen')
    assert r.status_code == 401
    assert fake_spotify.calls == []


@pytest.mark.unit
def test_search_missing_query_returns_400(authed_client, fake_spotify):
    r = authed_client.get('/api/spotify/search')
    assert r.status_code == 400
    assert fake_spotify.calls == []


@pytest.mark.unit
def test_search_success_returns_items(authed_client, fake_spotify):
    items = [{"id": "a1", "name": "Queen", "genres": ["rock"]}, {"id": "a2", "name": "Queens"}]
    fake_spotify.search_response = {"artists": {"items": items}}
    r = authed_client.get('/api/spotify/search?q=queen')
    assert r.status_code == 200
    assert r.get_json() == items


@pytest.mark.unit
def test_search_upstream_error_returns_502(authed_client, fake_spotify):
    fake_spotify.errors["search"] = SpotifyException(500, -1, "server error")
    r = authed_client.get('/api/spotify/search?q=queen')
    assert r.status_code == 502
    body = r.get_json()
    assert body["error"] == "upstream_error"
    assert body["upstream_status"] == 500


@pytest.mark.unit
def test_current_track_nothing_playing_returns_null(authed_client, fake_spotify):
    r = authed_client.get('/api/spotify/current-track')
    assert r.status_code == 200
    assert r.get_json() is None


@pytest.mark.unit
def test_current_track_returns_state(authed_client, fake_spotify):
    fake_spotify.playback = {"is_playing": True, "item": make_track(2), "device": {"id": "web-player"}}
    r = authed_client.get('/api/spotify/current-track')
    body = r.get_json()
    assert body["is_playing"] is True
    assert body["current_track"]["name"] == "Track 2"
    assert body["device_id"] == "web-player"
    assert fake_spotify.called("current_playback")


@pytest.mark.unit
def test_toggle_play_no_active_session_returns_404(authed_client, fake_spotify):
    r = authed_client.post('/api/spotify/toggle-play', json={})
    assert r.status_code == 404
    assert r.get_json()["error"] == "no_active_session"


@pytest.mark.unit
def test_toggle_play_returns_complemented_state(authed_client, fake_spotify):
    fake_spotify.playback = {"is_playing": True, "device": {"id": "dev-1"}}
    r = authed_client.post('/api/spotify/toggle-play', json={"device_id": "web"})
    assert r.status_code == 200
    assert r.get_json() == {"success": True, "is_playing": False, "device_id": "web"}
    assert fake_spotify.called("pause_playback") == [{"device_id": "web"}]


@pytest.mark.unit
def test_toggle_play_without_body(authed_client, fake_spotify):
    fake_spotify.playback = {"is_playing": False, "device": {"id": "dev-1"}}
    r = authed_client.post('/api/spotify/toggle-play')
    assert r.status_code == 200
    assert r.get_json()["device_id"] == "dev-1"


@pytest.mark.unit
def test_play_random_returns_track(authed_client, fake_spotify):
    fake_spotify.top_tracks = [make_track(1), make_track(2)]
    r = authed_client.post('/api/spotify/play-random', json={"artistId": "a1", "device_id": "web"})
    assert r.status_code == 200
    body = r.get_json()
    assert body["uri"] in {"spotify:track:t1", "spotify:track:t2"}
    assert fake_spotify.called("start_playback") == [{"device_id": "web", "uris": [body["uri"]]}]


@pytest.mark.unit
def test_play_random_no_tracks_returns_404(authed_client, fake_spotify):
    r = authed_client.post('/api/spotify/play-random', json={"artistId": "a1"})
    assert r.status_code == 404
    assert r.get_json()["error"] == "no_tracks"


@pytest.mark.unit
def test_play_random_missing_artist_returns_400(authed_client, fake_spotify):
    r = authed_client.post('/api/spotify/play-random', json={})
    assert r.status_code == 400


@pytest.mark.unit
def test_request_id_header_is_echoed(client):
    r = client.get('/api/spotify/session', headers={'X-Request-ID': 'req-1'})
    assert r.headers['X-Request-ID'] == 'req-1'
