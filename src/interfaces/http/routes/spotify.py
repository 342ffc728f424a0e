#!/usr/bin/env python
"""Spotify login, session and playback-control API endpoints."""

from __future__ import annotations

import json
import logging

from flask import Blueprint, Response, current_app, g, jsonify, redirect, request, session

from src.core.errors import MissingCodeError, PlaybackServiceError, UpstreamError
from src.core.messages import AUTH_ERROR
from src.observability.logging import SESSION_KEY
from src.observability.metrics import update_session_gauge

logger = logging.getLogger(__name__)

spotify_bp = Blueprint("spotify", __name__, url_prefix="/api/spotify")

_CALLBACK_PAGE = """<!doctype html>
<html>
  <body>
    <script>
      (function () {{
        var message = {message};
        if (window.opener) {{
          window.opener.postMessage(message, window.location.origin);
          window.close();
        }} else {{
          window.location.replace("/");
        }}
      }})();
    </script>
  </body>
</html>
"""


def _session_store():
    return current_app.extensions["session_store"]


def _oauth_gateway():
    return current_app.extensions["oauth_gateway"]


def _playback_proxy():
    return current_app.extensions["playback_proxy"]


def _request_payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def render_callback_page(message: str) -> str:
    return _CALLBACK_PAGE.format(message=json.dumps(message))


@spotify_bp.before_request
def _bind_session():
    # The cookie gets an opaque id straight away; the store only holds a
    # record once a token is set for it
    sid = session.get(SESSION_KEY)
    if not sid:
        sid = _session_store().new_session_id()
        session[SESSION_KEY] = sid
    session.permanent = True
    g.session_id = sid


@spotify_bp.errorhandler(PlaybackServiceError)
def _handle_service_error(exc: PlaybackServiceError):
    if isinstance(exc, UpstreamError):
        logger.error("%s (upstream status %s)", exc.message, exc.upstream_status, exc_info=exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.path, exc.message)
    return jsonify(exc.to_dict()), exc.status_code


@spotify_bp.route("/login", methods=["GET"])
def login():
    return redirect(_oauth_gateway().build_authorize_url(), code=302)


@spotify_bp.route("/callback", methods=["GET"])
def callback():
    if request.args.get("error"):
        logger.warning("Spotify denied authorization: %s", request.args.get("error"))
    try:
        result = _oauth_gateway().handle_callback(g.session_id, request.args.get("code"))
    except MissingCodeError as exc:
        logger.warning("Callback without authorization code: %s", exc.message)
        # The popup still has to tell its opener and close
        return Response(render_callback_page(AUTH_ERROR), status=exc.status_code, mimetype="text/html")
    update_session_gauge(len(_session_store()))
    return Response(render_callback_page(result.message), mimetype="text/html")


@spotify_bp.route("/session", methods=["GET"])
def session_status():
    if _session_store().is_authenticated(g.session_id):
        return jsonify({"authenticated": True}), 200
    return jsonify({"authenticated": False}), 401


@spotify_bp.route("/token", methods=["GET"])
@spotify_bp.route("/session-token", methods=["GET"])
def session_token():
    return jsonify({"token": _playback_proxy().get_token(g.session_id)}), 200


@spotify_bp.route("/logout", methods=["POST"])
def logout():
    _oauth_gateway().logout(g.session_id)
    update_session_gauge(len(_session_store()))
    return jsonify({"success": True}), 200


@spotify_bp.route("/search", methods=["GET"])
def search_artists():
    artists = _playback_proxy().search_artists(g.session_id, request.args.get("q", ""))
    return jsonify([artist.model_dump() for artist in artists]), 200


@spotify_bp.route("/current-track", methods=["GET"])
def current_track():
    state = _playback_proxy().get_current_track(g.session_id)
    return jsonify(state.model_dump() if state is not None else None), 200


@spotify_bp.route("/toggle-play", methods=["POST"])
def toggle_play():
    data = _request_payload()
    result = _playback_proxy().toggle_play(g.session_id, device_id=data.get("device_id") or None)
    return jsonify(result.model_dump()), 200


@spotify_bp.route("/play-random", methods=["POST"])
def play_random():
    data = _request_payload()
    artist_id = data.get("artistId") or data.get("artist_id")
    track = _playback_proxy().play_random_track(
        g.session_id, artist_id, device_id=data.get("device_id") or None
    )
    return jsonify(track.model_dump()), 200


__all__ = ["spotify_bp", "render_callback_page"]
