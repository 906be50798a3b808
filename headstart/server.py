"""HTTP server exposing the HeadStart views and intents."""
from __future__ import annotations

import json
import mimetypes
import threading
from dataclasses import dataclass
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, quote, unquote, urlparse

from headstart.controller import InvalidTransition, Job, ViewStateController
from headstart.views import render_page

AUDIO_MEDIA_PREFIX = "/media/audio/"


class ApiError(ValueError):
    """Raised when API input is invalid."""


@dataclass(frozen=True)
class Intent:
    handler: Callable[[ViewStateController, dict[str, Any]], Any]
    background: bool = False


def _get_value(data: dict[str, Any], key: str, default: Any = None) -> Any:
    value = data.get(key, default)
    if value is None:
        return default
    return value


def _require_text(data: dict[str, Any], key: str) -> str:
    value = _get_value(data, key)
    if not isinstance(value, str):
        raise ApiError(f"{key} is required.")
    return value


def _schedule_job(job: Optional[Job]) -> None:
    if job is None:
        return

    thread = threading.Thread(target=job, daemon=True)
    thread.start()


INTENTS: dict[str, Intent] = {
    "toggle-interest": Intent(
        lambda c, p: c.toggle_interest(_require_text(p, "interest"))
    ),
    "start": Intent(lambda c, p: c.begin_growth(), background=True),
    "search-book": Intent(
        lambda c, p: c.begin_book_search(_require_text(p, "query")), background=True
    ),
    "search-history": Intent(
        lambda c, p: c.begin_history_search(_require_text(p, "name")), background=True
    ),
    "create-course": Intent(
        lambda c, p: c.begin_course(_require_text(p, "topic")), background=True
    ),
    "explore-topic": Intent(
        lambda c, p: c.begin_topic(_require_text(p, "topic")), background=True
    ),
    "play-audio": Intent(
        lambda c, p: c.begin_audio(_require_text(p, "text")), background=True
    ),
    "play-summary-audio": Intent(
        lambda c, p: c.begin_summary_audio(), background=True
    ),
    "navigate": Intent(lambda c, p: c.navigate(_require_text(p, "view"))),
    "back": Intent(lambda c, p: c.back()),
    "toggle-saved": Intent(lambda c, p: c.toggle_saved(_get_value(p, "book_id") or None)),
    "remove-saved": Intent(lambda c, p: c.remove_saved(_require_text(p, "book_id"))),
    "open-saved": Intent(lambda c, p: c.open_saved(_require_text(p, "book_id"))),
    "reset": Intent(lambda c, p: c.reset_experience()),
    "dismiss-alert": Intent(lambda c, p: c.dismiss_alert()),
}


def dispatch_intent(
    controller: ViewStateController,
    name: str,
    payload: dict[str, Any],
    schedule: Callable[[Optional[Job]], None] = _schedule_job,
) -> None:
    """Apply an intent; generation intents hand their job to ``schedule``."""
    intent = INTENTS.get(name)
    if intent is None:
        raise KeyError(name)
    result = intent.handler(controller, payload)
    if intent.background:
        schedule(result)


def _read_payload(handler: BaseHTTPRequestHandler) -> dict[str, Any]:
    try:
        length = int(handler.headers.get("Content-Length", "0"))
    except ValueError as exc:
        raise ApiError("Invalid Content-Length header.") from exc
    if length < 0:
        raise ApiError("Invalid Content-Length header.")
    if length == 0:
        return {}
    raw = handler.rfile.read(length)
    if not raw:
        return {}
    content_type = handler.headers.get("Content-Type", "")
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ApiError("Request body must be UTF-8 text.") from exc
    if content_type.startswith("application/x-www-form-urlencoded"):
        query = parse_qs(text, keep_blank_values=True)
        return {key: values[0] for key, values in query.items() if values}
    payload = json.loads(text)
    if not isinstance(payload, dict):
        raise ApiError("JSON payload must be an object.")
    return payload


def _wants_json(handler: BaseHTTPRequestHandler) -> bool:
    content_type = handler.headers.get("Content-Type", "")
    accept = handler.headers.get("Accept", "")
    return content_type.startswith("application/json") or "application/json" in accept


def _send_json(handler: BaseHTTPRequestHandler, payload: dict[str, Any], status: int) -> None:
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    handler.send_response(status)
    handler.send_header("Content-Type", "application/json")
    handler.send_header("Content-Length", str(len(body)))
    handler.end_headers()
    handler.wfile.write(body)


def _send_html(handler: BaseHTTPRequestHandler, html: str) -> None:
    body = html.encode("utf-8")
    handler.send_response(HTTPStatus.OK)
    handler.send_header("Content-Type", "text/html; charset=utf-8")
    handler.send_header("Cache-Control", "no-store")
    handler.send_header("Content-Length", str(len(body)))
    handler.end_headers()
    handler.wfile.write(body)


def _send_redirect(handler: BaseHTTPRequestHandler, location: str = "/") -> None:
    handler.send_response(HTTPStatus.SEE_OTHER)
    handler.send_header("Location", location)
    handler.send_header("Content-Length", "0")
    handler.end_headers()


def _send_file(handler: BaseHTTPRequestHandler, path: Path) -> None:
    body = path.read_bytes()
    content_type, _ = mimetypes.guess_type(path.name)
    handler.send_response(HTTPStatus.OK)
    handler.send_header("Content-Type", content_type or "application/octet-stream")
    handler.send_header("Content-Length", str(len(body)))
    handler.end_headers()
    try:
        handler.wfile.write(body)
    except (BrokenPipeError, ConnectionResetError):
        return


def _build_media_url(name: str) -> str:
    return AUDIO_MEDIA_PREFIX + quote(name)


def _resolve_media_path(audio_dir: Path, name: str) -> Path:
    candidate = (audio_dir / name).resolve()
    audio_root = audio_dir.resolve()
    if candidate.parent != audio_root:
        raise ApiError("Invalid media path.")
    if not candidate.is_file():
        raise ApiError("Media file not found.")
    return candidate


def render_current_page(controller: ViewStateController) -> str:
    clips = controller.audio_output.take_started()
    return render_page(
        controller.snapshot(), [_build_media_url(clip.name) for clip in clips]
    )


def _handle_api(handler: "HeadStartRequestHandler") -> None:
    controller = handler.server.controller
    path = urlparse(handler.path).path
    try:
        if handler.command == "GET":
            if path == "/api/state":
                _send_json(handler, controller.snapshot().to_dict(), HTTPStatus.OK)
                return
            _send_json(handler, {"error": "Unknown endpoint"}, HTTPStatus.NOT_FOUND)
            return

        name = path[len("/api/"):]
        if name not in INTENTS:
            _send_json(handler, {"error": "Unknown endpoint"}, HTTPStatus.NOT_FOUND)
            return
        wants_json = _wants_json(handler)
        payload = _read_payload(handler)
        dispatch_intent(controller, name, payload)
        if wants_json:
            _send_json(handler, controller.snapshot().to_dict(), HTTPStatus.OK)
        else:
            _send_redirect(handler)
    except (ApiError, InvalidTransition) as exc:
        _send_json(handler, {"error": str(exc)}, HTTPStatus.BAD_REQUEST)
    except json.JSONDecodeError:
        _send_json(handler, {"error": "Invalid JSON payload."}, HTTPStatus.BAD_REQUEST)


def _handle_media(handler: "HeadStartRequestHandler") -> None:
    controller = handler.server.controller
    try:
        name = unquote(urlparse(handler.path).path[len(AUDIO_MEDIA_PREFIX):])
        if not name:
            raise ApiError("Clip name is required.")
        media_path = _resolve_media_path(controller.audio_output.directory, name)
        _send_file(handler, media_path)
    except ApiError as exc:
        _send_json(handler, {"error": str(exc)}, HTTPStatus.BAD_REQUEST)


class HeadStartServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], controller: ViewStateController) -> None:
        super().__init__(address, HeadStartRequestHandler)
        self.controller = controller


class HeadStartRequestHandler(BaseHTTPRequestHandler):
    """Serve the rendered app, its state and its intent endpoints."""

    server: HeadStartServer

    def do_GET(self) -> None:  # noqa: N802 - required by BaseHTTPRequestHandler
        if self.path.startswith("/api/"):
            _handle_api(self)
            return
        if self.path.startswith(AUDIO_MEDIA_PREFIX):
            _handle_media(self)
            return
        _send_html(self, render_current_page(self.server.controller))

    def do_POST(self) -> None:  # noqa: N802 - required by BaseHTTPRequestHandler
        if not self.path.startswith("/api/"):
            _send_json(self, {"error": "Unsupported endpoint"}, HTTPStatus.NOT_FOUND)
            return
        _handle_api(self)


def run_server(
    controller: ViewStateController, host: str = "127.0.0.1", port: int = 8080
) -> HeadStartServer:
    """Run the HeadStart HTTP server."""
    server = HeadStartServer((host, port), controller)
    print(f"[server] HeadStart available at http://{host}:{port}")
    server.serve_forever()
    return server


__all__ = [
    "ApiError",
    "HeadStartRequestHandler",
    "HeadStartServer",
    "INTENTS",
    "dispatch_intent",
    "render_current_page",
    "run_server",
]
