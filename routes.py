import logging
import math
import time
import uuid
from dataclasses import dataclass
from datetime import date
from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, Flask, current_app, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from content_filter import check_message
from conv_manager import ConversationManager
from errors import RateLimitError, RelayError, UpstreamError, ValidationError
from rate_limit import SlidingWindowLimiter
from relay import CompletionRelay, build_client
from settings import Settings
from sweeper import Sweeper
from usage_store import UsageTracker

logger = logging.getLogger("dumbgpt")

api = Blueprint("api", __name__, url_prefix="/api")


@dataclass
class RelayState:
    settings: Settings
    conversations: ConversationManager
    api_limiter: SlidingWindowLimiter
    chat_limiter: SlidingWindowLimiter
    usage: UsageTracker
    relay: CompletionRelay
    sweeper: Sweeper


def _state() -> RelayState:
    return current_app.extensions["relay"]


def _enforce(limiter: SlidingWindowLimiter, key: str):
    result = limiter.hit(key)
    if not result.allowed:
        logger.warning("Rate limit hit: limiter=%s key=%s retry_after=%.1fs", limiter.name, key, result.retry_after)
        raise RateLimitError("Too many requests, slow down and try again later.", retry_after=result.retry_after)


def api_limited(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        key = kwargs.get("session_id") or request.remote_addr or "unknown"
        _enforce(_state().api_limiter, key)
        return view(*args, **kwargs)

    return wrapper


@api.route("/health")
def health():
    logger.info("Health check requested")
    return {"status": "ok", "message": "Dumb-GPT server is running"}


@api.route("/chat", methods=["POST"])
def chat():
    state = _state()
    data = request.get_json(force=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    raw_session = data.get("sessionId")
    if raw_session is not None and not isinstance(raw_session, str):
        raise ValidationError("sessionId must be a string")
    session_id = raw_session or "default"

    message = check_message(data.get("message"), state.settings.max_message_length)
    logger.info("Processing chat request: session=%s message_length=%d", session_id, len(message))

    # rate limits are keyed by session token, falling back to the caller address
    limit_key = raw_session or request.remote_addr or "unknown"
    _enforce(state.api_limiter, limit_key)
    _enforce(state.chat_limiter, limit_key)

    history = state.conversations.get_or_create(session_id)
    logger.info("Session %s holds %d messages", session_id, len(history))
    state.usage.check_quota(session_id, request.remote_addr)

    messages = state.conversations.append(session_id, "user", message)
    try:
        completion = state.relay.complete(messages)
    except UpstreamError:
        state.usage.release(session_id)
        raise

    state.conversations.append(session_id, "assistant", completion.text)
    state.usage.record(session_id, completion.total_tokens)
    return jsonify(response=completion.text)


@api.route("/session/<session_id>", methods=["DELETE"])
@api_limited
def reset_session(session_id):
    cleared = _state().conversations.reset(session_id)
    logger.info("Session %s cleared=%s", session_id, cleared)
    return jsonify(session_id=session_id, cleared=cleared)


@api.route("/usage/<session_id>")
@api_limited
def get_usage(session_id):
    snapshot = _state().usage.snapshot(session_id)
    if snapshot is None:
        return jsonify(error="No usage recorded for this session"), 404
    return jsonify(snapshot)


def _handle_relay_error(e: RelayError):
    response = jsonify(e.to_dict())
    response.status_code = e.status_code
    if isinstance(e, RateLimitError) and e.retry_after is not None:
        response.headers["Retry-After"] = str(max(math.ceil(e.retry_after), 1))
    if e.status_code < 500:
        logger.info("Rejected request: %s %s", e.status_code, e.message)
    return response


def _handle_http_error(e: HTTPException):
    return jsonify(error=e.description), e.code


def _log_request_start():
    g.request_id = uuid.uuid4().hex[:8]
    g.started = time.monotonic()
    logger.info("[%s] %s %s", g.request_id, request.method, request.full_path.rstrip("?"))
    if request.method != "GET":
        logger.info("[%s] Request body: %d bytes", g.request_id, request.content_length or 0)


def _log_request_end(response):
    started = g.get("started")
    if started is not None:
        logger.info(
            "[%s] Request completed in %dms with status %s",
            g.get("request_id"),
            (time.monotonic() - started) * 1000,
            response.status_code,
        )
    return response


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=level, format="[%(asctime)s] %(levelname)s %(name)s - %(message)s")


def create_app(
    settings: Optional[Settings] = None,
    client=None,
    start_sweeper: bool = True,
    clock: Callable[[], float] = time.monotonic,
    today: Callable[[], date] = date.today,
) -> Flask:
    """Build the relay app; every store is created here and owned by the app."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    if client is None:
        if not settings.openai_api_key:
            raise RuntimeError("OPENAI_API_KEY not set")
        client = build_client(settings.openai_api_key, settings.upstream_timeout)

    conversations = ConversationManager(
        settings.system_prompt, max_history=settings.max_history, ttl_seconds=settings.session_ttl
    )
    api_limiter = SlidingWindowLimiter("api", settings.api_rate_limit, settings.api_rate_window, clock=clock)
    chat_limiter = SlidingWindowLimiter("chat", settings.chat_rate_limit, settings.chat_rate_window, clock=clock)
    usage = UsageTracker(settings.daily_message_limit, ttl_seconds=settings.session_ttl, today=today)
    state = RelayState(
        settings=settings,
        conversations=conversations,
        api_limiter=api_limiter,
        chat_limiter=chat_limiter,
        usage=usage,
        relay=CompletionRelay(client, settings.model, settings.temperature, settings.max_tokens),
        sweeper=Sweeper(usage, conversations, (api_limiter, chat_limiter), interval=settings.sweep_interval),
    )

    app = Flask(__name__)
    CORS(app, origins=settings.cors_origins)
    app.extensions["relay"] = state
    app.register_blueprint(api)
    app.register_error_handler(RelayError, _handle_relay_error)
    app.register_error_handler(HTTPException, _handle_http_error)
    app.before_request(_log_request_start)
    app.after_request(_log_request_end)

    if start_sweeper:
        state.sweeper.start()
    return app


if __name__ == "__main__":
    # export OPENAI_API_KEY=...
    app = create_app()
    settings = app.extensions["relay"].settings
    logger.info(
        "Dumb-GPT Server is running at http://localhost:%s (API key: %s)",
        settings.port,
        "configured" if settings.openai_api_key else "MISSING",
    )
    logger.info("Endpoints: GET /api/health, POST /api/chat, DELETE /api/session/<id>, GET /api/usage/<id>")
    app.run(host=settings.host, port=settings.port)
