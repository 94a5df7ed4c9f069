"""URL helpers for the push-stream transport.

Pure functions: building the stream URL from a connection config, and
resolving the message endpoint the server announces on the stream.
"""

import json
from typing import Any
from urllib.parse import parse_qsl, quote, urlencode, urljoin, urlsplit, urlunsplit

from mcp_link.config.models import ConnectionConfig
from mcp_link.errors import create_error

SESSION_PARAM = "session_id"
TRANSPORT_TYPE_PARAM = "transportType"
COMMAND_PARAM = "command"
ARGS_PARAM = "args"
ENV_PARAM = "env"


class EnvParseError(ValueError):
    """Raised when a string env value is not a JSON object."""


def join_args(args: list[str] | str | None) -> str:
    """Join configured args with single spaces, dropping empty entries."""
    if args is None:
        return ""
    if isinstance(args, str):
        return args.strip()
    return " ".join(str(arg) for arg in args if arg)


def parse_env(env: dict[str, Any] | str | None) -> dict[str, Any]:
    """Normalize configured env data to a mapping.

    Raises:
        EnvParseError: If a string value is not a JSON object
    """
    if env is None:
        return {}
    if isinstance(env, str):
        try:
            parsed = json.loads(env)
        except json.JSONDecodeError as e:
            raise EnvParseError(f"Invalid JSON in env string: {e}") from e
        if not isinstance(parsed, dict):
            raise EnvParseError("env string must encode a JSON object")
        return parsed
    return dict(env)


def encode_env(env: dict[str, Any]) -> str:
    """Compact JSON serialization used for the env query parameter."""
    return json.dumps(env, separators=(",", ":"))


def _set_param(params: list[tuple[str, str]], key: str, value: str) -> None:
    """Replace every occurrence of key with one value, keeping other pairs."""
    index = next((i for i, (name, _) in enumerate(params) if name == key), len(params))
    params[:] = [pair for pair in params if pair[0] != key]
    params.insert(min(index, len(params)), (key, value))


def build_stream_url(
    config: ConnectionConfig,
    session_id: str | None = None,
    env: dict[str, Any] | None = None,
) -> str:
    """Build the effective push-stream URL.

    Args:
        config: Connection configuration
        session_id: Session to resume, if one was negotiated before
        env: Pre-parsed env mapping; parsed from config when None

    Returns:
        Base URL with transportType/command/args/env/session_id attached

    Raises:
        LinkError(CONFIG_INVALID): If the URL has no scheme or host
        EnvParseError: If config.env is an invalid JSON string and env is None
    """
    parts = urlsplit(config.url)
    if not parts.scheme or not parts.netloc:
        raise create_error(
            "CONFIG_INVALID",
            connection=config.name,
            detail=f"Invalid URL for connection '{config.name}': {config.url!r}",
        )

    params = parse_qsl(parts.query, keep_blank_values=True)

    command = (config.command or "").strip()
    if command:
        if not any(key == TRANSPORT_TYPE_PARAM for key, _ in params):
            params.append((TRANSPORT_TYPE_PARAM, config.transport_type or "stdio"))
        _set_param(params, COMMAND_PARAM, config.command or "")
        args_value = join_args(config.args)
        if args_value:
            _set_param(params, ARGS_PARAM, args_value)

    if env is None:
        env = parse_env(config.env)
    if env:
        _set_param(params, ENV_PARAM, encode_env(env))

    if session_id:
        _set_param(params, SESSION_PARAM, session_id)

    query = urlencode(params, quote_via=quote, safe="")
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def origin_of(url: str) -> str:
    """Return scheme://host[:port] of a URL."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def resolve_endpoint(payload: str, stream_url: str) -> str:
    """Resolve an endpoint event payload against the stream origin.

    Args:
        payload: Relative or absolute URL sent by the server
        stream_url: URL the stream was opened against

    Returns:
        Absolute message endpoint URL

    Raises:
        LinkError(ENDPOINT_INVALID): If the result is not an http(s) URL
    """
    candidate = (payload or "").strip()
    if not candidate:
        raise create_error("ENDPOINT_INVALID", endpoint=payload)

    endpoint = urljoin(origin_of(stream_url) + "/", candidate)
    parts = urlsplit(endpoint)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise create_error("ENDPOINT_INVALID", endpoint=payload)
    return endpoint


def extract_session_id(url: str) -> str | None:
    """Return the session_id query value of a URL, if present and non-empty."""
    for key, value in parse_qsl(urlsplit(url).query, keep_blank_values=True):
        if key == SESSION_PARAM and value:
            return value
    return None


def redact_url(url: str) -> str:
    """Replace the env query value with a placeholder for logging."""
    parts = urlsplit(url)
    params = parse_qsl(parts.query, keep_blank_values=True)
    if not any(key == ENV_PARAM for key, _ in params):
        return url
    redacted = [(key, "<redacted>" if key == ENV_PARAM else value) for key, value in params]
    query = urlencode(redacted, quote_via=quote, safe="<>")
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
