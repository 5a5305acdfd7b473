"""Parsing of container runtime endpoint addresses."""

import re
import string

UNIX_PROTOCOL = "unix"

RUNTIME_DOCKER = "docker"
RUNTIME_CONTAINERD = "containerd"
RUNTIME_CRIO = "cri-o"
DOCKER_PATH = "/run/dockershim.sock"
CONTAINERD_PATH = "/run/containerd/containerd.sock"
CRIO_PATH = "/run/crio/crio.sock"

ENV_ERASER_CONTAINER_RUNTIME = "ERASER_CONTAINER_RUNTIME"

RUNTIME_SOCKET_PATHS = {
    RUNTIME_DOCKER: DOCKER_PATH,
    RUNTIME_CONTAINERD: CONTAINERD_PATH,
    RUNTIME_CRIO: CRIO_PATH,
}


class EndpointError(ValueError):
    """Base class for endpoint problems; ``protocol`` is the scheme seen, if any."""

    protocol = ""


class EndpointParseError(EndpointError):
    """The endpoint is not a well-formed URL."""


class EndpointDeprecatedError(EndpointError):
    """The endpoint has no scheme."""

    def __init__(self, endpoint: str):
        super().__init__(
            f'using "{endpoint}" as endpoint is deprecated, '
            "please consider using full url format"
        )


class ProtocolNotSupportedError(EndpointError):
    """The endpoint uses a scheme other than tcp or unix."""

    def __init__(self, protocol: str):
        self.protocol = protocol
        super().__init__(f'"{protocol}": protocol not supported')


class OnlyUnixSocketError(EndpointError):
    """The endpoint is valid but is not a unix socket."""

    def __init__(self, message: str = "only support unix socket endpoint"):
        super().__init__(message)


_SCHEME_LEADING = set(string.ascii_letters)
_SCHEME_TRAILING = set(string.digits + "+-.")
_HOST_ALLOWED = set(string.ascii_letters + string.digits + "-._~!$&'()*+,;=:[]<>\"%")
_ESCAPE = re.compile(r"%(.{0,2})", re.DOTALL)
_HEX = set(string.hexdigits)


def _fail(raw: str, reason: str) -> EndpointParseError:
    return EndpointParseError(f'error while parsing: parse "{raw}": {reason}')


def _split_scheme(raw: str) -> tuple[str, str]:
    for i, ch in enumerate(raw):
        if ch in _SCHEME_LEADING:
            continue
        if ch in _SCHEME_TRAILING:
            if i == 0:
                return "", raw
            continue
        if ch == ":":
            if i == 0:
                raise _fail(raw, "missing protocol scheme")
            return raw[:i].lower(), raw[i + 1 :]
        return "", raw
    return "", raw


def _unescape(raw: str, text: str) -> str:
    pieces = []
    pos = 0
    for match in _ESCAPE.finditer(text):
        digits = match.group(1)
        if len(digits) != 2 or not set(digits) <= _HEX:
            raise _fail(raw, f'invalid URL escape "%{digits}"')
        pieces.append(text[pos : match.start()])
        pieces.append(chr(int(digits, 16)))
        pos = match.end()
    pieces.append(text[pos:])
    return "".join(pieces)


def _valid_port(port: str) -> bool:
    if port == "":
        return True
    return port.startswith(":") and all(c in string.digits for c in port[1:])


def _parse_host(raw: str, host: str) -> str:
    if host.startswith("["):
        end = host.rfind("]")
        if end < 0:
            raise _fail(raw, "missing ']' in host")
        if not _valid_port(host[end + 1 :]):
            raise _fail(raw, f'invalid port "{host[end + 1:]}" after host')
    else:
        colon = host.rfind(":")
        if colon >= 0 and not _valid_port(host[colon:]):
            raise _fail(raw, f'invalid port "{host[colon:]}" after host')
    for ch in host:
        if ord(ch) < 0x80 and ch not in _HOST_ALLOWED:
            raise _fail(raw, f'invalid character "{ch}" in host name')
    return _unescape(raw, host)


def _parse_url(raw: str) -> tuple[str, str, str]:
    """Split ``raw`` into (scheme, host, path) the way a URL parser would."""
    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in raw):
        raise _fail(raw, "net/url: invalid control character in URL")

    rest = raw.split("#", 1)[0]
    scheme, rest = _split_scheme(rest)
    rest = rest.split("?", 1)[0]

    if not rest.startswith("/"):
        if scheme:
            return scheme, "", ""
        first_segment = rest.split("/", 1)[0]
        if ":" in first_segment:
            raise _fail(raw, "first path segment in URL cannot contain colon")

    host = ""
    if rest.startswith("//") and (scheme or not rest.startswith("///")):
        authority, sep, tail = rest[2:].partition("/")
        rest = sep + tail
        at = authority.rfind("@")
        host = _parse_host(raw, authority[at + 1 :])

    return scheme, host, _unescape(raw, rest)


def parse_endpoint(endpoint: str) -> tuple[str, str]:
    """Return ``(protocol, address)`` for a tcp or unix endpoint URL."""
    scheme, host, path = _parse_url(endpoint)
    if scheme == "tcp":
        return "tcp", host
    if scheme == UNIX_PROTOCOL:
        return UNIX_PROTOCOL, path
    if scheme == "":
        raise EndpointDeprecatedError(endpoint)
    raise ProtocolNotSupportedError(scheme)


def parse_endpoint_with_fallback_protocol(
    endpoint: str, fallback_protocol: str
) -> tuple[str, str]:
    """Parse ``endpoint``, retrying with ``fallback_protocol`` when it has no scheme."""
    try:
        return parse_endpoint(endpoint)
    except EndpointError as err:
        if err.protocol:
            raise
    return parse_endpoint(f"{fallback_protocol}://{endpoint}")


def get_address(endpoint: str) -> str:
    """Return the socket path for a unix endpoint."""
    protocol, address = parse_endpoint_with_fallback_protocol(endpoint, UNIX_PROTOCOL)
    if protocol != UNIX_PROTOCOL:
        raise OnlyUnixSocketError()
    return address