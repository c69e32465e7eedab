"""Checks and storage of the arguments of each configuration directive."""

from __future__ import annotations

from dataclasses import dataclass, field

from webserv.models import Listen, Location, ServerBlock

_INT_MAX = 2**31 - 1
_INT_MIN = -(2**31)
_LLONG_MAX = 2**63 - 1
_DIGITS = frozenset("0123456789")
_UNITS = {"k": 1024, "m": 1024 * 1024, "g": 1024 * 1024 * 1024}
_METHODS = ("GET", "POST", "DELETE")


class ConfigError(Exception):
    """Raised when the configuration is malformed."""


def _is_decimal(text: str) -> bool:
    return bool(text) and all(char in _DIGITS for char in text)


def _parse_signed(text: str, low: int, high: int) -> int:
    digits = text[1:] if text[:1] in "+-" else text
    if not _is_decimal(digits):
        raise ValueError(f"not an integer: {text!r}")
    value = int(text)
    if not low <= value <= high:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def parse_int(text: str) -> int:
    """Parse a decimal integer that fits a 32-bit signed int; ValueError otherwise."""
    return _parse_signed(text, _INT_MIN, _INT_MAX)


def is_valid_ipv4(ip: str) -> bool:
    """Tell whether ``ip`` is a dotted-quad IPv4 address."""
    if not ip or ip.endswith("."):
        return False
    segments = ip.split(".")
    if len(segments) != 4:
        return False
    for segment in segments:
        if not segment or len(segment) > 3 or not _is_decimal(segment):
            return False
        if int(segment) > 255:
            return False
    return True


def parse_listen(arg: str) -> Listen:
    """Parse a ``listen`` argument of the form ``port`` or ``ip:port``."""
    ip = "0.0.0.0"
    port_text = arg
    if ":" in arg:
        ip, port_text = arg.split(":", 1)
    try:
        port = parse_int(port_text)
    except ValueError:
        raise ConfigError("arg Listen not correct") from None
    if not 1 <= port <= 65535:
        raise ConfigError("Invalid port number in listen directive.")
    if not is_valid_ipv4(ip):
        raise ConfigError(f"Invalid ip: {ip} in listen directive.")
    return Listen(ip, port)


def parse_body_size(arg: str) -> int:
    """Parse a ``client_max_body_size`` value with an optional k, m or g unit."""
    number = arg
    unit = ""
    for position, char in enumerate(arg):
        if char not in _DIGITS:
            number, unit = arg[:position], char
            if position + 1 != len(arg):
                raise ConfigError("client_max_body_size character after unit")
            break

    try:
        value = _parse_signed(number, -_LLONG_MAX - 1, _LLONG_MAX)
    except ValueError:
        raise ConfigError("client_max_body_size key incompatible value") from None

    if unit:
        factor = _UNITS.get(unit.lower())
        if factor is None:
            raise ConfigError("invalid unit for client_max_body_size (accepted: k, m, g)")
        if value > _LLONG_MAX // factor:
            raise ConfigError("client_max_body_size value is too large (overflow)")
        value *= factor
    if value <= 0:
        raise ConfigError("client_max_body_size must be a positive value")
    return value


def _parse_code(arg: str, low: int, high: int, name: str) -> int:
    try:
        code = parse_int(arg)
    except ValueError:
        raise ConfigError(f"wrong {name} code") from None
    if not low <= code <= high:
        raise ConfigError(f"wrong {name} code must be between {low} and {high}")
    return code


def _code_directive(
    pending: int | None,
    arg: str,
    position: int,
    target: dict[int, str],
    name: str,
    low: int,
    high: int,
) -> int | None:
    """Handle a ``<key> code path`` directive; return the new pending code."""
    if position == 1:
        if pending is not None:
            raise ConfigError(f"key {name} without arg")
        return _parse_code(arg, low, high, name)
    if position == 2:
        if pending is None:
            raise ConfigError("no code define before arg")
        target[pending] = arg
        return None
    raise ConfigError(f"too many arg for {name}")


@dataclass
class ServerBuilder:
    """Collects directive arguments into a ServerBlock."""

    block: ServerBlock = field(default_factory=ServerBlock)
    _pending_error: int | None = None
    _pending_return: int | None = None

    def add_argument(self, key: str, arg: str, position: int) -> None:
        """Apply the ``position``-th argument (from 1) of directive ``key``."""
        handlers = {
            "listen": self._listen,
            "server_name": self._server_name,
            "root": self._root,
            "index": self._index,
            "error_page": self._error_page,
            "client_max_body_size": self._body_size,
            "return": self._return,
        }
        handler = handlers.get(key)
        if handler is None:
            raise ConfigError(f"bad key {key} for server bloc")
        handler(arg, position)

    def add_location(self, path: str, location: Location) -> None:
        """Attach a finished location block; the path must be new."""
        if self.block.has_location(path):
            raise ConfigError(f"Location path '{path}' already exists in the server block.")
        self.block.add_location(path, location)

    def finish(self) -> ServerBlock:
        """Return the block, refusing an error_page that lacks its path."""
        if self._pending_error is not None:
            raise ConfigError("key error_page without arg")
        return self.block

    def _listen(self, arg: str, position: int) -> None:
        listen = parse_listen(arg)
        if any(existing.port == listen.port for existing in self.block.listens):
            raise ConfigError(f"duplicate listen directive ({listen.port}) in server block")
        self.block.listens.append(listen)

    def _server_name(self, arg: str, position: int) -> None:
        self.block.server_names.append(arg)

    def _root(self, arg: str, position: int) -> None:
        if position > 1:
            raise ConfigError("too many argument for root key")
        if self.block.root:
            raise ConfigError("double Root in server bloc")
        self.block.root = arg

    def _index(self, arg: str, position: int) -> None:
        self.block.index.append(arg)

    def _error_page(self, arg: str, position: int) -> None:
        self._pending_error = _code_directive(
            self._pending_error, arg, position, self.block.error_pages, "error_page", 300, 599
        )

    def _body_size(self, arg: str, position: int) -> None:
        if position > 1:
            raise ConfigError(
                "invalid number of arguments in client_max_body_size directive"
            )
        self.block.client_max_body_size = parse_body_size(arg)

    def _return(self, arg: str, position: int) -> None:
        self._pending_return = _code_directive(
            self._pending_return, arg, position, self.block.return_directives, "return", 1, 999
        )


@dataclass
class LocationBuilder:
    """Collects directive arguments into a Location."""

    location: Location = field(default_factory=Location)
    _pending_cgi: str | None = None
    _pending_return: int | None = None

    def add_argument(self, key: str, arg: str, position: int) -> None:
        """Apply the ``position``-th argument (from 1) of directive ``key``."""
        handlers = {
            "root": self._root,
            "alias": self._alias,
            "index": self._index,
            "allow_methods": self._allow_methods,
            "upload_path": self._upload_path,
            "autoindex": self._autoindex,
            "cgi_extension": self._cgi_extension,
            "return": self._return,
        }
        handler = handlers.get(key)
        if handler is None:
            raise ConfigError(f"bad key {key} for location bloc")
        handler(arg, position)

    def finish(self) -> Location:
        """Return the location, refusing a cgi_extension that lacks its path."""
        if self._pending_cgi is not None:
            raise ConfigError("key cgi without arg")
        return self.location

    def _root(self, arg: str, position: int) -> None:
        if position > 1:
            raise ConfigError("too many argument for root key")
        if self.location.root:
            raise ConfigError("double root in location bloc")
        if self.location.alias:
            raise ConfigError("can't have a root if already an alias")
        self.location.root = arg

    def _alias(self, arg: str, position: int) -> None:
        if position > 1:
            raise ConfigError("too many argument for alias key")
        if self.location.alias:
            raise ConfigError("double alias in location bloc")
        if self.location.root:
            raise ConfigError("can't have a alias if already an root")
        self.location.alias = arg

    def _index(self, arg: str, position: int) -> None:
        self.location.index.append(arg)

    def _allow_methods(self, arg: str, position: int) -> None:
        if arg in self.location.allow_methods:
            raise ConfigError(f"Method '{arg}' already define")
        if arg not in _METHODS:
            raise ConfigError("bad argument for allow_methods key")
        self.location.allow_methods.add(arg)

    def _upload_path(self, arg: str, position: int) -> None:
        self.location.upload_path = arg

    def _autoindex(self, arg: str, position: int) -> None:
        if position > 1:
            raise ConfigError("too many argument for autoindex key")
        if arg == "on":
            self.location.autoindex = True
        elif arg == "off":
            self.location.autoindex = False
        else:
            raise ConfigError("bad argument for autoindex key")

    def _cgi_extension(self, arg: str, position: int) -> None:
        if position == 1:
            if self._pending_cgi is not None:
                raise ConfigError("key cgi without arg")
            if not 1 < len(arg) <= 4 or arg[0] != "." or "." in arg[1:]:
                raise ConfigError("CgiExtension bad format")
            self._pending_cgi = arg
        elif position == 2:
            if self._pending_cgi is None:
                raise ConfigError("no extension define before path")
            self.location.cgi_extensions[self._pending_cgi] = arg
            self._pending_cgi = None
        else:
            raise ConfigError("too many argument for CgiExtension key")

    def _return(self, arg: str, position: int) -> None:
        self._pending_return = _code_directive(
            self._pending_return, arg, position, self.location.return_directives, "return", 1, 999
        )