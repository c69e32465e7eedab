"""Reading the server configuration file into server and location blocks."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from webserv.directives import ConfigError, LocationBuilder, ServerBuilder
from webserv.logmanager import LogLevel, logger
from webserv.models import Listen, ServerBlock

_SPACE = frozenset(" \t\n\r\v\f")
_KNOWN_KEYS = frozenset(
    {
        "location",
        "listen",
        "server_name",
        "root",
        "index",
        "error_page",
        "client_max_body_size",
        "alias",
        "allow_methods",
        "upload_path",
        "autoindex",
        "cgi_extension",
        "return",
    }
)
_LINE_EXEMPT_KEYS = ("server", "location", "")


def is_server_key(token: str) -> bool:
    """Tell whether ``token`` opens a server block."""
    return token == "server"


def is_known_key(token: str) -> bool:
    """Tell whether ``token`` is a directive allowed inside a block."""
    return token in _KNOWN_KEYS


@dataclass
class Config:
    """The whole configuration: an ordered list of server blocks."""

    servers: list[ServerBlock] = field(default_factory=list)

    def server(self, index: int) -> ServerBlock:
        return self.servers[index]


def default_config() -> Config:
    """Return the configuration used when the file defines no server."""
    block = ServerBlock()
    block.index.append("index.html")
    block.root = "./www/main"
    block.listens.append(Listen("0.0.0.0", 1234))
    return Config(servers=[block])


class _Parser:
    """Character-driven reader of the block-structured configuration syntax."""

    def __init__(self) -> None:
        self.config = Config()
        self.token = ""
        self.in_comment = False
        self.depth = 0
        self.semicolons = 0
        self.is_key = True
        self.empty_block = True
        self.in_location_block = False
        self.in_location_line = False
        self.last_key = ""
        self.last_char = ""
        self.location = LocationBuilder()
        self.server = ServerBuilder()
        self.location_path = ""
        self.arg_count = 0
        self.comment_after_semicolon = False

    def parse(self, text: str) -> Config:
        for char in text:
            self._feed(char)
        if self.depth != 0:
            raise ConfigError("a bloc is not close!")
        if not self.config.servers:
            return default_config()
        return self.config

    def _feed(self, char: str) -> None:
        if self.in_comment:
            if char == "\n":
                if self.last_char == ";":
                    self.comment_after_semicolon = True
                self.in_comment = False
                self.semicolons = 0
                self.is_key = True
            return
        if char == "#":
            self.in_comment = True
        elif char == "\n":
            self._end_line()
        elif char == "{":
            self._open_block()
        elif char == "}":
            self._close_block()
        elif char == ";":
            self._semicolon()
        elif self.semicolons == 1 and char not in _SPACE:
            raise ConfigError("line request must end by ';'")
        elif char in _SPACE:
            self._space()
        else:
            self.empty_block = False
            self.token += char
            self.last_char = char

    def _apply(self, token: str) -> None:
        if self.depth == 1 and self.last_key != "location":
            self.server.add_argument(self.last_key, token, self.arg_count)
        elif self.depth == 2:
            self.location.add_argument(self.last_key, token, self.arg_count)

    def _end_line(self) -> None:
        token = self.token
        if token:
            if self.is_key:
                logger.log(LogLevel.DEBUG, "Key found: %s", token)
                self.last_key = token
                if not is_server_key(token):
                    raise ConfigError("first key must be 'server'")
                if self.depth != 0:
                    raise ConfigError("server key inside a server bloc")
                self.server = ServerBuilder()
            else:
                logger.log(LogLevel.DEBUG, "Argument found: %s", token)
                self.arg_count += 1
            if self.semicolons != 1 and token != "server":
                raise ConfigError(
                    "line request must end by ';' OR first bloc must be server"
                )
            self.token = ""
        if (
            self.semicolons != 1
            and self.last_key not in _LINE_EXEMPT_KEYS
            and self.last_char not in ("\n", "}")
            and not self.comment_after_semicolon
        ):
            raise ConfigError("Line request must end by ';'")
        self.semicolons = 0
        self.comment_after_semicolon = False
        self.is_key = True
        self.arg_count = 0
        self.last_char = "\n"

    def _open_block(self) -> None:
        logger.log(LogLevel.DEBUG, "Block start")
        self.depth += 1
        self.is_key = True
        self.empty_block = True
        if is_server_key(self.token):
            self.last_key = self.token
            self.token = ""
        if self.depth == 2 and not self.in_location_block:
            raise ConfigError("bloc of lvl 2 must be location")
        if self.depth == 3:
            raise ConfigError("location blocks cannot be nested")
        self.last_char = "{"

    def _close_block(self) -> None:
        logger.log(LogLevel.DEBUG, "Block end")
        if self.empty_block:
            raise ConfigError("file can't have empty bloc")
        if self.depth == 2:
            path = self.location_path
            if self.server.block.has_location(path):
                raise ConfigError(
                    f"Location path '{path}' already exists in the server block."
                )
            self.server.add_location(path, self.location.finish())
            self.location_path = ""
        elif self.depth == 1:
            self.config.servers.append(self.server.finish())
            self.server = ServerBuilder()
        self.in_location_block = False
        self.depth -= 1
        self.is_key = True
        self.last_char = "}"

    def _semicolon(self) -> None:
        self.semicolons += 1
        if self.depth == 0:
            raise ConfigError("directive 'server' has no opening '{'")
        if self.semicolons > 1:
            raise ConfigError("multiple request in one line")
        token = self.token
        if token:
            if self.is_key:
                logger.log(LogLevel.DEBUG, "Key found: %s", token)
                self.last_key = token
            else:
                logger.log(LogLevel.DEBUG, "Argument found: %s", token)
                self.arg_count += 1
                self._apply(token)
            self.token = ""
        elif self.is_key:
            raise ConfigError("unexpected ';'")
        self.is_key = True
        self.last_char = ";"

    def _space(self) -> None:
        token = self.token
        if not token:
            return
        self.token = ""
        if self.is_key and not self.in_location_line:
            logger.log(LogLevel.DEBUG, "Key found: %s", token)
            if self.last_key == "location" and self.depth != 2:
                raise ConfigError("if location key must open a bloc")
            self.last_key = token
            self.is_key = False
            if token == "location":
                self.in_location_block = True
                self.in_location_line = True
            if is_server_key(token) and self.depth == 0:
                return
            if not is_known_key(token):
                raise ConfigError("key unknown")
        else:
            logger.log(LogLevel.DEBUG, "Argument found: %s", token)
            self.in_location_line = False
            self.arg_count += 1
            if self.depth == 1 and self.last_key == "location":
                self.location = LocationBuilder()
                self.location_path = token
            else:
                self._apply(token)


def parse_config(text: str) -> Config:
    """Parse configuration text; raise ConfigError when it is malformed.

    Text that defines no server block yields the default configuration.
    """
    return _Parser().parse(text)


def load_config(path: str | Path) -> Config:
    """Read and parse the configuration file at ``path``."""
    try:
        text = Path(path).read_text(encoding="utf-8", errors="surrogateescape")
    except OSError:
        raise ConfigError("impossible to open file") from None
    return parse_config(text)


def _pairs(mapping: dict) -> str:
    return "".join(f"{key} -> {value}; " for key, value in sorted(mapping.items()))


def format_config(config: Config) -> str:
    """Return a human-readable dump of every server and location block."""
    logger.log(LogLevel.DEBUG, "PRINT PARSE CONFIGURATION :")
    lines = ["========== Configuration =========="]
    for number, server in enumerate(config.servers, start=1):
        lines.append(f"Server {number}:")
        lines.append(
            "  Listen: " + ", ".join(f"{item.ip}:{item.port}" for item in server.listens)
        )
        lines.append("  Server Names: " + ", ".join(server.server_names))
        lines.append(f"  Root: {server.root}")
        lines.append("  Index: " + ", ".join(server.index))
        lines.append("  Error Pages: " + _pairs(server.error_pages))
        lines.append("  Return Directive: " + _pairs(server.return_directives))
        lines.append(f"  Client Max Body Size: {server.client_max_body_size}")
        lines.append("  Locations:")
        for path in sorted(server.locations):
            location = server.locations[path]
            lines.append(f"    Path: {path}")
            lines.append(f"      Root: {location.root}")
            lines.append(f"      Alias: {location.alias}")
            lines.append("      Index: " + ", ".join(location.index))
            lines.append("      Allow Methods: " + ", ".join(sorted(location.allow_methods)))
            lines.append(f"      Upload Path: {location.upload_path}")
            lines.append(f"      Auto Index: {'on' if location.autoindex else 'off'}")
            lines.append("      Cgi Extension: " + _pairs(location.cgi_extensions))
            lines.append("      Return Directive: " + _pairs(location.return_directives))
        lines.append("-----------------------------------")
    lines.append("===================================")
    return "\n".join(lines) + "\n"