"""Configuration blocks: listen addresses, server blocks and location blocks."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from webserv.logmanager import LogLevel, logger

DEFAULT_CLIENT_MAX_BODY_SIZE = 10485760


@dataclass(frozen=True)
class Listen:
    """An address and port a server block listens on."""

    ip: str = "0.0.0.0"
    port: int = 80


@dataclass
class Location:
    """Settings that apply to requests under one location path."""

    path: str = ""
    root: str = ""
    alias: str = ""
    index: list[str] = field(default_factory=list)
    allow_methods: set[str] = field(default_factory=set)
    cgi_extensions: dict[str, str] = field(default_factory=dict)
    upload_path: str = ""
    autoindex: bool = False
    return_directives: dict[int, str] = field(default_factory=dict)

    def cgi_path(self, extension: str) -> str:
        """Return the interpreter configured for ``extension``; KeyError if none."""
        return self.cgi_extensions[extension]


def paths_match(path: str, parent: str) -> bool:
    """Tell whether ``path`` lies under the location path ``parent``."""
    if not path.startswith(parent):
        return False
    return len(path) == len(parent) or path[len(parent)] == "/" or parent == "/"


@dataclass
class ServerBlock:
    """One ``server`` block of the configuration."""

    listens: list[Listen] = field(default_factory=list)
    server_names: list[str] = field(default_factory=list)
    root: str = ""
    index: list[str] = field(default_factory=list)
    error_pages: dict[int, str] = field(default_factory=dict)
    client_max_body_size: int = DEFAULT_CLIENT_MAX_BODY_SIZE
    locations: dict[str, Location] = field(default_factory=dict)
    return_directives: dict[int, str] = field(default_factory=dict)

    def add_location(self, path: str, location: Location) -> None:
        """Store a copy of ``location`` under ``path``, with its path set."""
        stored = copy.deepcopy(location)
        stored.path = path
        self.locations[path] = stored

    def is_valid(self) -> bool:
        """A server block is usable once it listens somewhere."""
        return bool(self.listens)

    def has_location(self, path: str) -> bool:
        return path in self.locations

    def matching_location(self, uri: str) -> Location | None:
        """Return the location with the longest path matching ``uri``, or None."""
        best: Location | None = None
        best_length = 0
        for location_path in sorted(self.locations):
            if not paths_match(uri, location_path):
                continue
            if best is None or len(location_path) > best_length:
                best = self.locations[location_path]
                best_length = len(location_path)
                logger.log(LogLevel.DEBUG, "Matching location found: %s", location_path)
        return best