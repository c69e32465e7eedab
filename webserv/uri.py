"""Helpers for request targets: query strings, extensions and multipart bodies."""

from __future__ import annotations

from typing import AnyStr


def split_query(uri: str) -> tuple[str, str, dict[str, str]]:
    """Split ``uri`` at its first ``?``.

    Return the path, the raw query string and the parsed parameters.
    A parameter without ``=`` gets an empty value, empty keys are dropped
    and a repeated key keeps its last value.
    """
    path, separator, query_string = uri.partition("?")
    if not separator:
        return uri, "", {}
    parameters: dict[str, str] = {}
    for part in query_string.split("&"):
        key, _, value = part.partition("=")
        if key:
            parameters[key] = value
    return path, query_string, parameters


def uri_extension(uri: str) -> str:
    """Return everything from the last ``.`` of ``uri``, or "" if there is none.

    A ``.`` that ends the URI gives no extension.
    """
    dot = uri.rfind(".")
    if dot == -1 or dot == len(uri) - 1:
        return ""
    return uri[dot:]


def extract_multipart_content(body: AnyStr) -> AnyStr:
    """Return the content of the first part of a multipart body.

    The boundary is the first line of ``body``; the content starts after the
    part's blank line and stops before the CRLF that precedes the next
    boundary. An empty value is returned when the body is not shaped so.
    """
    crlf = b"\r\n" if isinstance(body, bytes) else "\r\n"
    empty = body[:0]
    boundary_end = body.find(crlf)
    if boundary_end == -1:
        return empty
    boundary = body[:boundary_end]
    content_start = body.find(crlf + crlf, boundary_end)
    if content_start == -1:
        return empty
    content_start += 4
    content_end = body.find(boundary, content_start)
    if content_end == -1:
        return empty
    if content_end - content_start < 2:
        return body[content_start:]
    return body[content_start:content_end - 2]