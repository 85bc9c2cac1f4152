from __future__ import annotations

import os
import posixpath
from email.message import Message
from typing import AsyncIterator, Iterable, List, Optional, Tuple, Union

import aiofiles
import httpx

from ..exceptions import BodyFileError, InvalidHeaderError, InvalidURLError

BODY_CHUNK_SIZE = 65536


def parse_url(uri: str) -> httpx.URL:
    """
    Parse a command-line target, defaulting the scheme.

    Without a scheme the target is https, unless the authority ends in ``:80``.

    >>> parse_url("example.com").scheme
    'https'
    >>> parse_url("example.com:80").scheme
    'http'
    """
    if not uri or not uri.strip():
        raise InvalidURLError(message="URL cannot be empty", url=uri)

    raw = uri.strip()
    if "://" not in raw and not raw.startswith("//"):
        raw = "//" + raw

    if raw.startswith("//"):
        authority = raw[2:].split("/", 1)[0].split("?", 1)[0].split("#", 1)[0]
        scheme = "http" if authority.endswith(":80") else "https"
        raw = f"{scheme}:{raw}"

    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL as exc:
        raise InvalidURLError(message=f"could not parse url {uri!r}: {exc}", url=uri, cause=exc) from exc

    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidURLError(message=f"could not parse url {uri!r}", url=uri)
    return url


def header_key_value(header: str) -> Tuple[str, str]:
    """
    Split a ``-H 'Name: value'`` argument.

    Raises:
        InvalidHeaderError: if there is no ':'
    """
    i = header.find(":")
    if i == -1:
        raise InvalidHeaderError(message="", header=header)
    return header[:i].rstrip(" "), header[i:].lstrip(" :")


def build_headers(raw_headers: Iterable[str]) -> Tuple[List[Tuple[str, str]], Optional[str]]:
    """
    Turn -H arguments into request headers.

    A ``Host`` header (any case) is not sent as an extra header; it is
    returned separately and replaces the Host advertised for the target.

    Returns:
        (headers in order, host override or None)
    """
    headers: List[Tuple[str, str]] = []
    host: Optional[str] = None
    for raw in raw_headers:
        key, value = header_key_value(raw)
        if key.lower() == "host":
            host = value
            continue
        headers.append((key, value))
    return headers, host


def server_name(host: str) -> str:
    """Host without port, for TLS SNI. ``[::1]:443`` -> ``::1``."""
    if host.startswith("["):
        return host[1:].split("]", 1)[0]
    if host.count(":") == 1:
        return host.split(":", 1)[0]
    return host


async def _stream_file(path: str, chunk_size: int = BODY_CHUNK_SIZE) -> AsyncIterator[bytes]:
    async with aiofiles.open(path, "rb") as f:
        while True:
            chunk = await f.read(chunk_size)
            if not chunk:
                break
            yield chunk


def request_content(body: str) -> Union[bytes, AsyncIterator[bytes], None]:
    """
    Request content for a -d value.

    ``@path`` streams the file; anything else is sent literally.

    Raises:
        BodyFileError: if the file behind ``@path`` cannot be read
    """
    if not body:
        return None
    if body.startswith("@"):
        path = body[1:]
        if not os.path.isfile(path) or not os.access(path, os.R_OK):
            raise BodyFileError(message="", filename=path)
        return _stream_file(path)
    return body.encode("utf-8")


def filename_from_headers(headers: httpx.Headers) -> str:
    """
    Filename from ``Content-Disposition: attachment; filename=...``.

    Returns "" when the header is absent or gives no usable filename.
    """
    value = headers.get("Content-Disposition")
    if not value:
        return ""
    msg = Message()
    msg["Content-Disposition"] = value
    if msg.get_content_disposition() != "attachment":
        return ""
    return msg.get_filename() or ""


def remote_filename(headers: httpx.Headers, url: httpx.URL) -> str:
    """
    Name to save a body under for -O.

    Prefers Content-Disposition, otherwise the last path segment of the URL.
    Returns "/" when neither yields a name.
    """
    filename = posixpath.basename(filename_from_headers(headers))
    if filename:
        return filename
    return posixpath.basename(url.path.rstrip("/")) or "/"
