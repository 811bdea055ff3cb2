"""Structured configuration file loaders.

Purpose
-------
Convert files, URLs and inline strings into Python mappings that the merge
layer understands. Adapters are small wrappers around ``yaml.load``,
``json.loads`` and a delimited ``key=value`` parser so error handling and
observability live in one place.

Contents
--------
* :class:`BaseFileLoader` – shared helpers for reading local files or URLs and
  validating mapping outputs.
* :class:`JSONFileLoader` – JSON files and inline JSON strings.
* :class:`YAMLFileLoader` – YAML documents, including the ``!expr`` tag.
* :class:`TextFileLoader` – separator-delimited ``key<sep>value`` lines with
  dotted keys.
* :func:`loader_for` – choose a loader from the file suffix.

System Role
-----------
Invoked by :func:`lib_rconfig.core.config_list` for the default file, ``-f``
flags and the ``file`` argument (and :class:`JSONFileLoader.loads` for ``-j``
flags) before the payloads are merged.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator, Mapping
from urllib.parse import urlsplit

import httpx
import yaml

from ...domain.errors import NamingError, NotFound, SourceError
from ...domain.flatten import nest
from ...observability import Event, log_debug, log_error
from ..env.default import coerce_value
from ..expressions.default import EXPR_PREFIX

_URL_SCHEMES = ("http://", "https://")
_HTTP_TIMEOUT = 10.0


def is_url(path: str) -> bool:
    """Return ``True`` when *path* should be fetched over HTTP(S).

    Examples
    --------
    >>> is_url("https://example.com/rconfig.yml"), is_url("rconfig.yml")
    (True, False)
    """

    return path.lower().startswith(_URL_SCHEMES)


class BaseFileLoader:
    """Common utilities shared by the structured file loaders."""

    format = "text"

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def _read(self, path: str) -> bytes:
        """Read *path* (local file or URL) as bytes.

        Raises
        ------
        NotFound
            The local file does not exist or the server answered 404.
        SourceError
            Any other transport failure.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile(delete=False)
        >>> _ = tmp.write(b"key=value")
        >>> tmp.close()
        >>> BaseFileLoader()._read(tmp.name)[:3]
        b'key'
        >>> Path(tmp.name).unlink()
        """

        if is_url(path):
            payload = _fetch(path)
        else:
            file_path = Path(path)
            if not file_path.is_file():
                raise NotFound(f"Configuration file not found: {path}")
            payload = file_path.read_bytes()
        log_debug(Event.CONFIG_FILE_READ, kind="file", token=path, size=len(payload))
        return payload

    def _decode(self, payload: bytes, path: str) -> str:
        try:
            return payload.decode(self.encoding)
        except UnicodeDecodeError as exc:
            log_error(Event.CONFIG_FILE_INVALID, kind="file", token=path, format=self.format, error=str(exc))
            raise SourceError(f"Cannot decode {path} as {self.encoding}: {exc}") from exc

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, object]:
        """Ensure *data* behaves like a mapping, otherwise raise ``SourceError``.

        Examples
        --------
        >>> BaseFileLoader._ensure_mapping({"key": 1}, path="demo")
        {'key': 1}
        >>> BaseFileLoader._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        lib_rconfig.domain.errors.SourceError: demo did not produce a mapping
        """

        if data is None:
            return {}
        if not isinstance(data, Mapping):
            raise SourceError(f"{path} did not produce a mapping")
        return data


class JSONFileLoader(BaseFileLoader):
    """Load JSON documents and inline JSON strings."""

    format = "json"

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from the JSON file or URL at *path*.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile('w', delete=False, encoding='utf-8')
        >>> _ = tmp.write('{"enabled": true}')
        >>> tmp.close()
        >>> JSONFileLoader().load(tmp.name)["enabled"]
        True
        >>> Path(tmp.name).unlink()
        """

        result = self._parse(self._decode(self._read(path), path), path)
        log_debug(Event.CONFIG_FILE_LOADED, kind="file", token=path, format="json")
        return result

    def loads(self, text: str) -> Mapping[str, object]:
        """Return the mapping encoded in the JSON string *text*.

        Examples
        --------
        >>> JSONFileLoader().loads('{"db": {"port": 5432}}')
        {'db': {'port': 5432}}
        """

        return self._parse(text, "JSON string")

    def _parse(self, text: str, origin: str) -> Mapping[str, object]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            log_error(Event.CONFIG_FILE_INVALID, kind="file", token=origin, format="json", error=str(exc))
            raise SourceError(f"Invalid JSON in {origin}: {exc}") from exc
        return self._ensure_mapping(data, path=origin)


class _ExprSafeLoader(yaml.SafeLoader):
    """Safe YAML loader that keeps ``!expr`` tagged scalars as marked strings."""


def _construct_expr(loader: yaml.SafeLoader, node: yaml.Node) -> str:
    return EXPR_PREFIX + str(loader.construct_scalar(node))  # type: ignore[arg-type]


_ExprSafeLoader.add_constructor("!expr", _construct_expr)


class YAMLFileLoader(BaseFileLoader):
    """Load YAML documents; ``!expr`` tags become ``"!expr ..."`` strings."""

    format = "yaml"

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from the YAML file or URL at *path*.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile('w', suffix='.yml', delete=False, encoding='utf-8')
        >>> _ = tmp.write('cores: !expr 2 + 2\\nname: demo\\n')
        >>> tmp.close()
        >>> YAMLFileLoader().load(tmp.name)
        {'cores': '!expr 2 + 2', 'name': 'demo'}
        >>> Path(tmp.name).unlink()
        """

        text = self._decode(self._read(path), path)
        try:
            data = yaml.load(text, Loader=_ExprSafeLoader)  # noqa: S506 - SafeLoader subclass
        except yaml.YAMLError as exc:
            log_error(Event.CONFIG_FILE_INVALID, kind="file", token=path, format="yaml", error=str(exc))
            raise SourceError(f"Invalid YAML in {path}: {exc}") from exc
        result = self._ensure_mapping(data, path=path)
        log_debug(Event.CONFIG_FILE_LOADED, kind="file", token=path, format="yaml")
        return result


class TextFileLoader(BaseFileLoader):
    """Load ``key<sep>value`` text files; dotted keys become nested mappings."""

    format = "text"

    def __init__(self, *, sep: str = "=", encoding: str = "utf-8") -> None:
        super().__init__(encoding=encoding)
        self.sep = sep

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from the delimited text file at *path*.

        Blank lines and lines starting with ``#`` are skipped; keys and values
        are stripped; values are coerced (``true``, ``5``, ``3.5``, ``null``).

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile('w', suffix='.txt', delete=False, encoding='utf-8')
        >>> _ = tmp.write('# prod\\ndb.host = prod.local\\ndb.port=5432\\n')
        >>> tmp.close()
        >>> TextFileLoader().load(tmp.name)
        {'db': {'host': 'prod.local', 'port': 5432}}
        >>> Path(tmp.name).unlink()
        """

        text = self._decode(self._read(path), path)
        pairs = list(self._pairs(text, path))
        try:
            result = nest(pairs)
        except NamingError as exc:
            log_error(Event.CONFIG_FILE_INVALID, kind="file", token=path, format="text", error=str(exc))
            raise SourceError(f"Invalid keys in {path}: {exc}") from exc
        log_debug(Event.CONFIG_FILE_LOADED, kind="file", token=path, format="text", sep=self.sep)
        return result

    def _pairs(self, text: str, path: str) -> Iterator[tuple[str, object]]:
        for number, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            key, found, value = line.partition(self.sep)
            if not found or not key.strip():
                log_error(Event.CONFIG_FILE_INVALID, kind="file", token=path, format="text", line=number)
                raise SourceError(f"Line {number} of {path} is not '<key>{self.sep}<value>': {raw!r}")
            yield key.strip(), coerce_value(value.strip())


def loader_for(path: str, *, sep: str = "=", encoding: str = "utf-8") -> BaseFileLoader:
    """Return the loader matching the suffix of *path* (URLs included).

    Examples
    --------
    >>> type(loader_for("conf/app.yaml")).__name__
    'YAMLFileLoader'
    >>> type(loader_for("https://example.com/app.json?raw=1")).__name__
    'JSONFileLoader'
    >>> type(loader_for("rconfig-prod.txt", sep=":")).__name__
    'TextFileLoader'
    """

    target = urlsplit(path).path if is_url(path) else path
    suffix = Path(target).suffix.lower()
    if suffix in {".yml", ".yaml"}:
        return YAMLFileLoader(encoding=encoding)
    if suffix == ".json":
        return JSONFileLoader(encoding=encoding)
    return TextFileLoader(sep=sep, encoding=encoding)


def _fetch(url: str) -> bytes:
    """Download *url*; a 404 counts as missing, other failures as invalid."""

    try:
        response = httpx.get(url, timeout=_HTTP_TIMEOUT, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            raise NotFound(f"Configuration URL not found: {url}") from exc
        log_error(Event.CONFIG_URL_FAILED, kind="file", token=url, status=exc.response.status_code)
        raise SourceError(f"Cannot fetch {url}: HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        log_error(Event.CONFIG_URL_FAILED, kind="file", token=url, error=str(exc))
        raise SourceError(f"Cannot fetch {url}: {exc}") from exc
    return response.content
