"""Flatten nested configuration mappings into dotted keys and back.

Purpose
-------
Convert the merged configuration tree into a flat mapping keyed by
dot-separated paths (``{"db": {"host": "a"}}`` ↔ ``{"db.host": "a"}``) without
losing information. Sequence leaves stay intact as values; the auto-generated
names that appear while unlisting them (``roles1``, ``roles2`` …) are folded
back into the owning key.

Contents
--------
* :data:`SEPARATOR` – the path separator (``"."``).
* :func:`nest` – rebuild the nested tree from flat keys.
* :func:`flatten` – collapse a nested tree into flat keys, verified by a
  round trip through :func:`nest`.
* Private helpers that compute unlisted names, terminal owners, the depth-1
  correction, orphan repair, path materialisation, and adjacent-duplicate
  collapse.

System Role
-----------
Pure domain logic without I/O. Used by :func:`lib_rconfig.core.rconfig` when
the ``flatten`` behavior flag is on, by the delimited text loader and the
command-line adapter (``a.b.c`` keys), and by the ``flatten``/``nest`` CLI
commands.

Known limitations
-----------------
Empty mappings or sequences, sequences that hold mappings, and keys that
collide with auto-generated names below the top level cannot be represented
and end in :class:`ConsistencyError`. Key roots are matched by plain common
prefixes, so orphan repair may pick surprising owners when top-level names
share long prefixes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final, Iterable

from .errors import ConsistencyError, NamingError

SEPARATOR: Final[str] = "."
"""Separator joining the chain of nested keys in a flat key path."""


def nest(flat: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Return the nested mapping described by dotted keys in *flat*.

    Why
    ----
    Command-line flags, delimited text files and flattened results all encode
    hierarchy in their key names; the merge engine needs real nesting.

    Parameters
    ----------
    flat:
        Mapping (or iterable of ``(key, value)`` pairs) whose keys are dotted
        paths.

    Raises
    ------
    NamingError
        When keys repeat, contain empty segments, or imply conflicting
        structure (one key ends where another continues).

    Examples
    --------
    >>> nest({"db.host": "a", "db.port": 5432})
    {'db': {'host': 'a', 'port': 5432}}
    >>> nest({"a": 1, "a.b": 2})
    Traceback (most recent call last):
    ...
    lib_rconfig.domain.errors.NamingError: Key 'a.b' conflicts with another key at 'a'
    """

    result: dict[str, Any] = {}
    branches: set[int] = {id(result)}
    for key, value in _pairs(flat):
        segments = _split(key)
        cursor = result
        for depth, segment in enumerate(segments[:-1]):
            child = cursor.get(segment)
            if segment not in cursor:
                child = {}
                branches.add(id(child))
                cursor[segment] = child
            elif id(child) not in branches:
                raise NamingError(f"Key {key!r} conflicts with another key at {_path(segments[: depth + 1])!r}")
            cursor = child
        leaf = segments[-1]
        if leaf in cursor:
            raise NamingError(f"Key {key!r} conflicts with another key at {key!r}")
        cursor[leaf] = value
    return result


def flatten(mapping: Mapping[str, Any] | Iterable[tuple[str, Any]], *, check: bool = True) -> dict[str, Any]:
    """Collapse *mapping* into a flat mapping keyed by dotted paths.

    Why
    ----
    Some consumers (environment exporters, key/value stores, ``argparse``
    defaults) want ``a.b.c`` keys instead of nested dictionaries.

    What
    ----
    Unlists the tree into one name per terminal scalar, corrects names that
    were generated for unnamed top-level vectors, re-assigns terminals to
    top-level keys that produced no terminal of their own, re-walks every
    path against the original tree to pick up the real value (so sequences
    stay sequences), and folds adjacent entries that resolved to the same
    value via the same keys. The result is verified by re-nesting it.

    Parameters
    ----------
    mapping:
        Nested mapping or iterable of ``(key, value)`` pairs.
    check:
        When ``True`` (default) names are validated and the flatten → nest
        round trip must reproduce *mapping*.

    Returns
    -------
    dict[str, Any]
        Flat mapping. Empty input, or a single top-level entry whose value is
        not a mapping, is returned unchanged.

    Raises
    ------
    NamingError
        Names missing, duplicated, containing ``.``, or an ambiguous root.
    ConsistencyError
        The result does not nest back into *mapping*.

    Examples
    --------
    >>> flatten({"user": {"name": "Jack", "roles": ["a", "b"]}, "debug": True})
    {'user.name': 'Jack', 'user.roles': ['a', 'b'], 'debug': True}
    >>> flatten({"e": [4, 5], "e1": 3})
    {'e': [4, 5], 'e1': 3}
    >>> flatten({"only": [1, 2]})
    {'only': [1, 2]}
    """

    items = _pairs(mapping)
    if _is_trivial(items):
        return dict(items)
    source = dict(items)
    if check:
        _validate_names(source, ())

    names = _unlist_names(source)
    owners = _owners(source)
    parts = [name.split(SEPARATOR) for name in names]
    _correct_depth1(names, parts, owners)
    _repair_orphans(source, names, parts, owners)

    resolved = [_materialise(source, segments) for segments in parts]
    flat = _collapse(names, resolved)
    if check and nest(flat) != source:
        raise ConsistencyError(
            "Flattened configuration does not nest back into the original; "
            "empty containers, sequences of mappings and colliding names cannot be flattened"
        )
    return flat


def _pairs(source: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> list[tuple[str, Any]]:
    """Return ``(key, value)`` pairs, rejecting repeated keys."""

    if isinstance(source, Mapping):
        return list(source.items())
    pairs = [(key, value) for key, value in source]
    seen: set[Any] = set()
    duplicated = []
    for key, _ in pairs:
        if key in seen:
            duplicated.append(key)
        seen.add(key)
    if duplicated:
        raise NamingError(f"Names not unique: {', '.join(map(repr, duplicated))}")
    return pairs


def _split(key: Any) -> list[str]:
    """Split a flat key into its segments, rejecting empty ones."""

    if not isinstance(key, str) or not key:
        raise NamingError(f"Flat keys must be non-empty strings, got {key!r}")
    segments = key.split(SEPARATOR)
    if any(not segment for segment in segments):
        raise NamingError(f"Key {key!r} contains an empty segment")
    return segments


def _path(segments: Iterable[Any]) -> str:
    return SEPARATOR.join(str(segment) for segment in segments)


def _is_trivial(items: list[tuple[str, Any]]) -> bool:
    """Nothing to flatten: no entries, or one entry that is already a leaf."""

    if not items:
        return True
    return len(items) == 1 and not isinstance(items[0][1], Mapping)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_vector(value: Any) -> bool:
    """A sequence made only of scalars, kept whole as a flat value."""

    return _is_sequence(value) and not any(isinstance(item, Mapping) or _is_sequence(item) for item in value)


def _validate_names(node: Any, path: tuple[str, ...]) -> None:
    """Every key at every depth must be a non-empty string without the separator."""

    if isinstance(node, Mapping):
        for key, value in node.items():
            if not isinstance(key, str) or not key:
                raise NamingError(f"No names found at {_path(path) or '<root>'!r}: {key!r}")
            if SEPARATOR in key:
                raise NamingError(f"Names should not contain dots: {_path((*path, key))!r}")
            _validate_names(value, (*path, key))
    elif _is_sequence(node):
        for index, value in enumerate(node):
            _validate_names(value, (*path, str(index)))


def _leaf_count(value: Any) -> int:
    """Number of terminals *value* contributes when unlisted."""

    if isinstance(value, Mapping):
        return sum(_leaf_count(child) for child in value.values())
    if _is_sequence(value):
        return sum(_leaf_count(child) for child in value)
    return 1


def _name_count(value: Any) -> int:
    """Count unnamed terminals plus named children directly under one base name."""

    if isinstance(value, Mapping):
        return len(value)
    if _is_sequence(value):
        return sum(_name_count(child) for child in value)
    return 1


def _scope_names(value: Any, base: str) -> list[str]:
    """Unlisted names for *value* reached through the name *base*.

    Named children extend the base (``base.key``); unnamed scalar terminals are
    numbered ``base1, base2 …`` across the whole scope, or keep ``base`` when
    the scope holds a single item.
    """

    single = _name_count(value) == 1
    names: list[str] = []

    def visit(node: Any) -> None:
        if isinstance(node, Mapping):
            for key, child in node.items():
                names.extend(_scope_names(child, f"{base}{SEPARATOR}{key}" if base else key))
        elif _is_sequence(node):
            for child in node:
                visit(child)
        elif not base:
            names.append("")
        else:
            names.append(base if single else f"{base}{len(names) + 1}")

    visit(value)
    return names


def _unlist_names(source: Mapping[str, Any]) -> list[str]:
    return [name for key, value in source.items() for name in _scope_names(value, key)]


def _owners(source: Mapping[str, Any]) -> list[str]:
    """Top-level key each terminal descends from, in terminal order."""

    return [key for key, value in source.items() for _ in range(_leaf_count(value))]


def _correct_depth1(names: list[str], parts: list[list[str]], owners: list[str]) -> None:
    """Rewrite auto-generated top-level names (``e1``, ``e2``) to their owner (``e``)."""

    for index, owner in enumerate(owners):
        if parts[index][0] != owner:
            names[index] = owner
            parts[index][0] = owner


def _root(first: str | None, second: str | None) -> str | None:
    """Longest common leading run of characters, ``None`` when either is missing."""

    if first is None or second is None:
        return None
    length = 0
    for left, right in zip(first, second):
        if left != right:
            break
        length += 1
    return first[:length]


def _repair_orphans(
    source: Mapping[str, Any],
    names: list[str],
    parts: list[list[str]],
    owners: list[str],
) -> None:
    """Hand terminals to top-level keys that own none, matching by name root.

    Candidates are terminals whose owner shares a non-empty root with the
    orphan and whose root is itself a top-level key. Owners matched by more
    than one candidate terminal are ambiguous and left alone.
    """

    present = set(owners)
    for orphan in source:
        if orphan in present:
            continue
        candidates = []
        for index, owner in enumerate(owners):
            root = _root(owner, orphan)
            if root and root in source:
                candidates.append(index)
        matched = [owners[index] for index in candidates]
        unambiguous = [index for index in candidates if matched.count(owners[index]) == 1]
        if candidates and not unambiguous:
            raise NamingError(f"Cannot resolve the root of {orphan!r}: candidates {sorted(set(matched))} are ambiguous")
        for index in unambiguous:
            names[index] = orphan
            parts[index] = [orphan]


def _depth1_owner(node: Any, name: str) -> Any:
    """Key (or index) of *node* whose unlisted names include *name*."""

    if isinstance(node, Mapping):
        pairs = [(unlisted, key) for key, value in node.items() for unlisted in _scope_names(value, key)]
    elif _is_sequence(node):
        pairs = [(unlisted, index) for index, value in enumerate(node) for unlisted in _scope_names(value, "")]
    else:
        return None
    for unlisted, owner in pairs:
        if unlisted == name:
            return owner
    return None


def _materialise(source: Mapping[str, Any], segments: list[str]) -> tuple[Any, tuple[Any, ...]]:
    """Walk *segments* through *source*, returning the value and the keys used."""

    node: Any = source
    chain: list[Any] = []
    for segment in segments:
        if isinstance(node, Mapping) and segment in node:
            node = node[segment]
            chain.append(segment)
            continue
        owner = _depth1_owner(node, segment)
        if owner is not None:
            node = node[owner]
            chain.append(owner)
    if isinstance(node, Mapping) or (_is_sequence(node) and not _is_vector(node)):
        node = _first(node)
    return node, tuple(chain)


def _first(node: Any) -> Any:
    if isinstance(node, Mapping):
        return next(iter(node.values()), node)
    return node[0] if node else node


def _identical(left: Any, right: Any) -> bool:
    """Structural equality that also requires matching types (``1`` is not ``1.0``)."""

    if type(left) is not type(right):
        return False
    if isinstance(left, Mapping):
        return list(left) == list(right) and all(_identical(left[key], right[key]) for key in left)
    if _is_sequence(left):
        return len(left) == len(right) and all(_identical(a, b) for a, b in zip(left, right))
    return bool(left == right)


def _collapse(names: list[str], resolved: list[tuple[Any, tuple[Any, ...]]]) -> dict[str, Any]:
    """Fold adjacent entries that resolved to the same value through the same keys."""

    kept: list[str | None] = list(names)
    for index in range(1, len(resolved)):
        previous_value, previous_chain = resolved[index - 1]
        value, chain = resolved[index]
        if previous_chain == chain and _identical(previous_value, value):
            kept[index - 1] = _root(kept[index - 1], kept[index])
            kept[index] = None
    return {name: value for name, (value, _) in zip(kept, resolved) if name is not None}


__all__ = ["SEPARATOR", "flatten", "nest"]
