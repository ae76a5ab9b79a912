# File: scaffoldgen/fragments.py
"""
ScaffoldGen - Fragment Loader
===============================
Loads externally stored schema fragments: partial field-sets referenced by
a ``partial:`` field entry and config sections listed under ``includes``.

Fragments are YAML or JSON data files; they are never executed.  A
reference is resolved against an ordered list of search roots:

1. ``{output}/app/Modules/{Module}/Data``
2. the directory of the schema document itself
3. any extra roots given at construction time
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import yaml
from pydantic import ValidationError as PydanticValidationError

from scaffoldgen.errors import FragmentNotFoundError, ScaffoldError, SchemaLoadError
from scaffoldgen.models import FieldDeclaration

logger: logging.Logger = logging.getLogger("scaffoldgen.fragments")

_YAML_SUFFIXES: frozenset = frozenset({".yaml", ".yml"})


class FragmentLoader:
    """Resolve and parse fragment files, caching each parsed file."""

    def __init__(self, search_paths: Sequence[Path] = ()) -> None:
        self.search_paths: List[Path] = [Path(p) for p in search_paths]
        self._cache: Dict[Path, Mapping[str, Any]] = {}

    def with_paths(self, *leading: Path) -> "FragmentLoader":
        """A loader searching *leading* first, sharing this loader's cache."""
        loader = FragmentLoader([*leading, *self.search_paths])
        loader._cache = self._cache
        return loader

    def locate(self, reference: str) -> Path:
        candidate = Path(reference)
        searched: List[Path] = []
        if candidate.is_absolute():
            searched.append(candidate)
            if candidate.is_file():
                return candidate
        else:
            for root in self.search_paths:
                path: Path = root / candidate
                searched.append(path)
                if path.is_file():
                    return path
        raise FragmentNotFoundError(reference, searched)

    def load_fragment(self, reference: str) -> Mapping[str, Any]:
        """
        Return the mapping stored in the fragment *reference*.

        Raises:
            FragmentNotFoundError: no search root contains the file.
            SchemaLoadError: the file is not a YAML/JSON mapping.
        """
        path: Path = self.locate(reference)
        if path in self._cache:
            return self._cache[path]

        text: str = path.read_text(encoding="utf-8")
        try:
            if path.suffix.lower() in _YAML_SUFFIXES:
                data: Any = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise SchemaLoadError(f"Invalid fragment: {exc}", path) from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise SchemaLoadError("Fragment must contain a mapping", path)

        logger.debug("Loaded fragment %s (%d keys)", path, len(data))
        self._cache[path] = data
        return data


def _parse_fragment_fields(
    reference: str, fragment: Mapping[str, Any]
) -> Dict[str, FieldDeclaration]:
    """Validate every field entry of a fragment, all or nothing."""
    # A fragment may be a bare field map or wrap it under ``fields``.
    raw_fields: Any = fragment.get("fields", fragment)
    if raw_fields is None:
        return {}
    if not isinstance(raw_fields, dict):
        raise SchemaLoadError(
            f"Fragment '{reference}' must map field names to declarations, "
            f"got {type(raw_fields).__name__}"
        )

    parsed: Dict[str, FieldDeclaration] = {}
    for sub_name, sub_decl in raw_fields.items():
        try:
            parsed[str(sub_name)] = FieldDeclaration.model_validate(sub_decl or {})
        except PydanticValidationError as exc:
            raise SchemaLoadError(
                f"Fragment '{reference}' field '{sub_name}' is invalid: "
                f"{exc.error_count()} error(s), first: {exc.errors()[0]['msg']}"
            ) from exc
    return parsed


def expand_fields(
    fields: Mapping[str, FieldDeclaration],
    loader: Optional[FragmentLoader],
    on_missing: Optional[Callable[[ScaffoldError], None]] = None,
) -> Dict[str, FieldDeclaration]:
    """
    Replace every ``partial`` entry with the field declarations it names.

    Order is preserved: fragment fields take the position of the entry that
    referenced them.  A missing, unreadable or malformed fragment contributes
    nothing; *on_missing* (a callable taking the exception) is told about it.
    """
    expanded: Dict[str, FieldDeclaration] = {}
    for name, declaration in fields.items():
        if not declaration.is_partial:
            expanded[name] = declaration
            continue
        if loader is None:
            continue
        reference: str = declaration.partial or ""
        try:
            fragment_fields = _parse_fragment_fields(reference, loader.load_fragment(reference))
        except (FragmentNotFoundError, SchemaLoadError) as exc:
            if on_missing is not None:
                on_missing(exc)
            continue
        expanded.update(fragment_fields)
    return expanded


__all__: List[str] = ["FragmentLoader", "expand_fields"]

logger.debug("scaffoldgen.fragments loaded.")
