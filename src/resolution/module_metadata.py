"""Gradle module metadata (``.module``) parsing.

A module file lists, per variant, the files a published component consists
of. A variant may instead point at another module file ("available-at"),
which is how multiplatform libraries delegate to a platform-specific module.

The sha512 values declared in module files are not always correct, so they
are ignored; digests are always computed from the downloaded bytes.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from constants import Constants

CATEGORY_ATTRIBUTE = "org.gradle.category"


class ModuleMetadataError(ValueError):
    """The module file is not valid JSON or has no variants list."""


@dataclass(frozen=True)
class ModuleFile:
    """A file declared by a variant."""
    name: str
    url: str


@dataclass
class ModuleVariant:
    """One variant of a module file."""
    name: str
    category: Optional[str] = None
    available_at: Optional[str] = None
    files: List[ModuleFile] = field(default_factory=list)

    @property
    def is_library(self) -> bool:
        return self.category is None or self.category == Constants.LIBRARY_CATEGORY


@dataclass(frozen=True)
class ModuleFiles:
    """Result: the files declared by the library variants."""
    files: List[ModuleFile]


@dataclass(frozen=True)
class ModuleRedirect:
    """Result: the requested variant lives in another module file."""
    url: str


@dataclass(frozen=True)
class NoFilesDeclared:
    """Result: no library variant declares any file."""


ModuleResult = Union[ModuleFiles, ModuleRedirect, NoFilesDeclared]


def _variant_from_json(raw: Dict[str, Any]) -> ModuleVariant:
    attributes = raw.get("attributes") or {}
    available_at = raw.get("available-at") or {}
    files = []
    for entry in raw.get("files") or []:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        url = entry.get("url")
        if isinstance(name, str) and isinstance(url, str):
            files.append(ModuleFile(name=name, url=url))
    category = attributes.get(CATEGORY_ATTRIBUTE) if isinstance(attributes, dict) else None
    redirect = available_at.get("url") if isinstance(available_at, dict) else None
    return ModuleVariant(
        name=str(raw.get("name", "")),
        category=category if isinstance(category, str) else None,
        available_at=redirect if isinstance(redirect, str) else None,
        files=files,
    )


def load_variants(contents: Union[bytes, str]) -> List[ModuleVariant]:
    """Parse the variants of a module file.

    Raises:
        ModuleMetadataError: invalid JSON or missing ``variants`` list.
    """
    try:
        document = json.loads(contents)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ModuleMetadataError(f"Invalid module metadata: {exc}") from exc
    if not isinstance(document, dict) or not isinstance(document.get("variants"), list):
        raise ModuleMetadataError("Module metadata has no variants list")
    return [_variant_from_json(v) for v in document["variants"] if isinstance(v, dict)]


def parse_module_metadata(contents: Union[bytes, str], variant: str) -> ModuleResult:
    """Return the files to download for ``variant``.

    Args:
        contents: Raw module file.
        variant: Name of the resolved variant, e.g. ``runtimeElements``.

    Returns:
        ModuleRedirect when the requested library variant is available at
        another module file, otherwise ModuleFiles with the de-duplicated
        files of all library variants, or NoFilesDeclared.
    """
    variants = load_variants(contents)

    for v in variants:
        if v.name == variant and v.is_library and v.available_at:
            return ModuleRedirect(v.available_at)

    files: List[ModuleFile] = []
    seen = set()
    for v in variants:
        if not v.is_library:
            continue
        for f in v.files:
            if f not in seen:
                seen.add(f)
                files.append(f)

    if not files:
        return NoFilesDeclared()
    return ModuleFiles(files)
