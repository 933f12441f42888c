from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomli

from ledimages.errors import FilesystemError
from ledimages.errors import ManifestNotFoundError
from ledimages.errors import ManifestParseError


MANIFEST_KEYS = {"width", "height", "data_pin", "images"}


@dataclass(frozen=True)
class Manifest:
    width: int
    height: int
    data_pin: int
    images: dict[str, Path]


def require_int(data: dict[str, Any], key: str, minimum: int) -> int:
    value = data.get(key)
    # bool is an int subclass; `width = true` is still a type error
    if (not isinstance(value, int)) or isinstance(value, bool):
        raise ValueError(f"`{key}` must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"`{key}` must be >= {minimum}, got {value}")
    return value


def manifest_from_dict(data: dict[str, Any]) -> Manifest:
    unknown = set(data).difference(MANIFEST_KEYS)
    if unknown:
        raise ValueError(f"unknown manifest keys: {sorted(unknown)}")
    missing = MANIFEST_KEYS.difference(data)
    if missing:
        raise ValueError(f"manifest missing required keys: {sorted(missing)}")

    width = require_int(data, "width", 1)
    height = require_int(data, "height", 1)
    data_pin = require_int(data, "data_pin", 0)

    raw_images = data["images"]
    if not isinstance(raw_images, dict):
        raise ValueError("`images` must be a table of name = \"path\" entries")

    images: dict[str, Path] = {}
    for name, value in raw_images.items():
        if not isinstance(value, str):
            raise ValueError(f"image `{name}` must map to a path string, got {value!r}")
        images[name] = Path(value)

    return Manifest(width=width, height=height, data_pin=data_pin, images=images)


def parse_manifest(text: str, source: Path = Path("<string>")) -> Manifest:
    try:
        data = tomli.loads(text)
        return manifest_from_dict(data)
    except (tomli.TOMLDecodeError, ValueError) as exc:
        raise ManifestParseError(source, exc) from exc


def load_manifest(path: Path) -> Manifest:
    if not path.exists():
        raise ManifestNotFoundError(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ManifestParseError(path, exc) from exc
    except OSError as exc:
        raise FilesystemError(path, exc) from exc
    return parse_manifest(text, source=path)
