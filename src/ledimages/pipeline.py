from __future__ import annotations

import enum
import os
import struct
from collections.abc import Callable
from collections.abc import Sequence
from concurrent.futures import Future
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image
from PIL import ImageSequence

from ledimages.errors import AnimationDecodeError
from ledimages.errors import FilesystemError
from ledimages.errors import ImageDecodeError
from ledimages.errors import MissingExtensionError
from ledimages.manifest import Manifest


# Pillow's bicubic kernel is the Catmull-Rom cubic (a = -0.5)
RESAMPLE_FILTER = Image.Resampling.BICUBIC
RGB_MASK = 0xFFFFFF
GIF_TRAILER = b"\x3b"

# what Pillow raises on truncated or corrupt input, beyond OSError
DECODE_ERRORS = (
    OSError,
    ValueError,
    IndexError,
    SyntaxError,
    EOFError,
    struct.error,
    Image.DecompressionBombError,
)


class AssetKind(enum.Enum):
    STATIC = "static"
    GIF = "gif"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class AssetRef:
    name: str
    path: Path


@dataclass(frozen=True)
class DecodedImage:
    name: str
    pixels: tuple[int, ...]


@dataclass(frozen=True)
class AnimatedSequence:
    name: str
    frames: tuple[DecodedImage, ...]

    @property
    def frame_count(self) -> int:
        return len(self.frames)


@dataclass(frozen=True)
class GenerationContext:
    width: int
    height: int
    data_pin: int
    images: tuple[DecodedImage, ...]
    animated_images: tuple[AnimatedSequence, ...]


LoadedAsset = DecodedImage | AnimatedSequence


def encode_pixel(pixel: Sequence[int]) -> int:
    """Pack an RGBA byte quad as a little-endian u32 and drop the alpha byte."""
    return int.from_bytes(bytes(pixel[:4]), "little") & RGB_MASK


def encode_pixels(image: Image.Image) -> tuple[int, ...]:
    rgba = np.ascontiguousarray(np.asarray(image.convert("RGBA"), dtype=np.uint8))
    packed = rgba.view("<u4").reshape(-1) & RGB_MASK
    return tuple(packed.tolist())


def resize_frame(image: Image.Image, width: int, height: int) -> Image.Image:
    # alpha is dropped before filtering so fully transparent texels keep their colour
    rgb = image.convert("RGBA").convert("RGB")
    return rgb.resize((width, height), RESAMPLE_FILTER)


def path_extension(path: Path) -> str | None:
    file_name = path.name
    ext_start = file_name.rfind(".")
    if ext_start <= 0:
        return None
    return file_name[ext_start + 1 :]


def classify_asset(path: Path) -> AssetKind:
    if path.is_dir():
        return AssetKind.DIRECTORY

    extension = path_extension(path)
    if extension is None:
        raise MissingExtensionError(path)
    if extension == "gif":
        return AssetKind.GIF
    return AssetKind.STATIC


def load_image(name: str, path: Path, width: int, height: int) -> DecodedImage:
    try:
        with Image.open(path) as image:
            frame = resize_frame(image, width, height)
    except DECODE_ERRORS as exc:
        raise ImageDecodeError(path, exc) from exc
    return DecodedImage(name=name, pixels=encode_pixels(frame))


def ends_with_trailer(path: Path) -> bool:
    with path.open("rb") as handle:
        handle.seek(0, os.SEEK_END)
        if handle.tell() == 0:
            return False
        handle.seek(-1, os.SEEK_END)
        return handle.read(1) == GIF_TRAILER


def load_gif(name: str, path: Path, width: int, height: int) -> AnimatedSequence:
    frames: list[DecodedImage] = []
    opened = False
    try:
        with Image.open(path) as image:
            if image.format != "GIF":
                raise AnimationDecodeError(path, ValueError(f"expected GIF data, found {image.format}"))
            opened = True
            for index, frame in enumerate(ImageSequence.Iterator(image)):
                resized = resize_frame(frame, width, height)
                frames.append(DecodedImage(name=f"{name}_{index}", pixels=encode_pixels(resized)))
            # Pillow stops at a cut-off frame boundary as if it were the end of the stream
            if not ends_with_trailer(path):
                raise AnimationDecodeError(
                    path, ValueError("GIF stream has no trailer"), frame_index=len(frames)
                )
    except DECODE_ERRORS as exc:
        raise AnimationDecodeError(path, exc, frame_index=len(frames) if opened else None) from exc
    return AnimatedSequence(name=name, frames=tuple(frames))


def list_frame_files(path: Path) -> list[Path]:
    files: list[str] = []
    try:
        listing = os.scandir(path)
    except OSError as exc:
        raise FilesystemError(path, exc) from exc

    with listing as entries:
        while True:
            # a failed read ends the listing; entries read so far are kept
            try:
                entry = next(entries)
            except (StopIteration, OSError):
                break
            try:
                is_file = entry.is_file(follow_symlinks=False)
            except OSError:
                continue
            if is_file:
                files.append(entry.path)

    files.sort()
    return [Path(file_path) for file_path in files]


def load_dir(name: str, path: Path, width: int, height: int) -> AnimatedSequence:
    frames = [
        load_image(f"{name}_{index}", frame_path, width, height)
        for index, frame_path in enumerate(list_frame_files(path))
    ]
    return AnimatedSequence(name=name, frames=tuple(frames))


LOADERS: dict[AssetKind, Callable[[str, Path, int, int], LoadedAsset]] = {
    AssetKind.STATIC: load_image,
    AssetKind.GIF: load_gif,
    AssetKind.DIRECTORY: load_dir,
}


def load_asset(kind: AssetKind, ref: AssetRef, width: int, height: int) -> LoadedAsset:
    return LOADERS[kind](ref.name, ref.path, width, height)


LoadReporter = Callable[[AssetKind, AssetRef, LoadedAsset], None]


def load_assets(
    refs: list[AssetRef],
    width: int,
    height: int,
    workers: int = 1,
    on_loaded: LoadReporter | None = None,
) -> list[LoadedAsset]:
    kinds = [classify_asset(ref.path) for ref in refs]
    results: list[LoadedAsset] = []

    def collect(kind: AssetKind, ref: AssetRef, asset: LoadedAsset) -> None:
        results.append(asset)
        if on_loaded is not None:
            on_loaded(kind, ref, asset)

    worker_count = max(1, workers)
    if worker_count == 1:
        for kind, ref in zip(kinds, refs):
            collect(kind, ref, load_asset(kind, ref, width, height))
        return results

    with ThreadPoolExecutor(max_workers=worker_count) as executor:
        futures: list[Future[LoadedAsset]] = [
            executor.submit(load_asset, kind, ref, width, height)
            for kind, ref in zip(kinds, refs)
        ]
        try:
            for kind, ref, future in zip(kinds, refs, futures):
                collect(kind, ref, future.result())
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return results


def build_context(
    manifest: Manifest,
    workers: int = 1,
    on_loaded: LoadReporter | None = None,
) -> GenerationContext:
    refs = [AssetRef(name=name, path=path) for name, path in manifest.images.items()]
    loaded = load_assets(refs, manifest.width, manifest.height, workers=workers, on_loaded=on_loaded)

    images: list[DecodedImage] = []
    animated_images: list[AnimatedSequence] = []
    for asset in loaded:
        if isinstance(asset, AnimatedSequence):
            animated_images.append(asset)
        else:
            images.append(asset)

    return GenerationContext(
        width=manifest.width,
        height=manifest.height,
        data_pin=manifest.data_pin,
        images=tuple(images),
        animated_images=tuple(animated_images),
    )
