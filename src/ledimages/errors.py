from __future__ import annotations

from pathlib import Path


class LedImagesError(Exception):
    pass


class ManifestNotFoundError(LedImagesError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"`{path}` was not found")
        self.path = path


class ManifestParseError(LedImagesError):
    def __init__(self, path: Path, cause: Exception | str) -> None:
        super().__init__(f"failed to parse manifest {path}: {cause}")
        self.path = path
        self.cause = cause


class ImageDecodeError(LedImagesError):
    def __init__(self, path: Path, cause: Exception) -> None:
        super().__init__(f"image error {path}: {cause}")
        self.path = path
        self.cause = cause


class AnimationDecodeError(LedImagesError):
    def __init__(self, path: Path, cause: Exception, frame_index: int | None = None) -> None:
        where = f"{path}" if frame_index is None else f"{path} (frame {frame_index})"
        super().__init__(f"animation error {where}: {cause}")
        self.path = path
        self.cause = cause
        self.frame_index = frame_index


class MissingExtensionError(LedImagesError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"cannot classify {path}: no file extension")
        self.path = path


class CodegenError(LedImagesError):
    pass


class FilesystemError(LedImagesError):
    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"io error {path}: {cause}")
        self.path = path
        self.cause = cause
