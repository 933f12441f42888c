from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image


RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def write_solid_png(path: Path, color: tuple[int, int, int, int], size: tuple[int, int] = (4, 4)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path, format="PNG")
    return path


def write_gif(path: Path, colors: list[tuple[int, int, int, int]], size: tuple[int, int] = (6, 6)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    frames = [Image.new("RGB", size, color[:3]) for color in colors]
    frames[0].save(path, format="GIF", save_all=True, append_images=frames[1:], duration=100, loop=0)
    return path


def write_manifest(path: Path, width: int, height: int, data_pin: int, images: dict[str, Path]) -> Path:
    lines = [f"width = {width}", f"height = {height}", f"data_pin = {data_pin}", "", "[images]"]
    for name, image_path in images.items():
        lines.append(f"{name} = '{image_path}'")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def red_png(tmp_path: Path) -> Path:
    return write_solid_png(tmp_path / "a.png", RED)


@pytest.fixture
def frames_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "frames"
    write_solid_png(directory / "f0.png", RED)
    write_solid_png(directory / "f1.png", GREEN)
    write_solid_png(directory / "f10.png", BLUE)
    return directory


def truncated_gif(path: Path, extra: int) -> Path:
    """Write a three-frame GIF cut off `extra` bytes into the third frame's control block."""
    write_gif(path, [RED, GREEN, BLUE])
    data = path.read_bytes()
    control_blocks = [index for index in range(len(data)) if data.startswith(b"\x21\xf9\x04", index)]
    path.write_bytes(data[: control_blocks[2] + extra])
    return path
