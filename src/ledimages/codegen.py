from __future__ import annotations

from collections import Counter
from pathlib import Path

from ledimages.errors import CodegenError
from ledimages.errors import FilesystemError
from ledimages.pipeline import AnimatedSequence
from ledimages.pipeline import DecodedImage
from ledimages.pipeline import GenerationContext


PIXELS_PER_LINE = 8


def collect_symbols(context: GenerationContext) -> list[str]:
    symbols: list[str] = []
    for image in context.images:
        symbols.append(image.name)
    for sequence in context.animated_images:
        symbols.append(sequence.name)
        symbols.append(f"{sequence.name}_frame_count")
        symbols.extend(frame.name for frame in sequence.frames)
    return symbols


def check_symbols(context: GenerationContext) -> None:
    pixel_count = context.width * context.height
    counts = Counter(collect_symbols(context))
    duplicates = sorted(symbol for symbol, count in counts.items() if count > 1)
    if duplicates:
        raise CodegenError(f"codegen error: duplicate symbols {duplicates}")

    all_images = list(context.images)
    for sequence in context.animated_images:
        all_images.extend(sequence.frames)
    for image in all_images:
        if len(image.pixels) != pixel_count:
            raise CodegenError(
                f"codegen error: `{image.name}` has {len(image.pixels)} pixels, expected {pixel_count}"
            )


def pixel_rows(pixels: tuple[int, ...]) -> list[str]:
    rows: list[str] = []
    for start in range(0, len(pixels), PIXELS_PER_LINE):
        chunk = pixels[start : start + PIXELS_PER_LINE]
        rows.append("    " + ", ".join(f"0x{value:06X}" for value in chunk) + ",")
    return rows


def render_image(image: DecodedImage) -> list[str]:
    lines = [f"static const uint32_t {image.name}[LED_PIXEL_COUNT] = {{"]
    lines.extend(pixel_rows(image.pixels))
    lines.append("};")
    lines.append("")
    return lines


def render_animated_image(sequence: AnimatedSequence) -> list[str]:
    lines: list[str] = []
    for frame in sequence.frames:
        lines.extend(render_image(frame))

    if sequence.frame_count == 0:
        # zero-length arrays are not valid C; keep one null slot behind a zero count
        lines.append(f"static const uint32_t *const {sequence.name}[1] = {{ 0 }};")
    else:
        lines.append(f"static const uint32_t *const {sequence.name}[{sequence.frame_count}] = {{")
        for frame in sequence.frames:
            lines.append(f"    {frame.name},")
        lines.append("};")
    lines.append(f"static const uint32_t {sequence.name}_frame_count = {sequence.frame_count}u;")
    lines.append("")
    return lines


def render_header(context: GenerationContext) -> str:
    check_symbols(context)

    lines = [
        "#pragma once",
        "",
        "// Generated by ledimages. Do not edit.",
        "",
        "#include <stdint.h>",
        "",
        f"#define LED_WIDTH {context.width}",
        f"#define LED_HEIGHT {context.height}",
        f"#define LED_DATA_PIN {context.data_pin}",
        "#define LED_PIXEL_COUNT (LED_WIDTH * LED_HEIGHT)",
        "",
    ]
    for image in context.images:
        lines.extend(render_image(image))
    for sequence in context.animated_images:
        lines.extend(render_animated_image(sequence))

    return "\n".join(lines).rstrip("\n") + "\n"


def write_text(path: Path, text: str) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)
    except OSError as exc:
        if tmp_path.exists():
            tmp_path.unlink()
        raise FilesystemError(path, exc) from exc
