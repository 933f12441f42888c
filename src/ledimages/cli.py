#!/usr/bin/env python3

from __future__ import annotations

import argparse
from pathlib import Path

from ledimages.codegen import render_header
from ledimages.codegen import write_text
from ledimages.errors import LedImagesError
from ledimages.manifest import load_manifest
from ledimages.pipeline import AnimatedSequence
from ledimages.pipeline import AssetKind
from ledimages.pipeline import AssetRef
from ledimages.pipeline import GenerationContext
from ledimages.pipeline import LoadedAsset
from ledimages.pipeline import build_context


VERSION = "0.1.0"
DEFAULT_MANIFEST = Path("manifest.toml")
DEFAULT_OUTPUT = Path("images.h")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ledimages",
        description="Generate a C header of resized LED pixel data from an image manifest",
    )
    parser.add_argument("-i", "--input", type=Path, default=DEFAULT_MANIFEST, help="Input manifest path")
    parser.add_argument("-o", "--output", type=Path, default=DEFAULT_OUTPUT, help="Output header path")
    parser.add_argument("--workers", type=int, default=1, help="Asset decode worker threads (default: 1)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress per-asset and summary output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser.parse_args(argv)


def print_loaded(kind: AssetKind, ref: AssetRef, asset: LoadedAsset) -> None:
    detail = f"{asset.frame_count} frames" if isinstance(asset, AnimatedSequence) else f"{len(asset.pixels)} pixels"
    print(f"load {kind.value:<9} {ref.name} <- {ref.path} ({detail})")


def run(args: argparse.Namespace) -> GenerationContext:
    manifest = load_manifest(args.input)

    on_loaded = None if args.quiet else print_loaded
    context = build_context(manifest, workers=args.workers, on_loaded=on_loaded)
    output = render_header(context)
    write_text(args.output, output)
    return context


def print_summary(output: Path, context: GenerationContext) -> None:
    frame_count = sum(sequence.frame_count for sequence in context.animated_images)
    print(f"wrote {output}")
    print(f"resolution      : {context.width}x{context.height}")
    print(f"data pin        : {context.data_pin}")
    print(f"static images   : {len(context.images)}")
    print(f"animated images : {len(context.animated_images)}")
    print(f"animation frames: {frame_count}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        context = run(args)
    except LedImagesError as exc:
        print(f"error: {exc}")
        return 1

    if not args.quiet:
        print_summary(args.output, context)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
