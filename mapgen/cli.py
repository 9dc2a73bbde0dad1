import argparse
import json
import logging
import os
import sys
from concurrent.futures import ProcessPoolExecutor, as_completed

from .errors import MapGenerationError
from .generator import generate_map
from .manifest import enrich_manifest

logger = logging.getLogger(__name__)

IMAGE_FILE = "image.png"
INFO_FILE = "info.json"
MANIFEST_FILE = "manifest.json"
MAP_FILES = {
    "map": "map.bin",
    "map4x": "map4x.bin",
    "map16x": "map16x.bin",
}
THUMBNAIL_FILE = "thumbnail.webp"


def discover_maps(input_dir):
    """Every directory under ``input_dir`` holding an image.png, sorted by name."""
    if not os.path.isdir(input_dir):
        return []
    return sorted(
        name for name in os.listdir(input_dir)
        if os.path.isfile(os.path.join(input_dir, name, IMAGE_FILE))
    )


def _write(path, data):
    with open(path, "wb") as f:
        f.write(data)


def process_map(name, input_dir, output_dir, is_test=False):
    map_input_dir = os.path.join(input_dir, name)
    image_path = os.path.join(map_input_dir, IMAGE_FILE)
    info_path = os.path.join(map_input_dir, INFO_FILE)

    try:
        with open(image_path, "rb") as f:
            image_buffer = f.read()
    except OSError as exc:
        raise MapGenerationError(f"failed to read map file {image_path}: {exc}") from exc

    try:
        with open(info_path, "r") as f:
            manifest = json.load(f)
    except OSError as exc:
        raise MapGenerationError(f"failed to read info file {info_path}: {exc}") from exc
    except ValueError as exc:
        raise MapGenerationError(f"failed to parse {INFO_FILE} for {name}: {exc}") from exc

    if not isinstance(manifest, dict):
        raise MapGenerationError(f"{INFO_FILE} for {name} must hold a JSON object")

    # Don't remove small islands for test maps
    try:
        result = generate_map(name, image_buffer, remove_small=not is_test)
    except MapGenerationError as exc:
        raise MapGenerationError(f"failed to generate map for {name}: {exc}") from exc

    manifest = enrich_manifest(manifest, result)

    map_dir = os.path.join(output_dir, name)
    try:
        os.makedirs(map_dir, exist_ok=True)
        for level, filename in MAP_FILES.items():
            _write(os.path.join(map_dir, filename), getattr(result, level).data)
        _write(os.path.join(map_dir, THUMBNAIL_FILE), result.thumbnail)
        with open(os.path.join(map_dir, MANIFEST_FILE), "w") as f:
            json.dump(manifest, f, indent=2)
    except OSError as exc:
        raise MapGenerationError(f"failed to write outputs for {name}: {exc}") from exc

    logger.info("Saved outputs to %s", map_dir)
    return map_dir


def generate_all(names, input_dir, output_dir, is_test=False, workers=None):
    """
    Generate every map on a process pool, one task per map.

    Waits for all tasks, logs every failure and re-raises the first one.
    """
    failures = []
    with ProcessPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(process_map, name, input_dir, output_dir, is_test)
            for name in names
        ]
        for future in as_completed(futures):
            try:
                future.result()
            except MapGenerationError as exc:
                logger.error("%s", exc)
                failures.append(exc)

    if failures:
        raise failures[0]
    return len(names)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate packed terrain maps from PNG and JSON")
    parser.add_argument("maps", nargs="*",
                        help="Map names (folders under the input directory). Defaults to all of them")
    parser.add_argument("--input", help="Input directory (containing map folders)", default=os.path.join("assets", "maps"))
    parser.add_argument("--output", help="Output directory", default=os.path.join("resources", "maps"))
    parser.add_argument("--test", action="store_true", help="Test mode (skip small island and lake removal)")
    parser.add_argument("--workers", type=int, default=None, help="Number of worker processes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    names = args.maps or discover_maps(args.input)
    if not names:
        logger.error("No maps found in %s", args.input)
        return 1

    try:
        generate_all(names, args.input, args.output, args.test, args.workers)
    except MapGenerationError as exc:
        logger.error("Error generating terrain maps: %s", exc)
        return 1

    print("Terrain maps generated successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
