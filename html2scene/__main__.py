"""
Command line entry point.

Usage:
    python -m html2scene https://example.com --json scene.json --pptx scene.pptx
    html2scene page.html --root main --viewport-width 1280 -v
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .converter import DEFAULT_TIMEOUT, convert
from .css_styles import DEFAULT_VIEWPORT_WIDTH
from .errors import ConversionError
from .pptx_export import PPTXExporter
from .scene import SceneHost

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert a web page into a design-tool scene graph.")
    parser.add_argument("source", help="URL, file:// URL or path of the HTML document")
    parser.add_argument("--json", type=Path, dest="json_out", help="Write the scene graph as JSON")
    parser.add_argument("--pptx", type=Path, dest="pptx_out", help="Render the scene graph to a PPTX file")
    parser.add_argument("--root", dest="root_selector", help="CSS selector of the element to convert (default: body)")
    parser.add_argument("--viewport-width", type=float, default=DEFAULT_VIEWPORT_WIDTH)
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="HTTP timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    host = SceneHost()
    try:
        root = convert(
            args.source,
            host=host,
            root_selector=args.root_selector,
            timeout=args.timeout,
            viewport_width=args.viewport_width,
        )
    except ConversionError:
        return 1

    if args.json_out:
        args.json_out.write_text(json.dumps(root.to_dict(), indent=2), encoding="utf-8")
        logger.info("Wrote %s", args.json_out)
    if args.pptx_out:
        exporter = PPTXExporter(images=host.images)
        exporter.render(root)
        exporter.save(args.pptx_out)
        logger.info("Wrote %s", args.pptx_out)
    if not args.json_out and not args.pptx_out:
        json.dump(root.to_dict(), sys.stdout, indent=2)
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
