import argparse
import json
import logging
import os
import sys
import time

from assembler import ChunkResult
from bridge import BridgeError, DrawBridge
from config import CONFIG_PATH, BridgeConfig


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Draw image bridge")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="enable verbose logging",
    )
    parser.add_argument("--config", default=CONFIG_PATH, help="path to config file")
    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="feed captured app messages (JSON lines)")
    replay.add_argument("capture", help="file with one app message per line, - for stdin")

    render = sub.add_parser("render", help="write the configuration page")
    render.add_argument("-o", "--output", default="page.html", help="HTML output path")

    export = sub.add_parser("export", help="save the received image")
    export.add_argument("path", nargs="?", help="output file, .bmp or any Pillow format")

    sub.add_parser("clear", help="forget the received image")
    return parser.parse_args(argv)


def replay(bridge: DrawBridge, path: str) -> int:
    fh = sys.stdin if path == "-" else open(path, "r", encoding="utf-8")
    applied = 0
    try:
        for lineno, line in enumerate(fh, 1):
            line = line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError:
                logging.warning("line %d is not valid JSON, skipping", lineno)
                continue
            if bridge.on_app_message(payload) is ChunkResult.APPLIED:
                applied += 1
    finally:
        if fh is not sys.stdin:
            fh.close()
    logging.info("applied %d messages", applied)
    return applied


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    config = BridgeConfig.load(args.config)
    bridge = DrawBridge(config)
    bridge.on_ready()

    if args.command == "replay":
        replay(bridge, args.capture)
    elif args.command == "render":
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(bridge.render_page())
        logging.info("page written to %s", args.output)
    elif args.command == "export":
        path = args.path
        if not path:
            timestamp = time.strftime("%Y%m%d_%H%M%S")
            path = os.path.join(config.export_dir, f"drawing_{timestamp}.png")
        try:
            bridge.export(path)
        except BridgeError as exc:
            logging.error("%s", exc)
            return 1
    elif args.command == "clear":
        bridge.on_webview_closed("clear")
    return 0


if __name__ == "__main__":
    sys.exit(main())
