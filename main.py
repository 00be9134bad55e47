"""Command line entrypoint for the stylist client."""

import argparse
import json
import sys

from agents.try_on_orchestrator import save_result_image
from stylist_app.app import StylistApp
from tools.color_analysis import result_as_dict
from tools.errors import NoFaceDetectedError, StylistApiError


def _print_progress(value: int) -> None:
    print(f"progress: {value}%", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Stylist backend client")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Run personal colour analysis on a face photo")
    analyze.add_argument("photo")
    analyze.add_argument("--save", action="store_true", help="Persist the result to the account")

    upload = sub.add_parser("upload", help="Upload a captured profile photo")
    upload.add_argument("photo")

    sub.add_parser("liked", help="List liked items grouped by category")

    try_on = sub.add_parser("try-on", help="Generate a full-outfit try-on image")
    try_on.add_argument("photo")
    try_on.add_argument("--top", type=int)
    try_on.add_argument("--bottom", type=int)
    try_on.add_argument("--shoes", type=int)
    try_on.add_argument("--output", default="tryon_result.png")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    app = StylistApp()
    try:
        if args.command == "analyze":
            result = app.color_analysis.analyze(args.photo)
            if args.save:
                app.color_analysis.save_result(result)
            print(json.dumps(result_as_dict(result), indent=2))
        elif args.command == "upload":
            print(json.dumps(app.color_analysis.upload_photo(args.photo), indent=2))
        elif args.command == "liked":
            grouped = app.liked_items()
            print(json.dumps({k: [item.to_dict() for item in v] for k, v in grouped.items()}, indent=2))
        elif args.command == "try-on":
            for category, item_id in (("Top", args.top), ("Bottom", args.bottom), ("Shoes", args.shoes)):
                if item_id is not None and not app.select_for_try_on(category, item_id):
                    print(f"{category} item {item_id} is not in your liked items", file=sys.stderr)
                    return 2
            result = app.generate_try_on(args.photo, on_progress=_print_progress)
            print(save_result_image(result, args.output))
    except NoFaceDetectedError as exc:
        print(str(exc), file=sys.stderr)
        return 3
    except StylistApiError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        app.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
