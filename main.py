# ------------------------------------------------------------
# Dog Health Assessment command-line application
# Entry point that:
#  - stores and checks the user's Google AI API key
#  - loads a dog's health questionnaire from a JSON file
#  - runs the AI health analysis (directly or through the relay)
#  - prints the assessment, or a short error notification
#  - starts the relay server for operators
# ------------------------------------------------------------

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from analysis_service import create_analyzer
from config import ANALYSIS_MODES, Settings, load_settings, setup_logging
from credential_store import CredentialStore, check_api_key, validate_api_key_format
from errors import AnalysisError
from models import DogInfo

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)


def notify(title: str, message: str, error: bool = False) -> None:
    """Show a short titled notification, like a toast in a GUI."""
    if error:
        err_console.print(f"[bold red]{escape(title)}[/bold red]: {escape(message)}")
    else:
        console.print(f"[bold green]{escape(title)}[/bold green]: {escape(message)}")


def load_profile(source: str) -> Dict[str, Any]:
    """Read the questionnaire JSON from a file path, or stdin for "-"."""
    if source == "-":
        return json.load(sys.stdin)
    with Path(source).open(encoding="utf-8") as f:
        return json.load(f)


# ------------------------------------------------------------------
# Sub-commands
# ------------------------------------------------------------------
def cmd_set_key(args, settings: Settings) -> int:
    try:
        key = validate_api_key_format(args.key)
    except AnalysisError as e:
        notify("Error", str(e), error=True)
        return 2

    if not args.skip_check and not check_api_key(key, settings):
        notify("Error", "Invalid API key. Please check and try again.", error=True)
        return 1

    CredentialStore(settings.credential_file).set_credential(key)
    notify("Success", "API key validated and saved successfully!")
    return 0


def cmd_clear_key(args, settings: Settings) -> int:
    CredentialStore(settings.credential_file).clear()
    notify("Success", "API key removed.")
    return 0


def cmd_analyze(args, settings: Settings) -> int:
    if args.mode:
        settings = dataclasses.replace(settings, analysis_mode=args.mode)

    try:
        dog_info = DogInfo.from_dict(load_profile(args.profile))
    except (OSError, json.JSONDecodeError, ValueError) as e:
        notify("Invalid Profile", str(e), error=True)
        return 2

    analyzer = create_analyzer(settings)
    try:
        result = analyzer.analyze(dog_info)
    except AnalysisError as e:
        notify("Analysis Failed", str(e), error=True)
        return 1

    data = result.to_dict()
    if args.output:
        try:
            with Path(args.output).open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            notify("Error", f"Could not save assessment: {e}", error=True)
            return 1
        logger.info("Saved assessment to %s", args.output)
    else:
        console.print_json(data=data)

    notify("Analysis Complete", f"Health assessment for {dog_info.name} is ready.")
    return 0


def cmd_serve(args, settings: Settings) -> int:
    # Imported here so plain CLI use does not load Flask
    from relay_server import run

    if args.host:
        settings = dataclasses.replace(settings, relay_host=args.host)
    if args.port:
        settings = dataclasses.replace(settings, relay_port=args.port)
    run(settings)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="AI-assisted health risk assessment and supplement advice for dogs."
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("set-key", help="Validate and store your Google AI API key")
    p.add_argument("key", help="Google AI API key (starts with AIza)")
    p.add_argument("--skip-check", action="store_true", help="Store without asking Google to verify it")
    p.set_defaults(func=cmd_set_key)

    p = sub.add_parser("clear-key", help="Forget the stored API key")
    p.set_defaults(func=cmd_clear_key)

    p = sub.add_parser("analyze", help="Analyze a dog's health profile")
    p.add_argument("profile", help="Path to the questionnaire JSON file, or - for stdin")
    p.add_argument("--mode", choices=ANALYSIS_MODES, help="Override ANALYSIS_MODE")
    p.add_argument("--output", help="Write the assessment JSON to this file")
    p.set_defaults(func=cmd_analyze)

    p = sub.add_parser("serve", help="Run the relay server")
    p.add_argument("--host", help="Override RELAY_HOST")
    p.add_argument("--port", type=int, help="Override RELAY_PORT")
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except AnalysisError as e:
        notify("Configuration Error", str(e), error=True)
        return 2

    setup_logging(settings.log_level, args.verbose)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
