import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from config import find_config_path
from errors import PipelineStepError
from pipelines import run_request

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def main():
    parser = argparse.ArgumentParser(
        description="Answer questions about remote documents"
    )
    parser.add_argument(
        "request",
        nargs="?",
        type=Path,
        default=None,
        help='JSON request file {"documents": ..., "questions": [...]} (default: stdin)',
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.toml in project root)",
    )

    args = parser.parse_args()

    config_path = find_config_path(args.config)

    try:
        if args.request:
            payload = json.loads(args.request.read_text())
        else:
            payload = json.load(sys.stdin)
    except json.JSONDecodeError as e:
        print(json.dumps({"step": "validate", "error": f"Invalid JSON body: {e}"}))
        return 1

    try:
        response = run_request(payload, config_path)
    except PipelineStepError as e:
        print(json.dumps(e.to_dict(), indent=2))
        return 1

    print(json.dumps(response, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
