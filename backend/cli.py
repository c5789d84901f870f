import argparse
import asyncio
import json
import sys

from pydantic import ValidationError

from backend.main import configure_logging, create_pipeline
from backend.settings import get_settings
from models.blueprint import SessionBlueprint, TimeModelConfig
from models.generation import PipelineRequest
from services.time_fitting import fit_program_sessions


def _load_json(path):
    with open(path, "r") as f:
        return json.load(f)


def _write_output(data, output):
    text = json.dumps(data, indent=2)
    if output:
        with open(output, "w") as f:
            f.write(text)
    else:
        print(text)


def _load_sessions(data):
    """Accept a program ({"sessions": [...]}) or a single session object."""
    if isinstance(data, dict) and "sessions" in data:
        return [SessionBlueprint.model_validate(s) for s in data["sessions"]]
    return [SessionBlueprint.model_validate(data)]


def run_fit(args):
    settings = get_settings()
    sessions = _load_sessions(_load_json(args.input))

    if args.time_model:
        config = TimeModelConfig.model_validate(_load_json(args.time_model))
    else:
        config = settings.time_model()

    tolerance = args.tolerance if args.tolerance is not None else settings.fit_tolerance_minutes
    result = fit_program_sessions(
        sessions,
        config,
        target_minutes=args.target,
        allowed_min_minutes=max(0, args.target - tolerance),
        allowed_max_minutes=args.target + tolerance,
        allow_remove_from_main=args.allow_remove_from_main,
    )
    _write_output(result.model_dump(mode="json"), args.output)
    return result


def run_generate(args):
    settings = get_settings()
    configure_logging(settings)
    request = PipelineRequest.model_validate(_load_json(args.profile))

    pipeline = create_pipeline(settings)
    result = asyncio.run(pipeline.run(request))

    data = result.model_dump(mode="json")
    data["needs_review"] = result.needs_review
    _write_output(data, args.output)
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(description="Fit or generate workout session blueprints")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fit_parser = subparsers.add_parser("fit", help="Fit sessions to a duration window")
    fit_parser.add_argument("input", help="Program or session JSON file path")
    fit_parser.add_argument("--target", type=float, default=60, help="Target minutes (default: 60)")
    fit_parser.add_argument("--tolerance", type=float, help="Window half-width in minutes")
    fit_parser.add_argument("--time-model", help="Time model JSON file path")
    fit_parser.add_argument(
        "--allow-remove-from-main",
        action="store_true",
        help="Allow removing priority 3 exercises from the main block",
    )
    fit_parser.add_argument("-o", "--output", help="Output JSON file path (default: stdout)")
    fit_parser.set_defaults(func=run_fit)

    generate_parser = subparsers.add_parser("generate", help="Run the full generation pipeline")
    generate_parser.add_argument("profile", help="Pipeline request JSON file path")
    generate_parser.add_argument("-o", "--output", help="Output JSON file path (default: stdout)")
    generate_parser.set_defaults(func=run_generate)

    args = parser.parse_args(argv)

    try:
        args.func(args)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: Invalid input: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
