"""Command-line driver: browse actors, show input schemas and run actors."""

from __future__ import annotations

import argparse
from collections.abc import Callable
import json
import logging
import sys

from actor_runner.catalog import browse, fetch_catalog, fetch_input_schema
from actor_runner.cli.helpers import (
    fail,
    format_actor_line,
    format_field_errors,
    load_config,
    load_input_file,
    logger_config_from,
    parse_assignments,
    settings_from_config,
    write_json,
)
from actor_runner.client.base import ProviderClient
from actor_runner.client.http import ApifyClient
from actor_runner.config.env import (
    RunnerSettings,
    load_environment,
    settings_from_env,
    token_from_env,
)
from actor_runner.enums import ActorSortKey
from actor_runner.errors import ActorRunnerError
from actor_runner.forms.compiler import compile_input, prune_empty
from actor_runner.forms.widgets import build_form
from actor_runner.runs.lifecycle import RunLifecycleManager
from actor_runner.schema.builtin import resolve_input_schema
from actor_runner.schema.models import SchemaModel
from actor_runner.session import SessionContext
from actor_runner.utilities.logger_manager import LoggerManager
from actor_runner.utilities.version import get_runtime_version

ClientFactory = Callable[[SessionContext, RunnerSettings], ProviderClient]

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="actor-runner",
        description="Browse provider actors, inspect their inputs and run them.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=get_runtime_version(),
        help="Show the runtime version and exit.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/config.yml",
        help="Path to the configuration file (YAML).",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Override the provider API base URL.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    actors_parser = subparsers.add_parser("actors", help="List own and public actors.")
    actors_parser.add_argument(
        "--search", default=None, help="Filter by name or description."
    )
    actors_parser.add_argument(
        "--sort",
        default=ActorSortKey.NAME.value,
        choices=[key.value for key in ActorSortKey],
        help="Ordering of the listing.",
    )
    actors_parser.add_argument(
        "--json", action="store_true", help="Print the listing as JSON."
    )

    schema_parser = subparsers.add_parser(
        "schema", help="Show an actor's input schema."
    )
    schema_parser.add_argument("actor", help="Actor id or user/name.")
    schema_parser.add_argument(
        "--form",
        action="store_true",
        help="Print the rendered form fields instead of the raw schema.",
    )

    run_parser = subparsers.add_parser(
        "run", help="Run an actor and fetch its dataset."
    )
    run_parser.add_argument("actor", help="Actor id or user/name.")
    run_parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Field value as typed in a form; may be repeated.",
    )
    run_parser.add_argument(
        "--input-file",
        default=None,
        help="JSON object of input values, applied before --set.",
    )
    run_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the run to finish.",
    )
    run_parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between status checks.",
    )
    run_parser.add_argument(
        "--out",
        default=None,
        help="Write the dataset items to this JSON file instead of stdout.",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and print the compiled input without submitting a run.",
    )
    return parser.parse_args(argv)


def _default_client(
    session: SessionContext, settings: RunnerSettings
) -> ProviderClient:
    return ApifyClient(
        session, base_url=settings.base_url, timeout=settings.http_timeout
    )


def _list_actors(
    args: argparse.Namespace,
    client: ProviderClient,
    settings: RunnerSettings,
) -> int:
    listing = fetch_catalog(client, public_limit=settings.public_actor_limit)
    actors = browse(listing.actors, search=args.search, sort=args.sort)
    if args.json:
        write_json([actor.to_payload() for actor in actors], None)
        return EXIT_OK
    for actor in actors:
        print(format_actor_line(actor))
    print(f"{len(actors)} of {listing.count} actors shown", file=sys.stderr)
    return EXIT_OK


def _show_schema(args: argparse.Namespace, client: ProviderClient) -> int:
    details = client.get_actor(args.actor)
    document = resolve_input_schema(details.model_dump(by_alias=True))
    if args.form:
        schema = SchemaModel.from_document(document)
        fields = [field.model_dump(mode="json") for field in build_form(schema)]
        write_json(fields, None)
        return EXIT_OK
    write_json(document, None)
    return EXIT_OK


def _run_actor(
    args: argparse.Namespace,
    client: ProviderClient,
    settings: RunnerSettings,
    logger_manager: LoggerManager,
) -> int:
    logger = logger_manager.get_logger("cli")
    schema = fetch_input_schema(client, args.actor)
    try:
        edits: dict[str, object] = {}
        if args.input_file:
            edits.update(load_input_file(args.input_file))
        edits.update(parse_assignments(args.assignments))
    except (OSError, ValueError) as exc:
        return fail(f"Invalid input: {exc}", EXIT_USAGE)

    unknown = sorted(set(edits) - set(schema.properties))
    if unknown:
        logger.warning(
            f"Ignoring fields not in the input schema: {', '.join(unknown)}"
        )

    values, errors = compile_input(schema, edits)
    if errors:
        for line in format_field_errors(errors):
            print(line, file=sys.stderr)
        return EXIT_USAGE
    input_values = prune_empty(schema, values)

    if args.dry_run:
        logger.info("Dry run: input compiled, nothing submitted")
        write_json(input_values, None)
        return EXIT_OK

    manager = RunLifecycleManager(client, logger_manager=logger_manager)
    results = manager.execute(
        args.actor,
        input_values,
        timeout_budget=(
            args.timeout if args.timeout is not None else settings.timeout_budget
        ),
        poll_interval=args.poll_interval or settings.poll_interval,
    )
    handle = manager.last_handle
    logger.info(
        f"Run finished with {len(results)} dataset items",
        extra={
            "context": {
                "run_id": handle.run_id if handle else None,
                "run_url": handle.run_url if handle else None,
            }
        },
    )
    write_json(results, args.out)
    return EXIT_OK


def main(
    argv: list[str] | None = None,
    client_factory: ClientFactory | None = None,
) -> int:
    """Main entry point; returns the process exit code."""
    args = parse_args(argv)
    load_environment()

    bootstrap_logger = logging.getLogger("actor_runner.bootstrap")
    try:
        config = load_config(args.config, bootstrap_logger)
        settings = settings_from_env(settings_from_config(config))
        if args.base_url:
            settings = settings.with_overrides({"base_url": args.base_url})
        logger_manager = LoggerManager(logger_config_from(config, args.log_level))
    except (RuntimeError, ValueError) as exc:
        return fail(f"Configuration error: {exc}", EXIT_USAGE)

    token = token_from_env()
    if token is None:
        return fail(
            "API key validation failed: set APIFY_TOKEN (or APIFY_API_KEY) "
            "in the environment or a .env file"
        )
    session = SessionContext(token=token)
    try:
        client = (client_factory or _default_client)(session, settings)
        if args.command == "actors":
            return _list_actors(args, client, settings)
        if args.command == "schema":
            return _show_schema(args, client)
        return _run_actor(args, client, settings, logger_manager)
    except ActorRunnerError as exc:
        logger_manager.get_logger("cli").error(
            f"{args.command} failed",
            extra={"context": exc.to_payload()},
        )
        print(json.dumps({"error": exc.to_payload()}), file=sys.stderr)
        return EXIT_FAILURE
    except ValueError as exc:
        return fail(f"Invalid arguments: {exc}", EXIT_USAGE)
    finally:
        logger_manager.flush()


def run() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("Interrupted by user", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
