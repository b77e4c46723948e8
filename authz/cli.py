#!/usr/bin/env python3
"""
Command-line access checks.

Evaluates the authorization decision for a stored user against a request
line, using the same configuration, database and rules as the service::

    authz-check-access alice GET /api/v1/users/7
    authz-check-access --anonymous GET /api/v1/users
    authz-check-access --list-rules
"""

import argparse
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from authz.config import reload_config
from authz.config.logging import setup_logging
from authz.container import build_container
from authz.core.exceptions import NotFoundError
from authz.core.principal import Principal

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate endpoint authorization decisions")
    parser.add_argument("username", nargs="?", help="Stored user to evaluate as")
    parser.add_argument("method", nargs="?", help="HTTP method, e.g. GET")
    parser.add_argument("path", nargs="?", help="Request path, e.g. /api/v1/users/7")
    parser.add_argument(
        "--anonymous",
        action="store_true",
        help="Evaluate as the anonymous principal (omit USERNAME)",
    )
    parser.add_argument("--environment", "-e", help="Configuration environment to load")
    parser.add_argument("--list-rules", action="store_true", help="Print the endpoint rules and exit")
    return parser


def print_rules(rules) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Id", justify="right")
    table.add_column("Method")
    table.add_column("Pattern")
    table.add_column("Role")
    for rule in rules:
        table.add_row(str(rule.id), rule.http_method, rule.url_pattern, rule.role_name)
    console.print(table)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # positionals shift left when --anonymous omits the username
    if args.anonymous and args.path is None:
        args.username, args.method, args.path = None, args.username, args.method

    config = reload_config(args.environment)
    setup_logging(log_level="WARNING", log_format=config.logging.format)
    container = build_container(config)
    container.database.create_all()

    try:
        if args.list_rules:
            print_rules(container.rule_store.find_all())
            return 0

        if not args.method or not args.path or (args.username is None and not args.anonymous):
            parser.error("USERNAME METHOD PATH are required (or --anonymous METHOD PATH)")

        if args.anonymous:
            principal = Principal.anonymous(config.security.anonymous_username)
        else:
            try:
                principal = container.principal_loader.load_by_username(args.username)
            except NotFoundError as e:
                console.print(f"❌ {e.message}", style="red")
                return 2

        result = container.engine.evaluate(principal, args.path, args.method.upper())

        summary = Table(show_header=False)
        summary.add_row("Principal", principal.username)
        summary.add_row("Direct roles", ", ".join(sorted(principal.direct_roles)) or "-")
        summary.add_row("Request", f"{args.method.upper()} {args.path}")
        summary.add_row("Decision", result.effect.value.upper())
        summary.add_row("Reason", result.reason)
        console.print(summary)

        return 0 if result.granted else 1
    finally:
        container.database.dispose()


if __name__ == "__main__":
    sys.exit(main())
