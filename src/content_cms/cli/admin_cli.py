"""
Command-line interface for component type administration.

Talks to a running Content CMS API over HTTP: seeds the default component type
catalogue, defines types from JSON files and lists the stored types.
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Optional

import httpx

from content_cms.managers.logging_manager import get_logger
from content_cms.services.component_type_seed_data import get_default_component_types_seed_data

logger = get_logger(prefix="[AdminCLI]")


class AdminCLI:
    """CLI tool for component type administration."""

    def __init__(self, base_url: str, api_token: str):
        """
        Initialize admin CLI.

        Args:
            base_url: Base URL of the Content CMS API
            api_token: Admin API token
        """
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.headers = {"Authorization": f"Bearer {api_token}"}

    async def _define(self, client: httpx.AsyncClient, definition: dict) -> Optional[bool]:
        """POST one definition. Returns True when created, None when it already exists."""
        response = await client.post(
            f"{self.base_url}/component-types",
            json=definition,
            headers=self.headers,
        )
        if response.status_code == 201:
            logger.info("Created component type %s", definition["name"])
            return True
        if response.status_code == 409:
            logger.info("Component type %s already exists, skipping", definition["name"])
            return None
        logger.error("Failed to create component type %s: %s", definition["name"], response.text)
        return False

    async def seed(self, reset: bool = False) -> bool:
        """
        Seed the default component type catalogue.

        Without `reset` each default definition is posted individually and existing
        types are left untouched. With `reset` the server drops every stored type and
        reseeds.
        """
        try:
            async with httpx.AsyncClient(timeout=60.0) as client:
                if reset:
                    logger.info("Resetting component types...")
                    response = await client.post(
                        f"{self.base_url}/component-types/seed",
                        params={"reset": "true"},
                        headers=self.headers,
                    )
                    if response.status_code != 200:
                        logger.error("Seed failed: %s", response.text)
                        return False
                    summary = response.json()["data"]
                    logger.info(
                        "Seed complete: %d created, %d removed", summary["created"], summary.get("removed", 0)
                    )
                    return True

                created = skipped = failed = 0
                for definition in get_default_component_types_seed_data():
                    outcome = await self._define(client, definition)
                    if outcome is True:
                        created += 1
                    elif outcome is None:
                        skipped += 1
                    else:
                        failed += 1

                logger.info("Seed complete: %d created, %d skipped, %d failed", created, skipped, failed)
                return failed == 0

        except httpx.HTTPError as e:
            logger.error("Seed failed: %s", e, exc_info=True)
            return False

    async def define(self, input_path: str) -> bool:
        """
        Define component types from a JSON file.

        The file holds one definition object or a list of them, each with `name`,
        `fields` and optionally `description` and `tags`.
        """
        input_file = Path(input_path)
        if not input_file.exists():
            logger.error("Input file not found: %s", input_path)
            return False

        try:
            with open(input_file, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Could not read %s: %s", input_path, e)
            return False

        definitions = payload if isinstance(payload, list) else [payload]

        try:
            async with httpx.AsyncClient(timeout=60.0) as client:
                outcomes = [await self._define(client, definition) for definition in definitions]
        except httpx.HTTPError as e:
            logger.error("Define failed: %s", e, exc_info=True)
            return False

        return all(outcome is not False for outcome in outcomes)

    async def list_types(self, include_inactive: bool = False) -> bool:
        """Print stored component types, one per line."""
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.get(
                    f"{self.base_url}/component-types",
                    params={"include_inactive": str(include_inactive).lower()},
                    headers=self.headers,
                )

                if response.status_code != 200:
                    logger.error("Failed to list component types: %s", response.text)
                    return False

                for component_type in response.json()["data"]:
                    marker = "" if component_type.get("is_active", True) else " (inactive)"
                    print(
                        f"{component_type['name']:<24} v{component_type['version']:<4} "
                        f"{len(component_type['fields'])} fields{marker}"
                    )
                return True

        except httpx.HTTPError as e:
            logger.error("Failed to list component types: %s", e, exc_info=True)
            return False


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Content CMS Admin CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Base URL of the Content CMS API (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--token",
        default=os.environ.get("ADMIN_API_TOKEN"),
        help="Admin API token (default: $ADMIN_API_TOKEN)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Seed command
    seed_parser = subparsers.add_parser("seed", help="Seed default component types")
    seed_parser.add_argument(
        "--reset",
        action="store_true",
        help="Remove every stored component type before seeding",
    )

    # Define command
    define_parser = subparsers.add_parser("define", help="Define component types from a JSON file")
    define_parser.add_argument(
        "--input",
        required=True,
        help="Path to a JSON file holding one definition or a list of them",
    )

    # List types command
    list_parser = subparsers.add_parser("list-types", help="List component types")
    list_parser.add_argument(
        "--all",
        action="store_true",
        help="Include deactivated component types",
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if not args.token:
        parser.error("an admin token is required (--token or ADMIN_API_TOKEN)")

    cli = AdminCLI(base_url=args.url, api_token=args.token)

    # Execute command
    if args.command == "seed":
        success = asyncio.run(cli.seed(reset=args.reset))
    elif args.command == "define":
        success = asyncio.run(cli.define(input_path=args.input))
    elif args.command == "list-types":
        success = asyncio.run(cli.list_types(include_inactive=args.all))
    else:
        parser.print_help()
        sys.exit(1)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
