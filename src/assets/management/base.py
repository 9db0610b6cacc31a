"""Shared helpers for the asset management commands."""

import os

from django.core.management.base import BaseCommand, CommandError

from assets.services.client import ApiClient, ApiError

TOKEN_ENV_VAR = "ASSET_API_TOKEN"


class BackendCommand(BaseCommand):
    """Base for commands that call the asset backend with a bearer token."""

    def add_arguments(self, parser):
        parser.add_argument(
            "--token",
            help=f"Backend auth token. Defaults to ${TOKEN_ENV_VAR}.",
        )

    def get_client(self, options):
        token = options.get("token") or os.environ.get(TOKEN_ENV_VAR)
        if not token:
            raise CommandError(
                f"An auth token is required: pass --token or set {TOKEN_ENV_VAR}."
            )
        return ApiClient.with_token(token)

    def fail(self, error):
        """Convert a backend error into a CommandError."""
        if isinstance(error, ApiError):
            raise CommandError(error.message)
        raise CommandError(str(error) if error else "Backend request failed.")

    def write_file(self, path, content):
        with open(path, "wb") as fh:
            fh.write(content)
        self.stdout.write(self.style.SUCCESS(f"Wrote {path}"))
