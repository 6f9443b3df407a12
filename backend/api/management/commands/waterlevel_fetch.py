"""Management command to fetch water levels using the same stack as the API."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from backend.api.views import get_waterlevel_service


class Command(BaseCommand):
    help = "Fetch the fused water-level series for a station and print or store it as JSON"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--station", type=str, help="Station name or id (defaults to the configured station)")
        parser.add_argument("--refresh", action="store_true", help="Drop the cached series before fetching")
        parser.add_argument("--output", type=str, help="Write the payload to this JSON file instead of stdout")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        station = options.get("station")
        if station is not None and not station.strip():
            raise CommandError("--station must not be empty")

        service = get_waterlevel_service()
        if options.get("refresh"):
            service.refresh(station)
        result = service.get_waterlevel(station)
        payload = result.as_payload()

        output = options.get("output")
        if not output:
            self.stdout.write(json.dumps(payload))
            return

        path = Path(output)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise CommandError(f"Could not write {path}: {exc}") from exc
        self.stdout.write(
            f"Saved {payload['station']}: {payload['current']['value']} cm ({payload['metadata']['source']}) to {path}"
        )
