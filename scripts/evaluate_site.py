#!/usr/bin/env python3
"""CLI script to evaluate one site against the configured providers."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure the project source is importable when running the script directly.
_project_root = Path(__file__).resolve().parent.parent
_src = _project_root / "src"
if str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from siteeval.core.config import Settings, configure_logging  # noqa: E402
from siteeval.evaluation.completeness import score_location  # noqa: E402
from siteeval.evaluation.models import CreateJobRequest, JobPurpose  # noqa: E402
from siteeval.evaluation.service import EvaluationService  # noqa: E402
from siteeval.evaluation.store import JobStore  # noqa: E402
from siteeval.geo.utils import parse_coordinates  # noqa: E402
from siteeval.locations.resolver import LocationNotFoundError, LocationResolver  # noqa: E402
from siteeval.locations.store import LocationStore  # noqa: E402
from siteeval.providers.base import Geocoder  # noqa: E402
from siteeval.providers.registry import ProviderRegistry, build_registry, load_provider_configs  # noqa: E402
from siteeval.refresh.orchestrator import ProviderOrchestrator  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve a site, fetch its data sections and report completeness."
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--address", type=str, help="Street address to evaluate.")
    target.add_argument("--title", type=str, help="Record of title reference, e.g. CB32A/891.")
    target.add_argument(
        "--coordinates",
        type=str,
        help='Latitude and longitude as "lat, lon", e.g. "-43.5320, 172.6362".',
    )
    parser.add_argument(
        "--purpose",
        type=str,
        default=JobPurpose.GENERAL_ENQUIRY.value,
        choices=[p.value for p in JobPurpose],
        help="Evaluation purpose; decides which sections are required.",
    )
    parser.add_argument(
        "--providers",
        type=str,
        default=None,
        help="Path to the provider YAML file (defaults to the configured path).",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Path to write the job and location as JSON.",
    )
    return parser.parse_args()


def build_request(args: argparse.Namespace) -> CreateJobRequest:
    request = CreateJobRequest(purpose=JobPurpose(args.purpose), start_immediately=True)
    if args.address:
        request.address = args.address
    elif args.title:
        request.title_reference = args.title
    else:
        point = parse_coordinates(args.coordinates)
        if point is None:
            print(f"ERROR: could not parse coordinates {args.coordinates!r}")
            sys.exit(2)
        request.latitude, request.longitude = point.latitude, point.longitude
    return request


async def evaluate(
    args: argparse.Namespace, settings: Settings, registry: ProviderRegistry
) -> None:
    location_store = LocationStore()
    job_store = JobStore()
    resolver = LocationResolver(
        location_store,
        geocoder=registry.first(Geocoder, None, None),
        config=settings.resolver,
    )
    service = EvaluationService(
        resolver,
        ProviderOrchestrator(registry, settings.refresh),
        location_store,
        job_store,
        settings.evaluation,
    )

    try:
        job = await service.create_job(build_request(args))
    except LocationNotFoundError as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)

    location = await resolver.get(job.location_id)
    report = score_location(location)

    print(f"{job.job_reference}  {job.address}")
    print(f"Status: {job.status.value}  Completeness: {job.completeness_percent:.1f}%")
    print()
    for category, section in report.sections.items():
        print(f"  {category.value:<15} {section.status.value:<9} ({section.evidence_field})")
    if job.gaps:
        print()
        print("Gaps:")
        for gap in job.gaps:
            print(f"  [{gap.severity.value}] {gap.section}.{gap.field}: {gap.reason}")
    if job.warnings:
        print()
        print("Warnings:")
        for warning in job.warnings:
            print(f"  - {warning}")

    # Export if requested.
    if args.output:
        Path(args.output).write_text(
            '{"job": %s, "location": %s}\n'
            % (job.model_dump_json(indent=2), location.model_dump_json(indent=2))
        )
        print(f"\nReport exported to {args.output}")


async def main() -> None:
    args = parse_args()

    # Load settings from environment.
    settings = Settings()
    configure_logging(settings)

    providers_path = Path(args.providers or settings.providers.config_path)
    if not providers_path.is_absolute() and not providers_path.exists():
        providers_path = _project_root / providers_path
    registry = build_registry(load_provider_configs(providers_path))

    try:
        await evaluate(args, settings, registry)
    finally:
        await registry.close()


if __name__ == "__main__":
    asyncio.run(main())
