"""
Check Integrations - External API health sweep.

Probes every configured external service (inventory, region, address)
through the same call path as real traffic and prints the result.

Usage:
    check-integrations
    check-integrations --deadline 10
    check-integrations --text

Exit codes:
    0: All configured services healthy
    1: At least one service unhealthy (degraded)
    2: No service configured
"""

import argparse
import asyncio
import sys

import httpx

from integrations.config import get_integration_settings
from integrations.logging import setup_structured_logging
from integrations.manager import IntegrationManager
from integrations.models import HealthCheckResult, HealthStatus

EXIT_HEALTHY = 0
EXIT_DEGRADED = 1
EXIT_NOT_CONFIGURED = 2


def render_text(result: HealthCheckResult) -> str:
    """One line per service plus the overall status."""
    lines = []
    for name in sorted(result.services):
        service = result.services[name]
        mark = "OK  " if service.status == HealthStatus.HEALTHY else "FAIL"
        line = f"[{mark}] {name:<10} {service.latency_ms or 0:>8.1f} ms"
        if service.error:
            line += f"  {service.error}"
        lines.append(line)
    lines.append(f"overall: {result.overall_status.value}")
    return "\n".join(lines)


async def run(deadline: float | None, as_text: bool, transport: httpx.AsyncBaseTransport | None = None) -> int:
    settings = get_integration_settings()
    manager = IntegrationManager.from_settings(settings, transport=transport)

    async with manager:
        if not any((manager.inventory_client, manager.region_client, manager.address_client)):
            print("No external API configured (set INVENTORY_API_URL, REGION_API_URL or ADDRESS_API_URL)")
            return EXIT_NOT_CONFIGURED

        result = await manager.health_check(deadline=deadline)

    print(render_text(result) if as_text else result.model_dump_json(indent=2))
    return EXIT_HEALTHY if result.is_healthy() else EXIT_DEGRADED


def main() -> None:
    parser = argparse.ArgumentParser(description="Check external API health")
    parser.add_argument("--deadline", type=float, default=None, help="Seconds allowed per probe, retries included")
    parser.add_argument("--text", action="store_true", help="Print a human-readable table instead of JSON")
    args = parser.parse_args()

    settings = get_integration_settings()
    setup_structured_logging("check-integrations", level=settings.log_level, fmt=settings.log_format)

    sys.exit(asyncio.run(run(args.deadline, args.text)))


if __name__ == "__main__":
    main()
