"""Command-line check that resolves configured targets through one registry."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .config import CONFIG_FILE, AppConfig, TargetConfig, load_config
from .drivers import build_driver, redact_uri
from .registry import ConnectionRegistry

LOG = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TargetReport:
    """Outcome of resolving one configured target."""

    name: str
    uri: str
    database: str | None = None
    collections: tuple[str, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def check_targets(registry: ConnectionRegistry, targets: Sequence[TargetConfig]) -> list[TargetReport]:
    """Resolve every target concurrently; failures are reported, not raised."""

    return list(await asyncio.gather(*(_check_target(registry, target) for target in targets)))


async def _check_target(registry: ConnectionRegistry, target: TargetConfig) -> TargetReport:
    uri = redact_uri(target.uri)
    try:
        database = await registry.resolve_one(target.uri)
        if target.collections is not None:
            await registry.resolve_collections(target.uri, target.collections)
    except Exception as exc:
        LOG.debug("Target failed", exc_info=True, extra={"target": target.name})
        return TargetReport(name=target.name, uri=uri, error=str(exc) or type(exc).__name__)
    if isinstance(target.collections, dict):
        names = tuple(f"{alias}={name}" for alias, name in target.collections.items())
    else:
        names = tuple(target.collections or ())
    return TargetReport(name=target.name, uri=uri, database=database.name, collections=names)


def format_report(report: TargetReport) -> str:
    if not report.ok:
        return f"FAIL {report.name} ({report.uri}): {report.error}"
    line = f"OK   {report.name} ({report.uri}) -> {report.database}"
    if report.collections:
        line += f" [{', '.join(report.collections)}]"
    return line


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mongoreg", description=__doc__)
    parser.add_argument("--config", type=Path, default=None, help=f"Config file (default: {CONFIG_FILE})")
    parser.add_argument(
        "--target",
        action="append",
        default=None,
        help="Only check the named target (repeatable)",
    )
    return parser.parse_args(argv)


def select_targets(config: AppConfig, names: Sequence[str] | None) -> list[TargetConfig]:
    if not names:
        return list(config.targets)
    return [config.target(name) for name in names]


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    config = load_config(args.config)
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")
    try:
        targets = select_targets(config, args.target)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    if not targets:
        print("No targets configured.", file=sys.stderr)
        return 2
    registry = ConnectionRegistry(build_driver(config.driver))
    reports = asyncio.run(check_targets(registry, targets))
    for report in reports:
        print(format_report(report))
    return 0 if all(report.ok for report in reports) else 1


__all__ = ["TargetReport", "check_targets", "format_report", "main"]
