"""Compare store round trips of the user creation and lookup strategies.

Builds the supervision chain Ola <- Kari <- Hans <- Siri once per creation
strategy, each call in its own session as a request would get, and counts the
statements every call sends to the database. Then reads Siri back through each
lookup variant.

Usage:
  python -m projection_lab.benchmark
  BENCHMARK_DATABASE_URL=postgresql+asyncpg://... python -m projection_lab.benchmark
"""

import asyncio
import os
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from projection_lab.core.database import build_engine, build_session_factory, init_schema
from projection_lab.core.request_context import count_round_trips
from projection_lab.models.enums import CreationStrategy, LookupSource
from projection_lab.schemas.user import UserInput
from projection_lab.services.org_service import OrganizationService
from projection_lab.services.user_service import UserService

# (given name, index of the supervisor in this list)
SUPERVISION_CHAIN: list[tuple[str, Optional[int]]] = [
    ("Ola", None),
    ("Kari", 0),
    ("Hans", 1),
    ("Siri", 2),
]


@dataclass
class BenchmarkReport:
    """Round trips per creation call and per lookup variant."""

    creation: dict[str, list[int]] = field(default_factory=dict)
    lookup: dict[str, int] = field(default_factory=dict)
    # strategy -> ids in SUPERVISION_CHAIN order
    user_ids: dict[str, list[str]] = field(default_factory=dict)
    organization_ids: dict[str, str] = field(default_factory=dict)


async def _create_chain(
    session_factory: async_sessionmaker[AsyncSession],
    strategy: CreationStrategy,
    report: BenchmarkReport,
) -> None:
    async with session_factory() as session:
        organization = await OrganizationService(session).create(
            name=f"MyOrg ({strategy.value})"
        )

    ids: list[str] = []
    round_trips: list[int] = []
    for given_name, supervisor_index in SUPERVISION_CHAIN:
        body = UserInput(
            given_name=given_name,
            family_name="Nordmann",
            supervisor_id=ids[supervisor_index] if supervisor_index is not None else None,
        )
        async with session_factory() as session:
            with count_round_trips() as counter:
                created = await UserService(session).create_with_strategy(
                    organization.id, body, strategy
                )
        ids.append(created.id)
        round_trips.append(counter.count)

    report.creation[strategy.value] = round_trips
    report.user_ids[strategy.value] = ids
    report.organization_ids[strategy.value] = organization.id


async def _measure_lookups(
    session_factory: async_sessionmaker[AsyncSession],
    org_id: str,
    user_id: str,
    report: BenchmarkReport,
) -> None:
    variants = {
        "entity": lambda service: service.find_user(org_id, user_id, LookupSource.ENTITY),
        "entity_query": lambda service: service.find_user(org_id, user_id, LookupSource.QUERY),
        "projection": lambda service: service.find_projection(org_id, user_id, LookupSource.ENTITY),
        "projection_query": lambda service: service.find_projection(
            org_id, user_id, LookupSource.QUERY
        ),
    }
    for name, lookup in variants.items():
        async with session_factory() as session:
            with count_round_trips() as counter:
                await lookup(UserService(session))
        report.lookup[name] = counter.count


async def compare_strategies(
    session_factory: async_sessionmaker[AsyncSession],
) -> BenchmarkReport:
    """Run every creation strategy and lookup variant against a migrated store."""
    report = BenchmarkReport()
    for strategy in CreationStrategy:
        await _create_chain(session_factory, strategy, report)

    baseline = CreationStrategy.BASELINE.value
    await _measure_lookups(
        session_factory,
        report.organization_ids[baseline],
        report.user_ids[baseline][-1],
        report,
    )
    return report


def format_report(report: BenchmarkReport) -> str:
    names = [name for name, _ in SUPERVISION_CHAIN]
    lines = ["creation round trips (" + ", ".join(names) + ")"]
    for strategy, counts in report.creation.items():
        lines.append(f"  {strategy:<10} {counts}  total={sum(counts)}")
    lines.append(f"lookup round trips ({names[-1]}, chain depth {len(names)})")
    for variant, count in report.lookup.items():
        lines.append(f"  {variant:<18} {count}")
    return "\n".join(lines)


async def main() -> None:
    database_url = os.environ.get("BENCHMARK_DATABASE_URL", "sqlite+aiosqlite://")
    engine_kwargs = {}
    if database_url.startswith("sqlite") and (database_url.endswith("://") or ":memory:" in database_url):
        # One shared connection, otherwise every session gets its own empty database
        engine_kwargs["poolclass"] = StaticPool

    engine = build_engine(database_url, **engine_kwargs)
    try:
        await init_schema(engine)
        report = await compare_strategies(build_session_factory(engine))
    finally:
        await engine.dispose()

    print(format_report(report))


if __name__ == "__main__":
    asyncio.run(main())
