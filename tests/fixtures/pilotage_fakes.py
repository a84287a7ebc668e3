# tests/fixtures/pilotage_fakes.py
"""In-memory repositories and unit of work for pilotage use case tests.

The fakes implement the repository Protocols over plain dicts. Writes are
applied immediately; the unit of work only records commits and rollbacks.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from esg_pilotage.application.uow import UnitOfWork
from esg_pilotage.domain.entities.consolidation import DashboardRow
from esg_pilotage.domain.entities.indicator_value import Actor, IndicatorValue, ValueKey
from esg_pilotage.domain.entities.organization import (
    BusinessLine,
    ConsolidationScope,
    Organization,
    Site,
    Subsidiary,
)
from esg_pilotage.domain.entities.taxonomy import (
    Indicator,
    IndicatorTarget,
    Process,
    Sector,
    TaxonomyElement,
)
from esg_pilotage.domain.enums.pilotage import (
    Axis,
    ElementType,
    Formula,
    OrganizationType,
    Role,
    ValueStatus,
)
from esg_pilotage.domain.exceptions.pilotage import DataStoreError
from esg_pilotage.domain.interfaces.repositories.assignment_repository import (
    AssignmentRepository,
)
from esg_pilotage.domain.interfaces.repositories.dashboard_projection_repository import (
    DashboardProjectionRepository,
)
from esg_pilotage.domain.interfaces.repositories.hierarchy_repository import (
    HierarchyRepository,
    HierarchySnapshot,
)
from esg_pilotage.domain.interfaces.repositories.indicator_value_repository import (
    IndicatorValueRepository,
)
from esg_pilotage.domain.interfaces.repositories.taxonomy_repository import (
    TaxonomyRepository,
)

CONTRIBUTOR = Actor(email="carla@acme.test", role=Role.CONTRIBUTOR)
VALIDATOR = Actor(email="victor@acme.test", role=Role.VALIDATOR)
ADMIN = Actor(email="ada@acme.test", role=Role.ADMIN)

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=UTC)


def value_row(
    *,
    indicator_code: str = "CO2_TONS",
    process_code: str = "ENV",
    year: int = 2024,
    month: int = 1,
    value: str | None = "10",
    status: ValueStatus = ValueStatus.VALIDATED,
    site: str | None = "Plant North",
    subsidiary: str | None = "Acme Power",
    business_line: str | None = "Energy",
    organization_name: str = "Acme",
    validated_at: datetime | None = None,
    persisted: bool = True,
) -> IndicatorValue:
    """Build a ledger row; defaults to a validated Plant North CO2 value."""
    return IndicatorValue(
        organization_name=organization_name,
        process_code=process_code,
        indicator_code=indicator_code,
        year=year,
        month=month,
        business_line_name=business_line,
        subsidiary_name=subsidiary,
        site_name=site,
        value=Decimal(value) if value is not None else None,
        unit="t",
        status=status,
        validated_at=validated_at,
        id=uuid4() if persisted else None,
    )


# --------------------------------------------------------------------------- #
# Repositories
# --------------------------------------------------------------------------- #
class InMemoryHierarchyRepository(HierarchyRepository):
    def __init__(self) -> None:
        self.organizations: dict[str, Organization] = {}
        self.business_lines: list[BusinessLine] = []
        self.subsidiaries: list[Subsidiary] = []
        self.sites: list[Site] = []

    async def get_organization(self, name: str) -> Organization | None:
        return self.organizations.get(name)

    async def load_hierarchy(self, organization_name: str) -> HierarchySnapshot:
        own_bl = [b for b in self.business_lines if b.organization_name == organization_name]
        own_sub = [s for s in self.subsidiaries if s.organization_name == organization_name]
        own_sites = [s for s in self.sites if s.organization_name == organization_name]

        sub_refs = {s.subsidiary_name for s in own_sites if s.subsidiary_name}
        foreign_sub = [
            s
            for s in self.subsidiaries
            if s.name in sub_refs and s.organization_name != organization_name
        ]
        bl_refs = {
            n.business_line_name
            for n in [*own_sub, *own_sites, *foreign_sub]
            if n.business_line_name
        }
        foreign_bl = [
            b
            for b in self.business_lines
            if b.name in bl_refs and b.organization_name != organization_name
        ]
        return HierarchySnapshot(
            business_lines=tuple(own_bl + foreign_bl),
            subsidiaries=tuple(own_sub + foreign_sub),
            sites=tuple(own_sites),
        )


class InMemoryTaxonomyRepository(TaxonomyRepository):
    def __init__(self) -> None:
        self.elements: dict[ElementType, dict[str, TaxonomyElement]] = {}
        self.sectors: dict[str, Sector] = {}
        self.indicators: dict[str, Indicator] = {}
        self.processes: dict[str, Process] = {}
        self.targets: dict[tuple[str, str, int], IndicatorTarget] = {}

    async def existing_codes(self, element_type: ElementType, codes: Iterable[str]) -> set[str]:
        if element_type is ElementType.INDICATORS:
            known: Iterable[str] = self.indicators
        elif element_type is ElementType.PROCESSES:
            known = self.processes
        elif element_type is ElementType.SECTORS:
            known = self.sectors
        else:
            known = self.elements.get(element_type, {})
        return set(codes) & set(known)

    async def list_elements(
        self, element_type: ElementType, codes: Iterable[str]
    ) -> Sequence[TaxonomyElement]:
        table = self.elements.get(element_type, {})
        return [table[c] for c in sorted(set(codes)) if c in table]

    async def get_sector(self, name: str) -> Sector | None:
        return self.sectors.get(name)

    async def get_indicator(self, code: str) -> Indicator | None:
        return self.indicators.get(code)

    async def list_indicators(self, codes: Iterable[str]) -> Sequence[Indicator]:
        return [self.indicators[c] for c in sorted(set(codes)) if c in self.indicators]

    async def add_indicator(self, indicator: Indicator) -> bool:
        if indicator.code in self.indicators:
            return False
        self.indicators[indicator.code] = indicator
        return True

    async def list_processes(self, organization_name: str) -> Sequence[Process]:
        return sorted(
            (p for p in self.processes.values() if p.organization_name == organization_name),
            key=lambda p: p.code,
        )

    async def get_target(
        self, organization_name: str, indicator_code: str, year: int
    ) -> IndicatorTarget | None:
        return self.targets.get((organization_name, indicator_code, year))

    async def set_target(self, target: IndicatorTarget) -> IndicatorTarget:
        self.targets[(target.organization_name, target.indicator_code, target.year)] = target
        return target


class InMemoryAssignmentRepository(AssignmentRepository):
    def __init__(self, taxonomy: InMemoryTaxonomyRepository) -> None:
        self._taxonomy = taxonomy
        self.codes: dict[tuple[str, ElementType], tuple[str, ...]] = {}
        self.sectors: dict[str, tuple[str, str | None]] = {}

    async def get_codes(
        self, organization_name: str, element_type: ElementType
    ) -> tuple[str, ...] | None:
        return self.codes.get((organization_name, element_type))

    async def set_codes(
        self, organization_name: str, element_type: ElementType, codes: Sequence[str]
    ) -> None:
        self.codes[(organization_name, element_type)] = tuple(codes)

    async def delete_codes(self, organization_name: str, element_type: ElementType) -> bool:
        return self.codes.pop((organization_name, element_type), None) is not None

    async def get_sector(self, organization_name: str) -> tuple[str, str | None] | None:
        return self.sectors.get(organization_name)

    async def set_sector(
        self, organization_name: str, sector: str, subsector: str | None
    ) -> None:
        self.sectors[organization_name] = (sector, subsector)

    async def delete_sector(self, organization_name: str) -> bool:
        return self.sectors.pop(organization_name, None) is not None

    async def get_process_codes(self, organization_name: str) -> tuple[str, ...]:
        owned = await self._taxonomy.list_processes(organization_name)
        return tuple(p.code for p in owned)

    async def get_process_owners(self, codes: Sequence[str]) -> dict[str, str | None]:
        processes = self._taxonomy.processes
        return {c: processes[c].organization_name for c in codes if c in processes}

    async def set_process_codes(self, organization_name: str, codes: Sequence[str]) -> None:
        wanted = set(codes)
        for code, process in list(self._taxonomy.processes.items()):
            if code in wanted:
                self._taxonomy.processes[code] = replace(
                    process, organization_name=organization_name
                )
            elif process.organization_name == organization_name:
                self._taxonomy.processes[code] = replace(process, organization_name=None)


class InMemoryIndicatorValueRepository(IndicatorValueRepository):
    def __init__(self) -> None:
        self.rows: dict[UUID, IndicatorValue] = {}
        self.failing_updates: set[UUID] = set()

    def add(self, *rows: IndicatorValue) -> None:
        for row in rows:
            stored = row if row.id is not None else replace(row, id=uuid4())
            assert stored.id is not None
            self.rows[stored.id] = stored

    async def get(self, value_id: UUID) -> IndicatorValue | None:
        return self.rows.get(value_id)

    async def find(self, key: ValueKey) -> IndicatorValue | None:
        return next((r for r in self.rows.values() if r.key == key), None)

    async def list_for_period(
        self,
        organization_name: str,
        *,
        year: int,
        month: int | None = None,
        scope: ConsolidationScope | None = None,
        statuses: Iterable[ValueStatus] | None = None,
        process_codes: Iterable[str] | None = None,
        indicator_codes: Iterable[str] | None = None,
    ) -> Sequence[IndicatorValue]:
        wanted_status = set(statuses) if statuses is not None else None
        wanted_process = set(process_codes) if process_codes is not None else None
        wanted_indicator = set(indicator_codes) if indicator_codes is not None else None
        matched = [
            r
            for r in self.rows.values()
            if r.organization_name == organization_name
            and r.year == year
            and (month is None or r.month == month)
            and (scope is None or scope.contains(r.path))
            and (wanted_status is None or r.status in wanted_status)
            and (wanted_process is None or r.process_code in wanted_process)
            and (wanted_indicator is None or r.indicator_code in wanted_indicator)
        ]
        return sorted(
            matched, key=lambda r: (r.process_code, r.indicator_code, r.month, r.site_name or "")
        )

    async def insert(self, row: IndicatorValue) -> IndicatorValue:
        existing = next((r for r in self.rows.values() if r.key == row.key), None)
        stored = replace(row, id=existing.id if existing is not None else uuid4())
        assert stored.id is not None
        self.rows[stored.id] = stored
        return stored

    async def update(self, row: IndicatorValue) -> IndicatorValue:
        assert row.id is not None
        if row.id in self.failing_updates:
            raise DataStoreError("Simulated write failure.", details={"value_id": str(row.id)})
        self.rows[row.id] = row
        return row

    async def delete_for_codes(
        self,
        organization_name: str,
        *,
        indicator_codes: Iterable[str] | None = None,
        process_codes: Iterable[str] | None = None,
    ) -> int:
        indicators = set(indicator_codes or ())
        processes = set(process_codes or ())
        doomed = [
            value_id
            for value_id, r in self.rows.items()
            if r.organization_name == organization_name
            and (r.indicator_code in indicators or r.process_code in processes)
        ]
        for value_id in doomed:
            del self.rows[value_id]
        return len(doomed)


class InMemoryDashboardProjectionRepository(DashboardProjectionRepository):
    def __init__(self) -> None:
        self.primary: list[DashboardRow] = []
        self.fallback: list[DashboardRow] = []
        self.primary_error: str | None = None
        self.fallback_error: str | None = None
        self.refresh_error: str | None = None
        self.refreshed: list[str] = []

    async def refresh(self, organization_name: str) -> None:
        if self.refresh_error is not None:
            raise DataStoreError(self.refresh_error)
        self.refreshed.append(organization_name)

    async def fetch_primary(
        self, organization_name: str, year: int, site_name: str | None = None
    ) -> Sequence[DashboardRow]:
        if self.primary_error is not None:
            raise DataStoreError(self.primary_error)
        return self._filter(self.primary, organization_name, year, site_name)

    async def fetch_fallback(
        self, organization_name: str, year: int, site_name: str | None = None
    ) -> Sequence[DashboardRow]:
        if self.fallback_error is not None:
            raise DataStoreError(self.fallback_error)
        return self._filter(self.fallback, organization_name, year, site_name)

    @staticmethod
    def _filter(
        rows: list[DashboardRow], organization_name: str, year: int, site_name: str | None
    ) -> list[DashboardRow]:
        return [
            r
            for r in rows
            if r.organization_name == organization_name
            and r.year == year
            and (site_name is None or r.site_name in (None, site_name))
        ]


# --------------------------------------------------------------------------- #
# Unit of work
# --------------------------------------------------------------------------- #
class FakeUnitOfWork(UnitOfWork):  # type: ignore[misc]
    """Re-enterable unit of work over the in-memory repositories."""

    def __init__(self) -> None:
        self.hierarchy = InMemoryHierarchyRepository()
        self.taxonomy = InMemoryTaxonomyRepository()
        self.assignments = InMemoryAssignmentRepository(self.taxonomy)
        self.values = InMemoryIndicatorValueRepository()
        self.dashboard = InMemoryDashboardProjectionRepository()
        self._repos: dict[type[Any], Any] = {
            HierarchyRepository: self.hierarchy,
            TaxonomyRepository: self.taxonomy,
            AssignmentRepository: self.assignments,
            IndicatorValueRepository: self.values,
            DashboardProjectionRepository: self.dashboard,
        }
        self.entered = 0
        self.commits = 0
        self.rollbacks = 0
        self._committed = False

    async def __aenter__(self) -> FakeUnitOfWork:  # type: ignore[override]
        self.entered += 1
        self._committed = False
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        if exc_type is not None or not self._committed:
            self.rollbacks += 1

    def get_repository(self, repo_type: type[Any]) -> Any:  # type: ignore[override]
        return self._repos[repo_type]

    async def commit(self) -> None:
        self.commits += 1
        self._committed = True

    async def rollback(self) -> None:
        self.rollbacks += 1


def seeded_uow() -> FakeUnitOfWork:
    """Return a unit of work holding the Acme group and a small taxonomy.

    Acme (group)
        Energy (business line)
            Acme Power (subsidiary)
                Plant North, Plant South (sites)
        HQ (site without parents)
    """
    uow = FakeUnitOfWork()

    h = uow.hierarchy
    h.organizations["Acme"] = Organization(name="Acme", organization_type=OrganizationType.GROUP)
    h.organizations["Globex"] = Organization(name="Globex")
    h.business_lines.append(BusinessLine(name="Energy", organization_name="Acme"))
    h.subsidiaries.append(
        Subsidiary(name="Acme Power", organization_name="Acme", business_line_name="Energy")
    )
    h.sites.extend(
        [
            Site(name="Plant North", organization_name="Acme", subsidiary_name="Acme Power"),
            Site(name="Plant South", organization_name="Acme", subsidiary_name="Acme Power"),
            Site(name="HQ", organization_name="Acme"),
            Site(name="Globex Site", organization_name="Globex"),
        ]
    )

    t = uow.taxonomy
    t.indicators.update(
        {
            "CO2_TONS": Indicator(code="CO2_TONS", name="CO2 emissions", unit="t"),
            "WATER_M3": Indicator(
                code="WATER_M3", name="Water use", unit="m3", formula=Formula.AVERAGE
            ),
            "HEADCOUNT": Indicator(
                code="HEADCOUNT",
                name="Headcount",
                unit="people",
                axis=Axis.SOCIAL,
                formula=Formula.LAST_MONTH,
            ),
        }
    )
    t.processes.update(
        {
            "ENV": Process(
                code="ENV",
                name="Environment",
                indicator_codes=("CO2_TONS", "WATER_M3"),
                organization_name="Acme",
            ),
            "HR": Process(
                code="HR", name="People", indicator_codes=("HEADCOUNT",), organization_name="Acme"
            ),
            "OPS": Process(code="OPS", name="Operations", indicator_codes=("CO2_TONS",)),
        }
    )
    t.elements[ElementType.STANDARDS] = {
        "GRI": TaxonomyElement(element_type=ElementType.STANDARDS, code="GRI", name="GRI"),
        "ISSB": TaxonomyElement(element_type=ElementType.STANDARDS, code="ISSB", name="ISSB"),
    }
    t.elements[ElementType.ISSUES] = {
        "CLIMATE": TaxonomyElement(element_type=ElementType.ISSUES, code="CLIMATE", name="Climate"),
    }
    t.sectors["Energy"] = Sector(name="Energy", subsectors=("Renewables", "Utilities"))
    t.targets[("Acme", "CO2_TONS", 2024)] = IndicatorTarget(
        organization_name="Acme", indicator_code="CO2_TONS", year=2024, target_value=Decimal("100")
    )

    uow.assignments.codes[("Acme", ElementType.INDICATORS)] = ("CO2_TONS",)
    uow.assignments.codes[("Acme", ElementType.STANDARDS)] = ("GRI",)
    return uow
