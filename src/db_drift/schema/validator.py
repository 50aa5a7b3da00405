"""Schema reconciliation: validate every catalog table against its model.

Lists the catalog's tables, drops the excluded ones, and checks each
remaining table concurrently.  Within one table the phases run in order --
attributes, then foreign keys, then indexes -- because the index rules rely
on attribute and reference shapes already being confirmed.

Catalog queries are bounded by ``ValidationOptions.max_concurrency``; I/O
errors propagate unchanged and are never turned into discrepancies.

Usage:
    from db_drift.catalog import AsyncPostgresCatalog
    from db_drift.schema.registry import load_models
    from db_drift.schema.validator import SchemaDriftError, validate_schemas

    catalog = AsyncPostgresCatalog(database_url)
    try:
        result = await validate_schemas(catalog, load_models(Path("models.toml")))
        print(result.format_report())
    except SchemaDriftError as e:
        print(e.discrepancy.message)
    finally:
        await catalog.close()
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from db_drift.schema.comparator import (
    check_attributes,
    check_foreign_keys,
    check_indexes,
    check_missing_columns,
)
from db_drift.schema.dialects import Dialect, get_capabilities
from db_drift.schema.models import (
    Discrepancy,
    DiscrepancyKind,
    ValidationMode,
    ValidationOptions,
    ValidationResult,
)
from db_drift.schema.registry import ModelRegistry

if TYPE_CHECKING:
    from db_drift.catalog.base import CatalogClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SchemaDriftError(Exception):
    """Raised when the live schema does not match the declared models.

    Attributes:
        discrepancies: Every discrepancy reported (one in fail-fast mode).
        discrepancy: The first discrepancy.
        result: The full ``ValidationResult`` for the run.
    """

    def __init__(self, discrepancies: list[Discrepancy], result: ValidationResult) -> None:
        self.discrepancies = discrepancies
        self.discrepancy = discrepancies[0]
        self.result = result
        if len(discrepancies) == 1:
            message = self.discrepancy.message
        else:
            message = result.format_report()
        super().__init__(message)


class _TableValidator:
    """Runs the per-table phases for one validation run."""

    def __init__(
        self,
        catalog: "CatalogClient",
        registry: ModelRegistry,
        options: ValidationOptions,
    ) -> None:
        self._catalog = catalog
        self._registry = registry
        self._options = options
        self._capabilities = get_capabilities(options.dialect)
        self._fail_fast = options.mode is ValidationMode.FAIL_FAST
        self._semaphore = asyncio.Semaphore(options.max_concurrency)

    async def query(self, method: Callable[..., Awaitable[T]], *args: Any) -> T:
        """Run one catalog query under the concurrency bound."""
        async with self._semaphore:
            return await method(*args)

    def _done(self, found: list[Discrepancy]) -> bool:
        return self._fail_fast and bool(found)

    async def check_table(self, table: str) -> tuple[str, list[Discrepancy]]:
        """Check one table; returns its name and the discrepancies found."""
        options = self._options
        model = self._registry.resolve_model(table)
        if model is None:
            return table, [
                Discrepancy(
                    kind=DiscrepancyKind.UNDEFINED_MODEL,
                    table=table,
                    message=f"{table} has not been defined",
                )
            ]

        logger.debug(f"Checking table {table}")

        columns = await self.query(self._catalog.describe_table, table)
        found = check_attributes(
            table,
            model,
            columns,
            dialect=options.dialect,
            compare_comments=options.compare_comments,
        )
        if options.check_missing_columns:
            found.extend(check_missing_columns(table, model, columns))
        if self._done(found):
            return table, found[:1]

        if self._capabilities.supports_foreign_key_introspection:
            foreign_keys = await self.query(self._catalog.list_foreign_keys, table)
            found.extend(check_foreign_keys(table, model, foreign_keys))
            if self._done(found):
                return table, found[:1]

        indexes = await self.query(self._catalog.list_indexes, table)
        found.extend(check_indexes(table, model, indexes, dialect=options.dialect))
        if self._done(found):
            return table, found[:1]

        return table, found


async def validate_schemas(
    catalog: "CatalogClient",
    registry: ModelRegistry,
    options: ValidationOptions | None = None,
) -> ValidationResult:
    """Validate the live schema against the declared models.

    Args:
        catalog: Catalog client for the database under test.
        registry: Declared models.
        options: Run options.  Defaults to ``ValidationOptions`` with the
            catalog's dialect.

    Returns:
        ``ValidationResult`` with ``valid=True`` when no drift was found.

    Raises:
        SchemaDriftError: On drift.  In fail-fast mode (the default) it
            carries the first discrepancy; in full-report mode, all of them.
        Exception: Any catalog/I/O error, unchanged.
    """
    if options is None:
        options = ValidationOptions(
            dialect=getattr(catalog, "dialect", Dialect.POSTGRES)
        )

    validator = _TableValidator(catalog, registry, options)
    fail_fast = options.mode is ValidationMode.FAIL_FAST

    table_names = await validator.query(catalog.list_tables)
    excluded = set(options.exclude)
    to_check = [name for name in table_names if name not in excluded]
    skipped = [name for name in table_names if name in excluded]

    logger.info(
        f"Validating {len(to_check)} tables on {options.dialect.value} "
        f"({len(skipped)} excluded)"
    )

    tasks = [asyncio.create_task(validator.check_table(name)) for name in to_check]
    found_by_table: dict[str, list[Discrepancy]] = {}
    try:
        for next_done in asyncio.as_completed(tasks):
            table, found = await next_done
            found_by_table[table] = found
            if found and fail_fast:
                break
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    if fail_fast:
        discrepancies = next(
            (found for found in found_by_table.values() if found), []
        )
    else:
        discrepancies = [d for name in to_check for d in found_by_table.get(name, [])]

    if options.check_missing_tables and not (fail_fast and discrepancies):
        present = set(table_names)
        for name in registry.table_names():
            if name in present or name in excluded:
                continue
            discrepancies.append(
                Discrepancy(
                    kind=DiscrepancyKind.MISSING_TABLE,
                    table=name,
                    message=f"Table '{name}' missing from database",
                )
            )
            if fail_fast:
                break

    result = ValidationResult(
        valid=not discrepancies,
        dialect=options.dialect,
        tables_checked=to_check,
        tables_excluded=skipped,
        discrepancies=discrepancies,
    )

    if discrepancies:
        logger.info(f"Schema drift: {len(discrepancies)} discrepancies")
        raise SchemaDriftError(discrepancies, result)

    logger.info("Schema valid")
    return result
