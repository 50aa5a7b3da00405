"""Schema comparison: declared models against introspected catalog state.

Pure logic -- no I/O, no database connections.  Each checker compares one
table and returns every discrepancy it finds, in catalog order; the
orchestrator (``db_drift.schema.validator``) decides whether to stop at the
first one.

Usage:
    from db_drift.schema.comparator import (
        check_attributes,
        check_foreign_keys,
        check_indexes,
    )

    columns = await catalog.describe_table("users")
    discrepancies = check_attributes("users", model, columns, dialect="postgres")
    for d in discrepancies:
        print(d.message)
"""

from db_drift.schema.dialects import Dialect, get_capabilities
from db_drift.schema.models import (
    AttributeDefinition,
    Discrepancy,
    DiscrepancyKind,
    IntrospectedColumn,
    IntrospectedForeignKey,
    IntrospectedIndex,
    ModelDefinition,
)
from db_drift.schema.types import map_type


def _field_list(fields: list[str]) -> str:
    return ",".join(fields)


# ------------------------------------------------------------------
# Attributes
# ------------------------------------------------------------------


def _check_column(
    table: str,
    attr: AttributeDefinition,
    column: IntrospectedColumn,
    dialect: Dialect,
    compare_comments: bool,
) -> Discrepancy | None:
    field = column.field

    expected_type = map_type(attr, dialect)
    if expected_type != column.type:
        return Discrepancy(
            kind=DiscrepancyKind.TYPE_MISMATCH,
            table=table,
            fields=[field],
            expected=expected_type,
            actual=column.type,
            message=(
                f"{table}.{field} field type is invalid. "
                f"Model.{field}.type[{expected_type or 'unmapped ' + str(attr.type)}] "
                f"!= Table.{field}.type[{column.type}]"
            ),
        )

    if attr.primary_key != column.primary_key:
        return Discrepancy(
            kind=DiscrepancyKind.PRIMARY_KEY_MISMATCH,
            table=table,
            fields=[field],
            expected=str(attr.primary_key),
            actual=str(column.primary_key),
            message=(
                f"illegal primaryKey defined {table}.{field}. "
                f"Model.primaryKey[{attr.primary_key}] "
                f"!= Table.primaryKey[{column.primary_key}]"
            ),
        )

    if attr.nullable != column.allow_null:
        return Discrepancy(
            kind=DiscrepancyKind.NULLABILITY_MISMATCH,
            table=table,
            fields=[field],
            expected=str(attr.nullable),
            actual=str(column.allow_null),
            message=(
                f"illegal allowNull defined {table}.{field}. "
                f"Model.allowNull[{attr.nullable}] "
                f"!= Table.allowNull[{column.allow_null}]"
            ),
        )

    if compare_comments and (attr.comment or None) != column.comment:
        return Discrepancy(
            kind=DiscrepancyKind.COMMENT_MISMATCH,
            table=table,
            fields=[field],
            expected=attr.comment,
            actual=column.comment,
            message=(
                f"illegal comment defined {table}.{field}. "
                f"Model.comment[{attr.comment}] != Table.comment[{column.comment}]"
            ),
        )

    return None


def check_attributes(
    table: str,
    model: ModelDefinition,
    columns: dict[str, IntrospectedColumn],
    dialect: Dialect | str = Dialect.POSTGRES,
    compare_comments: bool = False,
) -> list[Discrepancy]:
    """Compare every introspected column against the model's attributes.

    Each column yields at most one discrepancy, checked in this order:
    undefined attribute, type, primary key, nullability, comment.

    Args:
        table: Table name (used in messages).
        model: Declared model for the table.
        columns: Introspected columns keyed by column name.
        dialect: Dialect used to map declared types.
        compare_comments: Also require column comments to match.

    Returns:
        List of discrepancies in catalog column order (empty if all match).

    Examples:
        >>> model = ModelDefinition(
        ...     table_name="users",
        ...     attributes=[AttributeDefinition(name="id", type="INTEGER",
        ...                                     primary_key=True, allow_null=False)],
        ... )
        >>> cols = {"id": IntrospectedColumn(field="id", type="INTEGER",
        ...                                  allow_null=False, primary_key=True)}
        >>> check_attributes("users", model, cols)
        []
    """
    dialect = Dialect(dialect)
    discrepancies: list[Discrepancy] = []

    for field_name, column in columns.items():
        attr = model.get_attribute(field_name)
        if attr is None:
            discrepancies.append(
                Discrepancy(
                    kind=DiscrepancyKind.UNDEFINED_ATTRIBUTE,
                    table=table,
                    fields=[field_name],
                    actual=column.type,
                    message=(
                        f"{table}.{field_name} is not defined. "
                        f"Defined fields: [{_field_list(list(model.fields))}]. "
                        f"Table.{field_name}.type[{column.type}]"
                    ),
                )
            )
            continue

        found = _check_column(table, attr, column, dialect, compare_comments)
        if found is not None:
            discrepancies.append(found)

    return discrepancies


def check_missing_columns(
    table: str,
    model: ModelDefinition,
    columns: dict[str, IntrospectedColumn],
) -> list[Discrepancy]:
    """Report model attributes that have no column in the catalog.

    Example:
        >>> model = ModelDefinition(
        ...     table_name="users",
        ...     attributes=[AttributeDefinition(name="email", type="STRING")],
        ... )
        >>> check_missing_columns("users", model, {})[0].message
        "Column 'email' missing from table 'users'. Model.email.type[STRING]"
    """
    return [
        Discrepancy(
            kind=DiscrepancyKind.MISSING_COLUMN,
            table=table,
            fields=[attr.field],
            expected=str(attr.type),
            message=(
                f"Column '{attr.field}' missing from table '{table}'. "
                f"Model.{attr.field}.type[{attr.type}]"
            ),
        )
        for attr in model.attributes
        if attr.field not in columns
    ]


# ------------------------------------------------------------------
# Foreign keys
# ------------------------------------------------------------------


def check_foreign_keys(
    table: str,
    model: ModelDefinition,
    foreign_keys: list[IntrospectedForeignKey],
) -> list[Discrepancy]:
    """Compare introspected foreign keys against declared references.

    Every catalog foreign key must come from an attribute that declares a
    reference to the same target column, and every declared reference must
    exist in the catalog.

    Only meaningful for dialects that can introspect foreign keys; the
    orchestrator skips this phase for the others.
    """
    discrepancies: list[Discrepancy] = []
    seen_sources: set[str] = set()

    for fk in foreign_keys:
        seen_sources.add(fk.source)
        attr = model.get_attribute(fk.source)

        if attr is None or attr.references is None:
            discrepancies.append(
                Discrepancy(
                    kind=DiscrepancyKind.MISSING_FOREIGN_KEY,
                    table=table,
                    fields=[fk.source],
                    expected=None,
                    actual=f"{fk.target_table}.{fk.target_column}",
                    message=(
                        f"{table}.[{fk.source}] must be defined foreign key. "
                        f"Table.{fk.source} => {fk.target_table}.{fk.target_column}"
                    ),
                )
            )
            continue

        if fk.target_column != attr.references.key:
            discrepancies.append(
                Discrepancy(
                    kind=DiscrepancyKind.FOREIGN_KEY_TARGET_MISMATCH,
                    table=table,
                    fields=[fk.source],
                    expected=attr.references.key,
                    actual=fk.target_column,
                    message=(
                        f"{table}.{fk.source} => {attr.references.key} "
                        f"must be same to foreignKey [{fk.target_column}]"
                    ),
                )
            )

    for attr in model.attributes:
        if attr.references is not None and attr.field not in seen_sources:
            discrepancies.append(
                Discrepancy(
                    kind=DiscrepancyKind.MISSING_FOREIGN_KEY,
                    table=table,
                    fields=[attr.field],
                    expected=f"{attr.references.table}.{attr.references.key}",
                    actual=None,
                    message=(
                        f"{table}.{attr.field} defined foreign key "
                        f"=> {attr.references.table}.{attr.references.key} "
                        f"but the table has no such constraint"
                    ),
                )
            )

    return discrepancies


# ------------------------------------------------------------------
# Indexes
# ------------------------------------------------------------------


def _check_secondary_index(
    table: str,
    model: ModelDefinition,
    index: IntrospectedIndex,
    auto_creates_fk_indexes: bool,
) -> Discrepancy | None:
    fields = list(index.fields)
    label = f"{table}.[{_field_list(fields)}]"

    declared = next(
        (d for d in model.effective_indexes() if list(d.fields) == fields),
        None,
    )

    if len(fields) > 1 and declared is None:
        return Discrepancy(
            kind=DiscrepancyKind.MISSING_COMPOSITE_INDEX,
            table=table,
            fields=fields,
            actual=str(index.unique),
            message=(
                f"{label} must be defined combination key. "
                f"Model.index[None] != Table.unique[{index.unique}]"
            ),
        )

    if declared is not None:
        if declared.unique != index.unique:
            return Discrepancy(
                kind=DiscrepancyKind.UNIQUENESS_MISMATCH,
                table=table,
                fields=fields,
                expected=str(declared.unique),
                actual=str(index.unique),
                message=(
                    f"{label} must be same unique value. "
                    f"Model.unique[{declared.unique}] != Table.unique[{index.unique}]"
                ),
            )
        return None

    attr = model.get_attribute(fields[0])

    if attr is not None and attr.unique is True:
        if not index.unique:
            return Discrepancy(
                kind=DiscrepancyKind.MISSING_UNIQUE_INDEX,
                table=table,
                fields=fields,
                expected="True",
                actual=str(index.unique),
                message=(
                    f"{label} must be defined unique key. "
                    f"Model.unique[True] != Table.unique[{index.unique}]"
                ),
            )
        return None

    if attr is not None and attr.unique_group is not None:
        if index.unique:
            return Discrepancy(
                kind=DiscrepancyKind.UNEXPECTED_UNIQUE_INDEX,
                table=table,
                fields=fields,
                expected="False",
                actual=str(index.unique),
                message=(
                    f"{label} must not be unique alone; it belongs to "
                    f"unique group '{attr.unique_group}'. "
                    f"Model.unique[False] != Table.unique[{index.unique}]"
                ),
            )
        return None

    if attr is not None and attr.references is not None and auto_creates_fk_indexes:
        return None

    return Discrepancy(
        kind=DiscrepancyKind.UNEXPLAINED_INDEX,
        table=table,
        fields=fields,
        actual=str(index.unique),
        message=(
            f"{label} is not defined index. "
            f"Model.index[None] != Table.unique[{index.unique}]"
        ),
    )


def check_indexes(
    table: str,
    model: ModelDefinition,
    indexes: list[IntrospectedIndex],
    dialect: Dialect | str = Dialect.POSTGRES,
) -> list[Discrepancy]:
    """Check that every catalog index is explained by the model.

    Primary indexes may only cover primary key attributes.  Any other index
    must match a declared index (same ordered fields and uniqueness), a
    unique attribute, or -- on dialects that create them implicitly -- the
    index backing a declared foreign key.

    Args:
        table: Table name (used in messages).
        model: Declared model for the table.
        indexes: Introspected indexes, fields in index order.
        dialect: Dialect whose auto-created index rules apply.

    Returns:
        List of discrepancies in catalog index order (empty if all match).
    """
    auto_creates_fk_indexes = get_capabilities(dialect).auto_creates_foreign_key_indexes
    primary_keys = model.primary_keys
    discrepancies: list[Discrepancy] = []

    for index in indexes:
        if index.primary:
            for field in index.fields:
                if field not in primary_keys:
                    expected = _field_list(sorted(primary_keys))
                    actual = _field_list(list(index.fields))
                    discrepancies.append(
                        Discrepancy(
                            kind=DiscrepancyKind.PRIMARY_KEY_FIELD_MISMATCH,
                            table=table,
                            fields=[field],
                            expected=expected,
                            actual=actual,
                            message=(
                                f"{table}.{field} must be primaryKey. "
                                f"Model.primaryKey[{expected}] != Table.primaryKey[{actual}]"
                            ),
                        )
                    )
            continue

        found = _check_secondary_index(table, model, index, auto_creates_fk_indexes)
        if found is not None:
            discrepancies.append(found)

    return discrepancies
