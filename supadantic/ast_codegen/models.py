import ast
import logging
import re
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Set, Tuple

from supadantic.ast_codegen.base import (
    create_annotation, create_ann_assign, create_assign, create_call, create_class_def,
    create_constant, create_docstring, create_empty_tuple, create_if, create_import, create_keyword, create_module,
    create_name, create_none_constant, create_string_constant,
)
from supadantic.codegen_utils import format_python_code_using_black, with_header
from supadantic.config_validation import RelationOverride, SyncConfig
from supadantic.constants import FieldNames, GenerationOptions, PythonTypes
from supadantic.domain.models import Column, ForeignKey, Table
from supadantic.domain.naming import (
    clean_field_name, generate_class_name, generate_module_name, generate_relationship_name,
    strip_foreign_key_suffix, to_snake_case,
)
from supadantic.domain.type_mapper import TypeMapper
from supadantic.exceptions import CodeGenerationError


logger = logging.getLogger(__name__)


_CAST_PATTERN = re.compile(r"(::[A-Za-z_][\w ]*(\[\])?)+$")
_INTEGER_PATTERN = re.compile(r"^-?\d+$")
_NUMBER_PATTERN = re.compile(r"^-?\d+\.?\d*$")
_QUOTED_STRING_PATTERN = re.compile(r"^'(.*)'$", re.DOTALL)
_EMPTY_COLLECTION_LITERALS = {"'{}'", "{}"}

_TRUE_LITERALS = {"true", "'t'", "'true'"}
_FALSE_LITERALS = {"false", "'f'", "'false'"}


def strip_type_cast(default: str) -> str:
    """
    Remove trailing ``::type`` casts from a default expression.

    Example:
        >>> strip_type_cast("'draft'::character varying")
        "'draft'"
    """
    return _CAST_PATTERN.sub("", default.strip()).strip()


def translate_default(default: Optional[str], type_expr: str) -> Optional[ast.keyword]:
    """
    Translate a database default into a ``default=`` / ``default_factory=`` keyword.

    Only literal defaults are translated: booleans, plain numbers, quoted
    strings and empty collections. Anything else, such as ``now()`` or
    ``gen_random_uuid()``, returns None and the caller has to supply a value.
    """
    if default is None:
        return None

    literal = strip_type_cast(default)

    if type_expr == PythonTypes.BOOL:
        lowered = literal.lower()
        if lowered in _TRUE_LITERALS:
            return create_keyword("default", create_constant(True))
        if lowered in _FALSE_LITERALS:
            return create_keyword("default", create_constant(False))
        return None

    if type_expr == PythonTypes.INT:
        if _INTEGER_PATTERN.match(literal):
            return create_keyword("default", create_constant(int(literal)))
        return None

    if type_expr == PythonTypes.FLOAT:
        if _NUMBER_PATTERN.match(literal):
            return create_keyword("default", create_constant(float(literal)))
        return None

    if type_expr == PythonTypes.DECIMAL:
        if _NUMBER_PATTERN.match(literal):
            decimal_call = create_call(PythonTypes.DECIMAL, args=[create_string_constant(literal)])
            return create_keyword("default", decimal_call)
        return None

    if type_expr == PythonTypes.STR:
        match = _QUOTED_STRING_PATTERN.match(literal)
        if match:
            return create_keyword("default", create_string_constant(match.group(1).replace("''", "'")))
        return None

    if literal in _EMPTY_COLLECTION_LITERALS:
        if type_expr.startswith("list["):
            return create_keyword("default_factory", create_name("list"))
        if type_expr.startswith("dict["):
            return create_keyword("default_factory", create_name("dict"))

    return None


@dataclass(frozen=True)
class ScalarField:
    """A column as it will be declared on the model."""

    column: Column
    name: str
    type_expr: str
    default: Optional[ast.keyword]

    @property
    def is_required(self) -> bool:
        return not self.column.nullable and self.default is None

    @property
    def sort_key(self) -> Tuple[bool, str, str]:
        # Required fields first, then by type, then by column name
        return (not self.is_required, self.type_expr, self.column.name)


@dataclass(frozen=True)
class RelationField:
    """An embedded related model declared after the scalar fields."""

    name: str
    target_table: str
    target_class: str
    foreign_key_column: str
    referenced_column: str

    @property
    def description(self) -> str:
        return f"{self.foreign_key_column} -> {self.target_table}.{self.referenced_column}"


class ModelEmitter:
    """
    Renders one table into a module holding a pydantic model.

    Output is a pure function of the table, the set of known tables and the
    relation settings, so rendering the same input twice yields identical text.
    """

    def __init__(
        self,
        type_mapper: TypeMapper,
        embed_relations: bool = False,
        relations: Optional[Mapping[str, Mapping[str, RelationOverride]]] = None,
        singular_class_names: bool = False,
    ):
        self.type_mapper = type_mapper
        self.embed_relations = embed_relations
        self.relations = relations or {}
        self.singular_class_names = singular_class_names

    @classmethod
    def from_config(cls, type_mapper: TypeMapper, config: SyncConfig) -> "ModelEmitter":
        return cls(
            type_mapper,
            embed_relations=config.embed_relations,
            relations=config.relations,
            singular_class_names=config.singular_class_names,
        )

    # --- Naming ---

    def class_name(self, table_name: str) -> str:
        return generate_class_name(table_name, singularize=self.singular_class_names)

    @staticmethod
    def module_name(table_name: str) -> str:
        return generate_module_name(table_name)

    def file_name(self, table_name: str) -> str:
        return self.module_name(table_name) + GenerationOptions.MODULE_SUFFIX

    def artifact_paths(self, table_name: str) -> List[str]:
        """Files sharing the table's base name that must go when the table is dropped."""
        base_name = self.module_name(table_name)
        return [
            base_name + GenerationOptions.MODULE_SUFFIX,
            base_name + GenerationOptions.STUB_SUFFIX,
        ]

    # --- Fields ---

    def build_scalar_fields(self, table: Table) -> List[ScalarField]:
        """Build scalar fields in declaration order."""
        fields = []
        used_names: Set[str] = set()
        for column in table.columns:
            type_expr = self.type_mapper.map_type(column.source_type)
            # A primary key default is generated by the database, never by the model
            default = None if column.is_primary_key else translate_default(column.default, type_expr)
            if column.default is not None and default is None and not column.is_primary_key:
                logger.debug(f"Default {column.default!r} of {table.name}.{column.name} is not a literal; skipping it")

            name = self._unique_name(clean_field_name(column.name), used_names)
            fields.append(ScalarField(column=column, name=name, type_expr=type_expr, default=default))

        return sorted(fields, key=lambda field: field.sort_key)

    def build_relation_fields(self, table: Table, all_tables: Mapping[str, Table],
                              scalar_names: Set[str]) -> List[RelationField]:
        """Build embedded relation fields in foreign key column order."""
        if not self.embed_relations:
            return []

        relations = []
        used_names = set(scalar_names)
        for column in table.columns:
            if column.foreign_key is None:
                continue

            relation = self._build_relation(table, column.foreign_key, all_tables)
            if relation is None:
                continue

            name = relation.name
            if name in used_names:
                name += FieldNames.RELATION_COLLISION_SUFFIX
            relations.append(replace(relation, name=self._unique_name(name, used_names)))

        return relations

    def get_relation_override(self, table_name: str, relation_name: str) -> Optional[RelationOverride]:
        return self.relations.get(table_name, {}).get(relation_name)

    def should_embed_relation(self, table_name: str, relation_name: str) -> bool:
        if not self.embed_relations:
            return False
        override = self.get_relation_override(table_name, relation_name)
        return override is None or override.enabled

    def _build_relation(self, table: Table, foreign_key: ForeignKey,
                        all_tables: Mapping[str, Table]) -> Optional[RelationField]:
        # Overrides use the unescaped name: `class` for `class_id`, whose field is `class_`
        relation_key = strip_foreign_key_suffix(to_snake_case(foreign_key.column))
        relation_name = generate_relationship_name(foreign_key.column)
        override = self.get_relation_override(table.name, relation_key)
        if override is None:
            override = self.get_relation_override(table.name, relation_name)
        if override is not None and not override.enabled:
            logger.debug(f"Relation '{relation_key}' on '{table.name}' disabled by configuration")
            return None

        target_table = (override and override.table) or foreign_key.referenced_table
        if target_table not in all_tables:
            logger.debug(f"Relation '{relation_name}' on '{table.name}' skipped: table '{target_table}' not generated")
            return None

        return RelationField(
            name=relation_name,
            target_table=target_table,
            target_class=self.class_name(target_table),
            foreign_key_column=(override and override.foreign_key) or foreign_key.column,
            referenced_column=(override and override.referenced_column) or foreign_key.referenced_column,
        )

    @staticmethod
    def _unique_name(name: str, used_names: Set[str]) -> str:
        candidate = name
        while candidate in used_names:
            candidate += FieldNames.FIELD_ESCAPE_SUFFIX
        used_names.add(candidate)
        return candidate

    # --- AST ---

    def create_scalar_field(self, field: ScalarField) -> ast.AnnAssign:
        """Creates an annotated assignment for a scalar field."""
        column = field.column
        annotation = f"Optional[{field.type_expr}]" if column.nullable else field.type_expr

        default = field.default
        if default is None and column.nullable:
            default = create_keyword("default", create_none_constant())

        needs_alias = field.name != column.name or self.type_mapper.needs_explicit_key(column.source_type)
        if needs_alias:
            keywords = [default] if default is not None else []
            keywords.append(create_keyword("alias", create_string_constant(column.name)))
            value = create_call("Field", keywords=keywords)
        elif default is None:
            value = None
        elif default.arg == "default":
            value = default.value
        else:
            value = create_call("Field", keywords=[default])

        return create_ann_assign(field.name, create_annotation(annotation), value)

    @staticmethod
    def create_relation_field(relation: RelationField) -> ast.AnnAssign:
        """Creates an annotated assignment for an embedded relation."""
        annotation = create_annotation(f"Optional[{relation.target_class!r}]")
        value = create_call("Field", keywords=[
            create_keyword("default", create_none_constant()),
            create_keyword("description", create_string_constant(relation.description)),
        ])
        return create_ann_assign(relation.name, annotation, value)

    def create_model_class(self, table: Table, scalar_fields: List[ScalarField],
                           relation_fields: List[RelationField]) -> ast.ClassDef:
        model_config = create_call("ConfigDict", keywords=[
            create_keyword("populate_by_name", create_constant(True)),
            create_keyword("protected_namespaces", create_empty_tuple()),
        ])
        body: List[ast.stmt] = [
            create_docstring(GenerationOptions.MODEL_DOCSTRING.format(table=table.name)),
            create_assign("model_config", model_config),
        ]
        body.extend(self.create_scalar_field(field) for field in scalar_fields)
        body.extend(self.create_relation_field(relation) for relation in relation_fields)
        return create_class_def(self.class_name(table.name), [GenerationOptions.MODEL_BASE_CLASS], body)

    def create_imports(self, table: Table, scalar_fields: List[ScalarField],
                       relation_fields: List[RelationField]) -> List[ast.stmt]:
        stdlib: Dict[str, Set[str]] = {}
        typing_names: Set[str] = set()

        for field in scalar_fields:
            for module, name in self.type_mapper.required_imports(field.type_expr):
                stdlib.setdefault(module, set()).add(name)
            if field.column.nullable:
                typing_names.add("Optional")

        relation_imports = sorted({
            (self.module_name(relation.target_table), relation.target_class)
            for relation in relation_fields
            if relation.target_table != table.name
        })
        if relation_fields:
            typing_names.add("Optional")
        if relation_imports:
            typing_names.add("TYPE_CHECKING")

        # typing names are merged with what the column types need
        typing_names |= stdlib.pop("typing", set())
        if typing_names:
            stdlib["typing"] = typing_names

        pydantic_names = ["BaseModel", "ConfigDict"]
        if any(self._uses_field_call(field) for field in scalar_fields) or relation_fields:
            pydantic_names.append("Field")

        imports: List[ast.stmt] = [
            create_import(module, sorted(names)) for module, names in sorted(stdlib.items())
        ]
        imports.append(create_import("pydantic", pydantic_names))

        if relation_imports:
            imports.append(create_if(
                create_name("TYPE_CHECKING"),
                [create_import(module, [class_name], level=1) for module, class_name in relation_imports],
            ))
        return imports

    def _uses_field_call(self, field: ScalarField) -> bool:
        if field.name != field.column.name or self.type_mapper.needs_explicit_key(field.column.source_type):
            return True
        return field.default is not None and field.default.arg == "default_factory"

    # --- Rendering ---

    def render(self, table: Table, all_tables: Mapping[str, Table]) -> str:
        """
        Render the module source for one table.

        Args:
            table: Table to render
            all_tables: Every table being generated in this run, by name;
                relations to tables outside it are left out

        Returns:
            Black-formatted Python source
        """
        try:
            scalar_fields = self.build_scalar_fields(table)
            relation_fields = self.build_relation_fields(table, all_tables, {field.name for field in scalar_fields})

            body = self.create_imports(table, scalar_fields, relation_fields)
            body.append(self.create_model_class(table, scalar_fields, relation_fields))
            code = ast.unparse(create_module(body))
        except (SyntaxError, ValueError, TypeError) as e:
            raise CodeGenerationError(f"Failed to render model for table '{table.name}': {e}", table=table.name) from e

        header = [
            GenerationOptions.GENERATED_HEADER,
            GenerationOptions.SOURCE_TABLE_HEADER.format(table=table.name),
        ]
        return format_python_code_using_black(self.file_name(table.name), with_header(code, header))
