"""
Domain module for supadantic.

Schema value objects, naming conventions, type mapping and relationship
inference, free of any I/O.
"""

from .models import (
    Column,
    ForeignKey,
    SchemaDiff,
    SchemaSnapshot,
    Table,
)

from .type_mapper import (
    TypeMapper,
    split_array_type,
)

from .relationships import (
    ForeignKeyInferencer,
    candidate_table_names,
    is_identifier_type,
)

from .naming import (
    to_snake_case,
    to_pascal_case,
    clean_field_name,
    generate_class_name,
    generate_module_name,
    generate_relationship_name,
    strip_foreign_key_suffix,
    validate_python_identifier,
)

__all__ = [
    # Core models
    'Column',
    'ForeignKey',
    'SchemaDiff',
    'SchemaSnapshot',
    'Table',

    # Type mapping
    'TypeMapper',
    'split_array_type',

    # Relationships
    'ForeignKeyInferencer',
    'candidate_table_names',
    'is_identifier_type',

    # Naming
    'to_snake_case',
    'to_pascal_case',
    'clean_field_name',
    'generate_class_name',
    'generate_module_name',
    'generate_relationship_name',
    'strip_foreign_key_suffix',
    'validate_python_identifier',
]
