"""
Naming convention utilities for supadantic.

Converts table and column names from the database into Python identifiers
for generated modules, classes and fields, escaping anything that would
collide with a keyword or a name the generated code relies on.
"""

import re

import inflect

from ..constants import FieldNames, ForeignKeyConventions


# Initialize inflect engine for singularization
p = inflect.engine()


def to_snake_case(name: str) -> str:
    """
    Convert CamelCase or PascalCase to snake_case.

    Example:
        >>> to_snake_case("UserAccount")
        'user_account'
        >>> to_snake_case("XMLHttpRequest")
        'xml_http_request'
    """
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")

    name = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    name = re.sub("__([A-Z])", r"_\1", name)
    name = re.sub("([a-z0-9])([A-Z])", r"\1_\2", name)
    return name.lower()


def to_pascal_case(name: str, singularize: bool = False) -> str:
    """
    Convert snake_case (or any separated name) to PascalCase.

    Args:
        name: The string to convert
        singularize: Singularize the name first, e.g. ``categories`` -> ``Category``

    Example:
        >>> to_pascal_case("user_accounts")
        'UserAccounts'
        >>> to_pascal_case("categories", singularize=True)
        'Category'
    """
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")

    if singularize:
        # inflect returns False when the word is already singular
        singular_name = p.singular_noun(name)
        if singular_name:
            name = singular_name

    words = re.split(r"[^a-zA-Z0-9]+", to_snake_case(name))
    return "".join(word[:1].upper() + word[1:] for word in words if word)


def clean_field_name(name: str) -> str:
    """
    Turn a column name into a valid, non-reserved Python field name.

    Example:
        >>> clean_field_name("class")
        'class_'
        >>> clean_field_name("2fa_enabled")
        'field_2fa_enabled'
        >>> clean_field_name("createdAt")
        'created_at'
    """
    name = to_snake_case(name)
    name = re.sub(r"[^a-z0-9_]", "", name)

    # pydantic treats leading underscores as private attributes
    name = name.lstrip("_")
    if not name:
        return FieldNames.FALLBACK_FIELD_NAME

    if name[0].isdigit():
        name = FieldNames.DIGIT_FIELD_PREFIX + name

    if name in FieldNames.reserved_field_names():
        name += FieldNames.FIELD_ESCAPE_SUFFIX

    return name


def generate_module_name(table_name: str) -> str:
    """Canonical base name of the generated files for a table."""
    return clean_field_name(table_name)


def generate_class_name(table_name: str, singularize: bool = False) -> str:
    """
    Generate a model class name from a table name.

    Example:
        >>> generate_class_name("user_profiles")
        'UserProfiles'
        >>> generate_class_name("2024_stats")
        'Table2024Stats'
        >>> generate_class_name("type")
        'TypeModel'
    """
    class_name = to_pascal_case(table_name, singularize=singularize)
    if not class_name:
        class_name = FieldNames.CLASS_DIGIT_PREFIX

    if class_name[0].isdigit():
        class_name = FieldNames.CLASS_DIGIT_PREFIX + class_name

    if class_name.lower() in FieldNames.reserved_class_names():
        class_name += FieldNames.CLASS_ESCAPE_SUFFIX

    return class_name


def strip_foreign_key_suffix(column_name: str) -> str:
    """
    Remove the ``_id`` suffix from a foreign key column.

    Example:
        >>> strip_foreign_key_suffix("author_id")
        'author'
    """
    suffix = ForeignKeyConventions.SUFFIX
    if column_name.endswith(suffix) and column_name != suffix:
        return column_name[:-len(suffix)]
    return column_name


def generate_relationship_name(column_name: str) -> str:
    """
    Generate a relation field name from a foreign key column name.

    Example:
        >>> generate_relationship_name("author_id")
        'author'
        >>> generate_relationship_name("classId")
        'class_'
    """
    base_name = strip_foreign_key_suffix(to_snake_case(column_name))
    return clean_field_name(base_name)


def validate_python_identifier(name: str) -> bool:
    """Check if a string is a valid, non-reserved Python identifier."""
    if not name:
        return False
    return name.isidentifier() and name not in FieldNames.PYTHON_KEYWORDS
