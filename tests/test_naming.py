"""
Tests for identifier naming utilities.
"""

from unittest import TestCase

import pytest

from supadantic.domain.naming import (
    clean_field_name,
    generate_class_name,
    generate_module_name,
    generate_relationship_name,
    strip_foreign_key_suffix,
    to_pascal_case,
    to_snake_case,
    validate_python_identifier,
)


class TestCaseConversion(TestCase):
    """Test cases for snake/pascal conversion"""

    def test_to_snake_case(self):
        assert to_snake_case("UserAccount") == "user_account"
        assert to_snake_case("createdAt") == "created_at"
        assert to_snake_case("already_snake") == "already_snake"

    def test_to_snake_case_rejects_non_strings(self):
        with pytest.raises(TypeError):
            to_snake_case(42)

    def test_to_pascal_case(self):
        assert to_pascal_case("user_accounts") == "UserAccounts"
        assert to_pascal_case("order-items") == "OrderItems"
        assert to_pascal_case("users") == "Users"

    def test_to_pascal_case_singularized(self):
        assert to_pascal_case("categories", singularize=True) == "Category"
        assert to_pascal_case("users", singularize=True) == "User"


class TestCleanFieldName(TestCase):
    """Test cases for clean_field_name"""

    def test_plain_names_unchanged(self):
        assert clean_field_name("title") == "title"
        assert clean_field_name("user_id") == "user_id"

    def test_keywords_are_escaped(self):
        assert clean_field_name("class") == "class_"
        assert clean_field_name("import") == "import_"
        assert clean_field_name("type") == "type_"

    def test_names_that_shadow_generated_code_are_escaped(self):
        assert clean_field_name("model_config") == "model_config_"
        assert clean_field_name("json") == "json_"
        assert clean_field_name("datetime") == "datetime_"

    def test_leading_digit_is_prefixed(self):
        assert clean_field_name("2fa_enabled") == "field_2fa_enabled"

    def test_camel_case_is_converted(self):
        assert clean_field_name("createdAt") == "created_at"

    def test_invalid_characters_are_dropped(self):
        assert clean_field_name("price$") == "price"

    def test_leading_underscores_are_stripped(self):
        assert clean_field_name("_internal") == "internal"

    def test_empty_result_falls_back(self):
        assert clean_field_name("") == "field"
        assert clean_field_name("$$") == "field"


class TestGeneratedNames(TestCase):
    """Test cases for class, module and relation names"""

    def test_class_names(self):
        assert generate_class_name("user_profiles") == "UserProfiles"
        assert generate_class_name("users") == "Users"
        assert generate_class_name("users", singularize=True) == "User"

    def test_class_name_with_leading_digit(self):
        assert generate_class_name("2024_stats") == "Table2024Stats"

    def test_reserved_class_names_are_escaped(self):
        assert generate_class_name("class") == "ClassModel"
        assert generate_class_name("type") == "TypeModel"
        assert generate_class_name("field") == "FieldModel"

    def test_module_names(self):
        assert generate_module_name("user_profiles") == "user_profiles"
        assert generate_module_name("UserProfiles") == "user_profiles"
        assert generate_module_name("class") == "class_"

    def test_strip_foreign_key_suffix(self):
        assert strip_foreign_key_suffix("author_id") == "author"
        assert strip_foreign_key_suffix("_id") == "_id"
        assert strip_foreign_key_suffix("title") == "title"

    def test_relationship_names(self):
        assert generate_relationship_name("user_id") == "user"
        assert generate_relationship_name("parentId") == "parent"
        assert generate_relationship_name("class_id") == "class_"

    def test_validate_python_identifier(self):
        assert validate_python_identifier("title")
        assert not validate_python_identifier("class")
        assert not validate_python_identifier("2fa")
        assert not validate_python_identifier("")
