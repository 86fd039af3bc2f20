"""
Tests for rendering pydantic model modules from tables.
"""

import ast
from unittest import TestCase

from supadantic.ast_codegen.models import ModelEmitter, strip_type_cast, translate_default
from supadantic.config_validation import RelationOverride, SyncConfig
from supadantic.domain.models import Column, ForeignKey, Table
from supadantic.domain.type_mapper import TypeMapper


def _field_lines(code):
    """Indented class-body lines that declare a field, keyed by field name."""
    lines = {}
    for line in code.splitlines():
        stripped = line.strip()
        if line.startswith("    ") and ":" in stripped and not stripped.startswith(('"""', "#", "from ", "if ")):
            lines[stripped.split(":", 1)[0]] = stripped
    return lines


def _field_order(code):
    return [name for name in _field_lines(code)]


class TestStripTypeCast(TestCase):
    """Test cases for strip_type_cast"""

    def test_simple_cast(self):
        assert strip_type_cast("'draft'::text") == "'draft'"

    def test_multi_word_cast(self):
        assert strip_type_cast("'draft'::character varying") == "'draft'"

    def test_array_cast(self):
        assert strip_type_cast("'{}'::text[]") == "'{}'"

    def test_chained_casts(self):
        assert strip_type_cast("'a'::character varying::text") == "'a'"

    def test_no_cast(self):
        assert strip_type_cast("now()") == "now()"


class TestTranslateDefault(TestCase):
    """Test cases for translate_default"""

    def assertDefault(self, keyword, arg, value):
        assert keyword is not None
        assert keyword.arg == arg
        assert keyword.value.value == value

    def test_none(self):
        assert translate_default(None, "str") is None

    def test_booleans(self):
        self.assertDefault(translate_default("true", "bool"), "default", True)
        self.assertDefault(translate_default("'f'::boolean", "bool"), "default", False)
        assert translate_default("maybe", "bool") is None

    def test_integers(self):
        self.assertDefault(translate_default("42", "int"), "default", 42)
        self.assertDefault(translate_default("-1", "int"), "default", -1)
        assert translate_default("1.5", "int") is None
        assert translate_default("nextval('items_id_seq'::regclass)", "int") is None

    def test_floats(self):
        self.assertDefault(translate_default("1.5", "float"), "default", 1.5)

    def test_decimal_becomes_call(self):
        keyword = translate_default("12.50", "Decimal")
        assert keyword.arg == "default"
        assert isinstance(keyword.value, ast.Call)
        assert keyword.value.func.id == "Decimal"
        assert keyword.value.args[0].value == "12.50"

    def test_quoted_strings(self):
        self.assertDefault(translate_default("'draft'::text", "str"), "default", "draft")
        self.assertDefault(translate_default("'it''s'::text", "str"), "default", "it's")
        assert translate_default("gen_random_uuid()", "str") is None

    def test_empty_collections(self):
        list_keyword = translate_default("'{}'::text[]", "list[str]")
        assert list_keyword.arg == "default_factory"
        assert list_keyword.value.id == "list"

        dict_keyword = translate_default("'{}'::jsonb", "dict[str, Any]")
        assert dict_keyword.arg == "default_factory"
        assert dict_keyword.value.id == "dict"

    def test_function_defaults_are_not_translated(self):
        assert translate_default("now()", "datetime") is None
        assert translate_default("gen_random_uuid()", "UUID") is None
        assert translate_default("CURRENT_DATE", "date") is None


class TestFieldOrdering(TestCase):
    """Required fields first, then by type expression, then by column name."""

    def setUp(self):
        self.table = Table("items", (
            Column("id", "int8", nullable=False, is_primary_key=True, default="nextval('items_id_seq'::regclass)"),
            Column("name", "text", nullable=False),
            Column("created_at", "timestamptz", nullable=False, default="now()"),
            Column("price", "numeric", nullable=True),
            Column("active", "bool", nullable=False, default="true"),
            Column("tags", "text[]", nullable=False, default="'{}'::text[]"),
            Column("quantity", "int4", nullable=False, default="0"),
        ))
        self.code = ModelEmitter(TypeMapper()).render(self.table, {"items": self.table})

    def test_field_order(self):
        assert _field_order(self.code) == [
            "created_at", "id", "name", "price", "active", "quantity", "tags",
        ]

    def test_field_declarations(self):
        fields = _field_lines(self.code)

        assert fields["created_at"] == "created_at: datetime"
        assert fields["id"] == "id: int"
        assert fields["name"] == "name: str"
        assert fields["price"] == "price: Optional[Decimal] = None"
        assert fields["active"] == "active: bool = True"
        assert fields["quantity"] == "quantity: int = 0"
        assert fields["tags"] == "tags: list[str] = Field(default_factory=list)"

    def test_model_config(self):
        assert "model_config = ConfigDict(populate_by_name=True, protected_namespaces=())" in self.code

    def test_imports(self):
        assert "from datetime import datetime\n" in self.code
        assert "from decimal import Decimal\n" in self.code
        assert "from typing import Optional\n" in self.code
        assert "from pydantic import BaseModel, ConfigDict, Field\n" in self.code

    def test_header_and_docstring(self):
        assert self.code.startswith("# GENERATED CODE - DO NOT MODIFY BY HAND\n# Source table: items\n")
        assert "class Items(BaseModel):" in self.code
        assert '"""Represents the \'items\' table."""' in self.code

    def test_output_is_valid_python(self):
        ast.parse(self.code)

    def test_rendering_is_byte_identical(self):
        again = ModelEmitter(TypeMapper()).render(self.table, {"items": self.table})
        assert again == self.code


class TestScalarFields(TestCase):
    """Test cases for individual scalar field declarations"""

    def render(self, *columns, mapper=None):
        table = Table("records", columns)
        return ModelEmitter(mapper or TypeMapper()).render(table, {"records": table})

    def test_function_default_on_non_nullable_is_required(self):
        code = self.render(Column("created_at", "timestamptz", nullable=False, default="now()"))
        assert _field_lines(code)["created_at"] == "created_at: datetime"

    def test_function_default_on_nullable_defaults_to_none(self):
        code = self.render(Column("updated_at", "timestamptz", nullable=True, default="now()"))
        assert _field_lines(code)["updated_at"] == "updated_at: Optional[datetime] = None"

    def test_keyword_column_gets_alias(self):
        code = self.render(Column("class", "text", nullable=False))
        assert _field_lines(code)["class_"] == 'class_: str = Field(alias="class")'

    def test_digit_column_gets_alias(self):
        code = self.render(Column("2fa", "bool", nullable=True))
        assert _field_lines(code)["field_2fa"] == 'field_2fa: Optional[bool] = Field(default=None, alias="2fa")'

    def test_json_column_keeps_explicit_alias(self):
        code = self.render(Column("metadata", "jsonb", nullable=True))

        assert _field_lines(code)["metadata"] == (
            'metadata: Optional[dict[str, Any]] = Field(default=None, alias="metadata")'
        )
        assert "from typing import Any, Optional\n" in code

    def test_string_default_with_quote(self):
        code = self.render(Column("motto", "text", nullable=False, default="'it''s'::text"))
        assert _field_lines(code)["motto"] == "motto: str = \"it's\""

    def test_enum_column_maps_to_str(self):
        mapper = TypeMapper({"records_status": ["draft", "published"]})
        code = self.render(Column("status", "records_status", nullable=False, default="'draft'::records_status"),
                           mapper=mapper)
        assert _field_lines(code)["status"] == 'status: str = "draft"'

    def test_unknown_type_is_any(self):
        code = self.render(Column("shape", "some_extension_type", nullable=False))

        assert _field_lines(code)["shape"] == "shape: Any"
        assert "from typing import Any\n" in code

    def test_decimal_default(self):
        code = self.render(Column("price", "numeric", nullable=False, default="12.50"))
        assert _field_lines(code)["price"] == 'price: Decimal = Decimal("12.50")'

    def test_colliding_clean_names_are_disambiguated(self):
        code = self.render(Column("class", "text", nullable=False), Column("class_", "text", nullable=False))
        fields = _field_lines(code)

        assert fields["class_"] == 'class_: str = Field(alias="class")'
        assert fields["class__"] == 'class__: str = Field(alias="class_")'

    def test_no_field_import_when_unused(self):
        code = self.render(Column("title", "text", nullable=False))
        assert "from pydantic import BaseModel, ConfigDict\n" in code


class TestRelations(TestCase):
    """Test cases for embedded relation fields"""

    def setUp(self):
        self.users = Table("users", (Column("id", "uuid", nullable=False, is_primary_key=True),))
        self.profiles = Table("profiles", (Column("user_id", "uuid", nullable=False),))
        self.posts = Table("posts", (
            Column("id", "int8", nullable=False, is_primary_key=True),
            Column("user_id", "uuid", nullable=False, foreign_key=ForeignKey("user_id", "users")),
        ))
        self.all_tables = {"users": self.users, "posts": self.posts, "profiles": self.profiles}

    def test_relation_is_embedded(self):
        code = ModelEmitter(TypeMapper(), embed_relations=True).render(self.posts, self.all_tables)

        assert _field_lines(code)["user"] == 'user: Optional["Users"] = Field(default=None, description="user_id -> users.id")'
        assert "if TYPE_CHECKING:\n    from .users import Users\n" in code
        assert "from typing import Optional, TYPE_CHECKING\n" in code

    def test_relations_follow_scalar_fields(self):
        code = ModelEmitter(TypeMapper(), embed_relations=True).render(self.posts, self.all_tables)
        assert _field_order(code)[-1] == "user"

    def test_relations_off_by_default(self):
        code = ModelEmitter(TypeMapper()).render(self.posts, self.all_tables)

        assert "user" not in _field_lines(code)
        assert "TYPE_CHECKING" not in code

    def test_disabled_by_override(self):
        emitter = ModelEmitter(
            TypeMapper(), embed_relations=True,
            relations={"posts": {"user": RelationOverride(enabled=False)}},
        )
        code = emitter.render(self.posts, self.all_tables)

        assert "user" not in _field_lines(code)
        assert "TYPE_CHECKING" not in code

    def test_override_uses_unescaped_keyword_name(self):
        classes = Table("classes", (Column("id", "uuid", nullable=False, is_primary_key=True),))
        posts = Table("posts", (
            Column("id", "int8", nullable=False, is_primary_key=True),
            Column("class_id", "uuid", nullable=False, foreign_key=ForeignKey("class_id", "classes")),
        ))
        all_tables = {"posts": posts, "classes": classes}

        embedded = ModelEmitter(TypeMapper(), embed_relations=True).render(posts, all_tables)
        for key in ("class", "class_"):
            emitter = ModelEmitter(
                TypeMapper(), embed_relations=True,
                relations={"posts": {key: RelationOverride(enabled=False)}},
            )
            fields = _field_lines(emitter.render(posts, all_tables))

            assert "class_" not in fields
            assert "class_id" in fields
        assert "class_" in _field_lines(embedded)

    def test_override_redirects_target(self):
        emitter = ModelEmitter(
            TypeMapper(), embed_relations=True,
            relations={"posts": {"user": RelationOverride(table="profiles", referenced_column="user_id")}},
        )
        code = emitter.render(self.posts, self.all_tables)

        assert _field_lines(code)["user"] == (
            'user: Optional["Profiles"] = Field(default=None, description="user_id -> profiles.user_id")'
        )
        assert "from .profiles import Profiles" in code

    def test_target_outside_generated_set_is_skipped(self):
        code = ModelEmitter(TypeMapper(), embed_relations=True).render(self.posts, {"posts": self.posts})
        assert "user" not in _field_lines(code)

    def test_relation_name_collision(self):
        posts = Table("posts", (
            Column("author", "text", nullable=False),
            Column("author_id", "uuid", nullable=False, foreign_key=ForeignKey("author_id", "users")),
        ))
        code = ModelEmitter(TypeMapper(), embed_relations=True).render(posts, {"posts": posts, "users": self.users})
        fields = _field_lines(code)

        assert fields["author"] == "author: str"
        assert fields["author_rel"].startswith('author_rel: Optional["Users"]')

    def test_self_reference_has_no_import(self):
        nodes = Table("nodes", (
            Column("id", "int8", nullable=False, is_primary_key=True),
            Column("parent_id", "int8", nullable=True, foreign_key=ForeignKey("parent_id", "nodes")),
        ))
        code = ModelEmitter(TypeMapper(), embed_relations=True).render(nodes, {"nodes": nodes})

        assert _field_lines(code)["parent"].startswith('parent: Optional["Nodes"]')
        assert "TYPE_CHECKING" not in code

    def test_from_config(self):
        config = SyncConfig(embed_relations=True, relations={"posts": {"user": False}}, singular_class_names=True)
        emitter = ModelEmitter.from_config(TypeMapper(), config)

        assert emitter.embed_relations
        assert not emitter.should_embed_relation("posts", "user")
        assert emitter.class_name("users") == "User"


class TestNaming(TestCase):
    """Test cases for emitter file and class naming"""

    def test_file_names(self):
        emitter = ModelEmitter(TypeMapper())

        assert emitter.file_name("UserProfiles") == "user_profiles.py"
        assert emitter.artifact_paths("user_profiles") == ["user_profiles.py", "user_profiles.pyi"]

    def test_reserved_table_name(self):
        table = Table("class", (Column("id", "int8", nullable=False),))
        emitter = ModelEmitter(TypeMapper())
        code = emitter.render(table, {"class": table})

        assert emitter.file_name("class") == "class_.py"
        assert "class ClassModel(BaseModel):" in code
