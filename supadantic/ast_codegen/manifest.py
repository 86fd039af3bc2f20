import ast
import logging
from typing import Iterable, List

from supadantic.ast_codegen.base import (
    create_assign, create_attribute_call, create_expr, create_import, create_list_of_strings, create_module,
)
from supadantic.codegen_utils import format_python_code_using_black, with_header
from supadantic.constants import GenerationOptions
from supadantic.domain.naming import generate_class_name, generate_module_name


logger = logging.getLogger(__name__)


class ManifestEmitter:
    """
    Renders the package ``__init__.py`` exporting every generated model.

    Models reference related models by name only, so the manifest calls
    ``model_rebuild()`` on each once all of them are imported.
    """

    def __init__(self, singular_class_names: bool = False):
        self.singular_class_names = singular_class_names

    @property
    def file_name(self) -> str:
        return GenerationOptions.MANIFEST_FILE

    def render(self, table_names: Iterable[str]) -> str:
        """Render the manifest for the given tables, in the order supplied."""
        entries = [
            (generate_module_name(name), generate_class_name(name, singularize=self.singular_class_names))
            for name in table_names
        ]

        body: List[ast.stmt] = [
            create_import(module_name, [class_name], level=1) for module_name, class_name in entries
        ]
        body.extend(create_expr(create_attribute_call(class_name, "model_rebuild")) for _, class_name in entries)
        body.append(create_assign("__all__", create_list_of_strings([class_name for _, class_name in entries])))

        code = ast.unparse(create_module(body))
        logger.debug(f"Rendered manifest with {len(entries)} models")
        return format_python_code_using_black(self.file_name, with_header(code, [GenerationOptions.GENERATED_HEADER]))
