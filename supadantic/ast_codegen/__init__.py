"""
AST code generation for pydantic model packages.

Each table becomes one module with a ``BaseModel`` subclass; the manifest is
the package ``__init__.py`` tying them together.
"""

from .models import ModelEmitter, translate_default
from .manifest import ManifestEmitter


__all__ = [
    'ModelEmitter',
    'ManifestEmitter',
    'translate_default',
]
