import ast
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


def add_location(node):
    """Add location info to AST nodes"""
    node.lineno = 1
    node.col_offset = 0
    return node


def create_docstring(content: str) -> ast.Expr:
    """Creates an AST node for a docstring."""
    return add_location(ast.Expr(value=ast.Constant(value=content)))


def create_name(name: str) -> ast.Name:
    return add_location(ast.Name(id=name, ctx=ast.Load()))


def create_import(module: str, names: Optional[List[str]] = None, level: int = 0) -> ast.Import | ast.ImportFrom:
    """
    Creates an AST node for an import statement.

    ``level`` > 0 produces a relative import (``from .users import Users``).
    """
    if names or level:
        node = ast.ImportFrom(
            module=module,
            names=[ast.alias(name=name, lineno=1, col_offset=0) for name in names or []],
            level=level
        )
    else:
        node = ast.Import(names=[ast.alias(name=module, lineno=1, col_offset=0)])
    return add_location(node)


def create_assign(target: str, value: ast.expr) -> ast.Assign:
    """Creates an AST node for an assignment."""
    node = ast.Assign(
        targets=[ast.Name(id=target, ctx=ast.Store(), lineno=1, col_offset=0)],
        value=value
    )
    return add_location(node)


def create_annotation(type_expr: str) -> ast.expr:
    """Parses a type expression such as ``Optional[list[int]]`` into an AST node."""
    return ast.parse(type_expr, mode="eval").body


def create_ann_assign(target: str, annotation: ast.expr, value: Optional[ast.expr] = None) -> ast.AnnAssign:
    """Creates an AST node for an annotated class attribute."""
    node = ast.AnnAssign(
        target=ast.Name(id=target, ctx=ast.Store(), lineno=1, col_offset=0),
        annotation=annotation,
        value=value,
        simple=1
    )
    return add_location(node)


def create_call(func_name: str, args: Optional[List[ast.expr]] = None, keywords: Optional[List[ast.keyword]] = None) -> ast.Call:
    """Creates an AST node for a function call."""
    node = ast.Call(
        func=create_name(func_name),
        args=args or [],
        keywords=keywords or []
    )
    return add_location(node)


def create_attribute_call(obj_name: str, attr_name: str, args: Optional[List[ast.expr]] = None, keywords: Optional[List[ast.keyword]] = None) -> ast.Call:
    """Creates an AST node for a method call on an object."""
    attr = add_location(ast.Attribute(
        value=create_name(obj_name),
        attr=attr_name,
        ctx=ast.Load()
    ))
    node = ast.Call(
        func=attr,
        args=args or [],
        keywords=keywords or []
    )
    return add_location(node)


def create_expr(value: ast.expr) -> ast.Expr:
    """Wraps an expression as a statement."""
    return add_location(ast.Expr(value=value))


def create_class_def(name: str, bases: List[str], body: List[ast.stmt], decorator_list: Optional[List[ast.expr]] = None) -> ast.ClassDef:
    """Creates an AST node for a class definition."""
    node = ast.ClassDef(
        name=name,
        bases=[create_name(base) for base in bases],
        keywords=[],
        body=body,
        decorator_list=decorator_list or [],
        type_params=[]
    )
    return add_location(node)


def create_if(test: ast.expr, body: List[ast.stmt]) -> ast.If:
    """Creates an AST node for an ``if`` block without ``else``."""
    return add_location(ast.If(test=test, body=body, orelse=[]))


def create_list_of_strings(items: List[str]) -> ast.List:
    """Creates an AST List node containing string constants."""
    node = ast.List(
        elts=[create_string_constant(item) for item in items],
        ctx=ast.Load()
    )
    return add_location(node)


def create_string_constant(value: str) -> ast.Constant:
    """Creates an AST Constant node for a string."""
    return add_location(ast.Constant(value=value))


def create_constant(value) -> ast.Constant:
    """Creates an AST Constant node for a bool, number or None."""
    return add_location(ast.Constant(value=value))


def create_none_constant() -> ast.Constant:
    """Creates an AST Constant node for None."""
    return create_constant(None)


def create_keyword(arg: str, value: ast.expr) -> ast.keyword:
    """Creates an AST keyword argument."""
    return add_location(ast.keyword(arg=arg, value=value))


def create_module(body: List[ast.stmt]) -> ast.Module:
    return ast.fix_missing_locations(ast.Module(body=body, type_ignores=[]))


def create_empty_tuple() -> ast.Tuple:
    return add_location(ast.Tuple(elts=[], ctx=ast.Load()))
