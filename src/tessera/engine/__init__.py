"""Template interpretation engine.

Turns template text plus a tree of values into rendered output: the lexer
tokenizes once, the parser builds a block tree and the renderer walks it.
"""

from ._diagnostics import Diagnostic, DiagnosticReporter, format_marker
from ._engine import TemplateEngine, render
from ._expression import ExpressionEvaluator, compile_expression, evaluate_condition
from ._functions import (
    CallSpec,
    FunctionRegistry,
    builtin_functions,
    create_function_registry,
    parse_call,
)
from ._lexer import Lexer, Token, tokenize
from ._nodes import (
    CommentNode,
    ConditionalBranch,
    DiagnosticNode,
    ForNode,
    FunctionCallNode,
    IfNode,
    IncludeNode,
    Node,
    SourceLocation,
    SwitchCase,
    SwitchNode,
    Template,
    TernaryNode,
    TextNode,
    VariableNode,
    children,
    describe,
)
from ._options import RenderOptions
from ._parser import Parser, parse
from ._paths import canonical_path, normalize_path, resolve
from ._renderer import Renderer, RenderState
from ._scope import LoopFrame, Scope
from ._values import is_truthy, kind_of, loose_equals, strict_equals, to_display

__all__ = [
    "CallSpec",
    "CommentNode",
    "ConditionalBranch",
    "Diagnostic",
    "DiagnosticNode",
    "DiagnosticReporter",
    "ExpressionEvaluator",
    "ForNode",
    "FunctionCallNode",
    "FunctionRegistry",
    "IfNode",
    "IncludeNode",
    "Lexer",
    "LoopFrame",
    "Node",
    "Parser",
    "RenderOptions",
    "RenderState",
    "Renderer",
    "Scope",
    "SourceLocation",
    "SwitchCase",
    "SwitchNode",
    "Template",
    "TemplateEngine",
    "TernaryNode",
    "TextNode",
    "Token",
    "VariableNode",
    "builtin_functions",
    "canonical_path",
    "children",
    "compile_expression",
    "create_function_registry",
    "describe",
    "evaluate_condition",
    "format_marker",
    "is_truthy",
    "kind_of",
    "loose_equals",
    "normalize_path",
    "parse",
    "parse_call",
    "render",
    "resolve",
    "strict_equals",
    "to_display",
    "tokenize",
]
