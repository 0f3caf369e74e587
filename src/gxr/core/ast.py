from dataclasses import dataclass
from typing import cast

from tree_sitter import Node
from tree_sitter_language_pack import SupportedLanguage, get_parser

CLIENT_DIRECTIVE = "use client"

# Nodes that may precede or sit between directives without ending the prologue.
_PROLOGUE_TRIVIA = frozenset({"comment", "hash_bang_line", "html_comment"})

# Exported declarations that have no runtime value.
_TYPE_ONLY_DECLARATIONS = frozenset(
    {"type_alias_declaration", "interface_declaration", "function_signature", "ambient_declaration"}
)


@dataclass(frozen=True)
class SourceInfo:
    language: str
    directives: tuple[str, ...]
    exports: tuple[str, ...]

    @property
    def is_client(self) -> bool:
        return CLIENT_DIRECTIVE in self.directives


def _text(node: Node) -> str:
    return node.text.decode("utf-8") if node.text else ""


def parse_source(source_bytes: bytes, language: str) -> Node:
    parser = get_parser(cast(SupportedLanguage, language))
    return parser.parse(source_bytes).root_node


def read_directives(root: Node) -> tuple[str, ...]:
    """Return the module's directive prologue.

    The prologue is the leading run of statements consisting of a single string
    literal. Comments are skipped; any other statement ends it, so a directive
    string further down the file, inside a comment or inside another expression
    is never reported.
    """
    directives: list[str] = []
    for child in root.named_children:
        if child.type in _PROLOGUE_TRIVIA:
            continue
        if child.type != "expression_statement":
            break
        expressions = child.named_children
        if len(expressions) != 1 or expressions[0].type != "string":
            break
        directives.append(_text(expressions[0])[1:-1])
    return tuple(directives)


def _declared_names(declaration: Node) -> list[str]:
    if declaration.type in _TYPE_ONLY_DECLARATIONS:
        return []
    if declaration.type in ("lexical_declaration", "variable_declaration"):
        names = []
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                names.append(_text(name))
        return names
    name = declaration.child_by_field_name("name")
    return [_text(name)] if name is not None else []


def _export_names(statement: Node) -> list[str]:
    tokens = {child.type for child in statement.children if not child.is_named}
    if "default" in tokens:
        return ["default"]
    if "type" in tokens:
        return []

    declaration = statement.child_by_field_name("declaration")
    if declaration is not None:
        return _declared_names(declaration)

    names: list[str] = []
    for clause in statement.named_children:
        if clause.type != "export_clause":
            continue
        for specifier in clause.named_children:
            if specifier.type != "export_specifier":
                continue
            exported = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
            if exported is not None:
                names.append(_text(exported))
    return names


def read_exports(root: Node) -> tuple[str, ...]:
    names: list[str] = []
    for child in root.named_children:
        if child.type == "export_statement":
            names.extend(n for n in _export_names(child) if n not in names)
    return tuple(names)


def analyze_source(source_bytes: bytes, language: str) -> SourceInfo:
    root = parse_source(source_bytes, language)
    return SourceInfo(language=language, directives=read_directives(root), exports=read_exports(root))
