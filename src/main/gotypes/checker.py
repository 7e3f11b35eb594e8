"""
Package-local type resolution over tree-sitter Go syntax trees.

The checker declares the package-level objects of every file of a package,
then walks each function body with nested lexical scopes and records a
resolved type for every expression node it can resolve. Anything it cannot
resolve (members of packages whose source is not on disk) stays absent. Names
that resolve to nothing and untyped constants that cannot take their
typed context are collected as type errors.
"""

from typing import Dict, List, NamedTuple, Optional, Sequence, Set, Tuple

from tree_sitter import Node

from src.main.gotypes.types import (
    BOOL,
    BUILTINS,
    COMPLEX128,
    FLOAT64,
    INT,
    INT32,
    PREDECLARED,
    STRING,
    UINT8,
    UNTYPED_BOOL,
    UNTYPED_COMPLEX,
    UNTYPED_FLOAT,
    UNTYPED_INT,
    UNTYPED_NIL,
    UNTYPED_RANK,
    UNTYPED_RUNE,
    UNTYPED_STRING,
    Array,
    Basic,
    Chan,
    Interface,
    Kind,
    Map,
    Named,
    Pointer,
    Signature,
    Slice,
    Struct,
    TupleType,
    Type,
    TypeParam,
    Var,
    default,
    instantiate,
    is_untyped,
    method,
    substitute,
    underlying,
)
from src.main.utils.go_parser import named, operator, statements, text

LITERALS: Dict[str, Type] = {
    "int_literal": UNTYPED_INT,
    "float_literal": UNTYPED_FLOAT,
    "imaginary_literal": UNTYPED_COMPLEX,
    "rune_literal": UNTYPED_RUNE,
    "interpreted_string_literal": UNTYPED_STRING,
    "raw_string_literal": UNTYPED_STRING,
}
NAME_NODES = ("identifier", "true", "false", "nil", "iota")
TYPE_NODES = (
    "type_identifier", "qualified_type", "pointer_type", "slice_type", "array_type",
    "implicit_length_array_type", "map_type", "channel_type", "function_type",
    "struct_type", "interface_type", "generic_type", "parenthesized_type",
)
COMPARISONS = ("==", "!=", "<", "<=", ">", ">=")
MAX_EMBEDDING_DEPTH = 8


class Obj(NamedTuple):
    kind: str  # var, const, type, func, pkg, builtin, nil
    type: Optional[Type]
    path: Optional[str] = None  # import path of a pkg


class Scope:
    def __init__(self, parent: Optional["Scope"] = None) -> None:
        self.parent = parent
        self.names: Dict[str, Obj] = {}

    def lookup(self, name: str) -> Optional[Obj]:
        scope = self
        while scope is not None:
            obj = scope.names.get(name)
            if obj is not None:
                return obj
            scope = scope.parent
        return None

    def define(self, name: str, obj: Obj) -> None:
        if name != "_":
            self.names[name] = obj


def _universe() -> Scope:
    scope = Scope()
    for name, typ in PREDECLARED.items():
        scope.define(name, Obj("type", typ))
    for name in BUILTINS:
        scope.define(name, Obj("builtin", None))
    scope.define("true", Obj("const", UNTYPED_BOOL))
    scope.define("false", Obj("const", UNTYPED_BOOL))
    scope.define("iota", Obj("const", UNTYPED_INT))
    scope.define("nil", Obj("nil", UNTYPED_NIL))
    return scope


UNIVERSE = _universe()


def key(node: Node) -> Tuple[int, int, str]:
    return node.start_byte, node.end_byte, node.type


class TypeInfo:
    """Resolved types and type errors of the expressions of one file."""

    def __init__(self) -> None:
        self.types: Dict[Tuple[int, int, str], Type] = {}
        self.errors: List[Tuple[int, int, str]] = []

    def record(self, node: Node, typ: Optional[Type]) -> None:
        if typ is not None:
            self.types[key(node)] = typ

    def type_of(self, node: Node) -> Optional[Type]:
        return self.types.get(key(node))

    def error(self, node: Node, message: str) -> None:
        row, col = node.start_point
        self.errors.append((row + 1, col + 1, message))


def import_path(spec: Node) -> str:
    return text(spec.child_by_field_name("path")).strip('"`')


def is_std(path: str) -> bool:
    """Standard library paths have no dot in their first element."""
    return "." not in path.split("/")[0]


def guess_name(path: str) -> str:
    """Package name an import path conventionally declares."""
    parts = path.split("/")
    last = parts[-1]
    if len(parts) > 1 and last.startswith("v") and last[1:].isdigit():
        last = parts[-2]
    return last


def _constant_class(kind: Kind) -> Optional[str]:
    if kind in (Kind.BOOL, Kind.UNTYPED_BOOL):
        return "bool"
    if kind in (Kind.STRING, Kind.UNTYPED_STRING):
        return "string"
    if kind in (Kind.UNSAFE_POINTER, Kind.UNTYPED_NIL):
        return None
    return "numeric"


def _convert(typ: Optional[Type], hint: Optional[Type]) -> Optional[Type]:
    """Type an untyped constant gets in a context of type ``hint``."""
    if hint is None or not is_untyped(typ) or typ == UNTYPED_NIL:
        return typ
    if isinstance(hint, TypeParam):
        return hint
    u = underlying(hint)
    if isinstance(u, Interface):
        return default(typ)
    if isinstance(u, Basic):
        return hint
    return typ


class Checker:
    """
    Resolves the types of one package.
    """

    def __init__(
        self,
        roots: Sequence[Node],
        importer=None,
        bodies: bool = True,
        report: bool = True,
    ) -> None:
        """
        Args:
            roots (Sequence[Node]): ``source_file`` nodes of the package's files.
            importer: Resolves imported packages (``name`` and ``member``); None leaves them unresolved.
            bodies (bool): Check function bodies; imported packages only need declarations.
            report (bool): Collect type errors.
        """
        self.roots = list(roots)
        self.importer = importer
        self.bodies = bodies
        self.report = report
        self.infos: List[TypeInfo] = [TypeInfo() for _ in self.roots]
        self.package = Scope(UNIVERSE)
        self.file_scopes = [Scope(self.package) for _ in self.roots]
        self.info = TypeInfo()
        self.file = 0
        # files whose names may come from dot imports or unknown package names
        self.loose: Set[int] = set()
        self._results: List[Tuple[Var, ...]] = []

    def check(self) -> List[TypeInfo]:
        self._each_file(self._declare_imports_and_types)
        self._each_file(self._resolve_types)
        self._each_file(self._declare_funcs)
        self._each_file(self._declare_value_names)
        self._each_file(self._declare_values)
        if self.bodies:
            self._each_file(self._check_bodies)
        return self.infos

    def _each_file(self, step) -> None:
        for i, root in enumerate(self.roots):
            self.file = i
            self.info = self.infos[i]
            step(root, self.file_scopes[i])

    def _error(self, node: Node, message: str) -> None:
        if self.report:
            self.info.error(node, message)

    # package-level declarations

    def _declare_imports_and_types(self, root: Node, scope: Scope) -> None:
        for decl in named(root):
            if decl.type == "import_declaration":
                for spec in self._specs(decl, "import_spec"):
                    self._declare_import(spec, scope)
            elif decl.type == "type_declaration":
                self._declare_types(decl, self.package)

    def _declare_import(self, spec: Node, scope: Scope) -> None:
        path = import_path(spec)
        alias = spec.child_by_field_name("name")
        name = text(alias) if alias is not None else None
        if name == ".":
            self.loose.add(self.file)
            return
        if name == "_":
            return
        if name is None and self.importer is not None:
            name = self.importer.name(path)
        if name is None:
            name = guess_name(path)
            if not is_std(path):
                self.loose.add(self.file)
        scope.define(name, Obj("pkg", None, path))

    def _member(self, pkg: Obj, name: str) -> Optional[Obj]:
        if self.importer is None or pkg.path is None:
            return None
        return self.importer.member(pkg.path, name)

    def _resolve_types(self, root: Node, scope: Scope) -> None:
        for decl in named(root):
            if decl.type == "type_declaration":
                self._resolve_type_decl(decl, scope, self.package)

    def _declare_funcs(self, root: Node, scope: Scope) -> None:
        for decl in named(root):
            if decl.type == "function_declaration":
                fn_scope = Scope(scope)
                sig = self._func_signature(decl, fn_scope)
                name = decl.child_by_field_name("name")
                self.info.record(name, sig)
                self.package.define(text(name), Obj("func", sig))
            elif decl.type == "method_declaration":
                self._declare_method(decl, scope)

    def _declare_value_names(self, root: Node, scope: Scope) -> None:
        # initializers may refer to values declared later or in other files
        for decl in named(root):
            if decl.type == "const_declaration":
                kind, specs = "const", self._specs(decl, "const_spec")
            elif decl.type == "var_declaration":
                kind, specs = "var", self._specs(decl, "var_spec")
            else:
                continue
            for spec in specs:
                for name in spec.children_by_field_name("name"):
                    self.package.define(text(name), Obj(kind, None))

    def _declare_values(self, root: Node, scope: Scope) -> None:
        for decl in named(root):
            if decl.type == "const_declaration":
                self._const_decl(decl, scope, self.package)
            elif decl.type == "var_declaration":
                for spec in self._specs(decl, "var_spec"):
                    self._var_spec(spec, scope, self.package)

    def _check_bodies(self, root: Node, scope: Scope) -> None:
        for decl in named(root):
            if decl.type not in ("function_declaration", "method_declaration"):
                continue
            body = decl.child_by_field_name("body")
            if body is None:
                continue
            fn_scope = Scope(scope)
            if decl.type == "method_declaration":
                recv = self._receiver(decl, fn_scope)
                if recv is not None and recv.name:
                    fn_scope.define(recv.name, Obj("var", recv.type))
            sig = self._func_signature(decl, fn_scope)
            self._enter(sig, fn_scope)
            self._block(body, Scope(fn_scope))
            self._results.pop()

    @staticmethod
    def _specs(decl: Node, kind: str) -> List[Node]:
        out = []
        for child in named(decl):
            if child.type == kind or (kind == "type_spec" and child.type == "type_alias"):
                out.append(child)
            elif child.type.endswith("_list"):
                out.extend(Checker._specs(child, kind))
        return out

    def _declare_types(self, decl: Node, scope: Scope) -> None:
        for spec in self._specs(decl, "type_spec"):
            if spec.type == "type_spec":
                name = text(spec.child_by_field_name("name"))
                scope.define(name, Obj("type", Named(name)))

    def _resolve_type_decl(self, decl: Node, scope: Scope, target: Scope) -> None:
        for spec in self._specs(decl, "type_spec"):
            name = text(spec.child_by_field_name("name"))
            if spec.type == "type_alias":
                target.define(name, Obj("type", self._type(spec.child_by_field_name("type"), scope)))
                continue
            obj = target.names.get(name)
            if obj is None or not isinstance(obj.type, Named):
                continue
            named_type = obj.type
            inner = Scope(scope)
            params = spec.child_by_field_name("type_parameters")
            if params is not None:
                named_type.type_params = self._type_params(params, inner)
            named_type.rhs = self._type(spec.child_by_field_name("type"), inner)

    def _type_params(self, node: Node, scope: Scope) -> Tuple[TypeParam, ...]:
        out = []
        for decl in named(node):
            for name in decl.children_by_field_name("name"):
                param = TypeParam(text(name))
                scope.define(param.name, Obj("type", param))
                out.append(param)
        return tuple(out)

    def _declare_method(self, decl: Node, scope: Scope) -> None:
        fn_scope = Scope(scope)
        recv = self._receiver(decl, fn_scope)
        if recv is None:
            return
        base = recv.type.elem if isinstance(recv.type, Pointer) else recv.type
        if isinstance(base, Named):
            base = base.origin or base
        if not isinstance(base, Named):
            return
        sig = self._func_signature(decl, fn_scope, recv)
        base.methods[text(decl.child_by_field_name("name"))] = sig

    def _receiver(self, decl: Node, scope: Scope) -> Optional[Var]:
        plist = decl.child_by_field_name("receiver")
        params = named(plist) if plist is not None else []
        if not params:
            return None
        param = params[0]
        tnode = param.child_by_field_name("type")
        base = tnode.named_children[0] if tnode.type == "pointer_type" else tnode
        if base.type == "generic_type":
            obj = scope.lookup(text(base.child_by_field_name("type")))
            if obj is not None and isinstance(obj.type, Named):
                args = base.child_by_field_name("type_arguments")
                for arg, tp in zip(self._type_args(args), obj.type.type_params):
                    scope.define(text(arg), Obj("type", tp))
        names = param.children_by_field_name("name")
        return Var(text(names[0]) if names else "", self._type(tnode, scope))

    def _func_signature(self, decl: Node, scope: Scope, recv: Optional[Var] = None) -> Signature:
        tparams: Tuple[TypeParam, ...] = ()
        tnode = decl.child_by_field_name("type_parameters")
        if tnode is not None:
            tparams = self._type_params(tnode, scope)
        params, variadic = self._params(decl.child_by_field_name("parameters"), scope)
        results = self._results_of(decl.child_by_field_name("result"), scope)
        return Signature(recv, params, results, variadic, tparams)

    def _params(self, plist: Optional[Node], scope: Scope) -> Tuple[Tuple[Var, ...], bool]:
        out: List[Var] = []
        variadic = False
        if plist is None:
            return (), False
        for decl in named(plist):
            typ = self._type(decl.child_by_field_name("type"), scope)
            if decl.type == "variadic_parameter_declaration":
                variadic = True
                typ = Slice(typ)
            names = decl.children_by_field_name("name")
            for n in names:
                self.info.record(n, typ)
                out.append(Var(text(n), typ))
            if not names:
                out.append(Var("", typ))
        return tuple(out), variadic

    def _results_of(self, node: Optional[Node], scope: Scope) -> Tuple[Var, ...]:
        if node is None:
            return ()
        if node.type == "parameter_list":
            return self._params(node, scope)[0]
        return (Var("", self._type(node, scope)),)

    def _enter(self, sig: Signature, scope: Scope) -> None:
        for var in sig.params + sig.results:
            if var.name:
                scope.define(var.name, Obj("var", var.type))
        self._results.append(sig.results)

    # type expressions

    @staticmethod
    def _type_args(node: Optional[Node]) -> List[Node]:
        if node is None:
            return []
        out = []
        for arg in named(node):
            if arg.type == "type_elem" and len(named(arg)) == 1:
                arg = named(arg)[0]
            out.append(arg)
        return out

    def _type(self, node: Optional[Node], scope: Scope) -> Optional[Type]:
        if node is None:
            return None
        t = node.type
        if t in ("type_identifier", "identifier"):
            obj = scope.lookup(text(node))
            return obj.type if obj is not None and obj.kind == "type" else None
        if t == "qualified_type":
            pkg = scope.lookup(text(node.child_by_field_name("package")))
            if pkg is None or pkg.kind != "pkg":
                return None
            obj = self._member(pkg, text(node.child_by_field_name("name")))
            return obj.type if obj is not None and obj.kind == "type" else None
        if t == "pointer_type":
            return Pointer(self._type(named(node)[0], scope))
        if t == "slice_type":
            return Slice(self._type(node.child_by_field_name("element"), scope))
        if t in ("array_type", "implicit_length_array_type"):
            return Array(self._type(node.child_by_field_name("element"), scope))
        if t == "map_type":
            return Map(
                self._type(node.child_by_field_name("key"), scope),
                self._type(node.child_by_field_name("value"), scope),
            )
        if t == "channel_type":
            return Chan(self._type(node.child_by_field_name("value"), scope))
        if t == "function_type":
            params, variadic = self._params(node.child_by_field_name("parameters"), scope)
            return Signature(None, params, self._results_of(node.child_by_field_name("result"), scope), variadic)
        if t == "struct_type":
            return self._struct(node, scope)
        if t == "interface_type":
            return self._interface(node, scope)
        if t in ("parenthesized_type", "type_elem") and len(named(node)) == 1:
            return self._type(named(node)[0], scope)
        if t == "generic_type":
            base = self._type(node.child_by_field_name("type"), scope)
            args = tuple(self._type(a, scope) for a in self._type_args(node.child_by_field_name("type_arguments")))
            if isinstance(base, Named) and base.type_params:
                return instantiate(base, args)
            return base
        return None

    def _struct(self, node: Node, scope: Scope) -> Struct:
        fields: List[Var] = []
        embedded: List[bool] = []
        for decl_list in named(node):
            for decl in named(decl_list):
                if decl.type != "field_declaration":
                    continue
                tnode = decl.child_by_field_name("type")
                typ = self._type(tnode, scope)
                names = decl.children_by_field_name("name")
                if names:
                    fields.extend(Var(text(n), typ) for n in names)
                    embedded.extend(False for _ in names)
                else:
                    if any(c.type == "*" for c in decl.children):
                        typ = Pointer(typ)
                    base = tnode.child_by_field_name("name") or tnode.child_by_field_name("type") or tnode
                    fields.append(Var(text(base), typ))
                    embedded.append(True)
        return Struct(tuple(fields), tuple(embedded))

    def _interface(self, node: Node, scope: Scope) -> Interface:
        methods: List[Var] = []
        for elem in named(node):
            if elem.type in ("method_spec", "method_elem"):
                params, variadic = self._params(elem.child_by_field_name("parameters"), scope)
                results = self._results_of(elem.child_by_field_name("result"), scope)
                methods.append(Var(text(elem.child_by_field_name("name")), Signature(None, params, results, variadic)))
        return Interface(tuple(methods))

    # declarations inside and outside functions

    def _const_decl(self, decl: Node, scope: Scope, target: Scope) -> None:
        last_type: Optional[Node] = None
        last_values: List[Node] = []
        for iota, spec in enumerate(self._specs(decl, "const_spec")):
            value = spec.child_by_field_name("value")
            if value is not None:
                last_type = spec.child_by_field_name("type")
                last_values = named(value)
            inner = Scope(scope)
            inner.define("iota", Obj("const", UNTYPED_INT))
            declared = self._type(last_type, scope)
            for i, name in enumerate(spec.children_by_field_name("name")):
                typ = declared
                if i < len(last_values):
                    typ = self._expr(last_values[i], inner, declared, strict=True)
                    if declared is not None:
                        typ = declared
                self.info.record(name, typ)
                target.define(text(name), Obj("const", typ))

    def _var_spec(self, spec: Node, scope: Scope, target: Scope) -> None:
        declared = self._type(spec.child_by_field_name("type"), scope)
        names = spec.children_by_field_name("name")
        value = spec.child_by_field_name("value")
        values = named(value) if value is not None else []
        if declared is not None and not self.bodies:
            values = []
        types = self._values(values, len(names), scope, [declared] * len(names))
        for name, typ in zip(names, types):
            typ = declared if declared is not None else default(typ)
            self.info.record(name, typ)
            target.define(text(name), Obj("var", typ))

    def _values(
        self, values: List[Node], count: int, scope: Scope, hints: Sequence[Optional[Type]]
    ) -> List[Optional[Type]]:
        """Types of the right-hand side of an n-ary assignment or declaration."""
        if len(values) == 1 and count > 1:
            typ = self._expr(values[0], scope)
            if isinstance(typ, TupleType):
                return list(typ.types) + [None] * (count - len(typ.types))
            if self._comma_ok(values[0]):
                return [typ, UNTYPED_BOOL] + [None] * (count - 2)
            return [None] * count
        types = []
        for i, value in enumerate(values):
            hint = hints[i] if i < len(hints) else None
            types.append(self._expr(value, scope, hint, strict=True))
        return types + [None] * (count - len(types))

    @staticmethod
    def _comma_ok(node: Node) -> bool:
        while node.type == "parenthesized_expression":
            node = named(node)[0]
        if node.type in ("index_expression", "type_assertion_expression"):
            return True
        return node.type == "unary_expression" and operator(node) == "<-"

    def _define_all(self, names: List[Node], types: List[Optional[Type]], scope: Scope) -> None:
        for name, typ in zip(names, types):
            if name.type != "identifier":
                continue
            existing = scope.names.get(text(name))
            typ = default(typ) if existing is None else existing.type
            self.info.record(name, typ)
            scope.define(text(name), Obj("var", typ))

    # statements

    def _block(self, block: Node, scope: Scope) -> None:
        for stmt in statements(block):
            self._stmt(stmt, scope)

    def _stmt(self, node: Node, scope: Scope) -> None:
        t = node.type
        if t == "block":
            self._block(node, Scope(scope))
        elif t == "expression_statement":
            for child in named(node):
                self._expr(child, scope)
        elif t == "short_var_declaration":
            left = named(node.child_by_field_name("left"))
            right = named(node.child_by_field_name("right"))
            self._define_all(left, self._values(right, len(left), scope, []), scope)
        elif t == "assignment_statement":
            left = named(node.child_by_field_name("left"))
            hints = [self._expr(x, scope) for x in left]
            self._values(named(node.child_by_field_name("right")), len(left), scope, hints)
        elif t == "var_declaration":
            for spec in self._specs(node, "var_spec"):
                self._var_spec(spec, scope, scope)
        elif t == "const_declaration":
            self._const_decl(node, scope, scope)
        elif t == "type_declaration":
            self._declare_types(node, scope)
            self._resolve_type_decl(node, scope, scope)
        elif t == "return_statement":
            self._return(node, scope)
        elif t == "if_statement":
            self._if(node, scope)
        elif t == "for_statement":
            self._for(node, Scope(scope))
        elif t == "expression_switch_statement":
            self._switch(node, Scope(scope))
        elif t == "type_switch_statement":
            self._type_switch(node, Scope(scope))
        elif t == "select_statement":
            self._select(node, scope)
        elif t == "labeled_statement":
            for child in named(node):
                if child.type != "label_name":
                    self._stmt(child, scope)
        elif t in ("send_statement", "inc_statement", "dec_statement", "go_statement", "defer_statement"):
            for child in named(node):
                self._expr(child, scope)
        elif t not in (
            "empty_statement", "break_statement", "continue_statement", "goto_statement",
            "fallthrough_statement", "label_name",
        ):
            self._expr(node, scope)

    def _return(self, node: Node, scope: Scope) -> None:
        results = self._results[-1] if self._results else ()
        values = [v for child in named(node) for v in (named(child) if child.type == "expression_list" else [child])]
        hints = [r.type for r in results]
        self._values(values, len(results) or len(values), scope, hints)

    def _if(self, node: Node, scope: Scope) -> None:
        inner = Scope(scope)
        init = node.child_by_field_name("initializer")
        if init is not None:
            self._stmt(init, inner)
        self._expr(node.child_by_field_name("condition"), inner)
        self._block(node.child_by_field_name("consequence"), Scope(inner))
        alt = node.child_by_field_name("alternative")
        if alt is None:
            return
        if alt.type == "if_statement":
            self._if(alt, inner)
        else:
            self._block(alt, Scope(inner))

    def _for(self, node: Node, scope: Scope) -> None:
        body = node.child_by_field_name("body")
        for child in named(node):
            if body is not None and key(child) == key(body):
                continue
            if child.type == "for_clause":
                for part in ("initializer", "condition", "update"):
                    sub = child.child_by_field_name(part)
                    if sub is not None:
                        self._stmt(sub, scope)
            elif child.type == "range_clause":
                self._range(child, scope)
            else:
                self._expr(child, scope)
        if body is not None:
            self._block(body, Scope(scope))

    def _range(self, node: Node, scope: Scope) -> None:
        typ = self._expr(node.child_by_field_name("right"), scope)
        u = underlying(typ)
        if isinstance(u, Pointer):
            u = underlying(u.elem)
        types: List[Optional[Type]] = [None, None]
        if isinstance(u, Map):
            types = [u.key, u.elem]
        elif isinstance(u, (Slice, Array)):
            types = [INT, u.elem]
        elif isinstance(u, Chan):
            types = [u.elem, None]
        elif isinstance(u, Basic) and u.kind in (Kind.STRING, Kind.UNTYPED_STRING):
            types = [INT, INT32]
        elif isinstance(u, Basic):
            types = [default(typ), None]
        left = node.child_by_field_name("left")
        if left is None:
            return
        names = named(left)
        if any(c.type == ":=" for c in node.children):
            self._define_all(names, types, scope)
        else:
            for name in names:
                self._expr(name, scope)

    def _case_body(self, case: Node, skip: List[Node], scope: Scope) -> None:
        skipped = {key(n) for n in skip}
        for child in named(case):
            if key(child) in skipped:
                continue
            if child.type == "statement_list":
                self._block(child, scope)
            else:
                self._stmt(child, scope)

    def _switch(self, node: Node, scope: Scope) -> None:
        init = node.child_by_field_name("initializer")
        if init is not None:
            self._stmt(init, scope)
        value = node.child_by_field_name("value")
        tag = self._expr(value, scope) if value is not None else None
        for case in named(node):
            if case.type == "expression_case":
                values = case.child_by_field_name("value")
                for v in named(values):
                    self._expr(v, scope, tag)
                self._case_body(case, [values], Scope(scope))
            elif case.type == "default_case":
                self._case_body(case, [], Scope(scope))

    def _type_switch(self, node: Node, scope: Scope) -> None:
        init = node.child_by_field_name("initializer")
        if init is not None:
            self._stmt(init, scope)
        alias = node.child_by_field_name("alias")
        value = node.child_by_field_name("value")
        typ = self._expr(value, scope)
        for case in named(node):
            if case.type not in ("type_case", "default_case"):
                continue
            inner = Scope(scope)
            types = case.children_by_field_name("type") if case.type == "type_case" else []
            if alias is not None:
                bound = self._type(types[0], scope) if len(types) == 1 else typ
                self._define_all(named(alias), [bound], inner)
            self._case_body(case, types, inner)

    def _select(self, node: Node, scope: Scope) -> None:
        for case in named(node):
            inner = Scope(scope)
            comm = case.child_by_field_name("communication")
            if comm is not None:
                if comm.type == "receive_statement" and any(c.type == ":=" for c in comm.children):
                    typ = self._expr(comm.child_by_field_name("right"), inner)
                    self._define_all(named(comm.child_by_field_name("left")), [typ, BOOL], inner)
                elif comm.type == "receive_statement":
                    for child in named(comm):
                        for sub in named(child) if child.type == "expression_list" else [child]:
                            self._expr(sub, inner)
                else:
                    self._stmt(comm, inner)
            self._case_body(case, [comm] if comm is not None else [], inner)

    # expressions

    def _expr(
        self, node: Optional[Node], scope: Scope, hint: Optional[Type] = None, strict: bool = False
    ) -> Optional[Type]:
        """Resolve ``node``; ``strict`` marks an assignment to ``hint`` rather than a conversion."""
        if node is None:
            return None
        _, typ = self._operand(node, scope, hint)
        if strict:
            self._assignable(node, typ, hint)
        typ = _convert(typ, hint)
        self.info.record(node, typ)
        return typ

    def _assignable(self, node: Node, typ: Optional[Type], hint: Optional[Type]) -> None:
        if hint is None or isinstance(hint, TypeParam) or not is_untyped(typ):
            return
        u = underlying(hint)
        if not isinstance(u, Basic):
            return
        have, want = _constant_class(typ.kind), _constant_class(u.kind)
        if have is None or want is None or have == want:
            return
        noun = "value" if node.type == "binary_expression" and operator(node) in COMPARISONS else "constant"
        self._error(node, f"cannot use {text(node)} ({typ.kind.value} {noun}) as {hint} value")

    def _operand(self, node: Node, scope: Scope, hint: Optional[Type] = None) -> Tuple[str, Optional[Type]]:
        """Classify ``node`` as a value, type, builtin or package and resolve its type."""
        t = node.type
        if t in LITERALS:
            return "value", LITERALS[t]
        if t in NAME_NODES:
            name = text(node)
            obj = scope.lookup(name)
            if obj is None:
                if name != "_" and self.file not in self.loose:
                    self._error(node, f"undefined: {name}")
                return "value", None
            if obj.kind in ("type", "builtin", "pkg"):
                return obj.kind, obj.type
            return "value", obj.type
        if t == "parenthesized_expression":
            inner = named(node)[0]
            mode, typ = self._operand(inner, scope, hint)
            self.info.record(inner, typ)
            return mode, typ
        if t in TYPE_NODES:
            return "type", self._type(node, scope)
        if t == "unary_expression":
            return self._unary(node, scope)
        if t == "binary_expression":
            return "value", self._binary(node, scope)
        if t == "call_expression":
            return "value", self._call(node, scope)
        if t == "selector_expression":
            return self._selector(node, scope)
        if t == "index_expression":
            return self._index(node, scope)
        if t == "slice_expression":
            typ = self._expr(node.child_by_field_name("operand"), scope)
            for part in ("start", "end", "capacity"):
                self._expr(node.child_by_field_name(part), scope, INT)
            u = underlying(typ)
            if isinstance(u, Pointer):
                u = underlying(u.elem)
            if isinstance(u, Array):
                return "value", Slice(u.elem)
            return "value", STRING if typ == UNTYPED_STRING else typ
        if t == "type_assertion_expression":
            self._expr(node.child_by_field_name("operand"), scope)
            return "value", self._type(node.child_by_field_name("type"), scope)
        if t == "type_conversion_expression":
            typ = self._type(node.child_by_field_name("type"), scope)
            self._expr(node.child_by_field_name("operand"), scope, typ)
            return "value", typ
        if t == "composite_literal":
            typ = self._type(node.child_by_field_name("type"), scope)
            self._literal_value(node.child_by_field_name("body"), typ, scope)
            return "value", typ
        if t == "literal_value":
            self._literal_value(node, hint, scope)
            return "value", hint
        if t == "func_literal":
            fn_scope = Scope(scope)
            params, variadic = self._params(node.child_by_field_name("parameters"), fn_scope)
            sig = Signature(None, params, self._results_of(node.child_by_field_name("result"), fn_scope), variadic)
            if self.bodies:
                self._enter(sig, fn_scope)
                self._block(node.child_by_field_name("body"), Scope(fn_scope))
                self._results.pop()
            return "value", sig
        for child in named(node):
            self._expr(child, scope)
        return "value", None

    def _unary(self, node: Node, scope: Scope) -> Tuple[str, Optional[Type]]:
        op = operator(node)
        operand = node.child_by_field_name("operand")
        mode, typ = self._operand(operand, scope)
        self.info.record(operand, typ)
        if op == "*" and mode == "type":
            return "type", Pointer(typ)
        if op == "&":
            return "value", Pointer(typ)
        if op == "*":
            u = underlying(typ)
            return "value", u.elem if isinstance(u, Pointer) else None
        if op == "<-":
            u = underlying(typ)
            return "value", u.elem if isinstance(u, Chan) else None
        return "value", typ

    def _binary(self, node: Node, scope: Scope) -> Optional[Type]:
        op = operator(node)
        lt = self._expr(node.child_by_field_name("left"), scope)
        rt = self._expr(node.child_by_field_name("right"), scope)
        if op in COMPARISONS:
            return UNTYPED_BOOL
        if op in ("<<", ">>"):
            return lt
        if is_untyped(lt) and is_untyped(rt):
            if lt.kind in UNTYPED_RANK and rt.kind in UNTYPED_RANK:
                return lt if UNTYPED_RANK[lt.kind] >= UNTYPED_RANK[rt.kind] else rt
            return lt
        if is_untyped(lt):
            return rt
        return lt

    def _call(self, node: Node, scope: Scope) -> Optional[Type]:
        fn = node.child_by_field_name("function")
        args_node = node.child_by_field_name("arguments")
        args = named(args_node) if args_node is not None else []
        mode, ftype = self._operand(fn, scope)
        self.info.record(fn, ftype)
        if mode == "type":
            for arg in args:
                self._expr(arg, scope, ftype)
            return ftype
        if mode == "builtin":
            return self._builtin(text(fn).rpartition(".")[2], args, scope)
        targs = node.child_by_field_name("type_arguments")
        sig = underlying(ftype)
        if not isinstance(sig, Signature):
            for arg in args:
                self._expr(arg, scope)
            return None
        mapping: Dict[TypeParam, Optional[Type]] = {}
        if targs is not None:
            mapping.update(zip(sig.type_params, (self._type(a, scope) for a in self._type_args(targs))))
        for i, arg in enumerate(args):
            param = self._param_type(sig, i)
            typ = self._expr(arg, scope, None if isinstance(param, TypeParam) else param, strict=True)
            if isinstance(param, TypeParam) and param in sig.type_params and param not in mapping:
                mapping[param] = default(typ)
        if mapping:
            self.info.record(fn, substitute(sig, mapping))
        results =substitute(TupleType(tuple(r.type for r in sig.results)), mapping)
        if not results.types:
            return None
        if len(results.types) == 1:
            return results.types[0]
        return results

    @staticmethod
    def _param_type(sig: Signature, i: int) -> Optional[Type]:
        if not sig.params:
            return None
        if sig.variadic and i >= len(sig.params) - 1:
            last = sig.params[-1].type
            return last.elem if isinstance(last, Slice) else None
        return sig.params[i].type if i < len(sig.params) else None

    def _builtin(self, name: str, args: List[Node], scope: Scope) -> Optional[Type]:
        types = [self._expr(arg, scope) for arg in args]
        first = types[0] if types else None
        if name in ("len", "cap", "copy"):
            return INT
        if name in ("make", "append"):
            return first
        if name == "new":
            return Pointer(first)
        if name in ("real", "imag"):
            return FLOAT64
        if name == "complex":
            return COMPLEX128
        if name in ("min", "max"):
            typed = [t for t in types if not is_untyped(t)]
            return typed[0] if typed else first
        if name == "recover":
            return Interface()
        # unsafe
        if name in ("Sizeof", "Alignof", "Offsetof"):
            return Basic(Kind.UINTPTR)
        if name == "Add":
            return first
        if name == "String":
            return STRING
        if name == "StringData":
            return Pointer(UINT8)
        u = underlying(first)
        if name == "Slice" and isinstance(u, Pointer):
            return Slice(u.elem)
        if name == "SliceData" and isinstance(u, Slice):
            return Pointer(u.elem)
        return None

    def _selector(self, node: Node, scope: Scope) -> Tuple[str, Optional[Type]]:
        operand = node.child_by_field_name("operand")
        name = text(node.child_by_field_name("field"))
        if operand.type == "identifier":
            pkg = scope.lookup(text(operand))
            if pkg is not None and pkg.kind == "pkg":
                obj = self._member(pkg, name)
                if obj is None:
                    return "value", None
                if obj.kind in ("type", "builtin"):
                    return obj.kind, obj.type
                return "value", obj.type
        mode, typ = self._operand(operand, scope)
        self.info.record(operand, typ)
        if mode == "type":
            base = typ.elem if isinstance(typ, Pointer) else typ
            sig = method(base, name) if isinstance(base, Named) else None
            if sig is None:
                return "value", None
            params = (Var("", typ),) + sig.params
            return "value", Signature(None, params, sig.results, sig.variadic)
        return "value", self._lookup(typ, name, 0)

    def _lookup(self, typ: Optional[Type], name: str, depth: int) -> Optional[Type]:
        if typ is None or depth > MAX_EMBEDDING_DEPTH:
            return None
        if isinstance(typ, Pointer):
            typ = typ.elem
        if isinstance(typ, Named):
            sig = method(typ, name)
            if sig is not None:
                return Signature(None, sig.params, sig.results, sig.variadic)
        u = underlying(typ)
        if isinstance(u, Pointer):
            u = underlying(u.elem)
        if isinstance(u, Interface):
            for m in u.methods:
                if m.name == name:
                    return m.type
        if not isinstance(u, Struct):
            return None
        for f in u.fields:
            if f.name == name:
                return f.type
        for f, embedded in zip(u.fields, u.embedded):
            if embedded:
                found = self._lookup(f.type, name, depth + 1)
                if found is not None:
                    return found
        return None

    def _index(self, node: Node, scope: Scope) -> Tuple[str, Optional[Type]]:
        operand = node.child_by_field_name("operand")
        index = node.child_by_field_name("index")
        mode, typ = self._operand(operand, scope)
        self.info.record(operand, typ)
        if mode == "type":
            arg = self._type(index, scope)
            if isinstance(typ, Named) and typ.type_params:
                return "type", instantiate(typ, (arg,))
            return "type", typ
        u = underlying(typ)
        if isinstance(u, Map):
            self._expr(index, scope, u.key)
            return "value", u.elem
        if isinstance(u, Signature) and u.type_params:
            return "value", substitute(u, {u.type_params[0]: self._type(index, scope)})
        self._expr(index, scope, INT)
        if isinstance(u, Pointer):
            u = underlying(u.elem)
        if isinstance(u, (Slice, Array)):
            return "value", u.elem
        if isinstance(u, Basic) and u.kind in (Kind.STRING, Kind.UNTYPED_STRING):
            return "value", UINT8
        return "value", None

    def _literal_value(self, node: Optional[Node], typ: Optional[Type], scope: Scope) -> None:
        if node is None:
            return
        u = underlying(typ)
        if isinstance(u, Pointer):
            u = underlying(u.elem)
        position = 0
        for element in named(node):
            if element.type == "keyed_element":
                parts = [self._unwrap(p) for p in named(element)]
                if len(parts) != 2:
                    continue
                k, v = parts
                if isinstance(u, Struct):
                    hint = next((f.type for f in u.fields if f.name == text(k)), None)
                elif isinstance(u, Map):
                    self._element(k, u.key, scope)
                    hint = u.elem
                elif isinstance(u, (Slice, Array)):
                    self._expr(k, scope, INT)
                    hint = u.elem
                else:
                    # keys of an unresolved literal type may be field names
                    hint = None
                self._element(v, hint, scope)
            else:
                v = self._unwrap(element)
                if isinstance(u, Struct):
                    hint = u.fields[position].type if position < len(u.fields) else None
                else:
                    hint = u.elem if isinstance(u, (Slice, Array, Map)) else None
                self._element(v, hint, scope)
            position += 1

    @staticmethod
    def _unwrap(node: Node) -> Node:
        if node.type in ("literal_element", "element") and len(named(node)) == 1:
            return named(node)[0]
        return node

    def _element(self, node: Node, hint: Optional[Type], scope: Scope) -> None:
        if node.type == "literal_value":
            u = underlying(hint)
            self._literal_value(node, u.elem if isinstance(u, Pointer) else hint, scope)
            self.info.record(node, hint)
        else:
            self._expr(node, scope, hint)


def check(roots: Sequence[Node], importer=None) -> List[TypeInfo]:
    """Resolve the types of one package given the roots of its files."""
    return Checker(roots, importer).check()
