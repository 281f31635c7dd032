"""Lexical Java scanning (no AST).

The scanner builds two per-line views of a file:
- `code`: comments removed, string literals kept (annotation paths live there)
- `shape`: comments removed and literal contents blanked, used for brace depth
  and signature matching so that braces inside strings never count.

From those it recovers the package, imports, the primary type declaration,
annotations above it, and members declared directly in the type body.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from core.errors import FileExtractionError
from plugins.java.patterns import (
    DEFAULT_GENERIC_VERB,
    GENERIC_MAPPING_ANNOTATION,
    HTTP_MAPPING_ANNOTATIONS,
    MAPPING_LOOKBACK_LINES,
    MODIFIERS,
    NON_MEMBER_KEYWORDS,
    RE_ANNOTATION,
    RE_IMPORT,
    RE_MEMBER,
    RE_NAMED_PATH_ATTR,
    RE_PACKAGE,
    RE_REQUEST_METHOD,
    RE_STRING_LITERAL,
    RE_THROWS,
    RE_TYPE_DECLARATION,
)


_MAPPING_NAMES = tuple(name for name, _ in HTTP_MAPPING_ANNOTATIONS) + (GENERIC_MAPPING_ANNOTATION,)
_RE_MAPPING = re.compile(r"@(?:[\w.]+\.)?(" + "|".join(_MAPPING_NAMES) + r")\b\s*(\(([^)]*)\))?")
_MAX_SIGNATURE_LINES = 25


@dataclass(frozen=True)
class JavaMember:
    name: str
    line: int
    parameters: tuple[str, ...]
    declared_exceptions: tuple[str, ...]
    http_method: str | None
    http_path: str | None
    doc: str | None


@dataclass(frozen=True)
class JavaScan:
    package: str
    type_name: str
    declaration_line: int
    header_annotations: tuple[str, ...]
    file_annotations: frozenset[str]
    imports: tuple[str, ...]
    members: tuple[JavaMember, ...]


def split_views(text: str) -> tuple[list[str], list[str]]:
    """Return (code, shape) line views with comments removed."""

    code: list[str] = []
    shape: list[str] = []
    cbuf: list[str] = []
    sbuf: list[str] = []
    state = "code"  # code | line | block | string | char | text_block
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""
        if ch == "\n":
            if state in ("line", "string", "char"):
                state = "code"
            code.append("".join(cbuf))
            shape.append("".join(sbuf))
            cbuf, sbuf = [], []
            i += 1
            continue
        if state == "code":
            if ch == "/" and nxt == "/":
                state = "line"
                i += 2
                continue
            if ch == "/" and nxt == "*":
                state = "block"
                cbuf.append(" ")
                sbuf.append(" ")
                i += 2
                continue
            if text.startswith('"""', i):
                state = "text_block"
                cbuf.append('"""')
                sbuf.append('"""')
                i += 3
                continue
            if ch == '"':
                state = "string"
            elif ch == "'":
                state = "char"
            cbuf.append(ch)
            sbuf.append(ch)
            i += 1
            continue
        if state == "block":
            if ch == "*" and nxt == "/":
                state = "code"
                i += 2
                continue
            i += 1
            continue
        if state == "line":
            i += 1
            continue
        if state == "text_block":
            if text.startswith('"""', i):
                cbuf.append('"""')
                sbuf.append('"""')
                state = "code"
                i += 3
                continue
            cbuf.append(ch)
            sbuf.append(" ")
            i += 1
            continue
        # string / char literal
        if ch == "\\" and nxt and nxt != "\n":
            cbuf.append(ch + nxt)
            sbuf.append("  ")
            i += 2
            continue
        if (state == "string" and ch == '"') or (state == "char" and ch == "'"):
            cbuf.append(ch)
            sbuf.append(ch)
            state = "code"
            i += 1
            continue
        cbuf.append(ch)
        sbuf.append(" ")
        i += 1
    code.append("".join(cbuf))
    shape.append("".join(sbuf))
    return code, shape


def split_top_level(text: str, sep: str = ",") -> list[str]:
    """Split on `sep` outside of <>, (), [] and {} nesting."""

    parts: list[str] = []
    depth = 0
    buf: list[str] = []
    for ch in text:
        if ch in "<([{":
            depth += 1
        elif ch in ">)]}":
            depth = max(0, depth - 1)
        if ch == sep and depth == 0:
            parts.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    tail = "".join(buf)
    if tail.strip() or parts:
        parts.append(tail)
    return [p.strip() for p in parts if p.strip()]


def parameter_type(param: str) -> str | None:
    """Leading type token of one parameter, without annotations, modifiers or generics."""

    s = param.strip()
    # Drop leading annotations, including ones with arguments.
    while s.startswith("@"):
        m = re.match(r"@[\w.$]+\s*", s)
        if not m:
            break
        s = s[m.end():]
        if s.startswith("("):
            depth = 0
            for idx, ch in enumerate(s):
                if ch == "(":
                    depth += 1
                elif ch == ")":
                    depth -= 1
                    if depth == 0:
                        s = s[idx + 1:]
                        break
            else:
                return None
        s = s.lstrip()
    while True:
        head = s.split(None, 1)
        if head and head[0] in MODIFIERS:
            s = head[1] if len(head) > 1 else ""
            continue
        break

    token: list[str] = []
    depth = 0
    for ch in s:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif ch.isspace() and depth == 0:
            break
        token.append(ch)
    raw = "".join(token)
    bare = re.sub(r"<.*>", "", raw).replace("...", "").replace("[]", "").strip()
    if not bare or not re.fullmatch(r"[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*", bare):
        return None
    return bare


def _brace_delta(shape_line: str) -> int:
    return shape_line.count("{") - shape_line.count("}")


def _annotation_names(line: str) -> list[str]:
    return [name.rsplit(".", 1)[-1] for name in RE_ANNOTATION.findall(line)]


def _find_declaration(shape: list[str]) -> tuple[int, str] | None:
    for idx, line in enumerate(shape):
        stripped = line.strip()
        if not stripped or stripped.startswith(("package ", "import ")):
            continue
        m = RE_TYPE_DECLARATION.search(line)
        if m:
            return idx, m.group(1)
    return None


def _parse_imports(code: list[str], stop: int) -> tuple[str, ...]:
    out: list[str] = []
    for line in code[:stop]:
        m = RE_IMPORT.match(line)
        if not m:
            continue
        is_static, target = m.group(1), m.group(2)
        if is_static:
            # Static imports name a member (or `*`); keep the owning type.
            target = target.rsplit(".", 1)[0]
        elif target.endswith(".*"):
            continue
        if target not in out:
            out.append(target)
    return tuple(out)


def _mapping_route(window: str) -> tuple[str | None, str | None]:
    m = _RE_MAPPING.search(window)
    if not m:
        return None, None
    name, args = m.group(1), m.group(3) or ""
    if name == GENERIC_MAPPING_ANNOTATION:
        vm = RE_REQUEST_METHOD.search(args)
        verb = vm.group(1) if vm else DEFAULT_GENERIC_VERB
    else:
        verb = dict(HTTP_MAPPING_ANNOTATIONS)[name]
    pm = RE_NAMED_PATH_ATTR.search(args) or RE_STRING_LITERAL.search(args)
    path = pm.group(1) if pm and pm.group(1) else "/"
    return verb, path


def _lookback_window(code: list[str], shape: list[str], idx: int, floor: int) -> str:
    lines = [code[idx]]
    # Unmatched ')' collected so far: while positive we are inside an
    # annotation's argument list, where `{...}` array values are not boundaries.
    open_args = 0
    j = idx - 1
    while j > floor and (open_args > 0 or idx - j <= MAPPING_LOOKBACK_LINES):
        s = shape[j].strip()
        if open_args <= 0 and s.endswith((";", "}", "{")):
            break
        open_args += s.count(")") - s.count("(")
        lines.insert(0, code[j])
        j -= 1
    return " ".join(lines)


def _javadoc_first_line(raw: list[str], shape: list[str], idx: int) -> str | None:
    j = idx - 1
    while j >= 0 and shape[j].strip().startswith("@"):
        j -= 1
    if j < 0 or not raw[j].strip().endswith("*/"):
        return None
    end = j
    while j >= 0 and "/**" not in raw[j]:
        j -= 1
    if j < 0:
        return None
    for line in raw[j:end + 1]:
        text = line.strip()
        text = text.removeprefix("/**").removesuffix("*/").strip().lstrip("*").strip()
        if text and not text.startswith("@"):
            return text
    return None


def _parameter_list(signature: str, name: str) -> str:
    start = signature.find(name + "(")
    if start < 0:
        start = signature.find(name)
    open_idx = signature.find("(", start)
    if open_idx < 0:
        return ""
    depth = 0
    for k in range(open_idx, len(signature)):
        ch = signature[k]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return signature[open_idx + 1:k]
    return signature[open_idx + 1:]


def scan_java_source(text: str, *, path: str = "<memory>") -> JavaScan:
    raw = text.split("\n")
    code, shape = split_views(text)

    found = _find_declaration(shape)
    if found is None:
        raise FileExtractionError(path, "no type declaration")
    decl_idx, type_name = found

    package = ""
    for line in code[:decl_idx]:
        m = RE_PACKAGE.match(line)
        if m:
            package = m.group(1)
            break

    header: list[str] = []
    for line in code[: decl_idx + 1]:
        if line.strip().startswith(("package ", "import ")):
            continue
        for name in _annotation_names(line):
            if name not in header:
                header.append(name)

    file_annotations = frozenset(name for line in code for name in _annotation_names(line))

    members: list[JavaMember] = []
    depth = 0
    idx = decl_idx
    while idx < len(shape):
        line = shape[idx]
        if depth == 1 and line.strip():
            m = RE_MEMBER.match(line)
            member_type, member_name = (m.group(1), m.group(2)) if m else (None, None)
            is_member = (
                member_name is not None
                and member_name not in NON_MEMBER_KEYWORDS
                and member_name not in MODIFIERS
                and (member_type is not None or member_name == type_name)
                and member_type not in NON_MEMBER_KEYWORDS
            )
            if is_member:
                sig_lines = [line]
                end = idx
                while not re.search(r"[{;]", shape[end]) and end - idx < _MAX_SIGNATURE_LINES and end + 1 < len(shape):
                    end += 1
                    sig_lines.append(shape[end])
                signature = " ".join(s.strip() for s in sig_lines)
                cut = re.search(r"[{;]", signature)
                if cut:
                    signature = signature[: cut.end()]
                throws = RE_THROWS.search(signature)
                exceptions = tuple(e.strip() for e in throws.group(1).split(",") if e.strip()) if throws else ()
                verb, route = _mapping_route(_lookback_window(code, shape, idx, decl_idx))
                members.append(
                    JavaMember(
                        name=member_name,
                        line=idx + 1,
                        parameters=tuple(split_top_level(_parameter_list(signature, member_name))),
                        declared_exceptions=exceptions,
                        http_method=verb,
                        http_path=route,
                        doc=_javadoc_first_line(raw, shape, idx),
                    )
                )
                for k in range(idx, end + 1):
                    depth += _brace_delta(shape[k])
                idx = end + 1
                continue
        depth += _brace_delta(line)
        idx += 1

    return JavaScan(
        package=package,
        type_name=type_name,
        declaration_line=decl_idx + 1,
        header_annotations=tuple(header),
        file_annotations=file_annotations,
        imports=_parse_imports(code, decl_idx),
        members=tuple(members),
    )
