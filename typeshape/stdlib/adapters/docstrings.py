"""Documentation-comment lookup for Python classes.

Supplies the ``description`` text of derived schemas: a summary for the class
itself and per-member descriptions parsed from its docstring. Google style
(``Attributes:``), NumPy style (``Attributes`` + dashes) and Sphinx style
(``:ivar name:`` / ``:param name:``) sections are understood.
"""

import inspect

# Section headers whose entries describe data members
MEMBER_SECTIONS = frozenset(
    {
        "attributes",
        "attrs",
        "fields",
        "args",
        "arguments",
        "parameters",
        "params",
    }
)

# Headers that end a member section
OTHER_SECTIONS = frozenset(
    {
        "returns",
        "return",
        "raises",
        "yields",
        "examples",
        "example",
        "notes",
        "note",
        "see also",
        "methods",
        "references",
        "warnings",
    }
)


def _is_separator(line: str) -> bool:
    return len(line) >= 3 and all(c in ("-", "=", "_") for c in line)


def _header_name(line: str) -> str:
    return line.strip().rstrip(":").strip().lower()


def own_docstring(obj: object) -> str | None:
    """Return the docstring declared on *obj* itself, cleaned, never inherited.

    The signature line that ``dataclasses`` generates for undocumented classes
    is not documentation and is ignored.
    """
    doc = vars(obj).get("__doc__") if isinstance(obj, type) else getattr(obj, "__doc__", None)
    if not doc or not isinstance(doc, str):
        return None
    name = getattr(obj, "__name__", None)
    if name and doc.startswith(f"{name}("):
        return None
    return inspect.cleandoc(doc)


def summarize(docstring: str | None) -> str | None:
    """Return the leading prose of *docstring*, up to the first section.

    Examples
    --------
    >>> summarize('''A point in space.
    ...
    ... Coordinates are metres.
    ...
    ... Attributes:
    ...     x: Abscissa
    ... ''')
    'A point in space.\\n\\nCoordinates are metres.'
    """
    if not docstring:
        return None

    lines = docstring.strip().split("\n")
    kept: list[str] = []
    for i, line in enumerate(lines):
        stripped = line.strip()
        header = _header_name(stripped)
        next_line = lines[i + 1].strip() if i + 1 < len(lines) else ""
        is_google_header = stripped.endswith(":") and header in MEMBER_SECTIONS | OTHER_SECTIONS
        is_numpy_header = bool(stripped) and _is_separator(next_line)
        if is_google_header or is_numpy_header or stripped.startswith(":"):
            break
        kept.append(line.rstrip())

    text = "\n".join(kept).strip()
    return text or None


def extract_member_docs(docstring: str | None) -> dict[str, str]:
    """Extract member descriptions from a class docstring.

    Examples
    --------
    >>> docs = extract_member_docs('''Order line.
    ...
    ... Attributes:
    ...     sku: Stock keeping unit
    ...     quantity (int): Number of units,
    ...         at least one
    ... ''')
    >>> docs["sku"]
    'Stock keeping unit'
    >>> docs["quantity"]
    'Number of units, at least one'
    """
    if not docstring:
        return {}

    member_docs: dict[str, str] = {}
    lines = docstring.split("\n")

    in_section = False
    is_numpy_style = False
    current: str | None = None

    for i, line in enumerate(lines):
        stripped = line.strip()

        # Sphinx style works anywhere in the docstring
        if stripped.startswith((":ivar", ":param", ":var")):
            parts = stripped.split(":", 2)
            if len(parts) == 3:
                words = parts[1].split()
                if len(words) >= 2:
                    current = words[-1]
                    member_docs[current] = parts[2].strip()
            continue

        if in_section and _is_separator(stripped):
            is_numpy_style = True
            continue

        header = _header_name(stripped)
        next_line = lines[i + 1].strip() if i + 1 < len(lines) else ""
        indented = line.startswith((" ", "\t"))

        if not indented and header in MEMBER_SECTIONS and (
            stripped.endswith(":") or _is_separator(next_line)
        ):
            in_section = True
            is_numpy_style = _is_separator(next_line)
            current = None
            continue

        if not in_section:
            continue

        # Leaving the section on the next header
        if not indented and stripped and (
            header in OTHER_SECTIONS or stripped.endswith(":") or _is_separator(next_line)
        ):
            if not (is_numpy_style and " : " in stripped):
                in_section = False
                current = None
                continue

        if not stripped:
            continue

        if is_numpy_style:
            if not indented:
                name = stripped.split(" : ", 1)[0].strip()
                member_docs[name] = ""
                current = name
            elif current:
                member_docs[current] = f"{member_docs[current]} {stripped}".strip()
            continue

        # Google style: an entry is one indentation level in
        entry_indent = _entry_indent(lines, i)
        indent = len(line) - len(line.lstrip())
        if indent <= entry_indent and ":" in stripped:
            name_part, description = stripped.split(":", 1)
            name = name_part.split("(")[0].strip()
            if name and " " not in name:
                member_docs[name] = description.strip()
                current = name
                continue
        if current:
            member_docs[current] = f"{member_docs[current]} {stripped}".strip()

    return {name: text for name, text in member_docs.items() if text}


def _entry_indent(lines: list[str], index: int) -> int:
    """Indentation of the first entry of the section containing *index*."""
    for j in range(index, -1, -1):
        stripped = lines[j].strip()
        if _header_name(stripped) in MEMBER_SECTIONS and not lines[j].startswith((" ", "\t")):
            for follower in lines[j + 1 :]:
                if follower.strip():
                    return len(follower) - len(follower.lstrip())
            break
    return len(lines[index]) - len(lines[index].lstrip())
