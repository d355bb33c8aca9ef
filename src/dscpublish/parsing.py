#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Extracts the modules required by a DSC configuration script.

## Overview

A DSC configuration declares the resources it uses with `Import-DscResource`
statements. Those modules must travel with the configuration when it is
published, so the publisher needs their names. This module provides a
`ConfigurationParser` that scans the text of a `.ps1` or `.psm1` file and
returns a `ParseResult` with the discovered module names and any diagnostics.

The parser is not a PowerShell implementation. It tokenizes just enough of the
language (comments, strings, here-strings, variables, and brackets) to find
`Import-DscResource` statements reliably and to report syntax errors that
would make the configuration unusable on the target node:

    >>> parser = ConfigurationParser()
    >>> result = parser.parse('''
    ... Configuration WebSite {
    ...     Import-DscResource -ModuleName xWebAdministration, xNetworking
    ...     Node localhost { }
    ... }''')
    >>> result.names
    ['xWebAdministration', 'xNetworking']
    >>> result.errors
    []

Module names are returned in the order they were discovered. Duplicates are
kept, so a module imported by two configurations in the same file appears
twice. The built-in `PSDesiredStateConfiguration` module is never returned as
it is present on every node.

When an `Import-DscResource` statement names only resources, via `-Name`, the
resource names are returned in `ParseResult.resources` so the caller can map
them to the modules that provide them. Resources of the built-in module, such
as `File` or `Script`, are left out.
"""

import logging
import re
from collections import namedtuple

LOG = logging.getLogger(__name__)

BUILTIN_MODULES = ("PSDesiredStateConfiguration",)

BUILTIN_RESOURCES = (
    "Archive",
    "Environment",
    "File",
    "Group",
    "GroupSet",
    "Log",
    "Package",
    "ProcessSet",
    "Registry",
    "Script",
    "Service",
    "ServiceSet",
    "SignatureValidation",
    "User",
    "WaitForAll",
    "WaitForAny",
    "WaitForSome",
    "WindowsFeature",
    "WindowsFeatureSet",
    "WindowsOptionalFeature",
    "WindowsOptionalFeatureSet",
    "WindowsPackageCab",
    "WindowsProcess",
)

_OPENERS = {"{": "}", "(": ")", "[": "]"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}
_PUNCTUATION = set("{}()[],;=@")
_WORD_BREAK = set(" \t\r\n'\"`") | (_PUNCTUATION - {"@"})
_STATEMENT_BOUNDARY = {"{", "}", ";"}

Token = namedtuple("Token", "kind value line column")

WORD, STRING, VARIABLE, PUNCT, NEWLINE = (
    "word",
    "string",
    "variable",
    "punct",
    "newline",
)


class ParseDiagnostic(namedtuple("ParseDiagnostic", "line column message")):
    """A problem found at `line` and `column` (both 1-based) of the source."""

    __slots__ = ()

    def __str__(self):
        return f"line {self.line}, column {self.column}: {self.message}"


class ParseResult:
    """The outcome of parsing a configuration.

    `names` is the list of required module names in discovery order,
    `resources` is the list of resource names imported without a module name,
    and `errors` is the list of `ParseDiagnostic` found.
    """

    def __init__(self, names=None, resources=None, errors=None):
        self.names = names or []
        self.resources = resources or []
        self.errors = errors or []

    def __repr__(self):
        return (
            f"ParseResult(names={self.names}, resources={self.resources}, "
            f"errors={self.errors})"
        )


class ConfigurationParser:
    """Parses DSC configuration scripts for required module names.

    `builtin_modules` is a list of module names that are never reported as
    required because they are available on every target node, and
    `builtin_resources` lists the resources those modules provide. The
    comparisons are case-insensitive like PowerShell itself.
    """

    def __init__(
        self, builtin_modules=BUILTIN_MODULES, builtin_resources=BUILTIN_RESOURCES
    ):
        self.builtin_modules = {m.lower() for m in builtin_modules}
        self.builtin_resources = {r.lower() for r in builtin_resources}

    def parse_file(self, path):
        """Returns the `ParseResult` for the file at `path`."""
        LOG.info("parsing configuration '%s'", path)
        with open(path, encoding="utf-8-sig") as f:
            return self.parse(f.read())

    def parse(self, text):
        """Returns the `ParseResult` for the configuration `text`."""
        tokens, errors = tokenize(text)
        result = ParseResult(errors=errors)

        for index, token in _statement_starts(tokens):
            keyword = token.value.lower()
            if keyword == "configuration":
                self._check_configuration(tokens, index, result)
            elif keyword == "import-dscresource":
                self._import_dsc_resource(tokens, index, result)

        LOG.info(
            "found modules=%s resources=%s errors=%d",
            result.names,
            result.resources,
            len(result.errors),
        )
        return result

    @staticmethod
    def _check_configuration(tokens, index, result):
        keyword = tokens[index]
        following = tokens[index + 1] if index + 1 < len(tokens) else None
        if following is None or following.kind not in (WORD, STRING):
            result.errors.append(
                ParseDiagnostic(
                    keyword.line,
                    keyword.column,
                    "Missing name after 'Configuration' keyword",
                )
            )

    def _import_dsc_resource(self, tokens, index, result):
        keyword = tokens[index]
        args = _statement_arguments(tokens, index + 1)
        params = _bind_parameters(args, result.errors)

        modules = params.get("modulename", [])
        resources = params.get("name", [])

        if not modules and not resources:
            result.errors.append(
                ParseDiagnostic(
                    keyword.line,
                    keyword.column,
                    "Import-DscResource requires a -ModuleName or -Name argument",
                )
            )
            return

        if modules:
            result.names.extend(
                m for m in modules if m.lower() not in self.builtin_modules
            )
        else:
            result.resources.extend(
                r for r in resources if r.lower() not in self.builtin_resources
            )


def tokenize(text):
    """Returns a tuple of tokens and diagnostics for `text`.

    Whitespace and comments are discarded. Newlines are kept as tokens because
    they terminate statements. Unbalanced brackets as well as unterminated
    strings and comments are reported as diagnostics.
    """
    scanner = _Scanner(text)
    tokens = []
    errors = []
    brackets = []

    while not scanner.at_end():
        ch = scanner.peek()
        line, column = scanner.line, scanner.column

        if ch == "\n":
            tokens.append(Token(NEWLINE, ch, line, column))
            scanner.advance()

        elif ch in " \t\r":
            scanner.advance()

        elif ch == "`":
            # Line continuation or an escaped character, either way the next
            # character is not significant for our purposes.
            scanner.advance()
            if scanner.peek() == "\r":
                scanner.advance()
            scanner.advance()

        elif ch == "#":
            scanner.skip_until("\n")

        elif ch == "<" and scanner.peek(1) == "#":
            scanner.advance(2)
            if not scanner.skip_past("#>"):
                errors.append(
                    ParseDiagnostic(line, column, "Missing end of block comment '#>'")
                )

        elif ch == "@" and scanner.peek(1) in ("'", '"') and _newline_follows(scanner, 2):
            value = _here_string(scanner)
            if value is None:
                errors.append(
                    ParseDiagnostic(line, column, "Missing here-string terminator")
                )
            else:
                tokens.append(Token(STRING, value, line, column))

        elif ch in ("'", '"'):
            value = _quoted_string(scanner)
            if value is None:
                errors.append(
                    ParseDiagnostic(line, column, f"Missing string terminator {ch}")
                )
            else:
                tokens.append(Token(STRING, value, line, column))

        elif ch == "$":
            scanner.advance()
            name = scanner.take_while(lambda c: c.isalnum() or c in "_:?")
            tokens.append(Token(VARIABLE, "$" + name, line, column))

        elif ch in _PUNCTUATION:
            scanner.advance()
            tokens.append(Token(PUNCT, ch, line, column))
            if ch in _OPENERS:
                brackets.append((ch, line, column))
            elif ch in _CLOSERS:
                if brackets and brackets[-1][0] == _CLOSERS[ch]:
                    brackets.pop()
                else:
                    errors.append(
                        ParseDiagnostic(line, column, f"Unexpected token '{ch}'")
                    )

        else:
            word = scanner.take_while(lambda c: c not in _WORD_BREAK)
            tokens.append(Token(WORD, word, line, column))

    for opener, line, column in brackets:
        errors.append(
            ParseDiagnostic(
                line, column, f"Missing closing '{_OPENERS[opener]}' for '{opener}'"
            )
        )

    errors.sort(key=lambda d: (d.line, d.column))
    return tokens, errors


class _Scanner:
    """Character cursor over text that tracks line and column numbers."""

    def __init__(self, text):
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1

    def at_end(self):
        return self.pos >= len(self.text)

    def peek(self, offset=0):
        i = self.pos + offset
        return self.text[i] if i < len(self.text) else ""

    def advance(self, count=1):
        for _ in range(count):
            if self.at_end():
                return
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def take_while(self, predicate):
        start = self.pos
        while not self.at_end() and predicate(self.peek()):
            self.advance()
        return self.text[start : self.pos]

    def skip_until(self, marker):
        """Advances to `marker` without consuming it, or to the end of text."""
        end = self.text.find(marker, self.pos)
        self.advance((len(self.text) if end < 0 else end) - self.pos)

    def skip_past(self, marker):
        """Advances past `marker`. Returns `False` if it was never found."""
        end = self.text.find(marker, self.pos)
        if end < 0:
            self.advance(len(self.text) - self.pos)
            return False
        self.advance(end + len(marker) - self.pos)
        return True


def _newline_follows(scanner, offset):
    i = offset
    while scanner.peek(i) in (" ", "\t", "\r"):
        i += 1
    return scanner.peek(i) == "\n"


def _here_string(scanner):
    quote = scanner.peek(1)
    scanner.advance(2)
    scanner.skip_past("\n")

    terminator = re.compile(r"^[ \t]*" + re.escape(quote) + "@", re.MULTILINE)
    match = terminator.search(scanner.text, scanner.pos)
    if not match:
        scanner.advance(len(scanner.text) - scanner.pos)
        return None

    value = scanner.text[scanner.pos : match.start()].rstrip("\r\n")
    scanner.advance(match.end() - scanner.pos)
    return value


def _quoted_string(scanner):
    quote = scanner.peek()
    scanner.advance()
    chars = []

    while not scanner.at_end():
        ch = scanner.peek()
        if ch == quote:
            if scanner.peek(1) == quote:
                chars.append(quote)
                scanner.advance(2)
                continue
            scanner.advance()
            return "".join(chars)
        if ch == "`" and quote == '"':
            chars.append(scanner.peek(1))
            scanner.advance(2)
            continue
        chars.append(ch)
        scanner.advance()

    return None


def _statement_starts(tokens):
    """Yields (index, token) for each word that begins a statement."""
    previous = None
    for i, token in enumerate(tokens):
        if token.kind == WORD and (
            previous is None
            or previous.kind == NEWLINE
            or (previous.kind == PUNCT and previous.value in _STATEMENT_BOUNDARY)
        ):
            yield i, token
        previous = token


def _statement_arguments(tokens, start):
    """Returns the tokens of the statement beginning at `start`.

    A statement ends at a newline, semicolon, or closing brace that is not
    nested within brackets opened by the statement itself. A line ending in a
    comma continues the statement on the next line.
    """
    depth = 0
    args = []
    for token in tokens[start:]:
        if token.kind == PUNCT and token.value in _OPENERS:
            depth += 1
        elif token.kind == PUNCT and token.value in _CLOSERS:
            if depth == 0:
                break
            depth -= 1
        elif depth == 0 and token.kind == NEWLINE:
            if args and _is(args, len(args) - 1, ","):
                continue
            break
        elif depth == 0 and token.kind == PUNCT and token.value == ";":
            break
        args.append(token)
    return args


_IMPORT_PARAMETERS = ("Name", "ModuleName", "ModuleVersion")


def _parameter_name(word):
    """Resolves an abbreviated parameter name like PowerShell does."""
    prefix = word.lstrip("-").lower()
    matches = [p for p in _IMPORT_PARAMETERS if p.lower().startswith(prefix)]
    exact = [p for p in matches if p.lower() == prefix]
    if exact:
        return exact[0].lower()
    if len(matches) == 1:
        return matches[0].lower()
    return None


def _bind_parameters(args, errors):
    """Returns a dict of lowercase parameter name to a list of string values.

    Values that appear before any named parameter are bound to `name`, which
    is the first positional parameter of Import-DscResource.
    """
    params = {}
    current = "name"
    segment = []

    def flush():
        if segment:
            params.setdefault(current, []).extend(_segment_values(segment))

    for token in args:
        if token.kind == WORD and token.value.startswith("-") and len(token.value) > 1:
            flush()
            # -Name:value binds the value to the parameter in the same word.
            word, _, value = token.value.partition(":")
            offset = token.column + len(word)
            segment = [
                t._replace(line=token.line, column=offset + t.column)
                for t in tokenize(value)[0]
            ]
            current = _parameter_name(word)
            if current is None:
                errors.append(
                    ParseDiagnostic(
                        token.line,
                        token.column,
                        f"Unknown Import-DscResource parameter '{token.value}'",
                    )
                )
                current = "unknown"
            continue
        segment.append(token)

    flush()
    return params


def _segment_values(segment):
    """Returns string values found in a single argument.

    Handles bare words, quoted strings, comma separated lists, array
    subexpressions, and module specification hashtables such as
    `@{ModuleName='xNetworking'; ModuleVersion='5.7.0.0'}`.
    """
    values = []
    i = 0
    while i < len(segment):
        token = segment[i]

        if token.kind == PUNCT and token.value == "@" and _is(segment, i + 1, "{"):
            end = _matching_close(segment, i + 1)
            values.extend(_hashtable_module_names(segment[i + 2 : end]))
            i = end + 1
            continue

        if token.kind in (WORD, STRING):
            values.append(token.value)
        elif token.kind == VARIABLE:
            LOG.warning(
                "cannot resolve module name from variable %s at line %d",
                token.value,
                token.line,
            )
        i += 1
    return values


def _hashtable_module_names(tokens):
    names = []
    for i, token in enumerate(tokens):
        if (
            token.kind in (WORD, STRING)
            and token.value.lower() == "modulename"
            and _is(tokens, i + 1, "=")
            and i + 2 < len(tokens)
            and tokens[i + 2].kind in (WORD, STRING)
        ):
            names.append(tokens[i + 2].value)
    return names


def _is(tokens, index, punct):
    return (
        index < len(tokens)
        and tokens[index].kind == PUNCT
        and tokens[index].value == punct
    )


def _matching_close(tokens, open_index):
    opener = tokens[open_index].value
    depth = 0
    for i in range(open_index, len(tokens)):
        token = tokens[i]
        if token.kind != PUNCT:
            continue
        if token.value == opener:
            depth += 1
        elif token.value == _OPENERS[opener]:
            depth -= 1
            if depth == 0:
                return i
    return len(tokens)
