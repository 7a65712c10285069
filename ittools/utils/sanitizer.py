# ittools/utils/sanitizer.py
"""
Implements text sanitization and the regex safety guard.

Sanitization is separate from validation: validation fails closed and never
alters input, while the helpers here produce a cleaned copy when a tool asks
for one. The regex guard runs before any user-supplied pattern drives a
regex-powered tool.
"""
import html
import re
import unicodedata

from ittools.exceptions import ToolValidationError
from ittools.utils.logger import setup_logger

logger = setup_logger(__name__)

# --- Text ---

CONTROL_CHARS = re.compile(r"[\x00\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_text(text: str) -> str:
    """Removes control characters and applies NFC normalization.

    Tab, line feed and carriage return are kept.

    :param text: The raw input string.
    :type text: str
    :return: The cleaned string.
    :rtype: str
    """
    return unicodedata.normalize("NFC", CONTROL_CHARS.sub("", text))


def escape_html(text: str) -> str:
    """Escapes the five HTML-reserved characters: & < > " '.

    `html.escape` maps exactly these to `&amp; &lt; &gt; &quot; &#x27;`.
    """
    return html.escape(text, quote=True)


def unescape_html(text: str) -> str:
    return html.unescape(text)


# --- Regex ---

REGEX_MAX_LENGTH = 1000
MAX_CAPTURING_GROUPS = 10
MAX_ALTERNATION_BRANCHES = 20

# repeats that can loop; "?" only makes an atom optional
_REPEATING = ("*", "+")
_QUANTIFIERS = ("*", "+", "?")
# the one stacked pair allowed: a lazy optional
_STACKED_EXEMPT = ("??",)
_BRACE_QUANTIFIER = re.compile(r"\{(?:\d+(?:,\d*)?|,\d+)\}")


def _brace_end(pattern: str, i: int) -> int:
    """Index of the closing brace when `pattern[i]` opens a `{m,n}` repeat, else -1."""
    end = pattern.find("}", i)
    if end == -1 or not _BRACE_QUANTIFIER.fullmatch(pattern, i, end + 1):
        return -1
    return end


def _scan_regex(pattern: str) -> tuple[int, int, bool]:
    """Walks a pattern once, ignoring escapes and character classes.

    Returns (capturing_groups, alternation_branches, has_nested_quantifier).
    A nested quantifier is a repeated group whose body already repeats, like
    `(a+)+` or `(\\w*\\s?)*`, or two quantifiers in a row such as `a*+`,
    `a+?` or `a?*`.
    """
    groups = 0
    pipes = 0
    nested = False
    # one flag per open group: does its body contain a repeat?
    stack: list[bool] = []
    prev_quant = ""
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        quant = ""
        if ch == "\\":
            i += 2
            prev_quant = ""
            continue
        if ch == "[":
            # skip the character class, honouring a leading ] or ^]
            j = i + 1
            if j < n and pattern[j] == "^":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 2 if pattern[j] == "\\" else 1
            i = j + 1
            prev_quant = ""
            continue
        if ch == "(":
            if pattern.startswith("(?", i):
                if pattern.startswith("(?P<", i):
                    groups += 1
                # the "?" belongs to the group syntax
                i += 1
            else:
                groups += 1
            stack.append(False)
        elif ch == ")":
            inner_repeats = stack.pop() if stack else False
            nxt = pattern[i + 1] if i + 1 < n else ""
            repeated = nxt in _REPEATING or (nxt == "{" and _brace_end(pattern, i + 1) != -1)
            if repeated and inner_repeats:
                nested = True
            if (repeated or inner_repeats) and stack:
                stack[-1] = True
        elif ch == "|":
            pipes += 1
        elif ch in _QUANTIFIERS:
            if prev_quant in _QUANTIFIERS and prev_quant + ch not in _STACKED_EXEMPT:
                nested = True
            elif prev_quant == "}" and ch in _REPEATING:
                nested = True
            if ch in _REPEATING and stack:
                stack[-1] = True
            quant = ch
        elif ch == "{":
            end = _brace_end(pattern, i)
            if end != -1:
                i = end
                quant = "}"
                if stack:
                    stack[-1] = True
        prev_quant = quant
        i += 1
    branches = pipes + 1 if pipes else 0
    return groups, branches, nested


def guard_regex(pattern: str) -> str:
    """Rejects patterns with known catastrophic-backtracking shapes.

    This is a heuristic deny-list, not a proof that the pattern is safe.

    :param pattern: The user-supplied regular expression.
    :type pattern: str
    :return: The unchanged pattern when it passes every check.
    :rtype: str
    :raises ToolValidationError: When the pattern is too long, contains a null
        byte, nests quantifiers, or has too many groups or alternation branches.
    """
    if len(pattern) > REGEX_MAX_LENGTH:
        raise ToolValidationError(
            f"Regex pattern exceeded max length ({len(pattern)} > {REGEX_MAX_LENGTH})",
            rule="regex",
        )
    if "\0" in pattern:
        raise ToolValidationError("Regex pattern contains a forbidden null byte", rule="regex")

    groups, branches, nested = _scan_regex(pattern)
    reason = None
    if nested:
        reason = "nested quantifiers"
    elif groups >= MAX_CAPTURING_GROUPS:
        reason = f"{groups} capturing groups (limit {MAX_CAPTURING_GROUPS - 1})"
    elif branches >= MAX_ALTERNATION_BRANCHES:
        reason = f"{branches} alternation branches (limit {MAX_ALTERNATION_BRANCHES - 1})"
    if reason:
        logger.warning(f"Potentially dangerous regex pattern blocked: {reason}")
        raise ToolValidationError(
            f"Potentially dangerous regex pattern detected: {reason}", rule="regex"
        )
    return pattern


def compile_safe_regex(pattern: str, flags: int = 0) -> re.Pattern:
    """Guards then compiles a pattern, reporting syntax errors as validation errors."""
    guard_regex(pattern)
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise ToolValidationError(f"Invalid regex pattern: {e}", rule="regex") from e
