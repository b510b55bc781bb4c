"""
Jira wiki markup helpers for Gherkin content.

Descriptions are written through the v2 REST API, so they use wiki markup:
keywords are bolded with '*' and the block is fenced with a {code} macro.
"""
import re

GHERKIN_LANGUAGE = "gherkin"
BOLD = "*"

# Order matters: 'Scenario Outline:' must be tried before 'Scenario:'
GHERKIN_KEYWORDS = [
    "Feature:",
    "Scenario Outline:",
    "Scenario:",
    "Given",
    "When",
    "Then",
    "And",
    "But",
]

_BOLD_PATTERNS = [
    (re.compile(rf"^(\s*)({re.escape(keyword)})", re.MULTILINE), keyword)
    for keyword in GHERKIN_KEYWORDS
]
_UNBOLD_PATTERNS = [
    (re.compile(rf"^(\s*){re.escape(BOLD)}({re.escape(keyword)}){re.escape(BOLD)} (?=[ \t\r]|$)", re.MULTILINE), keyword)
    for keyword in GHERKIN_KEYWORDS
]
_CODE_OPEN = re.compile(r"\A\{code(?::[^}]*)?\}\n")
_CODE_CLOSE = re.compile(r"\n\{code\}\Z")


def bold_gherkin_keywords(text: str) -> str:
    """
    Bold Gherkin keywords at the start of each line.

    Each keyword is a separate find/replace of '^(\\s*)(Keyword)' with
    '\\1*\\2* ', so 'Given a user' becomes '*Given*  a user'. Line count and the
    text after each keyword are unchanged.
    """
    for pattern, _ in _BOLD_PATTERNS:
        text = pattern.sub(lambda m: f"{m.group(1)}{BOLD}{m.group(2)}{BOLD} ", text)
    return text


def unbold_gherkin_keywords(text: str) -> str:
    """
    Reverse bold_gherkin_keywords.

    Only a marker followed by the keyword's own space (or the end of the line)
    is removed, so literal '*Given* y' text is left alone. A keyword glued to
    the next word ('Givenx') is not restored.
    """
    for pattern, _ in reversed(_UNBOLD_PATTERNS):
        text = pattern.sub(lambda m: f"{m.group(1)}{m.group(2)}", text)
    return text


def code_block(text: str, language: str = GHERKIN_LANGUAGE) -> str:
    return f"{{code:language={language}}}\n{text}\n{{code}}"


def format_gherkin_description(content: str) -> str:
    """Issue description for a Gherkin block: bolded keywords inside a gherkin code block."""
    return code_block(bold_gherkin_keywords(content))


def strip_gherkin_markup(markup: str) -> str:
    """Recover the raw Gherkin text from format_gherkin_description output."""
    text = _CODE_OPEN.sub("", markup, count=1)
    text = _CODE_CLOSE.sub("", text, count=1)
    return unbold_gherkin_keywords(text)
