r"""Translate author shorthand markup into the site's component tags.

The translator applies an explicit, ordered tuple of :class:`MarkupRule`
pairs. Text is held as a list of segments; a rule only scans live segments
and the markup it produces is frozen, so a later rule can never match the
output of an earlier one. Author text captured by a rule (link labels,
highlighted spans) stays live. After the structural rules run, the joined
text receives four finishing passes: collapsing doubled underscores,
replacing U+00A0 with a plain space, closing a trailing code fence, and
re-indenting every newline to the caller's prefix width.

Example
-------
>>> translator = MarkupTranslator("demo")
>>> translator.translate("See ^^this^^ {{premium}}", "- ")
'See <Highlight>this</Highlight> <Premium />'
>>> translator.translate("[Setup]([[demo/Getting Started]])", "")
'[Setup](/extensions/demo/getting_started)'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re

from extension_docs._constants import EXTENSIONS_URL_PREFIX
from extension_docs.models import normalize_name

NBSP = chr(160)
TRAILING_FENCE_PATTERN = re.compile(r"```\Z")

LOOM_PATTERN = re.compile(
    r"\{\{(?:\[\[)?video(?:\]\])?:\s*https://www\.loom\.com/share/([0-9a-f]*)\}\}",
    re.ASCII,
)
YOUTUBE_PATTERN = re.compile(
    r"\{\{(?:\[\[)?(?:youtube|video)(?:\]\])?:\s*https://youtu\.be/([\w-]*)\}\}",
    re.ASCII,
)
VIDEO_PATTERN = re.compile(r"\{\{(?:\[\[)?video(?:\]\])?:\s*(\S+)\s*\}\}")
HIGHLIGHT_PATTERN = re.compile(r"\^\^(.*?)\^\^")
PREMIUM_PATTERN = re.compile(r"\{\{premium\}\}")

Segment = tuple[str, bool]


def _live(text: str) -> Segment:
    return (text, False)


def _frozen(text: str) -> Segment:
    return (text, True)


@dc.dataclass(frozen=True, slots=True)
class MarkupRule:
    """A named pattern and the segments that replace each of its matches."""

    name: str
    pattern: re.Pattern[str]
    rewrite: cabc.Callable[[re.Match[str]], list[Segment]]

    def apply(self, segments: list[Segment]) -> list[Segment]:
        """Rewrite every match inside the live segments of ``segments``."""
        result: list[Segment] = []
        for text, frozen in segments:
            if frozen:
                result.append((text, frozen))
                continue
            cursor = 0
            for match in self.pattern.finditer(text):
                if match.start() > cursor:
                    result.append(_live(text[cursor : match.start()]))
                result.extend(self.rewrite(match))
                cursor = match.end()
            if cursor < len(text):
                result.append(_live(text[cursor:]))
        return result


def _tag(template: str) -> cabc.Callable[[re.Match[str]], list[Segment]]:
    def _rewrite(match: re.Match[str]) -> list[Segment]:
        return [_frozen(template.format(match.group(1)))]

    return _rewrite


def _highlight(match: re.Match[str]) -> list[Segment]:
    return [_frozen("<Highlight>"), _live(match.group(1)), _frozen("</Highlight>")]


def _premium(_match: re.Match[str]) -> list[Segment]:
    return [_frozen("<Premium />")]


def build_rules(path: str) -> tuple[MarkupRule, ...]:
    """Return the ordered markup rules for documents published under ``path``."""
    escaped = re.escape(path)
    subpage_link = re.compile(rf"\[(.*?)\]\(\[\[{escaped}/(.*?)\]\]\)")
    page_link = re.compile(rf"\[(.*?)\]\(\[\[{escaped}\]\]\)")

    def _subpage(match: re.Match[str]) -> list[Segment]:
        target = f"{EXTENSIONS_URL_PREFIX}/{path}/{normalize_name(match.group(2))}"
        return [_frozen("["), _live(match.group(1)), _frozen(f"]({target})")]

    def _page(match: re.Match[str]) -> list[Segment]:
        target = f"{EXTENSIONS_URL_PREFIX}/{path}"
        return [_frozen("["), _live(match.group(1)), _frozen(f"]({target})")]

    return (
        MarkupRule("loom", LOOM_PATTERN, _tag('<Loom id={{"{0}"}} />')),
        MarkupRule("youtube", YOUTUBE_PATTERN, _tag('<YouTube id={{"{0}"}} />')),
        MarkupRule("video", VIDEO_PATTERN, _tag('<DemoVideo src={{"{0}"}} />')),
        MarkupRule("subpage-link", subpage_link, _subpage),
        MarkupRule("page-link", page_link, _page),
        MarkupRule("highlight", HIGHLIGHT_PATTERN, _highlight),
        MarkupRule("premium", PREMIUM_PATTERN, _premium),
    )


class MarkupTranslator:
    """Rewrite block text for documents published under one extension path."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.rules = build_rules(path)

    def translate(self, text: str, prefix: str) -> str:
        """Return ``text`` with markup rewritten and newlines indented.

        Parameters
        ----------
        text : str
            Raw block text as authored.
        prefix : str
            Line prefix of the enclosing block; continuation lines are
            indented by ``len(prefix)`` spaces.
        """
        segments: list[Segment] = [_live(text)]
        for rule in self.rules:
            segments = rule.apply(segments)
        joined = "".join(segment for segment, _ in segments)
        joined = joined.replace("__", "_").replace(NBSP, " ")
        joined = TRAILING_FENCE_PATTERN.sub("\n```", joined)
        return joined.replace("\n", "\n" + " " * len(prefix))


__all__ = ["MarkupRule", "MarkupTranslator", "build_rules"]
