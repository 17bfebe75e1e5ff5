r"""
Parsing of trailing ``{key=value ...}`` attribute annotations, as written by
authors at the end of a markdown table cell, e.g. ``Header {colspan=2}``.
"""

import re

import logging
logger = logging.getLogger(__name__)


rx_trailing_attrs = re.compile(r"\s*\{([^}]*)\}\s*\Z")
r"""
Matches an attribute annotation at the very end of a string, including any
white space surrounding it.  Group 1 is the text between the braces.
"""

rx_attr_pair = re.compile(
    r"""([A-Za-z_:][A-Za-z0-9_:-]*)=(?:"([^"]*)"|'([^']*)'|([^\s"'}]+))"""
)

rx_unsigned_integer = re.compile(r"[0-9]+")


class TrailingAttributes:
    r"""
    An attribute annotation found at the end of some text.

    - `source` is the full text that was searched;

    - `match` is the regular expression match object for the annotation;

    - `attrs` is the dictionary of parsed key/value pairs, in the order in
      which the keys first appear.  Later values for a repeated key overwrite
      earlier ones.
    """
    def __init__(self, source, match):
        super().__init__()
        self.source = source
        self.match = match
        self.attrs = parse_attr_pairs(match.group(1))

    @property
    def annotation(self):
        r"""
        The matched annotation text, including surrounding white space.
        """
        return self.match.group(0)

    def stripped_source(self):
        r"""
        Return the source text with the annotation (and the white space around
        it) removed.
        """
        return self.source[:self.match.start()]

    def __repr__(self):
        return f"{self.__class__.__name__}({self.attrs!r})"


def find_trailing_attributes(text):
    r"""
    Look for a ``{...}`` annotation at the end of `text`.  Returns a
    :py:class:`TrailingAttributes` instance, or `None` if `text` does not end
    with an annotation.
    """
    if not text:
        return None
    m = rx_trailing_attrs.search(text)
    if m is None:
        return None
    return TrailingAttributes(text, m)


def strip_trailing_attributes(text):
    r"""
    Remove a trailing ``{...}`` annotation from `text`, if there is one.
    Text without an annotation is returned unchanged.
    """
    return rx_trailing_attrs.sub('', text, count=1)


def parse_attr_pairs(src):
    r"""
    Parse ``key=value`` pairs separated by white space.  Values can be
    double-quoted, single-quoted, or a bare word that runs up to the next
    white space, quote or closing brace.  Anything that doesn't look like a
    pair is ignored.

    Returns a dictionary of the keys and (string) values.
    """
    out = {}
    for m in rx_attr_pair.finditer(src):
        key = m.group(1)
        val = next( (g for g in m.group(2, 3, 4) if g is not None), '' )
        out[key] = val
    return out


def is_unsigned_integer(value):
    return rx_unsigned_integer.fullmatch(value) is not None
