#
# Support for column & row spans in markdown table cells, written as a
# trailing annotation in the cell text:
#
#   | Header {colspan=2} | (absorbed) |
#   |--------------------|------------|
#   | A {rowspan=2}      | B          |
#

import logging
logger = logging.getLogger(__name__)

from ..attrsyntax import (
    find_trailing_attributes,
    strip_trailing_attributes,
    is_unsigned_integer,
)

from ._base import Feature


cell_open_token_types = ('th_open', 'td_open',)
cell_close_token_types = ('th_close', 'td_close',)

# each table cell is a cell-open, inline, cell-close token triple
CELL_TRIPLE_LENGTH = 3


def is_cell_triple(tokens, i):
    r"""
    Whether `tokens[i:i+3]` forms a complete table cell (open, inline, close).
    """
    if i + CELL_TRIPLE_LENGTH > len(tokens):
        return False
    return (
        tokens[i].type in cell_open_token_types
        and tokens[i+1].type == 'inline'
        and tokens[i+2].type in cell_close_token_types
    )


class TableCellSpanProcessor:
    r"""
    Applies ``{colspan=N rowspan=M}`` cell annotations to a markdown-it
    token stream.

    For each table cell whose text ends with an annotation, valid `colspan`
    and `rowspan` values (unsigned integers) are set as attributes on the
    cell's opening token.  When the cell spans more than one column, the
    annotation is removed from the cell's text and the cells it absorbs
    (the following ``colspan - 1`` cells of the same row) are removed from
    the token stream.

    The annotation text is only removed when ``colspan > 1``.  A cell
    annotated with only `rowspan` (or with ``colspan=1``) gets its
    attribute, but keeps the annotation in its text.

    Malformed annotations never raise; they are applied partially or not
    at all.
    """

    span_attribute_names = ('colspan', 'rowspan',)

    def process(self, tokens):
        r"""
        Process the token list `tokens` in place.  Returns the same list
        object for convenience.
        """

        result = []

        i = 0
        num_tokens = len(tokens)
        while i < num_tokens:
            token = tokens[i]
            result.append(token)
            i += 1

            if token.type != 'inline' or len(result) < 2:
                continue
            open_token = result[-2]
            if open_token.type not in cell_open_token_types:
                continue

            span = self.apply_cell_annotation(open_token, token)
            if span <= 1:
                continue

            # keep this cell's closing token, then skip over the absorbed cells
            if i < num_tokens and tokens[i].type in cell_close_token_types:
                result.append(tokens[i])
                i += 1

            num_absorbed = 0
            while num_absorbed < span - 1 and is_cell_triple(tokens, i):
                i += CELL_TRIPLE_LENGTH
                num_absorbed += 1

            if num_absorbed < span - 1:
                logger.debug("Cell ‘%s’ has colspan=%d but only %d following cell(s) "
                             "in its row could be merged",
                             token.content, span, num_absorbed)

        if len(result) != num_tokens:
            logger.debug("Removed %d token(s) for table cells absorbed by column spans",
                         num_tokens - len(result))

        tokens[:] = result
        return tokens

    def apply_cell_annotation(self, open_token, inline_token):
        r"""
        Look for an annotation at the end of `inline_token`'s content and apply
        it.  Sets span attributes on `open_token`.  The annotation text is
        stripped only if the cell spans more than one column.

        Returns the number of columns spanned by the cell (1 if no valid
        `colspan` was given).
        """
        trailing = find_trailing_attributes(inline_token.content)
        if trailing is None:
            return 1

        span = 1
        for key, value in trailing.attrs.items():
            if key not in self.span_attribute_names:
                continue
            if not is_unsigned_integer(value):
                logger.debug("Ignoring non-numeric %s=%r in table cell ‘%s’",
                             key, value, inline_token.content)
                continue
            open_token.attrSet(key, value)
            if key == 'colspan':
                span = int(value)

        if span <= 1:
            return span

        logger.debug("Table cell ‘%s’ spans %d columns", inline_token.content, span)

        inline_token.content = trailing.stripped_source()
        for child in reversed(inline_token.children or []):
            if child.type == 'text':
                child.content = strip_trailing_attributes(child.content)
                break

        return span


def table_cell_span_plugin(md, processor=None):
    r"""
    A markdown-it plugin that registers the ``table_cell_span`` core rule,
    which runs after inline tokenization.  Use as
    ``md.use(table_cell_span_plugin)``.
    """
    if processor is None:
        processor = TableCellSpanProcessor()

    def table_cell_span(state):
        processor.process(state.tokens)

    md.core.ruler.after('inline', 'table_cell_span', table_cell_span)


class FeatureCellSpan(Feature):
    r"""
    Column and row spans for table cells.  See
    :py:class:`TableCellSpanProcessor`.
    """

    feature_name = 'cellspan'
    feature_dependencies = ['tables']

    def __init__(self):
        super().__init__()
        self.processor = TableCellSpanProcessor()

    def apply_to_markdown(self, md):
        md.use(table_cell_span_plugin, processor=self.processor)


FeatureClass = FeatureCellSpan
