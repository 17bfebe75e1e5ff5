r"""
Markdown table cell spans -- ``{colspan=N rowspan=M}`` annotations in
markdown table cells, for markdown-it based rendering pipelines.
"""

__version__ = '0.1.0'
