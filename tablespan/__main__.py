import sys
import argparse
import logging

import colorlog

from .main.main import main as _main
from tablespan import __version__ as tablespan_version


def setup_logging(level):
    handler = colorlog.StreamHandler()
    handler.setFormatter( colorlog.LevelFormatter(
        log_colors={
            "DEBUG": "white",
            "INFO": "",
            "WARNING": "red",
            "ERROR": "bold_red",
            "CRITICAL": "bold_red",
        },
        fmt={
            "DEBUG":    "%(log_color)s〰️    %(message)s",
            "INFO":     "%(log_color)s✨  %(message)s",
            "WARNING":  "%(log_color)s⚠️   %(message)s",
            "ERROR":    "%(log_color)s🚨  %(message)s",
            "CRITICAL": "%(log_color)s🚨  %(message)s",
        },
        stream=sys.stderr
    ) )

    root = colorlog.getLogger()
    root.addHandler(handler)

    root.setLevel(level)


def run_main(cmdargs=None, enable_debug_pdb=False, exit_code_on_error=1):
    try:
        _run_main_inner(cmdargs)
    except Exception as e:
        logging.getLogger('tablespan').critical('Error.', exc_info=e)
        if enable_debug_pdb:
            import pdb
            pdb.post_mortem()
        elif exit_code_on_error is not None:
            sys.exit(exit_code_on_error)


def _run_main_inner(cmdargs=None):

    args_parser = argparse.ArgumentParser(
        prog='tablespan',
        description='Render markdown to HTML, with {colspan=N rowspan=M} '
        'annotations in table cells',
    )

    args_parser.add_argument('-c', '--md-content', action='store',
                             help="Markdown content to parse and convert")

    args_parser.add_argument('-C', '--config', action='store',
                             default=None,
                             help="YAML configuration file for markdown settings and "
                             "features.  By default, ‘tablespanconfig.yaml’ is used in the "
                             "current directory if it exists.  In all cases the input "
                             "YAML front matter takes precedence over this config.")

    args_parser.add_argument('-o', '--output', action='store',
                             default=None,
                             help="Output file name (stdout by default or with ‘--output=-’)")

    args_parser.add_argument('-t', '--template', action='store',
                             default=None,
                             help="Wrap the output in a full HTML page using this template "
                             "(e.g. “-t simple”).  Specify an empty argument to output "
                             "the HTML fragment only (“-t ''”).")

    args_parser.add_argument('-n', '--suppress-final-newline', action='store_true',
                             default=False,
                             help="Do not add a newline at the end of the output")

    args_parser.add_argument('-v', '--verbose', action='store_true',
                             default=False,
                             help="Enable verbose debugging output")

    args_parser.add_argument('--version', action='version', version=tablespan_version)

    args_parser.add_argument('files', metavar="FILE", nargs='*',
                             help='Input files (if none specified, read from standard input)')

    args = args_parser.parse_args(args=cmdargs)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    setup_logging(level=level)
    if args.verbose:
        # markdown-it's own debug output is very chatty
        logging.getLogger('markdown_it').setLevel(level=logging.INFO)

    d = dict(args.__dict__)
    d.pop('verbose')

    _main(**d)


if __name__ == '__main__':
    run_main()
