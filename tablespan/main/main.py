import sys
import os.path
import fileinput
import json

import logging
logger = logging.getLogger(__name__)

import yaml

from . import run


def load_external_configs(*, arg_config):
    r"""
    Return the list of configuration trees to use as defaults (below the
    document's front matter).

    `arg_config` is either a dictionary (used as is), the name of a YAML
    config file, or `None`, in which case ``tablespanconfig.yaml`` (or
    ``.yml``) in the current directory is loaded if it exists.
    """

    if isinstance(arg_config, dict):
        return [ arg_config ]

    load_config_files = []
    if isinstance(arg_config, str) and arg_config:
        load_config_files.append(arg_config)
    else:
        # only the first existing extension is read
        for tryfname in ('tablespanconfig.yaml', 'tablespanconfig.yml'):
            if os.path.exists(tryfname):
                load_config_files.append(tryfname)
                break

    loaded_config_datas = []
    for config_file in load_config_files:
        with open(config_file, encoding='utf-8') as f:
            logger.info(f"Loading tablespan config from {config_file}")
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid config file ‘{config_file}’, expected a YAML mapping"
            )
        data['$_cwd'] = os.path.dirname(config_file)
        loaded_config_datas.append( data )

    return loaded_config_datas


class Main:
    def __init__(self, **kwargs):
        super().__init__()

        self.kwargs = kwargs

        self.arg_files = kwargs.get('files', None)
        self.arg_md_content = kwargs.get('md_content', None)
        self.arg_config = kwargs.get('config', None)
        self.arg_output = kwargs.get('output', None)
        self.arg_template = kwargs.get('template', None)
        self.arg_suppress_final_newline = kwargs.get('suppress_final_newline', None)

        arg_files = self.arg_files
        arg_md_content = self.arg_md_content

        #
        # Get the markdown content
        #
        input_content = ''
        dirname = None
        basename = None
        jobname = 'unknown-jobname'
        if arg_md_content is not None:
            if arg_files:
                raise ValueError(
                    "You cannot specify both FILEs and --md-content options. "
                    "Type `tablespan --help` for more information."
                )
            input_content = arg_md_content
        elif arg_files is None:
            # the command line always gives a (possibly empty) list; this only
            # happens on programmatic invocation of main()
            raise ValueError(
                "No input specified. Please use md_content or specify input files."
            )
        else:
            if len(arg_files) >= 1 and arg_files[0] != '-':
                dirname, basename = os.path.split(arg_files[0])
                jobname, _ = os.path.splitext(basename)
            if len(arg_files) >= 2:
                logger.warning("When multiple files are given, only the YAML front matter "
                               "of the first specified file is inspected.")
            with fileinput.input(files=arg_files, encoding='utf-8') as lines:
                for line in lines:
                    input_content += line

        frontmatter_metadata, md_content = run.parse_frontmatter_content(input_content)

        logger.debug("Input frontmatter_metadata is\n%s",
                     json.dumps(frontmatter_metadata, indent=4, default=str))

        self.orig_configs = load_external_configs(arg_config=self.arg_config)

        run_config = dict(frontmatter_metadata or {})
        run_config['$_cwd'] = dirname

        self.input_content = input_content
        self.md_content = md_content
        self.frontmatter_metadata = frontmatter_metadata
        self.run_config = run_config

        self.run_info = {
            'template': self.arg_template,
            'input_source': arg_files[0] if arg_files else None,
            'metadata': {
                'filepath': {
                    'dirname': dirname,
                    'basename': basename,
                },
                'jobname': jobname,
            },
        }

    def run(self, skip_write_return_result=False):

        result, result_info = run.run(
            self.md_content,
            run_info=self.run_info,
            run_config=self.run_config,
            default_configs=self.orig_configs,
        )

        if skip_write_return_result:
            return {
                "result": result,
                "result_info": result_info,
            }

        arg_output = self.arg_output

        def open_context_fout():
            if not arg_output or arg_output == '-':
                return _TrivialContextManager(sys.stdout)
            elif hasattr(arg_output, 'write'):
                # it's a file-like object, use it directly
                return _TrivialContextManager(arg_output)
            else:
                return open(arg_output, 'w', encoding='utf-8')

        with open_context_fout() as fout:
            fout.write(result)
            if not self.arg_suppress_final_newline:
                fout.write("\n")

        if isinstance(arg_output, str) and arg_output != '-':
            logger.info('Output to ‘%s’', arg_output)

        return {
            'run_info': self.run_info,
            'md_content': self.md_content,
            'run_config': self.run_config,
            'result': result,
            'result_info': result_info,
            'output': arg_output,
        }


def main(**kwargs):
    a = Main(**kwargs)
    return a.run()


# ------------------------------------------------------------------------------


class _TrivialContextManager:
    def __init__(self, value):
        super().__init__()
        self.value = value

    def __enter__(self):
        return self.value

    def __exit__(self, *args):
        pass
