import io
import os
import os.path
import tempfile
import unittest

from tablespan.main.main import main, Main, load_external_configs
from tablespan.main.run import (
    run,
    load_environment,
    parse_frontmatter_content,
)
from tablespan.feature.cellspan import FeatureCellSpan


_table_md = (
    "| A {colspan=2} | x | C |\n"
    "|---|---|---|\n"
    "| 1 | 2 | 3 |\n"
)


class TestRunMain(unittest.TestCase):

    maxDiff = None

    def test_simple_html(self):
        sout = io.StringIO()
        main(
            output=sout,
            md_content="Hello *world*!  Looking great today.",
        )
        self.assertEqual(
            sout.getvalue(),
            "<p>Hello <em>world</em>!  Looking great today.</p>\n"
        )

    def test_table(self):
        sout = io.StringIO()
        main(
            output=sout,
            md_content=_table_md,
            suppress_final_newline=True,
        )
        self.assertEqual(
            sout.getvalue(),
            "<table>\n<thead>\n<tr>\n"
            "<th colspan=\"2\">A</th>\n<th>C</th>\n"
            "</tr>\n</thead>\n<tbody>\n<tr>\n"
            "<td>1</td>\n<td>2</td>\n<td>3</td>\n"
            "</tr>\n</tbody>\n</table>"
        )

    def test_frontmatter_disables_feature(self):
        sout = io.StringIO()
        main(
            output=sout,
            md_content="---\ntablespan:\n  features:\n    cellspan: false\n---\n" + _table_md,
            suppress_final_newline=True,
        )
        self.assertIn('<th>A {colspan=2}</th>\n<th>x</th>', sout.getvalue())

    def test_frontmatter_markdown_options(self):
        sout = io.StringIO()
        main(
            output=sout,
            md_content="---\ntablespan:\n  markdown:\n    options:\n      html: true\n---\n"
            "<b>bold</b>\n",
            suppress_final_newline=True,
        )
        self.assertEqual(sout.getvalue(), "<p><b>bold</b></p>")

    def test_html_disabled_by_default(self):
        sout = io.StringIO()
        main(output=sout, md_content="<b>bold</b>\n", suppress_final_newline=True)
        self.assertEqual(sout.getvalue(), "<p>&lt;b&gt;bold&lt;/b&gt;</p>")

    def test_config_dict(self):
        sout = io.StringIO()
        main(
            output=sout,
            md_content=_table_md,
            config={ 'tablespan': { 'features': { 'cellspan': None } } },
        )
        self.assertIn('<th>A {colspan=2}</th>', sout.getvalue())

    def test_frontmatter_wins_over_config(self):
        sout = io.StringIO()
        main(
            output=sout,
            md_content="---\ntablespan:\n  features:\n    cellspan: true\n---\n" + _table_md,
            config={ 'tablespan': { 'features': { 'cellspan': False } } },
        )
        self.assertIn('<th colspan="2">A</th>', sout.getvalue())

    def test_unmet_dependency(self):
        with self.assertRaises(ValueError):
            main(
                output=io.StringIO(),
                md_content=_table_md,
                config={ 'tablespan': { 'features': { 'tables': False } } },
            )

    def test_template_simple(self):
        sout = io.StringIO()
        main(
            output=sout,
            md_content="---\ntitle: Paging & Memory\n---\n" + _table_md,
            template='simple',
        )
        result = sout.getvalue()
        self.assertTrue(result.startswith('<!DOCTYPE html>'))
        self.assertIn('<title>Paging &amp; Memory</title>', result)
        self.assertIn('<th colspan="2">A</th>', result)

    def test_template_from_config(self):
        sout = io.StringIO()
        main(
            output=sout,
            md_content="Hi\n",
            config={ 'tablespan': { 'template': 'simple' } },
        )
        self.assertIn('<body>\n<p>Hi</p>\n', sout.getvalue())

    def test_template_empty_overrides_config(self):
        sout = io.StringIO()
        main(
            output=sout,
            md_content="Hi\n",
            config={ 'tablespan': { 'template': 'simple' } },
            template='',
        )
        self.assertEqual(sout.getvalue(), "<p>Hi</p>\n")

    def test_template_unknown(self):
        with self.assertRaises(ValueError):
            main(output=io.StringIO(), md_content="Hi\n", template='no-such-template')

    def test_input_files(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            inname = os.path.join(tmpdir, 'doc.md')
            outname = os.path.join(tmpdir, 'doc.html')
            with open(inname, 'w', encoding='utf-8') as f:
                f.write("---\ntitle: Doc\n---\n" + _table_md)

            result = main(files=[inname], output=outname)

            with open(outname, encoding='utf-8') as f:
                content = f.read()

        self.assertIn('<th colspan="2">A</th>', content)
        self.assertTrue(content.endswith('</table>\n'))
        self.assertEqual(result['run_info']['metadata']['jobname'], 'doc')
        self.assertEqual(
            sorted(result['run_info']),
            ['input_source', 'metadata', 'template']
        )
        self.assertEqual(result['run_config']['title'], 'Doc')

    def test_no_input(self):
        with self.assertRaises(ValueError):
            Main(output=io.StringIO())

    def test_both_inputs(self):
        with self.assertRaises(ValueError):
            Main(md_content="Hi", files=['doc.md'])

    def test_skip_write(self):
        r = Main(md_content=_table_md).run(skip_write_return_result=True)
        self.assertIn('<th colspan="2">A</th>', r['result'])
        self.assertIsInstance(
            r['result_info']['environment'].feature('cellspan'),
            FeatureCellSpan
        )


class TestLoadExternalConfigs(unittest.TestCase):

    def test_dict(self):
        cfg = { 'tablespan': {} }
        self.assertEqual(load_external_configs(arg_config=cfg), [ cfg ])

    def test_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fname = os.path.join(tmpdir, 'myconfig.yaml')
            with open(fname, 'w', encoding='utf-8') as f:
                f.write("tablespan:\n  features:\n    deflist: false\n")
            configs = load_external_configs(arg_config=fname)
        self.assertEqual(configs, [{
            'tablespan': { 'features': { 'deflist': False } },
            '$_cwd': tmpdir,
        }])

    def test_invalid_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fname = os.path.join(tmpdir, 'myconfig.yaml')
            with open(fname, 'w', encoding='utf-8') as f:
                f.write("- just\n- a list\n")
            with self.assertRaises(ValueError):
                load_external_configs(arg_config=fname)

    def test_default_file_in_cwd(self):
        cwd = os.getcwd()
        with tempfile.TemporaryDirectory() as tmpdir:
            with open(os.path.join(tmpdir, 'tablespanconfig.yml'), 'w',
                      encoding='utf-8') as f:
                f.write("title: From config\n")
            try:
                os.chdir(tmpdir)
                configs = load_external_configs(arg_config=None)
            finally:
                os.chdir(cwd)
        self.assertEqual(configs, [{ 'title': 'From config', '$_cwd': '' }])

    def test_no_config(self):
        cwd = os.getcwd()
        with tempfile.TemporaryDirectory() as tmpdir:
            try:
                os.chdir(tmpdir)
                configs = load_external_configs(arg_config=None)
            finally:
                os.chdir(cwd)
        self.assertEqual(configs, [])


class TestRun(unittest.TestCase):

    def test_frontmatter(self):
        metadata, content = parse_frontmatter_content(
            "---\ntitle: X\n---\nHello\n"
        )
        self.assertEqual(metadata, { 'title': 'X' })
        self.assertEqual(content, "Hello")

    def test_no_frontmatter(self):
        metadata, content = parse_frontmatter_content("Hello\n")
        self.assertEqual(metadata, {})
        self.assertEqual(content, "Hello")

    def test_load_environment_defaults(self):
        environment, config, feature_configs = load_environment(run_config={})
        self.assertEqual(
            sorted(environment.features_by_name),
            ['cellspan', 'deflist', 'tables']
        )
        self.assertEqual(config['tablespan']['markdown']['preset'], 'commonmark')
        self.assertEqual(
            config['tablespan']['markdown']['options'],
            { 'html': False, 'linkify': False, 'typographer': False }
        )
        self.assertEqual(feature_configs['cellspan'], {})

    def test_load_environment_external_feature(self):
        environment, config, feature_configs = load_environment(
            run_config={
                'tablespan': {
                    'features': {
                        'tables': None,
                        'cellspan': None,
                        'deflist': None,
                        'tablespan.feature.tables.FeatureTables': True,
                    },
                },
            },
        )
        self.assertEqual(list(environment.features_by_name), ['tables'])

    def test_load_environment_unknown_feature(self):
        with self.assertRaises(ValueError):
            load_environment(run_config={
                'tablespan': { 'features': { 'no_such_feature': True } }
            })

    def test_run(self):
        result, result_info = run(
            _table_md,
            run_info={},
            run_config={},
        )
        self.assertIn('<th colspan="2">A</th>\n<th>C</th>', result)
        self.assertIsNone(result_info['template'])


if __name__ == '__main__':
    unittest.main()
