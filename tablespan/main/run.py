import copy
import html
import string
import os.path
import logging
logger = logging.getLogger(__name__)

import frontmatter
import yaml

from .configmerger import ConfigMerger
configmerger = ConfigMerger()

from ._util import abbrev_value_str
from .importclass import import_class

from .. import mdenvironment


# ------------------


def parse_frontmatter_content(input_content):
    r"""
    Split `input_content` into its YAML front matter (a dictionary, empty if
    there is no front matter) and the markdown content that follows it.
    """
    frontmatter_metadata, content = frontmatter.parse(input_content)
    return frontmatter_metadata, content


# ------------------

#
# config
# ======
#
# tablespan:
#   markdown:
#     preset: commonmark
#     options: { html: false, ... }
#
#   features:
#     feature_name:
#       configvar1: ...
#     feature_name2: false | null # disable this feature
#     feature_name3: true # enable this feature with no options, same as {}
#     mypackage.mymodule.MyFeature: true # external feature class
#
#   template: null | simple
#


_dirname_here = os.path.dirname(__file__)
_builtin_default_config_yaml = os.path.join(_dirname_here, 'default_config.yaml')
with open(_builtin_default_config_yaml, encoding='utf-8') as f:
    _builtin_default_config = yaml.safe_load(f)
    _builtin_default_config['$_cwd'] = _dirname_here


def _ensurefeatureconfig(x):
    if x is True or x is None:
        return {}
    if x is False:
        raise ValueError("Got value ‘False’ in feature config that is being instantiated!")
    return x


def load_features(features_merge_configs, main_config):
    r"""
    Instantiate the features that are switched on in `main_config`.  Each
    feature's configuration is merged from the given chain of per-feature
    configs (`features_merge_configs`, one ``{featurename: config}`` dict per
    config source, highest precedence first) and the feature class's
    `feature_default_config`.
    """

    features_onoff = main_config['tablespan'].get('features', None) or {}

    features = []
    feature_configs = {}

    for featurename, featureonoff in features_onoff.items():

        if not featureonoff:
            continue

        _, FeatureClass = import_class(
            featurename,
            default_prefix='tablespan.feature',
            default_classnames=['FeatureClass'],
        )

        feature_merge_configs = [
            _ensurefeatureconfig(c[featurename])
            for c in features_merge_configs
            if featurename in c and c[featurename] is not False
        ]
        feature_merge_configs.append( FeatureClass.feature_default_config or {} )

        featureconfig = configmerger.recursive_assign_defaults(
            copy.deepcopy(feature_merge_configs)
        )
        featureconfig.pop('$_cwd', None)

        logger.debug("Instantiating feature ‘%s’ with config = %s", featurename,
                     abbrev_value_str(featureconfig, maxstrlen=512))

        features.append( FeatureClass(**featureconfig) )
        feature_configs[featurename] = featureconfig

    return features, feature_configs


def load_environment(*, run_config, default_configs=None, add_builtin_default_configs=True):
    r"""
    Merge the configuration and set up the markdown environment.

    Returns a tuple ``(environment, config, feature_configs)``.
    """

    merge_configs = [ run_config or {}, *(default_configs or []) ]
    if add_builtin_default_configs:
        merge_configs.append(_builtin_default_config)

    # make a deep copy of everything so we can modify configs
    merge_configs = [ copy.deepcopy(x) for x in merge_configs ]

    # pull out the feature configs, they are merged separately together with
    # each feature's own defaults in load_features()
    features_merge_configs = []
    for c in merge_configs:
        feature_merge_configs = {}
        tsconfig = c.get('tablespan', None) or {}
        features_cfg = tsconfig.get('features', None) or {}
        for featurename, featureconfig in features_cfg.items():
            if featurename.startswith('$'):
                raise ValueError(
                    f"Presets are not supported immediately inside ‘features:’ "
                    f"config, got {featurename}"
                )
            feature_merge_configs[featurename] = featureconfig
            features_cfg[featurename] = (
                featureconfig is not None and featureconfig is not False
            )
        features_merge_configs.append(feature_merge_configs)

    config = configmerger.recursive_assign_defaults(merge_configs)

    if not isinstance(config.get('tablespan', None), dict):
        config['tablespan'] = {}

    logger.debug("Merged config (w/o feature configs) = %s",
                 abbrev_value_str(config, maxstrlen=512))

    features, feature_configs = load_features(features_merge_configs, config)

    mdconfig = config['tablespan'].get('markdown', None) or {}

    environment = mdenvironment.MarkdownEnvironment(
        features,
        preset=mdconfig.get('preset', None) or 'commonmark',
        options=mdconfig.get('options', None),
    )

    return environment, config, feature_configs


_builtin_templates_dir = os.path.join(_dirname_here, 'templates')

def render_template(template_name, *, content, title):
    r"""
    Wrap the rendered `content` in the given builtin HTML page template.
    """
    template_file = os.path.join(_builtin_templates_dir, f"{template_name}.html")
    if not os.path.exists(template_file):
        raise ValueError(f"Template not found: ‘{template_name}’")
    with open(template_file, encoding='utf-8') as f:
        template = string.Template(f.read())
    return template.safe_substitute(
        content=content,
        title=html.escape(title or ''),
    )


def run(md_content,
        *,
        run_info,
        run_config,
        default_configs=None,
        add_builtin_default_configs=True):
    r"""
    Render the markdown content `md_content` to HTML.

    - `run_info` is a dictionary with information about this run, e.g.
      ``{'template': ..., 'input_source': ..., 'metadata': {...}}``;

    - `run_config` is the highest-precedence configuration (typically the
      document's YAML front matter);

    - `default_configs` is a list of further configuration trees in order of
      decreasing precedence.

    Returns a tuple ``(result, result_info)``.
    """

    environment, config, feature_configs = load_environment(
        run_config=run_config,
        default_configs=default_configs,
        add_builtin_default_configs=add_builtin_default_configs,
    )

    logger.debug("Rendering %s", run_info.get('input_source', None) or '<input>')

    result = environment.render(md_content)

    template_name = run_info.get('template', None)
    if template_name is None:
        template_name = config['tablespan'].get('template', None)
    if template_name:
        result = render_template(
            template_name,
            content=result,
            title=config.get('title', None),
        )
    else:
        result = result.rstrip('\n')

    result_info = {
        'environment': environment,
        'config': config,
        'feature_configs': feature_configs,
        'template': template_name or None,
    }

    return result, result_info
