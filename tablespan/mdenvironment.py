import logging
logger = logging.getLogger(__name__)

from markdown_it import MarkdownIt


# ------------------------------------------------------------------------------


def features_ensure_dependencies_are_met(features):

    feature_names = set([ f.feature_name for f in features ])

    for feature in features:
        if feature.feature_dependencies is None:
            continue
        for fdepname in feature.feature_dependencies:
            if fdepname not in feature_names:
                raise ValueError(
                    f"Feature ‘{feature.feature_name}’ ({repr(feature)}) has unmet "
                    f"dependency ‘{fdepname}’"
                )


def features_sorted_by_dependencies(features):
    r"""
    This function returns the given list of features, but sorted such that
    features always appear after any of their dependencies.

    The order is deterministic, and does not depend on the initial ordering.
    Any independent features are sorted by their name (to ensure a deterministic
    order, even if it is arbitrary).

    This function raises an error if:

    - A feature was specified twice;

    - A feature has a dependency that is not in the list;

    - The feature dependency graph has a cycle.
    """

    features_to_sort = list(features)

    # build the features-by-name dictionary manually, so that we detect
    # and report duplicates.
    features_by_name = {}
    for feature in features_to_sort:
        if feature.feature_name in features_by_name:
            raise ValueError(
                f"Duplicate feature detected: feature {repr(feature)} has the same name "
                f"(‘{feature.feature_name}’) as the already-included feature "
                f"{features_by_name[feature.feature_name]}"
            )
        features_by_name[feature.feature_name] = feature

    features_to_sort.sort(key=lambda f: f.feature_name)

    features_ensure_dependencies_are_met(features_to_sort)

    def get_feature_dependencies(f):
        deps = set()
        if f.feature_dependencies is not None:
            for fdepname in f.feature_dependencies:
                deps.add(fdepname)
        if f.feature_optional_dependencies is not None:
            for foptdepname in f.feature_optional_dependencies:
                if foptdepname in features_by_name:
                    deps.add(foptdepname)
        return sorted(list(deps))

    # {feature name: [names of features it still waits for]}; edges are
    # removed as the dependencies get placed in the sorted list.
    all_feature_dependencies = dict([
        (fname, get_feature_dependencies(f))
        for fname, f in features_by_name.items()
    ])

    def get_feature_dependents(fparentname):
        dependents = set()
        for fname, fdepnames in all_feature_dependencies.items():
            if fparentname in fdepnames:
                dependents.add(fname)
        return sorted(list(dependents))

    #
    # https://en.wikipedia.org/wiki/Topological_sorting#Kahn's_algorithm
    #

    sorted_features = []
    root_features = [
        f
        # reversed so that pop() gets the first element
        for f in reversed(features_to_sort)
        if len(all_feature_dependencies[f.feature_name]) == 0
    ]

    while len(root_features) > 0:
        n = root_features.pop()
        sorted_features.append(n)

        for fdependentname in get_feature_dependents(n.feature_name):
            all_feature_dependencies[fdependentname].remove(n.feature_name)
            if len(all_feature_dependencies[fdependentname]) == 0:
                root_features.insert(0, features_by_name[fdependentname])

    problematic_features = []
    for fsrcname, featuredeps in all_feature_dependencies.items():
        if len(featuredeps) > 0:
            problematic_features.append(
                f"‘{fsrcname}’ → " + ", ".join([f"‘{fdepname}’" for fdepname in featuredeps])
            )
    if len(problematic_features) > 0:
        raise ValueError(
            f"The feature dependency graph has a cycle!  Problematic dependencies: "
            + "; ".join(problematic_features)
        )

    return sorted_features, features_by_name


# ------------------------------------------------------------------------------


class MarkdownEnvironment:
    r"""
    A markdown parser & HTML renderer with a given set of features enabled.

    - `features` is a list of :py:class:`~tablespan.feature._base.Feature`
      instances.  They are applied to the markdown-it instance in an order
      where dependencies come first.

    - `preset` is the markdown-it preset name to start from (e.g.,
      ``'commonmark'``, ``'gfm-like'``, ``'zero'``).

    - `options` is a dictionary of markdown-it options overriding those of
      the preset (e.g. ``{'html': True}``).
    """
    def __init__(self, features, *, preset='commonmark', options=None):
        super().__init__()

        self.preset = preset
        self.options = dict(options) if options else {}

        self.features, self.features_by_name = features_sorted_by_dependencies(features)

        logger.debug("Creating markdown environment; features: %r", self.features)

        self.md = MarkdownIt(self.preset, self.options)

        for f in self.features:
            logger.debug(f"Applying feature “{f.feature_name}”")
            f.apply_to_markdown(self.md)

    def feature(self, feature_name):
        return self.features_by_name[feature_name]

    def parse(self, md_content, env=None):
        r"""
        Return the list of block-level tokens for `md_content`, after all core
        rules (including the features' post-processing) have run.
        """
        return self.md.parse(md_content, env)

    def render(self, md_content, env=None):
        return self.md.render(md_content, env)


def standard_features(*, tables=True, cellspan=True, deflist=True):

    from .feature.tables import FeatureTables
    from .feature.cellspan import FeatureCellSpan
    from .feature.deflist import FeatureDefList

    features = []

    if tables:
        features.append( FeatureTables() )

    if cellspan:
        features.append( FeatureCellSpan() )

    if deflist:
        features.append( FeatureDefList() )

    return features


def make_standard_environment(features=None, **kwargs):
    if features is None:
        features = standard_features()
    return MarkdownEnvironment(features, **kwargs)
