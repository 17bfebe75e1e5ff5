class Feature:

    # ---

    feature_name = None
    r"""
    A name that should uniquely identify this feature.
    """

    feature_dependencies = None
    r"""
    If non-`None`, then this is a list (or set) of feature names that must
    also be used in a given :py:class:`~tablespan.mdenvironment.MarkdownEnvironment`
    instance for the present feature to function as intended.  These
    dependency features will be applied to the markdown parser prior to the
    present feature.
    """

    feature_optional_dependencies = None
    r"""
    If non-`None`, then this is a list (or set) of feature names that may
    enhance the functionality of the present feature.  If these features are
    activated, they will be applied prior to the present feature.
    """

    feature_default_config = {}
    r"""
    The default configuration tree for this feature.  The
    :py:mod:`~tablespan.main.run` module uses these defaults when no
    configuration is specified for a given feature.  The configuration is a
    dictionary of key/value pairs that :py:mod:`~tablespan.main.run` passes
    as keyword arguments to the constructor of the feature instance.  If you
    create feature instances yourself, then you're responsible for the
    arguments you specify to the constructor.
    """

    # ---

    def apply_to_markdown(self, md):
        r"""
        Reimplement to install block/inline/core rules or plugins on the
        given `markdown_it.MarkdownIt` instance `md`.
        """
        pass

    def __repr__(self):
        return f"<{self.__class__.__name__} ‘{self.feature_name}’>"
