import logging
logger = logging.getLogger(__name__)

from mdit_py_plugins.deflist import deflist_plugin

from ._base import Feature


class FeatureDefList(Feature):
    r"""
    Definition lists (a term line followed by one or more ``: definition``
    lines), rendered as ``<dl>``/``<dt>``/``<dd>``.
    """

    feature_name = 'deflist'

    def apply_to_markdown(self, md):
        md.use(deflist_plugin)


FeatureClass = FeatureDefList
