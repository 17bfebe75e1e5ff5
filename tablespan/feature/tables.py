import logging
logger = logging.getLogger(__name__)

from ._base import Feature


class FeatureTables(Feature):
    r"""
    GFM-style pipe tables.  The ``commonmark`` preset of markdown-it ships
    the table rule disabled; this feature turns it on.
    """

    feature_name = 'tables'

    def apply_to_markdown(self, md):
        md.enable('table')


FeatureClass = FeatureTables
