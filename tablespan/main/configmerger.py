r"""
Merging of configuration trees.

Configuration trees are merged in order of precedence: a value in the first
tree wins over the same value in the following trees; dictionaries are merged
recursively; lists are taken from the first tree in which they appear, unless
they contain a ``{'$defaults': true}`` item, which is replaced by the
corresponding list from the following trees.

Special ``$<preset>`` keys in dictionaries trigger additional processing:

- ``$import: <target>`` (or a list of targets) pulls in the configuration
  found at the given target.  A target is a path relative to the importing
  config file, a ``pkg:module/attribute`` reference, or a URL;

- in a list, ``{'$merge-config': {'name': <name>, 'config': {...}}}`` merges
  the given config into the ``config`` of the item with that ``name`` found
  earlier in the list (typically brought in by ``$defaults``), and
  ``{'$remove-item': <name>}`` removes that item from the list;

- ``$_cwd`` is an internal marker storing the directory of the config file a
  tree was read from, used to resolve relative ``$import`` paths.
"""

import importlib
import os.path

from collections.abc import Mapping

from urllib.parse import urlparse
from urllib.request import urlopen

import yaml

import logging
logger = logging.getLogger(__name__)


# marker for list items in property paths
class ListProperty:
    pass



class PresetKeepMarker:
    def __init__(self, marker):
        super().__init__()
        self.marker = marker

    def process_property(self, configmerger, presetarg, result, obj, remaining_obj_list,
                         property_path, top_level_obj):
        # keep the marker in the object so that nested properties can see it
        obj[self.marker] = presetarg


class PresetDefaults:
    def process_list_item(self, configmerger,
                          presetarg, list_result, list_obj, j, list_obj_remaining,
                          property_path, top_level_obj):
        logger.debug("$defaults in list ‘%s’, filling in from %r",
                     ".".join(_fmt_property_path(property_path)), list_obj_remaining)

        list_result.extend(
            configmerger.recursive_assign_defaults_list(
                list_obj_remaining,
                property_path,
                top_level_obj=top_level_obj
            )
        )


def _find_named_item(presetname, list_result, name, property_path):
    for j0, item in enumerate(list_result):
        if isinstance(item, Mapping) and item.get('name', None) == name:
            return j0
    logger.error("%s could not find item named ‘%s’ in list ‘%s’ = %r",
                 presetname, name, ".".join(_fmt_property_path(property_path)),
                 list_result)
    raise ValueError(f"{presetname}: could not find item named ‘{name}’")


class PresetMergeConfig:
    def process_list_item(self, configmerger,
                          presetarg, list_result, list_obj, j, list_obj_remaining,
                          property_path, top_level_obj):
        name = presetarg.get('name', None) if isinstance(presetarg, Mapping) else None
        if name is None:
            raise ValueError(
                "No name given, expected ‘$merge-config: {name: <name>, config: ...}’"
            )
        j0 = _find_named_item('$merge-config', list_result, name, property_path)

        item = dict(list_result[j0])
        item['config'] = configmerger.recursive_assign_defaults_dict(
            [ presetarg.get('config', None) or {}, item.get('config', None) ],
            property_path + [ 'config' ],
            top_level_obj=top_level_obj
        )
        list_result[j0] = item


class PresetRemoveItem:
    def process_list_item(self, configmerger,
                          presetarg, list_result, list_obj, j, list_obj_remaining,
                          property_path, top_level_obj):
        if presetarg is None:
            raise ValueError("No name given, expected ‘$remove-item: <name>’")
        j0 = _find_named_item('$remove-item', list_result, presetarg, property_path)
        del list_result[j0]


class PresetImport:
    default_import_attribute = 'tablespan_default_import_config'

    def fetch_import(self, target, cwd):
        u = urlparse(target)

        if not u.scheme or u.scheme == 'file':
            fname = os.path.join(cwd or '.', u.path)
            logger.debug("$import: reading config file %r", fname)
            with open(fname, encoding='utf-8') as f:
                data = yaml.safe_load(f)
            if isinstance(data, dict):
                data.setdefault('$_cwd', os.path.dirname(fname))
            return data

        if u.scheme == 'pkg':
            modname, *attrnames = u.path.split('/')
            mod = importlib.import_module(modname)
            if len(attrnames) == 0:
                attrnames = [ self.default_import_attribute ]
            try:
                obj = mod
                for attrname in attrnames:
                    obj = getattr(obj, attrname)
            except AttributeError:
                raise ValueError(f"Invalid $import target: ‘{target}’")
            if callable(obj):
                obj = obj()
            return obj

        logger.debug("$import: fetching config from %r", target)
        with urlopen(target) as response:
            # also fine for JSON, which is a subset of YAML 1.2
            return yaml.safe_load( response.read() )

    def process_property(self, configmerger, presetarg, result, obj, remaining_obj_list,
                         property_path, top_level_obj):
        targets = presetarg
        if isinstance(targets, str):
            targets = [ targets ]
        for target in targets:
            target_data = self.fetch_import(target, top_level_obj.get('$_cwd', None))
            # values already in `obj` take precedence over imported ones
            result.update(configmerger.recursive_assign_defaults_dict(
                [ result, obj, target_data ] + remaining_obj_list,
                property_path,
                top_level_obj=top_level_obj
            ))
            logger.debug("Imported config ‘%s’ into ‘%s’", target,
                         ".".join(_fmt_property_path(property_path)))

    def process_list_item(self, configmerger,
                          presetarg, list_result, list_obj, j, list_obj_remaining,
                          property_path, top_level_obj):
        targets = presetarg
        if isinstance(targets, str):
            targets = [ targets ]
        for target in targets:
            target_data = self.fetch_import(target, top_level_obj.get('$_cwd', None))
            if not isinstance(target_data, list):
                target_data = [ target_data ]
            list_result.extend(
                configmerger.recursive_assign_defaults_list(
                    [ target_data ],
                    property_path,
                    top_level_obj=top_level_obj
                )
            )


def get_default_presets():
    return {
        '$defaults': PresetDefaults(),
        '$merge-config': PresetMergeConfig(),
        '$remove-item': PresetRemoveItem(),
        '$import': PresetImport(),
        '$_cwd': PresetKeepMarker('$_cwd'),
    }


def _get_preset_keyvals(d):
    if not isinstance(d, dict):
        return []
    return [(k,v) for (k,v) in d.items() if isinstance(k,str) and k.startswith('$')]

def _fmt_property_path(property_path):
    return [ ('[]' if p is ListProperty else str(p)) for p in property_path ]


class ConfigMerger:
    def __init__(self, presets=None):
        if presets is not None:
            self.presets = dict(presets)
        else:
            self.presets = get_default_presets()

    def recursive_assign_defaults(self, obj_list):
        r"""
        Merge the configuration trees in `obj_list`, earlier ones taking
        precedence.  The trees may be modified ($-preset keys are consumed);
        pass copies if you need to keep them.
        """
        return self.recursive_assign_defaults_dict(obj_list, [])

    def _get_preset(self, presetname, property_path):
        try:
            return self.presets[presetname]
        except KeyError:
            raise ValueError(
                f"Unknown config preset ‘{presetname}’ in "
                f"‘{'.'.join(_fmt_property_path(property_path))}’"
            )

    def recursive_assign_defaults_dict(self, obj_list, property_path, *, top_level_obj=None):

        result = {}

        for j, obj in enumerate(obj_list):
            remaining_obj_list = obj_list[j+1:]

            if obj is None:
                continue

            if not isinstance(obj, Mapping):
                logger.warning(
                    "Incompatible config merge, ignoring value %r for ‘%s’",
                    obj, ".".join(_fmt_property_path(property_path))
                )
                continue

            this_top_level_obj = top_level_obj if top_level_obj is not None else obj

            for presetname, presetarg in _get_preset_keyvals(obj):
                del obj[presetname]
                self._get_preset(presetname, property_path).process_property(
                    self, presetarg, result, obj, remaining_obj_list,
                    property_path,
                    top_level_obj=this_top_level_obj
                )

            for k, value in obj.items():

                if k in result:
                    # a value with higher precedence was already set
                    continue

                if isinstance(value, dict):
                    result[k] = self.recursive_assign_defaults_dict(
                        [ value ] + [
                            (o.get(k, None) if isinstance(o, dict) else None)
                            for o in remaining_obj_list
                        ],
                        property_path + [k],
                        top_level_obj=this_top_level_obj
                    )

                elif isinstance(value, list):
                    result[k] = self.recursive_assign_defaults_list(
                        [ value ] + [
                            (o.get(k, None) if isinstance(o, dict) else None)
                            for o in remaining_obj_list
                        ],
                        property_path + [k],
                        top_level_obj=this_top_level_obj
                    )

                else:
                    result[k] = value

        return result

    def recursive_assign_defaults_list(self, obj_list, property_path, *, top_level_obj=None):

        obj_list = [ o for o in obj_list if o is not None ]

        if len(obj_list) == 0:
            return []

        obj, *remaining_obj_list = obj_list

        if not isinstance(obj, list):
            logger.warning(
                "Incompatible config merge, expected a list for ‘%s’, got %r",
                ".".join(_fmt_property_path(property_path)), obj
            )
            return self.recursive_assign_defaults_list(
                remaining_obj_list, property_path, top_level_obj=top_level_obj
            )

        list_result = []

        for j, item in enumerate(obj):

            this_top_level_obj = top_level_obj if top_level_obj is not None else item

            item_presets = _get_preset_keyvals(item)
            if len(item_presets) > 1:
                raise ValueError(
                    "You cannot specify multiple $<preset> keys in config list items"
                )
            if len(item_presets) == 1:
                presetname, presetarg = item_presets[0]
                self._get_preset(presetname, property_path).process_list_item(
                    self, presetarg, list_result, obj, j, remaining_obj_list,
                    property_path + [ ListProperty ],
                    top_level_obj=this_top_level_obj
                )
                continue

            list_result.append( item )

        return list_result
