import importlib

import logging
logger = logging.getLogger(__name__)


def import_class(fullname, *, default_classnames=None, default_prefix=None):
    r"""
    Locate and import a class (or any module attribute) given its name.

    A name without a dot is looked up as a module under `default_prefix` and
    then as a top-level module, in which each of `default_classnames` is
    tried in turn.  A dotted name is first tried as a module (with the
    default class names) and then as ``module.ClassName``.

    Returns a tuple ``(module, classobj)``.  Raises `ValueError` if nothing
    could be found.
    """

    try_modname_classname_list = []

    if '.' not in fullname:
        if not default_classnames:
            raise ValueError(f"Missing class name: ‘{fullname}’")

        if default_prefix is not None:
            for default_classname in default_classnames:
                try_modname_classname_list.append(
                    (f"{default_prefix}.{fullname}", default_classname)
                )

        for default_classname in default_classnames:
            try_modname_classname_list.append( (fullname, default_classname) )

    else:
        modname, classname = fullname.rsplit('.', maxsplit=1)
        for default_classname in (default_classnames or []):
            try_modname_classname_list.append( (fullname, default_classname) )
        try_modname_classname_list.append( (modname, classname) )

    for modname, classname in try_modname_classname_list:
        try:
            mod = importlib.import_module(modname)
        except ModuleNotFoundError as e:
            if e.name == modname or modname.startswith(f"{e.name}."):
                logger.debug(f"Could not find module ‘{modname}’")
                continue
            # the module exists, but one of its own imports is broken
            raise

        classobj = getattr(mod, classname, None)
        if classobj is None:
            logger.debug(f"No class ‘{classname}’ in module ‘{modname}’")
            continue

        logger.debug(f"Found ‘{classname}’ in module ‘{modname}’")
        return mod, classobj

    raise ValueError(f"Failed to locate import ‘{fullname}’")
