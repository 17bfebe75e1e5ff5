import re


class abbrev_value_str:
    r"""
    Lazily formats a (possibly nested) config value for log messages,
    truncating long strings and long lists/dicts.
    """
    def __init__(self, value, *, level=0, **options):
        self.value = value
        self.level = level

        self.options = options
        self.maxlevel = options.get('maxlevel', 5)
        self.maxitems = options.get('maxitems', 15)
        self.maxstrlen = options.get('maxstrlen', 80)

    def __str__(self):
        v = self.value

        if isinstance(v, dict):
            if self.level >= self.maxlevel:
                return '{ … }'
            return self._fmt_items(
                [ f"{self._fmt_key(k)}: {self._sub(v2)}" for k, v2 in v.items() ],
                '{', '}'
            )

        if isinstance(v, list):
            if self.level >= self.maxlevel:
                return '[ … ]'
            return self._fmt_items([ self._sub(v2) for v2 in v ], '[', ']')

        if isinstance(v, str) and len(v) > self.maxstrlen:
            return repr(v[:self.maxstrlen] + ' …')

        return repr(v)

    def _sub(self, v):
        return str(abbrev_value_str(v, level=self.level+1, **self.options))

    def _fmt_key(self, key):
        if isinstance(key, str) and re.match('^[a-zA-Z0-9_]+$', key):
            return key
        return repr(key)

    def _fmt_items(self, s_items, opening, closing):
        if len(s_items) > self.maxitems:
            s_items[self.maxitems:] = ['…']
        return opening + ' ' + ', '.join(s_items) + ' ' + closing
