import re

from sdborm.orm.sqlparsing import tokenize, ITEM_NAME, write_literal_pattern, select_literal_pattern

ITEM_NAME_PLACEHOLDER = ':' + ITEM_NAME

# '\x1a' has no replacement of its own, so it is dropped, and decode_value()
# has no entry for it. Values containing it do not survive a write.
write_escapes = [
    ('\\', '\\\\'),
    ('\0', '\\0'),
    ('\n', '\\n'),
    ('\r', '\\r'),
    ("'", "\\'"),
    ('"', '\\"'),
    ('\x1a', ''),
    ]

_write_escape_table = str.maketrans(dict(write_escapes))
_decode_map = { escaped[1]: char for char, escaped in write_escapes if escaped }
_decode_re = re.compile(r'\\([%s])' % re.escape(''.join(_decode_map)))

def escape_select_value(value):
    return value.replace("'", "''")

def escape_value(value):
    return value.translate(_write_escape_table)

def decode_value(value):
    "decode_value(escape_value(s)) == s, unless s contains '\\x1a'"
    if '\\' not in value: return value
    return _decode_re.sub(lambda match: _decode_map[match.group(1)], value)

def value_to_str(value):
    if value is None: return ''
    if value is True or value is False: return '1' if value else '0'
    return value if isinstance(value, str) else str(value)

def normalize_placeholder(placeholder):
    return placeholder if placeholder.startswith(':') else ':' + placeholder

placeholder_re_cache = {}

def placeholder_re(placeholder, backslash_escapes=True):
    key = placeholder, backslash_escapes
    regex = placeholder_re_cache.get(key)
    if regex is not None: return regex
    pattern = re.escape(placeholder)
    if placeholder != ITEM_NAME_PLACEHOLDER: pattern += r'(?!\w)'
    literal = write_literal_pattern if backslash_escapes else select_literal_pattern
    regex = placeholder_re_cache[key] = re.compile('(%s)|%s' % (literal, pattern), re.DOTALL)
    return regex

def replace_placeholder(text, placeholder, literal, backslash_escapes=True):
    "Replaces the placeholder outside of quoted literals, previously bound values included"
    regex = placeholder_re(placeholder, backslash_escapes)
    return regex.sub(lambda match: match.group(1) or literal, text)

def find_placeholders(text, backslash_escapes=True):
    result = []
    for token in tokenize(text, backslash_escapes):
        if token.kind == 'PLACEHOLDER' and token.value not in result:
            result.append(token.value)
    return result

def select_predicate(predicate):
    """Rewrites the literals of a write statement condition in the select dialect.

    The inner text of every literal is kept as written, so the condition
    compares against values in the escaped form they are stored in.
    """
    result = []
    pos = 0
    for token in tokenize(predicate):
        if token.kind != 'STRING': continue
        result.append(predicate[pos:token.pos])
        result.append("'%s'" % escape_select_value(token.value))
        pos = token.pos + len(token.text)
    result.append(predicate[pos:])
    return ''.join(result)
