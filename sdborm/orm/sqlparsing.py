"""Tokenizer and parsers for the SQL subset understood by sdborm.

Write statements (INSERT, UPDATE, DELETE) are parsed into small typed
objects which the statement executor turns into attribute store calls.
Quoted literals of write statements use backslash escapes, the form produced
by the placeholder binder; the literal text is kept exactly as written.

SELECT statements are parsed into an expression tree only by providers that
evaluate the SimpleDB select dialect themselves (see dbproviders/memory.py).
Literals of select statements escape quotes by doubling them.

Expression tree nodes are tuples:

    ('OR', left, right)              ('AND', left, right)
    ('NOT', expr)
    ('CMP', op, operand, value)      op is one of = != < > <= >=
    ('LIKE', operand, pattern, negated)
    ('IN', operand, values)
    ('BETWEEN', operand, low, high)
    ('NULL', operand, negated)       IS [NOT] NULL

and operands are ('ATTR', name), ('EVERY', name) or ('ITEMNAME',).
"""

import re
from collections import OrderedDict, namedtuple

from sdborm.utils import throw

class ParseFailure(Exception): pass

Token = namedtuple('Token', 'kind value text pos')

ITEM_NAME = 'itemName()'

_common_token_patterns = [
    ('WS', r'\s+'),
    ('PLACEHOLDER', r':itemName\(\)|:\w+'),
    ('ITEMNAME', r'(?i:itemName)\s*\(\s*\)'),
    ('NUMBER', r'\d+(?:\.\d+)?(?:[eE][-+]?\d+)?(?![\w$])'),
    ('IDENT', r'[A-Za-z_$][\w$]*'),
    ('BACKTICK', r'`(?:[^`]|``)*`'),
]

_tail_token_patterns = [
    ('OP', r'!=|<>|<=|>=|=|<|>'),
    ('PUNCT', r'[(),*.;]'),
    ('OTHER', r'\S'),
]

def _compile_token_re(string_patterns):
    patterns = _common_token_patterns + string_patterns + _tail_token_patterns
    return re.compile('|'.join('(?P<%s>%s)' % pair for pair in patterns), re.DOTALL)

write_literal_pattern = r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\""
select_literal_pattern = r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\""

write_token_re = _compile_token_re([
    ('STRING', write_literal_pattern),
    ('BADSTRING', r"['\"]"),
])

select_token_re = _compile_token_re([
    ('STRING', select_literal_pattern),
    ('BADSTRING', r"['\"]"),
])

def tokenize(text, backslash_escapes=True):
    token_re = write_token_re if backslash_escapes else select_token_re
    tokens = []
    pos = 0
    while pos < len(text):
        match = token_re.match(text, pos)
        kind = match.lastgroup
        token_text = match.group()
        if kind == 'BADSTRING':
            throw(ParseFailure, 'Unterminated string literal at position %d in query: %s' % (pos, text))
        if kind == 'STRING':
            quote = token_text[0]
            value = token_text[1:-1]
            if not backslash_escapes: value = value.replace(quote * 2, quote)
            tokens.append(Token(kind, value, token_text, pos))
        elif kind == 'BACKTICK':
            tokens.append(Token('IDENT', token_text[1:-1].replace('``', '`'), token_text, pos))
        elif kind == 'ITEMNAME':
            tokens.append(Token(kind, ITEM_NAME, token_text, pos))
        elif kind == 'PLACEHOLDER':
            tokens.append(Token(kind, token_text[1:], token_text, pos))
        elif kind != 'WS':
            tokens.append(Token(kind, token_text, token_text, pos))
        pos = match.end()
    tokens.append(Token('EOF', None, '', len(text)))
    return tokens

class InsertQuery(object):
    __slots__ = 'domain', 'item_name', 'attributes'
    def __init__(query, domain, item_name, attributes):
        query.domain = domain
        query.item_name = item_name
        query.attributes = attributes
    def __repr__(query):
        return '<InsertQuery %s[%r] %r>' % (query.domain, query.item_name, dict(query.attributes))

class UpdateQuery(object):
    __slots__ = 'domain', 'item_name', 'attributes'
    def __init__(query, domain, item_name, attributes):
        query.domain = domain
        query.item_name = item_name
        query.attributes = attributes
    def __repr__(query):
        return '<UpdateQuery %s[%r] %r>' % (query.domain, query.item_name, dict(query.attributes))

class DeleteQuery(object):
    __slots__ = 'domain', 'item_name', 'predicate'
    def __init__(query, domain, item_name=None, predicate=None):
        query.domain = domain
        query.item_name = item_name
        query.predicate = predicate
    def __repr__(query):
        if query.item_name is not None: return '<DeleteQuery %s[%r]>' % (query.domain, query.item_name)
        return '<DeleteQuery %s WHERE %s>' % (query.domain, query.predicate)

class SelectQuery(object):
    __slots__ = 'output', 'domain', 'where', 'order_by', 'descending', 'limit'
    def __init__(query, output, domain, where=None, order_by=None, descending=False, limit=None):
        query.output = output  # '*', 'itemName()', 'count(*)' or a list of attribute names
        query.domain = domain
        query.where = where
        query.order_by = order_by
        query.descending = descending
        query.limit = limit

class Parser(object):
    def __init__(parser, text, backslash_escapes=True):
        parser.text = text
        parser.tokens = tokenize(text, backslash_escapes)
        parser.pos = 0
    def error(parser, msg):
        token = parser.peek()
        got = 'end of query' if token.kind == 'EOF' else repr(token.text)
        throw(ParseFailure, '%s, got %s at position %d in query: %s' % (msg, got, token.pos, parser.text))
    def peek(parser):
        return parser.tokens[parser.pos]
    def next(parser):
        token = parser.tokens[parser.pos]
        if token.kind != 'EOF': parser.pos += 1
        return token
    def is_keyword(parser, *words):
        token = parser.peek()
        return token.kind == 'IDENT' and token.text.upper() in words
    def accept_keyword(parser, *words):
        if not parser.is_keyword(*words): return None
        return parser.next().text.upper()
    def expect_keyword(parser, word):
        if not parser.is_keyword(word): parser.error('Expected %s' % word)
        return parser.next()
    def accept(parser, kind, text=None):
        token = parser.peek()
        if token.kind != kind or (text is not None and token.text != text): return None
        return parser.next()
    def expect(parser, kind, text=None, msg=None):
        token = parser.accept(kind, text)
        if token is None: parser.error(msg or 'Expected %s' % (text or kind.lower()))
        return token
    def expect_end(parser):
        parser.accept('PUNCT', ';')
        if parser.peek().kind != 'EOF': parser.error('Unexpected trailing text')
    def domain(parser):
        return parser.expect('IDENT', msg='Expected domain name').value
    def field(parser):
        token = parser.peek()
        if token.kind in ('IDENT', 'ITEMNAME'): return parser.next().value
        parser.error('Expected attribute name')
    def literal(parser):
        token = parser.peek()
        if token.kind in ('STRING', 'NUMBER'): return parser.next().value
        if token.kind == 'PLACEHOLDER': parser.error('Placeholder :%s is not bound' % token.value)
        parser.error('Expected quoted value')
    def item_name_equality(parser):
        "Consumes ``itemName() = 'key'`` when it forms the rest of the query"
        start = parser.pos
        if parser.accept('ITEMNAME') and parser.accept('OP', '='):
            token = parser.accept('STRING')
            if token is not None:
                parser.accept('PUNCT', ';')
                if parser.peek().kind == 'EOF': return token.value
        parser.pos = start
        return None

    def parse_insert(parser):
        parser.expect_keyword('INSERT')
        parser.expect_keyword('INTO')
        domain = parser.domain()
        parser.expect('PUNCT', '(')
        fields = [ parser.field() ]
        while parser.accept('PUNCT', ','): fields.append(parser.field())
        parser.expect('PUNCT', ')')
        parser.expect_keyword('VALUES')
        parser.expect('PUNCT', '(')
        values = [ parser.literal() ]
        while parser.accept('PUNCT', ','): values.append(parser.literal())
        parser.expect('PUNCT', ')')
        parser.expect_end()
        if len(fields) != len(values): throw(ParseFailure,
            'INSERT lists %d fields but %d values in query: %s' % (len(fields), len(values), parser.text))
        attributes = OrderedDict(zip(fields, values))
        item_name = attributes.pop(ITEM_NAME, None)
        return InsertQuery(domain, item_name, attributes)

    def parse_update(parser):
        parser.expect_keyword('UPDATE')
        domain = parser.domain()
        parser.expect_keyword('SET')
        attributes = OrderedDict()
        while True:
            if parser.peek().kind == 'ITEMNAME': parser.error('itemName() cannot be changed by UPDATE')
            field = parser.field()
            parser.expect('OP', '=')
            attributes[field] = parser.literal()
            if not parser.accept('PUNCT', ','): break
        parser.expect_keyword('WHERE')
        item_name = parser.item_name_equality()
        if item_name is None: parser.error("UPDATE supports only WHERE itemName() = 'key'")
        return UpdateQuery(domain, item_name, attributes)

    def parse_delete(parser):
        parser.expect_keyword('DELETE')
        parser.expect_keyword('FROM')
        domain = parser.domain()
        if parser.accept('PUNCT', ';') or parser.peek().kind == 'EOF':
            parser.expect_end()
            return DeleteQuery(domain)
        where = parser.expect_keyword('WHERE')
        item_name = parser.item_name_equality()
        if item_name is not None: return DeleteQuery(domain, item_name=item_name)
        predicate = parser.text[where.pos + len(where.text):].strip().rstrip(';').rstrip()
        if not predicate: parser.error('Expected condition after WHERE')
        return DeleteQuery(domain, predicate=predicate)

    def parse_select(parser):
        parser.expect_keyword('SELECT')
        output = parser.output_list()
        parser.expect_keyword('FROM')
        query = SelectQuery(output, parser.domain())
        if parser.accept_keyword('WHERE'): query.where = parser.expr()
        if parser.accept_keyword('ORDER'):
            parser.expect_keyword('BY')
            token = parser.peek()
            if token.kind not in ('IDENT', 'ITEMNAME'): parser.error('Expected sort attribute')
            query.order_by = parser.next().value
            query.descending = parser.accept_keyword('ASC', 'DESC') == 'DESC'
        if parser.accept_keyword('LIMIT'):
            query.limit = int(parser.expect('NUMBER', msg='Expected LIMIT value').value)
        parser.expect_end()
        return query
    def output_list(parser):
        if parser.accept('PUNCT', '*'): return '*'
        if parser.accept('ITEMNAME'): return ITEM_NAME
        if parser.is_keyword('COUNT'):
            parser.next()
            parser.expect('PUNCT', '(')
            parser.expect('PUNCT', '*')
            parser.expect('PUNCT', ')')
            return 'count(*)'
        names = [ parser.expect('IDENT', msg='Expected attribute name').value ]
        while parser.accept('PUNCT', ','):
            names.append(parser.expect('IDENT', msg='Expected attribute name').value)
        return names
    def expr(parser):
        left = parser.and_expr()
        while parser.accept_keyword('OR'):
            left = ('OR', left, parser.and_expr())
        return left
    def and_expr(parser):
        left = parser.not_expr()
        while parser.accept_keyword('AND'):
            left = ('AND', left, parser.not_expr())
        return left
    def not_expr(parser):
        if parser.accept_keyword('NOT'): return ('NOT', parser.not_expr())
        if parser.accept('PUNCT', '('):
            expr = parser.expr()
            parser.expect('PUNCT', ')')
            return expr
        return parser.predicate()
    def operand(parser):
        if parser.accept('ITEMNAME'): return ('ITEMNAME',)
        if parser.is_keyword('EVERY'):
            parser.next()
            parser.expect('PUNCT', '(')
            name = parser.expect('IDENT', msg='Expected attribute name').value
            parser.expect('PUNCT', ')')
            return ('EVERY', name)
        return ('ATTR', parser.expect('IDENT', msg='Expected attribute name').value)
    def predicate(parser):
        operand = parser.operand()
        token = parser.accept('OP')
        if token is not None:
            op = '!=' if token.text == '<>' else token.text
            return ('CMP', op, operand, parser.literal())
        if parser.accept_keyword('IS'):
            negated = parser.accept_keyword('NOT') is not None
            parser.expect_keyword('NULL')
            return ('NULL', operand, negated)
        negated = parser.accept_keyword('NOT') is not None
        if parser.accept_keyword('LIKE'): return ('LIKE', operand, parser.literal(), negated)
        if negated: parser.error('Expected LIKE after NOT')
        if parser.accept_keyword('BETWEEN'):
            low = parser.literal()
            parser.expect_keyword('AND')
            return ('BETWEEN', operand, low, parser.literal())
        if parser.accept_keyword('IN'):
            parser.expect('PUNCT', '(')
            values = [ parser.literal() ]
            while parser.accept('PUNCT', ','): values.append(parser.literal())
            parser.expect('PUNCT', ')')
            return ('IN', operand, values)
        parser.error('Expected comparison')

def parse_insert(sql):
    return Parser(sql).parse_insert()

def parse_update(sql):
    return Parser(sql).parse_update()

def parse_delete(sql):
    return Parser(sql).parse_delete()

def parse_select(sql):
    return Parser(sql, backslash_escapes=False).parse_select()
