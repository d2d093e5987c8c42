"""
simple integer calculator, operator-precedence edition
- whitespace separated tokens: 1 + ( 2 * 3 )
- shunting-yard parser instead of recursive descent
- checked 32-bit integer arithmetic

operators:
op      precedence  associativity
^       4           right
* /     3           left
+ -     2           left
%       1           left
"""

from collections import namedtuple
from enum import Enum
import argparse
import sys

from pyecharts import options as opts
from pyecharts.charts import Tree

LOCAL_ECHARTS = False
_SHOULD_LOG_STACK = False

INT_MIN = -2 ** 31
INT_MAX = 2 ** 31 - 1

PROMPT = '>>> '

###############################################################################
#                                                                             #
#   ERROR MESSAGE                                                             #
#                                                                             #
###############################################################################

Position = namedtuple('Position', ['line', 'col'])


class ErrorCode(Enum):
    # parser, invalid syntax
    UNKNOWN_SYMBOL      = 'Unknown symbol'
    MISSING_LPAREN      = 'Missing ('
    MISSING_RPAREN      = 'Missing )'
    GENERAL             = 'Syntax error'
    # interpreter
    DIVISION_BY_ZERO    = 'Division by zero'
    NEGATIVE_EXPONENT   = 'Negative exponent'
    INTEGER_OVERFLOW    = 'Integer overflow'


class ErrorInfo:
    # parser error

    @staticmethod
    def unknown_symbol(item):
        return f'Unknown symbol: {item}'

    @staticmethod
    def mismatched_parentheses():
        return 'Mismatched ( and ).'

    @staticmethod
    def syntax_error():
        return 'Syntax error.'

    # interpreter error

    @staticmethod
    def division_by_zero():
        return 'Cannot divide by zero!'

    @staticmethod
    def negative_exponent():
        return 'Negative exponent!'

    @staticmethod
    def integer_overflow():
        return 'Integer overflow!'

    # shell

    @staticmethod
    def nested_too_deeply():
        return 'Expression nested too deeply!'


class Error(Exception):
    def __init__(self, code, position, message):
        self.code = code
        self.position = position
        self.message = message

    def __str__(self):
        return f'{self.__class__.__name__}: <{self.position.line}:{self.position.col}>: {self.message}'

    __repr__ = __str__


class ParserError(Error):
    @property
    def is_mismatched_parentheses(self):
        return self.code in (ErrorCode.MISSING_LPAREN, ErrorCode.MISSING_RPAREN)


class InterpreterError(Error):
    pass


###############################################################################
#                                                                             #
#  LEXER                                                                      #
#                                                                             #
###############################################################################

# Token types
class TokenType(Enum):
    # misc
    NUMBER      = 'NUMBER'
    ERROR       = 'ERROR'
    # opt
    POW         = '^'
    PLUS        = '+'
    MINUS       = '-'
    MUL         = '*'
    DIV         = '/'
    MOD         = '%'
    LPAREN      = '('
    RPAREN      = ')'


def _build_symbols():
    tk_list = list(TokenType)
    start_idx = tk_list.index(TokenType.POW)
    end_idx = tk_list.index(TokenType.RPAREN)
    return {
        token_type.value: token_type
        for token_type in tk_list[start_idx: end_idx + 1]
    }


SYMBOLS = _build_symbols()


class Token:
    def __init__(self, token_type, value, position=None, text=None):
        """Token

        Args:
          token_type: TokenType
          value: int for NUMBER, source text otherwise
          position: Position
          text: source chunk, defaults to str(value)
        """
        self.type = token_type
        self.value = value
        self.text = text if text is not None else str(value)
        self.position = position if position is not None else Position(1, 0)

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return (self.type, self.value) == (other.type, other.value)

    def __hash__(self):
        return hash((self.type, self.value))

    def __str__(self):
        return f'Token({self.type.name}, {repr(self.value)}, pos={self.position.line}:{self.position.col})'

    def __repr__(self):
        return self.__str__()


class Lexer:
    def __init__(self, text: str):
        self.text = text

    @staticmethod
    def integer(chunk):
        """parse a signed 32-bit integer, None if chunk is not one
        """
        digits = chunk[1:] if chunk[0] in '+-' else chunk
        if not digits or not (digits.isascii() and digits.isdigit()):
            return None

        value = int(chunk)
        if not INT_MIN <= value <= INT_MAX:
            return None
        return value

    def token(self, chunk, position):
        token_type = SYMBOLS.get(chunk)
        if token_type is not None:
            return Token(token_type, chunk, position)

        value = self.integer(chunk)
        if value is None:
            # deferred, the parser reports it
            return Token(TokenType.ERROR, chunk, position)
        return Token(TokenType.NUMBER, value, position, chunk)

    def lex(self):
        """lexical analyzer

        break the line apart on spaces, classify every chunk. Never raises.
        """
        tokens = []
        col = 0
        for chunk in self.text.split(' '):
            if chunk:
                tokens.append(self.token(chunk, Position(1, col)))
            col += len(chunk) + 1
        return tokens


def lex(line):
    return Lexer(line).lex()


###############################################################################
#                                                                             #
#  AST & PARSER                                                               #
#                                                                             #
###############################################################################

class AST:
    pass


class Num(AST):
    def __init__(self, token: Token):
        self.token = token
        self.value = token.value

    def __str__(self):
        return str(self.value)


class BinOp(AST):
    def __init__(self, left, op: Token, right):
        self.left = left
        self.op = op
        self.token = self.op
        self.right = right

    def __str__(self):
        return f'({self.left} {self.op.value} {self.right})'


class Associativity(Enum):
    LEFT  = 'LEFT'
    RIGHT = 'RIGHT'


OpInfo = namedtuple('OpInfo', ['precedence', 'associativity'])

# ( and ) never enter this table, the parser matches them by type
PRECEDENCE = {
    TokenType.POW:   OpInfo(4, Associativity.RIGHT),
    TokenType.MUL:   OpInfo(3, Associativity.LEFT),
    TokenType.DIV:   OpInfo(3, Associativity.LEFT),
    TokenType.PLUS:  OpInfo(2, Associativity.LEFT),
    TokenType.MINUS: OpInfo(2, Associativity.LEFT),
    TokenType.MOD:   OpInfo(1, Associativity.LEFT),
}


class Stack:
    def __init__(self, name) -> None:
        self.name = name
        self._items = []

    def push(self, item):
        self._items.append(item)

    def pop(self):
        return self._items.pop()

    def peek(self):
        return self._items[-1] if self._items else None

    def is_empty(self):
        return not self._items

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        """top to bottom
        """
        return reversed(self._items)

    def __str__(self) -> str:
        s = ', '.join(str(item) for item in self._items)
        return f'{self.name}: [{s}]'


class Parser:
    def __init__(self, tokens):
        self.tokens = list(tokens)
        self.operators = Stack('OPERATOR STACK')
        self.operands = Stack('OPERAND STACK')

    def error(self, position, code, message):
        raise ParserError(code, position, message)

    def log(self, msg):
        if _SHOULD_LOG_STACK:
            print(msg)

    def end_position(self):
        if not self.tokens:
            return Position(1, 0)
        last = self.tokens[-1].position
        return Position(last.line, last.col + len(self.tokens[-1].text))

    def has_lparen(self):
        return any(token.type == TokenType.LPAREN for token in self.operators)

    def reduce(self, op: Token):
        """pop two operands, push them back as a single BinOp
        """
        if len(self.operands) < 2:
            self.error(op.position, ErrorCode.GENERAL, ErrorInfo.syntax_error())

        right = self.operands.pop()
        left = self.operands.pop()
        self.operands.push(BinOp(left=left, op=op, right=right))

    def operator(self, token: Token):
        """push operator, reducing everything on the stack that binds tighter

        for equal precedence, a left associative operator reduces the top
        first, a right associative one waits.
        """
        precedence, associativity = PRECEDENCE[token.type]

        while not self.operators.is_empty():
            top = self.operators.peek()
            if top.type == TokenType.LPAREN:
                break

            top_precedence = PRECEDENCE[top.type].precedence
            if precedence < top_precedence or (
                    precedence == top_precedence and associativity == Associativity.LEFT):
                self.reduce(self.operators.pop())
            else:
                break

        self.operators.push(token)

    def rparen(self, token: Token):
        if not self.has_lparen():
            self.error(token.position, ErrorCode.MISSING_LPAREN, ErrorInfo.mismatched_parentheses())

        while self.operators.peek().type != TokenType.LPAREN:
            self.reduce(self.operators.pop())

        self.operators.pop()    # eat the matching '('

    def parse(self):
        """shunting-yard

        Returns:
          the root AST node
        """
        for token in self.tokens:
            if token.type == TokenType.ERROR:
                self.error(token.position, ErrorCode.UNKNOWN_SYMBOL, ErrorInfo.unknown_symbol(token.value))
            elif token.type == TokenType.NUMBER:
                self.operands.push(Num(token))
            elif token.type == TokenType.LPAREN:
                self.operators.push(token)
            elif token.type == TokenType.RPAREN:
                self.rparen(token)
            else:
                self.operator(token)

            self.log(f'token: {token}')
            self.log(self.operators)
            self.log(self.operands)

        # all tokens have been consumed
        while not self.operators.is_empty():
            op = self.operators.pop()
            if op.type == TokenType.LPAREN:
                self.error(op.position, ErrorCode.MISSING_RPAREN, ErrorInfo.mismatched_parentheses())
            elif op.type == TokenType.RPAREN:
                self.error(op.position, ErrorCode.MISSING_LPAREN, ErrorInfo.mismatched_parentheses())
            self.reduce(op)

        if len(self.operands) != 1:
            self.error(self.end_position(), ErrorCode.GENERAL, ErrorInfo.syntax_error())

        return self.operands.pop()


def parse(tokens):
    return Parser(tokens).parse()


###############################################################################
#                                                                             #
#  INTERPRETER                                                                #
#                                                                             #
###############################################################################

class NodeVisitor:
    def visit(self, node):
        """dispatches
        """
        method_name = 'visit_' + type(node).__name__
        visitor = getattr(self, method_name, self.generic_visitor)
        return visitor(node)

    def generic_visitor(self, node):
        raise Exception(f'No visit_{type(node).__name__} method')


def _truncate_div(left, right):
    quotient = abs(left) // abs(right)
    return -quotient if (left < 0) != (right < 0) else quotient


class Interpreter(NodeVisitor):
    def __init__(self, tree) -> None:
        self.tree = tree

    def error(self, token, code, message):
        raise InterpreterError(code, token.position, message)

    def checked(self, token, value):
        if not INT_MIN <= value <= INT_MAX:
            self.error(token, ErrorCode.INTEGER_OVERFLOW, ErrorInfo.integer_overflow())
        return value

    def power(self, op, base, exponent):
        """exponentiation by squaring
        """
        if exponent < 0:
            self.error(op, ErrorCode.NEGATIVE_EXPONENT, ErrorInfo.negative_exponent())

        result = 1
        while exponent:
            if exponent & 1:
                result = self.checked(op, result * base)
            exponent >>= 1
            if exponent:
                base = self.checked(op, base * base)
        return result

    def visit_BinOp(self, node: BinOp):
        op = node.op

        if op.type in (TokenType.DIV, TokenType.MOD):
            # right side first, a zero divisor skips the left side entirely
            right = self.visit(node.right)
            if right == 0:
                self.error(op, ErrorCode.DIVISION_BY_ZERO, ErrorInfo.division_by_zero())
            left = self.visit(node.left)
            quotient = _truncate_div(left, right)
            if op.type == TokenType.DIV:
                return self.checked(op, quotient)
            # remainder takes the sign of the dividend
            return left - right * quotient

        left = self.visit(node.left)
        right = self.visit(node.right)
        if op.type == TokenType.PLUS:
            return self.checked(op, left + right)
        elif op.type == TokenType.MINUS:
            return self.checked(op, left - right)
        elif op.type == TokenType.MUL:
            return self.checked(op, left * right)
        elif op.type == TokenType.POW:
            return self.power(op, left, right)
        else:
            raise Exception(f'No rule for operator {op}')

    def visit_Num(self, node: Num):
        return node.value

    def interpret(self):
        return self.visit(self.tree)


def evaluate(tree):
    return Interpreter(tree).interpret()


def calculate(line):
    """lex, parse and evaluate a single line

    Raises:
      ParserError, InterpreterError
    """
    return evaluate(parse(lex(line)))


###############################################################################
#                                                                             #
#  DISPLAYER                                                                  #
#                                                                             #
###############################################################################

class Displayer(NodeVisitor):
    def __init__(self, tree) -> None:
        self.tree = tree

    def visit_BinOp(self, node: BinOp):
        data = {
            'name': f'{node.op.value}',
            'children': [self.visit(node.left), self.visit(node.right)]
        }
        return data

    def visit_Num(self, node: Num):
        data = {
            'name': f'{str(node.value)}'
        }
        return data

    def display(self, path='Tree.html'):
        data = self.visit(self.tree)
        (
            Tree(init_opts=opts.InitOpts(page_title='Tree'))
            .add(
                series_name="",         # name
                data=[data],            # data
                initial_tree_depth=-1,  # all expand
                orient="TB",            # top-to-bottom
                label_opts=opts.LabelOpts(
                    position="top",
                    vertical_align="middle",
                ),
            )
            .set_global_opts(title_opts=opts.TitleOpts(title="Tree"))
            .render(path)
        )
        # modify js reference to local
        if LOCAL_ECHARTS:
            with open(path, 'r') as fin:
                content = fin.readlines()
            content = [
                '    <script type="text/javascript" src="echarts.min.js"></script>\n'
                if 'echarts.min.js' in line else line
                for line in content
            ]
            with open(path, 'w') as fout:
                fout.writelines(content)
        return path


###############################################################################
#                                                                             #
#   MAIN                                                                      #
#                                                                             #
###############################################################################

def show(tree):
    """render the tree, a failed render does not stop evaluation
    """
    try:
        path = Displayer(tree).display()
    except OSError as e:
        print(f'Cannot render tree: {e}')
    else:
        print(f'open "{path}"')


def run_line(line, show_ast=False):
    """evaluate one line and print the result or the error message

    Returns:
      True on success
    """
    try:
        tree = parse(lex(line))
        if show_ast:
            show(tree)
        print(evaluate(tree))
    except (ParserError, InterpreterError) as e:
        print(e.message)
        return False
    except RecursionError:
        print(ErrorInfo.nested_too_deeply())
        return False
    return True


def repl(show_ast=False):
    print("Calculator REPL. Type 'quit' or 'exit' to end session.")
    print("Place spaces between all tokens: 1 + ( 2 * 3 )")
    while True:
        try:
            line = input(PROMPT).strip()
        except (EOFError, KeyboardInterrupt):
            break
        if line in ('exit', 'quit'):
            break
        if not line:
            continue

        run_line(line, show_ast)


def main(argv=None):
    global _SHOULD_LOG_STACK

    parser = argparse.ArgumentParser(description='SYCALC - Shunting-Yard Calculator')
    parser.add_argument('-e', '--expr', help='Evaluate a single expression and exit')
    parser.add_argument('--stack', action='store_true', help='Print parser stack information')
    parser.add_argument('--ast', action='store_true', help='Render the expression tree to Tree.html')
    args = parser.parse_args(argv)

    _SHOULD_LOG_STACK = args.stack

    if args.expr is not None:
        return 0 if run_line(args.expr.strip(), args.ast) else 1

    repl(args.ast)
    return 0


if __name__ == '__main__':
    sys.exit(main())
