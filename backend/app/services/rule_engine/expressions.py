"""Rule expression tree: parsing, caching and evaluation.

Rules are stored as nested JSON objects such as::

    {"and": [{">=": [{"var": "age"}, 19]}, {"in": [{"var": "state"}, ["TX", "OK"]]}]}

They are parsed once into an immutable tree of ``Var``, ``Literal``,
``Comparison``, ``Membership`` and ``Logical`` nodes and evaluated against an
answers mapping. Evaluation never raises for missing answers: a comparison
against a missing or null value is simply false and is reported as a missing
criterion in the evaluation trace.
"""

import json
import operator
import threading
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from app.core.exceptions import RuleEvaluationError

# ==================== Tree Nodes ====================


@dataclass(frozen=True)
class Var:
    """Reference to an answer field; dotted paths reach into nested objects."""

    path: str


@dataclass(frozen=True)
class Literal:
    """Constant value embedded in the rule."""

    value: Any


@dataclass(frozen=True)
class Comparison:
    """Binary comparison between two operands."""

    operator: str
    left: Union[Var, Literal]
    right: Union[Var, Literal]


@dataclass(frozen=True)
class Membership:
    """Test whether an operand is (or is not) one of a fixed set of options."""

    operand: Union[Var, Literal]
    options: Tuple[Any, ...]
    negated: bool = False


@dataclass(frozen=True)
class Logical:
    """AND / OR / NOT over nested expressions."""

    operator: str
    operands: Tuple["Node", ...]


Node = Union[Var, Literal, Comparison, Membership, Logical]

COMPARISON_OPERATORS: Dict[str, str] = {
    "==": "==",
    "===": "==",
    "!=": "!=",
    "!==": "!=",
    ">": ">",
    "<": "<",
    ">=": ">=",
    "<=": "<=",
}

MEMBERSHIP_OPERATORS: Dict[str, bool] = {
    "in": False,
    "not in": True,
    "!in": True,
}

_COMPARATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}

_SCALAR_TYPES = (bool, int, float, str, type(None))


# ==================== Parsing ====================


def parse_expression(raw: Any) -> Node:
    """
    Parse a stored rule expression into an expression tree.

    Args:
        raw: JSON text or an already-decoded JSON value

    Returns:
        Root node of the parsed tree

    Raises:
        RuleEvaluationError: If the text is not valid JSON, an operator is
            unknown, or an operator has the wrong number of arguments
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise RuleEvaluationError("Rule expression is not valid JSON") from exc
    return _parse_node(raw)


def _parse_node(node: Any) -> Node:
    if isinstance(node, Mapping):
        if len(node) != 1:
            raise RuleEvaluationError(
                f"Expression objects must have exactly one operator, found {len(node)}"
            )
        raw_operator, args = next(iter(node.items()))
        key = str(raw_operator).strip().lower()

        if key == "var":
            return _parse_var(args)

        if key in COMPARISON_OPERATORS:
            left, right = _expect_args(raw_operator, args, 2)
            return Comparison(
                operator=COMPARISON_OPERATORS[key],
                left=_parse_operand(left),
                right=_parse_operand(right),
            )

        if key in MEMBERSHIP_OPERATORS:
            operand, options = _expect_args(raw_operator, args, 2)
            if not isinstance(options, list):
                raise RuleEvaluationError(f"'{raw_operator}' needs a list of options")
            for option in options:
                if not isinstance(option, _SCALAR_TYPES):
                    raise RuleEvaluationError(f"'{raw_operator}' options must be plain values")
            return Membership(
                operand=_parse_operand(operand),
                options=tuple(options),
                negated=MEMBERSHIP_OPERATORS[key],
            )

        if key in ("and", "or"):
            if not isinstance(args, list) or not args:
                raise RuleEvaluationError(f"'{raw_operator}' needs at least one argument")
            return Logical(operator=key, operands=tuple(_parse_node(arg) for arg in args))

        if key in ("!", "not"):
            (operand,) = _expect_args(raw_operator, args, 1)
            return Logical(operator="not", operands=(_parse_node(operand),))

        raise RuleEvaluationError(f"Unknown operator '{raw_operator}'")

    if isinstance(node, list):
        raise RuleEvaluationError("A list is not a valid expression")

    if not isinstance(node, _SCALAR_TYPES):
        raise RuleEvaluationError(f"Unsupported literal of type {type(node).__name__}")

    return Literal(node)


def _expect_args(raw_operator: Any, args: Any, count: int) -> List[Any]:
    # Single-argument operators may omit the list wrapper
    if count == 1 and not isinstance(args, list):
        args = [args]
    if not isinstance(args, list) or len(args) != count:
        raise RuleEvaluationError(f"'{raw_operator}' needs exactly {count} argument(s)")
    return args


def _parse_var(args: Any) -> Var:
    if isinstance(args, list):
        if len(args) != 1:
            raise RuleEvaluationError("'var' takes a single field name")
        args = args[0]
    if not isinstance(args, str) or not args.strip():
        raise RuleEvaluationError("'var' needs a non-empty field name")
    return Var(args.strip())


def _parse_operand(operand: Any) -> Union[Var, Literal]:
    node = _parse_node(operand)
    if not isinstance(node, (Var, Literal)):
        raise RuleEvaluationError("Comparison operands must be a field or a plain value")
    return node


def referenced_fields(node: Node) -> Tuple[str, ...]:
    """Return the answer fields a tree reads, in first-seen order."""
    seen: Dict[str, None] = {}

    def walk(current: Node) -> None:
        if isinstance(current, Var):
            seen.setdefault(current.path, None)
        elif isinstance(current, Comparison):
            walk(current.left)
            walk(current.right)
        elif isinstance(current, Membership):
            walk(current.operand)
        elif isinstance(current, Logical):
            for child in current.operands:
                walk(child)

    walk(node)
    return tuple(seen)


# ==================== Parse Cache ====================


class ExpressionCache:
    """
    Parsed-tree cache keyed by rule id and rule set version id.

    A cached tree is only reused while the stored source text is unchanged.
    Parse failures are not cached.
    """

    def __init__(self, max_entries: int = 4096):
        self._max_entries = max_entries
        self._entries: Dict[Tuple[str, str], Tuple[str, Node]] = {}
        self._lock = threading.Lock()

    def get_or_parse(self, rule_id: str, rule_set_version_id: str, source: str) -> Node:
        key = (rule_id, rule_set_version_id)
        with self._lock:
            cached = self._entries.get(key)
        if cached is not None and cached[0] == source:
            return cached[1]

        tree = parse_expression(source)
        with self._lock:
            if len(self._entries) >= self._max_entries:
                self._entries.clear()
            self._entries[key] = (source, tree)
        return tree

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


# ==================== Evaluation ====================


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def resolve_answer(answers: Optional[Mapping[str, Any]], path: str) -> Any:
    """
    Look up an answer by field name or dotted path.

    Returns ``MISSING`` when the field is absent or null.
    """
    if not answers:
        return MISSING
    if path in answers:
        value = answers[path]
        return MISSING if value is None else value

    current: Any = answers
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return MISSING
        current = current[part]
    return MISSING if current is None else current


def is_truthy(value: Any) -> bool:
    """Truthiness used for bare fields and literals in a boolean position."""
    if value is MISSING or value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    return True


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a numeric answer to Decimal; booleans and non-finite values give None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        candidate = value if isinstance(value, Decimal) else Decimal(str(value))
    elif isinstance(value, str):
        try:
            candidate = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return candidate if candidate.is_finite() else None


def compare_values(op: str, left: Any, right: Any) -> bool:
    """
    Compare two present values.

    Numbers compare numerically, including a number against a numeric string.
    Booleans only support equality. Strings compare by code point. Any other
    combination is unequal and unordered.
    """
    left_is_number = isinstance(left, (int, float, Decimal)) and not isinstance(left, bool)
    right_is_number = isinstance(right, (int, float, Decimal)) and not isinstance(right, bool)
    if left_is_number or right_is_number:
        left_number, right_number = to_decimal(left), to_decimal(right)
        if left_number is not None and right_number is not None:
            return _COMPARATORS[op](left_number, right_number)
        return op == "!="

    if isinstance(left, bool) and isinstance(right, bool):
        if op in ("==", "!="):
            return _COMPARATORS[op](left, right)
        return False

    if isinstance(left, str) and isinstance(right, str):
        return _COMPARATORS[op](left, right)

    return op == "!="


@dataclass(frozen=True)
class LeafOutcome:
    """
    Outcome of one comparison, membership test or bare field in a tree.

    ``satisfied`` already accounts for enclosing NOT operators: it is True when
    the leaf pushed the rule towards matching.
    """

    criterion_id: str
    satisfied: bool
    missing: bool


@dataclass(frozen=True)
class ExpressionOutcome:
    """Result of evaluating a tree against one answers mapping."""

    matched: bool
    leaves: Tuple[LeafOutcome, ...]
    referenced_fields: Tuple[str, ...]
    used_default: bool


class _TreeEvaluator:
    # Every operand is visited so that each criterion appears in the trace

    def __init__(self, answers: Mapping[str, Any]):
        self.answers = answers
        self.leaves: List[LeafOutcome] = []
        self.used_default = False

    def truth(self, node: Node, negated: bool) -> bool:
        if isinstance(node, Logical):
            if node.operator == "not":
                return not self.truth(node.operands[0], not negated)
            results = [self.truth(child, negated) for child in node.operands]
            return all(results) if node.operator == "and" else any(results)

        if isinstance(node, Comparison):
            left = self.value(node.left)
            right = self.value(node.right)
            missing = left is MISSING or right is MISSING
            result = False if missing else compare_values(node.operator, left, right)
            self.record(node.left, node.right, result, missing, negated)
            return result

        if isinstance(node, Membership):
            value = self.value(node.operand)
            missing = value is MISSING
            if missing:
                result = False
            else:
                found = any(compare_values("==", value, option) for option in node.options)
                result = not found if node.negated else found
            self.record(node.operand, None, result, missing, negated)
            return result

        if isinstance(node, Var):
            value = self.value(node)
            result = is_truthy(value)
            self.record(node, None, result, value is MISSING, negated)
            return result

        if isinstance(node, Literal):
            return is_truthy(node.value)

        raise RuleEvaluationError(f"Unsupported node {type(node).__name__}")

    def value(self, operand: Union[Var, Literal]) -> Any:
        if isinstance(operand, Var):
            return resolve_answer(self.answers, operand.path)
        return MISSING if operand.value is None else operand.value

    def record(self, left, right, result: bool, missing: bool, negated: bool) -> None:
        if missing:
            self.used_default = True
        criterion = None
        for operand in (left, right):
            if isinstance(operand, Var):
                criterion = operand.path
                break
        if criterion is None:
            return
        self.leaves.append(
            LeafOutcome(criterion_id=criterion, satisfied=result != negated, missing=missing)
        )


def evaluate_expression(node: Node, answers: Optional[Mapping[str, Any]]) -> ExpressionOutcome:
    """
    Evaluate a parsed tree against an answers mapping.

    Args:
        node: Root of the parsed expression tree
        answers: Applicant answers keyed by field name

    Returns:
        ExpressionOutcome with the match flag and the per-leaf trace
    """
    evaluator = _TreeEvaluator(answers or {})
    matched = evaluator.truth(node, negated=False)
    return ExpressionOutcome(
        matched=bool(matched),
        leaves=tuple(evaluator.leaves),
        referenced_fields=referenced_fields(node),
        used_default=evaluator.used_default,
    )
