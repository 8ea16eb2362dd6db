"""
Filter Predicates

Small predicate objects used to query the record store. A predicate renders
itself as an Airtable formula with every literal escaped, so no caller ever
interpolates user input into a formula string. The same predicate can be
evaluated against a record's fields in process, which keeps client-side
re-checks and test doubles consistent with what the store is asked for.

Example:
    from stockroom.filters import all_of, field_compare, field_equals, field_ref

    predicate = field_equals("SKU", "flt-oil-300")
    predicate.to_formula()   # "{SKU} = 'flt-oil-300'"

    low_stock = field_compare("Quantity", "<=", field_ref("Reorder Point"))
    low_stock.to_formula()   # "{Quantity} <= {Reorder Point}"
"""

import math
import operator
from typing import Any, Dict


class FieldRef:
    """Reference to a column of the record being filtered."""

    def __init__(self, name: str):
        if not name or "{" in name or "}" in name:
            raise ValueError(f"Invalid field name: {name!r}")
        self.name = name

    def to_formula(self) -> str:
        return "{" + self.name + "}"

    def resolve(self, fields: Dict[str, Any]) -> Any:
        return fields.get(self.name)

    def __repr__(self) -> str:
        return f"FieldRef({self.name!r})"


def escape_string(value: str) -> str:
    """Quote a string literal for a formula; backslashes and single quotes are escaped."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def literal_to_formula(value: Any) -> str:
    if value is None:
        return "BLANK()"
    if isinstance(value, bool):
        return "TRUE()" if value else "FALSE()"
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"Non-finite number in filter: {value!r}")
        return repr(value)
    return escape_string(str(value))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_number(value: Any):
    # Blank cells compare as zero, the way the store evaluates them
    if value is None or value == "":
        return 0
    if _is_number(value):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class Predicate:
    def to_formula(self) -> str:
        raise NotImplementedError

    def matches(self, fields: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def __and__(self, other: "Predicate") -> "Predicate":
        return All(self, other)

    def __str__(self) -> str:
        return self.to_formula()


class Compare(Predicate):
    OPERATORS = {
        "=": operator.eq,
        "!=": operator.ne,
        "<": operator.lt,
        "<=": operator.le,
        ">": operator.gt,
        ">=": operator.ge,
    }

    def __init__(self, left: FieldRef, op: str, right: Any):
        if op not in self.OPERATORS:
            raise ValueError(f"Unsupported operator: {op!r}")
        self.left = left
        self.op = op
        self.right = right

    def to_formula(self) -> str:
        if isinstance(self.right, FieldRef):
            right = self.right.to_formula()
        else:
            right = literal_to_formula(self.right)
        return f"{self.left.to_formula()} {self.op} {right}"

    def matches(self, fields: Dict[str, Any]) -> bool:
        left = self.left.resolve(fields)
        right = self.right.resolve(fields) if isinstance(self.right, FieldRef) else self.right
        compare = self.OPERATORS[self.op]

        if self.op in ("=", "!=") and not (_is_number(left) or _is_number(right)):
            return compare("" if left is None else str(left), "" if right is None else str(right))

        left_num = _as_number(left)
        right_num = _as_number(right)
        if left_num is None or right_num is None:
            return False
        return compare(left_num, right_num)


class All(Predicate):
    def __init__(self, *predicates: Predicate):
        if not predicates:
            raise ValueError("All() needs at least one predicate")
        self.predicates = predicates

    def to_formula(self) -> str:
        if len(self.predicates) == 1:
            return self.predicates[0].to_formula()
        return "AND(" + ", ".join(p.to_formula() for p in self.predicates) + ")"

    def matches(self, fields: Dict[str, Any]) -> bool:
        return all(p.matches(fields) for p in self.predicates)


def field_ref(name: str) -> FieldRef:
    return FieldRef(name)


def field_equals(name: str, value: Any) -> Compare:
    return Compare(FieldRef(name), "=", value)


def field_compare(name: str, op: str, value: Any) -> Compare:
    return Compare(FieldRef(name), op, value)


def all_of(*predicates: Predicate) -> All:
    return All(*predicates)
