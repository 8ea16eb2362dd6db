from __future__ import annotations

import pytest

from stockroom.filters import all_of, escape_string, field_compare, field_equals, field_ref


def test_equality_formula_escapes_quotes():
    predicate = field_equals("SKU", "x' OR '1'='1")

    assert predicate.to_formula() == "{SKU} = 'x\\' OR \\'1\\'=\\'1'"


def test_backslashes_are_escaped_before_quotes():
    assert escape_string("a\\'b") == "'a\\\\\\'b'"


def test_injected_value_matches_only_itself():
    predicate = field_equals("Email", "' OR TRUE() OR '")

    assert not predicate.matches({"Email": "staff@example.com"})
    assert predicate.matches({"Email": "' OR TRUE() OR '"})


def test_field_to_field_comparison():
    predicate = field_compare("Quantity", "<=", field_ref("Reorder Point"))

    assert predicate.to_formula() == "{Quantity} <= {Reorder Point}"
    assert predicate.matches({"Quantity": 10, "Reorder Point": 10})
    assert not predicate.matches({"Quantity": 11, "Reorder Point": 10})
    # blank cells compare as zero
    assert predicate.matches({})


def test_literal_rendering():
    assert field_equals("Active", True).to_formula() == "{Active} = TRUE()"
    assert field_equals("Location ID", None).to_formula() == "{Location ID} = BLANK()"
    assert field_compare("Quantity", ">", 0).to_formula() == "{Quantity} > 0"


def test_all_of_combines_predicates():
    predicate = all_of(field_equals("Transaction Type", "ISSUE"), field_compare("Quantity Change", "<", -5))

    assert predicate.to_formula() == "AND({Transaction Type} = 'ISSUE', {Quantity Change} < -5)"
    assert predicate.matches({"Transaction Type": "ISSUE", "Quantity Change": -10})
    assert not predicate.matches({"Transaction Type": "RECEIVE", "Quantity Change": -10})


def test_and_operator_builds_all():
    predicate = field_equals("SKU", "a") & field_compare("Quantity", ">", 1)

    assert predicate.to_formula() == "AND({SKU} = 'a', {Quantity} > 1)"


@pytest.mark.parametrize("name", ["", "Bad}Name", "{SKU"])
def test_rejects_unsafe_field_names(name):
    with pytest.raises(ValueError):
        field_ref(name)


def test_rejects_unknown_operator_and_non_finite_numbers():
    with pytest.raises(ValueError):
        field_compare("Quantity", "~", 1)
    with pytest.raises(ValueError):
        field_compare("Quantity", ">", float("inf")).to_formula()
