import pytest

from soarca.models.variables import Variable, Variables, new_variables


@pytest.fixture
def var1():
    return Variable(type="string", name="var1", value="testing")


def test_new_variables_keys_by_name(var1):
    variables = new_variables(var1)
    assert variables == {"var1": var1}


def test_new_variables_keeps_first_duplicate(var1):
    other = Variable(type="string", name="var1", value="testing2")
    variables = new_variables(var1, other)
    assert variables["var1"].value == var1.value


def test_insert_refuses_duplicate(var1):
    variables = new_variables(var1)
    replacement = Variable(type="string", name="var1", value="testing2")
    assert variables.insert(replacement) is False
    assert variables["var1"] is var1


def test_insert_new(var1):
    variables = Variables()
    assert variables.insert(var1) is True
    assert variables.find("var1") == var1


def test_insert_or_replace(var1):
    variables = Variables()
    assert variables.insert_or_replace(var1) is False
    replacement = Variable(type="string", name="var1", value="testing2")
    assert variables.insert_or_replace(replacement) is True
    assert variables["var1"] == replacement


def test_insert_range_keeps_base(var1):
    base = new_variables(var1)
    extra = Variable(type="string", name="var2", value="x")
    clash = Variable(type="string", name="var1", value="testing2")
    base.insert_range(new_variables(clash, extra))
    assert base["var1"] == var1
    assert base["var2"] == extra


def test_merge_replaces(var1):
    base = new_variables(var1)
    clash = Variable(type="string", name="var1", value="testing2")
    base.merge(new_variables(clash))
    assert base["var1"] == clash


def test_find_missing_returns_none(var1):
    assert new_variables(var1).find("nope") is None


def test_select_ignores_unknown(var1):
    other = Variable(type="string", name="var2", value="y")
    variables = new_variables(var1, other)
    selected = variables.select(["var2", "unknown"])
    assert selected == {"var2": other}
    assert isinstance(selected, Variables)


def test_interpolate_replaces_value_references():
    variable = Variable(type="string", name="__target__", value="10.0.0.1")
    variables = new_variables(variable)
    result = variables.interpolate("ssh __target__:value -l user")
    assert result == f"ssh {variable.value} -l user"


def test_interpolate_leaves_unknown_references():
    variables = new_variables(Variable(type="string", name="__a__", value="x"))
    text = "__b__:value and __a__"
    assert variables.interpolate(text) == text


def test_interpolate_does_not_rescan_replacements():
    a = Variable(type="string", name="__a__", value="__b__:value")
    b = Variable(type="string", name="__b__", value="final")
    variables = new_variables(a, b)
    assert variables.interpolate("__a__:value") == a.value


def test_interpolate_empty_collection():
    assert Variables().interpolate("__a__:value") == "__a__:value"


def test_variable_to_dict_omits_empty_fields():
    assert Variable(type="string").to_dict() == {"type": "string"}


def test_variable_round_trip():
    variable = Variable(
        type="string",
        name="__x__",
        description="d",
        value="v",
        constant=True,
        external=True,
    )
    assert Variable.from_dict(variable.to_dict()) == variable


def test_variables_round_trip(var1):
    variables = new_variables(var1, Variable(type="integer", name="n", value="3"))
    restored = Variables.from_dict(variables.to_dict())
    assert restored == variables
    assert isinstance(restored, Variables)


def test_variables_to_dict_matches_source_shape(var1):
    assert new_variables(var1).to_dict() == {
        "var1": {"type": "string", "name": "var1", "value": "testing"}
    }