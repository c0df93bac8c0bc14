import pytest

from confwire import Container, NotFoundError, ReflectionInvoker, escape


class Alpha: ...


class Beta: ...


PLAIN_VALUES = ["quux", 31, True, None, 1.5, "", "Alpha", ["quux", 31, [11, "a", (22, "b")], {"k": "v"}]]


@pytest.fixture
def container():
    return Container(
        {"Alpha": None, "Beta": None},
        {"foo": "bar", "baz": 42},
        invoker=ReflectionInvoker({"Alpha": Alpha, "Beta": Beta}),
    )


@pytest.mark.parametrize("value", PLAIN_VALUES)
def test_dereference_plain_values_unchanged(container, value):
    assert container.dereference(value) == value


@pytest.mark.parametrize("value", PLAIN_VALUES)
def test_escape_plain_values_unchanged(value):
    assert escape(value) == value


def test_dereference_component_reference(container):
    alpha = container.get_component("Alpha")
    assert container.dereference("@Alpha") is alpha


def test_dereference_escaped_component_reference(container):
    assert container.dereference("@@Alpha") == "@Alpha"


def test_dereference_param_reference(container):
    assert container.dereference("%foo") == "bar"
    assert container.dereference("%baz") == 42


def test_dereference_escaped_param_reference(container):
    assert container.dereference("%%foo") == "%foo"


def test_dereference_missing_param_defaults_to_none(container):
    assert container.dereference("%missing") is None


def test_dereference_missing_param_raises_when_strict():
    c = Container(params={"foo": "bar"}, strict_params=True)
    assert c.dereference("%foo") == "bar"
    with pytest.raises(NotFoundError):
        c.dereference("%missing")


def test_dereference_missing_component_raises(container):
    with pytest.raises(NotFoundError) as ctx:
        container.dereference("@Gamma")
    assert "Component not found in container" in str(ctx.value)


def test_dereference_walks_nested_containers(container):
    value = ["%foo", 31, None, [11, "a", (22, "@Alpha"), 33, "%baz"], {"beta": "@Beta", "raw": "%%baz"}]

    got = container.dereference(value)

    assert got == [
        "bar",
        31,
        None,
        [11, "a", (22, container.get_component("Alpha")), 33, 42],
        {"beta": container.get_component("Beta"), "raw": "%baz"},
    ]
    assert isinstance(got[3][2], tuple)
    assert list(got[4]) == ["beta", "raw"]


def test_escape_doubles_leading_sigil():
    assert escape("@Alpha") == "@@Alpha"
    assert escape("@@Alpha") == "@@@Alpha"
    assert escape("%foo") == "%%foo"
    assert escape("%%foo") == "%%%foo"
    assert escape("a@b") == "a@b"


def test_escape_walks_nested_containers():
    value = ["%foo", 31, [11, (22, "@Alpha"), "%baz"], {"k": "@Beta"}]
    assert escape(value) == ["%%foo", 31, [11, (22, "@@Alpha"), "%%baz"], {"k": "@@Beta"}]


def test_escape_is_available_on_container():
    assert Container.escape("@x") == "@@x"


def test_dereference_restores_escaped_values(container):
    value = ["@Alpha", "%foo", "@@Beta", ["%%baz", 7], {"k": "@x"}]
    assert container.dereference(escape(value)) == value


def test_empty_string_is_never_a_reference(container):
    assert container.dereference("") == ""
    assert escape("") == ""
