"""Tests for the whitelist markup validator."""

import pytest

from uiforge.markup import validate_markup


@pytest.mark.unit
def test_valid_dashboard(dashboard_markup):
    result = validate_markup(dashboard_markup)

    assert result.is_valid
    assert result.to_dict() == {"isValid": True, "componentCheck": True, "propCheck": True, "errors": []}


@pytest.mark.unit
@pytest.mark.parametrize(
    "markup",
    [
        '<Modal id="m" title="Settings" isOpen>Body</Modal>',
        '<Modal id="m" title="Settings" isOpen={false} />',
        '<Button id="b" label="Go" variant={"secondary"} />',
        '<Chart id="c" title="Trend" data={[1, 2.5, -3]} />',
        '<Table id="t" columns={[]} rows={[]} />',
        '<Sidebar id="s" items={["Home", "Reports"]} />',
        '<Input id="i" label="Email" placeholder="you@example.com" />',
        "<>\n  {/* empty */}\n</>",
    ],
)
def test_accepts(markup):
    assert validate_markup(markup).is_valid


@pytest.mark.unit
def test_empty_document_is_rejected():
    result = validate_markup("")
    assert not result.component_check
    assert result.errors == ["No markup element found."]


@pytest.mark.unit
@pytest.mark.parametrize(
    "markup,error",
    [
        ('<DataGrid id="d" />', "Unknown component: DataGrid."),
        ('<UI.Card id="c" title="T" />', "Member or namespaced tags are not allowed: UI.Card."),
        ('<Card id="c" title="T" style={{}} />', "Inline styles are not allowed."),
        ('import x from "y";\n<Card id="c" title="T" />', "External imports are not allowed."),
    ],
)
def test_component_check_failures(markup, error):
    result = validate_markup(markup)

    assert not result.component_check
    assert result.prop_check
    assert error in result.errors


@pytest.mark.unit
@pytest.mark.parametrize(
    "markup,error",
    [
        ('<Card id="c" title="T" header="x" />', 'Unknown prop "header" on Card.'),
        ('<Card id="c" />', 'Missing required prop "title" on Card.'),
        ('<Button id="b" label="Go" variant="danger" />', 'Invalid value for prop "variant" on Button.'),
        ('<Chart id="c" title="T" data={["1"]} />', 'Type mismatch for prop "data" on Chart.'),
        ('<Card id="c" title={label} />', 'Invalid value for prop "title" on Card.'),
        ('<Card id="c" title="T" {...rest} />', "Spread attributes are not allowed on Card."),
        ('<Card id="c" title="T" xlink:href="x" />', "Unsupported attribute syntax in Card."),
        ('<Navbar id="n" title="T">Links</Navbar>', "Navbar does not accept children."),
    ],
)
def test_prop_check_failures(markup, error):
    result = validate_markup(markup)

    assert result.component_check
    assert not result.prop_check
    assert error in result.errors


@pytest.mark.unit
def test_unparseable_fails_both_facets():
    result = validate_markup("<Card id=")

    assert result.unparseable
    assert not result.component_check
    assert not result.prop_check
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Invalid markup: unable to parse (")


@pytest.mark.unit
def test_nested_children_are_checked():
    result = validate_markup('<Card id="c" title="T"><Button id="b" label="Go" /></Card>')
    assert result.errors == ['Missing required prop "variant" on Button.']


@pytest.mark.unit
def test_tags_inside_child_expressions_are_checked():
    result = validate_markup('<Card id="c" title="T">{<Evil onClick={run} style={{}} />}</Card>')

    assert not result.is_valid
    assert not result.component_check
    assert "Unknown component: Evil." in result.errors


@pytest.mark.unit
@pytest.mark.parametrize(
    "markup, error",
    [
        ('<Card id="c" title="T">{<UI.Button />}</Card>', "Member or namespaced tags are not allowed: UI.Button."),
        (
            '<Card id="c" title="T">{<Button id="b" label="Go" variant="primary" style={{}} />}</Card>',
            "Inline styles are not allowed.",
        ),
        ('<Card id="c" title="T">{[<Evil />, "x"]}</Card>', "Unknown component: Evil."),
        ('<Card id="c" title="T">{cond && <Evil />}</Card>', "Markup inside expressions is not allowed."),
        ('<Card id="c" title={<UI.Card />} />', "Member or namespaced tags are not allowed: UI.Card."),
        ('<Card id="c" title={<><Evil /></>} />', "Unknown component: Evil."),
    ],
)
def test_embedded_markup_failures(markup, error):
    result = validate_markup(markup)

    assert not result.component_check
    assert error in result.errors


@pytest.mark.unit
def test_embedded_whitelisted_markup_is_accepted():
    result = validate_markup('<Card id="c" title="T">{<Button id="b" label="Go" variant="primary" />}</Card>')
    assert result.is_valid


@pytest.mark.unit
def test_embedded_markup_props_are_checked():
    result = validate_markup('<Card id="c" title="T">{<Button id="b" label="Go" />}</Card>')

    assert result.component_check
    assert result.errors == ['Missing required prop "variant" on Button.']
