# tests/core/test_state_engine.py
import pytest

from mgmt_shell.core.parsing.engine import (
    ParsingState,
    StateParser,
    content,
    enter,
    error,
    escape_literal,
    leave,
    leave_and_reprocess,
    resolving,
)
from mgmt_shell.core.parsing.errors import ResolutionError, StructuralError, TokenValidationError

# Een kleine, losstaande grammatica om de engine zelf mee te testen.
ROOT = ParsingState("ROOT")
OUTER = ParsingState("OUTER", must_end="Missing closing '}'")
INNER = ParsingState("INNER")
NEST = ParsingState("NEST")

ROOT.on("{", enter(OUTER))
ROOT.on("(", enter(NEST))
ROOT.on("!", error(TokenValidationError, "Unexpected '{char}'"))
ROOT.on("\\", escape_literal)
ROOT.on("$", resolving(content))
OUTER.on("[", enter(INNER))
OUTER.on("}", leave)
INNER.on("}", leave_and_reprocess)
NEST.on("(", enter(NEST))

PARSER = StateParser(ROOT)


class Recorder:
    """Legt alle events van de engine vast, in volgorde."""

    def __init__(self):
        self.events = []

    def entered_state(self, ctx):
        self.events.append(("enter", ctx.state.id, ctx.location))

    def leaving_state(self, ctx):
        self.events.append(("leave", ctx.state.id, ctx.location))

    def character(self, ctx):
        self.events.append(("char", ctx.state.id, ctx.character))

    @property
    def text(self):
        return "".join(e[2] for e in self.events if e[0] == "char")


def test_events_in_order():
    """Test of enter/character/leave in de juiste volgorde worden gevuurd."""
    recorder = Recorder()
    PARSER.parse("a{b}c", recorder)

    assert recorder.events == [
        ("char", "ROOT", "a"),
        ("enter", "OUTER", 1),
        ("char", "OUTER", "b"),
        ("leave", "OUTER", 3),
        ("char", "ROOT", "c"),
    ]


def test_character_is_offered_again_to_the_parent():
    """Eén '}' sluit zowel de binnenste als de buitenste state af."""
    recorder = Recorder()
    PARSER.parse("{[ab}x", recorder)

    assert recorder.events == [
        ("enter", "OUTER", 0),
        ("enter", "INNER", 1),
        ("char", "INNER", "a"),
        ("char", "INNER", "b"),
        ("leave", "INNER", 4),
        ("leave", "OUTER", 4),
        ("char", "ROOT", "x"),
    ]


def test_unterminated_state_fails_in_strict_mode():
    """Een open state met must_end geeft een fout op de plek waar hij begon."""
    recorder = Recorder()
    with pytest.raises(StructuralError) as exc_info:
        PARSER.parse("ab{cd", recorder)

    assert exc_info.value.offset == 2
    assert "Missing closing '}'" in exc_info.value.message
    # De handler heeft alles wat er was toch ontvangen.
    assert ("leave", "OUTER", 5) in recorder.events
    assert recorder.text == "abcd"


def test_unterminated_state_is_tolerated_in_lax_mode():
    """Zonder strict mode blijft de fout bewaard maar wordt hij niet gegooid."""
    recorder = Recorder()
    ctx = PARSER.parse("ab{cd", recorder, strict=False)

    assert isinstance(ctx.error, StructuralError)
    assert ctx.depth == 0
    assert recorder.events[-1] == ("leave", "OUTER", 5)


def test_states_without_must_end_may_stay_open():
    """INNER mag open blijven; alleen OUTER wordt gemeld."""
    with pytest.raises(StructuralError) as exc_info:
        PARSER.parse("{[ab", Recorder())
    assert exc_info.value.offset == 0


def test_error_handler_reports_offset_and_character():
    """Test de 'error' transitie: offset en bericht met het teken."""
    with pytest.raises(TokenValidationError) as exc_info:
        PARSER.parse("ab!c", Recorder())

    assert exc_info.value.offset == 2
    assert exc_info.value.message == "Unexpected '!'"


def test_escaped_character_is_delivered_literally():
    """Een backslash zorgt dat het volgende teken gewoon content is."""
    recorder = Recorder()
    PARSER.parse("a\\{b", recorder)
    assert recorder.text == "a{b"
    assert not any(e[0] == "enter" for e in recorder.events)


def test_escape_at_end_of_input():
    """Een losse backslash aan het eind is alleen in strict mode een fout."""
    with pytest.raises(StructuralError):
        PARSER.parse("ab\\", Recorder())

    ctx = PARSER.parse("ab\\", Recorder(), strict=False)
    assert ctx.error is not None


def test_nesting_is_bounded():
    """Diep geneste input wordt geweigerd in plaats van eindeloos te stapelen."""
    with pytest.raises(StructuralError) as exc_info:
        PARSER.parse("(" * 300, Recorder())
    assert "nested too deeply" in exc_info.value.message


def test_variable_substitution_in_place():
    """Een $variabele wordt vervangen en daarna teken voor teken verwerkt."""
    recorder = Recorder()
    ctx = PARSER.parse("x$name.", recorder, variables={"name": "abc"})

    assert recorder.text == "xabc."
    assert ctx.input == "xabc."
    assert ctx.original_input == "x$name."


def test_error_offset_refers_to_the_typed_line():
    """Na een vervanging wijst de fout-offset nog steeds naar de getypte tekst."""
    with pytest.raises(TokenValidationError) as exc_info:
        PARSER.parse("$name!", Recorder(), variables={"name": "abcdef"})
    # '!' staat op positie 5 in de getypte regel, 6 in de vervangen regel.
    assert exc_info.value.offset == 5


def test_unknown_variable():
    """Onbekende variabele: fout in strict mode, letterlijk doorgeven in lax mode."""
    with pytest.raises(ResolutionError) as exc_info:
        PARSER.parse("a$nope", Recorder(), variables={})
    assert exc_info.value.offset == 1

    recorder = Recorder()
    PARSER.parse("a$nope", recorder, strict=False, variables={})
    assert recorder.text == "a$nope"


def test_double_dollar_is_not_substituted():
    """'$$' blijft staan en beschermt de naam erachter."""
    recorder = Recorder()
    ctx = PARSER.parse("a$$name $$$name", recorder, variables={"name": "abc"})

    assert recorder.text == "a$$name $$abc"
    assert ctx.original_input == "a$$name $$$name"
