from layouts import BLANK, DVORAK, QWERTY, THREE_L, Location, Modifier, next_layout, shifted


def test_base_layer_lookup() -> None:
    assert QWERTY.locate("a") == Location(2, 1)
    assert QWERTY.locate("q") == Location(1, 1)
    assert DVORAK.locate("a") == Location(2, 1)
    assert DVORAK.locate("p") == Location(1, 4)


def test_shifted_lookup() -> None:
    assert QWERTY.locate("A") == Location(2, 1, Modifier.SHIFT)
    assert QWERTY.locate("!") == Location(0, 1, Modifier.SHIFT)
    assert QWERTY.locate('"') == Location(2, 11, Modifier.SHIFT)
    assert shifted("-") == "_"
    assert shifted("m") == "M"


def test_three_l_sym_and_cur_layers() -> None:
    assert THREE_L.locate("o") == Location(1, 0)
    assert THREE_L.locate('"') == Location(0, 0, Modifier.SYM)
    assert THREE_L.locate("(") == Location(1, 6, Modifier.SYM)
    assert THREE_L.locate("1") == Location(0, 7, Modifier.CUR)
    assert THREE_L.locate("0") == Location(2, 6, Modifier.CUR)
    assert THREE_L.locate("Q") == Location(0, 0, Modifier.SHIFT)


def test_unknown_and_blank_chars_have_no_location() -> None:
    assert QWERTY.locate("é") is None
    assert QWERTY.locate(BLANK) is None
    assert QWERTY.locate("↩") is None


def test_next_layout_cycles() -> None:
    assert next_layout(QWERTY) is DVORAK
    assert next_layout(DVORAK) is THREE_L
    assert next_layout(THREE_L) is QWERTY
