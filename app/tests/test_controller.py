import pytest
from pychip8.controller import KEY_LAYOUT, Keypad


def test_default_layout_is_4x4_block():
    assert "".join(KEY_LAYOUT) == "1234QWERASDFZXCV"


@pytest.mark.parametrize("name, key", [("1", 0x0), ("4", 0x3), ("q", 0x4), ("R", 0x7), ("a", 0x8), ("z", 0xC), ("v", 0xF)])
def test_physical_names_map_to_logical_keys(name, key):
    assert Keypad().logical_key(name) == key


def test_unmapped_key():
    keypad = Keypad()
    assert keypad.logical_key("space") is None
    assert not keypad.handle("space", True)
    assert keypad.pressed_keys() == []


def test_press_and_release():
    keypad = Keypad()
    keypad.handle("w", True)
    keypad.press(0xF)
    assert keypad.is_pressed(0x5)
    assert keypad.pressed_keys() == [0x5, 0xF]
    assert keypad.to_int() == (1 << 5) | (1 << 15)

    keypad.handle("W", False)
    keypad.release(0xF)
    assert keypad.pressed_keys() == []


def test_out_of_range_key_rejected():
    with pytest.raises(ValueError):
        Keypad().press(16)


def test_custom_layout():
    layout = [str(i) for i in range(10)] + list("ABCDEF")
    keypad = Keypad(layout)
    assert keypad.logical_key("a") == 0xA
    assert keypad.logical_key("q") is None


@pytest.mark.parametrize("layout", [list("1234"), list("1234QWERASDFZXCC")])
def test_bad_layouts_rejected(layout):
    with pytest.raises(ValueError):
        Keypad(layout)


def test_reset():
    keypad = Keypad()
    keypad.update({1: True, 2: True})
    keypad.reset()
    assert keypad.pressed_keys() == []
    assert repr(keypad) == "<Keypad held=->"
