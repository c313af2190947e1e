import numpy as np
from pychip8.display import Display


def test_dimensions_are_fixed():
    display = Display()
    assert display.shape == (32, 64)
    assert display.Buffer.shape == (32, 64)
    display.draw_sprite(10, 10, [0xFF])
    display.clear()
    assert display.Buffer.shape == (32, 64)


def test_draw_sets_bits_msb_first():
    display = Display()
    collision = display.draw_sprite(0, 0, [0b10100001])
    assert not collision
    assert display.lit_pixels() == [(0, 0), (0, 2), (0, 7)]


def test_xor_twice_restores_and_reports_collision():
    display = Display()
    display.draw_sprite(5, 7, [0xFF, 0x81])
    before = display.copy()

    display.draw_sprite(20, 20, [0x3C])
    after_first = display.copy()
    assert not display.draw_sprite(40, 3, [0x00])

    assert display.draw_sprite(20, 20, [0x3C])
    assert display != after_first
    assert display == before


def test_partial_overlap_collides():
    display = Display()
    display.draw_sprite(0, 0, [0x80])
    assert display.draw_sprite(0, 0, [0xC0])
    assert display.lit_pixels() == [(0, 1)]


def test_clear():
    display = Display()
    display.draw_sprite(0, 0, [0xFF] * 15)
    display.clear()
    assert not display.Buffer.any()
    assert display.lit_pixels() == []


def test_clipping_is_not_wrapping():
    display = Display()
    display.draw_sprite(62, 30, [0xFF, 0xFF, 0xFF])
    assert display.lit_pixels() == [(30, 62), (30, 63), (31, 62), (31, 63)]
    assert not display.Buffer[0].any()
    assert not display.Buffer[:, 0].any()


def test_origin_wraps_before_drawing():
    display = Display()
    display.draw_sprite(64 + 1, 32 + 2, [0x80])
    assert display.lit_pixels() == [(2, 1)]


def test_str_renders_rows():
    display = Display(rows=2, cols=4)
    display.draw_sprite(1, 1, [0x80])
    assert str(display) == "....\n.#.."


def test_copy_is_independent():
    display = Display()
    clone = display.copy()
    clone.draw_sprite(0, 0, [0x80])
    assert not display.Buffer.any()
    assert np.array_equal(clone[0, :1], [True])
