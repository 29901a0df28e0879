"""Start bit and byte order flag resolution."""
import bitlayout


def test_lsb_table_layout():
    assert len(bitlayout.LSB_TABLE) == 64
    assert bitlayout.LSB_TABLE[:8] == (7, 6, 5, 4, 3, 2, 1, 0)
    assert bitlayout.LSB_TABLE[8:16] == (15, 14, 13, 12, 11, 10, 9, 8)


def test_intel_keeps_start_bit():
    assert bitlayout.resolve('Intel', 12, 8) == (12, '1')
    assert bitlayout.resolve('', 3, 1) == (3, '1')
    assert bitlayout.resolve('anything else', 40, 4) == (40, '1')


def test_motorola_msb_keeps_start_bit():
    assert bitlayout.resolve('Motorola MSB', 7, 8) == (7, '0')
    assert bitlayout.resolve('MOTOROLA', 23, 12) == (23, '0')


def test_motorola_lsb_converted_to_msb():
    # one byte signal whose LSB is bit 0
    assert bitlayout.resolve('Motorola LSB', 0, 8) == (7, '0')
    # 16 bit signal, LSB in byte 1 bit 0, MSB in byte 0 bit 7
    assert bitlayout.resolve('motorola_lsb', 8, 16) == (7, '0')
    assert bitlayout.resolve('Motorola LSB', 4, 4) == (7, '0')
    assert bitlayout.resolve('Motorola LSB', 12, 1) == (12, '0')


def test_motorola_lsb_out_of_range_is_left_unchanged():
    assert bitlayout.resolve('Motorola LSB', 7, 8) == (7, '0')
    assert bitlayout.resolve('Motorola LSB', 99, 8) == (99, '0')
