"""Byte order handling for DBC signal start bits."""

INTEL = '1'
MOTOROLA = '0'

# Motorola bit numbering: byte i, bit j (counted from the MSB) -> DBC bit index
LSB_TABLE = tuple(8 * (i + 1) - (j + 1) for i in range(8) for j in range(8))


def resolve(byte_order, start_bit, length):
    """Return (start_bit, byte_order_flag) as written in an SG_ line"""
    order = str(byte_order or '').lower()
    if 'motorola' not in order:
        return start_bit, INTEL
    if 'lsb' not in order:
        # already MSB based
        return start_bit, MOTOROLA

    try:
        index = LSB_TABLE.index(start_bit) + 1 - length
    except ValueError:
        index = -length
    if 0 <= index < len(LSB_TABLE):
        return LSB_TABLE[index], MOTOROLA
    # out of range: start bit is left as given
    return start_bit, MOTOROLA
