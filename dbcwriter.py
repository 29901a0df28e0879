"""Serialize a MatrixModel into DBC text.

Section order is fixed: header, BU_, BO_/SG_ blocks, CM_, attribute
definitions and defaults, global BA_, message BA_, signal BA_ and, on
request, VAL_. Messages are sorted by numeric ID and signals by the start bit
given in the sheet, so the output never depends on row order.
"""
import re

import bitlayout
import dbcattrs
from dbcattrs import EOL
from matrixsheet import NO_NODE, MAX_STANDARD_ID, format_number, parse_float, parse_int

_SIGNED_HEX = re.compile(r'-?(0x)?[0-9a-f]+', re.IGNORECASE)
_LINE_BREAK = re.compile(r"\r?\n")
_VALUE_DELIMITERS = (':', '：', '=')


def escape(text):
    return str(text).replace('%', '%%%%')


def _sorted_messages(model):
    return sorted(model.messages, key=lambda message: message.frame_id)


def _sorted_signals(message):
    return sorted(message.signals, key=lambda signal: signal.start_bit)


def signal_line(signal):
    start_bit, flag = bitlayout.resolve(signal.byte_order, signal.start_bit, signal.length)
    sign = '+' if 'unsigned' in signal.data_type.lower() else '-'
    return (f' SG_ {signal.name} : {start_bit}|{signal.length}@{flag}{sign}'
            f' ({format_number(signal.factor)},{format_number(signal.offset)})'
            f' [{format_number(signal.phy_min)}|{format_number(signal.phy_max)}]'
            f' "{escape(signal.unit)}" {signal.receiver or NO_NODE}')


def message_block(message):
    lines = [f'BO_ {message.id} {message.name}: {message.length} {message.sender or NO_NODE}']
    lines += [signal_line(signal) for signal in _sorted_signals(message)]
    return EOL.join(lines) + EOL + EOL


def comment_lines(messages):
    for message in messages:
        if message.desc:
            yield f'CM_ BO_ {message.id} "{escape(message.desc)}";'
        for signal in _sorted_signals(message):
            if signal.desc:
                yield f'CM_ SG_ {message.id} {signal.name} "{escape(signal.desc)}";'


def message_attribute_lines(messages):
    for message in messages:
        if message.frame_id <= MAX_STANDARD_ID:
            yield f'BA_ "VFrameFormat" BO_ {message.id} 0;'

        send_type = message.send_type.lower()
        cycle_time = parse_int(message.cycle_time)
        if send_type == 'ifactive':
            yield f'BA_ "GenMsgSendType" BO_ {message.id} 7;'
        elif send_type == 'cycle' and cycle_time is not None:
            yield f'BA_ "GenMsgCycleTime" BO_ {message.id} {cycle_time};'
            yield f'BA_ "GenMsgSendType" BO_ {message.id} 0;'


def parse_init_value(text):
    """Initial value of a signal, hex digits win over decimal ("10" -> 16)"""
    text = str(text).strip()
    if _SIGNED_HEX.fullmatch(text):
        sign = -1 if text.startswith('-') else 1
        digits = text.lstrip('-').lower()
        if digits.startswith('0x'):
            digits = digits[2:]
        return sign * int(digits, 16)
    return parse_float(text)


def start_value_lines(messages):
    for message in messages:
        for signal in _sorted_signals(message):
            if signal.factor == 0:
                continue
            value = parse_init_value(signal.init_value)
            if value is None:
                continue
            raw = (value - signal.offset) / signal.factor
            yield f'BA_ "GenSigStartValue" SG_ {message.id} {signal.name} {format_number(raw)};'


def parse_value_desc(text):
    """(value, label) pairs of a value description, one per line"""
    pairs = []
    for line in _LINE_BREAK.split(str(text)):
        delimiter = next((d for d in _VALUE_DELIMITERS if d in line), None)
        if delimiter is None:
            continue
        left, _, label = line.partition(delimiter)
        left = left.strip()
        if '0x' in left.lower():
            value = parse_int(left.lower().split('x')[1], 16)
        else:
            value = parse_int(left)
        if value is not None:
            pairs.append((value, label.strip()))
    return pairs


def value_table_lines(messages):
    for message in messages:
        for signal in _sorted_signals(message):
            if not signal.value_desc:
                continue
            pairs = parse_value_desc(signal.value_desc)
            if pairs:
                values = ' '.join(f'{value} "{escape(label)}"' for value, label in pairs)
                yield f'VAL_ {message.id} {signal.name} {values};'


def _section(lines):
    return ''.join(line + EOL for line in lines)


def serialize(model, db_name, value_table=False):
    """Return the DBC text for a model, db_name is used for the DBName attribute"""
    messages = _sorted_messages(model)

    content = dbcattrs.HEADER
    content += 'BU_:' + ''.join(' ' + node for node in model.nodes) + EOL + EOL
    content += ''.join(message_block(message) for message in messages) + EOL
    content += _section(comment_lines(messages)) + EOL
    content += dbcattrs.DEFINITIONS
    content += dbcattrs.global_attributes(db_name)
    content += _section(message_attribute_lines(messages))
    content += _section(start_value_lines(messages))
    if value_table:
        content += EOL + _section(value_table_lines(messages)) + EOL
    return content
