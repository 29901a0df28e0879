"""Read one CAN matrix sheet (a grid of row values) into messages and signals.

Sheet layout, 0-indexed:
    row 0       header, at least 22 columns
    row 1       node names from column 22 on
    rows 2..    data rows, columns 0..21 as in COLUMNS, then one mark cell
                per node ("S" sender / "R" receiver)
"""
import enum
import logging
import math
import numbers
import re
from dataclasses import dataclass, field
from decimal import Decimal

import pandas as pd

logger = logging.getLogger(__name__)

COLUMNS = ('MsgName', 'MsgType', 'MsgID', 'MsgSendType', 'MsgCycleTime',
           'MsgLength', 'SignalName', 'Comment', 'ValueDesc', 'ByteOrder',
           'StartByte', 'StartBit', 'SendType', 'Length', 'DataType', 'Factor',
           'Offset', 'Min', 'Max', 'InitValue', 'InvalidValue', 'Unit')
NODE_COLUMN = len(COLUMNS)  # 22
MIN_ROWS = 4
NODE_ROW = 1
FIRST_DATA_ROW = 2

MAX_EXTENDED_ID = 0x1FFFFFFF
MAX_STANDARD_ID = 0x7FF
EXTENDED_FLAG = 0x80000000
NO_NODE = 'Vector__XXX'

_INT_PREFIX = {10: re.compile(r'[+-]?[0-9]+'),
               16: re.compile(r'[+-]?[0-9a-fA-F]+')}
_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_HEX_DIGITS = re.compile(r'[0-9A-Fa-f]+')
_HEX_PREFIX = re.compile(r'([+-]?)0[xX]')


class StructuralError(ValueError):
    """Sheet cannot be read as a CAN matrix"""


def is_blank(value):
    if isinstance(value, str):
        return value == ''
    return value is None or pd.isna(value)


def format_number(value):
    """Render a number the way spreadsheet tools print it: 7.0 -> '7', 1e-07 -> '1e-7'"""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, numbers.Integral):
        return str(int(value))
    value = float(value)
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    if value == 0:
        return '0'
    if 1e-6 <= abs(value) < 1e21:
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), 'f')
    mantissa, exponent = repr(value).split('e')
    return f'{mantissa}e{int(exponent):+d}'


def cell_text(value):
    if is_blank(value):
        return ''
    if isinstance(value, numbers.Real):
        return format_number(value)
    return str(value)


def parse_int(value, base=10):
    """Leading integer of a cell, None when there is none ("12abc" -> 12)"""
    if isinstance(value, numbers.Real) and not isinstance(value, bool) and base == 10:
        if not math.isfinite(value):
            return None
        return int(value)
    text = cell_text(value).strip()
    if base == 10 and _HEX_PREFIX.match(text):
        base = 16
        text = _HEX_PREFIX.sub(r'\1', text, count=1)
    match = _INT_PREFIX[base].match(text)
    return int(match.group(), base) if match else None


def parse_float(value):
    """Leading float of a cell, None when there is none"""
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return None if math.isnan(value) else value
    match = _FLOAT_PREFIX.match(cell_text(value).strip())
    return float(match.group()) if match else None


def parse_message_id(value):
    text = cell_text(value).strip()
    if text.lower().startswith('0x'):
        return parse_int(text[2:], 16)
    number = parse_int(text)
    if number is None and _HEX_DIGITS.fullmatch(text):
        number = int(text, 16)
    return number


def encode_message_id(number):
    if number > MAX_STANDARD_ID:
        return str(number + EXTENDED_FLAG)
    return str(number)


@dataclass
class Signal:
    name: str
    desc: str = ''
    value_desc: str = ''
    byte_order: str = 'Intel'
    start_byte: int = 0
    start_bit: int = 0
    send_type: str = 'Cycle'
    length: int = 0
    data_type: str = ''
    factor: float = 1
    offset: float = 0
    phy_min: float = 0
    phy_max: float = 0
    init_value: str = '0'
    invalid_value: str = ''
    unit: str = ''
    receiver: str = NO_NODE


@dataclass
class Message:
    id: str
    name: str
    msg_type: str = ''
    send_type: str = 'Cycle'
    cycle_time: str = ''
    length: int = 0
    desc: str = ''
    sender: str = ''
    receiver: str = ''
    signals: list = field(default_factory=list)

    @property
    def frame_id(self):
        return int(self.id)


@dataclass
class MatrixModel:
    nodes: list = field(default_factory=list)
    messages: list = field(default_factory=list)


class ParseState(enum.Enum):
    NO_ACTIVE_MESSAGE = 0
    HAS_ACTIVE_MESSAGE = 1


def _text_or(value, default):
    return default if is_blank(value) else cell_text(value)


def _number_or(value, default, parser=parse_float):
    number = parser(value)
    return default if number is None else number


def _marked(row, nodes, mark):
    for index, node in enumerate(nodes):
        column = NODE_COLUMN + index
        if column < len(row) and cell_text(row[column]).strip().upper() == mark:
            yield node


def read_nodes(rows):
    if len(rows) <= NODE_ROW:
        return []
    return [cell_text(cell) for cell in rows[NODE_ROW][NODE_COLUMN:] if not is_blank(cell)]


def build_message(row, nodes):
    """Message for a row carrying an ID, None if the ID is unusable"""
    fields = dict(zip(COLUMNS, row))
    number = parse_message_id(fields['MsgID'])
    if number is None or number > MAX_EXTENDED_ID:
        return None
    message = Message(
        id=encode_message_id(number),
        name=cell_text(fields['MsgName']),
        msg_type=cell_text(fields['MsgType']),
        send_type=_text_or(fields['MsgSendType'], 'Cycle'),
        cycle_time=cell_text(fields['MsgCycleTime']),
        length=_number_or(fields['MsgLength'], 0, parse_int),
        desc=cell_text(fields['Comment']),
    )
    message.sender = next(_marked(row, nodes, 'S'), '')
    return message


def build_signal(row, nodes, sender):
    fields = dict(zip(COLUMNS, row))
    receivers = [node for node in _marked(row, nodes, 'R') if node != sender]
    return Signal(
        name=cell_text(fields['SignalName']),
        desc=cell_text(fields['Comment']),
        value_desc=cell_text(fields['ValueDesc']),
        byte_order=_text_or(fields['ByteOrder'], 'Intel'),
        start_byte=_number_or(fields['StartByte'], 0, parse_int),
        start_bit=_number_or(fields['StartBit'], 0, parse_int),
        send_type=_text_or(fields['SendType'], 'Cycle'),
        length=_number_or(fields['Length'], 0, parse_int),
        data_type=cell_text(fields['DataType']),
        factor=_number_or(fields['Factor'], 1),
        offset=_number_or(fields['Offset'], 0),
        phy_min=_number_or(fields['Min'], 0),
        phy_max=_number_or(fields['Max'], 0),
        init_value=_text_or(fields['InitValue'], '0'),
        invalid_value=cell_text(fields['InvalidValue']),
        unit=cell_text(fields['Unit']),
        receiver=','.join(receivers) or NO_NODE,
    )


def parse_sheet(rows, sheet_name):
    """Parse a sheet's row grid into a MatrixModel, raises StructuralError"""
    rows = [list(row) for row in rows]
    if len(rows) < MIN_ROWS:
        raise StructuralError(f'Sheet {sheet_name} has too few rows.')
    if len(rows[0]) < NODE_COLUMN:
        raise StructuralError(f'Sheet {sheet_name} has too few columns.')

    model = MatrixModel(nodes=read_nodes(rows))
    state = ParseState.NO_ACTIVE_MESSAGE
    current = None

    for row in rows[FIRST_DATA_ROW:]:
        if all(is_blank(cell) for cell in row):
            continue
        row = row + [''] * (NODE_COLUMN - len(row))

        if not is_blank(row[COLUMNS.index('MsgID')]):
            message = build_message(row, model.nodes)
            if message is not None:
                model.messages.append(message)
                current = len(model.messages) - 1
                state = ParseState.HAS_ACTIVE_MESSAGE

        if not is_blank(row[COLUMNS.index('SignalName')]) and state is ParseState.HAS_ACTIVE_MESSAGE:
            message = model.messages[current]
            message.signals.append(build_signal(row, model.nodes, message.sender))

    logger.debug('%s: %d nodes, %d messages', sheet_name, len(model.nodes), len(model.messages))
    return model


def model_to_frame(model):
    """Flatten a model to one row per signal, message columns repeated"""
    dbc_data = {
        "Message_ID": [],
        "Message_Name": [],
        "Sender": [],
        "Cycle_Time": [],
        "Signal_Name": [],
        "Start_Bit": [],
        "Bit_Length": [],
        "Byte_Order": [],
        "Data_Type": [],
        "Factor": [],
        "Offset": [],
        "Min": [],
        "Max": [],
        "Init_Value": [],
        "Unit": [],
        "Receiver": [],
    }
    for message in model.messages:
        for signal in message.signals:
            dbc_data["Message_ID"].append(message.frame_id)
            dbc_data["Message_Name"].append(message.name)
            dbc_data["Sender"].append(message.sender or NO_NODE)
            dbc_data["Cycle_Time"].append(message.cycle_time)
            dbc_data["Signal_Name"].append(signal.name)
            dbc_data["Start_Bit"].append(signal.start_bit)
            dbc_data["Bit_Length"].append(signal.length)
            dbc_data["Byte_Order"].append(signal.byte_order)
            dbc_data["Data_Type"].append(signal.data_type)
            dbc_data["Factor"].append(signal.factor)
            dbc_data["Offset"].append(signal.offset)
            dbc_data["Min"].append(signal.phy_min)
            dbc_data["Max"].append(signal.phy_max)
            dbc_data["Init_Value"].append(signal.init_value)
            dbc_data["Unit"].append(signal.unit)
            dbc_data["Receiver"].append(signal.receiver)

    return pd.DataFrame(dbc_data)
