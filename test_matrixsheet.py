"""Parsing CAN matrix sheets into messages and signals."""
import pytest

from matrixsheet import (NO_NODE, MatrixModel, Message, Signal, StructuralError, cell_text,
                         format_number, model_to_frame, parse_float, parse_int,
                         parse_message_id, parse_sheet)


@pytest.mark.parametrize('cell, expected', [
    ('0x1FF', 511),
    ('511', 511),
    ('0X7ff', 0x7FF),
    (' 256 ', 256),
    (256, 256),
    (256.0, 256),
    ('FF', 255),
    ('1A', 1),
    ('zz', None),
])
def test_parse_message_id(cell, expected):
    assert parse_message_id(cell) == expected


def test_number_helpers():
    assert parse_int('12abc') == 12
    assert parse_int('7.5') == 7
    assert parse_int('0x10') == 16
    assert parse_int('abc') is None
    assert parse_float('0.25V') == 0.25
    assert parse_float('') is None
    assert format_number(7.0) == '7'
    assert format_number(0.1) == '0.1'
    assert format_number(0.00001) == '0.00001'
    assert format_number(1e-07) == '1e-7'
    assert format_number(1e21) == '1e+21'
    assert format_number(-2.5) == '-2.5'
    assert cell_text(100.0) == '100'
    assert cell_text(None) == ''


def test_too_few_rows_rejected(make_row):
    rows = [['h'] * 25, [''] * 25, make_row(MsgID='0x100', MsgName='M', SignalName='S')]
    with pytest.raises(StructuralError, match='too few rows'):
        parse_sheet(rows, 'Short')


def test_too_few_columns_rejected(make_sheet, make_row):
    rows = make_sheet([make_row(MsgID='0x100', MsgName='M', SignalName='S')])
    rows[0] = rows[0][:20]
    with pytest.raises(StructuralError, match='Sheet Narrow has too few columns.'):
        parse_sheet(rows, 'Narrow')


def test_node_names_skip_blank_cells(make_sheet):
    rows = make_sheet([])
    rows[1] = [''] * 22 + ['ECU1', '', 'ECU3', 'ECU1']
    model = parse_sheet(rows, 'Nodes')
    assert model.nodes == ['ECU1', 'ECU3', 'ECU1']
    assert model.messages == []


def test_message_defaults_and_sender(make_sheet, make_row):
    rows = make_sheet([
        make_row(MsgName='EngineData', MsgID='0x100', MsgLength='8',
                 marks={'ECU2': 's', 'ECU3': 'S'}),
    ])
    message = parse_sheet(rows, 'Sheet1').messages[0]
    assert message.id == '256'
    assert message.name == 'EngineData'
    assert message.send_type == 'Cycle'
    assert message.length == 8
    assert message.desc == ''
    assert message.sender == 'ECU2'
    assert message.signals == []


def test_extended_id_gets_flag(make_sheet, make_row):
    rows = make_sheet([make_row(MsgName='Ext', MsgID='0x800')])
    assert parse_sheet(rows, 'Sheet1').messages[0].id == str(0x800 + 0x80000000)


def test_out_of_range_id_dropped(make_sheet, make_row):
    rows = make_sheet([
        make_row(MsgName='TooBig', MsgID='0x20000000', SignalName='Orphan'),
        make_row(MsgName='Bad', MsgID='not an id'),
        make_row(MsgName='Max', MsgID='0x1FFFFFFF'),
    ])
    model = parse_sheet(rows, 'Sheet1')
    assert [message.name for message in model.messages] == ['Max']
    assert model.messages[0].signals == []


def test_signals_attach_to_preceding_message(make_sheet, make_row):
    rows = make_sheet([
        make_row(MsgName='First', MsgID='100', SignalName='A'),
        make_row(SignalName='B'),
        [''] * 25,
        make_row(MsgName='Second', MsgID='200'),
        make_row(SignalName='C'),
        make_row(MsgName='Skipped', MsgID='0x30000000'),
        make_row(SignalName='D'),
    ])
    model = parse_sheet(rows, 'Sheet1')
    assert [[s.name for s in m.signals] for m in model.messages] == [['A', 'B'], ['C', 'D']]


def test_signal_without_message_ignored(make_sheet, make_row):
    rows = make_sheet([make_row(SignalName='Lonely'), make_row(MsgName='M', MsgID='1')])
    model = parse_sheet(rows, 'Sheet1')
    assert len(model.messages) == 1
    assert model.messages[0].signals == []


def test_signal_defaults(make_sheet, make_row):
    rows = make_sheet([make_row(MsgName='M', MsgID='1'), make_row(SignalName='Sig')])
    signal = parse_sheet(rows, 'Sheet1').messages[0].signals[0]
    assert signal == Signal(name='Sig')
    assert signal.byte_order == 'Intel'
    assert signal.send_type == 'Cycle'
    assert signal.factor == 1
    assert signal.offset == 0
    assert signal.init_value == '0'
    assert signal.receiver == NO_NODE


def test_signal_fields(make_sheet, make_row):
    rows = make_sheet([
        make_row(MsgName='M', MsgID='0x10', marks={'ECU1': 'S'}),
        make_row(SignalName='Speed', Comment='Vehicle speed', ValueDesc='0: Stop',
                 ByteOrder='Motorola LSB', StartByte='1', StartBit=8, Length='16',
                 DataType='Unsigned', Factor='0.01', Offset='-40', Min='x', Max=655.35,
                 InitValue='0x0', InvalidValue='0xFFFF', Unit='km/h',
                 marks={'ECU1': 'R', 'ECU2': 'r', 'ECU3': 'R'}),
    ])
    signal = parse_sheet(rows, 'Sheet1').messages[0].signals[0]
    assert signal.byte_order == 'Motorola LSB'
    assert (signal.start_byte, signal.start_bit, signal.length) == (1, 8, 16)
    assert signal.factor == 0.01
    assert signal.offset == -40
    assert signal.phy_min == 0
    assert signal.phy_max == 655.35
    assert signal.init_value == '0x0'
    assert signal.unit == 'km/h'
    # the sender is never a receiver of its own message
    assert signal.receiver == 'ECU2,ECU3'


def test_unparsable_factor_defaults_but_zero_is_kept(make_sheet, make_row):
    rows = make_sheet([
        make_row(MsgName='M', MsgID='1'),
        make_row(SignalName='A', Factor='n/a', StartBit='?'),
        make_row(SignalName='B', Factor=0),
    ])
    a, b = parse_sheet(rows, 'Sheet1').messages[0].signals
    assert (a.factor, a.start_bit) == (1, 0)
    assert b.factor == 0


def test_row_with_message_and_signal(make_sheet, make_row):
    rows = make_sheet([
        make_row(MsgName='Old', MsgID='1', SignalName='X'),
        make_row(MsgName='New', MsgID='2', SignalName='Y', MsgSendType='IfActive'),
    ])
    old, new = parse_sheet(rows, 'Sheet1').messages
    assert [s.name for s in old.signals] == ['X']
    assert [s.name for s in new.signals] == ['Y']
    assert new.send_type == 'IfActive'


def test_duplicate_ids_in_one_sheet_are_kept(make_sheet, make_row):
    rows = make_sheet([make_row(MsgName='A', MsgID='5'), make_row(MsgName='B', MsgID='0x5')])
    assert [m.id for m in parse_sheet(rows, 'Sheet1').messages] == ['5', '5']


def test_model_to_frame():
    message = Message(id='100', name='M', sender='ECU1', cycle_time='10',
                      signals=[Signal(name='A', start_bit=0, length=8),
                               Signal(name='B', start_bit=8, length=4)])
    df = model_to_frame(MatrixModel(nodes=['ECU1'], messages=[message, Message(id='5', name='Empty')]))
    assert list(df['Signal_Name']) == ['A', 'B']
    assert list(df['Message_ID']) == [100, 100]
    assert df.iloc[1]['Bit_Length'] == 4
    assert df.iloc[0]['Receiver'] == NO_NODE
