"""Fixed attribute catalog written into every generated DBC file."""

EOL = '\n'

NS_KEYWORDS = (
    'NS_DESC_', 'CM_', 'BA_DEF_', 'BA_', 'VAL_', 'CAT_DEF_', 'CAT_', 'FILTER',
    'BA_DEF_DEF_', 'EV_DATA_', 'ENVVAR_DATA_', 'SGTYPE_', 'SGTYPE_VAL_',
    'BA_DEF_SGTYPE_', 'BA_SGTYPE_', 'SIG_TYPE_REF_', 'VAL_TABLE_', 'SIG_GROUP_',
    'SIG_VALTYPE_', 'SIGTYPE_VALTYPE_', 'BO_TX_BU_', 'BA_DEF_REL_', 'BA_REL_',
    'BA_DEF_DEF_REL_', 'BU_SG_REL_', 'BU_EV_REL_', 'BU_BO_REL_', 'SG_MUL_VAL_',
)

SIG_TYPES = ('Default', 'Range', 'RangeSigned', 'ASCII', 'Discrete', 'Control',
             'ReferencePGN', 'DTC', 'StringDelimiter', 'StringLength',
             'StringLengthControl', 'MessageCounter', 'MessageChecksum')

SIG_SEND_TYPES = ('Cyclic', 'OnWrite', 'OnWriteWithRepetition', 'OnChange',
                  'OnChangeWithRepetition', 'IfActive', 'IfActiveWithRepetition',
                  'NoSigSendType')

MSG_SEND_TYPES = ('Cyclic', 'NotUsed', 'NotUsed', 'NotUsed', 'NotUsed',
                  'NotUsed', 'NotUsed', 'IfActive', 'noMsgSendType')

FRAME_FORMATS = ('StandardCAN', 'ExtendedCAN', 'reserved', 'J1939PG')

# (object type, name, value type, parameters)
ATTRIBUTE_DEFINITIONS = (
    ('', 'BusType', 'STRING', None),
    ('', 'ProtocolType', 'STRING', None),
    ('', 'DBName', 'STRING', None),
    ('', 'Manufacturer', 'STRING', None),

    ('BU_', 'ECU', 'STRING', None),
    ('BU_', 'NmStationAddress', 'INT', (0, 254)),
    ('BU_', 'NmJ1939AAC', 'INT', (0, 1)),
    ('BU_', 'NmJ1939IndustryGroup', 'INT', (0, 7)),
    ('BU_', 'NmJ1939System', 'INT', (0, 127)),
    ('BU_', 'NmJ1939SystemInstance', 'INT', (0, 15)),
    ('BU_', 'NmJ1939Function', 'INT', (0, 255)),
    ('BU_', 'NmJ1939FunctionInstance', 'INT', (0, 7)),
    ('BU_', 'NmJ1939ECUInstance', 'INT', (0, 3)),
    ('BU_', 'NmJ1939ManufacturerCode', 'INT', (0, 2047)),
    ('BU_', 'NmJ1939IdentityNumber', 'INT', (0, 2097151)),

    ('SG_', 'SigType', 'ENUM', SIG_TYPES),
    ('SG_', 'SPN', 'INT', (0, 524287)),
    ('SG_', 'GenSigILSupport', 'ENUM', ('No', 'Yes')),
    ('SG_', 'GenSigSendType', 'ENUM', SIG_SEND_TYPES),
    ('SG_', 'GenSigInactiveValue', 'INT', (0, 1000000)),
    ('SG_', 'GenSigStartValue', 'INT', (0, 65535)),
    ('SG_', 'GenSigEVName', 'STRING', None),

    ('BO_', 'GenMsgILSupport', 'ENUM', ('No', 'Yes')),
    ('BO_', 'GenMsgSendType', 'ENUM', MSG_SEND_TYPES),
    ('BO_', 'GenMsgDelayTime', 'INT', (0, 1000)),
    ('BO_', 'GenMsgStartDelayTime', 'INT', (0, 100000)),
    ('BO_', 'GenMsgFastOnStart', 'INT', (0, 1000000)),
    ('BO_', 'GenMsgNrOfRepetition', 'INT', (0, 1000000)),
    ('BO_', 'GenMsgCycleTime', 'INT', (0, 60000)),
    ('BO_', 'GenMsgCycleTimeFast', 'INT', (0, 1000000)),
    ('BO_', 'GenMsgRequestable', 'INT', (0, 1)),
    ('BO_', 'VFrameFormat', 'ENUM', FRAME_FORMATS),
)

ATTRIBUTE_DEFAULTS = (
    ('BusType', '""'),
    ('ProtocolType', '""'),
    ('DBName', '""'),
    ('Manufacturer', '"Vector"'),
    ('ECU', '""'),
    ('NmStationAddress', '254'),
    ('NmJ1939AAC', '0'),
    ('NmJ1939IndustryGroup', '0'),
    ('NmJ1939System', '0'),
    ('NmJ1939SystemInstance', '0'),
    ('NmJ1939Function', '0'),
    ('NmJ1939FunctionInstance', '0'),
    ('NmJ1939ECUInstance', '0'),
    ('NmJ1939ManufacturerCode', '0'),
    ('NmJ1939IdentityNumber', '0'),
    ('SigType', '"Default"'),
    ('SPN', '0'),
    ('GenSigILSupport', '"Yes"'),
    ('GenSigSendType', '"NoSigSendType"'),
    ('GenSigInactiveValue', '0'),
    ('GenSigStartValue', '0'),
    ('GenSigEVName', '"Env@Nodename_@Signame"'),
    ('GenMsgILSupport', '"Yes"'),
    ('GenMsgSendType', '"noMsgSendType"'),
    ('GenMsgDelayTime', '0'),
    ('GenMsgStartDelayTime', '0'),
    ('GenMsgFastOnStart', '0'),
    ('GenMsgNrOfRepetition', '0'),
    ('GenMsgCycleTime', '0'),
    ('GenMsgCycleTimeFast', '0'),
    ('GenMsgRequestable', '1'),
    ('VFrameFormat', '"ExtendedCAN"'),
)


def _definition_line(object_type, name, value_type, params):
    head = 'BA_DEF_ ' + (object_type + ' ' if object_type else '')
    if params is None:
        tail = ''
    elif value_type == 'ENUM':
        tail = ' ' + ','.join(f'"{value}"' for value in params)
    else:
        tail = ' ' + ' '.join(str(value) for value in params)
    return f'{head}"{name}" {value_type}{tail};'


def _build_header():
    lines = ['VERSION ""', '', '', 'NS_ :']
    lines += ['\t' + keyword for keyword in NS_KEYWORDS]
    lines += ['', 'BS_:', '']
    return EOL.join(lines) + EOL


def _build_definitions():
    lines = [_definition_line(*attr) for attr in ATTRIBUTE_DEFINITIONS]
    lines += [f'BA_DEF_DEF_ "{name}" {value};' for name, value in ATTRIBUTE_DEFAULTS]
    return EOL.join(lines) + EOL


HEADER = _build_header()
DEFINITIONS = _build_definitions()


def global_attributes(db_name):
    """BA_ lines for the network, DBName is the output file's base name"""
    return (f'BA_ "ProtocolType" "";{EOL}'
            f'BA_ "Manufacturer" "ShenyanWu";{EOL}'
            f'BA_ "BusType" "CAN";{EOL}'
            f'BA_ "DBName" "{db_name}";{EOL}')
