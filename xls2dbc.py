"""Convert CAN matrix workbooks into DBC files, per sheet or merged."""
import argparse
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime

import cantools
import pandas as pd

from dbcwriter import serialize
from matrixsheet import MatrixModel, StructuralError, is_blank, model_to_frame, parse_sheet

logger = logging.getLogger(__name__)


def setup_logging():
    logger.setLevel(logging.INFO)
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)


SEPARATE = 'separate'
COMBINED = 'combined'
MODE_ALIASES = {'separately': SEPARATE}

ENCODINGS = {'utf-8': 'utf-8',
             'gbk': 'gbk',
             'gb2312': 'gb2312',
             'windows-1252': 'cp1252'}

TIMESTAMP_FORMAT = '%m-%d-%Y_%H.%M.%S'


@dataclass
class GenerationConfig:
    prefix: str = 'CAN_Msg'
    mode: str = SEPARATE
    value_table: bool = False
    encoding: str = 'utf-8'


def load_workbook(path):
    """Read every sheet of a workbook as a grid of cell values ('' for empty cells)"""
    frames = pd.read_excel(path, sheet_name=None, header=None, dtype=object,
                           keep_default_na=False, engine='openpyxl')
    workbook = {}
    for name, df in frames.items():
        workbook[str(name)] = [['' if is_blank(cell) else cell for cell in row]
                               for row in df.itertuples(index=False, name=None)]
    return workbook


def sheet_names(workbook):
    return list(workbook)


def _get_rows(workbook, sheet_name):
    if sheet_name not in workbook:
        raise StructuralError(f'Sheet {sheet_name} not found')
    return workbook[sheet_name]


def _note(log, line, level=logging.INFO):
    log.append(line)
    logger.log(level, line)


def merge_model(combined, model, sheet_name, log):
    """Add nodes and messages of one sheet, earlier sheets win on duplicate IDs"""
    for node in model.nodes:
        if node not in combined.nodes:
            combined.nodes.append(node)
    seen = {message.id for message in combined.messages}
    for message in model.messages:
        if message.id in seen:
            _note(log, f'Warning: Duplicate Message ID {message.id} in {sheet_name} ignored.',
                  logging.WARNING)
            continue
        seen.add(message.id)
        combined.messages.append(message)


def process(workbook, selected, config, now=None):
    """Generate DBC text for the selected sheets.

    Returns (outputs, log) where outputs is a list of (filename, text) pairs
    and log the status lines in the order they happened.
    """
    mode = MODE_ALIASES.get(config.mode, config.mode)
    if mode not in (SEPARATE, COMBINED):
        raise ValueError(f'Unknown generation mode: {config.mode}')

    timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    outputs = []
    log = []

    if mode == SEPARATE:
        for sheet_name in selected:
            try:
                model = parse_sheet(_get_rows(workbook, sheet_name), sheet_name)
            except StructuralError as e:
                _note(log, f'Error parsing {sheet_name}: {e}', logging.ERROR)
                continue
            db_name = f'{config.prefix}_{sheet_name}_{timestamp}'
            outputs.append((f'{db_name}.dbc', serialize(model, db_name, config.value_table)))
            _note(log, f'Generated {db_name}.dbc from {sheet_name}')
        return outputs, log

    combined = MatrixModel()
    for sheet_name in selected:
        try:
            model = parse_sheet(_get_rows(workbook, sheet_name), sheet_name)
        except StructuralError as e:
            _note(log, f'Skipping {sheet_name} due to error: {e}', logging.WARNING)
            continue
        merge_model(combined, model, sheet_name, log)

    if not combined.messages:
        _note(log, 'No valid data found to combine.', logging.WARNING)
        return outputs, log

    db_name = config.prefix + ''.join(f'_{name}' for name in selected) + f'_{timestamp}'
    outputs.append((f'{db_name}.dbc', serialize(combined, db_name, config.value_table)))
    _note(log, f'Generated Combined DBC: {db_name}.dbc')
    return outputs, log


def encode_text(text, encoding):
    """Encode DBC text for writing, unmappable characters become '?'"""
    try:
        return text.encode(ENCODINGS.get(encoding, encoding), errors='replace'), None
    except LookupError as e:
        return text.encode('utf-8'), f'Encoding to {encoding} failed, falling back to UTF-8. ({e})'


def write_outputs(outputs, directory='.', encoding='utf-8'):
    log = []
    os.makedirs(directory, exist_ok=True)
    for filename, text in outputs:
        data, error = encode_text(text, encoding)
        if error:
            _note(log, error, logging.ERROR)
        with open(os.path.join(directory, filename), 'wb') as f:
            f.write(data)
        _note(log, f'Downloaded {filename} ({encoding})')
    return log


def verify_dbc(text):
    """Load generated text with cantools, returns (ok, message)"""
    try:
        db = cantools.database.load_string(text, database_format='dbc', strict=False)
    except cantools.database.UnsupportedDatabaseFormatError as e:
        return False, f'cantools could not load the DBC: {e}'
    return True, f'cantools loaded {len(db.messages)} messages, {len(db.nodes)} nodes'


def export_models(workbook, selected, path):
    """Write the flat signal table of each parsable sheet to an Excel file"""
    with pd.ExcelWriter(path, engine='openpyxl') as writer:
        for sheet_name in selected:
            try:
                model = parse_sheet(_get_rows(workbook, sheet_name), sheet_name)
            except StructuralError as e:
                logger.warning('Not exported: %s', e)
                continue
            model_to_frame(model).to_excel(writer, sheet_name=sheet_name[:31], index=False)
    logger.info('Flat signal table written to %s', path)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Convert CAN matrix workbooks to DBC files')
    parser.add_argument('workbook', help='Excel file with one CAN matrix per sheet')
    parser.add_argument('-s', '--sheet', action='append', dest='sheets',
                        help='sheet to convert, repeat for several (default: all)')
    parser.add_argument('-p', '--prefix', default='CAN_Msg', help='DBC file name prefix')
    parser.add_argument('--combined', action='store_true',
                        help='merge the selected sheets into a single DBC')
    parser.add_argument('--value-table', action='store_true', help='write VAL_ tables')
    parser.add_argument('-e', '--encoding', default='utf-8', choices=sorted(ENCODINGS),
                        help='charset of the written files')
    parser.add_argument('-o', '--output', default='.', help='output directory')
    parser.add_argument('--verify', action='store_true',
                        help='load every generated file with cantools')
    parser.add_argument('--export', default=None,
                        help='also write the parsed signals to this xlsx file')
    parser.add_argument('--list', action='store_true', help='list sheet names and exit')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging()
    workbook = load_workbook(args.workbook)
    logger.info('File loaded successfully. Found %d sheets.', len(workbook))
    if args.list:
        for name in sheet_names(workbook):
            print(name)
        return 0

    selected = args.sheets or sheet_names(workbook)
    config = GenerationConfig(prefix=args.prefix,
                              mode=COMBINED if args.combined else SEPARATE,
                              value_table=args.value_table,
                              encoding=args.encoding)
    outputs, _ = process(workbook, selected, config)

    if args.verify:
        for filename, text in outputs:
            ok, message = verify_dbc(text)
            logger.log(logging.INFO if ok else logging.ERROR, '%s: %s', filename, message)
    write_outputs(outputs, args.output, config.encoding)
    if args.export:
        export_models(workbook, selected, args.export)
    return 0 if outputs else 1


if __name__ == '__main__':
    sys.exit(main())
