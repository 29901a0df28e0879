import pytest

from matrixsheet import COLUMNS

NODES = ['ECU1', 'ECU2', 'ECU3']


def build_row(nodes=NODES, marks=None, **fields):
    marks = marks or {}
    return [fields.get(column, '') for column in COLUMNS] + [marks.get(node, '') for node in nodes]


def build_sheet(data_rows, nodes=NODES):
    header = list(COLUMNS) + list(nodes)
    node_row = [''] * len(COLUMNS) + list(nodes)
    rows = [header, node_row] + list(data_rows)
    while len(rows) < 4:
        rows.append([''] * len(header))
    return rows


@pytest.fixture
def make_row():
    return build_row


@pytest.fixture
def make_sheet():
    return build_sheet
