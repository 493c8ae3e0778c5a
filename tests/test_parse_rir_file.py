import pytest
import requests

import parse_rir_file
from errors import TransportError
from fakes import FakeResponse
from parse_rir_file import DelegatedRecord, asn_range, parse_records

DELEGATED = '''\
# comment line
2|ripencc|1700000000|3|19830705|20240101|+0100|version|
ripencc|*|asn|*|3|summary

ripencc|IR|asn|12880|1|20110101|allocated
ripencc|IR|asn|broken
ripencc|IR|ipv4|2.144.0.0|262144|20100101|allocated|abc-123|e-stats
ripencc||asn|64496|1|20240101|available
'''


def test_parse_records_skips_noise():
    records = list(parse_records(DELEGATED.splitlines()))
    assert records == [
        DelegatedRecord('ripencc', 'IR', 'asn', '12880', '1', '20110101', 'allocated'),
        DelegatedRecord('ripencc', 'IR', 'ipv4', '2.144.0.0', '262144', '20100101', 'allocated'),
        DelegatedRecord('ripencc', '', 'asn', '64496', '1', '20240101', 'available'),
    ]


def test_parse_records_is_lazy():
    lines = iter(['ripencc|IR|asn|1|1|20110101|allocated', 'ripencc|IR|asn|2|1|20110101|allocated'])
    records = parse_records(lines)
    assert next(records).start == '1'
    assert next(lines) == 'ripencc|IR|asn|2|1|20110101|allocated'
    assert list(records) == []


@pytest.mark.parametrize('start, value, expected', [
    ('12880', '1', [12880]),
    ('100', '3', [100, 101, 102]),
    ('100', '0', []),
    ('x', '3', []),
    ('100', '', []),
    ('1_000', '1', []),
    (' 12880', '1', []),
    ('12880', '1 ', []),
    ('+12880', '1', []),
    ('-1', '3', []),
    ('\u0661\u0662', '1', []),
])
def test_asn_range(start, value, expected):
    record = DelegatedRecord('ripencc', 'IR', 'asn', start, value, '20110101', 'allocated')
    assert list(asn_range(record)) == expected


def test_iter_response_lines():
    response = FakeResponse(['a|b', 'c|d'])
    assert list(parse_rir_file.iter_response_lines(response)) == ['a|b', 'c|d']


def test_iter_response_lines_read_failure():
    error = requests.exceptions.ChunkedEncodingError('connection broken')
    response = FakeResponse(['ripencc|IR|asn|12880|1|20110101|allocated'], url='https://rir.test/delegated', error=error)
    records = parse_records(parse_rir_file.iter_response_lines(response))

    assert next(records).start == '12880'
    with pytest.raises(TransportError) as excinfo:
        next(records)

    assert excinfo.value.url == 'https://rir.test/delegated'
    assert excinfo.value.cause is error


def test_parse_file(tmp_path):
    path = tmp_path / 'delegated-ripencc-latest'
    path.write_text(DELEGATED)

    asn_records = parse_rir_file.parse_file(str(path), filter_f=lambda record: record.type == 'asn')
    assert [record.start for record in asn_records] == ['12880', '64496']
