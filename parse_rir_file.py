#!/usr/bin/env python3

import json
import logging
from typing import Callable, Generator, Iterable, NamedTuple, Optional

import requests

from errors import TransportError

log = logging.getLogger(__name__)

_HEADER_MARKERS = ('|version|', '|summary|')


class DelegatedRecord(NamedTuple):
    registry: str
    cc: str
    type: str
    start: str
    value: str
    date: str
    status: str


def _is_data_line(line: str) -> bool:
    if not line or line.startswith('#'):
        return False

    return not any(marker in line for marker in _HEADER_MARKERS)


def parse_record(line: str) -> Optional[DelegatedRecord]:
    # extended files carry an opaque-id and extensions past the status field
    fields = line.split('|')
    num_fields = len(DelegatedRecord._fields)
    if len(fields) < num_fields:
        return None

    return DelegatedRecord._make(fields[:num_fields])


def parse_records(lines: Iterable[str]) -> Generator[DelegatedRecord, None, None]:
    '''
    Lazily parse the lines of a delegated file, skipping comments, the
    version/summary header rows and any row too short to be a record
    '''
    for line in lines:
        line = line.strip()
        if not _is_data_line(line):
            continue

        record = parse_record(line)
        if record is None:
            log.debug('skipping malformed delegated line: %r', line)
            continue

        yield record


def iter_response_lines(response: requests.Response) -> Generator[str, None, None]:
    try:
        for raw_line in response.iter_lines():
            yield raw_line.decode('utf-8', errors='replace') if isinstance(raw_line, bytes) else raw_line
    except requests.RequestException as e:
        raise TransportError(response.url, e) from e


def _is_number(field: str) -> bool:
    # plain ASCII digits only, int() would also take '1_000', ' 7' or non-ASCII digits
    return field.isascii() and field.isdigit()


def asn_range(record: DelegatedRecord) -> range:
    if not (_is_number(record.start) and _is_number(record.value)):
        return range(0)

    start = int(record.start)
    return range(start, start + int(record.value))


def parse_file(filename: str, filter_f: Callable[[DelegatedRecord], bool] = lambda record: True) -> list[DelegatedRecord]:
    with open(filename) as fd:
        return [record for record in parse_records(fd) if filter_f(record)]


def main() -> None:
    import sys
    print(json.dumps([record._asdict() for record in parse_file(sys.argv[1])]))


if __name__ == '__main__':
    main()
