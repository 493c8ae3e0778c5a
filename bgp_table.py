#!/usr/bin/env python3

import json
import logging
import time
from typing import Any, Callable, Generator, Iterable, NamedTuple, Optional, TypeVar

import requests

from errors import ConversionError, FetchExhaustedError
from prefixes import Network, parse_prefix

log = logging.getLogger(__name__)

BGP_TABLE_URL = 'https://bgp.tools/table.jsonl'
USER_AGENT = 'compassvpn-prefix-fetcher bgp.tools'

DEFAULT_ATTEMPTS = 4
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_TIMEOUT = 30.0

T = TypeVar('T')


class RoutedPrefix(NamedTuple):
    cidr: Network
    asn: int


def parse_entry(line: str) -> RoutedPrefix:
    entry: Any = json.loads(line)
    if not isinstance(entry, dict):
        raise ValueError(f'expected a JSON object, got {entry!r}')

    asn = entry['ASN']
    # bool is an int subclass, but never a valid ASN
    if not isinstance(asn, int) or isinstance(asn, bool):
        raise ValueError(f'invalid ASN {asn!r}')

    return RoutedPrefix(parse_prefix(entry['CIDR']), asn)


def parse_table(lines: Iterable[str]) -> Generator[RoutedPrefix, None, None]:
    '''Lazily decode a newline-delimited JSON table, skipping lines that do not decode'''
    for line in lines:
        if not line.strip():
            continue

        try:
            yield parse_entry(line)
        except (ValueError, KeyError, ConversionError) as e:
            log.debug('skipping invalid table line %r: %s', line, e)


def fetch_table(session: requests.Session, url: str = BGP_TABLE_URL, timeout: float = DEFAULT_TIMEOUT) -> list[RoutedPrefix]:
    with session.get(url, headers={'User-Agent': USER_AGENT}, timeout=timeout, stream=True) as response:
        response.raise_for_status()
        # materialized here so that a failed read never leaks a partial table
        return list(parse_table(
            raw_line.decode('utf-8', errors='replace') if isinstance(raw_line, bytes) else raw_line
            for raw_line in response.iter_lines()
        ))


def fetch_with_retry(
    fetch: Callable[[], T],
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float = DEFAULT_RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    '''
    Call fetch until it succeeds, at most `attempts` times. Failed attempt n
    is followed by a wait of n * delay (linear backoff)
    '''
    if attempts < 1:
        raise ValueError(f'{attempts=} must be at least 1')

    last_error: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        try:
            return fetch()
        except requests.RequestException as e:
            last_error = e

        if attempt < attempts:
            wait = attempt * delay
            log.warning('fetch attempt %d/%d failed, retrying in %.1fs: %s', attempt, attempts, wait, last_error)
            sleep(wait)

    assert last_error is not None
    raise FetchExhaustedError(attempts, last_error) from last_error


class BGPTableFetcher(object):
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        url: str = BGP_TABLE_URL,
        attempts: int = DEFAULT_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session or requests.Session()
        self.url = url
        self.attempts = attempts
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.sleep = sleep

    def fetch(self) -> list[RoutedPrefix]:
        log.info('fetching BGP table from %s', self.url)
        table = fetch_with_retry(
            lambda: fetch_table(self.session, self.url, self.timeout),
            attempts=self.attempts,
            delay=self.retry_delay,
            sleep=self.sleep,
        )
        log.info('fetched %d BGP table entries', len(table))
        return table
