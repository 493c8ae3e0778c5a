#!/usr/bin/env python3

import argparse
import importlib.metadata
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

import requests

import write_prefixes
from bgp_table import DEFAULT_ATTEMPTS, DEFAULT_RETRY_DELAY, DEFAULT_TIMEOUT, BGPTableFetcher
from errors import PrefixFetchError
from prefix_filter import PrefixSet, build_prefix_set
from rir import RIR, ASNResolver, supported_countries

log = logging.getLogger(__name__)

DIST_NAME = 'country-prefixes'

_SHORTCUT_COUNTRIES = ('IR', 'CN', 'RU')


def _fetch_all_asns(resolver: ASNResolver, rirs: dict[str, RIR]) -> dict[str, list[int]]:
    # sequential, the resolver's session stays on a single thread
    return {country: resolver.fetch_asns(rir, country) for country, rir in rirs.items()}


def get_prefixes_for_countries(
    countries: Iterable[str],
    resolver: Optional[ASNResolver] = None,
    fetcher: Optional[BGPTableFetcher] = None,
) -> dict[str, PrefixSet]:
    '''
    Resolve every country's ASNs while the BGP table is fetched once, then
    join each ASN list against that table. Unknown country codes are
    rejected before any network work; any failure aborts the whole request
    '''
    resolver = resolver or ASNResolver()
    fetcher = fetcher or BGPTableFetcher()

    rirs = {country: resolver.lookup(country) for country in countries}

    with ThreadPoolExecutor(max_workers=2) as ex:
        asns_future = ex.submit(_fetch_all_asns, resolver, rirs)
        table_future = ex.submit(fetcher.fetch)

        asns_by_country = asns_future.result()
        table = table_future.result()

    prefix_sets: dict[str, PrefixSet] = {}
    for country, asns in asns_by_country.items():
        prefix_set = prefix_sets[country] = build_prefix_set(table, asns)
        log.info(
            'resolved %s: %d ASNs, %d IPv4 /24 blocks, %d IPv6 prefixes',
            country, len(asns), len(prefix_set.ipv4), len(prefix_set.ipv6),
        )

    return prefix_sets


def get_prefixes_for_country(
    country: str,
    resolver: Optional[ASNResolver] = None,
    fetcher: Optional[BGPTableFetcher] = None,
) -> PrefixSet:
    return get_prefixes_for_countries([country], resolver, fetcher)[country]


def _version() -> str:
    try:
        return importlib.metadata.version(DIST_NAME)
    except importlib.metadata.PackageNotFoundError:
        return 'unknown'


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Fetch the IPv4 /24 blocks and IPv6 prefixes routed by a country\'s ASNs.',
    )
    parser.add_argument('countries', nargs='*', metavar='CC', help='two-letter country codes')
    for cc in _SHORTCUT_COUNTRIES:
        parser.add_argument(
            f'--fetch-{cc.lower()}',
            dest='shortcuts',
            action='append_const',
            const=cc,
            help=f'fetch {cc} prefixes',
        )
    parser.add_argument('-o', '--output-dir', default='.', help='directory for the prefix files (default: .)')
    parser.add_argument('--attempts', type=int, default=DEFAULT_ATTEMPTS, help='BGP table fetch attempts')
    parser.add_argument('--retry-delay', type=float, default=DEFAULT_RETRY_DELAY, help='backoff base in seconds')
    parser.add_argument('--timeout', type=float, default=DEFAULT_TIMEOUT, help='BGP table request timeout in seconds')
    parser.add_argument('--list-countries', action='store_true', help='list supported country codes and exit')
    parser.add_argument('-v', '--verbose', action='store_true', help='enable debug logging')
    parser.add_argument('--version', action='version', version=_version(), help='show version information and exit')

    args = parser.parse_args(argv)
    args.countries = [cc.upper() for cc in args.countries] + (args.shortcuts or [])
    if not args.countries and not args.list_countries:
        parser.error('specify a country code or one of --fetch-ir, --fetch-cn, --fetch-ru')

    return args


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(message)s',
    )

    if args.list_countries:
        for cc in supported_countries():
            print(cc)
        return 0

    # one session per fetch, the two run on separate threads
    resolver = ASNResolver(session=requests.Session())
    fetcher = BGPTableFetcher(
        session=requests.Session(),
        attempts=args.attempts,
        retry_delay=args.retry_delay,
        timeout=args.timeout,
    )

    countries = list(dict.fromkeys(args.countries))
    try:
        prefix_sets = get_prefixes_for_countries(countries, resolver, fetcher)
    except PrefixFetchError as e:
        log.error('fetch failed for %s: %s', ', '.join(countries), e)
        return 1

    for country, prefix_set in prefix_sets.items():
        write_prefixes.save_prefix_set(country, prefix_set, args.output_dir)

    return 0


if __name__ == '__main__':
    sys.exit(main())
