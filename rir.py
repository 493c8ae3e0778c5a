#!/usr/bin/env python3

import logging
from typing import Iterable, Mapping, NamedTuple, Optional

import requests
from frozendict import frozendict

import parse_rir_file
from errors import TransportError, UnsupportedCountryError
from parse_rir_file import DelegatedRecord

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class RIR(NamedTuple):
    name: str
    url: str


RIPE_NCC = RIR('RIPE NCC', 'https://ftp.ripe.net/ripe/stats/delegated-ripencc-latest')
APNIC = RIR('APNIC', 'https://ftp.apnic.net/stats/apnic/delegated-apnic-latest')
ARIN = RIR('ARIN', 'https://ftp.arin.net/pub/stats/arin/delegated-arin-extended-latest')
LACNIC = RIR('LACNIC', 'https://ftp.lacnic.net/pub/stats/lacnic/delegated-lacnic-latest')
AFRINIC = RIR('AFRINIC', 'https://ftp.afrinic.net/pub/stats/afrinic/delegated-afrinic-latest')

COUNTRY_TO_RIR: Mapping[str, RIR] = frozendict({
    'IR': RIPE_NCC,
    'CN': APNIC,
    'RU': RIPE_NCC,
})

# https://www.iana.org/assignments/as-numbers/as-numbers.xhtml
_RESERVED_ASN_RANGES = (
    (0, 0),
    (64512, 65534),  # private use, 16-bit
    (65535, 65535),
    (4200000000, 4294967294),  # private use, 32-bit
    (4294967295, 4294967295),
)
_PUBLIC_ASN_RANGES = (
    (1, 64511),
    (131072, 4199999999),
)

_UNALLOCATED_STATUSES = frozenset(('reserved', 'available'))


def is_valid_public_asn(asn: int) -> bool:
    if any(low <= asn <= high for low, high in _RESERVED_ASN_RANGES):
        return False

    # 65536-131071 is in neither list and stays rejected
    return any(low <= asn <= high for low, high in _PUBLIC_ASN_RANGES)


def get_rir_for_country(country: str, registries: Mapping[str, RIR] = COUNTRY_TO_RIR) -> RIR:
    try:
        return registries[country]
    except KeyError:
        raise UnsupportedCountryError(country) from None


def supported_countries(registries: Mapping[str, RIR] = COUNTRY_TO_RIR) -> list[str]:
    return sorted(registries)


def extract_asns(records: Iterable[DelegatedRecord], country: str) -> list[int]:
    '''Sorted, distinct public ASNs allocated or assigned to the given country'''
    asns = {
        asn
        for record in records
        if record.type == 'asn' and record.cc == country and record.status not in _UNALLOCATED_STATUSES
        for asn in parse_rir_file.asn_range(record)
        if is_valid_public_asn(asn)
    }
    return sorted(asns)


class ASNResolver(object):
    def __init__(
        self,
        registries: Mapping[str, RIR] = COUNTRY_TO_RIR,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.registries = frozendict(registries)
        self.session = session or requests.Session()
        self.timeout = timeout

    def lookup(self, country: str) -> RIR:
        return get_rir_for_country(country, self.registries)

    def resolve(self, country: str) -> list[int]:
        return self.fetch_asns(self.lookup(country), country)

    def fetch_asns(self, rir: RIR, country: str) -> list[int]:
        log.info('fetching ASNs for %s from %s (%s)', country, rir.name, rir.url)

        asns = extract_asns(self._fetch_records(rir.url), country)

        log.info('found %d ASNs for %s from %s', len(asns), country, rir.name)
        return asns

    def _fetch_records(self, url: str) -> list[DelegatedRecord]:
        # single attempt: a registry failure aborts the whole resolution
        try:
            with self.session.get(url, timeout=self.timeout, stream=True) as response:
                if not response.ok:
                    raise TransportError(url, detail=f'HTTP status {response.status_code}')

                return list(parse_rir_file.parse_records(parse_rir_file.iter_response_lines(response)))
        except requests.RequestException as e:
            raise TransportError(url, e) from e
