#!/usr/bin/env python3

import ipaddress
import logging
from typing import Iterable, NamedTuple

from bgp_table import RoutedPrefix
from prefixes import IPVersion, family, sort_prefixes, to_24_blocks

log = logging.getLogger(__name__)


class PrefixSet(NamedTuple):
    ipv4: tuple[ipaddress.IPv4Network, ...] = ()
    ipv6: tuple[ipaddress.IPv6Network, ...] = ()


def filter_by_asn(
    prefixes: Iterable[RoutedPrefix],
    asns: Iterable[int],
) -> tuple[list[ipaddress.IPv4Network], list[ipaddress.IPv6Network]]:
    '''Keep only prefixes originated by the given ASNs, split by address family'''
    asn_set = frozenset(asns)
    v4: list[ipaddress.IPv4Network] = []
    v6: list[ipaddress.IPv6Network] = []

    for prefix in prefixes:
        if prefix.asn not in asn_set:
            continue

        net_family = family(prefix.cidr)
        if net_family == IPVersion.v4:
            v4.append(prefix.cidr)
        elif net_family == IPVersion.v6:
            v6.append(prefix.cidr)

    return v4, v6


def to_ipv4_blocks(nets: Iterable[ipaddress.IPv4Network]) -> list[ipaddress.IPv4Network]:
    blocks = {block for net in nets for block in to_24_blocks(net)}
    return sort_prefixes(blocks)


def dedupe_ipv6(nets: Iterable[ipaddress.IPv6Network]) -> list[ipaddress.IPv6Network]:
    # exact duplicates only, covered prefixes are kept as announced
    return sort_prefixes(set(nets))


def build_prefix_set(prefixes: Iterable[RoutedPrefix], asns: Iterable[int]) -> PrefixSet:
    asns = list(asns)
    if not asns:
        return PrefixSet()

    v4, v6 = filter_by_asn(prefixes, asns)
    log.debug('%d IPv4 and %d IPv6 prefixes matched %d ASNs', len(v4), len(v6), len(asns))

    return PrefixSet(tuple(to_ipv4_blocks(v4)), tuple(dedupe_ipv6(v6)))
