import ipaddress

from bgp_table import RoutedPrefix, parse_table
from parse_rir_file import parse_records
from prefix_filter import PrefixSet, build_prefix_set, dedupe_ipv6, filter_by_asn, to_ipv4_blocks
from prefixes import sort_prefixes
from rir import extract_asns

v4 = ipaddress.IPv4Network
v6 = ipaddress.IPv6Network


def _routed(cidr, asn):
    return RoutedPrefix(ipaddress.ip_network(cidr), asn)


def test_filter_by_asn():
    table = [
        _routed('2.144.0.0/14', 12880),
        _routed('8.8.8.0/24', 15169),
        _routed('2a01:5ec0::/29', 58224),
        _routed('5.22.192.0/18', 12880),
    ]
    assert filter_by_asn(table, [12880, 58224]) == (
        [v4('2.144.0.0/14'), v4('5.22.192.0/18')],
        [v6('2a01:5ec0::/29')],
    )
    assert filter_by_asn(table, []) == ([], [])


def test_to_ipv4_blocks_dedupes_overlaps():
    blocks = to_ipv4_blocks([
        v4('10.0.0.0/23'),
        v4('10.0.1.0/24'),
        v4('10.0.1.128/25'),
        v4('10.0.0.0/23'),
        v4('9.255.255.240/28'),
    ])
    assert blocks == [v4('9.255.255.0/24'), v4('10.0.0.0/24'), v4('10.0.1.0/24')]


def test_to_ipv4_blocks_is_idempotent():
    once = to_ipv4_blocks([v4('2.144.0.0/22'), v4('1.1.1.0/24'), v4('1.1.1.7/32')])
    assert to_ipv4_blocks(once) == once


def test_dedupe_ipv6_keeps_native_lengths():
    nets = [v6('2001:db8::/48'), v6('2001:db8::/32'), v6('2001:db8::/48'), v6('2001:db7::/48')]
    assert dedupe_ipv6(nets) == [v6('2001:db8::/32'), v6('2001:db7::/48'), v6('2001:db8::/48')]


def test_build_prefix_set_without_asns():
    assert build_prefix_set([_routed('10.0.0.0/8', 1)], []) == PrefixSet()


def test_end_to_end_example():
    asns = extract_asns(parse_records(['ripencc|IR|asn|12880|1|20110101|allocated']), 'IR')
    table = parse_table([
        '{"CIDR":"2.144.0.0/14","ASN":12880}',
        '{"CIDR":"5.22.192.0/18","ASN":12880}',
    ])

    prefix_set = build_prefix_set(table, asns)

    assert asns == [12880]
    assert len(prefix_set.ipv4) == 1024 + 64
    assert len(set(prefix_set.ipv4)) == len(prefix_set.ipv4)
    assert list(prefix_set.ipv4) == sort_prefixes(prefix_set.ipv4)
    assert prefix_set.ipv4[0] == v4('2.144.0.0/24')
    assert prefix_set.ipv4[1023] == v4('2.147.255.0/24')
    assert prefix_set.ipv4[1024] == v4('5.22.192.0/24')
    assert prefix_set.ipv4[-1] == v4('5.22.255.0/24')
    assert prefix_set.ipv6 == ()


def test_prefix_set_is_sorted_by_family_length_address():
    table = [
        _routed('2001:db8::/48', 1),
        _routed('2001:db8::/32', 1),
        _routed('203.0.113.0/24', 1),
        _routed('198.51.100.0/24', 1),
        _routed('198.51.100.0/24', 2),
    ]
    prefix_set = build_prefix_set(table, [1, 2])

    assert prefix_set.ipv4 == (v4('198.51.100.0/24'), v4('203.0.113.0/24'))
    assert prefix_set.ipv6 == (v6('2001:db8::/32'), v6('2001:db8::/48'))
