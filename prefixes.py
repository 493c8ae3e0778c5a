#!/usr/bin/env python3

import enum
import ipaddress
from typing import Any, Generator, Iterable, Union

from errors import ConversionError

Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

BLOCK_LEN = 24
_BLOCK_SIZE = 1 << (32 - BLOCK_LEN)
_BLOCK_MASK = (0xFFFFFFFF << (32 - BLOCK_LEN)) & 0xFFFFFFFF


class IPVersion(enum.IntEnum):
    v4 = 4
    v6 = 6

    @property
    def max_prefix_len(self) -> int:
        return 32 if self == IPVersion.v4 else 128


def family(net: Network) -> IPVersion:
    return IPVersion(net.version)


def parse_prefix(text: Any) -> Network:
    '''Parse CIDR text, masking off any host bits'''
    if not isinstance(text, str):
        raise ConversionError(f'prefix must be text, got {text!r}')

    try:
        return ipaddress.ip_network(text.strip(), strict=False)
    except ValueError as e:
        raise ConversionError(f'invalid prefix {text!r}') from e


def _require_v4(net: Network) -> ipaddress.IPv4Network:
    if not isinstance(net, ipaddress.IPv4Network):
        raise ConversionError(f'/{BLOCK_LEN} blocks are only defined for IPv4, got {net}')

    return net


def align_to_24(net: ipaddress.IPv4Network) -> ipaddress.IPv4Network:
    '''Map a /24-or-longer prefix onto the /24 that contains it'''
    net = _require_v4(net)
    if net.prefixlen < BLOCK_LEN:
        raise ConversionError(f'{net} is shorter than /{BLOCK_LEN}, split it instead')

    return ipaddress.IPv4Network((int(net.network_address) & _BLOCK_MASK, BLOCK_LEN))


def split_into_24s(net: ipaddress.IPv4Network) -> Generator[ipaddress.IPv4Network, None, None]:
    '''
    Given a prefix shorter than /24, generate the consecutive /24 blocks
    covering exactly that prefix, lowest address first
    '''
    net = _require_v4(net)
    if net.prefixlen >= BLOCK_LEN:
        raise ConversionError(f'{net} is not shorter than /{BLOCK_LEN}, align it instead')

    # plain ints: an IPv4Address would overflow stepping past 255.255.255.0
    current_start = int(net.network_address)
    for _ in range(1 << (BLOCK_LEN - net.prefixlen)):
        yield ipaddress.IPv4Network((current_start, BLOCK_LEN))
        current_start += _BLOCK_SIZE


def to_24_blocks(net: ipaddress.IPv4Network) -> Iterable[ipaddress.IPv4Network]:
    if _require_v4(net).prefixlen >= BLOCK_LEN:
        return (align_to_24(net),)

    return split_into_24s(net)


def prefix_sort_key(net: Network) -> tuple[int, int, int]:
    # address width first, so every IPv4 network sorts before any IPv6 one
    return (net.max_prefixlen, net.prefixlen, int(net.network_address))


def compare(a: Network, b: Network) -> int:
    key_a, key_b = prefix_sort_key(a), prefix_sort_key(b)
    return (key_a > key_b) - (key_a < key_b)


def sort_prefixes(nets: Iterable[Network]) -> list[Network]:
    return sorted(nets, key=prefix_sort_key)
