#!/usr/bin/env python3

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Union

from prefix_filter import PrefixSet
from prefixes import Network

log = logging.getLogger(__name__)


def output_paths(country: str, directory: Union[str, Path] = '.') -> tuple[Path, Path]:
    directory = Path(directory)
    country = country.lower()
    return directory / f'{country}_prefixes_v4.txt', directory / f'{country}_prefixes_v6.txt'


def write_prefix_file(path: Path, nets: Iterable[Network]) -> int:
    count = 0
    with open(path, 'w') as fd:
        for net in nets:
            fd.write(f'{net}\n')
            count += 1

    return count


def save_prefix_set(country: str, prefix_set: PrefixSet, directory: Union[str, Path] = '.') -> tuple[Path, Path]:
    v4_path, v6_path = output_paths(country, directory)
    Path(directory).mkdir(parents=True, exist_ok=True)

    # disjoint files, so both can be written at once
    with ThreadPoolExecutor(max_workers=2) as ex:
        v4_future = ex.submit(write_prefix_file, v4_path, prefix_set.ipv4)
        v6_future = ex.submit(write_prefix_file, v6_path, prefix_set.ipv6)

        log.info('IPv4 /24 blocks written to %s (%d entries)', v4_path, v4_future.result())
        log.info('IPv6 prefixes written to %s (%d entries)', v6_path, v6_future.result())

    return v4_path, v6_path
