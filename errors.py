#!/usr/bin/env python3

from typing import Optional


class PrefixFetchError(Exception):
    pass


class UnsupportedCountryError(PrefixFetchError):
    def __init__(self, country: str) -> None:
        super().__init__(f'no RIR mapping found for country code: {country}')
        self.country = country


class TransportError(PrefixFetchError):
    '''Registry file could not be fetched or read; never retried'''
    def __init__(self, url: str, cause: Optional[BaseException] = None, detail: str = '') -> None:
        reason = detail or repr(cause)
        super().__init__(f'failed to fetch {url}: {reason}')
        self.url = url
        self.cause = cause


class FetchExhaustedError(PrefixFetchError):
    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f'all {attempts} attempts failed: {last_error}')
        self.attempts = attempts
        self.last_error = last_error


class ConversionError(PrefixFetchError, ValueError):
    pass
