"""
Signed URL utilities for time-limited file access.

A signed URL carries the file path in an obfuscated form, the file
parameters as path segments, and reserved query parameters: the expiration
(hex Unix timestamp), the order of the parameters in the file name, the file
name separator when it is not `_`, and an HMAC signature over everything
before it. URLs expire after the
TTL given at signing time and any change to the signed part invalidates
them. Query parameters appended after the signature are ignored.

Usage:
    from signing.signed_urls import get_file_signer

    signer = get_file_signer()

    # Generate a signed URL
    file = signer.create_file('/2019/11/image.jpg', size='1080x1080')
    signed_url = signer.sign(file, timedelta(days=7))

    # Validate and recover the file from a signed URL
    result = signer.validate(signed_url)
    if result:
        # Access granted
        file_name = result.file
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit, urlunsplit

from django.conf import settings

from .exceptions import EmptyKeyError, FileSignerError, ReservedParameterError
from .files import File
from .parameters import ParameterDict

logger = logging.getLogger(__name__)

ORDER_SEPARATOR = '::'


@dataclass
class SignedFile:
    """Decoded and validated signed URL."""
    file: str
    expiration: int


class SignatureStrategy(ABC):
    """Keyed signature over the signing material of a URL."""

    @abstractmethod
    def sign(self, material: str, key: str) -> str:
        pass

    @abstractmethod
    def verify(self, material: str, key: str, token: str) -> bool:
        pass


class HmacSignature(SignatureStrategy):
    """HMAC signature, hex encoded, compared in constant time."""

    def __init__(self, digestmod=hashlib.sha256):
        self.digestmod = digestmod

    def sign(self, material: str, key: str) -> str:
        return hmac.new(key.encode('utf-8'), material.encode('utf-8'), self.digestmod).hexdigest()

    def verify(self, material: str, key: str, token: str) -> bool:
        return hmac.compare_digest(self.sign(material, key), token)


class UrlSigner:
    """
    Generate and validate signed URLs for files.

    The reserved query parameters are registered in a ParameterDict so their
    aliases can be renamed. Domain checking is off until enable_domain_param()
    is called.
    """

    DEFAULT_QUERY_PARAMS = {
        'parameters': 'op',
        'separator': 'os',
        'expiration': 'oe',
        'signature': 'oh',
    }

    DEFAULT_DOMAIN_PARAM = 'od'

    def __init__(
        self,
        base_url: str,
        signature_key: str,
        strategy: SignatureStrategy = None,
        clock: Callable[[], float] = None,
    ):
        """
        Args:
            base_url: Scheme, host and optional path prefix of signed URLs
            signature_key: Key for the signature. Cannot be empty.
            strategy: Signature algorithm. Defaults to HMAC-SHA256.
            clock: Callable returning the current Unix time in seconds

        Raises:
            EmptyKeyError: If the signature key is empty
        """
        if not signature_key:
            raise EmptyKeyError("The signature key cannot be empty.")

        self.base_url = base_url.strip('/')
        self.signature_key = signature_key
        self.strategy = strategy or HmacSignature()
        self.clock = clock or time.time

        self.query_params = ParameterDict()
        for name, alias in self.DEFAULT_QUERY_PARAMS.items():
            self.query_params.add(name, alias)

    # =========================================================================
    # Configuration
    # =========================================================================

    def change_order_of_parameters_param(self, name: str) -> 'UrlSigner':
        self.query_params.replace_alias('parameters', name)
        return self

    def change_separator_param(self, name: str) -> 'UrlSigner':
        self.query_params.replace_alias('separator', name)
        return self

    def change_expiration_param(self, name: str) -> 'UrlSigner':
        self.query_params.replace_alias('expiration', name)
        return self

    def change_signature_param(self, name: str) -> 'UrlSigner':
        self.query_params.replace_alias('signature', name)
        return self

    def enable_domain_param(self, name: str = DEFAULT_DOMAIN_PARAM) -> 'UrlSigner':
        """Embed the base URL in signed URLs and require it on validation."""
        if self.query_params.name_exists('domain'):
            self.query_params.replace_alias('domain', name)
        else:
            self.query_params.add('domain', name)
        return self

    # =========================================================================
    # Signing
    # =========================================================================

    def sign(self, file: File, ttl: Union[timedelta, int, float], query: Dict[str, object] = None) -> str:
        """
        Create a signed URL for a file.

        Args:
            file: File to grant access to
            ttl: Validity period, as a timedelta or a number of seconds
            query: Extra query parameters, covered by the signature

        Returns:
            The signed URL

        Raises:
            ReservedParameterError: If query uses a reserved alias
            MissingExtensionError: If the file has no extension
        """
        query = dict(query or {})

        reserved = set(query) & set(self.query_params.aliases())
        if reserved:
            raise ReservedParameterError(
                f"You cannot set reserved query parameters `{','.join(self.query_params.aliases())}`"
            )

        expiration = self.encode_ttl(ttl)
        path = urlsplit(self.base_url).path + file.encode_to_uri()

        order = file.get_order_of_params_in_file_name()
        if order:
            if file.get_separator() != File.FILE_SEPARATOR:
                query[self.query_params.get_alias('separator')] = file.get_separator()
            encoded = base64.b64encode(ORDER_SEPARATOR.join(order).encode('utf-8')).decode('ascii')
            query[self.query_params.get_alias('parameters')] = encoded.rstrip('=')

        return self._append_query_parameters(quote(path), expiration, query)

    def encode_ttl(self, ttl: Union[timedelta, int, float]) -> str:
        """Absolute expiration as an uppercase hexadecimal Unix timestamp."""
        if isinstance(ttl, timedelta):
            ttl = ttl.total_seconds()
        return format(int(self.clock() + ttl), 'X')

    @staticmethod
    def decode_ttl(encoded: str) -> int:
        return int(encoded, 16)

    def _append_query_parameters(self, path: str, expiration: str, query: Dict[str, object]) -> str:
        pairs: List[Tuple[str, str]] = []

        if self.query_params.name_exists('domain'):
            pairs.append((self.query_params.get_alias('domain'), self.base_url))

        pairs.append((self.query_params.get_alias('expiration'), expiration))
        pairs.extend((name, str(value)) for name, value in query.items())

        url = self._build_url(path, pairs)
        signature = self._create_signature(url, expiration)
        pairs.append((self.query_params.get_alias('signature'), signature))

        return self._build_url(path, pairs)

    def _build_url(self, path: str, pairs: List[Tuple[str, str]]) -> str:
        base = urlsplit(self.base_url)
        return urlunsplit((base.scheme, base.netloc, path, urlencode(pairs), ''))

    def _create_signature(self, url: str, expiration: str) -> str:
        return self.strategy.sign(self._signing_material(url, expiration), self.signature_key)

    def _signing_material(self, url: str, expiration: str) -> str:
        return f"{url}{ORDER_SEPARATOR}{expiration}{ORDER_SEPARATOR}{self.signature_key}"

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self, url: str) -> Optional[SignedFile]:
        """
        Validate a signed URL and recover its file.

        Args:
            url: The signed URL

        Returns:
            SignedFile if valid, None if expired, forged or malformed
        """
        try:
            return self._validate(url)
        except (FileSignerError, ValueError) as e:
            logger.debug(f"Rejected signed URL: {e}")
            return None

    def _validate(self, url: str) -> Optional[SignedFile]:
        parts = urlsplit(url)
        pairs = parse_qsl(parts.query, keep_blank_values=True)

        queries: Dict[str, str] = {}
        for name, value in pairs:
            queries.setdefault(name, value)

        expiration_alias = self.query_params.get_alias('expiration')
        signature_alias = self.query_params.get_alias('signature')

        if expiration_alias not in queries or signature_alias not in queries:
            logger.debug("Rejected signed URL: missing expiration or signature")
            return None

        expiration = queries[expiration_alias]
        signature = queries[signature_alias]

        if self.query_params.name_exists('domain'):
            if queries.get(self.query_params.get_alias('domain')) != self.base_url:
                logger.debug("Rejected signed URL: domain mismatch")
                return None

        expires_at = self.decode_ttl(expiration)
        if expires_at < self.clock():
            logger.debug("Rejected signed URL: expired")
            return None

        # Only the parameters before the signature were signed
        signed_pairs = []
        for name, value in pairs:
            if name == signature_alias:
                break
            signed_pairs.append((name, value))

        expected_url = urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(signed_pairs), ''))
        material = self._signing_material(expected_url, expiration)

        if not self.strategy.verify(material, self.signature_key, signature):
            logger.debug("Rejected signed URL: invalid signature")
            return None

        order = self.decode_order(queries.get(self.query_params.get_alias('parameters'), ''))
        separator = queries.get(self.query_params.get_alias('separator'), File.FILE_SEPARATOR)
        if not separator:
            raise ValueError("Empty file name separator")

        file_name = File.decode_uri(self._file_uri(unquote(parts.path)), order, separator=separator)

        return SignedFile(file=file_name, expiration=expires_at)

    @staticmethod
    def decode_order(encoded: str) -> List[str]:
        """Aliases of the file name parameters from the order query value."""
        if not encoded:
            return []

        try:
            decoded = base64.b64decode(encoded + '=' * (-len(encoded) % 4), validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid parameters order: {e}")

        return decoded.decode('utf-8').split(ORDER_SEPARATOR)

    def _file_uri(self, path: str) -> str:
        prefix = urlsplit(self.base_url).path.rstrip('/')
        if prefix and path.startswith(prefix + '/'):
            return path[len(prefix):]
        return path


class FileSigner(UrlSigner):
    """
    UrlSigner that owns the parameters allowed in file names.

    Files created through create_file() get their own copy of the
    parameters, so sorting one file does not affect the others.
    """

    def __init__(
        self,
        base_url: str,
        signature_key: str,
        parameters: ParameterDict = None,
        strategy: SignatureStrategy = None,
        clock: Callable[[], float] = None,
    ):
        super().__init__(base_url, signature_key, strategy=strategy, clock=clock)
        self.parameters = parameters or ParameterDict()

    @classmethod
    def from_settings(cls) -> 'FileSigner':
        """Build a signer from settings.FILE_SIGNER."""
        config = getattr(settings, 'FILE_SIGNER', {})

        parameters = ParameterDict()
        for name, alias in config.get('FILE_PARAMETERS', {}).items():
            parameters.add(name, alias)

        signer = cls(config.get('BASE_URL', ''), config.get('SIGNATURE_KEY', ''), parameters=parameters)

        query_params = config.get('QUERY_PARAMS', {})
        if 'parameters' in query_params:
            signer.change_order_of_parameters_param(query_params['parameters'])
        if 'separator' in query_params:
            signer.change_separator_param(query_params['separator'])
        if 'expiration' in query_params:
            signer.change_expiration_param(query_params['expiration'])
        if 'signature' in query_params:
            signer.change_signature_param(query_params['signature'])

        if config.get('DOMAIN_PARAM'):
            signer.enable_domain_param(config['DOMAIN_PARAM'])

        return signer

    def create_file(self, file_name: str = None, **params) -> File:
        """
        Create a file bound to this signer's parameters.

        Args:
            file_name: Full file name. Leave empty to set the parts by hand.
            **params: Parameter values, by parameter name
        """
        file = File(self.parameters.copy(), clock=self.clock)
        if file_name:
            file.set(file_name)
        file.parameters.fill(params)
        return file


# Singleton instance for convenience
_signer = None


def get_file_signer() -> FileSigner:
    """Get the singleton FileSigner instance."""
    global _signer
    if _signer is None:
        _signer = FileSigner.from_settings()
    return _signer


def reset_file_signer():
    """Drop the cached signer. Useful for testing."""
    global _signer
    _signer = None
