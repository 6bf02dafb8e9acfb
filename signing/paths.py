"""
Reversible obfuscation of directory paths.

Each directory segment becomes a one letter tag followed by hexadecimal
digits. Numeric segments (integers >= 10) are tagged with a letter from G to
O and written as their hexadecimal value, any other segment is tagged with a
letter from Q to Y and written as the hex of its UTF-8 bytes. The tagged
string is base64 encoded and then hex encoded, producing a single path
segment made only of hexadecimal characters.

The tag letter is picked at random within its range, so the same path
encodes differently on each call. Only range membership matters to decode.

This hides the directory layout from casual inspection. It is not
encryption.
"""

import base64
import binascii
import random
import re
import string

from .exceptions import InvalidPathError

NUMERIC_TAGS = 'GHIJKLMNO'
STRING_TAGS = 'QRSTUVWXY'

NUMERIC_SEGMENT = re.compile(r'[1-9][0-9]+')
TAGGED_GROUP = re.compile(r'([G-OQ-Y])([a-fA-F0-9]+)')


def is_opaque_segment(segment: str) -> bool:
    """True when segment could be an encoded path."""
    return bool(segment) and all(char in string.hexdigits for char in segment)


class PathCodec:
    """Encode and decode directory paths into one opaque segment."""

    def __init__(self, rng: random.Random = None):
        self.rng = rng or random.Random()

    def encode(self, path: str) -> str:
        """
        Encode a directory path.

        Args:
            path: Directory path such as '/2019/11/'

        Returns:
            '/<opaque>/', or '' when the path has no segments
        """
        segments = [segment for segment in path.split('/') if segment]
        if not segments:
            return ''

        encoded = ''.join(self._encode_segment(segment) for segment in segments)
        opaque = base64.b64encode(encoded.encode('ascii')).hex()
        return f'/{opaque}/'

    def decode(self, opaque: str) -> str:
        """
        Decode an opaque segment back to a directory path.

        Returns:
            The path as '/segment/segment' (no trailing separator)

        Raises:
            InvalidPathError: If the segment is not a valid encoded path
        """
        opaque = opaque.strip('/')
        if not opaque:
            return ''

        try:
            decoded = base64.b64decode(bytes.fromhex(opaque), validate=True).decode('ascii')
        except (ValueError, binascii.Error) as e:
            raise InvalidPathError(f"Invalid encoded path: {e}")

        path = ''
        for tag, hex_value in TAGGED_GROUP.findall(decoded):
            try:
                if tag in NUMERIC_TAGS:
                    path += '/' + str(int(hex_value, 16))
                else:
                    path += '/' + bytes.fromhex(hex_value).decode('utf-8')
            except ValueError as e:
                raise InvalidPathError(f"Invalid encoded segment `{tag}{hex_value}`: {e}")

        return path

    def _encode_segment(self, segment: str) -> str:
        if NUMERIC_SEGMENT.fullmatch(segment):
            return self.rng.choice(NUMERIC_TAGS) + format(int(segment), 'x')
        return self.rng.choice(STRING_TAGS) + segment.encode('utf-8').hex()
