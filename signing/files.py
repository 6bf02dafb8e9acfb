"""
Canonical identifier of a signed file.

A File is a directory path, a base name, an extension and the parameters
embedded in the name, rendered as one string:

    /path/to/file/image_v1_s1080x1080.jpg
    |-- path ----||name||-- params --||ext|

Parameter tokens are `<alias><value>` pieces joined to the name by the
separator (`_` by default). When a file name is set, tokens that use an alias
of the bound ParameterDict are moved from the name into the parameters.

Usage:
    from signing.files import File
    from signing.parameters import ParameterDict

    file = File(ParameterDict().add('version').add('size'))
    file.set('/path/to/file/image.jpg')
    file.parameters.add('version', '1').add('size', '1080x1080')

    file.get_file_name()    # '/path/to/file/image_v1_s1080x1080.jpg'
    file.encode_to_uri()    # '/v1/s1080x1080/<opaque>/image.jpg'
"""

import posixpath
import random
import time
from typing import Callable, List

from .exceptions import MissingExtensionError
from .parameters import ParameterCollection, ParameterDict, alias_pattern
from .paths import PathCodec, is_opaque_segment


class File:
    """A file name with its directory, extension and embedded parameters."""

    FILE_SEPARATOR = '_'

    # Factors applied to the current timestamp by set_random_name()
    RANDOM_NAME_FACTORS = (1.5, 2, 2.5, 3, 3.5, 4, 4.5, 5, 5.5, 6)
    RANDOM_NAME_DIGITS = 19

    def __init__(
        self,
        params: ParameterDict,
        separator: str = FILE_SEPARATOR,
        rng: random.Random = None,
        clock: Callable[[], float] = None,
    ):
        """
        Args:
            params: Parameters allowed in the file name
            separator: Separator between the name and each parameter token
            rng: Randomness source for path tags and random names
            clock: Callable returning the current Unix time in seconds
        """
        self.parameters = ParameterCollection(params)
        self.separator = separator
        self.rng = rng or random.Random()
        self.clock = clock or time.time
        self.codec = PathCodec(self.rng)
        self._path = ''
        self._name = ''
        self._ext = ''

    def __str__(self):
        return self.get_file_name()

    def __repr__(self):
        return f"<File path={self._path!r} name={self._name!r} ext={self._ext!r}>"

    # =========================================================================
    # Setters
    # =========================================================================

    def set(self, file_name: str) -> 'File':
        """Set path, name and extension from a full file name."""
        directory, base_name = posixpath.split(file_name)
        name, ext = posixpath.splitext(base_name)

        self.set_extension(ext)
        self.set_name(name)
        self.set_path(directory)
        return self

    def set_name(self, name: str) -> 'File':
        """Set the base name, moving any parameter token into the parameters."""
        self._name = self.parameters.extract_tokens(name.strip('/'), self.separator)
        return self

    def set_random_name(self) -> 'File':
        """
        Generate a numeric name that is hard to guess.

        Format: <scaled seconds>_<scaled microtime>_<random digits>
        """
        now = self.clock()
        seconds = round(int(now) * self.rng.choice(self.RANDOM_NAME_FACTORS))
        microtime = round(now * self.rng.randint(150000, 300000))
        digits = ''.join(str(self.rng.randint(0, 9)) for _ in range(self.RANDOM_NAME_DIGITS))

        self._name = f"{seconds}_{microtime}_{digits.lstrip('0')}"
        return self

    def set_path(self, path: str) -> 'File':
        """
        Set the directory, normalized to end with a single separator.

        The root directory is stored as no directory, so '/image.jpg' and
        'image.jpg' name the same file.
        """
        path = (path or '').rstrip('/')
        if not path or path == '.':
            self._path = ''
        else:
            self._path = path + '/'
        return self

    def set_extension(self, ext: str) -> 'File':
        ext = (ext or '').strip('.')
        if not ext:
            raise MissingExtensionError("The file name needs to contain an extension.")

        self._ext = '.' + ext
        return self

    def change_separator(self, separator: str) -> 'File':
        self.separator = separator
        return self

    def sort_to_display(self, order: List[str]) -> 'File':
        self.parameters.allowed.sort_to_display(order)
        return self

    def sort_in_file_name(self, order: List[str]) -> 'File':
        self.parameters.allowed.sort_in_file_name(order)
        return self

    # =========================================================================
    # Getters
    # =========================================================================

    def get_path(self) -> str:
        return self._path

    def get_name(self, with_extension: bool = False) -> str:
        if with_extension:
            return self._name + self._ext
        return self._name

    def get_extension(self) -> str:
        return self._ext

    def get_separator(self) -> str:
        return self.separator

    def get_file_name(self) -> str:
        """
        Render the canonical file name.

        Raises:
            MissingExtensionError: If no extension was set
        """
        return self._path + self._render_name()

    def get_file_name_encoded(self) -> str:
        """Canonical file name with the directory in its opaque form."""
        return self.encode_path() + self._render_name()

    def get_file_name_decoded(self) -> str:
        """
        Decode an opaque directory and render the canonical file name.

        Raises:
            InvalidPathError: If the directory is not an encoded path
        """
        self.decode_path(self._path)
        return self.get_file_name()

    def get_order_of_params_in_file_name(self) -> List[str]:
        """Aliases of the parameter tokens in the rendered file name, in order."""
        file_name = posixpath.basename(self.get_file_name())
        tokens = file_name[:-len(self._ext)].split(self.separator)[1:]

        # Longest alias first so that `vv1` is not read as alias `v`
        patterns = [
            (alias, alias_pattern(alias))
            for alias in sorted(self.parameters.allowed.aliases(), key=len, reverse=True)
        ]

        order = []
        for token in tokens:
            for alias, pattern in patterns:
                if pattern.fullmatch(token):
                    order.append(alias)
                    break
        return order

    # =========================================================================
    # Encoding
    # =========================================================================

    def encode_path(self) -> str:
        """Opaque form of the directory, as '/<opaque>/' or ''."""
        return self.codec.encode(self._path)

    def decode_path(self, opaque: str) -> str:
        """Decode an opaque segment and set it as the directory."""
        self.set_path(self.codec.decode(opaque))
        return self._path

    def encode_to_uri(self) -> str:
        """
        URI path of the file.

        Display tokens come first, then the opaque directory and the bare
        name with its extension.
        """
        self._require_extension()

        segments = self.parameters.params_to_display()

        opaque = self.encode_path().strip('/')
        if opaque:
            segments.append(opaque)

        segments.append(self._name + self._ext)
        return '/' + '/'.join(segments)

    @classmethod
    def decode_uri(cls, uri: str, order: List[str] = None, separator: str = FILE_SEPARATOR) -> str:
        """
        Rebuild the canonical file name from a URI path.

        Args:
            uri: Path produced by encode_to_uri()
            order: Aliases of the file name parameters, in file name order

        Returns:
            The canonical file name

        Raises:
            FileSignerError: If the URI or the order is malformed
        """
        uri = '/' + uri.strip('/')

        params = ParameterDict()
        for alias in order or []:
            params.add(alias, alias)

        file = cls(params, separator=separator)
        file.set(uri)

        path = file.parameters.extract_from_path(file.get_path())
        file.discover_encoded_path(path)

        return file.get_file_name()

    def discover_encoded_path(self, uri: str) -> str:
        """Find the opaque segment in a directory and decode it as the path."""
        for segment in uri.split('/'):
            if is_opaque_segment(segment):
                return self.decode_path(segment)

        self.set_path('')
        return self._path

    def _render_name(self) -> str:
        self._require_extension()

        media = self._name
        params = self.parameters.params_to_file_name()

        if params:
            media += self.separator + self.separator.join(params)

        return media + self._ext

    def _require_extension(self):
        if not self._ext:
            raise MissingExtensionError("You did not set an extension to the file.")
