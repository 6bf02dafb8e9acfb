"""
Registry and values of the parameters a signed file can carry.

A ParameterDict declares which parameters are allowed and the short alias
each one uses in URLs and file names. A ParameterCollection binds values to
the parameters of one ParameterDict and renders them as `<alias><value>`
tokens.

Usage:
    from signing.parameters import ParameterDict, ParameterCollection

    params = ParameterDict().add('size').add('version')
    collection = ParameterCollection(params).fill({'size': '1080', 'version': '1'})

    collection.params_to_file_name()    # ['s1080', 'v1']
    params.sort_in_file_name(['version'])
    collection.params_to_file_name()    # ['v1', 's1080']
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from .exceptions import (
    DuplicateAliasError,
    DuplicateNameError,
    InvalidParameterValueError,
    ParameterError,
    UnknownOrUnsetParameterError,
    UnknownParameterError,
)

PATH_SEPARATOR = '/'

PARAMETER_VALUE = re.compile(r'[A-Za-z0-9]*')


class ParameterDict:
    """
    Ordered registry of parameter names and their aliases.

    Two render orders are kept: the order used to display parameters in the
    URL path and the order used to embed them in the file name. Both default
    to insertion order until sorted.
    """

    def __init__(self):
        self._params: Dict[str, str] = {}
        self._display: Optional[List[str]] = None
        self._in_file: Optional[List[str]] = None

    def add(self, name: str, alias: str = None) -> 'ParameterDict':
        """
        Register a parameter.

        Args:
            name: Parameter name
            alias: Token used in URLs and file names. Defaults to the first
                character of the name.

        Raises:
            DuplicateAliasError: If the alias is already in use
            DuplicateNameError: If the name is already registered
        """
        if not name:
            raise ParameterError("Parameter name cannot be empty.")

        if not alias:
            alias = name[0]

        if self.alias_exists(alias):
            raise DuplicateAliasError(f"The parameter `{name}` as `{alias}` is already used.")

        if self.name_exists(name):
            raise DuplicateNameError(f"Parameter `{name}` already in use.")

        self._params[name] = alias
        return self

    def delete(self, name: str) -> 'ParameterDict':
        self._get_or_fail(name)
        del self._params[name]
        return self

    def replace_alias(self, name: str, alias: str) -> 'ParameterDict':
        self._get_or_fail(name)

        if alias != self._params[name] and self.alias_exists(alias):
            raise DuplicateAliasError(f"The parameter `{name}` as `{alias}` is already used.")

        self._params[name] = alias
        return self

    def get_alias(self, name: str) -> str:
        self._get_or_fail(name)
        return self._params[name]

    def sort_to_display(self, order: Iterable[str]) -> 'ParameterDict':
        """Set the order of parameters shown in the URL path."""
        self._display = self._validate_order(order)
        return self

    def sort_in_file_name(self, order: Iterable[str]) -> 'ParameterDict':
        """Set the order of parameters embedded in the file name."""
        self._in_file = self._validate_order(order)
        return self

    def sort_in_file_name_by_alias(self, aliases: Iterable[str]) -> 'ParameterDict':
        """Same as sort_in_file_name, with parameters given by alias."""
        by_alias = {alias: name for name, alias in self._params.items()}
        order = []
        for alias in aliases:
            if alias not in by_alias:
                raise UnknownParameterError(f"Alias `{alias}` is invalid or does not exist.")
            order.append(by_alias[alias])
        return self.sort_in_file_name(order)

    def params(self) -> Dict[str, str]:
        return dict(self._params)

    def display(self) -> Dict[str, str]:
        return self._sorted(self._display)

    def in_file_name(self) -> Dict[str, str]:
        return self._sorted(self._in_file)

    def name_exists(self, name: str) -> bool:
        return name in self._params

    def alias_exists(self, alias: str) -> bool:
        return alias in self._params.values()

    def names(self) -> List[str]:
        return list(self._params.keys())

    def aliases(self) -> List[str]:
        return list(self._params.values())

    def only_aliases(self, names: Iterable[str]) -> Dict[str, str]:
        return {name: self.get_alias(name) for name in names}

    def count(self) -> int:
        return len(self._params)

    def __len__(self):
        return self.count()

    def copy(self) -> 'ParameterDict':
        clone = ParameterDict()
        clone._params = dict(self._params)
        clone._display = list(self._display) if self._display is not None else None
        clone._in_file = list(self._in_file) if self._in_file is not None else None
        return clone

    def _validate_order(self, order: Iterable[str]) -> List[str]:
        validated = []
        for name in order:
            if not self.name_exists(name):
                raise UnknownParameterError(f"Parameter `{name}` is invalid or does not exist.")
            if name not in validated:
                validated.append(name)
        return validated

    def _sorted(self, order: Optional[List[str]]) -> Dict[str, str]:
        if order is None:
            return dict(self._params)

        # Names deleted after sorting are skipped, names added after are appended.
        result = {name: self._params[name] for name in order if name in self._params}
        for name, alias in self._params.items():
            if name not in result:
                result[name] = alias
        return result

    def _get_or_fail(self, name: str):
        if not self.name_exists(name):
            raise UnknownParameterError(f"Parameter `{name}` is invalid or does not exist.")


def alias_pattern(alias: str) -> re.Pattern:
    """Pattern matching a whole token made of the alias and an alphanumeric value."""
    return re.compile(rf'{re.escape(alias)}([A-Za-z0-9]*)', re.IGNORECASE)


class ParameterCollection:
    """
    Values bound to the parameters of one ParameterDict.
    """

    def __init__(self, allowed: ParameterDict):
        self.allowed = allowed
        self._params: Dict[str, str] = {}

    def add(self, name: str, value) -> 'ParameterCollection':
        """
        Set a parameter value.

        Raises:
            UnknownOrUnsetParameterError: If the parameter is not registered
            InvalidParameterValueError: If the value is not alphanumeric
        """
        if not self.allowed.name_exists(name):
            raise UnknownOrUnsetParameterError(f"The parameter `{name}` is not allowed.")

        self._params[name] = self._clean_value(name, value)
        return self

    def fill(self, params: Dict[str, object]) -> 'ParameterCollection':
        for name, value in params.items():
            self.add(name, value)
        return self

    def replace(self, name: str, value) -> 'ParameterCollection':
        self._get_or_fail(name)
        self._params[name] = self._clean_value(name, value)
        return self

    def delete(self, name: str) -> 'ParameterCollection':
        self._get_or_fail(name)
        del self._params[name]
        return self

    def get(self, name: str) -> str:
        self._get_or_fail(name)
        return self._params[name]

    def only_params(self, names: Iterable[str]) -> Dict[str, str]:
        """Values of the given parameters that are set, in registration order."""
        names = set(names)
        return {
            name: self._params[name]
            for name in self.allowed.names()
            if name in names and self.value_exists(name)
        }

    def params(self) -> Dict[str, str]:
        return dict(self._params)

    def params_to_file_name(self) -> List[str]:
        return self._render(self.allowed.in_file_name())

    def params_to_display(self) -> List[str]:
        return self._render(self.allowed.display())

    def extract_from_path(self, raw: str) -> str:
        """
        Bind parameters found as path segments and strip them from the path.

        A segment is a parameter token when it follows a path separator and
        is made of a registered alias followed by alphanumeric characters.

        Args:
            raw: Path such as '/v1/s1080x1080/rest/'

        Returns:
            The path without parameter tokens, e.g. '/rest/'
        """
        return self.extract_tokens(raw, PATH_SEPARATOR)

    def extract_tokens(self, raw: str, separator: str) -> str:
        """
        Tokenize raw over separator, bind alias tokens and return the rest.

        Each token belongs to the longest alias it matches, so with aliases
        `v` and `vv` the token `vv2` is read as `vv` = `2`. When several
        tokens belong to one parameter, the first one wins.
        """
        segments = raw.split(separator)
        tokens = segments[1:]
        resolved = [self._resolve_token(token) for token in tokens]

        if not any(resolved):
            return raw

        for name in self.allowed.in_file_name():
            for match in resolved:
                if match and match[0] == name:
                    self.add(name, match[1])
                    break

        kept = [token for token, match in zip(tokens, resolved) if not match]
        return separator.join([segments[0]] + kept)

    def value_exists(self, name: str) -> bool:
        return name in self._params

    def names(self) -> List[str]:
        return list(self._params.keys())

    def values(self) -> List[str]:
        return list(self._params.values())

    def count(self) -> int:
        return len(self._params)

    def __len__(self):
        return self.count()

    def _render(self, ordered: Dict[str, str]) -> List[str]:
        return [
            f"{alias}{self._params[name]}"
            for name, alias in ordered.items()
            if self.value_exists(name)
        ]

    def _resolve_token(self, token: str) -> Optional[Tuple[str, str]]:
        """Name and value of the longest alias matching token, or None."""
        by_length = sorted(self.allowed.params().items(), key=lambda item: len(item[1]), reverse=True)
        for name, alias in by_length:
            match = alias_pattern(alias).fullmatch(token)
            if match:
                return name, match.group(1)
        return None

    @staticmethod
    def _clean_value(name: str, value) -> str:
        value = str(value)
        if not PARAMETER_VALUE.fullmatch(value):
            raise InvalidParameterValueError(
                f"The value `{value}` of parameter `{name}` can only contain letters and digits."
            )
        return value

    def _get_or_fail(self, name: str):
        if not self.value_exists(name):
            raise UnknownOrUnsetParameterError(f"Parameter `{name}` is invalid or does not exist.")
