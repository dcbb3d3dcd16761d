"""Prompt variable resolution.

Templates reference parameters as ``{name}`` where name is made of letters,
digits, ``-`` and ``_``. Each distinct placeholder is resolved once; values
may be plain, awaitable, or zero-argument callables returning either.
Placeholders that resolve to nothing are left as they are.
"""

import inspect
import re
from collections.abc import Mapping
from typing import Any

from askagent.utils.logging import get_logger

logger = get_logger(__name__)

VARIABLE_PATTERN = re.compile(r"\{([a-zA-Z0-9_-]+)\}")


class VariableResolver:
    """Substitutes ``{name}`` placeholders from an asynchronous parameter source."""

    def __init__(self, params: Mapping[str, Any] | None = None):
        self.params: Mapping[str, Any] = params or {}
        self._cache: dict[str, Any] = {}

    async def resolve(self, text: str) -> str:
        """Resolve all placeholders in ``text``.

        Substitution happens in a single pass over the original template, so
        substituted values are never scanned for further placeholders.
        """
        names = list(dict.fromkeys(VARIABLE_PATTERN.findall(text)))
        if not names:
            return text

        values: dict[str, str] = {}
        for name in names:
            value = await self._resolve_value(name)
            if value is not None:
                values[name] = str(value)

        unresolved = [name for name in names if name not in values]
        if unresolved:
            logger.debug(f"Leaving unresolved placeholders untouched: {unresolved}")

        def substitute(match: re.Match[str]) -> str:
            return values.get(match.group(1), match.group(0))

        return VARIABLE_PATTERN.sub(substitute, text)

    async def _resolve_value(self, name: str) -> Any:
        # Awaitables can only be consumed once; later templates reuse the value.
        if name in self._cache:
            return self._cache[name]

        value = self.params.get(name)
        if callable(value):
            value = value()
        if inspect.isawaitable(value):
            value = await value

        self._cache[name] = value
        return value


async def resolve_variables(text: str, params: Mapping[str, Any] | None = None) -> str:
    """Resolve placeholders in ``text`` using ``params``."""
    return await VariableResolver(params).resolve(text)
