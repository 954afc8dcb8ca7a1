"""
Registry of the prompts sent to the language model.

Each prompt is registered under a name and a dotted numeric version,
together with the system instruction it is sent with. Lookups return the
newest version unless a version is pinned.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class UnknownPrompt(LookupError):
    """No prompt, or no such version of it, is registered."""


def _version_key(version: str) -> Tuple[int, ...]:
    try:
        return tuple(int(part) for part in version.split("."))
    except ValueError:
        raise ValueError(f"prompt version must be dotted integers, got {version!r}") from None


@dataclass
class PromptVersion:
    name: str
    version: str
    template: str
    description: str
    system_instruction: str = ""
    created_at: datetime = field(default_factory=datetime.now)

    def render(self, **values: Any) -> str:
        """Fill the template's ``{placeholders}``; no values returns it verbatim."""
        if not values:
            return self.template
        return self.template.format(**values)


class PromptRegistry:
    """
    Process-wide prompt catalogue.

    Usage:
        prompt = PromptRegistry.get_instance().lookup("sql.generate")
        text = prompt.render(context=..., sales_table=..., today=..., request=...)
    """

    _instance: Optional["PromptRegistry"] = None

    def __init__(self):
        self._prompts: Dict[str, Dict[str, PromptVersion]] = {}

    @classmethod
    def get_instance(cls) -> "PromptRegistry":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, prompt: PromptVersion) -> None:
        _version_key(prompt.version)
        self._prompts.setdefault(prompt.name, {})[prompt.version] = prompt
        logger.debug("prompt_registered: name=%s version=%s", prompt.name, prompt.version)

    def lookup(self, name: str, version: Optional[str] = None) -> PromptVersion:
        """
        Args:
            name: Prompt name (e.g. "sql.generate")
            version: Pinned version, or None for the newest

        Raises:
            UnknownPrompt: name or version not registered
        """
        versions = self._prompts.get(name)
        if not versions:
            raise UnknownPrompt(f"prompt '{name}' is not registered")
        if version is None:
            version = max(versions, key=_version_key)
        if version not in versions:
            raise UnknownPrompt(f"prompt '{name}' has no version {version}")
        return versions[version]

    def versions(self, name: str) -> List[str]:
        return sorted(self._prompts.get(name, {}), key=_version_key)


def register_prompt(
    name: str,
    version: str,
    description: str,
    system_instruction: str = "",
) -> Callable[[Callable[[], str]], Callable[[], str]]:
    """Register the template returned by the decorated function."""
    def decorator(func: Callable[[], str]) -> Callable[[], str]:
        PromptRegistry.get_instance().register(
            PromptVersion(
                name=name,
                version=version,
                template=func(),
                description=description,
                system_instruction=system_instruction,
            )
        )
        return func
    return decorator
