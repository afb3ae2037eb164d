"""Branding codec — four colour tokens inside a tailwind config file.

The config file is JavaScript and is never parsed. Each colour is found
and rewritten with an ordered cascade of regular expressions:

- extraction tries each pattern in order and keeps the first match,
  falling back to a default (with a warning) when none match;
- substitution applies EVERY pattern of a field's cascade in sequence,
  from the most specific (quoted hex) to the broadest ("whatever follows
  the key up to the next comma, newline or brace"). Later patterns may
  re-match text an earlier one just wrote. Each pattern matches its own
  output too, which is what makes repeated saves idempotent.

A field whose cascade matches nothing keeps its old value. That is
reported as a warning, never an error: a hand-edited config must not
block a branding save.

Tier 2 service — imports from hooks.interfaces (Tier 1), schemas, errors.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from repostore.errors import ConflictError, NotFoundError
from repostore.hooks.interfaces import FileGateway
from repostore.schemas import BrandingColorSet, RepoCoordinates, WriteResult

logger = logging.getLogger(__name__)

_HEX = r"#[A-Fa-f0-9]{3,8}"

DEFAULT_COLORS = BrandingColorSet(
    background_color="#FFFFFF",
    body_color="#000000",
    accent_color1="#FF6B35",
    accent_color2="#004E89",
)

_Replacement = Callable[[re.Match[str], str], str]


@dataclass(frozen=True)
class _Substitution:
    pattern: re.Pattern[str]
    replace: _Replacement


@dataclass(frozen=True)
class _TokenRule:
    """How one colour field is found and rewritten."""

    field_name: str
    token: str
    extract: list[re.Pattern[str]]
    substitute: list[_Substitution] = field(default_factory=list)


def _fixed(template: str) -> _Replacement:
    """Replacement producing template with {color} filled in."""
    return lambda match, color: template.format(color=color)


def _keep_groups(match: re.Match[str], color: str) -> str:
    """Keeps group 1 and (when present) group 3 around the new colour."""
    tail = match.group(3) if match.re.groups >= 3 else ""
    return f"{match.group(1)}{color}{tail}"


def _quote_after_prefix(match: re.Match[str], color: str) -> str:
    return f"{match.group(1)}'{color}'"


def _key_value_cascade(key: str) -> list[_Substitution]:
    """Full cascade for a plain ``key: value`` token."""
    return [
        _Substitution(re.compile(rf"{key}:\s*['\"]({_HEX})['\"]"), _fixed(f"{key}: '{{color}}'")),
        _Substitution(re.compile(rf"{key}:\s*'{_HEX}'"), _fixed(f"{key}: '{{color}}'")),
        _Substitution(re.compile(rf"{key}:\s*\"{_HEX}\""), _fixed(f'{key}: "{{color}}"')),
        _Substitution(re.compile(rf"{key}:\s*'[^']*'"), _fixed(f"{key}: '{{color}}'")),
        _Substitution(re.compile(rf"{key}:\s*\"[^\"]*\""), _fixed(f'{key}: "{{color}}"')),
        _Substitution(
            re.compile(rf"({key}:\s*)(?:'[^']*'|\"[^\"]*\"|var\([^)]+\)|[^,\n}}]+)"),
            _quote_after_prefix,
        ),
    ]


TOKEN_RULES: list[_TokenRule] = [
    _TokenRule(
        field_name="background_color",
        token="backgroundColor",
        extract=[
            re.compile(rf"backgroundColor:\s*['\"]({_HEX})['\"]"),
            re.compile(rf"backgroundColor:\s*({_HEX})"),
        ],
        substitute=_key_value_cascade("backgroundColor"),
    ),
    _TokenRule(
        field_name="body_color",
        token="bodyColor",
        extract=[
            re.compile(rf"bodyColor:\s*['\"]({_HEX})['\"]"),
            re.compile(rf"bodyColor:\s*({_HEX})"),
        ],
        substitute=_key_value_cascade("bodyColor"),
    ),
    _TokenRule(
        field_name="accent_color1",
        token="accentColor1",
        extract=[
            re.compile(rf"accentColor1:\s*['\"]({_HEX})['\"]"),
            # Nested colour object: accentColor1: { DEFAULT: '#...' }
            re.compile(rf"DEFAULT:\s*['\"]({_HEX})['\"]"),
            re.compile(rf"accentColor1:\s*({_HEX})"),
        ],
        substitute=[
            _Substitution(
                re.compile(rf"accentColor1:\s*['\"]({_HEX})['\"]"),
                _fixed("accentColor1: '{color}'"),
            ),
            _Substitution(
                re.compile(rf"DEFAULT:\s*['\"]({_HEX})['\"]"),
                _fixed("DEFAULT: '{color}'"),
            ),
            _Substitution(re.compile(r"DEFAULT:\s*'#[^']+'"), _fixed("DEFAULT: '{color}'")),
            _Substitution(
                re.compile(rf"(--color-accentColor1,\s*)({_HEX})(\))"), _keep_groups
            ),
        ],
    ),
    _TokenRule(
        field_name="accent_color2",
        token="accentColor2",
        extract=[
            re.compile(rf"accentColor2:\s*['\"]({_HEX})['\"]"),
            # CSS variable fallback: var(--color-accentColor2, #...)
            re.compile(rf"--color-accentColor2,\s*({_HEX})\)"),
            re.compile(rf"accentColor2:\s*({_HEX})"),
        ],
        substitute=[
            _Substitution(
                re.compile(rf"accentColor2:\s*['\"]({_HEX})['\"]"),
                _fixed("accentColor2: '{color}'"),
            ),
            _Substitution(
                re.compile(rf"(--color-accentColor2,\s*)({_HEX})(\))"), _keep_groups
            ),
        ],
    ),
]


# ---------------------------------------------------------------------------
# Pure transforms
# ---------------------------------------------------------------------------


def extract_colors_with_warnings(source: str) -> tuple[BrandingColorSet, list[str]]:
    """Reads the four colours; returns them with one warning per defaulted field."""
    values: dict[str, str] = {}
    warnings: list[str] = []
    for rule in TOKEN_RULES:
        for pattern in rule.extract:
            match = pattern.search(source)
            if match:
                values[rule.field_name] = match.group(1)
                break
        else:
            default = getattr(DEFAULT_COLORS, rule.field_name)
            values[rule.field_name] = default
            message = f"Could not find {rule.token} in the config; using default {default}."
            warnings.append(message)
            logger.warning(message)
    return BrandingColorSet(**values), warnings


def extract_colors(source: str) -> BrandingColorSet:
    """Reads the four colours, defaulting (and logging) any that are missing."""
    colors, _ = extract_colors_with_warnings(source)
    return colors


def apply_colors_with_warnings(
    source: str, colors: BrandingColorSet
) -> tuple[str, list[str]]:
    """Runs every field's cascade; warns for fields nothing matched."""
    updated = source
    warnings: list[str] = []
    for rule in TOKEN_RULES:
        color = getattr(colors, rule.field_name)
        total = 0
        for step, substitution in enumerate(rule.substitute, start=1):
            updated, count = substitution.pattern.subn(
                lambda match, s=substitution: s.replace(match, color), updated
            )
            if count:
                logger.debug("%s pattern %d matched %d time(s)", rule.token, step, count)
            total += count
        if total == 0:
            message = f"No {rule.token} token found in the config; {rule.token} was not updated."
            warnings.append(message)
            logger.warning(message)
    return updated, warnings


def apply_colors(source: str, colors: BrandingColorSet) -> str:
    """Rewrites the four colour tokens, leaving the rest of the file as is."""
    updated, _ = apply_colors_with_warnings(source, colors)
    return updated


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BrandingConfig:
    """Colours as read from the config, with the stamp they were read at."""

    colors: BrandingColorSet
    version_stamp: str
    warnings: list[str] = field(default_factory=list)


class BrandingCodec:
    """Reads and rewrites the colour tokens of a config file."""

    def __init__(self, gateway: FileGateway) -> None:
        self._gateway = gateway

    async def read(self, coords: RepoCoordinates, path: str) -> BrandingConfig:
        """Reads the config and extracts the colours.

        Raises:
            NotFoundError: The config file does not exist.
        """
        record = await self._gateway.read(coords, path)
        if record is None:
            raise NotFoundError(path, "Tailwind config not found.")
        colors, warnings = extract_colors_with_warnings(record.text())
        return BrandingConfig(
            colors=colors, version_stamp=record.version_stamp, warnings=warnings
        )

    async def write(
        self,
        coords: RepoCoordinates,
        path: str,
        colors: BrandingColorSet,
        version_stamp: str,
        message: str | None = None,
    ) -> tuple[WriteResult, BrandingColorSet]:
        """Applies colours to the current config and writes it back.

        The file is re-read because substitution needs its current text.
        If the re-read stamp is not the caller's stamp the caller is
        working from a stale view and the write is refused up front.

        Returns:
            Tuple of (write receipt with substitution warnings, the colours
            as they now read back from the written file).

        Raises:
            NotFoundError: The config file does not exist.
            ConflictError: The config changed since version_stamp.
        """
        record = await self._gateway.read(coords, path)
        if record is None:
            raise NotFoundError(path, "Tailwind config not found.")
        if record.version_stamp != version_stamp:
            raise ConflictError(path, "The tailwind config has changed. Refresh and retry.")

        updated, warnings = apply_colors_with_warnings(record.text(), colors)
        result = await self._gateway.write(
            coords,
            path,
            updated.encode("utf-8"),
            message or f"CMS: Update branding colors in {path}",
            expected_version_stamp=version_stamp,
        )
        written_colors, _ = extract_colors_with_warnings(updated)
        return (
            WriteResult(
                new_version_stamp=result.new_version_stamp,
                commit_url=result.commit_url,
                warnings=[*result.warnings, *warnings],
            ),
            written_colors,
        )
