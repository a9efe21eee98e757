from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .colors import parse_size
from .selectors import parse_selector
from .types import Selector


class SelectorConfig(BaseModel):
    """One highlighted field.

    Accepts either the command-line form ('1:0..3:red') or a mapping with
    field, chars and color keys.
    """
    text: str | None = Field(default=None, description="Selector in command-line form")
    field: int | None = None
    chars: str | None = Field(default=None, description="START..END or OFFSET+LENGTH within the field")
    color: str | None = Field(default=None, description="Color name; markers are used when unset")

    @model_validator(mode="before")
    @classmethod
    def _from_scalar(cls, data: Any) -> Any:
        if isinstance(data, (str, int)) and not isinstance(data, bool):
            return {"text": str(data)}
        return data

    @model_validator(mode="after")
    def _needs_field(self) -> "SelectorConfig":
        if self.text is None and self.field is None:
            raise ValueError("selector needs a field")
        if self.text is not None and (self.field, self.chars, self.color) != (None, None, None):
            raise ValueError("give either a selector string or field/chars/color")
        return self

    def as_text(self) -> str:
        if self.text is not None:
            return self.text
        parts = [str(self.field)]
        parts.extend(p for p in (self.chars, self.color) if p)
        return ":".join(parts)

    def compile(self, one_based: bool) -> Selector:
        return parse_selector(self.as_text(), one_based=one_based)


class Config(BaseModel):
    """Settings for one hl run, from YAML and/or the command line."""
    description: str | None = Field(default=None, description="Optional description of this configuration")
    fields: list[SelectorConfig] = Field(default_factory=list)
    delimiter: str | None = Field(default=None, description="Field delimiter; runs of whitespace when unset")
    skip: str | None = Field(default=None, description="Count fields only after the first occurrence of this string")
    one_based: bool = False
    open: str = "("
    close: str = ")"
    color: Literal["auto", "always", "never"] = "auto"
    yellow_size: int = Field(default=20_000_000, description="Sizes above this are yellow for the 'size' color")
    red_size: int = Field(default=100_000_000, description="Sizes above this are red for the 'size' color")

    @field_validator("delimiter", "skip")
    @classmethod
    def _not_empty(cls, v: str | None) -> str | None:
        if v is not None and v == "":
            raise ValueError("must not be empty")
        return v

    @field_validator("yellow_size", "red_size", mode="before")
    @classmethod
    def _parse_size(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_size(v)
        return v

    @model_validator(mode="after")
    def _check_selectors(self) -> "Config":
        # Surface selector errors at load time rather than on the first line
        self.compile_selectors()
        return self

    def compile_selectors(self) -> list[Selector]:
        return [fc.compile(self.one_based) for fc in self.fields]


def _format_error(e: ValidationError) -> str:
    problems = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"])
        msg = err["msg"].removeprefix("Value error, ")
        problems.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(problems)


def build_config(data: dict[str, Any], overrides: dict[str, Any] | None = None) -> Config:
    """Validate 'data' updated with non-None 'overrides' into a Config."""
    merged = dict(data)
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})
    try:
        return Config.model_validate(merged)
    except ValidationError as e:
        # Re-raise with a cleaner message for CLI users
        raise ValueError(_format_error(e)) from None


def read_config_file(path: str | Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def load_config(path: str | Path) -> Config:
    """Load YAML config from 'path' and validate into a Config."""
    return build_config(read_config_file(path))
