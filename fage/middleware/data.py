"""Data Steps: payload key checks, validation, formatting and scope projection.

Invariants:
    - Models are pydantic BaseModel classes; the block's model is used when none is passed
    - A missing model where one is required is a 500 (definition bug), never a 400
    - validate() returns the input unchanged; format_input() returns the model dump
    - Projection never adds fields: it only hides fields whose `show` scopes the
      caller does not hold
    - Steps return fresh dicts; the frozen ctx.input is never handed on as-is

Design Decisions:
    - Field visibility declared on the model itself:
      `secret: str = Field(json_schema_extra={"show": ["root"]})`
    - Partial validation filters pydantic's "missing" errors for absent keys, so the
      same model serves create (full) and update (partial) payloads
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from fage.config import get_settings
from fage.core.domain_types import Step
from fage.core.errors import BadRequestError, ValidationError, create_error
from fage.middleware import require_meta

logger = logging.getLogger(__name__)


def _resolve_model(ctx: Any, model: type[BaseModel] | None) -> type[BaseModel]:
    resolved = model or getattr(ctx, "model", None)
    if resolved is None:
        logger.warning(
            "No model on method block", extra={"path": getattr(ctx, "path", None)},
        )
        raise create_error(
            500, "Validation", "Internal definitions missing Model data",
            debug={"path": getattr(ctx, "path", None)},
        )
    return resolved


def _known_keys(model: type[BaseModel]) -> set[str]:
    keys = set(model.model_fields)
    keys.update(f.alias for f in model.model_fields.values() if f.alias)
    return keys


def _claims_list(claims: Any) -> list[str]:
    if not claims:
        return []
    if isinstance(claims, str):
        return [claims]
    return list(claims)


# ─── Keys & validation ───────────────────────────────────────────

def check_keys(model: type[BaseModel], data: Mapping) -> dict:
    """Raise 400 when `data` carries keys the model does not declare."""
    unknown = sorted(set(data) - _known_keys(model))
    if unknown:
        raise BadRequestError(
            "Invalid keys in payload", debug={"keys": unknown},
        )
    return dict(data)


def _field_errors(
    exc: PydanticValidationError, data: Mapping, partial: bool = False,
) -> list[dict]:
    return [
        {"field": ".".join(str(p) for p in e["loc"]), "message": e["msg"], "type": e["type"]}
        for e in exc.errors(include_url=False)
        if not (partial and e["type"] == "missing" and e["loc"] and e["loc"][0] not in data)
    ]


def check_valid(model: type[BaseModel], data: Mapping, partial: bool = False) -> dict:
    """Validate `data` against `model`; raise 400 Validation with field errors."""
    try:
        model.model_validate(dict(data))
    except PydanticValidationError as exc:
        errors = _field_errors(exc, data, partial)
        if errors:
            raise ValidationError("Data validation failed", errors=errors) from exc
    return dict(data)


def verify_keys_ok(model: type[BaseModel] | None = None) -> Step:
    """Step: reject unknown keys in ctx.input."""
    def step(ctx, output=None):
        require_meta(ctx)
        return check_keys(_resolve_model(ctx, model), ctx.input or {})

    return step


def validate(model: type[BaseModel] | None = None, partial: bool = False) -> Step:
    """Step: validate ctx.input, pass it on unchanged."""
    def step(ctx, output=None):
        require_meta(ctx)
        return check_valid(_resolve_model(ctx, model), ctx.input or {}, partial)

    return step


def format_input(model: type[BaseModel] | None = None, **dump_opts: Any) -> Step:
    """Step: validate ctx.input and emit the model dump (defaults applied)."""
    def step(ctx, output=None):
        require_meta(ctx)
        resolved = _resolve_model(ctx, model)
        try:
            instance = resolved.model_validate(dict(ctx.input or {}))
        except PydanticValidationError as exc:
            raise ValidationError(
                "Data validation failed", errors=_field_errors(exc, ctx.input or {}),
            ) from exc
        return instance.model_dump(**dump_opts)

    return step


# ─── Projection ──────────────────────────────────────────────────

def _hidden_fields(model: type[BaseModel], claims: list[str]) -> set[str]:
    hidden = set()
    for name, info in model.model_fields.items():
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        show = extra.get("show")
        if show and not any(s in claims for s in _claims_list(show)):
            hidden.add(name)
    return hidden


def project_record(model: type[BaseModel] | None, record: Any, claims: Any = None) -> Any:
    """Drop the fields of `record` the caller's claims may not see."""
    if model is None or not isinstance(record, Mapping):
        return record
    hidden = _hidden_fields(model, _claims_list(claims))
    return {k: v for k, v in record.items() if k not in hidden}


def project_records(model: type[BaseModel] | None, data: Any, claims: Any = None) -> Any:
    """project_record over a single record or a list of them."""
    if isinstance(data, list):
        return [project_record(model, rec, claims) for rec in data]
    return project_record(model, data, claims)


def project(model: type[BaseModel] | None = None) -> Step:
    """Step: project the previous output with the caller's claims."""
    def step(ctx, output=None):
        meta = require_meta(ctx)
        claims = meta.get(get_settings().claims_meta_key)
        return project_records(model or ctx.model, output, claims)

    return step


# ─── Meta merging ────────────────────────────────────────────────

def merge_from_meta(keymap: Mapping[str, str] | None = None) -> Step:
    """Step: copy meta values onto the payload, `{to_key: meta_key}`.

    Works on the previous output when it is a mapping, otherwise on ctx.input.
    Meta keys that are absent leave the payload untouched.
    """
    def step(ctx, output=None):
        meta = require_meta(ctx)
        if isinstance(output, Mapping):
            source = output
        else:
            source = ctx.input if isinstance(ctx.input, Mapping) else {}
        merged = dict(source)
        for to_key, meta_key in (keymap or {}).items():
            if meta_key in meta:
                merged[to_key] = meta[meta_key]
        return merged

    return step


def set_owner_id(field: str = "owner_id") -> Step:
    """Step: stamp the caller's user id onto the output unless the input set it."""
    use_field = field or "owner_id"

    def step(ctx, output=None):
        meta = require_meta(ctx)
        if isinstance(ctx.input, Mapping) and ctx.input.get(use_field):
            return output
        user_id = meta.get(get_settings().user_meta_key)
        ctx.state["owner_id"] = user_id
        base = output if isinstance(output, Mapping) else {}
        return {**base, use_field: user_id}

    return step


def debug(msg: str = "") -> Step:
    """Step: log the passing output at DEBUG and continue."""
    def step(ctx, output=None):
        logger.debug(f"{msg} {output!r}".strip(), extra={"path": getattr(ctx, "path", None)})
        return output

    return step
