"""Server configuration read from environment variables."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Type, TypeVar

T = TypeVar("T")


@dataclass
class Config:
    """Settings for the runtime server; each field is read from its upper-case variable."""

    database_url: str = ""
    port: str = ""
    addr: str = ""
    nats_url: str = ""
    nats_user: str = ""
    nats_password: str = ""
    tokenizer_service_url: str = ""
    embed_model: str = ""
    task_model: str = ""
    vector_store_url: str = ""
    kv_backend: str = ""
    kv_host: str = ""
    kv_password: str = ""
    token: str = ""


def _is_str_field(field: dataclasses.Field) -> bool:
    return field.type is str or field.type == "str"


def load_config(
    config_type: Type[T] = Config, environ: Optional[Mapping[str, str]] = None
) -> T:
    """Build ``config_type`` from environment variables matched case-insensitively.

    Variables with no matching field are ignored; fields with no variable keep
    their defaults. Only string fields can be filled.
    """
    if not (isinstance(config_type, type) and dataclasses.is_dataclass(config_type)):
        raise TypeError(f"{config_type!r} is not a dataclass type")
    source = os.environ if environ is None else environ
    values = {key.lower(): value for key, value in source.items()}

    kwargs = {}
    for field in dataclasses.fields(config_type):
        if not field.init or field.name not in values:
            continue
        if not _is_str_field(field):
            raise TypeError(
                f"failed to load config field {field.name!r}: expected a string field"
            )
        kwargs[field.name] = values[field.name]
    return config_type(**kwargs)