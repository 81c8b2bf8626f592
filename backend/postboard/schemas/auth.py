"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, fields, post_dump, pre_load, validate

from postboard.services._shared.ports import SUPPORTED_PROVIDERS


class BootstrapSchema(Schema):
    """Input payload for signing in with a Google/Apple ID token.

    ``idToken`` (web client spelling) is accepted as an alias of ``id_token``.
    """

    class Meta:
        unknown = EXCLUDE

    provider = fields.String(required=True, validate=validate.OneOf(SUPPORTED_PROVIDERS))
    id_token = fields.String(required=True, validate=validate.Length(min=1))

    @pre_load
    def _accept_camel_case(self, data: Any, **kwargs: Any) -> Any:
        if isinstance(data, dict) and "idToken" in data and "id_token" not in data:
            data = dict(data)
            data["id_token"] = data.pop("idToken")
        return data


class SessionUserSchema(Schema):
    """Public user view returned with every session; empty fields are omitted."""

    id = fields.String(required=True)
    email = fields.String(allow_none=True)
    display_name = fields.String(data_key="displayName", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt", allow_none=True)

    @post_dump
    def _drop_empty(self, data: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        return {k: v for k, v in data.items() if v not in (None, "")}


class SessionResponseSchema(Schema):
    """Response payload of bootstrap/refresh: user and access token only."""

    user = fields.Nested(SessionUserSchema, required=True)
    token = fields.String(required=True)
