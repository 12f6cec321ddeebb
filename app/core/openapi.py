"""OpenAPI customization utilities.

Enriches the generated schema with the API key security scheme, tag
descriptions, and the error responses routes produce through the global
exception handlers (which FastAPI cannot infer on its own).
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS = [
    {
        "name": "Videos",
        "description": "Talking-dog video generation, status polling and cooldown status.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]

ERROR_SCHEMA = {
    "type": "object",
    "properties": {
        "error": {
            "type": "object",
            "properties": {
                "code": {"type": "string"},
                "message": {"type": "string"},
                "request_id": {"type": "string"},
                "details": {"type": "object"},
            },
        }
    },
}

GENERATE_ERRORS = {
    "400": "Invalid dialogue, options or image.",
    "413": "Image larger than the upload limit.",
    "429": "Cooldown active for this IP or burst limit exceeded. See Retry-After.",
    "502": "Video provider failed or is not configured.",
}


def _error_response(description: str) -> Dict[str, Any]:
    return {
        "description": description,
        "content": {"application/json": {"schema": ERROR_SCHEMA}},
    }


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and security.

    - Injects the ``ApiKeyAuth`` scheme (header ``X-API-Key``) as a global requirement
    - Exempts health endpoints with ``security: []``
    - Documents error responses of the generate endpoint
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        security_schemes = schema.setdefault("components", {}).setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Shared key issued to the web tier.",
            },
        )
        schema.setdefault("security", [{"ApiKeyAuth": []}])

        tags = schema.setdefault("tags", [])
        existing = {t.get("name") for t in tags}
        tags.extend(tag for tag in TAGS if tag["name"] not in existing)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith("/health"):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []
            if path.endswith("/videos") and "post" in methods:
                responses = methods["post"].setdefault("responses", {})
                for code, description in GENERATE_ERRORS.items():
                    responses.setdefault(code, _error_response(description))

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
