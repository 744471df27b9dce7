"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- Bearer token security scheme on the document endpoints, while health and
  the auth endpoints stay open

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

OPEN_PATH_PREFIXES = ("/health", "/api/v1/auth/")


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security.

    - Injects components.securitySchemes for HTTP bearer auth
    - Marks all operations as requiring a token by default, then exempts
      health and signup/login by setting ``security: []``
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Token returned by /api/v1/auth/signup or /api/v1/auth/login.",
            },
        )

        schema.setdefault("security", [{"BearerAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Auth",
                "description": "Signup and login. Rate limited per client address.",
            },
            {
                "name": "Documents",
                "description": "Document operations forwarded to the document service.",
            },
            {
                "name": "Health",
                "description": "Liveness check.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            if path.startswith(OPEN_PATH_PREFIXES):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
