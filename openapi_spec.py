"""
openapi_spec.py  -  GameHub OpenAPI 3.0 specification builder.

Returns a Python dict (compatible with ``json.dumps``) that describes the
REST endpoints exposed by ``gamehub_web.py``.

Usage (from gamehub_web.py)::

    from openapi_spec import build_spec
    spec = build_spec(server_url="http://localhost:5000")
"""

from typing import Any, Dict

import database


def _ref(name: str) -> Dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


def _json_resp(description: str, schema: Dict = None) -> Dict:
    if schema is None:
        schema = {"type": "object"}
    return {"description": description,
            "content": {"application/json": {"schema": schema}}}


def _error(description: str = "Error") -> Dict:
    return _json_resp(description, _ref("Error"))


def _json_body(properties: Dict[str, Any], required=None) -> Dict:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = list(required)
    return {"required": True, "content": {"application/json": {"schema": schema}}}


def _path_param(name: str, description: str = "") -> Dict:
    return {"name": name, "in": "path", "required": True,
            "description": description, "schema": {"type": "string"}}


def build_spec(server_url: str = "/") -> Dict[str, Any]:
    """Return the full OpenAPI 3.0 specification dict."""

    spec: Dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {
            "title": "GameHub API",
            "version": "1.0.0",
            "description": (
                "Catalog of uploaded games with categories, ratings, comments, "
                "download counting and Steam metadata autofill.\n\n"
                "Write endpoints need a session cookie (`POST /api/auth/login`) "
                "or a bearer token returned by the same call."
            ),
        },
        "servers": [{"url": server_url, "description": "GameHub server"}],
        "tags": [
            {"name": "auth",     "description": "Registration, sign-in and the current identity"},
            {"name": "catalog",  "description": "Browsing, details and downloads"},
            {"name": "comments", "description": "Comments and star ratings"},
            {"name": "upload",   "description": "Upload orchestration and progress"},
            {"name": "steam",    "description": "Steam store metadata proxies"},
            {"name": "profile",  "description": "The signed-in user's profile"},
            {"name": "admin",    "description": "Moderation and statistics"},
            {"name": "docs",     "description": "API documentation"},
        ],
        "components": {
            "schemas": {
                "Error": {
                    "type": "object",
                    "properties": {"error": {"type": "string"}},
                    "required": ["error"],
                },
                "Profile": {
                    "type": "object",
                    "properties": {
                        "id":         {"type": "string", "format": "uuid"},
                        "email":      {"type": "string", "format": "email"},
                        "username":   {"type": "string"},
                        "is_admin":   {"type": "boolean"},
                        "avatar_url": {"type": "string", "nullable": True},
                        "created_at": {"type": "string", "format": "date-time"},
                    },
                },
                "Game": {
                    "type": "object",
                    "properties": {
                        "id":             {"type": "string", "format": "uuid"},
                        "title":          {"type": "string", "example": "Portal 2"},
                        "description":    {"type": "string"},
                        "category":       {"type": "string", "enum": list(database.CATEGORIES)},
                        "file_url":       {"type": "string"},
                        "image_url":      {"type": "string", "nullable": True},
                        "screenshots":    {"type": "array", "items": {"type": "string"}},
                        "download_count": {"type": "integer", "minimum": 0},
                        "rating":         {"type": "number", "minimum": 0, "maximum": 5},
                        "created_by":     {"type": "string"},
                        "steam_appid":    {"type": "integer", "nullable": True},
                        "created_at":     {"type": "string", "format": "date-time"},
                    },
                },
                "Comment": {
                    "type": "object",
                    "properties": {
                        "id":         {"type": "string"},
                        "game_id":    {"type": "string"},
                        "user_id":    {"type": "string"},
                        "content":    {"type": "string"},
                        "rating":     {"type": "integer", "minimum": 1, "maximum": 5},
                        "created_at": {"type": "string", "format": "date-time"},
                        "profiles": {
                            "type": "object",
                            "properties": {
                                "username":   {"type": "string"},
                                "avatar_url": {"type": "string", "nullable": True},
                            },
                        },
                    },
                },
                "SteamApp": {
                    "type": "object",
                    "properties": {
                        "appid": {"type": "integer", "example": 620},
                        "name":  {"type": "string", "example": "Portal 2"},
                    },
                },
                "AutofillResult": {
                    "type": "object",
                    "properties": {
                        "success":    {"type": "boolean"},
                        "message":    {"type": "string"},
                        "fields":     {"type": "object"},
                        "candidates": {"type": "array", "items": _ref("SteamApp")},
                    },
                },
            },
            "securitySchemes": {
                "sessionCookie": {
                    "type": "apiKey",
                    "in": "cookie",
                    "name": "session",
                    "description": "Session cookie obtained from POST /api/auth/login",
                },
                "bearerToken": {
                    "type": "http",
                    "scheme": "bearer",
                    "description": "Token returned by POST /api/auth/login",
                },
            },
        },
        "security": [{"sessionCookie": []}, {"bearerToken": []}],
        "paths": _build_paths(),
    }
    return spec


def _build_paths() -> Dict[str, Any]:
    paths: Dict[str, Any] = {}
    game_id = _path_param("game_id", "Listing id")

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    credentials = {"email": {"type": "string"}, "password": {"type": "string"}}
    signed_in = _json_resp("Signed in", {
        "type": "object",
        "properties": {"message": {"type": "string"}, "user": _ref("Profile"),
                       "token": {"type": "string"}},
    })
    paths["/api/auth/register"] = {"post": {
        "tags": ["auth"], "summary": "Create a profile (the first one becomes admin)",
        "security": [],
        "requestBody": _json_body({**credentials, "username": {"type": "string"}},
                                  ["email", "password"]),
        "responses": {"201": signed_in, "400": _error("Validation failed")},
    }}
    paths["/api/auth/login"] = {"post": {
        "tags": ["auth"], "summary": "Sign in", "security": [],
        "requestBody": _json_body(credentials, ["email", "password"]),
        "responses": {"200": signed_in, "401": _error("Invalid email or password")},
    }}
    paths["/api/auth/logout"] = {"post": {
        "tags": ["auth"], "summary": "Sign out",
        "responses": {"200": _json_resp("Signed out")},
    }}
    paths["/api/auth/current"] = {"get": {
        "tags": ["auth"], "summary": "Current identity and visible navigation",
        "responses": {"200": _json_resp("Signed in"), "401": _json_resp("Anonymous")},
    }}

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------
    paths["/api/games"] = {
        "get": {
            "tags": ["catalog"], "summary": "List games", "security": [],
            "parameters": [
                {"name": "category", "in": "query",
                 "schema": {"type": "string", "enum": ["all"] + list(database.CATEGORIES)}},
                {"name": "sort", "in": "query",
                 "schema": {"type": "string", "enum": ["created_at", "rating", "downloads"]}},
                {"name": "q", "in": "query", "description": "Title/description substring",
                 "schema": {"type": "string"}},
            ],
            "responses": {
                "200": _json_resp("Listings", {
                    "type": "object",
                    "properties": {"games": {"type": "array", "items": _ref("Game")},
                                   "empty": {"type": "boolean"}},
                }),
                "500": _error("Query failed"),
            },
        },
        "post": {
            "tags": ["upload"], "summary": "Create a listing (admin)",
            "description": "multipart/form-data with an optional `image` file, or JSON. "
                           "Pass `upload_id` to follow progress.",
            "responses": {"201": _json_resp("Created"), "400": _error(),
                          "401": _error(), "403": _error()},
        },
    }
    paths["/api/games/{game_id}"] = {"get": {
        "tags": ["catalog"], "summary": "Listing with comments and store details",
        "security": [], "parameters": [game_id],
        "responses": {"200": _json_resp("Detail", _ref("Game")),
                      "404": _error("Game not found")},
    }}
    paths["/api/games/{game_id}/download"] = {"post": {
        "tags": ["catalog"], "summary": "Count a download and return the direct link",
        "security": [], "parameters": [game_id],
        "responses": {
            "200": _json_resp("Download", {
                "type": "object",
                "properties": {"download_url": {"type": "string"},
                               "download_count": {"type": "integer"}},
            }),
            "404": _error("Game not found"),
        },
    }}
    paths["/api/games/{game_id}/comments"] = {
        "get": {
            "tags": ["comments"], "summary": "Comments, newest first", "security": [],
            "parameters": [game_id],
            "responses": {"200": _json_resp("Comments", {
                "type": "object",
                "properties": {"comments": {"type": "array", "items": _ref("Comment")}},
            })},
        },
        "post": {
            "tags": ["comments"], "summary": "Add a comment", "parameters": [game_id],
            "requestBody": _json_body({"content": {"type": "string"},
                                       "rating": {"type": "integer", "minimum": 1,
                                                  "maximum": 5, "default": 5}},
                                      ["content"]),
            "responses": {"201": _json_resp("Added"), "400": _error(), "401": _error()},
        },
    }

    # ------------------------------------------------------------------
    # Upload progress and raw storage
    # ------------------------------------------------------------------
    upload_id = _path_param("upload_id", "Client-chosen upload id")
    paths["/api/uploads/{upload_id}/progress"] = {"get": {
        "tags": ["upload"], "summary": "Latest progress of an upload",
        "parameters": [upload_id],
        "responses": {"200": _json_resp("Progress"), "404": _error("Unknown upload")},
    }}
    paths["/api/uploads/{upload_id}/events"] = {"get": {
        "tags": ["upload"], "summary": "Server-Sent Events stream of upload progress",
        "parameters": [upload_id],
        "responses": {"200": {"description": "text/event-stream"}},
    }}
    paths["/api/storage/{bucket}/{path}"] = {"put": {
        "tags": ["upload"], "summary": "Raw binary upload",
        "security": [{"bearerToken": []}],
        "parameters": [_path_param("bucket"), _path_param("path")],
        "requestBody": {"content": {"application/octet-stream": {
            "schema": {"type": "string", "format": "binary"}}}},
        "responses": {"201": _json_resp("Stored"), "400": _error(),
                      "401": _error(), "403": _error()},
    }}

    # ------------------------------------------------------------------
    # Steam proxies
    # ------------------------------------------------------------------
    paths["/api/steam/search"] = {"post": {
        "tags": ["steam"], "summary": "Search the Steam app list (max 20 hits)",
        "security": [],
        "requestBody": _json_body({"searchTerm": {"type": "string"}}, ["searchTerm"]),
        "responses": {"200": _json_resp("Matches", {"type": "array", "items": _ref("SteamApp")}),
                      "400": _error()},
    }}
    paths["/api/steam/resolve-url"] = {"post": {
        "tags": ["steam"], "summary": "Resolve a store page URL", "security": [],
        "requestBody": _json_body({"url": {"type": "string"}}, ["url"]),
        "responses": {"200": _json_resp("Resolved"), "400": _error(),
                      "404": _json_resp("Not in store")},
    }}
    paths["/api/steam/get-details"] = {"post": {
        "tags": ["steam"], "summary": "Store details for an app id", "security": [],
        "requestBody": _json_body({"appId": {"type": "integer"}}, ["appId"]),
        "responses": {"200": _json_resp("Details"), "400": _error(),
                      "404": _json_resp("Not in store")},
    }}
    paths["/api/autofill"] = {"post": {
        "tags": ["upload"], "summary": "Autofill the upload form (admin)",
        "requestBody": _json_body({"text": {"type": "string"},
                                   "appid": {"type": "integer"},
                                   "name": {"type": "string"}}),
        "responses": {"200": _json_resp("Result", _ref("AutofillResult"))},
    }}

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------
    paths["/api/profile"] = {
        "get": {"tags": ["profile"], "summary": "Own profile, comments and uploads",
                "responses": {"200": _json_resp("Overview"), "401": _error()}},
        "post": {"tags": ["profile"], "summary": "Update username and avatar",
                 "responses": {"200": _json_resp("Updated"), "400": _error(),
                               "401": _error()}},
    }

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------
    admin_errors = {"401": _error(), "403": _error("Admin privileges required")}
    paths["/api/admin/games"] = {"get": {
        "tags": ["admin"], "summary": "All listings",
        "responses": {"200": _json_resp("Listings"), **admin_errors},
    }}
    paths["/api/admin/games/{game_id}"] = {
        "delete": {"tags": ["admin"], "summary": "Delete a listing", "parameters": [game_id],
                   "responses": {"200": _json_resp("Deleted"), "404": _error(), **admin_errors}},
        "patch": {"tags": ["admin"], "summary": "Edit listing fields (incl. rating)",
                  "parameters": [game_id],
                  "requestBody": _json_body({"title": {"type": "string"},
                                             "description": {"type": "string"},
                                             "category": {"type": "string"},
                                             "file_url": {"type": "string"},
                                             "rating": {"type": "number"}}),
                  "responses": {"200": _json_resp("Updated"), "400": _error(),
                                "404": _error(), **admin_errors}},
    }
    paths["/api/admin/games/{game_id}/refresh"] = {"post": {
        "tags": ["admin"], "summary": "Re-pull Steam metadata", "parameters": [game_id],
        "responses": {"200": _json_resp("Refreshed"), "400": _error(),
                      "404": _error(), **admin_errors},
    }}
    paths["/api/admin/users"] = {"get": {
        "tags": ["admin"], "summary": "All profiles",
        "responses": {"200": _json_resp("Profiles"), **admin_errors},
    }}
    paths["/api/admin/users/{user_id}/toggle-admin"] = {"post": {
        "tags": ["admin"], "summary": "Flip a profile's admin flag",
        "parameters": [_path_param("user_id")],
        "responses": {"200": _json_resp("Toggled"), "404": _error(), **admin_errors},
    }}
    paths["/api/admin/stats"] = {"get": {
        "tags": ["admin"], "summary": "Totals: games, users, downloads, average rating",
        "responses": {"200": _json_resp("Stats"), **admin_errors},
    }}

    # ------------------------------------------------------------------
    # API docs (self-referential)
    # ------------------------------------------------------------------
    paths["/api/openapi.json"] = {"get": {
        "tags": ["docs"], "summary": "OpenAPI 3.0 specification (JSON)", "security": [],
        "responses": {"200": _json_resp("OpenAPI spec")},
    }}
    paths["/api/docs"] = {"get": {
        "tags": ["docs"], "summary": "Swagger UI", "security": [],
        "responses": {"200": {"description": "HTML page"}},
    }}

    return paths
