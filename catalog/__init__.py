"""
GameHub catalog package.

Introduces a layered architecture:

  catalog/repositories/  - file-backed I/O: object storage buckets and the
                           Steam app-list cache.
  catalog/services/      - business logic and domain rules.

``GameHub`` (in ``gamehub.py``) is the integration point: it creates repository
and service instances in ``__init__`` and exposes them as public attributes
(e.g. ``hub.upload_service``).  Route handlers in ``gamehub_web.py`` use these
services directly, keeping the HTTP layer separate from the domain.
"""
