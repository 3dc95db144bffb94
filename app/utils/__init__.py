"""
UTILITIES PACKAGE
=================

Helpers used by the services (no HTTP, no business logic):

  data_uri - extract_base64_payload(): payload of a data-URI; to_png_data_uri(): wrap image bytes/base64.
  api_key  - resolve_api_key(): per-call key, else configured key, else ""; mask_api_key() for logs.
"""
