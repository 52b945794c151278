"""auth/ -- Caller identity resolution for the IdP Configs API.

There is no authentication here: the gateway has already validated the caller
and forwards an identity header. This package only decodes it.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or realms/.
"""
