"""
Authentication application.

This app provides user accounts and the identity resolution used by the
HTTP API and the WebSocket session protocol.

Key components:
    - User model: Username-based user authentication
    - Identity resolver: Bearer JWT -> Authenticated | Guest | Anonymous
    - DRF authentication classes built on the resolver
    - AccountService: Registration, login, account removal

Usage:
    from authentication.identity import resolve_identity
    from authentication.services import AccountService
"""
