"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Channel, ChannelMessage model tests
- test_sequence.py: Sequence key generation
- test_services.py: Directory, message store and direct message services
- test_broadcaster.py: Room registry and fan-out
- test_consumers.py: WebSocket consumer tests
- test_reconciliation.py: History and broadcast merging
- test_views.py: REST API endpoint tests
- test_integration.py: End-to-end user journeys

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
