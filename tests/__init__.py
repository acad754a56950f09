"""
Visitor ACS Test Suite
======================

Test organization:
- tests/unit/                     - Models, settings and logging helpers
- tests/services/access_control/  - Adapters, dispatcher and HTTP API
                                    (vendors faked with httpx.MockTransport)

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest --cov=services          # With coverage
"""
