"""
Visitor ACS Services
====================

Services:
- access_control: provisioning and revocation of visitor access in external
  access control systems (Lenel OnGuard, S2 Security, Ccure 9000, custom REST)
"""

__all__ = [
    "access_control",
]
