"""
Random code generators: pure, side-effect-free functions.

All generators use the cryptographically secure ``secrets`` module.
"""

from __future__ import annotations

import secrets


def generate_otp_code(length: int = 6) -> str:
    """Generate a uniformly random numeric OTP, zero-padded to *length*.

    Args:
        length: Number of digits (default 6).

    Returns:
        String of decimal digits; leading zeros are kept ("004213").
    """
    return f"{secrets.randbelow(10 ** length):0{length}d}"
