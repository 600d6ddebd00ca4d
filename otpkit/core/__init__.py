"""OTP math, key types and helpers."""
