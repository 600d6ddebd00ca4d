"""otpauth:// URI handling."""
