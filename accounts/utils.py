# accounts/utils.py
import secrets


def generate_token(nbytes=32):
    # returns 64 hex chars for the default 32 bytes
    return secrets.token_hex(nbytes)


def generate_numeric_otp(length=6):
    # returns string e.g. "483920"
    min_val = 10**(length-1)
    max_val = 10**length - 1
    return str(secrets.randbelow(max_val - min_val + 1) + min_val)


def otp_matches(candidate, expected):
    if candidate is None or expected is None:
        return False
    return secrets.compare_digest(str(candidate).encode(), str(expected).encode())
