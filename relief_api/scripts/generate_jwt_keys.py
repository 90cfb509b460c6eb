#!/usr/bin/env python3
"""
Generate an RSA key pair for session token signing.

Prints the PEM keys and the matching environment variable lines with
escaped newlines, which ``config.load_config`` unescapes.
"""

from relief_api.services.auth import generate_key_pair


def format_env_lines(private_key: str, public_key: str) -> str:
    newline = "\\n"
    return "\n".join([
        f'JWT_PRIVATE_KEY="{private_key.replace(chr(10), newline)}"',
        f'JWT_PUBLIC_KEY="{public_key.replace(chr(10), newline)}"',
    ])


if __name__ == "__main__":
    private_key, public_key = generate_key_pair()

    print("=== JWT PRIVATE KEY ===")
    print(private_key)
    print("\n=== JWT PUBLIC KEY ===")
    print(public_key)

    print("\n=== Environment Variables ===")
    print(format_env_lines(private_key, public_key))
