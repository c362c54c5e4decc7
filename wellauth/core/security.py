"""
Modul keamanan terpusat untuk WellAuth.
Menangani password hashing, verifikasi bearer JWT, pembuatan token acak,
dan hashing satu arah untuk secret yang disimpan di database.
"""

import secrets
from typing import Optional, Dict, Any

from passlib.context import CryptContext
from jose import jwt, JWTError, ExpiredSignatureError
from cryptography.hazmat.primitives import hashes

from wellauth.core.config import settings
from wellauth.core.exceptions import AuthError


# Password hashing context dengan Argon2
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__rounds=4,
    argon2__memory_cost=65536,
    argon2__parallelism=2,
    argon2__hash_len=32,
    argon2__salt_len=16
)

# 32 bytes = 256 bit entropy, di-encode jadi 64 karakter hex
RESET_TOKEN_BYTES = 32


class Security:
    """Kelas untuk operasi keamanan."""

    # Password Operations
    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash password menggunakan Argon2.

        Args:
            password: Plain text password

        Returns:
            Hashed password
        """
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verifikasi password terhadap hash.

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password

        Returns:
            True jika password cocok
        """
        return pwd_context.verify(plain_password, hashed_password)

    # JWT Operations
    @staticmethod
    def decode_access_token(token: str, audience: Optional[str] = None) -> Dict[str, Any]:
        """
        Decode dan validasi bearer JWT yang diterbitkan identity provider.

        Args:
            token: JWT token
            audience: Audience yang diharapkan, None untuk skip validasi aud

        Returns:
            Decoded token payload

        Raises:
            AuthError: Jika token tidak valid atau expired
        """
        audience = audience or settings.JWT_AUDIENCE
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret,
                algorithms=[settings.ALGORITHM],
                audience=audience,
                options={"verify_aud": audience is not None}
            )
        except ExpiredSignatureError:
            raise AuthError("Token has expired")
        except jwt.JWTClaimsError:
            raise AuthError("Invalid token claims")
        except JWTError:
            raise AuthError("Invalid or expired token")

        if not payload.get("sub"):
            raise AuthError("Invalid token claims")
        return payload

    # Token Generation untuk Non-JWT
    @staticmethod
    def generate_reset_token() -> str:
        """
        Generate token reset password.

        Returns:
            64 karakter hex (256 bit)
        """
        return secrets.token_hex(RESET_TOKEN_BYTES)

    @staticmethod
    def generate_secure_token(length: int = 32) -> str:
        """Generate secure random token url-safe."""
        return secrets.token_urlsafe(length)

    # Hash Operations untuk Token Storage
    @staticmethod
    def hash_token(token: str) -> str:
        """
        Hash token untuk penyimpanan aman di database.
        Menggunakan SHA256 karena tidak perlu verifikasi seperti password.

        Args:
            token: Token yang akan di-hash

        Returns:
            Hashed token
        """
        digest = hashes.Hash(hashes.SHA256())
        digest.update(token.encode())
        return digest.finalize().hex()


# Global security instance
security = Security()
