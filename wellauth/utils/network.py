"""
Network utilities untuk WellAuth.
Resolusi alamat client dan user agent dari request.
"""

import ipaddress
import re
from typing import Optional

from starlette.requests import Request

from wellauth.core.constants import DefaultValue


CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x1F\x7F-\x9F]')


def is_valid_ip_address(ip: Optional[str]) -> bool:
    """
    Validate IP address format (IPv4 atau IPv6).

    Args:
        ip: IP address to validate

    Returns:
        True if IP address is valid, False otherwise
    """
    if not ip or not isinstance(ip, str):
        return False

    try:
        ipaddress.ip_address(ip)
        return True
    except ValueError:
        return False


def clean_header_value(value: Optional[str], max_length: int) -> Optional[str]:
    """
    Buang control characters dan potong ke ``max_length``.

    Returns:
        Nilai bersih, atau None jika kosong
    """
    if not value:
        return None
    value = CONTROL_CHARS_PATTERN.sub('', value).strip()
    return value[:max_length] or None


def get_client_ip(request: Request) -> str:
    """
    Resolve alamat client.

    Urutan: hop pertama ``X-Forwarded-For``, lalu ``X-Real-IP``, lalu peer
    socket, terakhir ``"unknown"``. Nilai header yang bukan IP diabaikan.

    Args:
        request: Incoming request

    Returns:
        Alamat IP client
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if is_valid_ip_address(first_hop):
            return first_hop

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and is_valid_ip_address(real_ip.strip()):
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return DefaultValue.UNKNOWN_IP


def get_user_agent(request: Request, override: Optional[str] = None) -> Optional[str]:
    """
    User agent client, dengan nilai eksplisit dari body sebagai prioritas.

    Args:
        request: Incoming request
        override: User agent yang dikirim di body

    Returns:
        User agent yang sudah dibersihkan atau None
    """
    return clean_header_value(
        override or request.headers.get("user-agent"),
        DefaultValue.MAX_USER_AGENT_LENGTH
    )
