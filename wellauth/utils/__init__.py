"""
Utils module untuk WellAuth.
Berisi utilitas helper untuk resolusi alamat client.
"""

from wellauth.utils.network import (
    is_valid_ip_address,
    clean_header_value,
    get_client_ip,
    get_user_agent
)

__all__ = [
    "is_valid_ip_address",
    "clean_header_value",
    "get_client_ip",
    "get_user_agent"
]
