import platform
from typing import Dict


def generate_default_user_agent(chrome_version: str = "120.0.0.0", edge: bool = False) -> str:
    """
    Generates a generic Chrome user agent string based on the operating system.

    Args:
        chrome_version: The Chrome version to advertise.
        edge: Append the Edge token (used by the alternate header profile).

    Returns:
        str: The constructed User-Agent string.
    """
    os_name = platform.system()

    if os_name == "Windows":
        os_part = "Windows NT 10.0; Win64; x64"
    elif os_name == "Darwin":  # macOS
        os_part = "Macintosh; Intel Mac OS X 10_15_7"
    elif os_name == "Linux":
        os_part = "X11; Linux x86_64"
    else:
        os_part = "Windows NT 10.0; Win64; x64"

    user_agent = (
        f"Mozilla/5.0 ({os_part}) AppleWebKit/537.36 (KHTML, like Gecko) "
        f"Chrome/{chrome_version} Safari/537.36"
    )
    if edge:
        user_agent += f" Edg/{chrome_version}"
    return user_agent


def browser_headers(chrome_version: str = "120.0.0.0") -> Dict[str, str]:
    """Primary header profile: a plain navigation request from Chrome."""
    return {
        'User-Agent': generate_default_user_agent(chrome_version),
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.5',
        'Accept-Encoding': 'gzip, deflate',
        'Connection': 'keep-alive',
        'Upgrade-Insecure-Requests': '1',
        'Sec-Fetch-Dest': 'document',
        'Sec-Fetch-Mode': 'navigate',
        'Sec-Fetch-Site': 'none',
        'Sec-Fetch-User': '?1',
        'Cache-Control': 'max-age=0',
    }


def alternate_headers(chrome_version: str = "120.0.0.0") -> Dict[str, str]:
    """Second header profile: different user agent plus a search-engine referer."""
    return {
        'User-Agent': generate_default_user_agent(chrome_version, edge=True),
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
        'Accept-Language': 'en;q=0.9',
        'Accept-Encoding': 'gzip, deflate',
        'Referer': 'https://www.google.com/',
        'DNT': '1',
        'Connection': 'keep-alive',
        'Upgrade-Insecure-Requests': '1',
    }
