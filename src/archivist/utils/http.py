"""
HTTP session construction.

The pipeline never reaches for a shared global client: the controller builds
one session for page fetches and one for image fetches (the only one that
may go through a proxy) and closes both when the run ends.
"""

from typing import Optional

import requests

from .. import __version__


DEFAULT_USER_AGENT = f'Archivist/{__version__} (Article Archiver)'


def build_page_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    session = requests.Session()
    session.headers.update({
        'User-Agent': user_agent,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.5',
        'Accept-Encoding': 'gzip, deflate',
        'Connection': 'keep-alive',
    })
    return session


def build_image_session(proxy: Optional[str] = None, user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    """
    Session used for image downloads. When `proxy` is given, both http and
    https traffic is routed through it and environment proxies are ignored.
    """
    session = requests.Session()
    session.headers.update({
        'User-Agent': user_agent,
        'Accept': 'image/avif,image/webp,image/*,*/*;q=0.8',
    })
    if proxy:
        session.proxies.update({'http': proxy, 'https': proxy})
        session.trust_env = False
    return session
