from __future__ import annotations

import socket
from typing import List

from domain.errors import ResolveError
from domain.ports import Resolver


class SocketResolver(Resolver):
    def __init__(self, family: int = socket.AF_UNSPEC):
        self.family = family

    def resolve(self, host: str) -> List[str]:
        try:
            infos = socket.getaddrinfo(host, None, self.family)
        except (socket.gaierror, UnicodeError) as e:
            raise ResolveError(f"Could not resolve hostname {host}") from e

        # dedupe mantendo a ordem do resolvedor
        out: List[str] = []
        for _family, _type, _proto, _canon, sockaddr in infos:
            addr = str(sockaddr[0])
            if addr not in out:
                out.append(addr)
        if not out:
            raise ResolveError(f"Could not resolve hostname {host}")
        return out
